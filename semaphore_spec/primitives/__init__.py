"""Primitives - Low-level cryptographic and mathematical building blocks."""

from semaphore_spec.primitives.field import (
    BN254_Q,
    BN254_R,
    COSET_SHIFT,
    Fr,
    get_omega,
    get_omega_inv,
    random_scalar,
    scalar_to_bytes,
    to_fr,
    to_ints,
)
from semaphore_spec.primitives.ntt import NTT
from semaphore_spec.primitives.poseidon import CAPACITY_TAG, PoseidonSpec
from semaphore_spec.primitives.transcript import (
    Transcript,
    TranscriptRead,
    TranscriptWrite,
)

__all__ = [
    # Field
    "Fr",
    "BN254_R",
    "BN254_Q",
    "COSET_SHIFT",
    "get_omega",
    "get_omega_inv",
    "random_scalar",
    "scalar_to_bytes",
    "to_fr",
    "to_ints",
    # NTT
    "NTT",
    # Hash
    "PoseidonSpec",
    "CAPACITY_TAG",
    # Transcript
    "Transcript",
    "TranscriptRead",
    "TranscriptWrite",
]
