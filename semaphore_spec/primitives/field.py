"""BN254 scalar field GF(r).

Uses galois library for all field arithmetic. Fr is the field type; every leaf,
sibling, root, witness cell and challenge is an Fr element.

galois would factor r - 1 to find a primitive element on its own, so the known
generator 5 is passed in explicitly.
"""

import galois
import numpy as np

# --- Field Construction ---

BN254_R = 21888242871839275222246405745257275088548364400416034343698204186575808495617
"""Order of the BN254 G1/G2 subgroups (scalar field modulus)."""

BN254_Q = 21888242871839275222246405745257275088696311157297823662689037894645226208583
"""BN254 base field modulus (curve coordinates)."""

MULTIPLICATIVE_GENERATOR = 5

Fr = galois.GF(BN254_R, primitive_element=MULTIPLICATIVE_GENERATOR, verify=False)
"""Scalar field GF(r)."""

SCALAR_BYTES = 32

# --- Roots of Unity ---

# r - 1 = 2^28 * odd
TWO_ADICITY = 28

ROOT_OF_UNITY = pow(MULTIPLICATIVE_GENERATOR, (BN254_R - 1) >> TWO_ADICITY, BN254_R)
"""Primitive 2^28-th root of unity."""

# Coset shift for the extended evaluation domain. A generator never lands in a
# subgroup of 2-power order, so Z_H has no zeros on the coset.
COSET_SHIFT = MULTIPLICATIVE_GENERATOR


def get_omega(n_bits: int) -> int:
    """Return a primitive 2^n_bits-th root of unity as an integer."""
    if not 0 <= n_bits <= TWO_ADICITY:
        raise ValueError(f"domain of 2^{n_bits} exceeds two-adicity {TWO_ADICITY}")
    return pow(ROOT_OF_UNITY, 1 << (TWO_ADICITY - n_bits), BN254_R)


def get_omega_inv(n_bits: int) -> int:
    """Return the inverse of get_omega(n_bits)."""
    return pow(get_omega(n_bits), BN254_R - 2, BN254_R)


# --- Conversions ---

def to_ints(values) -> list[int]:
    """Convert an Fr array to a list of Python ints."""
    return np.asarray(values.view(np.ndarray)).tolist()


def to_fr(value: int) -> Fr:
    """Reduce an arbitrary integer into Fr."""
    return Fr(value % BN254_R)


def scalar_to_bytes(value: int) -> bytes:
    """Big-endian 32-byte encoding of a canonical scalar."""
    return int(value).to_bytes(SCALAR_BYTES, "big")


def random_scalar(rng) -> Fr:
    """Sample a uniform Fr element from an rng exposing randrange."""
    return Fr(rng.randrange(BN254_R))
