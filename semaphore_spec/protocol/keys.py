"""Proving and verifying keys.

Both keys are derived from the SRS and the circuit shape only. The verifying
key carries everything a verifier needs (including [tau] G2), and its keccak
digest seeds every proof transcript.
"""

import struct
from dataclasses import dataclass
from functools import cached_property

import numpy as np
from eth_utils import keccak

from semaphore_spec.constraints.hash_widget import HashWidget
from semaphore_spec.constraints.merkle import FIXED_COLUMNS, MerkleMembershipConstraints
from semaphore_spec.primitives.curve import (
    G1_BYTES,
    G2,
    decode_g1,
    encode_g1,
    g2_from_ints,
    g2_to_ints,
)
from semaphore_spec.primitives.field import BN254_R, COSET_SHIFT, get_omega
from semaphore_spec.primitives.ntt import NTT
from semaphore_spec.primitives.poseidon import PoseidonSpec
from semaphore_spec.protocol.circuit import MerkleTreeCircuit
from semaphore_spec.protocol.pcs import commit
from semaphore_spec.protocol.setup import Srs

VK_MAGIC = b"SMV1"


def extension_factor(degree: int) -> int:
    """Smallest power of two coset blowup holding a degree-`degree` numerator."""
    factor = 1
    while factor < degree + 1:
        factor *= 2
    return factor


@dataclass(frozen=True)
class VerifyingKey:
    """Public parameters for checking proofs of one circuit shape.

    Attributes:
        k: Domain size is 2^k
        depth: Tree depth of the circuit
        spec: Poseidon parameters used by the hash gates
        instance_rows: Row of each public instance
        fixed_commitments: Commitments to FIXED_COLUMNS, in that order
        s_g2: [tau] G2 from the SRS
    """
    k: int
    depth: int
    spec: PoseidonSpec
    instance_rows: tuple[int, ...]
    fixed_commitments: tuple
    s_g2: tuple

    @property
    def n(self) -> int:
        return 1 << self.k

    @property
    def omega(self) -> int:
        return get_omega(self.k)

    @property
    def g2(self) -> tuple:
        return G2

    @property
    def num_instances(self) -> int:
        return len(self.instance_rows)

    def constraint_module(self) -> MerkleMembershipConstraints:
        return MerkleMembershipConstraints(self.spec)

    @property
    def num_quotient_pieces(self) -> int:
        # deg(t) <= degree * n + degree - 2, split into degree pieces of n coefficients
        return self.constraint_module().degree()

    # --- Serialization ---

    def to_bytes(self) -> bytes:
        spec = self.spec
        out = bytearray(VK_MAGIC)
        out += struct.pack(">6I", self.k, self.depth, spec.width, spec.full_rounds,
                           spec.partial_rounds, spec.alpha)
        out += struct.pack(">I", len(self.instance_rows))
        for row in self.instance_rows:
            out += struct.pack(">I", row)
        for point in self.fixed_commitments:
            out += encode_g1(point)
        for word in g2_to_ints(self.s_g2):
            out += word.to_bytes(32, "big")
        return bytes(out)

    @classmethod
    def from_bytes(cls, data: bytes) -> "VerifyingKey":
        """Parse a serialized verifying key.

        Raises:
            ValueError: bad magic, truncated data or invalid points
        """
        if data[:4] != VK_MAGIC:
            raise ValueError("not a verifying key")
        pos = 4
        try:
            k, depth, width, full, partial, alpha = struct.unpack_from(">6I", data, pos)
            pos += 24
            (count,) = struct.unpack_from(">I", data, pos)
            pos += 4
            rows = struct.unpack_from(f">{count}I", data, pos)
        except struct.error as e:
            raise ValueError(f"verifying key header truncated: {e}") from e
        pos += 4 * count
        commitments = []
        for _ in FIXED_COLUMNS:
            commitments.append(decode_g1(data[pos:pos + G1_BYTES]))
            pos += G1_BYTES
        words = [int.from_bytes(data[pos + 32 * i:pos + 32 * (i + 1)], "big") for i in range(4)]
        pos += 128
        if pos != len(data):
            raise ValueError(f"verifying key has {len(data) - pos} trailing or missing bytes")
        return cls(
            k=k,
            depth=depth,
            spec=PoseidonSpec(width, full, partial, alpha),
            instance_rows=tuple(rows),
            fixed_commitments=tuple(commitments),
            s_g2=g2_from_ints(*words),
        )

    @cached_property
    def digest(self) -> int:
        """Transcript seed: keccak256 of the serialized key, reduced mod r."""
        return int.from_bytes(keccak(self.to_bytes()), "big") % BN254_R


@dataclass(frozen=True)
class ProvingKey:
    """Verifying key plus fixed columns in every form the prover needs.

    Attributes:
        vk: Matching verifying key
        fixed_values: Fixed columns over the base domain
        fixed_coeffs: Fixed column polynomials
        fixed_cosets: Fixed columns over the extended coset
    """
    vk: VerifyingKey
    fixed_values: dict[str, np.ndarray]
    fixed_coeffs: dict[str, np.ndarray]
    fixed_cosets: dict[str, np.ndarray]

    @property
    def extension(self) -> int:
        return extension_factor(self.vk.constraint_module().degree())


# --- Key Generation ---

def _fixed_polynomials(srs: Srs, circuit: MerkleTreeCircuit) -> tuple[int, dict, dict]:
    k = circuit.min_k()
    if k > srs.k:
        raise ValueError(f"circuit needs 2^{k} rows but the SRS supports 2^{srs.k}")
    n = 1 << k
    values = circuit.assign_fixed(n)
    ntt = NTT(n)
    coeffs = {name: ntt.intt(values[name]) for name in FIXED_COLUMNS}
    return k, values, coeffs


def keygen_vk(srs: Srs, circuit: MerkleTreeCircuit) -> VerifyingKey:
    """Commit to the fixed columns of a circuit shape.

    Raises:
        ParameterMismatchError: hash gates disagree with the reference permutation
        ValueError: the SRS is too small for the circuit
    """
    HashWidget(circuit.spec).check_against_reference()
    k, _, coeffs = _fixed_polynomials(srs, circuit)
    return VerifyingKey(
        k=k,
        depth=circuit.depth,
        spec=circuit.spec,
        instance_rows=tuple(circuit.instance_rows()),
        fixed_commitments=tuple(commit(srs, coeffs[name]) for name in FIXED_COLUMNS),
        s_g2=srs.s_g2,
    )


def keygen_pk(srs: Srs, vk: VerifyingKey, circuit: MerkleTreeCircuit) -> ProvingKey:
    if circuit.depth != vk.depth or circuit.spec != vk.spec:
        raise ValueError("circuit shape does not match the verifying key")
    k, values, coeffs = _fixed_polynomials(srs, circuit)
    n = 1 << k
    ext = extension_factor(vk.constraint_module().degree())
    ntt_ext = NTT(n * ext)
    cosets = {name: ntt_ext.coset_ntt(coeffs[name], COSET_SHIFT) for name in FIXED_COLUMNS}
    return ProvingKey(vk=vk, fixed_values=values, fixed_coeffs=coeffs, fixed_cosets=cosets)


def keygen(srs: Srs, circuit: MerkleTreeCircuit) -> tuple[ProvingKey, VerifyingKey]:
    """Derive (ProvingKey, VerifyingKey) for the circuit's shape; the witness is ignored."""
    shape = circuit.without_witnesses()
    vk = keygen_vk(srs, shape)
    return keygen_pk(srs, vk, shape), vk
