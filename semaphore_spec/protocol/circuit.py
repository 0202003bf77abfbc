"""Merkle membership circuit: shape plus an optional witness.

The shape (depth and Poseidon parameters) fixes every fixed column, so keys
depend only on it. The witness is consumed by synthesis when proving.
"""

from dataclasses import dataclass, field, replace

import numpy as np

from semaphore_spec.constraints.merkle import (
    FIXED_COLUMNS,
    MerkleMembershipConstraints,
    instance_row,
    rows_per_level,
    used_rows,
)
from semaphore_spec.errors import WitnessError
from semaphore_spec.primitives.field import Fr
from semaphore_spec.primitives.poseidon import PoseidonSpec
from semaphore_spec.witness.merkle import MerkleWitness, assign_advice

# Smallest domain; the quotient split needs n larger than the gate degree
MIN_K = 3


@dataclass
class MerkleTreeCircuit:
    """Membership circuit for a fixed tree depth.

    Attributes:
        depth: Number of levels folded (0 means root == leaf)
        spec: Poseidon parameters shared with witness building
        witness: Secret path, None for key generation
    """
    depth: int
    spec: PoseidonSpec = field(default_factory=PoseidonSpec)
    witness: MerkleWitness | None = None

    def __post_init__(self) -> None:
        if self.depth < 0:
            raise ValueError(f"depth must be non-negative, got {self.depth}")
        if self.witness is not None and self.witness.depth != self.depth:
            raise WitnessError(
                f"witness has {self.witness.depth} levels, circuit expects {self.depth}"
            )

    @classmethod
    def from_witness(cls, witness: MerkleWitness, spec: PoseidonSpec | None = None) -> "MerkleTreeCircuit":
        return cls(depth=witness.depth, spec=spec or PoseidonSpec(), witness=witness)

    def without_witnesses(self) -> "MerkleTreeCircuit":
        return replace(self, witness=None)

    # --- Shape ---

    def constraint_module(self) -> MerkleMembershipConstraints:
        return MerkleMembershipConstraints(self.spec)

    def min_k(self) -> int:
        rows = used_rows(self.spec, self.depth)
        return max(MIN_K, (rows - 1).bit_length())

    def instance_rows(self) -> list[int]:
        return [instance_row(self.spec, self.depth)]

    # --- Synthesis ---

    def assign_fixed(self, n: int) -> dict[str, np.ndarray]:
        """Selector and round-constant columns, independent of the witness."""
        if n < used_rows(self.spec, self.depth):
            raise ValueError(f"circuit needs {used_rows(self.spec, self.depth)} rows, domain has {n}")
        spec = self.spec
        columns = {name: [0] * n for name in FIXED_COLUMNS}
        per_level = rows_per_level(spec)
        last = spec.total_rounds - 1

        for level in range(self.depth):
            start = per_level * level
            columns["q_swap"][start] = 1
            for r in range(spec.total_rounds):
                row = start + 1 + r
                if r == last:
                    columns["q_last"][row] = 1
                elif spec.is_full_round(r):
                    columns["q_full"][row] = 1
                else:
                    columns["q_partial"][row] = 1
                for j, value in enumerate(spec.round_constants[r]):
                    columns[f"rc_{j}"][row] = value

        for row in self.instance_rows():
            columns["q_inst"][row] = 1
        return {name: Fr(values) for name, values in columns.items()}

    def assign_advice(self, n: int) -> dict[str, np.ndarray]:
        if self.witness is None:
            raise WitnessError("circuit has no witness to synthesize")
        return assign_advice(self.witness, self.spec, n)
