"""Binary Merkle tree using Poseidon compression.

Builds the group tree out of circuit and hands out membership witnesses.
Leaves are padded with zeros up to 2^depth.
"""

from semaphore_spec.primitives.field import Fr
from semaphore_spec.primitives.poseidon import PoseidonSpec
from semaphore_spec.witness.merkle import MerkleWitness


class MerkleTree:
    """Fixed-depth binary Merkle tree."""

    def __init__(self, depth: int, spec: PoseidonSpec | None = None) -> None:
        if depth < 0:
            raise ValueError(f"depth must be non-negative, got {depth}")
        self.depth = depth
        self.spec = spec if spec is not None else PoseidonSpec()
        # levels[0] are the leaves, levels[depth] == [root]
        self.levels: list[list[int]] = []

    # --- Core Operations ---

    def merkelize(self, leaves: list) -> None:
        """Build every level from the given leaves."""
        capacity = 1 << self.depth
        if len(leaves) > capacity:
            raise ValueError(f"{len(leaves)} leaves do not fit a tree of depth {self.depth}")

        level = [int(leaf) for leaf in leaves] + [0] * (capacity - len(leaves))
        self.levels = [level]
        for _ in range(self.depth):
            level = [
                int(self.spec.compress(level[i], level[i + 1]))
                for i in range(0, len(level), 2)
            ]
            self.levels.append(level)

    @property
    def root(self) -> Fr:
        if not self.levels:
            raise ValueError("tree has not been merkelized")
        return Fr(self.levels[-1][0])

    def witness(self, index: int) -> MerkleWitness:
        """Authentication path for the leaf at index, leaf level first."""
        if not self.levels:
            raise ValueError("tree has not been merkelized")
        if not 0 <= index < len(self.levels[0]):
            raise IndexError(f"leaf index {index} out of range")

        siblings = []
        path_bits = []
        idx = index
        for level in self.levels[:-1]:
            siblings.append(level[idx ^ 1])
            path_bits.append(idx & 1)
            idx >>= 1
        return MerkleWitness(leaf=self.levels[0][index], siblings=siblings, path_bits=path_bits)
