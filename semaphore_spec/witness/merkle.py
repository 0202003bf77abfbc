"""Merkle path witness and advice assignment.

The witness is validated at construction so that malformed inputs fail
before any circuit is built; a witness that passes here can still be wrong
(e.g. a tampered sibling), which the precheck in the prover reports.
"""

from dataclasses import dataclass, field
from typing import Sequence

import galois
import numpy as np

from semaphore_spec.constraints.merkle import instance_row, rows_per_level
from semaphore_spec.constraints.selector import select
from semaphore_spec.errors import WitnessError
from semaphore_spec.primitives.field import BN254_R, Fr
from semaphore_spec.primitives.poseidon import CAPACITY_TAG, PoseidonSpec


def _to_element(value, what: str) -> Fr:
    """Convert an int or Fr scalar to Fr, rejecting out-of-range integers."""
    if isinstance(value, galois.FieldArray):
        if type(value) is not Fr or value.ndim != 0:
            raise WitnessError(f"{what} must be a scalar in the BN254 scalar field")
        return value
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise WitnessError(f"{what} must be an integer field element, got {type(value).__name__}")
    value = int(value)
    if not 0 <= value < BN254_R:
        raise WitnessError(f"{what} = {value} is outside [0, r)")
    return Fr(value)


def _to_bit(value, what: str) -> int:
    """Accept True/False, 0/1 or Fr(0)/Fr(1); anything else is an error."""
    if isinstance(value, galois.FieldArray):
        value = int(value)
    if isinstance(value, (bool, np.bool_)):
        return int(value)
    if isinstance(value, (int, np.integer)) and int(value) in (0, 1):
        return int(value)
    raise WitnessError(f"{what} must be 0 or 1, got {value!r}")


@dataclass
class MerkleWitness:
    """Secret inputs of a membership proof.

    Attributes:
        leaf: The member value
        siblings: Sibling node at each level, leaf level first
        path_bits: 0 if the running value is the left input at that level
            (sibling on the right), 1 if it is the right input
    """
    leaf: Fr
    siblings: list = field(default_factory=list)
    path_bits: list = field(default_factory=list)

    def __post_init__(self) -> None:
        siblings = list(self.siblings)
        path_bits = list(self.path_bits)
        if len(siblings) != len(path_bits):
            raise WitnessError(
                f"{len(siblings)} siblings but {len(path_bits)} path bits"
            )
        self.leaf = _to_element(self.leaf, "leaf")
        self.siblings = [_to_element(s, f"siblings[{i}]") for i, s in enumerate(siblings)]
        self.path_bits = [_to_bit(b, f"path_bits[{i}]") for i, b in enumerate(path_bits)]

    @property
    def depth(self) -> int:
        return len(self.siblings)

    def root(self, spec: PoseidonSpec) -> Fr:
        return compute_root(self.leaf, self.siblings, self.path_bits, spec)


def compute_root(leaf, siblings: Sequence, path_bits: Sequence, spec: PoseidonSpec) -> Fr:
    """Fold a leaf up its path with the reference compression."""
    running = Fr(int(leaf))
    for sibling, bit in zip(siblings, path_bits):
        left, right = select(running, Fr(int(sibling)), int(bit))
        running = spec.compress(left, right)
    return running


def assign_advice(witness: MerkleWitness, spec: PoseidonSpec, n: int) -> dict[str, np.ndarray]:
    """Fill advice columns a, b, c for every level of the path.

    Args:
        witness: Validated path witness
        spec: Poseidon parameters shared with the hash widget
        n: Domain size (rows)

    Returns:
        Dict of column name -> Fr array of length n
    """
    a, b, c = [0] * n, [0] * n, [0] * n
    per_level = rows_per_level(spec)

    running = int(witness.leaf)
    for level, (sibling, bit) in enumerate(zip(witness.siblings, witness.path_bits)):
        start = per_level * level
        a[start], b[start], c[start] = running, int(sibling), bit

        left, right = select(running, int(sibling), bit)
        state = [left, right, CAPACITY_TAG]
        for r in range(spec.total_rounds):
            row = start + 1 + r
            a[row], b[row], c[row] = state
            state = spec.round(state, r)
        running = state[0]

    a[instance_row(spec, witness.depth)] = running
    return {"a": Fr(a), "b": Fr(b), "c": Fr(c)}
