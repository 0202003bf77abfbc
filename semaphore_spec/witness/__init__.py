"""Witness - Merkle path inputs and advice assignment."""

from semaphore_spec.witness.merkle import MerkleWitness, assign_advice, compute_root
from semaphore_spec.witness.tree import MerkleTree

__all__ = [
    "MerkleWitness",
    "MerkleTree",
    "assign_advice",
    "compute_root",
]
