"""
Shared fixtures.

Setup, key generation and proving run in pure Python over py_ecc, so the
expensive objects are built once per session.
"""

import random

import pytest

from semaphore_spec.protocol.circuit import MerkleTreeCircuit
from semaphore_spec.protocol.keys import keygen
from semaphore_spec.protocol.prover import create_proof
from semaphore_spec.protocol.setup import setup
from semaphore_spec.witness.merkle import MerkleWitness

# Depth 5 needs 331 rows, so a 2^9 domain
SRS_K = 9

SCENARIO_LEAF = 123
SCENARIO_DEPTH = 5


def _scenario_witness(path_bits: list[int] | None = None) -> MerkleWitness:
    """Leaf 123 with siblings 0..4, all path bits zero unless given."""
    bits = path_bits if path_bits is not None else [0] * SCENARIO_DEPTH
    return MerkleWitness(leaf=SCENARIO_LEAF, siblings=list(range(SCENARIO_DEPTH)), path_bits=bits)


@pytest.fixture
def scenario_witness():
    return _scenario_witness


@pytest.fixture(scope="session")
def srs():
    return setup(SRS_K, random.Random(0x5EED))


@pytest.fixture(scope="session")
def keys_depth5(srs):
    return keygen(srs, MerkleTreeCircuit(SCENARIO_DEPTH))


@pytest.fixture(scope="session")
def keys_depth2(srs):
    return keygen(srs, MerkleTreeCircuit(2))


@pytest.fixture(scope="session")
def scenario(srs, keys_depth5):
    """(circuit, root, proof) for the five-level leaf 123 scenario."""
    pk, _ = keys_depth5
    circuit = MerkleTreeCircuit.from_witness(_scenario_witness())
    root = circuit.witness.root(circuit.spec)
    proof = create_proof(srs, pk, circuit, [root], random.Random(7))
    return circuit, root, proof
