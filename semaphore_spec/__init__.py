"""Semaphore-style Merkle membership prover.

Proves knowledge of a leaf and authentication path hashing to a public root
with a PLONKish circuit over BN254, a KZG pipeline and an on-chain verifier
compiled to EVM bytecode.
"""

from semaphore_spec.primitives import Fr, PoseidonSpec
from semaphore_spec.constraints import MerkleMembershipConstraints
from semaphore_spec.witness import MerkleTree, MerkleWitness, compute_root
from semaphore_spec.protocol.circuit import MerkleTreeCircuit
from semaphore_spec.protocol.keys import ProvingKey, VerifyingKey, keygen, keygen_pk, keygen_vk
from semaphore_spec.protocol.mock import MockProver
from semaphore_spec.protocol.prover import create_proof
from semaphore_spec.protocol.setup import Srs, setup
from semaphore_spec.protocol.verifier import verify_proof
from semaphore_spec.evm import ExecutionResult, Executor, compile_verifier, evm_verify

__version__ = "0.1.0"

__all__ = [
    "Fr",
    "PoseidonSpec",
    "MerkleMembershipConstraints",
    "MerkleTree",
    "MerkleWitness",
    "compute_root",
    "MerkleTreeCircuit",
    "ProvingKey",
    "VerifyingKey",
    "keygen",
    "keygen_pk",
    "keygen_vk",
    "MockProver",
    "create_proof",
    "Srs",
    "setup",
    "verify_proof",
    "ExecutionResult",
    "Executor",
    "compile_verifier",
    "evm_verify",
]
