"""Command-line demo: prove membership of a leaf and verify it natively and on chain.

Siblings are 0, 1, ..., depth - 1, so the default run reproduces the
five-level scenario with leaf 123 and all path bits zero.
"""

import argparse
import random
import sys
import time

from semaphore_spec.errors import UnsatisfiedConstraintError, WitnessError
from semaphore_spec.evm.compiler import compile_verifier
from semaphore_spec.evm.harness import evm_verify
from semaphore_spec.protocol.circuit import MerkleTreeCircuit
from semaphore_spec.protocol.keys import keygen
from semaphore_spec.protocol.prover import create_proof
from semaphore_spec.protocol.setup import setup
from semaphore_spec.protocol.verifier import verify_proof
from semaphore_spec.witness.merkle import MerkleWitness


def _parse_path_bits(text: str | None, depth: int) -> list[int]:
    if text is None:
        return [0] * depth
    bits = text.replace(",", " ").split()
    if len(bits) == 1 and len(bits[0]) == depth:
        bits = list(bits[0])
    return [int(bit) for bit in bits]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Prove Merkle membership and verify the proof natively and in the EVM runtime."
    )
    parser.add_argument("--depth", type=int, default=5, help="Tree depth (default: 5)")
    parser.add_argument("--leaf", type=int, default=123, help="Leaf value (default: 123)")
    parser.add_argument(
        "--k",
        type=int,
        default=None,
        help="log2 of the domain size (default: smallest that fits the circuit)",
    )
    parser.add_argument(
        "--path-bits",
        default=None,
        help="Path bits leaf level first, e.g. 01001 or 0,1,0,0,1 (default: all zero)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for setup and blinding randomness (default: system randomness)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    rng = random.Random(args.seed) if args.seed is not None else None

    try:
        witness = MerkleWitness(
            leaf=args.leaf,
            siblings=list(range(args.depth)),
            path_bits=_parse_path_bits(args.path_bits, args.depth),
        )
        circuit = MerkleTreeCircuit.from_witness(witness)
    except (WitnessError, ValueError) as e:
        print(f"ERROR: Invalid witness: {e}", file=sys.stderr)
        return 2

    k = args.k if args.k is not None else circuit.min_k()
    if k < circuit.min_k():
        print(f"ERROR: depth {args.depth} needs k >= {circuit.min_k()}", file=sys.stderr)
        return 2
    root = witness.root(circuit.spec)

    print("Configuration:")
    print(f"  depth: {args.depth}")
    print(f"  leaf: {args.leaf}")
    print(f"  path bits: {witness.path_bits}")
    print(f"  k: {k} (n = {1 << k})")
    print(f"  root: {int(root)}")

    start = time.time()
    print("\nGenerating SRS...")
    srs = setup(k, rng)
    print("Generating keys...")
    pk, vk = keygen(srs, circuit.without_witnesses())
    print(f"  setup + keygen: {time.time() - start:.1f}s")

    start = time.time()
    print("\nProving...")
    try:
        proof = create_proof(srs, pk, circuit, [root], rng)
    except UnsatisfiedConstraintError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    print(f"  proof: {len(proof)} bytes in {time.time() - start:.1f}s")

    ok = verify_proof(srs, vk, [root], proof)
    print(f"Native verification: {'PASSED' if ok else 'FAILED'}")

    print("\nCompiling on-chain verifier...")
    deployment = compile_verifier(srs, vk, [vk.num_instances])
    print(f"  deployment code: {len(deployment)} bytes")
    result = evm_verify(deployment, [root], proof)
    print(f"EVM verification: {'PASSED' if result.accepted else 'FAILED'} (gas used: {result.gas_used})")

    return 0 if ok and result.accepted else 1


if __name__ == "__main__":
    sys.exit(main())
