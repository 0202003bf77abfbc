"""Compile a verifying key into deployable verifier bytecode."""

from semaphore_spec.evm.loader import EvmLoader
from semaphore_spec.evm.opcodes import Opcode
from semaphore_spec.evm.vm import MAX_CODE_SIZE
from semaphore_spec.primitives.curve import g2_to_ints
from semaphore_spec.protocol.keys import VerifyingKey
from semaphore_spec.protocol.proof import proof_size
from semaphore_spec.protocol.setup import Srs
from semaphore_spec.protocol.verifier import verify_with_loader

INIT_HEADER_SIZE = 13


def compile_verifier(srs: Srs, vk: VerifyingKey, num_instance: list[int]) -> bytes:
    """Generate deployment code for an on-chain verifier.

    The runtime code accepts calldata abi.encode(uint256[] instances, bytes
    proof), halts normally for a valid proof and reverts otherwise.

    Args:
        srs: Parameters the verifying key was generated with
        vk: Verifying key of the circuit shape
        num_instance: Instance count per instance column

    Returns:
        Deployment (init) code that returns the runtime code

    Raises:
        ValueError: num_instance or srs does not match the verifying key
    """
    if list(num_instance) != [vk.num_instances]:
        raise ValueError(
            f"num_instance {list(num_instance)} does not match the circuit's [{vk.num_instances}]"
        )
    if g2_to_ints(srs.s_g2) != g2_to_ints(vk.s_g2):
        raise ValueError("SRS does not match the verifying key")

    loader = EvmLoader(vk.num_instances, proof_size(vk.num_quotient_pieces))
    verify_with_loader(loader, vk)
    runtime = loader.runtime_code()
    if len(runtime) > MAX_CODE_SIZE:
        raise ValueError(f"verifier runtime is {len(runtime)} bytes, limit {MAX_CODE_SIZE}")
    return deployment_code(runtime)


def deployment_code(runtime: bytes) -> bytes:
    """Init code that copies the runtime code to memory and returns it."""
    size = len(runtime).to_bytes(2, "big")
    offset = INIT_HEADER_SIZE.to_bytes(2, "big")
    header = bytes([
        Opcode.PUSH2, *size,
        Opcode.DUP1,
        Opcode.PUSH2, *offset,
        Opcode.PUSH1, 0,
        Opcode.CODECOPY,
        Opcode.PUSH1, 0,
        Opcode.RETURN,
    ])
    assert len(header) == INIT_HEADER_SIZE
    return header + runtime
