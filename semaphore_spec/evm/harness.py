"""Deploy a compiled verifier and run it on a proof."""

from eth_abi import encode

from semaphore_spec.evm.vm import DEFAULT_GAS_LIMIT, ExecutionResult, Executor


def encode_calldata(instances: list, proof: bytes) -> bytes:
    """abi.encode(uint256[] instances, bytes proof)."""
    return encode(["uint256[]", "bytes"], [[int(v) for v in instances], bytes(proof)])


def evm_verify(deployment_code: bytes, instances: list, proof: bytes,
               gas_limit: int = DEFAULT_GAS_LIMIT) -> ExecutionResult:
    """Deploy the verifier into a fresh runtime and call it.

    Args:
        deployment_code: Output of compile_verifier
        instances: Public instances
        proof: Proof bytes

    Returns:
        ExecutionResult of the verifier call; accepted is False on revert

    Raises:
        DeploymentError: the deployment code failed to deploy
        eth_abi.exceptions.EncodingError: instances or proof cannot be encoded
    """
    calldata = encode_calldata(instances, proof)
    executor = Executor(gas_limit=gas_limit)
    address = executor.deploy(deployment_code)
    result = executor.call(address, calldata)
    if not result.success:
        reason = result.error or "REVERT"
        print(f"ERROR: On-chain verifier rejected the proof ({reason}), gas used {result.gas_used}")
    return result
