"""EVM - verifier compilation and a gas-metered runtime to execute it."""

from semaphore_spec.evm.compiler import compile_verifier, deployment_code
from semaphore_spec.evm.harness import encode_calldata, evm_verify
from semaphore_spec.evm.loader import EvmLoader
from semaphore_spec.evm.vm import ExecutionResult, Executor

__all__ = [
    "compile_verifier",
    "deployment_code",
    "encode_calldata",
    "evm_verify",
    "EvmLoader",
    "ExecutionResult",
    "Executor",
]
