"""Deterministic, gas-metered interpreter for an EVM subset.

Enough of the EVM to deploy and run the compiled verifier: 256-bit stack
arithmetic, memory with quadratic expansion cost, calldata and code access,
KECCAK256, jumps, STATICCALL into precompiles or deployed code, RETURN and
REVERT. Exceptional halts (stack errors, bad jumps, invalid opcodes, out of
gas) behave like a revert that consumes all gas.
"""

from dataclasses import dataclass

from eth_utils import keccak

from semaphore_spec.errors import DeploymentError, VmError
from semaphore_spec.evm.opcodes import (
    G_COPY,
    G_EXP_BYTE,
    G_KECCAK_WORD,
    G_MEMORY,
    STATIC_GAS,
    Opcode,
)
from semaphore_spec.evm.precompiles import PRECOMPILES, run_precompile

# --- Constants ---

WORD_MASK = (1 << 256) - 1
STACK_LIMIT = 1024
# Largest memory offset a frame may address (16 MiB)
MEMORY_LIMIT = 1 << 24
# EIP-170
MAX_CODE_SIZE = 24576
DEFAULT_GAS_LIMIT = (1 << 64) - 1
MAX_CALL_DEPTH = 1024


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one frame.

    Attributes:
        success: False on REVERT or exceptional halt
        gas_used: Gas consumed by the frame
        output: RETURN or REVERT data
        error: Reason for an exceptional halt, None otherwise
    """
    success: bool
    gas_used: int
    output: bytes = b""
    error: str | None = None

    @property
    def accepted(self) -> bool:
        return self.success

    @property
    def reverted(self) -> bool:
        return not self.success


def _memory_cost(words: int) -> int:
    return G_MEMORY * words + words * words // 512


def _jumpdests(code: bytes) -> set[int]:
    """Valid jump targets: JUMPDEST bytes that are not PUSH immediates."""
    dests = set()
    pc = 0
    while pc < len(code):
        op = code[pc]
        if op == Opcode.JUMPDEST:
            dests.add(pc)
        if Opcode.PUSH1 <= op <= Opcode.PUSH32:
            pc += op - Opcode.PUSH0
        pc += 1
    return dests


class _Halt(Exception):
    """Normal termination (STOP, RETURN, REVERT) of a frame."""

    def __init__(self, success: bool, output: bytes = b"") -> None:
        self.success = success
        self.output = output


class _Frame:
    """Execution state of one call or deployment."""

    def __init__(self, executor: "Executor", code: bytes, calldata: bytes, gas: int, depth: int) -> None:
        self.executor = executor
        self.code = code
        self.calldata = calldata
        self.gas_limit = gas
        self.gas_left = gas
        self.depth = depth
        self.stack: list[int] = []
        self.memory = bytearray()
        self.pc = 0
        self.jumpdests = _jumpdests(code)
        self.return_data = b""

    # --- Resource Accounting ---

    def charge(self, amount: int) -> None:
        if amount > self.gas_left:
            self.gas_left = 0
            raise VmError("out of gas")
        self.gas_left -= amount

    def expand(self, offset: int, size: int) -> None:
        if size == 0:
            return
        end = offset + size
        if end > MEMORY_LIMIT:
            raise VmError("memory offset out of range")
        old_words = len(self.memory) // 32
        new_words = (end + 31) // 32
        if new_words > old_words:
            self.charge(_memory_cost(new_words) - _memory_cost(old_words))
            self.memory.extend(bytes(32 * (new_words - old_words)))

    def push(self, value: int) -> None:
        if len(self.stack) >= STACK_LIMIT:
            raise VmError("stack overflow")
        self.stack.append(value & WORD_MASK)

    def pop(self) -> int:
        if not self.stack:
            raise VmError("stack underflow")
        return self.stack.pop()

    def read_memory(self, offset: int, size: int) -> bytes:
        self.expand(offset, size)
        return bytes(self.memory[offset:offset + size])

    def write_memory(self, offset: int, data: bytes) -> None:
        self.expand(offset, len(data))
        self.memory[offset:offset + len(data)] = data

    # --- Main Loop ---

    def run(self) -> ExecutionResult:
        try:
            while True:
                self.step()
        except _Halt as halt:
            return ExecutionResult(halt.success, self.gas_limit - self.gas_left, halt.output)
        except VmError as e:
            return ExecutionResult(False, self.gas_limit, b"", str(e))

    def step(self) -> None:
        if self.pc >= len(self.code):
            raise _Halt(True)
        op = self.code[self.pc]
        if op not in STATIC_GAS:
            raise VmError(f"invalid opcode 0x{op:02x} at pc {self.pc}")
        self.charge(STATIC_GAS[op])
        self.pc += 1

        if Opcode.PUSH0 <= op <= Opcode.PUSH32:
            size = op - Opcode.PUSH0
            data = self.code[self.pc:self.pc + size]
            self.push(int.from_bytes(data + bytes(size - len(data)), "big") if size else 0)
            self.pc += size
        elif Opcode.DUP1 <= op <= Opcode.DUP16:
            depth = op - Opcode.DUP1 + 1
            if len(self.stack) < depth:
                raise VmError("stack underflow")
            self.push(self.stack[-depth])
        elif Opcode.SWAP1 <= op <= Opcode.SWAP16:
            depth = op - Opcode.SWAP1 + 1
            if len(self.stack) <= depth:
                raise VmError("stack underflow")
            self.stack[-1], self.stack[-1 - depth] = self.stack[-1 - depth], self.stack[-1]
        else:
            _HANDLERS[op](self)


# --- Handlers ---

def _binary(fn):
    def handler(frame: _Frame) -> None:
        a = frame.pop()
        b = frame.pop()
        frame.push(fn(a, b))
    return handler


def _ternary_mod(fn):
    def handler(frame: _Frame) -> None:
        a = frame.pop()
        b = frame.pop()
        n = frame.pop()
        frame.push(fn(a, b) % n if n else 0)
    return handler


def _stop(frame: _Frame) -> None:
    raise _Halt(True)


def _exp(frame: _Frame) -> None:
    base = frame.pop()
    exponent = frame.pop()
    frame.charge(G_EXP_BYTE * ((exponent.bit_length() + 7) // 8))
    frame.push(pow(base, exponent, 1 << 256))


def _iszero(frame: _Frame) -> None:
    frame.push(int(frame.pop() == 0))


def _not(frame: _Frame) -> None:
    frame.push(~frame.pop() & WORD_MASK)


def _shl(frame: _Frame) -> None:
    shift = frame.pop()
    value = frame.pop()
    frame.push(value << shift if shift < 256 else 0)


def _shr(frame: _Frame) -> None:
    shift = frame.pop()
    value = frame.pop()
    frame.push(value >> shift if shift < 256 else 0)


def _keccak256(frame: _Frame) -> None:
    offset = frame.pop()
    size = frame.pop()
    frame.charge(G_KECCAK_WORD * ((size + 31) // 32))
    frame.push(int.from_bytes(keccak(frame.read_memory(offset, size)), "big"))


def _calldataload(frame: _Frame) -> None:
    offset = frame.pop()
    data = frame.calldata[offset:offset + 32] if offset < len(frame.calldata) else b""
    frame.push(int.from_bytes(data + bytes(32 - len(data)), "big"))


def _calldatasize(frame: _Frame) -> None:
    frame.push(len(frame.calldata))


def _copy(source_attr: str):
    def handler(frame: _Frame) -> None:
        dest = frame.pop()
        offset = frame.pop()
        size = frame.pop()
        frame.charge(G_COPY * ((size + 31) // 32))
        source = getattr(frame, source_attr)
        data = source[offset:offset + size] if offset < len(source) else b""
        frame.write_memory(dest, bytes(data) + bytes(size - len(data)))
    return handler


def _pop(frame: _Frame) -> None:
    frame.pop()


def _mload(frame: _Frame) -> None:
    offset = frame.pop()
    frame.push(int.from_bytes(frame.read_memory(offset, 32), "big"))


def _mstore(frame: _Frame) -> None:
    offset = frame.pop()
    value = frame.pop()
    frame.write_memory(offset, value.to_bytes(32, "big"))


def _mstore8(frame: _Frame) -> None:
    offset = frame.pop()
    value = frame.pop()
    frame.write_memory(offset, bytes([value & 0xFF]))


def _jump_to(frame: _Frame, dest: int) -> None:
    if dest not in frame.jumpdests:
        raise VmError(f"invalid jump destination {dest}")
    frame.pc = dest


def _jump(frame: _Frame) -> None:
    _jump_to(frame, frame.pop())


def _jumpi(frame: _Frame) -> None:
    dest = frame.pop()
    condition = frame.pop()
    if condition:
        _jump_to(frame, dest)


def _msize(frame: _Frame) -> None:
    frame.push(len(frame.memory))


def _gas(frame: _Frame) -> None:
    frame.push(frame.gas_left)


def _jumpdest(frame: _Frame) -> None:
    pass


def _return(frame: _Frame) -> None:
    offset = frame.pop()
    size = frame.pop()
    raise _Halt(True, frame.read_memory(offset, size))


def _revert(frame: _Frame) -> None:
    offset = frame.pop()
    size = frame.pop()
    raise _Halt(False, frame.read_memory(offset, size))


def _staticcall(frame: _Frame) -> None:
    requested = frame.pop()
    address = frame.pop()
    args_offset = frame.pop()
    args_size = frame.pop()
    ret_offset = frame.pop()
    ret_size = frame.pop()

    data = frame.read_memory(args_offset, args_size)
    frame.expand(ret_offset, ret_size)
    available = frame.gas_left - frame.gas_left // 64
    call_gas = min(requested, available)

    if address in PRECOMPILES:
        success, output, used = run_precompile(address, data, call_gas)
    elif address in frame.executor.accounts and frame.depth < MAX_CALL_DEPTH:
        result = _Frame(frame.executor, frame.executor.accounts[address], data,
                        call_gas, frame.depth + 1).run()
        success, output, used = result.success, result.output, result.gas_used
    else:
        success, output, used = True, b"", 0

    frame.charge(used)
    frame.return_data = output
    copied = output[:ret_size]
    frame.memory[ret_offset:ret_offset + len(copied)] = copied
    frame.push(int(success))


_HANDLERS = {
    Opcode.STOP: _stop,
    Opcode.ADD: _binary(lambda a, b: a + b),
    Opcode.MUL: _binary(lambda a, b: a * b),
    Opcode.SUB: _binary(lambda a, b: a - b),
    Opcode.DIV: _binary(lambda a, b: a // b if b else 0),
    Opcode.MOD: _binary(lambda a, b: a % b if b else 0),
    Opcode.ADDMOD: _ternary_mod(lambda a, b: a + b),
    Opcode.MULMOD: _ternary_mod(lambda a, b: a * b),
    Opcode.EXP: _exp,
    Opcode.LT: _binary(lambda a, b: int(a < b)),
    Opcode.GT: _binary(lambda a, b: int(a > b)),
    Opcode.EQ: _binary(lambda a, b: int(a == b)),
    Opcode.ISZERO: _iszero,
    Opcode.AND: _binary(lambda a, b: a & b),
    Opcode.OR: _binary(lambda a, b: a | b),
    Opcode.XOR: _binary(lambda a, b: a ^ b),
    Opcode.NOT: _not,
    Opcode.SHL: _shl,
    Opcode.SHR: _shr,
    Opcode.KECCAK256: _keccak256,
    Opcode.CALLDATALOAD: _calldataload,
    Opcode.CALLDATASIZE: _calldatasize,
    Opcode.CALLDATACOPY: _copy("calldata"),
    Opcode.CODECOPY: _copy("code"),
    Opcode.POP: _pop,
    Opcode.MLOAD: _mload,
    Opcode.MSTORE: _mstore,
    Opcode.MSTORE8: _mstore8,
    Opcode.JUMP: _jump,
    Opcode.JUMPI: _jumpi,
    Opcode.MSIZE: _msize,
    Opcode.GAS: _gas,
    Opcode.JUMPDEST: _jumpdest,
    Opcode.RETURN: _return,
    Opcode.STATICCALL: _staticcall,
    Opcode.REVERT: _revert,
}


# --- Executor ---

class Executor:
    """A fresh chain state holding deployed code.

    Attributes:
        gas_limit: Gas given to each deployment or call
        accounts: Address -> runtime code
    """

    def __init__(self, gas_limit: int = DEFAULT_GAS_LIMIT) -> None:
        self.gas_limit = gas_limit
        self.accounts: dict[int, bytes] = {}
        self._nonce = 0

    def deploy(self, init_code: bytes) -> int:
        """Run deployment code and store the code it returns.

        Returns:
            Address of the new account

        Raises:
            DeploymentError: the init code reverted or returned no code
        """
        result = _Frame(self, bytes(init_code), b"", self.gas_limit, 0).run()
        if not result.success:
            raise DeploymentError(f"deployment reverted: {result.error or 'REVERT'}")
        if not result.output:
            raise DeploymentError("deployment returned empty code")
        if len(result.output) > MAX_CODE_SIZE:
            raise DeploymentError(
                f"deployed code is {len(result.output)} bytes, limit {MAX_CODE_SIZE}"
            )
        address = int.from_bytes(keccak(b"deploy" + self._nonce.to_bytes(8, "big"))[12:], "big")
        self._nonce += 1
        self.accounts[address] = result.output
        return address

    def call(self, address: int, calldata: bytes) -> ExecutionResult:
        """Message-call deployed code with calldata."""
        if address not in self.accounts:
            raise KeyError(f"no code deployed at 0x{address:040x}")
        return _Frame(self, self.accounts[address], bytes(calldata), self.gas_limit, 0).run()
