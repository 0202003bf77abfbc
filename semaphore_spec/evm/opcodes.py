"""EVM opcode subset and static gas costs (Shanghai schedule)."""

from enum import IntEnum


class Opcode(IntEnum):
    STOP = 0x00
    ADD = 0x01
    MUL = 0x02
    SUB = 0x03
    DIV = 0x04
    MOD = 0x06
    ADDMOD = 0x08
    MULMOD = 0x09
    EXP = 0x0A
    LT = 0x10
    GT = 0x11
    EQ = 0x14
    ISZERO = 0x15
    AND = 0x16
    OR = 0x17
    XOR = 0x18
    NOT = 0x19
    SHL = 0x1B
    SHR = 0x1C
    KECCAK256 = 0x20
    CALLDATALOAD = 0x35
    CALLDATASIZE = 0x36
    CALLDATACOPY = 0x37
    CODECOPY = 0x39
    POP = 0x50
    MLOAD = 0x51
    MSTORE = 0x52
    MSTORE8 = 0x53
    JUMP = 0x56
    JUMPI = 0x57
    MSIZE = 0x59
    GAS = 0x5A
    JUMPDEST = 0x5B
    PUSH0 = 0x5F
    PUSH1 = 0x60
    PUSH2 = 0x61
    PUSH32 = 0x7F
    DUP1 = 0x80
    DUP16 = 0x8F
    SWAP1 = 0x90
    SWAP16 = 0x9F
    RETURN = 0xF3
    STATICCALL = 0xFA
    REVERT = 0xFD
    INVALID = 0xFE


def push_op(size: int) -> int:
    """PUSHn opcode byte for an n-byte immediate (n in 0..32)."""
    if not 0 <= size <= 32:
        raise ValueError(f"PUSH width must be 0..32, got {size}")
    return Opcode.PUSH0 + size


# --- Gas ---

G_ZERO = 0
G_JUMPDEST = 1
G_BASE = 2
G_VERYLOW = 3
G_LOW = 5
G_MID = 8
G_HIGH = 10
G_KECCAK = 30
G_KECCAK_WORD = 6
G_COPY = 3
G_MEMORY = 3
G_EXP = 10
G_EXP_BYTE = 50
G_WARM_ACCESS = 100

STATIC_GAS: dict[int, int] = {
    Opcode.STOP: G_ZERO,
    Opcode.ADD: G_VERYLOW,
    Opcode.MUL: G_LOW,
    Opcode.SUB: G_VERYLOW,
    Opcode.DIV: G_LOW,
    Opcode.MOD: G_LOW,
    Opcode.ADDMOD: G_MID,
    Opcode.MULMOD: G_MID,
    Opcode.EXP: G_EXP,
    Opcode.LT: G_VERYLOW,
    Opcode.GT: G_VERYLOW,
    Opcode.EQ: G_VERYLOW,
    Opcode.ISZERO: G_VERYLOW,
    Opcode.AND: G_VERYLOW,
    Opcode.OR: G_VERYLOW,
    Opcode.XOR: G_VERYLOW,
    Opcode.NOT: G_VERYLOW,
    Opcode.SHL: G_VERYLOW,
    Opcode.SHR: G_VERYLOW,
    Opcode.KECCAK256: G_KECCAK,
    Opcode.CALLDATALOAD: G_VERYLOW,
    Opcode.CALLDATASIZE: G_BASE,
    Opcode.CALLDATACOPY: G_VERYLOW,
    Opcode.CODECOPY: G_VERYLOW,
    Opcode.POP: G_BASE,
    Opcode.MLOAD: G_VERYLOW,
    Opcode.MSTORE: G_VERYLOW,
    Opcode.MSTORE8: G_VERYLOW,
    Opcode.JUMP: G_MID,
    Opcode.JUMPI: G_HIGH,
    Opcode.MSIZE: G_BASE,
    Opcode.GAS: G_BASE,
    Opcode.JUMPDEST: G_JUMPDEST,
    Opcode.PUSH0: G_BASE,
    Opcode.RETURN: G_ZERO,
    Opcode.STATICCALL: G_WARM_ACCESS,
    Opcode.REVERT: G_ZERO,
}
for _op in range(Opcode.PUSH1, Opcode.PUSH32 + 1):
    STATIC_GAS[_op] = G_VERYLOW
for _op in range(Opcode.DUP1, Opcode.SWAP16 + 1):
    STATIC_GAS[_op] = G_VERYLOW
