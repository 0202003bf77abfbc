"""Two-pass assembler with labels.

Jump targets are pushed as fixed-width PUSH2 immediates, so label addresses
are known after one layout pass over the instruction list.
"""

from semaphore_spec.evm.opcodes import Opcode, push_op

LABEL_PUSH_WIDTH = 2


class Assembler:
    """Accumulates instructions and resolves labels on assemble()."""

    def __init__(self) -> None:
        self._items: list[tuple[str, object]] = []
        self._labels: set[str] = set()
        self._fresh = 0

    def op(self, *opcodes: int) -> "Assembler":
        for opcode in opcodes:
            self._items.append(("code", bytes([int(opcode)])))
        return self

    def push(self, value: int) -> "Assembler":
        """PUSH the minimal-width encoding of a 256-bit value."""
        if not 0 <= value < 1 << 256:
            raise ValueError(f"push value out of range: {value}")
        size = (value.bit_length() + 7) // 8
        data = value.to_bytes(size, "big") if size else b""
        self._items.append(("code", bytes([push_op(size)]) + data))
        return self

    def push_label(self, name: str) -> "Assembler":
        self._items.append(("ref", name))
        return self

    def label(self, name: str) -> "Assembler":
        """Place a JUMPDEST addressable as name."""
        if name in self._labels:
            raise ValueError(f"label {name!r} defined twice")
        self._labels.add(name)
        self._items.append(("def", name))
        return self

    def fresh_label(self, prefix: str) -> str:
        self._fresh += 1
        return f"{prefix}_{self._fresh}"

    def assemble(self) -> bytes:
        positions: dict[str, int] = {}
        offset = 0
        for kind, payload in self._items:
            if kind == "code":
                offset += len(payload)
            elif kind == "ref":
                offset += 1 + LABEL_PUSH_WIDTH
            else:
                positions[payload] = offset
                offset += 1

        out = bytearray()
        for kind, payload in self._items:
            if kind == "code":
                out += payload
            elif kind == "ref":
                if payload not in positions:
                    raise ValueError(f"undefined label {payload!r}")
                out += bytes([push_op(LABEL_PUSH_WIDTH)])
                out += positions[payload].to_bytes(LABEL_PUSH_WIDTH, "big")
            else:
                out.append(Opcode.JUMPDEST)
        if len(out) > 1 << (8 * LABEL_PUSH_WIDTH):
            raise ValueError(f"program of {len(out)} bytes exceeds label range")
        return bytes(out)
