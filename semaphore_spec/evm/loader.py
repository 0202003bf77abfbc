"""Loader that compiles the verifier body into EVM bytecode.

Each scalar lives either in a 32-byte memory slot or, when it is known at
compile time, as a constant that is folded through arithmetic and pushed
inline. Points are 64-byte slots (x || y) or compile-time constants.

Memory layout:
    0x000 - 0x180   precompile scratch (largest user: the pairing input)
    0x180           the scalar field modulus r
    0x1a0 - ...     transcript buffer
    ...             scalar and point slots, bump allocated

Calldata is the ABI encoding of (uint256[] instances, bytes proof). The
program checks the head offsets, the array and bytes lengths and the total
size before reading anything. Every failed check jumps to a shared REVERT.
"""

from semaphore_spec.evm.assembler import Assembler
from semaphore_spec.evm.opcodes import Opcode
from semaphore_spec.evm.precompiles import EC_ADD, EC_MUL, EC_PAIRING, MODEXP
from semaphore_spec.primitives.curve import G1, g1_to_ints, g2_to_ints, neg
from semaphore_spec.primitives.field import BN254_Q, BN254_R, SCALAR_BYTES
from semaphore_spec.protocol.loader import Loader

WORD = 32
SCRATCH = 0x000
MODULUS_SLOT = 0x180
TRANSCRIPT_BUFFER = 0x1a0

REVERT_LABEL = "revert"


def _round_up(size: int) -> int:
    return (size + WORD - 1) // WORD * WORD


class EvmScalar:
    """Scalar in a memory slot, or a compile-time constant."""

    __slots__ = ("loader", "value", "slot")

    def __init__(self, loader: "EvmLoader", value: int | None = None, slot: int | None = None):
        self.loader = loader
        self.value = value
        self.slot = slot

    @property
    def is_const(self) -> bool:
        return self.value is not None

    def __add__(self, other):
        return self.loader.add(self, other)

    def __sub__(self, other):
        return self.loader.sub(self, other)

    def __mul__(self, other):
        return self.loader.mul(self, other)


class EvmPoint:
    """G1 point in a 64-byte memory slot, or compile-time affine coordinates."""

    __slots__ = ("value", "slot")

    def __init__(self, value: tuple[int, int] | None = None, slot: int | None = None):
        self.value = value
        self.slot = slot


class EvmTranscript:
    """Emits the keccak transcript over the memory buffer.

    The buffer length and the absorbed flag are compile-time state, so the
    program needs no runtime cursor.
    """

    def __init__(self, loader: "EvmLoader") -> None:
        self.loader = loader
        self.length = 0
        self.absorbed = False

    def _absorb_top(self) -> None:
        """Store the word on top of the stack at the end of the buffer."""
        loader = self.loader
        if self.length + WORD > loader.transcript_capacity:
            raise ValueError("transcript buffer overflow")
        loader.asm.push(TRANSCRIPT_BUFFER + self.length).op(Opcode.MSTORE)
        self.length += WORD
        self.absorbed = True

    def common_scalar(self, value: EvmScalar) -> None:
        self.loader.load(value)
        self._absorb_top()

    def read_scalar(self) -> EvmScalar:
        loader = self.loader
        loader.asm.push(loader.next_proof_word()).op(Opcode.CALLDATALOAD)
        loader.check_top_below(BN254_R)
        loader.asm.op(Opcode.DUP1)
        self._absorb_top()
        return loader.store_scalar()

    def read_point(self) -> EvmPoint:
        loader = self.loader
        slot = loader.alloc(2 * WORD)
        for i in range(2):
            loader.asm.push(loader.next_proof_word()).op(Opcode.CALLDATALOAD)
            loader.check_top_below(BN254_Q)
            loader.asm.op(Opcode.DUP1)
            self._absorb_top()
            loader.asm.push(slot + i * WORD).op(Opcode.MSTORE)
        return EvmPoint(slot=slot)

    def squeeze_challenge(self) -> EvmScalar:
        loader = self.loader
        asm = loader.asm
        length = self.length
        if not self.absorbed:
            asm.push(1).push(TRANSCRIPT_BUFFER + length).op(Opcode.MSTORE8)
            length += 1
        asm.push(length).push(TRANSCRIPT_BUFFER).op(Opcode.KECCAK256)
        # The digest becomes the new buffer prefix
        asm.op(Opcode.DUP1).push(TRANSCRIPT_BUFFER).op(Opcode.MSTORE)
        loader.push_modulus()
        asm.op(Opcode.SWAP1, Opcode.MOD)
        self.length = WORD
        self.absorbed = False
        return loader.store_scalar()


class EvmLoader(Loader):
    """Records the verifier as bytecode.

    Args:
        num_instance: Number of public instances in the calldata
        proof_len: Exact proof length in bytes
    """

    def __init__(self, num_instance: int, proof_len: int) -> None:
        self.asm = Assembler()
        self.num_instance = num_instance
        self.proof_len = proof_len

        # Head (2 words), instance array (length + items), bytes length, proof
        self.instances_offset = 3 * WORD
        proof_head = self.instances_offset + WORD * num_instance
        self.proof_offset = proof_head + WORD
        self.calldata_size = self.proof_offset + _round_up(proof_len)
        self._proof_cursor = 0

        # Digest prefix, VK digest, instances, the whole proof, padding byte
        self.transcript_capacity = _round_up(2 * WORD + WORD * num_instance + proof_len + 1)
        self._next_slot = TRANSCRIPT_BUFFER + self.transcript_capacity
        self._transcript = EvmTranscript(self)

        self.asm.push(BN254_R).push(MODULUS_SLOT).op(Opcode.MSTORE)
        self._check_calldata(proof_head)

    # --- Emission Helpers ---

    def alloc(self, size: int) -> int:
        slot = self._next_slot
        self._next_slot += size
        return slot

    def push_modulus(self) -> None:
        self.asm.push(MODULUS_SLOT).op(Opcode.MLOAD)

    def revert_unless_top(self) -> None:
        """Consume the top of the stack; revert if it is zero."""
        self.asm.op(Opcode.ISZERO).push_label(REVERT_LABEL).op(Opcode.JUMPI)

    def check_top_below(self, bound: int) -> None:
        """Revert unless the top of the stack is < bound, leaving it in place."""
        self.asm.op(Opcode.DUP1).push(bound).op(Opcode.SWAP1, Opcode.LT)
        self.revert_unless_top()

    def load(self, scalar: EvmScalar) -> None:
        if scalar.is_const:
            self.asm.push(scalar.value)
        else:
            self.asm.push(scalar.slot).op(Opcode.MLOAD)

    def store_scalar(self) -> EvmScalar:
        """Pop the top of the stack into a fresh slot."""
        slot = self.alloc(WORD)
        self.asm.push(slot).op(Opcode.MSTORE)
        return EvmScalar(self, slot=slot)

    def next_proof_word(self) -> int:
        offset = self.proof_offset + self._proof_cursor
        self._proof_cursor += WORD
        if self._proof_cursor > self.proof_len:
            raise ValueError("verifier reads past the end of the proof")
        return offset

    def _copy_words(self, src: int, dst: int, count: int) -> None:
        for i in range(count):
            self.asm.push(src + i * WORD).op(Opcode.MLOAD).push(dst + i * WORD).op(Opcode.MSTORE)

    def _write_words(self, words, dst: int) -> None:
        for i, word in enumerate(words):
            self.asm.push(word).push(dst + i * WORD).op(Opcode.MSTORE)

    def _write_point(self, point: EvmPoint, dst: int) -> None:
        if point.value is not None:
            self._write_words(point.value, dst)
        else:
            self._copy_words(point.slot, dst, 2)

    def _call_precompile(self, address: int, in_offset: int, in_size: int,
                         out_offset: int, out_size: int) -> None:
        asm = self.asm
        asm.push(out_size).push(out_offset).push(in_size).push(in_offset).push(address)
        asm.op(Opcode.GAS, Opcode.STATICCALL)
        self.revert_unless_top()

    def _expect_calldata_word(self, offset: int, value: int) -> None:
        self.asm.push(value).push(offset).op(Opcode.CALLDATALOAD, Opcode.EQ)
        self.revert_unless_top()

    def _check_calldata(self, proof_head: int) -> None:
        self._expect_calldata_word(0, 2 * WORD)
        self._expect_calldata_word(WORD, proof_head)
        self._expect_calldata_word(2 * WORD, self.num_instance)
        self._expect_calldata_word(proof_head, self.proof_len)
        self.asm.push(self.calldata_size).op(Opcode.CALLDATASIZE, Opcode.EQ)
        self.revert_unless_top()

    # --- Scalar Arithmetic ---

    def _lift(self, value) -> EvmScalar:
        return value if isinstance(value, EvmScalar) else self.const(int(value))

    def add(self, lhs, rhs) -> EvmScalar:
        lhs, rhs = self._lift(lhs), self._lift(rhs)
        if lhs.is_const and rhs.is_const:
            return self.const(lhs.value + rhs.value)
        if lhs.is_const and lhs.value == 0:
            return rhs
        if rhs.is_const and rhs.value == 0:
            return lhs
        self.push_modulus()
        self.load(rhs)
        self.load(lhs)
        self.asm.op(Opcode.ADDMOD)
        return self.store_scalar()

    def sub(self, lhs, rhs) -> EvmScalar:
        lhs, rhs = self._lift(lhs), self._lift(rhs)
        if lhs.is_const and rhs.is_const:
            return self.const(lhs.value - rhs.value)
        if rhs.is_const and rhs.value == 0:
            return lhs
        # lhs - rhs = lhs + (r - rhs) mod r
        self.push_modulus()
        if rhs.is_const:
            self.asm.push(BN254_R - rhs.value)
        else:
            self.load(rhs)
            self.push_modulus()
            self.asm.op(Opcode.SUB)
        self.load(lhs)
        self.asm.op(Opcode.ADDMOD)
        return self.store_scalar()

    def mul(self, lhs, rhs) -> EvmScalar:
        lhs, rhs = self._lift(lhs), self._lift(rhs)
        if lhs.is_const and rhs.is_const:
            return self.const(lhs.value * rhs.value)
        for a, b in ((lhs, rhs), (rhs, lhs)):
            if a.is_const and a.value == 0:
                return a
            if a.is_const and a.value == 1:
                return b
        self.push_modulus()
        self.load(rhs)
        self.load(lhs)
        self.asm.op(Opcode.MULMOD)
        return self.store_scalar()

    # --- Loader Interface ---

    def const(self, value: int) -> EvmScalar:
        return EvmScalar(self, value=int(value) % BN254_R)

    def ec_point(self, point) -> EvmPoint:
        return EvmPoint(value=g1_to_ints(point))

    def generator(self) -> EvmPoint:
        return self.ec_point(G1)

    def g2_point(self, point):
        return point

    def load_instances(self, count: int) -> list[EvmScalar]:
        if count != self.num_instance:
            raise ValueError(f"verifier expects {count} instance(s), compiling for {self.num_instance}")
        values = []
        for i in range(count):
            self.asm.push(self.instances_offset + i * WORD).op(Opcode.CALLDATALOAD)
            self.check_top_below(BN254_R)
            values.append(self.store_scalar())
        return values

    def transcript(self) -> EvmTranscript:
        return self._transcript

    def pow_const(self, base, exponent: int) -> EvmScalar:
        base = self._lift(base)
        if base.is_const:
            return self.const(pow(base.value, exponent, BN254_R))
        result = self.const(1)
        square = base
        while exponent:
            if exponent & 1:
                result = result * square
            exponent >>= 1
            if exponent:
                square = square * square
        return result

    def invert(self, value) -> EvmScalar:
        """Inverse through the modexp precompile: x^(r-2) mod r."""
        value = self._lift(value)
        if value.is_const:
            if value.value == 0:
                raise ValueError("inversion of the constant zero")
            return self.const(pow(value.value, BN254_R - 2, BN254_R))
        self.load(value)
        self.revert_unless_top()
        self._write_words([SCALAR_BYTES] * 3, SCRATCH)
        self.load(value)
        self.asm.push(SCRATCH + 3 * WORD).op(Opcode.MSTORE)
        self._write_words([BN254_R - 2, BN254_R], SCRATCH + 4 * WORD)
        self._call_precompile(MODEXP, SCRATCH, 6 * WORD, SCRATCH, WORD)
        self.asm.push(SCRATCH).op(Opcode.MLOAD)
        return self.store_scalar()

    def msm(self, pairs: list[tuple]) -> EvmPoint:
        """Accumulate with ecMul/ecAdd; terms with a constant zero scalar are dropped."""
        terms = [(self._lift(s), p) for s, p in pairs]
        terms = [(s, p) for s, p in terms if not (s.is_const and s.value == 0)]
        if not terms:
            return EvmPoint(value=(0, 0))

        acc = self.alloc(2 * WORD)
        for i, (scalar, point) in enumerate(terms):
            target = acc if i == 0 else SCRATCH
            if scalar.is_const and scalar.value == 1:
                self._write_point(point, target)
            else:
                self._write_point(point, SCRATCH)
                self.load(scalar)
                self.asm.push(SCRATCH + 2 * WORD).op(Opcode.MSTORE)
                self._call_precompile(EC_MUL, SCRATCH, 3 * WORD, target, 2 * WORD)
            if i:
                # term in scratch words 0-1, accumulator in words 2-3
                self._copy_words(acc, SCRATCH + 2 * WORD, 2)
                self._call_precompile(EC_ADD, SCRATCH, 4 * WORD, acc, 2 * WORD)
        return EvmPoint(slot=acc)

    def assert_equal(self, lhs, rhs, what: str) -> None:
        lhs, rhs = self._lift(lhs), self._lift(rhs)
        if lhs.is_const and rhs.is_const:
            if lhs.value != rhs.value:
                raise ValueError(f"{what} can never hold")
            return
        self.load(rhs)
        self.load(lhs)
        self.asm.op(Opcode.EQ)
        self.revert_unless_top()

    def pairing_check(self, lhs: EvmPoint, rhs: EvmPoint, g2, s_g2) -> None:
        """e(lhs, s_g2) * e(rhs, -g2) == 1 through the pairing precompile."""
        self._write_point(lhs, SCRATCH)
        self._write_words(g2_to_ints(s_g2), SCRATCH + 2 * WORD)
        self._write_point(rhs, SCRATCH + 6 * WORD)
        self._write_words(g2_to_ints(neg(g2)), SCRATCH + 8 * WORD)
        self._call_precompile(EC_PAIRING, SCRATCH, 12 * WORD, SCRATCH, WORD)
        self.asm.push(1).push(SCRATCH).op(Opcode.MLOAD, Opcode.EQ)
        self.revert_unless_top()

    # --- Output ---

    def runtime_code(self) -> bytes:
        """Close the program and assemble it.

        Raises:
            ValueError: the verifier did not consume the whole proof
        """
        if self._proof_cursor != self.proof_len:
            raise ValueError(
                f"verifier read {self._proof_cursor} of {self.proof_len} proof bytes"
            )
        self.asm.op(Opcode.STOP)
        self.asm.label(REVERT_LABEL)
        self.asm.push(0).push(0).op(Opcode.REVERT)
        return self.asm.assemble()
