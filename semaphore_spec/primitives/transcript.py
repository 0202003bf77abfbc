"""Fiat-Shamir transcript using keccak256.

The absorb/squeeze pattern is chosen so that the compiled on-chain verifier
can replay it with a single KECCAK256 over a memory buffer:

    squeeze: h = keccak256(buffer [|| 0x01 if nothing absorbed since the
             last squeeze]); buffer = h; challenge = h mod r

Scalars are absorbed as 32-byte big-endian words, G1 points as x || y.
"""

from eth_utils import keccak

from semaphore_spec.errors import ProofFormatError
from semaphore_spec.primitives.curve import G1_BYTES, decode_g1, encode_g1
from semaphore_spec.primitives.field import BN254_R, SCALAR_BYTES, Fr, scalar_to_bytes


class Transcript:
    """Keccak sponge state shared by the proof writer and reader.

    Attributes:
        buffer: Bytes absorbed since the last squeeze, prefixed by its output
        absorbed: Whether anything was absorbed since the last squeeze
    """

    def __init__(self) -> None:
        self.buffer = bytearray()
        self.absorbed = False

    def common_scalar(self, value) -> None:
        """Absorb a scalar known to both parties (VK digest, instances)."""
        self._absorb(scalar_to_bytes(int(value)))

    def squeeze_challenge(self) -> Fr:
        data = bytes(self.buffer)
        if not self.absorbed:
            data += b"\x01"
        digest = keccak(data)
        self.buffer = bytearray(digest)
        self.absorbed = False
        return Fr(int.from_bytes(digest, "big") % BN254_R)

    def _absorb(self, data: bytes) -> None:
        self.buffer.extend(data)
        self.absorbed = True


class TranscriptWrite(Transcript):
    """Prover side: absorbs and records proof bytes."""

    def __init__(self) -> None:
        super().__init__()
        self._proof = bytearray()

    def write_point(self, point) -> None:
        data = encode_g1(point)
        self._absorb(data)
        self._proof.extend(data)

    def write_scalar(self, value) -> None:
        data = scalar_to_bytes(int(value))
        self._absorb(data)
        self._proof.extend(data)

    def finalize(self) -> bytes:
        return bytes(self._proof)


class TranscriptRead(Transcript):
    """Verifier side: parses proof bytes in transcript order.

    Raises:
        ProofFormatError: truncated proof, non-canonical scalar or invalid point
    """

    def __init__(self, proof: bytes) -> None:
        super().__init__()
        self._proof = bytes(proof)
        self._cursor = 0

    def _take(self, size: int) -> bytes:
        end = self._cursor + size
        if end > len(self._proof):
            raise ProofFormatError(f"proof truncated at byte {self._cursor}")
        data = self._proof[self._cursor:end]
        self._cursor = end
        return data

    def read_point(self):
        data = self._take(G1_BYTES)
        point = decode_g1(data)
        self._absorb(data)
        return point

    def read_scalar(self) -> Fr:
        data = self._take(SCALAR_BYTES)
        value = int.from_bytes(data, "big")
        if value >= BN254_R:
            raise ProofFormatError("scalar not canonical")
        self._absorb(data)
        return Fr(value)

    def remaining(self) -> int:
        return len(self._proof) - self._cursor
