"""Evaluation backends for the verifier.

The verifier body (protocol/verifier.py) is written once against Loader. The
native loader computes with galois scalars and py_ecc points and raises on a
failed check; the EVM loader (evm/loader.py) emits bytecode performing the
same computation on chain.
"""

from abc import ABC, abstractmethod

from semaphore_spec.errors import ProofFormatError, VerificationError
from semaphore_spec.primitives.curve import G1, msm, neg, pairing_product_is_one
from semaphore_spec.primitives.field import BN254_R, Fr, to_fr
from semaphore_spec.primitives.transcript import TranscriptRead


class Loader(ABC):
    """Scalar/point arithmetic and checks for one verifier run."""

    @abstractmethod
    def const(self, value: int):
        """Scalar known at verifier construction time."""

    @abstractmethod
    def ec_point(self, point):
        """G1 point known at verifier construction time."""

    @abstractmethod
    def generator(self):
        """The G1 generator."""

    @abstractmethod
    def g2_point(self, point):
        """G2 point known at verifier construction time."""

    @abstractmethod
    def load_instances(self, count: int) -> list:
        """Public instances supplied with the proof."""

    @abstractmethod
    def transcript(self):
        """Transcript reading the proof: common_scalar, read_point, read_scalar,
        squeeze_challenge."""

    @abstractmethod
    def pow_const(self, base, exponent: int):
        """base^exponent for a public exponent."""

    @abstractmethod
    def invert(self, value):
        """Multiplicative inverse; zero must fail verification."""

    @abstractmethod
    def msm(self, pairs: list[tuple]):
        """sum(s_i * P_i) over (scalar, point) pairs."""

    @abstractmethod
    def assert_equal(self, lhs, rhs, what: str) -> None:
        """Fail verification unless lhs == rhs."""

    @abstractmethod
    def pairing_check(self, lhs, rhs, g2, s_g2) -> None:
        """Fail verification unless e(lhs, s_g2) == e(rhs, g2)."""


class NativeLoader(Loader):
    """Evaluates the verifier directly; failures raise VerificationError."""

    def __init__(self, instances: list, proof: bytes) -> None:
        values = []
        for value in instances:
            value = int(value)
            if not 0 <= value < BN254_R:
                raise ProofFormatError(f"instance {value} is not a field element")
            values.append(Fr(value))
        self._instances = values
        self._transcript = TranscriptRead(proof)

    def const(self, value: int) -> Fr:
        return to_fr(value)

    def ec_point(self, point):
        return point

    def generator(self):
        return G1

    def g2_point(self, point):
        return point

    def load_instances(self, count: int) -> list:
        if len(self._instances) != count:
            raise ProofFormatError(f"expected {count} instance(s), got {len(self._instances)}")
        return list(self._instances)

    def transcript(self) -> TranscriptRead:
        return self._transcript

    def pow_const(self, base, exponent: int) -> Fr:
        return Fr(pow(int(base), exponent, BN254_R))

    def invert(self, value) -> Fr:
        if int(value) == 0:
            raise VerificationError("inversion of zero")
        return Fr(pow(int(value), BN254_R - 2, BN254_R))

    def msm(self, pairs: list[tuple]):
        return msm([int(s) for s, _ in pairs], [p for _, p in pairs])

    def assert_equal(self, lhs, rhs, what: str) -> None:
        if int(lhs) != int(rhs):
            raise VerificationError(f"{what} does not hold")

    def pairing_check(self, lhs, rhs, g2, s_g2) -> None:
        if not pairing_product_is_one([(lhs, s_g2), (neg(rhs), g2)]):
            raise VerificationError("pairing check failed")
