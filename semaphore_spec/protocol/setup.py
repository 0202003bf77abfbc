"""Structured reference string for KZG commitments on BN254.

The SRS is an explicit read-only handle: pass it to key generation, proving,
verification and compilation. The toxic scalar tau only lives inside setup().
"""

import secrets
from dataclasses import dataclass

from semaphore_spec.primitives.curve import G1, G2, multiply
from semaphore_spec.primitives.field import BN254_R


@dataclass(frozen=True)
class Srs:
    """Powers-of-tau parameters.

    Attributes:
        k: Supports circuits with up to 2^k rows
        g1_powers: [tau^i] G1 for i in 0..2^k + 1 (projective)
        g2: G2 generator
        s_g2: [tau] G2
    """
    k: int
    g1_powers: tuple
    g2: tuple
    s_g2: tuple

    @property
    def n(self) -> int:
        return 1 << self.k

    @property
    def g1(self) -> tuple:
        return self.g1_powers[0]


def setup(k: int, rng=None) -> Srs:
    """Generate an SRS for circuits up to 2^k rows.

    Args:
        k: log2 of the largest supported domain
        rng: Randomness source with randrange(); defaults to secrets.SystemRandom()

    Returns:
        Srs with 2^k + 2 G1 powers (room for degree n + 1 blinded polynomials)
    """
    if not 1 <= k <= 28:
        raise ValueError(f"k must be in [1, 28], got {k}")
    rng = rng if rng is not None else secrets.SystemRandom()
    tau = rng.randrange(1, BN254_R)

    size = (1 << k) + 2
    powers = [G1]
    for _ in range(size - 1):
        powers.append(multiply(powers[-1], tau))

    return Srs(k=k, g1_powers=tuple(powers), g2=G2, s_g2=multiply(G2, tau))
