"""Poseidon permutation over the BN254 scalar field.

This is the out-of-circuit reference hash. The in-circuit widget
(constraints/hash_widget.py) reads round constants and the MDS matrix from the
same PoseidonSpec object, so both sides always run the identical permutation.

Parameters are generated deterministically with the Grain LFSR used by the
Poseidon reference scripts: round constants by rejection sampling, and a
Cauchy MDS matrix M[i][j] = 1 / (x_i + y_j).
"""

from dataclasses import dataclass
from functools import cached_property, lru_cache
from math import gcd

from semaphore_spec.primitives.field import BN254_R, Fr

# --- Constants ---

FIELD_BITS = 254

# Capacity element for a two-element constant-length absorb (L * 2^64)
CAPACITY_TAG = 2 << 64


# --- Grain LFSR ---

class _Grain:
    """80-bit Grain LFSR in self-shrinking mode."""

    _TAPS = (62, 51, 38, 23, 13, 0)

    def __init__(self, width: int, full_rounds: int, partial_rounds: int) -> None:
        bits: list[int] = []
        for value, size in ((1, 2), (0, 4), (FIELD_BITS, 12), (width, 12),
                            (full_rounds, 10), (partial_rounds, 10)):
            bits.extend((value >> (size - 1 - i)) & 1 for i in range(size))
        bits.extend([1] * 30)
        self._state = bits
        self._pos = 0
        for _ in range(160):
            self._step()

    def _step(self) -> int:
        state, pos = self._state, self._pos
        bit = 0
        for tap in self._TAPS:
            bit ^= state[(pos + tap) % 80]
        state[pos] = bit
        self._pos = (pos + 1) % 80
        return bit

    def next_bit(self) -> int:
        # Self-shrinking: emit the second bit of each pair whose first bit is 1
        while True:
            keep = self._step()
            bit = self._step()
            if keep:
                return bit

    def next_field_element(self) -> int:
        """Rejection-sample a FIELD_BITS-bit integer below r."""
        while True:
            value = 0
            for _ in range(FIELD_BITS):
                value = (value << 1) | self.next_bit()
            if value < BN254_R:
                return value


@lru_cache(maxsize=None)
def _generate_parameters(
    width: int, full_rounds: int, partial_rounds: int
) -> tuple[tuple[tuple[int, ...], ...], tuple[tuple[int, ...], ...]]:
    grain = _Grain(width, full_rounds, partial_rounds)

    constants = tuple(
        tuple(grain.next_field_element() for _ in range(width))
        for _ in range(full_rounds + partial_rounds)
    )

    while True:
        points = [grain.next_field_element() for _ in range(2 * width)]
        xs, ys = points[:width], points[width:]
        if len(set(points)) != 2 * width:
            continue
        if any((x + y) % BN254_R == 0 for x in xs for y in ys):
            continue
        break

    mds = tuple(
        tuple(pow(x + y, BN254_R - 2, BN254_R) for y in ys)
        for x in xs
    )
    return constants, mds


# --- Permutation ---

@dataclass(frozen=True)
class PoseidonSpec:
    """Poseidon instance parameters.

    Attributes:
        width: State width t (rate t - 1, capacity 1)
        full_rounds: R_F, split evenly before and after the partial rounds
        partial_rounds: R_P, s-box on state element 0 only
        alpha: S-box exponent, must be coprime to r - 1
    """
    width: int = 3
    full_rounds: int = 8
    partial_rounds: int = 57
    alpha: int = 5

    def __post_init__(self) -> None:
        if self.width < 2:
            raise ValueError(f"width must be at least 2, got {self.width}")
        if self.full_rounds % 2 != 0:
            raise ValueError(f"full_rounds must be even, got {self.full_rounds}")
        if self.alpha < 3 or gcd(self.alpha, BN254_R - 1) != 1:
            raise ValueError(f"x^{self.alpha} is not a permutation of Fr")

    @property
    def total_rounds(self) -> int:
        return self.full_rounds + self.partial_rounds

    @cached_property
    def round_constants(self) -> tuple[tuple[int, ...], ...]:
        return _generate_parameters(self.width, self.full_rounds, self.partial_rounds)[0]

    @cached_property
    def mds(self) -> tuple[tuple[int, ...], ...]:
        return _generate_parameters(self.width, self.full_rounds, self.partial_rounds)[1]

    def is_full_round(self, r: int) -> bool:
        half = self.full_rounds // 2
        return r < half or r >= half + self.partial_rounds

    def round(self, state: list[int], r: int) -> list[int]:
        """Apply round r: add constants, s-box, then MDS mix."""
        added = [(s + c) % BN254_R for s, c in zip(state, self.round_constants[r])]
        if self.is_full_round(r):
            boxed = [pow(x, self.alpha, BN254_R) for x in added]
        else:
            boxed = [pow(added[0], self.alpha, BN254_R)] + added[1:]
        return [
            sum(m * x for m, x in zip(row, boxed)) % BN254_R
            for row in self.mds
        ]

    def permute(self, state: list[int]) -> list[int]:
        """Full Poseidon permutation of a width-element state."""
        if len(state) != self.width:
            raise ValueError(f"state must have {self.width} elements, got {len(state)}")
        out = [int(s) % BN254_R for s in state]
        for r in range(self.total_rounds):
            out = self.round(out, r)
        return out

    def compress(self, left, right) -> Fr:
        """Two-to-one compression: first element of Permute([left, right, tag])."""
        if self.width != 3:
            raise ValueError("two-to-one compression needs width 3")
        return Fr(self.permute([int(left), int(right), CAPACITY_TAG])[0])
