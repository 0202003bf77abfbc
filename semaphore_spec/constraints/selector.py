"""Selector gate: constrained conditional swap.

On a row where q_swap is set, advice columns hold (a, b, c) = (running value,
sibling, path bit) and the next row must hold the ordered hash input

    (left, right, capacity) = (a, b, CAPACITY_TAG)  if c == 0
                              (b, a, CAPACITY_TAG)  if c == 1

with c constrained to be boolean.
"""

from semaphore_spec.constraints.base import ConstraintContext, NamedConstraint
from semaphore_spec.primitives.field import Fr
from semaphore_spec.primitives.poseidon import CAPACITY_TAG


def select(running: Fr, sibling: Fr, bit: int) -> tuple[Fr, Fr]:
    """Out-of-circuit swap: the (left, right) pair the gate enforces."""
    return (sibling, running) if bit else (running, sibling)


class SelectorGate:
    """Constraints for the swap row of each tree level."""

    selector = "q_swap"
    running = "a"
    sibling = "b"
    bit = "c"

    def constraints(self, ctx: ConstraintContext) -> list[NamedConstraint]:
        q = ctx.fixed(self.selector)
        a = ctx.col(self.running)
        b = ctx.col(self.sibling)
        c = ctx.col(self.bit)
        one = ctx.constant(1)

        # c * (b - a) is the amount moved between the two slots
        delta = c * (b - a)
        return [
            ("path bit is boolean", q * (c * (one - c))),
            ("left input", q * (ctx.next_col(self.running) - (a + delta))),
            ("right input", q * (ctx.next_col(self.sibling) - (b - delta))),
            ("capacity tag", q * (ctx.next_col(self.bit) - ctx.constant(CAPACITY_TAG))),
        ]

    def degree(self) -> int:
        return 3
