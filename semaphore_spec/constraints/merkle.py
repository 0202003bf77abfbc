"""Merkle membership constraint system.

Composes the selector gate and the compression hash widget, and binds the
folded value to the public instance:

    level l occupies rows [ROWS_PER_LEVEL * l, ROWS_PER_LEVEL * (l + 1)]
        row 0        swap row      (a, b, c) = (running, sibling, path bit)
        rows 1..R    round rows    Poseidon state before each round
        row R + 1    output row    a = compress(left, right), shared with
                                   the swap row of level l + 1
    the output row of the last level carries q_inst:  a == PI

where R = R_F + R_P. The chain between levels uses only rotations, so no
copy constraints are needed.
"""

from semaphore_spec.constraints.base import ConstraintContext, ConstraintModule, NamedConstraint
from semaphore_spec.constraints.hash_widget import ROUND_CONSTANT_COLUMNS, HashWidget
from semaphore_spec.constraints.selector import SelectorGate
from semaphore_spec.primitives.poseidon import PoseidonSpec

# --- Column Layout ---

ADVICE_COLUMNS = ("a", "b", "c")
SELECTOR_COLUMNS = ("q_swap", "q_full", "q_partial", "q_last", "q_inst")
FIXED_COLUMNS = SELECTOR_COLUMNS + ROUND_CONSTANT_COLUMNS


def rows_per_level(spec: PoseidonSpec) -> int:
    """Swap row plus one row per permutation round."""
    return 1 + spec.total_rounds


def used_rows(spec: PoseidonSpec, depth: int) -> int:
    return rows_per_level(spec) * depth + 1


def instance_row(spec: PoseidonSpec, depth: int) -> int:
    """Row holding the folded root."""
    return rows_per_level(spec) * depth


class MerkleMembershipConstraints(ConstraintModule):
    """All gates of the membership circuit, in a fixed order."""

    def __init__(self, spec: PoseidonSpec) -> None:
        self.spec = spec
        self.selector = SelectorGate()
        self.hash = HashWidget(spec)

    def constraints(self, ctx: ConstraintContext) -> list[NamedConstraint]:
        out = self.selector.constraints(ctx)
        out.extend(self.hash.constraints(ctx))
        out.append(("public root", ctx.fixed("q_inst") * (ctx.col("a") - ctx.instance())))
        return out

    def degree(self) -> int:
        return max(self.selector.degree(), self.hash.degree(), 2)
