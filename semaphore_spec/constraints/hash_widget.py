"""Compression hash widget: Poseidon rounds as row-to-row constraints.

Each round occupies one row. Advice columns (a, b, c) hold the state before
the round and fixed columns rc_0..rc_2 its round constants; the next row must
hold the state after the round:

    full round     (q_full):    s' = M * (s + rc)^alpha
    partial round  (q_partial): s' = M * ((s_0 + rc_0)^alpha, s_1 + rc_1, s_2 + rc_2)
    last round     (q_last):    s'_0 = (M * (s + rc)^alpha)_0

The last round only pins the first element, which is the compression output,
so the row after it can be reused by the next tree level.
"""

import numpy as np

from semaphore_spec.constraints.base import (
    ConstraintContext,
    NamedConstraint,
    ProverConstraintContext,
    sbox,
)
from semaphore_spec.errors import ParameterMismatchError
from semaphore_spec.primitives.field import Fr, to_ints
from semaphore_spec.primitives.poseidon import CAPACITY_TAG, PoseidonSpec
from semaphore_spec.protocol.data import ProverData

STATE_COLUMNS = ("a", "b", "c")
ROUND_CONSTANT_COLUMNS = ("rc_0", "rc_1", "rc_2")


class HashWidget:
    """Poseidon round constraints for a width-3 state."""

    def __init__(self, spec: PoseidonSpec) -> None:
        if spec.width != len(STATE_COLUMNS):
            raise ValueError(f"hash widget needs width {len(STATE_COLUMNS)}, got {spec.width}")
        self.spec = spec

    def constraints(self, ctx: ConstraintContext) -> list[NamedConstraint]:
        spec = self.spec
        state = [ctx.col(name) for name in STATE_COLUMNS]
        after = [ctx.next_col(name) for name in STATE_COLUMNS]
        added = [s + ctx.fixed(rc) for s, rc in zip(state, ROUND_CONSTANT_COLUMNS)]

        full = [sbox(x, spec.alpha) for x in added]
        partial = [full[0]] + added[1:]

        def mix(row: int, values):
            terms = [ctx.constant(m) * v for m, v in zip(spec.mds[row], values)]
            acc = terms[0]
            for term in terms[1:]:
                acc = acc + term
            return acc

        q_full = ctx.fixed("q_full")
        q_partial = ctx.fixed("q_partial")
        q_last = ctx.fixed("q_last")

        out: list[NamedConstraint] = []
        for j in range(spec.width):
            out.append((f"full round {j}", q_full * (after[j] - mix(j, full))))
        for j in range(spec.width):
            out.append((f"partial round {j}", q_partial * (after[j] - mix(j, partial))))
        out.append(("last round", q_last * (after[0] - mix(0, full))))
        return out

    def degree(self) -> int:
        return self.spec.alpha + 1

    # --- Consistency Check ---

    def check_against_reference(self, left: int = 1, right: int = 2) -> None:
        """Run the round gates over one compression and compare with the reference.

        Raises:
            ParameterMismatchError: a gate fails or the output differs from
                PoseidonSpec.compress for the same inputs
        """
        spec = self.spec
        rows = spec.total_rounds + 1
        n = 1 << rows.bit_length()

        columns = {name: Fr.Zeros(n) for name in
                   STATE_COLUMNS + ROUND_CONSTANT_COLUMNS + ("q_full", "q_partial", "q_last")}
        state = [left, right, CAPACITY_TAG]
        for r in range(spec.total_rounds):
            for name, value in zip(STATE_COLUMNS, state):
                columns[name][r] = value
            for name, value in zip(ROUND_CONSTANT_COLUMNS, spec.round_constants[r]):
                columns[name][r] = value
            if r == spec.total_rounds - 1:
                columns["q_last"][r] = 1
            elif spec.is_full_round(r):
                columns["q_full"][r] = 1
            else:
                columns["q_partial"][r] = 1
            state = spec.round(state, r)
        columns["a"][spec.total_rounds] = state[0]

        ctx = ProverConstraintContext(ProverData(columns=columns, extend=1))
        for name, values in self.constraints(ctx):
            bad = np.nonzero(values.view(np.ndarray) != 0)[0]
            if len(bad):
                raise ParameterMismatchError(f"hash gate '{name}' fails at round {int(bad[0])}")

        expected = int(spec.compress(left, right))
        got = to_ints(columns["a"])[spec.total_rounds]
        if got != expected:
            raise ParameterMismatchError(
                f"in-circuit compression {got} != reference {expected}"
            )
