"""Row-by-row satisfiability check of an assigned circuit.

Evaluates every named constraint on the base domain (rotation = roll by one
row) and lists the rows where a constraint is non-zero. The prover runs this
before any commitment so witness bugs surface as readable failures.
"""

from dataclasses import dataclass

import numpy as np

from semaphore_spec.constraints.base import ConstraintModule, ProverConstraintContext
from semaphore_spec.errors import UnsatisfiedConstraintError
from semaphore_spec.primitives.field import Fr
from semaphore_spec.protocol.data import ProverData


@dataclass(frozen=True)
class VerifyFailure:
    constraint: str
    row: int

    def __str__(self) -> str:
        return f"constraint '{self.constraint}' is not satisfied at row {self.row}"


def instance_column(instances: list, rows: list[int], n: int) -> np.ndarray:
    """Place public instances at their rows; zero elsewhere."""
    if len(instances) != len(rows):
        raise ValueError(f"expected {len(rows)} public instance(s), got {len(instances)}")
    column = Fr.Zeros(n)
    for value, row in zip(instances, rows):
        column[row] = int(value)
    return column


class MockProver:
    """Satisfiability checker over concrete column assignments."""

    def __init__(
        self,
        module: ConstraintModule,
        fixed: dict[str, np.ndarray],
        advice: dict[str, np.ndarray],
        instance: np.ndarray,
    ) -> None:
        self.module = module
        self.columns = {**fixed, **advice}
        self.instance = instance

    def verify(self) -> list[VerifyFailure]:
        """Return every (constraint, row) that fails, in row order."""
        ctx = ProverConstraintContext(ProverData(columns=self.columns, instance=self.instance, extend=1))
        failures = []
        for name, values in self.module.constraints(ctx):
            for row in np.nonzero(values.view(np.ndarray) != 0)[0]:
                failures.append(VerifyFailure(name, int(row)))
        failures.sort(key=lambda f: f.row)
        return failures

    def assert_satisfied(self) -> None:
        """Raise UnsatisfiedConstraintError listing every failure."""
        failures = self.verify()
        if failures:
            raise UnsatisfiedConstraintError(failures)
