"""Base classes for constraint evaluation.

ConstraintContext provides a uniform interface for constraint evaluation that works
for the prover (returns arrays over a domain) and the verifier (returns scalars at
zeta). The same constraint code serves both sides, and the precheck is just the
prover context on the base domain.

Example:
    def eval_constraint(ctx: ConstraintContext):
        a = ctx.col('a')
        return ctx.fixed('q') * (ctx.next_col('a') - a * a)

    # Works for prover (arrays)
    prover_result = eval_constraint(ProverConstraintContext(prover_data))

    # Works for verifier (scalars)
    verifier_result = eval_constraint(VerifierConstraintContext(verifier_data))

Constraint code must only combine values with +, - and * and must lift integer
literals through ctx.constant(), so it also runs over compiled-verifier scalars.
"""

from abc import ABC, abstractmethod
from typing import Any

import numpy as np

from semaphore_spec.primitives.field import to_fr
from semaphore_spec.protocol.data import ProverData, VerifierData

NamedConstraint = tuple[str, Any]


class ConstraintContext(ABC):
    """Uniform interface for constraint evaluation - works for prover and verifier."""

    @abstractmethod
    def col(self, name: str) -> Any:
        """Get an advice column at the current row.

        Returns:
            Prover: array of values at all domain points
            Verifier: evaluation at zeta
        """

    @abstractmethod
    def next_col(self, name: str) -> Any:
        """Get an advice column at the next row (rotation +1).

        Returns:
            Prover: array shifted by -extend (circular)
            Verifier: evaluation at zeta * omega
        """

    @abstractmethod
    def fixed(self, name: str) -> Any:
        """Get a fixed (selector or constant) column at the current row."""

    @abstractmethod
    def instance(self) -> Any:
        """Get the public-input polynomial PI at the current row."""

    @abstractmethod
    def constant(self, value: int) -> Any:
        """Lift an integer constant into the context's field type."""


class ProverConstraintContext(ConstraintContext):
    """Prover implementation - returns arrays over the evaluation domain.

    With extend=1 on the base domain this doubles as the row-by-row
    satisfiability check.
    """

    def __init__(self, data: ProverData):
        self._data = data

    def col(self, name: str) -> np.ndarray:
        return self._data.columns[name]

    def next_col(self, name: str) -> np.ndarray:
        # On extended domain, row offset is multiplied by extend factor
        return np.roll(self.col(name), -self._data.extend)

    def fixed(self, name: str) -> np.ndarray:
        return self._data.columns[name]

    def instance(self) -> np.ndarray:
        return self._data.instance

    def constant(self, value: int):
        return to_fr(value)


class VerifierConstraintContext(ConstraintContext):
    """Verifier implementation - returns scalar evaluations at zeta."""

    def __init__(self, data: VerifierData):
        self._data = data

    def col(self, name: str):
        return self._data.evals[(name, 0)]

    def next_col(self, name: str):
        return self._data.evals[(name, 1)]

    def fixed(self, name: str):
        return self._data.evals[(name, 0)]

    def instance(self):
        return self._data.instance

    def constant(self, value: int):
        return self._data.constant(value)


class ConstraintModule(ABC):
    """A set of named polynomial constraints over a column layout."""

    @abstractmethod
    def constraints(self, ctx: ConstraintContext) -> list[NamedConstraint]:
        """Evaluate every constraint.

        Returns:
            (name, value) pairs, in a fixed order shared by prover and verifier
        """

    @abstractmethod
    def degree(self) -> int:
        """Maximum total degree of any constraint in the column polynomials."""

    def constraint_polynomial(self, ctx: ConstraintContext, y):
        """Combine all constraints with powers of the challenge y."""
        return self._combine_constraints([value for _, value in self.constraints(ctx)], y)

    def _combine_constraints(self, constraints, y):
        """Horner accumulation: ((c_0 * y + c_1) * y + ...) * y + c_last."""
        acc = constraints[0]
        for value in constraints[1:]:
            acc = acc * y + value
        return acc


def sbox(x, alpha: int):
    """x^alpha by square-and-multiply, using only context arithmetic."""
    result = None
    base = x
    e = alpha
    while e:
        if e & 1:
            result = base if result is None else result * base
        e >>= 1
        if e:
            base = base * base
    return result
