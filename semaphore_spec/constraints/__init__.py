"""Constraint modules for the Merkle membership circuit."""

from semaphore_spec.constraints.base import (
    ConstraintContext,
    ConstraintModule,
    ProverConstraintContext,
    VerifierConstraintContext,
)
from semaphore_spec.constraints.hash_widget import HashWidget
from semaphore_spec.constraints.merkle import (
    ADVICE_COLUMNS,
    FIXED_COLUMNS,
    MerkleMembershipConstraints,
)
from semaphore_spec.constraints.selector import SelectorGate, select

__all__ = [
    "ConstraintContext",
    "ConstraintModule",
    "ProverConstraintContext",
    "VerifierConstraintContext",
    "HashWidget",
    "SelectorGate",
    "select",
    "MerkleMembershipConstraints",
    "ADVICE_COLUMNS",
    "FIXED_COLUMNS",
]
