"""Data structures for constraint module evaluation.

Usage:
    # Prover: evaluations of every column on the extended coset
    prover_data = ProverData(columns=coset_columns, instance=pi_coset, extend=8)
    ctx = ProverConstraintContext(prover_data)
    numerator = module.constraint_polynomial(ctx, y)

    # Verifier: evaluations at zeta (rotation 0) and zeta * omega (rotation 1)
    verifier_data = VerifierData(evals=evals, instance=pi_at_zeta, constant=loader.const)
    ctx = VerifierConstraintContext(verifier_data)
    numerator_at_zeta = module.constraint_polynomial(ctx, y)
"""

from dataclasses import dataclass, field
from typing import Any, Callable

import numpy as np

from semaphore_spec.primitives.field import to_fr


@dataclass
class ProverData:
    """Column values over an evaluation domain.

    Attributes:
        columns: Advice and fixed columns keyed by name
        instance: Public-input polynomial PI over the same domain
        extend: Blowup factor (domain size / n), 1 for the base domain
    """
    columns: dict[str, np.ndarray] = field(default_factory=dict)
    instance: np.ndarray | None = None
    extend: int = 1


@dataclass
class VerifierData:
    """Opened evaluations for constraint checking at a single point.

    Attributes:
        evals: Evaluations keyed by (column name, rotation)
        instance: PI(zeta)
        constant: Lifts an integer into the verifier's scalar type
    """
    evals: dict[tuple[str, int], Any] = field(default_factory=dict)
    instance: Any = None
    constant: Callable[[int], Any] = to_fr
