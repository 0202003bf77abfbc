"""KZG polynomial commitments with GWC19 batch opening (prover side).

All polynomials opened at the same point are folded with powers of v into a
single quotient (P(X) - P(z)) / (X - z), committed as one G1 element. The
verifier side of the opening lives in the generic verifier so it can run on
any loader.
"""

import numpy as np

from semaphore_spec.primitives.curve import msm
from semaphore_spec.primitives.field import BN254_R, to_ints
from semaphore_spec.primitives.polynomial import divide_by_linear, linear_combination
from semaphore_spec.protocol.setup import Srs


def commit(srs: Srs, coeffs: np.ndarray):
    """[p(tau)] G1 for a coefficient vector."""
    if len(coeffs) > len(srs.g1_powers):
        raise ValueError(
            f"polynomial with {len(coeffs)} coefficients exceeds SRS of {len(srs.g1_powers)} powers"
        )
    return msm(to_ints(coeffs), list(srs.g1_powers[:len(coeffs)]))


def powers(base, count: int) -> list[int]:
    """[1, base, base^2, ...] as integers."""
    out = [1] * count
    b = int(base)
    for i in range(1, count):
        out[i] = out[i - 1] * b % BN254_R
    return out


def open_at(srs: Srs, polys: list[np.ndarray], point, v):
    """Commit to the GWC opening witness of polys at point.

    Args:
        srs: Reference string
        polys: Coefficient vectors, in transcript order
        point: Opening point (zeta or zeta * omega)
        v: Batching challenge

    Returns:
        [(sum v^i p_i(X) - sum v^i p_i(point)) / (X - point)] G1
    """
    folded = linear_combination(polys, powers(v, len(polys)))
    return commit(srs, divide_by_linear(folded, point))
