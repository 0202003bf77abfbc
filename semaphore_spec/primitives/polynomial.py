"""Polynomial operations on coefficient vectors.

Polynomials are Fr arrays of coefficients in ascending order. The protocol
layer uses these helpers rather than touching the NTT directly.
"""

import numpy as np

from semaphore_spec.primitives.field import BN254_R, Fr, to_ints
from semaphore_spec.primitives.ntt import NTT


def to_coefficients(evaluations: np.ndarray) -> np.ndarray:
    """Interpolate values on the subgroup of size len(evaluations)."""
    return NTT(len(evaluations)).intt(Fr(evaluations))


def evaluate(coeffs: np.ndarray, x) -> Fr:
    """Evaluate a polynomial at a single point with Horner's rule.

    Args:
        coeffs: Coefficients in ascending order
        x: Evaluation point (Fr or int)

    Returns:
        p(x) as an Fr scalar
    """
    point = int(x)
    acc = 0
    for c in reversed(to_ints(coeffs)):
        acc = (acc * point + c) % BN254_R
    return Fr(acc)


def divide_by_linear(coeffs: np.ndarray, z) -> np.ndarray:
    """Return q with p(X) - p(z) = q(X) * (X - z).

    Synthetic division; the remainder p(z) is discarded.
    """
    c = to_ints(coeffs)
    point = int(z)
    if len(c) <= 1:
        return Fr.Zeros(1)
    quotient = [0] * (len(c) - 1)
    acc = 0
    for i in range(len(c) - 1, 0, -1):
        acc = (acc * point + c[i]) % BN254_R
        quotient[i - 1] = acc
    return Fr(quotient)


def linear_combination(polys: list[np.ndarray], scalars: list) -> np.ndarray:
    """Compute sum(s_i * p_i) for polynomials of possibly different lengths."""
    assert len(polys) == len(scalars), "one scalar per polynomial"
    size = max(len(p) for p in polys)
    acc = Fr.Zeros(size)
    for poly, scalar in zip(polys, scalars):
        acc[:len(poly)] = acc[:len(poly)] + poly * Fr(int(scalar))
    return acc


def blind_with_vanishing(coeffs: np.ndarray, blinders: list) -> np.ndarray:
    """Add (b_0 + b_1 X + ...) * (X^n - 1) to a degree < n polynomial.

    The result agrees with the input on every n-th root of unity, so the
    committed values are unchanged while the commitment hides them.
    """
    n = len(coeffs)
    out = Fr.Zeros(n + len(blinders))
    out[:n] = coeffs
    for i, b in enumerate(blinders):
        out[i] = out[i] - b
        out[n + i] = out[n + i] + b
    return out
