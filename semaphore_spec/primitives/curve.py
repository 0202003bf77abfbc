"""BN254 group operations, encodings and multi-scalar multiplication.

Thin layer over py_ecc.optimized_bn128 (projective coordinates). G1 points are
encoded as 64 bytes x || y big-endian, with the point at infinity as all zeros.
G2 points use the EIP-197 word order: x_im, x_re, y_im, y_re.
"""

from py_ecc.optimized_bn128 import (
    FQ,
    FQ2,
    FQ12,
    G1,
    G2,
    Z1,
    Z2,
    add,
    b,
    b2,
    curve_order,
    double,
    field_modulus,
    final_exponentiate,
    is_inf,
    is_on_curve,
    multiply,
    neg,
    normalize,
    pairing,
)

from semaphore_spec.errors import ProofFormatError
from semaphore_spec.primitives.field import BN254_Q, BN254_R

assert curve_order == BN254_R and field_modulus == BN254_Q

G1_BYTES = 64

__all__ = [
    "G1", "G2", "Z1", "Z2", "add", "double", "multiply", "neg", "is_inf",
    "encode_g1", "decode_g1", "g1_from_ints", "g1_to_ints", "g2_to_ints",
    "g2_from_ints", "msm", "pairing_product_is_one", "G1_BYTES",
]


# --- Encodings ---

def _as_int(value) -> int:
    # py_ecc stores FQ2 coefficients as plain ints in some releases
    return value if isinstance(value, int) else value.n


def g1_to_ints(pt) -> tuple[int, int]:
    """Affine (x, y) of a G1 point, (0, 0) for infinity."""
    if is_inf(pt):
        return 0, 0
    x, y = normalize(pt)
    return _as_int(x), _as_int(y)


def g1_from_ints(x: int, y: int):
    """Build a G1 point from affine coordinates, checking it is on the curve."""
    if not (0 <= x < BN254_Q and 0 <= y < BN254_Q):
        raise ProofFormatError("G1 coordinate not canonical")
    if x == 0 and y == 0:
        return Z1
    pt = (FQ(x), FQ(y), FQ.one())
    if not is_on_curve(pt, b):
        raise ProofFormatError("G1 point not on curve")
    return pt


def encode_g1(pt) -> bytes:
    x, y = g1_to_ints(pt)
    return x.to_bytes(32, "big") + y.to_bytes(32, "big")


def decode_g1(data: bytes):
    """Decode 64 bytes into a G1 point.

    Raises:
        ProofFormatError: wrong length, non-canonical coordinates or off-curve
    """
    if len(data) != G1_BYTES:
        raise ProofFormatError(f"G1 encoding must be {G1_BYTES} bytes, got {len(data)}")
    return g1_from_ints(int.from_bytes(data[:32], "big"), int.from_bytes(data[32:], "big"))


def g2_to_ints(pt) -> tuple[int, int, int, int]:
    """EIP-197 words (x_im, x_re, y_im, y_re) of a G2 point."""
    if is_inf(pt):
        return 0, 0, 0, 0
    x, y = normalize(pt)
    x_re, x_im = (_as_int(c) for c in x.coeffs)
    y_re, y_im = (_as_int(c) for c in y.coeffs)
    return x_im, x_re, y_im, y_re


def g2_from_ints(x_im: int, x_re: int, y_im: int, y_re: int):
    """Build a G2 point from EIP-197 words, checking curve and subgroup."""
    if any(not 0 <= w < BN254_Q for w in (x_im, x_re, y_im, y_re)):
        raise ProofFormatError("G2 coordinate not canonical")
    if x_im == x_re == y_im == y_re == 0:
        return Z2
    pt = (FQ2([x_re, x_im]), FQ2([y_re, y_im]), FQ2.one())
    if not is_on_curve(pt, b2):
        raise ProofFormatError("G2 point not on curve")
    if not is_inf(multiply(pt, BN254_R)):
        raise ProofFormatError("G2 point not in the r-torsion subgroup")
    return pt


# --- Multi-Scalar Multiplication ---

def msm(scalars: list[int], points: list) -> tuple:
    """Compute sum(s_i * P_i) with Pippenger's bucket method.

    Args:
        scalars: Integers in [0, r)
        points: Projective G1 points, same length as scalars

    Returns:
        Projective point
    """
    assert len(scalars) == len(points), "one scalar per point"
    pairs = [(s % BN254_R, p) for s, p in zip(scalars, points)]
    pairs = [(s, p) for s, p in pairs if s != 0 and not is_inf(p)]
    zero = Z1
    if not pairs:
        return zero

    if len(pairs) < 32:
        acc = zero
        for s, p in pairs:
            acc = add(acc, multiply(p, s))
        return acc

    c = max(2, len(pairs).bit_length() - 3)
    mask = (1 << c) - 1
    n_windows = (BN254_R.bit_length() + c - 1) // c

    result = zero
    for w in reversed(range(n_windows)):
        for _ in range(c):
            result = double(result)

        buckets = [zero] * (1 << c)
        shift = w * c
        for s, p in pairs:
            idx = (s >> shift) & mask
            if idx:
                buckets[idx] = add(buckets[idx], p)

        running = zero
        window_sum = zero
        for idx in range(mask, 0, -1):
            running = add(running, buckets[idx])
            window_sum = add(window_sum, running)
        result = add(result, window_sum)

    return result


# --- Pairing ---

def pairing_product_is_one(pairs: list[tuple]) -> bool:
    """Check prod e(P_i, Q_i) == 1 for (G1, G2) pairs."""
    acc = FQ12.one()
    for p, q in pairs:
        if is_inf(p) or is_inf(q):
            continue
        acc = acc * pairing(q, p, final_exponentiate=False)
    return final_exponentiate(acc) == FQ12.one()
