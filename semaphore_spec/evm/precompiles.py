"""Precompiled contracts 0x05-0x08 (EIP-198, EIP-196, EIP-197, EIP-2565 gas)."""

from semaphore_spec.errors import ProofFormatError
from semaphore_spec.primitives.curve import (
    add,
    encode_g1,
    g1_from_ints,
    g2_from_ints,
    multiply,
    pairing_product_is_one,
)
from semaphore_spec.primitives.field import BN254_R

MODEXP = 0x05
EC_ADD = 0x06
EC_MUL = 0x07
EC_PAIRING = 0x08

EC_ADD_GAS = 150
EC_MUL_GAS = 6000
PAIRING_BASE_GAS = 45000
PAIRING_PER_PAIR_GAS = 34000

# Operand sizes above this are refused rather than computed
MODEXP_MAX_LEN = 1024


class PrecompileFailure(Exception):
    """Invalid input: the call fails and consumes its gas."""


def _padded(data: bytes, size: int) -> bytes:
    return data[:size] + bytes(max(0, size - len(data)))


def _words(data: bytes, count: int) -> list[int]:
    data = _padded(data, 32 * count)
    return [int.from_bytes(data[32 * i:32 * (i + 1)], "big") for i in range(count)]


def _modexp_gas(base_len: int, exp_len: int, mod_len: int, exp_head: int) -> int:
    words = (max(base_len, mod_len) + 7) // 8
    if exp_len <= 32:
        iterations = exp_head.bit_length() - 1 if exp_head else 0
    else:
        iterations = 8 * (exp_len - 32) + max(exp_head.bit_length() - 1, 0)
    return max(200, words * words * max(iterations, 1) // 3)


def _modexp(data: bytes) -> tuple[bytes, int]:
    base_len, exp_len, mod_len = _words(data, 3)
    if max(base_len, exp_len, mod_len) > MODEXP_MAX_LEN:
        raise PrecompileFailure("modexp operand too large")
    body = _padded(data[96:], base_len + exp_len + mod_len)
    base = int.from_bytes(body[:base_len], "big")
    exp_bytes = body[base_len:base_len + exp_len]
    exp = int.from_bytes(exp_bytes, "big")
    mod = int.from_bytes(body[base_len + exp_len:], "big")
    gas = _modexp_gas(base_len, exp_len, mod_len, int.from_bytes(exp_bytes[:32], "big"))
    result = pow(base, exp, mod) if mod else 0
    return result.to_bytes(mod_len, "big") if mod_len else b"", gas


def _ec_add(data: bytes) -> tuple[bytes, int]:
    x1, y1, x2, y2 = _words(data, 4)
    try:
        p1, p2 = g1_from_ints(x1, y1), g1_from_ints(x2, y2)
    except ProofFormatError as e:
        raise PrecompileFailure(str(e)) from e
    return encode_g1(add(p1, p2)), EC_ADD_GAS


def _ec_mul(data: bytes) -> tuple[bytes, int]:
    x, y, scalar = _words(data, 3)
    try:
        point = g1_from_ints(x, y)
    except ProofFormatError as e:
        raise PrecompileFailure(str(e)) from e
    return encode_g1(multiply(point, scalar % BN254_R)), EC_MUL_GAS


def _ec_pairing(data: bytes) -> tuple[bytes, int]:
    if len(data) % 192 != 0:
        raise PrecompileFailure("pairing input is not a multiple of 192 bytes")
    pairs = []
    for offset in range(0, len(data), 192):
        x, y, x_im, x_re, y_im, y_re = _words(data[offset:offset + 192], 6)
        try:
            pairs.append((g1_from_ints(x, y), g2_from_ints(x_im, x_re, y_im, y_re)))
        except ProofFormatError as e:
            raise PrecompileFailure(str(e)) from e
    gas = PAIRING_BASE_GAS + PAIRING_PER_PAIR_GAS * len(pairs)
    ok = pairing_product_is_one(pairs)
    return int(ok).to_bytes(32, "big"), gas


PRECOMPILES = {
    MODEXP: _modexp,
    EC_ADD: _ec_add,
    EC_MUL: _ec_mul,
    EC_PAIRING: _ec_pairing,
}


def run_precompile(address: int, data: bytes, gas: int) -> tuple[bool, bytes, int]:
    """Execute a precompile.

    Args:
        address: Precompile address
        data: Call input
        gas: Gas forwarded to the call

    Returns:
        (success, output, gas used); failures consume all forwarded gas
    """
    try:
        output, cost = PRECOMPILES[address](data)
    except PrecompileFailure:
        return False, b"", gas
    if cost > gas:
        return False, b"", gas
    return True, output, cost
