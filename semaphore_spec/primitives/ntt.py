"""Number Theoretic Transform over the BN254 scalar field.

galois.ntt derives its own root of unity by factoring r - 1, so the transform
is implemented here as a vectorized radix-2 Cooley-Tukey over Fr arrays.
"""

import numpy as np

from semaphore_spec.primitives.field import BN254_R, Fr, get_omega

# --- NTT Engine ---


class NTT:
    """NTT engine for a fixed power-of-two domain size."""

    def __init__(self, domain_size: int) -> None:
        """Initialize NTT engine for given domain size."""
        assert domain_size > 0, "Domain size must be positive"
        assert (domain_size & (domain_size - 1)) == 0, "Domain size must be power of 2"

        self.n = domain_size
        self.n_bits = _log2(domain_size)
        self.omega = get_omega(self.n_bits)

        # Twiddles omega^k for k < n/2
        self.roots = _precompute_roots(self.omega, max(1, domain_size // 2))
        self._bitrev = _bit_reverse_indices(self.n_bits)
        # INTT(y)[j] = NTT(y)[-j mod n] / n
        self._negate = (-np.arange(domain_size)) % domain_size
        self.n_inv = Fr(pow(domain_size, BN254_R - 2, BN254_R))

    def ntt(self, coeffs: np.ndarray) -> np.ndarray:
        """Forward NTT: coefficients -> evaluations at omega^i."""
        coeffs = self._fit(coeffs)
        n = self.n
        values = coeffs[self._bitrev]

        half = 1
        while half < n:
            step = n // (2 * half)
            twiddles = self.roots[::step][:half]
            blocks = values.reshape(n // (2 * half), 2, half)
            even = blocks[:, 0, :]
            odd = blocks[:, 1, :] * twiddles
            out = Fr.Zeros((n // (2 * half), 2, half))
            out[:, 0, :] = even + odd
            out[:, 1, :] = even - odd
            values = out.reshape(n)
            half *= 2

        return values

    def intt(self, evals: np.ndarray) -> np.ndarray:
        """Inverse NTT: evaluations at omega^i -> coefficients."""
        return self.ntt(evals)[self._negate] * self.n_inv

    def coset_ntt(self, coeffs: np.ndarray, shift: int) -> np.ndarray:
        """Evaluate on the coset shift * <omega>."""
        coeffs = self._fit(coeffs)
        return self.ntt(coeffs * _powers(shift, self.n))

    def coset_intt(self, evals: np.ndarray, shift: int) -> np.ndarray:
        """Interpolate from values on the coset shift * <omega>."""
        shift_inv = pow(shift, BN254_R - 2, BN254_R)
        return self.intt(evals) * _powers(shift_inv, self.n)

    def _fit(self, coeffs: np.ndarray) -> np.ndarray:
        """Zero-pad a coefficient vector to the domain size."""
        if len(coeffs) > self.n:
            raise ValueError(f"{len(coeffs)} coefficients do not fit a domain of {self.n}")
        if len(coeffs) == self.n:
            return Fr(coeffs)
        padded = Fr.Zeros(self.n)
        padded[:len(coeffs)] = coeffs
        return padded


# --- Helpers ---

def _log2(size: int) -> int:
    """Compute log2 of size (must be power of 2)."""
    assert size != 0
    res = 0
    while size != 1:
        size >>= 1
        res += 1
    return res


def _powers(base: int, count: int) -> np.ndarray:
    """Return [base^0, base^1, ..., base^(count-1)] as an Fr array."""
    out = [1] * count
    for i in range(1, count):
        out[i] = out[i - 1] * base % BN254_R
    return Fr(out)


def _precompute_roots(omega: int, n_roots: int) -> np.ndarray:
    """Precompute roots of unity: roots[k] = omega^k."""
    return _powers(omega, n_roots)


def _bit_reverse_indices(n_bits: int) -> np.ndarray:
    """Permutation that reorders an array into bit-reversed index order."""
    n = 1 << n_bits
    rev = np.zeros(n, dtype=np.int64)
    for i in range(n):
        rev[i] = int(format(i, f"0{n_bits}b")[::-1], 2) if n_bits else 0
    return rev
