"""Tests for the scalar field, NTT and polynomial helpers."""

import random

import numpy as np
import pytest

from semaphore_spec.primitives.field import (
    BN254_R,
    COSET_SHIFT,
    Fr,
    get_omega,
    get_omega_inv,
    to_fr,
    to_ints,
)
from semaphore_spec.primitives.ntt import NTT
from semaphore_spec.primitives.polynomial import (
    blind_with_vanishing,
    divide_by_linear,
    evaluate,
    linear_combination,
    to_coefficients,
)


class TestField:

    @pytest.mark.parametrize("n_bits", [1, 3, 9, 28])
    def test_omega_has_exact_order(self, n_bits: int) -> None:
        """omega^(2^k) == 1 and omega^(2^(k-1)) == -1."""
        omega = get_omega(n_bits)
        assert pow(omega, 1 << n_bits, BN254_R) == 1
        assert pow(omega, 1 << (n_bits - 1), BN254_R) == BN254_R - 1

    def test_omega_inverse(self) -> None:
        assert get_omega(9) * get_omega_inv(9) % BN254_R == 1

    def test_omega_beyond_two_adicity(self) -> None:
        with pytest.raises(ValueError):
            get_omega(29)

    def test_to_fr_reduces(self) -> None:
        assert int(to_fr(-1)) == BN254_R - 1
        assert int(to_fr(BN254_R + 5)) == 5

    def test_coset_shift_is_not_in_subgroup(self) -> None:
        """The coset shift raised to any 2-power stays away from 1."""
        assert pow(COSET_SHIFT, 1 << 28, BN254_R) != 1


class TestNTT:
    """Test NTT operations."""

    @pytest.mark.parametrize("n_bits", [0, 1, 3, 6])
    def test_ntt_intt_roundtrip(self, n_bits: int) -> None:
        """Test that INTT(NTT(x)) == x."""
        n = 1 << n_bits
        ntt = NTT(n)
        coeffs = Fr.Random(n)
        assert np.array_equal(ntt.intt(ntt.ntt(coeffs)), coeffs)

    def test_ntt_matches_direct_evaluation(self) -> None:
        """NTT(p)[i] == p(omega^i)."""
        n = 16
        ntt = NTT(n)
        coeffs = Fr.Random(n)
        evals = to_ints(ntt.ntt(coeffs))
        omega = get_omega(4)
        for i in range(n):
            assert evals[i] == int(evaluate(coeffs, pow(omega, i, BN254_R)))

    def test_coset_roundtrip_and_values(self) -> None:
        n = 8
        ntt = NTT(n)
        coeffs = Fr.Random(5)
        evals = ntt.coset_ntt(coeffs, COSET_SHIFT)
        x = COSET_SHIFT * get_omega(3) % BN254_R
        assert int(evals[1]) == int(evaluate(coeffs, x))
        recovered = ntt.coset_intt(evals, COSET_SHIFT)
        assert to_ints(recovered)[:5] == to_ints(coeffs)
        assert not any(to_ints(recovered)[5:])

    def test_too_many_coefficients(self) -> None:
        with pytest.raises(ValueError):
            NTT(4).ntt(Fr.Random(5))


class TestPolynomial:

    def test_divide_by_linear(self) -> None:
        """p(X) - p(z) == q(X) (X - z) at a random point."""
        rng = random.Random(1)
        coeffs = Fr([rng.randrange(BN254_R) for _ in range(10)])
        z = rng.randrange(BN254_R)
        x = rng.randrange(BN254_R)
        q = divide_by_linear(coeffs, z)
        lhs = (int(evaluate(coeffs, x)) - int(evaluate(coeffs, z))) % BN254_R
        rhs = int(evaluate(q, x)) * (x - z) % BN254_R
        assert lhs == rhs

    def test_blinding_keeps_domain_values(self) -> None:
        n = 8
        values = Fr.Random(n)
        coeffs = to_coefficients(values)
        blinded = blind_with_vanishing(coeffs, [Fr(3), Fr(11)])
        assert len(blinded) == n + 2
        omega = get_omega(3)
        for i in range(n):
            assert int(evaluate(blinded, pow(omega, i, BN254_R))) == int(values[i])
        assert int(evaluate(blinded, 2)) != int(evaluate(coeffs, 2))

    def test_linear_combination_mixed_lengths(self) -> None:
        a = Fr([1, 2, 3])
        b = Fr([4, 5])
        out = linear_combination([a, b], [2, 10])
        assert to_ints(out) == [42, 54, 6]
