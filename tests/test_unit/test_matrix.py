"""
Tests for rate matrix operations.
"""

import numpy as np
import pytest

from phylosim.core.matrix import (
    build_generator,
    check_detailed_balance,
    check_distribution,
    check_stationary,
    matrix_exponential,
    total_rate,
)
from phylosim.errors import DimensionMismatch, InvalidDistribution, PhyloSimError


def jc_exchangeabilities():
    return np.ones((4, 4)) - np.eye(4)


class TestBuildGenerator:
    """Test rate matrix construction."""

    def test_rows_sum_to_zero(self):
        """Diagonal makes every row sum to zero."""
        pi = np.array([0.1, 0.2, 0.3, 0.4])
        S = np.array([
            [0.0, 1.0, 2.0, 3.0],
            [1.0, 0.0, 4.0, 5.0],
            [2.0, 4.0, 0.0, 6.0],
            [3.0, 5.0, 6.0, 0.0],
        ])
        Q = build_generator(S, pi)

        np.testing.assert_allclose(Q.sum(axis=1), 0.0, atol=1e-12)

    def test_off_diagonal(self):
        """Q[i,j] = S[i,j] * pi[j]."""
        pi = np.array([0.1, 0.2, 0.3, 0.4])
        S = jc_exchangeabilities() * 2.0
        Q = build_generator(S, pi)

        for i in range(4):
            for j in range(4):
                if i != j:
                    assert Q[i, j] == pytest.approx(2.0 * pi[j])

    def test_diagonal_of_exchangeabilities_ignored(self):
        """Values on the diagonal of S do not change Q."""
        pi = np.ones(4) / 4
        S = jc_exchangeabilities()
        S_diag = S + 7.0 * np.eye(4)

        np.testing.assert_allclose(build_generator(S, pi), build_generator(S_diag, pi))

    def test_stationary_and_reversible(self):
        """Symmetric S gives a reversible Q with stationary distribution pi."""
        pi = np.array([0.4, 0.3, 0.2, 0.1])
        rng = np.random.default_rng(0)
        A = rng.random((4, 4))
        S = A + A.T
        Q = build_generator(S, pi)

        assert check_stationary(Q, pi)
        assert check_detailed_balance(Q, pi)

    def test_dimension_mismatch(self):
        """pi length must match the matrix."""
        with pytest.raises(DimensionMismatch):
            build_generator(jc_exchangeabilities(), np.ones(3) / 3)

    def test_non_square(self):
        with pytest.raises(DimensionMismatch):
            build_generator(np.ones((4, 3)), np.ones(4) / 4)

    def test_invalid_distribution(self):
        """pi must sum to one and be non-negative."""
        with pytest.raises(InvalidDistribution):
            build_generator(jc_exchangeabilities(), np.array([0.5, 0.5, 0.5, 0.5]))

        with pytest.raises(InvalidDistribution):
            build_generator(jc_exchangeabilities(), np.array([1.2, -0.2, 0.0, 0.0]))

    def test_errors_are_value_errors(self):
        """All errors can be caught as ValueError."""
        assert issubclass(DimensionMismatch, PhyloSimError)
        assert issubclass(PhyloSimError, ValueError)


class TestCheckDistribution:

    def test_tolerance(self):
        """Sums within 1e-6 of one are accepted."""
        pi = np.array([0.25, 0.25, 0.25, 0.25 + 5e-7])
        np.testing.assert_array_equal(check_distribution(pi), pi)

        with pytest.raises(InvalidDistribution):
            check_distribution(np.array([0.25, 0.25, 0.25, 0.25 + 1e-5]))

    def test_not_a_vector(self):
        with pytest.raises(InvalidDistribution):
            check_distribution(np.ones((2, 2)) / 4)


class TestTotalRate:

    def test_jc(self):
        """JC with unit exchangeabilities has total rate 3/4."""
        pi = np.ones(4) / 4
        Q = build_generator(jc_exchangeabilities(), pi)

        assert total_rate(pi, Q) == pytest.approx(0.75)

    def test_scales_linearly(self):
        pi = np.array([0.1, 0.2, 0.3, 0.4])
        Q = build_generator(jc_exchangeabilities(), pi)

        assert total_rate(pi, 3.0 * Q) == pytest.approx(3.0 * total_rate(pi, Q))


class TestMatrixExponential:
    """Test transition probabilities P(t) = exp(Qt)."""

    @pytest.fixture
    def normalized_jc(self):
        pi = np.ones(4) / 4
        Q = build_generator(jc_exchangeabilities(), pi)
        return Q / total_rate(pi, Q)

    def test_identity_at_zero(self, normalized_jc):
        """P(0) = I."""
        np.testing.assert_allclose(matrix_exponential(normalized_jc, 0.0), np.eye(4), atol=1e-12)

    def test_rows_are_distributions(self, normalized_jc):
        for t in [0.01, 0.5, 2.0, 10.0]:
            P = matrix_exponential(normalized_jc, t)
            assert np.all(P >= 0)
            np.testing.assert_allclose(P.sum(axis=1), 1.0, atol=1e-12)

    def test_jc_analytic(self, normalized_jc):
        """P_ii(t) = 1/4 + 3/4 exp(-4t/3) for normalized JC."""
        for t in [0.1, 1.0, 3.0]:
            P = matrix_exponential(normalized_jc, t)
            same = 0.25 + 0.75 * np.exp(-4.0 * t / 3.0)
            other = 0.25 - 0.25 * np.exp(-4.0 * t / 3.0)
            np.testing.assert_allclose(np.diag(P), same, rtol=1e-10)
            assert P[0, 1] == pytest.approx(other, rel=1e-10)

    def test_semigroup(self):
        """P(t1 + t2) = P(t1) P(t2)."""
        pi = np.array([0.1, 0.2, 0.3, 0.4])
        S = np.array([
            [0.0, 1.0, 4.0, 1.0],
            [1.0, 0.0, 1.0, 4.0],
            [4.0, 1.0, 0.0, 1.0],
            [1.0, 4.0, 1.0, 0.0],
        ])
        Q = build_generator(S, pi)

        np.testing.assert_allclose(
            matrix_exponential(Q, 0.7),
            matrix_exponential(Q, 0.3) @ matrix_exponential(Q, 0.4),
            atol=1e-10,
        )

    def test_converges_to_stationary(self):
        """Every row of P(t) tends to pi."""
        pi = np.array([0.1, 0.2, 0.3, 0.4])
        Q = build_generator(jc_exchangeabilities(), pi)
        P = matrix_exponential(Q, 100.0)

        for row in P:
            np.testing.assert_allclose(row, pi, atol=1e-8)
