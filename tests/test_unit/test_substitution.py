"""
Tests for substitution models.
"""

import numpy as np
import pytest

from phylosim.core.matrix import check_detailed_balance, check_stationary
from phylosim.errors import DimensionMismatch, InvalidDistribution, UnsupportedAlphabet
from phylosim.io.sequences import DNA, DNA_IUPAC, PROTEIN
from phylosim.models import substitution as S


class TestStandardModels:
    """Test JC, F81, HKY, GTR and Poisson constructors."""

    @pytest.mark.parametrize("model", [
        S.jc(),
        S.f81(np.array([0.1, 0.2, 0.3, 0.4])),
        S.hky(2.5),
        S.hky(6.0, np.array([0.3, 0.2, 0.2, 0.3])),
        S.gtr([1.0, 2.0, 0.5, 0.8, 3.0, 1.0], np.array([0.15, 0.35, 0.3, 0.2])),
        S.poisson(),
        S.poisson_custom(np.arange(1, 21) / np.arange(1, 21).sum()),
    ])
    def test_normalized(self, model):
        """Normalized models have total rate 1."""
        assert model.total_rate() == pytest.approx(1.0, abs=1e-9)

    def test_jc(self):
        model = S.jc()

        assert model.alphabet == DNA
        assert model.name == 'JC'
        assert model.params == ()
        np.testing.assert_allclose(model.stationary_distribution, 0.25)
        # Normalized JC has off-diagonal rates of 1/3
        Q = model.rate_matrix()
        np.testing.assert_allclose(Q[~np.eye(4, dtype=bool)], 1.0 / 3.0)

    def test_hky_kappa(self):
        """Transitions (A<->G, C<->T) are kappa times faster than transversions."""
        model = S.hky(4.0)
        E = model.exchangeability_matrix

        assert model.params == (4.0,)
        assert E[0, 2] / E[0, 1] == pytest.approx(4.0)
        assert E[1, 3] / E[1, 2] == pytest.approx(4.0)

    def test_hky_invalid_kappa(self):
        with pytest.raises(ValueError, match="kappa"):
            S.hky(0.0)

    def test_gtr_rate_order(self):
        """Rates are given in AC, AG, AT, CG, CT, GT order."""
        rates = [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]
        E = S.gtr(rates).exchangeability_matrix
        pairs = [(0, 1), (0, 2), (0, 3), (1, 2), (1, 3), (2, 3)]
        ratios = [E[i, j] / E[0, 1] for i, j in pairs]

        np.testing.assert_allclose(ratios, rates)
        np.testing.assert_allclose(E, E.T)

    def test_gtr_wrong_length(self):
        with pytest.raises(DimensionMismatch):
            S.gtr([1.0, 2.0, 3.0])

    def test_poisson(self):
        model = S.poisson()

        assert model.alphabet == PROTEIN
        assert model.n_states == 20
        np.testing.assert_allclose(model.stationary_distribution, 0.05)

    @pytest.mark.parametrize("model", [
        S.hky(2.0, np.array([0.1, 0.2, 0.3, 0.4])),
        S.gtr([0.5, 2.0, 1.0, 1.5, 3.0, 0.7], np.array([0.3, 0.2, 0.1, 0.4])),
    ])
    def test_reversible(self, model):
        """Models satisfy detailed balance with their stationary distribution."""
        Q = model.rate_matrix()

        assert check_detailed_balance(Q, model.stationary_distribution)
        assert check_stationary(Q, model.stationary_distribution)


class TestEmpiricalModels:
    """Test LG and WAG, stored in PAML amino acid order."""

    A, R, N, W = (PROTEIN.index(aa) for aa in "ARNW")

    @pytest.mark.parametrize("model", [
        S.lg(),
        S.wag(),
        S.lg_custom(np.arange(1, 21) / np.arange(1, 21).sum()),
        S.wag_custom(np.full(20, 0.05)),
    ])
    def test_normalized_and_reversible(self, model):
        Q = model.rate_matrix()

        assert model.alphabet == PROTEIN
        assert model.total_rate() == pytest.approx(1.0, abs=1e-9)
        np.testing.assert_allclose(model.exchangeability_matrix, model.exchangeability_matrix.T)
        assert check_detailed_balance(Q, model.stationary_distribution)
        assert check_stationary(Q, model.stationary_distribution)

    def test_lg_values(self):
        model = S.lg()
        E = model.exchangeability_matrix

        assert model.name == 'LG'
        assert E[self.A, self.R] / E[self.A, self.N] == pytest.approx(0.425093 / 0.276818)
        assert model.stationary_distribution[self.A] == pytest.approx(0.079066, rel=1e-4)
        assert model.stationary_distribution[self.W] == pytest.approx(0.012066, rel=1e-4)

    def test_wag_values(self):
        model = S.wag()
        E = model.exchangeability_matrix

        assert model.name == 'WAG'
        assert E[self.R, self.A] / E[self.N, self.A] == pytest.approx(0.551571 / 0.509848)
        assert model.stationary_distribution[self.A] == pytest.approx(0.0866279, rel=1e-4)
        assert model.stationary_distribution.sum() == pytest.approx(1.0)

    def test_custom_keeps_exchangeabilities(self):
        pi = np.arange(1, 21) / np.arange(1, 21).sum()
        lg = S.lg()
        custom = S.lg_custom(pi)

        assert custom.name == 'LG-Custom'
        np.testing.assert_allclose(custom.stationary_distribution, pi)
        off_diagonal = ~np.eye(20, dtype=bool)
        ratio = custom.exchangeability_matrix[off_diagonal] / lg.exchangeability_matrix[off_diagonal]
        # Only the overall scale differs
        np.testing.assert_allclose(ratio, ratio[0])

    def test_custom_invalid_distribution(self):
        with pytest.raises(InvalidDistribution):
            S.wag_custom(np.full(20, 0.1))


class TestConstruction:
    """Test generic constructors and their validation."""

    def test_unnormalized_keeps_scale(self):
        pi = np.ones(4) / 4
        E = np.ones((4, 4)) - np.eye(4)
        model = S.unnormalized_substitution_model(DNA, 'X', [], pi, E)

        assert model.total_rate() == pytest.approx(0.75)

    def test_diagonal_zeroed(self):
        pi = np.ones(4) / 4
        model = S.unnormalized_substitution_model(DNA, 'X', [], pi, np.ones((4, 4)))

        np.testing.assert_array_equal(np.diag(model.exchangeability_matrix), 0.0)

    def test_unsupported_alphabet(self):
        """Only DNA and Protein can carry a substitution model."""
        k = DNA_IUPAC.size
        with pytest.raises(UnsupportedAlphabet):
            S.substitution_model(DNA_IUPAC, 'X', [], np.ones(k) / k, np.ones((k, k)))

    def test_dimension_mismatch(self):
        with pytest.raises(DimensionMismatch):
            S.substitution_model(PROTEIN, 'X', [], np.ones(4) / 4, np.ones((4, 4)))

        with pytest.raises(DimensionMismatch):
            S.substitution_model(DNA, 'X', [], np.ones(4) / 4, np.ones((20, 20)))

    def test_invalid_distribution(self):
        with pytest.raises(InvalidDistribution):
            S.f81(np.array([0.5, 0.5, 0.5, 0.5]))

    def test_arrays_are_read_only(self):
        model = S.hky(2.0)

        with pytest.raises(ValueError):
            model.stationary_distribution[0] = 1.0
        with pytest.raises(ValueError):
            model.exchangeability_matrix[0, 1] = 1.0


class TestTransformations:
    """Test scale, normalize and append_name."""

    def test_scale(self):
        model = S.scale(2.5, S.hky(3.0))

        assert model.total_rate() == pytest.approx(2.5)
        assert model.name == 'HKY'

    def test_scale_returns_new_model(self):
        model = S.jc()
        S.scale(3.0, model)

        assert model.total_rate() == pytest.approx(1.0)

    def test_normalize(self):
        model = S.normalize(S.scale(0.2, S.jc()))

        assert model.total_rate() == pytest.approx(1.0)

    def test_append_name(self):
        model = S.append_name('; fast', S.jc())

        assert model.name == 'JC; fast'

    def test_summarize(self):
        lines = S.hky(2.0).summarize()

        assert lines[0] == "DNA substitution model: HKY."
        assert lines[-1] == "Scale: 1.0."
