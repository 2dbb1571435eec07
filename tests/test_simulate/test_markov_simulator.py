"""Tests for the Markov process simulator."""

import numpy as np
import pytest

from phylosim.errors import InconsistentAlphabet, InvalidBranchLength, NegativeWeight
from phylosim.io.sequences import DNA, PROTEIN
from phylosim.io.trees import Tree
from phylosim.models import gamma
from phylosim.models import mixture as M
from phylosim.models import substitution as S
from phylosim.simulate.markov import MarkovProcessSimulator, _sample, simulate_alignment
from phylosim.simulate.output import SimulationOutput


class TestSample:
    """Test inverse-CDF sampling."""

    def test_single_cdf(self):
        cdf = np.array([0.25, 0.5, 0.75, 1.0])
        u = np.array([0.0, 0.24, 0.25, 0.6, 0.99])

        np.testing.assert_array_equal(_sample(cdf, u), [0, 0, 1, 2, 3])

    def test_zero_probability_state_is_skipped(self):
        cdf = np.array([0.5, 0.5, 1.0])

        np.testing.assert_array_equal(_sample(cdf, np.array([0.5, 0.49])), [2, 0])

    def test_row_per_draw(self):
        cdfs = np.array([[1.0, 1.0], [0.0, 1.0]])

        np.testing.assert_array_equal(_sample(cdfs, np.array([0.3, 0.3])), [0, 1])


class TestMarkovProcessSimulator:
    """Test suite for MarkovProcessSimulator."""

    def test_initialization(self, simple_tree):
        sim = MarkovProcessSimulator(simple_tree, S.hky(2.0), 100, seed=[42], n_workers=2)

        assert sim.sequence_length == 100
        assert sim.n_workers == 2
        assert sim.seed == [42]
        assert sim.n_components == 1
        assert sim.alphabet == DNA

    def test_output_shape(self, simple_tree):
        aln = simulate_alignment(simple_tree, S.hky(2.0), 250, seed=[1], n_workers=3)

        assert aln.names == ['A', 'B', 'C', 'D']
        assert aln.sequences.shape == (4, 250)
        assert aln.alphabet == DNA
        assert np.all(aln.sequences < 4)

    def test_leaf_order(self):
        """Rows follow the left to right order of leaves in the tree."""
        tree = Tree.from_newick("((Zeta:0.1,Alpha:0.2):0.1,(Mid:0.1,Beta:0.1):0.1);")
        aln = simulate_alignment(tree, S.jc(), 10, seed=[1], n_workers=1)

        assert aln.names == ['Zeta', 'Alpha', 'Mid', 'Beta']

    def test_protein(self, simple_tree):
        aln = simulate_alignment(simple_tree, S.poisson(), 100, seed=[2], n_workers=2)

        assert aln.alphabet == PROTEIN
        assert np.all(aln.sequences < 20)

    def test_reproducible(self, simple_tree):
        """Same seed and worker count give identical alignments."""
        model = gamma.expand(4, 0.5, S.hky(2.0))
        a = simulate_alignment(simple_tree, model, 500, seed=[7, 8], n_workers=3)
        b = simulate_alignment(simple_tree, model, 500, seed=[7, 8], n_workers=3)

        np.testing.assert_array_equal(a.sequences, b.sequences)

    def test_reproducible_single_site(self, simple_tree):
        model = gamma.expand(4, 0.5, S.hky(2.0))
        a = simulate_alignment(simple_tree, model, 1, seed=[3], n_workers=1)
        b = simulate_alignment(simple_tree, model, 1, seed=[3], n_workers=1)

        assert a.sequences.shape == (4, 1)
        np.testing.assert_array_equal(a.sequences, b.sequences)

    def test_more_workers_than_sites(self, simple_tree):
        """Empty chunks contribute nothing."""
        aln = simulate_alignment(simple_tree, S.jc(), 3, seed=[3], n_workers=8)

        assert aln.sequences.shape == (4, 3)

    def test_different_seeds(self, simple_tree):
        a = simulate_alignment(simple_tree, S.jc(), 200, seed=[1], n_workers=2)
        b = simulate_alignment(simple_tree, S.jc(), 200, seed=[2], n_workers=2)

        assert not np.array_equal(a.sequences, b.sequences)

    def test_replicates_differ(self, simple_tree):
        """Repeated calls draw fresh generators."""
        sim = MarkovProcessSimulator(simple_tree, S.jc(), 200, seed=[1], n_workers=2)

        assert not np.array_equal(sim.simulate().sequences, sim.simulate().sequences)

    def test_identical_fasta(self, simple_tree, tmp_path):
        """Same seed gives byte-identical FASTA output."""
        paths = []
        for name in ["a.fasta", "b.fasta"]:
            aln = simulate_alignment(simple_tree, S.hky(3.0), 300, seed=[99], n_workers=2)
            SimulationOutput.write_fasta(aln, tmp_path / name)
            paths.append(tmp_path / name)

        assert paths[0].read_bytes() == paths[1].read_bytes()

    def test_zero_branch_lengths(self):
        """Without time to evolve, all leaves equal the root."""
        tree = Tree.from_newick("((A:0.0,B:0.0):0.0,C:0.0);")
        aln = simulate_alignment(tree, S.hky(2.0), 200, seed=[5], n_workers=2)

        np.testing.assert_array_equal(aln.sequences[0], aln.sequences[1])
        np.testing.assert_array_equal(aln.sequences[0], aln.sequences[2])

    def test_transition_cache(self, simple_tree):
        sim = MarkovProcessSimulator(simple_tree, S.jc(), 50, seed=[1], n_workers=2)
        sim.simulate()

        # Distinct branch lengths: 0.1, 0.2, 0.15, 0.3, 0.05
        assert sim._transition_cdf.cache_info().currsize == 5


class TestValidation:

    def test_negative_branch_length(self):
        tree = Tree.from_newick("(A:0.1,B:-0.2);")

        with pytest.raises(InvalidBranchLength):
            MarkovProcessSimulator(tree, S.jc(), 10, seed=[1], n_workers=1)

    def test_missing_branch_length(self):
        tree = Tree.from_newick("(A:0.1,B);")

        with pytest.raises(InvalidBranchLength):
            MarkovProcessSimulator(tree, S.jc(), 10, seed=[1], n_workers=1)

    @pytest.mark.parametrize("newick", ["(A:nan,B:1.0);", "(A:inf,B:1.0);", "(A:0.1,B:-inf);"])
    def test_non_finite_branch_length(self, newick):
        tree = Tree.from_newick(newick)

        with pytest.raises(InvalidBranchLength, match="non-finite"):
            MarkovProcessSimulator(tree, S.jc(), 10, seed=[1], n_workers=1)

    def test_negative_mixture_weight(self, simple_tree):
        mm = M.MixtureModel('mix', (
            M.MixtureModelComponent(2.0, S.jc()),
            M.MixtureModelComponent(-1.0, S.hky(2.0)),
        ))

        with pytest.raises(NegativeWeight):
            MarkovProcessSimulator(simple_tree, mm, 10, seed=[1], n_workers=1)

    def test_caterpillar_tree(self):
        """Deep trees are simulated without recursion."""
        newick = "A0:0.001"
        for i in range(1, 3000):
            newick = f"({newick},A{i}:0.001):0.001"
        tree = Tree.from_newick(newick + ";")
        aln = simulate_alignment(tree, S.jc(), 5, seed=[1], n_workers=1)

        assert aln.sequences.shape == (3000, 5)
        assert aln.names[:2] == ['A0', 'A1']

    def test_duplicate_leaf_names(self):
        tree = Tree.from_newick("(A:0.1,A:0.2);")

        with pytest.raises(ValueError, match="unique"):
            MarkovProcessSimulator(tree, S.jc(), 10, seed=[1], n_workers=1)

    def test_inconsistent_mixture(self, simple_tree):
        mm = M.from_substitution_models('mix', [1.0, 1.0], [S.jc(), S.poisson()])

        with pytest.raises(InconsistentAlphabet):
            MarkovProcessSimulator(simple_tree, mm, 10, seed=[1], n_workers=1)

    def test_invalid_length(self, simple_tree):
        with pytest.raises(ValueError):
            MarkovProcessSimulator(simple_tree, S.jc(), 0, seed=[1], n_workers=1)

    def test_invalid_workers(self, simple_tree):
        with pytest.raises(ValueError):
            MarkovProcessSimulator(simple_tree, S.jc(), 10, seed=[1], n_workers=0)

    def test_invalid_model(self, simple_tree):
        with pytest.raises(TypeError):
            MarkovProcessSimulator(simple_tree, "JC", 10, seed=[1], n_workers=1)


class TestMixtureSimulation:

    def test_site_classes(self, simple_tree):
        mm = M.from_substitution_models('mix', [1.0, 3.0], [S.jc(), S.hky(4.0)])
        sim = MarkovProcessSimulator(simple_tree, mm, 4000, seed=[11], n_workers=4)

        with pytest.raises(RuntimeError):
            sim.get_site_classes()

        sim.simulate()
        info = sim.get_site_classes()

        assert len(info['site_class_ids']) == 4000
        assert info['component_names'] == ['JC', 'HKY']
        # Relative weights 1:3
        fraction = np.mean(np.array(info['site_class_ids']) == 1)
        assert fraction == pytest.approx(0.75, abs=0.03)

    def test_zero_weight_component_unused(self, simple_tree):
        mm = M.from_substitution_models('mix', [0.0, 1.0], [S.jc(), S.hky(4.0)])
        sim = MarkovProcessSimulator(simple_tree, mm, 500, seed=[11], n_workers=2)
        sim.simulate()

        assert set(sim.get_site_classes()['site_class_ids']) == {1}

    def test_parameters(self, simple_tree):
        model = gamma.expand(2, 0.5, S.hky(2.0))
        sim = MarkovProcessSimulator(simple_tree, model, 100, seed=[1, 2], n_workers=2)
        params = sim.get_parameters()

        assert params['n_components'] == 2
        assert params['alphabet'] == 'DNA'
        assert params['seed'] == [1, 2]
        assert params['sequence_length'] == 100
        assert params['tree_length'] == pytest.approx(0.9)
        assert [c['weight'] for c in params['components']] == [1.0, 1.0]


@pytest.mark.slow
class TestStatistics:
    """Statistical checks of the simulated process."""

    def test_jc_two_leaves(self, cherry_tree):
        """
        Under JC, leaves at distance 2 agree with probability
        1/4 + 3/4 exp(-8/3) and states are uniform.
        """
        aln = simulate_alignment(cherry_tree, S.jc(), 20000, seed=[2024], n_workers=4)

        freqs = np.bincount(aln.sequences.ravel(), minlength=4) / aln.sequences.size
        np.testing.assert_allclose(freqs, 0.25, atol=0.015)

        agreement = np.mean(aln.sequences[0] == aln.sequences[1])
        expected = 0.25 + 0.75 * np.exp(-8.0 / 3.0)
        assert agreement == pytest.approx(expected, abs=0.015)

    def test_stationary_frequencies(self, simple_tree):
        pi = np.array([0.1, 0.2, 0.3, 0.4])
        aln = simulate_alignment(simple_tree, S.hky(2.0, pi), 20000, seed=[5], n_workers=4)

        freqs = np.bincount(aln.sequences.ravel(), minlength=4) / aln.sequences.size
        np.testing.assert_allclose(freqs, pi, atol=0.015)

    def test_gamma_increases_invariant_sites(self, simple_tree):
        """Strong rate variation leaves more columns constant."""
        plain = simulate_alignment(simple_tree, S.jc(), 10000, seed=[8], n_workers=2)
        varied = simulate_alignment(
            simple_tree, gamma.expand(4, 0.2, S.jc()), 10000, seed=[8], n_workers=2
        )

        assert np.mean(varied.k_eff() == 1.0) > np.mean(plain.k_eff() == 1.0)
