"""
Simulate a Markov process along a tree.

Each site picks a model component (for mixture models, with probability
proportional to the component weight), draws its root state from the
component's stationary distribution and then, walking down the tree,
draws the state at each child from the row of exp(Q t) that belongs to
the parent state.
"""

from functools import lru_cache
from typing import Any, Dict, List, Optional

import numpy as np

from ..core.matrix import matrix_exponential
from ..io.sequences import Alignment, Alphabet
from ..io.trees import Tree
from ..models import mixture as M
from ..models import substitution as S
from ..models.gamma import PhyloModel
from .base import SequenceSimulator
from .concurrent import Seed


def _cumulative(p: np.ndarray) -> np.ndarray:
    """Cumulative distribution along the last axis, last entry fixed to 1."""
    cdf = np.cumsum(p, axis=-1)
    cdf /= cdf[..., -1:]
    cdf[..., -1] = 1.0
    return cdf


def _sample(cdf: np.ndarray, u: np.ndarray) -> np.ndarray:
    """
    Inverse-CDF sampling.

    Parameters
    ----------
    cdf : ndarray, shape (k,) or (m, k)
        Cumulative distribution(s); a single one is shared by all draws
    u : ndarray, shape (m,)
        Uniform draws in [0, 1)

    Returns
    -------
    ndarray, shape (m,)
        Sampled state indices
    """
    return np.sum(u[:, np.newaxis] >= np.atleast_2d(cdf), axis=1)


class MarkovProcessSimulator(SequenceSimulator):
    """
    Simulate sequences under a substitution or mixture model.

    Parameters
    ----------
    tree : Tree
        Phylogenetic tree (rooted, with non-negative branch lengths)
    model : SubstitutionModel or MixtureModel
        Model of the substitution process. Gamma rate heterogeneity is
        added beforehand with :func:`phylosim.models.gamma.expand`.
    sequence_length : int
        Number of sites to simulate
    seed : int or sequence of int, optional
        Seed of the root generator
    n_workers : int, optional
        Number of chunks and threads (default: number of CPU cores)

    Examples
    --------
    >>> from phylosim.io.trees import Tree
    >>> from phylosim.models import hky
    >>> tree = Tree.from_newick("((A:0.1,B:0.2):0.15,(C:0.3,D:0.1):0.05);")
    >>> sim = MarkovProcessSimulator(tree, hky(2.5), 1000, seed=[42], n_workers=2)
    >>> aln = sim.simulate()
    >>> aln.names
    ['A', 'B', 'C', 'D']
    >>> aln.sequences.shape
    (4, 1000)
    """

    def __init__(
        self,
        tree: Tree,
        model: PhyloModel,
        sequence_length: int,
        seed: Seed = None,
        n_workers: Optional[int] = None,
    ):
        super().__init__(tree, sequence_length, seed, n_workers)

        self.model = model

        # Build Q matrices and cumulative distributions (ONCE)
        self._setup_substitution_models()

    def _setup_substitution_models(self):
        """Collect components, weights and rate matrices of the model."""
        if isinstance(self.model, S.SubstitutionModel):
            self.weights = np.array([1.0])
            self.substitution_models = [self.model]
        elif isinstance(self.model, M.MixtureModel):
            M.validate(self.model)
            self.weights = np.array(M.weights(self.model))
            self.substitution_models = M.substitution_models(self.model)
        else:
            raise TypeError(
                f"model must be a SubstitutionModel or MixtureModel, got {type(self.model).__name__}"
            )

        self._alphabet = self.substitution_models[0].alphabet
        self.Q_matrices = [sm.rate_matrix() for sm in self.substitution_models]

        self._weights_cdf = _cumulative(self.weights / self.weights.sum())
        self._stationary_cdfs = [
            _cumulative(sm.stationary_distribution) for sm in self.substitution_models
        ]

        # P(t) depends only on (component, t); shared by all chunks
        self._transition_cdf = lru_cache(maxsize=None)(self._compute_transition_cdf)

    @property
    def alphabet(self) -> Alphabet:
        return self._alphabet

    @property
    def n_components(self) -> int:
        """Number of model components (1 for a plain substitution model)."""
        return len(self.substitution_models)

    def _compute_transition_cdf(self, component: int, t: float) -> np.ndarray:
        """
        Row-wise cumulative transition probabilities exp(Q t) of a component.

        Returns
        -------
        np.ndarray, shape (k, k)
        """
        return _cumulative(matrix_exponential(self.Q_matrices[component], t))

    def _draw_site_classes(self, n_sites: int, rng: np.random.Generator) -> np.ndarray:
        """Draw a component per site, proportional to the weights."""
        return _sample(self._weights_cdf, rng.random(n_sites)).astype(np.int32)

    def _generate_ancestral_sequence(
        self, site_classes: np.ndarray, rng: np.random.Generator
    ) -> np.ndarray:
        """
        Sample ancestral sequence at root from the stationary distribution
        of each site's component.
        """
        u = rng.random(len(site_classes))
        seq = np.empty(len(site_classes), dtype=np.uint8)

        for c in range(self.n_components):
            sites = site_classes == c
            seq[sites] = _sample(self._stationary_cdfs[c], u[sites])

        return seq

    def _evolve_sequence(
        self,
        parent_seq: np.ndarray,
        branch_length: float,
        site_classes: np.ndarray,
        rng: np.random.Generator,
    ) -> np.ndarray:
        """
        Evolve sequence along a branch using P(t).

        For each site, sample child state from transition probabilities:
            child ~ Categorical(P_c(t)[parent, :])
        where c is the component of the site.
        """
        u = rng.random(len(parent_seq))
        child_seq = np.empty(len(parent_seq), dtype=np.uint8)

        for c in range(self.n_components):
            sites = site_classes == c
            if not np.any(sites):
                continue
            cdf = self._transition_cdf(c, float(branch_length))
            child_seq[sites] = _sample(cdf[parent_seq[sites]], u[sites])

        return child_seq

    def get_site_classes(self) -> Dict[str, Any]:
        """
        Get the component assignment of the last simulated alignment.

        Returns
        -------
        dict
            Dictionary with:
            - site_class_ids: component index for each site
            - component_names: names of the components
            - component_weights: weights of the components
        """
        if self.site_classes is None:
            raise RuntimeError("No alignment simulated yet")
        return {
            'site_class_ids': self.site_classes.tolist(),
            'component_names': [sm.name for sm in self.substitution_models],
            'component_weights': self.weights.tolist(),
        }

    def summarize(self) -> List[str]:
        """Summary lines of the model for screen output."""
        if isinstance(self.model, M.MixtureModel):
            return M.summarize(self.model)
        return self.model.summarize()

    def get_parameters(self) -> Dict[str, Any]:
        """
        Get simulation parameters for metadata output.

        Returns
        -------
        dict
            Model name, alphabet, components, sequence length, seed, number
            of workers and tree length
        """
        return {
            'model': self.model.name,
            'alphabet': self.alphabet.name,
            'n_components': self.n_components,
            'components': [
                {
                    'name': sm.name,
                    'weight': float(w),
                    'params': list(sm.params),
                    'stationary_distribution': sm.stationary_distribution.tolist(),
                    'total_rate': sm.total_rate(),
                }
                for w, sm in zip(self.weights, self.substitution_models)
            ],
            'sequence_length': int(self.sequence_length),
            'seed': list(self.seed),
            'n_workers': int(self.n_workers),
            'tree_length': self.tree.total_length(),
        }


def simulate_alignment(
    tree: Tree,
    model: PhyloModel,
    sequence_length: int,
    seed: Seed = None,
    n_workers: Optional[int] = None,
) -> Alignment:
    """
    Simulate one alignment; see :class:`MarkovProcessSimulator`.

    Examples
    --------
    >>> from phylosim.models import jc
    >>> tree = Tree.from_newick("(A:1.0,B:1.0);")
    >>> aln = simulate_alignment(tree, jc(), 100, seed=[0], n_workers=1)
    >>> aln.n_sites
    100
    """
    return MarkovProcessSimulator(tree, model, sequence_length, seed, n_workers).simulate()
