"""
Base class for sequence simulators.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

import numpy as np

from ..errors import InvalidBranchLength
from ..io.sequences import Alignment, Alphabet
from ..io.trees import Tree
from .concurrent import (
    Seed,
    available_workers,
    get_chunks,
    make_generator,
    run_parallel,
    split_generators,
)


class SequenceSimulator(ABC):
    """
    Abstract base class for sequence simulators.

    Sites evolve independently, so the alignment is simulated in
    `n_workers` chunks of sites. Each chunk gets its own random generator,
    split off the root generator before the chunks start; chunks run on a
    thread pool and are stitched together in order.

    Parameters
    ----------
    tree : Tree
        Phylogenetic tree with branch lengths (must be rooted)
    sequence_length : int
        Number of sites to simulate
    seed : int or sequence of int, optional
        Seed for the root generator (up to 256 unsigned 32 bit integers).
        If None, a seed is drawn from system entropy; see `seed`.
    n_workers : int, optional
        Number of chunks and threads (default: number of CPU cores). The
        output for a given seed depends on this number.

    Attributes
    ----------
    tree : Tree
        The phylogenetic tree
    sequence_length : int
        Sequence length
    rng : numpy.random.Generator
        Root random number generator
    seed : list[int]
        Seed of the root generator
    n_workers : int
        Number of chunks
    site_classes : ndarray or None
        Site class of every site in the last simulated alignment
    """

    def __init__(
        self,
        tree: Tree,
        sequence_length: int,
        seed: Seed = None,
        n_workers: Optional[int] = None,
    ):
        if sequence_length < 1:
            raise ValueError(f"sequence_length must be >= 1, got {sequence_length}")
        if n_workers is not None and n_workers < 1:
            raise ValueError(f"n_workers must be >= 1, got {n_workers}")

        self.tree = tree
        self.sequence_length = sequence_length
        self.n_workers = n_workers or available_workers()
        self.rng, self.seed = make_generator(seed)
        self.site_classes: Optional[np.ndarray] = None

        self._validate_tree()

    def _validate_tree(self):
        """Ensure tree is suitable for simulation."""
        if self.tree.root is None:
            raise ValueError("Tree must be rooted for simulation")

        for node in self.tree.preorder():
            if node.parent is None:
                continue
            if node.branch_length is None:
                raise InvalidBranchLength(
                    f"Node {node.display_name} missing branch length"
                )
            if not np.isfinite(node.branch_length):
                raise InvalidBranchLength(
                    f"Node {node.display_name} has non-finite branch length {node.branch_length}"
                )
            if node.branch_length < 0:
                raise InvalidBranchLength(
                    f"Node {node.display_name} has negative branch length {node.branch_length}"
                )

        names = self.tree.leaf_names
        if len(set(names)) != len(names):
            duplicates = sorted({n for n in names if names.count(n) > 1})
            raise ValueError(f"Leaf names must be unique, duplicates: {duplicates}")

    @property
    @abstractmethod
    def alphabet(self) -> Alphabet:
        """Alphabet of the simulated states."""

    @abstractmethod
    def _draw_site_classes(self, n_sites: int, rng: np.random.Generator) -> np.ndarray:
        """
        Assign each site to a model class.

        Returns
        -------
        np.ndarray
            Class index of each site
        """

    @abstractmethod
    def _generate_ancestral_sequence(
        self, site_classes: np.ndarray, rng: np.random.Generator
    ) -> np.ndarray:
        """
        Generate sequence at root node.

        Returns
        -------
        np.ndarray
            Ancestral sequence (array of state indices)
        """

    @abstractmethod
    def _evolve_sequence(
        self,
        parent_seq: np.ndarray,
        branch_length: float,
        site_classes: np.ndarray,
        rng: np.random.Generator,
    ) -> np.ndarray:
        """
        Evolve sequence along a branch.

        Parameters
        ----------
        parent_seq : np.ndarray
            Parent sequence (array of state indices)
        branch_length : float
            Length of branch
        site_classes : np.ndarray
            Class index of each site
        rng : numpy.random.Generator
            Generator owned by the current chunk

        Returns
        -------
        np.ndarray
            Child sequence (array of state indices)
        """

    def _simulate_chunk(
        self, n_sites: int, rng: np.random.Generator
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Simulate `n_sites` sites at every node of the tree.

        1. Assign sites to classes
        2. Generate ancestral sequence at root
        3. Traverse tree from root to tips in pre-order, evolving each
           node's sequence from its parent's

        Returns
        -------
        leaf_states : ndarray, shape (n_leaves, n_sites)
            Tip sequences in `tree.leaf_names` order
        site_classes : ndarray, shape (n_sites,)
        """
        site_classes = self._draw_site_classes(n_sites, rng)

        # Sequences of all nodes, keyed by node id() (hashable)
        sequences = {}
        for node in self.tree.preorder():
            if node.parent is None:
                sequences[id(node)] = self._generate_ancestral_sequence(site_classes, rng)
            else:
                sequences[id(node)] = self._evolve_sequence(
                    sequences[id(node.parent)], node.branch_length, site_classes, rng
                )

        leaves = self.tree.leaves()
        leaf_states = np.empty((len(leaves), n_sites), dtype=np.uint8)
        for i, leaf in enumerate(leaves):
            leaf_states[i] = sequences[id(leaf)]

        return leaf_states, site_classes

    def simulate(self) -> Alignment:
        """
        Simulate an alignment on the tree.

        Each call draws from the root generator, so repeated calls give
        independent replicates.

        Returns
        -------
        Alignment
            Tip sequences, one row per leaf in `tree.leaf_names` order
        """
        chunks = get_chunks(self.n_workers, self.sequence_length)
        generators = split_generators(self.n_workers, self.rng)

        results = run_parallel(chunks, generators, self._simulate_chunk, self.n_workers)

        self.site_classes = np.concatenate([classes for _, classes in results])
        return Alignment(
            names=list(self.tree.leaf_names),
            sequences=np.hstack([states for states, _ in results]),
            alphabet=self.alphabet,
        )

    @abstractmethod
    def get_parameters(self) -> Dict[str, Any]:
        """
        Get simulation parameters for output metadata.

        Returns
        -------
        dict
            Dictionary of model parameters
        """
