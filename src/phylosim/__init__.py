"""
phylosim: simulate multiple sequence alignments along phylogenetic trees.

Sequences evolve under continuous-time Markov substitution models,
optionally mixed and with discrete gamma rate heterogeneity. Sites are
simulated in parallel chunks with reproducible random generators.

Quick Start
-----------
>>> from phylosim import Tree, hky, simulate_alignment
>>> tree = Tree.from_newick("((A:0.1,B:0.2):0.15,(C:0.3,D:0.1):0.05);")
>>> aln = simulate_alignment(tree, hky(2.5), 1000, seed=[42])
>>> aln.to_fasta("sim.fasta")

Gamma rate heterogeneity:

>>> from phylosim.models import gamma
>>> model = gamma.expand(4, 0.5, hky(2.5))
>>> aln = simulate_alignment(tree, model, 1000, seed=[42])
"""

__version__ = "0.1.0"

from .errors import (
    DimensionMismatch,
    InconsistentAlphabet,
    InvalidBranchLength,
    InvalidDistribution,
    LengthMismatch,
    ModelParseError,
    NegativeWeight,
    PhyloSimError,
    QuadratureFailure,
    UnsupportedAlphabet,
)
from .io.edm import read_edm
from .io.sequences import DNA, PROTEIN, Alignment, Alphabet
from .io.trees import Tree, TreeNode
from .models import (
    MixtureModel,
    SubstitutionModel,
    f81,
    gtr,
    hky,
    jc,
    lg,
    lg_custom,
    parse_edm_model,
    parse_mixture_model,
    parse_substitution_model,
    poisson,
    poisson_custom,
    substitution_model,
    unnormalized_substitution_model,
    wag,
    wag_custom,
)
from .simulate import MarkovProcessSimulator, simulate_alignment

__all__ = [
    # Simulation
    "MarkovProcessSimulator",
    "simulate_alignment",

    # Models
    "SubstitutionModel",
    "MixtureModel",
    "substitution_model",
    "unnormalized_substitution_model",
    "jc",
    "f81",
    "hky",
    "gtr",
    "poisson",
    "poisson_custom",
    "lg",
    "lg_custom",
    "wag",
    "wag_custom",
    "parse_substitution_model",
    "parse_mixture_model",
    "parse_edm_model",

    # I/O
    "Alignment",
    "Alphabet",
    "DNA",
    "PROTEIN",
    "Tree",
    "TreeNode",
    "read_edm",

    # Errors
    "PhyloSimError",
    "DimensionMismatch",
    "InvalidDistribution",
    "UnsupportedAlphabet",
    "LengthMismatch",
    "InconsistentAlphabet",
    "InvalidBranchLength",
    "NegativeWeight",
    "QuadratureFailure",
    "ModelParseError",

    "__version__",
]
