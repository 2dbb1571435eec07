"""
Substitution processes for sequence simulation.

- **Substitution models**: exchangeabilities and stationary distribution on
  the DNA or protein alphabet (JC, F81, HKY, GTR, Poisson, LG, WAG)
- **Mixture models**: weighted collections of substitution models
- **Gamma rate heterogeneity**: expansion of a model into discrete rate
  categories

Modules are meant to be imported qualified, e.g.
``from phylosim.models import mixture as M``.
"""

from phylosim.models.gamma import PhyloModel
from phylosim.models.mixture import MixtureModel, MixtureModelComponent
from phylosim.models.parse import (
    parse_edm_model,
    parse_mixture_model,
    parse_substitution_model,
)
from phylosim.models.substitution import (
    SubstitutionModel,
    f81,
    gtr,
    hky,
    jc,
    lg,
    lg_custom,
    poisson,
    poisson_custom,
    substitution_model,
    unnormalized_substitution_model,
    wag,
    wag_custom,
)

__all__ = [
    "PhyloModel",
    "SubstitutionModel",
    "MixtureModel",
    "MixtureModelComponent",
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
]
