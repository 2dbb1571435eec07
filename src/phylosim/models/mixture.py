"""
Mixture models: weighted collections of substitution models.

Weights are relative; they are not required to sum to one. When sites are
assigned to components, each component is chosen with probability
weight / sum(weights).
"""

import math
from dataclasses import dataclass, replace
from typing import List, Sequence, Tuple

from ..errors import InconsistentAlphabet, LengthMismatch, NegativeWeight
from ..io.sequences import Alphabet
from . import substitution as S


@dataclass(frozen=True, eq=False)
class MixtureModelComponent:
    """
    A mixture model component has a weight and a substitution model.

    Attributes
    ----------
    weight : float
        Relative weight (non-negative)
    substitution_model : SubstitutionModel
        Model of this component
    """

    weight: float
    substitution_model: S.SubstitutionModel

    def summarize(self) -> List[str]:
        """Summary lines for screen output."""
        return [f"Weight: {self.weight}"] + self.substitution_model.summarize()


@dataclass(frozen=True, eq=False)
class MixtureModel:
    """
    A mixture model with its components.

    Attributes
    ----------
    name : str
        Name of the mixture model
    components : tuple of MixtureModelComponent
        Components in order
    """

    name: str
    components: Tuple[MixtureModelComponent, ...]

    def __len__(self) -> int:
        return len(self.components)


def from_substitution_models(
    name: str,
    weights: Sequence[float],
    models: Sequence[S.SubstitutionModel],
) -> MixtureModel:
    """
    Create a mixture model from a list of substitution models.

    Parameters
    ----------
    name : str
        Name of the mixture model
    weights : sequence of float
        Component weights, paired with `models` by position
    models : sequence of SubstitutionModel
        Component models

    Raises
    ------
    LengthMismatch
        If weights and models have different lengths
    NegativeWeight
        If a weight is negative
    """
    if len(weights) != len(models):
        raise LengthMismatch(
            f"Got {len(weights)} weights for {len(models)} substitution models"
        )
    for w in weights:
        if not (w >= 0 and math.isfinite(w)):
            raise NegativeWeight(f"Mixture model weights must be non-negative numbers, got {w}")

    return MixtureModel(
        name=name,
        components=tuple(
            MixtureModelComponent(float(w), sm) for w, sm in zip(weights, models)
        ),
    )


def concatenate(name: str, mixtures: Sequence[MixtureModel]) -> MixtureModel:
    """Concatenate the components of several mixture models into one."""
    return MixtureModel(
        name=name,
        components=tuple(c for mm in mixtures for c in mm.components),
    )


def is_valid(mixture: MixtureModel) -> bool:
    """
    Check if a mixture model is valid: it has at least one component and all
    components share one alphabet.
    """
    if not mixture.components:
        return False
    alphabets = {c.substitution_model.alphabet for c in mixture.components}
    return len(alphabets) == 1


def validate(mixture: MixtureModel) -> MixtureModel:
    """
    Raise if a mixture model is invalid; see :func:`is_valid`.

    Raises
    ------
    InconsistentAlphabet
        If the mixture is empty or its components use different alphabets
    NegativeWeight
        If a weight is negative or no weight is positive
    """
    if not mixture.components:
        raise InconsistentAlphabet(f"Mixture model '{mixture.name}' has no components")
    if not is_valid(mixture):
        names = sorted({c.substitution_model.alphabet.name for c in mixture.components})
        raise InconsistentAlphabet(
            f"Components of mixture model '{mixture.name}' use different alphabets: {names}"
        )
    for c in mixture.components:
        if not (c.weight >= 0 and math.isfinite(c.weight)):
            raise NegativeWeight(
                f"Component '{c.substitution_model.name}' of mixture model "
                f"'{mixture.name}' has invalid weight {c.weight}"
            )
    if sum(weights(mixture)) <= 0:
        raise NegativeWeight(f"Mixture model '{mixture.name}' has no positive weight")
    return mixture


def alphabet(mixture: MixtureModel) -> Alphabet:
    """Alphabet shared by all components."""
    validate(mixture)
    return mixture.components[0].substitution_model.alphabet


def weights(mixture: MixtureModel) -> List[float]:
    """Component weights."""
    return [c.weight for c in mixture.components]


def substitution_models(mixture: MixtureModel) -> List[S.SubstitutionModel]:
    """Component substitution models."""
    return [c.substitution_model for c in mixture.components]


def _over_models(f, mixture: MixtureModel) -> MixtureModel:
    return replace(
        mixture,
        components=tuple(
            replace(c, substitution_model=f(c.substitution_model))
            for c in mixture.components
        ),
    )


def scale(factor: float, mixture: MixtureModel) -> MixtureModel:
    """Scale all substitution models of the mixture model."""
    return _over_models(lambda sm: S.scale(factor, sm), mixture)


def append_name(suffix: str, mixture: MixtureModel) -> MixtureModel:
    """Append a string to the names of all substitution models."""
    return _over_models(lambda sm: S.append_name(suffix, sm), mixture)


def summarize(mixture: MixtureModel) -> List[str]:
    """Summary lines for screen output."""
    lines = [f"Mixture model: {mixture.name}."]
    for i, component in enumerate(mixture.components, start=1):
        lines.append(f"Component {i}:")
        lines.extend(component.summarize())
    return lines
