"""
Substitution models.

A substitution model pairs an exchangeability matrix with a stationary
distribution on a fixed alphabet. Models are immutable; transformations
(scaling, normalisation, renaming) return new models.
"""

from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..core.matrix import build_generator, check_distribution, total_rate
from ..errors import DimensionMismatch, UnsupportedAlphabet
from ..io.sequences import DNA, PROTEIN, Alphabet
from . import empirical

# Number of digits in summaries
PRECISION = 5


@dataclass(frozen=True, eq=False)
class SubstitutionModel:
    """
    Complete definition of a substitution model.

    Create instances with :func:`substitution_model` (normalized) or
    :func:`unnormalized_substitution_model`.

    Attributes
    ----------
    alphabet : Alphabet
        State space; DNA or Protein
    name : str
        Model name, e.g. 'HKY'
    params : tuple of float
        Model parameters, may be empty
    stationary_distribution : ndarray, shape (k,)
        Equilibrium frequencies
    exchangeability_matrix : ndarray, shape (k, k)
        Symmetric exchangeabilities with zero diagonal
    """

    alphabet: Alphabet
    name: str
    params: Tuple[float, ...]
    stationary_distribution: np.ndarray
    exchangeability_matrix: np.ndarray

    @property
    def n_states(self) -> int:
        """Dimension of the state space."""
        return self.alphabet.size

    def rate_matrix(self) -> np.ndarray:
        """
        Generator Q of the model.

        Returns
        -------
        ndarray, shape (k, k)
        """
        return build_generator(self.exchangeability_matrix, self.stationary_distribution)

    def total_rate(self) -> float:
        """Expected number of substitutions per unit time."""
        return total_rate(self.stationary_distribution, self.rate_matrix())

    def summarize(self) -> List[str]:
        """Summary lines for screen output."""
        lines = [f"{self.alphabet.name} substitution model: {self.name}."]
        if self.params:
            lines.append(f"Parameters: {list(self.params)}.")
        pi = np.array2string(self.stationary_distribution, precision=PRECISION)
        lines.append(f"Stationary distribution: {pi}.")
        if self.alphabet == DNA:
            S = np.array2string(self.exchangeability_matrix, precision=PRECISION)
            lines.append(f"Exchangeability matrix:\n{S}.")
        lines.append(f"Scale: {round(self.total_rate(), PRECISION)}.")
        return lines


def _frozen(a: np.ndarray) -> np.ndarray:
    a = np.array(a, dtype=float)
    a.setflags(write=False)
    return a


def _check_alphabet(alphabet: Alphabet) -> None:
    if alphabet not in (DNA, PROTEIN):
        raise UnsupportedAlphabet(
            f"Substitution models require the DNA or Protein alphabet, got {alphabet.name}"
        )


def unnormalized_substitution_model(
    alphabet: Alphabet,
    name: str,
    params: Sequence[float],
    stationary_distribution: np.ndarray,
    exchangeability_matrix: np.ndarray,
) -> SubstitutionModel:
    """
    Create an UNNORMALIZED substitution model.

    Used when models are composed and normalised later, e.g. mixture
    components or gamma rate categories.

    Raises
    ------
    UnsupportedAlphabet
        If the alphabet is not DNA or Protein
    DimensionMismatch
        If array sizes do not match the alphabet
    InvalidDistribution
        If the stationary distribution is not a probability vector
    """
    _check_alphabet(alphabet)

    k = alphabet.size
    pi = np.asarray(stationary_distribution, dtype=float)
    S = np.asarray(exchangeability_matrix, dtype=float)
    if pi.shape != (k,):
        raise DimensionMismatch(
            f"{alphabet.name} models need {k} stationary frequencies, got shape {pi.shape}"
        )
    if S.shape != (k, k):
        raise DimensionMismatch(
            f"{alphabet.name} models need a {k}x{k} exchangeability matrix, got shape {S.shape}"
        )
    pi = check_distribution(pi)

    S = S.copy()
    np.fill_diagonal(S, 0.0)

    return SubstitutionModel(
        alphabet=alphabet,
        name=name,
        params=tuple(float(p) for p in params),
        stationary_distribution=_frozen(pi),
        exchangeability_matrix=_frozen(S),
    )


def substitution_model(
    alphabet: Alphabet,
    name: str,
    params: Sequence[float],
    stationary_distribution: np.ndarray,
    exchangeability_matrix: np.ndarray,
) -> SubstitutionModel:
    """Create a normalized substitution model. See :func:`normalize`."""
    return normalize(
        unnormalized_substitution_model(
            alphabet, name, params, stationary_distribution, exchangeability_matrix
        )
    )


def scale(factor: float, model: SubstitutionModel) -> SubstitutionModel:
    """Scale the rate of a substitution model by a factor."""
    return replace(model, exchangeability_matrix=_frozen(model.exchangeability_matrix * factor))


def normalize(model: SubstitutionModel) -> SubstitutionModel:
    """
    Normalize a substitution model, so that, on average, one substitution
    happens per unit time.
    """
    return scale(1.0 / model.total_rate(), model)


def append_name(suffix: str, model: SubstitutionModel) -> SubstitutionModel:
    """Append a string to the model name."""
    return replace(model, name=model.name + suffix)


# Standard models ------------------------------------------------------------

def _uniform(k: int) -> np.ndarray:
    return np.ones(k) / k


def _equal_exchangeabilities(k: int) -> np.ndarray:
    return np.ones((k, k)) - np.eye(k)


def _is_transition(i: int, j: int) -> bool:
    """A<->G or C<->T in ACGT order."""
    return {i, j} in ({0, 2}, {1, 3})


def jc() -> SubstitutionModel:
    """Jukes-Cantor model."""
    return substitution_model(DNA, 'JC', [], _uniform(4), _equal_exchangeabilities(4))


def f81(pi: np.ndarray) -> SubstitutionModel:
    """F81 model: equal exchangeabilities, arbitrary stationary distribution."""
    return substitution_model(DNA, 'F81', [], pi, _equal_exchangeabilities(4))


def hky(kappa: float, pi: Optional[np.ndarray] = None) -> SubstitutionModel:
    """
    HKY model.

    Parameters
    ----------
    kappa : float
        Transition/transversion rate ratio
    pi : ndarray, shape (4,), optional
        Stationary distribution in ACGT order (default uniform)
    """
    if kappa <= 0:
        raise ValueError(f"kappa must be > 0, got {kappa}")
    if pi is None:
        pi = _uniform(4)

    S = np.array([
        [kappa if _is_transition(i, j) else 1.0 for j in range(4)]
        for i in range(4)
    ])
    return substitution_model(DNA, 'HKY', [kappa], pi, S)


def gtr(rates: Sequence[float], pi: Optional[np.ndarray] = None) -> SubstitutionModel:
    """
    General time reversible model.

    Parameters
    ----------
    rates : sequence of 6 floats
        Exchangeabilities in AC, AG, AT, CG, CT, GT order
    pi : ndarray, shape (4,), optional
        Stationary distribution in ACGT order (default uniform)
    """
    if len(rates) != 6:
        raise DimensionMismatch(f"GTR needs 6 exchangeabilities, got {len(rates)}")
    if any(r < 0 for r in rates):
        raise ValueError(f"GTR exchangeabilities must be non-negative, got {list(rates)}")
    if pi is None:
        pi = _uniform(4)

    S = np.zeros((4, 4))
    S[np.triu_indices(4, k=1)] = rates
    S = S + S.T
    return substitution_model(DNA, 'GTR', rates, pi, S)


def poisson() -> SubstitutionModel:
    """Poisson model for amino acids (equal rates and frequencies)."""
    return substitution_model(PROTEIN, 'Poisson', [], _uniform(20), _equal_exchangeabilities(20))


def poisson_custom(pi: np.ndarray) -> SubstitutionModel:
    """Poisson exchangeabilities with a custom stationary distribution."""
    return substitution_model(PROTEIN, 'Poisson-Custom', [], pi, _equal_exchangeabilities(20))


def lg() -> SubstitutionModel:
    """LG model (Le and Gascuel, 2008)."""
    S, pi = empirical.lg()
    return substitution_model(PROTEIN, 'LG', [], pi, S)


def lg_custom(pi: np.ndarray) -> SubstitutionModel:
    """LG exchangeabilities with a custom stationary distribution."""
    S, _ = empirical.lg()
    return substitution_model(PROTEIN, 'LG-Custom', [], pi, S)


def wag() -> SubstitutionModel:
    """WAG model (Whelan and Goldman, 2001)."""
    S, pi = empirical.wag()
    return substitution_model(PROTEIN, 'WAG', [], pi, S)


def wag_custom(pi: np.ndarray) -> SubstitutionModel:
    """WAG exchangeabilities with a custom stationary distribution."""
    S, _ = empirical.wag()
    return substitution_model(PROTEIN, 'WAG-Custom', [], pi, S)
