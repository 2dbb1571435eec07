"""
Discrete gamma rate heterogeneity.

Gamma distributed rate variation among sites is approximated with a
mixture: each of `n` equally probable rate categories is a full copy of
the model, scaled by the mean rate of its category. The mixture weights
are all 1.0 (relative weights).
"""

import warnings
from typing import List, Union

import numpy as np
from scipy.integrate import quad
from scipy.stats import gamma

from ..errors import QuadratureFailure
from . import mixture as M
from . import substitution as S

# Absolute error of the numerical integration
QUADRATURE_EPS = 1e-6

# Tolerance multiplier for the single retry after non-convergence
QUADRATURE_RETRY_FACTOR = 100.0

PhyloModel = Union[S.SubstitutionModel, M.MixtureModel]


def summarize(n: int, alpha: float) -> List[str]:
    """Short summary of gamma rate heterogeneity parameters."""
    return [
        "Discrete gamma rate heterogeneity.",
        f"Number of categories: {n}",
        f"Shape parameter of gamma distribution: {alpha}",
        f"Rates: {get_means(n, alpha).tolist()}",
    ]


def _integrate(f, a: float, b: float, eps: float) -> float:
    """
    Integrate f from a to b to absolute error `eps`.

    If quad reports non-convergence, retry once with a relaxed tolerance.

    Raises
    ------
    QuadratureFailure
        If the retry does not converge either
    """
    for attempt, tol in enumerate((eps, eps * QUADRATURE_RETRY_FACTOR)):
        # With full_output, quad appends a message only when it failed
        result = quad(f, a, b, epsabs=tol, epsrel=0.0, limit=200, full_output=1)
        if len(result) == 3:
            return result[0]
        if attempt == 0:
            warnings.warn(
                f"Integration on [{a}, {b}] did not converge to {tol:g}; "
                f"retrying with {tol * QUADRATURE_RETRY_FACTOR:g}",
                RuntimeWarning,
            )
    raise QuadratureFailure(
        f"Integration on [{a}, {b}] did not converge: {result[3]}"
    )


def get_means(n: int, alpha: float, eps: float = QUADRATURE_EPS) -> np.ndarray:
    """
    Mean rates of the `n` discrete gamma rate categories.

    The gamma distribution has shape `alpha` and rate `alpha` so that its
    mean is 1. The categories are bounded by the i/n quantiles; the rate of
    a category is its conditional mean.

    Parameters
    ----------
    n : int
        Number of categories
    alpha : float
        Shape parameter
    eps : float
        Absolute error of the numerical integration

    Returns
    -------
    ndarray, shape (n,)
        Mean rate of each category; their average is 1

    Notes
    -----
    The last category is unbounded. Instead of integrating to infinity, its
    mean is the known total mean (1) minus the integral from 0 to the last
    finite quantile.
    """
    if n < 1:
        raise ValueError(f"Number of gamma rate categories must be >= 1, got {n}")
    if alpha <= 0:
        raise ValueError(f"Gamma shape parameter must be > 0, got {alpha}")

    dist = gamma(a=alpha, scale=1.0 / alpha)
    quantiles = dist.ppf(np.arange(n + 1) / n)

    # Multiplication by n because each category holds probability mass 1/n
    def mean_func(x):
        if x <= 0.0:
            return 0.0
        return n * x * dist.pdf(x)

    means = [
        _integrate(mean_func, quantiles[i], quantiles[i + 1], eps)
        for i in range(n - 1)
    ]
    if n > 1:
        means.append(n * 1.0 - _integrate(mean_func, 0.0, quantiles[n - 1], eps))
    else:
        means.append(1.0)

    return np.array(means)


def _name(n: int, alpha: float) -> str:
    return (
        f" with discrete gamma rate heterogeneity; {n} categories; "
        f"shape parameter {alpha}"
    )


def _category_name(i: int) -> str:
    return f"; gamma rate category {i}"


def expand_substitution_model(
    n: int, alpha: float, sm: S.SubstitutionModel, eps: float = QUADRATURE_EPS
) -> M.MixtureModel:
    """
    Expand a substitution model into an `n` component mixture model.

    Component i is `sm` scaled by the mean rate of gamma category i; all
    weights are 1.0.
    """
    models = [
        S.append_name(_category_name(i), S.scale(rate, sm))
        for i, rate in enumerate(get_means(n, alpha, eps), start=1)
    ]
    return M.from_substitution_models(sm.name + _name(n, alpha), [1.0] * n, models)


def expand_mixture_model(
    n: int, alpha: float, mm: M.MixtureModel, eps: float = QUADRATURE_EPS
) -> M.MixtureModel:
    """
    Expand each component of a mixture model into `n` gamma rate categories.

    The whole mixture is scaled once per category and the `n` scaled copies
    are concatenated, so the result has `n * len(mm)` components and each
    component weight is kept.
    """
    copies = [
        M.append_name(_category_name(i), M.scale(rate, mm))
        for i, rate in enumerate(get_means(n, alpha, eps), start=1)
    ]
    return M.concatenate(mm.name + _name(n, alpha), copies)


def expand(n: int, alpha: float, model: PhyloModel, eps: float = QUADRATURE_EPS) -> M.MixtureModel:
    """
    Add discrete gamma rate heterogeneity to a substitution or mixture model.

    Parameters
    ----------
    n : int
        Number of rate categories
    alpha : float
        Shape parameter of the gamma distribution
    model : SubstitutionModel or MixtureModel
        Model to expand

    Returns
    -------
    MixtureModel
    """
    if isinstance(model, S.SubstitutionModel):
        return expand_substitution_model(n, alpha, model, eps)
    if isinstance(model, M.MixtureModel):
        return expand_mixture_model(n, alpha, model, eps)
    raise TypeError(f"Cannot expand {type(model).__name__}")
