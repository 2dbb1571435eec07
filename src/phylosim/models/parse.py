"""
Parse substitution and mixture model strings.

Substitution models are written ``MODEL[PARAMETER,...]{STATIONARY_DISTRIBUTION}``,
where both brackets are optional depending on the model::

    JC
    F81{0.3,0.2,0.2,0.3}
    HKY[6.0]{0.3,0.2,0.2,0.3}
    GTR[1.0,2.0,1.0,1.0,2.0,1.0]{0.25,0.25,0.25,0.25}
    Poisson
    Poisson-Custom{...20 values...}
    LG
    WAG-Custom{...20 values...}

Mixture models are written ``MIXTURE(MODEL,MODEL,...)``; their weights are
given separately. Empirical distribution models are written
``EDM(LG-Custom)``; their profiles and weights come from an EDM file.
"""

import re
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from ..errors import ModelParseError
from ..io.edm import EDMComponent
from . import mixture as M
from . import substitution as S

_MODEL_RE = re.compile(
    r'^(?P<name>[A-Za-z][A-Za-z0-9-]*)'
    r'(?:\[(?P<params>[^\]]*)\])?'
    r'(?:\{(?P<pi>[^}]*)\})?$'
)
_MIXTURE_RE = re.compile(r'^MIXTURE\((?P<body>.*)\)$', re.IGNORECASE)
_EDM_RE = re.compile(r'^EDM\((?P<name>[^()]*)\)$', re.IGNORECASE)


def _floats(text: Optional[str], what: str) -> Optional[List[float]]:
    if text is None:
        return None
    try:
        return [float(x) for x in text.split(',') if x.strip()]
    except ValueError:
        raise ModelParseError(f"Could not parse {what}: '{text}'")


def _n_params(name: str, params: Optional[List[float]], n: int) -> List[float]:
    params = params or []
    if len(params) != n:
        raise ModelParseError(f"{name} needs {n} parameter(s), got {len(params)}")
    return params


def _no_pi(name: str, pi) -> None:
    if pi is not None:
        raise ModelParseError(f"{name} does not take a stationary distribution")


def _need_pi(name: str, pi) -> np.ndarray:
    if pi is None:
        raise ModelParseError(f"{name} needs a stationary distribution")
    return np.array(pi)


def _jc(params, pi):
    _n_params('JC', params, 0)
    _no_pi('JC', pi)
    return S.jc()


def _f81(params, pi):
    _n_params('F81', params, 0)
    return S.f81(_need_pi('F81', pi))


def _hky(params, pi):
    (kappa,) = _n_params('HKY', params, 1)
    return S.hky(kappa, None if pi is None else np.array(pi))


def _gtr(params, pi):
    rates = _n_params('GTR', params, 6)
    return S.gtr(rates, None if pi is None else np.array(pi))


def _poisson(params, pi):
    _n_params('Poisson', params, 0)
    _no_pi('Poisson', pi)
    return S.poisson()


def _poisson_custom(params, pi):
    _n_params('Poisson-Custom', params, 0)
    return S.poisson_custom(_need_pi('Poisson-Custom', pi))


def _lg(params, pi):
    _n_params('LG', params, 0)
    _no_pi('LG', pi)
    return S.lg()


def _lg_custom(params, pi):
    _n_params('LG-Custom', params, 0)
    return S.lg_custom(_need_pi('LG-Custom', pi))


def _wag(params, pi):
    _n_params('WAG', params, 0)
    _no_pi('WAG', pi)
    return S.wag()


def _wag_custom(params, pi):
    _n_params('WAG-Custom', params, 0)
    return S.wag_custom(_need_pi('WAG-Custom', pi))


MODELS: Dict[str, Callable[[Optional[List[float]], Optional[List[float]]], S.SubstitutionModel]] = {
    'JC': _jc,
    'F81': _f81,
    'HKY': _hky,
    'GTR': _gtr,
    'POISSON': _poisson,
    'POISSON-CUSTOM': _poisson_custom,
    'LG': _lg,
    'LG-CUSTOM': _lg_custom,
    'WAG': _wag,
    'WAG-CUSTOM': _wag_custom,
}

# Models whose exchangeabilities can be combined with EDM profiles
EDM_MODELS: Dict[str, Callable[[np.ndarray], S.SubstitutionModel]] = {
    'LG-CUSTOM': S.lg_custom,
    'WAG-CUSTOM': S.wag_custom,
    'POISSON-CUSTOM': S.poisson_custom,
}


def parse_substitution_model(text: str) -> S.SubstitutionModel:
    """
    Parse a substitution model string.

    Raises
    ------
    ModelParseError
        If the string is malformed or the model is unknown
    """
    match = _MODEL_RE.match(text.strip())
    if match is None:
        raise ModelParseError(f"Could not parse substitution model: '{text}'")

    name = match.group('name')
    try:
        build = MODELS[name.upper()]
    except KeyError:
        raise ModelParseError(
            f"Unknown substitution model: {name}. Available: JC, F81, HKY, GTR, "
            "Poisson, Poisson-Custom, LG, LG-Custom, WAG, WAG-Custom"
        )
    params = _floats(match.group('params'), f"parameters of {name}")
    pi = _floats(match.group('pi'), f"stationary distribution of {name}")
    return build(params, pi)


def split_top_level(text: str) -> List[str]:
    """Split on commas that are not enclosed in brackets."""
    parts = []
    depth = 0
    current = []
    for char in text:
        if char in '([{':
            depth += 1
        elif char in ')]}':
            depth -= 1
            if depth < 0:
                raise ModelParseError(f"Unbalanced brackets in '{text}'")
        if char == ',' and depth == 0:
            parts.append(''.join(current).strip())
            current = []
        else:
            current.append(char)
    if depth != 0:
        raise ModelParseError(f"Unbalanced brackets in '{text}'")
    parts.append(''.join(current).strip())
    return parts


def parse_edm_model(
    text: str,
    edm: Optional[Sequence[EDMComponent]],
    weights: Optional[Sequence[float]] = None,
) -> M.MixtureModel:
    """
    Build an empirical distribution mixture model, e.g. ``EDM(LG-Custom)``.

    Each EDM profile becomes one component: the exchangeabilities of the
    named model with the profile as stationary distribution.

    Parameters
    ----------
    text : str
        Model string ``EDM(NAME)``, where NAME is LG-Custom, WAG-Custom or
        Poisson-Custom
    edm : sequence of EDMComponent
        Profiles, usually from :func:`phylosim.io.edm.read_edm`
    weights : sequence of float, optional
        Replace the weights given with the profiles

    Raises
    ------
    ModelParseError
        If the string is malformed, the model cannot take profiles or no
        profiles are given
    LengthMismatch
        If the number of weights does not match the number of profiles
    """
    match = _EDM_RE.match(text.strip())
    if match is None:
        raise ModelParseError(f"Could not parse EDM model: '{text}'")
    name = match.group('name').strip()
    try:
        build = EDM_MODELS[name.upper()]
    except KeyError:
        raise ModelParseError(
            f"EDM models need LG-Custom, WAG-Custom or Poisson-Custom, got '{name}'"
        )
    if not edm:
        raise ModelParseError(f"{text} needs an EDM file with at least one profile")

    base = [build(c.frequencies) for c in edm]
    models = [
        S.append_name(f"; EDM component {i}", sm)
        for i, sm in enumerate(base, start=1)
    ]
    if weights is None:
        weights = [c.weight for c in edm]
    mm_name = f"EDM({base[0].name})"
    return M.validate(M.from_substitution_models(mm_name, list(weights), models))


def parse_mixture_model(
    text: str,
    weights: Optional[Sequence[float]],
    edm: Optional[Sequence[EDMComponent]] = None,
) -> M.MixtureModel:
    """
    Parse a mixture model string, e.g. ``MIXTURE(JC,HKY[6.0])``.

    ``EDM(...)`` strings are handed to :func:`parse_edm_model`.

    Parameters
    ----------
    text : str
        Mixture model string
    weights : sequence of float
        Component weights; required for ``MIXTURE``, optional for ``EDM``
    edm : sequence of EDMComponent, optional
        Profiles of an ``EDM`` model

    Raises
    ------
    ModelParseError
        If the string is malformed or weights are missing
    LengthMismatch
        If the number of weights does not match the number of components
    """
    if _EDM_RE.match(text.strip()):
        return parse_edm_model(text, edm, weights)
    if edm is not None:
        raise ModelParseError(f"EDM profiles can only be used with EDM models, got '{text}'")

    match = _MIXTURE_RE.match(text.strip())
    if match is None:
        raise ModelParseError(f"Could not parse mixture model: '{text}'")
    if weights is None:
        raise ModelParseError("Mixture model weights have to be provided")

    parts = split_top_level(match.group('body'))
    if not parts or not all(parts):
        raise ModelParseError(f"Mixture model has empty components: '{text}'")

    models = [parse_substitution_model(p) for p in parts]
    name = 'MIXTURE(' + ','.join(sm.name for sm in models) + ')'
    return M.validate(M.from_substitution_models(name, list(weights), models))
