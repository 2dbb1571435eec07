"""
Empirical distribution models (EDMs) in Phylobayes format.

An EDM is a set of weighted amino acid profiles, as written for the
Phylobayes ``-catfix`` option::

    20 A C D E F G H I K L M N P Q R S T V W Y
    2
    0.6 0.05 0.05 ... (20 frequencies)
    0.4 0.02 0.08 ...

The header gives the number of states and their order, the second line
the number of components, and each further line the weight and the
stationary distribution of one component.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List

import numpy as np

from ..errors import ModelParseError
from .sequences import PROTEIN

# Allowed deviation of a profile sum from one before renormalisation
PROFILE_SUM_TOL = 1e-3


@dataclass(frozen=True, eq=False)
class EDMComponent:
    """A weighted profile in protein alphabet order."""

    weight: float
    frequencies: np.ndarray


def parse_edm(text: str) -> List[EDMComponent]:
    """
    Parse an EDM in Phylobayes format.

    Profiles are reordered to the protein alphabet and renormalised to
    sum to one, since files are usually written with a few digits only.

    Raises
    ------
    ModelParseError
        If the header, the number of components or a profile is malformed
    """
    lines = [line.split() for line in text.splitlines() if line.strip()]
    if len(lines) < 2:
        raise ModelParseError("EDM file needs a header and the number of components")

    header = lines[0]
    if header[0] != str(PROTEIN.size):
        raise ModelParseError(f"EDM file must describe {PROTEIN.size} states, got '{header[0]}'")
    states = ''.join(header[1:]).upper() or PROTEIN.characters
    if sorted(states) != sorted(PROTEIN.characters):
        raise ModelParseError(f"EDM file states are not the 20 amino acids: '{states}'")
    order = [states.index(aa) for aa in PROTEIN.characters]

    try:
        n_components = int(lines[1][0])
    except ValueError:
        raise ModelParseError(f"Invalid number of EDM components: '{lines[1][0]}'")
    rows = lines[2:]
    if n_components < 1 or len(rows) != n_components:
        raise ModelParseError(
            f"EDM file announces {n_components} components but has {len(rows)} profiles"
        )

    components = []
    for i, row in enumerate(rows, start=1):
        if len(row) != PROTEIN.size + 1:
            raise ModelParseError(
                f"EDM component {i} needs a weight and {PROTEIN.size} frequencies, "
                f"got {len(row)} values"
            )
        try:
            values = np.array(row, dtype=float)
        except ValueError:
            raise ModelParseError(f"Could not parse EDM component {i}: {' '.join(row)}")
        freqs = values[1:][order]
        if not np.all(np.isfinite(values)) or np.any(freqs < 0):
            raise ModelParseError(f"EDM component {i} has invalid values")
        if abs(freqs.sum() - 1.0) > PROFILE_SUM_TOL:
            raise ModelParseError(
                f"Frequencies of EDM component {i} sum to {freqs.sum()}, not 1"
            )
        components.append(EDMComponent(float(values[0]), freqs / freqs.sum()))

    return components


def read_edm(filepath: Path | str) -> List[EDMComponent]:
    """Read an EDM file in Phylobayes format; see :func:`parse_edm`."""
    with open(filepath) as f:
        return parse_edm(f.read())
