"""
Exceptions raised by phylosim.

All errors derive from :class:`PhyloSimError`, which is a ``ValueError``
so callers that only catch ``ValueError`` keep working. They signal a
malformed model, tree or input and are raised when the offending value
is constructed or validated, never halfway through a simulation.
"""


class PhyloSimError(ValueError):
    """Base class for all phylosim errors."""


class DimensionMismatch(PhyloSimError):
    """Matrix and vector dimensions do not agree."""


class InvalidDistribution(PhyloSimError):
    """A probability vector has negative entries or does not sum to one."""


class UnsupportedAlphabet(PhyloSimError):
    """The alphabet cannot be used to build a substitution model."""


class LengthMismatch(PhyloSimError):
    """Paired lists (e.g. weights and models) have different lengths."""


class InconsistentAlphabet(PhyloSimError):
    """Components of a mixture model use different alphabets."""


class InvalidBranchLength(PhyloSimError):
    """A branch length is negative or missing."""


class NegativeWeight(PhyloSimError):
    """A mixture model component has a negative weight."""


class QuadratureFailure(PhyloSimError):
    """Numerical integration did not converge within tolerance."""


class ModelParseError(PhyloSimError):
    """A model string could not be parsed."""
