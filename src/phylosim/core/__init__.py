"""
Core linear algebra for continuous-time Markov substitution processes.

- **Generators**: rate matrices from exchangeabilities and stationary frequencies
- **Transition probabilities**: matrix exponential P(t) = exp(Qt)
"""

from phylosim.core.matrix import (
    build_generator,
    check_detailed_balance,
    check_distribution,
    check_stationary,
    matrix_exponential,
    total_rate,
)

__all__ = [
    "build_generator",
    "check_detailed_balance",
    "check_distribution",
    "check_stationary",
    "matrix_exponential",
    "total_rate",
]
