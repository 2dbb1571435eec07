"""
Sequence simulation module for phylosim.

This module simulates alignments along a tree under substitution and
mixture models:

- SequenceSimulator: chunked, reproducible parallel simulation of sites
- MarkovProcessSimulator: Markov process along a tree
- concurrent: random generator splitting and chunk scheduling
"""

from .base import SequenceSimulator
from .concurrent import get_chunks, make_generator, run_parallel, split_generators
from .markov import MarkovProcessSimulator, simulate_alignment
from .output import SimulationOutput

__all__ = [
    'SequenceSimulator',
    'MarkovProcessSimulator',
    'SimulationOutput',
    'simulate_alignment',
    'get_chunks',
    'make_generator',
    'run_parallel',
    'split_generators',
]
