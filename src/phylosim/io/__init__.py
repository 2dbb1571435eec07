"""
Input/Output modules for sequence alignments and phylogenetic trees.

This module provides classes for reading and working with:

- **Alphabets**: DNA and protein state spaces
- **Sequence alignments**: FASTA format
- **Phylogenetic trees**: Newick format
- **Empirical distribution models**: Phylobayes profile files
"""

from phylosim.io.sequences import (
    DNA,
    DNA_IUPAC,
    PROTEIN,
    PROTEIN_IUPAC,
    Alignment,
    Alphabet,
    get_alphabet,
)
from phylosim.io.edm import EDMComponent, read_edm
from phylosim.io.trees import Tree, TreeNode

__all__ = [
    "Alignment",
    "Alphabet",
    "DNA",
    "DNA_IUPAC",
    "PROTEIN",
    "PROTEIN_IUPAC",
    "get_alphabet",
    "Tree",
    "TreeNode",
    "EDMComponent",
    "read_edm",
]
