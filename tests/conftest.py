"""
Pytest configuration and shared fixtures.
"""

import pytest
from typer.testing import CliRunner

from phylosim.io.trees import Tree


FOUR_TAXON_NEWICK = "((A:0.1,B:0.2):0.15,(C:0.3,D:0.1):0.05);"


@pytest.fixture
def cli_runner():
    """CLI test runner for Typer apps."""
    return CliRunner()


@pytest.fixture
def simple_tree():
    """Four taxon tree with branch lengths."""
    return Tree.from_newick(FOUR_TAXON_NEWICK)


@pytest.fixture
def cherry_tree():
    """Two leaves, each at distance 1 from the root."""
    return Tree.from_newick("(A:1.0,B:1.0);")


@pytest.fixture
def tree_file(tmp_path):
    """Create a temporary Newick tree file."""
    tree_file = tmp_path / "test_tree.nwk"
    tree_file.write_text(FOUR_TAXON_NEWICK + "\n")
    return tree_file


@pytest.fixture
def edm_file(tmp_path):
    """Two amino acid profiles in Phylobayes format."""
    profiles = [
        [0.6] + [0.05] * 20,
        [0.4] + [0.08] * 10 + [0.02] * 10,
    ]
    lines = ["20 A C D E F G H I K L M N P Q R S T V W Y", str(len(profiles))]
    lines += [' '.join(str(x) for x in p) for p in profiles]
    edm_file = tmp_path / "profiles.edm"
    edm_file.write_text('\n'.join(lines) + '\n')
    return edm_file
