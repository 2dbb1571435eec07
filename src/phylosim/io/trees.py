"""
Phylogenetic tree parsing and traversal.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional


@dataclass(eq=False)
class TreeNode:
    """
    Phylogenetic tree node.

    Attributes
    ----------
    id : int
        Node identifier (preorder index)
    name : Optional[str]
        Node name (for leaves, and optionally internal nodes)
    parent : Optional[TreeNode]
        Parent node
    children : list[TreeNode]
        Child nodes, in input order
    branch_length : Optional[float]
        Length of the branch to the parent; None if not given
    label : Optional[str]
        Branch label (e.g. '#1')
    """

    id: int
    name: Optional[str] = None
    parent: Optional["TreeNode"] = None
    children: List["TreeNode"] = field(default_factory=list)
    branch_length: Optional[float] = None
    label: Optional[str] = None

    @property
    def is_leaf(self) -> bool:
        """Check if node is a leaf."""
        return len(self.children) == 0

    @property
    def display_name(self) -> str:
        """Name of the node, or its id when unnamed."""
        return self.name if self.name else str(self.id)


@dataclass
class Tree:
    """
    Rooted phylogenetic tree.

    Attributes
    ----------
    root : TreeNode
        Root node of the tree
    n_nodes : int
        Total number of nodes
    n_leaves : int
        Number of leaf nodes
    leaf_names : list[str]
        Names of leaf nodes, left to right
    """

    root: TreeNode
    n_nodes: int
    n_leaves: int
    leaf_names: List[str]

    @classmethod
    def from_newick(cls, newick_string: str) -> "Tree":
        """
        Parse Newick format tree string.

        Parameters
        ----------
        newick_string : str
            Newick format tree, terminated by a semicolon

        Returns
        -------
        Tree
            Parsed tree

        Examples
        --------
        >>> tree = Tree.from_newick("((A:0.1,B:0.2):0.15,C:0.3);")
        >>> tree.leaf_names
        ['A', 'B', 'C']
        """
        # Remove [...] comments
        newick = re.sub(r'\[[^\]]*\]', '', newick_string).strip()

        if ';' not in newick:
            raise ValueError("Invalid Newick format: missing semicolon")

        tree_line = newick[:newick.index(';')]
        tree_line = tree_line.replace('\n', '').replace('\t', '').replace('\r', '')
        if not tree_line.strip():
            raise ValueError("Invalid Newick format: no tree found")

        node_id_counter = [0]

        def skip_whitespace(s: str, pos: int) -> int:
            """Skip whitespace characters."""
            while pos < len(s) and s[pos] in ' \t\n\r':
                pos += 1
            return pos

        def new_node(parent: Optional[TreeNode]) -> TreeNode:
            """Create a node and attach it to its parent."""
            node = TreeNode(id=node_id_counter[0], parent=parent)
            node_id_counter[0] += 1
            if parent is not None:
                parent.children.append(node)
            return node

        def parse_annotations(s: str, pos: int, node: TreeNode) -> int:
            """Parse name, branch label and branch length of a node."""
            pos = skip_whitespace(s, pos)

            # Node name; quoted names may contain any character but a quote
            if pos < len(s) and s[pos] == "'":
                end = s.find("'", pos + 1)
                if end < 0:
                    raise ValueError(f"Unterminated quoted name at position {pos}")
                node.name = s[pos + 1:end]
                pos = end + 1
            else:
                name_start = pos
                while pos < len(s) and s[pos] not in ',:();# \t\n\r':
                    pos += 1
                if pos > name_start:
                    node.name = s[name_start:pos]

            pos = skip_whitespace(s, pos)

            # Branch label (e.g., #1)
            if pos < len(s) and s[pos] == '#':
                pos += 1
                label_start = pos
                while pos < len(s) and s[pos] not in ',:(); \t\n\r':
                    pos += 1
                node.label = '#' + s[label_start:pos]

            pos = skip_whitespace(s, pos)

            # Branch length (e.g., :0.123 or : 0.123)
            if pos < len(s) and s[pos] == ':':
                pos = skip_whitespace(s, pos + 1)
                length_start = pos
                while pos < len(s) and s[pos] not in ',(); \t\n\r':
                    pos += 1
                try:
                    node.branch_length = float(s[length_start:pos])
                except ValueError:
                    raise ValueError(f"Invalid branch length: {s[length_start:pos]}")

            return pos

        # Internal nodes whose closing parenthesis has not been read yet
        open_nodes: List[TreeNode] = []
        s = tree_line
        pos = skip_whitespace(s, 0)

        while True:
            while pos < len(s) and s[pos] == '(':
                open_nodes.append(new_node(open_nodes[-1] if open_nodes else None))
                pos = skip_whitespace(s, pos + 1)

            node = new_node(open_nodes[-1] if open_nodes else None)
            pos = parse_annotations(s, pos, node)

            # Close finished internal nodes until the next sibling starts
            while True:
                pos = skip_whitespace(s, pos)
                if pos < len(s) and s[pos] == ',' and open_nodes:
                    pos = skip_whitespace(s, pos + 1)
                    break
                if pos < len(s) and s[pos] == ')' and open_nodes:
                    node = open_nodes.pop()
                    pos = parse_annotations(s, pos + 1, node)
                    continue
                if open_nodes:
                    raise ValueError(f"Expected ',' or ')' at position {pos}")
                if pos != len(s):
                    raise ValueError(f"Unexpected characters after tree at position {pos}")
                return cls.from_root(node)

    @classmethod
    def from_file(cls, filepath: Path | str) -> "Tree":
        """Read the first tree from a Newick file."""
        with open(filepath) as f:
            return cls.from_newick(f.read())

    @classmethod
    def from_root(cls, root: TreeNode) -> "Tree":
        """Build a tree (node counts and leaf names) from a root node."""
        tree = cls(root=root, n_nodes=0, n_leaves=0, leaf_names=[])

        for node in tree.preorder():
            tree.n_nodes += 1
            if node.is_leaf:
                tree.leaf_names.append(node.display_name)
        tree.n_leaves = len(tree.leaf_names)

        return tree

    def preorder(self) -> Iterator[TreeNode]:
        """Yield nodes in pre-order (root first, children left to right)."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def postorder(self) -> List[TreeNode]:
        """
        Return nodes in post-order traversal (leaves to root).

        Returns
        -------
        list[TreeNode]
            Nodes in post-order, children left to right before their parent
        """
        # Root first with children right to left, reversed
        result = []
        stack = [self.root]
        while stack:
            node = stack.pop()
            result.append(node)
            stack.extend(node.children)

        result.reverse()
        return result

    def leaves(self) -> List[TreeNode]:
        """Leaf nodes, left to right."""
        return [node for node in self.preorder() if node.is_leaf]

    def get_branches(self) -> List[tuple[TreeNode, TreeNode]]:
        """
        Get all branches as (parent, child) pairs, in pre-order.

        Returns
        -------
        list[tuple[TreeNode, TreeNode]]
            List of (parent, child) tuples for each branch
        """
        return [(node.parent, node) for node in self.preorder() if node.parent is not None]

    def total_length(self) -> float:
        """Sum of all branch lengths (missing lengths count as 0)."""
        return sum(
            child.branch_length or 0.0 for _, child in self.get_branches()
        )

    def height(self) -> float:
        """Largest root-to-leaf distance."""
        depths = {id(self.root): 0.0}
        height = 0.0
        for node in self.preorder():
            if node.parent is not None:
                depths[id(node)] = depths[id(node.parent)] + (node.branch_length or 0.0)
            if node.is_leaf:
                height = max(height, depths[id(node)])
        return height

    def summarize(self) -> List[str]:
        """Summary lines for screen output."""
        return [
            "Phylogenetic tree.",
            f"Number of nodes: {self.n_nodes}.",
            f"Number of leaves: {self.n_leaves}.",
            f"Total branch length: {self.total_length():.6g}.",
            f"Height: {self.height():.6g}.",
        ]
