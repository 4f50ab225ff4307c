# treevis/DerivationTree.py
import json
import warnings
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterator, List, Optional, Set, Tuple

from treevis.GrammarErrors import UnknownCategory, UnknownNode
from treevis.GrammarModel import AbstractGrammar

CATEGORY = "category"
FUNCTION = "function"

class DerivationNode:
    """
    Either:
     - a 'category' node: a choice point, one child per function producing the category
     - a 'function' node: one child per argument category of the function
    plus:
     - display_name: the current label, changed by user selections
     - original_display_name: the label before the first selection, None if never edited
     - a stable id, unique within its tree, used to route clicks back to the node
    """

    def __init__(self, node_id: str, display_name: str, kind: str,
                 category: Optional[str] = None, expanded: bool = True):
        self.id = node_id
        self.display_name = display_name
        self.kind = kind
        self.category = category
        self.expanded = expanded
        self.children: List["DerivationNode"] = []
        self.original_display_name: Optional[str] = None

    @property
    def is_category(self) -> bool:
        return self.kind == CATEGORY

    @property
    def is_edited(self) -> bool:
        return self.original_display_name is not None

    def to_dict(self, verbose: bool = False) -> dict:
        d = {
            "id": self.id,
            "kind": self.kind,
            "display_name": self.display_name,
            "has_children": bool(self.children),
            "children": [child.to_dict(verbose) for child in self.children],
        }
        if verbose:
            d["category"] = self.category
            d["original_display_name"] = self.original_display_name
            d["expanded"] = self.expanded
        return d

    def __repr__(self) -> str:
        return f"DerivationNode({self.id}, {self.kind}, {self.display_name!r})"

@dataclass(frozen=True)
class NodeSnapshot:
    """Immutable copy of a node handed to renderers"""
    id: str
    display_name: str
    kind: str
    has_children: bool
    expanded: bool = True            # False for nodes cut by the recursion guard or deduplication
    children: Tuple["NodeSnapshot", ...] = ()

class DerivationTree:
    """
    Builds the derivation tree of a category from an abstract grammar and owns its nodes.

    - Each category node gets one function child per function producing the category,
      in declaration order.
    - Each function node gets one child per argument category.
    - Categories already on the current path are not expanded again, which keeps
      self-recursive grammars finite. The path set is passed down as a parameter, so
      a category can still be expanded on independent branches.
    - Below one category node, an argument category is expanded only the first time it
      appears. Later occurrences are childless references.

    All nodes are registered in `self.nodes` by id.

    The build and the exports recurse once per tree level, so a chain of categories deep
    enough to exceed `sys.getrecursionlimit()` (several hundred categories nesting one
    another with the default limit) raises RecursionError. `walk` and `depth` are iterative.
    """

    def __init__(self):
        self.root: Optional[DerivationNode] = None
        self.nodes: Dict[str, DerivationNode] = {}
        self._next_id = 0
        self._reported_categories: Set[str] = set()

    @classmethod
    def from_grammar(cls, grammar: AbstractGrammar, category: Optional[str] = None) -> "DerivationTree":
        """Build the tree for `category`, or for the grammar's start category"""
        tree = cls()
        tree.build(grammar, category or grammar.start_category)
        return tree

    def build(self, grammar: AbstractGrammar, category: str) -> DerivationNode:
        """
        Replace the contents of this tree with the derivation tree of `category`.

        Returns:
            DerivationNode: The new root
        """
        self.nodes = {}
        self._next_id = 0
        self._reported_categories = set()
        self.root = self._build_category(grammar, category, frozenset())
        return self.root

    def _build_category(self, grammar: AbstractGrammar, category: str,
                        visiting: FrozenSet[str]) -> DerivationNode:
        if category in visiting:
            return self._new_node(category, CATEGORY, category=category, expanded=False)

        visiting = visiting | {category}
        node = self._new_node(category, CATEGORY, category=category)

        fun_names = grammar.functions_for_category(category)
        if not fun_names and category not in self._reported_categories:
            self._reported_categories.add(category)
            warnings.warn(f"Category '{category}' is produced by no function.", UnknownCategory, stacklevel=2)

        expanded_here: Set[str] = set()
        for fun_name in fun_names:
            fun_node = self._new_node(fun_name, FUNCTION)
            for arg in grammar.functions[fun_name].argument_categories:
                if arg in expanded_here:
                    child = self._new_node(arg, CATEGORY, category=arg, expanded=False)
                else:
                    expanded_here.add(arg)
                    child = self._build_category(grammar, arg, visiting)
                fun_node.children.append(child)
            node.children.append(fun_node)

        return node

    def _new_node(self, display_name: str, kind: str, **kwargs) -> DerivationNode:
        node = DerivationNode(f"dn_{self._next_id}", display_name, kind, **kwargs)
        self._next_id += 1
        self.nodes[node.id] = node
        return node

    # -------------------------------------------------------------------------
    # Lookup & traversal
    # -------------------------------------------------------------------------
    def node(self, node_id: str) -> DerivationNode:
        """Get a node by id. Raises UnknownNode if the id is not part of this tree."""
        try:
            return self.nodes[node_id]
        except KeyError:
            raise UnknownNode(node_id) from None

    def walk(self) -> Iterator[DerivationNode]:
        """All nodes, depth-first pre-order"""
        if not self.root:
            return
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def depth(self) -> int:
        """Number of nodes on the longest root-to-leaf path"""
        if not self.root:
            return 0
        deepest = 0
        stack = [(self.root, 1)]
        while stack:
            node, level = stack.pop()
            deepest = max(deepest, level)
            stack.extend((c, level + 1) for c in node.children)
        return deepest

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------
    def snapshot(self) -> Optional[NodeSnapshot]:
        """Immutable copy of the current tree for renderers"""
        def _snap(node: DerivationNode) -> NodeSnapshot:
            return NodeSnapshot(
                id=node.id,
                display_name=node.display_name,
                kind=node.kind,
                has_children=bool(node.children),
                expanded=node.expanded,
                children=tuple(_snap(c) for c in node.children),
            )
        return _snap(self.root) if self.root else None

    def to_dict(self, verbose: bool = False) -> dict:
        """Convert the entire tree to a dictionary (root + children)."""
        if not self.root:
            return {}
        return self.root.to_dict(verbose=verbose)

    def to_json(self, indent=2, verbose: bool = False) -> str:
        """Serialize the tree to JSON, optionally verbosely."""
        return json.dumps(self.to_dict(verbose=verbose), indent=indent, ensure_ascii=False)

def build_derivation_tree(grammar: AbstractGrammar, category: Optional[str] = None) -> DerivationTree:
    """Derivation tree of `category`, or of the grammar's start category"""
    return DerivationTree.from_grammar(grammar, category)
