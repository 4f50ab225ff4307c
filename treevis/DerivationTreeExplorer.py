from typing import Dict, List, Optional, Tuple, Union

from treevis.DerivationTree import DerivationNode, DerivationTree
from treevis.GrammarErrors import NoSuchFunction, UnknownLanguage, UnknownNode
from treevis.GrammarModel import ConcreteGrammar, Grammar
from treevis.Linearization import resolve_function_linearizations

NodeRef = Union[DerivationNode, str]

LINEARIZATION_SEPARATOR = " / "

class DerivationTreeExplorer:
    """
    The interactive state of one derivation tree. It maintains:
      - self.grammar: the loaded grammar (read-only)
      - self.tree: the derivation tree whose labels the user edits
      - self.language: the active concrete grammar id, or None for abstract mode

    Selecting:
      - In abstract mode the chosen function name becomes the node's label.
      - In concrete mode the label is the linearization of the chosen function
        in the active concrete grammar.
      - The first selection on a node remembers the label it replaced; reset() goes
        back to it. Children and the rest of the tree are never touched.

    Nodes are passed either as DerivationNode objects or by their id.
    """

    def __init__(self, grammar: Grammar, tree: DerivationTree, language: Optional[str] = None):
        self.grammar = grammar
        self.tree = tree
        self.language: Optional[str] = None
        self._linearization_cache: Dict[Tuple[str, str], str] = {}
        self.set_language(language)

    # -------------------------------------------------------------------------
    # Mode
    # -------------------------------------------------------------------------
    def set_language(self, concrete_id: Optional[str]):
        """Switch to concrete mode for `concrete_id`, or to abstract mode with None"""
        if concrete_id is not None and concrete_id not in self.grammar.concretes:
            raise UnknownLanguage(concrete_id)
        self.language = concrete_id

    @property
    def active_concrete(self) -> Optional[ConcreteGrammar]:
        if self.language is None:
            return None
        return self.grammar.concretes[self.language]

    # -------------------------------------------------------------------------
    # Node operations
    # -------------------------------------------------------------------------
    def list_alternatives(self, node: NodeRef) -> List[str]:
        """
        Candidate labels for a category node: the functions producing its category,
        taken from the abstract grammar or from the active concrete grammar's productions.
        Any other node has no alternatives.
        """
        node = self._resolve(node)
        if not node.is_category:
            return []
        concrete = self.active_concrete
        if concrete is None:
            return self.grammar.functions_for_category(node.category)
        return concrete.functions_for_category(node.category)

    def select(self, node: NodeRef, chosen_label: str):
        """
        Relabel `node` with the chosen function.

        Raises:
            NoSuchFunction: In concrete mode, if the active concrete grammar has no
                function named `chosen_label`. The node is left unchanged.
        """
        node = self._resolve(node)
        if self.language is None:
            new_label = chosen_label
        else:
            new_label = self.linearize(chosen_label)

        if node.original_display_name is None:
            node.original_display_name = node.display_name
        node.display_name = new_label

    def reset(self, node: NodeRef):
        """Restore the label the node had before its first selection"""
        node = self._resolve(node)
        if node.original_display_name is not None:
            node.display_name = node.original_display_name

    def reset_all(self):
        for node in self.edited_nodes():
            self.reset(node)

    def is_edited(self, node: NodeRef) -> bool:
        return self._resolve(node).is_edited

    def edited_nodes(self) -> List[DerivationNode]:
        return [node for node in self.tree.walk() if node.is_edited]

    # -------------------------------------------------------------------------
    # Linearization
    # -------------------------------------------------------------------------
    def linearize(self, function_name: str) -> str:
        """
        The display string of a function in the active concrete grammar: all of its
        linearizations, resolved against the abstract argument categories.
        Results are cached per concrete grammar.
        """
        concrete = self.active_concrete
        if concrete is None:
            raise RuntimeError("No concrete grammar is active.")

        key = (concrete.concrete_id, function_name)
        if key in self._linearization_cache:
            return self._linearization_cache[key]

        fun = concrete.function_by_name(function_name)
        if fun is None:
            raise NoSuchFunction(function_name, concrete.concrete_id)

        abstract_fun = self.grammar.abstract.functions.get(function_name)
        arg_names = abstract_fun.argument_categories if abstract_fun else ()
        lins = resolve_function_linearizations(fun, concrete.sequences, arg_names)

        text = LINEARIZATION_SEPARATOR.join(lins)
        self._linearization_cache[key] = text
        return text

    # -------------------------------------------------------------------------
    # Internal Helpers
    # -------------------------------------------------------------------------
    def _resolve(self, node: NodeRef) -> DerivationNode:
        if isinstance(node, DerivationNode):
            # a node of a replaced tree is stale even if its id is reused
            if self.tree.nodes.get(node.id) is not node:
                raise UnknownNode(node.id)
            return node
        return self.tree.node(node)
