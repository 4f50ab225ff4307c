# Description: This file contains the GrammarSession class, the single object that owns the loaded grammar
# and the derivation tree the user is exploring.
# A session loads a grammar document (parsed JSON, JSON text, a file or a URL), builds the derivation tree of the
# start category and exposes the explorer operations to the CLI or any other frontend.
# Loading is all-or-nothing: if the new document is rejected, the previous grammar and tree stay active.
from typing import Any, List, Optional

from treevis.DerivationTree import DerivationNode, DerivationTree, NodeSnapshot
from treevis.DerivationTreeExplorer import DerivationTreeExplorer, NodeRef
from treevis.GrammarErrors import UnknownLanguage
from treevis.GrammarModel import Grammar
from treevis.TreePrinter import render_text
from treevis.utils import DEFAULT_TIMEOUT, load_grammar_source, parse_grammar_text

class GrammarSession:
    """
    Owns one loaded grammar and the interactive state of its derivation tree.

    Responsibilities:
    - Validating grammar documents and building the grammar model.
    - Building the derivation tree of the start category (or another category).
    - Forwarding alternative listing, selection and reset to the explorer.
    - Switching between abstract mode and a concrete language.
    - Exporting the current tree as dict, JSON, snapshot or text.
    """
    def __init__(self):
        self.source: Optional[str] = None
        self.grammar: Optional[Grammar] = None
        self.tree: Optional[DerivationTree] = None
        self.explorer: Optional[DerivationTreeExplorer] = None

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------
    def load_document(self, document: Any, category: Optional[str] = None,
                      language: Optional[str] = None) -> DerivationNode:
        """
        Install a new grammar from a parsed JSON document and build its derivation tree.

        Args:
            document (Any): The parsed grammar document
            category (Optional[str]): Root category, defaults to the start category
            language (Optional[str]): Concrete grammar id to start in, None for abstract mode

        Returns:
            DerivationNode: The root of the new tree

        Raises:
            MalformedGrammar: If the document is not a grammar. Nothing is replaced.
            UnknownLanguage: If `language` is not a concrete grammar of the document.
        """
        grammar = Grammar.from_document(document)
        if language is not None and language not in grammar.concretes:
            raise UnknownLanguage(language)

        tree = DerivationTree.from_grammar(grammar.abstract, category)
        explorer = DerivationTreeExplorer(grammar, tree, language)

        self.grammar = grammar
        self.tree = tree
        self.explorer = explorer

        print(f"Loaded grammar {grammar.name or '<unnamed>'} with {len(grammar.concretes)} concrete grammar(s).")
        return tree.root

    def load_text(self, text: str, category: Optional[str] = None,
                  language: Optional[str] = None) -> DerivationNode:
        """Same as load_document, for the JSON text of a document"""
        return self.load_document(parse_grammar_text(text), category, language)

    def load_source(self, source: str, category: Optional[str] = None,
                    language: Optional[str] = None, timeout: float = DEFAULT_TIMEOUT) -> DerivationNode:
        """Same as load_document, for a file path or an http(s) URL"""
        document = load_grammar_source(source, timeout=timeout)
        root = self.load_document(document, category, language)
        self.source = source
        return root

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------
    @property
    def language(self) -> Optional[str]:
        return self.explorer.language if self.explorer else None

    def concrete_ids(self) -> List[str]:
        if not self.grammar: raise RuntimeError("No grammar loaded.")
        return list(self.grammar.concretes)

    def concrete_language_tags(self) -> List[str]:
        if not self.grammar: raise RuntimeError("No grammar loaded.")
        return self.grammar.concrete_language_tags()

    def get_node(self, node_id: str) -> DerivationNode:
        if not self.tree: raise RuntimeError("No grammar loaded.")
        return self.tree.node(node_id)

    def list_alternatives(self, node: NodeRef) -> List[str]:
        if not self.explorer: raise RuntimeError("No grammar loaded.")
        return self.explorer.list_alternatives(node)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------
    def set_language(self, concrete_id: Optional[str]) -> None:
        """Switch to a concrete grammar by id, or back to abstract mode with None."""
        if not self.explorer: raise RuntimeError("No grammar loaded.")
        self.explorer.set_language(concrete_id)

    def select(self, node: NodeRef, chosen_label: str) -> None:
        """
        Relabel a node with one of its alternatives.

        Raises:
            NoSuchFunction: In concrete mode, if the function is not in the active concrete grammar.
        """
        if not self.explorer: raise RuntimeError("No grammar loaded.")
        self.explorer.select(node, chosen_label)

    def reset(self, node: NodeRef) -> None:
        if not self.explorer: raise RuntimeError("No grammar loaded.")
        self.explorer.reset(node)

    def reset_all(self) -> None:
        if not self.explorer: raise RuntimeError("No grammar loaded.")
        self.explorer.reset_all()

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------
    def snapshot(self) -> Optional[NodeSnapshot]:
        if not self.tree: raise RuntimeError("No grammar loaded.")
        return self.tree.snapshot()

    def get_current_tree_dict(self, verbose: bool = False) -> dict:
        """
        Returns the current derivation tree as a dictionary.

        Args:
            verbose (bool): Also include category, original label and expansion state per node.
        """
        if not self.tree: raise RuntimeError("No grammar loaded.")
        return self.tree.to_dict(verbose=verbose)

    def get_current_tree_json(self, verbose: bool = False) -> str:
        if not self.tree: raise RuntimeError("No grammar loaded.")
        return self.tree.to_json(indent=2, verbose=verbose)

    def render_text(self, show_ids: bool = True) -> str:
        if not self.tree: raise RuntimeError("No grammar loaded.")
        return render_text(self.tree.snapshot(), show_ids=show_ids)
