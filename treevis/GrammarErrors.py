"""
GrammarErrors collects the error conditions raised while loading and exploring a grammar.

Fatal conditions are exceptions:
- MalformedGrammar: the document cannot describe a grammar, the load is aborted
- NoSuchFunction: a concrete selection names a function the concrete grammar lacks
- UnknownNode: a node id that is not part of the current derivation tree
- UnknownLanguage: a concrete grammar id that is not part of the loaded grammar

Recoverable conditions are warnings, emitted through the `warnings` module so that
tree construction and rendering keep going:
- UnknownCategory: a category that no function produces, rendered as a leaf
- OutOfRangeSlot: a category reference beyond a function's argument list
"""


class GrammarError(Exception):
    """Base class for all grammar related errors."""


class MalformedGrammar(GrammarError, ValueError):
    """The grammar document is missing required fields or has the wrong shape."""


class NoSuchFunction(GrammarError, LookupError):
    """
    A function name could not be found in the active concrete grammar.

    Attributes:
        function_name (str): The name that was looked up
        concrete_id (str): The concrete grammar that was searched
    """
    def __init__(self, function_name: str, concrete_id: str):
        super().__init__(f"Function '{function_name}' does not exist in concrete grammar '{concrete_id}'.")
        self.function_name = function_name
        self.concrete_id = concrete_id


class UnknownNode(GrammarError, KeyError):
    """A node id was routed back that does not exist in the derivation tree."""
    def __init__(self, node_id: str):
        super().__init__(node_id)
        self.node_id = node_id

    def __str__(self) -> str:
        return f"No derivation node with id '{self.node_id}'."


class UnknownLanguage(GrammarError, KeyError):
    """A concrete grammar id that the loaded grammar does not contain."""
    def __init__(self, concrete_id: str):
        super().__init__(concrete_id)
        self.concrete_id = concrete_id

    def __str__(self) -> str:
        return f"No concrete grammar with id '{self.concrete_id}'."


class GrammarWarning(UserWarning):
    """Base class for recoverable grammar diagnostics."""


class UnknownCategory(GrammarWarning):
    """A category is referenced but produced by no function. It renders as a leaf."""


class OutOfRangeSlot(GrammarWarning):
    """A category reference points past the argument list. It renders as a placeholder."""
