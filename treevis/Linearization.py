"""
This module turns the symbolic sequences of a concrete grammar into readable strings.
The functions are pure: they know nothing about derivation trees and are only called
for the concrete grammar that is currently displayed.
"""

import warnings
from typing import List, Sequence

from treevis.GrammarErrors import OutOfRangeSlot
from treevis.GrammarModel import ConcreteFunction
from treevis.Symbol import CategoryRef, Literal, Symbol, Token

def resolve_symbol(symbol: Symbol, argument_category_names: Sequence[str]) -> str:
    """
    Returns the text contribution of a single symbol.

    Args:
        symbol (Symbol): The symbol to resolve
        argument_category_names (Sequence[str]): Argument categories of the owning function

    Returns:
        str: The literal text, the referenced category name, or the joined token values.
             A category reference outside the argument list gives a "{n}" placeholder.
    """
    if isinstance(symbol, Literal):
        return symbol.text
    if isinstance(symbol, CategoryRef):
        if 0 <= symbol.slot_index < len(argument_category_names):
            return argument_category_names[symbol.slot_index]
        warnings.warn(
            f"Category reference {symbol.slot_index} is outside the {len(argument_category_names)} argument(s).",
            OutOfRangeSlot,
            stacklevel=2,
        )
        return str(symbol)
    if isinstance(symbol, Token):
        return str(symbol)
    raise TypeError(f"Not a symbol: {symbol!r}")

def resolve_sequence(sequence: Sequence[Symbol], argument_category_names: Sequence[str]) -> str:
    """Resolve every symbol of a sequence and join the results with single spaces"""
    return " ".join(resolve_symbol(sym, argument_category_names) for sym in sequence)

def resolve_function_linearizations(fun: ConcreteFunction,
                                    table: Sequence[Sequence[Symbol]],
                                    argument_category_names: Sequence[str]) -> List[str]:
    """
    Resolve all linearizations of a concrete function, one string per linearization index.

    Args:
        fun (ConcreteFunction): The concrete function
        table (Sequence[Sequence[Symbol]]): The sequence table of the concrete grammar
        argument_category_names (Sequence[str]): Argument categories of the abstract function

    Returns:
        List[str]: The resolved strings, in the order of `fun.linearization_indices`
    """
    return [resolve_sequence(table[index], argument_category_names)
            for index in fun.linearization_indices]
