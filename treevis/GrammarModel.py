"""
GrammarModel holds the in-memory representation of one loaded grammar document.
A document consists of one abstract grammar and zero or more concrete grammars.

The module provides these classes:
- AbstractFunction: A single function of the abstract grammar
- AbstractGrammar: The categories and functions of the abstract syntax
- ConcreteFunction: A function of a concrete grammar with its linearization indices
- ConcreteGrammar: A language specific linearization of the abstract grammar
- Grammar: The abstract grammar together with its concrete grammars

The raw JSON document is validated once, in Grammar.from_document. Everything that
comes out of it is treated as read-only by the rest of the package.
"""

from typing import Any, Dict, List, Optional, Tuple

from treevis.GrammarErrors import MalformedGrammar
from treevis.Symbol import CategoryRef, Literal, Symbol, Token

class AbstractFunction:
    """
    A function of the abstract grammar. It consumes its argument categories
    and produces its result category.
    """
    def __init__(self, name: str, result_category: str, argument_categories: List[str]):
        self.name = name
        self.result_category = result_category
        self.argument_categories = tuple(argument_categories)

    def __repr__(self) -> str:
        args = " -> ".join(self.argument_categories + (self.result_category,))
        return f"AbstractFunction({self.name} : {args})"

class AbstractGrammar:
    """
    The abstract syntax of a grammar.

    Attributes:
        name (str): Name of the grammar
        start_category (str): Category the derivation tree starts from
        functions (Dict[str, AbstractFunction]): Functions by name, in declaration order
    """
    def __init__(self, name: str, start_category: str, functions: Dict[str, AbstractFunction]):
        self.name = name
        self.start_category = start_category
        self.functions = functions

    def functions_for_category(self, category: str) -> List[str]:
        """Names of all functions producing `category`, in declaration order"""
        return [fun.name for fun in self.functions.values() if fun.result_category == category]

    def categories(self) -> List[str]:
        """All categories named by some function, in the order they are first seen"""
        seen: Dict[str, None] = {}
        for fun in self.functions.values():
            seen.setdefault(fun.result_category)
            for arg in fun.argument_categories:
                seen.setdefault(arg)
        return list(seen)

    def leaf_categories(self) -> List[str]:
        """Categories that are used as arguments but produced by no function"""
        produced = {fun.result_category for fun in self.functions.values()}
        return [cat for cat in self.categories() if cat not in produced]

class ConcreteFunction:
    """A concrete function: its name and the sequence indices of its linearizations"""
    def __init__(self, name: str, linearization_indices: List[int]):
        self.name = name
        self.linearization_indices = tuple(linearization_indices)

    def __repr__(self) -> str:
        return f"ConcreteFunction({self.name}, lins={list(self.linearization_indices)})"

class ConcreteGrammar:
    """
    A concrete grammar for one language.

    Attributes:
        concrete_id (str): Key of the concrete grammar in the document
        language_tag (str): The language flag, or the concrete id if the flag is missing
        functions_by_fid (List[ConcreteFunction]): Function table, indexed by function id
        productions_by_category (Dict[str, List[int]]): Function ids per production key
        sequences (List[List[Symbol]]): The sequence table
        category_ranges (Dict[str, Tuple[int, int]]): First and last fid of each category
        total_fids (int): Number of fids used by the concrete grammar
    """
    def __init__(self,
                 concrete_id: str,
                 language_tag: str,
                 functions_by_fid: List[ConcreteFunction],
                 productions_by_category: Dict[str, List[int]],
                 sequences: List[List[Symbol]],
                 category_ranges: Optional[Dict[str, Tuple[int, int]]] = None,
                 total_fids: int = 0):
        self.concrete_id = concrete_id
        self.language_tag = language_tag
        self.functions_by_fid = functions_by_fid
        self.productions_by_category = productions_by_category
        self.sequences = sequences
        self.category_ranges = category_ranges or {}
        self.total_fids = total_fids

        self._functions_by_name: Dict[str, ConcreteFunction] = {}
        for fun in functions_by_fid:
            self._functions_by_name.setdefault(fun.name, fun)

    def function_by_name(self, name: str) -> Optional[ConcreteFunction]:
        """Get a concrete function by name, or None"""
        return self._functions_by_name.get(name)

    def functions_for_category(self, category: str) -> List[str]:
        """
        Names of the functions of all productions of `category`, in declaration order.

        Productions keyed by the category name are used directly. Compiled grammars key
        their productions by fid instead, in which case the category's fid range from
        `categories` is walked. The walk stops at `total_fids` when the
        grammar declares it. Each function name is listed once.
        """
        if category in self.productions_by_category:
            fids = list(self.productions_by_category[category])
        elif category in self.category_ranges:
            start, end = self.category_ranges[category]
            if self.total_fids > 0:
                end = min(end, self.total_fids - 1)
            fids = []
            for cat_fid in range(start, end + 1):
                fids.extend(self.productions_by_category.get(str(cat_fid), []))
        else:
            return []

        names: Dict[str, None] = {}
        for fid in fids:
            if 0 <= fid < len(self.functions_by_fid):
                names.setdefault(self.functions_by_fid[fid].name)
        return list(names)

class Grammar:
    """
    A loaded grammar document: one abstract grammar and its concrete grammars.
    Build it with Grammar.from_document.
    """
    def __init__(self, abstract: AbstractGrammar, concretes: Optional[Dict[str, ConcreteGrammar]] = None):
        self.abstract = abstract
        self.concretes: Dict[str, ConcreteGrammar] = concretes or {}

    @property
    def name(self) -> str:
        return self.abstract.name

    @property
    def start_category(self) -> str:
        return self.abstract.start_category

    def functions_for_category(self, category: str) -> List[str]:
        return self.abstract.functions_for_category(category)

    def concrete_language_tags(self) -> List[str]:
        """Language tags of all concrete grammars, in document order"""
        return [conc.language_tag for conc in self.concretes.values()]

    def concrete(self, concrete_id: str) -> Optional[ConcreteGrammar]:
        return self.concretes.get(concrete_id)

    @classmethod
    def from_document(cls, document: Any) -> "Grammar":
        """
        Validate a parsed JSON grammar document and build the grammar model.

        Args:
            document: The parsed JSON object

        Returns:
            Grammar: The immutable grammar model

        Raises:
            MalformedGrammar: If the document is not a grammar document
        """
        if not isinstance(document, dict):
            raise MalformedGrammar("Grammar document must be a JSON object.")
        if "abstract" not in document:
            raise MalformedGrammar("Grammar document has no 'abstract' field.")

        abstract = _parse_abstract(document["abstract"])

        concretes: Dict[str, ConcreteGrammar] = {}
        raw_concretes = document.get("concretes")
        if raw_concretes is not None:
            if not isinstance(raw_concretes, dict):
                raise MalformedGrammar("'concretes' must be an object.")
            for concrete_id, raw in raw_concretes.items():
                concretes[concrete_id] = _parse_concrete(concrete_id, raw)

        return cls(abstract, concretes)

# -------------------------------------------------------------------------
# Document parsing
# -------------------------------------------------------------------------
def _parse_abstract(raw: Any) -> AbstractGrammar:
    if not isinstance(raw, dict):
        raise MalformedGrammar("'abstract' must be an object.")

    start_category = raw.get("startcat")
    if not isinstance(start_category, str) or not start_category:
        raise MalformedGrammar("'abstract.startcat' must be a non-empty string.")

    name = raw.get("name", "")
    if not isinstance(name, str):
        raise MalformedGrammar("'abstract.name' must be a string.")

    raw_funs = raw.get("funs")
    if not isinstance(raw_funs, dict):
        raise MalformedGrammar("'abstract.funs' must be an object.")

    functions: Dict[str, AbstractFunction] = {}
    for fun_name, details in raw_funs.items():
        if not isinstance(details, dict):
            raise MalformedGrammar(f"Function '{fun_name}' must be an object.")
        cat = details.get("cat")
        if not isinstance(cat, str):
            raise MalformedGrammar(f"Function '{fun_name}' has no result category.")
        args = details.get("args", [])
        if not isinstance(args, list) or not all(isinstance(a, str) for a in args):
            raise MalformedGrammar(f"Arguments of function '{fun_name}' must be a list of category names.")
        functions[fun_name] = AbstractFunction(fun_name, cat, args)

    return AbstractGrammar(name, start_category, functions)

def _parse_concrete(concrete_id: str, raw: Any) -> ConcreteGrammar:
    where = f"concrete '{concrete_id}'"
    if not isinstance(raw, dict):
        raise MalformedGrammar(f"The {where} must be an object.")

    flags = raw.get("flags") or {}
    if not isinstance(flags, dict):
        raise MalformedGrammar(f"'flags' of {where} must be an object.")
    language_tag = flags.get("language") or concrete_id
    if not isinstance(language_tag, str):
        raise MalformedGrammar(f"The language flag of {where} must be a string.")

    functions: List[ConcreteFunction] = []
    for i, fun in enumerate(_expect_list(raw.get("functions", []), f"'functions' of {where}")):
        if not isinstance(fun, dict) or not isinstance(fun.get("name"), str):
            raise MalformedGrammar(f"Function #{i} of {where} has no name.")
        lins = fun.get("lins", [])
        if not isinstance(lins, list) or not all(_is_int(lin) for lin in lins):
            raise MalformedGrammar(f"'lins' of function '{fun['name']}' in {where} must be a list of integers.")
        functions.append(ConcreteFunction(fun["name"], lins))

    productions: Dict[str, List[int]] = {}
    raw_productions = raw.get("productions", {})
    if not isinstance(raw_productions, dict):
        raise MalformedGrammar(f"'productions' of {where} must be an object.")
    for key, prods in raw_productions.items():
        # Coercions carry no fid and are not function applications
        productions[key] = [p["fid"] for p in _expect_list(prods, f"productions of '{key}' in {where}")
                            if isinstance(p, dict) and _is_int(p.get("fid"))]

    sequences = [
        [_parse_symbol(sym, where) for sym in _expect_list(seq, f"sequence #{i} of {where}")]
        for i, seq in enumerate(_expect_list(raw.get("sequences", []), f"'sequences' of {where}"))
    ]

    for fun in functions:
        for lin in fun.linearization_indices:
            if not 0 <= lin < len(sequences):
                raise MalformedGrammar(f"Function '{fun.name}' of {where} points to missing sequence {lin}.")

    category_ranges: Dict[str, Tuple[int, int]] = {}
    raw_categories = raw.get("categories", {})
    if not isinstance(raw_categories, dict):
        raise MalformedGrammar(f"'categories' of {where} must be an object.")
    for cat, bounds in raw_categories.items():
        if not isinstance(bounds, dict) or not _is_int(bounds.get("start")) or not _is_int(bounds.get("end")):
            raise MalformedGrammar(f"Category '{cat}' of {where} needs integer 'start' and 'end'.")
        category_ranges[cat] = (bounds["start"], bounds["end"])

    total_fids = raw.get("totalfids", 0)
    if not _is_int(total_fids):
        raise MalformedGrammar(f"'totalfids' of {where} must be an integer.")

    return ConcreteGrammar(concrete_id, language_tag, functions, productions,
                           sequences, category_ranges, total_fids)

def _parse_symbol(raw: Any, where: str) -> Symbol:
    """Decode one JSON symbol of a sequence into a Symbol"""
    if not isinstance(raw, dict) or not isinstance(raw.get("type"), str):
        raise MalformedGrammar(f"Symbol without type in {where}.")
    sym_type = raw["type"]
    args = raw.get("args", [])
    if not isinstance(args, list):
        raise MalformedGrammar(f"Arguments of {sym_type} in {where} must be a list.")

    if sym_type == "SymKS":
        return Literal(" ".join(str(a) for a in args))
    if sym_type == "SymCat":
        if not args or not _is_int(args[0]):
            raise MalformedGrammar(f"SymCat in {where} needs an argument index.")
        return CategoryRef(args[0])
    if sym_type == "SymLit":
        return Token(tuple(args))
    if sym_type == "SymKP":
        # the first argument holds the default tokens, the rest are variants
        default = args[0] if args else []
        if not isinstance(default, list):
            raise MalformedGrammar(f"SymKP in {where} needs a token list.")
        return Literal(" ".join(str(t) for t in default))
    if sym_type == "SymBIND":
        return Literal("&+")
    if sym_type in ("SymSOFT_BIND", "SymSOFT_SPACE", "SymNE"):
        return Token(())
    raise MalformedGrammar(f"Unknown symbol type '{sym_type}' in {where}.")

def _expect_list(value: Any, what: str) -> list:
    if not isinstance(value, list):
        raise MalformedGrammar(f"{what} must be a list.")
    return value

def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
