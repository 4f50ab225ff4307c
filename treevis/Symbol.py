from dataclasses import dataclass
from typing import Tuple, Union

@dataclass(frozen=True)
class Literal:
    """Fixed surface text of a linearization sequence"""
    text: str                       # The text as it appears in the output

    def __str__(self) -> str:
        return self.text

@dataclass(frozen=True)
class CategoryRef:
    """Reference to an argument of the function that owns the sequence"""
    slot_index: int                 # Position in the owning function's argument list

    def __str__(self) -> str:
        return "{" + str(self.slot_index) + "}"

@dataclass(frozen=True)
class Token:
    """Opaque token data, rendered as its values glued together"""
    values: Tuple = ()              # Primitive values (strings or numbers)

    def __str__(self) -> str:
        return "".join(str(v) for v in self.values)

Symbol = Union[Literal, CategoryRef, Token]
