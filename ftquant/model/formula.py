"""Boolean formulas of gates.

A `Formula` holds a connective and an ordered tuple of arguments. Arguments
are event names (references into the model) or nested formulas. Formulas
never hold event objects, so the model stays an arena indexed by name and
cycles can only be detected, never created by ownership.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple, Union

from ftquant.types.base import Connective

Argument = Union[str, "Formula"]


@dataclass(frozen=True)
class Formula:
    """Connective applied to arguments.

    Attributes:
        connective: Boolean connective.
        args: Event names or nested formulas. Order is kept for display only.
        min_number: Vote number for ATLEAST; None for other connectives.
    """

    connective: Connective
    args: Tuple[Argument, ...]
    min_number: Optional[int] = None

    def __post_init__(self) -> None:
        if isinstance(self.connective, str):
            object.__setattr__(self, "connective", Connective.from_string(self.connective))
        if not isinstance(self.args, tuple):
            object.__setattr__(self, "args", tuple(self.args))

    def event_args(self) -> Tuple[str, ...]:
        """Event names referenced directly by this formula (not nested ones)."""
        return tuple(arg for arg in self.args if isinstance(arg, str))

    def formula_args(self) -> Tuple["Formula", ...]:
        return tuple(arg for arg in self.args if isinstance(arg, Formula))

    def iter_event_names(self) -> Iterator[str]:
        """Yield every event name referenced by this formula or nested formulas."""
        for arg in self.args:
            if isinstance(arg, Formula):
                yield from arg.iter_event_names()
            else:
                yield arg

    def __str__(self) -> str:
        inner = ", ".join(str(arg) for arg in self.args)
        if self.connective == Connective.ATLEAST:
            return f"atleast{self.min_number}({inner})"
        return f"{self.connective.name.lower()}({inner})"


def AND(*args: Argument) -> Formula:
    return Formula(Connective.AND, args)


def OR(*args: Argument) -> Formula:
    return Formula(Connective.OR, args)


def NOT(arg: Argument) -> Formula:
    return Formula(Connective.NOT, (arg,))


def XOR(*args: Argument) -> Formula:
    return Formula(Connective.XOR, args)


def NAND(*args: Argument) -> Formula:
    return Formula(Connective.NAND, args)


def NOR(*args: Argument) -> Formula:
    return Formula(Connective.NOR, args)


def NULL(arg: Argument) -> Formula:
    return Formula(Connective.NULL, (arg,))


def ATLEAST(min_number: int, *args: Argument) -> Formula:
    return Formula(Connective.ATLEAST, args, min_number=min_number)
