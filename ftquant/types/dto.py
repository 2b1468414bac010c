"""Immutable value types produced by the product generator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True, order=True)
class Literal:
    """One event occurrence inside a product.

    Attributes:
        event: Basic event name.
        complement: True for the negated literal (event does not occur).
    """

    event: str
    complement: bool = False

    def __str__(self) -> str:
        return f"not {self.event}" if self.complement else self.event

    def __neg__(self) -> "Literal":
        return Literal(self.event, not self.complement)


@dataclass(frozen=True)
class Product:
    """A minimal cut set or prime implicant.

    Literals are kept sorted by event name so equal products compare equal.
    An empty product is the unity product: the top event is certain.

    Attributes:
        literals: Conjunction of literals sorted by event name.
        probability: Product probability, or None when not quantified.
        contribution: probability / top-event probability, or None.
    """

    literals: Tuple[Literal, ...]
    probability: float | None = None
    contribution: float | None = None

    @property
    def order(self) -> int:
        """Number of literals in the product."""
        return len(self.literals)

    @property
    def is_unity(self) -> bool:
        return not self.literals

    @property
    def events(self) -> Tuple[str, ...]:
        """Names of events in the product regardless of polarity."""
        return tuple(lit.event for lit in self.literals)

    def sort_key(self) -> tuple:
        """Order then literal names: the stable presentation order."""
        return (self.order, tuple((lit.event, lit.complement) for lit in self.literals))

    def __str__(self) -> str:
        if not self.literals:
            return "{}"
        return "{" + ", ".join(str(lit) for lit in self.literals) + "}"
