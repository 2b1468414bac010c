"""Base enums and constants for fault-tree analysis."""

from __future__ import annotations

from enum import IntEnum

#: Slack allowed on probability bounds before a value is reported out of range.
PROBABILITY_EPSILON = 1e-9


class _ParsableEnum(IntEnum):
    """IntEnum with case-insensitive parsing from strings like "rare-event"."""

    @classmethod
    def from_string(cls, value: str):
        """Parse a string into an enum member.

        Dashes and spaces are accepted in place of underscores.

        Args:
            value: Case-insensitive member name (e.g., "rare-event", "MCUB").

        Returns:
            The corresponding enum member.

        Raises:
            ValueError: If the string doesn't match any enum member.
        """
        key = value.strip().upper().replace("-", "_").replace(" ", "_")
        try:
            return cls[key]
        except KeyError:
            valid = ", ".join(e.name.lower().replace("_", "-") for e in cls)
            raise ValueError(
                f"Invalid {cls.__name__} '{value}'. Valid values are: {valid}"
            ) from None


class Connective(_ParsableEnum):
    """Boolean connectives of gate formulas."""

    AND = 1
    OR = 2
    ATLEAST = 3  # k-out-of-n; requires Formula.min_number
    XOR = 4
    NOT = 5
    NAND = 6
    NOR = 7
    NULL = 8  # pass-through of a single argument


class Flavor(_ParsableEnum):
    """Flavor of a basic event; it does not change the analysis semantics."""

    BASIC = 1
    UNDEVELOPED = 2
    CONDITIONAL = 3


class Approximation(_ParsableEnum):
    """Quantification method for the top-event probability."""

    #: Exact probability of the union of products.
    NONE = 1
    #: Sum of product probabilities. Overestimates when products overlap.
    RARE_EVENT = 2
    #: Min-cut upper bound: 1 - prod(1 - P(product)).
    MCUB = 3


class Algorithm(_ParsableEnum):
    """Product generation algorithm."""

    BDD = 1
    MOCUS = 2


class Status(_ParsableEnum):
    """Outcome of a fault-tree analysis."""

    COMPLETE = 1
    #: A product order/count bound or the time limit was hit.
    TRUNCATED = 2
    FAILED = 3
    CANCELLED = 4
