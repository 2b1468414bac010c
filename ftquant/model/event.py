"""Events of a fault-tree model: house events, basic events, and gates.

The three kinds form a closed variant (`Event`). Analysis code dispatches on
the concrete type, so adding a kind means updating every match site.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from ftquant.model.expression import Expression
from ftquant.model.formula import Formula
from ftquant.types.base import Flavor


@dataclass
class HouseEvent:
    """Leaf event with a fixed Boolean state.

    Attributes:
        name: Unique identifier within the model.
        state: True if the event is certain to occur.
        label: Display text.
        container: Name of the fault tree defining the event, if any.
        attrs: Additional metadata.
    """

    name: str
    state: bool = False
    label: str = ""
    container: Optional[str] = None
    attrs: Dict[str, Any] = field(default_factory=dict)


@dataclass
class BasicEvent:
    """Leaf event representing a component failure.

    Attributes:
        name: Unique identifier within the model.
        expression: Probability expression; required for probability analysis.
        flavor: Basic, undeveloped, or conditional. Informational only.
        label: Display text.
        container: Name of the fault tree defining the event, if any.
        attrs: Additional metadata.
    """

    name: str
    expression: Optional[Expression] = None
    flavor: Flavor = Flavor.BASIC
    label: str = ""
    container: Optional[str] = None
    attrs: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Gate:
    """Intermediate event defined by a Boolean formula over other events.

    Attributes:
        name: Unique identifier within the model.
        formula: Formula over event names.
        label: Display text.
        container: Name of the fault tree defining the gate, if any.
        attrs: Additional metadata.
    """

    name: str
    formula: Formula
    label: str = ""
    container: Optional[str] = None
    attrs: Dict[str, Any] = field(default_factory=dict)


Event = Union[HouseEvent, BasicEvent, Gate]
