"""Fault-tree containers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class FaultTree:
    """Named container of gates with a single top gate.

    The container lists the gates defined in it. Basic and house events are
    referenced by name and may be shared between fault trees. The top gate is
    the only listed gate that no other listed gate references; it is resolved
    by `Model.top_gates`.

    Attributes:
        name: Unique fault tree name.
        gates: Names of gates defined in this fault tree, in definition order.
        label: Display text.
        attrs: Additional metadata.
    """

    name: str
    gates: List[str] = field(default_factory=list)
    label: str = ""
    attrs: Dict[str, Any] = field(default_factory=dict)
