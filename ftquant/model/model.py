"""Model container for fault-tree analysis.

The `Model` is an arena of events indexed by unique name. Gates reference
their arguments by name, fault trees list the gates they define, and CCF
groups list their member basic events. Insertion rejects duplicate names;
the remaining structural rules are checked by `ftquant.model.validation`
before analysis.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional

import networkx as nx

from ftquant.errors import ValidationError, ValidationRule
from ftquant.logging import get_logger
from ftquant.model.event import BasicEvent, Event, Gate, HouseEvent
from ftquant.model.fault_tree import FaultTree

if TYPE_CHECKING:
    from ftquant.model.ccf import CcfGroup

LOGGER = get_logger(__name__)


@dataclass
class Model:
    """A container for fault trees, events, and CCF groups.

    Attributes:
        name: Optional model name.
        fault_trees: Mapping from fault tree name -> FaultTree.
        gates: Mapping from gate name -> Gate.
        basic_events: Mapping from basic event name -> BasicEvent.
        house_events: Mapping from house event name -> HouseEvent.
        ccf_groups: Mapping from CCF group name -> CcfGroup.
        attrs: Optional metadata about the model.
    """

    name: str = ""
    fault_trees: Dict[str, FaultTree] = field(default_factory=dict)
    gates: Dict[str, Gate] = field(default_factory=dict)
    basic_events: Dict[str, BasicEvent] = field(default_factory=dict)
    house_events: Dict[str, HouseEvent] = field(default_factory=dict)
    ccf_groups: Dict[str, "CcfGroup"] = field(default_factory=dict)
    attrs: Dict[str, Any] = field(default_factory=dict)

    def add_fault_tree(self, fault_tree: FaultTree) -> None:
        """Add a fault tree container.

        Gates already listed in the container must be added separately with
        `add_gate`; listing is what assigns them to the container.

        Raises:
            ValidationError: If a fault tree with the same name exists.
        """
        if fault_tree.name in self.fault_trees:
            raise ValidationError(
                ValidationRule.DUPLICATE_FAULT_TREE,
                fault_tree.name,
                f"Fault tree '{fault_tree.name}' already exists in the model.",
            )
        self.fault_trees[fault_tree.name] = fault_tree

    def add_gate(self, gate: Gate, fault_tree: Optional[str] = None) -> None:
        """Add a gate, optionally defining it in a fault tree.

        Args:
            gate: Gate to add.
            fault_tree: Name of an existing fault tree to define the gate in.
                Defaults to ``gate.container``.

        Raises:
            ValidationError: If an event with the same name exists.
            KeyError: If the fault tree does not exist.
        """
        self._check_unique(gate.name)
        container = fault_tree if fault_tree is not None else gate.container
        if container is not None:
            if container not in self.fault_trees:
                raise KeyError(f"Fault tree '{container}' not found in model.")
            tree = self.fault_trees[container]
            if gate.name not in tree.gates:
                tree.gates.append(gate.name)
            gate.container = container
        self.gates[gate.name] = gate

    def add_basic_event(self, event: BasicEvent) -> None:
        """Add a basic event.

        Raises:
            ValidationError: If an event with the same name exists.
        """
        self._check_unique(event.name)
        self.basic_events[event.name] = event

    def add_house_event(self, event: HouseEvent) -> None:
        """Add a house event.

        Raises:
            ValidationError: If an event with the same name exists.
        """
        self._check_unique(event.name)
        self.house_events[event.name] = event

    def add_ccf_group(self, group: "CcfGroup") -> None:
        """Add a common-cause failure group.

        Raises:
            ValidationError: If a group with the same name exists.
        """
        if group.name in self.ccf_groups:
            raise ValidationError(
                ValidationRule.CCF_GROUP,
                group.name,
                f"CCF group '{group.name}' already exists in the model.",
            )
        self.ccf_groups[group.name] = group

    def add_event(self, event: Event, fault_tree: Optional[str] = None) -> None:
        """Add any kind of event, dispatching on its type."""
        if isinstance(event, Gate):
            self.add_gate(event, fault_tree)
        elif isinstance(event, BasicEvent):
            self.add_basic_event(event)
        elif isinstance(event, HouseEvent):
            self.add_house_event(event)
        else:
            raise TypeError(f"Unsupported event type: {type(event).__name__}")

    def _check_unique(self, name: str) -> None:
        if self.has_event(name):
            raise ValidationError(
                ValidationRule.DUPLICATE_EVENT,
                name,
                f"The event with name '{name}' already exists.",
            )

    def has_event(self, name: str) -> bool:
        return name in self.gates or name in self.basic_events or name in self.house_events

    def get_event(self, name: str) -> Event:
        """Return the event with the given name.

        Raises:
            KeyError: If no event has the name.
        """
        if name in self.gates:
            return self.gates[name]
        if name in self.basic_events:
            return self.basic_events[name]
        if name in self.house_events:
            return self.house_events[name]
        raise KeyError(f"Event '{name}' not found in model.")

    def events(self) -> Iterator[Event]:
        """Iterate over all events: gates, then basic events, then house events."""
        yield from self.gates.values()
        yield from self.basic_events.values()
        yield from self.house_events.values()

    def top_gates(self, fault_tree: str) -> List[str]:
        """Return gates of a fault tree that no other gate of the tree references.

        Args:
            fault_tree: Fault tree name.

        Returns:
            Top gate names in definition order.

        Raises:
            KeyError: If the fault tree does not exist.
        """
        tree = self.fault_trees[fault_tree]
        members = [name for name in tree.gates if name in self.gates]
        referenced = set()
        for name in members:
            for arg in self.gates[name].formula.iter_event_names():
                if arg != name:
                    referenced.add(arg)
        return [name for name in members if name not in referenced]

    def to_networkx(self) -> nx.DiGraph:
        """Export the event graph as a NetworkX DiGraph.

        Nodes are event names with a ``kind`` attribute ("gate", "basic",
        "house"); edges point from a gate to each referenced event, in formula
        order. Undefined references appear as nodes with kind "undefined".

        Returns:
            Directed graph of gate-to-argument references.
        """
        graph = nx.DiGraph()
        for gate in self.gates.values():
            graph.add_node(gate.name, kind="gate", container=gate.container)
        for event in self.basic_events.values():
            graph.add_node(event.name, kind="basic", container=event.container)
        for event in self.house_events.values():
            graph.add_node(event.name, kind="house", container=event.container)
        for gate in self.gates.values():
            for arg in gate.formula.iter_event_names():
                if arg not in graph:
                    graph.add_node(arg, kind="undefined", container=None)
                graph.add_edge(gate.name, arg)
        return graph

    def reachable_events(self, top: str) -> List[str]:
        """Return the names of events reachable from ``top`` (inclusive).

        The order is the depth-first preorder following formula argument order.
        """
        return list(nx.dfs_preorder_nodes(self.to_networkx(), source=top))
