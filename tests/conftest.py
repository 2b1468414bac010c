"""Global pytest configuration and shared fault-tree fixtures.

Fixtures build small models used across the test packages:

- ``or_and_model``: Top = OR(A, AND(B, C)) with A=0.1, B=0.2, C=0.3
- ``xor_model``: Top = XOR(A, B) with A=B=0.5
- ``two_train_model``: two redundant trains of a valve and a pump
- ``and3_model``: Top = AND(A, B, C)

``make_model`` returns a builder for one-off models.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

import pytest

from ftquant.model import (
    AND,
    OR,
    XOR,
    BasicEvent,
    ConstantExpression,
    FaultTree,
    Formula,
    Gate,
    HouseEvent,
    Model,
)

ModelFactory = Callable[..., Model]


def _build_model(
    gates: Dict[str, Formula],
    probabilities: Optional[Dict[str, Optional[float]]] = None,
    houses: Optional[Dict[str, bool]] = None,
    fault_tree: str = "FT",
) -> Model:
    model = Model()
    model.add_fault_tree(FaultTree(fault_tree))
    for name, p in (probabilities or {}).items():
        expression = ConstantExpression(p) if p is not None else None
        model.add_basic_event(BasicEvent(name, expression))
    for name, state in (houses or {}).items():
        model.add_house_event(HouseEvent(name, state))
    for name, formula in gates.items():
        model.add_gate(Gate(name, formula), fault_tree)
    return model


@pytest.fixture
def make_model() -> ModelFactory:
    """Builder: make_model(gates, probabilities, houses=None, fault_tree="FT")."""
    return _build_model


@pytest.fixture
def or_and_model() -> Model:
    return _build_model(
        {"Top": OR("A", "G1"), "G1": AND("B", "C")},
        {"A": 0.1, "B": 0.2, "C": 0.3},
    )


@pytest.fixture
def xor_model() -> Model:
    return _build_model({"Top": XOR("A", "B")}, {"A": 0.5, "B": 0.5})


@pytest.fixture
def and3_model() -> Model:
    return _build_model({"Top": AND("A", "B", "C")}, {"A": 0.1, "B": 0.2, "C": 0.3})


@pytest.fixture
def two_train_model() -> Model:
    return _build_model(
        {
            "TopEvent": AND("TrainOne", "TrainTwo"),
            "TrainOne": OR("ValveOne", "PumpOne"),
            "TrainTwo": OR("ValveTwo", "PumpTwo"),
        },
        {"ValveOne": 0.5, "ValveTwo": 0.5, "PumpOne": 0.7, "PumpTwo": 0.7},
        fault_tree="TwoTrain",
    )
