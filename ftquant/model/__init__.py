"""Fault-tree model package.

This package defines the data model handed to the engine: house events, basic
events with probability expressions, gates with Boolean formulas, fault-tree
containers, common-cause failure groups, and the `Model` arena that indexes
them by name. Structural checks live in `ftquant.model.validation`.
"""

from ftquant.model.ccf import CcfGroup, CcfModel
from ftquant.model.event import BasicEvent, Event, Gate, HouseEvent
from ftquant.model.expression import (
    BetaDeviate,
    CcfExpression,
    ConstantExpression,
    ExponentialExpression,
    Expression,
    LogNormalDeviate,
    NormalDeviate,
    NullExpression,
    UniformDeviate,
)
from ftquant.model.fault_tree import FaultTree
from ftquant.model.formula import (
    AND,
    ATLEAST,
    NAND,
    NOR,
    NOT,
    NULL,
    OR,
    XOR,
    Formula,
)
from ftquant.model.model import Model

__all__ = [
    # Containers
    "Model",
    "FaultTree",
    "CcfGroup",
    "CcfModel",
    # Events
    "Event",
    "HouseEvent",
    "BasicEvent",
    "Gate",
    # Formulas
    "Formula",
    "AND",
    "OR",
    "NOT",
    "XOR",
    "NAND",
    "NOR",
    "NULL",
    "ATLEAST",
    # Expressions
    "Expression",
    "ConstantExpression",
    "ExponentialExpression",
    "NullExpression",
    "UniformDeviate",
    "NormalDeviate",
    "LogNormalDeviate",
    "BetaDeviate",
    "CcfExpression",
]
