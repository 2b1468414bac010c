"""Structural validation of fault-tree models.

Checks run before any analysis step:

- formula arity per connective and duplicate arguments;
- self-cycles (a gate referencing itself in its own formula);
- undefined references;
- cycles through the gate graph, found with a three-color DFS;
- exactly one top gate per fault tree.

Every failure raises `ValidationError` naming the rule and the entity. Nothing
is coerced or dropped.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

from ftquant.errors import ValidationError, ValidationRule
from ftquant.model.formula import Formula
from ftquant.types.base import Connective

if TYPE_CHECKING:
    from ftquant.model.model import Model


def validate_formula(gate: str, formula: Formula) -> None:
    """Check arity, duplicate arguments, and self-reference of one formula.

    Nested formulas are checked recursively.

    Args:
        gate: Name of the gate owning the formula, for error reporting.
        formula: Formula to check.

    Raises:
        ValidationError: On the first violated rule.
    """
    _check_arity(gate, formula)

    seen = set()
    for arg in formula.args:
        if arg in seen:
            raise ValidationError(
                ValidationRule.DUPLICATE_ARGUMENT,
                gate,
                f"The argument '{arg}' is already in formula of gate '{gate}'.",
            )
        seen.add(arg)
        if isinstance(arg, Formula):
            validate_formula(gate, arg)
        elif arg == gate:
            raise ValidationError(
                ValidationRule.SELF_CYCLE,
                gate,
                f"The argument '{arg}' would introduce a self-cycle.",
                cycle=(gate, gate),
            )


def _check_arity(gate: str, formula: Formula) -> None:
    connective = formula.connective
    num_args = len(formula.args)
    name = connective.name.lower()

    if connective in (Connective.NOT, Connective.NULL):
        if num_args != 1:
            raise ValidationError(
                ValidationRule.ARITY,
                gate,
                f"{name} connective requires a single argument (gate '{gate}').",
            )
    elif connective == Connective.XOR:
        if num_args != 2:
            raise ValidationError(
                ValidationRule.ARITY,
                gate,
                f"{name} connective requires exactly 2 arguments (gate '{gate}').",
            )
    elif connective == Connective.ATLEAST:
        vote = formula.min_number
        if vote is None or vote < 2:
            raise ValidationError(
                ValidationRule.ARITY,
                gate,
                f"{name} connective requires a min number of at least 2 (gate '{gate}').",
            )
        if num_args <= vote:
            raise ValidationError(
                ValidationRule.ARITY,
                gate,
                f"{name} connective requires at-least {vote + 1} arguments "
                f"(gate '{gate}').",
            )
    else:
        if num_args < 2:
            raise ValidationError(
                ValidationRule.ARITY,
                gate,
                f"{name} connective requires 2 or more arguments (gate '{gate}').",
            )
    if connective != Connective.ATLEAST and formula.min_number is not None:
        raise ValidationError(
            ValidationRule.ARITY,
            gate,
            f"{name} connective does not take a min number (gate '{gate}').",
        )


def validate_references(model: "Model", gates: Iterable[str]) -> None:
    """Ensure every argument of the given gates names an event in the model.

    Raises:
        ValidationError: UNDEFINED_REFERENCE for the first unknown name.
    """
    for name in gates:
        for arg in model.gates[name].formula.iter_event_names():
            if not model.has_event(arg):
                raise ValidationError(
                    ValidationRule.UNDEFINED_REFERENCE,
                    name,
                    f"Gate '{name}' references undefined event '{arg}'.",
                )


def find_cycle(model: "Model", roots: Optional[Iterable[str]] = None) -> List[str]:
    """Return a gate cycle reachable from ``roots`` or an empty list.

    Uses an iterative DFS with coloring so deep trees do not hit the
    recursion limit: WHITE (0) = unvisited, GRAY (1) = on the current path,
    BLACK (2) = fully processed.

    Args:
        model: Model whose gate graph is searched.
        roots: Gate names to start from; all gates when None.

    Returns:
        Gate names along the cycle, starting and ending with the same gate.
    """
    WHITE, GRAY, BLACK = 0, 1, 2
    color: Dict[str, int] = {}
    start_nodes = list(model.gates) if roots is None else list(roots)

    for root in start_nodes:
        if color.get(root, WHITE) != WHITE or root not in model.gates:
            continue
        path: List[str] = [root]
        stack = [iter(_gate_args(model, root))]
        color[root] = GRAY
        while stack:
            child = next(stack[-1], None)
            if child is None:
                stack.pop()
                color[path.pop()] = BLACK
                continue
            state = color.get(child, WHITE)
            if state == GRAY:
                return path[path.index(child) :] + [child]
            if state == WHITE:
                color[child] = GRAY
                path.append(child)
                stack.append(iter(_gate_args(model, child)))
    return []


def _gate_args(model: "Model", name: str) -> List[str]:
    # Only gates can continue a cycle; leaves and unknown names are skipped.
    return [
        arg
        for arg in dict.fromkeys(model.gates[name].formula.iter_event_names())
        if arg in model.gates
    ]


def check_acyclic(model: "Model", roots: Optional[Iterable[str]] = None) -> None:
    """Raise a CYCLE (or SELF_CYCLE) ValidationError if the gate graph has a cycle."""
    cycle = find_cycle(model, roots)
    if not cycle:
        return
    if len(cycle) == 2:
        raise ValidationError(
            ValidationRule.SELF_CYCLE,
            cycle[0],
            f"Gate '{cycle[0]}' would introduce a self-cycle.",
            cycle=tuple(cycle),
        )
    cycle_str = " -> ".join(cycle)
    raise ValidationError(
        ValidationRule.CYCLE,
        cycle[0],
        f"Detected a cycle through gate '{cycle[0]}': {cycle_str}",
        cycle=tuple(cycle),
    )


def top_gate(model: "Model", fault_tree: str) -> str:
    """Return the single top gate of a fault tree.

    Raises:
        ValidationError: TOP_GATE if the tree has no top gate or several.
    """
    tops = model.top_gates(fault_tree)
    if len(tops) != 1:
        found = ", ".join(tops) if tops else "none"
        raise ValidationError(
            ValidationRule.TOP_GATE,
            fault_tree,
            f"Fault tree '{fault_tree}' must have a single top-gate (found: {found}).",
        )
    return tops[0]


def reachable_gates(model: "Model", top: str) -> List[str]:
    """Gates reachable from ``top`` in depth-first preorder.

    Only defined gates are followed, so this is safe before reference checks.
    """
    order: List[str] = []
    seen = {top}
    stack = [top]
    while stack:
        name = stack.pop()
        order.append(name)
        children = _gate_args(model, name)
        for child in reversed(children):
            if child not in seen:
                seen.add(child)
                stack.append(child)
    return order


def validate_fault_tree(model: "Model", fault_tree: str) -> str:
    """Validate everything one fault tree depends on.

    Cycles are searched from every gate the tree defines before the top gate
    is identified, since a cycle through the top gate leaves the tree without
    an unreferenced gate. The remaining checks cover only gates reachable
    from the top gate, so a defect elsewhere in the model does not block this
    tree.

    Args:
        model: Model holding the fault tree.
        fault_tree: Fault tree name.

    Returns:
        The top gate name.

    Raises:
        ValidationError: On the first violated rule.
        KeyError: If the fault tree does not exist.
    """
    check_acyclic(model, model.fault_trees[fault_tree].gates)
    top = top_gate(model, fault_tree)
    gates = reachable_gates(model, top)
    for name in gates:
        validate_formula(name, model.gates[name].formula)
    validate_references(model, gates)
    return top
