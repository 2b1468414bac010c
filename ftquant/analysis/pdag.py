"""Formula normalization into a propositional DAG (PDAG).

`normalize` validates one fault tree and rewrites the formula graph under its
top gate into AND/OR gates over basic-event literals:

- XOR(a, b) becomes (a AND NOT b) OR (NOT a AND b).
- NAND and NOR become negated AND and OR.
- NULL(a) becomes a.
- NOT is pushed down to basic events by De Morgan (negation normal form).
- ATLEAST(k, args) expands to the OR of all k-combinations while the argument
  count is at most ``atleast_expansion_limit``. Larger gates use the threshold
  encoding ``T(k, i) = (x_i AND T(k-1, i+1)) OR T(k, i+1)`` with shared
  sub-gates: at most k * n gates instead of C(n, k) conjunctions.
- House events become constants and constants fold through AND/OR.

References are integers. Basic events are variables ``1..n`` in depth-first
preorder from the top gate; a negative value is the complemented literal.
Gates are numbered from ``n + 1`` and are never complemented. Identical gates
are shared through a unique table. The root is a reference or a Python bool
when the whole tree folds to a constant.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, List, Mapping, Sequence, Tuple, Union

from ftquant.analysis.dag import fold
from ftquant.config import AnalysisSettings
from ftquant.logging import get_logger
from ftquant.model.event import BasicEvent, Gate, HouseEvent
from ftquant.model.formula import Formula
from ftquant.model.model import Model
from ftquant.model.validation import validate_fault_tree
from ftquant.types.base import Connective

logger = get_logger(__name__)

Ref = Union[int, bool]

_AND = Connective.AND
_OR = Connective.OR


@dataclass
class Pdag:
    """Normalized fault-tree formula.

    Attributes:
        top: Name of the top gate the graph was built from.
        variables: Basic event names; variable ``i`` is ``variables[i - 1]``.
        gates: (AND or OR, argument refs) for gate ``len(variables) + 1 + j``.
        root: Root reference, or a bool for a constant function.
        complements: False when negative literals were replaced by TRUE.
    """

    top: str
    variables: List[str] = field(default_factory=list)
    gates: List[Tuple[Connective, Tuple[int, ...]]] = field(default_factory=list)
    root: Ref = False
    complements: bool = True

    @property
    def num_variables(self) -> int:
        return len(self.variables)

    def is_constant(self) -> bool:
        return isinstance(self.root, bool)

    def is_gate(self, ref: int) -> bool:
        return ref > self.num_variables

    def gate(self, ref: int) -> Tuple[Connective, Tuple[int, ...]]:
        return self.gates[ref - self.num_variables - 1]

    def variable_name(self, literal: int) -> str:
        return self.variables[abs(literal) - 1]

    def evaluate(self, assignment: Mapping[str, bool]) -> bool:
        """Evaluate the formula for basic-event states.

        Args:
            assignment: Basic event name -> occurs; missing names are False.
        """
        if isinstance(self.root, bool):
            return self.root

        def expand(ref: int) -> Tuple[int, ...]:
            return self.gate(ref)[1] if self.is_gate(ref) else ()

        def combine(ref: int, values: List[bool]) -> bool:
            if not self.is_gate(ref):
                state = bool(assignment.get(self.variable_name(ref), False))
                return state if ref > 0 else not state
            return all(values) if self.gate(ref)[0] == _AND else any(values)

        return fold(self.root, expand, combine, {})

    def to_formula(self) -> Union[Formula, str, bool]:
        """Render the graph back as a nested AND/OR/NOT formula over event names.

        Returns:
            A Formula, a single event name, or a bool for constant functions.
        """
        if isinstance(self.root, bool):
            return self.root

        def expand(ref: int) -> Tuple[int, ...]:
            return self.gate(ref)[1] if self.is_gate(ref) else ()

        def combine(ref: int, values: List[Union[Formula, str]]) -> Union[Formula, str]:
            if not self.is_gate(ref):
                name = self.variable_name(ref)
                return name if ref > 0 else Formula(Connective.NOT, (name,))
            return Formula(self.gate(ref)[0], tuple(values))

        return fold(self.root, expand, combine, {})

    def __str__(self) -> str:
        return str(self.to_formula())


#: Builder work item: an event name or a nested formula, and whether it is negated.
_Key = Tuple[Union[str, Formula], bool]


class _Builder:
    """Builds a Pdag from validated model formulas."""

    def __init__(
        self,
        model: Model,
        top: str,
        variables: Sequence[str],
        expansion_limit: int,
        complements: bool,
    ) -> None:
        self.model = model
        self.pdag = Pdag(top=top, variables=list(variables), complements=complements)
        self.index = {name: i + 1 for i, name in enumerate(variables)}
        self.expansion_limit = expansion_limit
        self.complements = complements
        self._unique: Dict[Tuple[Connective, Tuple[int, ...]], int] = {}
        self._memo: Dict[_Key, Ref] = {}

    def build(self) -> Pdag:
        self.pdag.root = fold((self.pdag.top, False), self.expand, self.combine, self._memo)
        return self.pdag

    def expand(self, key: _Key) -> Tuple[_Key, ...]:
        """Sub-items whose references the item is built from."""
        node, negated = key
        if not isinstance(node, Formula):
            event = self.model.get_event(node)
            if isinstance(event, Gate):
                return ((event.formula, negated),)
            if isinstance(event, (BasicEvent, HouseEvent)):
                return ()
            raise TypeError(f"Unsupported event type: {type(event).__name__}")

        connective = node.connective
        args = node.args
        if connective == Connective.NULL:
            return ((args[0], negated),)
        if connective == Connective.NOT:
            return ((args[0], not negated),)
        if connective in (Connective.NAND, Connective.NOR):
            negated = not negated
        if connective == Connective.XOR:
            a, b = args
            return (a, False), (b, not negated), (a, True), (b, negated)
        if connective in (_AND, _OR, Connective.NAND, Connective.NOR, Connective.ATLEAST):
            return tuple((arg, negated) for arg in args)
        raise ValueError(f"Unsupported connective: {connective}")

    def combine(self, key: _Key, refs: List[Ref]) -> Ref:
        node, negated = key
        if not isinstance(node, Formula):
            event = self.model.get_event(node)
            if isinstance(event, BasicEvent):
                literal = self.index[node]
                if not negated:
                    return literal
                # Cut-set analysis assumes complemented events always hold
                return -literal if self.complements else True
            if isinstance(event, HouseEvent):
                return event.state != negated
            return refs[0]

        connective = node.connective
        if connective in (Connective.NULL, Connective.NOT):
            return refs[0]
        if connective in (Connective.NAND, Connective.NOR):
            negated = not negated
            connective = _AND if connective == Connective.NAND else _OR
        if connective in (_AND, _OR):
            # De Morgan: a negated AND is an OR of negated arguments
            kind = connective if not negated else (_OR if connective == _AND else _AND)
            return self.make(kind, refs)
        if connective == Connective.XOR:
            # xor(a, b) = a.not-b + not-a.b; its negation is a.b + not-a.not-b
            left = self.make(_AND, refs[:2])
            right = self.make(_AND, refs[2:])
            return self.make(_OR, [left, right])
        vote = int(node.min_number or 0)
        if negated:
            # Fewer than k occur iff at least n - k + 1 do not occur
            vote = len(refs) - vote + 1
        return self.atleast(vote, refs)

    def make(self, kind: Connective, refs: Sequence[Ref]) -> Ref:
        """Create or reuse a gate, folding constants and duplicates."""
        absorbing = kind == _OR  # TRUE absorbs OR; FALSE absorbs AND
        unique: List[int] = []
        seen = set()
        for ref in refs:
            if isinstance(ref, bool):
                if ref == absorbing:
                    return absorbing
                continue
            if -ref in seen and not self.pdag.is_gate(abs(ref)):
                return absorbing
            if ref not in seen:
                seen.add(ref)
                unique.append(ref)
        if not unique:
            return not absorbing
        if len(unique) == 1:
            return unique[0]
        key = (kind, tuple(unique))
        if key not in self._unique:
            self.pdag.gates.append(key)
            self._unique[key] = self.pdag.num_variables + len(self.pdag.gates)
        return self._unique[key]

    def atleast(self, vote: int, refs: Sequence[Ref]) -> Ref:
        vote -= sum(1 for r in refs if r is True)
        args = [r for r in refs if not isinstance(r, bool)]
        n = len(args)
        if vote <= 0:
            return True
        if vote > n:
            return False
        if vote == 1:
            return self.make(_OR, args)
        if vote == n:
            return self.make(_AND, args)
        if n <= self.expansion_limit:
            return self.make(
                _OR, [self.make(_AND, list(combo)) for combo in combinations(args, vote)]
            )
        return self._threshold(vote, args)

    def _threshold(self, vote: int, args: Sequence[int]) -> Ref:
        # T(k, i): at least k of args[i:] occur; built from the last argument up
        n = len(args)
        table: Dict[Tuple[int, int], Ref] = {}

        def t(k: int, i: int) -> Ref:
            if k <= 0:
                return True
            if k > n - i:
                return False
            return table[(k, i)]

        for i in range(n - 1, -1, -1):
            for k in range(max(1, vote - i), min(vote, n - i) + 1):
                with_arg = self.make(_AND, [args[i], t(k - 1, i + 1)])
                table[(k, i)] = self.make(_OR, [with_arg, t(k, i + 1)])
        return t(vote, 0)


def variable_order(model: Model, top: str) -> List[str]:
    """Basic events under ``top`` in depth-first preorder of the event graph."""
    return [name for name in model.reachable_events(top) if name in model.basic_events]


def normalize(
    model: Model,
    top: str,
    settings: AnalysisSettings | None = None,
    complements: bool | None = None,
) -> Pdag:
    """Build the PDAG of an already validated top gate.

    Args:
        model: Model holding the gate graph.
        top: Top gate name.
        settings: Analysis settings; defaults apply when None.
        complements: Keep negative literals. Defaults to
            ``settings.prime_implicants``; when False, complemented basic
            events are replaced by TRUE as in cut-set analysis.

    Returns:
        The normalized graph.
    """
    settings = settings or AnalysisSettings()
    if complements is None:
        complements = settings.prime_implicants
    builder = _Builder(
        model,
        top,
        variable_order(model, top),
        settings.atleast_expansion_limit,
        complements,
    )
    pdag = builder.build()
    logger.debug(
        f"Normalized '{top}': {pdag.num_variables} variables, "
        f"{len(pdag.gates)} gates, root={pdag.root}"
    )
    return pdag


def normalize_fault_tree(
    model: Model,
    fault_tree: str,
    settings: AnalysisSettings | None = None,
    complements: bool | None = None,
) -> Pdag:
    """Validate a fault tree and normalize its top gate.

    Raises:
        ValidationError: If the fault tree breaks a structural rule.
    """
    top = validate_fault_tree(model, fault_tree)
    return normalize(model, top, settings, complements)
