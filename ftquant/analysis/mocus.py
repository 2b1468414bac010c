"""MOCUS: top-down minimal cut set generation.

Starting from ``{top}``, each candidate set is expanded by replacing one
pending gate: an AND gate adds all of its arguments to the candidate, an OR
gate splits the candidate into one copy per argument. Candidates whose basic
events already exceed the order limit are dropped, and the complete
candidates are reduced to minimal sets at the end.

Works on cut-set PDAGs only (no complemented literals). The number of
candidates is worst-case exponential in the number of OR gates; the order
limit is the pruning that keeps it practical.
"""

from __future__ import annotations

from typing import FrozenSet, Iterable, List, Optional, Set, Tuple

from ftquant.analysis.budget import WorkBudget
from ftquant.analysis.pdag import Pdag
from ftquant.errors import AnalysisLimitExceeded
from ftquant.logging import get_logger
from ftquant.types.base import Connective

logger = get_logger(__name__)

CutSet = FrozenSet[int]


class Mocus:
    """Top-down cut set expansion over a cut-set PDAG.

    Args:
        pdag: Normalized formula without complemented literals.
        limit: Largest cut set order kept.
        budget: Optional work budget checked per expansion step.
    """

    def __init__(self, pdag: Pdag, limit: int, budget: Optional[WorkBudget] = None) -> None:
        if pdag.complements and _has_complements(pdag):
            raise ValueError("MOCUS requires a PDAG without complemented literals.")
        self.pdag = pdag
        self.limit = limit
        self.budget = budget
        self.truncated = False
        self._found: List[CutSet] = []

    def run(self) -> Set[CutSet]:
        """Return the minimal cut sets as sets of 0-based variable indices.

        Raises:
            AnalysisLimitExceeded: On timeout; ``partial`` holds the minimal
                sets among the candidates completed so far.
        """
        root = self.pdag.root
        if isinstance(root, bool):
            return {frozenset()} if root else set()

        stack: List[Tuple[CutSet, Tuple[int, ...]]] = [(frozenset(), (root,))]
        try:
            while stack:
                if self.budget is not None:
                    self.budget.tick()
                events, pending = stack.pop()
                if not pending:
                    self._found.append(events)
                    continue
                ref, rest = pending[0], pending[1:]
                if not self.pdag.is_gate(ref):
                    self._push(stack, events | {ref - 1}, rest)
                    continue
                kind, args = self.pdag.gate(ref)
                if kind == Connective.AND:
                    literals = {a - 1 for a in args if not self.pdag.is_gate(a)}
                    gates = tuple(a for a in args if self.pdag.is_gate(a))
                    self._push(stack, events | literals, gates + rest)
                else:
                    for arg in reversed(args):
                        if self.pdag.is_gate(arg):
                            self._push(stack, events, (arg,) + rest)
                        else:
                            self._push(stack, events | {arg - 1}, rest)
        except AnalysisLimitExceeded as err:
            err.partial = minimize(self._found)
            raise
        logger.debug(
            f"MOCUS expanded {len(self._found)} candidate cut sets for '{self.pdag.top}'"
        )
        return minimize(self._found)

    def _push(self, stack: list, events: CutSet, pending: Tuple[int, ...]) -> None:
        if len(events) > self.limit:
            self.truncated = True
            return
        stack.append((events, pending))


def minimize(cut_sets: Iterable[CutSet]) -> Set[CutSet]:
    """Drop every set that contains another set of the collection."""
    minimal: List[CutSet] = []
    for candidate in sorted(set(cut_sets), key=len):
        if not any(kept <= candidate for kept in minimal):
            minimal.append(candidate)
    return set(minimal)


def _has_complements(pdag: Pdag) -> bool:
    if isinstance(pdag.root, bool):
        return False
    if pdag.root < 0:
        return True
    return any(a < 0 for _, args in pdag.gates for a in args)
