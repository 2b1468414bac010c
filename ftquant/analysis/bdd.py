"""Reduced ordered binary decision diagrams.

Nodes are integers into parallel tables: ``0`` is FALSE, ``1`` is TRUE, and
every other node is ``(var, high, low)`` with ``high`` the cofactor for the
variable being true. Variables are ``0..n-1`` and a smaller index is closer
to the root. A unique table keeps the diagram reduced; computed tables cache
AND/OR/NOT results for the life of the diagram.

Besides exact probability, the diagram yields:

- minimal cut sets of a monotone function with the ``minsol`` recursion:
  ``minsol(f) = minsol(f0) | {x + s : s in minsol(f1) without minsol(f0)}``;
- prime implicants with ``PI(f) = PI(f0 & f1) | x.(PI(f1) - PI(f0 & f1)) |
  not-x.(PI(f0) - PI(f0 & f1))``.

Both recursions take an order limit and are exact up to it: a product of
order at most ``limit`` is returned iff it is minimal. When the limit cut a
branch short, the union of the returned products is rebuilt in the same
diagram; ``truncated`` is set only if it differs from the function.

All recurrences run through `ftquant.analysis.dag.fold`, so neither the
number of variables nor the fault-tree depth is bounded by the recursion
limit. Node counts are worst-case exponential in the number of variables;
the variable order (depth-first preorder of the fault tree) keeps related
events adjacent.
"""

from __future__ import annotations

from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple

from ftquant.analysis.budget import WorkBudget
from ftquant.analysis.dag import fold
from ftquant.analysis.pdag import Pdag
from ftquant.types.base import Connective

FALSE = 0
TRUE = 1

#: A family of products. Cut sets hold variable indices; prime implicants
#: hold signed literals ``var + 1`` or ``-(var + 1)``.
Family = FrozenSet[FrozenSet[int]]

_EMPTY: Family = frozenset()
_UNITY: Family = frozenset({frozenset()})

Pair = Tuple[int, int]


def _pair(f: int, g: int) -> Pair:
    return (f, g) if f < g else (g, f)


def _and_terminal(f: int, g: int) -> Optional[int]:
    if f == FALSE or g == FALSE:
        return FALSE
    if f == TRUE:
        return g
    if g == TRUE or f == g:
        return f
    return None


def _or_terminal(f: int, g: int) -> Optional[int]:
    if f == TRUE or g == TRUE:
        return TRUE
    if f == FALSE:
        return g
    if g == FALSE or f == g:
        return f
    return None


class Bdd:
    """Reduced ordered BDD manager over ``num_variables`` variables.

    Args:
        num_variables: Number of variables in the order.
        budget: Optional work budget checked on node creation and recursion.
    """

    def __init__(self, num_variables: int, budget: Optional[WorkBudget] = None) -> None:
        self.num_variables = num_variables
        self.budget = budget
        # Terminals sort after every variable
        self._var: List[int] = [num_variables, num_variables]
        self._high: List[int] = [FALSE, TRUE]
        self._low: List[int] = [FALSE, TRUE]
        self._unique: Dict[Tuple[int, int, int], int] = {}
        self._and_cache: Dict[Pair, int] = {}
        self._or_cache: Dict[Pair, int] = {}
        self._not_cache: Dict[int, int] = {FALSE: TRUE, TRUE: FALSE}
        self.truncated = False

    def __len__(self) -> int:
        """Number of nodes including both terminals."""
        return len(self._var)

    def var_of(self, node: int) -> int:
        return self._var[node]

    def high(self, node: int) -> int:
        return self._high[node]

    def low(self, node: int) -> int:
        return self._low[node]

    def node(self, var: int, high: int, low: int) -> int:
        """Return the reduced node for ``var ? high : low``."""
        if high == low:
            return low
        key = (var, high, low)
        found = self._unique.get(key)
        if found is not None:
            return found
        if self.budget is not None:
            self.budget.tick()
        self._var.append(var)
        self._high.append(high)
        self._low.append(low)
        index = len(self._var) - 1
        self._unique[key] = index
        return index

    def variable(self, var: int, complement: bool = False) -> int:
        if not 0 <= var < self.num_variables:
            raise ValueError(f"Variable {var} is outside 0..{self.num_variables - 1}.")
        return self.node(var, FALSE, TRUE) if complement else self.node(var, TRUE, FALSE)

    def literal(self, literal: int) -> int:
        """Node for a signed 1-based literal as used by Pdag."""
        return self.variable(abs(literal) - 1, literal < 0)

    def negate(self, f: int) -> int:
        def expand(node: int) -> Tuple[int, int]:
            return self._high[node], self._low[node]

        def combine(node: int, values: List[int]) -> int:
            return self.node(self._var[node], values[0], values[1])

        return fold(f, expand, combine, self._not_cache)

    def apply_and(self, f: int, g: int) -> int:
        result = _and_terminal(f, g)
        if result is not None:
            return result
        return self._apply(_pair(f, g), _and_terminal, self._and_cache)

    def apply_or(self, f: int, g: int) -> int:
        result = _or_terminal(f, g)
        if result is not None:
            return result
        return self._apply(_pair(f, g), _or_terminal, self._or_cache)

    def _apply(
        self,
        start: Pair,
        terminal: Callable[[int, int], Optional[int]],
        cache: Dict[Pair, int],
    ) -> int:
        def expand(key: Pair) -> Tuple[Pair, ...]:
            if terminal(*key) is not None:
                return ()
            _, f1, f0, g1, g0 = self._cofactors(*key)
            return _pair(f1, g1), _pair(f0, g0)

        def combine(key: Pair, values: List[int]) -> int:
            if not values:
                return terminal(*key)
            return self.node(min(self._var[key[0]], self._var[key[1]]), values[0], values[1])

        return fold(start, expand, combine, cache)

    def _cofactors(self, f: int, g: int) -> Tuple[int, int, int, int, int]:
        vf, vg = self._var[f], self._var[g]
        var = min(vf, vg)
        f1, f0 = (self._high[f], self._low[f]) if vf == var else (f, f)
        g1, g0 = (self._high[g], self._low[g]) if vg == var else (g, g)
        return var, f1, f0, g1, g0

    def conjunction(self, nodes: Iterable[int]) -> int:
        result = TRUE
        for n in nodes:
            result = self.apply_and(result, n)
            if result == FALSE:
                break
        return result

    def disjunction(self, nodes: Iterable[int]) -> int:
        result = FALSE
        for n in nodes:
            result = self.apply_or(result, n)
            if result == TRUE:
                break
        return result

    def from_pdag(self, pdag: Pdag) -> int:
        """Build the diagram of a normalized formula.

        Pdag variable ``i`` maps to BDD variable ``i - 1``.
        """
        if isinstance(pdag.root, bool):
            return TRUE if pdag.root else FALSE

        def expand(ref: int) -> Tuple[int, ...]:
            return pdag.gate(ref)[1] if pdag.is_gate(ref) else ()

        def combine(ref: int, values: List[int]) -> int:
            if not pdag.is_gate(ref):
                return self.literal(ref)
            # Fold deeper-rooted arguments first to keep intermediates small
            children = sorted(values, key=self._var.__getitem__, reverse=True)
            if pdag.gate(ref)[0] == Connective.AND:
                return self.conjunction(children)
            return self.disjunction(children)

        return fold(pdag.root, expand, combine, {})

    def from_products(self, products: Iterable[Iterable[int]]) -> int:
        """Build the union of products given as signed 1-based literals."""
        terms = [
            self.conjunction(self.literal(lit) for lit in sorted(product, key=abs, reverse=True))
            for product in products
        ]
        # Deepest-rooted terms first, as in from_pdag
        return self.disjunction(sorted(terms, key=self._var.__getitem__, reverse=True))

    def probability(self, root: int, probabilities: Sequence[float]) -> float:
        """Exact probability that the function is true.

        Args:
            root: Root node.
            probabilities: Probability of each variable being true.
        """

        def expand(node: int) -> Tuple[int, int]:
            return self._high[node], self._low[node]

        def combine(node: int, values: List[float]) -> float:
            p = probabilities[self._var[node]]
            return p * values[0] + (1.0 - p) * values[1]

        return fold(root, expand, combine, {FALSE: 0.0, TRUE: 1.0})

    def minimal_cut_sets(self, root: int, limit: int) -> Set[FrozenSet[int]]:
        """Minimal solutions of a monotone function up to ``limit`` variables.

        Sets ``self.truncated`` if the limit dropped a minimal solution.
        """
        cutoff = False

        def expand(key: Tuple[int, int]) -> Tuple[Tuple[int, int], ...]:
            node, bound = key
            if node <= TRUE or bound == 0:
                return ()
            return (self._low[node], bound), (self._high[node], bound - 1)

        def combine(key: Tuple[int, int], values: List[Family]) -> Family:
            nonlocal cutoff
            node, _ = key
            if node <= TRUE:
                return _UNITY if node == TRUE else _EMPTY
            if not values:
                cutoff = True
                return _EMPTY
            if self.budget is not None:
                self.budget.tick()
            low, high = values
            var = self._var[node]
            return low | frozenset(s | {var} for s in _without(high, low))

        result = set(fold((root, limit), expand, combine, {}))
        if cutoff and not self._covers(root, ([v + 1 for v in s] for s in result)):
            self.truncated = True
        return result

    def prime_implicants(self, root: int, limit: int) -> Set[FrozenSet[int]]:
        """Prime implicants up to ``limit`` literals as signed 1-based literals.

        Sets ``self.truncated`` if the returned implicants no longer cover
        the function.
        """
        cutoff = False

        def expand(key: Tuple[int, int]) -> Tuple[Tuple[int, int], ...]:
            node, bound = key
            if node <= TRUE or bound == 0:
                return ()
            f1, f0 = self._high[node], self._low[node]
            return (self.apply_and(f1, f0), bound), (f1, bound - 1), (f0, bound - 1)

        def combine(key: Tuple[int, int], values: List[Family]) -> Family:
            nonlocal cutoff
            node, _ = key
            if node <= TRUE:
                return _UNITY if node == TRUE else _EMPTY
            if not values:
                cutoff = True
                return _EMPTY
            if self.budget is not None:
                self.budget.tick()
            common, high, low = values
            literal = self._var[node] + 1
            positive = frozenset(p | {literal} for p in high if p not in common)
            negative = frozenset(p | {-literal} for p in low if p not in common)
            return common | positive | negative

        result = set(fold((root, limit), expand, combine, {}))
        if cutoff and not self._covers(root, result):
            self.truncated = True
        return result

    def _covers(self, root: int, products: Iterable[Iterable[int]]) -> bool:
        return self.from_products(products) == root


def _without(family: Family, blockers: Family) -> Family:
    """Members of ``family`` that contain no member of ``blockers``."""
    if not blockers or not family:
        return family
    return frozenset(s for s in family if not any(b <= s for b in blockers))
