"""Memoized bottom-up evaluation over directed acyclic graphs.

PDAG construction and the BDD operations are written as recurrences over
graph nodes. `fold` evaluates such a recurrence on an explicit stack, so the
depth of a fault tree or the number of BDD variables is limited by memory
rather than by the interpreter's recursion limit.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Hashable, List, Sequence, Tuple


def fold(
    start: Hashable,
    expand: Callable[[Any], Sequence[Hashable]],
    combine: Callable[[Any, List[Any]], Any],
    memo: Dict[Any, Any],
) -> Any:
    """Evaluate ``start`` after all the keys it depends on.

    Dependencies are evaluated in the order ``expand`` returns them, each one
    completely before the next, which is the order a plain recursive
    implementation would follow. Every key is combined at most once.

    Args:
        start: Key to evaluate.
        expand: Key -> keys whose values it needs; empty for base cases.
        combine: (key, values of its dependencies) -> value of the key.
        memo: Known values; filled in place and may be shared across calls.

    Returns:
        The value of ``start``.
    """
    if start in memo:
        return memo[start]
    pending: Dict[Hashable, Tuple[Hashable, ...]] = {}
    stack: List[Hashable] = [start]
    while stack:
        key = stack[-1]
        if key in memo:
            stack.pop()
            continue
        deps = pending.get(key)
        if deps is None:
            deps = tuple(expand(key))
            pending[key] = deps
            missing = [d for d in deps if d not in memo]
            if missing:
                stack.extend(reversed(missing))
                continue
        stack.pop()
        del pending[key]
        memo[key] = combine(key, [memo[d] for d in deps])
    return memo[start]
