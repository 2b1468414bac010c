"""Minimal cut set and prime implicant generation.

`generate_products` dispatches a normalized fault tree to the BDD or MOCUS
back-end, converts variable indices back to event literals, sorts the result
by order then literal names, and applies the product-count limit.
"""

from __future__ import annotations

import time
from typing import FrozenSet, Iterable, List, Optional, Set

from ftquant.analysis.bdd import Bdd
from ftquant.analysis.budget import WorkBudget
from ftquant.analysis.mocus import Mocus
from ftquant.analysis.pdag import Pdag
from ftquant.config import AnalysisSettings
from ftquant.errors import AnalysisLimitExceeded
from ftquant.logging import get_logger
from ftquant.results.artifacts import ProductSet
from ftquant.types.base import Algorithm
from ftquant.types.dto import Literal, Product

logger = get_logger(__name__)


def generate_products(
    pdag: Pdag,
    settings: Optional[AnalysisSettings] = None,
    budget: Optional[WorkBudget] = None,
) -> ProductSet:
    """Compute the minimal cut sets or prime implicants of a normalized tree.

    The PDAG must have been built in the matching mode: complements kept for
    prime implicants, replaced by TRUE for cut sets.

    Args:
        pdag: Normalized fault tree.
        settings: Analysis settings; defaults apply when None.
        budget: Work budget for cancellation and time-limit checks.

    Returns:
        Sorted products; ``truncated`` is set when the order or count limit
        dropped any.

    Raises:
        AnalysisLimitExceeded: On timeout, with the partial `ProductSet`
            attached as ``partial``.
        Cancelled: If the budget's token was cancelled.
        ValueError: If the PDAG mode does not match the settings.
    """
    settings = settings or AnalysisSettings()
    if settings.prime_implicants and not pdag.complements:
        raise ValueError("Prime implicants need a PDAG with complemented literals.")
    if not settings.prime_implicants and pdag.complements and _signed(pdag):
        raise ValueError("Cut sets need a PDAG without complemented literals.")

    start = time.time()
    if settings.algorithm == Algorithm.MOCUS:
        engine = Mocus(pdag, settings.limit_order, budget)
        try:
            raw = engine.run()
        except AnalysisLimitExceeded as err:
            err.partial = _to_product_set(pdag, _cut_literals(err.partial or ()), settings, True)
            raise
        products = _to_product_set(pdag, _cut_literals(raw), settings, engine.truncated)
    else:
        bdd = Bdd(pdag.num_variables, budget)
        try:
            root = bdd.from_pdag(pdag)
            if settings.prime_implicants:
                raw = bdd.prime_implicants(root, settings.limit_order)
                literal_sets = raw
            else:
                raw = bdd.minimal_cut_sets(root, settings.limit_order)
                literal_sets = _cut_literals(raw)
        except AnalysisLimitExceeded as err:
            # The BDD recursions return nothing until they finish
            err.partial = ProductSet(
                truncated=True, prime_implicants=settings.prime_implicants
            )
            raise
        logger.debug(f"BDD for '{pdag.top}' has {len(bdd)} nodes")
        products = _to_product_set(pdag, literal_sets, settings, bdd.truncated)

    logger.debug(
        f"Generated {len(products)} products for '{pdag.top}' with "
        f"{settings.algorithm.name} in {time.time() - start:.3f} seconds"
        + (" (truncated)" if products.truncated else "")
    )
    return products


def _signed(pdag: Pdag) -> bool:
    if isinstance(pdag.root, bool):
        return False
    return pdag.root < 0 or any(a < 0 for _, args in pdag.gates for a in args)


def _cut_literals(cut_sets: Iterable[FrozenSet[int]]) -> Set[FrozenSet[int]]:
    """Shift 0-based variable indices to positive 1-based literals."""
    return {frozenset(v + 1 for v in cut_set) for cut_set in cut_sets}


def _to_product_set(
    pdag: Pdag,
    literal_sets: Iterable[FrozenSet[int]],
    settings: AnalysisSettings,
    truncated: bool,
) -> ProductSet:
    products: List[Product] = []
    for literals in literal_sets:
        converted = sorted(
            Literal(pdag.variable_name(lit), lit < 0) for lit in literals
        )
        products.append(Product(tuple(converted)))
    products.sort(key=Product.sort_key)
    limit = settings.limit_products
    if limit is not None and len(products) > limit:
        logger.debug(f"Keeping the first {limit} of {len(products)} products for '{pdag.top}'")
        products = products[:limit]
        truncated = True
    return ProductSet(
        products=tuple(products),
        truncated=truncated,
        prime_implicants=settings.prime_implicants,
    )
