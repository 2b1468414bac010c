"""Importance factors of basic events.

For each basic event with nominal probability ``p``, the top-event
probability is recomputed with the event certain (``Q1``) and impossible
(``Q0``) using the same approximation as the nominal value ``Q``:

- MIF (Birnbaum) = Q1 - Q0
- CIF (critical) = MIF * p / Q
- DIF (diagnosis, Fussell-Vesely) = p * Q1 / Q
- RAW (risk achievement worth) = Q1 / Q
- RRW (risk reduction worth) = Q / Q0

Events that appear in no product get the neutral record. With ``Q = 0`` the
ratios over Q are 0 (CIF, DIF) or 1 (RAW); ``Q0 = 0`` with ``Q > 0`` gives an
infinite RRW.
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Mapping, Optional, Sequence

from ftquant.analysis.budget import WorkBudget
from ftquant.analysis.probability import ProbabilityCalculator
from ftquant.logging import get_logger
from ftquant.results.artifacts import ImportanceRecord, ImportanceTable

logger = get_logger(__name__)


def importance_record(
    event: str,
    calculator: ProbabilityCalculator,
    probabilities: Mapping[str, float],
    total: float,
    occurrence: int,
) -> ImportanceRecord:
    """Importance factors of one event.

    Args:
        event: Basic event name.
        calculator: Calculator over the fault tree's products.
        probabilities: Nominal probabilities of all events in the products.
        total: Nominal top-event probability from ``calculator``.
        occurrence: Number of products containing the event.
    """
    p = probabilities[event]
    if occurrence == 0:
        return ImportanceRecord(event=event, occurrence=0, probability=p)

    q1 = calculator.value({**probabilities, event: 1.0})
    q0 = calculator.value({**probabilities, event: 0.0})
    mif = q1 - q0
    if total > 0:
        cif = mif * p / total
        dif = p * q1 / total
        raw = q1 / total
    else:
        cif = dif = 0.0
        raw = 1.0
    if q0 > 0:
        rrw = total / q0
    else:
        rrw = float("inf") if total > 0 else 1.0
    return ImportanceRecord(
        event=event,
        occurrence=occurrence,
        probability=p,
        mif=mif,
        cif=cif,
        dif=dif,
        raw=raw,
        rrw=rrw,
    )


def compute_importance(
    events: Sequence[str],
    calculator: ProbabilityCalculator,
    probabilities: Mapping[str, float],
    total: float,
    parallelism: int = 1,
    budget: Optional[WorkBudget] = None,
) -> ImportanceTable:
    """Importance factors for every basic event of a fault tree.

    Args:
        events: Basic events of the fault tree, in report order.
        calculator: Calculator over the fault tree's products.
        probabilities: Nominal probabilities of ``events``.
        total: Nominal top-event probability.
        parallelism: Worker threads; 1 runs serially.
        budget: Work budget ticked once per event.

    Returns:
        Records in the order of ``events``.
    """
    occurrences: Dict[str, int] = calculator.products.occurrences()
    start = time.time()

    def work(event: str) -> ImportanceRecord:
        if budget is not None:
            budget.tick()
        return importance_record(
            event, calculator, probabilities, total, occurrences.get(event, 0)
        )

    if parallelism > 1 and len(events) > 1:
        workers = min(parallelism, len(events))
        logger.debug(f"Computing importance of {len(events)} events with {workers} workers")
        with ThreadPoolExecutor(max_workers=workers) as pool:
            records = list(pool.map(work, events))
    else:
        records = [work(event) for event in events]

    logger.debug(
        f"Importance of {len(events)} events computed in {time.time() - start:.3f} seconds"
    )
    return ImportanceTable(records=tuple(records))
