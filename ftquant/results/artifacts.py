"""Serializable result artifacts of fault-tree analysis.

This module defines the immutable outputs of one analysis run:

- `ProductSet`: minimal cut sets or prime implicants of one fault tree
- `ImportanceRecord`: importance factors of one basic event
- `UncertaintyResult`: Monte Carlo distribution of the top-event probability
- `FaultTreeResult`: everything computed for one fault tree, with its status
- `AnalysisResult`: per-fault-tree outcomes of a whole model

Each artifact has `to_dict()` returning JSON-serializable primitives; tabular
ones also offer `to_dataframe()`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

import pandas as pd

from ftquant.errors import FtquantError
from ftquant.types.base import Status
from ftquant.types.dto import Product


def _json_float(value: Optional[float]) -> Any:
    if value is None:
        return None
    if math.isinf(value):
        return "inf"
    return value


@dataclass(frozen=True)
class ProductSet:
    """Products of one fault tree in presentation order.

    An empty tuple with ``truncated=False`` means the top event cannot occur;
    a single empty product means it is certain. With ``truncated=True`` some
    products were dropped by the order, count, or time limits.

    Attributes:
        products: Products sorted by order then literal names.
        truncated: True if a limit dropped products.
        prime_implicants: True for prime implicants, False for cut sets.
    """

    products: Tuple[Product, ...] = ()
    truncated: bool = False
    prime_implicants: bool = False

    def __len__(self) -> int:
        return len(self.products)

    def __iter__(self) -> Iterator[Product]:
        return iter(self.products)

    def __getitem__(self, index: int) -> Product:
        return self.products[index]

    @property
    def is_unity(self) -> bool:
        """True if the top event is certain (a single empty product)."""
        return len(self.products) == 1 and self.products[0].is_unity

    @property
    def is_null(self) -> bool:
        """True if the top event cannot occur; truncation is not nullity."""
        return not self.products and not self.truncated

    def events(self) -> List[str]:
        """Sorted names of events appearing in any product."""
        return sorted({lit.event for product in self.products for lit in product.literals})

    def occurrences(self) -> Dict[str, int]:
        """Number of products each event appears in, with either polarity."""
        counts: Dict[str, int] = {}
        for product in self.products:
            for lit in product.literals:
                counts[lit.event] = counts.get(lit.event, 0) + 1
        return counts

    def as_sets(self) -> set:
        """Products as a set of frozensets of literal strings (e.g. "not A")."""
        return {frozenset(str(lit) for lit in p.literals) for p in self.products}

    def distribution(self) -> Dict[int, int]:
        """Number of products per order."""
        dist: Dict[int, int] = {}
        for product in self.products:
            dist[product.order] = dist.get(product.order, 0) + 1
        return dict(sorted(dist.items()))

    def to_dataframe(self) -> pd.DataFrame:
        """One row per product: product, order, probability, contribution."""
        return pd.DataFrame(
            [
                {
                    "product": " ".join(str(lit) for lit in p.literals),
                    "order": p.order,
                    "probability": p.probability,
                    "contribution": p.contribution,
                }
                for p in self.products
            ],
            columns=["product", "order", "probability", "contribution"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "prime_implicants" if self.prime_implicants else "cut_sets",
            "truncated": self.truncated,
            "distribution": self.distribution(),
            "products": [
                {
                    "literals": [
                        {"event": lit.event, "complement": lit.complement}
                        for lit in p.literals
                    ],
                    "order": p.order,
                    "probability": p.probability,
                    "contribution": p.contribution,
                }
                for p in self.products
            ],
        }


@dataclass(frozen=True)
class ImportanceRecord:
    """Importance factors of one basic event.

    Attributes:
        event: Basic event name.
        occurrence: Number of products containing the event.
        probability: Nominal probability of the event.
        mif: Marginal (Birnbaum) importance, Q(p=1) - Q(p=0).
        cif: Critical importance, MIF * p / Q.
        dif: Diagnosis importance (Fussell-Vesely), p * Q(p=1) / Q.
        raw: Risk achievement worth, Q(p=1) / Q.
        rrw: Risk reduction worth, Q / Q(p=0).
    """

    event: str
    occurrence: int
    probability: float
    mif: float = 0.0
    cif: float = 0.0
    dif: float = 0.0
    raw: float = 1.0
    rrw: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.event,
            "occurrence": self.occurrence,
            "probability": self.probability,
            "mif": self.mif,
            "cif": self.cif,
            "dif": self.dif,
            "raw": _json_float(self.raw),
            "rrw": _json_float(self.rrw),
        }


@dataclass(frozen=True)
class ImportanceTable:
    """Importance records keyed by basic event name."""

    records: Tuple[ImportanceRecord, ...] = ()

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[ImportanceRecord]:
        return iter(self.records)

    def __getitem__(self, event: str) -> ImportanceRecord:
        for record in self.records:
            if record.event == event:
                return record
        raise KeyError(f"No importance record for event '{event}'.")

    def __contains__(self, event: object) -> bool:
        return any(record.event == event for record in self.records)

    def to_dataframe(self) -> pd.DataFrame:
        """Importance table indexed by event name."""
        columns = ["occurrence", "probability", "mif", "cif", "dif", "raw", "rrw"]
        frame = pd.DataFrame(
            [{"event": r.event, **{c: getattr(r, c) for c in columns}} for r in self.records],
            columns=["event"] + columns,
        )
        return frame.set_index("event")

    def to_dict(self) -> Dict[str, Any]:
        return {record.event: record.to_dict() for record in self.records}


@dataclass(frozen=True)
class UncertaintyResult:
    """Monte Carlo distribution of the top-event probability.

    Attributes:
        mean: Sample mean.
        sigma: Sample standard deviation.
        confidence_interval: 95% interval of the mean, normal assumption.
        error_factor: Ratio of the 95th percentile to the median (1.0 if the
            median is zero).
        quantiles: Mapping of quantile level to value (5%, 50%, 95%).
        histogram: (lower bin edge, upper bin edge, density) triples.
        num_trials: Trials actually run.
    """

    mean: float
    sigma: float
    confidence_interval: Tuple[float, float]
    error_factor: float
    quantiles: Dict[float, float]
    histogram: Tuple[Tuple[float, float, float], ...]
    num_trials: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mean": self.mean,
            "sigma": self.sigma,
            "confidence_interval": list(self.confidence_interval),
            "error_factor": _json_float(self.error_factor),
            "quantiles": {str(q): v for q, v in self.quantiles.items()},
            "histogram": [list(b) for b in self.histogram],
            "num_trials": self.num_trials,
        }


@dataclass(frozen=True)
class FaultTreeResult:
    """Outcome of analysing one fault tree.

    Attributes:
        name: Fault tree name.
        status: COMPLETE, TRUNCATED, FAILED, or CANCELLED.
        top_gate: Top gate name, None if validation failed before finding it.
        products: Cut sets or prime implicants, possibly partial.
        probability: Top-event probability, None if not computed.
        importance: Importance table, None if not computed.
        uncertainty: Uncertainty distribution, None if not computed.
        warnings: Warnings raised while quantifying.
        error: Error that failed, truncated, or cancelled the analysis.
        duration: Wall-clock seconds spent on this fault tree.
    """

    name: str
    status: Status
    top_gate: Optional[str] = None
    products: Optional[ProductSet] = None
    probability: Optional[float] = None
    importance: Optional[ImportanceTable] = None
    uncertainty: Optional[UncertaintyResult] = None
    warnings: Tuple[str, ...] = ()
    error: Optional[FtquantError] = None
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == Status.COMPLETE

    def to_dict(self) -> Dict[str, Any]:
        error: Optional[Dict[str, Any]] = None
        if self.error is not None:
            to_dict = getattr(self.error, "to_dict", None)
            error = (
                to_dict()
                if callable(to_dict)
                else {"error": type(self.error).__name__, "message": str(self.error)}
            )
        return {
            "name": self.name,
            "status": self.status.name.lower(),
            "top_gate": self.top_gate,
            "products": self.products.to_dict() if self.products is not None else None,
            "probability": self.probability,
            "importance": self.importance.to_dict() if self.importance is not None else None,
            "uncertainty": (
                self.uncertainty.to_dict() if self.uncertainty is not None else None
            ),
            "warnings": list(self.warnings),
            "error": error,
            "duration": self.duration,
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Per-fault-tree outcomes of one analysis run.

    Attributes:
        results: Mapping from fault tree name to its result.
        settings: Settings of the run as a plain mapping.
        duration: Wall-clock seconds for the whole run.
    """

    results: Dict[str, FaultTreeResult] = field(default_factory=dict)
    settings: Dict[str, Any] = field(default_factory=dict)
    duration: float = 0.0

    def __getitem__(self, fault_tree: str) -> FaultTreeResult:
        return self.results[fault_tree]

    def __iter__(self) -> Iterator[FaultTreeResult]:
        return iter(self.results.values())

    def __len__(self) -> int:
        return len(self.results)

    def by_status(self, status: Status) -> List[FaultTreeResult]:
        return [r for r in self.results.values() if r.status == status]

    def summary(self) -> pd.DataFrame:
        """One row per fault tree: status, products, probability, duration."""
        rows = [
            {
                "fault_tree": r.name,
                "status": r.status.name.lower(),
                "top_gate": r.top_gate,
                "products": len(r.products) if r.products is not None else None,
                "probability": r.probability,
                "duration": r.duration,
            }
            for r in self.results.values()
        ]
        frame = pd.DataFrame(
            rows,
            columns=["fault_tree", "status", "top_gate", "products", "probability", "duration"],
        )
        return frame.set_index("fault_tree")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "settings": self.settings,
            "duration": self.duration,
            "fault_trees": {name: r.to_dict() for name, r in self.results.items()},
        }
