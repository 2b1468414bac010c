"""RiskAnalysis: run every fault tree of a model through the analysis pipeline.

A run works on a deep copy of the caller's model, so CCF expansion and any
other rewriting never leak back. For each fault tree the pipeline is:

1. validate the gates reachable from the top gate;
2. normalize into a PDAG;
3. generate minimal cut sets or prime implicants;
4. quantify the top-event probability (optional);
5. compute importance factors and Monte Carlo uncertainty (optional).

Each fault tree gets its own `WorkBudget` for the time limit, all sharing the
caller's cancellation token. Failures are captured per fault tree: an invalid
or timed-out tree never aborts its siblings.

Fault trees run on a thread pool when ``parallelism > 1``. The snapshot is
read-only during that phase, so workers share it by reference.
"""

from __future__ import annotations

import copy
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

from ftquant.analysis.budget import CancellationToken, WorkBudget
from ftquant.analysis.importance import compute_importance
from ftquant.analysis.pdag import normalize
from ftquant.analysis.probability import (
    ProbabilityCalculator,
    annotate_products,
    event_probabilities,
)
from ftquant.analysis.products import generate_products
from ftquant.analysis.uncertainty import run_uncertainty
from ftquant.config import AnalysisSettings
from ftquant.errors import (
    AnalysisLimitExceeded,
    Cancelled,
    FtquantError,
    InvalidExpressionError,
    ProbabilityRangeError,
    ValidationError,
)
from ftquant.logging import get_logger, level_from_env, set_global_log_level
from ftquant.model.model import Model
from ftquant.model.validation import validate_fault_tree
from ftquant.results.artifacts import (
    AnalysisResult,
    FaultTreeResult,
    ImportanceTable,
    ProductSet,
    UncertaintyResult,
)
from ftquant.types.base import Status

logger = get_logger(__name__)


class RiskAnalysis:
    """Analysis of all fault trees in a model with fixed settings.

    Args:
        model: Model to analyse; it is not modified.
        settings: Analysis settings; defaults apply when None.
    """

    def __init__(self, model: Model, settings: Optional[AnalysisSettings] = None) -> None:
        self.model = model
        self.settings = settings or AnalysisSettings()

    def analyze(self, token: Optional[CancellationToken] = None) -> AnalysisResult:
        """Analyse every fault tree of the model.

        Args:
            token: Cancellation token; setting it stops in-flight trees at the
                next check and marks the remaining ones CANCELLED.

        Returns:
            Per-fault-tree results in fault tree definition order.
        """
        env_level = level_from_env()
        if env_level is not None:
            set_global_log_level(env_level)

        start_time = time.time()
        snapshot = copy.deepcopy(self.model)
        ccf_errors = self._apply_ccf_groups(snapshot)
        names = list(snapshot.fault_trees)
        logger.info(
            f"Starting analysis of {len(names)} fault trees "
            f"(approximation={self.settings.approximation.name}, "
            f"algorithm={self.settings.algorithm.name}, "
            f"prime_implicants={self.settings.prime_implicants})"
        )

        if self.settings.parallelism > 1 and len(names) > 1:
            results = self._run_parallel(snapshot, names, ccf_errors, token)
        else:
            results = self._run_serial(snapshot, names, ccf_errors, token)

        elapsed_time = time.time() - start_time
        counts: Dict[str, int] = {}
        for result in results:
            counts[result.status.name] = counts.get(result.status.name, 0) + 1
        logger.info(
            f"Analysis completed in {elapsed_time:.2f} seconds: "
            + ", ".join(f"{count} {status.lower()}" for status, count in sorted(counts.items()))
        )
        return AnalysisResult(
            results={r.name: r for r in results},
            settings=self.settings.to_dict(),
            duration=elapsed_time,
        )

    def _apply_ccf_groups(self, snapshot: Model) -> Dict[str, FtquantError]:
        """Expand valid CCF groups in the snapshot; return errors of the others."""
        errors: Dict[str, FtquantError] = {}
        for name, group in snapshot.ccf_groups.items():
            try:
                group.apply(snapshot, self.settings.mission_time)
            except (ValidationError, InvalidExpressionError) as exc:
                logger.error(f"CCF group '{name}' is invalid: {exc}")
                errors[name] = exc
        return errors

    def _run_parallel(
        self,
        snapshot: Model,
        names: List[str],
        ccf_errors: Dict[str, FtquantError],
        token: Optional[CancellationToken],
    ) -> List[FaultTreeResult]:
        workers = min(self.settings.parallelism, len(names))
        logger.info(f"Running parallel analysis with {workers} workers for {len(names)} fault trees")
        start_time = time.time()

        def work(name: str) -> FaultTreeResult:
            return self._analyze_fault_tree(snapshot, name, ccf_errors, token)

        results: List[FaultTreeResult] = []
        with ThreadPoolExecutor(max_workers=workers) as pool:
            for result in pool.map(work, names):
                results.append(result)
                if len(names) >= 20 and len(results) % max(1, len(names) // 10) == 0:
                    logger.info(
                        f"Parallel analysis progress: {len(results)}/{len(names)} fault trees completed"
                    )

        logger.debug(f"Parallel analysis finished in {time.time() - start_time:.2f} seconds")
        return results

    def _run_serial(
        self,
        snapshot: Model,
        names: List[str],
        ccf_errors: Dict[str, FtquantError],
        token: Optional[CancellationToken],
    ) -> List[FaultTreeResult]:
        logger.debug("Running serial analysis")
        results: List[FaultTreeResult] = []
        for i, name in enumerate(names):
            logger.debug(f"Serial fault tree {i + 1}/{len(names)}: '{name}'")
            results.append(self._analyze_fault_tree(snapshot, name, ccf_errors, token))
        return results

    def _analyze_fault_tree(
        self,
        snapshot: Model,
        name: str,
        ccf_errors: Dict[str, FtquantError],
        token: Optional[CancellationToken],
    ) -> FaultTreeResult:
        """Run the pipeline for one fault tree and capture its outcome."""
        settings = self.settings
        budget = WorkBudget(token, settings.time_limit, settings.check_interval)
        start_time = time.time()
        state: Dict[str, Any] = {"warnings": []}

        try:
            budget.check()
            top = validate_fault_tree(snapshot, name)
            state["top_gate"] = top
            self._check_ccf_errors(snapshot, top, ccf_errors)
            pdag = normalize(snapshot, top, settings)
            products = generate_products(pdag, settings, budget)
            state["products"] = products
            if products.truncated:
                state["warnings"].append(
                    f"Products of '{name}' are truncated by the order or count limit."
                )
            if settings.probability:
                self._quantify(snapshot, name, pdag.variables, products, budget, state)
        except Cancelled as exc:
            logger.info(f"Analysis of fault tree '{name}' cancelled")
            return self._result(name, Status.CANCELLED, state, exc, start_time)
        except AnalysisLimitExceeded as exc:
            if isinstance(exc.partial, ProductSet):
                state["products"] = exc.partial
            elif isinstance(exc.partial, UncertaintyResult):
                state["uncertainty"] = exc.partial
            logger.warning(f"Analysis of fault tree '{name}' stopped early: {exc}")
            return self._result(name, Status.TRUNCATED, state, exc, start_time)
        except (ValidationError, InvalidExpressionError, ProbabilityRangeError) as exc:
            logger.error(f"Analysis of fault tree '{name}' failed: {exc}")
            return self._result(name, Status.FAILED, state, exc, start_time)
        except RecursionError:
            # Graph walks are iterative; only nested formulas inside one gate recurse
            exc = AnalysisLimitExceeded(
                f"Fault tree '{name}' has formulas nested too deeply to analyse.",
                limit="recursion_depth",
            )
            logger.error(f"Analysis of fault tree '{name}' failed: {exc}")
            return self._result(name, Status.FAILED, state, exc, start_time)

        products = state["products"]
        status = Status.TRUNCATED if products.truncated else Status.COMPLETE
        result = self._result(name, status, state, None, start_time)
        logger.debug(
            f"Fault tree '{name}' analysed in {result.duration:.3f} seconds: "
            f"{len(products)} products, status {status.name}"
        )
        return result

    def _quantify(
        self,
        snapshot: Model,
        name: str,
        variables: List[str],
        products: ProductSet,
        budget: WorkBudget,
        state: Dict[str, Any],
    ) -> None:
        settings = self.settings
        probabilities = event_probabilities(snapshot, variables, settings.mission_time)
        calculator = ProbabilityCalculator(
            products, settings.approximation, order=variables, budget=budget
        )
        total, warnings = calculator.quantify(probabilities, settings.rare_event_divergence)
        state["warnings"].extend(warnings)
        state["probability"] = total
        state["products"] = annotate_products(products, calculator, probabilities, total)

        if settings.importance:
            importance: ImportanceTable = compute_importance(
                variables,
                calculator,
                probabilities,
                total,
                parallelism=settings.parallelism,
                budget=budget,
            )
            state["importance"] = importance
        if settings.uncertainty:
            expressions = {
                event: snapshot.basic_events[event].expression for event in calculator.events
            }
            state["uncertainty"] = run_uncertainty(
                name, calculator, expressions, settings, budget
            )

    @staticmethod
    def _check_ccf_errors(
        snapshot: Model, top: str, ccf_errors: Dict[str, FtquantError]
    ) -> None:
        if not ccf_errors:
            return
        reachable = set(snapshot.reachable_events(top))
        for group_name, error in ccf_errors.items():
            members = snapshot.ccf_groups[group_name].members
            if reachable.intersection(members):
                raise error

    @staticmethod
    def _result(
        name: str,
        status: Status,
        state: Dict[str, Any],
        error: Optional[FtquantError],
        start_time: float,
    ) -> FaultTreeResult:
        return FaultTreeResult(
            name=name,
            status=status,
            top_gate=state.get("top_gate"),
            products=state.get("products"),
            probability=state.get("probability"),
            importance=state.get("importance"),
            uncertainty=state.get("uncertainty"),
            warnings=tuple(state["warnings"]),
            error=error,
            duration=time.time() - start_time,
        )


def analyze(
    model: Model,
    settings: Optional[AnalysisSettings] = None,
    token: Optional[CancellationToken] = None,
    **kwargs: Any,
) -> AnalysisResult:
    """Analyse a model in one call.

    Args:
        model: Model to analyse.
        settings: Base settings; defaults apply when None.
        token: Optional cancellation token.
        **kwargs: Setting overrides, e.g. ``approximation="rare-event"``.

    Returns:
        Per-fault-tree results.

    Example:
        >>> result = analyze(model, probability=True, limit_order=4)
        >>> result["FT"].probability
    """
    if kwargs:
        base = (settings or AnalysisSettings()).to_dict()
        base.update({key.replace("-", "_"): value for key, value in kwargs.items()})
        settings = AnalysisSettings.from_dict(base)
    return RiskAnalysis(model, settings).analyze(token)
