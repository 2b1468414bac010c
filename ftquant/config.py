"""Configuration classes for ftquant analyses."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

from ftquant.types.base import Algorithm, Approximation


@dataclass(frozen=True)
class AnalysisSettings:
    """Immutable analysis configuration threaded through every component.

    Importance and uncertainty analyses need probabilities, so requesting
    either turns on probability analysis.

    Attributes:
        approximation: Quantification method for the top-event probability.
        prime_implicants: Generate prime implicants instead of minimal cut sets.
        probability: Compute the top-event probability.
        importance: Compute importance factors for basic events.
        uncertainty: Run Monte Carlo uncertainty analysis.
        algorithm: Product generation algorithm.
        limit_order: Largest product order kept.
        limit_products: Largest number of products kept (None for no limit).
        mission_time: Time horizon for time-dependent expressions.
        time_limit: Wall-clock seconds allowed per fault tree (None for no limit).
        parallelism: Worker threads for independent fault trees and importance.
        check_interval: Work steps between cancellation and timeout checks.
        atleast_expansion_limit: Largest ATLEAST argument count expanded into
            explicit combinations; larger gates use the threshold encoding.
        rare_event_divergence: Relative excess of the rare-event value over the
            exact value that triggers a warning (None disables the check).
        num_trials: Monte Carlo trials for uncertainty analysis.
        num_bins: Histogram bins for the uncertainty distribution.
        seed: Master seed for uncertainty sampling (None for non-deterministic).
    """

    approximation: Approximation = Approximation.NONE
    prime_implicants: bool = False
    probability: bool = True
    importance: bool = False
    uncertainty: bool = False
    algorithm: Algorithm = Algorithm.BDD
    limit_order: int = 20
    limit_products: Optional[int] = None
    mission_time: float = 8760.0
    time_limit: Optional[float] = None
    parallelism: int = 1
    check_interval: int = 1000
    atleast_expansion_limit: int = 6
    rare_event_divergence: Optional[float] = None
    num_trials: int = 1000
    num_bins: int = 20
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if isinstance(self.approximation, str):
            object.__setattr__(
                self, "approximation", Approximation.from_string(self.approximation)
            )
        if isinstance(self.algorithm, str):
            object.__setattr__(self, "algorithm", Algorithm.from_string(self.algorithm))
        if self.importance or self.uncertainty:
            object.__setattr__(self, "probability", True)

        if self.limit_order < 1:
            raise ValueError(f"limit_order={self.limit_order} must be >= 1.")
        if self.limit_products is not None and self.limit_products < 1:
            raise ValueError(f"limit_products={self.limit_products} must be >= 1.")
        if self.mission_time < 0:
            raise ValueError(f"mission_time={self.mission_time} must be >= 0.")
        if self.time_limit is not None and self.time_limit <= 0:
            raise ValueError(f"time_limit={self.time_limit} must be positive.")
        if self.parallelism < 1:
            raise ValueError(f"parallelism={self.parallelism} must be >= 1.")
        if self.check_interval < 1:
            raise ValueError(f"check_interval={self.check_interval} must be >= 1.")
        if self.atleast_expansion_limit < 2:
            raise ValueError(
                f"atleast_expansion_limit={self.atleast_expansion_limit} must be >= 2."
            )
        if self.rare_event_divergence is not None and self.rare_event_divergence < 0:
            raise ValueError(
                f"rare_event_divergence={self.rare_event_divergence} must be >= 0."
            )
        if self.num_trials < 1:
            raise ValueError(f"num_trials={self.num_trials} must be >= 1.")
        if self.num_bins < 1:
            raise ValueError(f"num_bins={self.num_bins} must be >= 1.")
        if self.algorithm == Algorithm.MOCUS and self.prime_implicants:
            raise ValueError("Prime implicants require the BDD algorithm.")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisSettings":
        """Build settings from a plain mapping.

        Keys use the attribute names; dashes are accepted in place of
        underscores. Enum values may be given as strings.

        Args:
            data: Mapping of setting names to values.

        Returns:
            Validated settings.

        Raises:
            ValueError: On unknown keys or invalid values.
        """
        known = {f.name for f in fields(cls)}
        normalized = {str(key).replace("-", "_"): value for key, value in data.items()}
        unknown = sorted(set(normalized) - known)
        if unknown:
            raise ValueError(
                f"Unknown analysis setting(s): {', '.join(unknown)}. "
                f"Valid settings are: {', '.join(sorted(known))}"
            )
        return cls(**normalized)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable mapping of the settings."""
        data = asdict(self)
        data["approximation"] = self.approximation.name.lower().replace("_", "-")
        data["algorithm"] = self.algorithm.name.lower()
        return data


# Default configuration instance
DEFAULT_SETTINGS = AnalysisSettings()
