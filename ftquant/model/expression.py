"""Probability expressions of basic events.

Point expressions (`ConstantExpression`, `ExponentialExpression`,
`NullExpression`) evaluate to a probability at the mission time. Deviates
(`UniformDeviate`, `NormalDeviate`, `LogNormalDeviate`, `BetaDeviate`) also
evaluate to their mean but can be sampled for uncertainty analysis.
`CcfExpression` is the derived probability of a common-cause event.

Samples drawn within one Monte Carlo trial share a memo keyed by expression
identity, so an expression referenced by several events is drawn once per
trial.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from statistics import NormalDist
from typing import Dict, Optional, Tuple

import numpy as np

from ftquant.errors import InvalidExpressionError

SampleMemo = Dict[int, float]


class Expression(ABC):
    """Base class for probability expressions."""

    #: True when sampling can return different values.
    is_deviate: bool = False

    @abstractmethod
    def value(self, mission_time: float) -> float:
        """Return the point value at the mission time."""

    def validate(self, mission_time: float, event: Optional[str] = None) -> None:
        """Raise InvalidExpressionError if parameters are illegal.

        Args:
            mission_time: Time horizon the expression is evaluated at.
            event: Owning basic event name for error reporting.
        """
        if mission_time < 0:
            raise InvalidExpressionError(
                f"mission time {mission_time} must be non-negative", event
            )

    def sample(
        self,
        rng: np.random.Generator,
        mission_time: float,
        memo: Optional[SampleMemo] = None,
    ) -> float:
        """Draw one value; point expressions return their value."""
        return self.value(mission_time)


@dataclass(frozen=True, eq=False)
class ConstantExpression(Expression):
    """Constant probability."""

    probability: float

    def value(self, mission_time: float) -> float:
        return self.probability

    def validate(self, mission_time: float, event: Optional[str] = None) -> None:
        super().validate(mission_time, event)
        if not 0.0 <= self.probability <= 1.0:
            raise InvalidExpressionError(
                f"constant probability {self.probability} is outside [0, 1]", event
            )


@dataclass(frozen=True, eq=False)
class ExponentialExpression(Expression):
    """Negative exponential distribution: ``1 - exp(-rate * t)``."""

    rate: float

    def value(self, mission_time: float) -> float:
        return 1.0 - math.exp(-self.rate * mission_time)

    def validate(self, mission_time: float, event: Optional[str] = None) -> None:
        super().validate(mission_time, event)
        if self.rate < 0:
            raise InvalidExpressionError(
                f"failure rate {self.rate} must be non-negative", event
            )


@dataclass(frozen=True, eq=False)
class NullExpression(Expression):
    """Pass-through expression; the event is always considered occurring."""

    def value(self, mission_time: float) -> float:
        return 1.0


class _Deviate(Expression):
    is_deviate = True

    def sample(
        self,
        rng: np.random.Generator,
        mission_time: float,
        memo: Optional[SampleMemo] = None,
    ) -> float:
        if memo is None:
            return self._draw(rng)
        key = id(self)
        if key not in memo:
            memo[key] = self._draw(rng)
        return memo[key]

    @abstractmethod
    def _draw(self, rng: np.random.Generator) -> float: ...


@dataclass(frozen=True, eq=False)
class UniformDeviate(_Deviate):
    """Uniform distribution on [low, high] within [0, 1]."""

    low: float
    high: float

    def value(self, mission_time: float) -> float:
        return (self.low + self.high) / 2.0

    def validate(self, mission_time: float, event: Optional[str] = None) -> None:
        super().validate(mission_time, event)
        if not 0.0 <= self.low <= self.high <= 1.0:
            raise InvalidExpressionError(
                f"uniform bounds [{self.low}, {self.high}] must satisfy "
                f"0 <= low <= high <= 1",
                event,
            )

    def _draw(self, rng: np.random.Generator) -> float:
        return float(rng.uniform(self.low, self.high))


@dataclass(frozen=True, eq=False)
class NormalDeviate(_Deviate):
    """Normal distribution; samples are clipped to [0, 1]."""

    mean: float
    sigma: float

    def value(self, mission_time: float) -> float:
        return self.mean

    def validate(self, mission_time: float, event: Optional[str] = None) -> None:
        super().validate(mission_time, event)
        if not 0.0 <= self.mean <= 1.0:
            raise InvalidExpressionError(f"normal mean {self.mean} is outside [0, 1]", event)
        if self.sigma <= 0:
            raise InvalidExpressionError(f"normal sigma {self.sigma} must be positive", event)

    def _draw(self, rng: np.random.Generator) -> float:
        return float(np.clip(rng.normal(self.mean, self.sigma), 0.0, 1.0))


@dataclass(frozen=True, eq=False)
class LogNormalDeviate(_Deviate):
    """Log-normal distribution given by its mean and error factor.

    The error factor is the ratio of the ``level`` quantile to the median.
    Samples above 1 are clipped to 1.
    """

    mean: float
    error_factor: float
    level: float = 0.95

    def value(self, mission_time: float) -> float:
        return self.mean

    @property
    def sigma(self) -> float:
        z = NormalDist().inv_cdf(0.5 + self.level / 2.0)
        return math.log(self.error_factor) / z

    @property
    def mu(self) -> float:
        return math.log(self.mean) - self.sigma**2 / 2.0

    def validate(self, mission_time: float, event: Optional[str] = None) -> None:
        super().validate(mission_time, event)
        if not 0.0 < self.mean <= 1.0:
            raise InvalidExpressionError(
                f"log-normal mean {self.mean} must be in (0, 1]", event
            )
        if self.error_factor <= 1.0:
            raise InvalidExpressionError(
                f"log-normal error factor {self.error_factor} must be > 1", event
            )
        if not 0.0 < self.level < 1.0:
            raise InvalidExpressionError(
                f"log-normal confidence level {self.level} must be in (0, 1)", event
            )

    def _draw(self, rng: np.random.Generator) -> float:
        return float(min(1.0, rng.lognormal(self.mu, self.sigma)))


@dataclass(frozen=True, eq=False)
class BetaDeviate(_Deviate):
    """Beta distribution with shape parameters alpha and beta."""

    alpha: float
    beta: float

    def value(self, mission_time: float) -> float:
        return self.alpha / (self.alpha + self.beta)

    def validate(self, mission_time: float, event: Optional[str] = None) -> None:
        super().validate(mission_time, event)
        if self.alpha <= 0 or self.beta <= 0:
            raise InvalidExpressionError(
                f"beta shape parameters ({self.alpha}, {self.beta}) must be positive",
                event,
            )

    def _draw(self, rng: np.random.Generator) -> float:
        return float(rng.beta(self.alpha, self.beta))


@dataclass(frozen=True, eq=False)
class CcfExpression(Expression):
    """Probability of a common-cause event.

    Evaluates ``coefficient * prod(factors) * prod(1 - complements) /
    sum(normalizers) * distribution``; an empty normalizer tuple divides by 1.
    """

    distribution: Expression
    coefficient: float = 1.0
    factors: Tuple[Expression, ...] = ()
    complements: Tuple[Expression, ...] = ()
    normalizers: Tuple[Expression, ...] = ()

    @property
    def is_deviate(self) -> bool:  # type: ignore[override]
        parts = (self.distribution,) + self.factors + self.complements + self.normalizers
        return any(part.is_deviate for part in parts)

    def value(self, mission_time: float) -> float:
        return self._combine(lambda expr: expr.value(mission_time))

    def sample(
        self,
        rng: np.random.Generator,
        mission_time: float,
        memo: Optional[SampleMemo] = None,
    ) -> float:
        if memo is None:
            memo = {}
        return self._combine(lambda expr: expr.sample(rng, mission_time, memo))

    def validate(self, mission_time: float, event: Optional[str] = None) -> None:
        super().validate(mission_time, event)
        for part in (self.distribution,) + self.factors + self.complements:
            part.validate(mission_time, event)
        for part in self.normalizers:
            part.validate(mission_time, event)
        if self.normalizers and sum(n.value(mission_time) for n in self.normalizers) <= 0:
            raise InvalidExpressionError("CCF factors must not sum to zero", event)

    def _combine(self, evaluate) -> float:
        result = self.coefficient * evaluate(self.distribution)
        for factor in self.factors:
            result *= evaluate(factor)
        for factor in self.complements:
            result *= 1.0 - evaluate(factor)
        if self.normalizers:
            result /= sum(evaluate(n) for n in self.normalizers)
        return result
