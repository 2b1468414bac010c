"""Common-cause failure (CCF) groups.

A CCF group ties basic events that can fail together from a shared cause.
Applying a group to a model replaces every member basic event with an OR gate
of the same name over generated CCF events, one per combination of members
up to the group's maximum level. The CCF event for members ``A`` and ``B`` is
named ``"[A B]"`` and its probability follows the group's parametric model:

- beta-factor: ``Q1 = (1 - beta) * Q`` and ``Qn = beta * Q``; only the
  independent and the all-members levels exist.
- multiple Greek letters (MGL): factors for levels 2..m;
  ``Qk = 1/C(n-1, k-1) * rho_2 * ... * rho_k * (1 - rho_{k+1}) * Q`` with no
  ``(1 - rho)`` term at the last level.
- alpha-factor: ``Qk = 1/C(n-1, k-1) * alpha_k / sum(alpha) * Q``.
- phi-factor: ``Qk = phi_k * Q``; the factors must sum to 1.

Here ``Q`` is the group's total failure probability distribution and ``n`` the
number of members.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from itertools import combinations
from math import comb
from typing import TYPE_CHECKING, Dict, List, Tuple

from ftquant.errors import ValidationError, ValidationRule
from ftquant.logging import get_logger
from ftquant.model.event import BasicEvent, Gate
from ftquant.model.expression import CcfExpression, Expression
from ftquant.model.formula import Formula
from ftquant.types.base import Connective

if TYPE_CHECKING:
    from ftquant.model.model import Model

logger = get_logger(__name__)

#: Tolerance on the phi-factor sum.
PHI_SUM_TOLERANCE = 1e-4


class CcfModel(str, Enum):
    BETA_FACTOR = "beta-factor"
    MGL = "MGL"
    ALPHA_FACTOR = "alpha-factor"
    PHI_FACTOR = "phi-factor"


_FIRST_LEVEL = {
    CcfModel.BETA_FACTOR: None,  # level must equal the number of members
    CcfModel.MGL: 2,
    CcfModel.ALPHA_FACTOR: 1,
    CcfModel.PHI_FACTOR: 1,
}


@dataclass
class CcfGroup:
    """Common-cause failure group over basic events.

    Attributes:
        name: Unique group name.
        model: Parametric CCF model.
        members: Member basic event names.
        distribution: Total failure probability Q of each member.
        factors: (level, factor expression) pairs in increasing level order.
    """

    name: str
    model: CcfModel
    members: List[str] = field(default_factory=list)
    distribution: Expression | None = None
    factors: List[Tuple[int, Expression]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if isinstance(self.model, str) and not isinstance(self.model, CcfModel):
            self.model = CcfModel(self.model)

    def add_member(self, name: str) -> None:
        """Add a member basic event by name.

        Raises:
            ValidationError: If the member is already in the group.
        """
        if name in self.members:
            raise ValidationError(
                ValidationRule.CCF_GROUP,
                self.name,
                f"Duplicate member {name} in {self.name} CCF group.",
            )
        self.members.append(name)

    def add_factor(self, factor: Expression, level: int | None = None) -> None:
        """Add the factor for the next level.

        Args:
            factor: Factor expression.
            level: Level of the factor; defaults to the next expected level.

        Raises:
            ValidationError: If the level is out of sequence.
        """
        expected = self._next_level()
        if level is None:
            level = expected
        if level != expected:
            raise ValidationError(
                ValidationRule.CCF_GROUP,
                self.name,
                f"{self.name} CCF group level expected {expected}. "
                f"Instead was given {level}.",
            )
        self.factors.append((level, factor))

    def _next_level(self) -> int:
        if self.model == CcfModel.BETA_FACTOR:
            return len(self.members)
        if self.factors:
            return self.factors[-1][0] + 1
        return _FIRST_LEVEL[self.model]

    @property
    def max_level(self) -> int:
        return self.factors[-1][0] if self.factors else 0

    def _fail(self, message: str) -> ValidationError:
        return ValidationError(ValidationRule.CCF_GROUP, self.name, message)

    def validate(self, model: "Model", mission_time: float) -> None:
        """Check membership, factor levels, and factor values.

        Raises:
            ValidationError: On any rule violation.
        """
        if len(self.members) < 2:
            raise self._fail(f"{self.name} CCF group must have at least 2 members.")
        if len(set(self.members)) != len(self.members):
            raise self._fail(f"{self.name} CCF group has duplicate members.")
        for member in self.members:
            if member not in model.basic_events:
                raise ValidationError(
                    ValidationRule.UNDEFINED_REFERENCE,
                    self.name,
                    f"{self.name} CCF group member '{member}' is not a basic event.",
                )
        if self.distribution is None:
            raise self._fail(f"{self.name} CCF group has no distribution.")
        value = self.distribution.value(mission_time)
        if not 0.0 <= value <= 1.0:
            raise self._fail(f"Distribution for {self.name} CCF group has illegal values.")
        if not self.factors:
            raise self._fail(f"{self.name} CCF group has no factors.")

        levels = [level for level, _ in self.factors]
        if self.model == CcfModel.BETA_FACTOR:
            if len(self.factors) != 1:
                raise self._fail(
                    f"Beta-Factor Model {self.name} CCF group must have exactly one factor."
                )
            if levels[0] != len(self.members):
                raise self._fail(
                    f"Beta-Factor Model {self.name} CCF group must have the level "
                    f"matching the number of its members."
                )
        else:
            first = _FIRST_LEVEL[self.model]
            if levels != list(range(first, first + len(levels))):
                raise self._fail(f"{self.name} CCF group factor levels are not sequential.")
        if self.max_level > len(self.members):
            raise self._fail(
                f"The level of factors for {self.name} CCF group cannot be more "
                f"than # of members."
            )
        for _, factor in self.factors:
            if not 0.0 <= factor.value(mission_time) <= 1.0:
                raise self._fail(f"Factors for {self.name} CCF group have illegal values.")
        if self.model == CcfModel.PHI_FACTOR:
            total = sum(f.value(mission_time) for _, f in self.factors)
            if abs(total - 1.0) > PHI_SUM_TOLERANCE:
                raise self._fail(
                    f"The factors for Phi model {self.name} CCF group must sum to 1."
                )

    def level_probabilities(self) -> Dict[int, CcfExpression]:
        """Return the CCF event probability expression for each level."""
        assert self.distribution is not None
        q = self.distribution
        n = len(self.members)
        max_level = self.max_level
        factors = [factor for _, factor in self.factors]

        if self.model == CcfModel.BETA_FACTOR:
            beta = factors[0]
            return {
                1: CcfExpression(q, complements=(beta,)),
                max_level: CcfExpression(q, factors=(beta,)),
            }

        probabilities: Dict[int, CcfExpression] = {}
        for i in range(max_level):
            # (n - 1) choose (k - 1) members share a level-k event with a member
            coefficient = 1.0 / comb(n - 1, i)
            if self.model == CcfModel.MGL:
                complements = (factors[i],) if i < max_level - 1 else ()
                probabilities[i + 1] = CcfExpression(
                    q,
                    coefficient=coefficient,
                    factors=tuple(factors[:i]),
                    complements=complements,
                )
            elif self.model == CcfModel.ALPHA_FACTOR:
                probabilities[i + 1] = CcfExpression(
                    q,
                    coefficient=coefficient,
                    factors=(factors[i],),
                    normalizers=tuple(factors),
                )
            else:
                probabilities[i + 1] = CcfExpression(q, factors=(factors[i],))
        return probabilities

    def combinations(self) -> List[Tuple[str, ...]]:
        """Member combinations that receive a CCF event, level by level."""
        members = sorted(self.members)
        if self.model == CcfModel.BETA_FACTOR:
            levels = [1, self.max_level]
        else:
            levels = list(range(1, self.max_level + 1))
        result: List[Tuple[str, ...]] = []
        for level in levels:
            result.extend(combinations(members, level))
        return result

    def apply(self, model: "Model", mission_time: float) -> None:
        """Replace member basic events of ``model`` with CCF gates, in place.

        Apply to an analysis snapshot, never to the caller's model.

        Raises:
            ValidationError: If the group is invalid for the model.
        """
        self.validate(model, mission_time)
        probabilities = self.level_probabilities()
        arguments: Dict[str, List[str]] = {member: [] for member in self.members}

        new_events: List[BasicEvent] = []
        for combo in self.combinations():
            event_name = "[" + " ".join(combo) + "]"
            new_events.append(
                BasicEvent(
                    event_name,
                    expression=probabilities[len(combo)],
                    attrs={"ccf_group": self.name, "members": list(combo)},
                )
            )
            for member in combo:
                arguments[member].append(event_name)

        for member in self.members:
            original = model.basic_events.pop(member)
            model.gates[member] = Gate(
                member,
                Formula(Connective.OR, tuple(arguments[member])),
                label=original.label,
                attrs={"ccf_group": self.name},
            )
        for event in new_events:
            model.add_basic_event(event)
        logger.debug(
            f"Applied {self.model.value} CCF group '{self.name}': "
            f"{len(self.members)} members, {len(new_events)} CCF events"
        )
