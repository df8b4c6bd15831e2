"""Ordered rule cascades, score tables, and classification plans.

A rule set is an ordered list of (predicate, outcome) rules evaluated
top to bottom where the first true predicate wins. Every rule set ends
in a catch-all so any row classifies. Rule sets are validated once when
they are built, never per record.

A classification plan chains tier cascades, score tables, and derived
values in a fixed order. A step may read outputs of earlier steps but
never of itself or of a later step.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Callable, Mapping, Sequence, Union

from core.errors import KeystoneRuleSetError
from core.values import to_float
from transforms.predicates import Predicate, Row, always

Outcome = Union[str, float]


@dataclass(frozen=True)
class Rule:
    """One ``predicate -> outcome`` pair of a cascade."""

    predicate: Predicate
    outcome: Outcome


@dataclass(frozen=True)
class Classification:
    """Result of evaluating one rule set.

    Attributes:
        tier: Categorical outcome for tier cascades.
        score: Numeric outcome for point cascades.
    """

    tier: str | None
    score: float | None


class RuleSet:
    """Validated first-match-wins cascade."""

    def __init__(self, name: str, rules: Sequence[Rule]) -> None:
        """Validate and freeze a cascade.

        Args:
            name: Rule set name used in error messages.
            rules: Ordered rules ending in a catch-all.

        Raises:
            KeystoneRuleSetError: If the cascade is empty, lacks a terminal
                catch-all, or has rules made unreachable by an early catch-all.
        """
        if not rules:
            raise KeystoneRuleSetError(f"Rule set '{name}' has no rules. Add a catch-all rule.")
        if not rules[-1].predicate.catch_all:
            raise KeystoneRuleSetError(
                f"Rule set '{name}' does not end in a catch-all rule. "
                "Append a default outcome so every record classifies."
            )
        for position, rule in enumerate(rules[:-1]):
            if rule.predicate.catch_all:
                raise KeystoneRuleSetError(
                    f"Rule set '{name}' has a catch-all at position {position + 1} "
                    f"that hides {len(rules) - position - 1} later rule(s)."
                )
        self.name = name
        self.rules = tuple(rules)
        fields: set[str] = set()
        for rule in self.rules:
            fields.update(rule.predicate.fields)
        self.fields = frozenset(fields)

    @property
    def outcomes(self) -> tuple[Outcome, ...]:
        """Declared outcomes in rule order without duplicates."""
        seen: list[Outcome] = []
        for rule in self.rules:
            if rule.outcome not in seen:
                seen.append(rule.outcome)
        return tuple(seen)

    def evaluate(self, row: Row) -> Outcome:
        """Return the outcome of the first rule whose predicate is true."""
        for rule in self.rules:
            if rule.predicate.matches(row):
                return rule.outcome
        return self.rules[-1].outcome


def cascade(name: str, rules: Sequence[tuple[Predicate, Outcome]], default: Outcome) -> RuleSet:
    """Build a rule set from ordered pairs plus a default outcome."""
    built = [Rule(predicate, outcome) for predicate, outcome in rules]
    built.append(Rule(always(), default))
    return RuleSet(name, built)


def classify(row: Row, rule_set: RuleSet) -> Classification:
    """Evaluate a rule set and wrap its outcome as a tier or score."""
    outcome = rule_set.evaluate(row)
    if isinstance(outcome, str):
        return Classification(tier=outcome, score=None)
    return Classification(tier=None, score=float(outcome))


@dataclass(frozen=True)
class PointsComponent:
    """Score contribution selected from a points cascade."""

    rule_set: RuleSet
    weight: float = 1.0

    @property
    def fields(self) -> frozenset[str]:
        return self.rule_set.fields

    def value(self, row: Row) -> float | None:
        return float(self.rule_set.evaluate(row))


@dataclass(frozen=True)
class FieldComponent:
    """Score contribution read from a numeric field; absent makes the score absent."""

    field: str
    weight: float = 1.0

    @property
    def fields(self) -> frozenset[str]:
        return frozenset({self.field})

    def value(self, row: Row) -> float | None:
        return to_float(row.get(self.field))


ScoreComponent = Union[PointsComponent, FieldComponent]


class ScoreTable:
    """Weighted sum of score components multiplied by a scale factor.

    Percentage-style tables declare ``total_weight``; their component
    weights must add up to it.
    """

    def __init__(
        self,
        name: str,
        components: Sequence[ScoreComponent],
        scale: float = 1.0,
        total_weight: float | None = None,
    ) -> None:
        """Validate the components once.

        Raises:
            KeystoneRuleSetError: If there are no components or the weights
                do not add up to ``total_weight``.
        """
        if not components:
            raise KeystoneRuleSetError(f"Score table '{name}' has no components.")
        weight_sum = sum(component.weight for component in components)
        if total_weight is not None and not math.isclose(weight_sum, total_weight):
            raise KeystoneRuleSetError(
                f"Score table '{name}' weights add up to {weight_sum:g}, "
                f"expected {total_weight:g}. Fix the component weights."
            )
        self.name = name
        self.components = tuple(components)
        self.scale = scale
        fields: set[str] = set()
        for component in self.components:
            fields.update(component.fields)
        self.fields = frozenset(fields)

    @property
    def weights(self) -> tuple[float, ...]:
        return tuple(component.weight for component in self.components)

    def evaluate(self, row: Row) -> float | None:
        """Return the weighted score, ``None`` when a field component is absent."""
        total = 0.0
        for component in self.components:
            value = component.value(row)
            if value is None:
                return None
            total += value * component.weight
        return total * self.scale


def points(
    name: str,
    rules: Sequence[tuple[Predicate, float]],
    default: float,
    weight: float = 1.0,
) -> PointsComponent:
    """Build a weighted points component from an ordered cascade."""
    return PointsComponent(cascade(name, rules, default), weight)


@dataclass(frozen=True)
class TierStep:
    """Plan step writing a tier cascade outcome."""

    output: str
    rule_set: RuleSet

    @property
    def inputs(self) -> frozenset[str]:
        return self.rule_set.fields

    def apply(self, row: Row) -> object:
        return self.rule_set.evaluate(row)


@dataclass(frozen=True)
class ScoreStep:
    """Plan step writing a score table value."""

    output: str
    table: ScoreTable

    @property
    def inputs(self) -> frozenset[str]:
        return self.table.fields

    def apply(self, row: Row) -> object:
        return self.table.evaluate(row)


@dataclass(frozen=True)
class DerivedStep:
    """Plan step writing a computed value from declared inputs."""

    output: str
    fields: tuple[str, ...]
    compute: Callable[[Row], object]

    @property
    def inputs(self) -> frozenset[str]:
        return frozenset(self.fields)

    def apply(self, row: Row) -> object:
        return self.compute(row)


PlanStep = Union[TierStep, ScoreStep, DerivedStep]


def tier(output: str, rules: Sequence[tuple[Predicate, str]], default: str) -> TierStep:
    """Build a tier step whose rule set is named after its output."""
    return TierStep(output, cascade(output, rules, default))


def score(
    output: str,
    components: Sequence[ScoreComponent],
    scale: float = 1.0,
    total_weight: float | None = None,
) -> ScoreStep:
    """Build a score step whose table is named after its output."""
    return ScoreStep(output, ScoreTable(output, components, scale, total_weight))


def derived(output: str, fields: Sequence[str], compute: Callable[[Row], object]) -> DerivedStep:
    """Build a derived-value step."""
    return DerivedStep(output, tuple(fields), compute)


class ClassificationPlan:
    """Ordered, acyclic sequence of plan steps."""

    def __init__(self, name: str, steps: Sequence[PlanStep]) -> None:
        """Validate step ordering once.

        Raises:
            KeystoneRuleSetError: If outputs repeat or a step reads its own
                output or the output of a later step.
        """
        positions: dict[str, int] = {}
        for position, step in enumerate(steps):
            if step.output in positions:
                raise KeystoneRuleSetError(
                    f"Plan '{name}' writes '{step.output}' more than once. "
                    "Give every step a unique output field."
                )
            positions[step.output] = position
        for position, step in enumerate(steps):
            for field in sorted(step.inputs):
                producer = positions.get(field)
                if producer is not None and producer >= position:
                    raise KeystoneRuleSetError(
                        f"Plan '{name}' step '{step.output}' reads '{field}', which is "
                        "produced by the same or a later step. Reorder the steps."
                    )
        self.name = name
        self.steps = tuple(steps)

    @property
    def outputs(self) -> tuple[str, ...]:
        return tuple(step.output for step in self.steps)

    def step(self, output: str) -> PlanStep:
        """Return the step producing ``output``."""
        for step in self.steps:
            if step.output == output:
                return step
        raise KeyError(output)

    def apply(self, row: Row) -> dict[str, object]:
        """Evaluate all steps in order and return their outputs."""
        working = dict(row)
        produced: dict[str, object] = {}
        for step in self.steps:
            value = step.apply(working)
            working[step.output] = value
            produced[step.output] = value
        return produced
