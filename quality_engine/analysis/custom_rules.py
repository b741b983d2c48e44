# Data Quality Engine - Custom Rule Evaluator
# Evaluates user-authored conditions against every row

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Union

from quality_engine.analysis.models import (
    AnalysisWarning,
    CustomRule,
    ValidationResult,
    ValidationSource,
    WarningKind,
)
from quality_engine.analysis.rule_parser import RuleParser
from quality_engine.core.exceptions import MalformedRuleException
from quality_engine.core.logging import get_logger

logger = get_logger(__name__)

RuleLike = Union[CustomRule, Mapping[str, Any]]


@dataclass
class RuleEvaluation:
    """Results for the rules that parsed, warnings for the ones that did not."""

    results: list[ValidationResult] = field(default_factory=list)
    warnings: list[AnalysisWarning] = field(default_factory=list)


def coerce_rule(rule: RuleLike) -> CustomRule:
    """Accept a CustomRule or a stored rule mapping."""
    if isinstance(rule, CustomRule):
        return rule
    if isinstance(rule, Mapping):
        return CustomRule.from_mapping(rule)
    raise TypeError(f"custom rule must be a CustomRule or a mapping, got {type(rule).__name__}")


class CustomRuleEvaluator:
    """
    Custom rule evaluation.

    Rows for which a rule's condition is false are the rule's affected rows.
    Every active rule yields exactly one ValidationResult, even when no row
    is affected. A rule whose condition cannot be parsed is skipped and
    reported as a ``malformed_rule`` warning.
    """

    def evaluate(
        self,
        rows: Sequence[Mapping[str, Any]],
        headers: Sequence[str],
        rules: Iterable[CustomRule]
    ) -> RuleEvaluation:
        evaluation = RuleEvaluation()
        parser = RuleParser(headers)

        for rule in rules:
            if not rule.active:
                continue

            try:
                expression = parser.parse(rule.condition)
            except MalformedRuleException as e:
                logger.warning(
                    f"Skipping rule '{rule.name}': {e.reason}",
                    rule_id=rule.id,
                    error_code=e.error_code.value
                )
                evaluation.warnings.append(AnalysisWarning(
                    kind=WarningKind.MALFORMED_RULE,
                    message=e.message,
                    rule_id=rule.id,
                ))
                continue

            affected = tuple(
                index for index, row in enumerate(rows) if not expression.evaluate(row)
            )

            evaluation.results.append(ValidationResult(
                id=rule.id,
                rule=rule.name,
                severity=rule.severity,
                affected_rows=affected,
                description=rule.description or f"Rows must satisfy: {rule.condition}",
                suggestion=f"Review rows where '{rule.condition}' does not hold",
                source=ValidationSource.CUSTOM_RULE,
                can_auto_fix=False,
            ))

            logger.debug(f"Rule '{rule.name}' affected {len(affected)} rows", rule_id=rule.id)

        return evaluation


def get_custom_rule_evaluator() -> CustomRuleEvaluator:
    """Get custom rule evaluator instance."""
    return CustomRuleEvaluator()
