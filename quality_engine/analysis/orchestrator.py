# Data Quality Engine - Analysis Orchestrator
# Runs every component in order and assembles the immutable AnalysisResult

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from types import MappingProxyType
from typing import Any, Optional

from quality_engine.analysis.builtin_rules import (
    duplicate_rows_result,
    missing_values_result,
    outliers_result,
)
from quality_engine.analysis.contextual_validation import ContextualValidator
from quality_engine.analysis.cross_field_validation import CrossFieldValidator
from quality_engine.analysis.custom_rules import CustomRuleEvaluator, RuleLike, coerce_rule
from quality_engine.analysis.duplicate_detection import DuplicateDetectionEngine
from quality_engine.analysis.models import (
    AnalysisResult,
    AnalysisWarning,
    CustomRule,
    ValidationResult,
    WarningKind,
)
from quality_engine.analysis.outlier_detection import OutlierDetectionEngine
from quality_engine.analysis.profiling import ColumnProfiler
from quality_engine.analysis.quality_score import calculate_quality_score
from quality_engine.analysis.type_inference import TypeInferenceEngine
from quality_engine.analysis.values import reference_day
from quality_engine.core.config import AnalysisSettings, get_settings
from quality_engine.core.exceptions import (
    AnalysisException,
    EmptyDatasetException,
    ErrorCode,
    ErrorContext,
)
from quality_engine.core.logging import (
    LogContext,
    clear_run_context,
    get_logger,
    log_execution_time,
    set_run_context,
)

logger = get_logger(__name__)


class DataQualityAnalyzer:
    """
    Data quality analysis pipeline.

    Steps, in order:
    1. Type inference
    2. Column profiling (statistics and null counts)
    3. Duplicate detection
    4. Outlier detection
    5. Contextual validation
    6. Cross-field validation
    7. Custom rules (after the built-in rule results)
    8. Quality score

    Stateless between calls: the same rows, headers, rules and reference
    date always produce an equal result. Data irregularities become
    warnings on the result; only structurally invalid arguments raise.
    """

    def __init__(self, settings: Optional[AnalysisSettings] = None):
        self.settings = settings or get_settings()
        self.type_inference = TypeInferenceEngine(self.settings)
        self.profiler = ColumnProfiler()
        self.duplicates = DuplicateDetectionEngine()
        self.outliers = OutlierDetectionEngine(self.settings)
        self.contextual = ContextualValidator(self.settings)
        self.cross_field = CrossFieldValidator()
        self.custom_rules = CustomRuleEvaluator()

    @log_execution_time(operation_name="data_quality_analysis")
    def analyze(
        self,
        rows: Sequence[Mapping[str, Any]],
        headers: Sequence[str],
        custom_rules: Iterable[RuleLike] = (),
        reference_date: Optional[date] = None
    ) -> AnalysisResult:
        """
        Analyze a parsed dataset.

        Args:
            rows: Row mappings of header -> value; missing keys are null
            headers: Ordered, duplicate-free column names
            custom_rules: CustomRule objects or stored rule mappings
            reference_date: "Today" for date plausibility checks (defaults to today)

        Raises:
            AnalysisException: if rows/headers are None or malformed
        """
        rows, headers = self._validate_input(rows, headers)
        rules, rule_warnings = self._coerce_rules(custom_rules)
        today = reference_day(reference_date)

        run_id = set_run_context()
        try:
            return self._run(rows, headers, rules, rule_warnings, today, run_id)
        finally:
            clear_run_context()

    def _run(
        self,
        rows: list[Mapping[str, Any]],
        headers: list[str],
        rules: list[CustomRule],
        rule_warnings: list[AnalysisWarning],
        today: date,
        run_id: str
    ) -> AnalysisResult:
        context = LogContext(run_id=run_id, component="DataQualityAnalyzer", operation="analyze")
        logger.info(
            f"Analyzing {len(rows)} rows x {len(headers)} columns",
            context=context,
            custom_rules=len(rules)
        )

        warnings: list[AnalysisWarning] = []
        if not rows or not headers:
            empty = EmptyDatasetException(
                total_rows=len(rows),
                total_columns=len(headers),
                context=ErrorContext(component="DataQualityAnalyzer", operation="analyze")
            )
            logger.warning(empty.message, context=context)
            warnings.append(AnalysisWarning(kind=WarningKind.EMPTY_DATASET, message=empty.message))

        # 1. Types
        inference = self.type_inference.infer(rows, headers)
        data_types = inference.data_types
        warnings.extend(inference.warnings)

        # 2. Statistics and nulls
        profile = self.profiler.profile(rows, headers, data_types)

        # 3. Duplicates
        duplicates = self.duplicates.detect(rows, headers)

        # 4. Outliers
        outliers = self.outliers.detect(rows, headers, data_types)

        # 5-6. Issues
        contextual_issues = self.contextual.validate(rows, headers, data_types, today)
        cross_field_issues = self.cross_field.validate(rows, headers, data_types, today)

        # 7. Rule results
        validation_results: list[ValidationResult] = [
            result for result in (
                missing_values_result(rows, headers, profile.null_values, data_types),
                duplicate_rows_result(len(rows), headers, duplicates.duplicate_indices),
                outliers_result(outliers.outliers, self.settings.outlier_z_threshold),
            )
            if result is not None
        ]
        evaluation = self.custom_rules.evaluate(rows, headers, rules)
        warnings.extend(rule_warnings)
        validation_results.extend(evaluation.results)
        warnings.extend(evaluation.warnings)

        # 8. Score
        quality_score = calculate_quality_score(
            total_rows=len(rows),
            total_columns=len(headers),
            total_issues=len(contextual_issues) + len(cross_field_issues),
            total_nulls=profile.total_nulls,
            duplicates=duplicates.n_duplicates,
        )

        logger.info(
            f"Analysis complete: score {quality_score}",
            context=context,
            contextual_issues=len(contextual_issues),
            cross_field_issues=len(cross_field_issues),
            duplicates=duplicates.n_duplicates,
            warnings=len(warnings)
        )

        return AnalysisResult(
            total_rows=len(rows),
            total_columns=len(headers),
            null_values=MappingProxyType(dict(profile.null_values)),
            duplicates=duplicates.n_duplicates,
            data_types=MappingProxyType(dict(data_types)),
            outliers=MappingProxyType({col: tuple(records) for col, records in outliers.outliers.items()}),
            statistics=MappingProxyType(dict(profile.statistics)),
            contextual_issues=tuple(contextual_issues),
            cross_field_issues=tuple(cross_field_issues),
            quality_score=quality_score,
            validation_results=tuple(validation_results),
            warnings=tuple(warnings),
        )

    @staticmethod
    def _validate_input(
        rows: Any,
        headers: Any
    ) -> tuple[list[Mapping[str, Any]], list[str]]:
        """Reject structurally invalid calls; everything else is analyzed."""
        if rows is None or headers is None:
            raise AnalysisException(
                f"{'rows' if rows is None else 'headers'} must not be None"
            )

        if isinstance(headers, (str, bytes, Mapping)) or not isinstance(headers, Iterable):
            raise AnalysisException(f"headers must be a sequence of strings, got {type(headers).__name__}")
        header_list = list(headers)
        non_strings = [h for h in header_list if not isinstance(h, str)]
        if non_strings:
            raise AnalysisException(f"headers must be strings, got {non_strings[0]!r}")

        repeated = [h for h, count in Counter(header_list).items() if count > 1]
        if repeated:
            raise AnalysisException(
                f"headers must be unique; repeated: {', '.join(repeated)}",
                error_code=ErrorCode.DUPLICATE_HEADERS
            )

        if isinstance(rows, (str, bytes, Mapping)) or not isinstance(rows, Iterable):
            raise AnalysisException(f"rows must be a sequence of mappings, got {type(rows).__name__}")
        row_list = list(rows)
        for index, row in enumerate(row_list):
            if not isinstance(row, Mapping):
                raise AnalysisException(
                    f"row {index} is a {type(row).__name__}, expected a mapping",
                    error_code=ErrorCode.INVALID_ROW
                )

        return row_list, header_list

    @staticmethod
    def _coerce_rules(
        custom_rules: Optional[Iterable[RuleLike]]
    ) -> tuple[list[CustomRule], list[AnalysisWarning]]:
        """Normalise rules; a rule that cannot be read is reported and skipped."""
        rules: list[CustomRule] = []
        warnings: list[AnalysisWarning] = []
        for rule in custom_rules or ():
            try:
                rules.append(coerce_rule(rule))
            except (TypeError, ValueError) as e:
                rule_id = rule.get("id") if isinstance(rule, Mapping) else None
                logger.warning(f"Skipping unreadable custom rule: {e}", rule_id=rule_id)
                warnings.append(AnalysisWarning(
                    kind=WarningKind.MALFORMED_RULE,
                    message=f"Cannot read custom rule: {e}",
                    rule_id=str(rule_id) if rule_id is not None else None,
                ))
        return rules, warnings


def get_analyzer(settings: Optional[AnalysisSettings] = None) -> DataQualityAnalyzer:
    """Get data quality analyzer instance."""
    return DataQualityAnalyzer(settings)


def analyze(
    rows: Sequence[Mapping[str, Any]],
    headers: Sequence[str],
    custom_rules: Iterable[RuleLike] = (),
    *,
    settings: Optional[AnalysisSettings] = None,
    reference_date: Optional[date] = None
) -> AnalysisResult:
    """Analyze ``rows`` and return an immutable quality report."""
    return DataQualityAnalyzer(settings).analyze(rows, headers, custom_rules, reference_date)
