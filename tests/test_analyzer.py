# Data Quality Engine - Integration Tests: Analysis Pipeline
# Built-in rule results, quality scoring and the end-to-end analyze() contract

import sys
import os
import json
import unittest
from dataclasses import FrozenInstanceError
from datetime import date, datetime

# Add parent to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from tests.synthetic_data_generator import SyntheticDataGenerator

REFERENCE_DATE = date(2024, 6, 1)


class TestQualityScore(unittest.TestCase):
    """Tests for analysis.quality_score."""

    def test_clean_dataset_scores_100(self):
        from quality_engine.analysis.quality_score import calculate_quality_score

        self.assertEqual(calculate_quality_score(10, 3, 0, 0, 0), 100)

    def test_null_ratio_penalty(self):
        from quality_engine.analysis.quality_score import calculate_quality_score, score_breakdown

        self.assertEqual(calculate_quality_score(4, 2, 0, 4, 0), 85)
        self.assertAlmostEqual(score_breakdown(4, 2, 0, 4, 0).null_penalty, 15.0)

    def test_issue_and_duplicate_penalties(self):
        from quality_engine.analysis.quality_score import score_breakdown

        breakdown = score_breakdown(10, 3, 5, 0, 1)

        self.assertAlmostEqual(breakdown.issue_penalty, 25.0)
        self.assertAlmostEqual(breakdown.duplicate_penalty, 2.0)
        self.assertEqual(breakdown.score, 73)

    def test_rounds_half_up_and_clamps(self):
        from quality_engine.analysis.quality_score import calculate_quality_score

        # 100 - 3/4 * 50 = 62.5
        self.assertEqual(calculate_quality_score(4, 1, 3, 0, 0), 63)
        self.assertEqual(calculate_quality_score(1, 1, 10, 1, 0), 0)

    def test_empty_dataset_scores_zero(self):
        from quality_engine.analysis.quality_score import calculate_quality_score

        self.assertEqual(calculate_quality_score(0, 5, 0, 0, 0), 0)
        self.assertEqual(calculate_quality_score(5, 0, 0, 0, 0), 0)


class TestBuiltinRules(unittest.TestCase):
    """Tests for analysis.builtin_rules."""

    def test_missing_values_severity(self):
        from quality_engine.analysis.builtin_rules import missing_values_result
        from quality_engine.analysis.models import ColumnType, Severity, ValidationSource

        rows = [{'n': i, 's': 'x'} for i in range(20)]
        types = {'n': ColumnType.NUMBER, 's': ColumnType.STRING}

        self.assertIsNone(missing_values_result(rows, ['n', 's'], {'n': 0, 's': 0}, types))

        low = missing_values_result(rows, ['n', 's'], {'n': 1, 's': 0}, types)
        medium = missing_values_result(rows[:10], ['n', 's'], {'n': 1, 's': 0}, types)
        high = missing_values_result(rows, ['n', 's'], {'n': 2, 's': 1}, types)

        self.assertEqual(low.severity, Severity.LOW)
        self.assertEqual(medium.severity, Severity.MEDIUM)
        self.assertEqual(high.severity, Severity.HIGH)
        self.assertEqual(high.source, ValidationSource.BUILTIN)
        self.assertTrue(high.can_auto_fix)

    def test_missing_values_fix_snippets(self):
        from quality_engine.analysis.builtin_rules import MISSING_VALUES_ID, missing_values_result
        from quality_engine.analysis.models import ColumnType

        rows = [{'price': None, 'city': 'Oslo'}, {'price': 3, 'city': ' '}, {'price': 4, 'city': 'Rome'}]
        result = missing_values_result(
            rows, ['price', 'city'], {'price': 1, 'city': 1},
            {'price': ColumnType.NUMBER, 'city': ColumnType.STRING}
        )

        self.assertEqual(result.id, MISSING_VALUES_ID)
        self.assertEqual(result.affected_rows, (0, 1))
        self.assertIn('PERCENTILE_CONT', result.sql_fix)
        self.assertIn('"city" = \'Unknown\'', result.sql_fix)
        self.assertIn('fillna', result.python_fix)

    def test_duplicate_rows(self):
        from quality_engine.analysis.builtin_rules import duplicate_rows_result
        from quality_engine.analysis.models import Severity

        self.assertIsNone(duplicate_rows_result(10, ['a'], []))
        self.assertEqual(duplicate_rows_result(100, ['a'], [5]).severity, Severity.MEDIUM)

        result = duplicate_rows_result(10, ['a', 'b'], [7, 3])
        self.assertEqual(result.severity, Severity.HIGH)
        self.assertEqual(result.affected_rows, (3, 7))
        self.assertIn('PARTITION BY "a", "b"', result.sql_fix)
        self.assertIn('drop_duplicates', result.python_fix)

    def test_outliers(self):
        from quality_engine.analysis.builtin_rules import outliers_result
        from quality_engine.analysis.models import OutlierRecord

        self.assertIsNone(outliers_result({'a': [], 'b': []}))

        result = outliers_result({
            'a': [OutlierRecord(4, 900, 3.1), OutlierRecord(1, -50, -2.9)],
            'b': [OutlierRecord(4, 1e6, 4.0)],
        })
        self.assertEqual(result.affected_rows, (1, 4))
        self.assertFalse(result.can_auto_fix)
        self.assertIn('clip', result.python_fix)


class TestDataQualityAnalyzer(unittest.TestCase):
    """End-to-end tests for analysis.orchestrator."""

    @classmethod
    def setUpClass(cls):
        cls.generator = SyntheticDataGenerator(seed=42)
        cls.customer_rows, cls.customer_headers = cls.generator.generate_customer_rows(n_customers=300)
        cls.order_rows, cls.order_headers = cls.generator.generate_order_rows(n_orders=200)
        cls.employee_rows, cls.employee_headers = cls.generator.generate_employee_rows(n_employees=80)

    def _analyze(self, rows, headers, rules=(), **kwargs):
        from quality_engine.analysis.orchestrator import DataQualityAnalyzer
        from quality_engine.core.config import AnalysisSettings

        kwargs.setdefault('reference_date', REFERENCE_DATE)
        return DataQualityAnalyzer(AnalysisSettings()).analyze(rows, headers, rules, **kwargs)

    def _assert_well_formed(self, result, rows, headers):
        self.assertGreaterEqual(result.quality_score, 0)
        self.assertLessEqual(result.quality_score, 100)
        self.assertEqual(result.total_rows, len(rows))
        self.assertEqual(result.total_columns, len(headers))
        for mapping in (result.null_values, result.data_types, result.outliers, result.statistics):
            self.assertEqual(list(mapping), list(headers))
        for issue in result.contextual_issues:
            self.assertLess(issue.row, len(rows))
            self.assertIn(issue.column, headers)
        for issue in result.cross_field_issues:
            self.assertLess(issue.row, len(rows))
            self.assertTrue(set(issue.columns) <= set(headers))
        for records in result.outliers.values():
            for record in records:
                self.assertLess(record.row_index, len(rows))
        for validation in result.validation_results:
            self.assertTrue(all(0 <= i < len(rows) for i in validation.affected_rows))
        json.loads(result.to_json())

    def test_clean_data_scores_100(self):
        rows, headers = self.generator.generate_clean_rows(n_rows=30)
        result = self._analyze(rows, headers)

        self.assertEqual(result.quality_score, 100)
        self.assertEqual(result.duplicates, 0)
        self.assertEqual(result.issues, ())
        self.assertEqual(result.validation_results, ())
        self.assertEqual(result.warnings, ())

    def test_null_ratio_costs_15_points(self):
        rows = [{'a': 1, 'b': None}, {'a': 2, 'b': float('nan')}, {'a': 3}, {'a': 4, 'b': '   '}]
        result = self._analyze(rows, ['a', 'b'])

        self.assertEqual(result.null_values, {'a': 0, 'b': 4})
        self.assertEqual(result.null_ratio, 0.5)
        self.assertEqual(result.quality_score, 85)

    def test_duplicates_counted_once_per_repeat(self):
        rows = [{'a': 1, 'b': 2}, {'a': 1, 'b': 2}, {'a': 1, 'b': 3}]
        result = self._analyze(rows, ['a', 'b'])

        self.assertEqual(result.duplicates, 1)
        self.assertEqual(result.validation_results[0].id, 'builtin_duplicate_rows')
        self.assertEqual(result.validation_results[0].affected_rows, (1,))

    def test_outlier_reported(self):
        from quality_engine.analysis.models import ColumnType

        rows = [{'value': 10} for _ in range(10)] + [{'value': 1000}]
        result = self._analyze(rows, ['value'])

        self.assertEqual(result.data_types['value'], ColumnType.NUMBER)
        self.assertEqual([r.row_index for r in result.outliers['value']], [10])
        self.assertEqual(result.validation_results[-1].id, 'builtin_outliers')

        small = self._analyze([{'value': 10} for _ in range(5)], ['value'])
        self.assertEqual(small.outliers['value'], ())

    def test_custom_rule_example(self):
        from quality_engine import analyze
        from quality_engine.analysis.models import IssueCategory, ValidationSource

        result = analyze(
            [{'age': -1}, {'age': 5}], ['age'],
            [{'id': 'r1', 'name': 'Age non-negative', 'condition': 'age >= 0'}],
            reference_date=REFERENCE_DATE,
        )

        self.assertEqual(len(result.validation_results), 1)
        self.assertEqual(result.validation_results[0].affected_rows, (0,))
        self.assertEqual(result.validation_results[0].source, ValidationSource.CUSTOM_RULE)
        self.assertEqual(result.contextual_issues[0].category, IssueCategory.IMPOSSIBLE_VALUE)
        self.assertEqual(result.quality_score, 75)

    def test_type_examples(self):
        from quality_engine.analysis.models import ColumnType

        rows = [{'contact': 'a@b.com', 'n': '1'}, {'contact': 'c@d.com', 'n': '2'}, {'contact': None, 'n': '3'}]
        result = self._analyze(rows, ['contact', 'n'])

        self.assertEqual(result.data_types['contact'], ColumnType.EMAIL)
        self.assertEqual(result.data_types['n'], ColumnType.NUMBER)

    def test_idempotent(self):
        rules = [{'id': 'adult', 'name': 'Adult', 'condition': 'age >= 18'}]
        first = self._analyze(self.customer_rows, self.customer_headers, rules)
        second = self._analyze(self.customer_rows, self.customer_headers, rules)

        self.assertEqual(first, second)
        self.assertEqual(first.to_json(), second.to_json())

    def test_generated_datasets_are_well_formed(self):
        for rows, headers in (
            (self.customer_rows, self.customer_headers),
            (self.order_rows, self.order_headers),
            (self.employee_rows, self.employee_headers),
        ):
            result = self._analyze(rows, headers)
            self._assert_well_formed(result, rows, headers)

    def test_customer_findings(self):
        from quality_engine.analysis.models import IssueCategory

        result = self._analyze(self.customer_rows, self.customer_headers)
        categories = {i.category for i in result.issues}

        self.assertGreaterEqual(result.duplicates, 2)
        self.assertIn(IssueCategory.INVALID_FORMAT, categories)
        self.assertIn(IssueCategory.AGE_BIRTH_DATE_MISMATCH, categories)
        self.assertLess(result.quality_score, 100)
        self.assertEqual(result.null_values['country'], sum(1 for r in self.customer_rows if 'country' not in r))

    def test_validation_result_order(self):
        from quality_engine.analysis.models import ValidationSource

        rules = [
            {'id': 'adult', 'name': 'Adult', 'condition': 'age >= 18'},
            {'id': 'email', 'name': 'Email present', 'condition': 'email != null'},
        ]
        result = self._analyze(self.customer_rows, self.customer_headers, rules)
        sources = [v.source for v in result.validation_results]

        self.assertEqual([v.id for v in result.validation_results][-2:], ['adult', 'email'])
        self.assertEqual(sources, sorted(sources, key=lambda s: s != ValidationSource.BUILTIN))
        self.assertEqual(result.validation_results[0].id, 'builtin_missing_values')

    def test_warning_order(self):
        from quality_engine.analysis.models import WarningKind

        rows, headers = self.generator.generate_mixed_type_rows()
        result = self._analyze(rows, headers, [42, {'id': 'bad', 'name': 'Bad', 'condition': 'mixed >'}])

        self.assertEqual(
            [w.kind for w in result.warnings],
            [WarningKind.UNSUPPORTED_COLUMN_TYPE, WarningKind.MALFORMED_RULE, WarningKind.MALFORMED_RULE]
        )
        self.assertEqual(result.warnings[0].column, 'nested')
        self.assertIsNone(result.warnings[1].rule_id)
        self.assertEqual(result.warnings[2].rule_id, 'bad')

    def test_empty_dataset(self):
        from quality_engine.analysis.models import ColumnStatistics, ColumnType, WarningKind

        result = self._analyze([], ['a', 'b'], [{'id': 'r', 'name': 'r', 'condition': 'a > 0'}])

        self.assertEqual(result.quality_score, 0)
        self.assertEqual(result.total_rows, 0)
        self.assertEqual(result.null_values, {'a': 0, 'b': 0})
        self.assertEqual(result.data_types['a'], ColumnType.UNKNOWN)
        self.assertEqual(result.statistics['b'], ColumnStatistics())
        self.assertEqual(result.warnings[0].kind, WarningKind.EMPTY_DATASET)
        self.assertEqual(result.validation_results[0].affected_rows, ())

        no_columns = self._analyze([{}, {}], [])
        self.assertEqual(no_columns.quality_score, 0)
        self.assertEqual(no_columns.warnings[0].kind, WarningKind.EMPTY_DATASET)

    def test_structurally_invalid_input_raises(self):
        from quality_engine.core.exceptions import AnalysisError, ErrorCode

        for rows, headers in ((None, ['a']), ([{'a': 1}], None), ([{'a': 1}], 'a'),
                              ([{'a': 1}], [1]), (5, ['a']), ({'a': 1}, ['a'])):
            with self.assertRaises(AnalysisError):
                self._analyze(rows, headers)

        with self.assertRaises(AnalysisError) as ctx:
            self._analyze([{'a': 1}], ['a', 'a'])
        self.assertEqual(ctx.exception.error_code, ErrorCode.DUPLICATE_HEADERS)

        with self.assertRaises(AnalysisError) as ctx:
            self._analyze([{'a': 1}, [1]], ['a'])
        self.assertEqual(ctx.exception.error_code, ErrorCode.INVALID_ROW)

    def test_result_is_immutable_and_detached(self):
        rows = [{'a': 1, 'b': 'x'}, {'a': None, 'b': 'y'}]
        result = self._analyze(rows, ['a', 'b'])

        with self.assertRaises(TypeError):
            result.null_values['a'] = 0
        with self.assertRaises(FrozenInstanceError):
            result.quality_score = 100

        rows[1]['a'] = 2
        self.assertEqual(result.null_values['a'], 1)

    def test_reference_date_accepts_datetime(self):
        rows = [{'birth_date': '2024-07-01'}, {'birth_date': '2000-01-01'}]
        as_date = self._analyze(rows, ['birth_date'], reference_date=REFERENCE_DATE)
        as_datetime = self._analyze(rows, ['birth_date'], reference_date=datetime(2024, 6, 1, 18, 30))

        self.assertEqual(as_date, as_datetime)
        self.assertEqual([i.row for i in as_date.contextual_issues], [0])

    def test_settings_override(self):
        from quality_engine import analyze
        from quality_engine.core.config import AnalysisSettings

        rows = [{'value': 10} for _ in range(10)] + [{'value': 1000}]
        result = analyze(rows, ['value'], settings=AnalysisSettings(outlier_z_threshold=3.5))

        self.assertEqual(result.outliers['value'], ())

    def test_engine_factories(self):
        from quality_engine.analysis.contextual_validation import ContextualValidator, get_contextual_validator
        from quality_engine.analysis.cross_field_validation import CrossFieldValidator, get_cross_field_validator
        from quality_engine.analysis.custom_rules import CustomRuleEvaluator, get_custom_rule_evaluator
        from quality_engine.analysis.duplicate_detection import DuplicateDetectionEngine, get_duplicate_engine
        from quality_engine.analysis.models import ColumnType
        from quality_engine.analysis.orchestrator import DataQualityAnalyzer, get_analyzer
        from quality_engine.analysis.outlier_detection import OutlierDetectionEngine, get_outlier_engine
        from quality_engine.analysis.profiling import ColumnProfiler, get_column_profiler
        from quality_engine.analysis.type_inference import (
            TypeInferenceEngine, get_type_inference_engine, infer_column_type,
        )

        self.assertIsInstance(get_analyzer(), DataQualityAnalyzer)
        self.assertIsInstance(get_type_inference_engine(), TypeInferenceEngine)
        self.assertIsInstance(get_column_profiler(), ColumnProfiler)
        self.assertIsInstance(get_duplicate_engine(), DuplicateDetectionEngine)
        self.assertIsInstance(get_outlier_engine(), OutlierDetectionEngine)
        self.assertIsInstance(get_contextual_validator(), ContextualValidator)
        self.assertIsInstance(get_cross_field_validator(), CrossFieldValidator)
        self.assertIsInstance(get_custom_rule_evaluator(), CustomRuleEvaluator)
        self.assertEqual(infer_column_type([{'k': 1}]), ColumnType.UNKNOWN)
        self.assertEqual(infer_column_type(['a@b.com']), ColumnType.EMAIL)

    def test_run_context_is_cleared(self):
        from quality_engine.core.logging import run_id_ctx

        self._analyze([{'a': 1}], ['a'])
        self.assertIsNone(run_id_ctx.get())

    def test_json_uses_camel_case(self):
        rows = [{'age': 30, 'score': float('nan')}, {'age': 30, 'score': float('nan')}]
        payload = json.loads(self._analyze(rows, ['age', 'score']).to_json())

        self.assertEqual(payload['totalRows'], 2)
        self.assertEqual(payload['duplicates'], 1)
        self.assertIn('qualityScore', payload)
        self.assertIn('uniqueValues', payload['statistics']['age'])
        self.assertEqual(payload['dataTypes']['score'], 'unknown')
        self.assertEqual(payload['validationResults'][0]['source'], 'builtin')


if __name__ == '__main__':
    unittest.main()
