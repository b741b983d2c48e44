# Data Quality Engine - Unit Tests: Duplicate and Outlier Detection
# Exact duplicate rows and z-score outliers

import sys
import os
import unittest

import numpy as np

# Add parent to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from tests.synthetic_data_generator import SyntheticDataGenerator


class TestDuplicateDetection(unittest.TestCase):
    """Tests for analysis.duplicate_detection."""

    @classmethod
    def setUpClass(cls):
        cls.generator = SyntheticDataGenerator(seed=42)

    def test_single_duplicate(self):
        from quality_engine.analysis.duplicate_detection import DuplicateDetectionEngine

        rows = [{'a': 1, 'b': 2}, {'a': 1, 'b': 2}, {'a': 1, 'b': 3}]
        result = DuplicateDetectionEngine().detect(rows, ['a', 'b'])

        self.assertEqual(result.n_duplicates, 1)
        self.assertEqual(result.duplicate_indices, [1])
        self.assertEqual(len(result.duplicate_groups), 1)
        self.assertEqual(result.duplicate_groups[0].indices, [0, 1])

    def test_group_of_three_counts_two(self):
        from quality_engine.analysis.duplicate_detection import count_duplicates

        rows = [{'x': 'same'}] * 3 + [{'x': 'other'}]
        self.assertEqual(count_duplicates(rows, ['x']), 2)

    def test_values_are_normalised(self):
        from quality_engine.analysis.duplicate_detection import count_duplicates

        rows = [
            {'id': 1, 'name': 'Ann', 'note': None},
            {'id': 1.0, 'name': ' Ann ', 'note': np.nan},
            {'id': 1, 'name': 'Ann'},
        ]
        self.assertEqual(count_duplicates(rows, ['id', 'name', 'note']), 2)

    def test_type_tags_keep_values_apart(self):
        from quality_engine.analysis.duplicate_detection import count_duplicates

        rows = [{'v': '1'}, {'v': 1}, {'v': True}]
        self.assertEqual(count_duplicates(rows, ['v']), 0)

    def test_only_header_columns_count(self):
        from quality_engine.analysis.duplicate_detection import count_duplicates

        rows = [{'a': 1, 'extra': 'x'}, {'a': 1, 'extra': 'y'}]
        self.assertEqual(count_duplicates(rows, ['a']), 1)

    def test_empty_and_generated_data(self):
        from quality_engine.analysis.duplicate_detection import DuplicateDetectionEngine

        engine = DuplicateDetectionEngine()
        self.assertEqual(engine.detect([], ['a']).n_duplicates, 0)

        rows, headers = self.generator.generate_customer_rows(n_customers=50)
        result = engine.detect(rows, headers)
        # The generator appends copies of the first two rows
        self.assertIn(50, result.duplicate_indices)
        self.assertIn(51, result.duplicate_indices)
        self.assertGreater(result.duplicate_rate, 0)


class TestOutlierDetection(unittest.TestCase):
    """Tests for analysis.outlier_detection."""

    def _engine(self, **overrides):
        from quality_engine.analysis.outlier_detection import OutlierDetectionEngine
        from quality_engine.core.config import AnalysisSettings

        return OutlierDetectionEngine(AnalysisSettings(**overrides))

    def test_extreme_value_is_flagged(self):
        records = self._engine().detect_column([10] * 10 + [1000])

        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].row_index, 10)
        self.assertEqual(records[0].value, 1000)
        self.assertGreater(records[0].z_score, 2.5)
        self.assertAlmostEqual(records[0].z_score, 3.1623, places=4)

    def test_small_group_is_not_flagged(self):
        # Population z-score of 1000 among four 10s is exactly 2.0
        self.assertEqual(self._engine().detect_column([10, 10, 10, 10, 1000]), [])
        self.assertEqual(self._engine().detect_column([10] * 5), [])

    def test_minimum_samples_and_zero_variance(self):
        engine = self._engine()

        self.assertEqual(engine.detect_column([1, 2, 1000]), [])
        self.assertEqual(engine.detect_column([42] * 100), [])

    def test_nulls_and_text_are_skipped(self):
        values = [10] * 5 + [None, 'n/a'] + [10] * 5 + ['1000']
        records = self._engine().detect_column(values)

        self.assertEqual([r.row_index for r in records], [12])
        self.assertEqual(records[0].value, '1000')

    def test_threshold_is_configurable(self):
        self.assertEqual(self._engine(outlier_z_threshold=3.5).detect_column([10] * 10 + [1000]), [])

    def test_only_number_columns_are_checked(self):
        from quality_engine.analysis.models import ColumnType

        rows = [{'n': 10, 's': 10} for _ in range(10)] + [{'n': 1000, 's': 1000}]
        result = self._engine().detect(rows, ['n', 's'], {'n': ColumnType.NUMBER, 's': ColumnType.STRING})

        self.assertEqual(set(result.outliers), {'n', 's'})
        self.assertEqual(len(result.outliers['n']), 1)
        self.assertEqual(result.outliers['s'], [])
        self.assertEqual(result.outlier_rows, [10])
        self.assertEqual(result.total_outliers, 1)


if __name__ == '__main__':
    unittest.main()
