# Data Quality Engine - Pytest Configuration
# Shared fixtures and configuration for all tests

import sys
import os
from datetime import date

import pytest

# Add parent to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))


REFERENCE_DATE = date(2024, 6, 1)


# =============================================================================
# Synthetic Data Generator Fixtures
# =============================================================================

@pytest.fixture(scope='session')
def synthetic_generator():
    """Session-scoped synthetic data generator."""
    from tests.synthetic_data_generator import SyntheticDataGenerator
    return SyntheticDataGenerator(seed=42)


@pytest.fixture(scope='session')
def customer_rows(synthetic_generator):
    """Session-scoped customer dataset as (rows, headers)."""
    return synthetic_generator.generate_customer_rows(n_customers=300)


@pytest.fixture(scope='session')
def order_rows(synthetic_generator):
    """Session-scoped order dataset as (rows, headers)."""
    return synthetic_generator.generate_order_rows(n_orders=200)


@pytest.fixture(scope='session')
def employee_rows(synthetic_generator):
    """Session-scoped employee dataset as (rows, headers)."""
    return synthetic_generator.generate_employee_rows(n_employees=80)


@pytest.fixture(scope='session')
def clean_rows(synthetic_generator):
    return synthetic_generator.generate_clean_rows(n_rows=30)


# =============================================================================
# Edge Case Fixtures
# =============================================================================

@pytest.fixture
def single_row(synthetic_generator):
    return synthetic_generator.generate_single_row()


@pytest.fixture
def all_null_rows(synthetic_generator):
    """Every cell None, NaN or whitespace."""
    return synthetic_generator.generate_all_null_rows(n_rows=25)


@pytest.fixture
def mixed_type_rows(synthetic_generator):
    """Heterogeneous scalars in one column, nested values in another."""
    return synthetic_generator.generate_mixed_type_rows(n_rows=30)


@pytest.fixture
def null_ratio_rows():
    """Four rows, column 'b' entirely null: null ratio 0.5."""
    rows = [
        {'a': 1, 'b': None},
        {'a': 2, 'b': float('nan')},
        {'a': 3},
        {'a': 4, 'b': '   '},
    ]
    return rows, ['a', 'b']


# =============================================================================
# Engine Fixtures
# =============================================================================

@pytest.fixture
def settings():
    """Fresh default settings, independent of the environment cache."""
    from quality_engine.core.config import AnalysisSettings
    return AnalysisSettings()


@pytest.fixture
def analyzer(settings):
    from quality_engine.analysis.orchestrator import DataQualityAnalyzer
    return DataQualityAnalyzer(settings)


@pytest.fixture
def reference_date():
    return REFERENCE_DATE


# =============================================================================
# Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
