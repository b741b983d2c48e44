# Data Quality Engine - Built-in Rule Results
# Summarises nulls, duplicates and outliers as ValidationResults with fix snippets

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Optional

from quality_engine.analysis.models import ColumnType, Severity, ValidationResult, ValidationSource
from quality_engine.analysis.values import is_null

MISSING_VALUES_ID = "builtin_missing_values"
DUPLICATE_ROWS_ID = "builtin_duplicate_rows"
OUTLIERS_ID = "builtin_outliers"


def _sql_ident(column: str) -> str:
    return '"' + column.replace('"', '""') + '"'


def missing_values_result(
    rows: Sequence[Mapping[str, Any]],
    headers: Sequence[str],
    null_values: Mapping[str, int],
    data_types: Mapping[str, ColumnType]
) -> Optional[ValidationResult]:
    """Rows with at least one null cell; None when the dataset is complete."""
    total_nulls = sum(null_values.values())
    if total_nulls == 0:
        return None

    total_rows = len(rows)
    if total_nulls > total_rows * 0.1:
        severity = Severity.HIGH
    elif total_nulls > total_rows * 0.05:
        severity = Severity.MEDIUM
    else:
        severity = Severity.LOW

    columns = [h for h in headers if null_values.get(h, 0) > 0]
    affected = tuple(
        index for index, row in enumerate(rows)
        if any(is_null(row.get(h)) for h in columns)
    )
    numeric = [c for c in columns if data_types.get(c) == ColumnType.NUMBER]
    text = [c for c in columns if c not in numeric]

    sql_lines = []
    for column in numeric:
        ident = _sql_ident(column)
        sql_lines.append(
            f"UPDATE your_table\n"
            f"SET {ident} = (\n"
            f"  SELECT PERCENTILE_CONT(0.5) WITHIN GROUP (ORDER BY {ident})\n"
            f"  FROM your_table WHERE {ident} IS NOT NULL\n"
            f")\n"
            f"WHERE {ident} IS NULL;"
        )
    for column in text:
        ident = _sql_ident(column)
        sql_lines.append(
            f"UPDATE your_table SET {ident} = 'Unknown' "
            f"WHERE {ident} IS NULL OR TRIM({ident}) = '';"
        )

    python_lines = ["import pandas as pd", ""]
    if numeric:
        python_lines.append(f"numeric_columns = {numeric!r}")
        python_lines.append("df[numeric_columns] = df[numeric_columns].fillna(df[numeric_columns].median())")
    if text:
        python_lines.append(f"text_columns = {text!r}")
        python_lines.append("df[text_columns] = df[text_columns].replace(r'^\\s*$', pd.NA, regex=True).fillna('Unknown')")

    return ValidationResult(
        id=MISSING_VALUES_ID,
        rule="Missing Values",
        severity=severity,
        affected_rows=affected,
        description=f"{total_nulls} empty cells across {len(columns)} column(s): {', '.join(columns)}",
        suggestion="Fill numeric gaps with the median and text gaps with 'Unknown', or collect the missing data",
        source=ValidationSource.BUILTIN,
        sql_fix="\n\n".join(sql_lines),
        python_fix="\n".join(python_lines),
        can_auto_fix=True,
    )


def duplicate_rows_result(
    total_rows: int,
    headers: Sequence[str],
    duplicate_indices: Sequence[int]
) -> Optional[ValidationResult]:
    """Every row that repeats an earlier one; None when rows are unique."""
    if not duplicate_indices:
        return None

    count = len(duplicate_indices)
    partition = ", ".join(_sql_ident(h) for h in headers)

    return ValidationResult(
        id=DUPLICATE_ROWS_ID,
        rule="Duplicate Rows",
        severity=Severity.HIGH if count > total_rows * 0.05 else Severity.MEDIUM,
        affected_rows=tuple(sorted(duplicate_indices)),
        description=f"{count} row(s) repeat an earlier row exactly",
        suggestion="Remove the repeated rows, keeping the first occurrence",
        source=ValidationSource.BUILTIN,
        sql_fix=(
            "WITH numbered_rows AS (\n"
            "  SELECT *, ROW_NUMBER() OVER (\n"
            f"    PARTITION BY {partition}\n"
            "    ORDER BY id\n"
            "  ) AS row_num\n"
            "  FROM your_table\n"
            ")\n"
            "DELETE FROM your_table\n"
            "WHERE id IN (SELECT id FROM numbered_rows WHERE row_num > 1);"
        ),
        python_fix=(
            "import pandas as pd\n"
            "\n"
            "df_cleaned = df.drop_duplicates(keep='first')"
        ),
        can_auto_fix=True,
    )


def outliers_result(
    outliers: Mapping[str, Sequence[Any]],
    z_threshold: float = 2.5
) -> Optional[ValidationResult]:
    """Union of rows holding a statistical outlier; None when nothing was flagged."""
    columns = [c for c, records in outliers.items() if records]
    if not columns:
        return None

    affected = tuple(sorted({r.row_index for c in columns for r in outliers[c]}))
    total = sum(len(outliers[c]) for c in columns)

    return ValidationResult(
        id=OUTLIERS_ID,
        rule="Statistical Outliers",
        severity=Severity.MEDIUM,
        affected_rows=affected,
        description=f"{total} value(s) more than {z_threshold:g} standard deviations from the mean in: {', '.join(columns)}",
        suggestion="Check whether these values are data-entry errors before removing or capping them",
        source=ValidationSource.BUILTIN,
        python_fix=(
            "import pandas as pd\n"
            "\n"
            f"for column in {columns!r}:\n"
            "    low, high = df[column].quantile([0.01, 0.99])\n"
            "    df[column] = df[column].clip(lower=low, upper=high)"
        ),
        can_auto_fix=False,
    )
