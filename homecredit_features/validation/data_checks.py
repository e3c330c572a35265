"""
Feature Table Checks

Validates the applicant splits on load and the final feature tables after
the join. Critical failures block the run before anything is written.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import logging

import numpy as np
import pandas as pd

from homecredit_features.config.schema import PipelineConfig
from homecredit_features.core.exceptions import DataValidationError

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    CRITICAL = "CRITICAL"
    WARNING = "WARNING"
    INFO = "INFO"


class Status(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"
    WARNING = "WARNING"


@dataclass
class CheckResult:
    """Result of a single validation check."""

    check_name: str
    status: Status
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    severity: Severity = Severity.INFO


@dataclass
class ValidationReport:
    """Collection of check results for one table."""

    table: str = ""
    checks: List[CheckResult] = field(default_factory=list)

    @property
    def has_critical_failures(self) -> bool:
        return any(
            c.status == Status.FAIL and c.severity == Severity.CRITICAL
            for c in self.checks
        )

    @property
    def failures(self) -> List[CheckResult]:
        return [c for c in self.checks if c.status == Status.FAIL]

    @property
    def pass_count(self) -> int:
        return sum(1 for c in self.checks if c.status == Status.PASS)

    @property
    def fail_count(self) -> int:
        return len(self.failures)

    @property
    def warning_count(self) -> int:
        return sum(1 for c in self.checks if c.status == Status.WARNING)

    def add(self, result: CheckResult) -> None:
        self.checks.append(result)

    def summary(self) -> str:
        lines = [
            f"Validation Report ({self.table}): {self.pass_count} PASS, "
            f"{self.warning_count} WARNING, {self.fail_count} FAIL"
        ]
        for c in self.checks:
            marker = {"PASS": "+", "FAIL": "X", "WARNING": "!"}[c.status.value]
            lines.append(f"  [{marker}] {c.check_name}: {c.message}")
        return "\n".join(lines)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame([
            {
                "Check_Name": c.check_name,
                "Status": c.status.value,
                "Severity": c.severity.value,
                "Message": c.message,
            }
            for c in self.checks
        ])

    def raise_for_failures(self) -> None:
        """Raise DataValidationError if any critical check failed."""
        if not self.has_critical_failures:
            return
        errors = [
            {"check": c.check_name, "message": c.message, **c.details}
            for c in self.failures
            if c.severity == Severity.CRITICAL
        ]
        raise DataValidationError(
            f"{self.table}: {len(errors)} critical check(s) failed: "
            + "; ".join(e["message"] for e in errors),
            validation_errors=errors,
        )


def _result(name: str, ok: bool, passed: str, failed: str, **details) -> CheckResult:
    return CheckResult(
        check_name=name,
        status=Status.PASS if ok else Status.FAIL,
        message=passed if ok else failed,
        details={} if ok else details,
        severity=Severity.CRITICAL,
    )


class FeatureTableValidator:
    """Runs the applicant-split and final-table checks.

    Args:
        config: Pipeline configuration (identifier and label column names).
        derived_columns: Columns every final table must contain.
    """

    def __init__(self, config: PipelineConfig, derived_columns: Optional[List[str]] = None):
        self.id_column = config.data.id_column
        self.target_column = config.data.target_column
        self.derived_columns = list(derived_columns or [])

    def validate_split(self, df: pd.DataFrame, table: str, is_train: bool) -> ValidationReport:
        """Checks an applicant split must pass before derivation.

        Args:
            df: Applicant table as loaded.
            table: Table name for messages.
            is_train: Whether the split must carry the label.

        Returns:
            ValidationReport (label and identifier checks).
        """
        report = ValidationReport(table=table)
        report.add(self._check_unique_ids(df))
        report.add(self._check_label(df, is_train))
        self._log(report)
        return report

    def validate_output(
        self,
        df: pd.DataFrame,
        table: str,
        is_train: bool,
        expected_rows: int,
    ) -> ValidationReport:
        """Checks a final feature table must pass before it is written.

        Args:
            df: Final feature table.
            table: Table name for messages.
            is_train: Whether the split must carry the label.
            expected_rows: Row count of the applicant split it came from.

        Returns:
            ValidationReport with all check results.
        """
        report = ValidationReport(table=table)
        report.add(self._check_not_empty(df))
        report.add(self._check_row_count(df, expected_rows))
        report.add(self._check_unique_ids(df))
        report.add(self._check_label(df, is_train))
        report.add(self._check_derived_columns(df))
        report.add(self._check_no_infinite(df))
        self._log(report)
        return report

    # ------------------------------------------------------------------
    # Individual checks
    # ------------------------------------------------------------------

    def _check_not_empty(self, df: pd.DataFrame) -> CheckResult:
        return _result(
            "Non-empty table",
            len(df) > 0,
            f"Table has {len(df):,} rows.",
            "Table is empty (0 rows).",
        )

    def _check_row_count(self, df: pd.DataFrame, expected_rows: int) -> CheckResult:
        return _result(
            "Row count preserved",
            len(df) == expected_rows,
            f"{len(df):,} rows, as in the applicant table.",
            f"Expected {expected_rows:,} rows, found {len(df):,}.",
            expected=expected_rows,
            actual=len(df),
        )

    def _check_unique_ids(self, df: pd.DataFrame) -> CheckResult:
        if self.id_column not in df.columns:
            return _result(
                "Unique applicant ids", False, "",
                f"Identifier column '{self.id_column}' not found.",
            )
        duplicated = df[self.id_column].duplicated(keep=False)
        n_dup = int(df.loc[duplicated, self.id_column].nunique())
        examples = df.loc[duplicated, self.id_column].drop_duplicates().head(5).tolist()
        return _result(
            "Unique applicant ids",
            n_dup == 0,
            f"All {len(df):,} identifiers are unique.",
            f"{n_dup:,} identifier(s) appear more than once, e.g. {examples}.",
            duplicate_ids=examples,
        )

    def _check_label(self, df: pd.DataFrame, is_train: bool) -> CheckResult:
        target = self.target_column
        if not is_train:
            return _result(
                "Label absent",
                target not in df.columns,
                f"Label column '{target}' absent, as expected for test.",
                f"Label column '{target}' present in the test split.",
            )
        if target not in df.columns:
            return _result("Label present", False, "", f"Label column '{target}' not found.")
        n_null = int(df[target].isna().sum())
        return _result(
            "Label present",
            n_null == 0,
            f"Label column '{target}' present with no missing values.",
            f"Label column '{target}' has {n_null:,} missing value(s).",
            null_count=n_null,
        )

    def _check_derived_columns(self, df: pd.DataFrame) -> CheckResult:
        missing = [c for c in self.derived_columns if c not in df.columns]
        return _result(
            "Derived columns present",
            not missing,
            f"All {len(self.derived_columns)} derived columns present.",
            f"{len(missing)} derived column(s) missing: {missing[:10]}.",
            missing_columns=missing,
        )

    def _check_no_infinite(self, df: pd.DataFrame) -> CheckResult:
        floats = df.select_dtypes(include=[np.floating])
        counts = np.isinf(floats).sum()
        offending = counts[counts > 0]
        return _result(
            "No infinite values",
            offending.empty,
            "No infinite values in numeric columns.",
            f"Infinite values in {len(offending)} column(s): {list(offending.index[:10])}.",
            infinite_columns={k: int(v) for k, v in offending.items()},
        )

    @staticmethod
    def _log(report: ValidationReport) -> None:
        for c in report.checks:
            level = logging.INFO if c.status == Status.PASS else logging.WARNING
            logger.log(
                level, "CHECK | %s | %s | %s | %s",
                report.table, c.status.value, c.check_name, c.message,
            )
