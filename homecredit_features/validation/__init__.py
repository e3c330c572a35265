"""
Validation Module

Applicant-split and final feature table checks.
"""

from homecredit_features.validation.data_checks import (
    FeatureTableValidator,
    ValidationReport,
    CheckResult,
    Severity,
    Status,
)

__all__ = [
    "FeatureTableValidator",
    "ValidationReport",
    "CheckResult",
    "Severity",
    "Status",
]
