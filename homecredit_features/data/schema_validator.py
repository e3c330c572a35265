"""
Schema Validator

Validates DataFrame columns against the declared table schemas.
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass

import pandas as pd

from homecredit_features.core.base import PandasComponent
from homecredit_features.core.exceptions import SchemaValidationError
from homecredit_features.data.schemas import TableSchema


@dataclass
class SchemaValidationResult:
    """Result of schema validation."""
    is_valid: bool
    missing_columns: List[str]
    forbidden_columns: List[str]
    type_mismatches: List[Dict[str, str]]
    errors: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'is_valid': self.is_valid,
            'missing_columns': self.missing_columns,
            'forbidden_columns': self.forbidden_columns,
            'type_mismatches': self.type_mismatches,
            'errors': self.errors
        }


class SchemaValidator(PandasComponent):
    """
    Validates DataFrame schemas against declared TableSchemas.

    Checks for:
    - Missing required columns
    - Columns that must not be present (label in the test split)
    - Non-numeric dtypes on numeric columns

    Extra columns are always allowed: the applicant tables carry ~120 raw
    attributes that pass through untouched.
    """

    def __init__(self, config: Any = None, name: Optional[str] = None):
        super().__init__(config or {}, name or "SchemaValidator")

    def run(self, df: pd.DataFrame, schema: TableSchema) -> SchemaValidationResult:
        """Run schema validation."""
        return self.validate_schema(df, schema)

    def validate_schema(self, df: pd.DataFrame, schema: TableSchema) -> SchemaValidationResult:
        """
        Validate a DataFrame against a schema.

        Args:
            df: DataFrame to validate
            schema: Declared schema of the table

        Returns:
            SchemaValidationResult with validation details
        """
        actual_columns = set(df.columns)

        missing_columns = [c for c in schema.required_columns if c not in actual_columns]
        forbidden_columns = [c for c in schema.forbidden_columns if c in actual_columns]

        type_mismatches = []
        for col in schema.numeric_columns:
            if col not in actual_columns or df[col].isna().all():
                continue
            if not pd.api.types.is_numeric_dtype(df[col]):
                type_mismatches.append({
                    'column': col,
                    'expected': 'numeric',
                    'actual': str(df[col].dtype)
                })

        errors = []
        if missing_columns:
            errors.append(f"Missing columns: {missing_columns}")
            self.logger.error(f"Missing columns in {schema.name}: {missing_columns}")

        if forbidden_columns:
            errors.append(f"Unexpected columns: {forbidden_columns}")
            self.logger.error(f"Columns not allowed in {schema.name}: {forbidden_columns}")

        for mismatch in type_mismatches:
            errors.append(
                f"Type mismatch for '{mismatch['column']}': "
                f"expected {mismatch['expected']}, got {mismatch['actual']}"
            )
        if type_mismatches:
            self.logger.error(f"Type mismatches in {schema.name}: {type_mismatches}")

        is_valid = not (missing_columns or forbidden_columns or type_mismatches)
        if is_valid:
            self.logger.debug(f"Schema validation passed for {schema.name}")

        return SchemaValidationResult(
            is_valid=is_valid,
            missing_columns=missing_columns,
            forbidden_columns=forbidden_columns,
            type_mismatches=type_mismatches,
            errors=errors
        )

    def require(self, df: pd.DataFrame, schema: TableSchema) -> None:
        """
        Validate and raise on failure.

        Raises:
            SchemaValidationError: If the table does not match its schema
        """
        result = self.validate_schema(df, schema)
        if not result.is_valid:
            raise SchemaValidationError(
                f"Schema validation failed for '{schema.name}': {'; '.join(result.errors)}",
                expected_schema=schema.to_dict(),
                actual_schema={c: str(t) for c, t in df.dtypes.items()},
                validation_errors=[result.to_dict()],
            )
