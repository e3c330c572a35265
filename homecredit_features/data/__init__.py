"""
Data Module

Declared input schemas, schema validation and table readers.
"""

from homecredit_features.data.schemas import (
    TableSchema,
    applicant_feature_schema,
    application_schema,
    supplementary_schema,
    APPLICATION_TRAIN,
    APPLICATION_TEST,
    BUREAU,
    PREVIOUS_APPLICATION,
    INSTALLMENTS_PAYMENTS,
    SUPPLEMENTARY_TABLES,
)
from homecredit_features.data.schema_validator import SchemaValidator, SchemaValidationResult
from homecredit_features.data.reader import BaseTableReader, CsvTableReader, FrameTableReader

__all__ = [
    "TableSchema",
    "applicant_feature_schema",
    "application_schema",
    "supplementary_schema",
    "APPLICATION_TRAIN",
    "APPLICATION_TEST",
    "BUREAU",
    "PREVIOUS_APPLICATION",
    "INSTALLMENTS_PAYMENTS",
    "SUPPLEMENTARY_TABLES",
    "SchemaValidator",
    "SchemaValidationResult",
    "BaseTableReader",
    "CsvTableReader",
    "FrameTableReader",
]
