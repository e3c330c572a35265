"""
Custom Exceptions for the Pipeline

Provides a hierarchy of exceptions for the failure modes of the feature
pipeline. Undefined arithmetic and unmatched join keys are not errors and
never raise; they surface as missing values in the output tables.
"""

from typing import Any, Dict, List, Optional


class PipelineException(Exception):
    """
    Base exception for all pipeline errors.

    All custom exceptions inherit from this class.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        """
        Initialize the exception.

        Args:
            message: Error message
            details: Additional error details
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        result = self.message
        if self.details:
            result += f" | Details: {self.details}"
        if self.cause:
            result += f" | Caused by: {self.cause}"
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "cause": str(self.cause) if self.cause else None
        }


class ConfigurationError(PipelineException):
    """
    Raised when there's a configuration error.

    Examples:
    - Configuration file cannot be parsed
    - Unknown aggregator requested
    """
    pass


class DataValidationError(PipelineException):
    """
    Raised when a data invariant does not hold.

    Examples:
    - Duplicate applicant identifiers
    - Label column missing or null in the training split
    - Label column present in the test split
    - A join changed the number of applicant rows
    """

    def __init__(
        self,
        message: str,
        validation_errors: Optional[List[Dict[str, Any]]] = None,
        **kwargs
    ):
        """
        Initialize the data validation error.

        Args:
            message: Error message
            validation_errors: List of validation error details
            **kwargs: Additional arguments for parent class
        """
        super().__init__(message, **kwargs)
        self.validation_errors = validation_errors or []

    def __str__(self) -> str:
        result = super().__str__()
        if self.validation_errors:
            error_count = len(self.validation_errors)
            result += f" | {error_count} validation error(s)"
        return result


class SchemaValidationError(DataValidationError):
    """
    Raised when a table does not carry its declared schema.

    Examples:
    - Required column absent
    - Numeric column read with a non-numeric dtype
    """

    def __init__(
        self,
        message: str,
        expected_schema: Optional[Dict[str, Any]] = None,
        actual_schema: Optional[Dict[str, Any]] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.expected_schema = expected_schema
        self.actual_schema = actual_schema


class FeatureEngineeringError(PipelineException):
    """
    Raised when feature derivation or aggregation fails.

    Examples:
    - Unexpected failure inside a derivation stage
    - Aggregation produced an unexpected schema
    """

    def __init__(
        self,
        message: str,
        feature_name: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.feature_name = feature_name

    def __str__(self) -> str:
        result = super().__str__()
        if self.feature_name:
            result += f" | Feature: {self.feature_name}"
        return result


class DataReaderError(PipelineException):
    """
    Raised when data reading fails.

    Examples:
    - Input file not found
    - File cannot be parsed as delimited text
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.source = source

    def __str__(self) -> str:
        result = super().__str__()
        if self.source:
            result += f" | Source: {self.source}"
        return result


class ArtifactError(PipelineException):
    """
    Raised when writing outputs fails.

    Examples:
    - Output directory not writable
    - Table could not be serialized
    """

    def __init__(
        self,
        message: str,
        artifact_path: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.artifact_path = artifact_path
