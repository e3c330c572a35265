"""
Home Credit Feature Pipeline - Core Package

This package provides the core infrastructure for the pipeline:
- Base classes for all components
- Logging utilities
- Custom exceptions
"""

from homecredit_features.core.base import (
    PipelineComponent,
    PandasComponent,
    ComponentRegistry,
    register_component,
)
from homecredit_features.core.logger import get_logger, setup_logging, LoggerMixin, PipelineLogger
from homecredit_features.core.exceptions import (
    PipelineException,
    ConfigurationError,
    DataValidationError,
    SchemaValidationError,
    FeatureEngineeringError,
    DataReaderError,
    ArtifactError,
)

__all__ = [
    # Base classes
    "PipelineComponent",
    "PandasComponent",
    "ComponentRegistry",
    "register_component",
    # Logging
    "get_logger",
    "setup_logging",
    "LoggerMixin",
    "PipelineLogger",
    # Exceptions
    "PipelineException",
    "ConfigurationError",
    "DataValidationError",
    "SchemaValidationError",
    "FeatureEngineeringError",
    "DataReaderError",
    "ArtifactError",
]
