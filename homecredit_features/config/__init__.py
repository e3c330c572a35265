"""
Config Module

Pydantic-based configuration for the feature engineering pipeline.
"""

from homecredit_features.config.schema import (
    PipelineConfig,
    DataConfig,
    TableFilesConfig,
    FeaturesConfig,
    BinningConfig,
    OutputConfig,
    LoggingConfig,
)
from homecredit_features.config.loader import load_config, save_config

__all__ = [
    "PipelineConfig",
    "DataConfig",
    "TableFilesConfig",
    "FeaturesConfig",
    "BinningConfig",
    "OutputConfig",
    "LoggingConfig",
    "load_config",
    "save_config",
]
