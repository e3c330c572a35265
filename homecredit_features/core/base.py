"""
Base Classes for Pipeline Components

Provides the abstract base classes shared by the deriver, the aggregators,
the joiner and the reader, plus a small registry used to look up the
supplementary-table aggregators by name.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, List
from datetime import datetime
import logging

import pandas as pd


class PipelineComponent(ABC):
    """
    Abstract base class for all pipeline components.

    Provides common functionality:
    - Configuration access
    - Logging
    - Validation interface
    - Execution tracking
    """

    def __init__(self, config: Any, name: Optional[str] = None):
        """
        Initialize the pipeline component.

        Args:
            config: PipelineConfig (or a plain dict) for this component
            name: Optional name for the component (defaults to class name)
        """
        self.config = config
        self.name = name or self.__class__.__name__
        self.logger = logging.getLogger(self.name)
        self._execution_start: Optional[datetime] = None
        self._execution_end: Optional[datetime] = None

    @abstractmethod
    def run(self, *args, **kwargs) -> Any:
        """
        Execute the component's main logic.

        Must be implemented by all subclasses.
        """
        pass

    @abstractmethod
    def validate(self) -> bool:
        """
        Validate the component's configuration and state.

        Returns:
            True if validation passes, False otherwise
        """
        pass

    def get_config(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value with dot notation support.

        Works on both pydantic models and nested dictionaries.

        Args:
            key: Configuration key (e.g., 'features.employment_sentinel')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self.config

        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            elif value is not None and not isinstance(value, dict) and hasattr(value, k):
                value = getattr(value, k)
            else:
                return default

        return value

    def _start_execution(self) -> None:
        """Mark the start of execution."""
        self._execution_start = datetime.now()
        self.logger.debug(f"Starting {self.name}")

    def _end_execution(self) -> None:
        """Mark the end of execution and log duration."""
        self._execution_end = datetime.now()

        if self._execution_start:
            duration = (self._execution_end - self._execution_start).total_seconds()
            self.logger.debug(f"Completed {self.name} in {duration:.2f} seconds")

    @property
    def execution_duration(self) -> Optional[float]:
        """Get the execution duration in seconds."""
        if self._execution_start and self._execution_end:
            return (self._execution_end - self._execution_start).total_seconds()
        return None


class PandasComponent(PipelineComponent):
    """
    Base class for pandas-based pipeline components.

    All tabular work in this project is single-node pandas; this class adds
    memory reporting used to log the footprint of the large input tables.
    """

    def validate(self) -> bool:
        """Default validation - always passes for Pandas components."""
        return True

    def check_memory_usage(self, df: pd.DataFrame) -> Dict[str, Any]:
        """
        Check memory usage of a Pandas DataFrame.

        Args:
            df: Pandas DataFrame

        Returns:
            Dictionary with memory usage information
        """
        memory_usage = df.memory_usage(deep=True)
        total_bytes = int(memory_usage.sum())

        return {
            'total_bytes': total_bytes,
            'total_mb': total_bytes / (1024 * 1024),
            'per_column': memory_usage.to_dict()
        }


class ComponentRegistry:
    """
    Registry for pipeline components.

    Aggregators register themselves under their table name so the
    orchestrator can build them from configuration.
    """

    _components: Dict[str, type] = {}

    @classmethod
    def register(cls, name: str, component_class: type) -> None:
        """
        Register a component class.

        Args:
            name: Unique name for the component
            component_class: Component class to register
        """
        if not issubclass(component_class, PipelineComponent):
            raise TypeError(
                f"{component_class.__name__} must be a subclass of PipelineComponent"
            )
        cls._components[name] = component_class

    @classmethod
    def get(cls, name: str) -> Optional[type]:
        return cls._components.get(name)

    @classmethod
    def list_components(cls) -> List[str]:
        """List all registered component names."""
        return list(cls._components.keys())

    @classmethod
    def create(
        cls,
        component_name: str,
        config: Any,
        **kwargs
    ) -> PipelineComponent:
        """
        Create a component instance.

        Args:
            component_name: Registered component name
            config: Configuration object
            **kwargs: Additional arguments for the component

        Returns:
            Component instance

        Raises:
            ValueError: If component not found
        """
        component_class = cls.get(component_name)

        if component_class is None:
            raise ValueError(f"Component '{component_name}' not found in registry")

        return component_class(config, **kwargs)


def register_component(name: str):
    """
    Decorator to register a component class.

    Usage:
        @register_component('bureau')
        class BureauAggregator(StatAggregator):
            ...
    """
    def decorator(cls):
        ComponentRegistry.register(name, cls)
        return cls
    return decorator
