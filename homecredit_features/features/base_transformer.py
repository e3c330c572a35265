"""
Base Transformer

Abstract base class for feature transformers.
"""

from abc import abstractmethod
from typing import Any, Dict, List, Optional

import pandas as pd

from homecredit_features.core.base import PandasComponent


class BaseTransformer(PandasComponent):
    """
    Abstract base class for feature transformers.

    A transformer takes a table and returns a new table; it never mutates
    its input. ``output_columns`` lists the columns it creates, in order.
    """

    def __init__(self, config: Any, name: Optional[str] = None):
        super().__init__(config, name)
        self._output_columns: List[str] = []

    @abstractmethod
    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Apply transformation to DataFrame.

        Args:
            df: Input DataFrame

        Returns:
            New DataFrame
        """
        pass

    def run(self, df: pd.DataFrame) -> pd.DataFrame:
        """Run is implemented as transform."""
        return self.transform(df)

    @property
    def output_columns(self) -> List[str]:
        """Get list of output column names created by this transformer."""
        return list(self._output_columns)

    def _add_output_column(self, column: str) -> None:
        """Register an output column."""
        if column not in self._output_columns:
            self._output_columns.append(column)

    def get_feature_info(self) -> List[Dict[str, Any]]:
        """
        Get information about features created by this transformer.

        Returns:
            List of feature info dictionaries
        """
        return [{'name': col, 'source': self.name} for col in self._output_columns]
