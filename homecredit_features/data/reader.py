"""
Table Readers

Readers resolve a logical table name (``application_train``, ``bureau``, ...)
to a DataFrame. ``CsvTableReader`` reads the delimited files from the data
directory; ``FrameTableReader`` serves DataFrames that are already in memory.
"""

from abc import abstractmethod
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import pandas as pd

from homecredit_features.core.base import PandasComponent
from homecredit_features.core.exceptions import DataReaderError


class BaseTableReader(PandasComponent):
    """
    Abstract base class for table readers.
    """

    @abstractmethod
    def read(self, table: str) -> pd.DataFrame:
        """
        Read one logical table.

        Args:
            table: Logical table name

        Returns:
            The table as a DataFrame

        Raises:
            DataReaderError: If the table is unavailable or unreadable
        """
        pass

    @abstractmethod
    def exists(self, table: str) -> bool:
        """Whether the table can be read."""
        pass

    def require(self, *tables: str) -> None:
        """
        Fail fast if any of the given tables is unavailable.

        Raises:
            DataReaderError: Naming every missing table
        """
        missing = [t for t in tables if not self.exists(t)]
        if missing:
            raise DataReaderError(
                f"Input table(s) not found: {missing}",
                source=", ".join(self.describe(t) for t in missing),
            )

    def describe(self, table: str) -> str:
        """Human-readable location of a table, used in messages."""
        return table

    def run(self, table: str) -> pd.DataFrame:
        """Run is implemented as read for table readers."""
        return self.read(table)

    def _log_loaded(self, table: str, df: pd.DataFrame) -> None:
        memory = self.check_memory_usage(df)
        self.logger.info(
            f"LOAD | {table}: {len(df):,} rows, {len(df.columns)} columns "
            f"({memory['total_mb']:.1f} MB)"
        )


class CsvTableReader(BaseTableReader):
    """
    Reads the input tables as CSV files from ``config.data.data_dir``.
    """

    def __init__(
        self,
        config: Any,
        data_dir: Optional[str] = None,
        name: Optional[str] = None
    ):
        super().__init__(config, name or "CsvTableReader")
        self.data_dir = Path(data_dir or self.get_config('data.data_dir', 'data'))

    def path_for(self, table: str) -> Path:
        """Resolve the file path of a logical table."""
        file_name = self.get_config(f'data.files.{table}')
        if file_name is None:
            raise DataReaderError(f"No file configured for table '{table}'", source=table)
        return self.data_dir / file_name

    def describe(self, table: str) -> str:
        return str(self.path_for(table))

    def exists(self, table: str) -> bool:
        return self.path_for(table).is_file()

    def read(self, table: str) -> pd.DataFrame:
        path = self.path_for(table)
        if not path.is_file():
            raise DataReaderError(f"Input file not found for table '{table}'", source=str(path))

        try:
            df = pd.read_csv(path, low_memory=False)
        except (OSError, ValueError) as e:
            raise DataReaderError(f"Failed to read table '{table}'", source=str(path), cause=e) from e

        self._log_loaded(table, df)
        return df


class FrameTableReader(BaseTableReader):
    """
    Serves tables from an in-memory mapping of name -> DataFrame.

    Each read returns a copy, so callers can never mutate the source frames.
    """

    def __init__(
        self,
        frames: Mapping[str, pd.DataFrame],
        config: Any = None,
        name: Optional[str] = None
    ):
        super().__init__(config or {}, name or "FrameTableReader")
        self._frames: Dict[str, pd.DataFrame] = dict(frames)

    def exists(self, table: str) -> bool:
        return table in self._frames

    def read(self, table: str) -> pd.DataFrame:
        if table not in self._frames:
            raise DataReaderError(f"Table '{table}' was not provided", source=table)
        df = self._frames[table].copy()
        self._log_loaded(table, df)
        return df
