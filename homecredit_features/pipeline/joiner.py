"""
Table Joiner

Left-joins an applicant table against the aggregate feature tables on the
applicant identifier. The applicant table drives the row set: applicants
without supplementary records get missing aggregate values, and aggregate
rows for unknown applicants are dropped.
"""

from typing import Any, Dict, Mapping, Optional, Sequence

import pandas as pd

from homecredit_features.core.base import PandasComponent
from homecredit_features.core.exceptions import DataValidationError, SchemaValidationError
from homecredit_features.features.aggregation import AGGREGATION_ORDER


class TableJoiner(PandasComponent):
    """
    Joins aggregate tables onto an applicant table in a fixed order.

    Args:
        config: PipelineConfig (supplies the identifier column).
        order: Aggregate table names in join order (bureau, previous
            applications, installments by default).
        name: Optional component name.
    """

    def __init__(
        self,
        config: Any,
        order: Optional[Sequence[str]] = None,
        name: Optional[str] = None,
    ):
        super().__init__(config, name or "TableJoiner")
        self.id_column = config.data.id_column
        self.order = list(order or AGGREGATION_ORDER)

    def run(self, applicants: pd.DataFrame, aggregates: Mapping[str, pd.DataFrame]) -> pd.DataFrame:
        return self.join(applicants, aggregates)

    def join(
        self,
        applicants: pd.DataFrame,
        aggregates: Mapping[str, pd.DataFrame],
        table: str = "applicants",
    ) -> pd.DataFrame:
        """
        Left-join every aggregate table onto the applicant table.

        Args:
            applicants: Driving applicant table (unique identifiers)
            aggregates: Aggregate tables keyed by supplementary table name;
                every name in ``order`` must be present
            table: Name of the applicant table for log messages

        Returns:
            New table with the applicant rows in their original order and
            every aggregate column appended

        Raises:
            SchemaValidationError: If an aggregate lacks the identifier or
                would overwrite an existing column
            DataValidationError: If the join changes the number of rows
        """
        self._start_execution()
        missing = [name for name in self.order if name not in aggregates]
        if missing:
            raise DataValidationError(f"Aggregate tables not provided: {missing}")

        result = applicants
        for name in self.order:
            result = self._join_one(result, aggregates[name], name, table)

        if len(result) != len(applicants):
            raise DataValidationError(
                f"Join changed {table} from {len(applicants)} to {len(result)} rows",
                validation_errors=[{"expected": len(applicants), "actual": len(result)}],
            )

        self._end_execution()
        return result

    def _join_one(
        self,
        left: pd.DataFrame,
        right: pd.DataFrame,
        name: str,
        table: str,
    ) -> pd.DataFrame:
        if self.id_column not in right.columns:
            raise SchemaValidationError(
                f"Aggregate table '{name}' has no '{self.id_column}' column",
                expected_schema={"key": self.id_column},
                actual_schema={"columns": list(right.columns)},
            )

        collisions = [c for c in right.columns if c != self.id_column and c in left.columns]
        if collisions:
            raise SchemaValidationError(
                f"Aggregate table '{name}' would overwrite columns: {collisions}",
                expected_schema={"new_columns": [c for c in right.columns if c != self.id_column]},
                actual_schema={"existing_columns": collisions},
            )

        matched = int(left[self.id_column].isin(right[self.id_column]).sum())
        dropped = int((~right[self.id_column].isin(left[self.id_column])).sum())

        try:
            joined = left.merge(right, on=self.id_column, how="left", validate="many_to_one")
        except pd.errors.MergeError as e:
            raise DataValidationError(
                f"Aggregate table '{name}' has duplicate '{self.id_column}' values",
                cause=e,
            ) from e

        self.logger.info(
            f"JOIN | {table} + {name}: {matched:,}/{len(left):,} applicants matched, "
            f"{len(right.columns) - 1} columns added, {dropped:,} unmatched aggregate rows dropped"
        )
        return joined

    def coverage(self, joined: pd.DataFrame, aggregates: Mapping[str, pd.DataFrame]) -> Dict[str, float]:
        """Share of applicant rows with at least one record per aggregate table."""
        ids = joined[self.id_column]
        if len(ids) == 0:
            return {name: 0.0 for name in self.order}
        return {
            name: float(ids.isin(aggregates[name][self.id_column]).mean())
            for name in self.order
        }
