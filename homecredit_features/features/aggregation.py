"""
Stat Aggregator

Reduces a supplementary transaction table (many rows per applicant) to one
row per applicant identifier. Each aggregator declares its statistics and
ratios up front; the generic ``StatAggregator.aggregate`` evaluates them.

Statistic semantics:
    count         number of rows in the group
    count_where   rows whose predicate holds (missing values never count)
    sum           sum skipping missing values (all missing -> 0)
    mean/min/max  skipping missing values (nothing left -> missing)
    mean_where    mean over rows whose predicate holds (none -> missing)
    nunique       distinct non-missing values

Ratios with a zero or missing denominator are missing, and any infinite
value left in the output is converted to missing.
"""

from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Dict, List, Optional

import pandas as pd

from homecredit_features.core.base import register_component
from homecredit_features.core.exceptions import FeatureEngineeringError
from homecredit_features.data.schema_validator import SchemaValidator
from homecredit_features.data.schemas import (
    BUREAU,
    INSTALLMENTS_PAYMENTS,
    PREVIOUS_APPLICATION,
    supplementary_schema,
)
from homecredit_features.features.base_transformer import BaseTransformer
from homecredit_features.features.ratios import replace_infinite, safe_divide


Predicate = Callable[[pd.Series], pd.Series]

GROUP_FUNCTIONS = ("sum", "mean", "min", "max", "nunique")
COUNT_FUNCTIONS = ("count", "count_where")
FILTERED_FUNCTIONS = ("count_where", "mean_where")


def equals(value: Any) -> Predicate:
    """Predicate: the value equals ``value``."""
    def predicate(values: pd.Series) -> pd.Series:
        return values.eq(value)
    predicate.__name__ = f"equals({value!r})"
    return predicate


def positive(values: pd.Series) -> pd.Series:
    """Predicate: the value is strictly greater than zero."""
    return values.gt(0)


@dataclass(frozen=True)
class Statistic:
    """One per-group statistic.

    Attributes:
        name: Output column name.
        how: One of count, count_where, sum, mean, min, max, mean_where, nunique.
        column: Source column (unused for ``count``).
        where: Row predicate for ``count_where`` / ``mean_where``.
    """

    name: str
    how: str
    column: Optional[str] = None
    where: Optional[Predicate] = None

    def __post_init__(self):
        if self.how not in GROUP_FUNCTIONS + COUNT_FUNCTIONS + FILTERED_FUNCTIONS:
            raise ValueError(f"Unknown statistic '{self.how}' for {self.name}")
        if self.how != "count" and self.column is None:
            raise ValueError(f"Statistic {self.name} needs a source column")
        if self.how in FILTERED_FUNCTIONS and self.where is None:
            raise ValueError(f"Statistic {self.name} needs a predicate")


@dataclass(frozen=True)
class Ratio:
    """A ratio of two statistics computed after grouping."""

    name: str
    numerator: str
    denominator: str


class StatAggregator(BaseTransformer):
    """
    Generic group-by aggregator over a supplementary table.

    Subclasses set ``table``, ``statistics`` and ``ratios`` and may override
    ``prepare`` to add row-level columns before grouping.

    Args:
        config: PipelineConfig (supplies the applicant identifier column).
        name: Optional component name.
    """

    table: ClassVar[str] = ""
    statistics: ClassVar[List[Statistic]] = []
    ratios: ClassVar[List[Ratio]] = []

    def __init__(self, config: Any, name: Optional[str] = None):
        super().__init__(config, name)
        self.id_column = config.data.id_column
        self.schema = supplementary_schema(config, self.table)
        self._validator = SchemaValidator(config)

        for stat in self.statistics:
            self._add_output_column(stat.name)
        for ratio in self.ratios:
            self._add_output_column(ratio.name)

    def validate(self) -> bool:
        """Check that every ratio refers to a declared statistic."""
        names = {stat.name for stat in self.statistics}
        dangling = [
            r.name for r in self.ratios
            if r.numerator not in names or r.denominator not in names
        ]
        if dangling:
            self.logger.error(f"Ratios referencing unknown statistics: {dangling}")
            return False
        return len(names) == len(self.statistics)

    def prepare(self, df: pd.DataFrame) -> pd.DataFrame:
        """Row-level derivations applied before grouping (none by default)."""
        return df

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        return self.aggregate(df)

    def aggregate(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Aggregate a transaction table to one row per applicant.

        Args:
            df: Supplementary table; never modified

        Returns:
            DataFrame with the identifier column followed by the statistics
            and ratios, one row per distinct identifier, sorted by identifier

        Raises:
            SchemaValidationError: If a required input column is absent
            FeatureEngineeringError: If a statistic cannot be computed
        """
        self._start_execution()
        self._validator.require(df, self.schema)

        frame = self.prepare(self._cast_empty_columns(df))
        keys = frame[self.id_column]

        columns: Dict[str, pd.Series] = {}
        for stat in self.statistics:
            try:
                columns[stat.name] = self._compute(stat, frame, keys)
            except (KeyError, TypeError, ValueError) as e:
                raise FeatureEngineeringError(
                    f"Failed to compute {stat.how} of {stat.column} for {self.table}",
                    feature_name=stat.name,
                    cause=e,
                ) from e

        result = pd.DataFrame(columns)
        for ratio in self.ratios:
            result[ratio.name] = safe_divide(result[ratio.numerator], result[ratio.denominator])

        result = replace_infinite(result)
        result.index.name = self.id_column
        result = result.reset_index()

        expected = keys.nunique(dropna=True)
        if len(result) != expected:
            raise FeatureEngineeringError(
                f"{self.table} aggregate has {len(result)} rows for {expected} applicants"
            )

        self.logger.info(
            f"AGGREGATE | {self.table}: {len(frame):,} rows -> "
            f"{len(result):,} applicants, {len(result.columns) - 1} features"
        )
        self._end_execution()
        return result

    def _cast_empty_columns(self, df: pd.DataFrame) -> pd.DataFrame:
        """Give float dtype to key and numeric columns that hold no values.

        A header-only CSV reads every column as object.
        """
        columns = [self.id_column, *self.schema.numeric_columns]
        empty = [
            c for c in dict.fromkeys(columns)
            if not pd.api.types.is_numeric_dtype(df[c]) and df[c].isna().all()
        ]
        if not empty:
            return df
        return df.assign(**{c: df[c].astype("float64") for c in empty})

    def _compute(self, stat: Statistic, frame: pd.DataFrame, keys: pd.Series) -> pd.Series:
        if stat.how == "count":
            return keys.groupby(keys, sort=True).size()

        values = frame[stat.column]

        if stat.how == "count_where":
            hits = stat.where(values).fillna(False).astype("int64")
            return hits.groupby(keys, sort=True).sum()

        if stat.how == "mean_where":
            kept = values.where(stat.where(values).fillna(False).astype(bool))
            return kept.groupby(keys, sort=True).mean()

        grouped = values.groupby(keys, sort=True)
        if stat.how == "nunique":
            return grouped.nunique(dropna=True)
        if stat.how == "sum":
            return grouped.sum(min_count=0)
        return grouped.agg(stat.how)


@register_component(BUREAU)
class BureauAggregator(StatAggregator):
    """Credit bureau records -> BUREAU_* features."""

    table = BUREAU
    statistics = [
        Statistic("BUREAU_COUNT", "count"),
        Statistic("BUREAU_ACTIVE_COUNT", "count_where", "CREDIT_ACTIVE", equals("Active")),
        Statistic("BUREAU_CLOSED_COUNT", "count_where", "CREDIT_ACTIVE", equals("Closed")),
        Statistic("BUREAU_SOLD_COUNT", "count_where", "CREDIT_ACTIVE", equals("Sold")),
        Statistic("BUREAU_CREDIT_TYPES", "nunique", "CREDIT_TYPE"),
        Statistic("BUREAU_OVERDUE_MEAN", "mean", "AMT_CREDIT_SUM_OVERDUE"),
        Statistic("BUREAU_OVERDUE_MAX", "max", "AMT_CREDIT_SUM_OVERDUE"),
        Statistic("BUREAU_OVERDUE_SUM", "sum", "AMT_CREDIT_SUM_OVERDUE"),
        Statistic("BUREAU_DEBT_MEAN", "mean", "AMT_CREDIT_SUM_DEBT"),
        Statistic("BUREAU_DEBT_MAX", "max", "AMT_CREDIT_SUM_DEBT"),
        Statistic("BUREAU_DEBT_SUM", "sum", "AMT_CREDIT_SUM_DEBT"),
        Statistic("BUREAU_CREDIT_MEAN", "mean", "AMT_CREDIT_SUM"),
        Statistic("BUREAU_CREDIT_MAX", "max", "AMT_CREDIT_SUM"),
        Statistic("BUREAU_CREDIT_SUM", "sum", "AMT_CREDIT_SUM"),
        Statistic("BUREAU_DAYS_CREDIT_MIN", "min", "DAYS_CREDIT"),
        Statistic("BUREAU_DAYS_CREDIT_MAX", "max", "DAYS_CREDIT"),
        Statistic("BUREAU_DAYS_CREDIT_MEAN", "mean", "DAYS_CREDIT"),
        Statistic("BUREAU_PROLONGED_COUNT", "count_where", "CNT_CREDIT_PROLONG", positive),
        Statistic("BUREAU_DAYS_UPDATE_MEAN", "mean", "DAYS_CREDIT_UPDATE"),
        Statistic("BUREAU_DAYS_ENDDATE_MEAN", "mean", "DAYS_ENDDATE_FACT"),
    ]
    ratios = [
        Ratio("BUREAU_ACTIVE_RATIO", "BUREAU_ACTIVE_COUNT", "BUREAU_COUNT"),
        Ratio("BUREAU_DEBT_CREDIT_RATIO", "BUREAU_DEBT_SUM", "BUREAU_CREDIT_SUM"),
        Ratio("BUREAU_OVERDUE_DEBT_RATIO", "BUREAU_OVERDUE_SUM", "BUREAU_DEBT_SUM"),
    ]


@register_component(PREVIOUS_APPLICATION)
class PreviousApplicationAggregator(StatAggregator):
    """Previous Home Credit applications -> PREV_* features."""

    table = PREVIOUS_APPLICATION
    statistics = [
        Statistic("PREV_APP_COUNT", "count"),
        Statistic("PREV_APP_APPROVED", "count_where", "NAME_CONTRACT_STATUS", equals("Approved")),
        Statistic("PREV_APP_REFUSED", "count_where", "NAME_CONTRACT_STATUS", equals("Refused")),
        Statistic("PREV_APP_CANCELED", "count_where", "NAME_CONTRACT_STATUS", equals("Canceled")),
        Statistic("PREV_APP_UNUSED", "count_where", "NAME_CONTRACT_STATUS", equals("Unused offer")),
        Statistic("PREV_AMT_CREDIT_MEAN", "mean", "AMT_CREDIT"),
        Statistic("PREV_AMT_CREDIT_MAX", "max", "AMT_CREDIT"),
        Statistic("PREV_AMT_CREDIT_SUM", "sum", "AMT_CREDIT"),
        Statistic("PREV_AMT_APPLICATION_MEAN", "mean", "AMT_APPLICATION"),
        Statistic("PREV_AMT_APPLICATION_MAX", "max", "AMT_APPLICATION"),
        Statistic("PREV_AMT_DOWN_PAYMENT_MEAN", "mean", "AMT_DOWN_PAYMENT"),
        Statistic("PREV_AMT_DOWN_PAYMENT_MAX", "max", "AMT_DOWN_PAYMENT"),
        Statistic("PREV_AMT_GOODS_PRICE_MEAN", "mean", "AMT_GOODS_PRICE"),
        Statistic("PREV_AMT_GOODS_PRICE_MAX", "max", "AMT_GOODS_PRICE"),
        Statistic("PREV_DAYS_DECISION_MIN", "min", "DAYS_DECISION"),
        Statistic("PREV_DAYS_DECISION_MAX", "max", "DAYS_DECISION"),
        Statistic("PREV_DAYS_DECISION_MEAN", "mean", "DAYS_DECISION"),
        Statistic("PREV_PRODUCT_TYPES", "nunique", "NAME_PRODUCT_TYPE"),
        Statistic("PREV_CASH_LOANS", "count_where", "NAME_CONTRACT_TYPE", equals("Cash loans")),
        Statistic("PREV_CONSUMER_LOANS", "count_where", "NAME_CONTRACT_TYPE", equals("Consumer loans")),
        Statistic("PREV_REVOLVING_LOANS", "count_where", "NAME_CONTRACT_TYPE", equals("Revolving loans")),
    ]
    ratios = [
        Ratio("PREV_APPROVAL_RATE", "PREV_APP_APPROVED", "PREV_APP_COUNT"),
        Ratio("PREV_REFUSAL_RATE", "PREV_APP_REFUSED", "PREV_APP_COUNT"),
        Ratio("PREV_CREDIT_APP_RATIO", "PREV_AMT_CREDIT_MEAN", "PREV_AMT_APPLICATION_MEAN"),
    ]


@register_component(INSTALLMENTS_PAYMENTS)
class InstallmentAggregator(StatAggregator):
    """Installment payment history -> INSTALL_* features."""

    table = INSTALLMENTS_PAYMENTS
    statistics = [
        Statistic("INSTALL_COUNT", "count"),
        Statistic("INSTALL_LATE_COUNT", "count_where", "IS_LATE", equals(True)),
        Statistic("INSTALL_PAYMENT_DIFF_MEAN", "mean", "PAYMENT_DIFF"),
        Statistic("INSTALL_PAYMENT_DIFF_MAX", "max", "PAYMENT_DIFF"),
        Statistic("INSTALL_PAYMENT_DIFF_MIN", "min", "PAYMENT_DIFF"),
        Statistic("INSTALL_PAYMENT_DIFF_SUM", "sum", "PAYMENT_DIFF"),
        # on-time payments are excluded from this mean only
        Statistic("INSTALL_DAYS_LATE_MEAN", "mean_where", "DAYS_LATE", positive),
        Statistic("INSTALL_DAYS_LATE_MAX", "max", "DAYS_LATE"),
        Statistic("INSTALL_DAYS_LATE_SUM", "sum", "DAYS_LATE"),
        Statistic("INSTALL_AMT_PAYMENT_MEAN", "mean", "AMT_PAYMENT"),
        Statistic("INSTALL_AMT_PAYMENT_MAX", "max", "AMT_PAYMENT"),
        Statistic("INSTALL_AMT_PAYMENT_SUM", "sum", "AMT_PAYMENT"),
        Statistic("INSTALL_AMT_INSTALMENT_MEAN", "mean", "AMT_INSTALMENT"),
        Statistic("INSTALL_AMT_INSTALMENT_MAX", "max", "AMT_INSTALMENT"),
        Statistic("INSTALL_AMT_INSTALMENT_SUM", "sum", "AMT_INSTALMENT"),
    ]
    ratios = [
        Ratio("INSTALL_LATE_RATE", "INSTALL_LATE_COUNT", "INSTALL_COUNT"),
        Ratio("INSTALL_PAYMENT_RATIO", "INSTALL_AMT_PAYMENT_SUM", "INSTALL_AMT_INSTALMENT_SUM"),
    ]

    ROW_LEVEL_COLUMNS: ClassVar[List[str]] = ["PAYMENT_DIFF", "DAYS_LATE", "IS_LATE"]

    def prepare(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Add PAYMENT_DIFF, DAYS_LATE and IS_LATE to a copy of the table.

        DAYS_LATE is the non-negative part of entry day minus due day and is
        missing when either day is missing; IS_LATE is DAYS_LATE > 0.
        """
        days_late = (df["DAYS_ENTRY_PAYMENT"] - df["DAYS_INSTALMENT"]).clip(lower=0)
        return df.assign(
            PAYMENT_DIFF=df["AMT_PAYMENT"] - df["AMT_INSTALMENT"],
            DAYS_LATE=days_late,
            IS_LATE=days_late.gt(0),
        )


AGGREGATION_ORDER = (BUREAU, PREVIOUS_APPLICATION, INSTALLMENTS_PAYMENTS)
