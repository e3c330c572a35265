"""
Table Schemas

Statically declared minimum schemas for the five input tables. Every column
a derivation or aggregation reads is listed here, so a missing input column
is reported before any work starts.
"""

from dataclasses import dataclass, replace
from typing import Dict, List, Tuple

from homecredit_features.config.schema import PipelineConfig


APPLICATION_TRAIN = "application_train"
APPLICATION_TEST = "application_test"
BUREAU = "bureau"
PREVIOUS_APPLICATION = "previous_application"
INSTALLMENTS_PAYMENTS = "installments_payments"

SUPPLEMENTARY_TABLES = (BUREAU, PREVIOUS_APPLICATION, INSTALLMENTS_PAYMENTS)

APPLICATION_NUMERIC_COLUMNS = (
    "AMT_INCOME_TOTAL",
    "AMT_CREDIT",
    "AMT_ANNUITY",
    "AMT_GOODS_PRICE",
    "CNT_CHILDREN",
    "CNT_FAM_MEMBERS",
    "DAYS_BIRTH",
    "DAYS_EMPLOYED",
    "DAYS_REGISTRATION",
    "DAYS_ID_PUBLISH",
    "EXT_SOURCE_1",
    "EXT_SOURCE_2",
    "EXT_SOURCE_3",
)
APPLICATION_CATEGORICAL_COLUMNS = (
    "NAME_EDUCATION_TYPE",
    "OCCUPATION_TYPE",
)

BUREAU_NUMERIC_COLUMNS = (
    "AMT_CREDIT_SUM_OVERDUE",
    "AMT_CREDIT_SUM_DEBT",
    "AMT_CREDIT_SUM",
    "DAYS_CREDIT",
    "CNT_CREDIT_PROLONG",
    "DAYS_CREDIT_UPDATE",
    "DAYS_ENDDATE_FACT",
)
BUREAU_CATEGORICAL_COLUMNS = ("CREDIT_ACTIVE", "CREDIT_TYPE")

PREVIOUS_NUMERIC_COLUMNS = (
    "AMT_CREDIT",
    "AMT_APPLICATION",
    "AMT_DOWN_PAYMENT",
    "AMT_GOODS_PRICE",
    "DAYS_DECISION",
)
PREVIOUS_CATEGORICAL_COLUMNS = (
    "NAME_CONTRACT_STATUS",
    "NAME_CONTRACT_TYPE",
    "NAME_PRODUCT_TYPE",
)

INSTALLMENT_NUMERIC_COLUMNS = (
    "AMT_INSTALMENT",
    "AMT_PAYMENT",
    "DAYS_INSTALMENT",
    "DAYS_ENTRY_PAYMENT",
)


@dataclass(frozen=True)
class TableSchema:
    """Minimum schema of one input table.

    Attributes:
        name: Logical table name.
        key_column: Applicant identifier column.
        numeric_columns: Columns that must exist with a numeric dtype.
        categorical_columns: Columns that must exist (any dtype).
        forbidden_columns: Columns that must not exist (the label in test).
    """

    name: str
    key_column: str
    numeric_columns: Tuple[str, ...] = ()
    categorical_columns: Tuple[str, ...] = ()
    forbidden_columns: Tuple[str, ...] = ()

    @property
    def required_columns(self) -> List[str]:
        """All required columns, key first, without duplicates."""
        ordered = [self.key_column, *self.numeric_columns, *self.categorical_columns]
        return list(dict.fromkeys(ordered))

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "numeric": list(self.numeric_columns),
            "categorical": list(self.categorical_columns),
            "forbidden": list(self.forbidden_columns),
        }


def applicant_feature_schema(config: PipelineConfig) -> TableSchema:
    """Columns the applicant feature derivation reads, for either split."""
    features = config.features
    numeric = list(APPLICATION_NUMERIC_COLUMNS)
    numeric += [c for c in features.missing_indicator_columns if c not in numeric]
    numeric += [c for c in features.document_flag_columns if c not in numeric]

    return TableSchema(
        name="application",
        key_column=config.data.id_column,
        numeric_columns=tuple(numeric),
        categorical_columns=APPLICATION_CATEGORICAL_COLUMNS,
    )


def application_schema(config: PipelineConfig, is_train: bool) -> TableSchema:
    """Schema of an applicant split.

    The train split additionally requires the label; the test split must
    not carry it.
    """
    base = applicant_feature_schema(config)
    target = config.data.target_column

    if is_train:
        return replace(
            base,
            name=APPLICATION_TRAIN,
            numeric_columns=base.numeric_columns + (target,),
        )
    return replace(base, name=APPLICATION_TEST, forbidden_columns=(target,))


def supplementary_schema(config: PipelineConfig, table: str) -> TableSchema:
    """Schema of one of the three supplementary transaction tables."""
    columns = {
        BUREAU: (BUREAU_NUMERIC_COLUMNS, BUREAU_CATEGORICAL_COLUMNS),
        PREVIOUS_APPLICATION: (PREVIOUS_NUMERIC_COLUMNS, PREVIOUS_CATEGORICAL_COLUMNS),
        INSTALLMENTS_PAYMENTS: (INSTALLMENT_NUMERIC_COLUMNS, ()),
    }
    if table not in columns:
        raise KeyError(f"Unknown supplementary table: {table}")

    numeric, categorical = columns[table]
    return TableSchema(
        name=table,
        key_column=config.data.id_column,
        numeric_columns=numeric,
        categorical_columns=categorical,
    )
