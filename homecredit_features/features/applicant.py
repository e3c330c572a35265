"""
Applicant Feature Deriver

Row-wise feature derivation over an applicant split (train or test).

Stages, applied in order:
    1. Employment anomaly correction (DAYS_EMPLOYED sentinel -> missing + flag)
    2. Day counts -> years
    3. Financial ratios
    4. Missing-value indicators
    5. Interaction terms
    6. Binned bands
    7. Document count

Every stage is a pure function of the table it receives: it returns a new
table with added (or, for stage 1, corrected) columns and never drops or
reorders rows. Nothing is learned from other rows, so the same deriver
instance produces identical formulas for train and test.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple

import pandas as pd

from homecredit_features.core.exceptions import FeatureEngineeringError
from homecredit_features.data.schema_validator import SchemaValidator
from homecredit_features.data.schemas import applicant_feature_schema
from homecredit_features.features.base_transformer import BaseTransformer
from homecredit_features.features.binning import assign_bins
from homecredit_features.features.encoding import CategoryEncoder
from homecredit_features.features.ratios import safe_divide


# (source day-count column, derived year column)
DAY_COUNT_COLUMNS: List[Tuple[str, str]] = [
    ("DAYS_BIRTH", "AGE_YEARS"),
    ("DAYS_EMPLOYED", "EMPLOYED_YEARS"),
    ("DAYS_REGISTRATION", "REGISTRATION_YEARS"),
    ("DAYS_ID_PUBLISH", "ID_PUBLISH_YEARS"),
]

RATIO_COLUMNS = [
    "CREDIT_INCOME_RATIO",
    "ANNUITY_CREDIT_RATIO",
    "INCOME_ANNUITY_RATIO",
    "CREDIT_GOODS_RATIO",
    "DOWN_PAYMENT_RATIO",
    "PAYMENT_BURDEN",
    "INCOME_PER_PERSON",
    "CREDIT_PER_CHILD",
    "EMPLOYMENT_RATIO",
    "CREDIT_TERM_YEARS",
]

INTERACTION_COLUMNS = [
    "AGE_INCOME_INTERACTION",
    "EXT_SOURCE_MEAN",
    "EXT_SOURCE_12_INTERACTION",
    "EXT_SOURCE_23_INTERACTION",
    "EDUCATION_INCOME_INTERACTION",
    "OCCUPATION_INCOME_INTERACTION",
]

BIN_COLUMNS = ["AGE_GROUP", "INCOME_BIN", "CREDIT_BIN"]

EXT_SOURCE_COLUMNS = ["EXT_SOURCE_1", "EXT_SOURCE_2", "EXT_SOURCE_3"]

ANOMALY_FLAG = "DAYS_EMPLOYED_ANOM"
DOCUMENT_COUNT = "TOTAL_DOCUMENTS"
MISSING_SUFFIX = "_MISSING"


class ApplicantFeatureDeriver(BaseTransformer):
    """
    Derives the applicant-level features for one split.

    Args:
        config: PipelineConfig; the ``features`` section supplies the
            sentinel, the missing-indicator and document-flag columns, the
            category code books and the bin definitions.
        name: Optional component name.
    """

    def __init__(self, config: Any, name: Optional[str] = None):
        super().__init__(config, name or "ApplicantFeatureDeriver")
        features = config.features

        self.sentinel = features.employment_sentinel
        self.days_per_year = features.days_per_year
        self.missing_indicator_columns = list(features.missing_indicator_columns)
        self.document_flag_columns = list(features.document_flag_columns)
        self.age_bins = features.age_bins
        self.income_bins = features.income_bins
        self.credit_bins = features.credit_bins

        self.education_encoder = CategoryEncoder("NAME_EDUCATION_TYPE", features.education_categories)
        self.occupation_encoder = CategoryEncoder("OCCUPATION_TYPE", features.occupation_categories)

        self.schema = applicant_feature_schema(config)
        self._validator = SchemaValidator(config)

        self._column_stage: Dict[str, str] = {}
        for stage_name, column in self._planned_columns():
            self._column_stage[column] = stage_name
            self._add_output_column(column)

    def _planned_columns(self) -> List[Tuple[str, str]]:
        """(stage, derived column) pairs, in stage order."""
        planned = [("employment_anomaly", ANOMALY_FLAG)]
        planned += [("day_counts", derived) for _, derived in DAY_COUNT_COLUMNS]
        planned += [("financial_ratios", col) for col in RATIO_COLUMNS]
        planned += [
            ("missing_indicators", f"{col}{MISSING_SUFFIX}")
            for col in self.missing_indicator_columns
        ]
        planned += [("interactions", col) for col in INTERACTION_COLUMNS]
        planned += [("binning", col) for col in BIN_COLUMNS]
        planned.append(("document_count", DOCUMENT_COUNT))
        return planned

    @property
    def stages(self) -> List[Tuple[str, Callable[[pd.DataFrame], pd.DataFrame]]]:
        return [
            ("employment_anomaly", self.fix_employment_anomaly),
            ("day_counts", self.convert_day_counts),
            ("financial_ratios", self.add_financial_ratios),
            ("missing_indicators", self.add_missing_indicators),
            ("interactions", self.add_interactions),
            ("binning", self.add_bins),
            ("document_count", self.add_document_count),
        ]

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Run all derivation stages on an applicant table.

        Args:
            df: Applicant table (train or test split)

        Returns:
            New table: every input column plus the derived columns

        Raises:
            SchemaValidationError: If a required input column is absent
            FeatureEngineeringError: If a stage fails unexpectedly
        """
        self._start_execution()
        self._validator.require(df, self.schema)

        out = df
        for stage_name, stage in self.stages:
            try:
                out = stage(out)
            except (KeyError, TypeError, ValueError) as e:
                raise FeatureEngineeringError(
                    f"Applicant derivation stage '{stage_name}' failed",
                    feature_name=stage_name,
                    cause=e,
                ) from e
            self.logger.debug(f"DERIVE | {stage_name}: {len(out.columns)} columns")

        if len(out) != len(df):
            raise FeatureEngineeringError(
                f"Derivation changed the row count from {len(df)} to {len(out)}"
            )

        self._end_execution()
        return out

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def fix_employment_anomaly(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Flag the DAYS_EMPLOYED sentinel and replace it with missing.

        The sentinel (365243 days, roughly 1000 years) encodes "not
        applicable", mostly pensioners. Missing DAYS_EMPLOYED is not an
        anomaly, so the flag is False there.
        """
        days = df["DAYS_EMPLOYED"]
        anomaly = days.eq(self.sentinel)

        anomaly_count = int(anomaly.sum())
        share = anomaly_count / len(df) * 100 if len(df) else 0.0
        self.logger.info(f"DERIVE | Employment anomaly flagged: {anomaly_count:,} rows ({share:.1f}%)")

        return df.assign(**{
            ANOMALY_FLAG: anomaly,
            "DAYS_EMPLOYED": days.mask(anomaly),
        })

    def convert_day_counts(self, df: pd.DataFrame) -> pd.DataFrame:
        """Convert negative day counts relative to the application date into years."""
        years = {
            derived: df[source].abs() / self.days_per_year
            for source, derived in DAY_COUNT_COLUMNS
        }
        return df.assign(**years)

    def add_financial_ratios(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Add the ten financial ratios.

        Any zero or missing divisor yields a missing ratio, except
        CREDIT_PER_CHILD which is 0 for applicants without children.
        """
        credit = df["AMT_CREDIT"]
        income = df["AMT_INCOME_TOTAL"]
        annuity = df["AMT_ANNUITY"]
        goods = df["AMT_GOODS_PRICE"]
        children = df["CNT_CHILDREN"]

        ratios = {
            "CREDIT_INCOME_RATIO": safe_divide(credit, income),
            "ANNUITY_CREDIT_RATIO": safe_divide(annuity, credit),
            "INCOME_ANNUITY_RATIO": safe_divide(income, annuity),
            "CREDIT_GOODS_RATIO": safe_divide(credit, goods),
            "DOWN_PAYMENT_RATIO": safe_divide(goods - credit, goods),
            "PAYMENT_BURDEN": safe_divide(annuity, income),
            "INCOME_PER_PERSON": safe_divide(income, df["CNT_FAM_MEMBERS"]),
            "CREDIT_PER_CHILD": safe_divide(credit, children).mask(children.eq(0), 0.0),
            "EMPLOYMENT_RATIO": safe_divide(df["EMPLOYED_YEARS"], df["AGE_YEARS"]),
            "CREDIT_TERM_YEARS": safe_divide(credit, annuity * 12),
        }
        return df.assign(**ratios)

    def add_missing_indicators(self, df: pd.DataFrame) -> pd.DataFrame:
        """Add a boolean ``<column>_MISSING`` flag per configured column."""
        indicators = {
            f"{col}{MISSING_SUFFIX}": df[col].isna()
            for col in self.missing_indicator_columns
        }
        return df.assign(**indicators)

    def add_interactions(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Add interaction terms.

        EXT_SOURCE_MEAN averages whichever external scores are present and is
        missing only when all three are. The categorical interactions multiply
        a fixed integer code of the label by income.
        """
        income = df["AMT_INCOME_TOTAL"]
        ext = df[EXT_SOURCE_COLUMNS]

        interactions = {
            "AGE_INCOME_INTERACTION": df["AGE_YEARS"] * income,
            "EXT_SOURCE_MEAN": ext.mean(axis=1, skipna=True),
            "EXT_SOURCE_12_INTERACTION": df["EXT_SOURCE_1"] * df["EXT_SOURCE_2"],
            "EXT_SOURCE_23_INTERACTION": df["EXT_SOURCE_2"] * df["EXT_SOURCE_3"],
            "EDUCATION_INCOME_INTERACTION": (
                self.education_encoder.encode(df["NAME_EDUCATION_TYPE"]) * income
            ),
            "OCCUPATION_INCOME_INTERACTION": (
                self.occupation_encoder.encode(df["OCCUPATION_TYPE"]) * income
            ),
        }
        return df.assign(**interactions)

    def add_bins(self, df: pd.DataFrame) -> pd.DataFrame:
        """Add the age, income and credit bands."""
        bins = {
            "AGE_GROUP": assign_bins(df["AGE_YEARS"], self.age_bins),
            "INCOME_BIN": assign_bins(df["AMT_INCOME_TOTAL"], self.income_bins),
            "CREDIT_BIN": assign_bins(df["AMT_CREDIT"], self.credit_bins),
        }
        return df.assign(**bins)

    def add_document_count(self, df: pd.DataFrame) -> pd.DataFrame:
        """Count submitted documents; missing if any flag is missing."""
        flags = df[self.document_flag_columns].astype("float64")
        total = flags.sum(axis=1, skipna=False).astype("Int64")
        return df.assign(**{DOCUMENT_COUNT: total})

    def get_feature_info(self) -> List[Dict[str, Any]]:
        """Feature names with the stage that creates each of them."""
        return [
            {'name': col, 'source': self.name, 'stage': self._column_stage[col]}
            for col in self._output_columns
        ]
