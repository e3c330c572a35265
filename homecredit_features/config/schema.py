"""
Pydantic Configuration Schema

Defines all configuration models for the feature engineering pipeline.
All fields default to the Home Credit Default Risk file layout and the
feature definitions used by the modelling team.
"""

from typing import List, Literal, Optional
from pydantic import BaseModel, Field, model_validator


EDUCATION_CATEGORIES = [
    "Academic degree",
    "Higher education",
    "Incomplete higher",
    "Lower secondary",
    "Secondary / secondary special",
]

OCCUPATION_CATEGORIES = [
    "Accountants",
    "Cleaning staff",
    "Cooking staff",
    "Core staff",
    "Drivers",
    "HR staff",
    "High skill tech staff",
    "IT staff",
    "Laborers",
    "Low-skill Laborers",
    "Managers",
    "Medicine staff",
    "Private service staff",
    "Realty agents",
    "Sales staff",
    "Secretaries",
    "Security staff",
    "Waiters/barmen staff",
]


class TableFilesConfig(BaseModel):
    """File name of each input table inside ``data_dir``."""

    model_config = {"frozen": True}

    application_train: str = "application_train.csv"
    application_test: str = "application_test.csv"
    bureau: str = "bureau.csv"
    previous_application: str = "previous_application.csv"
    installments_payments: str = "installments_payments.csv"


class DataConfig(BaseModel):
    """Data source configuration."""

    model_config = {"frozen": True}

    data_dir: str = "data"
    id_column: str = "SK_ID_CURR"
    target_column: str = "TARGET"
    files: TableFilesConfig = Field(default_factory=TableFilesConfig)


class BinningConfig(BaseModel):
    """Right-closed bins over a continuous column.

    ``edges`` are the interior boundaries; the lowest band is unbounded
    below and the last band is unbounded above, so there is always one
    more label than there are edges.
    """

    model_config = {"frozen": True}

    edges: List[float]
    labels: List[str]

    @model_validator(mode="after")
    def edges_and_labels_consistent(self) -> "BinningConfig":
        if len(self.labels) != len(self.edges) + 1:
            raise ValueError(
                f"Expected {len(self.edges) + 1} labels for {len(self.edges)} edges, "
                f"got {len(self.labels)}"
            )
        if any(b <= a for a, b in zip(self.edges, self.edges[1:])):
            raise ValueError(f"Bin edges must be strictly increasing: {self.edges}")
        if len(set(self.labels)) != len(self.labels):
            raise ValueError(f"Bin labels must be unique: {self.labels}")
        return self


class FeaturesConfig(BaseModel):
    """Applicant feature derivation configuration."""

    model_config = {"frozen": True}

    employment_sentinel: int = 365243
    days_per_year: float = Field(default=365.0, gt=0.0)
    missing_indicator_columns: List[str] = Field(
        default_factory=lambda: [
            "EXT_SOURCE_1",
            "EXT_SOURCE_2",
            "EXT_SOURCE_3",
            "OWN_CAR_AGE",
            "AMT_GOODS_PRICE",
            "AMT_ANNUITY",
            "CNT_FAM_MEMBERS",
            "DAYS_LAST_PHONE_CHANGE",
        ]
    )
    document_flag_columns: List[str] = Field(
        default_factory=lambda: [f"FLAG_DOCUMENT_{i}" for i in range(2, 22)]
    )
    education_categories: List[str] = Field(default_factory=lambda: list(EDUCATION_CATEGORIES))
    occupation_categories: List[str] = Field(default_factory=lambda: list(OCCUPATION_CATEGORIES))
    age_bins: BinningConfig = Field(
        default_factory=lambda: BinningConfig(
            edges=[25, 35, 45, 55, 65],
            labels=["18-25", "26-35", "36-45", "46-55", "56-65", "65+"],
        )
    )
    income_bins: BinningConfig = Field(
        default_factory=lambda: BinningConfig(
            edges=[100000, 150000, 200000, 300000],
            labels=["Low", "Medium-Low", "Medium", "Medium-High", "High"],
        )
    )
    credit_bins: BinningConfig = Field(
        default_factory=lambda: BinningConfig(
            edges=[300000, 600000, 900000, 1200000],
            labels=["Small", "Medium", "Large", "Very Large", "Huge"],
        )
    )

    @model_validator(mode="after")
    def category_sets_unique(self) -> "FeaturesConfig":
        for name in ("education_categories", "occupation_categories"):
            labels = getattr(self, name)
            if len(set(labels)) != len(labels):
                raise ValueError(f"{name} contains duplicate labels")
        return self


class OutputConfig(BaseModel):
    """Output configuration."""

    model_config = {"frozen": True}

    persist: bool = True
    base_dir: str = "outputs/feature_engineering"
    train_file: str = "application_train_processed.csv"
    test_file: str = "application_test_processed.csv"
    save_aggregates: bool = False
    save_config: bool = True
    save_metadata: bool = True


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = {"frozen": True}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Optional[str] = None
    file: Optional[str] = None


class PipelineConfig(BaseModel):
    """Top-level pipeline configuration combining all sections."""

    model_config = {"frozen": True}

    data: DataConfig = Field(default_factory=DataConfig)
    features: FeaturesConfig = Field(default_factory=FeaturesConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
