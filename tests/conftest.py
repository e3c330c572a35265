"""
Pytest Configuration and Shared Fixtures

Provides common fixtures for all test modules including:
- Sample configurations (Pydantic-based)
- Small applicant / bureau / previous application / installment tables
  with hand-checkable values
- An in-memory table reader serving those tables
"""

import sys
from pathlib import Path
from typing import Any, Callable, Dict, List

import numpy as np
import pandas as pd
import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


SENTINEL = 365243

DEFAULT_APPLICANT: Dict[str, Any] = {
    "AMT_INCOME_TOTAL": 200000.0,
    "AMT_CREDIT": 500000.0,
    "AMT_ANNUITY": 25000.0,
    "AMT_GOODS_PRICE": 450000.0,
    "CNT_CHILDREN": 1,
    "CNT_FAM_MEMBERS": 3.0,
    "DAYS_BIRTH": -14600,
    "DAYS_EMPLOYED": -3650,
    "DAYS_REGISTRATION": -2000.0,
    "DAYS_ID_PUBLISH": -1000,
    "EXT_SOURCE_1": 0.5,
    "EXT_SOURCE_2": 0.6,
    "EXT_SOURCE_3": 0.4,
    "OWN_CAR_AGE": 5.0,
    "DAYS_LAST_PHONE_CHANGE": -500.0,
    "NAME_EDUCATION_TYPE": "Higher education",
    "OCCUPATION_TYPE": "Laborers",
}
DEFAULT_APPLICANT.update({f"FLAG_DOCUMENT_{i}": 0 for i in range(2, 22)})
DEFAULT_APPLICANT["FLAG_DOCUMENT_3"] = 1


def build_applicants(rows: List[Dict[str, Any]], include_target: bool = True) -> pd.DataFrame:
    """Applicant table from per-row overrides of DEFAULT_APPLICANT.

    Every row must carry SK_ID_CURR; TARGET defaults to 0 when
    ``include_target`` is set and is dropped otherwise.
    """
    records = []
    for row in rows:
        record = {"SK_ID_CURR": row["SK_ID_CURR"]}
        if include_target:
            record["TARGET"] = row.get("TARGET", 0)
        record.update(DEFAULT_APPLICANT)
        record.update({k: v for k, v in row.items() if k not in ("SK_ID_CURR", "TARGET")})
        records.append(record)
    return pd.DataFrame(records)


# ===================================================================
# CONFIGURATION FIXTURES
# ===================================================================

@pytest.fixture
def sample_config_dict(tmp_path) -> Dict[str, Any]:
    """Minimal valid config dict that can be loaded into PipelineConfig."""
    return {
        "data": {"data_dir": str(tmp_path / "data")},
        "output": {"base_dir": str(tmp_path / "outputs")},
        "logging": {"level": "DEBUG"},
    }


@pytest.fixture
def sample_config(sample_config_dict):
    """Create a PipelineConfig from the sample dict."""
    from homecredit_features.config.schema import PipelineConfig

    return PipelineConfig(**sample_config_dict)


# ===================================================================
# DATA FIXTURES
# ===================================================================

@pytest.fixture
def applicant_factory() -> Callable[..., pd.DataFrame]:
    """Builder for applicant tables with per-row overrides."""
    return build_applicants


@pytest.fixture
def train_applicants() -> pd.DataFrame:
    """Five training applicants.

    - 100001: defaults (income 200k, credit 500k, one child)
    - 100002: DAYS_EMPLOYED sentinel, credit 500k over income 100k
    - 100003: no children, two external scores and occupation missing
    - 100004: annuity and all external scores missing
    - 100005: zero income
    """
    return build_applicants([
        {"SK_ID_CURR": 100001, "TARGET": 0},
        {"SK_ID_CURR": 100002, "TARGET": 1, "DAYS_EMPLOYED": SENTINEL,
         "AMT_INCOME_TOTAL": 100000.0},
        {"SK_ID_CURR": 100003, "TARGET": 0, "CNT_CHILDREN": 0,
         "EXT_SOURCE_1": np.nan, "EXT_SOURCE_3": np.nan, "OCCUPATION_TYPE": None},
        {"SK_ID_CURR": 100004, "TARGET": 0, "AMT_ANNUITY": np.nan,
         "EXT_SOURCE_1": np.nan, "EXT_SOURCE_2": np.nan, "EXT_SOURCE_3": np.nan},
        {"SK_ID_CURR": 100005, "TARGET": 1, "AMT_INCOME_TOTAL": 0.0},
    ])


@pytest.fixture
def test_applicants() -> pd.DataFrame:
    """Three test applicants (no label)."""
    return build_applicants(
        [
            {"SK_ID_CURR": 200001},
            {"SK_ID_CURR": 200002, "DAYS_EMPLOYED": SENTINEL},
            {"SK_ID_CURR": 200003, "NAME_EDUCATION_TYPE": "Lower secondary"},
        ],
        include_target=False,
    )


@pytest.fixture
def bureau_df() -> pd.DataFrame:
    """Bureau records.

    - 100001: one Active, one Closed credit
    - 100002: one Sold credit that was prolonged
    - 200001: one Active credit with a zero credit sum
    - 999999: applicant not present in either split
    """
    return pd.DataFrame({
        "SK_ID_CURR": [100001, 100001, 100002, 200001, 999999],
        "SK_ID_BUREAU": [1, 2, 3, 4, 5],
        "CREDIT_ACTIVE": ["Active", "Closed", "Sold", "Active", "Closed"],
        "CREDIT_TYPE": ["Consumer credit", "Credit card", "Consumer credit", "Car loan", "Mortgage"],
        "AMT_CREDIT_SUM_OVERDUE": [0.0, 100.0, np.nan, 0.0, 0.0],
        "AMT_CREDIT_SUM_DEBT": [1000.0, 0.0, 500.0, 0.0, 0.0],
        "AMT_CREDIT_SUM": [4000.0, 6000.0, 2000.0, 0.0, 100.0],
        "DAYS_CREDIT": [-100, -900, -400, -50, -10],
        "CNT_CREDIT_PROLONG": [0, 0, 2, 0, 0],
        "DAYS_CREDIT_UPDATE": [-10, -800, -30, -5, -1],
        "DAYS_ENDDATE_FACT": [np.nan, -700.0, -200.0, np.nan, np.nan],
    })


@pytest.fixture
def previous_df() -> pd.DataFrame:
    """Previous applications.

    - 100001: one approved cash loan, one refused consumer loan
    - 100003: one approved revolving loan
    - 200002: one unused offer
    """
    return pd.DataFrame({
        "SK_ID_PREV": [10, 11, 12, 13],
        "SK_ID_CURR": [100001, 100001, 100003, 200002],
        "NAME_CONTRACT_STATUS": ["Approved", "Refused", "Approved", "Unused offer"],
        "NAME_CONTRACT_TYPE": ["Cash loans", "Consumer loans", "Revolving loans", "Consumer loans"],
        "NAME_PRODUCT_TYPE": ["x-sell", "walk-in", "XNA", "XNA"],
        "AMT_CREDIT": [100000.0, 0.0, 50000.0, 20000.0],
        "AMT_APPLICATION": [90000.0, 60000.0, 50000.0, 20000.0],
        "AMT_DOWN_PAYMENT": [np.nan, 5000.0, 0.0, np.nan],
        "AMT_GOODS_PRICE": [90000.0, 60000.0, np.nan, 20000.0],
        "DAYS_DECISION": [-300, -100, -700, -20],
    })


@pytest.fixture
def installments_df() -> pd.DataFrame:
    """Installment payments.

    - 100001: two payments, both early (never late)
    - 100002: one payment 10 days late and underpaid, one on time
    - 200001: one payment with an unknown entry day
    """
    return pd.DataFrame({
        "SK_ID_PREV": [10, 10, 20, 20, 30],
        "SK_ID_CURR": [100001, 100001, 100002, 100002, 200001],
        "NUM_INSTALMENT_NUMBER": [1, 2, 1, 2, 1],
        "DAYS_INSTALMENT": [-60.0, -30.0, -60.0, -30.0, -10.0],
        "DAYS_ENTRY_PAYMENT": [-65.0, -31.0, -50.0, -30.0, np.nan],
        "AMT_INSTALMENT": [1000.0, 1000.0, 2000.0, 2000.0, 500.0],
        "AMT_PAYMENT": [1000.0, 1000.0, 1500.0, 2000.0, 500.0],
    })


@pytest.fixture
def sample_tables(train_applicants, test_applicants, bureau_df, previous_df, installments_df) -> Dict[str, pd.DataFrame]:
    """The five input tables keyed by logical table name."""
    return {
        "application_train": train_applicants,
        "application_test": test_applicants,
        "bureau": bureau_df,
        "previous_application": previous_df,
        "installments_payments": installments_df,
    }


@pytest.fixture
def frame_reader(sample_tables, sample_config):
    """In-memory reader over the sample tables."""
    from homecredit_features.data.reader import FrameTableReader

    return FrameTableReader(sample_tables, sample_config)


@pytest.fixture
def csv_data_dir(sample_tables, sample_config) -> Path:
    """The sample tables written as CSV files into ``data.data_dir``."""
    data_dir = Path(sample_config.data.data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)
    files = sample_config.data.files
    for table, df in sample_tables.items():
        df.to_csv(data_dir / getattr(files, table), index=False)
    return data_dir

