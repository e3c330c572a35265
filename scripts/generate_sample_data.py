"""
Sample Data Generator

Generates a small synthetic Home Credit dataset (the five CSV files the
pipeline reads) with realistic distributions, including the DAYS_EMPLOYED
sentinel for pensioners, missing external scores and applicants without
bureau, previous-application or installment history.
"""

from pathlib import Path
from typing import Dict, Optional
import argparse
import sys

import numpy as np
import pandas as pd

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from homecredit_features.config.schema import (
    EDUCATION_CATEGORIES,
    OCCUPATION_CATEGORIES,
    TableFilesConfig,
)


# Seed for reproducibility
RANDOM_SEED = 42

EMPLOYMENT_SENTINEL = 365243
FIRST_APPLICANT_ID = 100001

EDUCATION_WEIGHTS = [0.01, 0.24, 0.03, 0.01, 0.71]

CREDIT_STATUS = {"Closed": 0.63, "Active": 0.36, "Sold": 0.01}
CREDIT_TYPES = {
    "Consumer credit": 0.73,
    "Credit card": 0.23,
    "Car loan": 0.02,
    "Mortgage": 0.02,
}
CONTRACT_STATUS = {"Approved": 0.62, "Canceled": 0.19, "Refused": 0.17, "Unused offer": 0.02}
CONTRACT_TYPES = {"Cash loans": 0.45, "Consumer loans": 0.44, "Revolving loans": 0.11}
PRODUCT_TYPES = {"XNA": 0.64, "x-sell": 0.27, "walk-in": 0.09}


def _choice(rng: np.random.Generator, weights: Dict[str, float], size: int) -> np.ndarray:
    """Draw labels according to a label -> weight mapping."""
    labels = list(weights.keys())
    p = np.array(list(weights.values()))
    return rng.choice(labels, size=size, p=p / p.sum())


def _with_missing(rng: np.random.Generator, values: np.ndarray, rate: float) -> np.ndarray:
    """Blank out a share of values."""
    values = values.astype(float)
    values[rng.random(len(values)) < rate] = np.nan
    return values


def generate_applications(
    rng: np.random.Generator,
    n_applications: int,
    first_id: int = FIRST_APPLICANT_ID,
    include_target: bool = True,
) -> pd.DataFrame:
    """
    Generate one applicant split.

    Args:
        rng: Random generator
        n_applications: Number of applicants
        first_id: First applicant identifier
        include_target: Add the TARGET label (train split only)

    Returns:
        Applicant table
    """
    n = n_applications
    ids = np.arange(first_id, first_id + n)

    income = np.round(np.exp(rng.normal(11.9, 0.5, n)), -2)
    credit = np.round(income * rng.uniform(1.0, 6.0, n), -3)
    annuity = np.round(credit / rng.uniform(10, 30, n), 1)
    goods = np.round(credit * rng.uniform(0.8, 1.0, n), -3)
    children = rng.choice([0, 0, 0, 1, 1, 2, 3], size=n)
    family = children + rng.choice([1, 2, 2], size=n)

    days_birth = -rng.integers(21 * 365, 69 * 365, n)
    days_employed = -rng.integers(0, 40 * 365, n)
    days_employed = np.maximum(days_employed, days_birth + 18 * 365)
    pensioner = rng.random(n) < 0.18
    days_employed = np.where(pensioner, EMPLOYMENT_SENTINEL, days_employed)

    occupation = rng.choice(OCCUPATION_CATEGORIES, size=n).astype(object)
    occupation[pensioner | (rng.random(n) < 0.1)] = None

    df = pd.DataFrame({
        "SK_ID_CURR": ids,
        "NAME_CONTRACT_TYPE": rng.choice(["Cash loans", "Revolving loans"], size=n, p=[0.9, 0.1]),
        "CODE_GENDER": rng.choice(["F", "M"], size=n, p=[0.66, 0.34]),
        "CNT_CHILDREN": children,
        "AMT_INCOME_TOTAL": income,
        "AMT_CREDIT": credit,
        "AMT_ANNUITY": _with_missing(rng, annuity, 0.001),
        "AMT_GOODS_PRICE": _with_missing(rng, goods, 0.001),
        "NAME_EDUCATION_TYPE": rng.choice(EDUCATION_CATEGORIES, size=n, p=EDUCATION_WEIGHTS),
        "OCCUPATION_TYPE": occupation,
        "CNT_FAM_MEMBERS": _with_missing(rng, family, 0.001),
        "DAYS_BIRTH": days_birth,
        "DAYS_EMPLOYED": days_employed,
        "DAYS_REGISTRATION": -rng.integers(0, 20 * 365, n).astype(float),
        "DAYS_ID_PUBLISH": -rng.integers(0, 17 * 365, n),
        "OWN_CAR_AGE": _with_missing(rng, rng.integers(0, 30, n), 0.66),
        "EXT_SOURCE_1": _with_missing(rng, rng.beta(5, 5, n), 0.56),
        "EXT_SOURCE_2": _with_missing(rng, rng.beta(6, 4, n), 0.002),
        "EXT_SOURCE_3": _with_missing(rng, rng.beta(5, 4, n), 0.2),
        "DAYS_LAST_PHONE_CHANGE": _with_missing(rng, -rng.integers(0, 4000, n), 0.001),
    })

    for i in range(2, 22):
        share = 0.7 if i == 3 else 0.02
        df[f"FLAG_DOCUMENT_{i}"] = (rng.random(n) < share).astype(int)

    if include_target:
        risk = 1 - np.nan_to_num(df["EXT_SOURCE_2"].to_numpy(), nan=0.5)
        df.insert(1, "TARGET", (rng.random(n) < 0.15 * risk + 0.02).astype(int))

    return df


def generate_bureau(rng: np.random.Generator, applicant_ids: np.ndarray, coverage: float = 0.85) -> pd.DataFrame:
    """Generate credit bureau records for a share of applicants."""
    covered = applicant_ids[rng.random(len(applicant_ids)) < coverage]
    counts = rng.poisson(5, len(covered)) + 1
    ids = np.repeat(covered, counts)
    n = len(ids)

    credit_sum = np.round(np.exp(rng.normal(11.5, 1.2, n)), 2)
    active = _choice(rng, CREDIT_STATUS, n)
    debt = np.where(active == "Active", credit_sum * rng.uniform(0, 1, n), 0.0)
    overdue = np.where(rng.random(n) < 0.02, debt * rng.uniform(0, 0.3, n), 0.0)
    days_credit = -rng.integers(0, 2922, n)

    return pd.DataFrame({
        "SK_ID_CURR": ids,
        "SK_ID_BUREAU": np.arange(5000000, 5000000 + n),
        "CREDIT_ACTIVE": active,
        "CREDIT_TYPE": _choice(rng, CREDIT_TYPES, n),
        "DAYS_CREDIT": days_credit,
        "DAYS_CREDIT_UPDATE": days_credit + rng.integers(0, 300, n),
        "DAYS_ENDDATE_FACT": _with_missing(
            rng, np.where(active == "Closed", days_credit + rng.integers(30, 900, n), np.nan), 0.05
        ),
        "CNT_CREDIT_PROLONG": rng.choice([0] * 99 + [1], size=n),
        "AMT_CREDIT_SUM": _with_missing(rng, credit_sum, 0.01),
        "AMT_CREDIT_SUM_DEBT": _with_missing(rng, np.round(debt, 2), 0.15),
        "AMT_CREDIT_SUM_OVERDUE": np.round(overdue, 2),
    })


def generate_previous_applications(
    rng: np.random.Generator,
    applicant_ids: np.ndarray,
    coverage: float = 0.95,
) -> pd.DataFrame:
    """Generate previous Home Credit applications for a share of applicants."""
    covered = applicant_ids[rng.random(len(applicant_ids)) < coverage]
    counts = rng.poisson(4, len(covered)) + 1
    ids = np.repeat(covered, counts)
    n = len(ids)

    application = np.round(np.exp(rng.normal(11.3, 1.0, n)), -2)
    status = _choice(rng, CONTRACT_STATUS, n)
    credit = np.where(status == "Approved", application * rng.uniform(0.9, 1.2, n), 0.0)

    return pd.DataFrame({
        "SK_ID_PREV": np.arange(2000000, 2000000 + n),
        "SK_ID_CURR": ids,
        "NAME_CONTRACT_TYPE": _choice(rng, CONTRACT_TYPES, n),
        "NAME_CONTRACT_STATUS": status,
        "NAME_PRODUCT_TYPE": _choice(rng, PRODUCT_TYPES, n),
        "AMT_APPLICATION": application,
        "AMT_CREDIT": np.round(credit, 2),
        "AMT_DOWN_PAYMENT": _with_missing(rng, np.round(application * rng.uniform(0, 0.2, n), 2), 0.5),
        "AMT_GOODS_PRICE": _with_missing(rng, application, 0.23),
        "DAYS_DECISION": -rng.integers(1, 2922, n),
    })


def generate_installments(rng: np.random.Generator, previous: pd.DataFrame) -> pd.DataFrame:
    """Generate the payment schedule and payments of approved previous loans."""
    approved = previous[previous["NAME_CONTRACT_STATUS"] == "Approved"]
    n_payments = rng.integers(3, 24, len(approved))

    prev_ids = np.repeat(approved["SK_ID_PREV"].to_numpy(), n_payments)
    curr_ids = np.repeat(approved["SK_ID_CURR"].to_numpy(), n_payments)
    decision = np.repeat(approved["DAYS_DECISION"].to_numpy(), n_payments)
    amount = np.repeat((approved["AMT_CREDIT"] / n_payments).round(2).to_numpy(), n_payments)
    number = np.concatenate([np.arange(1, k + 1) for k in n_payments]) if len(n_payments) else np.array([], dtype=int)
    n = len(prev_ids)

    days_instalment = decision + 30 * number
    delay = np.where(rng.random(n) < 0.08, rng.integers(1, 60, n), -rng.integers(0, 15, n))
    paid_share = np.where(rng.random(n) < 0.05, rng.uniform(0.2, 0.9, n), 1.0)

    return pd.DataFrame({
        "SK_ID_PREV": prev_ids,
        "SK_ID_CURR": curr_ids,
        "NUM_INSTALMENT_NUMBER": number,
        "DAYS_INSTALMENT": days_instalment.astype(float),
        "DAYS_ENTRY_PAYMENT": _with_missing(rng, days_instalment + delay, 0.0002),
        "AMT_INSTALMENT": amount,
        "AMT_PAYMENT": _with_missing(rng, np.round(amount * paid_share, 2), 0.0002),
    })


def generate_sample_data(
    n_applications: int = 10000,
    n_test: Optional[int] = None,
    output_dir: str = "data/sample",
    seed: int = RANDOM_SEED,
) -> Dict[str, pd.DataFrame]:
    """
    Generate and save the five input tables.

    Args:
        n_applications: Number of training applicants
        n_test: Number of test applicants (default: a fifth of the training split)
        output_dir: Output directory
        seed: Random seed

    Returns:
        Dictionary of table name -> DataFrame
    """
    rng = np.random.default_rng(seed)
    n_test = n_test if n_test is not None else max(n_applications // 5, 1)

    print(f"Generating {n_applications:,} train and {n_test:,} test applicants...")
    train = generate_applications(rng, n_applications)
    test = generate_applications(
        rng, n_test, first_id=FIRST_APPLICANT_ID + n_applications, include_target=False
    )
    all_ids = np.concatenate([train["SK_ID_CURR"].to_numpy(), test["SK_ID_CURR"].to_numpy()])

    print("Generating bureau, previous application and installment records...")
    bureau = generate_bureau(rng, all_ids)
    previous = generate_previous_applications(rng, all_ids)
    installments = generate_installments(rng, previous)

    tables = {
        "application_train": train,
        "application_test": test,
        "bureau": bureau,
        "previous_application": previous,
        "installments_payments": installments,
    }

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    files = TableFilesConfig()
    for table, df in tables.items():
        path = output_path / getattr(files, table)
        df.to_csv(path, index=False)
        print(f"  {path}: {len(df):,} rows x {len(df.columns)} columns")

    anomaly_rate = (train["DAYS_EMPLOYED"] == EMPLOYMENT_SENTINEL).mean() * 100
    print(f"DAYS_EMPLOYED sentinel rate (train): {anomaly_rate:.1f}%")
    print(f"Default rate (train): {train['TARGET'].mean() * 100:.1f}%")

    return tables


def main():
    """Main function for CLI usage."""
    parser = argparse.ArgumentParser(
        description="Generate a synthetic Home Credit dataset"
    )
    parser.add_argument(
        '-n', '--n-applications',
        type=int,
        default=10000,
        help='Number of training applicants to generate (default: 10000)'
    )
    parser.add_argument(
        '--n-test',
        type=int,
        default=None,
        help='Number of test applicants (default: n-applications / 5)'
    )
    parser.add_argument(
        '-o', '--output-dir',
        type=str,
        default='data/sample',
        help='Output directory (default: data/sample)'
    )
    parser.add_argument(
        '-s', '--seed',
        type=int,
        default=RANDOM_SEED,
        help=f'Random seed (default: {RANDOM_SEED})'
    )

    args = parser.parse_args()

    generate_sample_data(
        n_applications=args.n_applications,
        n_test=args.n_test,
        output_dir=args.output_dir,
        seed=args.seed
    )


if __name__ == "__main__":
    main()
