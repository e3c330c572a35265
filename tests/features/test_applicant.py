"""
Tests for the Applicant Feature Deriver

Covers every derivation stage, missing-value propagation, the employment
anomaly contract and train/test consistency.
"""

import logging

import numpy as np
import pandas as pd
import pytest

from homecredit_features.core.exceptions import FeatureEngineeringError, SchemaValidationError
from homecredit_features.features.applicant import (
    ApplicantFeatureDeriver,
    BIN_COLUMNS,
    INTERACTION_COLUMNS,
    RATIO_COLUMNS,
)


SENTINEL = 365243


@pytest.fixture
def deriver(sample_config):
    return ApplicantFeatureDeriver(sample_config)


@pytest.fixture
def derived(deriver, train_applicants):
    """Derived training table indexed by applicant id."""
    return deriver.transform(train_applicants).set_index("SK_ID_CURR")


class TestOutputShape:
    """Row and column contract of the deriver."""

    def test_thirty_three_derived_columns(self, deriver):
        assert len(deriver.output_columns) == 33
        assert len(set(deriver.output_columns)) == 33

    def test_row_count_preserved(self, deriver, train_applicants):
        assert len(deriver.transform(train_applicants)) == len(train_applicants)

    def test_raw_columns_then_derived_in_stage_order(self, deriver, train_applicants):
        out = deriver.transform(train_applicants)

        assert list(out.columns) == list(train_applicants.columns) + deriver.output_columns

    def test_stage_order(self, deriver):
        columns = deriver.output_columns

        assert columns[0] == "DAYS_EMPLOYED_ANOM"
        assert columns[1:5] == ["AGE_YEARS", "EMPLOYED_YEARS", "REGISTRATION_YEARS", "ID_PUBLISH_YEARS"]
        assert columns[5:15] == RATIO_COLUMNS
        assert columns[15] == "EXT_SOURCE_1_MISSING"
        assert columns[23:29] == INTERACTION_COLUMNS
        assert columns[29:32] == BIN_COLUMNS
        assert columns[-1] == "TOTAL_DOCUMENTS"

    def test_input_not_mutated(self, deriver, train_applicants):
        before = train_applicants.copy()

        deriver.transform(train_applicants)

        pd.testing.assert_frame_equal(train_applicants, before)

    def test_feature_info_names_stage(self, deriver):
        info = {row["name"]: row for row in deriver.get_feature_info()}

        assert info["CREDIT_PER_CHILD"]["stage"] == "financial_ratios"
        assert info["AMT_ANNUITY_MISSING"]["stage"] == "missing_indicators"
        assert info["TOTAL_DOCUMENTS"]["source"] == "ApplicantFeatureDeriver"

    def test_run_is_transform(self, deriver, train_applicants):
        pd.testing.assert_frame_equal(deriver.run(train_applicants), deriver.transform(train_applicants))


class TestEmploymentAnomaly:
    """DAYS_EMPLOYED sentinel handling."""

    def test_sentinel_flagged_and_cleared(self, derived):
        assert bool(derived.loc[100002, "DAYS_EMPLOYED_ANOM"]) is True
        assert np.isnan(derived.loc[100002, "DAYS_EMPLOYED"])
        assert np.isnan(derived.loc[100002, "EMPLOYED_YEARS"])

    def test_flag_iff_sentinel(self, deriver, train_applicants):
        out = deriver.transform(train_applicants)

        expected = train_applicants["DAYS_EMPLOYED"].eq(SENTINEL)
        assert out["DAYS_EMPLOYED_ANOM"].tolist() == expected.tolist()
        assert not out["DAYS_EMPLOYED"].eq(SENTINEL).any()

    def test_other_rows_unchanged(self, derived):
        assert derived.loc[100001, "DAYS_EMPLOYED"] == -3650
        assert bool(derived.loc[100001, "DAYS_EMPLOYED_ANOM"]) is False

    def test_missing_days_employed_is_not_anomalous(self, deriver, applicant_factory):
        df = applicant_factory([{"SK_ID_CURR": 1, "DAYS_EMPLOYED": np.nan}])

        out = deriver.transform(df)

        assert bool(out.loc[0, "DAYS_EMPLOYED_ANOM"]) is False
        assert np.isnan(out.loc[0, "EMPLOYED_YEARS"])

    def test_anomaly_count_logged(self, deriver, train_applicants, caplog):
        with caplog.at_level(logging.INFO):
            deriver.transform(train_applicants)

        assert "DERIVE | Employment anomaly flagged: 1 rows (20.0%)" in caplog.text


class TestDayCounts:
    """Day counts converted to years."""

    def test_age_years(self, derived, train_applicants):
        expected = train_applicants["DAYS_BIRTH"].abs() / 365
        np.testing.assert_allclose(derived["AGE_YEARS"].to_numpy(), expected.to_numpy())
        assert derived.loc[100001, "AGE_YEARS"] == pytest.approx(40.0)

    def test_other_year_columns(self, derived):
        assert derived.loc[100001, "EMPLOYED_YEARS"] == pytest.approx(10.0)
        assert derived.loc[100001, "REGISTRATION_YEARS"] == pytest.approx(2000 / 365)
        assert derived.loc[100001, "ID_PUBLISH_YEARS"] == pytest.approx(1000 / 365)

    def test_missing_propagates(self, deriver, applicant_factory):
        df = applicant_factory([{"SK_ID_CURR": 1, "DAYS_REGISTRATION": np.nan}])

        assert np.isnan(deriver.transform(df).loc[0, "REGISTRATION_YEARS"])


class TestFinancialRatios:
    """The ten financial ratios."""

    def test_default_row(self, derived):
        row = derived.loc[100001]

        assert row["CREDIT_INCOME_RATIO"] == pytest.approx(2.5)
        assert row["ANNUITY_CREDIT_RATIO"] == pytest.approx(0.05)
        assert row["INCOME_ANNUITY_RATIO"] == pytest.approx(8.0)
        assert row["CREDIT_GOODS_RATIO"] == pytest.approx(500000 / 450000)
        assert row["DOWN_PAYMENT_RATIO"] == pytest.approx(-50000 / 450000)
        assert row["PAYMENT_BURDEN"] == pytest.approx(0.125)
        assert row["INCOME_PER_PERSON"] == pytest.approx(200000 / 3)
        assert row["CREDIT_PER_CHILD"] == pytest.approx(500000.0)
        assert row["EMPLOYMENT_RATIO"] == pytest.approx(0.25)
        assert row["CREDIT_TERM_YEARS"] == pytest.approx(500000 / 300000)

    def test_credit_income_for_anomalous_applicant(self, derived):
        assert derived.loc[100002, "CREDIT_INCOME_RATIO"] == pytest.approx(5.0)
        assert np.isnan(derived.loc[100002, "EMPLOYMENT_RATIO"])

    def test_credit_per_child_zero_without_children(self, derived):
        assert derived.loc[100003, "CREDIT_PER_CHILD"] == 0.0

    def test_credit_per_child_divides_otherwise(self, deriver, applicant_factory):
        df = applicant_factory([{"SK_ID_CURR": 1, "CNT_CHILDREN": 4}])

        assert deriver.transform(df).loc[0, "CREDIT_PER_CHILD"] == pytest.approx(125000.0)

    def test_credit_per_child_missing_children(self, deriver, applicant_factory):
        df = applicant_factory([
            {"SK_ID_CURR": 1, "CNT_CHILDREN": np.nan},
            {"SK_ID_CURR": 2, "CNT_CHILDREN": 0},
        ])

        out = deriver.transform(df)

        assert np.isnan(out.loc[0, "CREDIT_PER_CHILD"])
        assert out.loc[1, "CREDIT_PER_CHILD"] == 0.0

    def test_missing_divisor_gives_missing(self, derived):
        row = derived.loc[100004]

        assert np.isnan(row["ANNUITY_CREDIT_RATIO"])
        assert np.isnan(row["INCOME_ANNUITY_RATIO"])
        assert np.isnan(row["CREDIT_TERM_YEARS"])
        assert row["CREDIT_INCOME_RATIO"] == pytest.approx(2.5)

    def test_zero_divisor_gives_missing_not_infinite(self, derived):
        row = derived.loc[100005]

        assert np.isnan(row["CREDIT_INCOME_RATIO"])
        assert row["INCOME_ANNUITY_RATIO"] == 0.0
        assert np.isnan(row["PAYMENT_BURDEN"])

    def test_no_infinite_values(self, derived):
        ratios = derived[RATIO_COLUMNS].to_numpy(dtype=float)

        assert not np.isinf(ratios).any()


class TestMissingIndicators:
    """<column>_MISSING flags."""

    def test_indicators(self, derived):
        assert bool(derived.loc[100003, "EXT_SOURCE_1_MISSING"]) is True
        assert bool(derived.loc[100003, "EXT_SOURCE_2_MISSING"]) is False
        assert bool(derived.loc[100004, "AMT_ANNUITY_MISSING"]) is True
        assert not derived.loc[100001, [c for c in derived.columns if c.endswith("_MISSING")]].any()

    def test_indicator_distinct_from_anomaly_flag(self, derived):
        assert "DAYS_EMPLOYED_MISSING" not in derived.columns
        assert "DAYS_EMPLOYED_ANOM" in derived.columns

    def test_eight_indicators(self, deriver):
        assert sum(c.endswith("_MISSING") for c in deriver.output_columns) == 8


class TestInteractions:
    """Interaction terms."""

    def test_default_row(self, derived):
        row = derived.loc[100001]

        assert row["AGE_INCOME_INTERACTION"] == pytest.approx(40.0 * 200000)
        assert row["EXT_SOURCE_MEAN"] == pytest.approx(0.5)
        assert row["EXT_SOURCE_12_INTERACTION"] == pytest.approx(0.3)
        assert row["EXT_SOURCE_23_INTERACTION"] == pytest.approx(0.24)

    def test_ext_source_mean_of_present_scores(self, derived):
        assert derived.loc[100003, "EXT_SOURCE_MEAN"] == pytest.approx(0.6)
        assert np.isnan(derived.loc[100003, "EXT_SOURCE_12_INTERACTION"])

    def test_ext_source_mean_all_missing(self, derived):
        assert np.isnan(derived.loc[100004, "EXT_SOURCE_MEAN"])

    def test_category_codes_from_sorted_labels(self, derived):
        # Higher education is the 2nd education label, Laborers the 9th occupation
        assert derived.loc[100001, "EDUCATION_INCOME_INTERACTION"] == pytest.approx(2 * 200000)
        assert derived.loc[100001, "OCCUPATION_INCOME_INTERACTION"] == pytest.approx(9 * 200000)

    def test_missing_category(self, derived):
        assert np.isnan(derived.loc[100003, "OCCUPATION_INCOME_INTERACTION"])

    def test_unknown_category_is_missing_and_logged(self, deriver, applicant_factory, caplog):
        df = applicant_factory([{"SK_ID_CURR": 1, "OCCUPATION_TYPE": "Astronauts"}])

        with caplog.at_level(logging.WARNING):
            out = deriver.transform(df)

        assert np.isnan(out.loc[0, "OCCUPATION_INCOME_INTERACTION"])
        assert "ENCODE | OCCUPATION_TYPE" in caplog.text


class TestBinning:
    """Age, income and credit bands."""

    def test_default_row(self, derived):
        assert derived.loc[100001, "AGE_GROUP"] == "36-45"
        assert derived.loc[100001, "INCOME_BIN"] == "Medium"
        assert derived.loc[100001, "CREDIT_BIN"] == "Medium"

    def test_boundaries_right_closed(self, deriver, applicant_factory):
        df = applicant_factory([
            {"SK_ID_CURR": 1, "DAYS_BIRTH": -25 * 365, "AMT_INCOME_TOTAL": 100000.0, "AMT_CREDIT": 1200000.0},
            {"SK_ID_CURR": 2, "DAYS_BIRTH": -25 * 365 - 1, "AMT_INCOME_TOTAL": 100001.0, "AMT_CREDIT": 1200001.0},
            {"SK_ID_CURR": 3, "DAYS_BIRTH": -80 * 365, "AMT_INCOME_TOTAL": 0.0, "AMT_CREDIT": 10.0},
        ])

        out = deriver.transform(df)

        assert out["AGE_GROUP"].tolist() == ["18-25", "26-35", "65+"]
        assert out["INCOME_BIN"].tolist() == ["Low", "Medium-Low", "Low"]
        assert out["CREDIT_BIN"].tolist() == ["Very Large", "Huge", "Small"]

    def test_bins_are_ordered_categoricals(self, derived):
        assert derived["AGE_GROUP"].cat.ordered
        assert list(derived["INCOME_BIN"].cat.categories) == [
            "Low", "Medium-Low", "Medium", "Medium-High", "High",
        ]


class TestDocumentCount:
    """TOTAL_DOCUMENTS."""

    def test_sum_of_flags(self, deriver, applicant_factory):
        df = applicant_factory([
            {"SK_ID_CURR": 1},
            {"SK_ID_CURR": 2, "FLAG_DOCUMENT_5": 1, "FLAG_DOCUMENT_21": 1},
            {"SK_ID_CURR": 3, "FLAG_DOCUMENT_3": 0},
        ])

        out = deriver.transform(df)

        assert out["TOTAL_DOCUMENTS"].tolist() == [1, 3, 0]
        assert str(out["TOTAL_DOCUMENTS"].dtype) == "Int64"

    def test_missing_flag_gives_missing_count(self, deriver, applicant_factory):
        df = applicant_factory([{"SK_ID_CURR": 1, "FLAG_DOCUMENT_7": np.nan}])

        assert pd.isna(deriver.transform(df).loc[0, "TOTAL_DOCUMENTS"])


class TestTrainTestConsistency:
    """The same row gets the same features in either split."""

    def test_same_row_same_features(self, deriver, applicant_factory):
        row = {"SK_ID_CURR": 1, "OCCUPATION_TYPE": "Drivers", "NAME_EDUCATION_TYPE": "Academic degree"}
        train = applicant_factory([row, {"SK_ID_CURR": 2, "OCCUPATION_TYPE": "Accountants"}])
        test = applicant_factory([row], include_target=False)

        out_train = deriver.transform(train)
        out_test = deriver.transform(test)

        pd.testing.assert_series_equal(
            out_train.loc[0, deriver.output_columns],
            out_test.loc[0, deriver.output_columns],
            check_names=False,
        )

    def test_idempotent(self, deriver, train_applicants):
        pd.testing.assert_frame_equal(
            deriver.transform(train_applicants), deriver.transform(train_applicants)
        )


class TestFailures:
    """Schema and stage failures."""

    def test_missing_column_raises_schema_error(self, deriver, train_applicants):
        with pytest.raises(SchemaValidationError, match="AMT_CREDIT"):
            deriver.transform(train_applicants.drop(columns=["AMT_CREDIT"]))

    def test_missing_document_flag_raises_schema_error(self, deriver, train_applicants):
        with pytest.raises(SchemaValidationError, match="FLAG_DOCUMENT_12"):
            deriver.transform(train_applicants.drop(columns=["FLAG_DOCUMENT_12"]))

    def test_stage_error_wrapped(self, deriver, train_applicants):
        def broken(df):
            raise KeyError("EXT_SOURCE_4")

        deriver.add_interactions = broken

        with pytest.raises(FeatureEngineeringError) as exc_info:
            deriver.transform(train_applicants)

        assert exc_info.value.feature_name == "interactions"
        assert isinstance(exc_info.value.__cause__, KeyError)
