"""
Tests for Table Readers

Tests CsvTableReader and FrameTableReader.
"""

import pandas as pd
import pytest

from homecredit_features.core.exceptions import DataReaderError
from homecredit_features.data.reader import CsvTableReader, FrameTableReader


class TestCsvTableReader:
    """Test suite for CsvTableReader."""

    def test_path_for_uses_configured_file_names(self, sample_config):
        reader = CsvTableReader(sample_config)

        assert reader.path_for("bureau").name == "bureau.csv"
        assert str(reader.path_for("bureau").parent) == sample_config.data.data_dir

    def test_data_dir_argument_overrides_config(self, sample_config, tmp_path):
        reader = CsvTableReader(sample_config, data_dir=str(tmp_path / "elsewhere"))

        assert reader.path_for("application_train").parent == tmp_path / "elsewhere"

    def test_unknown_table(self, sample_config):
        reader = CsvTableReader(sample_config)

        with pytest.raises(DataReaderError, match="No file configured"):
            reader.path_for("credit_card_balance")

    def test_read_round_trips_values(self, sample_config, csv_data_dir, bureau_df):
        reader = CsvTableReader(sample_config)

        df = reader.read("bureau")

        pd.testing.assert_frame_equal(df, bureau_df, check_dtype=False)

    def test_exists(self, sample_config, csv_data_dir):
        reader = CsvTableReader(sample_config)

        assert reader.exists("installments_payments")
        (csv_data_dir / "installments_payments.csv").unlink()
        assert not reader.exists("installments_payments")

    def test_read_missing_file(self, sample_config):
        reader = CsvTableReader(sample_config)

        with pytest.raises(DataReaderError, match="not found") as exc_info:
            reader.read("bureau")

        assert exc_info.value.source.endswith("bureau.csv")

    def test_read_unparseable_file(self, sample_config, csv_data_dir):
        (csv_data_dir / "bureau.csv").write_bytes(b"")
        reader = CsvTableReader(sample_config)

        with pytest.raises(DataReaderError, match="Failed to read") as exc_info:
            reader.read("bureau")

        assert isinstance(exc_info.value.__cause__, pd.errors.EmptyDataError)

    def test_require_names_every_missing_table(self, sample_config, csv_data_dir):
        (csv_data_dir / "bureau.csv").unlink()
        (csv_data_dir / "application_test.csv").unlink()
        reader = CsvTableReader(sample_config)

        with pytest.raises(DataReaderError) as exc_info:
            reader.require("application_train", "application_test", "bureau")

        assert "application_test" in exc_info.value.message
        assert "bureau" in exc_info.value.message
        assert "application_train'" not in exc_info.value.message

    def test_read_logs_shape(self, sample_config, csv_data_dir, caplog):
        reader = CsvTableReader(sample_config)

        with caplog.at_level("INFO"):
            reader.read("previous_application")

        assert "LOAD | previous_application: 4 rows" in caplog.text


class TestFrameTableReader:
    """Test suite for FrameTableReader."""

    def test_read_returns_copy(self, bureau_df):
        reader = FrameTableReader({"bureau": bureau_df})

        df = reader.read("bureau")
        df.loc[0, "CREDIT_ACTIVE"] = "Changed"

        assert bureau_df.loc[0, "CREDIT_ACTIVE"] == "Active"

    def test_missing_table(self):
        reader = FrameTableReader({})

        assert not reader.exists("bureau")
        with pytest.raises(DataReaderError, match="not provided"):
            reader.read("bureau")

    def test_run_is_read(self, bureau_df):
        reader = FrameTableReader({"bureau": bureau_df})

        assert len(reader.run("bureau")) == len(bureau_df)
