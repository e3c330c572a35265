"""
Pipeline Orchestrator

Runs the five stages in order for the train and test splits:

    load -> derive -> aggregate -> join -> emit

Train and test go through the same deriver instance and are joined
against the same three aggregate tables. Supplementary tables are read one
at a time, aggregated, and released before the next is read. Nothing is
written until every stage has succeeded.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple
import logging
import time

import pandas as pd

from homecredit_features.config.schema import PipelineConfig
from homecredit_features.core.base import ComponentRegistry
from homecredit_features.core.logger import PipelineLogger
from homecredit_features.data.reader import BaseTableReader, CsvTableReader
from homecredit_features.data.schema_validator import SchemaValidator
from homecredit_features.data.schemas import (
    APPLICATION_TEST,
    APPLICATION_TRAIN,
    SUPPLEMENTARY_TABLES,
    application_schema,
)
from homecredit_features.features.aggregation import AGGREGATION_ORDER, StatAggregator
from homecredit_features.features.applicant import ApplicantFeatureDeriver
from homecredit_features.io.output_manager import OutputManager
from homecredit_features.pipeline.base import PipelineResult, StageResult
from homecredit_features.pipeline.joiner import TableJoiner
from homecredit_features.validation.data_checks import FeatureTableValidator


logger = logging.getLogger(__name__)

Splits = Dict[str, pd.DataFrame]

SPLITS: Tuple[Tuple[str, str, bool], ...] = (
    ("train", APPLICATION_TRAIN, True),
    ("test", APPLICATION_TEST, False),
)


class PipelineOrchestrator:
    """Orchestrates the feature engineering pipeline.

    Args:
        config: Frozen pipeline configuration.
        reader: Table reader; defaults to CSV files under ``data.data_dir``.
    """

    def __init__(self, config: PipelineConfig, reader: Optional[BaseTableReader] = None):
        self._config = config
        self._reader = reader or CsvTableReader(config)
        self._plog = PipelineLogger("PipelineOrchestrator")

        self.deriver = ApplicantFeatureDeriver(config)
        self.aggregators: Dict[str, StatAggregator] = {
            table: ComponentRegistry.create(table, config) for table in AGGREGATION_ORDER
        }
        self.joiner = TableJoiner(config)
        self.validator = FeatureTableValidator(config, derived_columns=self.derived_columns)
        self._schema_validator = SchemaValidator(config)

        self.output_manager: Optional[OutputManager] = None

    @property
    def derived_columns(self) -> List[str]:
        """Every column the pipeline adds, in output order."""
        columns = self.deriver.output_columns
        for table in AGGREGATION_ORDER:
            columns += self.aggregators[table].output_columns
        return columns

    def check_inputs(self) -> None:
        """Fail fast if any of the five input tables is unavailable.

        Raises:
            DataReaderError: Naming every missing table.
        """
        self._reader.require(APPLICATION_TRAIN, APPLICATION_TEST, *SUPPLEMENTARY_TABLES)

    def run(
        self,
        persist: Optional[bool] = None,
        save_aggregates: Optional[bool] = None,
    ) -> PipelineResult:
        """Run all stages.

        Args:
            persist: Write outputs; defaults to ``output.persist``.
            save_aggregates: Also write the aggregate tables; defaults to
                ``output.save_aggregates``.

        Returns:
            PipelineResult with both final tables and the aggregate tables.

        Raises:
            PipelineException: Whatever the failing stage raised, after the
                failure has been logged and the run marked failed.
        """
        output_cfg = self._config.output
        persist = output_cfg.persist if persist is None else persist
        save_aggregates = output_cfg.save_aggregates if save_aggregates is None else save_aggregates

        result = PipelineResult()
        start_time = time.time()
        self.output_manager = None

        stages: List[Tuple[str, Callable[[PipelineResult], StageResult]]] = [
            ("load", self._load),
            ("derive", self._derive),
            ("aggregate", self._aggregate),
            ("join", self._join),
            ("emit", lambda r: self._emit(r, persist, save_aggregates)),
        ]

        logger.info("PIPELINE | Starting (%d stages, persist=%s)", len(stages), persist)

        for stage_name, stage in stages:
            self._plog.set_context(stage=stage_name)
            self._plog.step_start(stage_name)
            stage_start = time.time()
            try:
                stage_result = stage(result)
            except Exception:
                result.status = "failed"
                result.failed_stage = stage_name
                result.total_duration = time.time() - start_time
                self._plog.exception(f"PIPELINE | Failed at stage: {stage_name}")
                if self.output_manager is not None:
                    self.output_manager.mark_failed()
                    self.output_manager.discard()
                self._plog.clear_context()
                raise

            stage_result.duration_seconds = time.time() - stage_start
            result.stages.append(stage_result)
            self._plog.step_complete(stage_name, stage_result.duration_seconds)
            self._plog.clear_context()
            logger.info("STAGE | %s", stage_result.summary())

        result.status = "success"
        result.total_duration = time.time() - start_time
        logger.info("PIPELINE | %s", result.summary())
        return result

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _load(self, result: PipelineResult) -> StageResult:
        self.check_inputs()

        counts = {}
        for split, table, is_train in SPLITS:
            df = self._reader.read(table)
            self._schema_validator.require(df, application_schema(self._config, is_train))
            self.validator.validate_split(df, table, is_train).raise_for_failures()
            setattr(result, split, df)
            counts[split] = len(df)
            self._plog.data_stats(table, len(df), len(df.columns))

        return StageResult(
            stage_name="load",
            rows_out=sum(counts.values()),
            metadata={"rows": counts},
        )

    def _derive(self, result: PipelineResult) -> StageResult:
        rows = 0
        for split, _, _ in SPLITS:
            self._plog.set_context(stage="derive", split=split)
            derived = self.deriver.transform(getattr(result, split))
            setattr(result, split, derived)
            rows += len(derived)

        return StageResult(
            stage_name="derive",
            rows_in=rows,
            rows_out=rows,
            columns_added=len(self.deriver.output_columns),
        )

    def _aggregate(self, result: PipelineResult) -> StageResult:
        rows_in = 0
        rows_out = 0
        for table in AGGREGATION_ORDER:
            raw = self._reader.read(table)
            rows_in += len(raw)
            aggregate = self.aggregators[table].aggregate(raw)
            del raw
            result.aggregates[table] = aggregate
            rows_out += len(aggregate)
            self._plog.data_stats(f"{table} aggregates", len(aggregate), len(aggregate.columns))

        return StageResult(
            stage_name="aggregate",
            rows_in=rows_in,
            rows_out=rows_out,
            columns_added=sum(len(a.output_columns) for a in self.aggregators.values()),
            metadata={"rows": {t: len(a) for t, a in result.aggregates.items()}},
        )

    def _join(self, result: PipelineResult) -> StageResult:
        rows = 0
        coverage = {}
        for split, table, is_train in SPLITS:
            applicants = getattr(result, split)
            joined = self.joiner.join(applicants, result.aggregates, table=table)
            self.validator.validate_output(joined, table, is_train, len(applicants)).raise_for_failures()
            setattr(result, split, joined)
            coverage[split] = self.joiner.coverage(joined, result.aggregates)
            rows += len(joined)

        for split, shares in coverage.items():
            for table, share in shares.items():
                self._plog.metric(f"{split} {table} coverage", f"{share:.1%}")

        return StageResult(
            stage_name="join",
            rows_in=rows,
            rows_out=rows,
            columns_added=sum(len(a.columns) - 1 for a in result.aggregates.values()),
            metadata={"coverage": coverage},
        )

    def _emit(self, result: PipelineResult, persist: bool, save_aggregates: bool) -> StageResult:
        if not persist:
            logger.info("EMIT | Persistence disabled, returning tables in memory")
            return StageResult(stage_name="emit", metadata={"persisted": False})

        output_cfg = self._config.output
        self.output_manager = OutputManager(self._config)
        manager = self.output_manager

        manager.save_table(APPLICATION_TRAIN, result.train, output_cfg.train_file)
        manager.save_table(APPLICATION_TEST, result.test, output_cfg.test_file)
        if save_aggregates:
            for table, aggregate in result.aggregates.items():
                manager.save_table(f"{table}_aggregates", aggregate)

        if output_cfg.save_config:
            manager.save_config_snapshot(self._config)

        manager.mark_complete("success")
        if output_cfg.save_metadata:
            manager.save_run_metadata(extra=self._stage_metadata(result))

        result.run_id = manager.run_id
        result.output_dir = str(manager.run_dir)

        return StageResult(
            stage_name="emit",
            metadata={"persisted": True, "tables": manager.tables},
        )

    @staticmethod
    def _stage_metadata(result: PipelineResult) -> Dict[str, Any]:
        return {
            "stages": [
                {
                    "stage": s.stage_name,
                    "rows_in": s.rows_in,
                    "rows_out": s.rows_out,
                    "columns_added": s.columns_added,
                    "duration_seconds": round(s.duration_seconds, 2),
                }
                for s in result.stages
            ]
        }
