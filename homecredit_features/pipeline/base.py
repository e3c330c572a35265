"""
Pipeline Base Classes

Stage bookkeeping for the orchestrator: a StageResult per stage and a
PipelineResult carrying the produced tables.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd


STAGES = ("load", "derive", "aggregate", "join", "emit")


@dataclass
class StageResult:
    """Result of one orchestrator stage.

    Attributes:
        stage_name: One of load, derive, aggregate, join, emit.
        rows_in: Rows entering the stage (summed over tables).
        rows_out: Rows leaving the stage (summed over tables).
        columns_added: Number of columns the stage added.
        metadata: Arbitrary extra data (per-table counts, paths written).
        duration_seconds: Wall-clock time the stage took.
    """

    stage_name: str
    rows_in: int = 0
    rows_out: int = 0
    columns_added: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)
    duration_seconds: float = 0.0

    def summary(self) -> str:
        """Human-readable one-line summary."""
        return (
            f"{self.stage_name}: {self.rows_in:,} -> {self.rows_out:,} rows, "
            f"+{self.columns_added} columns in {self.duration_seconds:.1f}s"
        )


@dataclass
class PipelineResult:
    """Aggregate result of a full pipeline run.

    Attributes:
        stages: Ordered list of StageResult, one per completed stage.
        train: Final feature table for the training split.
        test: Final feature table for the test split.
        aggregates: Aggregate feature tables keyed by supplementary table name.
        run_id: Output run identifier (None when nothing was persisted).
        output_dir: Run directory (None when nothing was persisted).
        total_duration: Total wall-clock time in seconds.
        status: 'pending', 'success' or 'failed'.
        failed_stage: Stage that raised, if any.
    """

    stages: List[StageResult] = field(default_factory=list)
    train: Optional[pd.DataFrame] = None
    test: Optional[pd.DataFrame] = None
    aggregates: Dict[str, pd.DataFrame] = field(default_factory=dict)
    run_id: Optional[str] = None
    output_dir: Optional[str] = None
    total_duration: float = 0.0
    status: str = "pending"
    failed_stage: Optional[str] = None

    def stage(self, name: str) -> StageResult:
        """Look up a completed stage by name."""
        for result in self.stages:
            if result.stage_name == name:
                return result
        raise KeyError(f"Stage not run: {name}")

    def summary(self) -> str:
        """Human-readable multi-line summary of the full run."""
        lines = [f"Pipeline {self.status} in {self.total_duration:.1f}s"]
        if self.failed_stage:
            lines[0] += f" (failed at {self.failed_stage})"
        for result in self.stages:
            lines.append(f"  {result.summary()}")
        for name, table in (("train", self.train), ("test", self.test)):
            if table is not None:
                lines.append(f"  {name}: {len(table):,} rows x {len(table.columns)} columns")
        if self.output_dir:
            lines.append(f"  Output: {self.output_dir}")
        return "\n".join(lines)
