"""
Output Manager

Creates the run directory, writes the feature tables and run metadata.
"""

from datetime import datetime
from importlib import metadata as importlib_metadata
from pathlib import Path
from typing import Any, Dict, Optional
import hashlib
import json
import logging
import os
import platform
import shutil
import subprocess
import sys

import pandas as pd

from homecredit_features.config.loader import save_config
from homecredit_features.config.schema import PipelineConfig
from homecredit_features.core.exceptions import ArtifactError


logger = logging.getLogger(__name__)

TRACKED_PACKAGES = ("pandas", "numpy", "pydantic", "PyYAML")


def _get_package_version(package: str) -> str:
    """Get the version string of an installed package.

    Args:
        package: Distribution name.

    Returns:
        Version string, or 'not installed' if unavailable.
    """
    try:
        return importlib_metadata.version(package)
    except importlib_metadata.PackageNotFoundError:
        return "not installed"


def _get_git_hash() -> str:
    """Get the current git commit hash.

    Returns:
        Short commit hash, suffixed with '-dirty' when the tree has
        uncommitted changes, or 'no-git' outside a repository.
    """
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode != 0:
            return "no-git"
        commit = result.stdout.strip()

        dirty_check = subprocess.run(
            ["git", "diff", "--quiet"],
            capture_output=True,
            timeout=5,
        )
        if dirty_check.returncode != 0:
            return f"{commit}-dirty"
        return commit
    except (OSError, subprocess.SubprocessError):
        return "no-git"


class OutputManager:
    """Manages the run directory and artifact saving for a pipeline run.

    Layout:
        {base_dir}/{run_id}/
            config/pipeline_config.yaml
            data/application_train_processed.csv
            data/application_test_processed.csv
            data/<table>_aggregates.csv        (optional)
            run_metadata.json

    The run_id format is {YYYYMMDD}_{HHMMSS}_{short_hash} where short_hash
    is derived from the config. Directories are created on first write, so
    a run that fails before the emit stage leaves nothing on disk. A run
    that fails while writing is removed with ``discard``.

    Args:
        config: The pipeline configuration.
        run_start: Optional datetime for the run start. Defaults to now.
    """

    def __init__(self, config: PipelineConfig, run_start: Optional[datetime] = None):
        self._config = config
        self._run_start = run_start or datetime.now()
        self._run_end: Optional[datetime] = None
        self._status = "running"
        self._tables: Dict[str, Dict[str, Any]] = {}

        config_json = config.model_dump_json()
        short_hash = hashlib.md5(config_json.encode()).hexdigest()[:6]
        timestamp = self._run_start.strftime("%Y%m%d_%H%M%S")
        self._run_id = f"{timestamp}_{short_hash}"

        self._base_dir = Path(config.output.base_dir)
        self._run_dir = self._base_dir / self._run_id

    @property
    def run_id(self) -> str:
        """The unique identifier for this run."""
        return self._run_id

    @property
    def run_dir(self) -> Path:
        """Root directory for this run."""
        return self._run_dir

    @property
    def status(self) -> str:
        return self._status

    @property
    def tables(self) -> Dict[str, Dict[str, Any]]:
        """Tables written so far: name -> path, rows, columns."""
        return dict(self._tables)

    def _ensure_dir(self, subdir: str = "") -> Path:
        target = self._run_dir / subdir if subdir else self._run_dir
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArtifactError(
                f"Cannot create output directory {target}",
                artifact_path=str(target),
                cause=e,
            ) from e
        return target

    def _write_atomic(self, path: Path, write) -> None:
        """Write through a temporary sibling file, then rename into place."""
        # keep the suffix: save_config picks the format from it
        tmp_path = path.with_name(f".tmp-{path.name}")
        try:
            write(tmp_path)
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path.exists():
                tmp_path.unlink()
            raise ArtifactError(
                f"Failed to write {path.name}",
                artifact_path=str(path),
                cause=e,
            ) from e

    def save_table(self, name: str, df: pd.DataFrame, filename: Optional[str] = None) -> Path:
        """Save a table as CSV under data/.

        Args:
            name: Logical table name (recorded in the run metadata).
            df: Table to save; the index is not written.
            filename: File name; defaults to ``{name}.csv``.

        Returns:
            Path to the saved file.
        """
        path = self._ensure_dir("data") / (filename or f"{name}.csv")
        self._write_atomic(path, lambda p: df.to_csv(p, index=False))

        self._tables[name] = {
            "path": str(path),
            "rows": int(len(df)),
            "columns": int(len(df.columns)),
        }
        logger.info("EMIT | %s: %s rows x %d columns -> %s", name, f"{len(df):,}", len(df.columns), path)
        return path

    def save_config_snapshot(self, config: PipelineConfig) -> Path:
        """Save the resolved config to the run directory.

        Args:
            config: The pipeline configuration to snapshot.

        Returns:
            Path to the saved config file.
        """
        path = self._ensure_dir("config") / "pipeline_config.yaml"
        self._write_atomic(path, lambda p: save_config(config, str(p)))
        logger.debug("Config snapshot saved to %s", path)
        return path

    def save_run_metadata(self, extra: Optional[Dict[str, Any]] = None) -> Path:
        """Collect and save run metadata to run_metadata.json.

        Args:
            extra: Additional entries (e.g. stage timings) merged into the file.

        Returns:
            Path to the metadata file.
        """
        self._run_end = self._run_end or datetime.now()
        duration = (self._run_end - self._run_start).total_seconds()

        run_metadata = {
            "run_id": self._run_id,
            "git_commit": _get_git_hash(),
            "python_version": sys.version,
            "package_versions": {pkg: _get_package_version(pkg) for pkg in TRACKED_PACKAGES},
            "os_info": {
                "system": platform.system(),
                "release": platform.release(),
                "machine": platform.machine(),
            },
            "run_start": self._run_start.isoformat(),
            "run_end": self._run_end.isoformat(),
            "duration_seconds": round(duration, 2),
            "status": self._status,
            "data_dir": str(self._config.data.data_dir),
            "tables": self._tables,
        }
        if extra:
            run_metadata.update(extra)

        path = self._ensure_dir() / "run_metadata.json"
        self._write_atomic(
            path,
            lambda p: p.write_text(json.dumps(run_metadata, indent=2, default=str)),
        )

        logger.info("Run metadata saved to %s", path)
        return path

    def mark_complete(self, status: str = "success") -> None:
        """Mark the run as complete.

        Args:
            status: Final status ('success' or 'failed').
        """
        self._status = status
        self._run_end = datetime.now()

    def mark_failed(self) -> None:
        """Mark the run as failed."""
        self.mark_complete(status="failed")

    def discard(self) -> None:
        """Remove the run directory and everything written into it."""
        if self._run_dir.exists():
            shutil.rmtree(self._run_dir)
            logger.warning("EMIT | Removed partial output %s", self._run_dir)
        self._tables.clear()
