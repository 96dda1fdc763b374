#!/usr/bin/env python3
"""
temporal_files.py
--------------------
Staged file writes for exports.

Documents are written to a temporary file in the destination directory and
moved into place only once fully written, so a failed export never leaves
a truncated file behind.

Classes:
    TemporalFileManager: Tracks staging files and removes leftovers on exit

Usage:
    from ncdb.core.temporal_files import TemporalFileManager

    with TemporalFileManager(base_dir=export_dir) as temp_manager:
        staging = temp_manager.create_temp_file(suffix=".json")
        staging.write_text(content, encoding="utf-8")
        temp_manager.commit(staging, export_dir / "ncdb_export.json")
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

# --- Local imports ---
from .exceptions import TemporalFileError


class TemporalFileManager:
    """
    Manages staging files with automatic cleanup.

    Files still tracked when the context exits (never committed) are
    removed.
    """

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        """
        Initialize temporal file manager.

        Args:
            base_dir: Directory for staging files. Uses system temp if None.
        """
        self.base_dir = Path(base_dir) if base_dir else Path(tempfile.gettempdir())
        self.active_files: List[Path] = []

    def create_temp_file(self, suffix: str = "", prefix: str = "ncdb_") -> Path:
        """
        Create an empty staging file and track it for cleanup.

        Raises:
            TemporalFileError: If file creation fails
        """
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(suffix=suffix, prefix=prefix, dir=self.base_dir)
            os.close(fd)
        except OSError as e:
            raise TemporalFileError(f"Failed to create temporary file: {e}") from e

        path = Path(temp_path)
        self.active_files.append(path)
        return path

    def commit(self, temp_file: Path, destination: Path) -> Path:
        """
        Move a staging file to its final location.

        Raises:
            TemporalFileError: If the move fails
        """
        try:
            os.replace(temp_file, destination)
        except OSError as e:
            raise TemporalFileError(f"Failed to move {temp_file} to {destination}: {e}") from e

        self.active_files.remove(temp_file)
        return destination

    def cleanup(self) -> Dict[str, int]:
        """
        Remove every uncommitted staging file.

        Returns:
            Dictionary with cleanup statistics
        """
        cleanup_stats = {"files_removed": 0, "errors": 0}

        for temp_file in self.active_files[:]:
            try:
                if temp_file.exists():
                    temp_file.unlink()
                    cleanup_stats["files_removed"] += 1
                self.active_files.remove(temp_file)
            except OSError:
                cleanup_stats["errors"] += 1

        return cleanup_stats

    def __enter__(self) -> "TemporalFileManager":
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[Exception],
        exc_tb: Optional[Any],
    ) -> None:
        del exc_type, exc_val, exc_tb
        self.cleanup()
