#!/usr/bin/env python3
"""
paths.py
-------------------
Path constants for the NCDB project.

All paths are Path objects relative to the project root:

    ROOT/
    ├── ncdb/          # Package code
    ├── data/          # Catalog database
    ├── exports/       # Exported documents
    └── logs/          # Application logs

Every path can be overridden from the CLI (--db-path, --log-dir, ...).
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from pathlib import Path


def _get_project_root() -> Path:
    """
    Determine project root directory.

    Assumes this file is at ROOT/ncdb/core/paths.py.

    Returns:
        Path object for project root
    """
    return Path(__file__).resolve().parent.parent.parent


# ----- Project directory -----
ROOT: Path = _get_project_root()

# ---- Data ----
DATA_DIR = ROOT / "data"
DB_PATH = DATA_DIR / "ncdb.db"

# ---- Exports ----
EXPORT_DIR = ROOT / "exports"

# ---- Logs ----
LOG_DIR = ROOT / "logs"
