# setback_arena/paths.py
from __future__ import annotations

import os
from pathlib import Path

# Default home for generated CSVs and logs; SETBACK_RESULTS_DIR overrides it.
DEFAULT_RESULTS_DIR = Path(__file__).resolve().parent / "results"
RESULTS_DIR_ENV = "SETBACK_RESULTS_DIR"


def results_dir() -> Path:
    override = os.environ.get(RESULTS_DIR_ENV)
    return Path(override) if override else DEFAULT_RESULTS_DIR


def ensure_results_dir() -> Path:
    """Create the results directory if it does not exist and return it."""
    path = results_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def resolve_results_path(path_like: str | Path) -> Path:
    """
    Anchor a relative output path inside the results directory.

    Absolute paths are returned unchanged.
    """
    path = Path(path_like)
    if path.is_absolute():
        return path
    return ensure_results_dir() / path
