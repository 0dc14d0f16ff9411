"""Environment helper utilities.

Loads the project-level `.env` file (located next to `pyproject.toml`) so that
the ``INVENTORY_VIEW_*`` and ``INVENTORY_ALERT_*`` settings defined there are
visible through ``os.getenv``. Variables already present in the process
environment always win.
"""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv

__all__ = ["load_project_dotenv"]

_loaded_from: Path | None = None


def _find_project_root(start: Path | None = None) -> Path:
    """Traverse upwards until we find a directory that contains `pyproject.toml`."""
    current = start or Path(__file__).resolve().parent
    for _ in range(10):
        if (current / "pyproject.toml").exists():
            return current
        if current.parent == current:
            break
        current = current.parent
    return Path(__file__).resolve().parent


def load_project_dotenv(force: bool = False) -> Path | None:
    """
    Load environment variables from the project-level `.env` if present.

    Loading happens once per process unless `force` is set.
    Returns the path that was loaded, or None when there is no `.env`.
    """
    global _loaded_from
    if _loaded_from is not None and not force:
        return _loaded_from

    dotenv_path = _find_project_root() / ".env"
    if not dotenv_path.exists():
        return None
    load_dotenv(dotenv_path=dotenv_path, override=False)
    _loaded_from = dotenv_path
    return dotenv_path
