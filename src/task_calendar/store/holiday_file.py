"""Holiday seed file reader."""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


def read_holiday_file(path: str | Path) -> list[tuple[date, str, bool]]:
    """Read holidays from a YAML file.

    Expected format::

        - date: 2026-01-01
          name: New Year
          recurring: true
        - date: 2026-05-04
          name: Company offsite

    Entries that cannot be parsed are skipped with a warning.

    Args:
        path: Path to the YAML file

    Returns:
        List of (date, name, recurring) tuples

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid YAML or not a list
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Holiday file not found: {file_path}")

    try:
        data = yaml.safe_load(file_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in holiday file {file_path}") from e

    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError(f"Holiday file {file_path} must contain a list")

    holidays: list[tuple[date, str, bool]] = []
    for index, entry in enumerate(data):
        parsed = _parse_entry(entry)
        if parsed is None:
            logger.warning(f"[HolidayFile] Skipping entry {index} in {file_path.name}: {entry!r}")
            continue
        holidays.append(parsed)
    return holidays


def _parse_entry(entry: Any) -> tuple[date, str, bool] | None:
    """Parse one mapping into (date, name, recurring), or None if malformed."""
    if not isinstance(entry, dict):
        return None
    day = _to_date(entry.get("date"))
    name = entry.get("name")
    if day is None or not isinstance(name, str) or not name.strip():
        return None
    return day, name.strip(), bool(entry.get("recurring", False))


def _to_date(value: Any) -> date | None:
    """YAML parses bare dates to date objects; quoted dates stay strings."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return None
    return None
