"""Runtime settings for the chart translator.

Settings are read from environment variables so deployments can point the
registry at alternate capability tables without code changes.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULT_TABLES_DIR = PACKAGE_DIR / "tables"
DEFAULT_FACET_CARDINALITY_LIMIT = 12


def _env_int(name: str, *, default: int) -> int:
    """Parse an integer environment variable.

    Args:
        name: Environment variable name.
        default: Value when the variable is not set.

    Returns:
        Parsed integer value.

    Raises:
        ValueError: When the variable is set but is not an integer.
    """

    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}.") from None


def _env_path(name: str, *, default: Path) -> Path:
    """Parse a filesystem path environment variable."""

    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return Path(raw.strip()).expanduser()


@dataclass(frozen=True, slots=True)
class TranslatorSettings:
    """Resolved translator settings.

    Args:
        tables_dir: Directory holding one `<grammar>.yml` capability table per grammar.
        facet_cardinality_limit: Distinct-value count above which faceting by a
            numeric column produces a warning.
    """

    tables_dir: Path
    facet_cardinality_limit: int


def load_settings() -> TranslatorSettings:
    """Read settings from the environment."""

    limit = _env_int("CHART_TRANSLATOR_FACET_CARDINALITY_LIMIT", default=DEFAULT_FACET_CARDINALITY_LIMIT)
    if limit < 1:
        raise ValueError(f"CHART_TRANSLATOR_FACET_CARDINALITY_LIMIT must be >= 1, got {limit}.")
    return TranslatorSettings(
        tables_dir=_env_path("CHART_TRANSLATOR_TABLES_DIR", default=DEFAULT_TABLES_DIR),
        facet_cardinality_limit=limit,
    )
