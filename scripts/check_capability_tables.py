#!/usr/bin/env python3
"""Validate the capability tables and print a coverage report.

This is a developer-facing gate script. It loads every grammar table from the
configured (or given) directory, which enforces table completeness, and prints
which chart kinds, roles, style keys and facets each grammar supports.
"""

from __future__ import annotations

import argparse
import json
import logging
from collections.abc import Sequence
from pathlib import Path

from chart_translator.errors import CapabilityTableError
from chart_translator.registry import load_registry

logger = logging.getLogger(__name__)


def main(argv: Sequence[str] | None = None) -> int:
    """Load the tables and print a JSON coverage report.

    Returns:
        0 when every table loads, 1 when a table is malformed or incomplete.
    """

    parser = argparse.ArgumentParser(description="Validate chart translator capability tables.")
    parser.add_argument("--tables-dir", type=Path, default=None, help="Directory of <grammar>.yml tables.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ...).")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    try:
        registry = load_registry(args.tables_dir)
    except CapabilityTableError as exc:
        logger.error("Capability tables failed validation: %s", exc)
        print(json.dumps({"ok": False, "error": str(exc)}, indent=2, sort_keys=True))
        return 1

    print(json.dumps({"ok": True, "grammars": registry.coverage()}, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
