"""Tests for the capability table gate script."""

from __future__ import annotations

import importlib.util
import json
from pathlib import Path
from types import ModuleType

import pytest

pytestmark = pytest.mark.integration

SCRIPT_PATH = Path(__file__).resolve().parents[1] / "scripts" / "check_capability_tables.py"


def _load_script() -> ModuleType:
    spec = importlib.util.spec_from_file_location("check_capability_tables", SCRIPT_PATH)
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_script_reports_coverage_for_packaged_tables(capsys: pytest.CaptureFixture[str]) -> None:
    """Exit 0 and print a coverage report for both grammars."""

    script = _load_script()

    exit_code = script.main([])

    report = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert report["ok"] is True
    assert sorted(report["grammars"]) == ["imperative", "layered"]
    assert report["grammars"]["imperative"]["kinds"]["scatter"]["facet"] is False


def test_script_fails_for_incomplete_tables(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Exit 1 with an error payload when a table omits a mandatory key."""

    (tmp_path / "partial.yml").write_text(
        "grammar: partial\n"
        "defaults:\n"
        "  styles:\n"
        "    title: {write: scalar, param: title}\n"
        "    xLabel: {write: scalar, param: x_title}\n"
        "kinds:\n"
        + "".join(
            f"  {kind}:\n    select: {{write: fixed, params: {{mark: {kind}}}}}\n"
            for kind in ("bar", "pie", "histogram", "boxplot", "line", "scatter")
        ),
        encoding="utf-8",
    )
    script = _load_script()

    exit_code = script.main(["--tables-dir", str(tmp_path), "--log-level", "critical"])

    report = json.loads(capsys.readouterr().out)
    assert exit_code == 1
    assert report["ok"] is False
    assert "yLabel" in report["error"]
