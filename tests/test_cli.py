# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI tests for the analyze, engines, and rules commands."""

from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from lintweave.cli.app import app


def _project(tmp_path: Path) -> Path:
    source = tmp_path / "project" / "src"
    source.mkdir(parents=True)
    (source / "app.js").write_text("function run() {\n  console.log('hi');\n}\n", encoding="utf-8")
    (source / "notes.txt").write_text("console.log('ignored')\n", encoding="utf-8")
    return tmp_path / "project"


def test_rules_lists_catalog() -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["rules", "--category", "security", "--no-emoji", "--no-color"])

    assert result.exit_code == 0
    assert "S009" in result.output
    assert "C043" not in result.output


def test_engines_lists_heuristic(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["engines", "--root", str(tmp_path), "--no-emoji", "--no-color"])

    assert result.exit_code == 0
    assert "heuristic" in result.output


def test_analyze_json_reports_violations(tmp_path: Path) -> None:
    runner = CliRunner()
    project = _project(tmp_path)

    result = runner.invoke(
        app,
        ["analyze", str(project / "src"), "--rules", "C043,S009", "--json", "--root", str(project)],
    )

    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert [item["rule_id"] for item in payload["violations"]] == ["C043"]
    assert payload["violations"][0]["line"] == 2
    assert payload["summary"]["total_files"] == 1
    assert payload["metadata"]["requested_engine"] == "auto"


def test_analyze_clean_project_exits_zero(tmp_path: Path) -> None:
    runner = CliRunner()
    project = _project(tmp_path)

    result = runner.invoke(
        app,
        ["analyze", str(project / "src"), "--rules", "S009", "--root", str(project), "--no-emoji", "--no-color"],
    )

    assert result.exit_code == 0
    assert "No violations found" in result.output


def test_analyze_missing_path_exits_with_usage_error(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["analyze", str(tmp_path / "absent"), "--root", str(tmp_path), "--no-emoji"])

    assert result.exit_code == 2


def test_analyze_invalid_config_exits_with_usage_error(tmp_path: Path) -> None:
    runner = CliRunner()
    project = _project(tmp_path)
    (project / "lintweave.toml").write_text("[performance]\nrule_batch_size = 0\n", encoding="utf-8")

    result = runner.invoke(app, ["analyze", str(project / "src"), "--root", str(project), "--no-emoji"])

    assert result.exit_code == 2
