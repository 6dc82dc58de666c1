"""Tests for the command line entry points."""

from __future__ import annotations

import re

from click.testing import CliRunner

from depthdesk.cli import _load, cli

LADDER_ROW = re.compile(r"^\s+[\d,]+\.\d{3}\s+[\d,]+\s+[\d,]+$")


def test_smoke_test_passes() -> None:
    result = CliRunner().invoke(cli, ["smoke-test"])
    assert result.exit_code == 0, result.output
    assert "Smoke test passed" in result.output


def test_order_against_simulator_rests() -> None:
    result = CliRunner().invoke(
        cli, ["order", "--dry-run", "--side", "buy", "--price", "1.00", "--quantity", "2"]
    )
    assert result.exit_code == 0, result.output
    assert "resting" in result.output


def test_order_rejects_bad_price() -> None:
    result = CliRunner().invoke(
        cli, ["order", "--dry-run", "--side", "sell", "--price", "abc", "--quantity", "1"]
    )
    assert result.exit_code != 0


def _ladder_rows(output: str) -> list[str]:
    plain = re.sub(r"\x1b\[[0-9;]*m", "", output)
    return [line for line in plain.splitlines() if LADDER_ROW.match(line)]


def test_run_levels_limits_ladder() -> None:
    result = CliRunner().invoke(
        cli, ["run", "--dry-run", "--iterations", "1", "--refresh", "0.3", "--levels", "3"]
    )
    assert result.exit_code == 0, result.output
    assert len(_ladder_rows(result.output)) == 6


def test_run_rejects_zero_levels() -> None:
    result = CliRunner().invoke(cli, ["run", "--dry-run", "--iterations", "1", "--levels", "0"])
    assert result.exit_code == 2


def test_levels_override_applies_to_config_file(tmp_path) -> None:
    config_file = tmp_path / "config.yaml"
    config_file.write_text("depth:\n  max_levels: 15\n")

    assert _load(str(config_file), dry_run=True, max_levels=4).depth.max_levels == 4
    assert _load(None, dry_run=True, max_levels=4).depth.max_levels == 4
    assert _load(str(config_file), dry_run=True).depth.max_levels == 15
