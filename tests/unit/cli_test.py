"""Tests for the Typer CLI."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from plinth.cli.app import app
from plinth.core.errors import ItemNotFoundError
from plinth.models import QueueItem, QueueStatus, SnapshotPayload

runner = CliRunner()


def _write_plan(tmp_path: Path, plan: Any) -> Path:
    path = tmp_path / "plan.json"
    path.write_text(json.dumps(plan), encoding="utf-8")
    return path


def _fake_relay() -> MagicMock:
    relay = MagicMock()
    relay.__aenter__ = AsyncMock(return_value=relay)
    relay.__aexit__ = AsyncMock(return_value=None)
    return relay


@pytest.mark.parametrize(
    "args",
    [
        [],
        ["validate"],
        ["build"],
        ["queue"],
        ["queue", "submit"],
        ["queue", "list"],
        ["snapshot"],
        ["serve"],
        ["serve", "api"],
    ],
    ids=["root", "validate", "build", "queue", "queue-submit", "queue-list", "snapshot", "serve", "serve-api"],
)
def test_short_help_flag(args: list[str]) -> None:
    result = runner.invoke(app, [*args, "-h"])
    assert result.exit_code == 0
    assert "Usage" in result.output


class TestValidateCommand:
    def test_valid_plan(self, tmp_path: Path, hero_plan: dict[str, Any]) -> None:
        result = runner.invoke(app, ["validate", str(_write_plan(tmp_path, hero_plan))])
        assert result.exit_code == 0
        assert "Valid BuildPlan" in result.output

    def test_invalid_plan(self, tmp_path: Path, plan_factory: Any) -> None:
        path = _write_plan(tmp_path, plan_factory(styles=[{"name": "x", "properties": {"margin": "0"}}]))
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1
        assert "shorthand" in result.output

    def test_not_json(self, tmp_path: Path) -> None:
        path = tmp_path / "plan.json"
        path.write_text("{oops", encoding="utf-8")
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1
        assert "JSON" in result.output

    def test_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["validate", str(tmp_path / "nope.json")])
        assert result.exit_code == 1


class TestBuildCommand:
    def test_dry_run_prints_tree(self, tmp_path: Path, hero_plan: dict[str, Any]) -> None:
        result = runner.invoke(app, ["build", "--quiet", str(_write_plan(tmp_path, hero_plan))])
        assert result.exit_code == 0
        assert ".hero-section" in result.output
        assert "Site styles:" in result.output
        assert "4 elements" in result.output

    def test_failed_build_exits_nonzero(self, tmp_path: Path, plan_factory: Any) -> None:
        path = _write_plan(tmp_path, plan_factory(version="2.0"))
        result = runner.invoke(app, ["build", str(path)])
        assert result.exit_code == 1
        assert "Build failed" in result.output


class TestQueueCommands:
    def test_submit(self, tmp_path: Path, hero_plan: dict[str, Any]) -> None:
        relay = _fake_relay()
        relay.submit_plan = AsyncMock(
            return_value={
                "itemId": "item-1",
                "status": "pending",
                "siteId": "site-1",
                "sectionName": "hero",
                "order": 1,
            }
        )

        with patch("plinth.cli.common.RelayClient", return_value=relay) as relay_cls:
            result = runner.invoke(
                app, ["queue", "submit", str(_write_plan(tmp_path, hero_plan)), "--relay-url", "http://relay:1"]
            )

        assert result.exit_code == 0
        assert "item-1" in result.output
        relay_cls.assert_called_once_with("http://relay:1")
        relay.submit_plan.assert_awaited_once_with(hero_plan)

    def test_submit_relay_unreachable(self, tmp_path: Path, hero_plan: dict[str, Any]) -> None:
        relay = _fake_relay()
        relay.submit_plan = AsyncMock(side_effect=ItemNotFoundError("Unknown site: site-1"))

        with patch("plinth.cli.common.RelayClient", return_value=relay):
            result = runner.invoke(app, ["queue", "submit", str(_write_plan(tmp_path, hero_plan))])

        assert result.exit_code == 1
        assert "Unknown site" in result.output

    def test_list(self) -> None:
        relay = _fake_relay()
        relay.list_items = AsyncMock(
            return_value=[
                QueueItem(id="i2", name="footer", status=QueueStatus.ERROR, order=2, error_message="bad"),
                QueueItem(id="i1", name="hero", status=QueueStatus.DONE, order=1),
            ]
        )

        with patch("plinth.cli.common.RelayClient", return_value=relay):
            result = runner.invoke(app, ["queue", "list", "--site", "site-1"])

        assert result.exit_code == 0
        assert result.output.index("hero") < result.output.index("footer")
        assert "(2 items)" in result.output
        relay.list_items.assert_awaited_once_with("site-1")

    def test_clear(self) -> None:
        relay = _fake_relay()
        relay.clear_queue = AsyncMock(return_value=2)

        with patch("plinth.cli.common.RelayClient", return_value=relay):
            result = runner.invoke(app, ["queue", "clear", "-s", "site-1"])

        assert result.exit_code == 0
        assert "Cleared 2 items." in result.output


class TestSnapshotCommand:
    def test_prints_snapshot(self) -> None:
        relay = _fake_relay()
        relay.request_snapshot = AsyncMock()
        relay.fetch_snapshot = AsyncMock(return_value=SnapshotPayload(summary="Body<body>\n  DOM<section> .hero"))

        with patch("plinth.cli.common.RelayClient", return_value=relay):
            result = runner.invoke(app, ["snapshot", "--site", "site-1"])

        assert result.exit_code == 0
        assert "DOM<section> .hero" in result.output
        relay.request_snapshot.assert_awaited_once_with("site-1")

    def test_times_out(self) -> None:
        relay = _fake_relay()
        relay.request_snapshot = AsyncMock()
        relay.fetch_snapshot = AsyncMock(return_value=None)

        with patch("plinth.cli.common.RelayClient", return_value=relay):
            result = runner.invoke(app, ["snapshot", "--site", "site-1", "--timeout", "0"])

        assert result.exit_code == 1
        assert "No snapshot received" in result.output


class TestServeCommands:
    def test_serve_api_runs_uvicorn(self) -> None:
        with patch("uvicorn.run") as run:
            result = runner.invoke(app, ["serve", "api", "--port", "9999"])
        assert result.exit_code == 0
        _, kwargs = run.call_args
        assert kwargs["port"] == 9999

    def test_serve_mcp_uses_transport(self) -> None:
        server = MagicMock()
        with patch("plinth.mcp.server.create_mcp_server", return_value=server):
            result = runner.invoke(app, ["serve", "mcp", "--transport", "sse"])
        assert result.exit_code == 0
        server.run.assert_called_once_with(transport="sse")
