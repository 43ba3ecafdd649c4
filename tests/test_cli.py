"""Tests for the termcal CLI."""

import json
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from termcal.cli import main
from termcal.config import Config


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def quiet_config():
    with patch("termcal.cli.configure_logging"), patch(
        "termcal.cli.load_config", return_value=Config(timezone="UTC")
    ):
        yield


@pytest.fixture
def use_provider(provider):
    with patch("termcal.cli._provider", return_value=provider):
        yield provider


class TestAgenda:
    def test_json_for_one_day(self, runner, use_provider):
        result = runner.invoke(main, ["agenda", "--date", "2024-06-03", "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert [e["summary"] for e in data["2024-06-03"]] == ["Holiday", "Standup"]
        assert data["2024-06-03"][0]["all_day"] is True

    def test_text_output(self, runner, use_provider):
        result = runner.invoke(main, ["agenda", "--date", "2024-06-03"])

        assert result.exit_code == 0, result.output
        assert "### Monday, June 03" in result.output
        assert "Standup" in result.output

    def test_week(self, runner, use_provider):
        result = runner.invoke(main, ["agenda", "--date", "2024-06-05", "--week", "--json"])

        data = json.loads(result.output)
        assert list(data) == [f"2024-06-0{d}" for d in range(2, 9)]

    def test_failure_exits_nonzero(self, runner, use_provider):
        use_provider.failing.add("B")

        result = runner.invoke(main, ["agenda", "--date", "2024-06-03"])

        assert result.exit_code == 1
        assert "Error: B unavailable" in result.output

    def test_waits_for_fetches_still_running(self, runner, use_provider):
        use_provider.failing.add("B")

        with patch("termcal.aggregator.Aggregator.drain", new_callable=AsyncMock) as drain:
            runner.invoke(main, ["agenda", "--date", "2024-06-03"])

        drain.assert_awaited_once()


class TestCalendars:
    def test_lists_sources(self, runner, use_provider):
        result = runner.invoke(main, ["calendars"])

        assert result.exit_code == 0
        assert "[x] owner" in result.output
        assert "Personal" in result.output

    def test_json(self, runner, use_provider):
        result = runner.invoke(main, ["calendars", "--json"])

        data = json.loads(result.output)
        assert [c["id"] for c in data] == ["A", "B"]


class TestToggle:
    def test_flips_selected(self, runner, use_provider):
        result = runner.invoke(main, ["toggle", "B"])

        assert result.exit_code == 0
        assert "Work: hidden" in result.output
        assert [c.selected for c in use_provider.list_calendars()] == [True, False]

    def test_unknown_calendar(self, runner, use_provider):
        result = runner.invoke(main, ["toggle", "nope"])
        assert result.exit_code == 1
