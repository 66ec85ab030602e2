"""
Tests for the command line interface (mock mode).
"""

import json

import pytest
from typer.testing import CliRunner

from craftslot import __version__
from craftslot.cli.app import app

runner = CliRunner()


@pytest.fixture
def no_config(tmp_path):
    """Path to a config file that does not exist, so mock defaults apply."""
    return str(tmp_path / "config.yaml")


class TestCli:
    """Tests for the Typer commands."""

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_check_conflict_json(self, no_config):
        result = runner.invoke(
            app, ["check", "1", "2026-11-23", "--time", "10:00", "--mock", "--json", "--config", no_config]
        )

        assert result.exit_code == 0
        assert '"available": false' in result.output

    def test_check_available(self, no_config):
        result = runner.invoke(
            app, ["check", "2", "2026-11-23", "--time", "12:00", "--mock", "--config", no_config]
        )

        assert result.exit_code == 0
        assert "Verfügbar" in result.output

    def test_alternatives_json(self, no_config):
        result = runner.invoke(
            app, ["alternatives", "1", "2026-11-23T10:00", "--mock", "--json", "--config", no_config]
        )

        assert result.exit_code == 0
        assert '"isAvailable": false' in result.output
        assert '"alternativeSlots"' in result.output

    def test_unknown_craftsman_exit_code(self, no_config):
        result = runner.invoke(app, ["check", "42", "2026-11-23", "--mock", "--config", no_config])

        assert result.exit_code == 3

    def test_invalid_date_exit_code(self, no_config):
        result = runner.invoke(app, ["check", "1", "23.11.2026", "--mock", "--config", no_config])

        assert result.exit_code == 2

    def test_invalid_bounds_exit_code(self, no_config):
        result = runner.invoke(
            app, ["alternatives", "1", "2026-11-23T10:00", "--days", "0", "--mock", "--config", no_config]
        )

        assert result.exit_code == 2

    def test_list_craftsmen(self, no_config):
        result = runner.invoke(app, ["list-craftsmen", "--mock", "--config", no_config])

        assert result.exit_code == 0
        assert "Anna Schmidt" in result.output

    def test_working_hours(self, no_config):
        result = runner.invoke(app, ["working-hours", "2", "--mock", "--config", no_config])

        assert result.exit_code == 0
        assert "9:00-12:00, 14:00-18:00" in result.output

    def test_missing_config_without_mock(self, no_config):
        result = runner.invoke(app, ["check", "1", "2026-11-23", "--config", no_config])

        assert result.exit_code == 1
        assert "Config file not found" in result.output

    def test_mock_with_custom_data_file(self, tmp_path):
        data_file = tmp_path / "data.json"
        data_file.write_text(json.dumps({
            "craftsmen": [{"id": 9, "name": "Test", "availability_hours": {"monday": ["9:00-17:00"]}}],
            "appointments": [],
        }), encoding="utf-8")
        config_path = tmp_path / "config.yaml"
        config_path.write_text("data_file: data.json\n", encoding="utf-8")

        result = runner.invoke(
            app, ["check", "9", "2026-11-23", "--time", "10:00", "--mock", "--json", "--config", str(config_path)]
        )

        assert result.exit_code == 0
        assert '"available": true' in result.output
