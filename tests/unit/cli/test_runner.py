"""
tests/unit/cli/test_runner.py

Tests for the page-network command line.
"""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from page_network_observer.cli.runner import cli

RECORDING = [
    {"kind": "request_started", "request_id": "1", "url": "http://localhost/", "resource_type": "document"},
    {"kind": "response_received", "request_id": "1", "status": 200},
    {"kind": "request_finished", "request_id": "1"},
]


@pytest.fixture(autouse=True)
def plain_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("NETWORK_STRICT_SIGNALS", "LOG_FILE", "LOG_JSON"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def write_lines(path: Path, signals) -> str:
    path.write_text("\n".join(json.dumps(s) for s in signals), encoding="utf-8")
    return str(path)


class TestReplayCommand:
    """
    Tests for `page-network replay`.
    """

    def test_replays_recording(self, runner: CliRunner, tmp_path: Path) -> None:
        signal_file = write_lines(tmp_path / "ok.jsonl", RECORDING)

        result = runner.invoke(cli, ["replay", signal_file])

        assert result.exit_code == 0
        assert "Replayed 3 signal(s)" in result.output
        assert "Network event" not in result.output

    def test_lenient_replay_drops_bad_signal(self, runner: CliRunner, tmp_path: Path) -> None:
        signal_file = write_lines(tmp_path / "bad.jsonl", RECORDING + [
            {"kind": "request_finished", "request_id": "1"},
        ])

        result = runner.invoke(cli, ["replay", signal_file])

        assert result.exit_code == 0
        assert "Replayed 4 signal(s)" in result.output

    def test_strict_replay_fails(self, runner: CliRunner, tmp_path: Path) -> None:
        signal_file = write_lines(tmp_path / "bad.jsonl", RECORDING + [
            {"kind": "request_finished", "request_id": "1"},
        ])

        result = runner.invoke(cli, ["replay", signal_file, "--strict"])

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_malformed_file_fails(self, runner: CliRunner, tmp_path: Path) -> None:
        signal_file = tmp_path / "broken.jsonl"
        signal_file.write_text("{not json\n", encoding="utf-8")

        result = runner.invoke(cli, ["replay", str(signal_file)])

        assert result.exit_code == 1
        assert "Line 1" in result.output

    def test_missing_file(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["replay", str(tmp_path / "nope.jsonl")])
        assert result.exit_code == 2


class TestInfoCommand:
    """
    Tests for `page-network info`.
    """

    def test_shows_configuration(self, runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NETWORK_SIGNAL_TIMEOUT", "1234")

        result = runner.invoke(cli, ["info"])

        assert result.exit_code == 0
        assert "1234ms" in result.output
