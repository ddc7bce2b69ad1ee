import csv
import logging

import pytest
from click.testing import CliRunner

from sensor_communication.cli import cli


@pytest.fixture
def runner():
    yield CliRunner()
    # handlers bound to the runner's captured streams must not outlive it
    logging.getLogger("sensor_communication").handlers.clear()


def test_scan_finds_simulated_sensor(runner):
    result = runner.invoke(cli, ["scan", "--simulate"])
    assert result.exit_code == 0, result.output
    assert "SIM0" in result.output


def test_scan_wrong_slave_id_fails(runner):
    result = runner.invoke(cli, ["scan", "--simulate", "--slave-id", "5"])
    assert result.exit_code != 0
    assert "Sensor not found" in result.output


def test_run_logs_csv(runner, tmp_path):
    path = tmp_path / "ec.csv"
    result = runner.invoke(cli, [
        "run", "--simulate", "--mode", "0", "--cycles", "2", "--interval", "0",
        "--no-dashboard", "--csv", str(path),
    ])
    assert result.exit_code == 0, result.output
    assert "Logged 2 record(s) in 2 cycle(s)" in result.output
    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[0][0] == "Timestamp"
    assert len(rows) == 3


def test_run_with_dashboard_and_calibration(runner, tmp_path):
    result = runner.invoke(cli, [
        "run", "--simulate", "--mode", "3", "--cycles", "1", "--interval", "0",
        "--csv", str(tmp_path / "ec.csv"),
    ])
    assert result.exit_code == 0, result.output
    assert "LIVE ALGORITHM VALIDATION" in result.output


def test_run_prompts_for_mode(runner, tmp_path):
    result = runner.invoke(cli, [
        "run", "--simulate", "--cycles", "1", "--interval", "0", "--no-dashboard",
        "--csv", str(tmp_path / "ec.csv"),
    ], input="0\n")
    assert result.exit_code == 0, result.output
    assert "SELECT CALIBRATION MODE" in result.output
    assert "[2] Register 28 = 12880.0 (float)" in result.output
    snapshot = result.output.index("<- Calibration Coefficient")
    assert snapshot < result.output.index("SELECT CALIBRATION MODE")


def test_run_without_diagnostics(runner, tmp_path):
    result = runner.invoke(cli, [
        "run", "--simulate", "--mode", "0", "--cycles", "1", "--interval", "0", "--no-dashboard",
        "--no-diagnostics", "--csv", str(tmp_path / "ec.csv"),
    ])
    assert result.exit_code == 0, result.output
    assert "SENSOR DIAGNOSTIC REGISTERS" not in result.output


def test_run_rejects_unknown_mode(runner):
    result = runner.invoke(cli, ["run", "--simulate", "--mode", "4"])
    assert result.exit_code == 2


def test_diagnose(runner):
    result = runner.invoke(cli, ["diagnose", "--simulate", "--watch", "2", "--interval", "0"])
    assert result.exit_code == 0, result.output
    assert result.output.count("SENSOR DIAGNOSTIC REGISTERS") == 2
    assert "<- Calibration Mode" in result.output


def test_log_file(runner, tmp_path):
    log_file = tmp_path / "logger.log"
    result = runner.invoke(cli, ["--log-file", str(log_file), "scan", "--simulate"])
    assert result.exit_code == 0, result.output
    assert "Found sensor at SIM0" in log_file.read_text(encoding="utf-8")


def test_ports_lists_candidates(runner):
    result = runner.invoke(cli, ["ports"])
    assert result.exit_code == 0
    assert result.output.splitlines()[0] in ("/dev/ttyS0", "COM1")
