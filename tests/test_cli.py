"""Tests for the command-line interface."""

import json
import signal

import pytest
import yaml
from click.testing import CliRunner

from host_health_monitor import cli
from host_health_monitor.cli import main
from host_health_monitor.config import MonitorConfig


@pytest.fixture
def runner():
    return CliRunner()


def write_config(path, ports, log_file):
    data = {
        "probes": [
            {"name": name, "type": "port", "port": port, "host": "127.0.0.1", "description": name.title()}
            for name, port in ports
        ],
        "thresholds": {"memory": {"warning": 70, "critical": 80}},
        "log_file": str(log_file),
    }
    path.write_text(yaml.safe_dump(data))
    return str(path)


class TestCheckCommand:
    """Tests for `hhm check`."""

    def test_healthy_exit_code(self, runner, tmp_path, listening_port):
        config = write_config(tmp_path / "hhm.yaml", [("web", listening_port)], tmp_path / "health.log")
        result = runner.invoke(main, ["check", "-c", config])

        assert result.exit_code == 0
        assert "HEALTHY" in result.output
        assert "web" in result.output

    def test_warning_exit_code(self, runner, tmp_path, listening_port, closed_port):
        ports = [("web", listening_port), ("db", closed_port)]
        config = write_config(tmp_path / "hhm.yaml", ports, tmp_path / "health.log")
        result = runner.invoke(main, ["check", "-c", config])

        assert result.exit_code == 2
        assert "WARNING" in result.output

    def test_critical_exit_code(self, runner, tmp_path, closed_port):
        ports = [("a", closed_port), ("b", closed_port), ("c", closed_port)]
        config = write_config(tmp_path / "hhm.yaml", ports, tmp_path / "health.log")
        result = runner.invoke(main, ["check", "-c", config])

        assert result.exit_code == 1
        assert "CRITICAL" in result.output

    def test_json_output(self, runner, tmp_path, listening_port, closed_port):
        ports = [("web", listening_port), ("db", closed_port)]
        config = write_config(tmp_path / "hhm.yaml", ports, tmp_path / "health.log")
        result = runner.invoke(main, ["check", "-c", config, "--json"])

        data = json.loads(result.stdout)
        assert data["status"] == "warning"
        assert data["summary"]["issues"] == 1
        assert [r["name"] for r in data["results"]] == ["web", "db"]

    def test_appends_to_health_log(self, runner, tmp_path, listening_port):
        log_file = tmp_path / "logs" / "health.log"
        config = write_config(tmp_path / "hhm.yaml", [("web", listening_port)], log_file)
        runner.invoke(main, ["check", "-c", config])
        runner.invoke(main, ["check", "-c", config])

        text = log_file.read_text()
        assert text.count("Health check PASSED - No issues") == 2

    def test_no_log(self, runner, tmp_path, listening_port):
        log_file = tmp_path / "health.log"
        config = write_config(tmp_path / "hhm.yaml", [("web", listening_port)], log_file)
        runner.invoke(main, ["check", "-c", config, "--no-log"])
        assert not log_file.exists()

    def test_only_unknown_probe(self, runner, tmp_path, listening_port):
        config = write_config(tmp_path / "hhm.yaml", [("web", listening_port)], tmp_path / "health.log")
        result = runner.invoke(main, ["check", "-c", config, "--only", "service"])

        assert result.exit_code == 1
        assert "No configured probe matches" in result.output

    def test_invalid_config(self, runner, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("thresholds:\n  disk:\n    warning: 95\n    critical: 90\n")
        result = runner.invoke(main, ["check", "-c", str(path)])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


class TestWatchCommand:
    """Tests for `hhm watch`."""

    def test_bounded_watch(self, runner, tmp_path, listening_port):
        log_file = tmp_path / "health.log"
        config = write_config(tmp_path / "hhm.yaml", [("web", listening_port)], log_file)
        result = runner.invoke(main, ["watch", "-c", config, "--interval", "0.05", "--count", "2"])

        assert result.exit_code == 0
        assert "stopped after 2 passes" in result.output
        lines = log_file.read_text().splitlines()
        assert lines[0].endswith("Continuous monitor started (0.05s interval)")
        assert lines[-1].endswith("Continuous monitor stopped after 2 passes (last status: HEALTHY)")

    @pytest.mark.parametrize("signum", [signal.SIGINT, signal.SIGTERM])
    def test_signal_stops_after_in_flight_pass(self, runner, tmp_path, listening_port, monkeypatch, signum):
        log_file = tmp_path / "health.log"
        config = write_config(tmp_path / "hhm.yaml", [("web", listening_port)], log_file)
        rendered = []
        render_report = cli.render_report

        def render_and_interrupt(report):
            rendered.append(report)
            if len(rendered) == 2:
                signal.raise_signal(signum)
            return render_report(report)

        monkeypatch.setattr(cli, "render_report", render_and_interrupt)
        handlers = {sig: signal.getsignal(sig) for sig in (signal.SIGINT, signal.SIGTERM)}

        result = runner.invoke(main, ["watch", "-c", config, "--interval", "0.05", "--count", "10"])

        assert result.exit_code == 0
        assert len(rendered) == 2
        assert "stopped after 2 passes" in result.output
        lines = log_file.read_text().splitlines()
        assert lines[-3].endswith(f"Port OK: {listening_port}")
        assert lines[-2].endswith("Health check PASSED - No issues")
        assert lines[-1].endswith("Continuous monitor stopped after 2 passes (last status: HEALTHY)")
        assert {sig: signal.getsignal(sig) for sig in handlers} == handlers


class TestOtherCommands:
    """Tests for configuration and history commands."""

    def test_thresholds(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))
        result = runner.invoke(main, ["thresholds"])

        assert result.exit_code == 0
        assert "sshd" in result.output
        assert "85%" in result.output

    def test_history(self, runner, tmp_path, listening_port):
        config = write_config(tmp_path / "hhm.yaml", [("web", listening_port)], tmp_path / "health.log")
        runner.invoke(main, ["check", "-c", config])
        result = runner.invoke(main, ["history", "-c", config, "-n", "1"])

        assert result.exit_code == 0
        assert "Health check PASSED" in result.output
        assert "Port OK" not in result.output

    def test_history_empty(self, runner, tmp_path, listening_port):
        config = write_config(tmp_path / "hhm.yaml", [("web", listening_port)], tmp_path / "health.log")
        result = runner.invoke(main, ["history", "-c", config])
        assert "No health history available" in result.output

    def test_init(self, runner, tmp_path):
        output = tmp_path / "hhm.yaml"
        result = runner.invoke(main, ["init", "-o", str(output)])
        assert result.exit_code == 0
        assert MonitorConfig.from_yaml(output).get_probe("nginx") is not None

        again = runner.invoke(main, ["init", "-o", str(output)])
        assert again.exit_code == 1
        assert "already exists" in again.output

        forced = runner.invoke(main, ["init", "-o", str(output), "--force"])
        assert forced.exit_code == 0

    def test_add_service(self, runner, tmp_path, listening_port):
        log_file = tmp_path / "health.log"
        config = write_config(tmp_path / "hhm.yaml", [("web", listening_port)], log_file)
        result = runner.invoke(main, ["add-service", "nginx", "Web Server", "-c", config])

        assert result.exit_code == 0
        probe = MonitorConfig.from_yaml(config).get_probe("nginx")
        assert probe.type == "service"
        assert probe.description == "Web Server"
        assert "Added service: nginx" in log_file.read_text()

        duplicate = runner.invoke(main, ["add-service", "nginx", "Web Server", "-c", config])
        assert duplicate.exit_code == 1
