"""Append-only health log file."""

import logging
from collections import deque
from pathlib import Path

from host_health_monitor.models import HealthReport, ProbeResult, Reachability, SystemStatus, Unknown

LOG_FORMAT = "[%(asctime)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

CATEGORY_LABELS = {
    "cpu": "CPU load",
    "memory": "Memory",
    "disk": "Disk",
    "service": "Service",
    "port": "Port",
}
DOWN_WORDS = {
    "service": "DOWN",
    "port": "CLOSED",
}


class HealthLog:
    """Plain-text sink: one timestamped record per line, never rewritten.

    Each instance owns a private logger so several logs (or tests) never share
    handlers through the logging registry.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

        self._handler = logging.FileHandler(self.path, mode="a", encoding="utf-8")
        self._handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        self._logger = logging.Logger(f"{__name__}[{self.path}]", level=logging.INFO)
        self._logger.addHandler(self._handler)

    def write(self, message: str) -> None:
        """Append a single record. Newlines are flattened to keep one record per line."""
        self._logger.info(" ".join(message.splitlines()))

    def log_result(self, result: ProbeResult) -> None:
        self.write(format_result(result))

    def log_report(self, report: HealthReport) -> None:
        """One line per result, then one line for the aggregate verdict."""
        for result in report.results:
            self.log_result(result)
        self.write(format_verdict(report))

    def tail(self, lines: int = 20) -> list[str]:
        return read_tail(self.path, lines)

    def close(self) -> None:
        self._logger.removeHandler(self._handler)
        self._handler.close()

    def __enter__(self) -> "HealthLog":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def format_result(result: ProbeResult) -> str:
    """Log line for a single probe evaluation."""
    label = CATEGORY_LABELS.get(result.category, "Probe")
    measurement = result.measurement

    if result.error:
        return f"{label} FAILED: {result.probe_name} ({result.error}) -> {result.verdict.label}"
    if isinstance(measurement, Unknown):
        return f"{label} UNKNOWN: {result.probe_name} ({measurement.reason})"
    if isinstance(measurement, Reachability):
        state = "OK" if measurement.reachable else DOWN_WORDS.get(result.category, "DOWN")
        return f"{label} {state}: {result.target or result.probe_name}"
    value = f"{measurement.value:.1f}%"
    if result.target:
        value = f"{result.target} {value}"
    return f"{label} {result.verdict.label}: {value}"


def format_verdict(report: HealthReport) -> str:
    """Log line for the aggregate verdict of a pass."""
    headline = report.headline
    if headline == SystemStatus.HEALTHY:
        text = "Health check PASSED - No issues"
    else:
        text = f"Health check {headline.value.upper()} - {report.issue_count} issues"
    if report.warning_count:
        text += f" ({report.warning_count} warnings)"
    return text


def read_tail(path: str | Path, lines: int = 20) -> list[str]:
    """Last ``lines`` records of a log file, oldest first."""
    path = Path(path)
    if not path.exists() or lines <= 0:
        return []
    with open(path, encoding="utf-8") as f:
        return [line.rstrip("\n") for line in deque(f, maxlen=lines)]
