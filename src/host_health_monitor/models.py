"""Data models for health monitoring."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Union


class ProbeKind(str, Enum):
    """What a probe measures."""

    NUMERIC = "numeric"
    BOOLEAN = "boolean"


class Verdict(IntEnum):
    """Severity of a single probe result.

    Integer-valued so that ``max()`` over a pass gives the overall verdict.
    """

    OK = 0
    WARN = 1
    CRIT = 2

    @property
    def label(self) -> str:
        return {Verdict.OK: "OK", Verdict.WARN: "WARNING", Verdict.CRIT: "CRITICAL"}[self]


class SystemStatus(str, Enum):
    """System-level headline derived from the issue count."""

    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class Percentage:
    """A ratio in percent, with an optional raw (used, total) pair for display."""

    value: float
    used: float | None = None
    total: float | None = None
    unit: str | None = None  # "B" for byte counts

    def display(self) -> str:
        text = f"{self.value:.1f}%"
        if self.used is None or self.total is None:
            return text
        if self.unit == "B":
            gb = 1024**3
            return f"{text} ({self.used / gb:.1f} GB / {self.total / gb:.1f} GB)"
        return f"{text} ({self.used:.2f}/{self.total:g})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "percentage",
            "value": self.value,
            "used": self.used,
            "total": self.total,
            "unit": self.unit,
        }


@dataclass(frozen=True)
class Reachability:
    """Boolean liveness of a service or port."""

    reachable: bool
    detail: str | None = None

    def display(self) -> str:
        if self.detail:
            return self.detail
        return "up" if self.reachable else "down"

    def to_dict(self) -> dict[str, Any]:
        return {"type": "reachability", "reachable": self.reachable, "detail": self.detail}


@dataclass(frozen=True)
class Unknown:
    """Sentinel for a value that could not be sampled."""

    reason: str

    def display(self) -> str:
        return f"unknown ({self.reason})"

    def to_dict(self) -> dict[str, Any]:
        return {"type": "unknown", "reason": self.reason}


Measurement = Union[Percentage, Reachability, Unknown]


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of sampling and classifying one probe entry."""

    probe_name: str
    measurement: Measurement
    verdict: Verdict
    timestamp: datetime = field(default_factory=datetime.now)
    description: str = ""
    category: str = ""  # probe type: cpu, memory, disk, service, port
    error: str | None = None
    target: str = ""  # service, port or mountpoint, empty for host-wide probes

    @property
    def failed(self) -> bool:
        """True when the probe itself broke (timeout, invalid value, crash)."""
        return self.error is not None

    @property
    def title(self) -> str:
        return self.description or self.probe_name

    def alert_message(self) -> str | None:
        """Human-readable alert for non-OK results, None when OK."""
        if self.verdict == Verdict.OK:
            return None
        level = self.verdict.label
        if self.error:
            return f"{level}: {self.title} check failed ({self.error})"
        if isinstance(self.measurement, Unknown):
            return f"{level}: {self.title} unavailable ({self.measurement.reason})"
        if isinstance(self.measurement, Reachability):
            return f"{level}: {self.title} is {self.measurement.display()}"
        return f"{level}: {self.title} at {self.measurement.value:.1f}%"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.probe_name,
            "description": self.description,
            "category": self.category,
            "verdict": self.verdict.label,
            "timestamp": self.timestamp.isoformat(),
            "measurement": self.measurement.to_dict(),
            "error": self.error,
            "target": self.target,
        }


@dataclass(frozen=True)
class HealthReport:
    """Immutable snapshot of one evaluation pass."""

    results: tuple[ProbeResult, ...]
    issue_count: int
    overall: Verdict
    generated_at: datetime = field(default_factory=datetime.now)

    @property
    def headline(self) -> SystemStatus:
        from host_health_monitor.aggregator import headline_for

        return headline_for(self.issue_count)

    @property
    def warning_count(self) -> int:
        return sum(1 for r in self.results if r.verdict == Verdict.WARN)

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results if r.failed)

    def get_result(self, probe_name: str) -> ProbeResult | None:
        """Get a result by entry name."""
        for result in self.results:
            if result.probe_name == probe_name:
                return result
        return None

    def get_alerts(self) -> list[str]:
        """Get alert messages for every non-OK result, in report order."""
        return [msg for msg in (r.alert_message() for r in self.results) if msg]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "generated_at": self.generated_at.isoformat(),
            "status": self.headline.value,
            "overall": self.overall.label,
            "summary": {
                "total": len(self.results),
                "issues": self.issue_count,
                "warnings": self.warning_count,
                "failed_probes": self.failed_count,
            },
            "results": [r.to_dict() for r in self.results],
            "alerts": self.get_alerts(),
        }
