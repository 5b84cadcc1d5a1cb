"""Configuration management for Host Health Monitor."""

import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from host_health_monitor.exceptions import ConfigurationError

PROBE_TYPES = ("cpu", "memory", "disk", "service", "port")
NUMERIC_TYPES = ("cpu", "memory", "disk")

# Critical thresholds per numeric probe type; warning defaults to critical - 10.
DEFAULT_CRITICAL = {
    "cpu": 80.0,
    "memory": 85.0,
    "disk": 90.0,
}
WARNING_GAP = 10.0

DEFAULT_CONFIG_PATHS = ["hhm.yaml", "hhm.yml", "~/.config/hhm/config.yaml"]


@dataclass(frozen=True)
class ThresholdBand:
    """Warning/critical boundaries for a numeric probe."""

    warning: float
    critical: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.warning) and math.isfinite(self.critical)):
            raise ConfigurationError(
                f"Threshold bounds must be finite numbers, got {self.warning}/{self.critical}"
            )
        if self.warning >= self.critical:
            raise ConfigurationError(
                f"Threshold warning ({self.warning}) must be below critical ({self.critical})"
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any] | float | int) -> "ThresholdBand":
        """Create from a mapping, or from a bare critical value."""
        if isinstance(data, (int, float)):
            data = {"critical": data}
        if not isinstance(data, dict) or "critical" not in data:
            raise ConfigurationError(f"Threshold band needs a 'critical' value: {data!r}")
        try:
            critical = float(data["critical"])
            warning = float(data.get("warning", critical - WARNING_GAP))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid threshold band {data!r}: {e}") from e
        return cls(warning=warning, critical=critical)

    @classmethod
    def default_for(cls, probe_type: str) -> "ThresholdBand":
        critical = DEFAULT_CRITICAL[probe_type]
        return cls(warning=critical - WARNING_GAP, critical=critical)

    def to_dict(self) -> dict[str, float]:
        return {"warning": self.warning, "critical": self.critical}


@dataclass(frozen=True)
class ProbeConfig:
    """One monitored probe.

    ``target`` is the service name for service probes and the port number for
    port probes. Resource probes ignore it.
    """

    name: str
    type: str
    description: str = ""
    target: str | int | None = None
    host: str = "localhost"

    @property
    def numeric(self) -> bool:
        return self.type in NUMERIC_TYPES

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProbeConfig":
        if not isinstance(data, dict):
            raise ConfigurationError(f"Probe entry must be a mapping: {data!r}")
        probe_type = data.get("type")
        if probe_type not in PROBE_TYPES:
            raise ConfigurationError(
                f"Unknown probe type {probe_type!r} (expected one of {', '.join(PROBE_TYPES)})"
            )

        target = data.get("target")
        if probe_type == "service":
            target = target or data.get("service") or data.get("name")
            if not target:
                raise ConfigurationError(f"Service probe needs a service name: {data!r}")
        elif probe_type == "port":
            target = _parse_port(target if target is not None else data.get("port"))

        name = data.get("name")
        if not name:
            name = f"port-{target}" if probe_type == "port" else str(target or probe_type)

        return cls(
            name=str(name),
            type=probe_type,
            description=data.get("description", ""),
            target=target,
            host=data.get("host", "localhost"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "type": self.type}
        if self.description:
            data["description"] = self.description
        if self.type == "service" and self.target != self.name:
            data["target"] = self.target
        if self.type == "port":
            data["port"] = self.target
            if self.host != "localhost":
                data["host"] = self.host
        return data


def _parse_port(value: Any) -> int:
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid port: {value!r}") from None
    if not 0 < port < 65536:
        raise ConfigurationError(f"Port out of range: {port}")
    return port


def default_probes() -> list[ProbeConfig]:
    """Probes monitored when the config names none."""
    return [
        ProbeConfig(name="cpu", type="cpu", description="CPU Load"),
        ProbeConfig(name="memory", type="memory", description="Memory"),
        ProbeConfig(name="disk", type="disk", description="Disk Space"),
        ProbeConfig(name="sshd", type="service", description="SSH Server", target="sshd"),
        ProbeConfig(name="cron", type="service", description="Cron Daemon", target="cron"),
        ProbeConfig(name="port-22", type="port", description="SSH", target=22),
        ProbeConfig(name="port-80", type="port", description="HTTP", target=80),
    ]


@dataclass
class MonitorConfig:
    """Main configuration for Host Health Monitor."""

    probes: list[ProbeConfig] = field(default_factory=default_probes)
    thresholds: dict[str, ThresholdBand] = field(default_factory=dict)
    check_interval: float = 30.0  # seconds, background monitoring
    realtime_interval: float = 2.0  # seconds, interactive display
    probe_timeout: float = 5.0
    parallel_checks: bool = True
    max_workers: int = 8
    disk_pattern: str = r"^/dev/"
    log_file: str = "logs/health_check.log"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Fail fast on anything that would make the engine misclassify."""
        seen: set[str] = set()
        for probe in self.probes:
            if probe.name in seen:
                raise ConfigurationError(f"Duplicate probe name: {probe.name}")
            seen.add(probe.name)
            if probe.type not in PROBE_TYPES:
                raise ConfigurationError(f"Unknown probe type {probe.type!r} for {probe.name}")

        for name, interval in (
            ("check_interval", self.check_interval),
            ("realtime_interval", self.realtime_interval),
            ("probe_timeout", self.probe_timeout),
        ):
            if interval <= 0:
                raise ConfigurationError(f"{name} must be positive, got {interval}")
        if self.max_workers < 1:
            raise ConfigurationError(f"max_workers must be at least 1, got {self.max_workers}")

        try:
            re.compile(self.disk_pattern)
        except re.error as e:
            raise ConfigurationError(f"Invalid disk_pattern {self.disk_pattern!r}: {e}") from e

    @classmethod
    def from_yaml(cls, path: str | Path) -> "MonitorConfig":
        """Load configuration from YAML file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MonitorConfig":
        """Create configuration from dictionary."""
        if "probes" in data:
            probes = [ProbeConfig.from_dict(p) for p in data["probes"] or []]
        else:
            probes = default_probes()

        thresholds = {
            name: ThresholdBand.from_dict(band)
            for name, band in (data.get("thresholds") or {}).items()
        }

        try:
            return cls(
                probes=probes,
                thresholds=thresholds,
                check_interval=float(data.get("check_interval", 30)),
                realtime_interval=float(data.get("realtime_interval", 2)),
                probe_timeout=float(data.get("probe_timeout", 5)),
                parallel_checks=bool(data.get("parallel_checks", True)),
                max_workers=int(data.get("max_workers", 8)),
                disk_pattern=data.get("disk_pattern", r"^/dev/"),
                log_file=data.get("log_file", "logs/health_check.log"),
                log_level=data.get("log_level", "INFO"),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration value: {e}") from e

    @classmethod
    def discover(cls, path: str | Path | None = None) -> "MonitorConfig":
        """Load from ``path``, else the first default location, else defaults."""
        if path:
            return cls.from_yaml(path)
        for default_path in DEFAULT_CONFIG_PATHS:
            candidate = Path(default_path).expanduser()
            if candidate.exists():
                return cls.from_yaml(candidate)
        return cls()

    def band_for(self, probe: ProbeConfig) -> ThresholdBand | None:
        """Band for a probe: by name, then by type, then the type default."""
        if not probe.numeric:
            return None
        if probe.name in self.thresholds:
            return self.thresholds[probe.name]
        if probe.type in self.thresholds:
            return self.thresholds[probe.type]
        return ThresholdBand.default_for(probe.type)

    def bands(self) -> dict[str, ThresholdBand]:
        """Resolved band for every numeric probe, keyed by probe name."""
        return {p.name: self.band_for(p) for p in self.probes if p.numeric}

    def get_probe(self, name: str) -> ProbeConfig | None:
        """Get probe by name."""
        for probe in self.probes:
            if probe.name == name:
                return probe
        return None

    def add_probe(self, probe: ProbeConfig) -> None:
        """Append a probe, keeping names unique."""
        if self.get_probe(probe.name) is not None:
            raise ConfigurationError(f"Duplicate probe name: {probe.name}")
        self.probes.append(probe)

    def to_yaml(self, path: str | Path) -> None:
        """Save configuration to YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            yaml.dump(self._to_dict(), f, default_flow_style=False, sort_keys=False)

    def _to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "probes": [p.to_dict() for p in self.probes],
            "thresholds": {name: band.to_dict() for name, band in self.thresholds.items()},
            "check_interval": self.check_interval,
            "realtime_interval": self.realtime_interval,
            "probe_timeout": self.probe_timeout,
            "parallel_checks": self.parallel_checks,
            "max_workers": self.max_workers,
            "disk_pattern": self.disk_pattern,
            "log_file": self.log_file,
            "log_level": self.log_level,
        }


def create_example_config() -> MonitorConfig:
    """Create an example configuration for documentation."""
    return MonitorConfig(
        probes=default_probes()
        + [
            ProbeConfig(name="nginx", type="service", description="Web Server", target="nginx"),
            ProbeConfig(name="port-443", type="port", description="HTTPS", target=443),
        ],
        thresholds={
            "cpu": ThresholdBand(warning=70.0, critical=80.0),
            "memory": ThresholdBand(warning=75.0, critical=85.0),
            "disk": ThresholdBand(warning=80.0, critical=90.0),
        },
    )
