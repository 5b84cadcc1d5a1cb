"""Exception types raised by the health engine."""


class HealthMonitorError(Exception):
    """Base class for all health monitor errors."""


class ProbeTimeout(HealthMonitorError):
    """A probe did not finish within its time bound."""

    def __init__(self, probe_name: str, timeout: float) -> None:
        super().__init__(f"Probe '{probe_name}' timed out after {timeout:.1f}s")
        self.probe_name = probe_name
        self.timeout = timeout


class InvalidMeasurement(HealthMonitorError):
    """A probe produced a value outside its domain (e.g. a negative percentage)."""


class ToolingUnavailable(HealthMonitorError):
    """A system utility or API needed by a probe is missing on this host."""


class ConfigurationError(HealthMonitorError):
    """Configuration is malformed. Raised at startup, never during a pass."""


class MonitorStateError(HealthMonitorError):
    """Illegal transition of the continuous monitor loop."""
