"""System probes."""

from host_health_monitor.config import ProbeConfig
from host_health_monitor.exceptions import ConfigurationError
from host_health_monitor.probes.base import BaseProbe, Sample
from host_health_monitor.probes.network import PortProbe
from host_health_monitor.probes.service import ServiceProbe
from host_health_monitor.probes.system import CpuLoadProbe, DiskProbe, MemoryProbe

__all__ = [
    "BaseProbe",
    "CpuLoadProbe",
    "DiskProbe",
    "MemoryProbe",
    "PortProbe",
    "Sample",
    "ServiceProbe",
    "build_probe",
]


def build_probe(probe: ProbeConfig, disk_pattern: str = r"^/dev/") -> BaseProbe:
    """Create the probe implementation for a configured probe."""
    if probe.type == "cpu":
        return CpuLoadProbe(probe.name, probe.description)
    if probe.type == "memory":
        return MemoryProbe(probe.name, probe.description)
    if probe.type == "disk":
        return DiskProbe(probe.name, probe.description, pattern=disk_pattern)
    if probe.type == "service":
        return ServiceProbe(probe.name, str(probe.target), probe.description)
    if probe.type == "port":
        return PortProbe(probe.name, int(probe.target), host=probe.host, description=probe.description)
    raise ConfigurationError(f"Unknown probe type {probe.type!r} for {probe.name}")
