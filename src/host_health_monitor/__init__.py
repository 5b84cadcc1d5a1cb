"""
Host Health Monitor - single-host health checks with threshold alerts.

Samples CPU load, memory, disk, service liveness and port reachability,
classifies each against warning/critical bands and aggregates them into one
system verdict, either once or in a cancellable polling loop with an
append-only health log.
"""

__version__ = "1.0.0"

from host_health_monitor.config import MonitorConfig, ProbeConfig, ThresholdBand
from host_health_monitor.models import HealthReport, ProbeResult, SystemStatus, Verdict
from host_health_monitor.monitor import ContinuousMonitor, HealthMonitor, ReportAssembler

__all__ = [
    "ContinuousMonitor",
    "HealthMonitor",
    "HealthReport",
    "MonitorConfig",
    "ProbeConfig",
    "ProbeResult",
    "ReportAssembler",
    "SystemStatus",
    "ThresholdBand",
    "Verdict",
]
