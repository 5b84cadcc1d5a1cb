"""Shared fixtures."""

import socket
import time

import pytest

from host_health_monitor.config import ThresholdBand
from host_health_monitor.models import Measurement, ProbeKind
from host_health_monitor.probes.base import BaseProbe


class StaticProbe(BaseProbe):
    """Probe returning a fixed measurement, optionally slow or failing."""

    def __init__(
        self,
        name: str,
        measurement: Measurement | None = None,
        kind: ProbeKind = ProbeKind.NUMERIC,
        category: str = "",
        description: str = "",
        delay: float = 0.0,
        error: Exception | None = None,
    ) -> None:
        super().__init__(name, description)
        self.measurement = measurement
        self.kind = kind
        self.category = category
        self.delay = delay
        self.error = error
        self.calls = 0

    def _sample(self) -> Measurement:
        self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.measurement


@pytest.fixture
def make_probe():
    """Factory for StaticProbe instances."""
    return StaticProbe


@pytest.fixture
def bands():
    return {
        "cpu": ThresholdBand(warning=70.0, critical=80.0),
        "memory": ThresholdBand(warning=75.0, critical=85.0),
        "disk": ThresholdBand(warning=80.0, critical=90.0),
    }


@pytest.fixture
def listening_port():
    """A localhost TCP port accepting connections."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server:
        server.bind(("127.0.0.1", 0))
        server.listen(8)
        yield server.getsockname()[1]


@pytest.fixture
def closed_port():
    """A localhost TCP port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return port
