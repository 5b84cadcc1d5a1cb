"""Port reachability probe."""

import socket

from host_health_monitor.models import Measurement, ProbeKind, Reachability
from host_health_monitor.probes.base import BaseProbe

CONNECT_TIMEOUT = 2.0  # seconds


class PortProbe(BaseProbe):
    """TCP connect check. Timeout or refusal means closed, never an error."""

    kind = ProbeKind.BOOLEAN
    category = "port"

    def __init__(
        self,
        name: str,
        port: int,
        host: str = "localhost",
        description: str = "",
        timeout: float = CONNECT_TIMEOUT,
    ) -> None:
        super().__init__(name, description)
        self.port = port
        self.target = str(port)
        self.host = host
        self.timeout = timeout

    def _sample(self) -> Measurement:
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout):
                return Reachability(True, "open")
        except OSError:
            return Reachability(False, "closed")
