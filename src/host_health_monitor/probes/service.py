"""Service liveness probe."""

import logging
import os
import shutil
import subprocess

import psutil

from host_health_monitor.models import Measurement, ProbeKind, Reachability
from host_health_monitor.probes.base import BaseProbe

logger = logging.getLogger(__name__)

SYSTEMCTL_TIMEOUT = 2  # seconds


class ServiceProbe(BaseProbe):
    """A service is alive if systemd says so OR a matching process exists.

    The process fallback keeps the probe useful on hosts without a service
    manager (containers, macOS).
    """

    kind = ProbeKind.BOOLEAN
    category = "service"

    def __init__(self, name: str, service: str, description: str = "") -> None:
        super().__init__(name, description)
        self.service = service
        self.target = service

    def _sample(self) -> Measurement:
        if self.service_manager_active():
            return Reachability(True, "running")

        pid = self.find_process()
        if pid is not None:
            return Reachability(True, f"running (pid {pid})")
        return Reachability(False, "not running")

    def service_manager_active(self) -> bool:
        """Ask systemd whether the unit is active."""
        systemctl = shutil.which("systemctl")
        if systemctl is None:
            return False
        try:
            result = subprocess.run(
                [systemctl, "is-active", "--quiet", self.service],
                capture_output=True,
                timeout=SYSTEMCTL_TIMEOUT,
            )
        except (subprocess.TimeoutExpired, OSError) as e:
            logger.debug(f"systemctl check for {self.service} failed: {e}")
            return False
        return result.returncode == 0

    def find_process(self) -> int | None:
        """PID of a process whose name (or argv[0]) is exactly the service name."""
        wanted = self.service.lower()
        for proc in psutil.process_iter(["pid", "name", "cmdline"]):
            try:
                name = (proc.info.get("name") or "").lower()
                cmdline = proc.info.get("cmdline") or []
                argv0 = os.path.basename(cmdline[0]).lower() if cmdline else ""

                if wanted in (name, argv0):
                    return proc.info["pid"]
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                continue
        return None
