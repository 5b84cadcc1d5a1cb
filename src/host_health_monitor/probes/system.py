"""Resource probes for the local system using psutil."""

import logging
import re

import psutil

from host_health_monitor.exceptions import ToolingUnavailable
from host_health_monitor.models import Measurement, Percentage, Unknown
from host_health_monitor.probes.base import BaseProbe, Sample

logger = logging.getLogger(__name__)

# Load can exceed one core many times over; cap only absurd readings.
MAX_LOAD_PERCENT = 1000.0


class CpuLoadProbe(BaseProbe):
    """1-minute load average as a percentage of logical CPU capacity."""

    category = "cpu"

    def _sample(self) -> Measurement:
        try:
            load = psutil.getloadavg()[0]
        except (AttributeError, OSError) as e:
            raise ToolingUnavailable(f"load average not available: {e}") from e

        cpu_count = psutil.cpu_count(logical=True) or 1
        percent = min(max(load / cpu_count * 100, 0.0), MAX_LOAD_PERCENT)
        return Percentage(round(percent, 1), used=load, total=cpu_count)


class MemoryProbe(BaseProbe):
    """Used memory as a percentage of total."""

    category = "memory"

    def _sample(self) -> Measurement:
        try:
            mem = psutil.virtual_memory()
        except OSError as e:
            raise ToolingUnavailable(f"memory accounting not available: {e}") from e

        if not mem.total:
            raise ToolingUnavailable("memory total reported as zero")
        percent = mem.used / mem.total * 100
        return Percentage(round(percent, 1), used=mem.used, total=mem.total, unit="B")


class DiskProbe(BaseProbe):
    """Usage of every mounted filesystem whose device matches a pattern.

    Each mount becomes its own report entry named ``<probe>:<mountpoint>``.
    """

    category = "disk"

    def __init__(self, name: str, description: str = "", pattern: str = r"^/dev/") -> None:
        super().__init__(name, description)
        self.pattern = re.compile(pattern)

    def mounts(self) -> list[str]:
        """Mountpoints of matching filesystems, duplicates removed."""
        try:
            partitions = psutil.disk_partitions(all=False)
        except OSError as e:
            raise ToolingUnavailable(f"cannot list partitions: {e}") from e

        mountpoints: list[str] = []
        for part in partitions:
            if self.pattern.search(part.device) and part.mountpoint not in mountpoints:
                mountpoints.append(part.mountpoint)
        return mountpoints

    def usage(self, mountpoint: str) -> Measurement:
        try:
            usage = psutil.disk_usage(mountpoint)
        except OSError as e:
            logger.warning(f"Cannot read disk usage for {mountpoint}: {e}")
            return Unknown(f"{mountpoint}: {e}")
        return Percentage(usage.percent, used=usage.used, total=usage.total, unit="B")

    def sample_all(self) -> list[Sample]:
        try:
            mountpoints = self.mounts()
        except ToolingUnavailable as e:
            return [Sample(self.name, Unknown(str(e)), self.description)]

        if not mountpoints:
            reason = f"no filesystem matches {self.pattern.pattern}"
            return [Sample(self.name, Unknown(reason), self.description)]

        prefix = self.description or self.name
        return [
            Sample(f"{self.name}:{mp}", self.usage(mp), f"{prefix} {mp}", mp)
            for mp in mountpoints
        ]

    def _sample(self) -> Measurement:
        raise NotImplementedError("DiskProbe reports one entry per mount; use sample_all()")
