"""Base probe interface."""

import logging
from abc import ABC, abstractmethod
from typing import NamedTuple

from host_health_monitor.exceptions import ToolingUnavailable
from host_health_monitor.models import Measurement, ProbeKind, Unknown

logger = logging.getLogger(__name__)


class Sample(NamedTuple):
    """One report entry produced by a probe."""

    name: str
    measurement: Measurement
    description: str = ""
    target: str = ""  # service, port or mountpoint named in the health log


class BaseProbe(ABC):
    """Abstract base class for system probes.

    Probes are stateless and read-only: every call re-samples the live system.
    """

    kind: ProbeKind = ProbeKind.NUMERIC
    category: str = ""
    target: str = ""

    def __init__(self, name: str, description: str = "") -> None:
        self.name = name
        self.description = description

    def sample(self) -> Measurement:
        """Sample the system once.

        Never raises for a value that is merely unavailable; that becomes an
        ``Unknown`` measurement instead.
        """
        try:
            return self._sample()
        except ToolingUnavailable as e:
            logger.warning(f"Probe {self.name} degraded: {e}")
            return Unknown(str(e))

    def sample_all(self) -> list[Sample]:
        """All report entries for this probe, in display order."""
        return [Sample(self.name, self.sample(), self.description, self.target)]

    @abstractmethod
    def _sample(self) -> Measurement:
        """Take the measurement.

        Raises:
            ToolingUnavailable: If the data source is missing on this host.
        """
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
