"""Classify measurements against threshold bands."""

from host_health_monitor.config import ThresholdBand
from host_health_monitor.exceptions import ConfigurationError, InvalidMeasurement
from host_health_monitor.models import Measurement, Percentage, Reachability, Unknown, Verdict


def evaluate(measurement: Measurement, band: ThresholdBand | None = None) -> Verdict:
    """Map a raw measurement to a verdict.

    Numeric values use the two-tier band (critical is inclusive, no upper cap).
    Booleans have no warning tier: reachable is OK, anything else is CRIT.
    Unknown measurements are WARN so missing tooling stays visible.

    Raises:
        InvalidMeasurement: For negative or non-finite percentages.
        ConfigurationError: For a numeric measurement without a band.
    """
    if isinstance(measurement, Unknown):
        return Verdict.WARN

    if isinstance(measurement, Reachability):
        return Verdict.OK if measurement.reachable else Verdict.CRIT

    if isinstance(measurement, Percentage):
        value = measurement.value
        if value != value or value in (float("inf"), float("-inf")):
            raise InvalidMeasurement(f"Non-finite measurement: {value}")
        if value < 0:
            raise InvalidMeasurement(f"Negative measurement: {value}")
        if band is None:
            raise ConfigurationError("Numeric measurement has no threshold band")
        if value >= band.critical:
            return Verdict.CRIT
        elif value >= band.warning:
            return Verdict.WARN
        return Verdict.OK

    raise InvalidMeasurement(f"Unsupported measurement type: {type(measurement).__name__}")
