"""Combine per-probe verdicts into a system verdict."""

from typing import Iterable

from host_health_monitor.models import ProbeResult, SystemStatus, Verdict

# Issue counts above this are a CRITICAL headline, 1..this is WARNING.
WARNING_ISSUE_LIMIT = 2


def aggregate(results: Iterable[ProbeResult]) -> tuple[Verdict, int]:
    """Return (overall verdict, issue count) for one pass.

    The overall verdict is the worst verdict seen. Only CRIT results count as
    issues; WARN results are reported but not counted.
    """
    overall = Verdict.OK
    issues = 0
    for result in results:
        overall = max(overall, result.verdict)
        if result.verdict == Verdict.CRIT:
            issues += 1
    return overall, issues


def headline_for(issue_count: int) -> SystemStatus:
    """Three-tier headline from the number of issues."""
    if issue_count <= 0:
        return SystemStatus.HEALTHY
    elif issue_count <= WARNING_ISSUE_LIMIT:
        return SystemStatus.WARNING
    return SystemStatus.CRITICAL
