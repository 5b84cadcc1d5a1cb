"""Core health monitoring logic."""

import logging
import math
import queue
import threading
import time
from concurrent.futures import Future, wait
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, Mapping, Sequence

from host_health_monitor.aggregator import aggregate
from host_health_monitor.config import MonitorConfig, ThresholdBand
from host_health_monitor.evaluator import evaluate
from host_health_monitor.exceptions import (
    ConfigurationError,
    InvalidMeasurement,
    MonitorStateError,
    ProbeTimeout,
)
from host_health_monitor.healthlog import HealthLog
from host_health_monitor.models import HealthReport, ProbeKind, ProbeResult, Unknown, Verdict
from host_health_monitor.probes import BaseProbe, Sample, build_probe

logger = logging.getLogger(__name__)


class ReportAssembler:
    """Runs every probe once and builds a HealthReport."""

    def __init__(
        self,
        probes: Sequence[BaseProbe],
        bands: Mapping[str, ThresholdBand],
        probe_timeout: float = 5.0,
        max_workers: int = 8,
    ) -> None:
        """Initialize assembler.

        Args:
            probes: Probes in display order. Names must be unique.
            bands: Threshold band per numeric probe name.
            probe_timeout: Seconds a single probe may run.
            max_workers: Probes sampled concurrently; 1 means sequential.

        Raises:
            ConfigurationError: On duplicate names or a numeric probe without a band.
        """
        names = [p.name for p in probes]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ConfigurationError(f"Duplicate probe names: {', '.join(sorted(duplicates))}")
        for probe in probes:
            if probe.kind == ProbeKind.NUMERIC and probe.name not in bands:
                raise ConfigurationError(f"No threshold band for numeric probe: {probe.name}")
        if probe_timeout <= 0:
            raise ConfigurationError(f"probe_timeout must be positive, got {probe_timeout}")

        self.probes = tuple(probes)
        self.bands = dict(bands)
        self.probe_timeout = probe_timeout
        self.max_workers = max(1, max_workers)
        self._in_flight: dict[str, Future] = {}

    def subset(self, categories: Iterable[str]) -> "ReportAssembler":
        """Assembler over the probes of the given categories only."""
        wanted = set(categories)
        return ReportAssembler(
            [p for p in self.probes if p.category in wanted or p.name in wanted],
            self.bands,
            probe_timeout=self.probe_timeout,
            max_workers=self.max_workers,
        )

    def assemble(self) -> HealthReport:
        """Sample, evaluate and aggregate all probes.

        A failing probe never aborts the pass: its entry is recorded as WARN with
        the failure attached, and every other probe is still evaluated. A probe
        still hung from an earlier pass is not sampled again until it returns.
        """
        results: list[ProbeResult] = []
        started_at: dict[str, float] = {}
        futures: dict[str, Future] = {}
        jobs: queue.SimpleQueue = queue.SimpleQueue()

        for probe in self.probes:
            previous = self._in_flight.get(probe.name)
            if previous is not None and not previous.done():
                continue
            futures[probe.name] = Future()
            jobs.put((probe, futures[probe.name]))

        pass_deadline = time.monotonic()
        if futures:
            workers = min(self.max_workers, len(futures))
            pass_deadline += self.probe_timeout * math.ceil(len(futures) / workers)
            # Daemon threads: an abandoned hung probe must not hold up interpreter exit.
            for i in range(workers):
                threading.Thread(
                    target=self._worker,
                    args=(jobs, started_at),
                    name=f"probe-{i}",
                    daemon=True,
                ).start()

        for probe in self.probes:
            future = futures.get(probe.name)
            if future is None:
                logger.warning(f"Probe {probe.name} skipped: previous sample still running")
                results.append(self._failure(probe, "previous sample still running"))
            else:
                results.extend(self._collect(probe, future, started_at, pass_deadline))

        self._in_flight.update(futures)
        self._in_flight = {name: f for name, f in self._in_flight.items() if not f.done()}

        overall, issue_count = aggregate(results)
        report = HealthReport(
            results=tuple(results),
            issue_count=issue_count,
            overall=overall,
            generated_at=datetime.now(),
        )
        logger.info(
            f"Health pass complete: {report.headline.value} "
            f"({issue_count} issues, {report.warning_count} warnings)"
        )
        return report

    @staticmethod
    def _worker(jobs: queue.SimpleQueue, started_at: dict[str, float]) -> None:
        while True:
            try:
                probe, future = jobs.get_nowait()
            except queue.Empty:
                return
            if not future.set_running_or_notify_cancel():
                continue
            started_at[probe.name] = time.monotonic()
            try:
                future.set_result(probe.sample_all())
            except Exception as e:
                future.set_exception(e)

    def _wait(
        self,
        probe: BaseProbe,
        future: Future,
        started_at: dict[str, float],
        pass_deadline: float,
    ) -> list[Sample]:
        """Result of a probe task, bounded by the probe's own timeout.

        Probes still queued behind stuck workers are bounded by the pass deadline.
        """
        while not future.done():
            begun = started_at.get(probe.name)
            deadline = begun + self.probe_timeout if begun is not None else pass_deadline
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                future.cancel()
                raise ProbeTimeout(probe.name, self.probe_timeout)
            wait([future], timeout=remaining)
        return future.result()

    def _collect(
        self,
        probe: BaseProbe,
        future: Future,
        started_at: dict[str, float],
        pass_deadline: float,
    ) -> list[ProbeResult]:
        try:
            samples = self._wait(probe, future, started_at, pass_deadline)
        except ProbeTimeout as e:
            logger.warning(str(e))
            return [self._failure(probe, "timeout")]
        except InvalidMeasurement as e:
            logger.warning(f"Probe {probe.name} produced an invalid measurement: {e}")
            return [self._failure(probe, f"invalid measurement: {e}")]
        except Exception as e:
            logger.error(f"Probe {probe.name} failed: {e}")
            return [self._failure(probe, f"{type(e).__name__}: {e}")]

        return [self._evaluate(probe, sample) for sample in samples]

    def _evaluate(self, probe: BaseProbe, sample: Sample) -> ProbeResult:
        error = None
        try:
            verdict = evaluate(sample.measurement, self.bands.get(probe.name))
        except InvalidMeasurement as e:
            logger.warning(f"Probe {sample.name} produced an invalid measurement: {e}")
            verdict = Verdict.WARN
            error = f"invalid measurement: {e}"

        logger.debug(f"{sample.name}: {sample.measurement.display()} -> {verdict.label}")
        return ProbeResult(
            probe_name=sample.name,
            measurement=sample.measurement,
            verdict=verdict,
            timestamp=datetime.now(),
            description=sample.description or probe.description,
            category=probe.category,
            target=sample.target,
            error=error,
        )

    @staticmethod
    def _failure(probe: BaseProbe, error: str) -> ProbeResult:
        return ProbeResult(
            probe_name=probe.name,
            measurement=Unknown(error),
            verdict=Verdict.WARN,
            timestamp=datetime.now(),
            description=probe.description,
            category=probe.category,
            target=probe.target,
            error=error,
        )


class MonitorState(str, Enum):
    """Lifecycle of a continuous monitor."""

    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class ContinuousMonitor:
    """Fixed-interval polling loop with cooperative cancellation.

    The stop signal is only observed between passes, so a pass in flight always
    completes and is logged. A stopped monitor cannot be restarted.
    """

    def __init__(
        self,
        assembler: ReportAssembler,
        interval: float,
        health_log: HealthLog | None = None,
        on_report: Callable[[HealthReport], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval <= 0:
            raise ConfigurationError(f"Monitor interval must be positive, got {interval}")
        self.assembler = assembler
        self.interval = interval
        self.health_log = health_log
        self.on_report = on_report
        self._clock = clock
        self._state = MonitorState.IDLE
        # Reentrant: stop() runs from signal handlers on the thread inside start().
        self._state_lock = threading.RLock()
        self._stop_event = threading.Event()
        self._passes = 0
        self._last_report: HealthReport | None = None

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def passes(self) -> int:
        return self._passes

    @property
    def last_report(self) -> HealthReport | None:
        return self._last_report

    def start(self, max_passes: int | None = None) -> int:
        """Run passes in the calling thread until stopped.

        Args:
            max_passes: Stop on its own after this many passes.

        Returns:
            Number of passes completed.

        Raises:
            MonitorStateError: If the monitor is not idle.
        """
        with self._state_lock:
            if self._state != MonitorState.IDLE:
                raise MonitorStateError(f"Cannot start a monitor in state {self._state.value}")
            self._state = MonitorState.RUNNING

        logger.info(f"Continuous monitoring started (interval: {self.interval:g}s)")
        self._write(f"Continuous monitor started ({self.interval:g}s interval)")
        try:
            while not self._stop_event.is_set():
                cycle_start = self._clock()
                self._run_pass()

                if max_passes is not None and self._passes >= max_passes:
                    break

                # Next tick is measured from cycle start so slow passes don't compound.
                remaining = self.interval - (self._clock() - cycle_start)
                if remaining > 0:
                    self._stop_event.wait(remaining)
        finally:
            with self._state_lock:
                self._state = MonitorState.STOPPED
            self._write(self.summary())
            logger.info(self.summary())

        return self._passes

    def stop(self) -> None:
        """Request the loop to stop at the next tick boundary."""
        self._stop_event.set()
        with self._state_lock:
            if self._state == MonitorState.IDLE:
                self._state = MonitorState.STOPPED

    def summary(self) -> str:
        text = f"Continuous monitor stopped after {self._passes} passes"
        if self._last_report is not None:
            text += f" (last status: {self._last_report.headline.value.upper()})"
        return text

    def _run_pass(self) -> None:
        report = self.assembler.assemble()
        self._passes += 1
        self._last_report = report

        if self.health_log is not None:
            self.health_log.log_report(report)

        if self.on_report is not None:
            try:
                self.on_report(report)
            except Exception as e:
                logger.error(f"Report callback failed: {e}")

    def _write(self, message: str) -> None:
        if self.health_log is not None:
            self.health_log.write(message)


class HealthMonitor:
    """Main health monitoring orchestrator."""

    def __init__(self, config: MonitorConfig, health_log: HealthLog | None = None) -> None:
        """Initialize health monitor.

        Args:
            config: Configuration object.
            health_log: Optional append-only log receiving every pass.
        """
        self.config = config
        self.health_log = health_log
        self.probes = [build_probe(p, config.disk_pattern) for p in config.probes]
        self.assembler = ReportAssembler(
            self.probes,
            config.bands(),
            probe_timeout=config.probe_timeout,
            max_workers=config.max_workers if config.parallel_checks else 1,
        )
        self._last_report: HealthReport | None = None

    def check(self, only: Iterable[str] | None = None) -> HealthReport:
        """Run one health pass.

        Args:
            only: Restrict to these probe types or names.
        """
        only = list(only or [])
        assembler = self.assembler.subset(only) if only else self.assembler
        report = assembler.assemble()
        self._last_report = report

        if self.health_log is not None:
            self.health_log.log_report(report)
        return report

    def watch(
        self,
        interval: float | None = None,
        on_report: Callable[[HealthReport], None] | None = None,
    ) -> ContinuousMonitor:
        """Create a continuous monitor over the configured probes (not started)."""
        return ContinuousMonitor(
            self.assembler,
            interval or self.config.check_interval,
            health_log=self.health_log,
            on_report=on_report,
        )

    def get_last_report(self) -> HealthReport | None:
        """Get the last one-shot report."""
        return self._last_report

    def get_summary(self) -> dict:
        """Get a summary of the last health check."""
        if not self._last_report:
            return {
                "status": "unknown",
                "message": "No health check has been performed yet",
            }

        report = self._last_report
        return {
            "status": report.headline.value,
            "overall": report.overall.label,
            "timestamp": report.generated_at.isoformat(),
            "probes": len(report.results),
            "issues": report.issue_count,
            "warnings": report.warning_count,
        }
