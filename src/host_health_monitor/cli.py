"""Command-line interface for Host Health Monitor."""

import json
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from host_health_monitor import __version__
from host_health_monitor.config import (
    PROBE_TYPES,
    MonitorConfig,
    ProbeConfig,
    create_example_config,
)
from host_health_monitor.exceptions import ConfigurationError
from host_health_monitor.healthlog import HealthLog, read_tail
from host_health_monitor.models import HealthReport, SystemStatus, Verdict
from host_health_monitor.monitor import HealthMonitor

console = Console()

EXIT_CODES = {
    SystemStatus.HEALTHY: 0,
    SystemStatus.CRITICAL: 1,
    SystemStatus.WARNING: 2,
}


def setup_logging(level: str) -> None:
    """Configure logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def verdict_color(verdict: Verdict) -> str:
    """Get Rich color for a probe verdict."""
    colors = {
        Verdict.OK: "green",
        Verdict.WARN: "yellow",
        Verdict.CRIT: "red",
    }
    return colors.get(verdict, "white")


def status_color(status: SystemStatus) -> str:
    """Get Rich color for the headline status."""
    colors = {
        SystemStatus.HEALTHY: "green",
        SystemStatus.WARNING: "yellow",
        SystemStatus.CRITICAL: "red",
    }
    return colors.get(status, "white")


def create_report_table(report: HealthReport) -> Table:
    """Create a Rich table with one row per probe result."""
    table = Table(title="Health Check Results", show_header=True, header_style="bold")

    table.add_column("Probe", style="cyan", no_wrap=True)
    table.add_column("Description")
    table.add_column("Status", justify="center")
    table.add_column("Value", justify="right")

    for result in report.results:
        style = verdict_color(result.verdict)
        value = result.measurement.display()
        if result.error:
            value = f"failed: {result.error}"
        table.add_row(
            result.probe_name,
            result.description or "-",
            Text(result.verdict.label, style=style),
            Text(value, style=style if result.verdict != Verdict.OK else ""),
        )

    return table


def create_summary_panel(report: HealthReport) -> Panel:
    """Create a summary panel."""
    status = report.headline
    color = status_color(status)

    summary_parts = [
        f"[bold]System Status:[/bold] [{color}]{status.value.upper()}[/]",
        f"[bold]Probes:[/bold] {len(report.results)} checked, "
        f"[red]{report.issue_count}[/] issues, "
        f"[yellow]{report.warning_count}[/] warnings",
        f"[bold]Last Check:[/bold] {report.generated_at.strftime('%Y-%m-%d %H:%M:%S')}",
    ]

    alerts = report.get_alerts()
    if alerts:
        summary_parts.append("")
        summary_parts.append(f"[bold red]Alerts ({len(alerts)}):[/]")
        for msg in alerts[:5]:  # Show max 5 alerts
            summary_parts.append(f"  • {msg}")
        if len(alerts) > 5:
            summary_parts.append(f"  ... and {len(alerts) - 5} more")
    elif status == SystemStatus.HEALTHY:
        summary_parts.append("[green]No critical issues found[/]")

    return Panel(
        "\n".join(summary_parts),
        title="Health Check Summary",
        border_style=color,
    )


def render_report(report: HealthReport) -> Group:
    return Group(create_summary_panel(report), create_report_table(report))


def load_config(path: Optional[str]) -> MonitorConfig:
    """Load config from ``path`` or default locations, exiting on bad config."""
    try:
        return MonitorConfig.discover(path)
    except ConfigurationError as e:
        console.print(f"[red]Invalid configuration: {e}[/]")
        sys.exit(1)


def build_monitor(cfg: MonitorConfig, log: bool = True) -> HealthMonitor:
    health_log = HealthLog(cfg.log_file) if log else None
    try:
        return HealthMonitor(cfg, health_log=health_log)
    except ConfigurationError as e:
        console.print(f"[red]Invalid configuration: {e}[/]")
        sys.exit(1)


config_option = click.option(
    "-c", "--config",
    type=click.Path(exists=True),
    help="Path to configuration file",
)
log_level_option = click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level",
)


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """Host Health Monitor - single-host health checks and alerting."""
    pass


@main.command()
@config_option
@click.option(
    "--only",
    multiple=True,
    help=f"Only run probes of this type or name ({', '.join(PROBE_TYPES)}); can repeat",
)
@click.option(
    "--json", "output_json",
    is_flag=True,
    help="Output in JSON format",
)
@click.option(
    "--no-log",
    is_flag=True,
    help="Do not append results to the health log",
)
@log_level_option
def check(
    config: Optional[str],
    only: tuple,
    output_json: bool,
    no_log: bool,
    log_level: str,
) -> None:
    """Run a full health check (or a subset with --only)."""
    setup_logging(log_level)
    cfg = load_config(config)
    monitor = build_monitor(cfg, log=not no_log)

    if only and not monitor.assembler.subset(only).probes:
        console.print(f"[red]No configured probe matches: {', '.join(only)}[/]")
        sys.exit(1)

    try:
        report = monitor.check(only=only)
    finally:
        if monitor.health_log is not None:
            monitor.health_log.close()

    if output_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        console.print(create_summary_panel(report))
        console.print(create_report_table(report))

    # Exit with error code if the system is not healthy
    sys.exit(EXIT_CODES[report.headline])


@main.command()
@config_option
@click.option(
    "--interval", "-i",
    type=float,
    help="Seconds between passes (default: check_interval from config)",
)
@click.option(
    "--realtime",
    is_flag=True,
    help="Live in-place display using the realtime interval",
)
@click.option(
    "--count", "-n",
    type=click.IntRange(min=1),
    help="Stop after this many passes",
)
@log_level_option
def watch(
    config: Optional[str],
    interval: Optional[float],
    realtime: bool,
    count: Optional[int],
    log_level: str,
) -> None:
    """Continuously monitor health until interrupted."""
    setup_logging(log_level)
    cfg = load_config(config)
    monitor = build_monitor(cfg)

    if interval is None:
        interval = cfg.realtime_interval if realtime else cfg.check_interval
    if interval <= 0:
        console.print("[red]Interval must be positive[/]")
        sys.exit(1)

    live: Live | None = None

    def show(report: HealthReport) -> None:
        if live is not None:
            live.update(render_report(report))
        else:
            console.clear()
            console.print(render_report(report))

    loop = monitor.watch(interval=interval, on_report=show)

    def handle_signal(signum, frame) -> None:
        loop.stop()

    previous = {
        sig: signal.signal(sig, handle_signal) for sig in (signal.SIGINT, signal.SIGTERM)
    }
    console.print(f"[dim]Watching health status (interval: {interval:g}s, Ctrl+C to stop)[/]")
    try:
        if realtime:
            with Live(console=console, refresh_per_second=4) as live:
                loop.start(max_passes=count)
        else:
            loop.start(max_passes=count)
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
        if monitor.health_log is not None:
            monitor.health_log.close()

    console.print(f"\n[dim]{loop.summary()}[/]")


@main.command()
@config_option
def thresholds(config: Optional[str]) -> None:
    """Show monitored probes and their alert thresholds."""
    cfg = load_config(config)

    table = Table(title="Monitored Probes", show_header=True, header_style="bold")
    table.add_column("Probe", style="cyan", no_wrap=True)
    table.add_column("Type")
    table.add_column("Description")
    table.add_column("Warning", justify="right")
    table.add_column("Critical", justify="right")

    for probe in cfg.probes:
        band = cfg.band_for(probe)
        if band is not None:
            warning, critical = f"{band.warning:g}%", f"{band.critical:g}%"
        else:
            warning, critical = "-", "down"
        target = ""
        if probe.type == "port":
            target = f" ({probe.host}:{probe.target})"
        table.add_row(probe.name, probe.type, f"{probe.description}{target}", warning, critical)

    console.print(table)
    console.print(
        f"[bold]Check interval:[/bold] {cfg.check_interval:g}s  "
        f"[bold]Realtime interval:[/bold] {cfg.realtime_interval:g}s  "
        f"[bold]Probe timeout:[/bold] {cfg.probe_timeout:g}s"
    )
    console.print(f"[bold]Health log:[/bold] {cfg.log_file}")


@main.command()
@config_option
@click.option(
    "--lines", "-n",
    default=20,
    type=click.IntRange(min=1),
    help="Number of records to show (default: 20)",
)
def history(config: Optional[str], lines: int) -> None:
    """Show recent health log records."""
    cfg = load_config(config)
    records = read_tail(cfg.log_file, lines)

    if not records:
        console.print("[dim]No health history available[/]")
        return

    for record in records:
        style = ""
        if "CRITICAL" in record or "DOWN" in record or "CLOSED" in record:
            style = "red"
        elif "WARNING" in record or "UNKNOWN" in record or "FAILED" in record:
            style = "yellow"
        console.print(Text(record, style=style))


@main.command("add-service")
@click.argument("name")
@click.argument("description")
@click.option(
    "-c", "--config",
    default="hhm.yaml",
    help="Configuration file to update (created if missing)",
)
def add_service(name: str, description: str, config: str) -> None:
    """Add a service to the monitored probes."""
    path = Path(config)
    try:
        cfg = MonitorConfig.from_yaml(path) if path.exists() else MonitorConfig()
        cfg.add_probe(ProbeConfig(name=name, type="service", description=description, target=name))
    except ConfigurationError as e:
        console.print(f"[red]{e}[/]")
        sys.exit(1)

    cfg.to_yaml(path)
    with HealthLog(cfg.log_file) as health_log:
        health_log.write(f"Added service: {name}")

    console.print(f"[green]Service added: {description}[/]")


@main.command()
@click.option(
    "-o", "--output",
    default="hhm.yaml",
    help="Output file path",
)
@click.option(
    "--force", "-f",
    is_flag=True,
    help="Overwrite existing file",
)
def init(output: str, force: bool) -> None:
    """Create an example configuration file."""
    path = Path(output)

    if path.exists() and not force:
        console.print(f"[red]File already exists: {path}[/]")
        console.print("Use --force to overwrite")
        sys.exit(1)

    example = create_example_config()
    example.to_yaml(path)

    console.print(f"[green]Created example configuration: {path}[/]")
    console.print("Edit this file to add your services, ports and thresholds.")


if __name__ == "__main__":
    main()
