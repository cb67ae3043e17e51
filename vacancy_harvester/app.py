"""Typer CLI entrypoint for vacancy-harvester."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Optional, Sequence

import typer
from prometheus_client import start_http_server
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository, GlobalConfig
from .infra import SQLiteManager, VacancyRepository
from .logging_conf import (
    available_source_logs,
    configure_logging,
    global_log_path,
    source_log_path,
    tail_log,
)
from .models import BatchSummary, JobRecord, OutcomeStatus, SourceName
from .observability import CompositeObserver, LoggingObserver, PrometheusObserver
from .orchestrator import IngestionOrchestrator
from .scheduler import APSchedulerAdapter

app = typer.Typer(
    help="vacancy-harvester command line",
    no_args_is_help=True,
    rich_markup_mode=None,
)
vacancies_app = typer.Typer(
    name="vacancies",
    help="Query stored vacancies",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Inspect log files",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()

_STATUS_STYLES = {
    OutcomeStatus.SUCCEEDED: "green",
    OutcomeStatus.FAILED: "red",
    OutcomeStatus.SKIPPED: "yellow",
}


@dataclass
class AppState:
    config_repository: ConfigRepository
    config: GlobalConfig
    storage: SQLiteManager
    repository: VacancyRepository
    orchestrator: IngestionOrchestrator
    scheduler: APSchedulerAdapter
    metrics: PrometheusObserver


def build_state(verbose: bool) -> AppState:
    configure_logging(verbose=verbose)
    config_repository = ConfigRepository()
    config = config_repository.load_global_config()
    storage = SQLiteManager()
    repository = VacancyRepository(storage, config_repository.database_path())
    metrics = PrometheusObserver()
    orchestrator = IngestionOrchestrator(
        config,
        repository,
        observer=CompositeObserver([LoggingObserver(), metrics]),
    )
    return AppState(
        config_repository=config_repository,
        config=config,
        storage=storage,
        repository=repository,
        orchestrator=orchestrator,
        scheduler=APSchedulerAdapter(),
        metrics=metrics,
    )


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _render_summary_table(summary: BatchSummary) -> Table:
    table = Table(
        title=f"Batch · {len(summary.outcomes)} URL(s)",
        box=box.SIMPLE_HEAD,
    )
    table.add_column("URL", style="cyan", overflow="fold")
    table.add_column("Source", style="magenta")
    table.add_column("Status")
    table.add_column("Found", justify="right")
    table.add_column("Saved", justify="right", style="green")
    table.add_column("Error", style="red", overflow="fold")
    for outcome in summary.outcomes:
        style = _STATUS_STYLES.get(outcome.status, "")
        error = f"{outcome.error.kind}: {outcome.error}" if outcome.error else ""
        table.add_row(
            outcome.url,
            outcome.source_name.value,
            f"[{style}]{outcome.status.value}[/{style}]" if style else outcome.status.value,
            str(outcome.records_found),
            str(outcome.records_persisted),
            error,
        )
    return table


def _render_vacancies_table(records: Sequence[JobRecord]) -> Table:
    table = Table(title=f"Vacancies · {len(records)}", box=box.SIMPLE_HEAD)
    table.add_column("Title", style="cyan", overflow="fold")
    table.add_column("Company")
    table.add_column("City")
    table.add_column("Salary", style="green")
    table.add_column("Published", style="dim")
    table.add_column("Source", style="magenta")
    for record in records:
        table.add_row(
            record.title,
            record.company,
            record.city,
            record.salary_text or "-",
            record.published_at.strftime("%Y-%m-%d") if record.published_at else "-",
            record.source_name.value,
        )
    return table


def _parse_source(value: Optional[str]) -> Optional[SourceName]:
    if value is None:
        return None
    try:
        return SourceName(value.lower())
    except ValueError as exc:
        choices = ", ".join(s.value for s in SourceName if s is not SourceName.UNKNOWN)
        raise typer.BadParameter(f"Unknown source {value!r}; expected one of: {choices}") from exc


app.add_typer(vacancies_app, name="vacancies", help="List and summarise stored vacancies")
app.add_typer(log_app, name="log", help="Inspect or tail log files")


@app.callback()
def main(
    ctx: typer.Context, verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging", is_flag=True)
) -> None:
    ctx.obj = build_state(verbose)


@app.command("ingest", help="Run one ingestion batch over the given listing URLs.")
def ingest(
    ctx: typer.Context,
    urls: Optional[list[str]] = typer.Argument(
        None, help="Listing URLs; the configured schedule URLs are used when omitted."
    ),
    page_limit: Optional[int] = typer.Option(None, "--page-limit", min=1, help="Page limit hint."),
    as_json: bool = typer.Option(False, "--json", help="Print the summary as JSON.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    targets = list(urls) if urls else list(state.config.schedule.urls)
    try:
        summary = state.orchestrator.ingest(targets, page_limit_hint=page_limit)
    finally:
        state.orchestrator.close()
    if as_json:
        typer.echo(json.dumps(summary.as_dict(), ensure_ascii=False, indent=2))
        return
    console.print(_render_summary_table(summary))
    console.print(
        f"Succeeded {summary.succeeded}, failed {summary.failed}, skipped {summary.skipped}; "
        f"saved {summary.records_persisted} of {summary.records_found} found; "
        f"database total {summary.database_total if summary.database_total is not None else '-'}"
    )


@app.command("schedule", help="Run ingestion batches periodically until interrupted.")
def schedule(
    ctx: typer.Context,
    interval: Optional[float] = typer.Option(None, "--interval", min=0.001, help="Seconds between runs."),
    initial_delay: Optional[float] = typer.Option(
        None, "--initial-delay", min=0.0, help="Seconds before the first run."
    ),
    metrics_port: Optional[int] = typer.Option(
        None, "--metrics-port", help="Expose Prometheus metrics on this port."
    ),
    run_for: Optional[float] = typer.Option(
        None, "--run-for", min=0.0, help="Stop after this many seconds.", hidden=True
    ),
) -> None:
    state = _get_state(ctx)
    settings = state.config.schedule
    interval_seconds = interval if interval is not None else settings.interval_seconds
    delay_seconds = initial_delay if initial_delay is not None else settings.initial_delay_seconds

    if metrics_port is not None:
        start_http_server(metrics_port, registry=state.metrics.registry)
        console.print(f"Metrics available on :{metrics_port}/metrics", style="dim")

    state.scheduler.schedule_ingestion(
        state.orchestrator.ingest,
        settings.urls,
        settings.page_limit,
        interval_seconds,
        delay_seconds,
    )
    state.scheduler.start()
    console.print(
        f"Scheduled {len(settings.urls)} URL(s) every {interval_seconds:g}s "
        f"(first run in {delay_seconds:g}s). Press Ctrl+C to stop.",
        style="cyan",
    )
    deadline = None if run_for is None else time.monotonic() + run_for
    try:
        while deadline is None or time.monotonic() < deadline:
            time.sleep(0.5)
    except KeyboardInterrupt:
        console.print("Stopping scheduler...", style="yellow")
    finally:
        state.scheduler.shutdown()
        state.orchestrator.close()


@vacancies_app.command("list", help="List stored vacancies.")
def vacancies_list(
    ctx: typer.Context,
    source: Optional[str] = typer.Option(None, "--source", help="hh, superjob or habr."),
    city: Optional[str] = typer.Option(None, "--city", help="Exact city."),
    company: Optional[str] = typer.Option(None, "--company", help="Company substring."),
    sort: str = typer.Option("date", "--sort", help="date, title, company or city."),
    order: str = typer.Option("desc", "--order", help="asc or desc."),
    limit: int = typer.Option(20, "--limit", min=1, help="Maximum rows."),
) -> None:
    state = _get_state(ctx)
    records = state.repository.find_filtered(
        source=_parse_source(source),
        city=city,
        company=company,
        limit=limit,
        sort_by=sort,
        order=order,
    )
    if not records:
        console.print("No vacancies match.", style="dim")
        return
    console.print(_render_vacancies_table(records))


@vacancies_app.command("stats", help="Show totals per source.")
def vacancies_stats(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    counts = state.repository.count_by_source()
    console.print(f"Total vacancies: {state.repository.count_all()}", style="cyan")
    table = Table(title="By source", box=box.SIMPLE_HEAD)
    table.add_column("Source", style="magenta")
    table.add_column("Count", justify="right", style="green")
    for source_name, count in counts.items():
        table.add_row(source_name, str(count))
    console.print(table)
    console.print(f"Distinct cities: {len(state.repository.distinct_cities())}", style="dim")


@log_app.command("list", help="List available log files.")
def log_list() -> None:
    logs = list(available_source_logs())
    console.print("Log files:", style="cyan")
    if not logs:
        console.print("No per-source logs yet.", style="dim")
        return
    table = Table(box=box.SIMPLE_HEAD)
    table.add_column("File", style="green")
    for path in logs:
        table.add_row(path.name)
    console.print(table)


@log_app.command("show", help="Show the tail of a log file.")
def log_show(
    source: Optional[str] = typer.Option(
        None,
        "--source",
        help="Source name (the global log when omitted).",
    ),
    tail: int = typer.Option(100, "--tail", min=1, help="Show the last N lines."),
) -> None:
    path = source_log_path(source) if source else global_log_path()
    lines = tail_log(path, tail)
    if not lines:
        console.print("No log entries yet.", style="dim")
        return
    header = f"{'Source log ' + source if source else 'Global log'} · last {len(lines)} line(s)"
    console.print(header, style="cyan")
    console.print("".join(lines), markup=False, highlight=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
