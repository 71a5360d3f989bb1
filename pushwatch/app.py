"""Typer CLI entrypoint for pushwatch."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Optional, Sequence

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository
from .engine import Recipient
from .errors import ConfigError, RecipientValidationError, StoreError
from .logging_conf import available_logs, configure_logging, tail_log
from .orchestrator import CycleSummary, PushService, build_context
from .scheduler import APSchedulerAdapter

app = typer.Typer(
    help="pushwatch: poll a feed and send web push notifications",
    no_args_is_help=True,
    rich_markup_mode=None,
)
recipient_app = typer.Typer(
    name="recipient",
    help="Manage registered push recipients",
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

VERBOSE_KEY = "pushwatch.verbose"


@dataclass
class AppState:
    repository: ConfigRepository
    service: PushService

    def close(self) -> None:
        self.service.close()


def build_state(verbose: bool) -> AppState:
    configure_logging(verbose=verbose)
    repository = ConfigRepository()
    config = repository.load_config()
    context = build_context(config, repository.data_dir())
    service = PushService(context, scheduler=APSchedulerAdapter())
    return AppState(repository=repository, service=service)


def _get_state(ctx: typer.Context) -> AppState:
    """Build the service on first use and release it when the command ends."""

    state = ctx.find_object(AppState)
    if state is None:
        try:
            state = build_state(verbose=ctx.meta.get(VERBOSE_KEY, False))
        except ConfigError as exc:
            console.print(f"Configuration error: {exc}", style="red")
            raise typer.Exit(code=1)
        ctx.obj = state
        ctx.call_on_close(state.close)
    return state


def _render_summary(title: str, summary: CycleSummary) -> Table:
    table = Table(title=title, box=box.SIMPLE_HEAD)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Changed", "yes" if summary.changed else "no")
    table.add_row("Sent", "yes" if summary.delivered else "no")
    if summary.reason:
        table.add_row("Reason", summary.reason)
    if summary.stats is not None:
        for key, value in summary.stats.as_dict().items():
            table.add_row(key.capitalize(), str(value))
    if summary.latest is not None:
        table.add_row("Latest", summary.latest.hash or "unknown")
        table.add_row("Author", summary.latest.author or "unknown")
    return table


def _render_recipients_table(recipients: Sequence[Recipient]) -> Table:
    table = Table(title=f"Recipients · {len(recipients)} total", box=box.SIMPLE_HEAD)
    table.add_column("ID", style="cyan", overflow="fold")
    table.add_column("Endpoint", style="magenta", overflow="fold")
    table.add_column("Created", style="green")
    table.add_column("Last notified", style="yellow")
    for recipient in recipients:
        table.add_row(
            recipient.id[:24],
            recipient.address,
            recipient.created_at,
            recipient.last_notified_at or "-",
        )
    return table


def _print_summary(title: str, summary: CycleSummary, as_json: bool) -> None:
    if as_json:
        console.print_json(json.dumps(summary.as_dict()))
    else:
        console.print(_render_summary(title, summary))


@app.callback()
def main(
    ctx: typer.Context, verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging", is_flag=True)
) -> None:
    ctx.meta[VERBOSE_KEY] = verbose


@app.command("poll", help="Run one cycle now; only sends when the content is new.")
def poll(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Print the summary as JSON.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    summary = state.service.trigger_cycle(force=False)
    _print_summary("Poll result", summary, as_json)


@app.command("push-latest", help="Send the latest content to every recipient, even if already seen.")
def push_latest(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Print the summary as JSON.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    summary = state.service.trigger_cycle(force=True)
    _print_summary("Push result", summary, as_json)


@app.command("serve", help="Poll on the configured interval until interrupted.")
def serve(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    config = state.service.context.config
    if not config.push.has_keys:
        console.print("VAPID keys are not configured; deliveries will fail.", style="yellow")
    console.print(
        f"Polling {config.feed.url} every {config.schedule.interval_seconds:g}s",
        style="dim",
    )
    state.service.start()
    for job in state.service.scheduled_jobs():
        console.print(f"Next poll at {job['next_run_time']}", style="dim")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        console.print("Stopping…", style="dim")


@app.command("public-key", help="Print the VAPID public key browsers subscribe with.")
def public_key(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    key = state.service.public_key()
    if not key:
        console.print("No VAPID public key configured.", style="red")
        raise typer.Exit(code=1)
    console.print(key)


@recipient_app.command("list", help="List registered recipients.")
def recipient_list(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    try:
        recipients = state.service.list_recipients()
    except StoreError as exc:
        console.print(str(exc), style="red", markup=False)
        raise typer.Exit(code=1)
    if not recipients:
        console.print("No recipients registered.", style="yellow")
        raise typer.Exit(code=0)
    console.print(_render_recipients_table(recipients))


@recipient_app.command("add", help="Register a push subscription.")
def recipient_add(
    ctx: typer.Context,
    endpoint: str = typer.Argument(..., help="Push service endpoint URL."),
    p256dh: str = typer.Option(..., "--p256dh", help="Client public key (base64url)."),
    auth: str = typer.Option(..., "--auth", help="Client auth secret (base64url)."),
) -> None:
    state = _get_state(ctx)
    try:
        result = state.service.register_recipient(endpoint, {"p256dh": p256dh, "auth": auth})
    except RecipientValidationError as exc:
        console.print(f"Invalid subscription: {exc}", style="red")
        raise typer.Exit(code=1)
    except StoreError as exc:
        console.print(str(exc), style="red", markup=False)
        raise typer.Exit(code=1)
    if result.created:
        console.print(f"Recipient `{result.recipient.id[:24]}` registered.", style="green")
    else:
        console.print("Recipient already registered; nothing changed.", style="dim")


@recipient_app.command("remove", help="Unregister a push subscription.")
def recipient_remove(
    ctx: typer.Context,
    endpoint: str = typer.Argument(..., help="Push service endpoint URL."),
) -> None:
    state = _get_state(ctx)
    try:
        removed = state.service.unregister_recipient(endpoint)
    except RecipientValidationError as exc:
        console.print(f"Invalid request: {exc}", style="red")
        raise typer.Exit(code=1)
    except StoreError as exc:
        console.print(str(exc), style="red", markup=False)
        raise typer.Exit(code=1)
    if removed:
        console.print("Recipient removed.", style="green")
    else:
        console.print("No recipient with that endpoint.", style="dim")


@log_app.command("list", help="List available log files.")
def log_list() -> None:
    logs = list(available_logs())
    if not logs:
        console.print("No log files yet.", style="yellow")
        return
    for path in logs:
        console.print(path.name)


@log_app.command("show", help="Show the tail of a log file.")
def log_show(
    name: str = typer.Argument("pushwatch", help="Log name without the .log suffix."),
    lines: int = typer.Option(50, "--lines", "-n", help="Number of lines to show."),
) -> None:
    match: Optional[str] = None
    for path in available_logs():
        if path.stem == name:
            match = str(path)
            for line in tail_log(path, lines):
                console.print(line.rstrip("\n"), markup=False, highlight=False)
    if match is None:
        console.print(f"Log `{name}` not found.", style="red")
        raise typer.Exit(code=1)


app.add_typer(recipient_app, name="recipient")
app.add_typer(log_app, name="log")


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
