"""Service wiring for CLI commands."""

import click

from coopledger.domain.change_request import ChangeRequestWorkflow
from coopledger.domain.directory import LedgerDirectory
from coopledger.domain.ledger import LedgerStore
from coopledger.domain.notifications import InMemoryNotificationSink


def get_store(ctx: click.Context) -> LedgerStore:
    return LedgerStore(ctx.obj["db"])


def get_directory(ctx: click.Context) -> LedgerDirectory:
    return LedgerDirectory(ctx.obj["db"], strategy=ctx.obj["settings"].lookup_strategy)


def get_workflow(ctx: click.Context) -> ChangeRequestWorkflow:
    return ChangeRequestWorkflow(ctx.obj["db"], directory=get_directory(ctx), notifier=ctx.obj["notifications"])


def echo_notifications(ctx: click.Context) -> None:
    """Print and clear notifications produced by the last command."""
    sink: InMemoryNotificationSink = ctx.obj["notifications"]
    for event in sink.events:
        click.echo(f"Notified user {event.user_id}: {event.title}")
    sink.clear()
