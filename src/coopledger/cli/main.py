"""Main CLI entry point."""

import logging

import click

from coopledger.config import Settings, LOOKUP_STRATEGIES
from coopledger.database.factories import create_database
from coopledger.domain.notifications import InMemoryNotificationSink

# Import and register all commands at module level
from coopledger.cli.commands import branch, user, transaction, request


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to SQLite database file (overrides COOPLEDGER_DB_PATH environment variable)",
    envvar="COOPLEDGER_DB_PATH",
)
@click.option(
    "--strategy",
    type=click.Choice(LOOKUP_STRATEGIES, case_sensitive=False),
    envvar="COOPLEDGER_LOOKUP_STRATEGY",
    help="How lookups by transaction ID search the branch partitions",
)
@click.option(
    "--log-level",
    envvar="COOPLEDGER_LOG_LEVEL",
    default="WARNING",
    show_default=True,
    help="Logging level",
)
@click.pass_context
def cli(ctx, db_path: str | None, strategy: str | None, log_level: str):
    """Coopledger - branch-partitioned cooperative ledger.

    Record transactions per branch and correct them through reviewed
    change requests.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            settings = Settings.from_env(database_path=db_path)
        except ValueError as e:
            raise click.UsageError(str(e))
        if strategy is not None:
            settings = Settings(
                database_url=settings.database_url,
                lookup_strategy=strategy.lower(),
                pool_size=settings.pool_size,
                pool_timeout=settings.pool_timeout,
                log_level=log_level.upper(),
            )
        db = create_database(settings)
        db.connect()
        db.initialize_schema()
        ctx.obj["settings"] = settings
        ctx.obj["db"] = db
        ctx.obj["notifications"] = InMemoryNotificationSink()
        ctx.call_on_close(db.disconnect)


# Register all commands
branch.register_commands(cli)
user.register_commands(cli)
transaction.register_commands(cli)
request.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
