"""CLI error handling helpers."""

import click

from coopledger.domain.errors import DomainError, InfrastructureError

INFRASTRUCTURE_EXIT_CODE = 2


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def handle_infrastructure_error(ctx: click.Context, error: InfrastructureError) -> None:
    """Render a storage failure; the operation is safe to retry."""
    click.echo(f"Error: {error} (safe to retry)", err=True)
    ctx.exit(INFRASTRUCTURE_EXIT_CODE)
