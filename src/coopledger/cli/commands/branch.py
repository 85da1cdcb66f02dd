"""Branch commands."""

import click

from coopledger.domain.branches import BRANCH_PARTITIONS


@click.group()
def branch_group():
    """Inspect branches and their ledger partitions."""
    pass


@branch_group.command("list")
@click.pass_context
def list_branches(ctx):
    """List branches with the partition holding each branch's transactions."""
    db = ctx.obj["db"]
    branches = db.list_branches()

    click.echo(f"\n{'ID':<4} {'Name':<14} {'Location':<18} {'Partition':<32}")
    click.echo("-" * 70)
    for branch in branches:
        marker = " *" if branch.is_main else ""
        partition = BRANCH_PARTITIONS.get(branch.id)
        click.echo(
            f"{branch.id:<4} {branch.name:<14} {branch.location:<18} "
            f"{partition.value if partition else '-':<32}{marker}"
        )


def register_commands(cli: click.Group) -> None:
    """Register branch commands with main CLI."""
    cli.add_command(branch_group, name="branch")
