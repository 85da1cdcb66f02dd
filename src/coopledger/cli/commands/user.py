"""User commands."""

import click

from coopledger.domain.branches import PartitionRouter
from coopledger.domain.entities import AccountKind
from coopledger.domain.errors import InfrastructureError
from coopledger.cli.error_handling import handle_domain_error, handle_infrastructure_error


@click.group()
def user_group():
    """Manage users."""
    pass


@user_group.command("add")
@click.argument("username")
@click.option("--branch", "branch_id", type=int, required=True, help="Branch ID the user belongs to")
@click.option("--role", default="staff", show_default=True, help="Role (use 'reviewer' for change request reviewers)")
@click.option("--first-name", default="", help="First name")
@click.option("--last-name", default="", help="Last name")
@click.option(
    "--kind",
    type=click.Choice([k.value for k in AccountKind], case_sensitive=False),
    default=AccountKind.PRODUCTION.value,
    show_default=True,
    help="Account kind; production accounts are preferred for review assignment",
)
@click.option("--inactive", is_flag=True, help="Create the user as inactive")
@click.pass_context
def add_user(ctx, username: str, branch_id: int, role: str, first_name: str, last_name: str, kind: str, inactive: bool):
    """Create a user in a branch."""
    db = ctx.obj["db"]
    try:
        PartitionRouter().partition_for(branch_id)
        user_id = db.create_user(
            username=username,
            branch_id=branch_id,
            role=role,
            first_name=first_name,
            last_name=last_name,
            account_kind=AccountKind(kind.lower()),
            is_active=not inactive,
        )
        click.echo(f"Created user '{username}' (ID: {user_id}) in branch {branch_id}")
    except InfrastructureError as e:
        handle_infrastructure_error(ctx, e)
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli: click.Group) -> None:
    """Register user commands with main CLI."""
    cli.add_command(user_group, name="user")
