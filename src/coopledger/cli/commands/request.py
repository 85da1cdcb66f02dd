"""Change request commands."""

import json

import click

from coopledger.cli.context import echo_notifications, get_directory, get_workflow
from coopledger.cli.error_handling import handle_domain_error, handle_infrastructure_error
from coopledger.domain.entities import ChangeRequestStatus, RequestType
from coopledger.domain.errors import InfrastructureError
from coopledger.domain.filters import ChangeRequestFilters


def _parse_assignments(ctx, assignments: tuple[str, ...]) -> dict[str, str]:
    """Parse repeated FIELD=VALUE options into a patch."""
    changes = {}
    for item in assignments:
        field, sep, value = item.partition("=")
        if not sep or not field.strip():
            click.echo(f"Error: Expected FIELD=VALUE, got '{item}'", err=True)
            ctx.exit(1)
        changes[field.strip()] = value
    return changes


def print_request(request) -> None:
    """Print one change request in detail."""
    click.echo(f"\nRequest {request.request_number} ({request.id})")
    click.echo(f"  Status: {request.status.value}")
    click.echo(f"  Type: {request.request_type.value}")
    click.echo(f"  Transaction: {request.transaction_id} ({request.transaction_table})")
    click.echo(f"  Branch: {request.branch_id}")
    click.echo(f"  Requested by: {request.requested_by}")
    click.echo(f"  Assigned to: {request.assigned_to if request.assigned_to is not None else 'unassigned'}")
    click.echo(f"  Reason: {request.reason}")
    click.echo(f"  Requested changes: {json.dumps(request.requested_changes, sort_keys=True)}")
    if request.reviewer_notes:
        click.echo(f"  Reviewer notes: {request.reviewer_notes}")
    if request.processed_at:
        click.echo(f"  Processed: {request.processed_at} by {request.processed_by}")


@click.group()
def request_group():
    """Submit and review change requests."""
    pass


@request_group.command("create")
@click.argument("transaction_id")
@click.option("--user", "user_id", type=int, required=True, help="ID of the requesting user")
@click.option("--branch", "branch_id", type=int, required=True, help="Requester's branch ID")
@click.option("--set", "assignments", multiple=True, help="Requested change as FIELD=VALUE (repeatable)")
@click.option("--reason", required=True, help="Why the transaction should change")
@click.option(
    "--type",
    "request_type",
    type=click.Choice([t.value for t in RequestType], case_sensitive=False),
    default=RequestType.MODIFICATION.value,
    show_default=True,
    help="Request type",
)
@click.pass_context
def create_request(
    ctx, transaction_id: str, user_id: int, branch_id: int, assignments: tuple[str, ...], reason: str, request_type: str
) -> None:
    """Request a change to a recorded transaction.

    Examples:
        coopledger request create <id> --user 3 --branch 2 --set debit_amount=7500 --reason "Typo"
    """
    changes = _parse_assignments(ctx, assignments)

    try:
        found = get_directory(ctx).locate(transaction_id)
    except InfrastructureError as e:
        handle_infrastructure_error(ctx, e)
        return
    if found is None:
        click.echo(f"Error: Transaction {transaction_id} not found", err=True)
        ctx.exit(1)
    partition, txn = found

    payload = {
        "transaction_id": txn.id,
        "transaction_table": partition.value,
        "original_data": txn.as_dict(),
        "requested_changes": changes,
        "reason": reason,
        "request_type": request_type.lower(),
    }
    try:
        request = get_workflow(ctx).create(user_id, branch_id, payload)
    except InfrastructureError as e:
        handle_infrastructure_error(ctx, e)
    except ValueError as e:
        handle_domain_error(ctx, e)
    else:
        click.echo(f"Created change request {request.request_number} ({request.id})")
        if request.assigned_to is None:
            click.echo("Warning: No active reviewer in this branch; request is unassigned", err=True)
        echo_notifications(ctx)


@request_group.command("list")
@click.option("--branch", "branch_id", type=int, help="Filter by branch ID")
@click.option(
    "--status",
    type=click.Choice([s.value for s in ChangeRequestStatus], case_sensitive=False),
    help="Filter by status",
)
@click.option("--assigned-to", type=int, help="Filter by assigned reviewer")
@click.option("--requested-by", type=int, help="Filter by requester")
@click.option("--transaction", "transaction_id", help="Filter by transaction ID")
@click.option(
    "--type",
    "request_type",
    type=click.Choice([t.value for t in RequestType], case_sensitive=False),
    help="Filter by request type",
)
@click.option("--limit", type=int, help="Maximum number of requests")
@click.pass_context
def list_requests(
    ctx,
    branch_id: int | None,
    status: str | None,
    assigned_to: int | None,
    requested_by: int | None,
    transaction_id: str | None,
    request_type: str | None,
    limit: int | None,
) -> None:
    """List change requests, newest first."""
    filters = ChangeRequestFilters(
        branch_id=branch_id,
        status=ChangeRequestStatus(status.lower()) if status else None,
        assigned_to=assigned_to,
        requested_by=requested_by,
        transaction_id=transaction_id,
        request_type=RequestType(request_type.lower()) if request_type else None,
        limit=limit,
    )
    workflow = get_workflow(ctx)
    try:
        requests = workflow.list_requests(filters)
        total = workflow.count_requests(filters)
    except InfrastructureError as e:
        handle_infrastructure_error(ctx, e)
        return

    if not requests:
        click.echo("No change requests found.")
        return

    click.echo(f"\nShowing {len(requests)} of {total} change request(s):")
    click.echo("-" * 100)
    click.echo(f"{'Number':<12} {'Status':<10} {'Type':<13} {'Branch':<7} {'Assignee':<9} {'Transaction':<38}")
    click.echo("-" * 100)
    for request in requests:
        assignee = str(request.assigned_to) if request.assigned_to is not None else "-"
        click.echo(
            f"{request.request_number:<12} {request.status.value:<10} {request.request_type.value:<13} "
            f"{request.branch_id:<7} {assignee:<9} {request.transaction_id:<38}"
        )
    click.echo("-" * 100)


@request_group.command("show")
@click.argument("request_id")
@click.pass_context
def show_request(ctx, request_id: str) -> None:
    """Show a change request."""
    try:
        request = get_workflow(ctx).get_request(request_id)
    except InfrastructureError as e:
        handle_infrastructure_error(ctx, e)
        return
    if request is None:
        click.echo(f"Error: Change request {request_id} not found", err=True)
        ctx.exit(1)
    print_request(request)


def _decide(ctx, request_id: str, decision: ChangeRequestStatus, reviewer_id: int, notes: str | None) -> None:
    try:
        request = get_workflow(ctx).decide(request_id, decision, reviewer_id, notes)
    except InfrastructureError as e:
        handle_infrastructure_error(ctx, e)
    except ValueError as e:
        handle_domain_error(ctx, e)
    else:
        click.echo(f"Request {request.request_number} {request.status.value}")
        echo_notifications(ctx)


@request_group.command("approve")
@click.argument("request_id")
@click.option("--reviewer", "reviewer_id", type=int, required=True, help="ID of the reviewing user")
@click.option("--notes", help="Reviewer notes")
@click.pass_context
def approve_request(ctx, request_id: str, reviewer_id: int, notes: str | None) -> None:
    """Approve a pending request and apply its changes."""
    _decide(ctx, request_id, ChangeRequestStatus.APPROVED, reviewer_id, notes)


@request_group.command("reject")
@click.argument("request_id")
@click.option("--reviewer", "reviewer_id", type=int, required=True, help="ID of the reviewing user")
@click.option("--notes", help="Reason for rejection")
@click.pass_context
def reject_request(ctx, request_id: str, reviewer_id: int, notes: str | None) -> None:
    """Reject a pending request."""
    _decide(ctx, request_id, ChangeRequestStatus.REJECTED, reviewer_id, notes)


def register_commands(cli: click.Group) -> None:
    """Register change request commands with main CLI."""
    cli.add_command(request_group, name="request")
