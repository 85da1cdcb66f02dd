"""Transaction management commands."""

import click

from coopledger.cli.context import get_directory, get_store
from coopledger.cli.error_handling import handle_domain_error, handle_infrastructure_error
from coopledger.domain.categorizer import BUCKET_FIELDS
from coopledger.domain.errors import InfrastructureError
from coopledger.domain.filters import TransactionFilters
from coopledger.utils.amount_parser import parse_amount
from coopledger.utils.date_parser import get_date_range, parse_date


def _bucket_options(command):
    """Attach one --<bucket> override option per balance bucket."""
    for name in reversed(BUCKET_FIELDS):
        command = click.option(
            f"--{name.replace('_', '-')}", name, help=f"{name.replace('_', ' ').title()} amount (skips categorization)"
        )(command)
    return command


def _collect_fields(
    ctx,
    date: str | None,
    payee: str | None,
    particulars: str | None,
    debit: str | None,
    credit: str | None,
    reference: str | None,
    cross_reference: str | None,
    check_number: str | None,
    buckets: dict[str, str | None],
) -> dict:
    """Build a field mapping from the options that were given."""
    fields = {}

    if date is not None:
        try:
            fields["transaction_date"] = parse_date(date)
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)

    amounts = {"debit_amount": debit, "credit_amount": credit}
    amounts.update(buckets)
    for name, raw in amounts.items():
        if raw is None:
            continue
        try:
            fields[name] = parse_amount(raw)
        except ValueError as e:
            click.echo(f"Error: Invalid amount format: {e}", err=True)
            ctx.exit(1)

    for name, value in (
        ("payee", payee),
        ("particulars", particulars),
        ("reference", reference),
        ("cross_reference", cross_reference),
        ("check_number", check_number),
    ):
        if value is not None:
            fields[name] = value

    return fields


def _format_amount(amount) -> str:
    return f"{amount:,.2f}"


def print_transaction(txn) -> None:
    """Print one transaction in detail."""
    click.echo(f"\nTransaction ID: {txn.id}")
    click.echo(f"  Branch: {txn.branch_id}")
    click.echo(f"  Date: {txn.transaction_date}")
    click.echo(f"  Payee: {txn.payee}")
    click.echo(f"  Particulars: {txn.particulars}")
    if txn.reference:
        click.echo(f"  Reference: {txn.reference}")
    if txn.cross_reference:
        click.echo(f"  Cross reference: {txn.cross_reference}")
    if txn.check_number:
        click.echo(f"  Check number: {txn.check_number}")
    click.echo(f"  Debit: {_format_amount(txn.debit_amount)}")
    click.echo(f"  Credit: {_format_amount(txn.credit_amount)}")
    for name in BUCKET_FIELDS:
        amount = getattr(txn, name)
        if amount:
            click.echo(f"  {name.replace('_', ' ').title()}: {_format_amount(amount)}")


@click.group()
def transaction_group():
    """Manage ledger transactions."""
    pass


@transaction_group.command("add")
@click.option("--branch", "branch_id", type=int, required=True, help="Branch ID")
@click.option("--user", "user_id", type=int, help="ID of the user recording the transaction")
@click.option("--date", required=True, help="Transaction date (YYYY-MM-DD or relative like 'today', 'yesterday')")
@click.option("--payee", required=True, help="Payee")
@click.option("--particulars", required=True, help="Particulars (drives bucket categorization)")
@click.option("--debit", help="Debit amount (e.g., 5,000.00)")
@click.option("--credit", help="Credit amount")
@click.option("--reference", help="Reference number")
@click.option("--cross-reference", help="Cross reference")
@click.option("--check-number", help="Check number")
@_bucket_options
@click.pass_context
def add_transaction(
    ctx,
    branch_id: int,
    user_id: int | None,
    date: str,
    payee: str,
    particulars: str,
    debit: str | None,
    credit: str | None,
    reference: str | None,
    cross_reference: str | None,
    check_number: str | None,
    **buckets,
) -> None:
    """Record a transaction in a branch's ledger.

    Examples:
        coopledger transaction add --branch 2 --date today --payee "Juan Cruz" \\
            --particulars "Savings deposit" --debit 5000
    """
    fields = _collect_fields(
        ctx, date, payee, particulars, debit, credit, reference, cross_reference, check_number, buckets
    )
    try:
        txn = get_store(ctx).create(branch_id, user_id, fields)
    except InfrastructureError as e:
        handle_infrastructure_error(ctx, e)
    except ValueError as e:
        handle_domain_error(ctx, e)
    else:
        click.echo(f"Created transaction {txn.id} in branch {txn.branch_id}")


@transaction_group.command("show")
@click.argument("transaction_id")
@click.pass_context
def show_transaction(ctx, transaction_id: str) -> None:
    """Show a transaction from whichever branch holds it."""
    try:
        found = get_directory(ctx).locate(transaction_id)
    except InfrastructureError as e:
        handle_infrastructure_error(ctx, e)
        return

    if found is None:
        click.echo(f"Error: Transaction {transaction_id} not found", err=True)
        ctx.exit(1)

    partition, txn = found
    print_transaction(txn)
    click.echo(f"  Partition: {partition.value}")


@transaction_group.command("list")
@click.option("--branch", "branch_id", type=int, required=True, help="Branch ID")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month', 'this year')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today', 'this month')")
@click.option(
    "--period",
    type=click.Choice(["this-month", "last-month", "this-year", "last-year"], case_sensitive=False),
    help="Reporting period (overrides --start-date/--end-date)",
)
@click.option("--payee", help="Filter by payee (case-insensitive substring)")
@click.option("--reference", help="Filter by reference (case-insensitive substring)")
@click.option("--limit", type=int, help="Maximum number of transactions")
@click.option("--offset", type=int, help="Number of transactions to skip")
@click.option("--verbose", "-v", is_flag=True, help="Show all fields")
@click.pass_context
def list_transactions(
    ctx,
    branch_id: int,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
    payee: str | None,
    reference: str | None,
    limit: int | None,
    offset: int | None,
    verbose: bool,
) -> None:
    """List a branch's transactions, newest first."""
    date_from = None
    date_to = None
    if period is not None:
        date_from, date_to = get_date_range(period)
    else:
        if start_date:
            try:
                date_from = parse_date(start_date)
            except ValueError as e:
                click.echo(f"Error: Invalid start date: {e}", err=True)
                ctx.exit(1)
        if end_date:
            try:
                date_to = parse_date(end_date)
            except ValueError as e:
                click.echo(f"Error: Invalid end date: {e}", err=True)
                ctx.exit(1)

    filters = TransactionFilters(
        payee=payee, reference=reference, date_from=date_from, date_to=date_to, limit=limit, offset=offset
    )
    try:
        transactions = get_directory(ctx).list_transactions(branch_id, filters)
    except InfrastructureError as e:
        handle_infrastructure_error(ctx, e)
        return
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(f"\nFound {len(transactions)} transaction(s):")
    if verbose:
        for txn in transactions:
            print_transaction(txn)
        return

    click.echo("-" * 110)
    click.echo(f"{'ID':<38} {'Date':<12} {'Payee':<24} {'Debit':>16} {'Credit':>16}")
    click.echo("-" * 110)
    for txn in transactions:
        payee_str = txn.payee[:22] + ".." if len(txn.payee) > 24 else txn.payee
        click.echo(
            f"{txn.id:<38} {str(txn.transaction_date):<12} {payee_str:<24} "
            f"{_format_amount(txn.debit_amount):>16} {_format_amount(txn.credit_amount):>16}"
        )
    click.echo("-" * 110)


@transaction_group.command("update")
@click.argument("transaction_id")
@click.option("--user", "user_id", type=int, help="ID of the user making the change")
@click.option("--date", help="Transaction date (YYYY-MM-DD or relative like 'today', 'yesterday')")
@click.option("--payee", help="Payee")
@click.option("--particulars", help="Particulars")
@click.option("--debit", help="Debit amount")
@click.option("--credit", help="Credit amount")
@click.option("--reference", help="Reference number or empty string to clear")
@click.option("--cross-reference", help="Cross reference or empty string to clear")
@click.option("--check-number", help="Check number or empty string to clear")
@_bucket_options
@click.pass_context
def update_transaction(
    ctx,
    transaction_id: str,
    user_id: int | None,
    date: str | None,
    payee: str | None,
    particulars: str | None,
    debit: str | None,
    credit: str | None,
    reference: str | None,
    cross_reference: str | None,
    check_number: str | None,
    **buckets,
) -> None:
    """Update a transaction directly.

    Updates only the fields that are provided. Changing the debit, credit or
    particulars recomputes the balance buckets unless bucket amounts are given.

    Examples:
        coopledger transaction update <id> --debit 7500
        coopledger transaction update <id> --reference ""  # Clear reference
    """
    fields = _collect_fields(
        ctx, date, payee, particulars, debit, credit, reference, cross_reference, check_number, buckets
    )
    if not fields:
        click.echo("Error: No fields to update", err=True)
        ctx.exit(1)

    try:
        change = get_directory(ctx).update_by_id(transaction_id, fields, actor_id=user_id)
    except InfrastructureError as e:
        handle_infrastructure_error(ctx, e)
    except ValueError as e:
        handle_domain_error(ctx, e)
    else:
        changed = ", ".join(change.changed_fields) or "no changes"
        click.echo(f"Updated transaction {transaction_id} ({changed})")


@transaction_group.command("delete")
@click.argument("transaction_id")
@click.option("--user", "user_id", type=int, help="ID of the user deleting the transaction")
@click.pass_context
def delete_transaction(ctx, transaction_id: str, user_id: int | None) -> None:
    """Delete a transaction."""
    directory = get_directory(ctx)

    # Check if transaction exists
    try:
        txn = directory.find_by_id(transaction_id)
    except InfrastructureError as e:
        handle_infrastructure_error(ctx, e)
        return
    if txn is None:
        click.echo(f"Error: Transaction {transaction_id} not found", err=True)
        ctx.exit(1)

    if not click.confirm(f"Are you sure you want to delete transaction {transaction_id}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        directory.delete_by_id(transaction_id, actor_id=user_id)
    except InfrastructureError as e:
        handle_infrastructure_error(ctx, e)
    except ValueError as e:
        handle_domain_error(ctx, e)
    else:
        click.echo(f"Deleted transaction {transaction_id}")


def _print_stats_row(stats) -> None:
    click.echo(
        f"{stats.branch_id:<6} {stats.total_transactions:>6} "
        f"{_format_amount(stats.total_debits):>16} {_format_amount(stats.total_credits):>16} "
        f"{_format_amount(stats.total_cash_in_bank):>16} {_format_amount(stats.total_loan_receivables):>16} "
        f"{_format_amount(stats.total_savings_deposits):>16}"
    )


@transaction_group.command("stats")
@click.option("--branch", "branch_id", type=int, help="Branch ID")
@click.option("--all", "all_branches", is_flag=True, help="Consolidated totals for every branch")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative)")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative)")
@click.pass_context
def transaction_stats(ctx, branch_id: int | None, all_branches: bool, start_date: str | None, end_date: str | None):
    """Show transaction totals for a branch or for every branch."""
    if all_branches == (branch_id is not None):
        click.echo("Error: Specify exactly one of --branch or --all", err=True)
        ctx.exit(1)

    try:
        date_from = parse_date(start_date) if start_date else None
        date_to = parse_date(end_date) if end_date else None
    except ValueError as e:
        click.echo(f"Error: Invalid date: {e}", err=True)
        ctx.exit(1)

    directory = get_directory(ctx)
    try:
        if all_branches:
            rows = directory.consolidated_stats(date_from, date_to)
        else:
            rows = [directory.transaction_stats(branch_id, date_from, date_to)]
    except InfrastructureError as e:
        handle_infrastructure_error(ctx, e)
        return
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(
        f"\n{'Branch':<6} {'Count':>6} {'Debits':>16} {'Credits':>16} "
        f"{'Cash in bank':>16} {'Loans':>16} {'Savings':>16}"
    )
    click.echo("-" * 100)
    for stats in rows:
        _print_stats_row(stats)
    if all_branches:
        click.echo("-" * 100)
        click.echo(
            f"{'Total':<6} {sum(s.total_transactions for s in rows):>6} "
            f"{_format_amount(sum(s.total_debits for s in rows)):>16} "
            f"{_format_amount(sum(s.total_credits for s in rows)):>16}"
        )


def register_commands(cli: click.Group) -> None:
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
