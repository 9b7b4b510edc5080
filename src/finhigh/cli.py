"""Command line entry point for FinHigh."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from .config import BaseConfig
from .context import LedgerContext, create_ledger_context
from .domain.errors import LedgerError, ValidationError
from .domain.outcomes import Rejected
from .logging_config import setup_logging


def _ledger(ctx: click.Context) -> LedgerContext:
    """Build the ledger context on first use and dispose of it when the command ends."""

    state = ctx.find_root().ensure_object(dict)
    if "ledger" not in state:
        config = BaseConfig(state.get("data_dir"))
        setup_logging(config)
        ledger = create_ledger_context(config)
        ctx.find_root().call_on_close(ledger.close)
        state["ledger"] = ledger
    return state["ledger"]


def _fail_on_reject(ctx: click.Context, result) -> None:
    if isinstance(result, Rejected):
        click.echo(f"Rejected ({result.reason.value}): {result.message}", err=True)
        ctx.exit(1)


def _print_account(account) -> None:
    click.echo(f"Account #{account.id}: {account.name} <{account.contact}>")
    click.echo(f"  allowance: {account.monthly_allowance}")
    click.echo(f"  balance:   {account.current_balance}")
    click.echo(f"  savings:   {account.total_savings}")
    click.echo(f"  spent:     {account.total_spent}")


@click.group()
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="FINHIGH_DATA_DIR",
    default=None,
    help="Directory holding the SQLite database and logs.",
)
@click.pass_context
def cli(ctx: click.Context, data_dir: Optional[Path]) -> None:
    """Household ledger: allowances, expenses, income and savings."""

    ctx.ensure_object(dict)["data_dir"] = data_dir


@cli.command("init-db")
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Create tables and seed the category catalog."""

    ledger = _ledger(ctx)
    names = ", ".join(category.name for category in ledger.store.list_categories())
    click.echo(f"Database ready at {ledger.config.DATABASE_URL}")
    click.echo(f"Categories: {names}")


@cli.command("create-account")
@click.argument("name")
@click.argument("contact")
@click.argument("allowance")
@click.option("--notes", default=None)
@click.pass_context
def create_account(ctx: click.Context, name: str, contact: str, allowance: str, notes) -> None:
    """Create an account from a monthly ALLOWANCE."""

    try:
        result = _ledger(ctx).provisioner.create_account(name, contact, allowance, notes=notes)
    except ValidationError as exc:
        raise click.BadParameter(str(exc)) from exc
    except LedgerError as exc:
        raise click.ClickException(str(exc)) from exc
    _fail_on_reject(ctx, result)
    _print_account(result.account)


@cli.command()
@click.argument("account_id", type=int)
@click.argument("category")
@click.argument("amount")
@click.option("--description", "-d", default="")
@click.option("--key", "idempotency_key", default=None, help="Idempotency key for safe retries.")
@click.pass_context
def expense(ctx, account_id: int, category: str, amount: str, description: str, idempotency_key):
    """Record an expense of AMOUNT in CATEGORY."""

    try:
        result = _ledger(ctx).recorder.record_expense(
            account_id, category, amount, description, idempotency_key=idempotency_key
        )
    except LedgerError as exc:
        raise click.ClickException(str(exc)) from exc
    _fail_on_reject(ctx, result)
    click.echo(f"Recorded expense #{result.transaction_id}")
    _print_account(result.account)


@cli.command()
@click.argument("account_id", type=int)
@click.argument("amount")
@click.option("--source", "-s", default="")
@click.option("--description", "-d", default="")
@click.option("--key", "idempotency_key", default=None, help="Idempotency key for safe retries.")
@click.pass_context
def income(ctx, account_id: int, amount: str, source: str, description: str, idempotency_key):
    """Record income of AMOUNT, split between savings and balance."""

    try:
        result = _ledger(ctx).recorder.record_income(
            account_id, amount, source, description, idempotency_key=idempotency_key
        )
    except LedgerError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Recorded income #{result.transaction_id}")
    _print_account(result.account)


@cli.command()
@click.argument("account_id", type=int)
@click.pass_context
def dashboard(ctx: click.Context, account_id: int) -> None:
    """Show balances, category totals and recent transactions."""

    try:
        view = _ledger(ctx).projector.get_dashboard(account_id)
    except LedgerError as exc:
        raise click.ClickException(str(exc)) from exc
    _print_account(view.account)
    click.echo(f"  spent:     {view.analysis.spent_percentage}% ({view.analysis.status.value})")
    click.echo("Categories:")
    for row in view.aggregates:
        click.echo(f"  {row.display_name:<20} {row.total_amount:>12} ({row.transaction_count})")
    click.echo("Recent:")
    for txn in view.recent_transactions:
        label = txn.category or txn.source or ""
        click.echo(f"  #{txn.id} {txn.kind.value:<7} {txn.amount:>12} {label}")


@cli.command()
@click.argument("account_id", type=int)
@click.option("--limit", default=50, show_default=True, type=int)
@click.option("--offset", default=0, show_default=True, type=int)
@click.pass_context
def history(ctx: click.Context, account_id: int, limit: int, offset: int) -> None:
    """List transactions, newest first."""

    try:
        entries = _ledger(ctx).projector.transaction_history(account_id, limit=limit, offset=offset)
    except LedgerError as exc:
        raise click.ClickException(str(exc)) from exc
    for entry in entries:
        txn = entry.transaction
        click.echo(f"{entry.formatted_date}  {txn.kind.value:<7} {txn.amount:>12}  {txn.description}")


@cli.command()
@click.argument("account_id", type=int)
@click.option("--repair", is_flag=True, default=False, help="Rewrite aggregates from the log.")
@click.pass_context
def reconcile(ctx: click.Context, account_id: int, repair: bool) -> None:
    """Compare stored aggregates against a replay of the transaction log."""

    reconciler = _ledger(ctx).reconciler
    try:
        report = (
            reconciler.reconcile_aggregates(account_id)
            if repair
            else reconciler.check_account(account_id)
        )
    except LedgerError as exc:
        raise click.ClickException(str(exc)) from exc
    for drift in report.drifts:
        click.echo(
            f"{drift.category}: stored {drift.stored.total_amount}/{drift.stored.transaction_count}"
            f" replayed {drift.replayed.total_amount}/{drift.replayed.transaction_count}"
        )
    if not report.balances_consistent:
        click.echo(
            f"balance {report.stored_balance} (expected {report.expected_balance}),"
            f" savings {report.stored_savings} (expected {report.expected_savings})"
        )
    if report.repaired:
        click.echo("Aggregates repaired.")
    elif report.consistent:
        click.echo("Consistent.")
    else:
        ctx.exit(1)


@cli.command("delete-account")
@click.argument("account_id", type=int)
@click.confirmation_option(prompt="Delete the account and all its transactions?")
@click.pass_context
def delete_account(ctx: click.Context, account_id: int) -> None:
    """Delete an account together with its transactions and aggregates."""

    try:
        summary = _ledger(ctx).provisioner.delete_account(account_id)
    except LedgerError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(
        f"Deleted account #{summary.account_id}"
        f" ({summary.transactions} transactions, {summary.aggregates} aggregates)"
    )


if __name__ == "__main__":  # pragma: no cover
    cli()
