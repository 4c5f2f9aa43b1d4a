"""CLI for the group ledger using Typer."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import typer
from rich.console import Console
from rich.table import Table

from .config import Settings, load_settings
from .db import Database
from .exceptions import GroupNotFoundError, LedgerError
from .models import Balance, ExpenseEvent, LedgerEntry, SettlementEvent
from .money import format_minor_units, to_positive_minor_units
from .service import LedgerService

app = typer.Typer(
    name="group-ledger",
    help="Track shared expenses in a group and work out who should pay whom",
    no_args_is_help=True,
)

console = Console()


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Group ledger commands."""
    setup_logging(verbose)
    ctx.obj = {"verbose": verbose}


@contextmanager
def open_ledger(
    ctx: typer.Context, group: str, must_exist: bool = True
) -> Iterator[tuple[LedgerService, Database, Settings]]:
    """
    Load a group from the database into a fresh LedgerService.

    Ledger errors are printed and turned into exit status 1.
    """
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    db = None
    try:
        settings = load_settings()
        db = Database(settings.database_path)
        service = LedgerService()

        members = db.get_group_members(group)
        if members is not None:
            service.load_group(group, members, db.get_entries(group))
        elif must_exist:
            raise GroupNotFoundError(group)

        yield service, db, settings

    except LedgerError as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)
    finally:
        if db is not None:
            db.close()


def format_money(amount: int, settings: Settings, use_color: bool = True) -> str:
    """
    Format minor units in accounting style.

    Negative amounts use parentheses: ($85.02)
    Positive amounts have spaces:      $85.02
    """
    formatted = format_minor_units(abs(amount), settings.minor_digits, settings.currency_symbol)
    if amount < 0:
        return f"([red]{formatted}[/red])" if use_color else f"({formatted})"
    return f" [green]{formatted}[/green] " if use_color else f" {formatted} "


def display_balances(group: str, balances: Balance, settings: Settings):
    """Display balances in a table."""
    table = Table(title=f"Balances: {group}", show_header=True, header_style="bold magenta")
    table.add_column("Member", style="cyan")
    table.add_column("Balance", justify="right")
    table.add_column("Status", style="dim")

    for member, balance in balances.items():
        if balance > 0:
            status = "owes"
        elif balance < 0:
            status = "is owed"
        else:
            status = "settled up"
        table.add_row(member, format_money(balance, settings), status)

    console.print(table)


def describe_entry(entry: LedgerEntry, settings: Settings) -> tuple[str, str, str]:
    """Kind, description and amount columns for an entry."""
    event = entry.event
    if isinstance(event, ExpenseEvent):
        among = ", ".join(event.participants)
        label = event.description or "Expense"
        detail = f"{label}: paid by {event.payer}, split among {among}"
        amount = event.total_amount
    else:
        detail = f"{event.from_member} paid {event.to_member}"
        if event.payment_method:
            detail += f" via {event.payment_method}"
        if event.notes:
            detail += f" ({event.notes})"
        amount = event.amount
    return (
        event.kind,
        detail,
        format_minor_units(amount, settings.minor_digits, settings.currency_symbol),
    )


@app.command()
def init(
    ctx: typer.Context,
    group: str = typer.Argument(..., help="Group identifier"),
    member: list[str] = typer.Option(..., "--member", "-m", help="Group member (repeatable)"),
):
    """
    Create a group or update its members.

    Members with recorded expenses or settlements cannot be removed.
    """
    with open_ledger(ctx, group, must_exist=False) as (service, db, settings):
        action = "Updated" if service.has_group(group) else "Created"
        balances = service.open_group(group, member)
        db.save_group(group, service.members(group))

        console.print(
            f"[green]✓ {action} group {group} with {len(balances)} members:[/green] "
            f"{', '.join(service.members(group))}"
        )


@app.command()
def groups():
    """List all groups with their members."""
    try:
        settings = load_settings()
    except LedgerError as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        sys.exit(1)

    db = Database(settings.database_path)
    try:
        group_ids = db.list_groups()
        if not group_ids:
            console.print("[yellow]No groups yet.[/yellow]")
            return

        table = Table(title="Groups", show_header=True, header_style="bold magenta")
        table.add_column("Group", style="cyan")
        table.add_column("Members", no_wrap=False)

        for group_id in group_ids:
            table.add_row(group_id, ", ".join(db.get_group_members(group_id) or ()))

        console.print(table)
    finally:
        db.close()


@app.command()
def members(
    ctx: typer.Context,
    group: str = typer.Argument(..., help="Group identifier"),
):
    """Show each member's totals for a group."""
    with open_ledger(ctx, group) as (service, db, settings):
        table = Table(title=f"Members: {group}", show_header=True, header_style="bold magenta")
        table.add_column("Member", style="cyan")
        table.add_column("Paid", justify="right")
        table.add_column("Share", justify="right")
        table.add_column("Sent", justify="right")
        table.add_column("Received", justify="right")
        table.add_column("Balance", justify="right")

        for name in service.members(group):
            summary = service.member_summary(group, name)
            table.add_row(
                name,
                format_money(summary.paid, settings, use_color=False),
                format_money(summary.share, settings, use_color=False),
                format_money(summary.sent, settings, use_color=False),
                format_money(summary.received, settings, use_color=False),
                format_money(summary.balance, settings),
            )

        console.print(table)
        console.print(
            f"  Total spent: "
            f"{format_minor_units(service.total_spent(group), settings.minor_digits, settings.currency_symbol)}"
        )


@app.command()
def expense(
    ctx: typer.Context,
    group: str = typer.Argument(..., help="Group identifier"),
    payer: str = typer.Option(..., "--payer", "-p", help="Member who paid"),
    amount: str = typer.Option(..., "--amount", "-a", help="Total amount, e.g. 12.34"),
    among: list[str] | None = typer.Option(
        None, "--among", help="Participant (repeatable). Defaults to all members"
    ),
    weight: list[int] | None = typer.Option(
        None, "--weight", "-w", help="Share weight per participant (repeatable)"
    ),
    description: str | None = typer.Option(None, "--description", "-d", help="What it was for"),
):
    """Record a shared expense."""
    with open_ledger(ctx, group) as (service, db, settings):
        event = ExpenseEvent(
            payer=payer,
            total_amount=to_positive_minor_units(amount, settings.minor_digits),
            participants=tuple(among) if among else service.members(group),
            weights=tuple(weight) if weight else None,
            description=description,
        )
        result = service.record_expense(group, event)
        db.append_entry(result.entry)

        console.print(f"[green]✓ Recorded expense #{result.entry.sequence}[/green]")
        display_balances(group, result.balances, settings)


@app.command()
def settle(
    ctx: typer.Context,
    group: str = typer.Argument(..., help="Group identifier"),
    from_member: str = typer.Option(..., "--from", help="Member who paid"),
    to_member: str = typer.Option(..., "--to", help="Member who was paid"),
    amount: str = typer.Option(..., "--amount", "-a", help="Amount paid, e.g. 30.00"),
    method: str | None = typer.Option(None, "--method", help="Payment method"),
    notes: str | None = typer.Option(None, "--notes", help="Free-form notes"),
):
    """Record a direct payment between two members."""
    with open_ledger(ctx, group) as (service, db, settings):
        event = SettlementEvent(
            from_member=from_member,
            to_member=to_member,
            amount=to_positive_minor_units(amount, settings.minor_digits),
            payment_method=method,
            notes=notes,
        )
        result = service.record_settlement(group, event)
        db.append_entry(result.entry)

        console.print(f"[green]✓ Recorded settlement #{result.entry.sequence}[/green]")
        display_balances(group, result.balances, settings)


@app.command()
def balances(
    ctx: typer.Context,
    group: str = typer.Argument(..., help="Group identifier"),
):
    """Show each member's net balance."""
    with open_ledger(ctx, group) as (service, db, settings):
        display_balances(group, service.balances(group), settings)


@app.command()
def plan(
    ctx: typer.Context,
    group: str = typer.Argument(..., help="Group identifier"),
):
    """Show the payments that would settle the group."""
    with open_ledger(ctx, group) as (service, db, settings):
        payments = service.settlement_plan(group)

        if not payments:
            console.print(f"[green]✓ Everyone in {group} is settled up[/green]")
            return

        table = Table(title=f"Settlement plan: {group}", show_header=True, header_style="bold magenta")
        table.add_column("#", style="dim", width=4)
        table.add_column("From", style="cyan")
        table.add_column("To", style="cyan")
        table.add_column("Amount", justify="right")

        for index, payment in enumerate(payments, start=1):
            table.add_row(
                str(index),
                payment.from_member,
                payment.to_member,
                format_minor_units(payment.amount, settings.minor_digits, settings.currency_symbol),
            )

        console.print(table)
        console.print(f"  {len(payments)} payment(s) settle the group")


@app.command()
def history(
    ctx: typer.Context,
    group: str = typer.Argument(..., help="Group identifier"),
    member: str | None = typer.Option(None, "--member", "-m", help="Only entries for this member"),
):
    """List recorded expenses and settlements."""
    with open_ledger(ctx, group) as (service, db, settings):
        entries = service.history(group, member)

        if not entries:
            console.print("[yellow]No entries recorded.[/yellow]")
            return

        table = Table(title=f"History: {group}", show_header=True, header_style="bold magenta")
        table.add_column("#", style="dim", width=4)
        table.add_column("Date", style="dim")
        table.add_column("Kind")
        table.add_column("Description", style="cyan", no_wrap=False)
        table.add_column("Amount", justify="right")

        for entry in entries:
            kind, detail, amount = describe_entry(entry, settings)
            table.add_row(
                str(entry.sequence),
                entry.recorded_at.date().isoformat(),
                kind,
                detail,
                amount,
            )

        console.print(table)


if __name__ == "__main__":
    app()
