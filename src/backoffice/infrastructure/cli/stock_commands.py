"""CLI commands for stock levels and the movement ledger."""

from __future__ import annotations

import click

from backoffice.application.audit_ledger import AuditLedgerHandler
from backoffice.application.dto import to_movement_dto
from backoffice.application.list_movements import ListMovementsHandler
from backoffice.application.show_stock import ShowStockHandler
from backoffice.domain.exceptions import DomainException
from backoffice.domain.model.movement import MovementType
from backoffice.infrastructure.bootstrap import reservation_coordinator, unit_of_work_factory

MOVEMENT_TYPES = click.Choice([t.value for t in MovementType])


@click.command("show")
def stock_show() -> None:
    """Show current stock levels."""
    lines = ShowStockHandler(unit_of_work_factory()).handle()

    if not lines:
        click.echo("No products found.")
        return

    click.echo(f"{'Product':<24} {'SKU':<10} {'Quantity':>9} {'Reserved':>9}")
    click.echo("-" * 55)
    for line in lines:
        click.echo(
            f"{line.product_name:<24} {line.sku:<10} {line.quantity:>9} {line.reserved:>9}"
        )


@click.command("adjust")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--type", "movement_type", required=True, type=MOVEMENT_TYPES,
              help="entrada adds stock, saida withdraws it.")
@click.option("--amount", required=True, type=int, help="Units to move.")
@click.option("--note", default=None, help="Reason for the adjustment.")
@click.pass_obj
def stock_adjust(actor, product_id: str, movement_type: str, amount: int, note) -> None:
    """Manually adjust a product's stock (admin only)."""
    try:
        product = reservation_coordinator().adjust_stock(
            actor, product_id, movement_type, amount, note
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Stock for '{product.name}' is now {product.quantity} "
        f"({product.reserved} reserved)"
    )


@click.command("movements")
@click.option("--type", "movement_type", type=MOVEMENT_TYPES, default=None)
@click.option("--product", "product_id", default=None, help="Only this product.")
def stock_movements(movement_type, product_id) -> None:
    """Show the movement history, newest first."""
    try:
        movements = ListMovementsHandler(unit_of_work_factory()).handle(movement_type, product_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not movements:
        click.echo("No movements found.")
        return

    click.echo(f"{'When':<22} {'Product':<34} {'Type':<8} {'Reason':<22} {'Qty':>5}  By")
    click.echo("-" * 100)
    for movement in movements:
        dto = to_movement_dto(movement)
        click.echo(
            f"{dto.created_at:<22} {dto.product_id:<34} {dto.type:<8} "
            f"{dto.reason:<22} {dto.amount:>5}  {dto.actor or '-'}"
        )


@click.command("audit")
def stock_audit() -> None:
    """Check reserved counters against pending sales."""
    problems = AuditLedgerHandler(unit_of_work_factory()).handle()

    if not problems:
        click.echo("Ledger is consistent.")
        return

    for problem in problems:
        click.echo(
            f"{problem.product_name} ({problem.product_id}): quantity={problem.quantity} "
            f"reserved={problem.reserved} expected_reserved={problem.expected_reserved}"
        )
    raise click.ClickException(f"{len(problems)} product(s) out of balance")
