"""CLI commands for the Sale aggregate."""

from __future__ import annotations

from datetime import timedelta

import click

from backoffice.application.dto import SaleDTO, to_sale_dto
from backoffice.application.list_sales import ListSalesHandler
from backoffice.application.show_sale import ShowSaleHandler
from backoffice.domain.exceptions import DomainException
from backoffice.domain.model.draft import ItemSpec, PaymentSpec
from backoffice.domain.model.sale import SaleStatus
from backoffice.infrastructure.bootstrap import (
    client_directory,
    reservation_coordinator,
    unit_of_work_factory,
)

DATE = click.DateTime(formats=["%Y-%m-%d"])


def _int(raw: str, what: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise click.BadParameter(f"Invalid {what} '{raw}'.")


def _parse_items(raw_items: tuple[str, ...]) -> list[ItemSpec]:
    """Parse 'PRODUCT_ID:QTY[:PRICE[:DISCOUNT]]' values."""
    specs: list[ItemSpec] = []
    for raw in raw_items:
        parts = [p.strip() for p in raw.split(":")]
        if len(parts) < 2 or len(parts) > 4:
            raise click.BadParameter(
                f"Invalid item format '{raw}'. Expected 'ProductId:Qty[:Price[:Discount]]'."
            )
        specs.append(
            ItemSpec.catalog(
                product_id=parts[0],
                quantity=_int(parts[1], f"quantity for product '{parts[0]}'"),
                unit_price=parts[2] if len(parts) > 2 and parts[2] else None,
                discount=parts[3] if len(parts) > 3 and parts[3] else "0",
            )
        )
    return specs


def _parse_custom(raw_items: tuple[str, ...]) -> list[ItemSpec]:
    """Parse 'NAME:QTY:PRICE[:DISCOUNT[:SKU]]' values."""
    specs: list[ItemSpec] = []
    for raw in raw_items:
        parts = [p.strip() for p in raw.split(":")]
        if len(parts) < 3 or len(parts) > 5:
            raise click.BadParameter(
                f"Invalid custom item '{raw}'. Expected 'Name:Qty:Price[:Discount[:Sku]]'."
            )
        specs.append(
            ItemSpec.custom(
                name=parts[0],
                quantity=_int(parts[1], f"quantity for '{parts[0]}'"),
                unit_price=parts[2],
                discount=parts[3] if len(parts) > 3 and parts[3] else "0",
                sku=parts[4] if len(parts) > 4 else None,
            )
        )
    return specs


def _parse_payments(raw_payments: tuple[str, ...]) -> list[PaymentSpec]:
    """Parse 'METHOD:AMOUNT[:INSTALLMENTS]' values."""
    specs: list[PaymentSpec] = []
    for raw in raw_payments:
        parts = [p.strip() for p in raw.split(":")]
        if len(parts) not in (2, 3):
            raise click.BadParameter(
                f"Invalid payment '{raw}'. Expected 'Method:Amount[:Installments]'."
            )
        installments = _int(parts[2], "installments") if len(parts) == 3 else 1
        specs.append(PaymentSpec(method=parts[0], amount=parts[1], installments=installments))
    return specs


def _display_sale(dto: SaleDTO) -> None:
    """Shared formatting for displaying a sale."""
    click.echo(f"Sale {dto.public_id}  (status={dto.status})")
    click.echo(f"Client:   {dto.client_name or dto.client_id}")
    click.echo(f"Created:  {dto.created_at}")
    if dto.delivery_date:
        click.echo(f"Delivery: {dto.delivery_date}")
    if dto.requires_approval:
        click.echo("** Awaiting administrator approval **")
    click.echo()
    click.echo(f"  {'Item':<24} {'SKU':<10} {'Qty':>5} {'Price':>12} {'Disc.':>10} {'Total':>12}")
    click.echo(f"  {'-'*78}")
    for item in dto.items:
        flag = "*" if item.awaiting_approval else " "
        click.echo(
            f" {flag}{item.name:<24} {item.sku:<10} {item.quantity:>5} "
            f"{item.unit_price:>12} {item.discount:>10} {item.line_total:>12}"
        )
    click.echo(f"  {'-'*78}")
    click.echo(f"  {'Subtotal':<30} {dto.subtotal:>48}")
    click.echo(f"  {'Discount':<30} {dto.discount:>48}")
    click.echo(f"  {'Total':<30} {dto.total:>48}")
    if dto.payments:
        click.echo()
        for payment in dto.payments:
            extra = f" in {payment.installments}x" if payment.installments > 1 else ""
            click.echo(f"  {payment.method}: {payment.amount}{extra}")
    if dto.note:
        click.echo()
        click.echo(f"Note: {dto.note}")


def _sale_options(func):
    options = [
        click.option("--item", "items", multiple=True,
                     help="Catalog item 'ProductId:Qty[:Price[:Discount]]' (repeatable)."),
        click.option("--custom", "customs", multiple=True,
                     help="Custom item 'Name:Qty:Price[:Discount[:Sku]]' (repeatable)."),
        click.option("--payment", "payments", multiple=True,
                     help="Payment 'Method:Amount[:Installments]' (repeatable)."),
        click.option("--discount", default="0", show_default=True, help="Discount on the whole sale."),
        click.option("--note", default=None, help="Free-text note."),
        click.option("--delivery-date", type=DATE, default=None, help="Delivery date (YYYY-MM-DD)."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.command("create")
@click.option("--client", "client_id", required=True, help="Client ID.")
@click.option("--draft-id", default=None, help="Idempotency key; repeating it returns the same sale.")
@_sale_options
@click.pass_obj
def sale_create(actor, client_id, draft_id, items, customs, payments, discount, note, delivery_date) -> None:
    """Create a sale (reserves stock for catalog items)."""
    specs = _parse_items(items) + _parse_custom(customs)
    try:
        sale = reservation_coordinator().create_sale(
            actor,
            client_id,
            specs,
            _parse_payments(payments),
            discount=discount,
            note=note,
            delivery_date=delivery_date.date() if delivery_date else None,
            draft_id=draft_id,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Sale {sale.public_id} created.")
    _display_sale(to_sale_dto(sale, client_directory().get_name(sale.client_id)))


@click.command("edit")
@click.option("--id", "sale_id", required=True, help="Sale ID or code (e.g. VEN-0001).")
@_sale_options
@click.pass_obj
def sale_edit(actor, sale_id, items, customs, payments, discount, note, delivery_date) -> None:
    """Replace the contents of a pending sale (admin only)."""
    specs = _parse_items(items) + _parse_custom(customs)
    try:
        sale = reservation_coordinator().edit_sale(
            actor,
            sale_id,
            specs,
            _parse_payments(payments),
            discount=discount,
            note=note,
            delivery_date=delivery_date.date() if delivery_date else None,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Sale {sale.public_id} updated.")
    _display_sale(to_sale_dto(sale, client_directory().get_name(sale.client_id)))


@click.command("show")
@click.option("--id", "sale_id", required=True, help="Sale ID or code to display.")
def sale_show(sale_id: str) -> None:
    """Show details of an existing sale."""
    handler = ShowSaleHandler(unit_of_work_factory())

    try:
        sale = handler.handle(sale_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_sale(to_sale_dto(sale, client_directory().get_name(sale.client_id)))


@click.command("list")
@click.option("--status", type=click.Choice([s.value for s in SaleStatus]), default=None)
@click.option("--client", "client_id", default=None, help="Only this client's sales.")
@click.option("--search", default=None, help="Match sale code or client name.")
@click.option("--start", type=DATE, default=None, help="Created on or after (YYYY-MM-DD).")
@click.option("--end", type=DATE, default=None, help="Created on or before (YYYY-MM-DD).")
def sale_list(status, client_id, search, start, end) -> None:
    """List sales, newest first."""
    clients = client_directory()
    handler = ListSalesHandler(unit_of_work_factory(), clients)
    sales = handler.handle(
        status=SaleStatus(status) if status else None,
        client_id=client_id,
        search=search,
        start=start.astimezone() if start else None,
        end=(end + timedelta(days=1)).astimezone() if end else None,
    )

    if not sales:
        click.echo("No sales found.")
        return

    click.echo(f"{'Code':<10} {'Client':<24} {'Status':<10} {'Total':>14}  Approval")
    click.echo("-" * 70)
    for sale in sales:
        name = clients.get_name(sale.client_id) or sale.client_id
        approval = "pending" if sale.requires_approval else ""
        click.echo(
            f"{sale.public_id:<10} {name:<24} {sale.status.value:<10} {str(sale.total):>14}  {approval}"
        )


@click.command("deliver")
@click.option("--id", "sale_id", required=True, help="Sale ID or code.")
@click.pass_obj
def sale_deliver(actor, sale_id: str) -> None:
    """Confirm delivery (releases the reservation)."""
    try:
        sale = reservation_coordinator().confirm_delivery(actor, sale_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Sale {sale.public_id} delivered.")


@click.command("cancel")
@click.option("--id", "sale_id", required=True, help="Sale ID or code.")
@click.pass_obj
def sale_cancel(actor, sale_id: str) -> None:
    """Cancel a pending sale (restores reserved stock, admin only)."""
    try:
        sale = reservation_coordinator().cancel_sale(actor, sale_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Sale {sale.public_id} cancelled.")


@click.command("approve")
@click.option("--id", "sale_id", required=True, help="Sale ID or code.")
@click.pass_obj
def sale_approve(actor, sale_id: str) -> None:
    """Approve the custom items of a sale (admin only)."""
    try:
        sale = reservation_coordinator().approve_sale(actor, sale_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Sale {sale.public_id} approved.")
