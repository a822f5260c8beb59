"""CLI commands for the Product catalog."""

from __future__ import annotations

import click

from backoffice.application.dto import to_product_dto
from backoffice.application.show_stock import ListProductsHandler
from backoffice.domain.exceptions import DomainException
from backoffice.infrastructure.bootstrap import reservation_coordinator, unit_of_work_factory


@click.command("add")
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, help="Sale price (e.g. 15.00).")
@click.option("--cost", "factory_cost", default="0", show_default=True, help="Factory cost.")
@click.option("--quantity", default=0, type=int, show_default=True, help="Initial stock.")
@click.option("--sku", default=None, help="SKU; generated when omitted.")
@click.option("--image", "image_ref", default=None, help="Image reference.")
@click.pass_obj
def product_add(actor, name, price, factory_cost, quantity, sku, image_ref) -> None:
    """Add a new product to the catalog (admin only)."""
    try:
        product = reservation_coordinator().create_product(
            actor,
            name=name,
            price=price,
            factory_cost=factory_cost,
            initial_quantity=quantity,
            sku=sku,
            image_ref=image_ref,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product {product.id} '{product.name}' ({product.sku}) added at {product.price}")


@click.command("list")
@click.option("--search", default=None, help="Match name or SKU.")
@click.pass_obj
def product_list(actor, search) -> None:
    """List products in the catalog, newest first."""
    products = ListProductsHandler(unit_of_work_factory()).handle(search)

    if not products:
        click.echo("No products found.")
        return

    show_cost = actor.is_admin
    header = f"{'ID':<34} {'SKU':<10} {'Name':<24} {'Price':>12} {'Qty':>6} {'Res.':>6}"
    if show_cost:
        header += f" {'Cost':>12}"
    click.echo(header)
    click.echo("-" * len(header))
    for product in products:
        dto = to_product_dto(product, include_cost=show_cost)
        line = (
            f"{dto.id:<34} {dto.sku:<10} {dto.name:<24} {dto.price:>12} "
            f"{dto.quantity:>6} {dto.reserved:>6}"
        )
        if dto.factory_cost is not None:
            line += f" {dto.factory_cost:>12}"
        click.echo(line)


@click.command("delete")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.pass_obj
def product_delete(actor, product_id: str) -> None:
    """Remove a product with no stock left (admin only)."""
    try:
        reservation_coordinator().delete_product(actor, product_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product {product_id} removed.")
