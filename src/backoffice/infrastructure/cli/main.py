import logging

import click

from backoffice.application.access import Actor, Role
from backoffice.config import get_settings
from backoffice.infrastructure.cli.client_commands import client_add
from backoffice.infrastructure.cli.product_commands import (
    product_add,
    product_delete,
    product_list,
)
from backoffice.infrastructure.cli.sale_commands import (
    sale_approve,
    sale_cancel,
    sale_create,
    sale_deliver,
    sale_edit,
    sale_list,
    sale_show,
)
from backoffice.infrastructure.cli.stock_commands import (
    stock_adjust,
    stock_audit,
    stock_movements,
    stock_show,
)


@click.group()
@click.option("--user", default="admin", envvar="BACKOFFICE_USER", show_default=True,
              help="Who is acting.")
@click.option("--role", type=click.Choice([r.value for r in Role]), default=Role.ADMIN.value,
              envvar="BACKOFFICE_ROLE", show_default=True, help="Role of the acting user.")
@click.pass_context
def cli(ctx: click.Context, user: str, role: str) -> None:
    """Backoffice - sale lifecycle and inventory reservations"""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = Actor(id=user, role=Role(role))


@cli.group()
def sale() -> None:
    """Manage sales."""


@cli.group()
def product() -> None:
    """Manage products."""


@cli.group()
def stock() -> None:
    """Inspect and adjust stock."""


@cli.group()
def client() -> None:
    """Manage clients."""


# Register subcommands
sale.add_command(sale_approve)
sale.add_command(sale_cancel)
sale.add_command(sale_create)
sale.add_command(sale_deliver)
sale.add_command(sale_edit)
sale.add_command(sale_list)
sale.add_command(sale_show)
product.add_command(product_add)
product.add_command(product_delete)
product.add_command(product_list)
stock.add_command(stock_adjust)
stock.add_command(stock_audit)
stock.add_command(stock_movements)
stock.add_command(stock_show)
client.add_command(client_add)
