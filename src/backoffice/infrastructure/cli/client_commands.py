"""CLI commands for the client directory."""

from __future__ import annotations

import uuid

import click

from backoffice.infrastructure.bootstrap import client_directory


@click.command("add")
@click.option("--name", required=True, help="Client name.")
@click.option("--id", "client_id", default=None, help="Client ID; generated when omitted.")
def client_add(name: str, client_id: str | None) -> None:
    """Register a client (or rename an existing one)."""
    name = name.strip()
    if not name:
        raise click.ClickException("Client name must not be empty")
    client_id = client_id or uuid.uuid4().hex
    client_directory().register(client_id, name)
    click.echo(f"Client {client_id} '{name}' registered.")
