"""End-to-end tests for the click CLI against a temporary JSON store."""

import re

import pytest
from click.testing import CliRunner

from backoffice.config import get_settings
from backoffice.infrastructure.bootstrap import document_store, row_locks
from backoffice.infrastructure.cli.main import cli


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.setenv("BACKOFFICE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("BACKOFFICE_LOG_LEVEL", "WARNING")
    get_settings.cache_clear()
    document_store.cache_clear()
    row_locks.cache_clear()
    yield CliRunner()
    get_settings.cache_clear()
    document_store.cache_clear()
    row_locks.cache_clear()


def _ok(runner, *args):
    result = runner.invoke(cli, list(args))
    assert result.exit_code == 0, result.output
    return result.output


def _add_product(runner, name="Vaso", price="10.00", quantity="5"):
    output = _ok(runner, "product", "add", "--name", name, "--price", price,
                 "--quantity", quantity)
    return re.search(r"Product (\w+) ", output).group(1)


class TestCli:

    def test_sale_lifecycle(self, runner, tmp_path):
        _ok(runner, "client", "add", "--id", "c1", "--name", "Maria Souza")
        product_id = _add_product(runner)

        output = _ok(runner, "sale", "create", "--client", "c1",
                     "--item", f"{product_id}:3", "--payment", "PIX:30")
        assert "Sale VEN-0001 created." in output
        assert "R$ 30.00" in output

        output = _ok(runner, "stock", "show")
        assert re.search(r"Vaso\s+\S+\s+2\s+3", output)

        output = _ok(runner, "--role", "seller", "sale", "deliver", "--id", "VEN-0001")
        assert "delivered" in output

        output = _ok(runner, "sale", "list", "--status", "entregue")
        assert "VEN-0001" in output and "Maria Souza" in output

        assert "Ledger is consistent." in _ok(runner, "stock", "audit")
        assert (tmp_path / "backoffice.json").exists()

    def test_custom_item_needs_approval(self, runner):
        _ok(runner, "client", "add", "--id", "c1", "--name", "Maria")
        product_id = _add_product(runner)
        _ok(runner, "sale", "create", "--client", "c1",
            "--item", f"{product_id}:2", "--custom", "Pillow X:1:40",
            "--payment", "CARTAO_CREDITO:60:3")

        result = runner.invoke(cli, ["sale", "deliver", "--id", "VEN-0001"])
        assert result.exit_code == 1
        assert "awaiting administrator approval" in result.output

        _ok(runner, "sale", "approve", "--id", "VEN-0001")
        _ok(runner, "sale", "deliver", "--id", "VEN-0001")

    def test_domain_errors_become_click_errors(self, runner):
        _ok(runner, "client", "add", "--id", "c1", "--name", "Maria")
        product_id = _add_product(runner, quantity="1")

        result = runner.invoke(cli, ["sale", "create", "--client", "c1",
                                     "--item", f"{product_id}:2", "--payment", "PIX:20"])
        assert result.exit_code == 1
        assert "Insufficient stock for Vaso" in result.output

    def test_seller_cannot_cancel(self, runner):
        _ok(runner, "client", "add", "--id", "c1", "--name", "Maria")
        product_id = _add_product(runner)
        _ok(runner, "sale", "create", "--client", "c1",
            "--item", f"{product_id}:1", "--payment", "PIX:10")

        result = runner.invoke(cli, ["--role", "seller", "sale", "cancel", "--id", "VEN-0001"])
        assert result.exit_code == 1
        assert "not allowed" in result.output

    def test_bad_item_format(self, runner):
        result = runner.invoke(cli, ["sale", "create", "--client", "c1", "--item", "oops"])
        assert result.exit_code == 2
        assert "Invalid item format" in result.output

    def test_stock_adjust_and_movements(self, runner):
        product_id = _add_product(runner, quantity="2")
        output = _ok(runner, "stock", "adjust", "--product", product_id,
                     "--type", "entrada", "--amount", "4", "--note", "supplier")
        assert "now 6" in output

        output = _ok(runner, "stock", "movements", "--product", product_id)
        assert "manual_adjustment" in output and "initial_stock" in output

    def test_product_list_hides_cost_from_sellers(self, runner):
        _add_product(runner)
        assert "Cost" in _ok(runner, "product", "list")
        assert "Cost" not in _ok(runner, "--role", "seller", "product", "list")
