# Overview: Pytest coverage for the Flask CLI command groups.

from tdpos.models import Branch, Employee, Product


def test_seed_demo_is_idempotent(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["catalog", "seed-demo"])
    assert result.exit_code == 0, result.output
    assert "PASS Created branches" in result.output
    assert db_session.query(Branch).count() == 2
    assert db_session.query(Product).count() == 2
    assert db_session.query(Employee).count() == 1

    again = runner.invoke(args=["catalog", "seed-demo"])
    assert "skipping" in again.output
    assert db_session.query(Branch).count() == 2


def test_list_products(app, db_session, tire):
    result = app.test_cli_runner().invoke(args=["catalog", "list-products", "--category", "tire"])
    assert result.exit_code == 0
    assert "Road Grip" in result.output


def test_list_orders_empty(app, db_session):
    result = app.test_cli_runner().invoke(args=["orders", "list"])
    assert "No orders found." in result.output


def test_reset_db_requires_confirmation(app, db_session, branch_a):
    result = app.test_cli_runner().invoke(args=["system", "reset-db"], input="n\n")
    assert result.exit_code != 0
    assert db_session.query(Branch).count() == 1


def test_order_receipt_prints_to_device(app, db_session, orders, order_factory, branch_a, cashier, tire, tmp_path, monkeypatch):
    device = tmp_path / "lp0"
    monkeypatch.setitem(app.config, "RECEIPT_PRINTER_PATH", str(device))
    order_id = orders.insert_order(order_factory(
        branch_id=str(branch_a.id),
        cashier_id=str(cashier.id),
        lines=((str(tire.id), 2, "100.00", "0.00"),),
    ))

    result = app.test_cli_runner().invoke(args=["orders", "receipt", order_id, "--print"])

    assert result.exit_code == 0, result.output
    assert "TD Maseru" in result.output
    printed = device.read_bytes().decode("cp437")
    assert "Road Grip" in printed
    assert "Lerato Mokoena" in printed
    assert "M200.00" in printed


def test_order_receipt_print_needs_printer_path(app, db_session, orders, order_factory, monkeypatch):
    monkeypatch.setitem(app.config, "RECEIPT_PRINTER_PATH", None)
    order_id = orders.insert_order(order_factory())

    result = app.test_cli_runner().invoke(args=["orders", "receipt", order_id, "--print"])

    assert result.exit_code != 0
    assert "RECEIPT_PRINTER_PATH is not set" in result.output


def test_order_receipt_unknown_order(app, db_session):
    result = app.test_cli_runner().invoke(args=["orders", "receipt", "999"])
    assert result.exit_code != 0
    assert "not found" in result.output
