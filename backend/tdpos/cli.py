# Overview: Flask CLI command groups for bootstrap, demo data, and inspection.

# backend/tdpos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to tdpos (PowerShell: $env:FLASK_APP="tdpos").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Catalog:
# - python -m flask catalog seed-demo
#   Create two branches, a tire, a bale and an admin employee if the catalog is empty.
# - python -m flask catalog list-products [--category tire] [--branch-id 1]
#   List products with stock and price.
#
# Employees:
# - python -m flask employees create --first-name Lerato --last-name Mokoena --email l@td.co.ls --role Cashier --branch-id 1
#   Create an employee (prompts for the password).
# - python -m flask employees list [--branch-id 1]
#
# Orders:
# - python -m flask orders list [--branch-id 1] [--limit 20]
#   Most recent orders first.
# - python -m flask orders receipt 12 [--print]
#   Show an order receipt; --print sends it to RECEIPT_PRINTER_PATH.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models.employees import EMPLOYEE_ROLES, ROLE_ADMIN
from .services import branch_service, employee_service, product_service, receipt_service
from .stores import OrderFilter, PersistenceError, get_stores
from .validation import CatalogError


DEMO_PASSWORD = "changeme"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that don't exist yet."""
    db.create_all()
    click.echo("PASS Database tables created")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()
    click.echo("BUILD Creating all tables...")
    db.create_all()
    click.echo("PASS Database reset complete")


# =============================================================================
# CATALOG COMMANDS
# =============================================================================

@click.group('catalog')
def catalog_group():
    """Branch and product commands."""


@catalog_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """
    Seed a small demo catalog.

    Skipped when any branch already exists, so it is safe to re-run.
    """
    catalog, _ = get_stores()
    if catalog.find_branches():
        click.echo("WARN Branches already exist, skipping demo seed")
        return

    try:
        maseru = branch_service.create_branch(catalog, {"name": "TD Maseru", "location": "Maseru"})
        leribe = branch_service.create_branch(catalog, {"name": "TD Leribe", "location": "Leribe"})
        click.echo(f"PASS Created branches: {maseru.name}, {leribe.name}")

        tire = product_service.create_product(catalog, {
            "category": "tire",
            "name": "Road Grip 195/65R15",
            "price": "850.00",
            "quantity": 24,
            "grade": "A",
            "tire_size": "195/65R15",
            "tire_type": "Passenger",
            "load_index": "91",
            "speed_rating": "H",
            "branch_ids": [str(maseru.id), str(leribe.id)],
        })
        bale = product_service.create_product(catalog, {
            "category": "bale",
            "name": "Mixed Winter Clothing",
            "price": "2500.00",
            "quantity": 6,
            "grade": "B",
            "bale_weight": "45.00",
            "bale_category": "Clothing",
            "origin_country": "United Kingdom",
            "branch_ids": [str(maseru.id)],
        })
        click.echo(f"PASS Created products: {tire.name}, {bale.name}")

        admin = employee_service.create_employee(catalog, {
            "first_name": "Demo",
            "last_name": "Admin",
            "email": "admin@tdpos.local",
            "role": ROLE_ADMIN,
            "branch_id": maseru.id,
            "password": DEMO_PASSWORD,
        })
        click.echo(f"PASS Created employee: {admin.email} / {DEMO_PASSWORD}")
    except (CatalogError, PersistenceError) as e:
        raise click.ClickException(str(e))

    click.echo("\nSECURITY Change the demo password before real use!")


@catalog_group.command('list-products')
@click.option('--category', type=click.Choice(['tire', 'bale']), help='Filter by category')
@click.option('--branch-id', help='Only products available in this branch')
@with_appcontext
def list_products(category, branch_id):
    """List products with stock and price."""
    catalog, _ = get_stores()
    products = product_service.list_products(catalog, category=category, branch_id=branch_id)

    if not products:
        click.echo("No products found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Category':<9} {'Name':<36} {'Qty':>6} {'Price':>12} {'Branches'}")
    click.echo("="*80)
    for p in products:
        click.echo(
            f"{p.id:<5} {p.category:<9} {p.name[:36]:<36} {p.quantity:>6} {p.price:>12} {','.join(p.branch_ids)}"
        )
    click.echo("="*80 + "\n")


# =============================================================================
# EMPLOYEE COMMANDS
# =============================================================================

@click.group('employees')
def employees_group():
    """Employee management commands."""


@employees_group.command('create')
@click.option('--first-name', prompt=True)
@click.option('--last-name', prompt=True)
@click.option('--email', prompt=True)
@click.option('--role', type=click.Choice(EMPLOYEE_ROLES), default=EMPLOYEE_ROLES[0], show_default=True)
@click.option('--branch-id', type=int, help='Branch the employee works at')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_employee(first_name, last_name, email, role, branch_id, password):
    """Create an employee who can sign in at the POS."""
    catalog, _ = get_stores()
    try:
        employee = employee_service.create_employee(catalog, {
            "first_name": first_name,
            "last_name": last_name,
            "email": email,
            "role": role,
            "branch_id": branch_id,
            "password": password,
        })
    except (CatalogError, PersistenceError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created employee {employee.full_name} ({employee.email}, ID: {employee.id})")


@employees_group.command('list')
@click.option('--branch-id', help='Filter by branch ID')
@with_appcontext
def list_employees(branch_id):
    """List employees with their role and branch."""
    catalog, _ = get_stores()
    rows = employee_service.list_employees(catalog, branch_id=branch_id)

    if not rows:
        click.echo("No employees found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Name':<28} {'Email':<30} {'Role':<9} {'Branch'}")
    click.echo("="*90)
    for row in rows:
        branch = row["branch"]["name"] if row.get("branch") else "-"
        name = f"{row['first_name']} {row['last_name']}"
        click.echo(f"{row['id']:<5} {name[:28]:<28} {row['email'][:30]:<30} {row['role']:<9} {branch}")
    click.echo("="*90 + "\n")


# =============================================================================
# ORDER COMMANDS
# =============================================================================

@click.group('orders')
def orders_group():
    """Order inspection commands."""


@orders_group.command('list')
@click.option('--branch-id', help='Filter by branch ID')
@click.option('--limit', type=int, default=20, show_default=True)
@with_appcontext
def list_orders(branch_id, limit):
    """List recent orders, newest first."""
    _, orders = get_stores()
    records = orders.find_orders(OrderFilter(branch_id=branch_id, limit=limit, newest_first=True))

    if not records:
        click.echo("No orders found.")
        return

    for o in records:
        click.echo(
            f"{o.id:<6} {o.order_number:<16} {o.created_at:%Y-%m-%d %H:%M}  "
            f"{o.payment_method:<7} {o.total_amount:>12}  branch={o.branch_id} cashier={o.cashier_id}"
        )


@orders_group.command('receipt')
@click.argument('order_id')
@click.option('--print', 'send_to_printer', is_flag=True, help='Send to RECEIPT_PRINTER_PATH')
@with_appcontext
def order_receipt(order_id, send_to_printer):
    """Show (and optionally print) the receipt of an order."""
    catalog, orders = get_stores()
    order = orders.find_order_by_id(order_id)
    if order is None:
        raise click.ClickException(f"Order {order_id} not found")

    _, text = receipt_service.receipt_for_order(catalog, order, current_app.config)
    click.echo(text)

    if send_to_printer:
        path = current_app.config.get("RECEIPT_PRINTER_PATH")
        if not path:
            raise click.ClickException("RECEIPT_PRINTER_PATH is not set")
        try:
            receipt_service.print_receipt(receipt_service.DevicePrinter(path), text)
        except OSError as e:
            raise click.ClickException(f"Printer at {path} failed: {e}")
        click.echo(f"PASS Sent receipt {order.order_number} to {path}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(employees_group)
    app.cli.add_command(orders_group)
