# Overview: Flask CLI command groups for bootstrap, seeding, and account management.

# backend/backoffice/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py.
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init
#   Idempotent bootstrap: admin, demo retailer, wholesaler, consumer and catalogue.
# - python -m flask system seed-suppliers
#   Demo suppliers and supplier payments.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Accounts:
# - python -m flask users list [--role retailer]
# - python -m flask users create --email a@b.rw --password "Password123!" --role retailer --name "Shop"

from datetime import datetime

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User, Product, Supplier
from .models.auth import ROLES
from .services import account_service
from .services import inventory_service
from .services import supplier_service
from .services.account_service import AccountError
from .services.auth_service import PasswordValidationError, find_user


DEFAULT_PASSWORD = "Password123!"

DEMO_CATALOGUE = [
    # name, category, price, cost, stock, threshold, unit
    ("Inyange Milk 1L", "Dairy", 80000, 65000, 500, 50, "box"),
    ("Primus Beer 500ml", "Beverages", 1200000, 1000000, 200, 20, "crate"),
    ("Rice 25kg", "Food", 3500000, 3000000, 120, 10, "bag"),
    ("Sugar 50kg", "Food", 6000000, 5200000, 80, 10, "bag"),
]

DEMO_SUPPLIERS = [
    # name, contact person, email, phone, address
    ("Bralirwa Ltd", "Jean Baptiste", "orders@bralirwa.rw", "+250788000001", "KK 15 Ave, Kigali Industrial Zone"),
    ("Inyange Industries", "Marie Rose", "sales@inyange.rw", "+250788000002", "Masaka Sector, Kicukiro"),
    ("SONAFRUITS Rwanda", "Emmanuel K.", "info@sonafruits.rw", "+250788000003", "Nyagatare District"),
    ("Rwanda Farmers Coffee", "Patrick N.", "coffee@rwandafarmers.rw", "+250788000004", "Huye District"),
]

DEMO_SUPPLIER_PAYMENTS = [
    # supplier index, amount (cents), date, reference, status, notes
    (0, 500000000, datetime(2024, 12, 1), "PAY-001", "completed", "Payment for December delivery"),
    (1, 350000000, datetime(2024, 12, 5), "PAY-002", "completed", "Payment for beverage supplies"),
    (2, 280000000, datetime(2024, 12, 10), "PAY-003", "completed", "Payment for fruits"),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--password', default=DEFAULT_PASSWORD, show_default=True, help='Password for seeded users')
@with_appcontext
def init_system(password):
    """
    Create the admin account and one demo account per portal.

    Creates (skipping any that already exist):
    - admin@commerce.local (admin)
    - retailer@commerce.local (retailer, wallet 1,000,000, credit limit 500,000)
    - wholesaler@commerce.local (wholesaler, with a small catalogue)
    - consumer@commerce.local (consumer)

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing back-office...")

    try:
        if not find_user("admin@commerce.local"):
            account_service.create_admin(email="admin@commerce.local", password=password, name="Administrator")
            click.echo("PASS Created admin: admin@commerce.local")
        else:
            click.echo("PASS Admin exists")

        if not find_user("retailer@commerce.local"):
            retailer = account_service.create_retailer(
                email="retailer@commerce.local",
                password=password,
                business_name="Demo Shop",
                phone="+250788100001",
                address="Kigali",
                credit_limit_cents=50000000,
            )
            retailer.wallet_balance_cents = 100000000
            db.session.commit()
            click.echo(f"PASS Created retailer: retailer@commerce.local (profile {retailer.id})")
        else:
            click.echo("PASS Retailer exists")

        wholesaler_user = find_user("wholesaler@commerce.local")
        if not wholesaler_user:
            wholesaler = account_service.create_wholesaler(
                email="wholesaler@commerce.local",
                password=password,
                company_name="Demo Wholesale Ltd",
                phone="+250788200001",
                address="Kigali",
            )
            click.echo(f"PASS Created wholesaler: wholesaler@commerce.local (profile {wholesaler.id})")
        else:
            wholesaler = wholesaler_user.wholesaler_profile
            click.echo("PASS Wholesaler exists")

        if wholesaler and not db.session.query(Product).filter_by(wholesaler_id=wholesaler.id).first():
            for name, category, price, cost, stock, threshold, unit in DEMO_CATALOGUE:
                inventory_service.create_wholesaler_product(
                    wholesaler_id=wholesaler.id,
                    name=name,
                    category=category,
                    price_cents=price,
                    cost_price_cents=cost,
                    stock=stock,
                    low_stock_threshold=threshold,
                    unit=unit,
                )
            click.echo(f"PASS Seeded {len(DEMO_CATALOGUE)} catalogue products")

        if not find_user("consumer@commerce.local"):
            account_service.create_consumer(
                email="consumer@commerce.local",
                password=password,
                full_name="Demo Customer",
                phone="+250788300001",
            )
            click.echo("PASS Created consumer: consumer@commerce.local")
        else:
            click.echo("PASS Consumer exists")

    except (AccountError, PasswordValidationError) as e:
        click.echo(f"FAIL {e}")
        return

    click.echo("DONE Initialization complete.")


@system_group.command('seed-suppliers')
@with_appcontext
def seed_suppliers():
    """Create demo suppliers and payments. Skips suppliers that already exist."""
    created = []
    for name, contact_person, email, phone, address in DEMO_SUPPLIERS:
        supplier = db.session.query(Supplier).filter_by(name=name).first()
        if not supplier:
            supplier = supplier_service.create_supplier(
                name=name,
                contact_person=contact_person,
                email=email,
                phone=phone,
                address=address,
            )
            click.echo(f"PASS Created supplier: {name}")
        created.append(supplier)

    payments = 0
    for index, amount_cents, payment_date, reference, status, notes in DEMO_SUPPLIER_PAYMENTS:
        supplier = created[index]
        if any(p.reference == reference for p in supplier.payments):
            continue
        supplier_service.record_payment(
            supplier_id=supplier.id,
            amount_cents=amount_cents,
            status=status,
            reference=reference,
            payment_date=payment_date,
            notes=notes,
        )
        payments += 1

    click.echo(f"PASS Recorded {payments} supplier payments")


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

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ROLES)), prompt=True, help='Role')
@click.option('--name', help='Display name; shop or company name for retailers and wholesalers')
@click.option('--phone', help='Phone number')
@with_appcontext
def create_user_cli(email, password, role, name, phone):
    """
    Create an account together with its role profile.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        if role == "retailer":
            account_service.create_retailer(email=email, password=password, business_name=name, phone=phone)
        elif role == "wholesaler":
            account_service.create_wholesaler(email=email, password=password, company_name=name, phone=phone)
        elif role == "consumer":
            account_service.create_consumer(email=email, password=password, full_name=name, phone=phone)
        else:
            account_service.create_admin(email=email, password=password, name=name, phone=phone)

        click.echo(f"PASS Created user: {email} with role '{role}'")
        click.echo("SECURITY Password securely hashed with bcrypt")

    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
    except AccountError as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")


@users_group.command('list')
@click.option('--role', type=click.Choice(list(ROLES)), help='Filter by role')
@with_appcontext
def list_users(role):
    """List all users."""
    query = db.session.query(User)
    if role:
        query = query.filter_by(role=role)

    users = query.order_by(User.id.asc()).all()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Email':<35} {'Phone':<16} {'Role':<12} {'Active'}")
    click.echo("="*90)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.email:<35} {user.phone or '-':<16} {user.role:<12} {active_str}")

    click.echo("="*90 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
