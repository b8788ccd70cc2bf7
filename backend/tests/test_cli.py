# Overview: Pytest coverage for the Flask CLI bootstrap commands.

from backoffice.models import Product, Supplier, SupplierPayment, User


def test_system_init_is_idempotent(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["system", "init"])
    assert result.exit_code == 0, result.output
    assert "PASS Created admin" in result.output

    result = runner.invoke(args=["system", "init"])
    assert result.exit_code == 0, result.output

    assert db_session.query(User).count() == 4
    retailer_user = db_session.query(User).filter_by(email="retailer@commerce.local").one()
    assert retailer_user.retailer_profile.wallet_balance_cents == 100000000
    assert db_session.query(Product).filter(Product.wholesaler_id.isnot(None)).count() == 4


def test_seed_suppliers(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["system", "seed-suppliers"])
    assert result.exit_code == 0, result.output
    runner.invoke(args=["system", "seed-suppliers"])

    assert db_session.query(Supplier).count() == 4
    assert db_session.query(SupplierPayment).count() == 3


def test_users_create(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=[
        "users", "create",
        "--email", "cli@test.rw",
        "--password", "Password123!",
        "--role", "wholesaler",
        "--name", "CLI Traders",
    ])

    assert result.exit_code == 0, result.output
    user = db_session.query(User).filter_by(email="cli@test.rw").one()
    assert user.wholesaler_profile.company_name == "CLI Traders"
