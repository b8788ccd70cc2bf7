"""initial commerce schema

Revision ID: c0m1n1t10001
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the back-office schema:
- users / session_tokens: accounts for all four portals and bearer sessions
- retailer_profiles / retailer_credits / wholesaler_profiles / consumer_profiles
- branches, loans, nfc_cards
- suppliers / supplier_payments
- products: shop inventory (retailer-owned) and catalogue (wholesaler-owned)
- sales / sale_items: POS transactions
- orders / order_items: wholesale orders paid from the retailer wallet
- credit_requests: retailer credit workflow

Stock, wallet balances and credit accounts carry version_id columns used for
optimistic locking, and CHECK constraints keep stock and wallet balances
non-negative.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'c0m1n1t10001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamp(name, nullable=False, **kwargs):
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable,
                     server_default=sa.text('CURRENT_TIMESTAMP'), **kwargs)


def upgrade():
    # ============================================================================
    # users / session_tokens
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        _timestamp('created_at'),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("role IN ('admin', 'retailer', 'wholesaler', 'consumer')", name='ck_users_role'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sa.UniqueConstraint('phone'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        _timestamp('created_at'),
        _timestamp('last_used_at'),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_session_tokens_user_id', 'session_tokens', ['user_id'])
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)
    op.create_index('ix_session_tokens_expires_at', 'session_tokens', ['expires_at'])
    op.create_index('ix_session_tokens_user_active', 'session_tokens', ['user_id', 'is_revoked'])

    # ============================================================================
    # Party profiles
    # ============================================================================
    op.create_table(
        'retailer_profiles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('shop_name', sa.String(length=255), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('wallet_balance_cents', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('credit_limit_cents', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        _timestamp('created_at'),
        sa.CheckConstraint('wallet_balance_cents >= 0', name='ck_retailer_wallet_non_negative'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'retailer_credits',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('retailer_id', sa.Integer(), nullable=False),
        sa.Column('credit_limit_cents', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('used_credit_cents', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('available_credit_cents', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        _timestamp('updated_at'),
        sa.ForeignKeyConstraint(['retailer_id'], ['retailer_profiles.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('retailer_id'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'wholesaler_profiles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('company_name', sa.String(length=255), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=True),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'consumer_profiles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'branches',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('retailer_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=True),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['retailer_id'], ['retailer_profiles.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_branches_retailer_id', 'branches', ['retailer_id'])

    op.create_table(
        'loans',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('consumer_id', sa.Integer(), nullable=False),
        sa.Column('amount_cents', sa.BigInteger(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['consumer_id'], ['consumer_profiles.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_loans_consumer_id', 'loans', ['consumer_id'])

    op.create_table(
        'nfc_cards',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('consumer_id', sa.Integer(), nullable=False),
        sa.Column('uid', sa.String(length=64), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['consumer_id'], ['consumer_profiles.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('uid'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_nfc_cards_consumer_id', 'nfc_cards', ['consumer_id'])

    # ============================================================================
    # Suppliers
    # ============================================================================
    op.create_table(
        'suppliers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('contact_person', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        _timestamp('created_at'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'supplier_payments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=False),
        sa.Column('amount_cents', sa.BigInteger(), nullable=False),
        _timestamp('payment_date'),
        sa.Column('reference', sa.String(length=64), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.CheckConstraint("status IN ('completed', 'pending', 'partial')", name='ck_supplier_payments_status'),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_supplier_payments_supplier_id', 'supplier_payments', ['supplier_id'])
    op.create_index('ix_supplier_payments_payment_date', 'supplier_payments', ['payment_date'])

    # ============================================================================
    # products: shop inventory and wholesale catalogue
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('retailer_id', sa.Integer(), nullable=True),
        sa.Column('wholesaler_id', sa.Integer(), nullable=True),
        sa.Column('supplier_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('sku', sa.String(length=64), nullable=True),
        sa.Column('barcode', sa.String(length=64), nullable=True),
        sa.Column('category', sa.String(length=64), nullable=False, server_default='General'),
        sa.Column('unit', sa.String(length=32), nullable=True),
        sa.Column('price_cents', sa.BigInteger(), nullable=False),
        sa.Column('cost_price_cents', sa.BigInteger(), nullable=True),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('low_stock_threshold', sa.Integer(), nullable=True),
        sa.Column('invoice_number', sa.String(length=64), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.CheckConstraint('stock >= 0', name='ck_products_stock_non_negative'),
        sa.CheckConstraint(
            '(retailer_id IS NOT NULL AND wholesaler_id IS NULL) OR '
            '(retailer_id IS NULL AND wholesaler_id IS NOT NULL)',
            name='ck_products_single_owner'
        ),
        sa.ForeignKeyConstraint(['retailer_id'], ['retailer_profiles.id'], ),
        sa.ForeignKeyConstraint(['wholesaler_id'], ['wholesaler_profiles.id'], ),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_products_retailer_id', 'products', ['retailer_id'])
    op.create_index('ix_products_wholesaler_id', 'products', ['wholesaler_id'])
    op.create_index('ix_products_supplier_id', 'products', ['supplier_id'])
    op.create_index('ix_products_invoice_number', 'products', ['invoice_number'])
    op.create_index('ix_products_retailer_name', 'products', ['retailer_id', 'name'])
    op.create_index('ix_products_wholesaler_category', 'products', ['wholesaler_id', 'category'])
    op.create_index('ix_products_barcode', 'products', ['barcode'])

    # ============================================================================
    # sales / sale_items
    # ============================================================================
    op.create_table(
        'sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('retailer_id', sa.Integer(), nullable=False),
        sa.Column('consumer_id', sa.Integer(), nullable=True),
        sa.Column('subtotal_cents', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('tax_cents', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('discount_cents', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('total_amount_cents', sa.BigInteger(), nullable=False),
        sa.Column('payment_method', sa.String(length=32), nullable=False, server_default='cash'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='completed'),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['retailer_id'], ['retailer_profiles.id'], ),
        sa.ForeignKeyConstraint(['consumer_id'], ['consumer_profiles.id'], ),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_sales_retailer_id', 'sales', ['retailer_id'])
    op.create_index('ix_sales_consumer_id', 'sales', ['consumer_id'])
    op.create_index('ix_sales_payment_method', 'sales', ['payment_method'])
    op.create_index('ix_sales_retailer_created', 'sales', ['retailer_id', 'created_at'])

    op.create_table(
        'sale_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price_cents', sa.BigInteger(), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_sale_items_quantity_positive'),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id'], ),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_sale_items_sale_id', 'sale_items', ['sale_id'])
    op.create_index('ix_sale_items_product_id', 'sale_items', ['product_id'])

    # ============================================================================
    # orders / order_items
    # ============================================================================
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('retailer_id', sa.Integer(), nullable=False),
        sa.Column('wholesaler_id', sa.Integer(), nullable=False),
        sa.Column('total_amount_cents', sa.BigInteger(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'completed')",
            name='ck_orders_status'
        ),
        sa.ForeignKeyConstraint(['retailer_id'], ['retailer_profiles.id'], ),
        sa.ForeignKeyConstraint(['wholesaler_id'], ['wholesaler_profiles.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_orders_retailer_id', 'orders', ['retailer_id'])
    op.create_index('ix_orders_wholesaler_id', 'orders', ['wholesaler_id'])
    op.create_index('ix_orders_created_at', 'orders', ['created_at'])
    op.create_index('ix_orders_wholesaler_status', 'orders', ['wholesaler_id', 'status'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price_cents', sa.BigInteger(), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_order_items_quantity_positive'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])
    op.create_index('ix_order_items_product_id', 'order_items', ['product_id'])

    # ============================================================================
    # credit_requests
    # ============================================================================
    op.create_table(
        'credit_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('retailer_id', sa.Integer(), nullable=False),
        sa.Column('amount_cents', sa.BigInteger(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reviewed_by_user_id', sa.Integer(), nullable=True),
        sa.Column('review_notes', sa.Text(), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        _timestamp('created_at'),
        sa.CheckConstraint("status IN ('pending', 'approved', 'rejected')", name='ck_credit_requests_status'),
        sa.CheckConstraint('amount_cents > 0', name='ck_credit_requests_amount_positive'),
        sa.ForeignKeyConstraint(['retailer_id'], ['retailer_profiles.id'], ),
        sa.ForeignKeyConstraint(['reviewed_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_credit_requests_retailer_id', 'credit_requests', ['retailer_id'])
    op.create_index('ix_credit_requests_status', 'credit_requests', ['status'])


def downgrade():
    """Drop all tables (destructive operation)."""
    op.drop_table('credit_requests')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('sale_items')
    op.drop_table('sales')
    op.drop_table('products')
    op.drop_table('supplier_payments')
    op.drop_table('suppliers')
    op.drop_table('nfc_cards')
    op.drop_table('loans')
    op.drop_table('branches')
    op.drop_table('consumer_profiles')
    op.drop_table('wholesaler_profiles')
    op.drop_table('retailer_credits')
    op.drop_table('retailer_profiles')
    op.drop_table('session_tokens')
    op.drop_table('users')
