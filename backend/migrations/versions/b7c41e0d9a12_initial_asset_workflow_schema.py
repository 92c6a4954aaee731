"""initial asset workflow schema

Revision ID: b7c41e0d9a12
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the assetVerse schema:
- users: HR and employee accounts (seat limit on HR rows)
- packages: purchasable seat tiers
- assets: inventory with non-negative quantity and optimistic version_id
- asset_requests: request lifecycle (pending/approved/denied/rejected)
- employee_memberships: roster, UNIQUE(employee_email, hr_email)
- payments: completed purchases, UNIQUE(session_id)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'b7c41e0d9a12'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('photo_url', sa.String(length=512), nullable=True),
        sa.Column('date_of_birth', sa.String(length=10), nullable=True),
        sa.Column('company_name', sa.String(length=255), nullable=True),
        sa.Column('company_logo', sa.String(length=512), nullable=True),
        sa.Column('employee_limit', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('employee_limit >= 0', name='ck_users_employee_limit_nonnegative'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'], unique=False)

    op.create_table(
        'packages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('employee_limit', sa.Integer(), nullable=False),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('features', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )

    op.create_table(
        'assets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('hr_email', sa.String(length=255), nullable=False),
        sa.Column('company_name', sa.String(length=255), nullable=True),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('product_type', sa.String(length=64), nullable=False),
        sa.Column('product_image', sa.String(length=512), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['hr_email'], ['users.email']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity >= 0', name='ck_assets_quantity_nonnegative'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_assets_hr_email', 'assets', ['hr_email'], unique=False)
    op.create_index('ix_assets_product_type', 'assets', ['product_type'], unique=False)
    op.create_index('ix_assets_hr_product_name', 'assets', ['hr_email', 'product_name'], unique=False)

    op.create_table(
        'asset_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('asset_id', sa.Integer(), nullable=True),
        sa.Column('asset_name', sa.String(length=255), nullable=False),
        sa.Column('asset_type', sa.String(length=64), nullable=True),
        sa.Column('requester_email', sa.String(length=255), nullable=False),
        sa.Column('requester_name', sa.String(length=255), nullable=True),
        sa.Column('hr_email', sa.String(length=255), nullable=False),
        sa.Column('company_name', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('note', sa.String(length=500), nullable=True),
        sa.Column('assigned_directly', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('requested_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['asset_id'], ['assets.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_asset_requests_asset_id', 'asset_requests', ['asset_id'], unique=False)
    op.create_index('ix_asset_requests_requester_email', 'asset_requests', ['requester_email'], unique=False)
    op.create_index('ix_asset_requests_hr_email', 'asset_requests', ['hr_email'], unique=False)
    op.create_index('ix_asset_requests_status', 'asset_requests', ['status'], unique=False)
    op.create_index('ix_asset_requests_hr_status', 'asset_requests', ['hr_email', 'status'], unique=False)
    op.create_index('ix_asset_requests_requester_hr', 'asset_requests', ['requester_email', 'hr_email'], unique=False)

    op.create_table(
        'employee_memberships',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('employee_email', sa.String(length=255), nullable=False),
        sa.Column('employee_name', sa.String(length=255), nullable=True),
        sa.Column('hr_email', sa.String(length=255), nullable=False),
        sa.Column('company_name', sa.String(length=255), nullable=True),
        sa.Column('added_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['hr_email'], ['users.email']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('employee_email', 'hr_email', name='uq_employee_memberships_employee_hr'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_employee_memberships_employee_email', 'employee_memberships', ['employee_email'], unique=False)
    op.create_index('ix_employee_memberships_hr_email', 'employee_memberships', ['hr_email'], unique=False)

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.String(length=255), nullable=False),
        sa.Column('hr_email', sa.String(length=255), nullable=False),
        sa.Column('package_id', sa.Integer(), nullable=True),
        sa.Column('package_name', sa.String(length=64), nullable=True),
        sa.Column('employee_limit', sa.Integer(), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(length=8), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['hr_email'], ['users.email']),
        sa.ForeignKeyConstraint(['package_id'], ['packages.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_payments_session_id', 'payments', ['session_id'], unique=True)
    op.create_index('ix_payments_hr_email', 'payments', ['hr_email'], unique=False)
    op.create_index('ix_payments_package_id', 'payments', ['package_id'], unique=False)


def downgrade():
    op.drop_table('payments')
    op.drop_table('employee_memberships')
    op.drop_table('asset_requests')
    op.drop_table('assets')
    op.drop_table('packages')
    op.drop_table('users')
