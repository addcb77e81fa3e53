"""inventory ledger schema

Revision ID: 0001_inventory_ledger
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_inventory_ledger'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade():
    """Create reference, catalog, instance and audit tables"""
    op.create_table(
        'category',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False, unique=True),
        sa.Column('attribute_schema', sa.JSON(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'branch',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=True, unique=True),
        *_timestamps(),
    )

    op.create_table(
        'product',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('sku', sa.String(length=64), nullable=False, unique=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('category.id'), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'batch_type',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=64), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_convertible', sa.Boolean(), nullable=False),
        sa.Column('converts_to_id', sa.Integer(), sa.ForeignKey('batch_type.id'), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'category_batch_type',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('category.id'), nullable=False),
        sa.Column('batch_type_id', sa.Integer(), sa.ForeignKey('batch_type.id'), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False),
        sa.UniqueConstraint('category_id', 'batch_type_id', name='uq_category_batch_type'),
    )

    op.create_table(
        'inventory_instance',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('product.id'), nullable=False),
        sa.Column('branch_id', sa.Integer(), sa.ForeignKey('branch.id'), nullable=False),
        sa.Column('batch_type_id', sa.Integer(), sa.ForeignKey('batch_type.id'), nullable=False),
        sa.Column('instance_code', sa.String(length=100), nullable=False),
        sa.Column('grouped', sa.Boolean(), nullable=False),
        sa.Column('initial_quantity', sa.Numeric(15, 3), nullable=False),
        sa.Column('remaining_quantity', sa.Numeric(15, 3), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('attribute_data', sa.JSON(), nullable=True),
        sa.Column('source_instance_id', sa.String(length=36), sa.ForeignKey('inventory_instance.id'), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('instance_code', name='uq_inventory_instance_code'),
        sa.CheckConstraint('initial_quantity >= 0', name='check_instance_initial_non_negative'),
        sa.CheckConstraint('remaining_quantity >= 0', name='check_instance_remaining_non_negative'),
        sa.CheckConstraint('remaining_quantity <= initial_quantity', name='check_instance_remaining_not_exceeds_initial'),
        sa.CheckConstraint("status IN ('in_stock', 'depleted', 'scrapped')", name='check_instance_status_valid'),
    )
    op.create_index('ix_inventory_instance_product_id', 'inventory_instance', ['product_id'])
    op.create_index('ix_inventory_instance_branch_id', 'inventory_instance', ['branch_id'])
    op.create_index(
        'ix_inventory_instance_lookup',
        'inventory_instance',
        ['product_id', 'branch_id', 'batch_type_id'],
    )

    op.create_table(
        'inventory_audit_entry',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('event_code', sa.String(length=32), nullable=False, unique=True),
        sa.Column('event_type', sa.String(length=32), nullable=False),
        sa.Column('instance_id', sa.String(length=36), sa.ForeignKey('inventory_instance.id'), nullable=False),
        sa.Column('related_instance_id', sa.String(length=36), sa.ForeignKey('inventory_instance.id'), nullable=True),
        sa.Column('old_quantity', sa.Numeric(15, 3), nullable=True),
        sa.Column('new_quantity', sa.Numeric(15, 3), nullable=True),
        sa.Column('quantity_change', sa.Numeric(15, 3), nullable=False),
        sa.Column('from_branch_id', sa.Integer(), sa.ForeignKey('branch.id'), nullable=True),
        sa.Column('to_branch_id', sa.Integer(), sa.ForeignKey('branch.id'), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('actor', sa.String(length=128), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_inventory_audit_entry_instance_id', 'inventory_audit_entry', ['instance_id'])
    op.create_index('ix_inventory_audit_entry_timestamp', 'inventory_audit_entry', ['timestamp'])


def downgrade():
    """Drop ledger tables in reverse dependency order"""
    op.drop_index('ix_inventory_audit_entry_timestamp', table_name='inventory_audit_entry')
    op.drop_index('ix_inventory_audit_entry_instance_id', table_name='inventory_audit_entry')
    op.drop_table('inventory_audit_entry')

    op.drop_index('ix_inventory_instance_lookup', table_name='inventory_instance')
    op.drop_index('ix_inventory_instance_branch_id', table_name='inventory_instance')
    op.drop_index('ix_inventory_instance_product_id', table_name='inventory_instance')
    op.drop_table('inventory_instance')

    op.drop_table('category_batch_type')
    op.drop_table('batch_type')
    op.drop_table('product')
    op.drop_table('branch')
    op.drop_table('category')
