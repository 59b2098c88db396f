"""Create order and customer_activity tables

Revision ID: 003
Revises: 002
Create Date: 2026-01-12 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '003'
down_revision = '002'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'order',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('order_number', sa.Text(), nullable=False),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('scheduled_date', sa.Date(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), server_default=sa.text("'DRAFT'"), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_number', name='uq_order_order_number')
    )

    op.create_foreign_key(
        'fk_order_customer',
        'order', 'customer',
        ['customer_id'], ['id'],
        ondelete='RESTRICT'
    )
    op.create_check_constraint(
        'ck_order_status',
        'order',
        sa.text(
            "status IN ('DRAFT', 'OPEN', 'ACTIVE', 'IN_PROGRESS', 'COMPLETED', 'CANCELLED', 'EXPIRED')"
        )
    )
    op.create_index('ix_order_customer_id', 'order', ['customer_id'])
    op.create_index('ix_order_scheduled_date', 'order', ['scheduled_date'])

    op.create_table(
        'customer_activity',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('activity_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('order_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('customer_price_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('quantity', sa.Integer(), server_default=sa.text('1'), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('line_total', sa.Numeric(14, 2), nullable=True),
        sa.Column('base_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('currency', sa.Text(), nullable=True),
        sa.Column('unit', sa.Text(), nullable=True),
        sa.Column('price_source', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_foreign_key(
        'fk_customer_activity_customer',
        'customer_activity', 'customer',
        ['customer_id'], ['id'],
        ondelete='CASCADE'
    )
    op.create_foreign_key(
        'fk_customer_activity_activity',
        'customer_activity', 'activity',
        ['activity_id'], ['id'],
        ondelete='RESTRICT'
    )
    op.create_foreign_key(
        'fk_customer_activity_order',
        'customer_activity', 'order',
        ['order_id'], ['id'],
        ondelete='CASCADE'
    )
    # Deleting a tier keeps the snapshot but drops the reference
    op.create_foreign_key(
        'fk_customer_activity_customer_price',
        'customer_activity', 'customer_price',
        ['customer_price_id'], ['id'],
        ondelete='SET NULL'
    )

    op.create_check_constraint(
        'ck_customer_activity_quantity_positive',
        'customer_activity',
        sa.text('quantity > 0')
    )
    op.create_index('ix_customer_activity_customer_id', 'customer_activity', ['customer_id'])
    op.create_index('ix_customer_activity_order_id', 'customer_activity', ['order_id'])

    op.execute("""
        CREATE TRIGGER update_order_updated_at
        BEFORE UPDATE ON "order"
        FOR EACH ROW
        EXECUTE FUNCTION update_updated_at_column();
    """)


def downgrade():
    op.execute('DROP TRIGGER IF EXISTS update_order_updated_at ON "order"')

    op.drop_index('ix_customer_activity_order_id', table_name='customer_activity')
    op.drop_index('ix_customer_activity_customer_id', table_name='customer_activity')
    op.drop_table('customer_activity')

    op.drop_index('ix_order_scheduled_date', table_name='order')
    op.drop_index('ix_order_customer_id', table_name='order')
    op.drop_table('order')
