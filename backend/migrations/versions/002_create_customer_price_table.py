"""Create customer_price table with tier exclusion constraint

Active tiers of the same (customer, activity) must not overlap in both the
quantity range and the validity window. The service checks this under a
customer row lock; the exclusion constraint rejects any write that slips
through.

Revision ID: 002
Revises: 001
Create Date: 2026-01-12 09:30:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade():
    # Needed for uuid equality inside a GiST exclusion constraint
    op.execute('CREATE EXTENSION IF NOT EXISTS btree_gist')

    op.create_table(
        'customer_price',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('activity_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('min_quantity', sa.Integer(), server_default=sa.text('1'), nullable=False),
        sa.Column('max_quantity', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.Text(), server_default=sa.text("'EUR'"), nullable=False),
        sa.Column('effective_from', sa.Date(), nullable=False),
        sa.Column('effective_to', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_foreign_key(
        'fk_customer_price_customer',
        'customer_price', 'customer',
        ['customer_id'], ['id'],
        ondelete='CASCADE'
    )
    op.create_foreign_key(
        'fk_customer_price_activity',
        'customer_price', 'activity',
        ['activity_id'], ['id'],
        ondelete='CASCADE'
    )

    op.create_check_constraint(
        'ck_customer_price_price_positive',
        'customer_price',
        sa.text('price > 0')
    )
    op.create_check_constraint(
        'ck_customer_price_min_quantity_positive',
        'customer_price',
        sa.text('min_quantity > 0')
    )
    op.create_check_constraint(
        'ck_customer_price_quantity_range',
        'customer_price',
        sa.text('min_quantity <= max_quantity')
    )
    op.create_check_constraint(
        'ck_customer_price_validity_window',
        'customer_price',
        sa.text('effective_to IS NULL OR effective_to >= effective_from')
    )

    # Closed ranges on both axes; daterange with a NULL upper bound is unbounded
    op.execute("""
        ALTER TABLE customer_price
        ADD CONSTRAINT ex_customer_price_no_overlap
        EXCLUDE USING gist (
            customer_id WITH =,
            activity_id WITH =,
            int4range(min_quantity, max_quantity, '[]') WITH &&,
            daterange(effective_from, effective_to, '[]') WITH &&
        ) WHERE (is_active)
    """)

    op.create_index(
        'ix_customer_price_customer_activity',
        'customer_price',
        ['customer_id', 'activity_id']
    )
    op.create_index(
        'ix_customer_price_lookup',
        'customer_price',
        ['customer_id', 'activity_id', 'is_active', 'effective_from']
    )

    op.execute("""
        CREATE TRIGGER update_customer_price_updated_at
        BEFORE UPDATE ON customer_price
        FOR EACH ROW
        EXECUTE FUNCTION update_updated_at_column();
    """)


def downgrade():
    op.execute('DROP TRIGGER IF EXISTS update_customer_price_updated_at ON customer_price')

    op.drop_index('ix_customer_price_lookup', table_name='customer_price')
    op.drop_index('ix_customer_price_customer_activity', table_name='customer_price')

    op.execute('ALTER TABLE customer_price DROP CONSTRAINT IF EXISTS ex_customer_price_no_overlap')
    op.drop_constraint('ck_customer_price_validity_window', 'customer_price')
    op.drop_constraint('ck_customer_price_quantity_range', 'customer_price')
    op.drop_constraint('ck_customer_price_min_quantity_positive', 'customer_price')
    op.drop_constraint('ck_customer_price_price_positive', 'customer_price')

    op.drop_constraint('fk_customer_price_activity', 'customer_price', type_='foreignkey')
    op.drop_constraint('fk_customer_price_customer', 'customer_price', type_='foreignkey')

    op.drop_table('customer_price')
