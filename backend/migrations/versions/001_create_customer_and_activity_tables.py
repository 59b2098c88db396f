"""Create customer and activity tables

Revision ID: 001
Revises:
Create Date: 2026-01-12 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Shared trigger function for updated_at columns
    op.execute("""
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)

    op.create_table(
        'customer',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('company_name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=True),
        sa.Column('phone', sa.Text(), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_customer_company_name', 'customer', ['company_name'])

    op.create_table(
        'activity',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('code', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', sa.Text(), server_default=sa.text("'OTHER'"), nullable=False),
        sa.Column('unit', sa.Text(), server_default=sa.text("'hour'"), nullable=False),
        sa.Column('default_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_foreign_key(
        'fk_activity_customer',
        'activity', 'customer',
        ['customer_id'], ['id'],
        ondelete='CASCADE'
    )

    op.create_check_constraint(
        'ck_activity_default_price_positive',
        'activity',
        sa.text('default_price IS NULL OR default_price > 0')
    )
    op.create_check_constraint(
        'ck_activity_type',
        'activity',
        sa.text(
            "type IN ('CONTAINER_UNLOADING', 'CONTAINER_LOADING', 'WRAPPING', "
            "'REPACKING', 'CROSSING', 'LABELING', 'OTHER')"
        )
    )

    op.create_index('ix_activity_customer_id', 'activity', ['customer_id'])
    op.create_index('ix_activity_name', 'activity', ['name'])

    for table in ('customer', 'activity'):
        op.execute(f"""
            CREATE TRIGGER update_{table}_updated_at
            BEFORE UPDATE ON {table}
            FOR EACH ROW
            EXECUTE FUNCTION update_updated_at_column();
        """)


def downgrade():
    for table in ('activity', 'customer'):
        op.execute(f'DROP TRIGGER IF EXISTS update_{table}_updated_at ON {table}')

    op.drop_index('ix_activity_name', table_name='activity')
    op.drop_index('ix_activity_customer_id', table_name='activity')
    op.drop_constraint('ck_activity_type', 'activity')
    op.drop_constraint('ck_activity_default_price_positive', 'activity')
    op.drop_constraint('fk_activity_customer', 'activity', type_='foreignkey')
    op.drop_table('activity')

    op.drop_index('ix_customer_company_name', table_name='customer')
    op.drop_table('customer')

    op.execute('DROP FUNCTION IF EXISTS update_updated_at_column()')
