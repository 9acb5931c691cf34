"""court operating hours and multi-court orders

Revision ID: b7c8d9e0f1a2
Revises: a1b2c3d4e5f6
Create Date: 2026-10-25 10:30:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'b7c8d9e0f1a2'
down_revision = 'a1b2c3d4e5f6'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'court_operating_hours',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('court_id', sa.Integer(), sa.ForeignKey('courts.id'), nullable=False),
        sa.Column('day_of_week', sa.String(length=10), nullable=False),
        sa.Column('is_closed', sa.Boolean(), nullable=False),
        sa.Column('open_hour', sa.Integer(), nullable=True),
        sa.Column('close_hour', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            'is_closed OR (open_hour >= 0 AND close_hour <= 24 AND open_hour < close_hour)',
            name='ck_court_operating_hours_window',
        ),
    )
    op.create_index('ix_court_operating_hours_court_id', 'court_operating_hours', ['court_id'])

    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_code', sa.String(length=12), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('guest_name', sa.String(length=120), nullable=True),
        sa.Column('guest_email', sa.String(length=255), nullable=True),
        sa.Column('guest_phone', sa.String(length=30), nullable=True),
        sa.Column('total_price', sa.Integer(), nullable=False),
        sa.Column('source', sa.String(length=40), nullable=False),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_orders_order_code', 'orders', ['order_code'], unique=True)
    op.create_index('ix_orders_user_id', 'orders', ['user_id'])

    with op.batch_alter_table('bookings', schema=None) as batch_op:
        batch_op.add_column(sa.Column('order_id', sa.Integer(), nullable=True))
        batch_op.create_foreign_key('fk_bookings_order_id', 'orders', ['order_id'], ['id'])
        batch_op.create_index('ix_bookings_order_id', ['order_id'], unique=False)


def downgrade():
    with op.batch_alter_table('bookings', schema=None) as batch_op:
        batch_op.drop_index('ix_bookings_order_id')
        batch_op.drop_constraint('fk_bookings_order_id', type_='foreignkey')
        batch_op.drop_column('order_id')

    op.drop_index('ix_orders_user_id', table_name='orders')
    op.drop_index('ix_orders_order_code', table_name='orders')
    op.drop_table('orders')
    op.drop_index('ix_court_operating_hours_court_id', table_name='court_operating_hours')
    op.drop_table('court_operating_hours')
