"""initial order desk schema

Revision ID: 0001_init
Revises:
Create Date: 2026-01-05

"""
from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('barcode', sa.String(100), nullable=False),
        sa.Column('status', sa.String(100), nullable=False),
        sa.Column('labels', sa.JSON, nullable=False),
        sa.Column('assigned_to', sa.String(100), nullable=True),
        sa.Column('customer', sa.String(200), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('address', sa.Text, nullable=True),
        sa.Column('city', sa.String(200), nullable=True),
        sa.Column('note', sa.Text, nullable=True),
        sa.Column('print_notes', sa.Text, nullable=True),
        sa.Column('tracking_number', sa.String(100), nullable=True),
        sa.Column('cargo_barcode', sa.String(100), nullable=True),
        sa.Column('cargo_tracking_number', sa.String(100), nullable=True),
        sa.Column('payment_method', sa.String(100), nullable=True),
        sa.Column('total', sa.String(50), nullable=False),
        sa.Column('has_notification', sa.Boolean, nullable=False),
        sa.Column('date', sa.DateTime, nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=False),
    )
    # The unique index is what keeps concurrent first deliveries from duplicating an order
    op.create_index('ix_orders_barcode', 'orders', ['barcode'], unique=True)
    op.create_index('ix_orders_status', 'orders', ['status'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('order_id', sa.Integer, sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('quantity', sa.Integer, nullable=False),
        sa.Column('image_src', sa.Text, nullable=False),
        sa.Column('sku', sa.String(100), nullable=True),
        sa.Column('url', sa.Text, nullable=True),
        sa.Column('material', sa.String(255), nullable=True),
        sa.Column('dimensions', sa.String(255), nullable=True),
        sa.Column('product_note', sa.Text, nullable=True),
        sa.Column('sample_data', sa.Text, nullable=True),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    op.create_table(
        'order_activities',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('order_id', sa.Integer, sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('author', sa.String(100), nullable=False),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('details', sa.Text, nullable=False),
        sa.Column('timestamp', sa.DateTime, nullable=False),
    )
    op.create_index('ix_order_activities_order_id', 'order_activities', ['order_id'])

    op.create_table(
        'comments',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('order_id', sa.Integer, sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('author', sa.String(100), nullable=False),
        sa.Column('message', sa.Text, nullable=False),
        sa.Column('attachments', sa.JSON, nullable=False),
        sa.Column('timestamp', sa.DateTime, nullable=False),
    )
    op.create_index('ix_comments_order_id', 'comments', ['order_id'])

    op.create_table(
        'status_columns',
        sa.Column('id', sa.String(100), primary_key=True),
        sa.Column('title', sa.String(100), nullable=False),
        sa.Column('color', sa.String(50), nullable=False),
        sa.Column('position', sa.Integer, nullable=False),
    )
    op.create_table(
        'system_settings',
        sa.Column('key', sa.String(100), primary_key=True),
        sa.Column('value', sa.Text, nullable=False),
    )

def downgrade():
    op.drop_table('system_settings')
    op.drop_table('status_columns')
    op.drop_table('comments')
    op.drop_table('order_activities')
    op.drop_table('order_items')
    op.drop_table('orders')
