"""Initial SIP schema

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


sip_execution_status = sa.Enum('executed', 'failed', name='sip_execution_status')


def upgrade():
    op.create_table('sip',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('trading_symbol', sa.String(length=64), nullable=False),
        sa.Column('scheme_name', sa.String(length=255), nullable=False),
        sa.Column('amount', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('frequency', sa.String(length=16), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('next_execution_date', sa.Date(), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_sip_user_id', 'sip', ['user_id'])
    op.create_index('ix_sip_due', 'sip', ['active', 'next_execution_date'])

    op.create_table('holding',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('trading_symbol', sa.String(length=64), nullable=False),
        sa.Column('amc', sa.String(length=255), nullable=False),
        sa.Column('scheme_name', sa.String(length=255), nullable=False),
        sa.Column('scheme_type', sa.String(length=64), nullable=False),
        sa.Column('plan', sa.String(length=64), nullable=False),
        sa.Column('quantity', sa.Numeric(precision=28, scale=10), nullable=False),
        sa.Column('average_price', sa.Numeric(precision=28, scale=10), nullable=False),
        sa.Column('purchase_date', sa.DateTime(), nullable=False),
        sa.Column('origin_note', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'trading_symbol', name='uq_holding_user_symbol')
    )
    op.create_index('ix_holding_user_id', 'holding', ['user_id'])

    op.create_table('sip_execution',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('sip_id', sa.Integer(), nullable=False),
        sa.Column('executed_at', sa.DateTime(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('nav', sa.Numeric(precision=20, scale=6), nullable=False),
        sa.Column('units', sa.Numeric(precision=28, scale=10), nullable=False),
        sa.Column('status', sip_execution_status, nullable=False),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('holding_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['sip_id'], ['sip.id']),
        sa.ForeignKeyConstraint(['holding_id'], ['holding.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_sip_execution_user_date', 'sip_execution', ['user_id', 'executed_at'])
    op.create_index('ix_sip_execution_sip_date', 'sip_execution', ['sip_id', 'executed_at'])

    op.create_table('mutual_fund_price',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('trading_symbol', sa.String(length=64), nullable=False),
        sa.Column('amc', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('minimum_purchase_amount', sa.Numeric(precision=14, scale=2), nullable=True),
        sa.Column('scheme_type', sa.String(length=64), nullable=False),
        sa.Column('plan', sa.String(length=64), nullable=False),
        sa.Column('last_price', sa.Numeric(precision=20, scale=6), nullable=False),
        sa.Column('last_price_date', sa.Date(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        'ix_mutual_fund_price_trading_symbol', 'mutual_fund_price', ['trading_symbol'], unique=True
    )


def downgrade():
    op.drop_index('ix_mutual_fund_price_trading_symbol', table_name='mutual_fund_price')
    op.drop_table('mutual_fund_price')
    op.drop_index('ix_sip_execution_sip_date', table_name='sip_execution')
    op.drop_index('ix_sip_execution_user_date', table_name='sip_execution')
    op.drop_table('sip_execution')
    op.drop_index('ix_holding_user_id', table_name='holding')
    op.drop_table('holding')
    op.drop_index('ix_sip_due', table_name='sip')
    op.drop_index('ix_sip_user_id', table_name='sip')
    op.drop_table('sip')
    sip_execution_status.drop(op.get_bind(), checkfirst=True)
