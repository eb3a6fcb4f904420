"""Optimization and Set evaluation tables

Revision ID: autotune_initial
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'autotune_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Optimization requests
    op.create_table('auto_optimal_configs',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('name', sa.String(length=200), nullable=False),
    sa.Column('symbol_mode', sa.String(length=20), nullable=False),
    sa.Column('exchange_order_by', sa.String(length=40), nullable=False),
    sa.Column('symbol_limit', sa.Integer(), nullable=False),
    sa.Column('forced_symbols', sa.Text(), nullable=False),
    sa.Column('indication_type', sa.String(length=50), nullable=True),
    sa.Column('indication_params', sa.Text(), nullable=False),
    sa.Column('takeprofit_min', sa.Float(), nullable=False),
    sa.Column('takeprofit_max', sa.Float(), nullable=False),
    sa.Column('stoploss_min', sa.Float(), nullable=False),
    sa.Column('stoploss_max', sa.Float(), nullable=False),
    sa.Column('steps', sa.Integer(), nullable=False),
    sa.Column('trailing_enabled', sa.Boolean(), nullable=False),
    sa.Column('trailing_only', sa.Boolean(), nullable=False),
    sa.Column('use_block', sa.Boolean(), nullable=False),
    sa.Column('use_dca', sa.Boolean(), nullable=False),
    sa.Column('additional_strategies_only', sa.Boolean(), nullable=False),
    sa.Column('min_profit_factor', sa.Float(), nullable=False),
    sa.Column('min_profit_factor_positions', sa.Integer(), nullable=False),
    sa.Column('max_drawdown_time_hours', sa.Float(), nullable=False),
    sa.Column('calculation_days', sa.Integer(), nullable=False),
    sa.Column('max_positions_per_direction', sa.Integer(), nullable=False),
    sa.Column('max_positions_per_symbol', sa.Integer(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )

    # Ranked candidates per request
    op.create_table('auto_optimal_results',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('config_id', sa.String(length=36), nullable=False),
    sa.Column('takeprofit', sa.Float(), nullable=False),
    sa.Column('stoploss', sa.Float(), nullable=False),
    sa.Column('trailing_enabled', sa.Boolean(), nullable=False),
    sa.Column('trailing_only', sa.Boolean(), nullable=False),
    sa.Column('use_block', sa.Boolean(), nullable=False),
    sa.Column('use_dca', sa.Boolean(), nullable=False),
    sa.Column('additional_strategies_only', sa.Boolean(), nullable=False),
    sa.Column('profit_factor', sa.Float(), nullable=False),
    sa.Column('win_rate', sa.Float(), nullable=False),
    sa.Column('total_pnl', sa.Float(), nullable=False),
    sa.Column('total_positions', sa.Integer(), nullable=False),
    sa.Column('winning_trades', sa.Integer(), nullable=False),
    sa.Column('losing_trades', sa.Integer(), nullable=False),
    sa.Column('drawdown_time_hours', sa.Float(), nullable=False),
    sa.Column('total_profit', sa.Float(), nullable=False),
    sa.Column('total_loss', sa.Float(), nullable=False),
    sa.Column('avg_profit', sa.Float(), nullable=False),
    sa.Column('avg_loss', sa.Float(), nullable=False),
    sa.Column('max_profit', sa.Float(), nullable=False),
    sa.Column('max_loss', sa.Float(), nullable=False),
    sa.Column('profit_factor_last_25', sa.Float(), nullable=False),
    sa.Column('profit_factor_last_50', sa.Float(), nullable=False),
    sa.Column('positions_per_24h', sa.Float(), nullable=False),
    sa.Column('takeprofit_hits', sa.Integer(), nullable=False),
    sa.Column('stoploss_hits', sa.Integer(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.ForeignKeyConstraint(['config_id'], ['auto_optimal_configs.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_auto_optimal_results_ranking', 'auto_optimal_results', ['config_id', 'profit_factor', 'win_rate'], unique=False)

    # Deployed Sets and their connections
    op.create_table('preset_configuration_sets',
    sa.Column('id', sa.String(length=36), nullable=False),
    sa.Column('name', sa.String(length=200), nullable=False),
    sa.Column('indication_type', sa.String(length=50), nullable=True),
    sa.Column('is_active', sa.Boolean(), nullable=False),
    sa.Column('evaluation_positions_count', sa.Integer(), nullable=True),
    sa.Column('profit_factor_min', sa.Float(), nullable=True),
    sa.Column('last_evaluation_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('auto_disabled_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('auto_disabled_reason', sa.Text(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )

    op.create_table('preset_type_sets',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('set_id', sa.String(length=36), nullable=False),
    sa.Column('connection_id', sa.String(length=36), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.ForeignKeyConstraint(['set_id'], ['preset_configuration_sets.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('set_id', 'connection_id', name='uq_preset_set_connection')
    )

    # Paper positions read by both engines
    op.create_table('pseudo_positions',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('connection_id', sa.String(length=36), nullable=True),
    sa.Column('symbol', sa.String(length=30), nullable=False),
    sa.Column('side', sa.String(length=10), nullable=False),
    sa.Column('indication_type', sa.String(length=50), nullable=True),
    sa.Column('status', sa.String(length=20), nullable=False),
    sa.Column('entry_price', sa.DECIMAL(precision=20, scale=8), nullable=True),
    sa.Column('max_price', sa.DECIMAL(precision=20, scale=8), nullable=True),
    sa.Column('min_price', sa.DECIMAL(precision=20, scale=8), nullable=True),
    sa.Column('quantity', sa.DECIMAL(precision=20, scale=8), nullable=True),
    sa.Column('pnl', sa.DECIMAL(precision=20, scale=8), nullable=True),
    sa.Column('profit_factor', sa.Float(), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('closed_at', sa.DateTime(timezone=True), nullable=True),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_pseudo_positions_status_created', 'pseudo_positions', ['status', 'created_at'], unique=False)
    op.create_index('idx_pseudo_positions_connection', 'pseudo_positions', ['connection_id', 'indication_type', 'created_at'], unique=False)
    op.create_index('idx_pseudo_positions_symbol', 'pseudo_positions', ['symbol'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_pseudo_positions_symbol', table_name='pseudo_positions')
    op.drop_index('idx_pseudo_positions_connection', table_name='pseudo_positions')
    op.drop_index('idx_pseudo_positions_status_created', table_name='pseudo_positions')
    op.drop_table('pseudo_positions')
    op.drop_table('preset_type_sets')
    op.drop_table('preset_configuration_sets')
    op.drop_index('idx_auto_optimal_results_ranking', table_name='auto_optimal_results')
    op.drop_table('auto_optimal_results')
    op.drop_table('auto_optimal_configs')
