"""Chainhook deliveries and fundraising events

Revision ID: 0001
Revises: 
Create Date: 2025-01-10 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

json_document = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def upgrade() -> None:
    # Raw deliveries, one row per distinct notification body
    op.create_table(
        'chainhook_deliveries',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('event_uid', sa.String(64), nullable=False),
        sa.Column('hook_uuid', sa.String(255), nullable=True),
        sa.Column('chain', sa.String(64), nullable=True),
        sa.Column('network', sa.String(64), nullable=True),
        sa.Column('action', sa.String(64), nullable=True),
        sa.Column('block_height', sa.BigInteger(), nullable=True),
        sa.Column('txid', sa.String(255), nullable=True),
        sa.Column('contract_identifier', sa.String(255), nullable=True),
        sa.Column('payload', json_document, nullable=False),
        sa.Column('received_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.UniqueConstraint('event_uid', name='uq_chainhook_deliveries_event_uid'),
    )

    # Fundraising events extracted from contract prints
    op.create_table(
        'fundraising_events',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('event_uid', sa.String(64), nullable=False),
        sa.Column('event_name', sa.String(100), nullable=False),
        sa.Column('campaign_id', sa.BigInteger(), nullable=True),
        sa.Column('donor', sa.String(255), nullable=True),
        sa.Column('owner', sa.String(255), nullable=True),
        sa.Column('beneficiary', sa.String(255), nullable=True),
        sa.Column('token', sa.String(255), nullable=True),
        sa.Column('amount', sa.Numeric(78, 0), nullable=True),
        sa.Column('ts', sa.BigInteger(), nullable=True),
        sa.Column('txid', sa.String(255), nullable=True),
        sa.Column('block_height', sa.BigInteger(), nullable=True),
        sa.Column('contract_identifier', sa.String(255), nullable=True),
        sa.Column('raw', json_document, nullable=False),
        sa.Column('inserted_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.UniqueConstraint('event_uid', name='uq_fundraising_events_event_uid'),
    )
    op.create_index('ix_fundraising_events_campaign_id', 'fundraising_events', ['campaign_id'])
    op.create_index('ix_fundraising_events_event_name', 'fundraising_events', ['event_name'])
    op.create_index('ix_fundraising_events_donor', 'fundraising_events', ['donor'])
    op.create_index('ix_fundraising_events_inserted_at', 'fundraising_events', ['inserted_at'])


def downgrade() -> None:
    op.drop_index('ix_fundraising_events_inserted_at', table_name='fundraising_events')
    op.drop_index('ix_fundraising_events_donor', table_name='fundraising_events')
    op.drop_index('ix_fundraising_events_event_name', table_name='fundraising_events')
    op.drop_index('ix_fundraising_events_campaign_id', table_name='fundraising_events')
    op.drop_table('fundraising_events')
    op.drop_table('chainhook_deliveries')
