"""Create agents, clients, policies, notifications and conservation alerts

Revision ID: 001_touchpoints_conservation
Revises: None
Create Date: 2026-03-02
"""
from alembic import op
import sqlalchemy as sa

revision = '001_touchpoints_conservation'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'agents',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('agency_name', sa.String(), nullable=True),
        sa.Column('scheduling_url', sa.String(), nullable=True),
        sa.Column('auto_holiday_cards', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_agents_id', 'agents', ['id'])
    op.create_index('ix_agents_email', 'agents', ['email'])

    op.create_table(
        'clients',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('agent_id', sa.Integer(), sa.ForeignKey('agents.id'), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('date_of_birth', sa.String(), nullable=True),
        sa.Column('client_code', sa.String(), nullable=True),
        sa.Column('push_token', sa.String(), nullable=True),
        sa.Column('holiday_notified_at', sa.JSON(), nullable=True),
        sa.Column('birthday_notified_at', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_clients_id', 'clients', ['id'])
    op.create_index('ix_clients_agent_id', 'clients', ['agent_id'])
    op.create_index('ix_clients_client_code', 'clients', ['client_code'], unique=True)

    op.create_table(
        'policies',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id'), nullable=False),
        sa.Column('policy_number', sa.String(), nullable=True),
        sa.Column('policy_type', sa.String(), nullable=True),
        sa.Column('carrier', sa.String(), nullable=True),
        sa.Column('premium_amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='Active'),
        sa.Column('anniversary_agent_notified_at', sa.DateTime(), nullable=True),
        sa.Column('anniversary_client_notified_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_policies_id', 'policies', ['id'])
    op.create_index('ix_policies_client_id', 'policies', ['client_id'])
    op.create_index('ix_policies_policy_number', 'policies', ['policy_number'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id'), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('holiday', sa.String(), nullable=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('include_booking_link', sa.Boolean(), nullable=True),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('provider_response', sa.JSON(), nullable=True),
        sa.Column('sent_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('read_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_notifications_id', 'notifications', ['id'])
    op.create_index('ix_notifications_client_id', 'notifications', ['client_id'])

    op.create_table(
        'conservation_alerts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('agent_id', sa.Integer(), sa.ForeignKey('agents.id'), nullable=False),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id'), nullable=True),
        sa.Column('policy_id', sa.Integer(), sa.ForeignKey('policies.id'), nullable=True),
        sa.Column('source', sa.String(), nullable=True),
        sa.Column('client_name', sa.String(), nullable=False),
        sa.Column('policy_number', sa.String(), nullable=True),
        sa.Column('carrier', sa.String(), nullable=True),
        sa.Column('reason', sa.String(), nullable=True),
        sa.Column('priority', sa.String(), nullable=True),
        sa.Column('is_chargeback_risk', sa.Boolean(), nullable=True),
        sa.Column('policy_age_days', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('scheduled_outreach_at', sa.DateTime(), nullable=True),
        sa.Column('outreach_sent_at', sa.DateTime(), nullable=True),
        sa.Column('push_sent_at', sa.DateTime(), nullable=True),
        sa.Column('initial_message', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('resolved_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_conservation_alerts_id', 'conservation_alerts', ['id'])
    op.create_index('ix_conservation_alerts_agent_id', 'conservation_alerts', ['agent_id'])
    op.create_index('ix_conservation_alerts_client_id', 'conservation_alerts', ['client_id'])
    op.create_index('ix_conservation_alerts_policy_id', 'conservation_alerts', ['policy_id'])
    op.create_index('ix_conservation_alerts_status', 'conservation_alerts', ['status'])


def downgrade():
    op.drop_table('conservation_alerts')
    op.drop_table('notifications')
    op.drop_table('policies')
    op.drop_table('clients')
    op.drop_table('agents')
