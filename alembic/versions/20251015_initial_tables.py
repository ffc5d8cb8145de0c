"""Transcripts and query performance log tables

Revision ID: 20251015_initial
Revises: 
Create Date: 2025-10-15

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision = "20251015_initial"
down_revision = None
branch_labels = None
depends_on = None


def table_exists(table_name):
    """Check if a table exists in the database"""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def index_exists(table_name, index_name):
    """Check if an index exists on the table"""
    bind = op.get_bind()
    inspector = inspect(bind)
    return index_name in {ix["name"] for ix in inspector.get_indexes(table_name)}


def upgrade() -> None:
    # Create transcripts table if not exists
    if not table_exists('transcripts'):
        op.create_table(
            'transcripts',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('video_id', sa.String(32), nullable=False),
            sa.Column('title', sa.String(500), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('summary', sa.Text(), nullable=True),
            sa.Column('language', sa.String(10), nullable=False, server_default='en'),
            sa.Column('duration', sa.Float(), nullable=True),
            sa.Column('utterances', sa.JSON(), nullable=False, server_default='[]'),
            sa.Column('metadata', sa.JSON(), nullable=True),
            sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
            sa.Column('ip_hash', sa.String(64), nullable=True),
            sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        )

    # Create transcripts indexes if not exist
    if not index_exists('transcripts', 'ix_transcripts_video_id'):
        op.create_index('ix_transcripts_video_id', 'transcripts', ['video_id'])
    if not index_exists('transcripts', 'ix_transcripts_ip_hash'):
        op.create_index('ix_transcripts_ip_hash', 'transcripts', ['ip_hash'])
    if not index_exists('transcripts', 'ix_transcripts_video_id_status'):
        op.create_index('ix_transcripts_video_id_status', 'transcripts', ['video_id', 'status'])

    # Create query_performance_log table if not exists
    if not table_exists('query_performance_log'):
        op.create_table(
            'query_performance_log',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('query_type', sa.String(100), nullable=False),
            sa.Column('query_hash', sa.String(64), nullable=False),
            sa.Column('duration', sa.Float(), nullable=False),
            sa.Column('parameters', sa.JSON(), nullable=True),
            sa.Column('timestamp', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        )

    # Create query_performance_log indexes if not exist
    table = 'query_performance_log'
    for name, columns in (
        ('ix_query_performance_log_query_type_timestamp', ['query_type', 'timestamp']),
        ('ix_query_performance_log_query_hash_timestamp', ['query_hash', 'timestamp']),
        ('ix_query_performance_log_duration_timestamp', ['duration', 'timestamp']),
        ('ix_query_performance_log_timestamp', ['timestamp']),
    ):
        if not index_exists(table, name):
            op.create_index(name, table, columns)


def downgrade() -> None:
    op.drop_table('query_performance_log')
    op.drop_table('transcripts')
