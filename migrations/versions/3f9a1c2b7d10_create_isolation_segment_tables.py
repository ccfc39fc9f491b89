"""create_isolation_segment_tables

Revision ID: 3f9a1c2b7d10
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9a1c2b7d10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SHARED_ISOLATION_SEGMENT_GUID = '933b4c58-120b-499a-b85d-4b6fc9e2903b'


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table('organizations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('guid', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('default_isolation_segment_guid', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )
    op.create_index('ix_organizations_guid', 'organizations', ['guid'], unique=True)

    isolation_segments = op.create_table('isolation_segments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('guid', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )
    op.create_index('ix_isolation_segments_guid', 'isolation_segments', ['guid'], unique=True)

    op.create_table('organizations_isolation_segments',
        sa.Column('organization_guid', sa.String(length=255), nullable=False),
        sa.Column('isolation_segment_guid', sa.String(length=255), nullable=False),
        sa.ForeignKeyConstraint(['organization_guid'], ['organizations.guid'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['isolation_segment_guid'], ['isolation_segments.guid'], ondelete='CASCADE'),
        sa.UniqueConstraint('organization_guid', 'isolation_segment_guid', name='uq_organization_isolation_segment')
    )
    op.create_index('ix_organizations_isolation_segments_organization_guid',
                    'organizations_isolation_segments', ['organization_guid'])
    op.create_index('ix_organizations_isolation_segments_isolation_segment_guid',
                    'organizations_isolation_segments', ['isolation_segment_guid'])

    op.create_table('isolation_segment_labels',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('guid', sa.String(length=255), nullable=False),
        sa.Column('resource_guid', sa.String(length=255), nullable=False),
        sa.Column('key_prefix', sa.String(length=253), nullable=True),
        sa.Column('key_name', sa.String(length=63), nullable=False),
        sa.Column('value', sa.String(length=63), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['resource_guid'], ['isolation_segments.guid'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_isolation_segment_labels_guid', 'isolation_segment_labels', ['guid'], unique=True)
    op.create_index('ix_isolation_segment_labels_resource', 'isolation_segment_labels', ['resource_guid'])
    op.create_index('ix_isolation_segment_labels_key', 'isolation_segment_labels',
                    ['key_prefix', 'key_name', 'value'])

    # Every installation starts with the shared isolation segment
    op.bulk_insert(isolation_segments, [
        {'guid': SHARED_ISOLATION_SEGMENT_GUID, 'name': 'shared'},
    ])


def downgrade() -> None:
    op.drop_index('ix_isolation_segment_labels_key', table_name='isolation_segment_labels')
    op.drop_index('ix_isolation_segment_labels_resource', table_name='isolation_segment_labels')
    op.drop_index('ix_isolation_segment_labels_guid', table_name='isolation_segment_labels')
    op.drop_table('isolation_segment_labels')
    op.drop_index('ix_organizations_isolation_segments_isolation_segment_guid',
                  table_name='organizations_isolation_segments')
    op.drop_index('ix_organizations_isolation_segments_organization_guid',
                  table_name='organizations_isolation_segments')
    op.drop_table('organizations_isolation_segments')
    op.drop_index('ix_isolation_segments_guid', table_name='isolation_segments')
    op.drop_table('isolation_segments')
    op.drop_index('ix_organizations_guid', table_name='organizations')
    op.drop_table('organizations')
