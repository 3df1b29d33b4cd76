"""Aircraft defects

Revision ID: 002_defects
Revises: 001_initial
Create Date: 2026-10-19

Defect reports per aircraft, and audit actions for defect reports and
debrief edits.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '002_defects'
down_revision: Union[str, None] = '001_initial'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'defects',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('aircraft_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('aircraft.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.Enum('OPEN', 'PENDING', 'CLOSED', name='defectstatus'), nullable=False, server_default='OPEN'),
        sa.Column('reported_at', sa.DateTime(), nullable=False, index=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    op.execute("ALTER TYPE auditaction ADD VALUE IF NOT EXISTS 'DEBRIEF_UPDATED'")
    op.execute("ALTER TYPE auditaction ADD VALUE IF NOT EXISTS 'DEFECT_REPORTED'")
    op.execute("ALTER TYPE auditaction ADD VALUE IF NOT EXISTS 'DEFECT_UPDATED'")


def downgrade() -> None:
    # Postgres cannot drop enum values; the extra audit actions stay.
    op.drop_table('defects')
    op.execute('DROP TYPE IF EXISTS defectstatus')
