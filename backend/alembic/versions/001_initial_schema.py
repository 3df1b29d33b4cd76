"""Initial aero-club schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

Organizations, members, aircraft, syllabus, bookings with their checkout and
check-in records, debriefs and the audit log. Confirmed bookings may not
overlap on the same aircraft or instructor (closed intervals).
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS btree_gist')

    # === USERS ===
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('firebase_uid', sa.String(128), unique=True, nullable=False, index=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('is_staff', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    # === ORGANIZATIONS ===
    op.create_table(
        'organizations',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(100), unique=True, nullable=False, index=True),
        sa.Column('timezone', sa.String(50), server_default='Pacific/Auckland'),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    # === ORG MEMBERSHIPS ===
    op.create_table(
        'org_memberships',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('role', sa.Enum('OWNER', 'ADMIN', 'INSTRUCTOR', 'MEMBER', 'STUDENT', name='orgrole'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    # === FLIGHT TYPES / LESSONS ===
    op.create_table(
        'flight_types',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('is_instructional', sa.Boolean(), nullable=False, server_default=sa.false()),
    )

    op.create_table(
        'lessons',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('objective', sa.Text(), nullable=True),
        sa.Column('prerequisites', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'student_lessons',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('student_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('lesson_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('lessons.id', ondelete='CASCADE'), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('student_id', 'lesson_id'),
    )

    # === AIRCRAFT ===
    op.create_table(
        'aircraft',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('registration', sa.String(20), nullable=False),
        sa.Column('aircraft_type', sa.String(100), nullable=True),
        sa.Column('model', sa.String(100), nullable=True),
        sa.Column('record_hobbs', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('record_tacho', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'aircraft_rates',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('aircraft_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('aircraft.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('flight_type_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('flight_types.id', ondelete='CASCADE'), nullable=False),
        sa.Column('rate', sa.Numeric(10, 2), nullable=False),
    )

    # === BOOKING CHILD RECORDS ===
    op.create_table(
        'booking_details',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('route', sa.Text(), nullable=False, server_default=''),
        sa.Column('passengers', sa.Integer(), nullable=True),
        sa.Column('eta', sa.DateTime(), nullable=True),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('instructor_comment', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'booking_flight_times',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('start_hobbs', sa.Float(), nullable=True),
        sa.Column('end_hobbs', sa.Float(), nullable=True),
        sa.Column('start_tacho', sa.Float(), nullable=True),
        sa.Column('end_tacho', sa.Float(), nullable=True),
        sa.Column('flight_time', sa.Float(), nullable=False),
        sa.Column('rate_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('aircraft_rates.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'aircraft_tech_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('aircraft_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('aircraft.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('booking_flight_times_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('booking_flight_times.id', ondelete='SET NULL'), nullable=True),
        sa.Column('current_hobbs', sa.Float(), nullable=True),
        sa.Column('current_tacho', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, index=True),
    )

    # === BOOKINGS ===
    op.create_table(
        'bookings',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('start_time', sa.DateTime(), nullable=False, index=True),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('aircraft_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('aircraft.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('instructor_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('type', sa.String(32), nullable=False, server_default='flight'),
        sa.Column('status', sa.String(32), nullable=False, server_default='unconfirmed', index=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('briefing_completed', sa.Boolean(), nullable=True),
        sa.Column('debrief_completed', sa.Boolean(), nullable=True),
        sa.Column('lesson_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('lessons.id', ondelete='SET NULL'), nullable=True),
        sa.Column('flight_type_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('flight_types.id', ondelete='SET NULL'), nullable=True),
        sa.Column('booking_details_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('booking_details.id', ondelete='SET NULL'), nullable=True),
        sa.Column('booking_flight_times_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('booking_flight_times.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('end_time > start_time', name='bookings_end_after_start'),
    )

    # Closed intervals ('[]'): a booking ending at 10:00 blocks one starting at 10:00.
    op.execute("""
        ALTER TABLE bookings ADD CONSTRAINT bookings_no_overlap_per_aircraft
        EXCLUDE USING gist (
            aircraft_id WITH =,
            tsrange(start_time, end_time, '[]') WITH &&
        ) WHERE (aircraft_id IS NOT NULL AND lower(status) = 'confirmed')
    """)
    op.execute("""
        ALTER TABLE bookings ADD CONSTRAINT bookings_no_overlap_per_instructor
        EXCLUDE USING gist (
            instructor_id WITH =,
            tsrange(start_time, end_time, '[]') WITH &&
        ) WHERE (instructor_id IS NOT NULL AND lower(status) = 'confirmed')
    """)

    # === DEBRIEFS ===
    op.create_table(
        'lesson_debriefs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('booking_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('instructor_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('outcome', sa.Enum('PASS', 'FAIL', 'INCOMPLETE', name='lessonoutcome'), nullable=False),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'lesson_debrief_performances',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('lesson_debrief_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('lesson_debriefs.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('item', sa.String(255), nullable=False),
        sa.Column('grade', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('grade BETWEEN 0 AND 5', name='performance_grade_range'),
    )

    # === AUDIT LOG ===
    op.create_table(
        'audit_log',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('org_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('action', sa.Enum(
            'BOOKING_CREATED', 'BOOKING_UPDATED', 'BOOKING_RESCHEDULED', 'BOOKING_CANCELLED',
            'BRIEFING_COMPLETED', 'CHECKED_OUT', 'CHECKED_IN', 'DEBRIEF_COMPLETED',
            name='auditaction',
        ), nullable=False, index=True),
        sa.Column('resource_type', sa.String(50), nullable=False),
        sa.Column('resource_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('details', postgresql.JSONB(), nullable=True),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('audit_log')
    op.drop_table('lesson_debrief_performances')
    op.drop_table('lesson_debriefs')
    op.drop_table('bookings')
    op.drop_table('aircraft_tech_logs')
    op.drop_table('booking_flight_times')
    op.drop_table('booking_details')
    op.drop_table('aircraft_rates')
    op.drop_table('aircraft')
    op.drop_table('student_lessons')
    op.drop_table('lessons')
    op.drop_table('flight_types')
    op.drop_table('org_memberships')
    op.drop_table('organizations')
    op.drop_table('users')

    op.execute('DROP TYPE IF EXISTS auditaction')
    op.execute('DROP TYPE IF EXISTS lessonoutcome')
    op.execute('DROP TYPE IF EXISTS orgrole')
