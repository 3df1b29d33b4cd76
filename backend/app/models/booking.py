"""Booking model and its 1:1 checkout/check-in records."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, DateTime, ForeignKey, Boolean, Float, Integer, Text, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.enums import BookingStatus, BookingType

if TYPE_CHECKING:
    from app.models.aircraft import Aircraft, AircraftRate
    from app.models.lesson import FlightType, Lesson
    from app.models.user import User


class Booking(Base):
    """A scheduled use of an aircraft and/or instructor.

    ``status`` is stored as a plain string: legacy rows are not consistently
    cased, so it is never compared without normalizing. ``briefing_completed``
    and ``debrief_completed`` are independent of it.
    """

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="bookings_end_after_start"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    end_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # Resources
    aircraft_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("aircraft.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    instructor_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    type: Mapped[str] = mapped_column(String(32), default=BookingType.FLIGHT.value)
    status: Mapped[str] = mapped_column(
        String(32),
        default=BookingStatus.UNCONFIRMED.value,
        nullable=False,
        index=True,
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Workflow flags
    briefing_completed: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    debrief_completed: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    # Associations
    lesson_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("lessons.id", ondelete="SET NULL"),
        nullable=True,
    )
    flight_type_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("flight_types.id", ondelete="SET NULL"),
        nullable=True,
    )
    booking_details_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("booking_details.id", ondelete="SET NULL"),
        nullable=True,
    )
    booking_flight_times_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("booking_flight_times.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    aircraft: Mapped[Optional["Aircraft"]] = relationship("Aircraft")
    instructor: Mapped[Optional["User"]] = relationship("User", foreign_keys=[instructor_id])
    user: Mapped[Optional["User"]] = relationship("User", foreign_keys=[user_id])
    lesson: Mapped[Optional["Lesson"]] = relationship("Lesson")
    flight_type: Mapped[Optional["FlightType"]] = relationship("FlightType")
    details: Mapped[Optional["BookingDetails"]] = relationship("BookingDetails")
    flight_times: Mapped[Optional["BookingFlightTimes"]] = relationship("BookingFlightTimes")


class BookingDetails(Base):
    """Route, passengers and ETA captured at checkout."""

    __tablename__ = "booking_details"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    route: Mapped[str] = mapped_column(Text, default="")
    passengers: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    eta: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    instructor_comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class BookingFlightTimes(Base):
    """Meter readings captured at check-in. ``flight_time`` is always derived."""

    __tablename__ = "booking_flight_times"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    start_hobbs: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    end_hobbs: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    start_tacho: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    end_tacho: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    flight_time: Mapped[float] = mapped_column(Float, nullable=False)
    rate_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("aircraft_rates.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    rate: Mapped[Optional["AircraftRate"]] = relationship("AircraftRate")
