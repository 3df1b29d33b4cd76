"""Aircraft, hourly rates and tech log models."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, DateTime, ForeignKey, Boolean, Float, Numeric
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base

if TYPE_CHECKING:
    from app.models.org import Organization
    from app.models.lesson import FlightType


class Aircraft(Base):
    """A schedulable aircraft."""

    __tablename__ = "aircraft"

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
    registration: Mapped[str] = mapped_column(String(20), nullable=False)
    aircraft_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    model: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Which meter is authoritative for billing at check-in
    record_hobbs: Mapped[bool] = mapped_column(Boolean, default=True)
    record_tacho: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Relationships
    org: Mapped["Organization"] = relationship("Organization", back_populates="aircraft")
    rates: Mapped[list["AircraftRate"]] = relationship(
        "AircraftRate", back_populates="aircraft", cascade="all, delete-orphan"
    )
    tech_logs: Mapped[list["AircraftTechLog"]] = relationship(
        "AircraftTechLog", back_populates="aircraft", cascade="all, delete-orphan"
    )


class AircraftRate(Base):
    """Hourly rate for an aircraft flown under a given flight type."""

    __tablename__ = "aircraft_rates"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    aircraft_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("aircraft.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    flight_type_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("flight_types.id", ondelete="CASCADE"),
        nullable=False,
    )
    rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    # Relationships
    aircraft: Mapped["Aircraft"] = relationship("Aircraft", back_populates="rates")
    flight_type: Mapped["FlightType"] = relationship("FlightType")


class AircraftTechLog(Base):
    """Aircraft meter state after a flight. The newest row is current."""

    __tablename__ = "aircraft_tech_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    aircraft_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("aircraft.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    booking_flight_times_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("booking_flight_times.id", ondelete="SET NULL"),
        nullable=True,
    )
    current_hobbs: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    current_tacho: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)

    # Relationships
    aircraft: Mapped["Aircraft"] = relationship("Aircraft", back_populates="tech_logs")
