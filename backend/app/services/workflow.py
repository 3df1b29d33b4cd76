"""Booking writes: create, update, reschedule and the workflow stages.

Every public method runs its reads, checks and writes on the request's
session and commits once at the end, so a failure part-way through leaves
nothing behind.
"""

import logging
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import get_settings
from app.core.errors import NotFound, ValidationFailed
from app.core.security import RequestContext
from app.models.aircraft import Aircraft, AircraftTechLog
from app.models.booking import Booking, BookingDetails, BookingFlightTimes
from app.models.debrief import LessonDebrief, LessonDebriefPerformance
from app.models.enums import AuditAction
from app.models.lesson import FlightType, Lesson
from app.models.org import OrgMembership
from app.schemas.booking import BookingPatch, BookingWrite
from app.schemas.workflow import (
    CheckinRequest,
    CheckoutRequest,
    DebriefPatch,
    DebriefRequest,
    PerformanceInput,
    PerformancePatch,
)
from app.services import lifecycle
from app.services.aggregator import applicable_rate, load_booking, load_booking_for_update
from app.services.audit import AuditService
from app.services.overlap import ensure_slot_available, validate_interval

logger = logging.getLogger(__name__)


class WorkflowService:
    """State-changing booking operations for one request."""

    def __init__(self, db: AsyncSession, ctx: RequestContext, ip_address: Optional[str] = None):
        self.db = db
        self.ctx = ctx
        self.ip_address = ip_address
        self.audit = AuditService(db)
        self.settings = get_settings()

    # === Reference checks ===

    async def _require_member(self, user_id: UUID, label: str) -> None:
        result = await self.db.execute(
            select(OrgMembership.id).where(
                OrgMembership.user_id == user_id,
                OrgMembership.org_id == self.ctx.organization_id,
            )
        )
        if result.scalar_one_or_none() is None:
            raise NotFound(f"{label} not found")

    async def _require_owned(self, model, entity_id: UUID, label: str) -> None:
        result = await self.db.execute(
            select(model.id).where(
                model.id == entity_id,
                model.organization_id == self.ctx.organization_id,
            )
        )
        if result.scalar_one_or_none() is None:
            raise NotFound(f"{label} not found")

    async def _check_references(self, data: BookingWrite) -> None:
        await self._require_member(data.member, "Member")
        await self._require_owned(Aircraft, data.aircraft, "Aircraft")
        await self._require_owned(FlightType, data.flight_type, "Flight type")
        if data.instructor is not None:
            await self._require_member(data.instructor, "Instructor")
        if data.lesson is not None:
            await self._require_owned(Lesson, data.lesson, "Lesson")

    async def _ensure_available(
        self,
        start: datetime,
        end: datetime,
        status: str,
        aircraft_id: Optional[UUID],
        instructor_id: Optional[UUID],
        exclude_booking_id: Optional[UUID] = None,
    ) -> None:
        validate_interval(start, end)
        # A cancelled booking occupies nothing.
        if lifecycle.lifecycle_of_status(status) == lifecycle.Phase.CANCELLED:
            return
        await ensure_slot_available(
            self.db,
            self.ctx,
            start,
            end,
            aircraft_id=aircraft_id,
            instructor_id=instructor_id,
            exclude_booking_id=exclude_booking_id,
        )

    async def _commit_and_reload(self, booking_id: UUID) -> Booking:
        await self.db.commit()
        return await load_booking(self.db, self.ctx, booking_id)

    # === Create / update ===

    async def create_booking(self, data: BookingWrite) -> Booking:
        await self._check_references(data)
        await self._ensure_available(
            data.start_at, data.end_at, data.status, data.aircraft, data.instructor
        )

        booking = Booking(
            organization_id=self.ctx.organization_id,
            start_time=data.start_at,
            end_time=data.end_at,
            aircraft_id=data.aircraft,
            instructor_id=data.instructor,
            user_id=data.member,
            flight_type_id=data.flight_type,
            lesson_id=data.lesson,
            description=data.description,
            type=data.type.value,
            status=data.status,
            briefing_completed=False,
            debrief_completed=False,
        )
        self.db.add(booking)
        await self.db.flush()

        await self.audit.log_booking(
            AuditAction.BOOKING_CREATED,
            booking.id,
            self.ctx,
            details={
                "aircraft_id": str(data.aircraft),
                "start_time": data.start_at.isoformat(),
                "end_time": data.end_at.isoformat(),
                "status": data.status,
            },
            ip_address=self.ip_address,
        )
        logger.info(f"[BOOKINGS] Created booking {booking.id} for org {self.ctx.organization_id}")
        return await self._commit_and_reload(booking.id)

    async def replace_booking(self, booking_id: UUID, data: BookingWrite) -> Booking:
        """Full update from the same body as create."""
        booking = await load_booking_for_update(self.db, self.ctx, booking_id)
        await self._check_references(data)
        await self._ensure_available(
            data.start_at,
            data.end_at,
            data.status,
            data.aircraft,
            data.instructor,
            exclude_booking_id=booking.id,
        )

        target = lifecycle.lifecycle_of_status(data.status)
        current = lifecycle.lifecycle_of(booking)
        if target != current.phase:
            lifecycle.apply_lifecycle(booking, self._move(current, data.status))

        booking.start_time = data.start_at
        booking.end_time = data.end_at
        booking.aircraft_id = data.aircraft
        booking.instructor_id = data.instructor
        booking.user_id = data.member
        booking.flight_type_id = data.flight_type
        booking.lesson_id = data.lesson
        booking.description = data.description
        booking.type = data.type.value

        await self.audit.log_booking(
            AuditAction.BOOKING_UPDATED,
            booking.id,
            self.ctx,
            details={"start_time": data.start_at.isoformat(), "end_time": data.end_at.isoformat()},
            ip_address=self.ip_address,
        )
        return await self._commit_and_reload(booking.id)

    async def patch_booking(self, booking_id: UUID, data: BookingPatch) -> Booking:
        booking = await load_booking_for_update(self.db, self.ctx, booking_id)
        changes = data.model_dump(exclude_unset=True)

        start = changes.get("start_time") or booking.start_time
        end = changes.get("end_time") or booking.end_time
        aircraft_id = changes.get("aircraft_id", booking.aircraft_id)
        instructor_id = changes.get("instructor_id", booking.instructor_id)
        status = changes.get("status") or booking.status

        if "aircraft_id" in changes and aircraft_id is not None:
            await self._require_owned(Aircraft, aircraft_id, "Aircraft")
        if "instructor_id" in changes and instructor_id is not None:
            await self._require_member(instructor_id, "Instructor")

        await self._ensure_available(
            start, end, status, aircraft_id, instructor_id, exclude_booking_id=booking.id
        )

        if "status" in changes and changes["status"] is not None:
            current = lifecycle.lifecycle_of(booking)
            if lifecycle.lifecycle_of_status(changes["status"]) != current.phase:
                lifecycle.apply_lifecycle(booking, self._move(current, changes["status"]))

        booking.start_time = start
        booking.end_time = end
        booking.aircraft_id = aircraft_id
        booking.instructor_id = instructor_id
        if "description" in changes:
            booking.description = changes["description"]

        await self.audit.log_booking(
            AuditAction.BOOKING_UPDATED,
            booking.id,
            self.ctx,
            details={key: str(value) for key, value in changes.items()},
            ip_address=self.ip_address,
        )
        return await self._commit_and_reload(booking.id)

    @staticmethod
    def _move(current: lifecycle.Lifecycle, status: str) -> lifecycle.Lifecycle:
        """Status changes requested through an edit go through the lifecycle."""
        target = lifecycle.lifecycle_of_status(status)
        if target == lifecycle.Phase.CONFIRMED:
            return lifecycle.confirm(current)
        if target == lifecycle.Phase.CANCELLED:
            return lifecycle.cancel(current)
        raise ValidationFailed(f"Cannot move a {current.phase.value} booking to {status}")

    async def reschedule(self, booking_id: UUID, new_start: datetime, new_end: datetime) -> Booking:
        """Confirm a dragged proposal against the booking as it is now."""
        booking = await load_booking_for_update(self.db, self.ctx, booking_id)
        validate_interval(new_start, new_end)
        if new_end - new_start != booking.end_time - booking.start_time:
            raise ValidationFailed("Booking changed since the proposal was made")

        await self._ensure_available(
            new_start,
            new_end,
            booking.status,
            booking.aircraft_id,
            booking.instructor_id,
            exclude_booking_id=booking.id,
        )

        previous = (booking.start_time, booking.end_time)
        booking.start_time = new_start
        booking.end_time = new_end

        await self.audit.log_booking(
            AuditAction.BOOKING_RESCHEDULED,
            booking.id,
            self.ctx,
            details={
                "from": [previous[0].isoformat(), previous[1].isoformat()],
                "to": [new_start.isoformat(), new_end.isoformat()],
            },
            ip_address=self.ip_address,
        )
        logger.info(f"[SCHEDULER] Rescheduled booking {booking.id} to {new_start.isoformat()}")
        return await self._commit_and_reload(booking.id)

    async def cancel(self, booking_id: UUID) -> Booking:
        booking = await load_booking_for_update(self.db, self.ctx, booking_id)
        lifecycle.apply_lifecycle(booking, lifecycle.cancel(lifecycle.lifecycle_of(booking)))
        await self.audit.log_booking(
            AuditAction.BOOKING_CANCELLED, booking.id, self.ctx, ip_address=self.ip_address
        )
        return await self._commit_and_reload(booking.id)

    # === Workflow stages ===

    async def complete_briefing(self, booking_id: UUID) -> Booking:
        booking = await load_booking_for_update(self.db, self.ctx, booking_id)
        lifecycle.apply_lifecycle(
            booking, lifecycle.complete_briefing(lifecycle.lifecycle_of(booking))
        )
        await self.audit.log_booking(
            AuditAction.BRIEFING_COMPLETED, booking.id, self.ctx, ip_address=self.ip_address
        )
        return await self._commit_and_reload(booking.id)

    async def checkout(self, booking_id: UUID, data: CheckoutRequest) -> Booking:
        booking = await load_booking_for_update(self.db, self.ctx, booking_id)
        moved = lifecycle.checkout(lifecycle.lifecycle_of(booking))

        details = BookingDetails(
            route=data.route,
            passengers=data.passengers,
            eta=data.eta,
            comments=data.comments,
            instructor_comment=data.instructor_comment,
        )
        self.db.add(details)
        await self.db.flush()

        booking.booking_details_id = details.id
        lifecycle.apply_lifecycle(booking, moved)

        await self.audit.log_booking(
            AuditAction.CHECKED_OUT,
            booking.id,
            self.ctx,
            details={"booking_details_id": str(details.id), "route": data.route},
            ip_address=self.ip_address,
        )
        logger.info(f"[WORKFLOW] Booking {booking.id} checked out")
        return await self._commit_and_reload(booking.id)

    async def latest_tech_log(self, aircraft_id: UUID) -> Optional[AircraftTechLog]:
        await self._require_owned(Aircraft, aircraft_id, "Aircraft")
        result = await self.db.execute(
            select(AircraftTechLog)
            .where(AircraftTechLog.aircraft_id == aircraft_id)
            .order_by(AircraftTechLog.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def checkin(self, booking_id: UUID, data: CheckinRequest) -> dict[str, Any]:
        booking = await load_booking_for_update(self.db, self.ctx, booking_id)
        moved = lifecycle.checkin(lifecycle.lifecycle_of(booking))

        aircraft = booking.aircraft
        if aircraft is None:
            raise ValidationFailed("Booking has no aircraft to check in")

        tech_log = await self.latest_tech_log(aircraft.id)
        if tech_log is None:
            raise ValidationFailed("Aircraft has no tech log entry to check in against")

        for label, current, end in (
            ("Hobbs", tech_log.current_hobbs, data.end_hobbs),
            ("Tacho", tech_log.current_tacho, data.end_tacho),
        ):
            if current is not None and end is not None and end < current:
                raise ValidationFailed(f"{label} reading is below the last tech log entry")

        meters = lifecycle.evaluate_meters(
            record_hobbs=aircraft.record_hobbs,
            record_tacho=aircraft.record_tacho,
            current_hobbs=tech_log.current_hobbs,
            current_tacho=tech_log.current_tacho,
            end_hobbs=data.end_hobbs,
            end_tacho=data.end_tacho,
            epsilon=self.settings.meter_epsilon,
        )
        if not meters.is_valid:
            logger.info(
                f"[WORKFLOW] Check-in of {booking.id} rejected: hobbs {tech_log.current_hobbs}"
                f"->{data.end_hobbs}, tacho {tech_log.current_tacho}->{data.end_tacho}"
            )
            raise ValidationFailed("End meter readings must advance past the last tech log entry")

        rate = self._checkin_rate(booking, aircraft, data.rate_id)

        flight_times = BookingFlightTimes(
            start_hobbs=tech_log.current_hobbs,
            end_hobbs=data.end_hobbs,
            start_tacho=tech_log.current_tacho,
            end_tacho=data.end_tacho,
            flight_time=meters.flight_time,
            rate_id=rate.id,
        )
        self.db.add(flight_times)
        await self.db.flush()

        booking.booking_flight_times_id = flight_times.id
        lifecycle.apply_lifecycle(booking, moved)

        new_entry = AircraftTechLog(
            aircraft_id=aircraft.id,
            booking_flight_times_id=flight_times.id,
            # A meter without a real advance keeps its previous reading
            current_hobbs=data.end_hobbs if meters.hobbs_delta is not None else tech_log.current_hobbs,
            current_tacho=data.end_tacho if meters.tacho_delta is not None else tech_log.current_tacho,
        )
        self.db.add(new_entry)
        await self.db.flush()

        await self.audit.log_booking(
            AuditAction.CHECKED_IN,
            booking.id,
            self.ctx,
            details={
                "booking_flight_times_id": str(flight_times.id),
                "flight_time": meters.flight_time,
                "rate_id": str(rate.id),
            },
            ip_address=self.ip_address,
        )
        logger.info(f"[WORKFLOW] Booking {booking.id} checked in, flight time {meters.flight_time}")

        booking = await self._commit_and_reload(booking.id)
        return {
            "booking": booking,
            "flight_time": meters.flight_time,
            "hobbs_delta": meters.hobbs_delta,
            "tacho_delta": meters.tacho_delta,
            "tech_log": new_entry,
        }

    @staticmethod
    def _checkin_rate(booking: Booking, aircraft: Aircraft, rate_id: Optional[UUID]):
        if rate_id is not None:
            for rate in aircraft.rates:
                if rate.id == rate_id:
                    return rate
            raise ValidationFailed("Rate does not belong to this aircraft")
        rate = applicable_rate(aircraft.rates, booking.flight_type_id)
        if rate is None:
            raise ValidationFailed("No rate configured for this aircraft and flight type")
        return rate

    async def submit_debrief(self, booking_id: UUID, data: DebriefRequest) -> LessonDebrief:
        outcome = lifecycle.validate_debrief(
            [performance.grade for performance in data.performances], data.outcome
        )
        booking = await load_booking_for_update(self.db, self.ctx, booking_id)
        moved = lifecycle.complete_debrief(lifecycle.lifecycle_of(booking))

        debrief = LessonDebrief(
            booking_id=booking.id,
            instructor_id=booking.instructor_id or self.ctx.user_id,
            outcome=outcome,
            comments=data.comments,
        )
        self.db.add(debrief)
        await self.db.flush()

        for performance in data.performances:
            self.db.add(
                LessonDebriefPerformance(
                    lesson_debrief_id=debrief.id,
                    item=performance.item,
                    grade=performance.grade,
                    comment=performance.comment,
                )
            )
        lifecycle.apply_lifecycle(booking, moved)

        await self.audit.log_booking(
            AuditAction.DEBRIEF_COMPLETED,
            booking.id,
            self.ctx,
            details={"lesson_debrief_id": str(debrief.id), "outcome": outcome.value},
            ip_address=self.ip_address,
        )
        await self.db.commit()
        return await get_debrief(self.db, self.ctx, debrief.id)

    # === Debrief edits ===

    async def _save_debrief_edit(self, debrief: LessonDebrief, details: dict[str, Any]) -> LessonDebrief:
        await self.audit.log_booking(
            AuditAction.DEBRIEF_UPDATED,
            debrief.booking_id,
            self.ctx,
            details={"lesson_debrief_id": str(debrief.id), **details},
            ip_address=self.ip_address,
        )
        await self.db.commit()
        return await get_debrief(self.db, self.ctx, debrief.id)

    async def update_debrief(self, debrief_id: UUID, data: DebriefPatch) -> LessonDebrief:
        debrief = await get_debrief(self.db, self.ctx, debrief_id)
        outcome = lifecycle.validate_debrief(
            [performance.grade for performance in debrief.performances],
            data.outcome or debrief.outcome.value,
        )
        debrief.outcome = outcome
        if data.comments is not None:
            debrief.comments = data.comments
        return await self._save_debrief_edit(debrief, {"outcome": outcome.value})

    async def add_performance(self, debrief_id: UUID, data: PerformanceInput) -> LessonDebrief:
        debrief = await get_debrief(self.db, self.ctx, debrief_id)
        lifecycle.validate_debrief(
            [performance.grade for performance in debrief.performances] + [data.grade],
            debrief.outcome.value,
        )
        performance = LessonDebriefPerformance(
            lesson_debrief_id=debrief.id,
            item=data.item,
            grade=data.grade,
            comment=data.comment,
        )
        self.db.add(performance)
        await self.db.flush()
        return await self._save_debrief_edit(
            debrief, {"performance_id": str(performance.id), "grade": data.grade}
        )

    async def update_performance(
        self, debrief_id: UUID, performance_id: UUID, data: PerformancePatch
    ) -> LessonDebrief:
        debrief = await get_debrief(self.db, self.ctx, debrief_id)
        target = next((p for p in debrief.performances if p.id == performance_id), None)
        if target is None:
            raise NotFound("Performance not found")

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        new_grade = changes.get("grade", target.grade)
        lifecycle.validate_debrief(
            [new_grade if p.id == performance_id else p.grade for p in debrief.performances],
            debrief.outcome.value,
        )
        for field, value in changes.items():
            setattr(target, field, value)
        return await self._save_debrief_edit(
            debrief, {"performance_id": str(performance_id), "grade": new_grade}
        )


async def get_debrief(db: AsyncSession, ctx: RequestContext, debrief_id: UUID) -> LessonDebrief:
    result = await db.execute(
        select(LessonDebrief)
        .join(Booking, LessonDebrief.booking_id == Booking.id)
        .options(selectinload(LessonDebrief.performances))
        .where(
            LessonDebrief.id == debrief_id,
            Booking.organization_id == ctx.organization_id,
        )
        .execution_options(populate_existing=True)
    )
    debrief = result.scalar_one_or_none()
    if not debrief:
        raise NotFound("Debrief not found")
    return debrief

