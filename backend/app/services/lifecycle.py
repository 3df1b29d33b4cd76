"""Booking lifecycle: stages, legal transitions and progress rendering.

The persisted row is flat (``status`` string plus two nullable flags).
Inside this module a booking is a ``Lifecycle`` value: a phase plus the two
independent completion flags. ``lifecycle_of`` and ``apply_lifecycle`` are
the only places that touch the flat representation.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Optional

from app.core.errors import ValidationFailed
from app.models.enums import BookingStatus, LessonOutcome, SchedulerStatus
from app.services.aggregator import normalize_status

METER_EPSILON = 0.1


class Stage(str, Enum):
    """Workflow stages in the order the UI suggests them."""
    BRIEFING = "briefing"
    CHECKOUT = "checkout"
    FLYING = "flying"
    DEBRIEF = "debrief"
    CHECKIN = "checkin"


STAGES: tuple[Stage, ...] = (
    Stage.BRIEFING,
    Stage.CHECKOUT,
    Stage.FLYING,
    Stage.DEBRIEF,
    Stage.CHECKIN,
)


class Phase(str, Enum):
    """Primary status of a booking."""
    UNCONFIRMED = "unconfirmed"
    CONFIRMED = "confirmed"
    FLYING = "flying"
    COMPLETE = "complete"
    CANCELLED = "cancelled"


class StageState(str, Enum):
    COMPLETE = "complete"
    CURRENT = "current"
    PENDING = "pending"


_PHASE_BY_SCHEDULER_STATUS = {
    SchedulerStatus.PENDING: Phase.UNCONFIRMED,
    SchedulerStatus.CONFIRMED: Phase.CONFIRMED,
    SchedulerStatus.FLYING: Phase.FLYING,
    SchedulerStatus.COMPLETE: Phase.COMPLETE,
    SchedulerStatus.CANCELLED: Phase.CANCELLED,
}

_STATUS_BY_PHASE = {
    Phase.UNCONFIRMED: BookingStatus.UNCONFIRMED,
    Phase.CONFIRMED: BookingStatus.CONFIRMED,
    Phase.FLYING: BookingStatus.FLYING,
    Phase.COMPLETE: BookingStatus.COMPLETE,
    Phase.CANCELLED: BookingStatus.CANCELLED,
}


@dataclass(frozen=True)
class Lifecycle:
    phase: Phase
    briefing_completed: bool = False
    debrief_completed: bool = False
    has_lesson: bool = False

    @property
    def status(self) -> BookingStatus:
        return _STATUS_BY_PHASE[self.phase]


def lifecycle_of(booking) -> Lifecycle:
    """Read the lifecycle out of a flat booking row."""
    return Lifecycle(
        phase=lifecycle_of_status(booking.status),
        briefing_completed=bool(booking.briefing_completed),
        debrief_completed=bool(booking.debrief_completed),
        has_lesson=booking.lesson_id is not None,
    )


def lifecycle_of_status(status: str) -> Phase:
    """Phase for a raw status string, normalized the same way as stored rows."""
    return _PHASE_BY_SCHEDULER_STATUS[normalize_status(status)]


def apply_lifecycle(booking, lifecycle: Lifecycle) -> None:
    """Write a lifecycle back onto the flat booking row."""
    booking.status = lifecycle.status.value
    booking.briefing_completed = lifecycle.briefing_completed
    booking.debrief_completed = lifecycle.debrief_completed


def entry_stage(has_lesson: bool) -> Stage:
    """Instructional bookings start at briefing; rentals go straight to checkout."""
    return Stage.BRIEFING if has_lesson else Stage.CHECKOUT


# === Transitions ===

def confirm(lifecycle: Lifecycle) -> Lifecycle:
    if lifecycle.phase != Phase.UNCONFIRMED:
        raise ValidationFailed(f"Cannot confirm a {lifecycle.phase.value} booking")
    return replace(lifecycle, phase=Phase.CONFIRMED)


def cancel(lifecycle: Lifecycle) -> Lifecycle:
    if lifecycle.phase not in (Phase.UNCONFIRMED, Phase.CONFIRMED):
        raise ValidationFailed(f"Cannot cancel a {lifecycle.phase.value} booking")
    return replace(lifecycle, phase=Phase.CANCELLED)


def complete_briefing(lifecycle: Lifecycle) -> Lifecycle:
    if lifecycle.phase == Phase.CANCELLED:
        raise ValidationFailed("Cannot brief a cancelled booking")
    return replace(lifecycle, briefing_completed=True)


def checkout(lifecycle: Lifecycle) -> Lifecycle:
    if lifecycle.phase != Phase.CONFIRMED:
        raise ValidationFailed("Only confirmed bookings can be checked out")
    if lifecycle.has_lesson and not lifecycle.briefing_completed:
        raise ValidationFailed("Briefing must be completed before checkout")
    return replace(lifecycle, phase=Phase.FLYING)


def checkin(lifecycle: Lifecycle) -> Lifecycle:
    if lifecycle.phase != Phase.FLYING:
        raise ValidationFailed("Only flying bookings can be checked in")
    return replace(lifecycle, phase=Phase.COMPLETE)


def complete_debrief(lifecycle: Lifecycle) -> Lifecycle:
    if lifecycle.phase == Phase.CANCELLED:
        raise ValidationFailed("Cannot debrief a cancelled booking")
    return replace(lifecycle, debrief_completed=True)


# === Progress ===

def is_stage_complete(stage: Stage, lifecycle: Lifecycle) -> bool:
    if lifecycle.phase == Phase.COMPLETE:
        return True
    if stage == Stage.BRIEFING:
        return lifecycle.briefing_completed
    if stage == Stage.DEBRIEF:
        return lifecycle.debrief_completed
    if stage == Stage.CHECKOUT:
        return lifecycle.phase == Phase.FLYING
    return False


def stage_progress(
    current_stage: Optional[Stage],
    lifecycle: Lifecycle,
) -> list[tuple[Stage, StageState]]:
    """Render state of every stage.

    Complete if the stage's own flag says so or the booking is complete;
    current if it is the caller's stage and the booking is not yet complete;
    pending otherwise.
    """
    progress = []
    for stage in STAGES:
        if is_stage_complete(stage, lifecycle):
            state = StageState.COMPLETE
        elif stage == current_stage and lifecycle.phase != Phase.COMPLETE:
            state = StageState.CURRENT
        else:
            state = StageState.PENDING
        progress.append((stage, state))
    return progress


# === Check-in meters ===

def meter_delta(
    current: Optional[float],
    end: Optional[float],
    epsilon: float = METER_EPSILON,
) -> Optional[float]:
    """Meter advance since the last tech log entry, or None if not a real advance."""
    if current is None or end is None:
        return None
    difference = end - current
    if difference > epsilon:
        return round(difference, 2)
    return None


@dataclass(frozen=True)
class MeterEvaluation:
    hobbs_delta: Optional[float]
    tacho_delta: Optional[float]
    flight_time: Optional[float]

    @property
    def is_valid(self) -> bool:
        return self.flight_time is not None


def evaluate_meters(
    record_hobbs: bool,
    record_tacho: bool,
    current_hobbs: Optional[float],
    current_tacho: Optional[float],
    end_hobbs: Optional[float],
    end_tacho: Optional[float],
    epsilon: float = METER_EPSILON,
) -> MeterEvaluation:
    """Pick the billing meter (hobbs first) and derive the flight time."""
    hobbs = meter_delta(current_hobbs, end_hobbs, epsilon)
    tacho = meter_delta(current_tacho, end_tacho, epsilon)

    flight_time = None
    if record_hobbs and hobbs is not None:
        flight_time = hobbs
    elif record_tacho and tacho is not None:
        flight_time = tacho

    return MeterEvaluation(hobbs_delta=hobbs, tacho_delta=tacho, flight_time=flight_time)


# === Debrief guard ===

def validate_debrief(grades: Iterable[int], outcome: Optional[str]) -> LessonOutcome:
    """Check a debrief before anything is written.

    At least one item must be graded above 0 and an outcome must be chosen.
    """
    if not any(grade > 0 for grade in grades):
        raise ValidationFailed("Grade at least one performance item before submitting")
    if not outcome:
        raise ValidationFailed("Select a lesson outcome before submitting")
    try:
        return LessonOutcome(outcome.upper())
    except ValueError:
        raise ValidationFailed(f"Unknown lesson outcome: {outcome}")
