"""Lesson prerequisite checks."""

import logging
from typing import Any, Iterable, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFound, ValidationFailed
from app.core.security import RequestContext
from app.models.lesson import Lesson, StudentLesson

logger = logging.getLogger(__name__)


def prerequisite_ids(raw: Optional[list[Any]]) -> list[str]:
    """Flatten the stored prerequisite list.

    Lessons store either a plain list of lesson ids or a list wrapping
    ``{"prerequisites": [...]}``.
    """
    if not raw:
        return []
    first = raw[0]
    if isinstance(first, dict):
        return [str(item) for item in first.get("prerequisites") or []]
    return [str(item) for item in raw]


def missing_prerequisites(required: Iterable[str], completed: Iterable[str]) -> list[str]:
    """Required lesson ids not in the completed set, in their original order."""
    done = {str(lesson_id) for lesson_id in completed}
    return [lesson_id for lesson_id in required if lesson_id not in done]


def _as_uuid(value: str) -> Optional[UUID]:
    try:
        return UUID(value)
    except ValueError:
        return None


async def check_prerequisites(
    db: AsyncSession,
    ctx: RequestContext,
    student_id: UUID,
    lesson_id: UUID,
) -> dict[str, Any]:
    """Compare a lesson's prerequisites with what the student has completed."""
    result = await db.execute(
        select(Lesson).where(
            Lesson.id == lesson_id,
            Lesson.organization_id == ctx.organization_id,
        )
    )
    lesson = result.scalar_one_or_none()
    if not lesson:
        raise NotFound("Lesson not found")

    required = prerequisite_ids(lesson.prerequisites)
    if not required:
        return {"status": "success", "message": "No prerequisites required"}

    completed_result = await db.execute(
        select(StudentLesson.lesson_id).where(StudentLesson.student_id == student_id)
    )
    completed = [str(row) for row in completed_result.scalars().all()]

    missing = missing_prerequisites(required, completed)
    if not missing:
        return {"status": "success", "message": "All prerequisites completed"}

    missing_uuids = [u for u in (_as_uuid(value) for value in missing) if u is not None]
    if len(missing_uuids) != len(missing):
        logger.warning(f"[PREREQUISITES] Lesson {lesson_id} lists malformed prerequisite ids: {missing}")
        raise ValidationFailed("Lesson has malformed prerequisites")

    lessons_result = await db.execute(select(Lesson).where(Lesson.id.in_(missing_uuids)))
    missing_lessons = lessons_result.scalars().all()
    return {
        "status": "error",
        "message": "Prerequisite lessons not completed",
        "missing_prerequisites": [
            {"id": item.id, "name": item.name, "objective": item.objective}
            for item in missing_lessons
        ],
    }
