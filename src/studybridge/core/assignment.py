"""Teacher workflows over a whole classroom.

- assign_topic_to_class: give every enrolled student the topic and a study
  session for today
- topic_stats: memory-location histogram of a topic across the class
- update_topic_instructions: rewrite teacher instructions on every
  student's copy of the topic

Students are processed one after another. Each student yields an Ok or Err
result; an Err is logged and counted but never stops the remaining students.
Nothing is transactional: a crash halfway leaves the students processed so
far assigned and the rest untouched.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from enum import Enum
from functools import reduce
from typing import Any, Union

import structlog

from studybridge.core.payloads import envelope, record_ref, records, single_record
from studybridge.core.upsert import (
    STUDY_SESSIONS_PATH,
    USER_TOPICS_PATH,
    find_or_create,
    lookup_records,
    session_lookup,
    user_topic_lookup,
)
from studybridge.upstream.client import UpstreamClient, UpstreamError
from studybridge.upstream.query import StrapiQuery
from studybridge.utils.validators import NotFoundError

logger = structlog.get_logger(__name__)

BULK_LIMIT = 5000


class MemoryLocation(str, Enum):
    """Where a topic currently sits in a student's revision cycle."""

    NEW = "New"
    REVIEW = "Review"
    SHORT_TERM = "Short-term"
    LONG_TERM = "Long-term"
    TRANSITION = "Transition"


# =============================================================================
# PER-STUDENT RESULTS
# =============================================================================


@dataclass(frozen=True)
class Ok:
    """A student whose UserTopic is in place.

    ``session_error`` is set when the UserTopic was written but today's
    session could not be ensured.
    """

    student: Any
    created: bool
    user_topic: Any
    session_created: bool = False
    session_error: str | None = None


@dataclass(frozen=True)
class Err:
    """A student that was skipped."""

    student: Any
    reason: str


StudentResult = Union[Ok, Err]


@dataclass(frozen=True)
class AssignmentTally:
    """Accumulated counts over the class."""

    total: int = 0
    created: int = 0
    updated: int = 0
    failed: int = 0
    sessions_created: int = 0
    sessions_failed: int = 0
    failures: tuple[StudentResult, ...] = field(default_factory=tuple)

    def add(self, result: StudentResult) -> AssignmentTally:
        if isinstance(result, Err):
            return replace(self, failed=self.failed + 1, failures=(*self.failures, result))

        session_failed = result.session_error is not None
        return replace(
            self,
            created=self.created + int(result.created),
            updated=self.updated + int(not result.created),
            sessions_created=self.sessions_created + int(result.session_created),
            sessions_failed=self.sessions_failed + int(session_failed),
            failures=(*self.failures, result) if session_failed else self.failures,
        )

    def to_stats(self) -> dict[str, int]:
        return {
            "totalStudents": self.total,
            "created": self.created,
            "updated": self.updated,
            "failed": self.failed,
            "sessionsCreated": self.sessions_created,
            "sessionsFailed": self.sessions_failed,
        }


def tally_results(results: list[StudentResult]) -> AssignmentTally:
    """Fold per-student results into counts."""
    return reduce(AssignmentTally.add, results, AssignmentTally(total=len(results)))


def midnight_utc(day: date | None = None) -> str:
    """ISO timestamp for the start of ``day`` (today by default) in UTC."""
    if day is None:
        day = datetime.now(timezone.utc).date()
    return f"{day.isoformat()}T00:00:00.000Z"


# =============================================================================
# CLASSROOM ACCESS
# =============================================================================


async def fetch_class_students(
    client: UpstreamClient,
    class_id: Any,
    fields: tuple[str, ...] = ("id", "documentId"),
) -> list[dict[str, Any]]:
    """Students (profiles) enrolled in a classroom.

    Raises:
        NotFoundError: If the classroom does not exist
    """
    params = StrapiQuery().populate_fields("students", *fields).to_params()
    try:
        body = await client.get(f"/api/classrooms/{class_id}", params=params, expect_missing=True)
    except UpstreamError as e:
        if e.status_code == 404:
            raise NotFoundError("Classroom not found") from e
        raise

    classroom = single_record(body)
    if classroom is None:
        raise NotFoundError("Classroom not found")
    return [s for s in classroom.get("students") or [] if isinstance(s, dict)]


async def fetch_class_user_topics(
    client: UpstreamClient,
    topic_id: Any,
    student_refs: list[Any],
    fields: tuple[str, ...],
) -> list[dict[str, Any]]:
    """UserTopics of the given students for one topic."""
    params = (
        StrapiQuery()
        .eq("topic.documentId", topic_id)
        .in_("profile.documentId", student_refs)
        .fields(*fields)
        .limit(BULK_LIMIT)
        .to_params()
    )
    return records(await client.get(USER_TOPICS_PATH, params=params))


# =============================================================================
# ASSIGN TOPIC
# =============================================================================


def _failure_reason(exc: Exception) -> str:
    if isinstance(exc, UpstreamError):
        return exc.message
    return str(exc) or type(exc).__name__


async def _upsert_user_topic(
    client: UpstreamClient,
    student_ref: Any,
    topic_id: Any,
    instructions: str,
    scheduled_for: str,
) -> tuple[Any, bool]:
    """Update or create the student's UserTopic.

    Returns:
        (user topic reference, True if it was created)
    """
    params = user_topic_lookup(student_ref, topic_id, key="documentId").limit(1).to_params()
    _, existing = await lookup_records(client, USER_TOPICS_PATH, params)

    if existing:
        user_topic_ref = record_ref(existing[0])
        await client.put(
            f"{USER_TOPICS_PATH}/{user_topic_ref}",
            json=envelope({"nextSession": scheduled_for, "teacherInstructions": instructions}),
        )
        return user_topic_ref, False

    body = await client.post(
        USER_TOPICS_PATH,
        json=envelope(
            {
                "profile": student_ref,
                "topic": topic_id,
                "nextSession": scheduled_for,
                "memoryLocation": MemoryLocation.NEW.value,
                "revisionsDone": 0,
                "timeRemaining": 0,
                "timeTotal": 0,
                "teacherInstructions": instructions,
            }
        ),
    )
    return record_ref(single_record(body) or {}), True


async def _ensure_session(
    client: UpstreamClient,
    user_topic_ref: Any,
    topic_id: Any,
    scheduled_for: str,
) -> bool:
    """Find or create the session for ``scheduled_for``; True if created."""
    session = await find_or_create(
        client,
        STUDY_SESSIONS_PATH,
        session_lookup(user_topic_ref, scheduled_for, key="documentId"),
        {
            "user_topic": user_topic_ref,
            "scheduledFor": scheduled_for,
            "stayTopicId": topic_id,
            "isPaused": False,
            "timeAllotted": 0,
            "timeTakenForActivity": 0,
            "timeTakenForRevision": 0,
            "difficultyLevel": "Medium",
        },
    )
    return session.created


async def assign_student(
    client: UpstreamClient,
    student: dict[str, Any],
    topic_id: Any,
    instructions: str,
    scheduled_for: str,
) -> StudentResult:
    """Upsert one student's UserTopic and ensure today's session.

    A failure writing the UserTopic yields Err. A failure after that point
    still yields Ok, so the created/updated outcome is kept, with
    ``session_error`` set.
    """
    student_ref = student.get("documentId")
    if not student_ref:
        logger.error("assignment_student_missing_document_id", student_id=student.get("id"))
        return Err(student=student.get("id"), reason="missing documentId")

    try:
        user_topic_ref, created = await _upsert_user_topic(
            client, student_ref, topic_id, instructions, scheduled_for
        )
    except UpstreamError as e:
        logger.error(
            "assignment_student_failed",
            student=student_ref,
            status=e.status_code,
            error=e.message,
        )
        return Err(student=student_ref, reason=e.message)
    except Exception as e:
        logger.exception("assignment_student_failed", student=student_ref)
        return Err(student=student_ref, reason=_failure_reason(e))

    if not user_topic_ref:
        logger.error("assignment_user_topic_unreferenced", student=student_ref)
        return Ok(
            student=student_ref,
            created=created,
            user_topic=None,
            session_error="user topic has no reference",
        )

    try:
        session_created = await _ensure_session(client, user_topic_ref, topic_id, scheduled_for)
    except UpstreamError as e:
        logger.error(
            "assignment_session_failed",
            student=student_ref,
            user_topic=user_topic_ref,
            status=e.status_code,
            error=e.message,
        )
        session_error = e.message
    except Exception as e:
        logger.exception("assignment_session_failed", student=student_ref, user_topic=user_topic_ref)
        session_error = _failure_reason(e)
    else:
        return Ok(
            student=student_ref,
            created=created,
            user_topic=user_topic_ref,
            session_created=session_created,
        )

    return Ok(
        student=student_ref,
        created=created,
        user_topic=user_topic_ref,
        session_error=session_error,
    )


async def assign_topic_to_class(
    client: UpstreamClient,
    class_id: Any,
    topic_id: Any,
    instructions: str | None = None,
    day: date | None = None,
) -> dict[str, Any]:
    """Assign a topic to every student of a classroom.

    Args:
        client: Content-scope client
        class_id: Classroom id
        topic_id: Topic documentId
        instructions: Teacher instructions stored on each UserTopic
        day: Day to schedule the session for (today by default)

    Returns:
        Response body with aggregate counts
    """
    students = await fetch_class_students(client, class_id)

    try:
        await client.put(
            f"/api/classrooms/{class_id}",
            json=envelope({"topics": {"connect": [topic_id]}}),
        )
    except UpstreamError as e:
        logger.error("classroom_topic_link_failed", class_id=class_id, status=e.status_code)

    if not students:
        return {"message": "No students in classroom", "count": 0}

    scheduled_for = midnight_utc(day)
    instructions = instructions or ""

    results: list[StudentResult] = []
    for student in students:
        results.append(await assign_student(client, student, topic_id, instructions, scheduled_for))

    tally = tally_results(results)
    logger.info("assignment_complete", class_id=class_id, topic_id=topic_id, **tally.to_stats())
    return {"message": "Assignment complete", "stats": tally.to_stats()}


# =============================================================================
# STATS & INSTRUCTIONS
# =============================================================================


async def topic_stats(client: UpstreamClient, class_id: Any, topic_id: Any) -> dict[str, Any]:
    """Count the class's UserTopics for a topic by memory location."""
    students = await fetch_class_students(client, class_id, fields=("documentId",))
    student_refs = [s["documentId"] for s in students if s.get("documentId")]
    if not student_refs:
        return {"stats": {}}

    user_topics = await fetch_class_user_topics(
        client, topic_id, student_refs, fields=("memoryLocation", "teacherInstructions")
    )

    stats = {location.value: 0 for location in MemoryLocation}
    for user_topic in user_topics:
        location = user_topic.get("memoryLocation") or MemoryLocation.NEW.value
        stats[location] = stats.get(location, 0) + 1

    # All copies carry the same instructions after a class assignment
    instructions = user_topics[0].get("teacherInstructions") if user_topics else ""

    return {
        "stats": stats,
        "totalStudents": len(student_refs),
        "assignedCount": len(user_topics),
        "teacherInstructions": instructions,
    }


async def update_topic_instructions(
    client: UpstreamClient,
    class_id: Any,
    topic_id: Any,
    instructions: str | None,
) -> dict[str, Any]:
    """Set teacher instructions on every student's UserTopic concurrently."""
    students = await fetch_class_students(client, class_id, fields=("documentId",))
    student_refs = [s["documentId"] for s in students if s.get("documentId")]
    if not student_refs:
        return {"message": "No students found to update.", "count": 0}

    user_topics = await fetch_class_user_topics(client, topic_id, student_refs, fields=("documentId",))
    if not user_topics:
        return {"message": "No assigned topics found to update.", "count": 0}

    async def _update(user_topic: dict[str, Any]) -> bool:
        ref = None
        try:
            ref = record_ref(user_topic)
            await client.put(
                f"{USER_TOPICS_PATH}/{ref}",
                json=envelope({"teacherInstructions": instructions or ""}),
            )
        except UpstreamError as e:
            logger.error("instructions_update_failed", user_topic=ref, status=e.status_code)
            return False
        except Exception:
            logger.exception("instructions_update_failed", user_topic=ref)
            return False
        return True

    outcomes = await asyncio.gather(*(_update(ut) for ut in user_topics))
    return {"message": "Instructions updated successfully", "updatedCount": sum(outcomes)}
