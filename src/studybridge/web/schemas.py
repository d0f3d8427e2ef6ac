"""Pydantic schemas for Web API request bodies.

Every field is optional at the schema level. Required identifiers are
checked in the route with require_fields so that a missing one produces the
same 400 envelope as any other client error. Fields the caller did not send
are dropped from the forwarded payload (see PayloadModel.present).
"""

from __future__ import annotations

from typing import Any

from studybridge.core.payloads import EnvelopedPayloadModel, PayloadModel

# Ids arrive as numbers or documentId strings
Ref = int | str


# =============================================================================
# USER SCHEMAS
# =============================================================================


class RegisterRequest(PayloadModel):
    """Request body for creating a user account."""

    name: str | None = None
    email: str | None = None
    password: str | None = None


class LoginRequest(PayloadModel):
    """Request body for exchanging credentials for a JWT."""

    identifier: str | None = None
    password: str | None = None


class UserUpdateRequest(PayloadModel):
    """Request body for renaming a user, located by e-mail."""

    email: str | None = None
    name: str | None = None


class UserDeleteRequest(PayloadModel):
    email: str | None = None


# =============================================================================
# PROFILE SCHEMAS
# =============================================================================


class ProfileFields(EnvelopedPayloadModel):
    """Academic profile attributes plus the classroom-code controls."""

    examType: str | None = None
    examDate: str | None = None
    studyMode: str | None = None
    isInstituteLinked: bool | None = None
    college: str | None = None
    collegeEmail: str | None = None
    year: Ref | None = None
    rollNo: Ref | None = None
    dailyTopicLimit: int | None = None
    defaultSessionDuration: int | None = None
    vivaCount: int | None = None
    # Not forwarded: drive classroom membership
    classCode: str | None = None
    classCodeAction: str | None = None


class ProfileCreateRequest(ProfileFields):
    user: Ref | None = None


class ProfileUpdateRequest(ProfileFields):
    pass


MEMBERSHIP_CONTROL_FIELDS = ("classCode", "classCodeAction")


# =============================================================================
# STUDY TRACKING SCHEMAS
# =============================================================================


class SessionFindOrCreateRequest(PayloadModel):
    """Request body for POST /api/session/find-or-create."""

    isPaused: bool | None = None
    scheduledFor: str | None = None
    timeTakenForRevision: int | float | None = None
    timeTakenForActivity: int | float | None = None
    timeAllotted: int | float | None = None
    scoreActivity: int | float | None = None
    difficultyLevel: str | None = None
    userTopicId: Ref | None = None
    # Stay topic id; stayTopicId is the older name for the same value
    id: Ref | None = None
    stayTopicId: Ref | None = None
    # Sync cursor; never used for the existence check
    lastSync: str | None = None


SESSION_KEY_FIELDS = ("userTopicId", "scheduledFor", "id", "stayTopicId", "lastSync")


class UserTopicFindOrCreateRequest(PayloadModel):
    """Request body for POST /api/user-topic/find-or-create."""

    memoryLocation: str | None = None
    lastSession: str | None = None
    nextSession: str | None = None
    timeTotal: int | float | None = None
    timeRemaining: int | float | None = None
    revisionsDone: int | None = None
    topicId: Ref | None = None
    profileId: Ref | None = None


USER_TOPIC_KEY_FIELDS = ("topicId", "profileId")


class TopicCreateRequest(PayloadModel):
    name: str | None = None
    subject: Ref | None = None
    ownerProfile: Ref | None = None
    section: str | None = None


class AnalysisCreateRequest(PayloadModel):
    """Speech/answer analysis attached to a study session."""

    weakPoints: Any = None
    blindSpots: Any = None
    strongPoints: Any = None
    metrics: Any = None
    areaOfImprovement: Any = None
    transcription: Any = None
    study_session: Ref | None = None


# =============================================================================
# CLASSROOM SCHEMAS
# =============================================================================


class ClassroomCreateRequest(PayloadModel):
    name: str | None = None
    exam: Ref | None = None
    classCode: str | None = None
    institute: Ref | None = None


class ClassroomUpdateRequest(PayloadModel):
    name: str | None = None


class AssignTopicRequest(PayloadModel):
    """Request body for assigning a topic to every student of a class."""

    classId: Ref | None = None
    topicId: Ref | None = None
    teacherInstructions: str | None = None


class UpdateInstructionsRequest(PayloadModel):
    classId: Ref | None = None
    topicId: Ref | None = None
    teacherInstructions: str | None = None
