"""Core workflows: payload shaping, find-or-create, auto-link, class assignment."""

from studybridge.core.assignment import (
    MemoryLocation,
    assign_topic_to_class,
    topic_stats,
    update_topic_instructions,
)
from studybridge.core.linking import apply_institute_link, resolve_classroom_membership
from studybridge.core.payloads import PayloadModel, as_lookup_shape, envelope, records
from studybridge.core.upsert import (
    UpsertResult,
    find_or_create,
    find_or_create_session,
    find_or_create_user_topic,
)

__all__ = [
    "MemoryLocation",
    "PayloadModel",
    "UpsertResult",
    "apply_institute_link",
    "as_lookup_shape",
    "assign_topic_to_class",
    "envelope",
    "find_or_create",
    "find_or_create_session",
    "find_or_create_user_topic",
    "records",
    "resolve_classroom_membership",
    "topic_stats",
    "update_topic_instructions",
]
