"""Find-or-create for UserTopic and StudySession.

Both are keyed by a natural key rather than an id:

- UserTopic: (profile, topic)
- StudySession: (user_topic, scheduledFor)

The lookup asks for at most one record. A hit is returned untouched; a miss
creates the record from the supplied fields and returns it in the same
``{"data": [...]}`` shape a hit would have.

There is no transaction across the two calls. Two concurrent requests for the
same key can both miss and both create.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from studybridge.core.payloads import as_lookup_shape, envelope, records
from studybridge.upstream.client import UpstreamClient, UpstreamError
from studybridge.upstream.query import StrapiQuery

logger = structlog.get_logger(__name__)

USER_TOPICS_PATH = "/api/user-topics"
STUDY_SESSIONS_PATH = "/api/study-sessions"


@dataclass
class UpsertResult:
    """Outcome of a find-or-create."""

    body: dict[str, Any]
    created: bool

    @property
    def record(self) -> dict[str, Any] | None:
        found = records(self.body)
        return found[0] if found else None


async def lookup_records(
    client: UpstreamClient,
    path: str,
    params: dict[str, str],
) -> tuple[Any, list[dict[str, Any]]]:
    """Run a lookup where a 404 means "no match".

    Returns:
        The response body (None on a 404) and its records

    Raises:
        UpstreamError: For any failure other than a 404
    """
    try:
        body = await client.get(path, params=params, expect_missing=True)
    except UpstreamError as e:
        if e.status_code != 404:
            raise
        return None, []
    return body, records(body)


async def find_or_create(
    client: UpstreamClient,
    path: str,
    lookup: StrapiQuery,
    fields: dict[str, Any],
) -> UpsertResult:
    """Return the record matching ``lookup`` or create it from ``fields``.

    Args:
        client: Scoped upstream client
        path: Collection path, e.g. ``/api/user-topics``
        lookup: Natural-key filters (the result limit is added here)
        fields: Attributes for creation; absent optionals already omitted

    Returns:
        UpsertResult with a lookup-shaped body
    """
    found, matches = await lookup_records(client, path, lookup.limit(1).to_params())
    if matches:
        logger.debug("upsert_found", path=path)
        return UpsertResult(body=found, created=False)

    created = await client.post(path, json=envelope(fields))
    logger.info("upsert_created", path=path)
    return UpsertResult(body=as_lookup_shape(created), created=True)


def user_topic_lookup(profile_id: Any, topic_id: Any, key: str = "id") -> StrapiQuery:
    """Natural-key query for a UserTopic.

    ``key`` selects whether the references are numeric ids or documentIds.
    """
    return StrapiQuery().eq(f"topic.{key}", topic_id).eq(f"profile.{key}", profile_id)


def session_lookup(user_topic_id: Any, scheduled_for: str, key: str = "id") -> StrapiQuery:
    """Natural-key query for a StudySession."""
    return StrapiQuery().eq(f"user_topic.{key}", user_topic_id).eq("scheduledFor", scheduled_for)


async def find_or_create_user_topic(
    client: UpstreamClient,
    profile_id: Any,
    topic_id: Any,
    fields: dict[str, Any] | None = None,
    key: str = "id",
) -> UpsertResult:
    """Find the UserTopic for (profile, topic) or create it."""
    payload = {**(fields or {}), "topic": topic_id, "profile": profile_id}
    return await find_or_create(
        client,
        USER_TOPICS_PATH,
        user_topic_lookup(profile_id, topic_id, key=key),
        payload,
    )


async def find_or_create_session(
    client: UpstreamClient,
    user_topic_id: Any,
    scheduled_for: str,
    stay_topic_id: Any,
    fields: dict[str, Any] | None = None,
    key: str = "id",
) -> UpsertResult:
    """Find the StudySession for (user_topic, scheduledFor) or create it."""
    payload = {
        **(fields or {}),
        "scheduledFor": scheduled_for,
        "user_topic": user_topic_id,
        "stayTopicId": stay_topic_id,
    }
    return await find_or_create(
        client,
        STUDY_SESSIONS_PATH,
        session_lookup(user_topic_id, scheduled_for, key=key),
        payload,
    )
