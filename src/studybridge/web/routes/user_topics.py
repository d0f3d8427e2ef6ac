"""UserTopic endpoints (a profile's copy of a catalog topic)."""

from typing import Any

from fastapi import APIRouter, Request

from studybridge.core.upsert import USER_TOPICS_PATH, find_or_create_user_topic
from studybridge.upstream.query import StrapiQuery
from studybridge.utils.validators import require_fields
from studybridge.web.deps import ContentClient
from studybridge.web.schemas import USER_TOPIC_KEY_FIELDS, UserTopicFindOrCreateRequest

router = APIRouter(prefix="/user-topic", tags=["user-topics"])

USER_TOPIC_FIELDS = (
    "memoryLocation",
    "lastSession",
    "nextSession",
    "timeTotal",
    "timeRemaining",
    "revisionsDone",
    "documentId",
    "teacherInstructions",
)

USER_TOPIC_QUERY_KEYS = ("profileId", "lastSync")

USER_TOPIC_LIST_LIMIT = 5000


@router.post("/find-or-create")
async def find_or_create(body: UserTopicFindOrCreateRequest, client: ContentClient) -> Any:
    """Return the UserTopic for (profileId, topicId), creating it if needed."""
    require_fields(
        body.present(),
        "topicId",
        "profileId",
        message="topicId and profileId are required",
    )

    result = await find_or_create_user_topic(
        client,
        profile_id=body.profileId,
        topic_id=body.topicId,
        fields=body.present(exclude=USER_TOPIC_KEY_FIELDS),
    )
    return result.body


@router.get("/get")
async def get_user_topics(request: Request, client: ContentClient) -> Any:
    """All UserTopics of a profile (by documentId) with topic name/section."""
    profile_id = request.query_params.get("profileId")
    require_fields(
        {"profileId": profile_id},
        "profileId",
        message="profileId query parameter is required",
    )

    params = (
        StrapiQuery()
        .fields(*USER_TOPIC_FIELDS)
        .populate_fields("topic", "name", "section")
        .populate_fields("sessions", "id")
        .eq("profile.documentId", profile_id)
        .limit(USER_TOPIC_LIST_LIMIT)
        .since(request.query_params.get("lastSync"))
        .passthrough(request.query_params.multi_items(), exclude=USER_TOPIC_QUERY_KEYS)
        .to_params()
    )
    return await client.get(USER_TOPICS_PATH, params=params)


@router.delete("/delete/{user_topic_id}")
async def delete_user_topic(user_topic_id: str, client: ContentClient) -> Any:
    return await client.delete(f"{USER_TOPICS_PATH}/{user_topic_id}")
