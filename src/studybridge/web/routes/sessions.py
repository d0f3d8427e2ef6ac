"""Study session endpoints."""

from typing import Any

from fastapi import APIRouter, Request

from studybridge.core.upsert import STUDY_SESSIONS_PATH, find_or_create_session
from studybridge.upstream.query import StrapiQuery
from studybridge.utils.validators import require_fields
from studybridge.web.deps import ContentClient
from studybridge.web.schemas import SESSION_KEY_FIELDS, SessionFindOrCreateRequest

router = APIRouter(prefix="/session", tags=["sessions"])

SESSION_FIELDS = (
    "id",
    "isPaused",
    "scheduledFor",
    "timeTakenForRevision",
    "timeTakenForActivity",
    "timeAllotted",
    "scoreActivity",
    "difficultyLevel",
    "stayTopicId",
)

SESSION_QUERY_KEYS = ("userTopicId", "profileId", "lastSync")

SESSION_LIST_LIMIT = 5000


@router.post("/find-or-create")
async def find_or_create(body: SessionFindOrCreateRequest, client: ContentClient) -> Any:
    """Return the session for (userTopicId, scheduledFor), creating it if needed."""
    values = body.present()
    require_fields(
        values,
        "userTopicId",
        "scheduledFor",
        message="userTopicId and scheduledFor are required",
    )
    stay_topic_id = body.id or body.stayTopicId
    require_fields({"id": stay_topic_id}, "id", message="Stay topic id (id) is required")

    result = await find_or_create_session(
        client,
        user_topic_id=body.userTopicId,
        scheduled_for=body.scheduledFor,
        stay_topic_id=stay_topic_id,
        fields=body.present(exclude=SESSION_KEY_FIELDS),
    )
    return result.body


@router.get("/get")
async def get_sessions(request: Request, client: ContentClient) -> Any:
    """Sessions of one UserTopic, or of every UserTopic of a profile."""
    user_topic_id = request.query_params.get("userTopicId")
    profile_id = request.query_params.get("profileId")
    if not user_topic_id:
        require_fields(
            {"profileId": profile_id},
            "profileId",
            message="Either userTopicId or profileId query parameter is required",
        )

    query = StrapiQuery().populate_all().fields(*SESSION_FIELDS).limit(SESSION_LIST_LIMIT)
    if user_topic_id:
        query.eq("user_topic.id", user_topic_id)
    else:
        query.eq("user_topic.profile.id", profile_id)

    params = (
        query.since(request.query_params.get("lastSync"))
        .passthrough(request.query_params.multi_items(), exclude=SESSION_QUERY_KEYS)
        .to_params()
    )
    return await client.get(STUDY_SESSIONS_PATH, params=params)
