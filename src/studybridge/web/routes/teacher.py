"""Teacher endpoints acting on a whole classroom."""

from typing import Any

from fastapi import APIRouter, Request

from studybridge.core.assignment import (
    assign_topic_to_class,
    topic_stats,
    update_topic_instructions,
)
from studybridge.utils.validators import require_fields
from studybridge.web.deps import ContentClient
from studybridge.web.schemas import AssignTopicRequest, UpdateInstructionsRequest

router = APIRouter(prefix="/teacher", tags=["teacher"])

CLASS_TOPIC_REQUIRED = "classId and topicId are required"


@router.post("/assign-topic")
async def assign_topic(body: AssignTopicRequest, client: ContentClient) -> Any:
    """Give every student of the class the topic and a session for today."""
    require_fields(body.present(), "classId", "topicId", message=CLASS_TOPIC_REQUIRED)
    return await assign_topic_to_class(
        client,
        class_id=body.classId,
        topic_id=body.topicId,
        instructions=body.teacherInstructions,
    )


@router.get("/topic-stats")
async def get_topic_stats(request: Request, client: ContentClient) -> Any:
    """Memory-location breakdown of a topic across the class."""
    class_id = request.query_params.get("classId")
    topic_id = request.query_params.get("topicId")
    require_fields(
        {"classId": class_id, "topicId": topic_id},
        "classId",
        "topicId",
        message=CLASS_TOPIC_REQUIRED,
    )
    return await topic_stats(client, class_id=class_id, topic_id=topic_id)


@router.put("/update-instructions")
async def update_instructions(body: UpdateInstructionsRequest, client: ContentClient) -> Any:
    """Replace the teacher instructions on every student's copy of the topic."""
    require_fields(body.present(), "classId", "topicId", message=CLASS_TOPIC_REQUIRED)
    return await update_topic_instructions(
        client,
        class_id=body.classId,
        topic_id=body.topicId,
        instructions=body.teacherInstructions,
    )
