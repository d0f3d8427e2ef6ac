"""Topic catalog endpoints.

A topic with no ``ownerProfile`` is shared; one with an owner is a
personal topic created by that profile.
"""

from typing import Any

from fastapi import APIRouter, Request

from studybridge.core.payloads import envelope
from studybridge.upstream.query import EQ, NULL, StrapiQuery
from studybridge.utils.validators import require_fields
from studybridge.web.deps import ContentClient
from studybridge.web.schemas import TopicCreateRequest

router = APIRouter(prefix="/topic", tags=["topics"])

TOPICS_PATH = "/api/topics"

TOPIC_QUERY_KEYS = ("subject", "name", "ownerProfile")


@router.post("/create")
async def create_topic(body: TopicCreateRequest, client: ContentClient) -> Any:
    """Create a (usually personal) topic under a subject."""
    require_fields(body.present(), "name", "subject", message="Name and Subject are required")
    return await client.post(TOPICS_PATH, json=envelope(body.present()))


@router.get("/get")
async def get_topics(request: Request, client: ContentClient) -> Any:
    """Search topics by subject, name fragment and owner."""
    subject = request.query_params.get("subject")
    name = request.query_params.get("name")
    owner = request.query_params.get("ownerProfile")

    query = StrapiQuery().populate_all()
    if subject:
        query.eq("subject", subject)
    if name:
        query.contains("name", name)
    if owner:
        query.or_(("ownerProfile.id", EQ, owner), ("ownerProfile", NULL, True))

    params = query.passthrough(request.query_params.multi_items(), exclude=TOPIC_QUERY_KEYS).to_params()
    return await client.get(TOPICS_PATH, params=params)


@router.delete("/delete/{document_id}")
async def delete_topic(document_id: str, client: ContentClient) -> Any:
    return await client.delete(f"{TOPICS_PATH}/{document_id}")
