"""Subject and exam catalog endpoints."""

from typing import Any

from fastapi import APIRouter, Request

from studybridge.upstream.query import EQ, NULL, StrapiQuery
from studybridge.utils.validators import require_fields
from studybridge.web.deps import ContentClient

router = APIRouter(tags=["subjects"])

SUBJECT_QUERY_KEYS = ("exam", "profileId")


@router.get("/subject/get")
async def get_subjects(request: Request, client: ContentClient) -> Any:
    """Subjects of an exam with their topics.

    With ``profileId``, topics are limited to the shared ones (no owner) plus
    those owned by that profile.
    """
    exam = request.query_params.get("exam")
    require_fields({"exam": exam}, "exam", message="Exam query parameter is required")

    query = (
        StrapiQuery()
        .fields("name")
        .eq("exams.name", exam)
        .populate_fields("topics", "section", "name")
        .populate_fields("exams", "name")
        .populate_filter("exams", "name", EQ, exam)
    )

    profile_id = request.query_params.get("profileId")
    if profile_id:
        query.populate_or(
            "topics",
            ("ownerProfile.id", EQ, profile_id),
            ("ownerProfile", NULL, True),
        )

    params = query.passthrough(request.query_params.multi_items(), exclude=SUBJECT_QUERY_KEYS).to_params()
    return await client.get("/api/subjects", params=params)


@router.get("/exams/get")
async def get_exams(request: Request, client: ContentClient) -> Any:
    """List exam names."""
    params = StrapiQuery().fields("name").passthrough(request.query_params.multi_items()).to_params()
    return await client.get("/api/exams", params=params)
