"""Classroom endpoints."""

from typing import Any

import structlog
from fastapi import APIRouter, Request

from studybridge.core.payloads import envelope
from studybridge.upstream.query import StrapiQuery
from studybridge.utils.validators import UnauthorizedError, require_fields
from studybridge.web.deps import ContentClient
from studybridge.web.schemas import ClassroomCreateRequest, ClassroomUpdateRequest

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/classroom", tags=["classrooms"])

CLASSROOMS_PATH = "/api/classrooms"

# Relations shown when a student looks a class up by its code
BY_CODE_POPULATE = ("students.user", "teachers", "institute", "topics", "topics.subject")


@router.get("/get")
async def get_classrooms(request: Request, client: ContentClient) -> Any:
    """Classrooms of an institute."""
    institute_id = request.query_params.get("instituteId")
    require_fields({"instituteId": institute_id}, "instituteId", message="Institute ID is required")

    params = (
        StrapiQuery()
        .eq("institute.id", institute_id)
        .populate_all()
        .passthrough(request.query_params.multi_items(), exclude=("instituteId",))
        .to_params()
    )
    return await client.get(CLASSROOMS_PATH, params=params)


@router.get("/code/{class_code}")
async def get_by_code(class_code: str, client: ContentClient) -> Any:
    """Classrooms matching a class code (a list, normally of one)."""
    require_fields({"classCode": class_code.strip()}, "classCode", message="Class Code is required")

    params = StrapiQuery().eq("classCode", class_code).populate(*BY_CODE_POPULATE).to_params()
    return await client.get(CLASSROOMS_PATH, params=params)


@router.post("/create")
async def create_classroom(request: Request, body: ClassroomCreateRequest, client: ContentClient) -> Any:
    """Create a classroom taught by the calling user.

    The caller's own ``Authorization`` header identifies the teacher.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise UnauthorizedError()
    require_fields(
        body.present(),
        "name",
        "classCode",
        "institute",
        message="Name, Class Code, and Institute are required",
    )

    me = await client.get("/api/users/me", headers={"Authorization": auth_header})
    teacher_id = me["id"]

    payload = {**body.present(), "teachers": [teacher_id]}
    logger.info("classroom_create", class_code=body.classCode, teacher_id=teacher_id)
    return await client.post(CLASSROOMS_PATH, json=envelope(payload))


@router.put("/update/{classroom_id}")
async def update_classroom(classroom_id: str, body: ClassroomUpdateRequest, client: ContentClient) -> Any:
    """Rename a classroom."""
    require_fields(body.present(), "name", message="New name is required")
    return await client.put(f"{CLASSROOMS_PATH}/{classroom_id}", json=envelope({"name": body.name}))
