"""Profile endpoints.

Create and update auto-link the profile to an institute (by the domain of
``collegeEmail``) and to a classroom (by ``classCode``):

- classCode absent: membership untouched
- classCode "": membership cleared
- classCode "<code>": added, or removed when classCodeAction is "remove"
"""

from typing import Any

import structlog
from fastapi import APIRouter, Request

from studybridge.core.linking import (
    apply_institute_link,
    check_membership_action,
    resolve_classroom_membership,
)
from studybridge.core.payloads import envelope, single_record
from studybridge.upstream.client import UpstreamClient, UpstreamError
from studybridge.upstream.query import StrapiQuery
from studybridge.utils.validators import require_fields
from studybridge.web.deps import ContentClient
from studybridge.web.schemas import (
    MEMBERSHIP_CONTROL_FIELDS,
    ProfileCreateRequest,
    ProfileFields,
    ProfileUpdateRequest,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/profile", tags=["profiles"])

PROFILE_QUERY_KEYS = ("email", "lastSync")


async def _apply_membership(
    client: UpstreamClient,
    body: ProfileFields,
    payload: dict[str, Any],
    profile_id: Any | None,
) -> None:
    """Set ``classrooms`` on the payload from a submitted class code."""
    if not body.supplied("classCode") or body.classCode is None:
        return
    action = check_membership_action(body.classCodeAction)
    classrooms = await resolve_classroom_membership(client, profile_id, body.classCode, action)
    if classrooms is not None:
        payload["classrooms"] = classrooms


@router.get("/get")
async def get_profiles(request: Request, client: ContentClient) -> Any:
    """Get the profiles of the user with the given e-mail."""
    email = request.query_params.get("email")
    require_fields({"email": email}, "email", message="Email query parameter is required")

    params = (
        StrapiQuery()
        .populate_all()
        .eq("user.email", email)
        .since(request.query_params.get("lastSync"))
        .passthrough(request.query_params.multi_items(), exclude=PROFILE_QUERY_KEYS)
        .to_params()
    )
    return await client.get("/api/profiles", params=params)


@router.post("/create")
async def create_profile(body: ProfileCreateRequest, client: ContentClient) -> Any:
    """Create a profile, linking institute and classroom when they match."""
    require_fields(body.present(), "user", message="user is required")
    check_membership_action(body.classCodeAction)

    payload = body.present(exclude=MEMBERSHIP_CONTROL_FIELDS)
    if payload.get("collegeEmail"):
        await apply_institute_link(client, payload, force_flag=True)
    await _apply_membership(client, body, payload, profile_id=None)

    response = await client.post("/api/profiles", json=envelope(payload))
    created = single_record(response) or {}
    logger.info("profile_created", id=created.get("id"), document_id=created.get("documentId"))
    return response


@router.put("/update/{profile_id}")
async def update_profile(profile_id: str, body: ProfileUpdateRequest, client: ContentClient) -> Any:
    """Update a profile; an explicit isInstituteLinked wins over auto-link."""
    check_membership_action(body.classCodeAction)

    payload = body.present(exclude=MEMBERSHIP_CONTROL_FIELDS)
    if payload.get("collegeEmail"):
        await apply_institute_link(client, payload, force_flag=False)
    await _apply_membership(client, body, payload, profile_id=profile_id)

    try:
        return await client.put(f"/api/profiles/{profile_id}", json=envelope(payload))
    except UpstreamError as e:
        logger.error("profile_update_failed", profile_id=profile_id, status=e.status_code, body=e.payload)
        raise


@router.delete("/delete/{profile_id}")
async def delete_profile(profile_id: str, client: ContentClient) -> Any:
    return await client.delete(f"/api/profiles/{profile_id}")
