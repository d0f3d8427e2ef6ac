"""User account endpoints.

These run under the USER token. Registration and login go to the
content service's auth endpoints with no bearer token at all.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Request

from studybridge.core.upsert import lookup_records
from studybridge.upstream.client import UpstreamClient
from studybridge.upstream.query import StrapiQuery
from studybridge.utils.validators import NotFoundError, require_fields
from studybridge.web.deps import UserClient
from studybridge.web.schemas import (
    LoginRequest,
    RegisterRequest,
    UserDeleteRequest,
    UserUpdateRequest,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/user", tags=["users"])

USER_QUERY_KEYS = ("email", "lastSync")


async def _find_user_id(client: UpstreamClient, email: str) -> Any:
    """Resolve a user id from an e-mail address."""
    params = StrapiQuery().and_eq("email", email).to_params()
    _, users = await lookup_records(client, "/api/users", params)
    if not users:
        raise NotFoundError("User not found")
    return users[0]["id"]


@router.get("/get")
async def get_user(request: Request, client: UserClient) -> Any:
    """Get users by e-mail, optionally only those changed since lastSync."""
    email = request.query_params.get("email")
    require_fields({"email": email}, "email", message="Email query parameter is required")

    params = (
        StrapiQuery()
        .and_eq("email", email)
        .since(request.query_params.get("lastSync"))
        .passthrough(request.query_params.multi_items(), exclude=USER_QUERY_KEYS)
        .to_params()
    )
    return await client.get("/api/users", params=params)


@router.post("/create")
async def create_user(body: RegisterRequest, client: UserClient) -> Any:
    """Register a user; the e-mail doubles as the username."""
    require_fields(body.present(), "email", "password")

    payload = {**body.present(), "username": body.email}
    return await client.post("/api/auth/local/register", json=payload, auth=False)


@router.post("/login")
async def login(body: LoginRequest, client: UserClient) -> Any:
    """Exchange credentials for a JWT."""
    require_fields(body.present(), "identifier", "password")

    payload = {"identifier": body.identifier, "password": body.password}
    return await client.post("/api/auth/local", json=payload, auth=False)


@router.put("/update")
async def update_user(body: UserUpdateRequest, client: UserClient) -> Any:
    """Rename the user with the given e-mail."""
    require_fields(body.present(), "email", message="Email is required")

    user_id = await _find_user_id(client, body.email)
    return await client.put(f"/api/users/{user_id}", json=body.present(exclude=("email",)))


@router.delete("/delete")
async def delete_user(
    request: Request,
    client: UserClient,
    body: UserDeleteRequest | None = None,
) -> Any:
    """Delete the user with the given e-mail (body, or query string)."""
    email = body.email if body is not None and body.email else request.query_params.get("email")
    require_fields({"email": email}, "email", message="Email is required")

    user_id = await _find_user_id(client, email)
    logger.info("user_delete", user_id=user_id)
    return await client.delete(f"/api/users/{user_id}")
