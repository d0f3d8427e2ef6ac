"""Auto-link of profiles to institutes and classrooms.

Institute: inferred from the domain of ``collegeEmail``.
Classroom: inferred from a ``classCode`` submitted with the profile.

Lookups here never fail the surrounding request. A miss or an upstream error
is logged and the profile is written without the link.
"""

from __future__ import annotations

from typing import Any, Literal

import structlog

from studybridge.core.payloads import records, single_record
from studybridge.upstream.client import UpstreamClient, UpstreamError
from studybridge.upstream.query import StrapiQuery
from studybridge.utils.validators import InvalidParameterError, email_domain

logger = structlog.get_logger(__name__)

MembershipAction = Literal["add", "remove"]

MEMBERSHIP_ACTIONS: tuple[MembershipAction, ...] = ("add", "remove")


# =============================================================================
# INSTITUTE BY E-MAIL DOMAIN
# =============================================================================


async def find_institute_by_domain(client: UpstreamClient, email: str | None) -> Any | None:
    """Return the id of the institute whose ``emaildomain`` matches ``email``."""
    domain = email_domain(email)
    if domain is None:
        return None

    params = StrapiQuery().eq("emaildomain", domain).fields("id").to_params()
    try:
        body = await client.get("/api/institutes", params=params, expect_missing=True)
    except UpstreamError as e:
        logger.warning("institute_lookup_failed", domain=domain, status=e.status_code)
        return None

    institutes = records(body)
    if not institutes:
        logger.info("institute_not_found", domain=domain)
        return None
    if len(institutes) > 1:
        logger.warning("institute_domain_ambiguous", domain=domain, matches=len(institutes))

    return institutes[0].get("id")


async def apply_institute_link(
    client: UpstreamClient,
    payload: dict[str, Any],
    force_flag: bool,
) -> dict[str, Any]:
    """Attach ``institute`` to a profile payload when its e-mail domain matches.

    Args:
        client: Content-scope client
        payload: Outgoing profile attributes (mutated and returned)
        force_flag: Set ``isInstituteLinked`` even if the caller supplied it

    Returns:
        The payload
    """
    institute_id = await find_institute_by_domain(client, payload.get("collegeEmail"))
    if institute_id is None:
        return payload

    payload["institute"] = institute_id
    if force_flag or "isInstituteLinked" not in payload:
        payload["isInstituteLinked"] = True
    logger.info("institute_linked", institute_id=institute_id)
    return payload


# =============================================================================
# CLASSROOM BY CODE
# =============================================================================


def check_membership_action(action: str | None) -> MembershipAction:
    """Validate the add/remove flag; omitted means add."""
    if action is None or action == "":
        return "add"
    if action not in MEMBERSHIP_ACTIONS:
        raise InvalidParameterError(
            f"classCodeAction must be one of: {', '.join(MEMBERSHIP_ACTIONS)}"
        )
    return action  # type: ignore[return-value]


async def find_classroom_by_code(client: UpstreamClient, class_code: str) -> Any | None:
    """Return the id of the classroom with ``classCode``."""
    params = StrapiQuery().eq("classCode", class_code).fields("id").limit(1).to_params()
    try:
        body = await client.get("/api/classrooms", params=params, expect_missing=True)
    except UpstreamError as e:
        logger.warning("classroom_lookup_failed", class_code=class_code, status=e.status_code)
        return None

    classrooms = records(body)
    if not classrooms:
        logger.info("classroom_not_found", class_code=class_code)
        return None
    return classrooms[0].get("id")


async def current_classroom_ids(client: UpstreamClient, profile_id: Any) -> list[Any]:
    """Classroom ids the profile currently belongs to.

    Raises:
        UpstreamError: If the profile could not be read
    """
    params = StrapiQuery().populate_fields("classrooms", "id").to_params()
    body = await client.get(f"/api/profiles/{profile_id}", params=params)
    profile = single_record(body) or {}
    return [c.get("id") for c in profile.get("classrooms") or [] if isinstance(c, dict)]


def _same(a: Any, b: Any) -> bool:
    return str(a) == str(b)


async def resolve_classroom_membership(
    client: UpstreamClient,
    profile_id: Any | None,
    class_code: str,
    action: MembershipAction = "add",
) -> list[Any] | None:
    """Compute the profile's new classroom list for a submitted code.

    An empty code clears the membership. A known code is added to or removed
    from the current set. ``profile_id`` is None for a profile that does not
    exist yet.

    Returns:
        The full list to send, or None to leave the membership unchanged
    """
    if class_code == "":
        return []

    classroom_id = await find_classroom_by_code(client, class_code)
    if classroom_id is None:
        return None

    if profile_id is None:
        current: list[Any] = []
    else:
        try:
            current = await current_classroom_ids(client, profile_id)
        except UpstreamError as e:
            logger.warning(
                "classroom_membership_read_failed",
                profile_id=profile_id,
                status=e.status_code,
            )
            return None

    if action == "remove":
        updated = [c for c in current if not _same(c, classroom_id)]
    elif any(_same(c, classroom_id) for c in current):
        updated = list(current)
    else:
        updated = [*current, classroom_id]

    logger.info(
        "classroom_membership_updated",
        profile_id=profile_id,
        classroom_id=classroom_id,
        action=action,
        count=len(updated),
    )
    return updated
