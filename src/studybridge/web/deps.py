"""Dependency injection for the scoped upstream clients."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from studybridge.upstream.client import UpstreamClient, UpstreamPool


def get_upstream_pool(request: Request) -> UpstreamPool:
    """The pool built at startup and kept on ``app.state``."""
    pool = getattr(request.app.state, "upstream", None)
    if pool is None:
        raise RuntimeError("upstream pool not initialized")
    return pool


def get_content_client(pool: Annotated[UpstreamPool, Depends(get_upstream_pool)]) -> UpstreamClient:
    """Client carrying the CONTENT API token."""
    return pool.content


def get_user_client(pool: Annotated[UpstreamPool, Depends(get_upstream_pool)]) -> UpstreamClient:
    """Client carrying the USER API token."""
    return pool.user


# Type aliases for dependency injection
ContentClient = Annotated[UpstreamClient, Depends(get_content_client)]
UserClient = Annotated[UpstreamClient, Depends(get_user_client)]
