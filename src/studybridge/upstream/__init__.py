"""Upstream content service access: scoped clients and query builder."""

from studybridge.upstream.client import (
    UpstreamClient,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamPool,
    UpstreamTimeoutError,
)
from studybridge.upstream.query import StrapiQuery

__all__ = [
    "StrapiQuery",
    "UpstreamClient",
    "UpstreamConnectionError",
    "UpstreamError",
    "UpstreamPool",
    "UpstreamTimeoutError",
]
