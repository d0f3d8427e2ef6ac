"""Shared fixtures: an in-memory stand-in for the content service.

FakeStrapi answers the subset of the REST dialect the middleware uses
(list with $eq/$in/$gt/$contains/$null filters and pagination[limit], get/create/update/
delete by id or documentId) and records every request so tests can assert
on call counts, paths, query strings and headers.
"""

import json
import re
from collections import defaultdict
from typing import Any, Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from studybridge.config.app_config import AppConfig, UpstreamConfig, clear_config_cache
from studybridge.upstream.client import UpstreamPool
from studybridge.web.api import create_app

FILTER_KEY = re.compile(r"^filters((?:\[[^\]]+\])+)$")
SEGMENT = re.compile(r"\[([^\]]+)\]")

Override = httpx.Response | Callable[[httpx.Request], httpx.Response]


def _relation_value(record: dict[str, Any], path: list[str]) -> Any:
    """Follow a filter path into a record; scalar relations end the walk."""
    value: Any = record
    for part in path:
        if isinstance(value, dict):
            value = value.get(part)
        elif isinstance(value, list):
            return [v.get(part) if isinstance(v, dict) else v for v in value]
        else:
            return value
    return value


def _matches(value: Any, operator: str, expected: Any) -> bool:
    if isinstance(value, list):
        return any(_matches(v, operator, expected) for v in value)
    if operator == "$eq":
        return str(value) == str(expected)
    if operator == "$in":
        return str(value) in {str(e) for e in expected}
    if operator == "$gt":
        return value is not None and str(value) > str(expected)
    if operator == "$contains":
        return value is not None and str(expected) in str(value)
    if operator == "$null":
        return (value is None) == (str(expected) == "true")
    return True


class FakeStrapi:
    """In-memory content service."""

    def __init__(self) -> None:
        self.collections: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.calls: list[httpx.Request] = []
        self.overrides: dict[tuple[str, str], Override] = {}
        self._next_id = 1

    # -- seeding & inspection ------------------------------------------------

    def seed(self, collection: str, **fields: Any) -> dict[str, Any]:
        record = {"id": self._next_id, "documentId": f"doc-{self._next_id}", **fields}
        self._next_id += 1
        self.collections[collection].append(record)
        return record

    def override(self, method: str, path: str, response: Override) -> None:
        self.overrides[(method, path)] = response

    def calls_to(self, method: str, path: str) -> list[httpx.Request]:
        return [c for c in self.calls if c.method == method and c.url.path == path]

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content) if request.content else None

    # -- transport -------------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)

        override = self.overrides.get((request.method, request.url.path))
        if override is not None:
            return override(request) if callable(override) else override

        parts = request.url.path.strip("/").split("/")
        if len(parts) < 2 or parts[0] != "api":
            return httpx.Response(404, json={"error": {"status": 404, "message": "Not Found"}})
        collection = parts[1]
        item = parts[2] if len(parts) > 2 else None

        if request.method == "GET" and item is None:
            return self._list(collection, request)
        if request.method == "POST" and item is None:
            payload = self.body(request)["data"]
            record = self.seed(collection, **payload)
            return httpx.Response(200, json={"data": record, "meta": {}})

        record = self._find(collection, item)
        if record is None:
            return httpx.Response(404, json={"data": None, "error": {"status": 404, "message": "Not Found"}})
        if request.method == "GET":
            return httpx.Response(200, json={"data": record, "meta": {}})
        if request.method == "PUT":
            # Users API takes a flat body, collections an enveloped one
            payload = self.body(request)
            record.update(payload.get("data", payload))
            return httpx.Response(200, json={"data": record, "meta": {}})
        if request.method == "DELETE":
            self.collections[collection].remove(record)
            return httpx.Response(200, json={"data": record, "meta": {}})
        return httpx.Response(405)

    def _find(self, collection: str, item: str | None) -> dict[str, Any] | None:
        for record in self.collections[collection]:
            if str(record["id"]) == item or record.get("documentId") == item:
                return record
        return None

    def _list(self, collection: str, request: httpx.Request) -> httpx.Response:
        conditions: dict[tuple[tuple[str, ...], str], Any] = {}
        for key, value in request.url.params.multi_items():
            match = FILTER_KEY.match(key)
            if not match:
                continue
            segments = SEGMENT.findall(match.group(1))
            if segments[0] in ("$or", "$and"):
                # Only single-branch $and is used by the middleware
                if segments[0] == "$or":
                    continue
                segments = segments[2:]
            if segments[-1].isdigit() and segments[-2] == "$in":
                cond_key = (tuple(segments[:-2]), "$in")
                conditions.setdefault(cond_key, []).append(value)
            else:
                conditions[(tuple(segments[:-1]), segments[-1])] = value

        found = [
            r
            for r in self.collections[collection]
            if all(_matches(_relation_value(r, list(path)), op, v) for (path, op), v in conditions.items())
        ]
        limit = request.url.params.get("pagination[limit]")
        if limit is not None:
            found = found[: int(limit)]
        return httpx.Response(200, json={"data": found, "meta": {"pagination": {"total": len(found)}}})


@pytest.fixture
def upstream() -> FakeStrapi:
    return FakeStrapi()


@pytest.fixture
def app_config() -> AppConfig:
    clear_config_cache()
    return AppConfig(
        upstream=UpstreamConfig(
            base_url="http://strapi.test",
            content_token="content-token",
            user_token="user-token",
            timeout=5.0,
        )
    )


@pytest.fixture
def pool(upstream, app_config) -> UpstreamPool:
    return UpstreamPool(app_config.upstream, transport=httpx.MockTransport(upstream.handler))


@pytest.fixture
def content_client(pool):
    return pool.content


@pytest.fixture
def client(app_config, pool):
    """Test client wired to the fake content service."""
    app = create_app(config=app_config, pool=pool)
    with TestClient(app) as test_client:
        yield test_client
