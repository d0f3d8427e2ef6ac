"""Optional-field payloads and upstream body shapes.

Request bodies are pydantic models whose fields are all optional. A field the
caller never sent is omitted from the outgoing payload; a field sent as
``null`` is forwarded as ``null``. The content service rejects unexpected
nulls on some attributes, so "absent" must never become ``null``.
"""

from __future__ import annotations

from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, model_validator


class PayloadModel(BaseModel):
    """Base for request bodies forwarded to the content service."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    def present(self, exclude: Iterable[str] = ()) -> dict[str, Any]:
        """Fields the caller supplied, minus ``exclude``."""
        return self.model_dump(exclude_unset=True, exclude=set(exclude) or None)

    def supplied(self, name: str) -> bool:
        """True if the caller sent ``name``, even as null or empty."""
        return name in self.model_fields_set


class EnvelopedPayloadModel(PayloadModel):
    """Accepts both a flat body and one nested under ``data``."""

    @model_validator(mode="before")
    @classmethod
    def _unwrap_data(cls, value: Any) -> Any:
        if isinstance(value, dict) and isinstance(value.get("data"), dict):
            return value["data"]
        return value


def envelope(fields: dict[str, Any]) -> dict[str, Any]:
    """Wrap attributes in the ``{"data": ...}`` body the upstream expects."""
    return {"data": fields}


def records(body: Any) -> list[dict[str, Any]]:
    """Records of a list response (``{"data": [...]}``)."""
    if isinstance(body, dict):
        data = body.get("data")
        if isinstance(data, list):
            return data
        if isinstance(data, dict):
            return [data]
    if isinstance(body, list):
        return body
    return []


def single_record(body: Any) -> dict[str, Any] | None:
    """Record of a single-entry response (``{"data": {...}}``)."""
    if isinstance(body, dict) and isinstance(body.get("data"), dict):
        return body["data"]
    return None


def as_lookup_shape(body: Any) -> dict[str, Any]:
    """Reshape a create response so it matches a lookup response.

    ``{"data": {...}, "meta": {}}`` becomes ``{"data": [{...}], "meta": {}}``.
    """
    record = single_record(body)
    meta = body.get("meta", {}) if isinstance(body, dict) else {}
    return {"data": [record] if record is not None else [], "meta": meta}


def record_ref(record: dict[str, Any]) -> Any:
    """Identifier used to address a record: documentId, else id."""
    return record.get("documentId") or record.get("id")
