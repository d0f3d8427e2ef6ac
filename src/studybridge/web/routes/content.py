"""Content catalog endpoints (articles, categories)."""

from typing import Any

from fastapi import APIRouter, Request

from studybridge.upstream.query import StrapiQuery
from studybridge.web.deps import ContentClient

router = APIRouter(prefix="/content", tags=["content"])


@router.get("/articles")
async def get_articles(request: Request, client: ContentClient) -> Any:
    """List articles with all relations populated."""
    params = (
        StrapiQuery()
        .populate_all()
        .passthrough(request.query_params.multi_items())
        .to_params()
    )
    return await client.get("/api/articles", params=params)


@router.get("/categories/{category_id}")
async def get_category(category_id: str, client: ContentClient) -> Any:
    """Get one category with all relations populated."""
    params = StrapiQuery().populate_all().to_params()
    return await client.get(f"/api/categories/{category_id}", params=params)
