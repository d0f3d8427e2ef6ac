"""Analysis endpoints (feedback generated for a study session)."""

from typing import Any

from fastapi import APIRouter, Request

from studybridge.core.payloads import envelope
from studybridge.upstream.query import StrapiQuery
from studybridge.web.deps import ContentClient
from studybridge.web.schemas import AnalysisCreateRequest

router = APIRouter(prefix="/analysis", tags=["analyses"])

ANALYSES_PATH = "/api/analyses"


@router.post("/create")
async def create_analysis(body: AnalysisCreateRequest, client: ContentClient) -> Any:
    return await client.post(ANALYSES_PATH, json=envelope(body.present()))


@router.get("/get")
async def get_analyses(request: Request, client: ContentClient) -> Any:
    """List analyses; ``sessionId`` filters by session, anything else is forwarded.

    Example: /api/analysis/get?sessionId=12&populate=*
    """
    query = StrapiQuery()
    session_id = request.query_params.get("sessionId")
    if session_id:
        query.eq("study_session.id", session_id)

    params = query.passthrough(request.query_params.multi_items(), exclude=("sessionId",)).to_params()
    return await client.get(ANALYSES_PATH, params=params)
