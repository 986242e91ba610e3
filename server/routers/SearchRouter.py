from fastapi import APIRouter, Request

from shared.models.search import SearchRequest, SearchResponse

router = APIRouter(prefix="/search", tags=["search"])


@router.post("")
async def search_journals(request: Request, body: SearchRequest) -> SearchResponse:
    """Execute a semantic search over the journal entries of one user.

    Args:
        request (Request): FastAPI request (provides app.state.query_service).
        body (SearchRequest): JSON body with userId, query and optional limit (max 50).

    Returns:
        SearchResponse: Matching journal entries, best match first.
    """
    request.app.state.logging.info("Search received — user_id=%s query=%r", body.user_id, (body.query or "")[:80])
    query_service = request.app.state.query_service
    return await query_service.do_search(body)
