from fastapi import APIRouter, Query, Request, Response

from server.models.requests import JournalCreateRequest
from server.models.responses import JournalListResponse
from shared.models.journal import IndexResult, JournalCreated

router = APIRouter(prefix="/journals", tags=["journals"])


@router.post("", status_code=201)
async def create_journal(request: Request, body: JournalCreateRequest) -> JournalCreated:
    """Create a journal entry and index it on a best-effort basis.

    Args:
        request (Request): FastAPI request (provides app.state.journal_service).
        body (JournalCreateRequest): JSON body with userId, content and optional title/moodTag.

    Returns:
        JournalCreated: The stored entry; ``embedded`` is False if indexing failed.
    """
    journal_service = request.app.state.journal_service
    return await journal_service.do_create_journal(
        user_id=body.user_id,
        title=body.title,
        content=body.content,
        mood_tag=body.mood_tag,
    )


@router.get("")
async def list_journals(
    request: Request,
    user_id: str | None = Query(default=None, alias="userId"),
    limit: int | None = Query(default=None),
) -> JournalListResponse:
    """List a user's journal entries, newest first."""
    journal_service = request.app.state.journal_service
    items = await journal_service.do_list_journals(user_id=user_id, limit=limit)
    return JournalListResponse(items=items)


@router.delete("/{journal_id}", status_code=204)
async def delete_journal(request: Request, journal_id: str) -> Response:
    """Delete a journal entry together with its embedding."""
    journal_service = request.app.state.journal_service
    await journal_service.do_delete_journal(journal_id)
    return Response(status_code=204)


@router.post("/{journal_id}/index")
async def index_journal(request: Request, journal_id: str) -> IndexResult:
    """Explicitly (re-)index a journal entry. Any failure is reported to the caller.

    Args:
        request (Request): FastAPI request (provides app.state.index_service).
        journal_id (str): Id of the journal entry.

    Returns:
        IndexResult: Confirmation with the dimension of the stored vector.
    """
    index_service = request.app.state.index_service
    return await index_service.do_index_journal(journal_id)
