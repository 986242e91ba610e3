from fastapi import APIRouter, Request

from server.models.requests import UserUpsertRequest
from shared.models.journal import User

router = APIRouter(prefix="/users", tags=["users"])


@router.post("")
async def upsert_user(request: Request, body: UserUpsertRequest) -> User:
    """Register a user by email. Re-registering the same email updates the display name.

    Args:
        request (Request): FastAPI request (provides app.state.journal_service).
        body (UserUpsertRequest): JSON body with email and display_name.

    Returns:
        User: The stored user.
    """
    journal_service = request.app.state.journal_service
    return await journal_service.do_upsert_user(email=body.email, display_name=body.display_name)
