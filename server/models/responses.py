from pydantic import BaseModel

from shared.models.journal import Journal


class JournalListResponse(BaseModel):
    items: list[Journal]


class HealthResponse(BaseModel):
    ok: bool
    service: str
    store: bool
    inference: bool
