"""Pydantic models for users, journal entries and their embeddings."""

from datetime import datetime

from pydantic import BaseModel


class User(BaseModel):
    """A journal owner, identified by its unique email address."""

    id: str
    email: str
    display_name: str
    created_at: datetime
    updated_at: datetime


class Journal(BaseModel):
    """A single journal entry as stored in the database."""

    id: str
    user_id: str
    title: str | None = None
    content: str
    mood_tag: str | None = None
    created_at: datetime
    updated_at: datetime

    def get_embeddable_text(self) -> str:
        """Join title and content with a blank line and trim surrounding whitespace.

        Returns:
            str: The text to embed. Empty if neither title nor content carry any text.
        """
        parts = [self.title or "", self.content or ""]
        return "\n\n".join(parts).strip()


class JournalCreated(Journal):
    """A freshly created journal entry, annotated with the outcome of auto-indexing."""

    embedded: bool = False


class JournalEmbedding(BaseModel):
    """The stored vector of a journal entry. At most one per journal."""

    journal_id: str
    embedding: list[float]
    updated_at: datetime


class IndexResult(BaseModel):
    """Result of an explicit (hard-failing) index request."""

    journal_id: str
    indexed: bool = True
    dimension: int


class IndexOutcome(BaseModel):
    """Result of a best-effort index attempt. Never raised, always returned.

    Attributes:
        indexed: True if the embedding was written.
        error:   Reason the attempt was abandoned, None on success.
    """

    indexed: bool
    error: str | None = None


class IndexOutcomeSummary(BaseModel):
    """Aggregate result of re-indexing all entries of one user."""

    total: int = 0
    indexed: int = 0
    failed_ids: list[str] = []
