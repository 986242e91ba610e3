from pydantic import BaseModel


class SentimentResult(BaseModel):
    """Normalized sentiment label, e.g. "positive", with an optional score in [0, 1]."""

    label: str
    confidence: float | None = None
