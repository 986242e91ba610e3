from fastapi import APIRouter, Request

from server.models.requests import SentimentRequest
from shared.models.sentiment import SentimentResult

router = APIRouter(prefix="/sentiment", tags=["sentiment"])


@router.post("")
async def classify_sentiment(request: Request, body: SentimentRequest) -> SentimentResult:
    """Classify the emotional tone of a text."""
    sentiment_service = request.app.state.sentiment_service
    return await sentiment_service.do_classify(body.text)
