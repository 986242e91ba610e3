from shared.clients.inference.InferenceClientInterface import InferenceClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.validation import require_text
from shared.models.sentiment import SentimentResult


class SentimentService:
    """Stateless pass-through to the inference client's sentiment capability."""

    def __init__(self, helper_config: HelperConfig, inference_client: InferenceClientInterface) -> None:
        self.logging = helper_config.get_logger()
        self._inference = inference_client

    async def do_classify(self, text: str) -> SentimentResult:
        """Classify the emotional tone of a text.

        Raises:
            ValidationError: If the text is empty.
            ProviderError: If the inference call fails.
        """
        text = require_text(text, "text")
        result = await self._inference.do_classify_sentiment(text)
        self.logging.info("Sentiment classified as '%s' (confidence=%s)", result.label, result.confidence)
        return result
