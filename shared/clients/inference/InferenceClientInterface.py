from abc import abstractmethod
from typing import Any

from shared.clients.HttpClientInterface import HttpClientInterface
from shared.errors.AppError import ProviderError, ValidationError
from shared.helper.HelperConfig import HelperConfig
from shared.models.sentiment import SentimentResult

NEUTRAL_LABEL = "neutral"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_vector(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0 and all(_is_number(v) for v in value)


def average_pool(token_vectors: list[list[float]]) -> list[float]:
    """Collapse a sequence of per-token vectors into one vector by element-wise mean.

    Args:
        token_vectors (list[list[float]]): n vectors of identical length D.

    Returns:
        list[float]: One vector of length D where index i is the mean of all inputs at i.

    Raises:
        ProviderError: If the sequence is empty, ragged or not numeric.
    """
    if not token_vectors or not all(_is_vector(v) for v in token_vectors):
        raise ProviderError("Unexpected embedding output shape: expected a sequence of numeric vectors.")
    dim = len(token_vectors[0])
    if any(len(v) != dim for v in token_vectors):
        raise ProviderError("Unexpected embedding output shape: per-token vectors differ in length.")
    count = len(token_vectors)
    return [sum(column) / count for column in zip(*token_vectors)]


def normalize_embedding_output(output: Any) -> list[float]:
    """Turn a raw feature-extraction response into a single vector.

    Accepted shapes:
        - [f, f, ...]               a sentence vector, returned as-is
        - [[f, ...], [f, ...]]      per-token vectors, average-pooled
        - [[[f, ...], [f, ...]]]    a batch of one per-token matrix, unwrapped and pooled

    Raises:
        ProviderError: For any other shape.
    """
    if _is_vector(output):
        return [float(v) for v in output]
    if isinstance(output, list) and output and all(isinstance(v, list) for v in output):
        if len(output) == 1 and output[0] and all(isinstance(v, list) for v in output[0]):
            return average_pool(output[0])
        return average_pool(output)
    raise ProviderError("Unexpected embedding output shape from inference provider.")


def normalize_sentiment_output(output: Any) -> SentimentResult:
    """Pick the first candidate of the first batch element from a text-classification response.

    The response is either a flat list of {label, score} candidates or a list holding one
    such list per input. Falls back to "neutral" without a confidence if no well-formed
    candidate is present.
    """
    candidates = output if isinstance(output, list) else []
    first = candidates[0] if candidates else None
    if isinstance(first, list):
        first = first[0] if first else None

    if isinstance(first, dict) and isinstance(first.get("label"), str) and first["label"].strip():
        score = first.get("score")
        confidence = min(max(float(score), 0.0), 1.0) if _is_number(score) else None
        return SentimentResult(label=first["label"].strip().lower(), confidence=confidence)
    return SentimentResult(label=NEUTRAL_LABEL)


class InferenceClientInterface(HttpClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # model config, independent per capability
        self.embed_model = helper_config.get_string_val(
            f"{self.get_client_type().upper()}_EMBED_MODEL", default="sentence-transformers/all-MiniLM-L6-v2"
        )
        self.sentiment_model = helper_config.get_string_val(
            f"{self.get_client_type().upper()}_SENTIMENT_MODEL", default="distilbert-base-uncased-finetuned-sst-2-english"
        )

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "inference"

    ################ ENDPOINTS ##################
    @abstractmethod
    def get_endpoint_embedding(self) -> str:
        """
        Returns the endpoint path for embedding requests.

        Returns:
            str: The endpoint path for embedding requests (e.g. "/sentence-transformers/all-MiniLM-L6-v2")
        """
        pass

    @abstractmethod
    def get_endpoint_sentiment(self) -> str:
        """
        Returns the endpoint path for sentiment classification requests.

        Returns:
            str: The endpoint path (e.g. "/distilbert-base-uncased-finetuned-sst-2-english")
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_embed_payload(self, text: str) -> dict:
        """Build the backend-specific request body for an embedding request.

        Args:
            text (str): The text to embed.

        Returns:
            dict: JSON-serialisable request body (e.g. {"inputs": "..."}).
        """
        pass

    @abstractmethod
    def get_sentiment_payload(self, text: str) -> dict:
        """Build the backend-specific request body for a sentiment request.

        Args:
            text (str): The text to classify.

        Returns:
            dict: JSON-serialisable request body.
        """
        pass

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @abstractmethod
    def extract_embedding_from_response(self, response_data: Any) -> list[float]:
        """Extract a single embedding vector from a raw embedding API response.

        Args:
            response_data (Any): The parsed JSON response body.

        Returns:
            list[float]: The embedding vector.

        Raises:
            ProviderError: If the response does not have a usable shape.
        """
        pass

    @abstractmethod
    def extract_sentiment_from_response(self, response_data: Any) -> SentimentResult:
        """Extract the normalized sentiment from a raw classification API response.

        Args:
            response_data (Any): The parsed JSON response body.

        Returns:
            SentimentResult: Lowercase label and optional confidence.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_embed(self, text: str) -> list[float]:
        """Embed a single text with the configured embedding model.

        Args:
            text (str): Non-empty text.

        Returns:
            list[float]: The embedding vector.

        Raises:
            ValidationError: If the text is empty.
            ProviderError: If the request fails or the output shape is unexpected.
        """
        if not text or not text.strip():
            raise ValidationError("Text to embed must not be empty.")
        response_data = await self._do_post_json(self.get_endpoint_embedding(), self.get_embed_payload(text))
        vector = self.extract_embedding_from_response(response_data)
        self.logging.debug("Embedded %d chars into %d dimensions with %s", len(text), len(vector), self.embed_model)
        return vector

    async def do_classify_sentiment(self, text: str) -> SentimentResult:
        """Classify the emotional tone of a text with the configured sentiment model.

        Args:
            text (str): Non-empty text.

        Returns:
            SentimentResult: Normalized label and optional confidence.

        Raises:
            ValidationError: If the text is empty.
            ProviderError: If the request fails.
        """
        if not text or not text.strip():
            raise ValidationError("Text to classify must not be empty.")
        response_data = await self._do_post_json(self.get_endpoint_sentiment(), self.get_sentiment_payload(text))
        return self.extract_sentiment_from_response(response_data)

    async def _do_post_json(self, endpoint: str, body: dict) -> Any:
        response = await self.do_request(method="POST", endpoint=endpoint, json=body, raise_on_error=True)
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(
                "Inference provider returned a non-JSON body.",
                upstream_status=response.status_code,
                upstream_body=response.text,
            ) from e
