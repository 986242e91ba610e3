from typing import Any

from shared.clients.inference.InferenceClientInterface import (
    InferenceClientInterface,
    normalize_embedding_output,
    normalize_sentiment_output,
)
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.sentiment import SentimentResult


class InferenceClientHuggingface(InferenceClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="https://api-inference.huggingface.co/models", val_type="string")
        self._api_key = self.get_config_val("API_KEY", default=None, val_type="string")
        self._wait_for_model = self.get_config_val("WAIT_FOR_MODEL", default=True, val_type="bool")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Huggingface"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://api-inference.huggingface.co/models"),
            EnvConfig(env_key="API_KEY", val_type="string", default=None),
            EnvConfig(env_key="WAIT_FOR_MODEL", val_type="bool", default=True),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {"Authorization": f"Bearer {self._api_key}"}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        # model status lives on the model route itself
        return f"/{self.embed_model}"

    def get_endpoint_embedding(self) -> str:
        return f"/{self.embed_model}"

    def get_endpoint_sentiment(self) -> str:
        return f"/{self.sentiment_model}"

    ################ PAYLOAD BUILDER ##################
    def get_embed_payload(self, text: str) -> dict:
        return self._build_payload(text)

    def get_sentiment_payload(self, text: str) -> dict:
        return self._build_payload(text)

    def _build_payload(self, text: str) -> dict:
        payload: dict = {"inputs": text}
        if self._wait_for_model:
            # cold models answer 503 otherwise
            payload["options"] = {"wait_for_model": True}
        return payload

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_embedding_from_response(self, response_data: Any) -> list[float]:
        return normalize_embedding_output(response_data)

    def extract_sentiment_from_response(self, response_data: Any) -> SentimentResult:
        result = normalize_sentiment_output(response_data)
        if result.confidence is None:
            self.logging.debug("Sentiment response carried no usable candidate, falling back to '%s'", result.label)
        return result
