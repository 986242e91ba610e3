import hashlib
import json
import logging
from typing import Callable

import httpx
import pytest

from shared.clients.inference.huggingface.InferenceClientHuggingface import InferenceClientHuggingface
from shared.clients.store.memory.StoreClientMemory import StoreClientMemory
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger

BASE_URL = "https://inference.test/models"
EMBED_MODEL = "sentence-transformers/all-MiniLM-L6-v2"
SENTIMENT_MODEL = "distilbert-base-uncased-finetuned-sst-2-english"


class FakeProvider:
    """Stands in for the remote inference API behind an httpx.MockTransport.

    Texts registered in ``vectors`` get that exact raw output; any other text gets a
    deterministic 8-dimensional vector derived from its hash.
    """

    def __init__(self) -> None:
        self.vectors: dict[str, object] = {}
        self.sentiment_output: object = [[{"label": "POSITIVE", "score": 0.98}, {"label": "NEGATIVE", "score": 0.02}]]
        self.status_code = 200
        self.error_body = "model overloaded"
        self.raise_exc: Exception | None = None
        self.respond_with: Callable[[], httpx.Response] | None = None
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_exc is not None:
            raise self.raise_exc
        if self.respond_with is not None:
            return self.respond_with()
        if self.status_code >= 300:
            return httpx.Response(self.status_code, text=self.error_body)
        if request.method == "GET":
            return httpx.Response(200, json={"loaded": True})

        text = json.loads(request.content)["inputs"]
        if request.url.path.endswith(SENTIMENT_MODEL):
            return httpx.Response(200, json=self.sentiment_output)
        return httpx.Response(200, json=self.vectors.get(text, hashed_vector(text)))

    def posted_inputs(self) -> list[str]:
        return [json.loads(r.content)["inputs"] for r in self.requests if r.method == "POST"]


def hashed_vector(text: str, dimension: int = 8) -> list[float]:
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    return [(byte / 255.0) - 0.5 for byte in digest[:dimension]]


@pytest.fixture
def env(monkeypatch, tmp_path):
    monkeypatch.setenv("ROOT_DIR", str(tmp_path))
    monkeypatch.setenv("STORE_ENGINE", "memory")
    monkeypatch.setenv("INFERENCE_ENGINE", "huggingface")
    monkeypatch.setenv("INFERENCE_HUGGINGFACE_API_KEY", "hf_test_key")
    monkeypatch.setenv("INFERENCE_HUGGINGFACE_BASE_URL", BASE_URL)
    monkeypatch.delenv("INFERENCE_EMBED_MODEL", raising=False)
    monkeypatch.delenv("INFERENCE_SENTIMENT_MODEL", raising=False)
    return monkeypatch


@pytest.fixture
def helper_config(env) -> HelperConfig:
    return HelperConfig(logger=ColorLogger(logging.getLogger("journal_insight.tests")))


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
async def inference_client(helper_config, provider):
    client = InferenceClientHuggingface(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(provider.handler))
    yield client
    await client.close()


@pytest.fixture
async def store():
    # the memory engine has no config of its own, a bare helper is enough
    client = StoreClientMemory(helper_config=HelperConfig(logger=ColorLogger(logging.getLogger("journal_insight.tests"))))
    await client.boot()
    await client.do_provision_schema()
    yield client
    await client.close()


@pytest.fixture
async def user(store):
    return await store.do_upsert_user(email="demo@local", display_name="Demo User")


def corrupt_gzip_response() -> httpx.Response:
    """A 200 whose body claims gzip encoding but cannot be decompressed."""
    return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip at all")
