import httpx
import pytest

from shared.clients.inference.InferenceClientInterface import (
    average_pool,
    normalize_embedding_output,
    normalize_sentiment_output,
)
from shared.clients.inference.InferenceClientManager import InferenceClientManager
from shared.clients.inference.huggingface.InferenceClientHuggingface import InferenceClientHuggingface
from shared.errors.AppError import ProviderError, ValidationError

from conftest import EMBED_MODEL, SENTIMENT_MODEL, corrupt_gzip_response


def test_average_pool_is_elementwise_mean():
    tokens = [[1.0, 2.0, 3.0], [3.0, 4.0, 5.0], [5.0, 0.0, -2.0]]
    pooled = average_pool(tokens)
    assert len(pooled) == 3
    for i in range(3):
        assert pooled[i] == pytest.approx(sum(t[i] for t in tokens) / len(tokens))


def test_flat_vector_is_returned_as_floats():
    assert normalize_embedding_output([1, 0.5, -2]) == [1.0, 0.5, -2.0]


def test_batch_of_one_token_matrix_is_unwrapped_and_pooled():
    assert normalize_embedding_output([[[0.0, 2.0], [2.0, 4.0]]]) == pytest.approx([1.0, 3.0])


@pytest.mark.parametrize(
    "output",
    [
        [],
        [[]],
        [[1.0, 2.0], [1.0]],
        [["a", "b"]],
        [True, False],
        {"embeddings": [[0.1]]},
        "nope",
        None,
    ],
)
def test_unexpected_embedding_shapes_fail(output):
    with pytest.raises(ProviderError):
        normalize_embedding_output(output)


def test_sentiment_nested_candidates():
    result = normalize_sentiment_output([[{"label": "NEGATIVE", "score": 0.87}, {"label": "POSITIVE", "score": 0.13}]])
    assert result.label == "negative"
    assert result.confidence == pytest.approx(0.87)


def test_sentiment_flat_candidates():
    result = normalize_sentiment_output([{"label": "Joy", "score": 0.5}])
    assert result.label == "joy"
    assert result.confidence == pytest.approx(0.5)


def test_sentiment_without_score_has_no_confidence():
    result = normalize_sentiment_output([{"label": "POSITIVE"}])
    assert result.label == "positive"
    assert result.confidence is None


@pytest.mark.parametrize("output", [[], [[]], [{"score": 0.4}], {"error": "loading"}, None, [[{"label": ""}]]])
def test_sentiment_falls_back_to_neutral(output):
    result = normalize_sentiment_output(output)
    assert result.label == "neutral"
    assert result.confidence is None


async def test_embed_posts_inputs_with_bearer_token(inference_client, provider):
    vector = await inference_client.do_embed("a quiet morning")

    assert len(vector) == 8
    request = provider.requests[-1]
    assert request.method == "POST"
    assert request.url.path == f"/models/{EMBED_MODEL}"
    assert request.headers["Authorization"] == "Bearer hf_test_key"
    assert provider.posted_inputs() == ["a quiet morning"]


async def test_embed_is_deterministic_with_a_deterministic_provider(inference_client):
    first = await inference_client.do_embed("same text")
    second = await inference_client.do_embed("same text")
    assert first == second


async def test_embed_pools_per_token_output(inference_client, provider):
    provider.vectors["tokens"] = [[1.0, 1.0], [3.0, 5.0]]
    assert await inference_client.do_embed("tokens") == pytest.approx([2.0, 3.0])


async def test_embed_rejects_empty_text_without_calling_provider(inference_client, provider):
    with pytest.raises(ValidationError):
        await inference_client.do_embed("   ")
    assert provider.requests == []


async def test_non_success_status_carries_status_and_body(inference_client, provider):
    provider.status_code = 503
    with pytest.raises(ProviderError) as excinfo:
        await inference_client.do_embed("hello")
    assert excinfo.value.upstream_status == 503
    assert excinfo.value.upstream_body == "model overloaded"
    assert "503" in excinfo.value.message


async def test_timeout_is_a_provider_error(inference_client, provider):
    provider.raise_exc = httpx.ReadTimeout("timed out")
    with pytest.raises(ProviderError) as excinfo:
        await inference_client.do_embed("hello")
    assert excinfo.value.upstream_status is None


async def test_classify_sentiment_uses_sentiment_model(inference_client, provider):
    provider.sentiment_output = [[{"label": "NEGATIVE", "score": 0.87}]]

    result = await inference_client.do_classify_sentiment("I feel awful today")

    assert result.label == "negative"
    assert result.confidence == pytest.approx(0.87)
    assert provider.requests[-1].url.path == f"/models/{SENTIMENT_MODEL}"


async def test_healthcheck_reports_unreachable_provider(inference_client, provider):
    assert await inference_client.do_healthcheck() is True
    provider.raise_exc = httpx.ConnectError("refused")
    assert await inference_client.do_healthcheck() is False


def test_missing_api_key_fails_configuration(helper_config, env):
    env.delenv("INFERENCE_HUGGINGFACE_API_KEY")
    with pytest.raises(ValueError):
        InferenceClientHuggingface(helper_config=helper_config)


def test_manager_resolves_engine_from_env(helper_config):
    client = InferenceClientManager(helper_config=helper_config).get_client()
    assert isinstance(client, InferenceClientHuggingface)
    assert client.get_engine_name() == "huggingface"


def test_manager_rejects_unknown_engine(helper_config, env):
    env.setenv("INFERENCE_ENGINE", "nonexistent")
    with pytest.raises(ValueError):
        InferenceClientManager(helper_config=helper_config)


async def test_undecodable_response_is_a_provider_error(inference_client, provider):
    provider.respond_with = corrupt_gzip_response
    with pytest.raises(ProviderError):
        await inference_client.do_embed("hello")


async def test_cached_healthcheck_reuses_recent_result(inference_client, provider):
    assert await inference_client.do_cached_healthcheck() is True
    provider.raise_exc = httpx.ConnectError("refused")

    assert await inference_client.do_cached_healthcheck() is True
    assert len([r for r in provider.requests if r.method == "GET"]) == 1

    inference_client.healthcheck_ttl = 0
    assert await inference_client.do_cached_healthcheck() is False
