import uuid

import httpx
import pytest

from server.core.JournalService import JournalService
from server.core.SentimentService import SentimentService
from services.journal_index.IndexService import IndexService
from shared.errors.AppError import NotFoundError, ProviderError, ValidationError

from conftest import corrupt_gzip_response


@pytest.fixture
def journal_service(helper_config, store, inference_client) -> JournalService:
    index_service = IndexService(helper_config=helper_config, store_client=store, inference_client=inference_client)
    return JournalService(helper_config=helper_config, store_client=store, index_service=index_service)


@pytest.fixture
def sentiment_service(helper_config, inference_client) -> SentimentService:
    return SentimentService(helper_config=helper_config, inference_client=inference_client)


async def test_upsert_user_is_keyed_by_email(journal_service):
    first = await journal_service.do_upsert_user(email="anna@local", display_name="Anna")
    second = await journal_service.do_upsert_user(email="anna@local", display_name="Anna K.")

    assert second.id == first.id
    assert second.display_name == "Anna K."


@pytest.mark.parametrize("email, display_name", [("", "Anna"), ("anna@local", "  "), (None, "Anna")])
async def test_upsert_user_requires_both_fields(journal_service, email, display_name):
    with pytest.raises(ValidationError):
        await journal_service.do_upsert_user(email=email, display_name=display_name)


async def test_create_journal_is_embedded(journal_service, store, user):
    created = await journal_service.do_create_journal(user_id=user.id, title=" Day one ", content="Started journaling.", mood_tag="calm")

    assert created.embedded is True
    assert created.title == "Day one"
    assert created.mood_tag == "calm"
    assert await store.do_fetch_embedding(created.id) is not None


async def test_create_journal_survives_provider_outage(journal_service, store, user, provider):
    provider.status_code = 503

    created = await journal_service.do_create_journal(user_id=user.id, content="Still writing.")

    assert created.embedded is False
    assert await store.do_fetch_journal(created.id) is not None
    assert await store.do_fetch_embedding(created.id) is None


async def test_create_journal_survives_unreachable_provider(journal_service, store, user, provider):
    provider.raise_exc = httpx.ConnectError("connection refused")

    created = await journal_service.do_create_journal(user_id=user.id, content="Still writing.")

    assert created.embedded is False
    assert await store.do_fetch_journal(created.id) is not None
    assert await store.do_fetch_embedding(created.id) is None


async def test_create_journal_survives_undecodable_provider_response(journal_service, store, user, provider):
    provider.respond_with = corrupt_gzip_response

    created = await journal_service.do_create_journal(user_id=user.id, content="hello")

    assert created.embedded is False
    assert [j.id for j in await store.do_list_journals(user_id=user.id, limit=10)] == [created.id]
    assert await store.do_fetch_embedding(created.id) is None


async def test_create_journal_blank_optionals_become_none(journal_service, user):
    created = await journal_service.do_create_journal(user_id=user.id, content="text", title="   ", mood_tag="")
    assert created.title is None
    assert created.mood_tag is None


async def test_create_journal_for_unknown_user(journal_service, provider):
    with pytest.raises(NotFoundError):
        await journal_service.do_create_journal(user_id=str(uuid.uuid4()), content="orphan")
    assert provider.requests == []


@pytest.mark.parametrize("user_id, content", [(None, "text"), ("nope", "text")])
async def test_create_journal_validates_user_id(journal_service, user_id, content):
    with pytest.raises(ValidationError):
        await journal_service.do_create_journal(user_id=user_id, content=content)


async def test_create_journal_requires_content(journal_service, user):
    with pytest.raises(ValidationError):
        await journal_service.do_create_journal(user_id=user.id, content="  ", title="only a title")


async def test_list_journals_newest_first_and_limited(journal_service, user):
    created = [await journal_service.do_create_journal(user_id=user.id, content=f"entry {i}") for i in range(3)]

    listed = await journal_service.do_list_journals(user_id=user.id, limit=2)

    assert len(listed) == 2
    assert listed[0].created_at >= listed[1].created_at
    assert {j.id for j in listed} <= {j.id for j in created}


async def test_delete_journal(journal_service, store, user):
    created = await journal_service.do_create_journal(user_id=user.id, content="short lived")

    await journal_service.do_delete_journal(created.id)

    assert await store.do_fetch_journal(created.id) is None
    assert await store.do_fetch_embedding(created.id) is None
    with pytest.raises(NotFoundError):
        await journal_service.do_delete_journal(created.id)


async def test_sentiment_scenario(sentiment_service, provider):
    provider.sentiment_output = [[{"label": "NEGATIVE", "score": 0.87}, {"label": "POSITIVE", "score": 0.13}]]

    result = await sentiment_service.do_classify("I feel awful today")

    assert result.label == "negative"
    assert result.confidence == pytest.approx(0.87)


async def test_sentiment_requires_text(sentiment_service, provider):
    with pytest.raises(ValidationError):
        await sentiment_service.do_classify("")
    assert provider.requests == []


async def test_sentiment_provider_failure_is_raised(sentiment_service, provider):
    provider.status_code = 500
    with pytest.raises(ProviderError) as excinfo:
        await sentiment_service.do_classify("hello")
    assert excinfo.value.upstream_status == 500
