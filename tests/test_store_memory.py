import logging
import math

import pytest

from shared.clients.store.memory.StoreClientMemory import StoreClientMemory, cosine_distance
from shared.clients.store.StoreClientManager import StoreClientManager
from shared.errors.AppError import StorageError
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger


def test_cosine_distance_matches_pgvector():
    assert cosine_distance([1.0, 0.0], [1.0, 0.0]) == pytest.approx(0.0)
    assert cosine_distance([1.0, 0.0], [0.0, 1.0]) == pytest.approx(1.0)
    assert cosine_distance([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(2.0)
    assert math.isnan(cosine_distance([0.0, 0.0], [1.0, 0.0]))


def test_cosine_distance_rejects_mixed_dimensions():
    with pytest.raises(StorageError):
        cosine_distance([1.0, 0.0], [1.0, 0.0, 0.0])


async def test_queries_before_provisioning_fail():
    client = StoreClientMemory(helper_config=HelperConfig(logger=ColorLogger(logging.getLogger("journal_insight.tests"))))
    await client.boot()
    with pytest.raises(StorageError):
        await client.do_upsert_user(email="a@local", display_name="A")
    assert await client.do_healthcheck() is False


async def test_embedding_for_unknown_journal_is_rejected(store):
    with pytest.raises(StorageError):
        await store.do_upsert_embedding("00000000-0000-0000-0000-000000000000", [1.0])


async def test_search_with_mismatched_dimension_is_a_storage_error(store, user):
    journal = await store.do_create_journal(user_id=user.id, title=None, content="x", mood_tag=None)
    await store.do_upsert_embedding(journal.id, [1.0, 0.0, 0.0])
    with pytest.raises(StorageError):
        await store.do_search_embeddings(user_id=user.id, query_vector=[1.0, 0.0], limit=10)


def test_manager_resolves_memory_engine(helper_config):
    client = StoreClientManager(helper_config=helper_config).get_client()
    assert isinstance(client, StoreClientMemory)
    assert client.get_engine_name() == "memory"
