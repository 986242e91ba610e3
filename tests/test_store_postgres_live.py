"""Runs against a real postgres with pgvector. Skipped unless TEST_DATABASE_URL is set."""

import os

import pytest

from shared.clients.store.postgres.StoreClientPostgres import StoreClientPostgres

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")

pytestmark = pytest.mark.skipif(not TEST_DATABASE_URL, reason="TEST_DATABASE_URL not set")


@pytest.fixture
async def pg_store(helper_config, env):
    env.setenv("STORE_POSTGRES_DATABASE_URL", TEST_DATABASE_URL)
    env.setenv("STORE_POSTGRES_SCHEMA", "journal_insight_test")
    client = StoreClientPostgres(helper_config=helper_config)
    await client.boot()
    await client.do_provision_schema()
    yield client
    await client.close()


async def test_provisioning_is_repeatable(pg_store):
    await pg_store.do_provision_schema()
    assert await pg_store.do_healthcheck() is True


async def test_ranking_and_cascade(pg_store):
    user = await pg_store.do_upsert_user(email="live-test@local", display_name="Live")
    near = await pg_store.do_create_journal(user_id=user.id, title=None, content="near", mood_tag=None)
    far = await pg_store.do_create_journal(user_id=user.id, title=None, content="far", mood_tag=None)
    await pg_store.do_upsert_embedding(near.id, [0.9, 0.43589])
    await pg_store.do_upsert_embedding(far.id, [0.1, 0.99499])
    try:
        hits = await pg_store.do_search_embeddings(user_id=user.id, query_vector=[1.0, 0.0], limit=1)
        assert [hit.journal.id for hit in hits] == [near.id]
        assert 1.0 - hits[0].distance == pytest.approx(0.9, abs=1e-4)

        stored = await pg_store.do_upsert_embedding(near.id, [0.0, 1.0])
        assert stored.embedding == pytest.approx([0.0, 1.0])
    finally:
        for journal in (near, far):
            await pg_store.do_delete_journal(journal.id)

    assert await pg_store.do_fetch_embedding(near.id) is None
