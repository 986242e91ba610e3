"""Re-index runner entry point.

Provisions the store schema and re-embeds every journal entry of one user.
Use it to backfill entries that were stored while the inference provider
was unavailable.

Usage:
    python -m services.journal_index.reindex_runner <user-id>
"""

import argparse
import asyncio
import sys

from services.journal_index.IndexService import IndexService
from shared.clients.inference.InferenceClientManager import InferenceClientManager
from shared.clients.store.StoreClientManager import StoreClientManager
from shared.errors.AppError import AppError
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging


async def main(user_id: str) -> int:
    """Run the backfill. Returns the process exit code."""
    logger = setup_logging()
    config = HelperConfig(logger=logger)
    store_client = StoreClientManager(helper_config=config).get_client()
    inference_client = InferenceClientManager(helper_config=config).get_client()

    try:
        await store_client.boot()
        await inference_client.boot()
        await store_client.do_provision_schema()

        # no point in re-embedding if every call is going to fail
        if not await inference_client.do_healthcheck():
            logger.error("Inference client '%s' is not reachable. Aborting.", inference_client.get_engine_name())
            return 1

        index_service = IndexService(helper_config=config, store_client=store_client, inference_client=inference_client)
        summary = await index_service.do_reindex_user(user_id)
    except AppError as e:
        logger.error("Re-index aborted: %s", e.message)
        return 1
    finally:
        await inference_client.close()
        await store_client.close()

    if summary.failed_ids:
        logger.warning("Entries left without embedding: %s", ", ".join(summary.failed_ids))
        return 2
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Re-embed all journal entries of a user.")
    parser.add_argument("user_id", help="Id of the user whose entries are re-indexed")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.user_id)))
