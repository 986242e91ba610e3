"""Embedding indexer.

Turns a journal entry into a vector via the inference client and upserts it
into the store. Entry points differ in their failure policy:

- do_index_journal(): explicit re-index, every failure is raised to the caller.
- do_auto_index():    best-effort after creation, failures come back as an
                      IndexOutcome so journaling never fails on the provider.
- do_reindex_user():  best-effort backfill over all entries of one user.
"""

from shared.clients.inference.InferenceClientInterface import InferenceClientInterface
from shared.clients.store.StoreClientInterface import StoreClientInterface
from shared.errors.AppError import AppError, NotFoundError, ValidationError
from shared.helper.HelperConfig import HelperConfig
from shared.helper.validation import require_uuid
from shared.models.journal import IndexOutcome, IndexOutcomeSummary, IndexResult, Journal

MAX_REINDEX_JOURNALS = 10_000


class IndexService:
    """Orchestrates fetch → embeddable text → embed → upsert for single journal entries."""

    def __init__(
        self,
        helper_config: HelperConfig,
        store_client: StoreClientInterface,
        inference_client: InferenceClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._store = store_client
        self._inference = inference_client

    ##########################################
    ################ CORE ####################
    ##########################################

    async def do_index_journal(self, journal_id: str) -> IndexResult:
        """Embed a stored journal entry and upsert its vector.

        Args:
            journal_id (str): Id of the journal entry.

        Returns:
            IndexResult: Confirmation with the dimension of the written vector.

        Raises:
            ValidationError: If the id is malformed or the entry has nothing to embed.
            NotFoundError: If the journal entry does not exist.
            ProviderError: If the inference call fails.
            StorageError: If loading or writing fails.
        """
        journal_id = require_uuid(journal_id, "journal_id")
        journal = await self._store.do_fetch_journal(journal_id)
        if journal is None:
            raise NotFoundError(f"Journal {journal_id} not found.")
        return await self._index(journal)

    async def do_auto_index(self, journal: Journal) -> IndexOutcome:
        """Best-effort variant of do_index_journal() for a journal that was just persisted.

        Args:
            journal (Journal): The freshly stored journal entry.

        Returns:
            IndexOutcome: indexed=False with the reason if anything went wrong.
        """
        try:
            await self._index(journal)
        except AppError as e:
            self.logging.warning("Auto-index skipped for journal id=%s: %s", journal.id, e.message)
            return IndexOutcome(indexed=False, error=e.message)
        except Exception as e:
            self.logging.exception("Auto-index failed unexpectedly for journal id=%s", journal.id)
            return IndexOutcome(indexed=False, error=f"{type(e).__name__}: {e}")
        return IndexOutcome(indexed=True)

    ##########################################
    ############### HELPERS ##################
    ##########################################

    async def _index(self, journal: Journal) -> IndexResult:
        text = journal.get_embeddable_text()
        if not text:
            raise ValidationError(f"Journal {journal.id} has nothing to embed.")

        vector = await self._inference.do_embed(text)
        await self._store.do_upsert_embedding(journal.id, vector)

        self.logging.info("Indexed journal id=%s (%d dimensions)", journal.id, len(vector))
        return IndexResult(journal_id=journal.id, dimension=len(vector))

    ##########################################
    ############### BACKFILL #################
    ##########################################

    async def do_reindex_user(self, user_id: str) -> IndexOutcomeSummary:
        """Re-index every journal entry of a user, continuing past individual failures.

        Used to backfill entries that were stored while the inference provider was down.

        Raises:
            ValidationError: If the user id is malformed.
            NotFoundError: If the user does not exist.
            StorageError: If the entries cannot be listed.
        """
        user_id = require_uuid(user_id, "userId")
        if await self._store.do_fetch_user(user_id) is None:
            raise NotFoundError(f"User {user_id} not found.")

        journals = await self._store.do_list_journals(user_id=user_id, limit=MAX_REINDEX_JOURNALS)
        summary = IndexOutcomeSummary(total=len(journals))
        for journal in journals:
            outcome = await self.do_auto_index(journal)
            if outcome.indexed:
                summary.indexed += 1
            else:
                summary.failed_ids.append(journal.id)

        self.logging.info(
            "Re-indexed user id=%s: %d/%d entries indexed, %d failed",
            user_id,
            summary.indexed,
            summary.total,
            len(summary.failed_ids),
        )
        return summary
