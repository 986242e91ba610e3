"""Journal service — user and journal bookkeeping around the indexer.

Creating a journal entry always succeeds once it is persisted; indexing it is
best-effort and only reported through the ``embedded`` flag.
"""

from services.journal_index.IndexService import IndexService
from server.core.QueryService import clamp_limit
from shared.clients.store.StoreClientInterface import StoreClientInterface
from shared.errors.AppError import NotFoundError
from shared.helper.HelperConfig import HelperConfig
from shared.helper.validation import require_text, require_uuid
from shared.models.journal import Journal, JournalCreated, User

DEFAULT_LIST_LIMIT = 50
MAX_LIST_LIMIT = 100


def _optional_text(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value.strip()


class JournalService:
    def __init__(
        self,
        helper_config: HelperConfig,
        store_client: StoreClientInterface,
        index_service: IndexService,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._store = store_client
        self._indexer = index_service

    ##########################################
    ################ USERS ###################
    ##########################################

    async def do_upsert_user(self, email: str, display_name: str) -> User:
        """Register a user, or update the display name if the email is already known."""
        email = require_text(email, "email")
        display_name = require_text(display_name, "display_name")
        user = await self._store.do_upsert_user(email=email, display_name=display_name)
        self.logging.info("Upserted user id=%s", user.id)
        return user

    ##########################################
    ############### JOURNALS #################
    ##########################################

    async def do_create_journal(
        self,
        user_id: str,
        content: str,
        title: str | None = None,
        mood_tag: str | None = None,
    ) -> JournalCreated:
        """Persist a journal entry, then try to index it.

        Returns:
            JournalCreated: The stored entry with embedded=True only if indexing succeeded.

        Raises:
            ValidationError: If user_id or content is missing.
            NotFoundError: If the user does not exist.
            StorageError: If the entry cannot be persisted.
        """
        user_id = require_uuid(user_id, "userId")
        content = require_text(content, "content")
        if await self._store.do_fetch_user(user_id) is None:
            raise NotFoundError(f"User {user_id} not found.")

        journal = await self._store.do_create_journal(
            user_id=user_id,
            title=_optional_text(title),
            content=content,
            mood_tag=_optional_text(mood_tag),
        )
        outcome = await self._indexer.do_auto_index(journal)
        self.logging.info("Created journal id=%s for user id=%s (embedded=%s)", journal.id, user_id, outcome.indexed)
        return JournalCreated(**journal.model_dump(), embedded=outcome.indexed)

    async def do_list_journals(self, user_id: str, limit: int | None = None) -> list[Journal]:
        """List a user's journal entries, newest first."""
        user_id = require_uuid(user_id, "userId")
        limit = clamp_limit(limit, default=DEFAULT_LIST_LIMIT, maximum=MAX_LIST_LIMIT)
        return await self._store.do_list_journals(user_id=user_id, limit=limit)

    async def do_delete_journal(self, journal_id: str) -> None:
        """Delete a journal entry. Its embedding goes with it.

        Raises:
            NotFoundError: If the journal entry does not exist.
        """
        journal_id = require_uuid(journal_id, "journal_id")
        if not await self._store.do_delete_journal(journal_id):
            raise NotFoundError(f"Journal {journal_id} not found.")
        self.logging.info("Deleted journal id=%s", journal_id)
