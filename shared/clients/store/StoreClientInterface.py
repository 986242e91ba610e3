from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.journal import Journal, JournalEmbedding, User
from shared.models.search import SearchHit


class StoreClientInterface(ClientInterface):
    """Persistence boundary for users, journals and their embeddings.

    Every engine must uphold the same contract:
        - users are upserted by email
        - journals cascade-delete with their owner, embeddings with their journal
        - at most one embedding per journal, replaced wholesale on upsert
        - search ranks by cosine distance ascending and only returns embedded journals
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "store"

    ##########################################
    ############### PROVISION ################
    ##########################################

    @abstractmethod
    async def do_provision_schema(self) -> None:
        """Bring the backing store into the expected shape. Safe to call on every start.

        Raises:
            ProvisioningError: If the store cannot be brought into a consistent state.
        """
        pass

    ##########################################
    ################ USERS ###################
    ##########################################

    @abstractmethod
    async def do_upsert_user(self, email: str, display_name: str) -> User:
        """Insert a user or update the display name of the user with the same email.

        Returns:
            User: The stored user.
        """
        pass

    @abstractmethod
    async def do_fetch_user(self, user_id: str) -> User | None:
        """Fetch a user by id, None if absent."""
        pass

    ##########################################
    ############### JOURNALS #################
    ##########################################

    @abstractmethod
    async def do_create_journal(self, user_id: str, title: str | None, content: str, mood_tag: str | None) -> Journal:
        """Persist a new journal entry for an existing user.

        Returns:
            Journal: The stored journal entry with generated id and timestamps.
        """
        pass

    @abstractmethod
    async def do_fetch_journal(self, journal_id: str) -> Journal | None:
        """Fetch a journal entry by id, None if absent."""
        pass

    @abstractmethod
    async def do_list_journals(self, user_id: str, limit: int) -> list[Journal]:
        """List the newest journal entries of a user, newest first."""
        pass

    @abstractmethod
    async def do_delete_journal(self, journal_id: str) -> bool:
        """Delete a journal entry and, by cascade, its embedding.

        Returns:
            bool: True if a journal was deleted.
        """
        pass

    ##########################################
    ############## EMBEDDINGS ################
    ##########################################

    @abstractmethod
    async def do_upsert_embedding(self, journal_id: str, embedding: list[float]) -> JournalEmbedding:
        """Insert the embedding of a journal or replace the existing one.

        Returns:
            JournalEmbedding: The stored embedding.
        """
        pass

    @abstractmethod
    async def do_fetch_embedding(self, journal_id: str) -> JournalEmbedding | None:
        """Fetch the embedding of a journal, None if it was never indexed."""
        pass

    @abstractmethod
    async def do_search_embeddings(self, user_id: str, query_vector: list[float], limit: int) -> list[SearchHit]:
        """Rank the embedded journals of a user by cosine distance to the query vector.

        Args:
            user_id (str): Owner scope. Journals of other users are never returned.
            query_vector (list[float]): Vector of the same dimension as the stored ones.
            limit (int): Maximum number of hits.

        Returns:
            list[SearchHit]: Hits in non-decreasing distance order.
        """
        pass
