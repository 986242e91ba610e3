import math
import uuid
from datetime import datetime, timezone

from shared.clients.store.StoreClientInterface import StoreClientInterface
from shared.errors.AppError import StorageError
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.journal import Journal, JournalEmbedding, User
from shared.models.search import SearchHit


def cosine_distance(a: list[float], b: list[float]) -> float:
    """Cosine distance as computed by pgvector's <=> operator: 1 - cos(a, b), in [0, 2].

    Returns NaN if either vector has zero magnitude.

    Raises:
        StorageError: If the vectors differ in dimension.
    """
    if len(a) != len(b):
        raise StorageError(f"different vector dimensions {len(a)} and {len(b)}")
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return math.nan
    return 1.0 - dot / (norm_a * norm_b)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class StoreClientMemory(StoreClientInterface):
    """In-process store. Ranks with a full scan using the same distance formula as postgres.

    Not durable: content lives as long as the process. Used for local runs without a
    database server and in tests.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._users: dict[str, User] = {}
        self._journals: dict[str, Journal] = {}
        self._embeddings: dict[str, JournalEmbedding] = {}
        self._ready = False

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Memory"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return []

    ##########################################
    ############ CORE LIFECYCLE ##############
    ##########################################

    async def boot(self) -> None:
        pass

    async def close(self) -> None:
        self._ready = False

    async def do_healthcheck(self) -> bool:
        return self._ready

    async def do_provision_schema(self) -> None:
        self._ready = True
        self.logging.info("In-memory store ready")

    def _ensure_ready(self) -> None:
        if not self._ready:
            raise StorageError("Store is not provisioned. Call do_provision_schema() before issuing queries.")

    ##########################################
    ################ USERS ###################
    ##########################################

    async def do_upsert_user(self, email: str, display_name: str) -> User:
        self._ensure_ready()
        now = _now()
        existing = next((u for u in self._users.values() if u.email == email), None)
        if existing:
            user = existing.model_copy(update={"display_name": display_name, "updated_at": now})
        else:
            user = User(id=str(uuid.uuid4()), email=email, display_name=display_name, created_at=now, updated_at=now)
        self._users[user.id] = user
        return user

    async def do_fetch_user(self, user_id: str) -> User | None:
        self._ensure_ready()
        return self._users.get(user_id)

    ##########################################
    ############### JOURNALS #################
    ##########################################

    async def do_create_journal(self, user_id: str, title: str | None, content: str, mood_tag: str | None) -> Journal:
        self._ensure_ready()
        if user_id not in self._users:
            raise StorageError(f"Journal references unknown user {user_id}")
        now = _now()
        journal = Journal(
            id=str(uuid.uuid4()),
            user_id=user_id,
            title=title,
            content=content,
            mood_tag=mood_tag,
            created_at=now,
            updated_at=now,
        )
        self._journals[journal.id] = journal
        return journal

    async def do_fetch_journal(self, journal_id: str) -> Journal | None:
        self._ensure_ready()
        return self._journals.get(journal_id)

    async def do_list_journals(self, user_id: str, limit: int) -> list[Journal]:
        self._ensure_ready()
        owned = [j for j in self._journals.values() if j.user_id == user_id]
        owned.sort(key=lambda j: j.created_at, reverse=True)
        return owned[:limit]

    async def do_delete_journal(self, journal_id: str) -> bool:
        self._ensure_ready()
        if self._journals.pop(journal_id, None) is None:
            return False
        # cascade
        self._embeddings.pop(journal_id, None)
        return True

    ##########################################
    ############## EMBEDDINGS ################
    ##########################################

    async def do_upsert_embedding(self, journal_id: str, embedding: list[float]) -> JournalEmbedding:
        self._ensure_ready()
        if journal_id not in self._journals:
            raise StorageError(f"Embedding references unknown journal {journal_id}")
        stored = JournalEmbedding(journal_id=journal_id, embedding=list(embedding), updated_at=_now())
        self._embeddings[journal_id] = stored
        return stored

    async def do_fetch_embedding(self, journal_id: str) -> JournalEmbedding | None:
        self._ensure_ready()
        return self._embeddings.get(journal_id)

    async def do_search_embeddings(self, user_id: str, query_vector: list[float], limit: int) -> list[SearchHit]:
        self._ensure_ready()
        hits: list[SearchHit] = []
        for journal_id, stored in self._embeddings.items():
            journal = self._journals[journal_id]
            if journal.user_id != user_id:
                continue
            hits.append(SearchHit(journal=journal, distance=cosine_distance(query_vector, stored.embedding)))
        # NaN sorts last, as in postgres
        hits.sort(key=lambda hit: (math.isnan(hit.distance), hit.distance))
        return hits[:limit]
