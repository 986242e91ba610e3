from typing import Any

import psycopg
from pgvector import Vector
from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool, PoolTimeout

from shared.clients.store.StoreClientInterface import StoreClientInterface
from shared.clients.store.postgres.SchemaProvisionerPostgres import SchemaProvisionerPostgres, build_schema_statements
from shared.errors.AppError import ProvisioningError, StorageError
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.journal import Journal, JournalEmbedding, User
from shared.models.search import SearchHit

JOURNAL_COLUMNS = "j.id::text AS id, j.user_id::text AS user_id, j.title, j.content, j.mood_tag, j.created_at, j.updated_at"


class StoreClientPostgres(StoreClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._conninfo = self.get_config_val("DATABASE_URL", default=None, val_type="string")
        self._schema = self.get_config_val("SCHEMA", default="mindful", val_type="string")
        self._admin_database = self.get_config_val("ADMIN_DATABASE", default="postgres", val_type="string")
        self._create_database = self.get_config_val("CREATE_DATABASE", default=True, val_type="bool")
        self._pool_max_size = int(self.get_config_val("POOL_MAX_SIZE", default=10, val_type="number"))
        self._pool: AsyncConnectionPool | None = None

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Postgres"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="DATABASE_URL", val_type="string", default=None),
            EnvConfig(env_key="SCHEMA", val_type="string", default="mindful"),
            EnvConfig(env_key="ADMIN_DATABASE", val_type="string", default="postgres"),
            EnvConfig(env_key="CREATE_DATABASE", val_type="bool", default=True),
            EnvConfig(env_key="POOL_MAX_SIZE", val_type="number", default=10),
        ]

    def _table(self, name: str) -> sql.Composed:
        return sql.SQL("{}.{}").format(sql.Identifier(self._schema), sql.Identifier(name))

    ##########################################
    ############ CORE LIFECYCLE ##############
    ##########################################

    async def boot(self) -> None:
        """Create the connection pool. It is opened by do_provision_schema(), since the
        target database may not exist yet."""
        statement_timeout_ms = int(float(self.timeout) * 1000)
        self._pool = AsyncConnectionPool(
            conninfo=self._conninfo,
            min_size=1,
            max_size=self._pool_max_size,
            timeout=float(self.timeout),
            kwargs={"options": f"-c statement_timeout={statement_timeout_ms}"},
            open=False,
        )

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    async def do_healthcheck(self) -> bool:
        try:
            row = await self._fetch_one("SELECT 1 AS ok")
        except StorageError as e:
            self.logging.warning("Healthcheck for %s failed: %s", self.get_engine_name(), e.message)
            return False
        return bool(row) and row["ok"] == 1

    async def do_provision_schema(self) -> None:
        provisioner = SchemaProvisionerPostgres(
            logging=self.logging,
            conninfo=self._conninfo,
            statements=build_schema_statements(self._schema),
            admin_database=self._admin_database,
            create_database=self._create_database,
            connect_timeout=int(self.timeout),
        )
        await provisioner.provision()
        if self._pool is None:
            await self.boot()
        try:
            await self._pool.open(wait=True, timeout=float(self.timeout))
        except PoolTimeout as e:
            raise ProvisioningError(f"Connection pool could not be filled within {self.timeout}s.") from e

    ##########################################
    ################ USERS ###################
    ##########################################

    async def do_upsert_user(self, email: str, display_name: str) -> User:
        query = sql.SQL(
            """
            INSERT INTO {users} (email, display_name)
            VALUES (%s, %s)
            ON CONFLICT (email) DO UPDATE
              SET display_name = EXCLUDED.display_name, updated_at = NOW()
            RETURNING id::text AS id, email, display_name, created_at, updated_at
            """
        ).format(users=self._table("users"))
        row = await self._fetch_one(query, (email, display_name))
        return User(**row)

    async def do_fetch_user(self, user_id: str) -> User | None:
        query = sql.SQL(
            "SELECT id::text AS id, email, display_name, created_at, updated_at FROM {users} WHERE id = %s"
        ).format(users=self._table("users"))
        row = await self._fetch_one(query, (user_id,))
        return User(**row) if row else None

    ##########################################
    ############### JOURNALS #################
    ##########################################

    async def do_create_journal(self, user_id: str, title: str | None, content: str, mood_tag: str | None) -> Journal:
        query = sql.SQL(
            """
            INSERT INTO {journals} AS j (user_id, title, content, mood_tag)
            VALUES (%s, %s, %s, %s)
            RETURNING {columns}
            """
        ).format(journals=self._table("journals"), columns=sql.SQL(JOURNAL_COLUMNS))
        row = await self._fetch_one(query, (user_id, title, content, mood_tag))
        return Journal(**row)

    async def do_fetch_journal(self, journal_id: str) -> Journal | None:
        query = sql.SQL("SELECT {columns} FROM {journals} j WHERE j.id = %s").format(
            columns=sql.SQL(JOURNAL_COLUMNS), journals=self._table("journals")
        )
        row = await self._fetch_one(query, (journal_id,))
        return Journal(**row) if row else None

    async def do_list_journals(self, user_id: str, limit: int) -> list[Journal]:
        query = sql.SQL(
            "SELECT {columns} FROM {journals} j WHERE j.user_id = %s ORDER BY j.created_at DESC LIMIT %s"
        ).format(columns=sql.SQL(JOURNAL_COLUMNS), journals=self._table("journals"))
        rows = await self._fetch_all(query, (user_id, limit))
        return [Journal(**row) for row in rows]

    async def do_delete_journal(self, journal_id: str) -> bool:
        query = sql.SQL("DELETE FROM {journals} WHERE id = %s RETURNING id").format(journals=self._table("journals"))
        row = await self._fetch_one(query, (journal_id,))
        return row is not None

    ##########################################
    ############## EMBEDDINGS ################
    ##########################################

    async def do_upsert_embedding(self, journal_id: str, embedding: list[float]) -> JournalEmbedding:
        query = sql.SQL(
            """
            INSERT INTO {embeddings} (journal_id, embedding, updated_at)
            VALUES (%s, %s::vector, NOW())
            ON CONFLICT (journal_id) DO UPDATE
              SET embedding = EXCLUDED.embedding, updated_at = NOW()
            RETURNING journal_id::text AS journal_id, embedding::text AS embedding, updated_at
            """
        ).format(embeddings=self._table("journal_embeddings"))
        row = await self._fetch_one(query, (journal_id, Vector(embedding).to_text()))
        return self._build_embedding(row)

    async def do_fetch_embedding(self, journal_id: str) -> JournalEmbedding | None:
        query = sql.SQL(
            """
            SELECT journal_id::text AS journal_id, embedding::text AS embedding, updated_at
            FROM {embeddings} WHERE journal_id = %s
            """
        ).format(embeddings=self._table("journal_embeddings"))
        row = await self._fetch_one(query, (journal_id,))
        return self._build_embedding(row) if row else None

    async def do_search_embeddings(self, user_id: str, query_vector: list[float], limit: int) -> list[SearchHit]:
        # <=> is pgvector's cosine distance in [0, 2]
        query = sql.SQL(
            """
            SELECT {columns}, e.embedding <=> %s::vector AS distance
            FROM {journals} j
            JOIN {embeddings} e ON e.journal_id = j.id
            WHERE j.user_id = %s
            ORDER BY distance ASC
            LIMIT %s
            """
        ).format(
            columns=sql.SQL(JOURNAL_COLUMNS),
            journals=self._table("journals"),
            embeddings=self._table("journal_embeddings"),
        )
        rows = await self._fetch_all(query, (Vector(query_vector).to_text(), user_id, limit))
        hits: list[SearchHit] = []
        for row in rows:
            distance = float(row.pop("distance"))
            hits.append(SearchHit(journal=Journal(**row), distance=distance))
        return hits

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _build_embedding(self, row: dict) -> JournalEmbedding:
        return JournalEmbedding(
            journal_id=row["journal_id"],
            embedding=Vector.from_text(row["embedding"]).to_list(),
            updated_at=row["updated_at"],
        )

    async def _fetch_one(self, query: Any, params: tuple = ()) -> dict | None:
        rows = await self._execute(query, params, fetch="one")
        return rows[0] if rows else None

    async def _fetch_all(self, query: Any, params: tuple = ()) -> list[dict]:
        return await self._execute(query, params, fetch="all")

    async def _execute(self, query: Any, params: tuple, fetch: str) -> list[dict]:
        """Run one statement on a pooled connection in its own transaction.

        Raises:
            StorageError: If the store is not provisioned, no connection is available in time,
                or the statement fails.
        """
        if self._pool is None or self._pool.closed:
            raise StorageError("Store is not provisioned. Call do_provision_schema() before issuing queries.")
        try:
            async with self._pool.connection() as conn:
                async with conn.cursor(row_factory=dict_row) as cur:
                    await cur.execute(query, params)
                    if cur.description is None:
                        return []
                    if fetch == "one":
                        row = await cur.fetchone()
                        return [row] if row else []
                    return await cur.fetchall()
        except PoolTimeout as e:
            self.logging.error("No database connection available within %ss", self.timeout)
            raise StorageError(f"No database connection available within {self.timeout}s.") from e
        except psycopg.Error as e:
            self.logging.error("Database query failed: %s", e)
            raise StorageError(f"Database query failed: {e}") from e
