"""Idempotent bootstrap for the postgres store.

Brings a bare database server up to the expected shape:

    CONNECT_TARGET ──ok──────────────────────────▶ APPLY_SCHEMA ──▶ DONE
          │
          └─ database missing (first time only) ─▶ CREATE_DATABASE ──▶ CONNECT_TARGET

The missing-database branch is taken at most once. Every statement is
"IF NOT EXISTS"; nothing is ever dropped.
"""

import re
from enum import Enum
from typing import Any, Awaitable, Callable

import psycopg
from psycopg import sql
from psycopg.conninfo import conninfo_to_dict, make_conninfo

from shared.errors.AppError import ProvisioningError

MISSING_DATABASE_SQLSTATE = "3D000"
# connection failures carry no SQLSTATE, only the server message
MISSING_DATABASE_MESSAGE = re.compile(r'database "[^"]*" does not exist', re.IGNORECASE)


def _is_missing_database(error: Exception) -> bool:
    sqlstate = getattr(error, "sqlstate", None)
    if sqlstate is not None:
        return sqlstate == MISSING_DATABASE_SQLSTATE
    return MISSING_DATABASE_MESSAGE.search(str(error)) is not None


def _is_duplicate_database(error: Exception) -> bool:
    return isinstance(error, psycopg.errors.DuplicateDatabase) or "already exists" in str(error).lower()


def build_schema_statements(schema: str) -> list[sql.Composable]:
    """Build every DDL statement of the journal schema, in dependency order.

    Args:
        schema (str): Name of the postgres schema holding the tables.

    Returns:
        list[sql.Composable]: Statements safe to run repeatedly.
    """
    params = {"schema": sql.Identifier(schema)}
    statements = [
        "CREATE SCHEMA IF NOT EXISTS {schema}",
        'CREATE EXTENSION IF NOT EXISTS "uuid-ossp"',
        "CREATE EXTENSION IF NOT EXISTS vector",
        """
        CREATE TABLE IF NOT EXISTS {schema}.users (
          id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
          email TEXT UNIQUE NOT NULL,
          display_name TEXT NOT NULL,
          created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
          updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS {schema}.journals (
          id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
          user_id UUID NOT NULL REFERENCES {schema}.users(id) ON DELETE CASCADE,
          title TEXT,
          content TEXT NOT NULL,
          mood_tag TEXT,
          created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
          updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        """,
        """
        CREATE INDEX IF NOT EXISTS journals_user_id_idx
          ON {schema}.journals (user_id, created_at DESC)
        """,
        """
        CREATE TABLE IF NOT EXISTS {schema}.journal_embeddings (
          journal_id UUID PRIMARY KEY REFERENCES {schema}.journals(id) ON DELETE CASCADE,
          embedding vector NOT NULL,
          updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        """,
    ]
    return [sql.SQL(statement).format(**params) for statement in statements]


class ProvisionState(Enum):
    CONNECT_TARGET = "connect_target"
    CREATE_DATABASE = "create_database"
    APPLY_SCHEMA = "apply_schema"
    DONE = "done"


class SchemaProvisionerPostgres:
    """Runs the bootstrap state machine against a postgres server."""

    def __init__(
        self,
        logging,
        conninfo: str,
        statements: list[sql.Composable],
        admin_database: str = "postgres",
        create_database: bool = True,
        connect_timeout: int = 30,
        connect: Callable[..., Awaitable[Any]] | None = None,
    ) -> None:
        self.logging = logging
        self._conninfo = conninfo
        self._statements = statements
        self._admin_database = admin_database
        self._create_database = create_database
        self._connect_timeout = connect_timeout
        self._connect = connect or psycopg.AsyncConnection.connect

        self.target_database = conninfo_to_dict(conninfo).get("dbname")
        if not self.target_database:
            raise ProvisioningError("Database connection string does not name a target database.")

    ##########################################
    ################ CORE ####################
    ##########################################

    async def provision(self) -> None:
        """Ensure the target database and schema exist.

        Raises:
            ProvisioningError: On any unrecovered error. The caller must not serve traffic.
        """
        state = ProvisionState.CONNECT_TARGET
        database_created = False
        conn = None
        try:
            while state is not ProvisionState.DONE:
                if state is ProvisionState.CONNECT_TARGET:
                    try:
                        conn = await self._connect(self._conninfo, autocommit=True, connect_timeout=self._connect_timeout)
                        state = ProvisionState.APPLY_SCHEMA
                    except psycopg.Error as e:
                        if database_created or not self._create_database or not _is_missing_database(e):
                            raise ProvisioningError(f"Could not connect to database '{self.target_database}': {e}") from e
                        self.logging.warning("Database '%s' does not exist, creating it.", self.target_database)
                        state = ProvisionState.CREATE_DATABASE

                elif state is ProvisionState.CREATE_DATABASE:
                    await self._do_create_database()
                    database_created = True
                    state = ProvisionState.CONNECT_TARGET

                elif state is ProvisionState.APPLY_SCHEMA:
                    await self._do_apply_schema(conn)
                    state = ProvisionState.DONE
        finally:
            if conn is not None:
                await conn.close()

        self.logging.info("DB bootstrap complete (db=%s)", self.target_database)

    ##########################################
    ################ STEPS ###################
    ##########################################

    async def _do_create_database(self) -> None:
        """Create the target database through the administrative database.

        A concurrent provisioner winning the race is not an error.

        Raises:
            ProvisioningError: If the admin connection or the creation fails for any other reason.
        """
        admin_conninfo = make_conninfo(self._conninfo, dbname=self._admin_database)
        try:
            admin = await self._connect(admin_conninfo, autocommit=True, connect_timeout=self._connect_timeout)
        except psycopg.Error as e:
            raise ProvisioningError(f"Could not connect to admin database '{self._admin_database}': {e}") from e

        try:
            await admin.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(self.target_database)))
            self.logging.info("Created database '%s'", self.target_database)
        except psycopg.Error as e:
            if not _is_duplicate_database(e):
                self.logging.error("Failed creating database '%s': %s", self.target_database, e)
                raise ProvisioningError(f"Failed creating database '{self.target_database}': {e}") from e
            self.logging.info("Database '%s' was created concurrently, continuing.", self.target_database)
        finally:
            await admin.close()

    async def _do_apply_schema(self, conn) -> None:
        """Apply all schema statements inside one transaction.

        Raises:
            ProvisioningError: If any statement fails. Nothing is left half-applied.
        """
        try:
            async with conn.transaction():
                for statement in self._statements:
                    await conn.execute(statement)
        except psycopg.Error as e:
            self.logging.error("DB bootstrap failed: %s", e)
            raise ProvisioningError(f"Schema bootstrap failed: {e}") from e
