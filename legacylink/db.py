"""Storage configuration, asyncpg pool lifecycle and schema for legacylink.

``LL_STORAGE`` picks the roster backend: ``postgres`` (default) or
``memory``. The pool below is only opened for postgres.
"""

from __future__ import annotations

import json
import logging
import os

import asyncpg

logger = logging.getLogger("legacylink.db")

# postgres | memory
STORAGE_BACKEND = os.environ.get("LL_STORAGE", "postgres").lower()

DATABASE_URL = os.environ.get("LL_DATABASE_URL") or "postgresql://{user}:{password}@{host}:{port}/{name}".format(
    user=os.environ.get("LL_DB_USER", "postgres"),
    password=os.environ.get("LL_DB_PASSWORD", "postgres"),
    host=os.environ.get("LL_DB_HOST", "localhost"),
    port=os.environ.get("LL_DB_PORT", "5432"),
    name=os.environ.get("LL_DB_NAME", "legacylink"),
)

POOL_MIN = int(os.environ.get("LL_DB_POOL_MIN", "1"))
POOL_MAX = int(os.environ.get("LL_DB_POOL_MAX", "10"))

# One JSONB document per member; position keeps roster order.
SCHEMA = """
CREATE TABLE IF NOT EXISTS family_trees (
    id          uuid PRIMARY KEY,
    title       text,
    created_at  timestamptz NOT NULL DEFAULT now(),
    updated_at  timestamptz NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS tree_members (
    tree_id     uuid NOT NULL REFERENCES family_trees(id) ON DELETE CASCADE,
    position    integer NOT NULL,
    member_id   text NOT NULL,
    document    jsonb NOT NULL,
    PRIMARY KEY (tree_id, position)
);

CREATE INDEX IF NOT EXISTS tree_members_member_idx ON tree_members (tree_id, member_id);
"""


# ---------------------------------------------------------------------------
# Pool
# ---------------------------------------------------------------------------

_pool: asyncpg.Pool | None = None


async def _register_json(conn: asyncpg.Connection) -> None:
    # Member documents come back as dicts, not strings.
    for typename in ("jsonb", "json"):
        await conn.set_type_codec(
            typename, encoder=json.dumps, decoder=json.loads, schema="pg_catalog"
        )


async def init_pool() -> asyncpg.Pool:
    """Open the shared pool and create missing tables."""
    global _pool
    _pool = await asyncpg.create_pool(
        DATABASE_URL,
        min_size=POOL_MIN,
        max_size=POOL_MAX,
        init=_register_json,
    )
    await _pool.execute(SCHEMA)
    logger.debug("Schema ready (pool %d-%d)", POOL_MIN, POOL_MAX)
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None


def get_pool() -> asyncpg.Pool:
    """The open pool. Raises RuntimeError before ``init_pool``."""
    if _pool is None:
        raise RuntimeError("Database pool not initialized")
    return _pool
