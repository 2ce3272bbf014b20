"""Roster storage for family trees.

A tree's roster is read and written as a whole: ``load_members`` returns the
last saved snapshot (or an empty list) and ``save_members`` replaces it.
There is no partial update and no conflict detection, last write wins.
"""

from __future__ import annotations

import copy
import uuid
from datetime import datetime, timezone
from typing import Protocol

import asyncpg

from legacylink.db import STORAGE_BACKEND, get_pool
from legacylink.family.members import FamilyMember


class RosterStore(Protocol):
    async def create_tree(self, title: str | None) -> dict: ...

    async def list_trees(self) -> list[dict]: ...

    async def get_tree(self, tree_id: str) -> dict | None: ...

    async def delete_tree(self, tree_id: str) -> bool: ...

    async def load_members(self, tree_id: str) -> list[FamilyMember]: ...

    async def save_members(self, tree_id: str, members: list[FamilyMember]) -> None: ...

    async def count_members(self) -> int: ...


# ---------------------------------------------------------------------------
# PostgreSQL
# ---------------------------------------------------------------------------

class PgRosterStore:
    """Trees in ``family_trees``, one JSONB document per member in ``tree_members``."""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def create_tree(self, title: str | None) -> dict:
        row = await self._pool.fetchrow(
            "INSERT INTO family_trees (id, title) VALUES ($1, $2) "
            "RETURNING id, title, created_at, updated_at",
            uuid.uuid4(), title,
        )
        return dict(row)

    async def list_trees(self) -> list[dict]:
        rows = await self._pool.fetch(
            "SELECT id, title, created_at, updated_at FROM family_trees ORDER BY created_at DESC"
        )
        return [dict(r) for r in rows]

    async def get_tree(self, tree_id: str) -> dict | None:
        row = await self._pool.fetchrow(
            "SELECT id, title, created_at, updated_at FROM family_trees WHERE id = $1",
            uuid.UUID(tree_id),
        )
        return dict(row) if row else None

    async def delete_tree(self, tree_id: str) -> bool:
        result = await self._pool.execute(
            "DELETE FROM family_trees WHERE id = $1", uuid.UUID(tree_id)
        )
        return result == "DELETE 1"

    async def load_members(self, tree_id: str) -> list[FamilyMember]:
        rows = await self._pool.fetch(
            "SELECT document FROM tree_members WHERE tree_id = $1 ORDER BY position",
            uuid.UUID(tree_id),
        )
        return [FamilyMember.from_dict(r["document"]) for r in rows]

    async def save_members(self, tree_id: str, members: list[FamilyMember]) -> None:
        tid = uuid.UUID(tree_id)
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                await conn.execute("DELETE FROM tree_members WHERE tree_id = $1", tid)
                await conn.executemany(
                    "INSERT INTO tree_members (tree_id, member_id, position, document) "
                    "VALUES ($1, $2, $3, $4)",
                    [(tid, m.id, i, m.to_dict()) for i, m in enumerate(members)],
                )
                await conn.execute(
                    "UPDATE family_trees SET updated_at = now() WHERE id = $1", tid
                )

    async def count_members(self) -> int:
        return await self._pool.fetchval("SELECT COUNT(*) FROM tree_members")


# ---------------------------------------------------------------------------
# In-process
# ---------------------------------------------------------------------------

class InMemoryRosterStore:
    """Dict-backed store. Reads and writes copy, so callers never share state."""

    def __init__(self) -> None:
        self._trees: dict[str, dict] = {}
        self._rosters: dict[str, list[FamilyMember]] = {}

    async def create_tree(self, title: str | None) -> dict:
        now = datetime.now(timezone.utc)
        tid = uuid.uuid4()
        row = {"id": tid, "title": title, "created_at": now, "updated_at": now}
        self._trees[str(tid)] = row
        self._rosters[str(tid)] = []
        return dict(row)

    async def list_trees(self) -> list[dict]:
        rows = sorted(self._trees.values(), key=lambda r: r["created_at"], reverse=True)
        return [dict(r) for r in rows]

    async def get_tree(self, tree_id: str) -> dict | None:
        row = self._trees.get(tree_id)
        return dict(row) if row else None

    async def delete_tree(self, tree_id: str) -> bool:
        self._rosters.pop(tree_id, None)
        return self._trees.pop(tree_id, None) is not None

    async def load_members(self, tree_id: str) -> list[FamilyMember]:
        return copy.deepcopy(self._rosters.get(tree_id, []))

    async def save_members(self, tree_id: str, members: list[FamilyMember]) -> None:
        self._rosters[tree_id] = copy.deepcopy(members)
        if tree_id in self._trees:
            self._trees[tree_id]["updated_at"] = datetime.now(timezone.utc)

    async def count_members(self) -> int:
        return sum(len(r) for r in self._rosters.values())


# ---------------------------------------------------------------------------
# Dependency
# ---------------------------------------------------------------------------

_memory_store = InMemoryRosterStore()


def get_store() -> RosterStore:
    """Store for the configured backend (``LL_STORAGE``)."""
    if STORAGE_BACKEND == "memory":
        return _memory_store
    return PgRosterStore(get_pool())
