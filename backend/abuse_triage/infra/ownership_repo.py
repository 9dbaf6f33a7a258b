"""PostgreSQL-backed work ownership lookups."""

from __future__ import annotations

import asyncpg

from abuse_triage.domain.stores import OrphanedCreator, OwnershipStore, PseudRef, WorkOwnership


class PostgresOwnershipStore(OwnershipStore):
    """Reads works, chapters, creatorships and original creators.

    Orphaned creatorships point at pseuds of the orphan account; the
    ``original_creators`` rows keep the user ids they came from until purged.
    Without an explicit ``orphan_account_id`` the account is found by
    ``orphan_account_login`` on first use.
    """

    def __init__(
        self,
        pool: asyncpg.Pool,
        *,
        orphan_account_id: int | None = None,
        orphan_account_login: str | None = "orphan_account",
    ) -> None:
        self.pool = pool
        self.orphan_account_id = orphan_account_id
        self.orphan_account_login = orphan_account_login

    async def lookup_chapter_work(self, chapter_id: int) -> int | None:
        value = await self.pool.fetchval("SELECT work_id FROM chapters WHERE id = $1", chapter_id)
        return int(value) if value is not None else None

    async def _orphan_account(self, conn: asyncpg.Connection) -> int | None:
        if self.orphan_account_id is None and self.orphan_account_login:
            value = await conn.fetchval("SELECT id FROM users WHERE login = $1", self.orphan_account_login)
            if value is not None:
                self.orphan_account_id = int(value)
        return self.orphan_account_id

    async def lookup_work(self, work_id: int) -> WorkOwnership | None:
        async with self.pool.acquire() as conn:
            work = await conn.fetchrow(
                """
                SELECT w.id,
                       bool_or(c.anonymous) AS anonymous,
                       bool_or(c.unrevealed) AS unrevealed
                FROM works w
                LEFT JOIN collection_items ci ON ci.item_id = w.id AND ci.item_type = 'Work'
                LEFT JOIN collections c ON c.id = ci.collection_id
                WHERE w.id = $1
                GROUP BY w.id
                """,
                work_id,
            )
            if work is None:
                return None
            orphan_account_id = await self._orphan_account(conn)
            rows = await conn.fetch(
                """
                SELECT cs.pseud_id, p.user_id, cs.approved
                FROM creatorships cs
                JOIN pseuds p ON p.id = cs.pseud_id
                WHERE cs.creation_type = 'Work' AND cs.creation_id = $1
                """,
                work_id,
            )
            originals = await conn.fetch(
                "SELECT user_id FROM work_original_creators WHERE work_id = $1",
                work_id,
            )
        creators: list[PseudRef] = []
        pending: list[PseudRef] = []
        orphaned: list[OrphanedCreator] = []
        for row in rows:
            ref = PseudRef(pseud_id=int(row["pseud_id"]), user_id=int(row["user_id"]))
            if not row["approved"]:
                pending.append(ref)
            elif orphan_account_id is not None and ref.user_id == orphan_account_id:
                orphaned.append(OrphanedCreator(pseud_id=ref.pseud_id))
            else:
                creators.append(ref)
        orphan_pseud = orphaned[0].pseud_id if orphaned else 0
        orphaned.extend(
            OrphanedCreator(pseud_id=orphan_pseud, original_user_id=int(row["user_id"])) for row in originals
        )
        return WorkOwnership(
            work_id=int(work["id"]),
            creators=tuple(creators),
            orphaned=tuple(orphaned),
            pending_invitations=tuple(pending),
            in_anonymous_collection=bool(work["anonymous"]),
            in_unrevealed_collection=bool(work["unrevealed"]),
        )
