"""Redis stream dispatcher for work snapshot jobs."""

from __future__ import annotations

from dataclasses import dataclass

from abuse_triage.domain.stores import SnapshotDispatcher
from abuse_triage.infra.redis import RedisProxy


@dataclass
class RedisSnapshotDispatcher(SnapshotDispatcher):
    """XADDs ``{ticket_id, work_id}`` for a downstream worker to pick up."""

    redis: RedisProxy
    stream_key: str = "abuse:snapshots"
    maxlen: int | None = 10000

    async def enqueue(self, ticket_id: str, work_id: int) -> None:
        await self.redis.xadd(
            self.stream_key,
            {"ticket_id": str(ticket_id), "work_id": str(work_id)},
            maxlen=self.maxlen,
            approximate=True,
        )
