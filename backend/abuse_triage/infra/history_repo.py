"""PostgreSQL-backed report history."""

from __future__ import annotations

from datetime import datetime

import asyncpg

from abuse_triage.domain.stores import ReportHistory, ReportRecord


class PostgresReportHistory(ReportHistory):
    """Counts and records accepted reports in ``abuse_reports``."""

    def __init__(self, pool: asyncpg.Pool, *, url_max_length: int = 2080) -> None:
        self.pool = pool
        self.url_max_length = url_max_length

    async def count_for_key(self, comparison_key: str, since: datetime) -> int:
        value = await self.pool.fetchval(
            """
            SELECT COUNT(*) FROM abuse_reports
            WHERE comparison_key = $1 AND created_at >= $2
            """,
            comparison_key,
            since,
        )
        return int(value or 0)

    async def count_for_email(self, email: str, since: datetime) -> int:
        value = await self.pool.fetchval(
            """
            SELECT COUNT(*) FROM abuse_reports
            WHERE lower(email) = lower($1) AND created_at >= $2
            """,
            email.strip(),
            since,
        )
        return int(value or 0)

    async def record(self, report: ReportRecord) -> None:
        await self.pool.execute(
            """
            INSERT INTO abuse_reports (url, comparison_key, email, created_at)
            VALUES ($1, $2, $3, $4)
            """,
            report.url[: self.url_max_length],
            report.comparison_key,
            report.email,
            report.created_at,
        )
