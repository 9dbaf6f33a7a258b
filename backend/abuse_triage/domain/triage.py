"""Submission-time triage: canonical URL, identity, quotas, spam, creators."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from abuse_triage.domain.creators import CreatorResolver
from abuse_triage.domain.errors import CollaboratorUnavailable, Rejection
from abuse_triage.domain.identity import IdentityExtractor, ResourceIdentity
from abuse_triage.domain.quotas import QuotaGuard
from abuse_triage.domain.spam import SpamGate, Submitter
from abuse_triage.domain.stores import ReportHistory, ReportRecord, SnapshotDispatcher
from abuse_triage.domain.urls import CanonicalUrl, SiteHosts, normalize_url
from abuse_triage.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TriageResult:
    canonical_url: CanonicalUrl
    identity: ResourceIdentity
    rejection: Rejection | None
    creator_ids: str | None = None

    @property
    def accepted(self) -> bool:
        return self.rejection is None

    @property
    def url(self) -> str:
        return str(self.canonical_url)


def should_attach_snapshot(identity: ResourceIdentity) -> bool:
    """Only the work page itself (or one of its chapters) warrants a snapshot."""
    return identity.is_work_page


@dataclass
class TriageEngine:
    site: SiteHosts
    extractor: IdentityExtractor
    guard: QuotaGuard
    spam_gate: SpamGate
    creators: CreatorResolver
    default_scheme: str = "https"
    strict_host: bool = True

    def canonicalize(self, raw_url: str) -> CanonicalUrl:
        return normalize_url(
            raw_url,
            site=self.site,
            default_scheme=self.default_scheme,
            strict_host=self.strict_host,
        )

    async def evaluate(
        self,
        raw_url: str,
        submitter: Submitter,
        *,
        content: str = "",
        now: datetime | None = None,
    ) -> TriageResult:
        """Decide one submission. Raises InvalidUrl or CollaboratorUnavailable."""

        now = now or datetime.now(timezone.utc)
        extraction = await self.extractor.extract(self.canonicalize(raw_url))
        identity = extraction.identity

        quota = await self.guard.check(identity, submitter.email, now)
        rejection = quota.rejection
        if rejection is None:
            rejection = await self.spam_gate.check(submitter, content)

        creator_ids = None
        if rejection is None:
            creator_ids = await self.creators.resolve(identity)
        else:
            logger.info(
                "abuse report rejected",
                extra={"reason": rejection.value, "comparison_key": identity.comparison_key},
            )
        obs_metrics.TRIAGE_DECISIONS_TOTAL.labels(outcome=rejection.value if rejection else "accepted").inc()
        return TriageResult(extraction.url, identity, rejection, creator_ids)

    def should_attach_snapshot(self, identity: ResourceIdentity) -> bool:
        return should_attach_snapshot(identity)


@dataclass
class AbuseReportService:
    """Runs triage, records accepted reports, and dispatches work snapshots."""

    engine: TriageEngine
    history: ReportHistory
    snapshots: SnapshotDispatcher

    async def submit(
        self,
        raw_url: str,
        submitter: Submitter,
        *,
        content: str = "",
        now: datetime | None = None,
    ) -> TriageResult:
        now = now or datetime.now(timezone.utc)
        try:
            result = await self.engine.evaluate(raw_url, submitter, content=content, now=now)
            if result.accepted:
                await self._record(result, submitter, now)
        except CollaboratorUnavailable as exc:
            obs_metrics.TRIAGE_COLLABORATOR_FAILURES_TOTAL.labels(collaborator=exc.collaborator).inc()
            raise
        return result

    async def attach_snapshot(self, ticket_id: str, result: TriageResult) -> bool:
        """Fire-and-forget snapshot dispatch; returns whether a job was queued."""
        if not should_attach_snapshot(result.identity):
            return False
        work_id = result.identity.work_id
        assert work_id is not None
        try:
            await self.snapshots.enqueue(ticket_id, work_id)
        except Exception as exc:
            logger.exception("snapshot dispatch failed", extra={"ticket_id": ticket_id, "work_id": work_id})
            obs_metrics.TRIAGE_COLLABORATOR_FAILURES_TOTAL.labels(collaborator="snapshot_queue").inc()
            raise CollaboratorUnavailable("snapshot_queue", str(exc)) from exc
        obs_metrics.TRIAGE_SNAPSHOTS_ENQUEUED_TOTAL.inc()
        return True

    async def _record(self, result: TriageResult, submitter: Submitter, now: datetime) -> None:
        record = ReportRecord(
            url=result.url,
            comparison_key=result.identity.comparison_key,
            email=submitter.email,
            created_at=now,
        )
        try:
            await self.history.record(record)
        except Exception as exc:
            logger.exception("failed to record abuse report", extra={"comparison_key": record.comparison_key})
            raise CollaboratorUnavailable("history", str(exc)) from exc
