"""Lightweight service container shared by the triage API."""

from __future__ import annotations

import logging
from typing import Any, Optional

import asyncpg
import httpx
from redis.asyncio import Redis

from abuse_triage.domain.creators import CreatorResolver
from abuse_triage.domain.identity import IdentityExtractor
from abuse_triage.domain.quotas import QuotaGuard, QuotaPolicy, load_quota_policy
from abuse_triage.domain.spam import SpamGate
from abuse_triage.domain.stores import (
    InMemoryOwnershipStore,
    InMemoryReportHistory,
    OwnershipStore,
    RecordingSnapshotDispatcher,
    ReportHistory,
    SnapshotDispatcher,
    SpamClassifier,
    StaticSpamClassifier,
)
from abuse_triage.domain.triage import AbuseReportService, TriageEngine
from abuse_triage.domain.urls import SiteHosts
from abuse_triage.infra.akismet import AkismetClassifier
from abuse_triage.infra.history_repo import PostgresReportHistory
from abuse_triage.infra.ownership_repo import PostgresOwnershipStore
from abuse_triage.infra.redis import RedisProxy
from abuse_triage.infra.snapshot_queue import RedisSnapshotDispatcher
from abuse_triage.settings import settings

logger = logging.getLogger(__name__)

# Lets configure() tell "leave as is" apart from an explicit None.
_UNSET: Any = object()

_site = SiteHosts.build(settings.site_host, settings.site_host_aliases)
_policy: QuotaPolicy = QuotaPolicy.from_settings(settings)
_history: ReportHistory = InMemoryReportHistory(url_max_length=settings.url_max_length)
_ownership: OwnershipStore = InMemoryOwnershipStore()
_classifier: SpamClassifier = StaticSpamClassifier(verdict=False)
_snapshots: SnapshotDispatcher = RecordingSnapshotDispatcher()
_orphan_account_id: Optional[int] = None
_engine: TriageEngine
_service: AbuseReportService


def _build() -> None:
    global _engine, _service
    _engine = TriageEngine(
        site=_site,
        extractor=IdentityExtractor(_ownership),
        guard=QuotaGuard(history=_history, policy=_policy),
        spam_gate=SpamGate(classifier=_classifier, blog=settings.akismet_blog_url or settings.site_url()),
        creators=CreatorResolver(ownership=_ownership, orphan_account_id=_orphan_account_id),
        default_scheme=settings.default_scheme,
    )
    _service = AbuseReportService(engine=_engine, history=_history, snapshots=_snapshots)


_build()


def configure(
    *,
    site: Optional[SiteHosts] = None,
    policy: Optional[QuotaPolicy] = None,
    history: Optional[ReportHistory] = None,
    ownership: Optional[OwnershipStore] = None,
    classifier: Optional[SpamClassifier] = None,
    snapshots: Optional[SnapshotDispatcher] = None,
    orphan_account_id: Optional[int] = _UNSET,
) -> None:
    global _site, _policy, _history, _ownership, _classifier, _snapshots, _orphan_account_id
    if site is not None:
        _site = site
    if policy is not None:
        _policy = policy
    if history is not None:
        _history = history
    if ownership is not None:
        _ownership = ownership
    if classifier is not None:
        _classifier = classifier
    if snapshots is not None:
        _snapshots = snapshots
    if orphan_account_id is not _UNSET:
        _orphan_account_id = orphan_account_id
    _build()


def configure_postgres(
    pool: asyncpg.Pool,
    redis_conn: Redis | RedisProxy,
    http: httpx.AsyncClient,
    *,
    orphan_account_id: Optional[int] = None,
) -> None:
    """Wire the production collaborators.

    Refuses to start in production without an Akismet key, since every
    report would otherwise pass the spam gate unchecked.
    """
    if orphan_account_id is None:
        orphan_account_id = settings.orphan_account_id
    policy = QuotaPolicy.from_settings(settings)
    if settings.quota_policy_path:
        policy = load_quota_policy(settings.quota_policy_path, policy)
    proxy = redis_conn if isinstance(redis_conn, RedisProxy) else RedisProxy(redis_conn)
    classifier: SpamClassifier
    if settings.akismet_key:
        classifier = AkismetClassifier(
            http=http,
            api_key=settings.akismet_key,
            blog=settings.akismet_blog_url or settings.site_url(),
            request_timeout=settings.akismet_timeout_seconds,
        )
    elif settings.is_prod():
        raise RuntimeError("AKISMET_KEY is required in production")
    else:
        logger.warning("AKISMET_KEY not set; spam classification disabled", extra={"environment": settings.environment})
        classifier = StaticSpamClassifier(verdict=False)
    configure(
        policy=policy,
        history=PostgresReportHistory(pool, url_max_length=settings.url_max_length),
        ownership=PostgresOwnershipStore(
            pool,
            orphan_account_id=orphan_account_id,
            orphan_account_login=settings.orphan_account_login,
        ),
        classifier=classifier,
        snapshots=RedisSnapshotDispatcher(redis=proxy, stream_key=settings.snapshot_stream),
        orphan_account_id=orphan_account_id,
    )


def get_engine() -> TriageEngine:
    return _engine


def get_report_service() -> AbuseReportService:
    return _service


def get_history() -> ReportHistory:
    return _history
