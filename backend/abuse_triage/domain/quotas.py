"""Rolling-window report quotas per resource and per submitter email."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Mapping

import yaml

from abuse_triage.domain.errors import CollaboratorUnavailable, Rejection
from abuse_triage.domain.identity import ResourceIdentity, ResourceKind
from abuse_triage.domain.stores import ReportHistory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuotaPolicy:
    """Report thresholds. ``per_unrelated=None`` leaves unrelated pages unlimited."""

    per_work: int = 5
    per_user: int = 5
    per_email: int = 5
    per_unrelated: int | None = None
    resource_window: timedelta = timedelta(days=30)
    email_window: timedelta = timedelta(days=1)

    def resource_limit(self, kind: ResourceKind) -> int | None:
        if kind is ResourceKind.WORK:
            return self.per_work
        if kind is ResourceKind.USER:
            return self.per_user
        return self.per_unrelated

    @classmethod
    def from_settings(cls, settings: Any) -> "QuotaPolicy":
        return cls(
            per_work=settings.reports_per_work_max,
            per_user=settings.reports_per_user_max,
            per_email=settings.reports_per_email_max,
            per_unrelated=settings.reports_per_unrelated_max,
            resource_window=timedelta(days=settings.resource_window_days),
            email_window=timedelta(days=settings.email_window_days),
        )

    @staticmethod
    def from_mapping(config: Mapping[str, Any], base: "QuotaPolicy | None" = None) -> "QuotaPolicy":
        base = base or QuotaPolicy()
        limits = config.get("limits", {}) or {}
        windows = config.get("windows_days", {}) or {}
        per_unrelated = limits.get("unrelated", base.per_unrelated)
        return QuotaPolicy(
            per_work=int(limits.get("work", base.per_work)),
            per_user=int(limits.get("user", base.per_user)),
            per_email=int(limits.get("email", base.per_email)),
            per_unrelated=None if per_unrelated is None else int(per_unrelated),
            resource_window=timedelta(days=float(windows.get("resource", base.resource_window.days))),
            email_window=timedelta(days=float(windows.get("email", base.email_window.days))),
        )


def load_quota_policy(path: str | Path, base: QuotaPolicy | None = None) -> QuotaPolicy:
    """Load quota thresholds from a YAML file, keeping ``base`` on any problem."""

    base = base or QuotaPolicy()
    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.warning("quota policy file missing at %s; using defaults", path)
        return base
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        logger.warning("failed to parse quota policy: %s", exc)
        return base
    if not isinstance(data, Mapping):
        logger.warning("quota policy file invalid; falling back to defaults")
        return base
    return QuotaPolicy.from_mapping(data, base)


@dataclass(frozen=True)
class QuotaDecision:
    rejection: Rejection | None
    resource_count: int | None = None
    email_count: int | None = None

    @property
    def accepted(self) -> bool:
        return self.rejection is None


@dataclass
class QuotaGuard:
    """Read-only quota check against the report history.

    The count-then-insert race is the caller's to close: the check must run
    in the same serializable transaction as the insert of the report.
    """

    history: ReportHistory
    policy: QuotaPolicy

    async def check(self, identity: ResourceIdentity, email: str, now: datetime) -> QuotaDecision:
        resource_count = None
        limit = self.policy.resource_limit(identity.kind)
        if limit is not None:
            since = now - self.policy.resource_window
            resource_count = await self._count(self.history.count_for_key, identity.comparison_key, since)
            if resource_count >= limit:
                return QuotaDecision(Rejection.DUPLICATE_RESOURCE, resource_count=resource_count)

        email_count = await self._count(self.history.count_for_email, email, now - self.policy.email_window)
        if email_count >= self.policy.per_email:
            return QuotaDecision(Rejection.EMAIL_LIMIT_EXCEEDED, resource_count, email_count)
        return QuotaDecision(None, resource_count, email_count)

    async def _count(self, query, subject: str, since: datetime) -> int:
        try:
            return int(await query(subject, since))
        except CollaboratorUnavailable:
            raise
        except Exception as exc:
            logger.exception("report history query failed", extra={"since": since.isoformat()})
            raise CollaboratorUnavailable("history", str(exc)) from exc
