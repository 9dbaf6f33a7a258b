"""Collaborator contracts consumed by triage, with in-memory implementations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Protocol, Sequence


@dataclass(frozen=True)
class PseudRef:
    """A pseud and the user account that owns it."""

    pseud_id: int
    user_id: int


@dataclass(frozen=True)
class OrphanedCreator:
    """A creatorship handed to the orphan account.

    ``original_user_id`` is None once the original-creator record has been
    destroyed.
    """

    pseud_id: int
    original_user_id: int | None = None


@dataclass(frozen=True)
class WorkOwnership:
    work_id: int
    creators: tuple[PseudRef, ...] = ()
    orphaned: tuple[OrphanedCreator, ...] = ()
    pending_invitations: tuple[PseudRef, ...] = ()
    in_anonymous_collection: bool = False
    in_unrevealed_collection: bool = False


@dataclass(frozen=True)
class ReportRecord:
    """An accepted report as the history store keeps it."""

    url: str
    comparison_key: str
    email: str
    created_at: datetime


class ReportHistory(Protocol):
    async def count_for_key(self, comparison_key: str, since: datetime) -> int:
        ...

    async def count_for_email(self, email: str, since: datetime) -> int:
        ...

    async def record(self, report: ReportRecord) -> None:
        ...


class OwnershipStore(Protocol):
    async def lookup_work(self, work_id: int) -> WorkOwnership | None:
        ...

    async def lookup_chapter_work(self, chapter_id: int) -> int | None:
        ...


class SpamClassifier(Protocol):
    async def classify(self, attributes: Mapping[str, str]) -> bool:
        ...


class SnapshotDispatcher(Protocol):
    async def enqueue(self, ticket_id: str, work_id: int) -> None:
        ...


class InMemoryReportHistory(ReportHistory):
    def __init__(self, reports: Sequence[ReportRecord] = (), *, url_max_length: int | None = None) -> None:
        self.reports: list[ReportRecord] = list(reports)
        self.url_max_length = url_max_length

    async def count_for_key(self, comparison_key: str, since: datetime) -> int:
        return sum(
            1 for report in self.reports if report.comparison_key == comparison_key and report.created_at >= since
        )

    async def count_for_email(self, email: str, since: datetime) -> int:
        needle = email.strip().lower()
        return sum(
            1 for report in self.reports if report.email.strip().lower() == needle and report.created_at >= since
        )

    async def record(self, report: ReportRecord) -> None:
        if self.url_max_length is not None and len(report.url) > self.url_max_length:
            report = ReportRecord(
                url=report.url[: self.url_max_length],
                comparison_key=report.comparison_key,
                email=report.email,
                created_at=report.created_at,
            )
        self.reports.append(report)


@dataclass
class InMemoryOwnershipStore(OwnershipStore):
    works: dict[int, WorkOwnership] = field(default_factory=dict)
    chapters: dict[int, int] = field(default_factory=dict)

    def add_work(self, ownership: WorkOwnership, *, chapter_ids: Sequence[int] = ()) -> WorkOwnership:
        self.works[ownership.work_id] = ownership
        for chapter_id in chapter_ids:
            self.chapters[chapter_id] = ownership.work_id
        return ownership

    async def lookup_work(self, work_id: int) -> WorkOwnership | None:
        return self.works.get(work_id)

    async def lookup_chapter_work(self, chapter_id: int) -> int | None:
        return self.chapters.get(chapter_id)


@dataclass
class StaticSpamClassifier(SpamClassifier):
    """Returns a fixed verdict and remembers what it was asked."""

    verdict: bool = False
    calls: list[dict[str, str]] = field(default_factory=list)

    async def classify(self, attributes: Mapping[str, str]) -> bool:
        self.calls.append(dict(attributes))
        return self.verdict


@dataclass
class RecordingSnapshotDispatcher(SnapshotDispatcher):
    jobs: list[tuple[str, int]] = field(default_factory=list)

    async def enqueue(self, ticket_id: str, work_id: int) -> None:
        self.jobs.append((ticket_id, work_id))
