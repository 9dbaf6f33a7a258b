"""Map canonical URLs onto the resource they refer to."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from abuse_triage.domain.errors import CollaboratorUnavailable
from abuse_triage.domain.stores import OwnershipStore
from abuse_triage.domain.urls import CanonicalUrl

logger = logging.getLogger(__name__)

_WORK_PARENTS = {"collections", "users"}


class ResourceKind(str, enum.Enum):
    WORK = "work"
    USER = "user"
    UNRELATED = "unrelated"


@dataclass(frozen=True)
class ResourceIdentity:
    """What a report points at.

    ``suffix`` holds the path segments after the matched id, so
    ``/works/42/comments/`` has suffix ``("comments",)``.
    """

    kind: ResourceKind
    primary_key: str
    suffix: tuple[str, ...] = ()

    @property
    def comparison_key(self) -> str:
        return f"{self.kind.value}:{self.primary_key}"

    @property
    def work_id(self) -> int | None:
        if self.kind is not ResourceKind.WORK:
            return None
        return int(self.primary_key)

    @property
    def is_work_page(self) -> bool:
        """True for the work itself or one of its chapters, not other sub-pages."""
        if self.kind is not ResourceKind.WORK:
            return False
        if not self.suffix:
            return True
        return len(self.suffix) == 2 and self.suffix[0] == "chapters" and _is_id(self.suffix[1])


@dataclass(frozen=True)
class Extraction:
    """The identity plus the URL the caller should persist."""

    url: CanonicalUrl
    identity: ResourceIdentity


@dataclass(frozen=True)
class _Match:
    key: str
    suffix: tuple[str, ...]


_Matcher = Callable[[tuple[str, ...]], Optional[_Match]]
_Builder = Callable[[CanonicalUrl, _Match], Awaitable[Extraction]]


def _is_id(segment: str) -> bool:
    return segment.isascii() and segment.isdigit()


def _match_work(segments: tuple[str, ...]) -> _Match | None:
    starts = [0]
    if len(segments) > 2 and segments[0] in _WORK_PARENTS:
        starts.append(2)
    for start in starts:
        rest = segments[start:]
        if len(rest) >= 2 and rest[0] == "works" and _is_id(rest[1]):
            return _Match(key=str(int(rest[1])), suffix=rest[2:])
    return None


def _match_bare_chapter(segments: tuple[str, ...]) -> _Match | None:
    if len(segments) >= 2 and segments[0] == "chapters" and _is_id(segments[1]):
        return _Match(key=segments[1], suffix=segments[2:])
    return None


def _match_user(segments: tuple[str, ...]) -> _Match | None:
    if segments[:1] == ("admin",):
        segments = segments[1:]
    if len(segments) >= 2 and segments[0] == "users":
        return _Match(key=segments[1], suffix=segments[2:])
    return None


def _match_anything(segments: tuple[str, ...]) -> _Match:
    return _Match(key="/" + "".join(f"{segment}/" for segment in segments), suffix=())


class IdentityExtractor:
    """Ordered pattern table; the first matching pattern decides the identity."""

    def __init__(self, ownership: OwnershipStore) -> None:
        self._ownership = ownership
        self._patterns: tuple[tuple[_Matcher, _Builder], ...] = (
            (_match_work, self._build_work),
            (_match_bare_chapter, self._build_chapter),
            (_match_user, self._build_user),
            (_match_anything, self._build_unrelated),
        )

    async def extract(self, url: CanonicalUrl) -> Extraction:
        for matcher, builder in self._patterns:
            match = matcher(url.segments)
            if match is not None:
                return await builder(url, match)
        raise AssertionError("catch-all pattern did not match")  # pragma: no cover

    async def _build_work(self, url: CanonicalUrl, match: _Match) -> Extraction:
        return Extraction(url, ResourceIdentity(ResourceKind.WORK, match.key, match.suffix))

    async def _build_chapter(self, url: CanonicalUrl, match: _Match) -> Extraction:
        chapter_id = int(match.key)
        try:
            work_id = await self._ownership.lookup_chapter_work(chapter_id)
        except Exception as exc:
            logger.exception("chapter lookup failed", extra={"chapter_id": chapter_id})
            raise CollaboratorUnavailable("ownership", str(exc)) from exc
        if work_id is None:
            return await self._build_unrelated(url, _match_anything(url.segments))
        suffix = ("chapters", match.key, *match.suffix)
        rewritten = url.with_segments(("works", str(work_id), *suffix))
        return Extraction(rewritten, ResourceIdentity(ResourceKind.WORK, str(work_id), suffix))

    async def _build_user(self, url: CanonicalUrl, match: _Match) -> Extraction:
        return Extraction(url, ResourceIdentity(ResourceKind.USER, match.key, match.suffix))

    async def _build_unrelated(self, url: CanonicalUrl, match: _Match) -> Extraction:
        return Extraction(url, ResourceIdentity(ResourceKind.UNRELATED, match.key))
