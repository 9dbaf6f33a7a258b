"""Parse submitted links into canonical site URLs."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Iterable
from urllib.parse import urlsplit

from abuse_triage.domain.errors import InvalidUrl

_SCHEME_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]*)://")
_ALLOWED_SCHEMES = {"http", "https"}
_HOST_PREFIXES = ("www.", "insecure.")
_HOST_RE = re.compile(r"^[a-z0-9](?:[a-z0-9\-]*[a-z0-9])?(?:\.[a-z0-9](?:[a-z0-9\-]*[a-z0-9])?)+$")


@dataclass(frozen=True)
class CanonicalUrl:
    """A site URL with a scheme and a trailing slash on its path."""

    scheme: str
    host: str
    segments: tuple[str, ...]
    query: str = ""
    fragment: str = ""

    @property
    def path(self) -> str:
        if not self.segments:
            return "/"
        return "/" + "/".join(self.segments) + "/"

    @property
    def page_key(self) -> tuple[str, tuple[str, ...]]:
        """Grouping key that ignores scheme, query, and fragment."""
        return (self.host, self.segments)

    def same_page(self, other: "CanonicalUrl") -> bool:
        return self.page_key == other.page_key

    def with_segments(self, segments: Iterable[str]) -> "CanonicalUrl":
        return replace(self, segments=tuple(segments))

    def __str__(self) -> str:
        text = f"{self.scheme}://{self.host}{self.path}"
        if self.query:
            text += f"?{self.query}"
        if self.fragment:
            text += f"#{self.fragment}"
        return text


@dataclass(frozen=True)
class SiteHosts:
    """The primary site host and the mirror domains that fold into it."""

    primary: str
    aliases: frozenset[str] = frozenset()

    @classmethod
    def build(cls, primary: str, aliases: Iterable[str] = ()) -> "SiteHosts":
        return cls(primary=primary.lower(), aliases=frozenset(alias.lower() for alias in aliases))

    def fold(self, host: str) -> str | None:
        """Return the primary host when ``host`` belongs to the site, else None."""
        candidate = host.lower().rstrip(".")
        for prefix in _HOST_PREFIXES:
            if candidate.startswith(prefix):
                candidate = candidate[len(prefix):]
                break
        if candidate == self.primary or candidate in self.aliases:
            return self.primary
        return None

    def mentioned_in(self, text: str) -> bool:
        lowered = text.lower()
        return any(host in lowered for host in (self.primary, *self.aliases))


def normalize_url(
    raw: str | None,
    *,
    site: SiteHosts,
    default_scheme: str = "https",
    strict_host: bool = True,
) -> CanonicalUrl:
    """Turn a submitted string into a :class:`CanonicalUrl`.

    Schemeless input gets ``default_scheme``. Site aliases fold into the
    primary host. With ``strict_host`` (the default) a host that belongs to a
    different site is rejected; otherwise it is kept as submitted. Nothing is
    fetched.
    """

    text = (raw or "").strip()
    if not text:
        raise InvalidUrl("empty_url", raw)

    match = _SCHEME_RE.match(text)
    if match:
        scheme = match.group(1).lower()
        if scheme not in _ALLOWED_SCHEMES:
            raise InvalidUrl("unsupported_scheme", raw)
        remainder = text[match.end():]
    else:
        scheme = default_scheme
        remainder = text

    authority = re.split(r"[/?#]", remainder, maxsplit=1)[0]
    if any(char.isspace() for char in authority) or "://" in authority:
        if site.mentioned_in(remainder):
            raise InvalidUrl("text_before_url", raw)
        raise InvalidUrl("no_host", raw)

    try:
        parts = urlsplit(f"{scheme}://{remainder}")
        hostname = parts.hostname or ""
    except ValueError as exc:
        raise InvalidUrl("no_host", raw) from exc
    if not _HOST_RE.match(hostname):
        raise InvalidUrl("no_host", raw)

    host = site.fold(hostname)
    if host is None:
        if strict_host:
            raise InvalidUrl("off_site", raw)
        host = hostname

    segments = tuple(segment for segment in parts.path.split("/") if segment)
    return CanonicalUrl(
        scheme=scheme,
        host=host,
        segments=segments,
        query=parts.query,
        fragment=parts.fragment,
    )
