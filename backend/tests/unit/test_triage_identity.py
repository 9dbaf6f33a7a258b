from __future__ import annotations

import pytest

from abuse_triage.domain.errors import CollaboratorUnavailable
from abuse_triage.domain.identity import IdentityExtractor, ResourceKind
from abuse_triage.domain.stores import InMemoryOwnershipStore, PseudRef, WorkOwnership
from abuse_triage.domain.urls import SiteHosts, normalize_url

SITE = SiteHosts.build("archiveofourown.org", ["archiveofourown.com", "ao3.org"])


def _store() -> InMemoryOwnershipStore:
    store = InMemoryOwnershipStore()
    store.add_work(WorkOwnership(work_id=3, creators=(PseudRef(1, 10),)), chapter_ids=[5])
    return store


async def _extract(raw: str, store: InMemoryOwnershipStore | None = None):
    extractor = IdentityExtractor(store or _store())
    return await extractor.extract(normalize_url(raw, site=SITE))


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "raw",
    [
        "http://archiveofourown.org/works/789",
        "https://archiveofourown.org/works/789",
        "http://archiveofourown.org/works/789?smut=yes#timeline",
        "http://archiveofourown.org/works/789/#timeline",
        "http://archiveofourown.org/collections/rarepair/works/789",
        "http://archiveofourown.org/users/author/works/789",
        "http://archiveofourown.org/works/789/kudos",
        "http://archiveofourown.org/works/789/chapters/123?ending=2#major-character-death",
    ],
)
async def test_work_variants_share_comparison_key(raw: str) -> None:
    extraction = await _extract(raw)
    assert extraction.identity.kind is ResourceKind.WORK
    assert extraction.identity.comparison_key == "work:789"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("raw", "key"),
    [
        ("http://archiveofourown.org/works/7890", "work:7890"),
        ("http://archiveofourown.org/works/78", "work:78"),
        ("http://archiveofourown.org/external_works/789", "unrelated:/external_works/789/"),
        ("http://archiveofourown.org/comments/show_comments?work_id=789", "unrelated:/comments/show_comments/"),
        ("http://archiveofourown.org/tags/Testing/works", "unrelated:/tags/Testing/works/"),
        ("http://archiveofourown.org/", "unrelated:/"),
    ],
)
async def test_other_pages_get_their_own_keys(raw: str, key: str) -> None:
    extraction = await _extract(raw)
    assert extraction.identity.comparison_key == key


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "raw",
    [
        "http://archiveofourown.org/users/someone",
        "http://archiveofourown.org/users/someone/?sfw=yes#timeline",
        "http://archiveofourown.org/admin/users/someone",
        "http://archiveofourown.org/users/someone/pseuds/g h o s t w r i t e r",
        "http://archiveofourown.org/users/someone/inbox?utf8=✓&filters[read]=false",
    ],
)
async def test_user_variants_share_comparison_key(raw: str) -> None:
    extraction = await _extract(raw)
    assert extraction.identity.kind is ResourceKind.USER
    assert extraction.identity.comparison_key == "user:someone"


@pytest.mark.asyncio
async def test_user_names_are_case_sensitive() -> None:
    lower = await _extract("http://archiveofourown.org/users/someone")
    upper = await _extract("http://archiveofourown.org/users/SomeOne")
    assert lower.identity.comparison_key != upper.identity.comparison_key


@pytest.mark.asyncio
async def test_known_chapter_rewrites_url_to_its_work() -> None:
    extraction = await _extract("archiveofourown.org/chapters/5/")
    assert str(extraction.url) == "https://archiveofourown.org/works/3/chapters/5/"
    assert extraction.identity.comparison_key == "work:3"
    assert extraction.identity.is_work_page


@pytest.mark.asyncio
async def test_known_chapter_keeps_scheme() -> None:
    extraction = await _extract("http://archiveofourown.org/chapters/5")
    assert str(extraction.url) == "http://archiveofourown.org/works/3/chapters/5/"


@pytest.mark.asyncio
async def test_unknown_chapter_is_unrelated_and_untouched() -> None:
    extraction = await _extract("http://archiveofourown.org/chapters/000")
    assert str(extraction.url) == "http://archiveofourown.org/chapters/000/"
    assert extraction.identity.kind is ResourceKind.UNRELATED

    schemeless = await _extract("archiveofourown.org/chapters/000")
    assert str(schemeless.url) == "https://archiveofourown.org/chapters/000/"


@pytest.mark.asyncio
async def test_work_page_predicate() -> None:
    assert (await _extract("http://archiveofourown.org/works/42/")).identity.is_work_page
    assert (await _extract("http://archiveofourown.org/works/42/chapters/7")).identity.is_work_page
    assert not (await _extract("http://archiveofourown.org/works/42/comments/")).identity.is_work_page
    assert not (await _extract("http://archiveofourown.org/users/someone/")).identity.is_work_page


class FailingStore(InMemoryOwnershipStore):
    async def lookup_chapter_work(self, chapter_id: int) -> int | None:
        raise TimeoutError("db timeout")


@pytest.mark.asyncio
async def test_chapter_lookup_failure_propagates() -> None:
    with pytest.raises(CollaboratorUnavailable) as exc:
        await _extract("http://archiveofourown.org/chapters/5", FailingStore())
    assert exc.value.collaborator == "ownership"
