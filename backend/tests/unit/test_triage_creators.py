from __future__ import annotations

import pytest

from abuse_triage.domain.creators import CreatorResolver, sort_identities
from abuse_triage.domain.identity import ResourceIdentity, ResourceKind
from abuse_triage.domain.stores import InMemoryOwnershipStore, OrphanedCreator, PseudRef, WorkOwnership


def _work(work_id: int = 1, *suffix: str) -> ResourceIdentity:
    return ResourceIdentity(ResourceKind.WORK, str(work_id), tuple(suffix))


async def _resolve(ownership: WorkOwnership | None, identity: ResourceIdentity | None = None) -> str | None:
    store = InMemoryOwnershipStore()
    if ownership is not None:
        store.add_work(ownership)
    resolver = CreatorResolver(ownership=store)
    return await resolver.resolve(identity or _work(ownership.work_id if ownership else 1))


@pytest.mark.asyncio
async def test_non_work_pages_have_no_creators() -> None:
    assert await _resolve(None, ResourceIdentity(ResourceKind.USER, "someone")) is None
    assert await _resolve(None, ResourceIdentity(ResourceKind.UNRELATED, "/tags/")) is None


@pytest.mark.asyncio
async def test_work_comment_pages_have_no_creators() -> None:
    ownership = WorkOwnership(work_id=123, creators=(PseudRef(1, 10),))
    assert await _resolve(ownership, _work(123, "comments")) is None


@pytest.mark.asyncio
async def test_missing_work_is_deletedwork() -> None:
    assert await _resolve(None, _work(0)) == "deletedwork"


@pytest.mark.asyncio
async def test_single_creator() -> None:
    assert await _resolve(WorkOwnership(work_id=1, creators=(PseudRef(1, 10),))) == "10"


@pytest.mark.asyncio
async def test_chapter_page_reports_creators() -> None:
    ownership = WorkOwnership(work_id=1, creators=(PseudRef(1, 10),))
    assert await _resolve(ownership, _work(1, "chapters", "9")) == "10"


@pytest.mark.asyncio
@pytest.mark.parametrize("flags", [{"in_anonymous_collection": True}, {"in_unrevealed_collection": True}])
async def test_anonymous_and_unrevealed_works_still_name_creator(flags) -> None:
    assert await _resolve(WorkOwnership(work_id=1, creators=(PseudRef(1, 10),), **flags)) == "10"


@pytest.mark.asyncio
async def test_multiple_pseuds_of_one_user_collapse() -> None:
    ownership = WorkOwnership(work_id=1, creators=(PseudRef(1, 10), PseudRef(2, 10)))
    assert await _resolve(ownership) == "10"


@pytest.mark.asyncio
async def test_multiple_creators_sorted_numerically() -> None:
    ownership = WorkOwnership(work_id=1, creators=(PseudRef(5, 11), PseudRef(4, 10), PseudRef(3, 9)))
    assert await _resolve(ownership) == "9, 10, 11"


@pytest.mark.asyncio
async def test_pending_invitation_is_excluded() -> None:
    ownership = WorkOwnership(work_id=1, creators=(PseudRef(1, 10),), pending_invitations=(PseudRef(2, 12),))
    assert await _resolve(ownership) == "10"


@pytest.mark.asyncio
async def test_recently_orphaned_work() -> None:
    ownership = WorkOwnership(work_id=1, orphaned=(OrphanedCreator(pseud_id=99, original_user_id=20),))
    assert await _resolve(ownership) == "orphanedwork, 20"


@pytest.mark.asyncio
async def test_long_ago_orphaned_work() -> None:
    ownership = WorkOwnership(work_id=1, orphaned=(OrphanedCreator(pseud_id=99),))
    assert await _resolve(ownership) == "orphanedwork"


@pytest.mark.asyncio
async def test_partially_orphaned_work() -> None:
    ownership = WorkOwnership(
        work_id=1,
        creators=(PseudRef(3, 21),),
        orphaned=(OrphanedCreator(pseud_id=99, original_user_id=20),),
    )
    assert await _resolve(ownership) == "orphanedwork, 20, 21"


@pytest.mark.asyncio
async def test_orphan_account_creatorship_becomes_sentinel() -> None:
    store = InMemoryOwnershipStore()
    store.add_work(WorkOwnership(work_id=1, creators=(PseudRef(99, 1), PseudRef(3, 21))))
    resolver = CreatorResolver(ownership=store, orphan_account_id=1)
    assert await resolver.resolve_ids(_work(1)) == ["orphanedwork", "21"]


def test_sort_puts_sentinels_first_and_numbers_ascending() -> None:
    assert sort_identities(["100", "orphanedwork", "9", "9"]) == ["orphanedwork", "9", "100"]
