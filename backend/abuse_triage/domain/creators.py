"""Resolve the accountable creators of a reported work."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from abuse_triage.domain.errors import CollaboratorUnavailable
from abuse_triage.domain.identity import ResourceIdentity
from abuse_triage.domain.stores import OwnershipStore, WorkOwnership

logger = logging.getLogger(__name__)

ORPHANED_WORK = "orphanedwork"
DELETED_WORK = "deletedwork"

_SENTINEL_RANK = {DELETED_WORK: 0, ORPHANED_WORK: 1}


def _sort_key(identity: str) -> tuple[int, int, str]:
    if identity in _SENTINEL_RANK:
        return (0, _SENTINEL_RANK[identity], "")
    if identity.isdigit():
        return (1, int(identity), "")
    return (2, 0, identity)


def sort_identities(identities: Iterable[str]) -> list[str]:
    """Sentinels first, then numeric ids ascending."""
    return sorted(set(identities), key=_sort_key)


def accountable_identities(ownership: WorkOwnership, *, orphan_account_id: int | None = None) -> list[str]:
    """Collapse pseuds to users, hide pending invitations, surface orphaning.

    Anonymous and unrevealed works still report their real creators; hiding
    them is a presentation concern.
    """
    identities: set[str] = set()
    orphaned = bool(ownership.orphaned)
    for creator in ownership.creators:
        if orphan_account_id is not None and creator.user_id == orphan_account_id:
            orphaned = True
            continue
        identities.add(str(creator.user_id))
    for record in ownership.orphaned:
        if record.original_user_id is not None:
            identities.add(str(record.original_user_id))
    if orphaned:
        identities.add(ORPHANED_WORK)
    return sort_identities(identities)


def format_identities(identities: Iterable[str]) -> str:
    return ", ".join(identities)


@dataclass
class CreatorResolver:
    ownership: OwnershipStore
    orphan_account_id: int | None = None

    async def resolve_ids(self, identity: ResourceIdentity) -> list[str] | None:
        """None for anything that is not a work page."""
        if not identity.is_work_page:
            return None
        work_id = identity.work_id
        assert work_id is not None
        try:
            ownership = await self.ownership.lookup_work(work_id)
        except CollaboratorUnavailable:
            raise
        except Exception as exc:
            logger.exception("work ownership lookup failed", extra={"work_id": work_id})
            raise CollaboratorUnavailable("ownership", str(exc)) from exc
        if ownership is None:
            return [DELETED_WORK]
        return accountable_identities(ownership, orphan_account_id=self.orphan_account_id)

    async def resolve(self, identity: ResourceIdentity) -> str | None:
        ids = await self.resolve_ids(identity)
        if ids is None:
            return None
        return format_identities(ids)
