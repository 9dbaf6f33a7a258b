"""Failures and rejection outcomes raised or returned by triage."""

from __future__ import annotations

import enum


class TriageError(Exception):
    """Base class for triage failures."""


class InvalidUrl(TriageError):
    """The submitted string is not a URL on this site."""

    def __init__(self, code: str, url: str | None = None) -> None:
        super().__init__(code)
        self.code = code
        self.url = url


class CollaboratorUnavailable(TriageError):
    """A history, ownership, classifier, or queue call failed."""

    def __init__(self, collaborator: str, detail: str | None = None) -> None:
        super().__init__(f"{collaborator}_unavailable" + (f": {detail}" if detail else ""))
        self.collaborator = collaborator
        self.detail = detail


class Rejection(str, enum.Enum):
    DUPLICATE_RESOURCE = "duplicate_resource"
    EMAIL_LIMIT_EXCEEDED = "email_limit_exceeded"
    FLAGGED_AS_SPAM = "flagged_as_spam"

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_MESSAGES = {
    Rejection.DUPLICATE_RESOURCE: (
        "This page has already been reported. Our volunteers only need one report in order to "
        "investigate and resolve an issue, so please be patient and do not submit another report."
    ),
    Rejection.EMAIL_LIMIT_EXCEEDED: (
        "You have reached our daily reporting limit. To keep our volunteers from being overwhelmed, "
        "please do not seek out violations to report, but only report violations you encounter "
        "during your normal browsing."
    ),
    Rejection.FLAGGED_AS_SPAM: "This report looks like spam to our system!",
}
