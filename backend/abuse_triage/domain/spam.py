"""Spam classification request building and the trusted-submitter override."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from abuse_triage.domain.errors import CollaboratorUnavailable, Rejection
from abuse_triage.domain.stores import SpamClassifier

logger = logging.getLogger(__name__)

COMMENT_TYPE = "contact-form"
ROLE_AUTHENTICATED = "user-with-nonmatching-email"
ROLE_GUEST = "guest"


@dataclass(frozen=True)
class AuthenticatedIdentity:
    user_id: str
    email: str
    login: str | None = None


@dataclass(frozen=True)
class Submitter:
    """Who is filing the report; ``identity`` is None for guests."""

    email: str
    identity: AuthenticatedIdentity | None = None
    username: str | None = None
    ip_address: str | None = None

    @property
    def authenticated(self) -> bool:
        return self.identity is not None

    @property
    def email_matches_account(self) -> bool:
        if self.identity is None:
            return False
        return self.email.strip().casefold() == self.identity.email.strip().casefold()


def classification_attributes(submitter: Submitter, content: str, *, blog: str | None = None) -> dict[str, str]:
    # Matching-email submitters never reach the classifier, so any signed-in
    # submitter sent there has a non-matching email.
    attributes = {
        "comment_type": COMMENT_TYPE,
        "user_role": ROLE_AUTHENTICATED if submitter.authenticated else ROLE_GUEST,
        "comment_author": submitter.username or "",
        "comment_author_email": submitter.email,
        "comment_content": content,
    }
    if blog:
        attributes["blog"] = blog
    if submitter.ip_address:
        attributes["user_ip"] = submitter.ip_address
    return attributes


def decide(verdict: bool, submitter: Submitter) -> Rejection | None:
    """Apply the trusted-identity bypass to a classifier verdict."""
    if not verdict:
        return None
    if submitter.email_matches_account:
        return None
    return Rejection.FLAGGED_AS_SPAM


@dataclass
class SpamGate:
    classifier: SpamClassifier
    blog: str | None = None

    async def check(self, submitter: Submitter, content: str) -> Rejection | None:
        if submitter.email_matches_account:
            return None
        attributes = classification_attributes(submitter, content, blog=self.blog)
        try:
            verdict = await self.classifier.classify(attributes)
        except CollaboratorUnavailable:
            raise
        except Exception as exc:
            logger.exception("spam classification failed")
            raise CollaboratorUnavailable("classifier", str(exc)) from exc
        return decide(bool(verdict), submitter)
