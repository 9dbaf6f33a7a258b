"""Akismet comment-check client used as the spam classifier."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

import httpx

from abuse_triage.domain.errors import CollaboratorUnavailable
from abuse_triage.domain.stores import SpamClassifier

logger = logging.getLogger(__name__)


@dataclass
class AkismetClassifier(SpamClassifier):
    """POSTs the attributes to ``comment-check``; the body is ``true`` for spam.

    No retries: timeouts, HTTP errors and unexpected bodies all raise
    :class:`CollaboratorUnavailable`.
    """

    http: httpx.AsyncClient
    api_key: str
    blog: str
    request_timeout: float = 3.0

    @property
    def endpoint(self) -> str:
        return f"https://{self.api_key}.rest.akismet.com/1.1/comment-check"

    async def classify(self, attributes: Mapping[str, str]) -> bool:
        data = {"blog": self.blog, **attributes}
        try:
            response = await self.http.post(self.endpoint, data=data, timeout=self.request_timeout)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise CollaboratorUnavailable("classifier", str(exc)) from exc
        body = response.text.strip().lower()
        if body == "true":
            return True
        if body == "false":
            return False
        hint = response.headers.get("x-akismet-debug-help", "")
        logger.warning("unexpected akismet response", extra={"body": body[:64], "hint": hint})
        raise CollaboratorUnavailable("classifier", f"unexpected response: {body[:64]!r}")
