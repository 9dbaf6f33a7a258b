"""Abuse report submission endpoint."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, EmailStr, Field, field_validator

from abuse_triage.domain.container import get_report_service
from abuse_triage.domain.errors import CollaboratorUnavailable, InvalidUrl, Rejection
from abuse_triage.domain.spam import AuthenticatedIdentity, Submitter
from abuse_triage.domain.triage import AbuseReportService, TriageResult, should_attach_snapshot
from abuse_triage.infra.auth import get_optional_identity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/abuse/v1/reports", tags=["abuse-reports"])

_REJECTION_STATUS = {
    Rejection.DUPLICATE_RESOURCE: status.HTTP_409_CONFLICT,
    Rejection.EMAIL_LIMIT_EXCEEDED: status.HTTP_429_TOO_MANY_REQUESTS,
    Rejection.FLAGGED_AS_SPAM: 422,
}


class ReportSubmission(BaseModel):
    url: str = Field(..., min_length=1)
    email: EmailStr
    comment: str = Field(..., min_length=1)
    username: Optional[str] = Field(default=None, max_length=100)
    summary: Optional[str] = Field(default=None, max_length=8000)
    language: Optional[str] = None
    # Moderation ticket already opened for this report; snapshots attach to it.
    ticket_id: Optional[str] = Field(default=None, min_length=1, max_length=64)

    @field_validator("comment")
    @classmethod
    def _comment_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("comment_required")
        return value


class TriageOut(BaseModel):
    url: str
    kind: str
    comparison_key: str
    creator_ids: Optional[str] = None
    attach_snapshot: bool = False
    snapshot_enqueued: bool = False

    @classmethod
    def from_result(cls, result: TriageResult, *, snapshot_enqueued: bool = False) -> "TriageOut":
        return cls(
            url=result.url,
            kind=result.identity.kind.value,
            comparison_key=result.identity.comparison_key,
            creator_ids=result.creator_ids,
            attach_snapshot=should_attach_snapshot(result.identity),
            snapshot_enqueued=snapshot_enqueued,
        )


def get_report_service_dep() -> AbuseReportService:
    return get_report_service()


@router.post("", response_model=TriageOut, status_code=status.HTTP_201_CREATED)
async def submit_report(
    report: ReportSubmission,
    request: Request,
    service: AbuseReportService = Depends(get_report_service_dep),
    identity: AuthenticatedIdentity | None = Depends(get_optional_identity),
) -> TriageOut:
    submitter = Submitter(
        email=str(report.email),
        identity=identity,
        username=report.username,
        ip_address=request.client.host if request.client else None,
    )
    try:
        result = await service.submit(report.url, submitter, content=report.comment)
    except InvalidUrl as exc:
        raise HTTPException(status_code=422, detail={"field": "url", "code": exc.code}) from exc
    except CollaboratorUnavailable as exc:
        raise HTTPException(status_code=503, detail=f"{exc.collaborator}_unavailable") from exc
    if result.rejection is not None:
        raise HTTPException(
            status_code=_REJECTION_STATUS[result.rejection],
            detail={"code": result.rejection.value, "message": result.rejection.message},
        )
    enqueued = False
    if report.ticket_id:
        # The report is already recorded; a lost snapshot must not fail it.
        try:
            enqueued = await service.attach_snapshot(report.ticket_id, result)
        except CollaboratorUnavailable:
            logger.warning("snapshot not queued", extra={"ticket_id": report.ticket_id})
    return TriageOut.from_result(result, snapshot_enqueued=enqueued)
