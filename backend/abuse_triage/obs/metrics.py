"""Prometheus counters for triage decisions."""

from __future__ import annotations

from prometheus_client import Counter

TRIAGE_DECISIONS_TOTAL = Counter(
	"abuse_triage_decisions_total",
	"Triage decisions by outcome",
	["outcome"],
)

TRIAGE_COLLABORATOR_FAILURES_TOTAL = Counter(
	"abuse_triage_collaborator_failures_total",
	"Collaborator calls that failed during triage",
	["collaborator"],
)

TRIAGE_SNAPSHOTS_ENQUEUED_TOTAL = Counter(
	"abuse_triage_snapshots_enqueued_total",
	"Work snapshot jobs dispatched after an accepted report",
)
