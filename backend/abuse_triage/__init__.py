"""URL canonicalization and triage engine for abuse reports."""
