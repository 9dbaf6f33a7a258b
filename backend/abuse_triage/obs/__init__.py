"""Observability helpers: structured logging and Prometheus counters."""

from __future__ import annotations

from fastapi import FastAPI

from abuse_triage.obs import logging as obs_logging

_initialised = False


def init(app: FastAPI) -> None:
	global _initialised
	if _initialised:
		return
	obs_logging.configure_logging()
	_ = app
	_initialised = True


__all__ = ["init"]
