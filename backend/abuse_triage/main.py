"""FastAPI application entrypoint."""

from __future__ import annotations

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from abuse_triage.api import reports
from abuse_triage.domain import container
from abuse_triage.infra import postgres
from abuse_triage.infra.redis import redis_client
from abuse_triage.obs import init as obs_init
from abuse_triage.settings import settings


@asynccontextmanager
async def lifespan(app: FastAPI):
	pool = await postgres.init_pool()
	async with httpx.AsyncClient() as http:
		container.configure_postgres(pool, redis_client, http, orphan_account_id=settings.orphan_account_id)
		try:
			yield
		finally:
			await postgres.close_pool()


def create_app(*, use_lifespan: bool = True) -> FastAPI:
	app = FastAPI(title="Abuse report triage", lifespan=lifespan if use_lifespan else None)
	obs_init(app)
	app.include_router(reports.router)
	return app


app = create_app()
