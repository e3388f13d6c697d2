"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from campuslife.api import announcements, auth, clubs, events, home, ops, profile, search
from campuslife.api.errors import install_error_handlers
from campuslife.infra import postgres
from campuslife.obs import init as obs_init
from campuslife.settings import settings

logger = logging.getLogger(__name__)

DEV_ORIGINS = [
	"http://localhost:5173",
	"http://127.0.0.1:5173",
	"http://localhost:4173",
	"http://127.0.0.1:4173",
	"http://localhost:3000",
	"http://127.0.0.1:3000",
]


@asynccontextmanager
async def lifespan(app: FastAPI):
	if settings.uses_memory_backend():
		logger.info("startup data_backend=memory")
	else:
		await postgres.init_pool()
	try:
		yield
	finally:
		await postgres.close_pool()


def _allowed_origins() -> list[str]:
	allow_origins = list(settings.cors_allow_origins)
	if not allow_origins:
		allow_origins = DEV_ORIGINS if settings.is_dev() else []
	# Starlette disallows wildcard '*' with allow_credentials=True
	if "*" in allow_origins:
		allow_origins = DEV_ORIGINS if settings.is_dev() else [o for o in allow_origins if o != "*"]
	return allow_origins


app = FastAPI(title="campuslife API", lifespan=lifespan)
install_error_handlers(app)

app.add_middleware(
	CORSMiddleware,
	allow_origins=_allowed_origins(),
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)
obs_init(app)

app.include_router(auth.router)
app.include_router(profile.router)
app.include_router(search.router)
# /events/featured must be matched before /events/{event_id}
app.include_router(home.router)
app.include_router(events.router)
app.include_router(clubs.router)
app.include_router(announcements.router)
app.include_router(ops.router)
