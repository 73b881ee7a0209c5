"""
FastAPI application entrypoint for the Media Catalog backend.

- /users: signup, login, profile read/update/delete
- /albums and /songs: catalog CRUD; mutations require the owner's token

CORS is enabled for local development (http://localhost:3000) and can be extended
via environment variables.
"""

from __future__ import annotations

import logging
import os as _os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from media_catalog import db
from media_catalog.auth import TOKEN_HEADER
from media_catalog.errors import register_exception_handlers
from media_catalog.models import Base
from media_catalog.routes_albums import router as albums_router
from media_catalog.routes_songs import router as songs_router
from media_catalog.routes_users import router as users_router

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "Users", "description": "Signup, login and account management."},
    {"name": "Albums", "description": "Albums owned by users."},
    {"name": "Songs", "description": "Songs within albums."},
    {"name": "Health", "description": "Service health and basic runtime info."},
]


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Tables are created if missing; there are no migrations.
    Base.metadata.create_all(db.get_engine())
    logger.info("Catalog schema ready")
    try:
        yield
    finally:
        db.dispose_engine()


app = FastAPI(
    title="Media Catalog Backend API",
    description=(
        "Backend for a catalog of users, albums and songs.\n\n"
        "Authentication: Bearer token or the cookie set by /users/signup and /users/login."
    ),
    version="1.0.0",
    openapi_tags=openapi_tags,
    lifespan=lifespan,
)

# credentials=true requires explicit origins (not '*') in browsers.
# Extra origins: CORS_ALLOW_ORIGINS or ALLOWED_ORIGINS, comma-separated.
cors_origins = [
    "http://localhost:3000",
    "https://localhost:3000",
]

_allow_origins_raw = _os.getenv("CORS_ALLOW_ORIGINS") or _os.getenv("ALLOWED_ORIGINS", "")
cors_origins.extend(o.strip() for o in _allow_origins_raw.split(",") if o.strip())

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["set-cookie", TOKEN_HEADER],
)

register_exception_handlers(app)

app.include_router(users_router)
app.include_router(albums_router)
app.include_router(songs_router)


@app.get(
    "/",
    summary="Health check",
    description="Simple health check endpoint.",
    tags=["Health"],
)
def health_check():
    """Return basic service health information."""
    return {"status": "ok"}
