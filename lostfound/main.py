import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lostfound.auth import catalog
from lostfound.config import settings
from lostfound.database import async_session
from lostfound.middleware.exceptions import register_exception_handlers
from lostfound.routers import auth, delivered_items, health, items, permissions, users

logger = logging.getLogger("lostfound")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and report the catalog state on startup."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    async with async_session() as session:
        size = len(await catalog.list_permissions(session))
    if size == 0:
        logger.warning(
            "Permission catalog is empty; run `python -m lostfound.cli seed-permissions`"
        )
    else:
        logger.info("Permission catalog holds %d permissions", size)
    yield


app = FastAPI(
    title="Lost & Found",
    description="Airline lost-and-found item tracking",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
app.include_router(health.router)
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(permissions.router, prefix="/api/permissions", tags=["permissions"])
app.include_router(items.router, prefix="/api/items", tags=["items"])
app.include_router(
    delivered_items.router, prefix="/api/delivered-items", tags=["delivered-items"]
)
