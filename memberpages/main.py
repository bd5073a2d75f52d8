"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from memberpages.config import get_settings
from memberpages.db.database import init_db

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events.

    Args:
        app: FastAPI application instance.
    """
    # Startup
    init_db()
    yield


app = FastAPI(
    title=settings.app_name,
    description="Membership-gated content pages with spreadsheet import",
    version="0.1.0",
    lifespan=lifespan,
    debug=settings.debug,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Uploaded media
app.mount(
    settings.media_url_path,
    StaticFiles(directory=settings.media_dir, check_dir=False),
    name="media",
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Log unexpected errors and answer with a generic 500."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Import and include routers
from memberpages.auth.router import admin_router as auth_admin_router
from memberpages.auth.router import router as auth_router
from memberpages.generator.router import router as generator_router
from memberpages.media.router import router as media_router
from memberpages.members.router import admin_router as members_admin_router
from memberpages.members.router import router as members_router
from memberpages.pages.router import admin_router as pages_admin_router
from memberpages.pages.router import router as pages_router
from memberpages.sheets.router import router as sheets_router

# API routes
app.include_router(members_router, prefix="/api", tags=["members"])
app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
app.include_router(auth_admin_router, prefix="/api/admin", tags=["admin"])
app.include_router(members_admin_router, prefix="/api/admin", tags=["admin"])
app.include_router(sheets_router, prefix="/api/admin", tags=["sheets"])
app.include_router(media_router, prefix="/api/admin", tags=["media"])
app.include_router(pages_admin_router, prefix="/api/admin/pages", tags=["pages"])
app.include_router(pages_router, prefix="/api/pages", tags=["pages"])
app.include_router(generator_router, prefix="/api/ai", tags=["ai"])


@app.get("/health")
async def health_check():
    """Health check endpoint.

    Returns:
        dict: Health status.
    """
    return {"status": "healthy"}
