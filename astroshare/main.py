"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from astroshare.api import auth, comments, files, posts, users
from astroshare.config import get_settings
from astroshare.database import init_db
from astroshare.exceptions import AstroShareError

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    if not settings.token_secret:
        logger.error("TOKEN_SECRET is not set; sign-in and token refresh will fail")
    if not settings.google_client_id:
        logger.warning("GOOGLE_CLIENT_ID is not set; Google sign-in will reject every credential")
    Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
    init_db()
    yield


app = FastAPI(
    title="AstroShare API",
    description="Share astronomy photos and posts",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.exception_handler(AstroShareError)
async def astroshare_error_handler(request: Request, exc: AstroShareError):
    """Render application errors as JSON."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail} {exc.details}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail, **exc.extra})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    """Hide database failures behind a generic 500."""
    logger.error(f"{request.method} {request.url.path} database error: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Register routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(posts.router)
app.include_router(comments.router)
app.include_router(files.router)

app.mount(
    "/public",
    StaticFiles(directory=settings.upload_dir, check_dir=False),
    name="public",
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}
