import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles

from prtracker.api.handlers.exception_handlers import bad_request_exception_handler
from prtracker.api.routes import app as app_endpoints
from prtracker.api.routes import auth as auth_endpoints
from prtracker.api.routes import github as github_endpoints
from prtracker.config import settings
from prtracker.integrations.github.gateway import GitHubGateway
from prtracker.utils.logger import logger, setup_logger

setup_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Opens the shared GitHub gateway (one pooled HTTP client for every proxied
    request) on startup and closes it on shutdown.
    """
    logger.info("Starting up...")
    if getattr(app.state, "gateway", None) is None:
        app.state.gateway = GitHubGateway()

    yield

    logger.info("Shutting down...")
    await app.state.gateway.aclose()
    app.state.gateway = None


app = FastAPI(
    title="PR Tracker",
    description="Dashboard backend for tracking your open GitHub pull requests",
    version="1.0.0",
    debug=settings.DEBUG_MODE,
    lifespan=lifespan,
)

app.add_exception_handler(RequestValidationError, bad_request_exception_handler)

app.include_router(app_endpoints.router, tags=["general"])
app.include_router(auth_endpoints.router, prefix="/api", tags=["session"])
app.include_router(github_endpoints.router, prefix="/api", tags=["github"])

if os.path.isdir(settings.STATIC_DIR):
    app.mount("/static", StaticFiles(directory=settings.STATIC_DIR), name="static")
