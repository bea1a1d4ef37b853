# main.py
#
# Description:
# This script serves as the main entry point for the catalogue search service.
# It initializes the FastAPI application, configures logging and CORS,
# registers the domain exception handlers and includes all the API routers.
#
# Key Responsibilities:
# - Load the .env file before settings are read.
# - Instantiate the FastAPI application with a lifespan that releases
#   HTTP sessions and the OpenSearch connection on shutdown.
# - Include API routers for health, search, relationship and list endpoints.
# - Define a root endpoint for basic service information.

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

# Load .env file before anything else
from dotenv import load_dotenv
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config.settings import settings
from app.api.exception_handlers import register_exception_handlers
from app.api.v1.routes.health import router as health_router
from app.api.v1.routes.search import router as search_router
from app.api.v1.routes.relationship import router as relationship_router
from app.api.v1.routes.list import router as list_router
from infrastructure.container import cleanup_container

# Configure logging
log_level = os.getenv('LOG_LEVEL', settings.log_level).upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events for the FastAPI application.
    """
    logger.info(f"Starting catalogue search service (env={settings.app_env}, index={settings.opensearch_index})")
    yield
    logger.info("Shutting down catalogue search service...")
    await cleanup_container()
    logger.info("Catalogue search service shutdown complete")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="Catalogue Search Service",
        description="Query construction and multi-modal search over the metadata catalogue",
        version="1.0.0",
        lifespan=lifespan
    )

    # --- Middleware Configuration ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # --- API Router Inclusion ---
    # Each router is prefixed with "/v1" to version the API.
    app.include_router(health_router, prefix="/v1")
    app.include_router(search_router, prefix="/v1")
    app.include_router(relationship_router, prefix="/v1")
    app.include_router(list_router, prefix="/v1")

    # --- Root Endpoint ---
    @app.get("/", tags=["Root"])
    def root():
        """Root endpoint with service information."""
        return {
            "service": "catalogue-search",
            "env": settings.app_env,
            "endpoints": {
                "health": "/v1/health",
                "search": "/v1/search",
                "count": "/v1/count",
                "nlpsearch": "/v1/nlpsearch",
                "relationship": "/v1/relationship",
                "relsearch": "/v1/relsearch",
                "list": "/v1/list/{itemType}",
                "docs": "/docs"
            }
        }

    return app


# Create the application instance
app = create_app()
