"""Main FastAPI application entry point"""

from fastapi import FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
import logging

from hiring_platform import __version__
from hiring_platform.api.errors import hierarchy_error_handler, http_exception_handler
from hiring_platform.api.groups import router as groups_router
from hiring_platform.api.health import router as health_router
from hiring_platform.api.organizations import router as organizations_router
from hiring_platform.api.resources import agents_router, interview_guides_router
from hiring_platform.config import settings
from hiring_platform.services.exceptions import HierarchyError

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = FastAPI(
    title="Hiring Platform Hierarchy API",
    description="Organization hierarchy, access grants and shared agents / interview guides",
    version=__version__,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Group-Id", "X-Organization-Id"],
    max_age=3600,
)

app.add_exception_handler(HierarchyError, hierarchy_error_handler)
app.add_exception_handler(HTTPException, http_exception_handler)

# Include routers
app.include_router(health_router)
app.include_router(groups_router)
app.include_router(organizations_router)
app.include_router(agents_router)
app.include_router(interview_guides_router)


@app.get("/")
def root():
    """Root endpoint"""
    return {
        "message": "Hiring Platform Hierarchy API",
        "version": __version__,
        "status": "running",
    }


@app.get("/metrics", include_in_schema=False)
def metrics():
    """Prometheus scrape endpoint"""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
