"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.config import settings
from api.routes import docs
from gtkdoc_core.logging_config import configure_logging
from gtkdoc_core.settings import settings as core_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    configure_logging("DEBUG" if settings.debug else core_settings.log_level)
    logger.info("Serving gtk-doc pages under %s", core_settings.docs_prefix)
    yield


app = FastAPI(
    title="gtk-doc pages API",
    description="gtk-doc reference manuals served as navigable pages",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Page links and rewritten asset URLs are built from docs_prefix, so the
# router must be mounted at exactly that path.
app.include_router(docs.router, prefix=core_settings.docs_prefix.rstrip("/"), tags=["docs"])


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
