"""Appraisal docs API — FastAPI application for report generation.

Run:
    uvicorn appraisal_docs.api.main:app --reload
    # or
    appraisal-docs-api
"""

import logging
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from appraisal_docs import __version__
from appraisal_docs.api.routes import gemini_router, pdf_router
from appraisal_docs.config import settings
from appraisal_docs.observability.logging import correlation_id, setup_logging
from appraisal_docs.observability.tracing import init_tracking

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and MLflow on startup."""
    setup_logging(json_format=settings.log_json, level=settings.log_level)
    try:
        init_tracking(settings.mlflow_tracking_uri, settings.mlflow_experiment_name)
        logger.info("MLflow tracing enabled: %s", settings.mlflow_tracking_uri)
    except Exception as e:
        logger.error("MLflow initialization failed: %s, continuing without a tracking server", e)
    logger.info("Appraisal docs API ready")
    yield
    logger.info("Shutting down")


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Set correlation ID from X-Request-ID header or generate a new one."""

    async def dispatch(self, request: Request, call_next):
        cid = request.headers.get("x-request-id", str(uuid.uuid4()))
        token = correlation_id.set(cid)
        try:
            response = await call_next(request)
            response.headers["x-request-id"] = cid
            return response
        finally:
            correlation_id.reset(token)


app = FastAPI(
    title="Appraisal Docs",
    description="Generates appraisal report Google Docs and PDFs from WordPress appraisal posts.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(CorrelationIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(pdf_router)
app.include_router(gemini_router)


@app.get("/health")
async def health():
    """Health check — reports which external services are configured."""
    checks = {
        "google": "configured" if settings.google_refresh_token else "missing_credentials",
        "wordpress": "configured" if settings.wordpress_api_url else "missing_url",
        "gemini": "configured" if settings.gemini_api_key else "no_api_key",
        "template": "configured" if settings.google_docs_template_id else "missing_template_id",
    }
    status = "healthy" if all(v == "configured" for v in checks.values()) else "degraded"
    return {"status": status, "checks": checks}


def run():
    """Entry point for appraisal-docs-api console script."""
    uvicorn.run("appraisal_docs.api.main:app", host="0.0.0.0", port=8000, reload=True)
