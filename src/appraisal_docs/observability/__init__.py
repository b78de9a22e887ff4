"""Observability — prompt registry, structured logging, and MLflow integration helpers."""

from appraisal_docs.observability.logging import get_correlation_id, setup_logging
from appraisal_docs.observability.prompts import get_active_prompt

__all__ = ["get_active_prompt", "get_correlation_id", "setup_logging"]
