"""Thin MLflow tracing layer used by the LLM client and the pipelines.

Usage:

    from appraisal_docs.observability.tracing import trace, start_span, log_metrics

    @trace(name="generate_text", span_type="CHAT_MODEL")
    async def generate_text(prompt): ...

    with start_span("gemini_call") as span:
        span.set_inputs({...})
"""

import logging
from contextlib import contextmanager

import mlflow

logger = logging.getLogger(__name__)


def trace(name: str | None = None, **kwargs):
    """Decorator: wrap a sync or async function in an MLflow trace."""
    return mlflow.trace(name=name, **kwargs) if name else mlflow.trace(**kwargs)


@contextmanager
def start_span(name: str = "span", **kwargs):
    """Context manager yielding an MLflow span."""
    with mlflow.start_span(name=name, **kwargs) as span:
        yield span


def log_metrics(metrics: dict, step: int | None = None) -> None:
    """Log metrics to the active run; tracking outages never fail a request."""
    try:
        mlflow.log_metrics(metrics, step=step)
    except Exception as e:
        logger.debug("MLflow metric logging failed: %s", e)


def init_tracking(tracking_uri: str, experiment_name: str) -> None:
    """Point MLflow at the tracking server and enable async logging."""
    mlflow.set_tracking_uri(tracking_uri)
    mlflow.set_experiment(experiment_name)
    mlflow.config.enable_async_logging()
