"""
services/mlflow_service.py
--------------------------
One MLflow run per classifier call, grouped under the
"ticket-classification" experiment.

Each run records which model answered (or "mock"), how long it took,
and whether the answer was usable. Comparing runs across CLASSIFIER_MODEL
values shows latency and failure-rate differences between models.

    mlflow ui --port 5001

Tracking is strictly best-effort: a missing package, a disabled switch or
an unreachable tracking server all degrade to "nothing logged".
"""

from typing import Optional

from upkeep.core.config import settings
from upkeep.core.logging import get_logger

logger = get_logger(__name__)

EXPERIMENT_NAME = "ticket-classification"


def _get_mlflow():
    if not settings.MLFLOW_TRACKING_ENABLED:
        return None
    try:
        import mlflow
    except ImportError:
        logger.warning("mlflow not installed, classifier tracking disabled")
        return None
    return mlflow


def setup_mlflow() -> None:
    """Point mlflow at MLFLOW_TRACKING_URI and make sure the experiment exists."""
    mlflow = _get_mlflow()
    if mlflow is None:
        return

    try:
        mlflow.set_tracking_uri(settings.MLFLOW_TRACKING_URI)
        if mlflow.get_experiment_by_name(EXPERIMENT_NAME) is None:
            mlflow.create_experiment(EXPERIMENT_NAME)
            logger.info("MLflow experiment created", experiment=EXPERIMENT_NAME)
        mlflow.set_experiment(EXPERIMENT_NAME)
    except Exception as exc:
        logger.warning("MLflow setup skipped", uri=settings.MLFLOW_TRACKING_URI, error=str(exc))
        return
    logger.info("Classifier tracking enabled", uri=settings.MLFLOW_TRACKING_URI)


def _run_params(prompt: str, ticket_id: str, mock: bool, outcome: str) -> dict:
    return {
        "model": "mock" if mock else settings.CLASSIFIER_MODEL,
        "temperature": settings.CLASSIFIER_TEMPERATURE,
        "max_tokens": settings.CLASSIFIER_MAX_TOKENS,
        "prompt_length": len(prompt),
        "ticket_id": ticket_id,
        "outcome": outcome,
        "environment": settings.APP_ENV,
    }


def _run_metrics(prompt: str, response: str, latency_ms: float) -> dict:
    return {
        "latency_ms": latency_ms,
        "prompt_length": float(len(prompt)),
        "response_length": float(len(response)),
    }


def track_classifier_call(
    prompt: str,
    response: str,
    latency_ms: float,
    ticket_id: str,
    mock: bool = True,
    outcome: str = "ok",
) -> Optional[str]:
    """
    Record one classifier call.

    ``outcome`` is "ok" when the classifier returned content and "error"
    when the call itself failed; a reply that later fails validation is
    still "ok" here. Returns the run id, or None when nothing was logged.
    """
    mlflow = _get_mlflow()
    if mlflow is None:
        return None

    try:
        mlflow.set_experiment(EXPERIMENT_NAME)
        with mlflow.start_run(run_name=f"classify-{ticket_id}") as run:
            mlflow.log_params(_run_params(prompt, ticket_id, mock, outcome))
            mlflow.log_metrics(_run_metrics(prompt, response, latency_ms))
            mlflow.set_tags({"outcome": outcome, "mock_mode": str(mock).lower()})
            run_id = run.info.run_id
    except Exception as exc:
        logger.warning("Classifier tracking failed", ticket_id=ticket_id, error=str(exc))
        return None

    logger.debug("Classifier call tracked", run_id=run_id, ticket_id=ticket_id, latency_ms=latency_ms)
    return run_id
