"""Tests for classifier-call tracking in MLflow (with a stand-in mlflow module)."""
from contextlib import contextmanager
from types import SimpleNamespace

from upkeep.services import mlflow_service


class RecordingMlflow:
    def __init__(self, fail_on_start=False):
        self.fail_on_start = fail_on_start
        self.params = None
        self.metrics = None
        self.tags = None

    def set_experiment(self, name):
        self.experiment = name

    @contextmanager
    def start_run(self, run_name=None):
        self.run_name = run_name
        if self.fail_on_start:
            raise RuntimeError("tracking server unreachable")
        yield SimpleNamespace(info=SimpleNamespace(run_id="run-123"))

    def log_params(self, params):
        self.params = params

    def log_metrics(self, metrics):
        self.metrics = metrics

    def set_tags(self, tags):
        self.tags = tags


def test_call_is_logged_as_run(monkeypatch):
    recorder = RecordingMlflow()
    monkeypatch.setattr(mlflow_service, "_get_mlflow", lambda: recorder)

    run_id = mlflow_service.track_classifier_call(
        prompt="p" * 40,
        response='{"category": "general", "urgency": 1}',
        latency_ms=12.5,
        ticket_id="t-1",
        mock=False,
        outcome="ok",
    )

    assert run_id == "run-123"
    assert recorder.experiment == mlflow_service.EXPERIMENT_NAME
    assert recorder.params["ticket_id"] == "t-1"
    assert recorder.params["prompt_length"] == 40
    assert recorder.metrics["latency_ms"] == 12.5
    assert recorder.tags["outcome"] == "ok"
    assert recorder.tags["mock_mode"] == "false"
    assert recorder.params["model"] == "gpt-4-turbo"
    assert recorder.run_name == "classify-t-1"


def test_tracking_failure_is_swallowed(monkeypatch):
    monkeypatch.setattr(mlflow_service, "_get_mlflow", lambda: RecordingMlflow(fail_on_start=True))

    assert mlflow_service.track_classifier_call("p", "", 1.0, "t-1") is None


def test_disabled_tracking_is_a_no_op():
    # MLFLOW_TRACKING_ENABLED=false in the test environment
    assert mlflow_service._get_mlflow() is None
    assert mlflow_service.track_classifier_call("p", "r", 1.0, "t-1") is None
