"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import json
import logging
import sys
import threading
from dataclasses import dataclass
from pathlib import Path

import pytest

# functions/ is the Lambda asset root; make it importable without installing
FUNCTIONS_PATH = Path(__file__).resolve().parent.parent / "functions"
if str(FUNCTIONS_PATH) not in sys.path:
    sys.path.insert(0, str(FUNCTIONS_PATH))

from contact.errors import NotifyFailure, StoreFailure  # noqa: E402
from contact.settings import Settings  # noqa: E402


@dataclass
class LambdaContext:
    function_name: str = "contact-test"
    memory_limit_in_mb: int = 128
    invoked_function_arn: str = "arn:aws:lambda:us-east-1:123456789012:function:contact-test"
    aws_request_id: str = "52fdfc07-2182-454f-963f-5f0f9a621d72"


class FakeStore:
    """In-memory store. ``failures`` are raised one per call before succeeding."""

    def __init__(self, failures=()):
        self.failures = list(failures)
        self.items = []
        self.calls = 0
        self._lock = threading.Lock()

    def put(self, message):
        with self._lock:
            self.calls += 1
            if self.failures:
                raise self.failures.pop(0)
            self.items.append(message)


class FakeNotifier:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def notify(self, message):
        if self.fail:
            raise NotifyFailure("MessageRejected")
        self.sent.append(message)


@pytest.fixture(autouse=True)
def aws_env(monkeypatch: pytest.MonkeyPatch):
    """Fake credentials so no test can reach a real AWS account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    yield


@pytest.fixture
def settings() -> Settings:
    return Settings(table_name="contact_messages",
                    from_email="contact@example.com",
                    to_email="owner@example.com",
                    region="us-east-1",
                    store_retry_backoff=0.0)


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def lambda_context() -> LambdaContext:
    return LambdaContext()


def transient() -> StoreFailure:
    return StoreFailure(StoreFailure.TRANSIENT, "ProvisionedThroughputExceededException")


def post(payload=None, body=None, headers=None, **extra) -> dict:
    """Build an API Gateway proxy event for ``POST /contact``."""
    event = {
        "httpMethod": "POST",
        "path": "/contact",
        "headers": headers if headers is not None else {"Content-Type": "application/json"},
        "body": body if body is not None else json.dumps(payload),
        "isBase64Encoded": False,
    }
    event.update(extra)
    return event


class RecordingHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def log_records():
    """Records emitted through the ``contact`` Powertools logger."""
    from contact.handler import logger

    recorder = RecordingHandler()
    underlying = logging.getLogger(logger.service)
    underlying.addHandler(recorder)
    yield recorder.records
    underlying.removeHandler(recorder)
