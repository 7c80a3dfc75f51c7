"""Pytest configuration and fixtures for the work-record summary tests."""

import json
import logging
from datetime import datetime

import httpx
import pytest

from worklog.types import LogEntry, ProviderConfig

NOW = datetime(2026, 10, 19, 9, 30)


def sse_frame(content: str) -> bytes:
    """One OpenAI-style SSE data frame carrying a delta."""
    payload = {"choices": [{"delta": {"content": content}}]}
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n".encode("utf-8")


DONE_FRAME = b"data: [DONE]\n\n"


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers every request it served."""

    def __init__(self, handler):
        self.requests = []

        def recording_handler(request):
            self.requests.append(request)
            return handler(request)

        super().__init__(recording_handler)


@pytest.fixture(autouse=True)
def restore_logging():
    """CLI tests may disable logging globally; undo it after each test."""
    yield
    logging.disable(logging.NOTSET)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def sample_logs():
    """Two days of entries, deliberately out of date order."""
    return {
        "2026-10-16": [
            LogEntry(id="3", content="Reviewed the release checklist",
                     tags={"release"}, created_at=datetime(2026, 10, 16, 17, 0)),
        ],
        "2026-10-14": [
            LogEntry(id="1", content="Fixed login timeout bug",
                     source="git-commit", created_at=datetime(2026, 10, 14, 10, 0)),
            LogEntry(id="2", content="Paired on the **billing** refactor",
                     created_at=datetime(2026, 10, 14, 15, 0)),
        ],
    }


@pytest.fixture
def local_config():
    return ProviderConfig(use_local=True, local_endpoint="http://localhost:11434", local_model="llama3")


@pytest.fixture
def openai_config():
    return ProviderConfig(
        use_local=False,
        remote_url="https://api.example.com/v1/chat/completions",
        remote_api_key="sk-test",
    )


@pytest.fixture
def dashscope_config():
    return ProviderConfig(
        use_local=False,
        remote_url="https://dashscope.aliyuncs.com/compatible-mode/v1/chat/completions",
        remote_api_key="sk-dash",
    )


@pytest.fixture
def ok_local_transport():
    return RecordingTransport(lambda request: httpx.Response(200, json={"response": "OK"}))


@pytest.fixture
def hello_world_transport():
    body = sse_frame("Hello ") + sse_frame("World") + DONE_FRAME
    return RecordingTransport(
        lambda request: httpx.Response(
            200, content=body, headers={"content-type": "text/event-stream"}
        )
    )
