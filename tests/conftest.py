import os
import typing as t

import httpx
import pytest

from judge0_client.client import Judge0Client
from judge0_client.config import BackoffPolicy, ClientConfig
from judge0_client.transport import HttpxTransport
from tests.mocks.judge0 import FakeJudge0API, make_judge0_transport

BASE_URL = "http://judge0.test"


@pytest.fixture(autouse=True)
def test_clear_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("JUDGE0_"):
            monkeypatch.delenv(key)


@pytest.fixture
def fast_backoff() -> BackoffPolicy:
    return BackoffPolicy(base_interval_seconds=0.001, max_interval_seconds=0.005, jitter=0.0)


@pytest.fixture
def make_config(fast_backoff: BackoffPolicy) -> t.Callable[..., ClientConfig]:
    """
    Build a test configuration pointing at the fake API.
    """

    def _make_config(**overrides: t.Any) -> ClientConfig:
        values: dict[str, t.Any] = {
            "base_url": BASE_URL,
            "backoff": fast_backoff,
            "default_timeout_seconds": 2.0,
        }
        values.update(overrides)
        return ClientConfig(**values)

    return _make_config


@pytest.fixture
def fake_api() -> FakeJudge0API:
    return FakeJudge0API()


@pytest.fixture
def make_client(
    make_config: t.Callable[..., ClientConfig],
) -> t.Callable[..., Judge0Client]:
    """
    Build a client whose transport is served by a fake Judge0 API.
    """

    def _make_client(api: FakeJudge0API, **overrides: t.Any) -> Judge0Client:
        config = make_config(**overrides)
        transport = HttpxTransport(
            config=config,
            client_factory=lambda: httpx.AsyncClient(transport=make_judge0_transport(api=api)),
        )
        return Judge0Client(config=config, transport=transport)

    return _make_client
