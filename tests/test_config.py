import pydantic
import pytest

from judge0_client.config import BackoffPolicy, ClientConfig


def test_defaults_match_judge0_conventions():
    config = ClientConfig()

    assert config.base_url == "http://localhost:2358"
    assert config.authentication_header_name == "X-Auth-Token"
    assert config.authorization_header_name == "X-Auth-User"
    assert config.auth_headers() == {}
    assert config.wait is False


def test_base_url_is_normalized():
    assert ClientConfig(base_url="judge0.example.com/").base_url == "http://judge0.example.com"
    assert ClientConfig(base_url="https://ce.judge0.com").base_url == "https://ce.judge0.com"


def test_auth_headers_use_configured_names():
    config = ClientConfig(
        authentication_header_name="X-RapidAPI-Key",
        authentication_token="secret",
        authorization_token="admin",
    )

    assert config.auth_headers() == {"X-RapidAPI-Key": "secret", "X-Auth-User": "admin"}
    assert "secret" not in repr(config)


def test_config_is_immutable():
    config = ClientConfig()

    with pytest.raises(expected_exception=pydantic.ValidationError):
        config.base_url = "http://other"


def test_backoff_bounds_are_validated():
    with pytest.raises(expected_exception=pydantic.ValidationError):
        BackoffPolicy(base_interval_seconds=2.0, max_interval_seconds=1.0)
    with pytest.raises(expected_exception=pydantic.ValidationError):
        BackoffPolicy(jitter=1.5)


def test_from_env_reads_prefixed_variables():
    config = ClientConfig.from_env(
        environ={
            "JUDGE0_BASE_URL": "http://judge0.internal:2358",
            "JUDGE0_AUTHENTICATION_TOKEN": "token",
            "JUDGE0_BASE64_ENCODED": "true",
            "JUDGE0_MAX_BATCH_CONCURRENCY": "3",
            "JUDGE0_SUPPORTED_LANGUAGE_IDS": "71, 54",
            "JUDGE0_BACKOFF_MAX_INTERVAL_SECONDS": "2.5",
            "UNRELATED": "x",
        }
    )

    assert config.base_url == "http://judge0.internal:2358"
    assert config.auth_headers() == {"X-Auth-Token": "token"}
    assert config.base64_encoded is True
    assert config.max_batch_concurrency == 3
    assert config.supported_language_ids == frozenset({71, 54})
    assert config.backoff.max_interval_seconds == 2.5


def test_from_env_overrides_win(monkeypatch):
    monkeypatch.setenv("JUDGE0_BASE_URL", "http://from-env")

    config = ClientConfig.from_env(base_url="http://explicit")

    assert config.base_url == "http://explicit"


def test_from_env_reports_invalid_values_as_validation_errors():
    with pytest.raises(expected_exception=pydantic.ValidationError):
        ClientConfig.from_env(environ={"JUDGE0_SUPPORTED_LANGUAGE_IDS": "71,python"})
    with pytest.raises(expected_exception=pydantic.ValidationError):
        ClientConfig.from_env(environ={"JUDGE0_MAX_BATCH_CONCURRENCY": "zero"})
