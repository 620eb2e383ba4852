"""
Explicit client configuration.

Nothing here reads process state implicitly; ``ClientConfig.from_env`` is an
opt-in constructor used by the CLI.
"""

from __future__ import annotations

import os
import typing as t

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator, model_validator

ENV_PREFIX = "JUDGE0_"


class BackoffPolicy(BaseModel):
    """
    Exponential backoff schedule shared by polls and poll retries.

    Parameters
    ----------
    base_interval_seconds : float
        Delay before the second attempt.
    max_interval_seconds : float
        Upper bound of any single delay, before jitter.
    multiplier : float
        Growth factor applied per attempt.
    jitter : float
        Proportional jitter in ``[0, 1]``; ``0.1`` spreads each delay by +/-10%.
    """

    model_config = ConfigDict(frozen=True)

    base_interval_seconds: float = Field(default=0.1, gt=0)
    max_interval_seconds: float = Field(default=5.0, gt=0)
    multiplier: float = Field(default=2.0, ge=1.0)
    jitter: float = Field(default=0.1, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def check_bounds(self) -> BackoffPolicy:
        if self.max_interval_seconds < self.base_interval_seconds:
            raise ValueError("max_interval_seconds must be >= base_interval_seconds")
        return self


class ClientConfig(BaseModel):
    """
    Connection, authentication and lifecycle settings for ``Judge0Client``.
    """

    model_config = ConfigDict(frozen=True)

    base_url: str = "http://localhost:2358"
    # X-Auth-Token / X-Auth-User are the server defaults; instances may rename them.
    authentication_header_name: str = "X-Auth-Token"
    authentication_token: SecretStr | None = None
    authorization_header_name: str = "X-Auth-User"
    authorization_token: SecretStr | None = None
    base64_encoded: bool = False
    wait: bool = Field(
        default=False,
        description="ask the server to hold creation requests until the run finishes",
    )
    default_timeout_seconds: float = Field(default=60.0, gt=0)
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    backoff: BackoffPolicy = Field(default_factory=BackoffPolicy)
    max_poll_retries: int = Field(default=3, ge=0)
    max_batch_size: int = Field(default=20, ge=1)
    max_batch_concurrency: int = Field(default=8, ge=1)
    use_batch_endpoint: bool = True
    supported_language_ids: frozenset[int] | None = None

    @field_validator("base_url")
    @classmethod
    def normalize_base_url(cls, value: str) -> str:
        stripped = value.strip().rstrip("/")
        if not stripped:
            raise ValueError("base_url cannot be empty")
        if "://" not in stripped:
            stripped = f"http://{stripped}"
        return stripped

    def auth_headers(self) -> dict[str, str]:
        """
        Build authentication and authorization headers.

        Returns
        -------
        dict[str, str]
            Headers to inject into every request.
        """
        headers: dict[str, str] = {}
        if self.authentication_token is not None:
            headers[self.authentication_header_name] = (
                self.authentication_token.get_secret_value()
            )
        if self.authorization_token is not None:
            headers[self.authorization_header_name] = self.authorization_token.get_secret_value()
        return headers

    @classmethod
    def from_env(
        cls,
        *,
        environ: t.Mapping[str, str] | None = None,
        **overrides: t.Any,
    ) -> ClientConfig:
        """
        Build a configuration from ``JUDGE0_*`` environment variables.

        Parameters
        ----------
        environ : typing.Mapping[str, str] | None, optional
            Mapping to read instead of ``os.environ``.
        **overrides : typing.Any
            Explicit values that take precedence over the environment.

        Returns
        -------
        ClientConfig
            Validated configuration.
        """
        source = os.environ if environ is None else environ
        values: dict[str, t.Any] = {}
        backoff: dict[str, t.Any] = {}
        for name in cls.model_fields:
            raw = source.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is None or name == "backoff":
                continue
            if name == "supported_language_ids":
                values[name] = [part.strip() for part in raw.split(",") if part.strip()]
            else:
                values[name] = raw
        for name in BackoffPolicy.model_fields:
            raw = source.get(f"{ENV_PREFIX}BACKOFF_{name.upper()}")
            if raw is not None:
                backoff[name] = raw
        if backoff:
            values["backoff"] = BackoffPolicy(**backoff)
        values.update(overrides)
        return cls(**values)
