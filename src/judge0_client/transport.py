"""
HTTP transport boundary.

The rest of the package only depends on the ``Transport`` protocol; the httpx
implementation injects the base URL and authentication headers and turns
network failures and retryable HTTP statuses into ``TransportError``.
"""

from __future__ import annotations

import typing as t

import httpx
import structlog

from judge0_client.config import ClientConfig
from judge0_client.exceptions import MalformedResponse, TransportError

log = structlog.get_logger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429})


class Transport(t.Protocol):
    """
    Capability the client core needs from an HTTP stack.
    """

    async def send(
        self,
        *,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        json: t.Any = None,
    ) -> httpx.Response: ...

    async def aclose(self) -> None: ...


def is_retryable_status(status_code: int) -> bool:
    return status_code >= 500 or status_code in RETRYABLE_STATUS_CODES


class HttpxTransport:
    """
    ``Transport`` backed by a shared ``httpx.AsyncClient``.

    Parameters
    ----------
    config : ClientConfig
        Base URL, auth headers and request timeout.
    client_factory : typing.Callable[[], httpx.AsyncClient] | None, optional
        Factory of the underlying client; tests inject a client bound to an
        ``httpx.MockTransport``.
    """

    def __init__(
        self,
        *,
        config: ClientConfig,
        client_factory: t.Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self._base_url = config.base_url
        self._headers = {"Accept": "application/json", **config.auth_headers()}
        self._client_factory: t.Callable[[], httpx.AsyncClient] = client_factory or (
            lambda: httpx.AsyncClient(timeout=config.request_timeout_seconds)
        )
        self._client: httpx.AsyncClient | None = None
        log.debug(
            event="Initialized transport",
            base_url=self._base_url,
            header_keys=list(self._headers.keys()),
        )

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = self._client_factory()
        return self._client

    async def send(
        self,
        *,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        json: t.Any = None,
    ) -> httpx.Response:
        """
        Send one request.

        Parameters
        ----------
        method : str
            HTTP method.
        path : str
            Path relative to the configured base URL.
        params : dict[str, str] | None, optional
            Query parameters.
        json : typing.Any, optional
            JSON body.

        Returns
        -------
        httpx.Response
            Response with a non-retryable status (2xx or 4xx).

        Raises
        ------
        TransportError
            On network failures, redirect loops, 5xx and 429 responses.
        MalformedResponse
            If the body cannot be decoded per its ``Content-Encoding``.
        """
        url = f"{self._base_url}{path}"
        try:
            response = await self._get_client().request(
                method=method,
                url=url,
                params=params,
                json=json,
                headers=self._headers,
            )
        except httpx.DecodingError as error:
            log.warning(
                event="Transport response undecodable",
                method=method,
                url=url,
                error=str(object=error),
            )
            raise MalformedResponse(f"{method} {url} body could not be decoded: {error}") from error
        except httpx.RequestError as error:
            log.warning(
                event="Transport request failed",
                method=method,
                url=url,
                error=str(object=error),
            )
            raise TransportError(f"{method} {url} failed: {error}") from error

        log.debug(
            event="Transport response",
            method=method,
            url=url,
            status_code=response.status_code,
        )
        if is_retryable_status(status_code=response.status_code):
            raise TransportError(
                f"{method} {url} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return response

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
