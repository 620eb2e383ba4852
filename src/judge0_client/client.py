"""
Public lifecycle client: submit, await, and submit-and-await, single or batched.
"""

from __future__ import annotations

import random
import typing as t

import structlog

from judge0_client.batch import BatchCoordinator, BatchOutcome, validate_request
from judge0_client.codec import (
    decode_submission,
    decode_submission_request,
    decode_token,
    describe_error_response,
    encode_submission,
    format_flag,
    read_json,
)
from judge0_client.config import ClientConfig
from judge0_client.exceptions import (
    Judge0Error,
    MalformedResponse,
    SubmissionRejected,
    UnexpectedResponse,
)
from judge0_client.models import (
    BatchHandle,
    SubmissionRequest,
    SubmissionResult,
    SubmissionSnapshot,
    SubmissionToken,
)
from judge0_client.polling import Poller
from judge0_client.transport import HttpxTransport, Transport

log = structlog.get_logger(__name__)


class Judge0Client:
    """
    Client for the submission lifecycle of a Judge0 instance.

    Parameters
    ----------
    config : ClientConfig | None, optional
        Explicit configuration; defaults target a local instance.
    transport : Transport | None, optional
        Transport override; an ``HttpxTransport`` built from ``config`` by default.
    rng : random.Random | None, optional
        Random source for backoff jitter.

    Notes
    -----
    Use as an async context manager to release the underlying HTTP client:

    >>> async with Judge0Client(config=ClientConfig(base_url="http://judge0:2358")) as client:
    ...     result = await client.submit_and_await(request)
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        transport: Transport | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._config = config or ClientConfig()
        self._transport = transport or HttpxTransport(config=self._config)
        self._poller = Poller(transport=self._transport, config=self._config, rng=rng)
        self._batches = BatchCoordinator(
            transport=self._transport,
            config=self._config,
            poller=self._poller,
            submit_one=self.submit,
        )
        log.debug(
            event="Initialized Judge0Client",
            base_url=self._config.base_url,
            base64_encoded=self._config.base64_encoded,
            wait=self._config.wait,
            use_batch_endpoint=self._config.use_batch_endpoint,
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def __aenter__(self) -> Judge0Client:
        return self

    async def __aexit__(self, *exc_info: t.Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._transport.aclose()

    def _resolve_timeout(self, timeout: float | None) -> float:
        return self._config.default_timeout_seconds if timeout is None else timeout

    async def _create(self, request: SubmissionRequest, *, wait: bool) -> t.Any:
        reason = validate_request(
            request=request,
            supported_language_ids=self._config.supported_language_ids,
        )
        if reason is not None:
            raise SubmissionRejected(reason)

        response = await self._transport.send(
            method="POST",
            path="/submissions",
            params={
                "base64_encoded": format_flag(value=self._config.base64_encoded),
                "wait": format_flag(value=wait),
            },
            json=encode_submission(request=request, base64_encoded=self._config.base64_encoded),
        )
        if response.is_error:
            reason = describe_error_response(response=response)
            log.warning(
                event="Submission rejected",
                status_code=response.status_code,
                reason=reason,
            )
            raise SubmissionRejected(reason, status_code=response.status_code)
        return read_json(response=response)

    async def submit(self, request: SubmissionRequest) -> SubmissionToken:
        """
        Create a submission.

        Parameters
        ----------
        request : SubmissionRequest
            Code and input to run.

        Returns
        -------
        SubmissionToken
            Handle of the created submission.

        Raises
        ------
        SubmissionRejected
            If the request is invalid locally or the server refuses it.
        TransportError
            If the request could not be delivered. Creation is never retried.
        """
        payload = await self._create(request=request, wait=False)
        token = decode_token(payload=payload)
        log.info(event="Submission created", token=str(token), language_id=request.language_id)
        return token

    async def get_submission(self, token: SubmissionToken) -> SubmissionSnapshot:
        """Fetch the current state of a submission without polling."""
        return await self._poller.fetch(token)

    async def get_submission_request(self, token: SubmissionToken) -> SubmissionRequest:
        """
        Fetch the request a submission was created from.

        Parameters
        ----------
        token : SubmissionToken
            Submission to look up.

        Returns
        -------
        SubmissionRequest
            Source code, input and limits as stored by the server.

        Raises
        ------
        UnexpectedResponse
            If the server refuses the query, e.g. unknown token.
        MalformedResponse
            If the echoed fields do not form a valid request.
        """
        response = await self._transport.send(
            method="GET",
            path=f"/submissions/{token}",
            params={
                "base64_encoded": format_flag(value=self._config.base64_encoded),
                "fields": ",".join(SubmissionRequest.model_fields),
            },
        )
        if response.is_error:
            raise UnexpectedResponse(
                status_code=response.status_code,
                detail=describe_error_response(response=response),
            )
        return decode_submission_request(
            payload=read_json(response=response),
            base64_encoded=self._config.base64_encoded,
        )

    async def await_result(
        self,
        token: SubmissionToken,
        timeout: float | None = None,
    ) -> SubmissionResult:
        """
        Poll a submission until it finishes.

        Parameters
        ----------
        token : SubmissionToken
            Submission to await.
        timeout : float | None, optional
            Seconds to wait; the configured default when omitted.

        Returns
        -------
        SubmissionResult
            Final result.

        Raises
        ------
        PollingTimedOut
            If the submission did not finish in time.
        PollingFailed
            If transport failures exhausted the retry budget.
        """
        return await self._poller.poll(token, timeout=self._resolve_timeout(timeout=timeout))

    async def submit_and_await(
        self,
        request: SubmissionRequest,
        timeout: float | None = None,
    ) -> SubmissionResult:
        """
        Create a submission and wait for its result.

        Errors carry ``step="submit"`` or ``step="await"``.

        Parameters
        ----------
        request : SubmissionRequest
            Code and input to run.
        timeout : float | None, optional
            Seconds to wait for the result.

        Returns
        -------
        SubmissionResult
            Final result.
        """
        try:
            if self._config.wait:
                snapshot = decode_submission(
                    payload=await self._create(request=request, wait=True),
                    base64_encoded=self._config.base64_encoded,
                )
                if snapshot.status.is_terminal and snapshot.token is not None:
                    log.info(event="Submission finished while waiting", token=str(snapshot.token))
                    return snapshot.to_result()
                if snapshot.token is None:
                    raise MalformedResponse("Waited creation response has no token")
                token = snapshot.token
            else:
                token = await self.submit(request=request)
        except Judge0Error as error:
            error.with_step(step="submit")
            raise

        try:
            return await self.await_result(token=token, timeout=timeout)
        except Judge0Error as error:
            error.with_step(step="await")
            raise

    async def submit_batch(self, requests: t.Sequence[SubmissionRequest]) -> BatchHandle:
        """
        Submit several requests as one ordered batch.

        Raises
        ------
        BatchValidationError
            If any request is invalid locally; no remote call is made.
        """
        return await self._batches.submit(requests=requests)

    async def await_batch(
        self,
        handle: BatchHandle,
        timeout: float | None = None,
    ) -> list[BatchOutcome]:
        """
        Await every submission of a batch.

        Returns
        -------
        list[BatchOutcome]
            One result or error per input request, in input order.
        """
        return await self._batches.await_all(
            handle=handle,
            timeout=self._resolve_timeout(timeout=timeout),
        )
