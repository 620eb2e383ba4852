"""
Polling engine driving a submission token to a terminal status.
"""

from __future__ import annotations

import asyncio
import contextlib
import random
from dataclasses import dataclass

import structlog

from judge0_client.backoff import compute_delay
from judge0_client.codec import RESULT_FIELDS, decode_submission, format_flag, read_json
from judge0_client.config import ClientConfig
from judge0_client.exceptions import (
    PollingFailed,
    PollingTimedOut,
    TransportError,
    UnexpectedResponse,
)
from judge0_client.models import SubmissionResult, SubmissionSnapshot, SubmissionToken
from judge0_client.status import StatusKind, SubmissionStatus
from judge0_client.transport import Transport
from judge0_client.utils.logging import logging_context

log = structlog.get_logger(__name__)


@dataclass
class _PollState:
    """Mutable progress of one poll loop, kept outside the loop so a timeout can read it."""

    token: SubmissionToken
    last_status: SubmissionStatus | None = None
    polls: int = 0


class Poller:
    """
    Poll submissions until they reach a terminal status.

    Each ``poll`` call owns its own token, backoff counter and retry budget;
    concurrent calls share nothing but the optional request gate.

    Parameters
    ----------
    transport : Transport
        HTTP transport.
    config : ClientConfig
        Backoff, retry budget and base64 settings.
    rng : random.Random | None, optional
        Random source for backoff jitter.
    """

    def __init__(
        self,
        *,
        transport: Transport,
        config: ClientConfig,
        rng: random.Random | None = None,
    ) -> None:
        self._transport = transport
        self._config = config
        self._rng = rng

    async def fetch(
        self,
        token: SubmissionToken,
        *,
        gate: asyncio.Semaphore | None = None,
    ) -> SubmissionSnapshot:
        """
        Query the current status of a submission once.

        Parameters
        ----------
        token : SubmissionToken
            Submission to query.
        gate : asyncio.Semaphore | None, optional
            Admission gate held for the duration of the request.

        Returns
        -------
        SubmissionSnapshot
            Decoded observation.

        Raises
        ------
        TransportError
            Network failure or retryable HTTP status.
        UnexpectedResponse
            Non-retryable HTTP error, e.g. unknown token.
        MalformedResponse
            Body does not match the wire contract.
        """
        async with gate if gate is not None else contextlib.nullcontext():
            response = await self._transport.send(
                method="GET",
                path=f"/submissions/{token}",
                params={
                    "base64_encoded": format_flag(value=self._config.base64_encoded),
                    "fields": ",".join(RESULT_FIELDS),
                },
            )
        if response.is_error:
            raise UnexpectedResponse(
                status_code=response.status_code,
                detail=response.text[:200],
            )
        return decode_submission(
            payload=read_json(response=response),
            base64_encoded=self._config.base64_encoded,
        )

    async def poll(
        self,
        token: SubmissionToken,
        *,
        timeout: float,
        gate: asyncio.Semaphore | None = None,
    ) -> SubmissionResult:
        """
        Poll a submission until its status is terminal.

        Parameters
        ----------
        token : SubmissionToken
            Submission to poll.
        timeout : float
            Seconds allowed for the whole loop, retries and sleeps included.
        gate : asyncio.Semaphore | None, optional
            Admission gate shared with other poll loops.

        Returns
        -------
        SubmissionResult
            Result built from the first terminal observation.

        Raises
        ------
        PollingTimedOut
            Deadline reached first; carries the last observed status.
        PollingFailed
            A poll attempt exhausted its transport retry budget.
        """
        state = _PollState(token=token)
        with logging_context(token=str(token)):
            log.debug(event="Polling submission", timeout=timeout)
            try:
                async with asyncio.timeout(delay=timeout):
                    return await self._poll_until_terminal(state=state, gate=gate)
            except TimeoutError:
                log.info(
                    event="Polling timed out",
                    timeout=timeout,
                    polls=state.polls,
                    last_status=str(state.last_status) if state.last_status else None,
                )
                raise PollingTimedOut(
                    token=token,
                    last_status=state.last_status,
                    timeout=timeout,
                ) from None
            except asyncio.CancelledError:
                log.debug(event="Polling cancelled", polls=state.polls)
                raise

    async def _poll_until_terminal(
        self,
        *,
        state: _PollState,
        gate: asyncio.Semaphore | None,
    ) -> SubmissionResult:
        attempt = 0
        while True:
            snapshot = await self._fetch_with_retries(state=state, gate=gate)
            self._record(state=state, status=snapshot.status)
            if snapshot.status.is_terminal:
                log.info(
                    event="Submission reached terminal status",
                    status=str(snapshot.status),
                    polls=state.polls,
                )
                return snapshot.to_result(token=state.token)

            delay = compute_delay(policy=self._config.backoff, attempt=attempt, rng=self._rng)
            attempt += 1
            log.debug(event="Submission not finished", status=str(snapshot.status), delay=delay)
            await asyncio.sleep(delay=delay)

    async def _fetch_with_retries(
        self,
        *,
        state: _PollState,
        gate: asyncio.Semaphore | None,
    ) -> SubmissionSnapshot:
        failures = 0
        while True:
            try:
                snapshot = await self.fetch(state.token, gate=gate)
            except TransportError as error:
                failures += 1
                if failures > self._config.max_poll_retries:
                    log.error(
                        event="Poll retries exhausted",
                        attempts=failures,
                        error=str(object=error),
                    )
                    raise PollingFailed(
                        token=state.token,
                        attempts=failures,
                        last_status=state.last_status,
                    ) from error
                delay = compute_delay(
                    policy=self._config.backoff,
                    attempt=failures - 1,
                    rng=self._rng,
                )
                log.warning(
                    event="Poll attempt failed, retrying",
                    attempt=failures,
                    delay=delay,
                    error=str(object=error),
                )
                await asyncio.sleep(delay=delay)
                continue
            state.polls += 1
            return snapshot

    @staticmethod
    def _record(*, state: _PollState, status: SubmissionStatus) -> None:
        previous = state.last_status
        if (
            previous is not None
            and previous.kind is StatusKind.PROCESSING
            and status.kind is StatusKind.IN_QUEUE
        ):
            log.warning(event="Submission status moved backwards", previous=str(previous))
        state.last_status = status
