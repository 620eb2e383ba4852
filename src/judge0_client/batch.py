"""
Batch coordinator: validates, submits and awaits ordered groups of submissions.

Outcomes are always written into the slot of their input index, so callers can
zip requests with results regardless of remote completion order.
"""

from __future__ import annotations

import asyncio
import typing as t

import structlog

from judge0_client.codec import (
    decode_batch_creation,
    describe_error_response,
    encode_submission,
    format_flag,
    read_json,
)
from judge0_client.config import ClientConfig
from judge0_client.exceptions import (
    BatchValidationError,
    Judge0Error,
    PollingTimedOut,
    SubmissionRejected,
)
from judge0_client.models import (
    BatchHandle,
    BatchSlot,
    SubmissionRequest,
    SubmissionResult,
    SubmissionToken,
)
from judge0_client.polling import Poller
from judge0_client.transport import Transport
from judge0_client.utils.logging import logging_context

log = structlog.get_logger(__name__)

BatchOutcome = t.Union[SubmissionResult, Judge0Error]


def validate_request(
    request: SubmissionRequest,
    *,
    supported_language_ids: t.AbstractSet[int] | None = None,
) -> str | None:
    """
    Check a request locally before it is sent.

    Parameters
    ----------
    request : SubmissionRequest
        Request to check.
    supported_language_ids : typing.AbstractSet[int] | None, optional
        Language ids accepted by the target instance, if known.

    Returns
    -------
    str | None
        Reason the request is invalid, ``None`` when it is valid.
    """
    if not request.source_code.strip():
        return "source_code is empty"
    if request.language_id <= 0:
        return f"language_id {request.language_id} is not a positive integer"
    if supported_language_ids is not None and request.language_id not in supported_language_ids:
        return f"language_id {request.language_id} is not supported"
    for field in (
        "cpu_time_limit",
        "cpu_extra_time",
        "wall_time_limit",
        "memory_limit",
        "stack_limit",
    ):
        value = getattr(request, field)
        if value is not None and value <= 0:
            return f"{field} must be positive, got {value}"
    return None


class BatchCoordinator:
    """
    Submit and await ordered batches of submissions.

    Parameters
    ----------
    transport : Transport
        HTTP transport.
    config : ClientConfig
        Batch size, concurrency and endpoint settings.
    poller : Poller
        Polling engine used for each item.
    submit_one : typing.Callable[[SubmissionRequest], typing.Awaitable[SubmissionToken]]
        Single-submission operation used when the batch endpoint is disabled.
    """

    def __init__(
        self,
        *,
        transport: Transport,
        config: ClientConfig,
        poller: Poller,
        submit_one: t.Callable[[SubmissionRequest], t.Awaitable[SubmissionToken]],
    ) -> None:
        self._transport = transport
        self._config = config
        self._poller = poller
        self._submit_one = submit_one
        self._gate = asyncio.Semaphore(value=config.max_batch_concurrency)

    def validate(self, requests: t.Sequence[SubmissionRequest]) -> None:
        """
        Validate every request of a batch.

        Raises
        ------
        BatchValidationError
            For the first invalid request, identified by its index.
        """
        for index, request in enumerate(requests):
            reason = validate_request(
                request=request,
                supported_language_ids=self._config.supported_language_ids,
            )
            if reason is not None:
                log.warning(event="Batch validation failed", index=index, reason=reason)
                raise BatchValidationError(index=index, reason=reason)

    async def submit(self, requests: t.Sequence[SubmissionRequest]) -> BatchHandle:
        """
        Submit a batch.

        Parameters
        ----------
        requests : typing.Sequence[SubmissionRequest]
            Requests in caller order.

        Returns
        -------
        BatchHandle
            One slot per request, in input order.

        Raises
        ------
        BatchValidationError
            If any request is invalid; nothing is sent.
        Judge0Error
            If no submission at all could be created.
        """
        self.validate(requests=requests)
        if not requests:
            return BatchHandle(slots=())

        slots: list[BatchSlot | None] = [None] * len(requests)
        mode = "batch_endpoint" if self._config.use_batch_endpoint else "fan_out"
        log.info(event="Submitting batch", request_count=len(requests), mode=mode)

        async with asyncio.TaskGroup() as group:
            if self._config.use_batch_endpoint:
                size = self._config.max_batch_size
                for start in range(0, len(requests), size):
                    group.create_task(
                        self._submit_chunk(
                            start=start,
                            requests=requests[start : start + size],
                            slots=slots,
                        ),
                        name=f"judge0_batch_chunk_{start}",
                    )
            else:
                for index, request in enumerate(requests):
                    group.create_task(
                        self._submit_single(index=index, request=request, slots=slots),
                        name=f"judge0_batch_item_{index}",
                    )

        handle = BatchHandle(slots=tuple(t.cast(BatchSlot, slot) for slot in slots))
        failures = handle.failures
        if len(failures) == len(handle):
            # nothing was created remotely, so nothing is lost by raising
            raise failures[0]
        log.info(
            event="Batch submitted",
            request_count=len(handle),
            failed_count=len(failures),
        )
        return handle

    async def _submit_chunk(
        self,
        *,
        start: int,
        requests: t.Sequence[SubmissionRequest],
        slots: list[BatchSlot | None],
    ) -> None:
        body = {
            "submissions": [
                encode_submission(request=request, base64_encoded=self._config.base64_encoded)
                for request in requests
            ]
        }
        try:
            async with self._gate:
                response = await self._transport.send(
                    method="POST",
                    path="/submissions/batch",
                    params={"base64_encoded": format_flag(value=self._config.base64_encoded)},
                    json=body,
                )
            if response.is_error:
                raise SubmissionRejected(
                    describe_error_response(response=response),
                    status_code=response.status_code,
                )
            entries = decode_batch_creation(
                payload=read_json(response=response),
                count=len(requests),
            )
        except Judge0Error as error:
            log.error(
                event="Batch chunk submission failed",
                start=start,
                chunk_size=len(requests),
                error=str(object=error),
            )
            for offset in range(len(requests)):
                slots[start + offset] = error
            return

        for offset, entry in enumerate(entries):
            if isinstance(entry, SubmissionToken):
                slots[start + offset] = entry
            else:
                log.warning(event="Batch item rejected", index=start + offset, reason=entry)
                slots[start + offset] = SubmissionRejected(entry)
        log.debug(event="Batch chunk submitted", start=start, chunk_size=len(requests))

    async def _submit_single(
        self,
        *,
        index: int,
        request: SubmissionRequest,
        slots: list[BatchSlot | None],
    ) -> None:
        try:
            async with self._gate:
                slots[index] = await self._submit_one(request)
        except Judge0Error as error:
            log.warning(event="Batch item submission failed", index=index, error=str(error))
            slots[index] = error

    async def await_all(
        self,
        handle: BatchHandle,
        *,
        timeout: float,
    ) -> list[BatchOutcome]:
        """
        Await every submission of a batch.

        Parameters
        ----------
        handle : BatchHandle
            Handle returned by ``submit``.
        timeout : float
            Seconds allowed for the whole batch, measured from this call.

        Returns
        -------
        list[BatchOutcome]
            Exactly one outcome per slot, in input order: a result, or the
            error of that item.
        """
        outcomes: list[BatchOutcome | None] = [None] * len(handle)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        async def _await_slot(index: int, slot: BatchSlot) -> None:
            if isinstance(slot, Judge0Error):
                outcomes[index] = slot
                return
            remaining = deadline - loop.time()
            if remaining <= 0:
                outcomes[index] = PollingTimedOut(token=slot, last_status=None, timeout=timeout)
                return
            try:
                outcomes[index] = await self._poller.poll(slot, timeout=remaining, gate=self._gate)
            except Judge0Error as error:
                outcomes[index] = error

        with logging_context(batch_size=len(handle)):
            log.info(event="Awaiting batch", timeout=timeout)
            async with asyncio.TaskGroup() as group:
                for index, slot in enumerate(handle.slots):
                    group.create_task(_await_slot(index, slot), name=f"judge0_await_item_{index}")

        resolved = t.cast(list[BatchOutcome], outcomes)
        log.info(
            event="Batch finished",
            request_count=len(resolved),
            failed_count=sum(isinstance(outcome, Judge0Error) for outcome in resolved),
        )
        return resolved
