"""
Judge0 client runtime exceptions.
"""

from __future__ import annotations

import typing as t

if t.TYPE_CHECKING:
    from judge0_client.models import SubmissionToken
    from judge0_client.status import SubmissionStatus

LifecycleStep = t.Literal["submit", "await"]


class Judge0Error(Exception):
    """
    Base class for every error raised by the client.

    Attributes
    ----------
    step : LifecycleStep | None
        Lifecycle step that failed, set by composed operations such as
        ``submit_and_await``.
    """

    step: LifecycleStep | None = None

    def with_step(self, step: LifecycleStep) -> Judge0Error:
        """
        Tag the error with the lifecycle step that raised it.

        Parameters
        ----------
        step : LifecycleStep
            Failed step.

        Returns
        -------
        Judge0Error
            The same error instance.
        """
        self.step = step
        return self


class TransportError(Judge0Error):
    """
    Network, DNS, TLS or server-side (5xx / 429) failure. Retryable.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedResponse(Judge0Error):
    """
    Response body did not match the expected wire contract. Not retryable.
    """


class UnexpectedResponse(Judge0Error):
    """
    Non-retryable HTTP error outside of submission creation (e.g. unknown token).
    """

    def __init__(self, *, status_code: int, detail: str) -> None:
        super().__init__(f"Unexpected HTTP {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class SubmissionRejected(Judge0Error):
    """
    Remote service refused to create a submission.
    """

    def __init__(self, reason: str, *, status_code: int | None = None) -> None:
        super().__init__(f"Submission rejected: {reason}")
        self.reason = reason
        self.status_code = status_code


class PollingTimedOut(Judge0Error):
    """
    No terminal status was observed before the deadline.

    Attributes
    ----------
    token : SubmissionToken
        Token being polled.
    last_status : SubmissionStatus | None
        Last status observed, ``None`` if no poll succeeded.
    timeout : float
        Timeout that elapsed, in seconds.
    """

    def __init__(
        self,
        *,
        token: SubmissionToken,
        last_status: SubmissionStatus | None,
        timeout: float,
    ) -> None:
        last = last_status.description if last_status is not None else "never observed"
        super().__init__(f"Submission {token} not finished after {timeout}s (last status: {last})")
        self.token = token
        self.last_status = last_status
        self.timeout = timeout


class PollingFailed(Judge0Error):
    """
    Transport failures exhausted the retry budget of a poll attempt.
    """

    def __init__(
        self,
        *,
        token: SubmissionToken,
        attempts: int,
        last_status: SubmissionStatus | None,
    ) -> None:
        super().__init__(f"Polling submission {token} failed after {attempts} attempt(s)")
        self.token = token
        self.attempts = attempts
        self.last_status = last_status


class BatchValidationError(Judge0Error):
    """
    A batch item failed local validation; nothing was sent.
    """

    def __init__(self, *, index: int, reason: str) -> None:
        super().__init__(f"Batch item {index} is invalid: {reason}")
        self.index = index
        self.reason = reason
