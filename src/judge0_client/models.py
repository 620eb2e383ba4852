from __future__ import annotations

import typing as t
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from judge0_client.exceptions import Judge0Error
from judge0_client.status import SubmissionStatus


class SubmissionRequest(BaseModel):
    """
    Source code plus input and limits for one remote execution.

    Optional fields left as ``None`` are omitted from the wire body so the
    server applies its own defaults.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    source_code: str
    language_id: int
    stdin: str | None = None
    expected_output: str | None = None
    cpu_time_limit: float | None = Field(default=None, description="seconds")
    cpu_extra_time: float | None = Field(default=None, description="seconds")
    wall_time_limit: float | None = Field(default=None, description="seconds")
    memory_limit: int | None = Field(default=None, description="kilobytes")
    stack_limit: int | None = Field(default=None, description="kilobytes")
    compiler_options: str | None = None
    command_line_arguments: str | None = None
    redirect_stderr_to_stdout: bool | None = None


@dataclass(frozen=True)
class SubmissionToken:
    """
    Opaque handle of one remote submission.
    """

    value: str

    def __str__(self) -> str:
        return self.value


class SubmissionResult(BaseModel):
    """Final outcome of a submission; only built for terminal statuses."""

    model_config = ConfigDict(frozen=True)

    token: SubmissionToken
    status: SubmissionStatus
    stdout: str | None = None
    stderr: str | None = None
    compile_output: str | None = None
    message: str | None = None
    exit_code: int | None = None
    exit_signal: int | None = None
    time: float | None = None
    wall_time: float | None = None
    memory: int | None = None


class SubmissionSnapshot(BaseModel):
    """
    A single decoded observation of a submission.

    Fields other than ``status`` may be partially populated while the
    submission is still queued or running.
    """

    model_config = ConfigDict(frozen=True)

    token: SubmissionToken | None = None
    status: SubmissionStatus
    stdout: str | None = None
    stderr: str | None = None
    compile_output: str | None = None
    message: str | None = None
    exit_code: int | None = None
    exit_signal: int | None = None
    time: float | None = None
    wall_time: float | None = None
    memory: int | None = None

    def to_result(self, *, token: SubmissionToken | None = None) -> SubmissionResult:
        """
        Materialize the final result.

        Parameters
        ----------
        token : SubmissionToken | None, optional
            Token to attach when the payload did not echo it.

        Returns
        -------
        SubmissionResult
            Final result.

        Raises
        ------
        ValueError
            If the observed status is not terminal.
        """
        if not self.status.is_terminal:
            raise ValueError(f"Cannot build a result from non-terminal status {self.status}")
        resolved_token = self.token or token
        if resolved_token is None:
            raise ValueError("Cannot build a result without a submission token")
        fields = self.model_dump(exclude={"token", "status"})
        return SubmissionResult(token=resolved_token, status=self.status, **fields)


BatchSlot = t.Union[SubmissionToken, Judge0Error]


@dataclass(frozen=True)
class BatchHandle:
    """
    Ordered submission slots, one per input request.

    A slot holds the token of the created job, or the error that prevented
    the job from being created.
    """

    slots: tuple[BatchSlot, ...]

    def __len__(self) -> int:
        return len(self.slots)

    @property
    def tokens(self) -> list[SubmissionToken | None]:
        return [slot if isinstance(slot, SubmissionToken) else None for slot in self.slots]

    @property
    def failures(self) -> dict[int, Judge0Error]:
        return {
            index: slot for index, slot in enumerate(self.slots) if isinstance(slot, Judge0Error)
        }
