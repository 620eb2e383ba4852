from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class StatusKind(str, Enum):
    IN_QUEUE = "in_queue"
    PROCESSING = "processing"
    ACCEPTED = "accepted"
    WRONG_ANSWER = "wrong_answer"
    TIME_LIMIT_EXCEEDED = "time_limit_exceeded"
    COMPILATION_ERROR = "compilation_error"
    RUNTIME_ERROR = "runtime_error"
    INTERNAL_ERROR = "internal_error"
    EXEC_FORMAT_ERROR = "exec_format_error"
    UNKNOWN = "unknown"


_KIND_BY_CODE: dict[int, StatusKind] = {
    1: StatusKind.IN_QUEUE,
    2: StatusKind.PROCESSING,
    3: StatusKind.ACCEPTED,
    4: StatusKind.WRONG_ANSWER,
    5: StatusKind.TIME_LIMIT_EXCEEDED,
    6: StatusKind.COMPILATION_ERROR,
    7: StatusKind.RUNTIME_ERROR,
    8: StatusKind.RUNTIME_ERROR,
    9: StatusKind.RUNTIME_ERROR,
    10: StatusKind.RUNTIME_ERROR,
    11: StatusKind.RUNTIME_ERROR,
    12: StatusKind.RUNTIME_ERROR,
    13: StatusKind.INTERNAL_ERROR,
    14: StatusKind.EXEC_FORMAT_ERROR,
}

_RUNTIME_SIGNALS: dict[int, str] = {
    7: "SIGSEGV",
    8: "SIGXFSZ",
    9: "SIGFPE",
    10: "SIGABRT",
    11: "NZEC",
    12: "Other",
}

_DEFAULT_DESCRIPTIONS: dict[int, str] = {
    1: "In Queue",
    2: "Processing",
    3: "Accepted",
    4: "Wrong Answer",
    5: "Time Limit Exceeded",
    6: "Compilation Error",
    7: "Runtime Error (SIGSEGV)",
    8: "Runtime Error (SIGXFSZ)",
    9: "Runtime Error (SIGFPE)",
    10: "Runtime Error (SIGABRT)",
    11: "Runtime Error (NZEC)",
    12: "Runtime Error (Other)",
    13: "Internal Error",
    14: "Exec Format Error",
}

NON_TERMINAL_KINDS = frozenset({StatusKind.IN_QUEUE, StatusKind.PROCESSING})


@dataclass(frozen=True)
class SubmissionStatus:
    """
    One observed Judge0 status.

    Unknown codes are kept as ``StatusKind.UNKNOWN`` with the raw code so newer
    servers do not break decoding. Unknown statuses count as terminal.

    Parameters
    ----------
    code : int
        Raw status id reported by the server.
    description : str
        Server-provided description, or the default one for known codes.
    """

    code: int
    description: str = ""

    @classmethod
    def from_code(cls, code: int, description: str | None = None) -> SubmissionStatus:
        if not description:
            description = _DEFAULT_DESCRIPTIONS.get(code, f"Unknown Status ({code})")
        return cls(code=code, description=description)

    @property
    def kind(self) -> StatusKind:
        return _KIND_BY_CODE.get(self.code, StatusKind.UNKNOWN)

    @property
    def signal(self) -> str | None:
        """Signal name for runtime errors, ``None`` otherwise."""
        return _RUNTIME_SIGNALS.get(self.code)

    @property
    def is_terminal(self) -> bool:
        return self.kind not in NON_TERMINAL_KINDS

    @property
    def is_accepted(self) -> bool:
        return self.kind is StatusKind.ACCEPTED

    def __str__(self) -> str:
        return f"{self.description} ({self.code})"
