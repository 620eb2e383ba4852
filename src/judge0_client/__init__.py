from .client import Judge0Client as Judge0Client
from .config import BackoffPolicy as BackoffPolicy
from .config import ClientConfig as ClientConfig
from .exceptions import BatchValidationError as BatchValidationError
from .exceptions import Judge0Error as Judge0Error
from .exceptions import MalformedResponse as MalformedResponse
from .exceptions import PollingFailed as PollingFailed
from .exceptions import PollingTimedOut as PollingTimedOut
from .exceptions import SubmissionRejected as SubmissionRejected
from .exceptions import TransportError as TransportError
from .exceptions import UnexpectedResponse as UnexpectedResponse
from .models import BatchHandle as BatchHandle
from .models import SubmissionRequest as SubmissionRequest
from .models import SubmissionResult as SubmissionResult
from .models import SubmissionSnapshot as SubmissionSnapshot
from .models import SubmissionToken as SubmissionToken
from .status import StatusKind as StatusKind
from .status import SubmissionStatus as SubmissionStatus

__all__ = [
    "Judge0Client",
    "ClientConfig",
    "BackoffPolicy",
    "SubmissionRequest",
    "SubmissionToken",
    "SubmissionResult",
    "SubmissionSnapshot",
    "SubmissionStatus",
    "StatusKind",
    "BatchHandle",
    "Judge0Error",
    "TransportError",
    "MalformedResponse",
    "UnexpectedResponse",
    "SubmissionRejected",
    "PollingTimedOut",
    "PollingFailed",
    "BatchValidationError",
]
