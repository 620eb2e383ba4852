"""
Wire encoding of submission requests and decoding of Judge0 responses.
"""

from __future__ import annotations

import base64
import binascii
import typing as t

import httpx
import structlog
from pydantic import ValidationError

from judge0_client.exceptions import MalformedResponse
from judge0_client.models import SubmissionRequest, SubmissionSnapshot, SubmissionToken
from judge0_client.status import SubmissionStatus

log = structlog.get_logger(__name__)

ENCODED_REQUEST_FIELDS = ("source_code", "stdin", "expected_output")
ENCODED_RESPONSE_FIELDS = ("stdout", "stderr", "compile_output", "message")
RESULT_FIELDS = (
    "token",
    "status",
    "stdout",
    "stderr",
    "compile_output",
    "message",
    "exit_code",
    "exit_signal",
    "time",
    "wall_time",
    "memory",
)


def _b64encode(value: str) -> str:
    return base64.b64encode(value.encode(encoding="utf-8")).decode(encoding="ascii")


def _b64decode(*, field: str, value: str) -> str:
    if not isinstance(value, str):
        raise MalformedResponse(f"Field {field!r} is not a base64 string")
    try:
        # Judge0 wraps base64 output every 60 characters
        raw = base64.b64decode("".join(value.split()), validate=True)
    except (binascii.Error, ValueError) as error:
        raise MalformedResponse(f"Field {field!r} is not valid base64") from error
    try:
        return raw.decode(encoding="utf-8")
    except UnicodeDecodeError:
        log.warning(
            event="Replaced non UTF-8 bytes in decoded field",
            field=field,
            byte_count=len(raw),
        )
        return raw.decode(encoding="utf-8", errors="replace")


def encode_submission(
    request: SubmissionRequest,
    *,
    base64_encoded: bool = False,
) -> dict[str, t.Any]:
    """
    Build the JSON body of a creation request.

    Parameters
    ----------
    request : SubmissionRequest
        Request to encode.
    base64_encoded : bool, optional
        Base64 encode text fields.

    Returns
    -------
    dict[str, typing.Any]
        Body with unset optional fields omitted.
    """
    body = request.model_dump(exclude_none=True)
    if base64_encoded:
        for field in ENCODED_REQUEST_FIELDS:
            if field in body:
                body[field] = _b64encode(body[field])
    return body


def decode_status(payload: t.Mapping[str, t.Any]) -> SubmissionStatus:
    """
    Extract the status of a submission payload.

    Accepts the nested ``{"status": {"id", "description"}}`` shape and the flat
    ``status_id`` / ``status_description`` shape.

    Raises
    ------
    MalformedResponse
        If the status is missing or its id is not an integer.
    """
    raw_status = payload.get("status")
    if isinstance(raw_status, t.Mapping):
        raw_id = raw_status.get("id")
        description = raw_status.get("description")
    else:
        raw_id = payload.get("status_id")
        description = payload.get("status_description")

    if raw_id is None or isinstance(raw_id, bool):
        raise MalformedResponse("Response has no status id")
    try:
        code = int(raw_id)
    except (TypeError, ValueError) as error:
        raise MalformedResponse(f"Status id {raw_id!r} is not an integer") from error
    if isinstance(raw_id, float) and raw_id != code:
        raise MalformedResponse(f"Status id {raw_id!r} is not an integer")
    return SubmissionStatus.from_code(
        code=code,
        description=description if isinstance(description, str) else None,
    )


def decode_submission(
    payload: t.Any,
    *,
    base64_encoded: bool = False,
) -> SubmissionSnapshot:
    """
    Decode a submission payload into a snapshot.

    Unknown fields are ignored; unrecognized status ids decode to
    ``StatusKind.UNKNOWN``.

    Parameters
    ----------
    payload : typing.Any
        Parsed JSON body.
    base64_encoded : bool, optional
        Decode base64 output fields.

    Returns
    -------
    SubmissionSnapshot
        Decoded observation.

    Raises
    ------
    MalformedResponse
        If the payload is not an object, lacks a status, or has ill-typed fields.
    """
    if not isinstance(payload, t.Mapping):
        raise MalformedResponse(f"Expected a JSON object, got {type(payload).__name__}")

    status = decode_status(payload=payload)
    fields = {
        name: payload[name]
        for name in RESULT_FIELDS
        if name not in ("token", "status") and payload.get(name) is not None
    }
    if base64_encoded:
        for name in ENCODED_RESPONSE_FIELDS:
            if name in fields:
                fields[name] = _b64decode(field=name, value=fields[name])

    token = payload.get("token")
    try:
        snapshot = SubmissionSnapshot(
            token=SubmissionToken(value=str(token)) if token else None,
            status=status,
            **fields,
        )
    except ValidationError as error:
        raise MalformedResponse(f"Invalid submission payload: {error}") from error

    ignored = sorted(set(payload) - set(RESULT_FIELDS) - {"status_id", "status_description"})
    if ignored:
        log.debug(event="Ignored unknown response fields", fields=ignored)
    return snapshot


def decode_token(payload: t.Any) -> SubmissionToken:
    """
    Decode the body of a creation response.

    Raises
    ------
    MalformedResponse
        If no token is present.
    """
    if not isinstance(payload, t.Mapping):
        raise MalformedResponse(f"Expected a JSON object, got {type(payload).__name__}")
    token = payload.get("token")
    if not isinstance(token, str) or not token:
        raise MalformedResponse("Creation response has no token")
    return SubmissionToken(value=token)


def describe_rejection(payload: t.Any) -> str:
    """
    Flatten a Judge0 validation error body into one readable reason.

    Judge0 reports validation errors as ``{"field": ["message", ...]}``, or
    ``{"error": "message"}`` for other failures.
    """
    if isinstance(payload, t.Mapping):
        if isinstance(payload.get("error"), str):
            return payload["error"]
        parts = []
        for field, messages in payload.items():
            if isinstance(messages, list):
                parts.append(f"{field} {'; '.join(str(message) for message in messages)}")
            else:
                parts.append(f"{field} {messages}")
        if parts:
            return ", ".join(parts)
    if isinstance(payload, str) and payload:
        return payload
    return "no reason given"


def decode_batch_creation(payload: t.Any, *, count: int) -> list[SubmissionToken | str]:
    """
    Decode a batch creation response.

    Parameters
    ----------
    payload : typing.Any
        Parsed JSON body, a list with one entry per submitted item.
    count : int
        Number of submitted items.

    Returns
    -------
    list[SubmissionToken | str]
        Per item, the token or the rejection reason, in submission order.

    Raises
    ------
    MalformedResponse
        If the payload is not a list of ``count`` objects.
    """
    if not isinstance(payload, list):
        raise MalformedResponse(f"Expected a JSON list, got {type(payload).__name__}")
    if len(payload) != count:
        raise MalformedResponse(f"Batch response has {len(payload)} item(s), expected {count}")
    entries: list[SubmissionToken | str] = []
    for item in payload:
        if not isinstance(item, t.Mapping):
            raise MalformedResponse("Batch response item is not a JSON object")
        token = item.get("token")
        if isinstance(token, str) and token:
            entries.append(SubmissionToken(value=token))
        else:
            entries.append(describe_rejection(payload=item))
    return entries


def read_json(response: httpx.Response) -> t.Any:
    """
    Parse a response body as JSON.

    Raises
    ------
    MalformedResponse
        If the body is not valid JSON.
    """
    try:
        return response.json()
    except ValueError as error:
        raise MalformedResponse(
            f"HTTP {response.status_code} body is not JSON: {response.text[:200]!r}"
        ) from error


def format_flag(value: bool) -> str:
    return "true" if value else "false"


def describe_error_response(response: httpx.Response) -> str:
    """Readable reason of an HTTP error response, JSON or not."""
    try:
        payload = response.json()
    except ValueError:
        payload = response.text.strip()
    return describe_rejection(payload=payload)


def decode_submission_request(
    payload: t.Any,
    *,
    base64_encoded: bool = False,
) -> SubmissionRequest:
    """
    Rebuild the request fields echoed back by a submission payload.

    Judge0 returns ``source_code``, ``language_id`` and the other creation
    fields when they are listed in the ``fields`` query parameter.

    Raises
    ------
    MalformedResponse
        If the echoed fields do not form a valid request.
    """
    if not isinstance(payload, t.Mapping):
        raise MalformedResponse(f"Expected a JSON object, got {type(payload).__name__}")
    fields = {
        name: payload[name]
        for name in SubmissionRequest.model_fields
        if payload.get(name) is not None
    }
    if base64_encoded:
        for name in ENCODED_REQUEST_FIELDS:
            if name in fields:
                fields[name] = _b64decode(field=name, value=fields[name])
    try:
        return SubmissionRequest(**fields)
    except ValidationError as error:
        raise MalformedResponse(f"Invalid echoed submission: {error}") from error
