"""
End-to-end lifecycle tests against the fake Judge0 API.
"""

import json

import pytest

from judge0_client.client import Judge0Client
from judge0_client.exceptions import PollingTimedOut, SubmissionRejected, UnexpectedResponse
from judge0_client.models import SubmissionRequest, SubmissionToken
from judge0_client.status import StatusKind
from tests.mocks.judge0 import FakeJudge0API


@pytest.fixture
def request_() -> SubmissionRequest:
    return SubmissionRequest(source_code='print("hi")', language_id=71, stdin="hi\n")


def _gets(api: FakeJudge0API) -> list:
    return [call for call in api.calls if call.method == "GET"]


@pytest.mark.asyncio
async def test_submit_returns_token(make_client, fake_api, request_):
    client = make_client(fake_api)

    token = await client.submit(request=request_)
    await client.close()

    assert token == SubmissionToken(value="token-1")
    create = fake_api.calls[0]
    assert create.method == "POST"
    assert create.url.path == "/submissions"
    assert create.url.params["wait"] == "false"
    body = json.loads(create.content)
    assert body == {"source_code": 'print("hi")', "language_id": 71, "stdin": "hi\n"}


@pytest.mark.asyncio
async def test_remote_rejection_is_reported(make_client, request_):
    api = FakeJudge0API(rejected_language_ids={71})
    client = make_client(api)

    with pytest.raises(expected_exception=SubmissionRejected) as error:
        await client.submit(request=request_)
    await client.close()

    assert error.value.status_code == 422
    assert "language with id 71 doesn't exist" in error.value.reason


@pytest.mark.asyncio
async def test_local_rejection_makes_no_remote_call(make_client, fake_api):
    client = make_client(fake_api)

    with pytest.raises(expected_exception=SubmissionRejected):
        await client.submit(request=SubmissionRequest(source_code="", language_id=71))
    await client.close()

    assert fake_api.calls == []


@pytest.mark.asyncio
async def test_await_result_follows_queue_processing_accepted(make_client, fake_api, request_):
    client = make_client(fake_api)

    token = await client.submit(request=request_)
    result = await client.await_result(token=token)
    await client.close()

    assert result.token == token
    assert result.status.kind is StatusKind.ACCEPTED
    assert result.stdout == "hi\n"
    assert result.time == pytest.approx(0.012)
    assert result.memory == 3120
    assert fake_api.poll_counts[token.value] == 3


@pytest.mark.asyncio
async def test_submit_and_await_returns_terminal_failures(make_client, request_):
    api = FakeJudge0API(scripts={request_.source_code: [1, 6]})
    client = make_client(api)

    result = await client.submit_and_await(request=request_)
    await client.close()

    assert result.status.kind is StatusKind.COMPILATION_ERROR
    assert not result.status.is_accepted
    assert result.exit_code == 1


@pytest.mark.asyncio
async def test_submit_and_await_tags_submit_step(make_client, request_):
    api = FakeJudge0API(rejected_language_ids={71})
    client = make_client(api)

    with pytest.raises(expected_exception=SubmissionRejected) as error:
        await client.submit_and_await(request=request_)
    await client.close()

    assert error.value.step == "submit"
    assert _gets(api) == []


@pytest.mark.asyncio
async def test_submit_and_await_tags_await_step(make_client, request_):
    api = FakeJudge0API(scripts={request_.source_code: [1]})
    client = make_client(api)

    with pytest.raises(expected_exception=PollingTimedOut) as error:
        await client.submit_and_await(request=request_, timeout=0.05)
    await client.close()

    assert error.value.step == "await"
    assert error.value.token == SubmissionToken(value="token-1")
    assert error.value.last_status is not None
    assert error.value.last_status.kind is StatusKind.IN_QUEUE


@pytest.mark.asyncio
async def test_wait_mode_skips_polling(make_client, fake_api, request_):
    client = make_client(fake_api, wait=True)

    result = await client.submit_and_await(request=request_)
    await client.close()

    assert result.status.is_accepted
    assert result.token == SubmissionToken(value="token-1")
    assert fake_api.calls[0].url.params["wait"] == "true"
    assert _gets(fake_api) == []


@pytest.mark.asyncio
async def test_base64_mode_round_trips_text_fields(make_client, fake_api):
    client = make_client(fake_api, base64_encoded=True)
    request = SubmissionRequest(source_code="print(input())", language_id=71, stdin="héllo\n")

    result = await client.submit_and_await(request=request)
    await client.close()

    body = json.loads(fake_api.calls[0].content)
    assert body["source_code"] == "cHJpbnQoaW5wdXQoKSk="
    assert fake_api.calls[0].url.params["base64_encoded"] == "true"
    assert result.stdout == "héllo\n"


@pytest.mark.asyncio
async def test_get_submission_returns_current_state(make_client, fake_api, request_):
    client = make_client(fake_api)

    token = await client.submit(request=request_)
    snapshot = await client.get_submission(token=token)
    await client.close()

    assert snapshot.token == token
    assert snapshot.status.kind is StatusKind.IN_QUEUE
    assert not snapshot.status.is_terminal
    with pytest.raises(expected_exception=ValueError):
        snapshot.to_result()


@pytest.mark.asyncio
@pytest.mark.parametrize("base64_encoded", [False, True])
async def test_get_submission_request_returns_echoed_request(
    make_client, fake_api, request_, base64_encoded: bool
):
    client = make_client(fake_api, base64_encoded=base64_encoded)

    token = await client.submit(request=request_)
    echoed = await client.get_submission_request(token=token)
    await client.close()

    assert echoed == request_
    query = _gets(fake_api)[0].url.params
    assert "source_code" in query["fields"].split(",")
    assert query["base64_encoded"] == str(base64_encoded).lower()


@pytest.mark.asyncio
async def test_get_submission_request_of_unknown_token(make_client, fake_api):
    client = make_client(fake_api)

    with pytest.raises(expected_exception=UnexpectedResponse) as error:
        await client.get_submission_request(token=SubmissionToken(value="missing"))
    await client.close()

    assert error.value.status_code == 404
    assert error.value.detail == "Not found"


@pytest.mark.asyncio
async def test_transient_poll_failures_are_retried(make_client, request_):
    api = FakeJudge0API(transient_failures=2)
    client = make_client(api)

    result = await client.submit_and_await(request=request_)
    await client.close()

    assert result.status.is_accepted
    assert len(_gets(api)) == 5


@pytest.mark.asyncio
async def test_context_manager_closes_transport(make_client, fake_api, request_):
    client = make_client(fake_api)

    async with client as entered:
        assert entered is client
        await entered.submit(request=request_)
        http_client = client._transport._client
        assert http_client is not None

    assert http_client.is_closed


def test_client_defaults_to_local_instance():
    client = Judge0Client()

    assert client.config.base_url == "http://localhost:2358"
