import asyncio

from dotenv import load_dotenv

from judge0_client import ClientConfig, Judge0Client, Judge0Error, SubmissionRequest

load_dotenv()

PYTHON_3_LANGUAGE_ID = 71


def build_requests() -> list[SubmissionRequest]:
    """Build one request per input, including one that fails at runtime."""
    source_code = "n = int(input())\nprint(n * n)\n"
    inputs = ["3", "12", "not a number", "41"]
    return [
        SubmissionRequest(
            source_code=source_code,
            language_id=PYTHON_3_LANGUAGE_ID,
            stdin=stdin,
            cpu_time_limit=2,
        )
        for stdin in inputs
    ]


async def main() -> None:
    """Run a small batch and print outcomes in input order."""
    requests = build_requests()
    async with Judge0Client(config=ClientConfig.from_env()) as client:
        handle = await client.submit_batch(requests=requests)
        outcomes = await client.await_batch(handle=handle, timeout=30)

    for request, outcome in zip(requests, outcomes):
        if isinstance(outcome, Judge0Error):
            print(f"{request.stdin!r}: failed ({outcome})")
            continue
        output = (outcome.stdout or outcome.stderr or "").strip()
        print(f"{request.stdin!r}: {outcome.status} -> {output}")


if __name__ == "__main__":
    asyncio.run(main())
