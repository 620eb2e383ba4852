import asyncio
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as package_version
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich import print
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from judge0_client.cli.callbacks import load_file_callback, load_files_callback
from judge0_client.client import Judge0Client
from judge0_client.config import ClientConfig
from judge0_client.exceptions import Judge0Error
from judge0_client.models import SubmissionRequest, SubmissionResult, SubmissionToken
from judge0_client.utils.logging import setup_logging

app = typer.Typer(no_args_is_help=True)


def build_client() -> Judge0Client:
    """Build a client from ``JUDGE0_*`` variables, reading a local ``.env`` first."""
    load_dotenv(override=False)
    try:
        config = ClientConfig.from_env()
    except ValidationError as error:
        print(f"[red]Invalid JUDGE0_* configuration:[/red] {escape(str(error))}")
        raise typer.Exit(1)
    return Judge0Client(config=config)


def status_style(result: SubmissionResult) -> str:
    return "green" if result.status.is_accepted else "red"


def print_result(result: SubmissionResult, title: str | None = None):
    result_dict = {
        "Token": str(result.token),
        "Status": f"[{status_style(result)}]{result.status.description}[/{status_style(result)}]",
        "Time": f"{result.time}s" if result.time is not None else None,
        "Memory": f"{result.memory} KB" if result.memory is not None else None,
        "Exit Code": result.exit_code,
        "Stdout": result.stdout,
        "Stderr": result.stderr,
        "Compile Output": result.compile_output,
        "Message": result.message,
    }
    values = "\n".join(
        [
            f"{key}: {value if key == 'Status' else escape(str(value))}"
            for key, value in result_dict.items()
            if value not in (None, "")
        ]
    )
    console = Console()
    console.print(Panel(values, title=title or str(result.token), expand=False, highlight=True))


def print_error(error: Judge0Error):
    step = f" during {error.step}" if error.step else ""
    print(f"[red]{type(error).__name__}{step}:[/red] {escape(str(error))}")


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("-v", "--verbose", help="Show client debug logs"),
    ] = False,
    log_json: Annotated[
        bool,
        typer.Option(help="Render debug logs as JSON lines, implies --verbose"),
    ] = False,
):
    """Run code on a Judge0 instance configured through JUDGE0_* environment variables."""
    if verbose or log_json:
        setup_logging(json_logs=log_json)


@app.command(name="run")
def run_submission(
    source_file: Annotated[
        Path,
        typer.Argument(help="The source file to run", callback=load_file_callback),
    ],
    language_id: Annotated[
        int, typer.Option("-l", "--language-id", help="The Judge0 language id")
    ],
    stdin_file: Annotated[
        Path | None,
        typer.Option(help="optional, file sent as standard input", callback=load_file_callback),
    ] = None,
    expected_output_file: Annotated[
        Path | None,
        typer.Option(
            help="optional, file with the expected standard output",
            callback=load_file_callback,
        ),
    ] = None,
    cpu_time_limit: Annotated[
        float | None, typer.Option(help="optional, CPU time limit in seconds")
    ] = None,
    memory_limit: Annotated[
        int | None, typer.Option(help="optional, memory limit in kilobytes")
    ] = None,
    timeout: Annotated[
        float | None, typer.Option(help="Seconds to wait for the result")
    ] = None,
):
    """Submit a source file and wait for its result"""
    request = SubmissionRequest(
        source_code=source_file.read_text(),
        language_id=language_id,
        stdin=stdin_file.read_text() if stdin_file else None,
        expected_output=expected_output_file.read_text() if expected_output_file else None,
        cpu_time_limit=cpu_time_limit,
        memory_limit=memory_limit,
    )

    async def _run() -> SubmissionResult:
        async with build_client() as client:
            return await client.submit_and_await(request=request, timeout=timeout)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
    ) as progress:
        progress.add_task(description="Waiting for Judge0..", total=None)
        try:
            result = asyncio.run(_run())
        except Judge0Error as error:
            print_error(error=error)
            raise typer.Exit(1)
    print_result(result=result, title=source_file.name)


@app.command(name="batch")
def run_batch(
    source_files: Annotated[
        list[Path],
        typer.Argument(help="The source files to run", callback=load_files_callback),
    ],
    language_id: Annotated[
        int, typer.Option("-l", "--language-id", help="The Judge0 language id")
    ],
    timeout: Annotated[
        float | None, typer.Option(help="Seconds to wait for the whole batch")
    ] = None,
):
    """Submit several source files as one batch and wait for all results"""
    requests = [
        SubmissionRequest(source_code=path.read_text(), language_id=language_id)
        for path in source_files
    ]

    async def _run():
        async with build_client() as client:
            handle = await client.submit_batch(requests=requests)
            return await client.await_batch(handle=handle, timeout=timeout)

    try:
        outcomes = asyncio.run(_run())
    except Judge0Error as error:
        print_error(error=error)
        raise typer.Exit(1)

    table = Table("File", "Status", "Time", "Memory", "Stdout", title="Batch results")
    failed = False
    for path, outcome in zip(source_files, outcomes):
        if isinstance(outcome, Judge0Error):
            failed = True
            table.add_row(
                path.name,
                f"[red]{type(outcome).__name__}[/red]",
                "",
                "",
                escape(str(outcome)),
            )
            continue
        style = status_style(result=outcome)
        table.add_row(
            path.name,
            f"[{style}]{outcome.status.description}[/{style}]",
            f"{outcome.time}s" if outcome.time is not None else "",
            f"{outcome.memory} KB" if outcome.memory is not None else "",
            escape((outcome.stdout or "").strip()),
        )
    console = Console()
    console.print(table)
    if failed:
        raise typer.Exit(1)


@app.command(name="status")
def get_status(
    token: Annotated[str, typer.Argument(help="The submission token")],
):
    """Get the current status of a submission without waiting"""

    async def _run():
        async with build_client() as client:
            return await client.get_submission(token=SubmissionToken(value=token))

    try:
        snapshot = asyncio.run(_run())
    except Judge0Error as error:
        print_error(error=error)
        raise typer.Exit(1)
    if snapshot.status.is_terminal:
        print_result(result=snapshot.to_result(token=SubmissionToken(value=token)))
    else:
        print(f"Submission [yellow]{token}[/yellow]: {snapshot.status.description}")


@app.command(name="request")
def get_request(
    token: Annotated[str, typer.Argument(help="The submission token")],
):
    """Show the source code and input a submission was created with"""

    async def _run() -> SubmissionRequest:
        async with build_client() as client:
            return await client.get_submission_request(token=SubmissionToken(value=token))

    try:
        request = asyncio.run(_run())
    except Judge0Error as error:
        print_error(error=error)
        raise typer.Exit(1)
    lines = [f"Language Id: {request.language_id}"]
    if request.stdin:
        lines.append(f"Stdin: {escape(request.stdin)}")
    lines.append(escape(request.source_code))
    console = Console()
    console.print(Panel("\n".join(lines), title=token, expand=False))


@app.command()
def version():
    """Get the version of the package"""
    try:
        typer.echo(package_version("judge0-client"))
    except PackageNotFoundError:
        typer.echo("unknown")
    raise typer.Exit()
