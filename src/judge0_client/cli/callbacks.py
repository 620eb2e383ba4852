from pathlib import Path

import typer


def load_file_callback(ctx: typer.Context, value: Path | None):
    if ctx.resilient_parsing or value is None:
        return value
    if not value.is_file():
        raise typer.BadParameter(
            message=f"file at path: '{value.as_posix()}' does not exist",
        )
    return value


def load_files_callback(ctx: typer.Context, value: list[Path]):
    if ctx.resilient_parsing:
        return value
    for path in value:
        load_file_callback(ctx=ctx, value=path)
    return value
