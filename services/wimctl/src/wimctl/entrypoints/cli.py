from pathlib import Path
from typing import Callable, TypeVar
import json as _json
import logging

import typer

from wimctl.adapters.errors import AdapterError
from wimctl.adapters.imagex.wim import Wim
from wimctl.application.config import WimctlConfig, resolve_config
from wimctl.domain.errors import WimError
from wimctl.domain.metadata import summarize_images
from wimctl.domain.options import ImagexOptions
from wimctl.domain.update_command import UpdateCommand, UpdateVerb

T = TypeVar("T")

EXIT_VALIDATION = 2
EXIT_EXECUTION = 3

app = typer.Typer(add_completion=False)


def _wim(ctx: typer.Context) -> Wim:
    config: WimctlConfig = ctx.obj
    return Wim(config.imagex_bin)


def _run(action: Callable[[], T]) -> T:
    try:
        return action()
    except AdapterError as e:
        typer.echo(f"error: {e}", err=True)
        stderr = (e.details or {}).get("stderr")
        if stderr:
            typer.echo(str(stderr), err=True)
        raise typer.Exit(EXIT_EXECUTION)
    except WimError as e:
        typer.echo(f"error: {e}", err=True)
        if e.hint:
            typer.echo(f"hint: {e.hint}", err=True)
        raise typer.Exit(EXIT_VALIDATION)
    except OSError as e:
        typer.echo(f"error: {e}", err=True)
        if isinstance(e, FileNotFoundError):
            typer.echo("hint: install wimlib or pass --imagex-bin", err=True)
        raise typer.Exit(EXIT_EXECUTION)


@app.callback()
def main(
    ctx: typer.Context,
    imagex_bin: str | None = typer.Option(None, "--imagex-bin"),
    config: Path | None = typer.Option(None, "--config"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Drive wimlib-imagex from structured options."""
    resolved = _run(lambda: resolve_config(imagex_bin=imagex_bin, config_path=config))
    logging.basicConfig(
        format="%(levelname)s %(name)s: %(message)s",
        level=logging.DEBUG if verbose else resolved.logging_level,
    )
    ctx.obj = resolved


@app.command()
def capture(
    ctx: typer.Context,
    source: str = typer.Argument(...),
    output_wim: str = typer.Argument(...),
    compress: str | None = typer.Option(None, "--compress"),
    source_list: bool = typer.Option(False, "--source-list"),
    no_acls: bool = typer.Option(False, "--no-acls"),
    unix_data: bool = typer.Option(False, "--unix-data"),
    rebuild: bool = typer.Option(False, "--rebuild"),
    check: bool = typer.Option(False, "--check"),
):
    options = ImagexOptions(
        compress=compress,
        source_list=source_list,
        no_acls=no_acls,
        unix_data=unix_data,
        rebuild=rebuild,
        check=check,
    )
    _run(lambda: _wim(ctx).capture(output_wim, source, options))


@app.command()
def extract(
    ctx: typer.Context,
    input_wim: str = typer.Argument(...),
    input_path: str = typer.Argument(...),
    dest_dir: str | None = typer.Option(None, "--dest-dir"),
    image: int = typer.Option(1, "--image"),
    to_stdout: bool = typer.Option(False, "--to-stdout"),
    no_globs: bool = typer.Option(False, "--no-globs"),
    no_acls: bool = typer.Option(False, "--no-acls"),
    unix_data: bool = typer.Option(False, "--unix-data"),
    check: bool = typer.Option(False, "--check"),
):
    options = ImagexOptions(
        image=image,
        to_stdout=to_stdout,
        no_globs=no_globs,
        no_acls=no_acls,
        unix_data=unix_data,
        check=check,
    )
    out = _run(lambda: _wim(ctx).extract(input_wim, input_path, dest_dir, options))
    if to_stdout:
        typer.echo(out, nl=False)


@app.command()
def info(ctx: typer.Context, input_wim: str, json: bool = False):
    metadata = _run(lambda: _wim(ctx).info(input_wim))
    if json:
        typer.echo(_json.dumps(metadata))
        return
    for row in summarize_images(metadata):
        typer.echo(
            f"Image {row['index']}: {row['name'] or '(unnamed)'}"
            f" ({row['dirs'] or 0} dirs, {row['files'] or 0} files, {row['bytes'] or 0} bytes)"
        )


@app.command()
def update(
    ctx: typer.Context,
    input_wim: str = typer.Argument(...),
    type: UpdateVerb = typer.Option(..., "--type"),
    input: str = typer.Option(..., "--input"),
    output: str = typer.Option("", "--output"),
    image: int = typer.Option(1, "--image"),
    no_acls: bool = typer.Option(False, "--no-acls"),
    rebuild: bool = typer.Option(False, "--rebuild"),
    check: bool = typer.Option(False, "--check"),
):
    command = UpdateCommand(verb=type, input=input, output=output)
    options = ImagexOptions(image=image, no_acls=no_acls, rebuild=rebuild, check=check)
    _run(lambda: _wim(ctx).update(input_wim, command, options))


@app.command()
def verify(ctx: typer.Context, input_wim: str):
    _run(lambda: _wim(ctx).verify(input_wim))
    typer.echo(f"{input_wim}: OK")


@app.command("dir")
def dir_(ctx: typer.Context, input_wim: str):
    typer.echo(_run(lambda: _wim(ctx).dir(input_wim)), nl=False)
