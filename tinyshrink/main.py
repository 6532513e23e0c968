"""Main entry point for the tinyshrink command line.

Sets up the Typer CLI application, performs dependency injection (Composition
Root), defines CLI commands, and delegates the work to ShrinkClient.
"""

import asyncio
import enum
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import typer
from typing_extensions import Annotated

from tinyshrink.core.client import ShrinkClient
from tinyshrink.core.result import Result
from tinyshrink.domain.errors import ShrinkError
from tinyshrink.domain.models.common import FilePath
from tinyshrink.domain.models.options import (
    ConvertOptions, GCSOptions, ImageFormat, PreserveMetadata,
    PreserveOptions, ResizeMethod, ResizeOptions, S3Options,
)
from tinyshrink.infrastructure.cli.display import ConsoleDisplay
from tinyshrink.infrastructure.config.settings import DEFAULT_CONFIG_FILE, load_configuration
from tinyshrink.infrastructure.monitoring.logger_setup import setup_logging

logger = logging.getLogger(__name__)

Operation = Callable[[ShrinkClient], Awaitable[Tuple[str, Result]]]


class FormatName(str, enum.Enum):
    avif = "avif"
    webp = "webp"
    jpeg = "jpeg"
    png = "png"

FORMAT_MAP = {
    FormatName.avif: ImageFormat.AVIF,
    FormatName.webp: ImageFormat.WEBP,
    FormatName.jpeg: ImageFormat.JPEG,
    FormatName.png: ImageFormat.PNG,
}


class StorageService(str, enum.Enum):
    s3 = "s3"
    gcs = "gcs"


# --- Dependency Injection (Manual) ---

def create_dependencies(config_file: Path, log_level: Optional[str]) -> Dict[str, Any]:
    """Creates and wires up the client and the console display.

    Acts as the Composition Root; called once per command invocation.
    """
    dependencies: Dict[str, Any] = {"ui": ConsoleDisplay()}
    config = load_configuration(config_file=config_file, log_level=log_level)
    level = getattr(logging, str(config.log_level).upper(), logging.INFO)
    setup_logging(log_level=level, log_file=config.log_file, secrets=[config.api_key])
    dependencies["config"] = config
    dependencies["client"] = ShrinkClient(config)
    logger.info("Dependencies initialized.")
    return dependencies


# --- Typer App Definition ---
app = typer.Typer(
    name="tinyshrink",
    help="tinyshrink: compress, resize, convert and store images through the Tinify API.",
    add_completion=False,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    config: Annotated[Path, typer.Option("--config", "-c", help="Path to a YAML configuration file.")] = DEFAULT_CONFIG_FILE,
    log_level: Annotated[Optional[str], typer.Option("--log-level", help="DEBUG, INFO, WARNING or ERROR.")] = None,
):
    """Global options shared by every command."""
    ctx.obj = {"config_file": config, "log_level": log_level}


def run_operation(ctx: typer.Context, operation: Operation) -> None:
    """Runs one async client operation and renders its outcome.

    Exits with status 1 on any ShrinkError or configuration problem.
    """
    try:
        dependencies = create_dependencies(ctx.obj["config_file"], ctx.obj["log_level"])
    except (ValueError, ShrinkError) as e:
        ConsoleDisplay().display_error(f"Configuration error: {e}")
        raise typer.Exit(code=1)
    ui: ConsoleDisplay = dependencies["ui"]
    client: ShrinkClient = dependencies["client"]

    async def _run() -> Tuple[str, Result]:
        async with client:
            return await operation(client)

    try:
        title, result = asyncio.run(_run())
    except ShrinkError as e:
        logger.error(f"Operation failed: {e!r}")
        ui.display_error(f"{type(e).__name__}: {e.message}")
        raise typer.Exit(code=1)
    except OSError as e:
        ui.display_error(f"File error: {e}")
        raise typer.Exit(code=1)
    ui.display_result(title, result.summary())


# --- CLI Commands ---

InputArgument = Annotated[Path, typer.Argument(help="Image to upload (png, jpg, webp, avif).")]
OutputArgument = Annotated[Path, typer.Argument(help="Where to write the processed image.")]


@app.command()
def compress(ctx: typer.Context, input_file: InputArgument, output_file: OutputArgument):
    """Compress an image."""
    async def operation(client: ShrinkClient) -> Tuple[str, Result]:
        source = await client.source_from_file(FilePath(str(input_file)))
        result = await source.to_file(FilePath(str(output_file)))
        return str(output_file), result
    run_operation(ctx, operation)


@app.command()
def resize(
    ctx: typer.Context,
    input_file: InputArgument,
    output_file: OutputArgument,
    width: Annotated[Optional[int], typer.Option("--width", "-w", help="Target width in pixels.")] = None,
    height: Annotated[Optional[int], typer.Option("--height", "-h", help="Target height in pixels.")] = None,
    method: Annotated[ResizeMethod, typer.Option("--method", "-m", case_sensitive=False)] = ResizeMethod.FIT,
):
    """Compress and resize an image."""
    options = ResizeOptions(method=method, width=width, height=height)

    async def operation(client: ShrinkClient) -> Tuple[str, Result]:
        options.validate()
        source = await client.source_from_file(FilePath(str(input_file)))
        result = await source.resize(options)
        await result.to_file(FilePath(str(output_file)))
        return str(output_file), result
    run_operation(ctx, operation)


@app.command()
def convert(
    ctx: typer.Context,
    input_file: InputArgument,
    output_file: OutputArgument,
    formats: Annotated[List[FormatName], typer.Option("--format", "-f", case_sensitive=False, help="Target format; repeat to let the service pick the smallest.")],
    background: Annotated[Optional[str], typer.Option("--background", "-b", help="Fill for transparent areas, e.g. white or #RRGGBB.")] = None,
):
    """Compress and convert an image to another format."""
    options = ConvertOptions(formats=[FORMAT_MAP[f] for f in formats], background=background)

    async def operation(client: ShrinkClient) -> Tuple[str, Result]:
        options.to_payload()
        source = await client.source_from_file(FilePath(str(input_file)))
        result = await source.convert(options)
        await result.to_file(FilePath(str(output_file)))
        return str(output_file), result
    run_operation(ctx, operation)


@app.command()
def preserve(
    ctx: typer.Context,
    input_file: InputArgument,
    output_file: OutputArgument,
    keep: Annotated[List[PreserveMetadata], typer.Option("--keep", "-k", case_sensitive=False, help="Metadata to keep; repeatable.")],
):
    """Compress an image while keeping selected metadata."""
    options = PreserveOptions(keys=tuple(keep))

    async def operation(client: ShrinkClient) -> Tuple[str, Result]:
        source = await client.source_from_file(FilePath(str(input_file)))
        result = await source.preserve(options)
        await result.to_file(FilePath(str(output_file)))
        return str(output_file), result
    run_operation(ctx, operation)


@app.command()
def store(
    ctx: typer.Context,
    input_file: InputArgument,
    service: Annotated[StorageService, typer.Option("--service", "-s", case_sensitive=False)],
    path: Annotated[str, typer.Option("--path", "-p", help="bucket/key for the stored object.")],
    region: Annotated[str, typer.Option("--region", envvar="AWS_REGION")] = "us-east-1",
    acl: Annotated[Optional[str], typer.Option("--acl", help="S3 canned ACL, e.g. public-read.")] = None,
    s3_endpoint: Annotated[Optional[str], typer.Option("--s3-endpoint", help="S3-compatible storage endpoint.")] = None,
    aws_access_key_id: Annotated[Optional[str], typer.Option(envvar="AWS_ACCESS_KEY_ID", hidden=True)] = None,
    aws_secret_access_key: Annotated[Optional[str], typer.Option(envvar="AWS_SECRET_ACCESS_KEY", hidden=True)] = None,
    gcp_access_token: Annotated[Optional[str], typer.Option(envvar="GCP_ACCESS_TOKEN", hidden=True)] = None,
):
    """Compress an image and save it straight to cloud storage."""
    if service is StorageService.s3:
        if not aws_access_key_id or not aws_secret_access_key:
            ConsoleDisplay().display_error("AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY must be set.")
            raise typer.Exit(code=1)
        options = S3Options(
            aws_access_key_id=aws_access_key_id,
            aws_secret_access_key=aws_secret_access_key,
            region=region,
            path=path,
            acl=acl,
            endpoint=s3_endpoint,
        )
    else:
        if not gcp_access_token:
            ConsoleDisplay().display_error("GCP_ACCESS_TOKEN must be set.")
            raise typer.Exit(code=1)
        options = GCSOptions(gcp_access_token=gcp_access_token, path=path)

    async def operation(client: ShrinkClient) -> Tuple[str, Result]:
        source = await client.source_from_file(FilePath(str(input_file)))
        result = await source.store(options)
        return result.location or path, result
    run_operation(ctx, operation)


@app.command(name="validate-key")
def validate_key(ctx: typer.Context):
    """Check that the configured API key is accepted."""
    try:
        dependencies = create_dependencies(ctx.obj["config_file"], ctx.obj["log_level"])
    except (ValueError, ShrinkError) as e:
        ConsoleDisplay().display_error(f"Configuration error: {e}")
        raise typer.Exit(code=1)
    ui: ConsoleDisplay = dependencies["ui"]
    client: ShrinkClient = dependencies["client"]

    async def _run() -> bool:
        async with client:
            return await client.validate_key()

    try:
        asyncio.run(_run())
    except ShrinkError as e:
        ui.display_error(f"API key rejected: {e.message}")
        raise typer.Exit(code=1)
    counter = client.usage_counter
    ui.display_info(f"API key is valid. Usage this period: {counter if counter is not None else 'unknown'}")


def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()

if __name__ == "__main__":
    cli_entry_point()
