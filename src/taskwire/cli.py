"""taskwire CLI.

Usage:
    taskwire connect                                   # Open a session, print its UUID
    taskwire generate -p "a red fox" -m runware:100@1  # Generate an image
    taskwire --format json generate -p "..." -m ...    # JSON output

Connection settings come from TASKWIRE_URL, TASKWIRE_API_KEY and
TASKWIRE_TIMEOUT, overridden by --url, --api-key and --timeout.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import click
from pydantic import BaseModel

from .config import ClientConfig
from .errors import RequestTimeoutError, TaskwireError, ValidationError
from .sdk.client import TaskClient, create_websocket_client
from .sdk.defaults import merge_image_inference_defaults
from .sdk.types import ImageInferenceRequest, ImageInferenceResponse, NewConnectResponse
from .sdk.validation import validate_image_inference

T = TypeVar("T")

# Output format options
FORMAT_TABLE = "table"
FORMAT_JSON = "json"


def configure_logging(verbose: bool = False) -> None:
    """Send all logging to stderr so stdout carries only results."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    root_logger.addHandler(stderr_handler)
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def print_model(model: BaseModel, output_format: str) -> None:
    """Print a response model as a table or JSON."""
    data = model.model_dump(mode="json", by_alias=True, exclude_none=True)
    if output_format == FORMAT_JSON:
        click.echo(json.dumps(data, indent=2))
        return
    width = max((len(k) for k in data), default=0)
    for key, value in data.items():
        click.echo(f"{key:<{width}}  {value}")


def _run(
    config: ClientConfig,
    call: Callable[[TaskClient], Awaitable[T]],
) -> T:
    """Run one client call, mapping failures to click errors."""

    async def runner() -> T:
        async with create_websocket_client(config) as client:
            return await call(client)

    try:
        return asyncio.run(runner())
    except ValidationError as e:
        raise click.BadParameter(e.reason, param_hint=e.field) from e
    except RequestTimeoutError as e:
        task_uuid = getattr(e.partial, "task_uuid", None)
        suffix = f" (task {task_uuid})" if task_uuid else ""
        raise click.ClickException(f"{e}{suffix}") from e
    except (TaskwireError, ConnectionError) as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.option("--url", help="Service websocket URL [env: TASKWIRE_URL]")
@click.option("--api-key", help="API key [env: TASKWIRE_API_KEY]")
@click.option("--timeout", type=float, help="Request timeout in seconds [env: TASKWIRE_TIMEOUT]")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option(
    "--format",
    "output_format",
    type=click.Choice([FORMAT_TABLE, FORMAT_JSON]),
    default=FORMAT_TABLE,
    help="Output format",
)
@click.pass_context
def main(
    ctx: click.Context,
    url: str | None,
    api_key: str | None,
    timeout: float | None,
    verbose: bool,
    output_format: str,
) -> None:
    """taskwire - talk to the inference service over one connection."""
    configure_logging(verbose)
    try:
        config = ClientConfig.from_env(url=url, api_key=api_key, request_timeout=timeout)
    except ValueError as e:
        raise click.UsageError(str(e)) from e
    ctx.obj = {"config": config, "format": output_format}


@main.command()
@click.pass_context
def connect(ctx: click.Context) -> None:
    """Open a session and print its UUID."""
    response: NewConnectResponse = _run(ctx.obj["config"], lambda c: c.connect_session())
    print_model(response, ctx.obj["format"])


@main.command()
@click.option("--prompt", "-p", required=True, help="Positive prompt")
@click.option("--model", "-m", required=True, help="Model identifier")
@click.option("--negative-prompt", help="Negative prompt")
@click.option("--width", type=int, default=512, show_default=True)
@click.option("--height", type=int, default=512, show_default=True)
@click.option("--steps", type=int, help="Inference steps (default 20)")
@click.option("--cfg-scale", type=float, help="Guidance scale (default 7)")
@click.option("--seed", type=int, help="Random seed")
@click.option("--number-results", type=int, help="Images to generate (default 1)")
@click.option("--seed-image", help="Base image UUID, URL or data URI")
@click.option("--strength", type=float, help="Base image strength (default 0.8)")
@click.option(
    "--output-type",
    type=click.Choice(["URL", "base64Data", "dataURI"]),
    help="How the image is returned",
)
@click.option("--output-format", type=click.Choice(["JPG", "PNG", "WEBP"]), help="Image format")
@click.pass_context
def generate(ctx: click.Context, **options: Any) -> None:
    """Generate an image and print the result."""
    req = ImageInferenceRequest(
        positive_prompt=options["prompt"],
        model=options["model"],
        negative_prompt=options["negative_prompt"],
        width=options["width"],
        height=options["height"],
        steps=options["steps"],
        cfg_scale=options["cfg_scale"],
        seed=options["seed"],
        number_results=options["number_results"],
        seed_image=options["seed_image"],
        strength=options["strength"],
        output_type=options["output_type"],
        output_format=options["output_format"],
    )
    # Fail on bad options before opening a connection.
    try:
        validate_image_inference(merge_image_inference_defaults(req))
    except ValidationError as e:
        raise click.BadParameter(e.reason, param_hint=e.field) from e

    async def call(client: TaskClient) -> ImageInferenceResponse:
        await client.connect_session()
        return await client.image_inference(req)

    response = _run(ctx.obj["config"], call)
    print_model(response, ctx.obj["format"])


if __name__ == "__main__":
    main()
