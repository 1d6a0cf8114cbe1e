"""Command-line interface for courier."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import TYPE_CHECKING, Any

import click
import httpx
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from courier.config import load_config, load_data, load_template, resolve_template_path
from courier.interpolation import interpolate, quote_component
from courier.request import CourierError, build_request, create_client, execute_request

if TYPE_CHECKING:
    from courier.config import CourierConfig
    from courier.models import RequestResult, RequestTemplate

console = Console()
err_console = Console(stderr=True)

FAILURES = (CourierError, httpx.HTTPError, ValidationError, OSError, ValueError, yaml.YAMLError)


def _setup_logging(level: str) -> None:
    """Configure logging with the specified level.

    Args:
        level: Logging level string (debug, info, warning, error).
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _fail(ctx: click.Context, exc: Exception) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
    ctx.exit(1)


def _load(ctx: click.Context, name: str, data_path: str | None) -> tuple[RequestTemplate, Any]:
    cfg: CourierConfig = ctx.obj["config"]
    template = load_template(resolve_template_path(name, cfg.templates_dir))
    return template, load_data(data_path)


@click.group()
@click.option("--config", "-c", default=None, help="Path to courier.yaml config file")
@click.option("--log-level", default=None, help="Override the configured log level")
@click.pass_context
def main(ctx: click.Context, config: str | None, log_level: str | None) -> None:
    """courier: render and send declarative HTTP request templates."""
    ctx.ensure_object(dict)
    cfg = load_config(config)
    ctx.obj["config"] = cfg
    _setup_logging(log_level or cfg.logging.level)


@main.command()
@click.argument("template_text")
@click.option("--data", "-d", "data_path", default=None, help="JSON or YAML data context file")
@click.option("--url-encode", is_flag=True, help="Percent-encode substituted values")
@click.pass_context
def render(
    ctx: click.Context,
    template_text: str,
    data_path: str | None,
    url_encode: bool,
) -> None:
    """Render TEMPLATE_TEXT against a data context and print it."""
    try:
        data = load_data(data_path)
    except FAILURES as exc:
        _fail(ctx, exc)
        return
    click.echo(interpolate(template_text, data, quote_component if url_encode else None))


@main.command()
@click.argument("template")
@click.option("--data", "-d", "data_path", default=None, help="JSON or YAML data context file")
@click.option("--json-output", is_flag=True, help="Output as JSON")
@click.pass_context
def build(ctx: click.Context, template: str, data_path: str | None, json_output: bool) -> None:
    """Show the request TEMPLATE would send, without sending it."""
    try:
        request_template, data = _load(ctx, template, data_path)
    except FAILURES as exc:
        _fail(ctx, exc)
        return

    request = build_request(request_template, data)
    if json_output:
        click.echo(request.model_dump_json(indent=2))
        return

    table = Table(title=f"{request.method} {escape(request.url)}")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    for name, value in request.headers.items():
        table.add_row(escape(name), escape(value))
    if request.body is not None:
        table.add_row("body", escape(request.body))
    console.print(table)


@main.command()
@click.argument("template")
@click.option("--data", "-d", "data_path", default=None, help="JSON or YAML data context file")
@click.option("--json-output", is_flag=True, help="Output the result as JSON")
@click.pass_context
def run(ctx: click.Context, template: str, data_path: str | None, json_output: bool) -> None:
    """Send the request TEMPLATE describes and print the rendered response."""
    cfg: CourierConfig = ctx.obj["config"]

    async def _execute(request_template: RequestTemplate, data: Any) -> RequestResult:
        async with create_client(cfg.http) as client:
            return await execute_request(request_template, data, client=client)

    try:
        request_template, data = _load(ctx, template, data_path)
        result = asyncio.run(_execute(request_template, data))
    except FAILURES as exc:
        _fail(ctx, exc)
        return

    if json_output:
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False))
    else:
        click.echo(result.content)


if __name__ == "__main__":
    main()
