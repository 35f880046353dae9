"""Command-line interface for toolhost."""

import importlib
import json
import os
import sys
from pathlib import Path
from typing import Any

import click

from toolhost import __version__
from toolhost.api.mcp.server import McpServer
from toolhost.core.config.settings import get_settings
from toolhost.core.mcp.constants import LATEST_PROTOCOL_VERSION, SUPPORTED_PROTOCOL_VERSIONS
from toolhost.servers.prompts.registry import PromptRegistry
from toolhost.utils.logging import configure_logging


def load_server(target: str) -> McpServer:
    """Import ``module:attribute`` and return the server it names.

    The attribute may be an ``McpServer`` or a zero-argument factory.
    """
    module_name, sep, attribute = target.partition(":")
    if not sep or not module_name or not attribute:
        raise click.BadParameter("expected MODULE:ATTRIBUTE", param_hint="TARGET")

    cwd = os.getcwd()
    if cwd not in sys.path:
        sys.path.insert(0, cwd)

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise click.ClickException(f"❌ Cannot import '{module_name}': {e}") from e

    obj: Any = module
    for part in attribute.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise click.ClickException(f"❌ '{module_name}' has no attribute '{attribute}'") from e

    if not isinstance(obj, McpServer) and callable(obj):
        obj = obj()
    if not isinstance(obj, McpServer):
        raise click.ClickException(f"❌ '{target}' is not an McpServer")
    return obj


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


@click.group()
@click.version_option(version=__version__, prog_name="toolhost")
@click.option("--log-level", default=None, help="Log level (defaults to LOG_LEVEL)")
def cli(log_level: str | None) -> None:
    """toolhost - host tools, resources and prompts over MCP"""
    settings = get_settings()
    configure_logging(log_level or settings.application.log_level, debug=settings.application.debug)


@cli.command()
def info() -> None:
    """Show project information."""
    settings = get_settings()
    click.echo(f"toolhost v{__version__}")
    click.echo(f"Protocol: {LATEST_PROTOCOL_VERSION} (supported: {', '.join(SUPPORTED_PROTOCOL_VERSIONS)})")
    click.echo(f"Server name: {settings.server.server_name}")
    click.echo(f"Duplicate policy: {settings.server.duplicate_policy}")
    if settings.server.prompts_dir:
        click.echo(f"Prompts directory: {settings.server.prompts_dir}")


@cli.command()
def versions() -> None:
    """List supported protocol versions (latest first)."""
    for version in SUPPORTED_PROTOCOL_VERSIONS:
        marker = " (latest)" if version == LATEST_PROTOCOL_VERSION else ""
        click.echo(f"{version}{marker}")


@cli.command()
@click.argument("target")
def inventory(target: str) -> None:
    """List everything registered on TARGET (MODULE:ATTRIBUTE)."""
    server = load_server(target)
    click.echo(f"🔧 Tools ({len(server.tools)})")
    for name in server.tools.names():
        click.echo(f"  • {name}")
    click.echo(f"📄 Resources ({len(server.resources)})")
    for resource in server.resources.entities():
        click.echo(f"  • {resource.name}: {resource.uri}")
    for template in server.resources.templates():
        click.echo(f"  • {template.name}: {template.uri} (template)")
    click.echo(f"💬 Prompts ({len(server.prompts)})")
    for name in server.prompts.names():
        click.echo(f"  • {name}")


@cli.command()
@click.argument("target")
@click.argument("method")
@click.argument("params", required=False, default="{}")
@click.option("--init/--no-init", default=True, help="Run initialize before the call")
def call(target: str, method: str, params: str, init: bool) -> None:
    """Dispatch METHOD with PARAMS (JSON) against TARGET and print the result.

    Example: toolhost call app:server tools/call '{"name": "add", "arguments": {"a": 1}}'
    """
    try:
        parsed = json.loads(params)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"invalid JSON: {e}", param_hint="PARAMS") from e

    server = load_server(target)
    if init and method != "initialize":
        server.dispatch("initialize", {"protocolVersion": LATEST_PROTOCOL_VERSION})

    result = server.dispatch(method, parsed, request_id="cli")
    _echo_json(result)
    if "error" in result:
        sys.exit(1)


@cli.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False, path_type=Path))
def prompts(directory: Path) -> None:
    """Load YAML prompts from DIRECTORY and list them."""
    registry = PromptRegistry()
    loaded = registry.load_directory(directory)
    if not loaded:
        click.echo("⚠️  No prompts found")
        return

    click.echo(f"✅ Loaded {loaded} prompts")
    for prompt in registry.entities():
        arguments = ", ".join(arg["name"] for arg in prompt.schema.prompt_arguments())
        click.echo(f"  • {prompt.name}({arguments}) - {prompt.description or ''}")


if __name__ == "__main__":
    cli()
