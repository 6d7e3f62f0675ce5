"""
CLI for wordpress-mcp.

Lists the file tools, calls a single tool, serves tool calls as JSON lines
over stdin/stdout, or watches the WordPress tree and prints changes.
"""

import asyncio
import json
import logging
import sys
import threading
import time
from typing import Any, Optional

import click
import yaml
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from wordpress_mcp import __version__
from wordpress_mcp.analysis import ChangeAnalyzer
from wordpress_mcp.files.manager import FileManager
from wordpress_mcp.files.models import ChangeType, FileChange
from wordpress_mcp.files.tools import FileTools
from wordpress_mcp.llm.factory import get_provider
from wordpress_mcp.settings.config import ServerConfig

# Load environment variables
load_dotenv()

console = Console()
# Logs go to stderr so stdout stays a clean JSON stream
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)

CHANGE_COLORS = {
    ChangeType.CREATED: "green",
    ChangeType.MODIFIED: "yellow",
    ChangeType.DELETED: "red",
}


def setup_logging(verbose: bool = False) -> None:
    """Setup rich logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
    )
    # Reduce noise from httpx and watchdog
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("watchdog").setLevel(logging.WARNING)


def load_config(config_path: Optional[str]) -> ServerConfig:
    """Load from a file when given, else from the environment."""
    try:
        if config_path:
            logger.debug(f"Loading config from {config_path}")
            return ServerConfig.from_file(config_path)
        return ServerConfig.from_env()
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise click.ClickException(f"Configuration error: {e}")


def build_tools(config: ServerConfig) -> FileTools:
    """Create the manager, the optional analyzer and the tool adapter."""
    try:
        manager = FileManager(config.files)
    except OSError as e:
        raise click.ClickException(str(e))

    analyzer = None
    if config.llm:
        analyzer = ChangeAnalyzer(get_provider(config.llm.to_llm_config()))
    return FileTools(manager, analyzer)


async def close_tools(tools: FileTools) -> None:
    await asyncio.to_thread(tools.manager.close)
    if tools.analyzer:
        await tools.analyzer.close()


def _failure(message: str, error_type: str) -> dict[str, Any]:
    return {"success": False, "message": message, "error_type": error_type}


async def handle_request(tools: FileTools, line: str) -> dict[str, Any]:
    """
    Execute one JSON-lines request: ``{"tool": ..., "arguments": {...}}``.

    An optional ``id`` is echoed back. Malformed requests and unknown tools
    produce a failure envelope instead of an exception.
    """
    try:
        request = json.loads(line)
    except json.JSONDecodeError as e:
        return _failure(f"Malformed request: {e}", "JSONDecodeError")

    if not isinstance(request, dict) or not isinstance(request.get("tool"), str):
        return _failure("Request must be an object with a 'tool' field", "InvalidRequest")

    arguments = request.get("arguments") or {}
    if not isinstance(arguments, dict):
        result = _failure("'arguments' must be an object", "InvalidRequest")
    else:
        try:
            result = await tools.execute_tool(request["tool"], arguments)
        except ValueError as e:
            result = _failure(str(e), "UnknownTool")

    if "id" in request:
        result = {"id": request["id"], **result}
    return result


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to config file (default: environment / .env)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging",
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], verbose: bool):
    """WordPress MCP - file management tools for a WordPress site."""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print the full tool schemas as JSON")
@click.pass_context
def tools(ctx: click.Context, as_json: bool):
    """
    List the available tools.

    Examples:

        wordpress-mcp tools

        wordpress-mcp tools --json
    """
    file_tools = build_tools(load_config(ctx.obj["config_path"]))
    schemas = file_tools.get_tool_schemas()
    asyncio.run(close_tools(file_tools))

    if as_json:
        click.echo(json.dumps(schemas, indent=2))
        return

    table = Table(title="Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    for schema in schemas:
        table.add_row(schema["name"], schema["description"])
    console.print(table)


@cli.command()
@click.argument("tool_name")
@click.argument("arguments", required=False, default="{}")
@click.pass_context
def call(ctx: click.Context, tool_name: str, arguments: str):
    """
    Call one tool and print its result as JSON.

    Examples:

        wordpress-mcp call read_file '{"filePath": "wp-config.php"}'

        wordpress-mcp call list_files '{"pattern": "*.php"}'
    """
    try:
        args = json.loads(arguments)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"ARGUMENTS is not valid JSON: {e}")
    if not isinstance(args, dict):
        raise click.ClickException("ARGUMENTS must be a JSON object")

    file_tools = build_tools(load_config(ctx.obj["config_path"]))
    if tool_name not in file_tools.tool_names:
        asyncio.run(close_tools(file_tools))
        raise click.ClickException(
            f"Unknown tool: {tool_name}. Available tools: {', '.join(file_tools.tool_names)}"
        )

    result = asyncio.run(_call_tool(file_tools, tool_name, args))
    click.echo(json.dumps(result, indent=2))
    if not result["success"]:
        sys.exit(1)


async def _call_tool(file_tools: FileTools, tool_name: str, args: dict[str, Any]) -> dict[str, Any]:
    try:
        return await file_tools.execute_tool(tool_name, args)
    finally:
        await close_tools(file_tools)


@cli.command()
@click.pass_context
def stdio(ctx: click.Context):
    """
    Serve tool calls as JSON lines on stdin/stdout.

    Each input line is a request ``{"tool": ..., "arguments": {...}}``; each
    output line is the result envelope. While watching, changes are written
    as ``{"event": "file_change", "change": {...}}`` lines.
    """
    config = load_config(ctx.obj["config_path"])
    file_tools = build_tools(config)
    asyncio.run(_serve_stdio(file_tools, config.watch_on_start))


async def _serve_stdio(file_tools: FileTools, watch: bool) -> None:
    stdin = click.get_text_stream("stdin")
    write_lock = threading.Lock()

    def write(message: dict[str, Any]) -> None:
        with write_lock:
            click.echo(json.dumps(message))

    def on_change(change: FileChange) -> None:
        write({"event": "file_change", "change": change.model_dump(mode="json")})

    subscription = file_tools.manager.on_change(on_change)
    if watch:
        try:
            await asyncio.to_thread(file_tools.manager.start_watching)
        except OSError as e:
            logger.warning(f"File watching not started: {e}")

    try:
        while True:
            line = await asyncio.to_thread(stdin.readline)
            if not line:
                break
            if not line.strip():
                continue
            write(await handle_request(file_tools, line))
    finally:
        subscription.cancel()
        await close_tools(file_tools)


@cli.command()
@click.option(
    "--pattern",
    "-p",
    "patterns",
    multiple=True,
    help="Glob pattern relative to the root (repeatable)",
)
@click.pass_context
def watch(ctx: click.Context, patterns: tuple[str, ...]):
    """
    Watch the WordPress tree and print every change.

    Examples:

        wordpress-mcp watch

        wordpress-mcp watch -p "wp-content/**/*.php" -p "*.php"
    """
    config = load_config(ctx.obj["config_path"])
    file_tools = build_tools(config)
    manager = file_tools.manager

    def print_change(change: FileChange) -> None:
        color = CHANGE_COLORS[change.type]
        console.print(f"[{color}]{change.type.value:<8}[/{color}] {change.path}")

    manager.on_change(print_change)
    try:
        active = manager.start_watching(list(patterns) or None)
    except OSError as e:
        asyncio.run(close_tools(file_tools))
        raise click.ClickException(str(e))

    console.print(
        Panel(
            f"[bold cyan]Watching WordPress files[/bold cyan]\n\n"
            f"Root: [green]{manager.root}[/green]\n"
            f"Patterns: [green]{', '.join(active)}[/green]\n\n"
            f"Press [yellow]Ctrl+C[/yellow] to stop.",
            title="Watching",
        )
    )

    try:
        while manager.is_watching:
            time.sleep(0.5)
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopping...[/yellow]")
    finally:
        asyncio.run(close_tools(file_tools))


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
