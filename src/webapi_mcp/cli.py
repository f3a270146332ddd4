"""CLI entry point for webapi-mcp."""

from pathlib import Path

import click

from webapi_mcp.config import ServerSettings
from webapi_mcp.errors import ValidationError
from webapi_mcp.log import configure_logging
from webapi_mcp.normalizer import normalize
from webapi_mcp.parser.detect import detect_format, parse_text


@click.group()
def main():
    """WebAPI MCP server: expose described web APIs as MCP tools."""
    pass


@main.command()
@click.option("-d", "--debug", is_flag=True, help="Enable debug logging.")
@click.option("-l", "--log-level", default="info", type=click.Choice(["debug", "info", "warning", "error"]), help="Log level.")
@click.option("-a", "--api-directory", type=click.Path(exists=True, file_okay=False, path_type=Path), help="Load API definitions from this directory.")
@click.option("-P", "--api-pattern", default=None, help='File glob pattern, e.g. "**/*.json".')
@click.option("-c", "--config", "config_file", type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Config file (.json, .yaml, .yml).")
def start(debug: bool, log_level: str, api_directory: Path | None, api_pattern: str | None, config_file: Path | None):
    """Start the MCP server over stdio."""
    from webapi_mcp.server import ApiServer

    settings = ServerSettings(
        debug=debug,
        log_level=log_level,
        api_directory=api_directory,
        api_pattern=api_pattern,
        config_file=config_file,
    )
    configure_logging(settings.log_level, settings.debug)

    server = ApiServer(settings)
    server.bootstrap()
    server.run()


@main.command()
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def check(file_path: Path):
    """Parse and validate one API definition file and list its tools."""
    fmt = detect_format(file_path)
    if fmt is None:
        raise click.ClickException(f"Unsupported file format: {file_path.suffix}")

    try:
        text = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise click.ClickException(f"Could not read {file_path}: {e}")

    raw = parse_text(text, fmt)
    if raw is None:
        raise click.ClickException(f"Could not parse {file_path} as {fmt}")
    try:
        api = normalize(raw)
    except ValidationError as e:
        raise click.ClickException(str(e))

    click.echo(f"{api.name}: {len(api.methods)} method(s)")
    for tool_name, method in zip(api.tool_names(), api.methods):
        click.echo(f"  {tool_name}  {method.method} {method.endpoint}")
