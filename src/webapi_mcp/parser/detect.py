"""Detect the definition format of a file and parse it accordingly."""

from pathlib import Path

from webapi_mcp.parser.markdown import parse_markdown
from webapi_mcp.parser.structured import parse_structured

FORMAT_BY_EXTENSION = {
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".md": "markdown",
    ".markdown": "markdown",
}


def detect_format(file_path: Path) -> str | None:
    """Detect the format of an API definition file from its extension.

    Returns: 'json', 'yaml', 'markdown', or None when unsupported.
    """
    return FORMAT_BY_EXTENSION.get(file_path.suffix.lower())


def parse_text(text: str, fmt: str) -> dict | None:
    """Parse definition text of a known format into a raw definition."""
    if fmt == "markdown":
        return parse_markdown(text)
    return parse_structured(text, fmt=fmt)
