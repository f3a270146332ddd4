"""Logging setup for the server process."""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "info", debug: bool = False) -> None:
    """Configure root logging once at startup.

    Logs go to stderr; stdout belongs to the stdio MCP transport.
    """
    resolved = logging.DEBUG if debug else logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logging.basicConfig(level=resolved, format=LOG_FORMAT, stream=sys.stderr, force=True)
    # keep request traces out of the log unless debugging
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug else logging.WARNING)
