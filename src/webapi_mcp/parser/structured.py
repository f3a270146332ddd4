"""Structured-data (JSON / YAML) API definition parser.

Decodes a document into a raw definition mapping. The raw mapping is later
normalized into an ApiDefinition; this module only checks that the identity
fields are present.
"""

import copy
import json
import logging
from collections.abc import Mapping

import yaml

logger = logging.getLogger(__name__)


def parse_structured(content: str | bytes | Mapping, fmt: str = "json") -> dict | None:
    """Parse a JSON or YAML API definition.

    Accepts raw text/bytes or an already decoded mapping. Returns None (and
    logs why) when decoding fails or the identity fields are missing.
    """
    try:
        doc = _decode(content, fmt)
    except (json.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError) as e:
        logger.error("Failed to decode %s API definition: %s", fmt, e)
        return None

    if not isinstance(doc, Mapping):
        logger.error("API definition must be a mapping, got %s", type(doc).__name__)
        return None

    if not has_identity(doc):
        logger.error("API definition is missing its name or endpoint: %r", doc.get("name"))
        return None

    return dict(doc)


def has_identity(doc: Mapping) -> bool:
    """Check that a raw document names itself and resolves at least one endpoint."""
    if not doc.get("name"):
        return False
    if doc.get("methods"):
        return True
    return bool(doc.get("url") or doc.get("endpoint"))


def _decode(content: str | bytes | Mapping, fmt: str):
    if isinstance(content, Mapping):
        return copy.deepcopy(dict(content))
    if isinstance(content, bytes):
        content = content.decode("utf-8")
    if fmt == "yaml":
        return yaml.safe_load(content)
    return json.loads(content)
