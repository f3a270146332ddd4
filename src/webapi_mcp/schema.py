"""Builds per-method argument models from declared parameters."""

import re
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, create_model

from webapi_mcp.parser.base import MethodDefinition, ParamSpec

TYPE_MAP: dict[str, Any] = {
    "string": str,
    "number": Union[int, float],
    "boolean": bool,
    "array": list[Any],
    "object": dict[str, Any],
}


class ToolArguments(BaseModel):
    """Base class of every generated argument model.

    Fields are stored under positional names (``p0``, ``p1``...) and aliased
    to the declared parameter names, so any parameter name is accepted,
    including ones that clash with BaseModel attributes.
    """

    model_config = ConfigDict(extra="ignore")


def build_schema(method: MethodDefinition) -> type[ToolArguments]:
    """Create a pydantic model validating the arguments of ``method``.

    Each parameter gets its description attached, is made optional when not
    required, and carries its declared default. The model's JSON schema is
    what the tool advertises to MCP clients.
    """
    fields = {
        f"p{index}": _field_for(name, spec)
        for index, (name, spec) in enumerate(method.parameters.items())
    }
    return create_model(_model_name(method.name), __base__=ToolArguments, **fields)


def validate_arguments(schema: type[ToolArguments], arguments: dict | None) -> dict:
    """Validate caller arguments, dropping optional ones that were not given."""
    validated = schema.model_validate(arguments or {})
    return validated.model_dump(by_alias=True, exclude_none=True)


def json_schema(schema: type[ToolArguments]) -> dict:
    """JSON schema of an argument model, as advertised to clients."""
    return schema.model_json_schema(by_alias=True)


def _field_for(name: str, spec: ParamSpec) -> tuple[Any, Any]:
    annotation = TYPE_MAP.get(spec.type, Any)
    info = {"alias": name, "title": name, "description": spec.description or None}

    if spec.default is not None:
        return annotation, Field(default=spec.default, **info)
    if not spec.required:
        return Optional[annotation], Field(default=None, **info)
    return annotation, Field(..., **info)


def _model_name(method_name: str) -> str:
    words = re.split(r"[^0-9A-Za-z]+", method_name)
    return "".join(w.capitalize() for w in words if w) + "Arguments"
