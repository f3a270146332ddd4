"""Canonical data models for parsed API definitions.

Both parsers (structured JSON/YAML and Markdown) produce raw documents that
the normalizer turns into these models. Every downstream component works on
this one shape only.
"""

import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

HTTP_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS")
PARAM_TYPES = ("string", "number", "boolean", "object", "array")
DEFAULT_TIMEOUT_MS = 30000

HttpMethod = Literal["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]
ParamType = Literal["string", "number", "boolean", "object", "array"]


def slugify(name: str) -> str:
    """Lower-case a name and collapse whitespace runs into single underscores."""
    return re.sub(r"\s+", "_", name.strip().lower())


def tool_name_for(api_name: str, method_name: str | None = None) -> str:
    """Build the generated tool name for an API (and optionally one of its methods)."""
    if method_name is None:
        return slugify(api_name)
    return f"{slugify(api_name)}_{slugify(method_name)}"


class ParamSpec(BaseModel):
    """A single declared parameter of an API method."""

    model_config = ConfigDict(populate_by_name=True)

    type: ParamType = "string"
    required: bool = False
    description: str = ""
    default: Any = None


class MethodDefinition(BaseModel):
    """One invocable operation of an API."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    endpoint: str
    method: HttpMethod = "GET"
    description: str = ""
    parameters: dict[str, ParamSpec] = {}
    headers: dict[str, str] = {}
    result_path: str | None = Field(default=None, alias="resultPath")
    timeout: int = Field(default=DEFAULT_TIMEOUT_MS, gt=0)  # milliseconds
    response_type: str = Field(default="json", alias="responseType")


class ApiDefinition(BaseModel):
    """One logical API surface with one or more methods.

    ``kind`` records which document shape the definition came from: a flat
    single-method document or a multi-method one. Flat definitions carry
    exactly one method named after the API itself.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    kind: Literal["single", "multi"] = "single"
    base_url: str | None = Field(default=None, alias="baseUrl")
    description: str = ""
    headers: dict[str, str] = {}
    methods: list[MethodDefinition]

    def tool_names(self) -> list[str]:
        """Generated tool names, one per method, in declaration order."""
        if self.kind == "single":
            return [tool_name_for(self.name)]
        return [tool_name_for(self.name, m.name) for m in self.methods]

    def to_document(self) -> dict:
        """Serialize back into the structured document form the parsers accept."""
        if self.kind == "multi":
            doc = {
                "name": self.name,
                "description": self.description,
                "headers": dict(self.headers),
                "methods": [
                    m.model_dump(mode="json", by_alias=True, exclude_none=True)
                    for m in self.methods
                ],
            }
            if self.base_url:
                doc["baseUrl"] = self.base_url
            return doc

        method = self.methods[0]
        doc = {
            "name": self.name,
            "description": self.description,
            "url": method.endpoint,
            "method": method.method,
            "parameters": {
                key: spec.model_dump(mode="json", exclude_none=True)
                for key, spec in method.parameters.items()
            },
            "headers": dict(self.headers),
            "timeout": method.timeout,
            "responseType": method.response_type,
        }
        if self.base_url:
            doc["baseUrl"] = self.base_url
        if method.result_path:
            doc["resultPath"] = method.result_path
        return doc
