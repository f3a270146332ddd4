"""Validates raw API definitions and normalizes them into ApiDefinition models.

Raw definitions come in two shapes: a flat single-method document
(``url``/``method``/``parameters`` at the top level) and a multi-method
document (``baseUrl`` plus a ``methods`` list). Both end up as one
ApiDefinition. Defaults are filled into the raw mapping in place, and
normalizing an already normalized definition gives back an equal one.
"""

from collections.abc import Mapping, MutableMapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from webapi_mcp.errors import ValidationError
from webapi_mcp.parser.base import (
    DEFAULT_TIMEOUT_MS,
    HTTP_METHODS,
    PARAM_TYPES,
    ApiDefinition,
    MethodDefinition,
)

TRUTHY_TOKENS = ("true", "是")


def normalize(raw: MutableMapping | ApiDefinition | None) -> ApiDefinition:
    """Validate a raw definition and return its canonical ApiDefinition.

    Raises ValidationError when the definition is empty, unnamed, has no
    endpoint, or declares an unknown HTTP method or parameter type.
    """
    if isinstance(raw, ApiDefinition):
        raw = raw.to_document()
    if isinstance(raw, Mapping) and not isinstance(raw, MutableMapping):
        raw = dict(raw)
    if not raw:
        raise ValidationError("API definition must not be empty")
    if not isinstance(raw, MutableMapping):
        raise ValidationError(f"API definition must be a mapping, got {type(raw).__name__}")

    name = raw.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("API definition must include a name")
    name = raw["name"] = name.strip()

    if not raw.get("description"):
        raw["description"] = f"{name} API"
    raw["headers"] = _normalize_headers(raw.get("headers"), name)

    if raw.get("methods") is not None:
        return _normalize_multi(raw)
    return _normalize_single(raw)


def coerce_required(value: Any) -> bool:
    """Coerce a 'required' flag; strings count only as 'true' or '是'."""
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_TOKENS
    return bool(value)


def _normalize_single(raw: MutableMapping) -> ApiDefinition:
    name = raw["name"]
    endpoint = raw.get("url") or raw.get("endpoint")
    if not endpoint:
        raise ValidationError(f"API definition must include a URL: {name}")

    raw["method"] = _normalize_method(raw.get("method"), name)
    raw["parameters"] = _normalize_parameters(raw.get("parameters"), name)

    method = _build(
        MethodDefinition,
        name,
        name=name,
        endpoint=endpoint,
        method=raw["method"],
        description=raw["description"],
        parameters=raw["parameters"],
        result_path=raw.get("resultPath") or None,
        timeout=_timeout(raw),
        response_type=raw.get("responseType") or "json",
    )
    return _build(
        ApiDefinition,
        name,
        name=name,
        kind="single",
        base_url=raw.get("baseUrl") or None,
        description=raw["description"],
        headers=raw["headers"],
        methods=[method],
    )


def _normalize_multi(raw: MutableMapping) -> ApiDefinition:
    name = raw["name"]
    methods = raw["methods"]
    if not isinstance(methods, list) or not methods:
        raise ValidationError(f"API definition must declare at least one method: {name}")

    result = []
    for entry in methods:
        if not isinstance(entry, MutableMapping):
            raise ValidationError(f"Method definition must be a mapping ({name})")
        method_name = entry.get("name")
        if not isinstance(method_name, str) or not method_name.strip():
            raise ValidationError(f"Method definition must include a name ({name})")
        owner = f"{name}.{method_name}"

        endpoint = entry.get("endpoint") or entry.get("url")
        if not endpoint:
            raise ValidationError(f"Method definition must include an endpoint: {owner}")

        entry["method"] = _normalize_method(entry.get("method"), owner)
        entry["parameters"] = _normalize_parameters(entry.get("parameters"), owner)
        entry["headers"] = _normalize_headers(entry.get("headers"), owner)
        if not entry.get("description"):
            entry["description"] = f"{name} - {method_name}"

        result.append(_build(
            MethodDefinition,
            owner,
            name=method_name.strip(),
            endpoint=endpoint,
            method=entry["method"],
            description=entry["description"],
            parameters=entry["parameters"],
            headers=entry["headers"],
            result_path=entry.get("resultPath") or None,
            timeout=_timeout(entry),
            response_type=entry.get("responseType") or "json",
        ))

    return _build(
        ApiDefinition,
        name,
        name=name,
        kind="multi",
        base_url=raw.get("baseUrl") or raw.get("url") or None,
        description=raw["description"],
        headers=raw["headers"],
        methods=result,
    )


def _normalize_method(value: Any, owner: str) -> str:
    if value is None or value == "":
        return "GET"
    if not isinstance(value, str):
        raise ValidationError(f"Unsupported HTTP method: {value!r} ({owner})")
    method = value.strip().upper()
    if method not in HTTP_METHODS:
        raise ValidationError(f"Unsupported HTTP method: {value} ({owner})")
    return method


def _normalize_parameters(value: Any, owner: str) -> dict:
    if value is None:
        return {}
    if isinstance(value, list):
        value = _parameters_from_list(value, owner)
    if not isinstance(value, Mapping):
        raise ValidationError(f"Parameters must be a mapping ({owner})")

    params = {}
    for param_name, spec in value.items():
        if not isinstance(spec, MutableMapping):
            raise ValidationError(f"Parameter definition must be a mapping: {param_name} ({owner})")

        param_type = spec.get("type")
        if param_type:
            if not isinstance(param_type, str) or param_type.lower() not in PARAM_TYPES:
                raise ValidationError(f"Unsupported parameter type: {param_type} ({param_name})")
            spec["type"] = param_type.lower()
        else:
            spec["type"] = "string"

        spec["required"] = coerce_required(spec.get("required", False))
        if not spec.get("description"):
            spec["description"] = f"{param_name} 参数"
        params[str(param_name)] = spec
    return params


def _parameters_from_list(items: list, owner: str) -> dict:
    params = {}
    for item in items:
        if not isinstance(item, Mapping) or not item.get("name"):
            raise ValidationError(f"Parameter definition must be a mapping with a name ({owner})")
        spec = dict(item)
        params[spec.pop("name")] = spec
    return params


def _normalize_headers(value: Any, owner: str) -> dict[str, str]:
    if not value:
        return {}
    if not isinstance(value, Mapping):
        raise ValidationError(f"Headers must be a mapping ({owner})")
    return {str(k): str(v) for k, v in value.items() if v is not None}


def _timeout(raw: Mapping) -> Any:
    timeout = raw.get("timeout")
    return DEFAULT_TIMEOUT_MS if timeout is None else timeout


def _build(model, owner: str, **fields):
    try:
        return model(**fields)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid API definition ({owner}): {e}") from e
