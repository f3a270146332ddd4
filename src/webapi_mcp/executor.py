"""Request executor: turns a bound tool plus caller arguments into an HTTP call.

URL resolution, header merging, parameter placement and result extraction
are plain functions so they can be checked without a network. The
RequestExecutor wires them to an httpx.AsyncClient and translates every
transport failure into an ApiCallError.
"""

import json
import logging
import threading
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

import httpx

from webapi_mcp.errors import ApiCallError
from webapi_mcp.parser.base import ApiDefinition, MethodDefinition
from webapi_mcp.registry import BoundTool

logger = logging.getLogger(__name__)

QUERY_METHODS = ("GET", "DELETE")
DEFAULT_CONTENT_TYPE = "application/json"


class HeaderScope:
    """Global headers applied to every outbound call.

    Read on every call, written rarely (``set_default_headers`` and config
    loads). Writers replace the mapping under a lock; readers get a copy.
    """

    def __init__(self, headers: Mapping[str, str] | None = None):
        self._headers: dict[str, str] = dict(headers or {})
        self._lock = threading.Lock()

    def update(self, headers: Mapping[str, str]) -> None:
        with self._lock:
            self._headers = {**self._headers, **{str(k): str(v) for k, v in headers.items()}}

    def snapshot(self) -> dict[str, str]:
        return dict(self._headers)

    def clear(self) -> None:
        with self._lock:
            self._headers = {}


def join_url(base_url: str | None, endpoint: str) -> str:
    """Join a base URL and a relative endpoint with exactly one slash."""
    if not base_url or endpoint.startswith(("http://", "https://")):
        return endpoint
    return f"{base_url.rstrip('/')}/{endpoint.lstrip('/')}"


def substitute_path_params(url: str, arguments: Mapping[str, Any]) -> str:
    """Replace ``:name`` tokens with the URL-encoded argument values."""
    for key, value in arguments.items():
        token = f":{key}"
        start = url.find(token)
        while start != -1:
            end = start + len(token)
            # only whole tokens: ':id' must not match inside ':identifier'
            if end < len(url) and (url[end].isalnum() or url[end] == "_"):
                start = url.find(token, end)
                continue
            encoded = quote(str(value), safe="")
            url = url[:start] + encoded + url[end:]
            start = url.find(token, start + len(encoded))
    return url


def resolve_url(api: ApiDefinition, method: MethodDefinition, arguments: Mapping[str, Any]) -> str:
    return substitute_path_params(join_url(api.base_url, method.endpoint), arguments)


def merge_headers(
    global_headers: Mapping[str, str],
    api: ApiDefinition,
    method: MethodDefinition,
) -> dict[str, str]:
    """Merge header scopes: global < API < method. Defaults Content-Type to JSON."""
    headers = {**global_headers, **api.headers, **method.headers}
    if not any(k.lower() == "content-type" for k in headers):
        headers["Content-Type"] = DEFAULT_CONTENT_TYPE
    return headers


def place_arguments(http_method: str, arguments: Mapping[str, Any]) -> tuple[dict | None, dict | None]:
    """Return (query params, JSON body) for a call, chosen by HTTP verb."""
    if http_method in QUERY_METHODS:
        return {k: _query_value(v) for k, v in arguments.items()}, None
    return None, dict(arguments)


def extract_result(body: Any, result_path: str | None) -> Any:
    """Walk a dotted path through a response body; None when any step is missing."""
    if not result_path:
        return body
    value = body
    for key in result_path.split("."):
        if isinstance(value, Mapping) and key in value:
            value = value[key]
        elif isinstance(value, list) and key.isdigit() and int(key) < len(value):
            value = value[int(key)]
        else:
            return None
    return value


class RequestExecutor:
    """Executes bound tools against the live network."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None):
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def execute(
        self,
        tool: BoundTool,
        arguments: Mapping[str, Any],
        global_headers: Mapping[str, str] | None = None,
    ) -> Any:
        """Call the API behind ``tool`` and return the extracted result.

        Raises ApiCallError with the upstream status for error responses,
        408 for timeouts and 0 for any other transport failure.
        """
        api, method = tool.api, tool.method
        url = resolve_url(api, method, arguments)
        headers = merge_headers(global_headers or {}, api, method)
        params, body = place_arguments(method.method, arguments)
        timeout = method.timeout / 1000

        logger.debug("Calling %s %s (tool %s)", method.method, url, tool.name)
        try:
            client = self._get_client()
            response = await client.request(
                method.method,
                url,
                params=params,
                json=body,
                headers=headers,
                timeout=timeout,
            )
        except httpx.TimeoutException as e:
            logger.error("API call timed out after %ss: %s %s", timeout, method.method, url)
            raise ApiCallError(f"Request timed out after {method.timeout}ms", 408) from e
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as e:
            logger.error("API call got no response: %s %s: %s", method.method, url, e)
            raise ApiCallError(f"No response from {url}: {e}", 0) from e
        except ValueError as e:
            # raised while building the request, e.g. a header value that is not ASCII
            logger.error("Could not build request %s %s: %s", method.method, url, e)
            raise ApiCallError(f"Invalid request for {url}: {e}", 0) from e

        payload = _decode_body(response, method.response_type)
        logger.debug("Response %s from %s %s", response.status_code, method.method, url)

        if not response.is_success:
            logger.error("API call failed with status %s: %s %s", response.status_code, method.method, url)
            raise ApiCallError(
                f"Request failed with status {response.status_code}",
                response.status_code,
                payload,
            )

        return extract_result(payload, method.result_path)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(transport=self._transport, follow_redirects=True)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def _decode_body(response: httpx.Response, response_type: str) -> Any:
    if response_type != "json":
        return response.text
    if not response.content:
        return None
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return response.text


def _query_value(value: Any) -> Any:
    # httpx repeats the key for lists of scalars; anything nested goes as JSON text
    if isinstance(value, list) and all(isinstance(v, (str, int, float)) for v in value):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return value
