"""Tool-binding facade between the protocol layer and the registry/executor.

Every operation returns a ToolResponse instead of raising, so a failing
registration, load, or API call never takes the hosting process down.
"""

import json
import logging
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from webapi_mcp.errors import ApiCallError, LoadError
from webapi_mcp.executor import HeaderScope, RequestExecutor
from webapi_mcp.loader import DefinitionLoader
from webapi_mcp.registry import ApiRegistry
from webapi_mcp.schema import validate_arguments

logger = logging.getLogger(__name__)


class ToolResponse(BaseModel):
    """Text result of a tool invocation, flagged when it is a failure."""

    text: str
    is_error: bool = False

    @classmethod
    def ok(cls, text: str) -> "ToolResponse":
        return cls(text=text)

    @classmethod
    def fail(cls, text: str) -> "ToolResponse":
        return cls(text=text, is_error=True)


class ToolBinder:
    """Owns the registry, the global header scope and the request executor."""

    def __init__(
        self,
        registry: ApiRegistry | None = None,
        executor: RequestExecutor | None = None,
        headers: HeaderScope | None = None,
    ):
        self.registry = registry or ApiRegistry()
        self.executor = executor or RequestExecutor()
        self.headers = headers or HeaderScope()
        self.loader = DefinitionLoader(self.registry, self.headers)

    def register_web_api(
        self,
        name: str,
        url: str,
        method: str = "GET",
        description: str | None = None,
        parameters: dict | None = None,
        headers: dict | None = None,
        result_path: str | None = None,
    ) -> ToolResponse:
        definition = {
            "name": name,
            "url": url,
            "method": method,
            "description": description,
            "parameters": parameters,
            "headers": headers,
            "resultPath": result_path,
        }
        if self.registry.register({k: v for k, v in definition.items() if v is not None}):
            return ToolResponse.ok(f"Registered API: {name}")
        return ToolResponse.fail(f"Failed to register API: {name} (see server log for details)")

    def set_default_headers(self, headers: dict[str, str]) -> ToolResponse:
        self.headers.update(headers)
        logger.info("Global headers set: %s", ", ".join(headers))
        return ToolResponse.ok(
            "Default headers set: " + json.dumps(self.headers.snapshot(), indent=2, ensure_ascii=False)
        )

    def list_registered_apis(self) -> ToolResponse:
        apis = [
            {**api.to_document(), "tools": api.tool_names()}
            for api in self.registry.list_apis()
        ]
        return ToolResponse.ok(json.dumps(apis, indent=2, ensure_ascii=False))

    def unregister_api(self, name: str) -> ToolResponse:
        if self.registry.unregister(name):
            return ToolResponse.ok(f"Unregistered API: {name}")
        return ToolResponse.fail(f"Failed to unregister API: {name} is not registered")

    def load_api_from_file(self, file_path: str) -> ToolResponse:
        try:
            loaded = self.loader.load_file(file_path)
        except LoadError as e:
            return ToolResponse.fail(f"Failed to load API from file: {e}")
        if not loaded:
            return ToolResponse.fail(f"Failed to load API from file: {file_path} (see server log for details)")
        return ToolResponse.ok(f"Loaded API from file: {file_path}")

    def load_apis_from_directory(self, directory: str, pattern: str | None = None) -> ToolResponse:
        try:
            count = self.loader.load_directory(directory, pattern)
        except LoadError as e:
            return ToolResponse.fail(f"Failed to load APIs from directory: {e}")
        return ToolResponse.ok(f"Loaded {count} API definitions from directory: {directory}")

    def load_from_config(self, config_file: str) -> ToolResponse:
        try:
            count = self.loader.load_config(config_file)
        except LoadError as e:
            return ToolResponse.fail(f"Failed to load config: {e}")
        return ToolResponse.ok(f"Loaded {count} API definitions from config: {config_file}")

    async def invoke(self, tool_name: str, arguments: dict[str, Any] | None = None) -> ToolResponse:
        """Validate arguments and call the API bound to ``tool_name``."""
        tool = self.registry.get_tool(tool_name)
        if tool is None:
            return ToolResponse.fail(f"Tool not found: {tool_name}")

        try:
            args = validate_arguments(tool.schema, arguments)
        except PydanticValidationError as e:
            return ToolResponse.fail(f"Invalid arguments for {tool_name}: {e}")

        try:
            result = await self.executor.execute(tool, args, self.headers.snapshot())
        except ApiCallError as e:
            logger.error("Tool %s failed: %s", tool_name, e)
            return ToolResponse.fail(f"API call failed: {json.dumps(e.to_dict(), ensure_ascii=False, default=str)}")

        return ToolResponse.ok(render_result(result))

    async def aclose(self) -> None:
        await self.executor.aclose()


def render_result(result: Any) -> str:
    if isinstance(result, str):
        return result
    return json.dumps(result, ensure_ascii=False, default=str)
