"""FastMCP server exposing the management tools and every registered API tool.

Registered API tools are kept in sync with the registry through the
registry listener hooks: registering adds a FastMCP tool, unregistering
removes it so it can no longer be invoked.
"""

import logging
from typing import Annotated, Any

from fastmcp import FastMCP
from fastmcp.exceptions import NotFoundError, ToolError
from fastmcp.tools.tool import Tool, ToolResult
from pydantic import BaseModel, Field, PrivateAttr

from webapi_mcp.binder import ToolBinder, ToolResponse
from webapi_mcp.config import ServerSettings
from webapi_mcp.errors import LoadError
from webapi_mcp.registry import BoundTool

logger = logging.getLogger(__name__)

BUILTIN_TOOLS = (
    "register_web_api",
    "set_default_headers",
    "list_registered_apis",
    "unregister_api",
    "load_api_from_file",
    "load_apis_from_directory",
    "load_from_config",
)


class ParameterInput(BaseModel):
    """Parameter declaration accepted by register_web_api."""

    type: str = "string"
    required: bool | str = False
    description: str | None = None
    default: Any = None


class ApiTool(Tool):
    """FastMCP tool that dispatches to a bound API through the ToolBinder."""

    _binder: ToolBinder = PrivateAttr()

    @classmethod
    def bound(cls, tool: BoundTool, binder: ToolBinder) -> "ApiTool":
        api_tool = cls(name=tool.name, description=tool.description, parameters=tool.input_schema)
        api_tool._binder = binder
        return api_tool

    async def run(self, arguments: dict[str, Any]) -> ToolResult:
        return ToolResult(content=_reply(await self._binder.invoke(self.name, arguments)))


class ApiServer:
    """MCP server wiring the ToolBinder to FastMCP."""

    def __init__(self, settings: ServerSettings | None = None, binder: ToolBinder | None = None):
        self.settings = settings or ServerSettings()
        self.binder = binder or ToolBinder()
        self.mcp = FastMCP(self.settings.name)
        self._register_builtin_tools()
        self.binder.registry.add_listener(self)

    def bind(self, tool: BoundTool) -> None:
        if tool.name in BUILTIN_TOOLS:
            logger.error("Tool name %s is reserved, API %s is not exposed", tool.name, tool.api.name)
            return
        self.unbind(tool.name)
        self.mcp.add_tool(ApiTool.bound(tool, self.binder))
        logger.debug("Bound tool %s", tool.name)

    def unbind(self, tool_name: str) -> None:
        if tool_name in BUILTIN_TOOLS:
            return
        try:
            self.mcp.remove_tool(tool_name)
        except NotFoundError:
            return
        logger.debug("Unbound tool %s", tool_name)

    def bootstrap(self) -> int:
        """Load the config file and API directory named in the settings."""
        loaded = 0
        if self.settings.config_file:
            try:
                loaded += self.binder.loader.load_config(self.settings.config_file)
            except LoadError as e:
                logger.error("Failed to load config file: %s", e)
        if self.settings.api_directory:
            try:
                loaded += self.binder.loader.load_directory(
                    self.settings.api_directory, self.settings.api_pattern
                )
            except LoadError as e:
                logger.error("Failed to load API directory: %s", e)
        return loaded

    def run(self, transport: str = "stdio") -> None:
        logger.info("Starting %s with %s registered APIs", self.settings.name, len(self.binder.registry))
        self.mcp.run(transport=transport)

    def _register_builtin_tools(self) -> None:
        binder = self.binder
        tool = self.mcp.tool

        @tool(
            name="register_web_api",
            description=(
                "Register a web API as an MCP tool. Give the API name, URL, HTTP method, "
                "parameter definitions, headers and an optional result path such as data.items. "
                "A new tool named after the API becomes available."
            ),
        )
        def register_web_api(
            name: Annotated[str, Field(description="API name")],
            url: Annotated[str, Field(description="API endpoint URL")],
            method: Annotated[str, Field(description="HTTP method")] = "GET",
            description: Annotated[str | None, Field(description="API description")] = None,
            parameters: Annotated[
                dict[str, ParameterInput] | None, Field(description="API parameter definitions")
            ] = None,
            headers: Annotated[dict[str, str] | None, Field(description="API specific request headers")] = None,
            resultPath: Annotated[  # noqa: N803
                str | None, Field(description="Dotted path into the response, e.g. data.items")
            ] = None,
        ) -> str:
            params = None
            if parameters is not None:
                params = {k: v.model_dump(exclude_none=True) for k, v in parameters.items()}
            return _reply(binder.register_web_api(
                name, url, method, description, params, headers, resultPath
            ))

        @tool(
            name="set_default_headers",
            description=(
                "Set default request headers for every API call. "
                "API and method specific headers override them."
            ),
        )
        def set_default_headers(
            headers: Annotated[dict[str, str], Field(description="Global default request headers")],
        ) -> str:
            return _reply(binder.set_default_headers(headers))

        @tool(
            name="list_registered_apis",
            description="List every registered web API with its URL, method, parameters and headers.",
        )
        def list_registered_apis() -> str:
            return _reply(binder.list_registered_apis())

        @tool(
            name="unregister_api",
            description="Remove a registered web API. Its tools are no longer available afterwards.",
        )
        def unregister_api(name: Annotated[str, Field(description="Name of the API to remove")]) -> str:
            return _reply(binder.unregister_api(name))

        @tool(
            name="load_api_from_file",
            description="Load an API definition from a JSON, YAML or Markdown file and register it.",
        )
        def load_api_from_file(
            filePath: Annotated[  # noqa: N803
                str, Field(description="Definition file path (.json, .yaml, .yml, .md, .markdown)")
            ],
        ) -> str:
            return _reply(binder.load_api_from_file(filePath))

        @tool(
            name="load_apis_from_directory",
            description="Load and register every API definition file in a directory.",
        )
        def load_apis_from_directory(
            directory: Annotated[str, Field(description="Directory of API definition files")],
            pattern: Annotated[str | None, Field(description="File glob pattern, e.g. **/*.json")] = None,
        ) -> str:
            return _reply(binder.load_apis_from_directory(directory, pattern))

        @tool(
            name="load_from_config",
            description="Load API definitions and global headers from a config file.",
        )
        def load_from_config(
            configFile: Annotated[str, Field(description="Config file path (.json, .yaml, .yml)")],  # noqa: N803
        ) -> str:
            return _reply(binder.load_from_config(configFile))


def _reply(response: ToolResponse) -> str:
    if response.is_error:
        raise ToolError(response.text)
    return response.text
