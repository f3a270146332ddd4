"""In-memory registry of API definitions and the tools bound from them."""

import logging
import threading
from dataclasses import dataclass
from typing import Protocol

from webapi_mcp.errors import ValidationError
from webapi_mcp.normalizer import normalize
from webapi_mcp.parser.base import ApiDefinition, MethodDefinition, slugify
from webapi_mcp.schema import ToolArguments, build_schema, json_schema

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundTool:
    """Invocation descriptor for one generated tool."""

    name: str
    api: ApiDefinition
    method: MethodDefinition
    schema: type[ToolArguments]

    @property
    def description(self) -> str:
        return self.method.description or self.api.description

    @property
    def input_schema(self) -> dict:
        return json_schema(self.schema)


class RegistryListener(Protocol):
    """Receives tool bind/unbind events, e.g. to keep an MCP server in sync."""

    def bind(self, tool: BoundTool) -> None: ...

    def unbind(self, tool_name: str) -> None: ...


class ApiRegistry:
    """Maps API names to definitions and generated tool names to bound tools.

    Mutations are serialized by a lock. Lookups read the current mappings
    directly and listings return snapshots.
    """

    def __init__(self):
        self._apis: dict[str, ApiDefinition] = {}
        self._tools: dict[str, BoundTool] = {}
        self._owned: dict[str, list[str]] = {}
        self._listeners: list[RegistryListener] = []
        self._lock = threading.RLock()

    def add_listener(self, listener: RegistryListener) -> None:
        with self._lock:
            self._listeners.append(listener)
            for tool in self._tools.values():
                listener.bind(tool)

    def register(self, definition) -> bool:
        """Normalize a definition and bind its tools. Returns False on failure."""
        try:
            api = normalize(definition)
            tools = [
                BoundTool(name, api, method, build_schema(method))
                for name, method in zip(api.tool_names(), api.methods)
            ]
            self._store(api, tools)
        except ValidationError as e:
            logger.error("Failed to register API: %s", e)
            return False
        except Exception:
            logger.exception("Unexpected error while registering API")
            return False

        logger.info("Registered API %s (%s)", api.name, ", ".join(t.name for t in tools))
        return True

    def unregister(self, name: str) -> bool:
        """Remove an API and retract its tools. Returns False if it was not registered."""
        key = slugify(name)
        with self._lock:
            if key not in self._apis:
                logger.warning("API not registered: %s", name)
                return False
            self._retract_api(key)
        logger.info("Unregistered API %s", name)
        return True

    def list_apis(self) -> list[ApiDefinition]:
        with self._lock:
            return list(self._apis.values())

    def get_by_name(self, name: str) -> ApiDefinition | None:
        return self._apis.get(slugify(name))

    def get_tool(self, tool_name: str) -> BoundTool | None:
        return self._tools.get(tool_name)

    def tools(self) -> list[BoundTool]:
        with self._lock:
            return list(self._tools.values())

    def __len__(self) -> int:
        return len(self._apis)

    def __contains__(self, name: str) -> bool:
        return slugify(name) in self._apis

    def _store(self, api: ApiDefinition, tools: list[BoundTool]) -> None:
        key = slugify(api.name)
        with self._lock:
            if key in self._apis:
                logger.warning("API %s is already registered and will be overwritten", api.name)
                self._retract_api(key)

            for tool in tools:
                previous = self._tools.get(tool.name)
                if previous is not None:
                    logger.warning(
                        "Tool %s (API %s) is already registered and will be overwritten",
                        tool.name,
                        previous.api.name,
                    )
                    self._retract_tool(tool.name, keep_owner=key)
                self._tools[tool.name] = tool
                for listener in self._listeners:
                    listener.bind(tool)

            self._apis[key] = api
            self._owned[key] = list(dict.fromkeys(t.name for t in tools))

    def _retract_api(self, key: str) -> None:
        for tool_name in self._owned.pop(key, []):
            self._drop_tool(tool_name)
        self._apis.pop(key, None)

    def _retract_tool(self, tool_name: str, keep_owner: str) -> None:
        tool = self._drop_tool(tool_name)
        owner = slugify(tool.api.name)
        if owner == keep_owner or owner not in self._owned:
            return
        remaining = [n for n in self._owned[owner] if n != tool_name]
        if remaining:
            self._owned[owner] = remaining
        else:
            logger.warning("API %s has no tools left and is removed", tool.api.name)
            self._owned.pop(owner)
            self._apis.pop(owner, None)

    def _drop_tool(self, tool_name: str) -> BoundTool | None:
        tool = self._tools.pop(tool_name, None)
        if tool is not None:
            for listener in self._listeners:
                listener.unbind(tool_name)
        return tool
