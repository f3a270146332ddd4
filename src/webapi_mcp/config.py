"""Configuration models: server settings and the API config document."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

CONFIG_EXTENSIONS = (".json", ".yaml", ".yml")


class ServerSettings(BaseModel):
    """Startup settings handed to the server by the command line."""

    name: str = "webapi-mcp-server"
    debug: bool = False
    log_level: str = "info"
    api_directory: Path | None = None
    api_pattern: str | None = None
    config_file: Path | None = None


class ApiConfig(BaseModel):
    """A config document listing API sources and global headers.

    Relative paths are resolved against the config file's own directory.
    """

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    api_directories: list[str] = Field(default_factory=list, alias="apiDirectories")
    api_files: list[str] = Field(default_factory=list, alias="apiFiles")
    global_headers: dict[str, str] = Field(default_factory=dict, alias="globalHeaders")
