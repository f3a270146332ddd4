"""Loads API definitions from files, directories and config documents.

A broken API file is logged and skipped, it never stops the rest of a
batch. Only an unusable config document raises LoadError.
"""

import json
import logging
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import ValidationError as PydanticValidationError

from webapi_mcp.config import CONFIG_EXTENSIONS, ApiConfig
from webapi_mcp.errors import LoadError
from webapi_mcp.executor import HeaderScope
from webapi_mcp.parser.detect import detect_format, parse_text
from webapi_mcp.registry import ApiRegistry

logger = logging.getLogger(__name__)

STRUCTURED_PATTERNS = ("**/*.json", "**/*.yaml", "**/*.yml")
MARKDOWN_PATTERNS = ("**/*.md", "**/*.markdown")


class DefinitionLoader:
    """Feeds definition files through parse, normalize and register."""

    def __init__(self, registry: ApiRegistry, headers: HeaderScope):
        self.registry = registry
        self.headers = headers

    def load_file(self, file_path: Path | str) -> bool:
        """Parse and register one API definition file.

        Returns False when the file has an unsupported extension, does not
        parse, or fails validation. Raises LoadError when it cannot be read.
        """
        path = Path(file_path)
        fmt = detect_format(path)
        if fmt is None:
            logger.warning("Unsupported API file format: %s", path)
            return False

        logger.info("Loading API file %s", path)
        raw = parse_text(_read_text(path), fmt)
        if raw is None:
            logger.error("Could not parse API definition file: %s", path)
            return False
        return self.registry.register(raw)

    def load_directory(self, directory: Path | str, pattern: str | None = None) -> int:
        """Load every definition file under ``directory``; returns how many registered.

        Without a pattern, structured files (JSON/YAML) are loaded first,
        then Markdown files, each batch in sorted path order.
        """
        root = Path(directory).resolve()
        if not root.is_dir():
            raise LoadError(f"API directory does not exist: {root}")

        if pattern:
            batches = [_discover(root, (pattern,))]
        else:
            batches = [_discover(root, STRUCTURED_PATTERNS), _discover(root, MARKDOWN_PATTERNS)]
        logger.debug("Found %s definition files in %s", sum(len(b) for b in batches), root)

        loaded = 0
        for batch in batches:
            for path in batch:
                try:
                    if self.load_file(path):
                        loaded += 1
                except LoadError as e:
                    logger.error("Skipping %s: %s", path, e)

        logger.info("Loaded %s API definitions from %s", loaded, root)
        return loaded

    def load_config(self, config_file: Path | str) -> int:
        """Load the directories, files and global headers named by a config document."""
        path = Path(config_file).resolve()
        config = read_config(path)
        base = path.parent
        loaded = 0

        for directory in config.api_directories:
            dir_path = (base / directory).resolve()
            if not dir_path.is_dir():
                logger.warning("API directory does not exist: %s", dir_path)
                continue
            try:
                loaded += self.load_directory(dir_path)
            except LoadError as e:
                logger.error("Skipping directory %s: %s", dir_path, e)

        for file_name in config.api_files:
            file_path = (base / file_name).resolve()
            if not file_path.is_file():
                logger.warning("API file does not exist: %s", file_path)
                continue
            try:
                if self.load_file(file_path):
                    loaded += 1
            except LoadError as e:
                logger.error("Skipping %s: %s", file_path, e)

        if config.global_headers:
            self.headers.update(config.global_headers)
            logger.info("Global headers set: %s", ", ".join(config.global_headers))

        logger.info("Config %s loaded %s API definitions", path, loaded)
        return loaded


def read_config(path: Path) -> ApiConfig:
    """Read and validate a JSON or YAML config document."""
    ext = path.suffix.lower()
    if ext not in CONFIG_EXTENSIONS:
        raise LoadError(f"Unsupported config file format: {ext or path.name}")

    text = _read_text(path)
    try:
        data = json.loads(text) if ext == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise LoadError(f"Could not parse config file {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise LoadError(f"Config file must contain a mapping: {path}")
    try:
        return ApiConfig.model_validate(data)
    except PydanticValidationError as e:
        raise LoadError(f"Invalid config file {path}: {e}") from e


def _discover(root: Path, patterns: tuple[str, ...]) -> list[Path]:
    found = set()
    for pattern in patterns:
        try:
            found.update(p for p in root.glob(pattern) if p.is_file())
        except (NotImplementedError, ValueError) as e:
            raise LoadError(f"Invalid file pattern: {pattern} ({e})") from e
    return sorted(found)


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise LoadError(f"Could not read {path}: {e}") from e
