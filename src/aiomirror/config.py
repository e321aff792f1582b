"""Load :class:`~aiomirror.models.config.PublishConfig` from YAML files."""

from __future__ import annotations

import logging
from pathlib import Path

import aiofiles
import yaml
from pydantic import ValidationError

from .exceptions import ConfigError, YAMLParseError
from .models.config import PublishConfig

logger = logging.getLogger(__name__)


def parse_config(content: str, *, source: str = "<string>") -> PublishConfig:
    """Parse YAML *content* into a validated :class:`PublishConfig`.

    An empty document yields the default configuration.
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        logger.error("YAML parse error in %s: %s", source, exc)
        raise YAMLParseError(f"Invalid YAML in {source}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping in {source}, got {type(data).__name__}")

    try:
        return PublishConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {source}: {exc}") from exc


async def load_config(path: Path) -> PublishConfig:
    """Read and validate the YAML configuration file at *path*."""
    try:
        async with aiofiles.open(path, encoding="utf-8") as fh:
            content = await fh.read()
    except OSError as exc:
        raise ConfigError(f"Cannot read configuration file {path}: {exc}") from exc

    config = parse_config(content, source=str(path))
    logger.debug("Loaded configuration from %s", path)
    return config
