"""Tests for YAML configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from aiomirror.config import load_config, parse_config
from aiomirror.exceptions import ConfigError, YAMLParseError


class TestParseConfig:
    def test_camel_case_keys(self) -> None:
        config = parse_config(
            "destinationRepositoryUrl: git@example.com:org/dist.git\n"
            "exclude:\n"
            "  - '*.log'\n"
            "  - node_modules\n"
        )
        assert config.destination_repository_url == "git@example.com:org/dist.git"
        assert config.exclude == ["*.log", "node_modules"]

    def test_snake_case_keys(self) -> None:
        config = parse_config(
            "destination_repository_url: /srv/dist.git\ntag_format: 'release-{version}'\n"
        )
        assert config.destination_repository_url == "/srv/dist.git"
        assert config.tag_format == "release-{version}"

    def test_empty_document_gives_defaults(self) -> None:
        config = parse_config("")
        assert config.destination_repository_url is None
        assert config.exclude == []

    def test_unknown_key(self) -> None:
        with pytest.raises(ConfigError, match="Invalid configuration"):
            parse_config("destinationUrl: /srv/dist.git\n")

    def test_invalid_yaml(self) -> None:
        with pytest.raises(YAMLParseError, match="Invalid YAML in settings.yaml"):
            parse_config("exclude: [unclosed\n", source="settings.yaml")

    def test_non_mapping(self) -> None:
        with pytest.raises(ConfigError, match="Expected a mapping"):
            parse_config("- just\n- a list\n")


class TestLoadConfig:
    async def test_load_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "mirror.yaml"
        path.write_text("destinationRepositoryUrl: /srv/dist.git\nauthorEmail: bot@example.com\n")
        config = await load_config(path)
        assert config.destination_repository_url == "/srv/dist.git"
        assert config.author_email == "bot@example.com"

    async def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Cannot read configuration file"):
            await load_config(tmp_path / "missing.yaml")

    async def test_invalid_file_reports_path(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("exclude: [unclosed\n")
        with pytest.raises(YAMLParseError, match="broken.yaml"):
            await load_config(path)
