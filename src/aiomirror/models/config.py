"""Configuration models for publishing to a destination repository."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PublishConfig(BaseModel):
    """Options for mirroring a project into another git repository.

    Both snake_case names and the camelCase spellings used by release-tool
    configuration files are accepted.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    repository_url: str | None = Field(default=None, alias="repositoryUrl")
    destination_repository_url: str | None = Field(
        default=None, alias="destinationRepositoryUrl"
    )
    exclude: list[str] = Field(default_factory=list)
    author_name: str = Field(default="aiomirror", alias="authorName")
    author_email: str = Field(default="aiomirror@localhost", alias="authorEmail")
    tag_format: str = Field(default="v{version}", alias="tagFormat")
    commit_message: str = Field(default="Publishing version {version}", alias="commitMessage")


class NextRelease(BaseModel):
    """The release being published."""

    version: str
    git_tag: str | None = None
    git_head: str | None = None
    notes: str | None = None
