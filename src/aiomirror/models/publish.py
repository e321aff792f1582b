"""Publish result model."""

from __future__ import annotations

from pydantic import BaseModel

from .sync import SyncResult


class PublishResult(BaseModel):
    """Outcome of a successful publish."""

    destination: str
    version: str
    commit_hash: str | None = None
    tag: str
    sync: SyncResult
