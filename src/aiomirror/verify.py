"""Pre-publication checks."""

from __future__ import annotations

import logging

from .exceptions import VerificationError
from .git.manager import GitManager
from .models.config import PublishConfig

logger = logging.getLogger(__name__)


async def verify_conditions(config: PublishConfig) -> None:
    """Raise :class:`VerificationError` unless *config* can be published."""
    url = config.destination_repository_url
    if not url:
        raise VerificationError("Plugin configuration missing 'destination_repository_url'")

    if url == config.repository_url:
        raise VerificationError(
            "The source and destination repository are the same. "
            "You must publish to another repository"
        )

    if not await GitManager.list_remote(url):
        raise VerificationError(f"Unable to connect to destination repository at {url}")
    logger.info("Successfully connected to git repo %s", url)

    logger.info("Verified conditions, and found no problem")
