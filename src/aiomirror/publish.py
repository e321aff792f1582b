"""Publish a project tree to a destination git repository.

The destination is cloned into a throwaway directory, reconciled with the
source tree, then committed, tagged and pushed.  The clone is always
removed, whether publishing succeeds or not.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

from .exceptions import ConfigError
from .git.manager import GitManager
from .git.sync import synchronize
from .models.config import NextRelease, PublishConfig
from .models.publish import PublishResult

logger = logging.getLogger(__name__)


def build_commit_message(config: PublishConfig, release: NextRelease) -> str:
    """Return the release commit message, with the release notes as its body."""
    message = config.commit_message.format(version=release.version)
    if release.notes:
        message += "\n\n" + release.notes
    return message


async def publish(
    config: PublishConfig,
    release: NextRelease,
    source_root: Path,
) -> PublishResult:
    """Mirror *source_root* into ``config.destination_repository_url``.

    An empty commit is still published when nothing changed, so every
    release gets its own commit and tag in the destination.
    """
    url = config.destination_repository_url
    if not url:
        raise ConfigError("Plugin configuration missing 'destination_repository_url'")

    with tempfile.TemporaryDirectory(prefix="aiomirror-publish-") as tmpdir:
        try:
            manager = await GitManager.clone(
                url,
                Path(tmpdir) / "destination",
                author_name=config.author_name,
                author_email=config.author_email,
            )
            logger.info("Cloned destination repo %s to %s", url, manager.repo_path)

            sync_result = await synchronize(
                source_root, manager.repo_path, config.exclude, index=manager
            )
            logger.debug("Synced files to cloned repository")

            if await manager.is_clean():
                logger.warning(
                    "There are no changes to publish. Will publish an empty commit anyway."
                )

            commit_hash = await manager.commit(
                build_commit_message(config, release), allow_empty=True
            )
            logger.debug("Committed changes")

            tag = config.tag_format.format(version=release.version)
            await manager.add_tag(tag)

            await manager.push()
            logger.info("Pushed commits to origin")
            await manager.push_tags()
            logger.info("Pushed tags to origin")
        except Exception as exc:
            logger.error("Error occurred during publish: %s", exc)
            raise

    logger.info("Finished publishing to destination git repository")
    return PublishResult(
        destination=url,
        version=release.version,
        commit_hash=commit_hash,
        tag=tag,
        sync=sync_result,
    )
