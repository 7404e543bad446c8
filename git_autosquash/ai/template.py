"""Deterministic message provider used when AI messages are disabled."""

import logging
from typing import List

from .interface import MessageProvider
from ..core.config import AutoSquashConfig
from ..core.types import CommitInfo

logger = logging.getLogger(__name__)


def default_squash_message(branch: str, base_branch: str) -> str:
    return f"Squashed: all commits except last on branch {branch} (base: {base_branch})"


class TemplateMessageProvider(MessageProvider):
    """Builds the fixed squash subject, optionally listing squashed subjects."""

    def __init__(self, config: AutoSquashConfig = None):
        self.config = config or AutoSquashConfig()

    async def generate_message(self,
                               branch: str,
                               base_branch: str,
                               commits: List[CommitInfo],
                               diff_stats: str = "") -> str:
        logger.debug("Generating template message for %d commits", len(commits))
        message = default_squash_message(branch, base_branch)
        if self.config.list_squashed_subjects and commits:
            body = "\n".join(f"- {c.subject}" for c in commits if c.subject)
            message = f"{message}\n\n{body}"
        return message
