"""Claude-backed message provider."""
import logging
import os
import re
from typing import List, Optional

from claude_code_sdk import (
    AssistantMessage,
    ClaudeCodeOptions,
    ClaudeSDKError,
    CLIConnectionError,
    CLIJSONDecodeError,
    CLINotFoundError,
    ProcessError,
    TextBlock,
    query,
)

from .interface import MessageProvider
from .template import default_squash_message
from ..core.config import AutoSquashConfig
from ..core.formatter import MessageFormatter
from ..core.types import CommitInfo

logger = logging.getLogger(__name__)

_MESSAGE_RE = re.compile(r'<commit-message>\s*(.*?)\s*</commit-message>', re.DOTALL)

SYSTEM_PROMPT = ("You are an AI assistant that generates focused, high-quality git "
                 "commit messages following the 50/72 rule.")


class ClaudeMessageProvider(MessageProvider):
    """Asks Claude to summarise the squashed commits."""

    def __init__(self, api_key: Optional[str] = None, config: Optional[AutoSquashConfig] = None):
        self.api_key = api_key or os.environ.get('ANTHROPIC_API_KEY')
        if not self.api_key:
            raise ValueError(
                "ANTHROPIC_API_KEY environment variable must be set")

        self.config = config or AutoSquashConfig()
        self.formatter = MessageFormatter(self.config)

    async def generate_message(self,
                               branch: str,
                               base_branch: str,
                               commits: List[CommitInfo],
                               diff_stats: str = "") -> str:
        """Generate the squashed commit message using Claude."""
        logger.debug("Generating message for %d commits on %s", len(commits), branch)
        fallback = default_squash_message(branch, base_branch)
        prompt = self._build_prompt(branch, base_branch, commits, diff_stats)

        try:
            response_text = await self._ask(prompt)
        except CLINotFoundError as e:
            logger.error("Claude Code CLI not found: %s", e)
            return fallback
        except CLIConnectionError as e:
            logger.error("Cannot connect to Claude Code: %s", e)
            return fallback
        except CLIJSONDecodeError as e:
            logger.debug("Claude SDK JSON decode error: %s", e)
            return fallback
        except ProcessError as e:
            logger.error("Claude Code process error: %s", e)
            return fallback
        except ClaudeSDKError as e:
            logger.error("Claude SDK error: %s", e)
            return fallback

        match = _MESSAGE_RE.search(response_text)
        if not match or not match.group(1).strip():
            logger.warning("No valid commit message in Claude response")
            return fallback

        message = self.formatter.format_commit_message(match.group(1))
        logger.debug("Generated message (%d chars)", len(message))
        return message

    async def _ask(self, prompt: str) -> str:
        """Run a single-turn query and join the assistant's text blocks."""
        text_parts = []
        async for message in query(
                prompt=prompt,
                options=ClaudeCodeOptions(
                    max_turns=1,
                    model=self.config.model,
                    system_prompt=SYSTEM_PROMPT)
        ):
            if isinstance(message, AssistantMessage):
                for block in message.content:
                    if isinstance(block, TextBlock):
                        text_parts.append(block.text)
        return ' '.join(text_parts).strip()

    def _build_prompt(self, branch: str, base_branch: str,
                      commits: List[CommitInfo], diff_stats: str) -> str:
        lines = [
            f"Branch {branch} is being squashed against {base_branch}.",
            f"Commits being squashed: {len(commits)}",
            "",
            "Original commit messages:",
        ]
        for commit in commits[:20]:
            lines.append(f"- {commit.subject}")
        if len(commits) > 20:
            lines.append(f"... and {len(commits) - 20} more")
        if diff_stats:
            lines.extend(["", "File changes:", diff_stats[:4000]])

        context = '\n'.join(lines)
        return f"""Create one commit message that replaces all of these commits.

{context}

Rules:
- Subject line at most {self.config.subject_line_limit} chars, imperative mood, no trailing period
- Blank line, then a bullet list body wrapped at {self.config.body_line_width} chars
- Keep the whole message under {self.config.total_message_limit} characters

Format your response exactly as:
<commit-message>
Your subject line here

- your body here
</commit-message>"""
