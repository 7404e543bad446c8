"""Commit message formatting for squashed commits."""

import logging
from typing import List

from .config import AutoSquashConfig

logger = logging.getLogger(__name__)

_BULLETS = ('- ', '* ', '• ')


class MessageFormatter:
    """Formats commit messages according to Git best practices."""

    def __init__(self, config: AutoSquashConfig):
        self.config = config

    def wrap_text(self, text: str, width: int, indent: str = "") -> List[str]:
        """Wrap text to specified width, preserving bullet points."""
        lines = []

        for line in text.split('\n'):
            stripped = line.strip()
            if not stripped:
                lines.append("")
                continue

            if stripped.startswith(_BULLETS):
                bullet = stripped[:1]
                words = stripped[2:].split()
                current = indent + bullet
                continuation = indent + '  '
            else:
                words = stripped.split()
                current = indent
                continuation = indent

            started = False
            for word in words:
                if not started:
                    current = (current + ' ' + word) if current.strip() else current + word
                    started = True
                elif len(current) + 1 + len(word) <= width:
                    current += ' ' + word
                else:
                    lines.append(current)
                    current = continuation + word
            lines.append(current)

        return lines

    def format_commit_message(self, raw_message: str) -> str:
        """Format commit message to follow Git best practices."""
        lines = raw_message.strip().split('\n')

        subject = lines[0].strip()
        if subject:
            subject = subject[0].upper() + subject[1:]
            if subject.endswith('.'):
                subject = subject[:-1]
            if len(subject) > self.config.subject_line_limit:
                subject = subject[:self.config.subject_line_limit - 3] + "..."

        # Drop the separator line between subject and body if present
        body_lines = lines[2:] if len(lines) > 1 and not lines[1].strip() else lines[1:]

        formatted_body = []
        for line in body_lines:
            formatted_body.extend(self.wrap_text(line, self.config.body_line_width))

        result = [subject, ""] + formatted_body
        while result and not result[-1]:
            result.pop()

        return self.truncate('\n'.join(result))

    def truncate(self, message: str) -> str:
        """Cut the body so the whole message fits ``total_message_limit``."""
        limit = self.config.total_message_limit
        if len(message) <= limit:
            return message

        logger.debug("Truncating message from %d to %d chars", len(message), limit)
        lines = message.split('\n')
        marker = "- ...additional changes"
        kept = lines[:2]
        size = len('\n'.join(kept))
        for line in lines[2:]:
            if size + len(line) + 1 > limit - len(marker) - 1:
                kept.append(marker)
                break
            kept.append(line)
            size += len(line) + 1
        return '\n'.join(kept)
