"""Providers for the squashed commit's message."""

from .interface import MessageProvider
from .claude import ClaudeMessageProvider
from .template import TemplateMessageProvider

__all__ = ["MessageProvider", "ClaudeMessageProvider", "TemplateMessageProvider"]
