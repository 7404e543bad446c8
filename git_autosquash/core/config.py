"""Configuration management for the auto-squash tool."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple


@dataclass
class AutoSquashConfig:
    """Configuration for auto-squash and auto-rebase operations."""

    # Repository settings
    base_branch: str = "dev"
    remote: str = "origin"
    protected_branches: Tuple[str, ...] = ("dev", "prod")
    branch: Optional[str] = None

    # Temporary branch used while rebuilding history
    temp_branch_prefix: str = "autosquash-temp-"

    # Rebase behavior
    strategy_option: str = "theirs"

    # Message formatting
    subject_line_limit: int = 72
    body_line_width: int = 72
    total_message_limit: int = 1500
    list_squashed_subjects: bool = False

    # ai settings
    use_ai_message: bool = False
    model: str = "claude-3-7-sonnet-20250219"

    _invalid_ref_chars = (' ', '\n', '\t', '..', '~', '^', ':', '?', '*', '[', '\\')

    def __post_init__(self):
        """Validate configuration parameters after initialization."""
        for name in ("base_branch", "remote", "temp_branch_prefix"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise ValueError(f"{name} must be a non-empty string, got {value!r}")
            self._check_ref_name(name, value)

        if self.branch is not None:
            self._check_ref_name("branch", self.branch)

        self.protected_branches = tuple(self.protected_branches)
        for name in self.protected_branches:
            self._check_ref_name("protected_branches", name)

        if not self.strategy_option:
            raise ValueError("strategy_option must not be empty")

        if self.total_message_limit <= 0:
            raise ValueError(
                f"total_message_limit must be positive, got {self.total_message_limit}")
        if self.subject_line_limit <= 0:
            raise ValueError(
                f"subject_line_limit must be positive, got {self.subject_line_limit}")
        if self.body_line_width <= 0:
            raise ValueError(
                f"body_line_width must be positive, got {self.body_line_width}")
        if self.subject_line_limit > self.total_message_limit:
            raise ValueError(
                f"subject_line_limit ({self.subject_line_limit}) cannot exceed total_message_limit ({self.total_message_limit})")

        if not isinstance(self.model, str):
            raise ValueError(f"model must be a string, got {type(self.model)}")

    def _check_ref_name(self, name: str, value: str) -> None:
        for char in self._invalid_ref_chars:
            if char in value:
                raise ValueError(
                    f"{name} contains invalid character '{char}': {value}")

    @property
    def base_ref(self) -> str:
        """Remote-tracking ref of the base branch, e.g. ``origin/dev``."""
        return f"{self.remote}/{self.base_branch}"

    def is_protected(self, branch: str) -> bool:
        """Whether ``branch`` must never be rewritten."""
        return branch == self.base_branch or branch in self.protected_branches

    @classmethod
    def from_environment(cls, environ: Optional[Mapping[str, str]] = None, **kwargs) -> 'AutoSquashConfig':
        """Create config from ``BASE_BRANCH``, ``REMOTE`` and ``GITHUB_HEAD_REF``."""
        environ = os.environ if environ is None else environ
        values = {}
        if environ.get("BASE_BRANCH"):
            values["base_branch"] = environ["BASE_BRANCH"]
        if environ.get("REMOTE"):
            values["remote"] = environ["REMOTE"]
        if environ.get("GITHUB_HEAD_REF"):
            values["branch"] = environ["GITHUB_HEAD_REF"]
        values.update({k: v for k, v in kwargs.items() if v is not None})
        return cls(**values)

    @classmethod
    def from_cli_args(cls, args, environ: Optional[Mapping[str, str]] = None) -> 'AutoSquashConfig':
        """Create config from command line arguments, falling back to the environment."""
        try:
            return cls.from_environment(
                environ,
                base_branch=getattr(args, 'base_branch', None),
                remote=getattr(args, 'remote', None),
                branch=getattr(args, 'branch', None),
                strategy_option=getattr(args, 'strategy_option', None),
                total_message_limit=getattr(args, 'message_limit', None),
                list_squashed_subjects=getattr(args, 'list_subjects', None),
                use_ai_message=getattr(args, 'ai_message', None),
                model=getattr(args, 'model', None),
            )
        except ValueError as e:
            raise ValueError(
                f"Invalid configuration from command line arguments: {e}") from e
