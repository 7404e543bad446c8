"""Git collaborator and repository session."""

from .operations import GitOperations
from .session import RepositorySession

__all__ = ["GitOperations", "RepositorySession"]
