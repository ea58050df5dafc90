"""Git operations on component clones."""

from .repository import GitError, LogEntry, Repository

__all__ = ["GitError", "LogEntry", "Repository"]
