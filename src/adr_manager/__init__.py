"""Editor state and commit tracking for architectural decision records."""

from adr_manager.github import GitHubApi, GitHubPublisher
from adr_manager.protocols import PublisherProtocol, StorageProtocol
from adr_manager.storage import FileStorage
from adr_manager.store import AdrStore, RepositoryAlreadyAddedError

__all__ = [
    "AdrStore",
    "FileStorage",
    "GitHubApi",
    "GitHubPublisher",
    "PublisherProtocol",
    "RepositoryAlreadyAddedError",
    "StorageProtocol",
]
