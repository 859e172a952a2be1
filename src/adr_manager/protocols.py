"""Protocols for dependency injection into the store and commit pipeline."""

from typing import Protocol, runtime_checkable

from adr_manager.models.adr import CommitFile, PushedFile, RepoInfo


@runtime_checkable
class StorageProtocol(Protocol):
    """Protocol for durable key/value string storage."""

    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key was never written."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...


@runtime_checkable
class PublisherProtocol(Protocol):
    """Protocol for pushing a commit to the remote repository."""

    def publish(
        self,
        repo_info: RepoInfo,
        files: list[CommitFile],
        *,
        message: str,
    ) -> list[PushedFile]:
        """Persist ``files`` remotely and return the ones that succeeded."""
        ...
