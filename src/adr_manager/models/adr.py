"""Domain models for repositories and their decision records."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from adr_manager.core.naming import parse_adr_id


class Mode(StrEnum):
    """Editing complexity level exposed to the user."""

    BASIC = "basic"
    ADVANCED = "advanced"
    PROFESSIONAL = "professional"


class FileStatus(StrEnum):
    """Kind of change a file contributes to a commit."""

    NEW = "new"
    CHANGED = "changed"
    DELETED = "deleted"


def _stored_id(data: dict[str, Any]) -> int:
    """Return the stored id, else the number in the file name, else -1."""
    if data.get("id") is not None:
        return int(data["id"])
    adr_id = parse_adr_id(str(data.get("path", "")).rsplit("/", 1)[-1])
    return -1 if adr_id is None else adr_id


@dataclass
class Adr:
    """A single Markdown-backed decision record.

    ``original_md`` is the last published content (empty for records that were
    never published), ``edited_md`` the working copy.
    """

    id: int
    path: str
    original_md: str
    edited_md: str
    new_adr: bool = False

    @property
    def filename(self) -> str:
        return self.path.split("/")[-1]

    def is_valid(self) -> bool:
        return all(isinstance(x, str) for x in (self.original_md, self.edited_md, self.path))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "path": self.path,
            "originalMd": self.original_md,
            "editedMd": self.edited_md,
        }
        # Absence of the key means "published".
        if self.new_adr:
            data["newAdr"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Adr":
        return cls(
            id=_stored_id(data),
            path=data["path"],
            original_md=data["originalMd"],
            edited_md=data["editedMd"],
            new_adr=bool(data.get("newAdr", False)),
        )


@dataclass
class Repository:
    """A repository with the decision records tracked for it.

    ``added_adrs`` holds the same ``Adr`` objects as ``adrs`` (never copies);
    ``deleted_adrs`` holds published records removed from ``adrs``.
    """

    full_name: str
    active_branch: str
    branches: list[str] = field(default_factory=list)
    adrs: list[Adr] = field(default_factory=list)
    added_adrs: list[Adr] = field(default_factory=list)
    deleted_adrs: list[Adr] = field(default_factory=list)

    @property
    def owner(self) -> str:
        return self.full_name.split("/")[0]

    @property
    def name(self) -> str:
        return self.full_name.split("/")[-1]

    def find_adr(self, path: str) -> Adr | None:
        """Return the tracked ADR at ``path``, if any."""
        return next((adr for adr in self.adrs if adr.path == path), None)

    def find_adr_by_filename(self, filename: str) -> Adr | None:
        """Return the tracked ADR whose last path segment is ``filename``."""
        return next((adr for adr in self.adrs if adr.filename == filename), None)

    def path_taken(self, path: str) -> bool:
        """Check whether ``path`` is tracked or still queued for remote deletion."""
        return self.find_adr(path) is not None or any(x.path == path for x in self.deleted_adrs)

    def is_added(self, adr: Adr) -> bool:
        """Check whether ``adr`` was created locally and never published."""
        return any(x.path == adr.path for x in self.added_adrs)

    def next_adr_id(self) -> int:
        # Deleted records no longer count, so their ids can be handed out again.
        return max((adr.id for adr in self.adrs), default=-1) + 1

    def add_adr(self, adr: Adr) -> None:
        """Register a locally created ADR."""
        self.adrs.append(adr)
        self.added_adrs.append(adr)

    def remove_adr(self, adr: Adr) -> Adr | None:
        """Remove ``adr`` from the tracked set.

        Unpublished records are discarded; published ones are queued in
        ``deleted_adrs`` for removal on the next commit.

        Returns:
            The removed ADR, or None if it is not tracked by this repository.
        """
        index = next((i for i, x in enumerate(self.adrs) if x.path == adr.path), None)
        if index is None:
            return None
        removed = self.adrs.pop(index)

        added_index = next(
            (i for i, x in enumerate(self.added_adrs) if x.path == removed.path), None
        )
        if added_index is not None:
            self.added_adrs.pop(added_index)
        else:
            self.deleted_adrs.append(removed)
        return removed

    def to_dict(self) -> dict[str, Any]:
        return {
            "fullName": self.full_name,
            "activeBranch": self.active_branch,
            "branches": list(self.branches),
            "adrs": [adr.to_dict() for adr in self.adrs],
            "addedAdrs": [adr.to_dict() for adr in self.added_adrs],
            "deletedAdrs": [adr.to_dict() for adr in self.deleted_adrs],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Repository":
        """Build a repository from its serialized form.

        Entries of ``addedAdrs`` are bound to the ``adrs`` entries with the same
        path, so both lists share objects again after a round trip.
        """
        adrs = [Adr.from_dict(x) for x in data["adrs"]]
        # Entries stored without a number get ids after the highest one.
        next_id = max((adr.id for adr in adrs), default=-1) + 1
        for adr in adrs:
            if adr.id < 0:
                adr.id = next_id
                next_id += 1
        by_path = {adr.path: adr for adr in adrs}
        added_adrs = [by_path[x["path"]] for x in data["addedAdrs"] if x.get("path") in by_path]
        return cls(
            full_name=data["fullName"],
            active_branch=data["activeBranch"],
            branches=list(data["branches"]),
            adrs=adrs,
            added_adrs=added_adrs,
            deleted_adrs=[Adr.from_dict(x) for x in data["deletedAdrs"]],
        )


@dataclass(frozen=True)
class CommitFile:
    """One file of a pending commit."""

    title: str
    path: str
    file_status: FileStatus
    value: str | None = None


@dataclass(frozen=True)
class PushedFile:
    """A file the publisher reports as successfully persisted."""

    path: str
    type: FileStatus


@dataclass(frozen=True)
class RepoInfo:
    """Coordinates of a repository branch to publish to."""

    user_name: str
    repo_name: str
    active_branch: str
