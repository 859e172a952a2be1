"""Editor state: added repositories, the open ADR and the editing mode.

The store is the only owner of repository and ADR state. Callers mutate it
through its methods; every structural mutation persists the full snapshot and
restores the "open ADR" invariant before returning.

Emitted events (payload in parentheses):

- ``open-adr`` (the opened ``Adr``)
- ``set-mode`` (the new mode string)
"""

import json
from collections.abc import Callable, Iterable
from typing import Any

from loguru import logger

from adr_manager.config import ADR_DIRECTORY, DEFAULT_MODE, MODE_KEY, REPOSITORIES_KEY
from adr_manager.core.naming import adr_filename, extract_title, with_filename
from adr_manager.core.template import adr_to_md, new_adr_document
from adr_manager.core.validation import validate_repository_list
from adr_manager.models.adr import Adr, Mode, Repository
from adr_manager.protocols import StorageProtocol

OPEN_ADR = "open-adr"
SET_MODE = "set-mode"
EVENTS: tuple[str, ...] = (OPEN_ADR, SET_MODE)

Callback = Callable[[Any], None]


class RepositoryAlreadyAddedError(ValueError):
    """Raised when adding a repository whose full name is already taken."""

    def __init__(self, full_names: list[str]) -> None:
        self.full_names = full_names
        super().__init__(f"Repositories already added: {', '.join(full_names)}")


class AdrStore:
    """Working set of repositories and the ADR currently being edited.

    The open repository and ADR are kept as a key (repository full name + ADR
    path) and resolved against ``added_repositories`` on access, so replacing a
    repository object never leaves a dangling selection behind.
    """

    def __init__(self, storage: StorageProtocol) -> None:
        self._storage = storage
        self.added_repositories: list[Repository] = []
        self.mode = Mode(DEFAULT_MODE)
        self._current_repo_name: str | None = None
        self._current_adr_path: str | None = None
        self._subscribers: dict[str, list[Callback]] = {event: [] for event in EVENTS}

    # --- Observers ---

    def subscribe(self, event: str, callback: Callback) -> None:
        """Call ``callback(payload)`` every time ``event`` is emitted."""
        if event not in self._subscribers:
            msg = f"Unknown event {event!r}, expected one of {EVENTS!r}"
            raise ValueError(msg)
        self._subscribers[event].append(callback)

    def unsubscribe(self, event: str, callback: Callback) -> None:
        callbacks = self._subscribers.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def _emit(self, event: str, payload: Any) -> None:
        for callback in list(self._subscribers[event]):
            callback(payload)

    # --- Derived selection ---

    def get_repository(self, full_name: str) -> Repository | None:
        return next((r for r in self.added_repositories if r.full_name == full_name), None)

    @property
    def current_repository(self) -> Repository | None:
        if self._current_repo_name is None:
            return None
        return self.get_repository(self._current_repo_name)

    @property
    def currently_edited_adr(self) -> Adr | None:
        repo = self.current_repository
        if repo is None or self._current_adr_path is None:
            return None
        return repo.find_adr(self._current_adr_path)

    # --- Persistence ---

    def reload(self) -> None:
        """Rebuild repositories and mode from storage.

        A stored repository list that fails validation is discarded as a whole.
        """
        self.added_repositories = []
        self._current_repo_name = None
        self._current_adr_path = None

        raw = self._storage.get(REPOSITORIES_KEY)
        if raw is not None:
            repos = _parse_repositories(raw)
            if repos:
                self.add_repositories(repos)

        stored_mode = self._storage.get(MODE_KEY) or DEFAULT_MODE
        try:
            self.mode = Mode(stored_mode)
        except ValueError:
            logger.warning("Ignoring unknown stored mode {!r}", stored_mode)
            self.mode = Mode(DEFAULT_MODE)
        logger.debug(
            "Loaded {} repositories, mode {!r}", len(self.added_repositories), str(self.mode)
        )

    def save(self) -> None:
        """Persist the full repository snapshot."""
        data = [repo.to_dict() for repo in self.added_repositories]
        self._storage.set(REPOSITORIES_KEY, json.dumps(data, separators=(",", ":")))

    # --- Repositories ---

    def add_repositories(self, repos: Iterable[Repository]) -> None:
        """Append repositories, then make sure some ADR is open.

        Raises:
            RepositoryAlreadyAddedError: If any full name is already added (or
                repeated in ``repos``). Nothing is added in that case.
        """
        repos = list(repos)
        taken = {r.full_name for r in self.added_repositories}
        colliding: list[str] = []
        for repo in repos:
            if repo.full_name in taken:
                colliding.append(repo.full_name)
            taken.add(repo.full_name)
        if colliding:
            raise RepositoryAlreadyAddedError(colliding)

        logger.debug("Adding repositories: {}", ", ".join(r.full_name for r in repos))
        self.added_repositories = [*self.added_repositories, *repos]
        self.save()
        self.ensure_some_adr_is_opened()

    def remove_repository(self, repo: Repository) -> None:
        self.added_repositories = [
            r for r in self.added_repositories if r.full_name != repo.full_name
        ]
        self.ensure_some_adr_is_opened()
        self.save()

    def update_repository(self, updated: Repository) -> None:
        """Replace the added repository with the same full name.

        If the open ADR lived in the replaced copy, the ADR with the same path
        in ``updated`` is opened instead.
        """
        index = next(
            (i for i, r in enumerate(self.added_repositories) if r.full_name == updated.full_name),
            None,
        )
        if index is None:
            logger.warning("Cannot update {!r}: repository is not added", updated.full_name)
            return
        same_object = self.added_repositories[index] is updated
        self.added_repositories[index] = updated

        if self._current_repo_name == updated.full_name and self._current_adr_path is not None:
            adr = updated.find_adr(self._current_adr_path)
            if adr is not None and adr.is_valid() and same_object:
                logger.debug("ADR {!r} is already open", adr.path)
            elif adr is not None and adr.is_valid():
                logger.debug("Re-opening {!r} in updated {}", adr.path, updated.full_name)
                self._emit(OPEN_ADR, adr)
            else:
                self.ensure_some_adr_is_opened()
        self.save()

    def set_active_branch(self, repo_full_name: str, branch: str) -> bool:
        """Select one of the known branches of a repository."""
        repo = self.get_repository(repo_full_name)
        if repo is None or branch not in repo.branches:
            logger.warning("Unknown branch {!r} of {!r}", branch, repo_full_name)
            return False
        repo.active_branch = branch
        self.save()
        return True

    # --- Opening ADRs ---

    def ensure_some_adr_is_opened(self) -> None:
        """Open some ADR unless a valid, reachable one is already open."""
        adr = self.currently_edited_adr
        if adr is None or not adr.is_valid():
            self._current_repo_name = None
            self._current_adr_path = None
            self.open_any_adr()

    def open_any_adr(self) -> None:
        """Open the first ADR, preferring the current repository."""
        current = self.current_repository
        repos_with_adrs = [r for r in self.added_repositories if r.adrs]
        if current is not None and current.adrs:
            self.open_adr(current.adrs[0], current)
        elif repos_with_adrs:
            self.open_adr(repos_with_adrs[0].adrs[0], repos_with_adrs[0])
        elif current is None and self.added_repositories:
            self._current_repo_name = self.added_repositories[0].full_name

    def open_adr_by(self, repo_full_name: str, adr_file_name: str) -> Adr | None:
        """Open the ADR named ``adr_file_name`` in the given repository.

        Returns:
            The ADR if it was found, None otherwise.
        """
        repo = self.get_repository(repo_full_name)
        adr = repo.find_adr_by_filename(adr_file_name) if repo else None
        if adr is not None:
            self.open_adr(adr, repo)
        return adr

    def open_adr(self, adr: Adr, repo: Repository | None = None) -> None:
        """Open ``adr`` and emit ``open-adr``.

        The ADR must be valid and tracked by an added repository (``repo`` if
        given). Anything else is logged and leaves the selection unchanged.
        """
        owner = self._find_owner(adr, repo) if adr.is_valid() else None
        if owner is None:
            logger.warning("Not a valid ADR of any added repository: {!r}", adr)
            return
        if owner.full_name == self._current_repo_name and adr.path == self._current_adr_path:
            logger.debug("ADR {!r} is already open", adr.path)
            return

        self._current_repo_name = owner.full_name
        self._current_adr_path = adr.path
        logger.debug("Open ADR {!r} of {}", adr.path, owner.full_name)
        self._emit(OPEN_ADR, owner.find_adr(adr.path))

    def _find_owner(self, adr: Adr, repo: Repository | None) -> Repository | None:
        """Return the added repository tracking an ADR at ``adr.path``.

        Among several candidates the one holding this very object wins, then
        the current repository.
        """
        if repo is not None:
            live = self.get_repository(repo.full_name)
            return live if live is not None and live.find_adr(adr.path) else None

        candidates = [r for r in self.added_repositories if r.find_adr(adr.path)]
        for candidate in candidates:
            if any(x is adr for x in candidate.adrs):
                return candidate
        current = self.current_repository
        if current in candidates:
            return current
        return candidates[0] if candidates else None

    # --- Editing ---

    def update_md_of_current_adr(self, md: str) -> None:
        """Set the Markdown of the open ADR.

        Unpublished ADRs are renamed after their title on the fly, so the file
        name follows the first heading while the user types.
        """
        repo = self.current_repository
        adr = self.currently_edited_adr
        if repo is None or adr is None:
            logger.warning("No ADR is open, dropping edit")
            return
        adr.edited_md = md

        if repo.is_added(adr):
            new_path = with_filename(adr.path, adr_filename(adr.id, extract_title(md)))
            if new_path != adr.path:
                if repo.path_taken(new_path):
                    logger.warning("Not renaming {!r}: {!r} already exists", adr.path, new_path)
                else:
                    adr.path = new_path
                    self._current_adr_path = new_path

        self.save()

    def create_new_adr(self, repo: Repository) -> Adr | None:
        """Create an ADR from the template in an added repository.

        Returns:
            The created ADR, or None if ``repo`` is not added.
        """
        live = self.get_repository(repo.full_name)
        if live is None:
            logger.warning("Cannot create ADR: {!r} is not added", repo.full_name)
            return None

        doc = new_adr_document()
        adr_id = live.next_adr_id()
        path = f"{ADR_DIRECTORY}/{adr_filename(adr_id, doc.title)}"
        # A reused id can name a file still queued for remote deletion.
        while live.path_taken(path):
            adr_id += 1
            path = f"{ADR_DIRECTORY}/{adr_filename(adr_id, doc.title)}"
        adr = Adr(
            id=adr_id,
            path=path,
            original_md="",
            edited_md=adr_to_md(doc),
            new_adr=True,
        )
        live.add_adr(adr)
        logger.info("Created {!r} in {}", adr.path, live.full_name)
        self.save()
        return adr

    def delete_adr(self, adr: Adr, repo: Repository) -> None:
        """Remove an ADR; published ones are queued for remote deletion."""
        live = self.get_repository(repo.full_name)
        if live is None:
            logger.warning("Cannot delete ADR: {!r} is not added", repo.full_name)
            return
        was_added = live.is_added(adr)
        if live.remove_adr(adr) is None:
            logger.warning("Cannot delete {!r}: not an ADR of {}", adr.path, live.full_name)
            return
        if was_added:
            logger.info("Discarded unpublished {!r} of {}", adr.path, live.full_name)
        else:
            logger.info("Marked {!r} of {} for deletion", adr.path, live.full_name)

        self.ensure_some_adr_is_opened()
        self.save()

    def set_mode(self, mode: str) -> None:
        """Switch the editing mode and emit ``set-mode``."""
        try:
            new_mode = Mode(mode)
        except ValueError:
            logger.warning("Unrecognized mode {!r}", mode)
            return
        logger.info("Set mode to {}", new_mode)
        self.mode = new_mode
        self._storage.set(MODE_KEY, str(new_mode))
        self._emit(SET_MODE, str(new_mode))


def _parse_repositories(raw: str) -> list[Repository]:
    """Decode and validate a stored repository list; [] if unusable."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Discarding stored repositories, not valid JSON: {}", e)
        return []

    result = validate_repository_list(data)
    if not result.is_valid:
        logger.warning("Discarding invalid stored repositories: {}", "; ".join(result.problems))
        return []
    try:
        return [Repository.from_dict(repo) for repo in data]
    except (KeyError, TypeError, ValueError) as e:
        logger.warning("Discarding unreadable stored repositories: {!r}", e)
        return []
