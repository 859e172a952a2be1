"""Work out what a commit has to push, and fold pushed files back into the store."""

from loguru import logger

from adr_manager.models.adr import Adr, CommitFile, FileStatus, PushedFile, RepoInfo
from adr_manager.protocols import PublisherProtocol
from adr_manager.store import AdrStore


def _title(path: str) -> str:
    # Paths look like docs/adr/<file>; the file name is the third segment.
    parts = path.split("/")
    return parts[2] if len(parts) > 2 else parts[-1]


def _commit_file(adr: Adr, status: FileStatus) -> CommitFile:
    return CommitFile(
        title=_title(adr.path), path=adr.path, file_status=status, value=adr.edited_md
    )


def changed_files_in_repo(store: AdrStore, repo_full_name: str) -> list[CommitFile]:
    """Published ADRs whose working copy differs from the baseline."""
    repo = store.get_repository(repo_full_name)
    if repo is None:
        return []
    return [
        _commit_file(adr, FileStatus.CHANGED)
        for adr in repo.adrs
        if not adr.new_adr and adr.edited_md != adr.original_md
    ]


def new_files_in_repo(store: AdrStore, repo_full_name: str) -> list[CommitFile]:
    """ADRs created locally and never published."""
    repo = store.get_repository(repo_full_name)
    if repo is None:
        return []
    return [_commit_file(adr, FileStatus.NEW) for adr in repo.added_adrs]


def deleted_files_in_repo(store: AdrStore, repo_full_name: str) -> list[CommitFile]:
    """Published ADRs removed locally, to be deleted remotely."""
    repo = store.get_repository(repo_full_name)
    if repo is None:
        return []
    return [
        CommitFile(title=_title(adr.path), path=adr.path, file_status=FileStatus.DELETED)
        for adr in repo.deleted_adrs
    ]


def get_repo_info_for_commit(store: AdrStore, repo_full_name: str) -> RepoInfo | None:
    repo = store.get_repository(repo_full_name)
    if repo is None:
        return None
    return RepoInfo(user_name=repo.owner, repo_name=repo.name, active_branch=repo.active_branch)


def update_after_commit(
    store: AdrStore,
    pushed_files: list[PushedFile],
    repo_full_name: str,
) -> None:
    """Make the baseline match what was just published.

    - new: no longer pending; the baseline becomes the edited content.
    - changed: the baseline becomes the edited content.
    - deleted: the deletion is confirmed and forgotten.

    Files without a matching path are skipped, so the call is safe to repeat
    and to run with a partial batch.
    """
    repo = store.get_repository(repo_full_name)
    if repo is None:
        logger.warning("Cannot reconcile commit: {!r} is not added", repo_full_name)
        return

    for file in pushed_files:
        if file.type == FileStatus.NEW:
            repo.added_adrs = [adr for adr in repo.added_adrs if adr.path != file.path]
            adr = repo.find_adr(file.path)
            if adr is not None:
                adr.new_adr = False
                adr.original_md = adr.edited_md
        elif file.type == FileStatus.CHANGED:
            adr = repo.find_adr(file.path)
            if adr is not None:
                adr.original_md = adr.edited_md
        elif file.type == FileStatus.DELETED:
            repo.deleted_adrs = [adr for adr in repo.deleted_adrs if adr.path != file.path]

    logger.debug("Reconciled {} pushed file(s) in {}", len(pushed_files), repo_full_name)
    store.save()


def commit_repository(
    store: AdrStore,
    publisher: PublisherProtocol,
    repo_full_name: str,
    *,
    message: str,
) -> list[PushedFile]:
    """Publish every pending change of a repository.

    Returns:
        The files the publisher reported as pushed (already reconciled).
    """
    repo_info = get_repo_info_for_commit(store, repo_full_name)
    if repo_info is None:
        msg = f"Repository {repo_full_name!r} is not added"
        raise ValueError(msg)

    files = [
        *new_files_in_repo(store, repo_full_name),
        *changed_files_in_repo(store, repo_full_name),
        *deleted_files_in_repo(store, repo_full_name),
    ]
    if not files:
        logger.info("Nothing to commit in {}", repo_full_name)
        return []

    logger.info(
        "Publishing {} file(s) to {} ({})", len(files), repo_full_name, repo_info.active_branch
    )
    pushed = publisher.publish(repo_info, files, message=message)
    if len(pushed) < len(files):
        logger.warning("Only {} of {} file(s) were pushed", len(pushed), len(files))
    update_after_commit(store, pushed, repo_full_name)
    return pushed
