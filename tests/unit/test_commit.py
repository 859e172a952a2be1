"""Tests for commit diff sets and reconciliation after publishing."""

import pytest

from adr_manager.core.commit import (
    changed_files_in_repo,
    commit_repository,
    deleted_files_in_repo,
    get_repo_info_for_commit,
    new_files_in_repo,
    update_after_commit,
)
from adr_manager.models.adr import Adr, CommitFile, FileStatus, PushedFile, RepoInfo, Repository
from adr_manager.store import AdrStore
from tests.unit.builders import make_adr, make_repo
from tests.unit.fakes import FakePublisher, FakeStorage


@pytest.fixture
def mixed_repo(store: AdrStore) -> Repository:
    """A repository with one new, one edited, one untouched and one deleted ADR."""
    new = Adr(id=2, path="docs/adr/0002-a.md", original_md="", edited_md="# A\nbody", new_adr=True)
    edited = make_adr(0, "edited", original_md="old", edited_md="new")
    untouched = make_adr(1, "untouched")
    gone = make_adr(3, "gone")
    repo = make_repo(adrs=[edited, untouched, new], added=[new], deleted=[gone])
    store.add_repositories([repo])
    return repo


def test_new_files_in_repo_lists_unpublished_adrs(store: AdrStore, mixed_repo: Repository) -> None:
    result = new_files_in_repo(store, "owner/repo")

    assert result == [
        CommitFile(
            title="0002-a.md",
            path="docs/adr/0002-a.md",
            file_status=FileStatus.NEW,
            value="# A\nbody",
        )
    ]


def test_changed_files_in_repo_lists_edited_published_adrs(
    store: AdrStore, mixed_repo: Repository
) -> None:
    """Only published ADRs whose working copy differs from the baseline are changed."""
    result = changed_files_in_repo(store, "owner/repo")

    assert result == [
        CommitFile(
            title="0000-edited.md",
            path="docs/adr/0000-edited.md",
            file_status=FileStatus.CHANGED,
            value="new",
        )
    ]


def test_deleted_files_in_repo_lists_deleted_adrs(store: AdrStore, mixed_repo: Repository) -> None:
    result = deleted_files_in_repo(store, "owner/repo")

    assert result == [
        CommitFile(
            title="0003-gone.md", path="docs/adr/0003-gone.md", file_status=FileStatus.DELETED
        )
    ]
    assert result[0].value is None


def test_diff_sets_are_disjoint(store: AdrStore, mixed_repo: Repository) -> None:
    paths = [
        f.path
        for f in [
            *new_files_in_repo(store, "owner/repo"),
            *changed_files_in_repo(store, "owner/repo"),
            *deleted_files_in_repo(store, "owner/repo"),
        ]
    ]

    assert len(paths) == len(set(paths)) == 3
    assert "docs/adr/0001-untouched.md" not in paths


def test_diff_of_unknown_repository_is_empty(store: AdrStore) -> None:
    assert new_files_in_repo(store, "owner/unknown") == []
    assert changed_files_in_repo(store, "owner/unknown") == []
    assert deleted_files_in_repo(store, "owner/unknown") == []


def test_title_falls_back_to_last_segment_for_short_paths(store: AdrStore) -> None:
    adr = Adr(id=0, path="0000-root.md", original_md="a", edited_md="b")
    store.add_repositories([make_repo(adrs=[adr])])

    assert changed_files_in_repo(store, "owner/repo")[0].title == "0000-root.md"


def test_get_repo_info_for_commit(store: AdrStore, mixed_repo: Repository) -> None:
    assert get_repo_info_for_commit(store, "owner/repo") == RepoInfo(
        user_name="owner", repo_name="repo", active_branch="main"
    )
    assert get_repo_info_for_commit(store, "owner/unknown") is None


# --- update_after_commit ---


def test_update_after_commit_publishes_new_adr(store: AdrStore, mixed_repo: Repository) -> None:
    """A pushed new ADR leaves addedAdrs and gets its baseline set."""
    new = mixed_repo.added_adrs[0]

    update_after_commit(store, [PushedFile(path=new.path, type=FileStatus.NEW)], "owner/repo")

    assert mixed_repo.added_adrs == []
    assert new.original_md == new.edited_md == "# A\nbody"
    assert new.new_adr is False
    assert new_files_in_repo(store, "owner/repo") == []
    assert changed_files_in_repo(store, "owner/repo")[0].path == "docs/adr/0000-edited.md"


def test_update_after_commit_is_idempotent(
    store: AdrStore, mixed_repo: Repository, storage: FakeStorage
) -> None:
    pushed = [PushedFile(path="docs/adr/0002-a.md", type=FileStatus.NEW)]
    update_after_commit(store, pushed, "owner/repo")
    snapshot = mixed_repo.to_dict()

    update_after_commit(store, pushed, "owner/repo")

    assert mixed_repo.to_dict() == snapshot
    assert storage.writes[-1] == storage.writes[-2]


def test_update_after_commit_sets_baseline_of_changed_adr(
    store: AdrStore, mixed_repo: Repository
) -> None:
    pushed = [PushedFile(path="docs/adr/0000-edited.md", type=FileStatus.CHANGED)]

    update_after_commit(store, pushed, "owner/repo")

    assert mixed_repo.adrs[0].original_md == "new"
    assert changed_files_in_repo(store, "owner/repo") == []


def test_update_after_commit_forgets_confirmed_deletion(
    store: AdrStore, mixed_repo: Repository
) -> None:
    pushed = [PushedFile(path="docs/adr/0003-gone.md", type=FileStatus.DELETED)]

    update_after_commit(store, pushed, "owner/repo")

    assert mixed_repo.deleted_adrs == []


def test_update_after_commit_skips_unknown_paths_and_persists_once(
    store: AdrStore, mixed_repo: Repository, storage: FakeStorage
) -> None:
    before = mixed_repo.to_dict()
    writes_before = len(storage.writes)

    update_after_commit(
        store,
        [
            PushedFile(path="docs/adr/9999-x.md", type=FileStatus.NEW),
            PushedFile(path="docs/adr/9998-y.md", type=FileStatus.CHANGED),
            PushedFile(path="docs/adr/9997-z.md", type=FileStatus.DELETED),
        ],
        "owner/repo",
    )

    assert mixed_repo.to_dict() == before
    assert len(storage.writes) == writes_before + 1


def test_update_after_commit_with_empty_batch(store: AdrStore, mixed_repo: Repository) -> None:
    before = mixed_repo.to_dict()

    update_after_commit(store, [], "owner/repo")

    assert mixed_repo.to_dict() == before


# --- commit_repository ---


def test_commit_repository_publishes_and_reconciles(
    store: AdrStore, mixed_repo: Repository
) -> None:
    publisher = FakePublisher()

    pushed = commit_repository(store, publisher, "owner/repo", message="Update ADRs")

    assert len(pushed) == 3
    repo_info, files, message = publisher.calls[0]
    assert repo_info == RepoInfo(user_name="owner", repo_name="repo", active_branch="main")
    assert [f.file_status for f in files] == [
        FileStatus.NEW,
        FileStatus.CHANGED,
        FileStatus.DELETED,
    ]
    assert message == "Update ADRs"
    assert new_files_in_repo(store, "owner/repo") == []
    assert changed_files_in_repo(store, "owner/repo") == []
    assert deleted_files_in_repo(store, "owner/repo") == []


def test_commit_repository_keeps_failed_files_pending(
    store: AdrStore, mixed_repo: Repository
) -> None:
    publisher = FakePublisher(failing_paths=("docs/adr/0000-edited.md",))

    pushed = commit_repository(store, publisher, "owner/repo", message="Partial")

    assert len(pushed) == 2
    assert [f.path for f in changed_files_in_repo(store, "owner/repo")] == [
        "docs/adr/0000-edited.md"
    ]
    assert new_files_in_repo(store, "owner/repo") == []


def test_commit_repository_with_nothing_to_commit(store: AdrStore) -> None:
    store.add_repositories([make_repo(adrs=[make_adr()])])
    publisher = FakePublisher()

    assert commit_repository(store, publisher, "owner/repo", message="noop") == []
    assert publisher.calls == []


def test_commit_repository_raises_for_unknown_repository(store: AdrStore) -> None:
    with pytest.raises(ValueError, match="not added"):
        commit_repository(store, FakePublisher(), "owner/unknown", message="x")
