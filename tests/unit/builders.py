"""Builders for repositories and ADRs used across tests."""

from adr_manager.models.adr import Adr, Repository


def make_adr(
    adr_id: int = 0,
    title: str = "first",
    *,
    original_md: str | None = None,
    edited_md: str | None = None,
    new_adr: bool = False,
) -> Adr:
    """Create an ADR at docs/adr/<id>-<title>.md; published and unchanged by default."""
    md = f"# {title}\n"
    return Adr(
        id=adr_id,
        path=f"docs/adr/{adr_id:04d}-{title}.md",
        original_md=md if original_md is None else original_md,
        edited_md=md if edited_md is None else edited_md,
        new_adr=new_adr,
    )


def make_repo(
    full_name: str = "owner/repo",
    adrs: list[Adr] | None = None,
    *,
    added: list[Adr] | None = None,
    deleted: list[Adr] | None = None,
) -> Repository:
    """Create a repository on branch main; ``added`` must be members of ``adrs``."""
    return Repository(
        full_name=full_name,
        active_branch="main",
        branches=["main", "dev"],
        adrs=list(adrs or []),
        added_adrs=list(added or []),
        deleted_adrs=list(deleted or []),
    )

