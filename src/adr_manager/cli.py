"""CLI for adr-manager: manage repositories, edit ADRs and publish commits."""

import json
import sys
from pathlib import Path
from typing import Annotated

import requests
import typer
from loguru import logger

from adr_manager.config import resolve_data_directory
from adr_manager.core.commit import (
    changed_files_in_repo,
    commit_repository,
    deleted_files_in_repo,
    new_files_in_repo,
)
from adr_manager.github import GitHubApi, GitHubPublisher
from adr_manager.logging_config import configure_logging
from adr_manager.models.adr import Adr, Repository
from adr_manager.storage import FileStorage
from adr_manager.store import AdrStore, RepositoryAlreadyAddedError

app = typer.Typer(help="ADR manager: edit architectural decision records of your repositories.")

DataDirOption = Annotated[
    Path | None,
    typer.Option("--data-dir", "-d", help="Directory with the persisted editor state"),
]


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(verbose=verbose)


def _open_store(data_dir: Path | None) -> AdrStore:
    store = AdrStore(FileStorage(data_dir or resolve_data_directory()))
    store.reload()
    return store


def _require_repository(store: AdrStore, full_name: str) -> Repository:
    repo = store.get_repository(full_name)
    if repo is None:
        logger.error("Repository not added: {}", full_name)
        raise typer.Exit(1)
    return repo


def _require_adr(store: AdrStore, full_name: str, filename: str) -> Adr:
    _require_repository(store, full_name)
    adr = store.open_adr_by(full_name, filename)
    if adr is None:
        logger.error("ADR {!r} not found in {}", filename, full_name)
        raise typer.Exit(1)
    return adr


@app.command()
def repos(data_dir: DataDirOption = None) -> None:
    """List added repositories."""
    store = _open_store(data_dir)
    current = store.current_repository
    typer.echo(f"{len(store.added_repositories)} repositories:\n")
    for repo in store.added_repositories:
        marker = "*" if current is not None and repo.full_name == current.full_name else " "
        typer.echo(
            f"{marker} {repo.full_name} ({repo.active_branch}) - {len(repo.adrs)} ADRs, "
            f"{len(repo.added_adrs)} new, {len(repo.deleted_adrs)} deleted"
        )


@app.command()
def add(
    full_name: str = typer.Argument(..., help="Repository as owner/name"),
    branch: str = typer.Option("main", "--branch", "-b", help="Active branch"),
    data_dir: DataDirOption = None,
) -> None:
    """Add an empty repository without contacting GitHub."""
    if "/" not in full_name:
        logger.error("Expected owner/name, got {!r}", full_name)
        raise typer.Exit(1)
    store = _open_store(data_dir)
    repo = Repository(full_name=full_name, active_branch=branch, branches=[branch])
    try:
        store.add_repositories([repo])
    except RepositoryAlreadyAddedError as e:
        logger.error("{}", e)
        raise typer.Exit(1) from e
    typer.echo(f"Added {full_name}")


@app.command()
def fetch(
    full_name: str = typer.Argument(..., help="Repository as owner/name"),
    branch: Annotated[
        str | None,
        typer.Option("--branch", "-b", help="Branch to read (default: repository default)"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """Add a repository with the ADRs found on GitHub."""
    store = _open_store(data_dir)
    if store.get_repository(full_name) is not None:
        logger.error("Repository already added: {} (remove it first)", full_name)
        raise typer.Exit(1)
    try:
        repo = GitHubApi().fetch_repository(full_name, branch=branch)
    except (RuntimeError, requests.RequestException) as e:
        logger.error("Cannot fetch {}: {}", full_name, e)
        raise typer.Exit(1) from e
    store.add_repositories([repo])
    typer.echo(f"Added {full_name} with {len(repo.adrs)} ADRs")


@app.command()
def remove(
    full_name: str = typer.Argument(..., help="Repository as owner/name"),
    data_dir: DataDirOption = None,
) -> None:
    """Remove a repository and forget its unpublished changes."""
    store = _open_store(data_dir)
    store.remove_repository(_require_repository(store, full_name))
    typer.echo(f"Removed {full_name}")


@app.command()
def branch(
    full_name: str = typer.Argument(..., help="Repository as owner/name"),
    name: str = typer.Argument(..., help="Branch to make active"),
    data_dir: DataDirOption = None,
) -> None:
    """Select the branch commits are published to."""
    store = _open_store(data_dir)
    _require_repository(store, full_name)
    if not store.set_active_branch(full_name, name):
        raise typer.Exit(1)
    typer.echo(f"{full_name}: active branch is {name}")


@app.command()
def new(
    full_name: str = typer.Argument(..., help="Repository as owner/name"),
    title: Annotated[
        str | None,
        typer.Option("--title", "-t", help="Title of the new ADR"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """Create a new ADR from the template."""
    store = _open_store(data_dir)
    repo = _require_repository(store, full_name)
    adr = store.create_new_adr(repo)
    if adr is None:
        raise typer.Exit(1)
    if title:
        store.open_adr(adr, repo)
        body = adr.edited_md.split("\n", 1)[1] if "\n" in adr.edited_md else ""
        store.update_md_of_current_adr(f"# {title}\n{body}")
    typer.echo(adr.path)


@app.command()
def show(
    full_name: str = typer.Argument(..., help="Repository as owner/name"),
    filename: str = typer.Argument(..., help="ADR file name, e.g. 0001-use_markdown.md"),
    data_dir: DataDirOption = None,
) -> None:
    """Print the working copy of an ADR."""
    store = _open_store(data_dir)
    typer.echo(_require_adr(store, full_name, filename).edited_md, nl=False)


@app.command()
def edit(
    full_name: str = typer.Argument(..., help="Repository as owner/name"),
    filename: str = typer.Argument(..., help="ADR file name, e.g. 0001-use_markdown.md"),
    source: Annotated[
        Path | None,
        typer.Option("--file", "-f", help="Read the new Markdown from a file (default: stdin)"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """Replace the Markdown of an ADR."""
    store = _open_store(data_dir)
    adr = _require_adr(store, full_name, filename)
    md = source.read_text(encoding="utf-8") if source else sys.stdin.read()
    store.update_md_of_current_adr(md)
    typer.echo(adr.path)


@app.command()
def delete(
    full_name: str = typer.Argument(..., help="Repository as owner/name"),
    filename: str = typer.Argument(..., help="ADR file name"),
    data_dir: DataDirOption = None,
) -> None:
    """Delete an ADR (remotely on the next commit, if it was published)."""
    store = _open_store(data_dir)
    repo = _require_repository(store, full_name)
    adr = _require_adr(store, full_name, filename)
    store.delete_adr(adr, repo)
    typer.echo(f"Deleted {adr.path}")


@app.command()
def status(
    full_name: str = typer.Argument(..., help="Repository as owner/name"),
    data_dir: DataDirOption = None,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Show the files the next commit would publish."""
    store = _open_store(data_dir)
    _require_repository(store, full_name)
    files = [
        *new_files_in_repo(store, full_name),
        *changed_files_in_repo(store, full_name),
        *deleted_files_in_repo(store, full_name),
    ]
    if output_json:
        data = [{"path": f.path, "title": f.title, "fileStatus": str(f.file_status)} for f in files]
        typer.echo(json.dumps(data, indent=2))
        return
    if not files:
        typer.echo("Nothing to commit.")
    for f in files:
        typer.echo(f"  {f.file_status:<8} {f.path}")


@app.command()
def commit(
    full_name: str = typer.Argument(..., help="Repository as owner/name"),
    message: str = typer.Option(..., "--message", "-m", help="Commit message"),
    data_dir: DataDirOption = None,
) -> None:
    """Publish all pending changes of a repository to its active branch."""
    store = _open_store(data_dir)
    _require_repository(store, full_name)
    try:
        publisher = GitHubPublisher(GitHubApi())
        pushed = commit_repository(store, publisher, full_name, message=message)
    except (RuntimeError, requests.RequestException) as e:
        logger.error("Cannot commit {}: {}", full_name, e)
        raise typer.Exit(1) from e
    typer.echo(f"Pushed {len(pushed)} file(s)")


@app.command()
def mode(
    value: Annotated[str | None, typer.Argument(help="basic, advanced or professional")] = None,
    data_dir: DataDirOption = None,
) -> None:
    """Show or set the editing mode."""
    store = _open_store(data_dir)
    if value is not None:
        store.set_mode(value)
        if store.mode != value:
            raise typer.Exit(1)
    typer.echo(store.mode)
