"""GitHub API client: fetch repositories and publish commits of ADR files."""

import base64
import os
from typing import Any

import requests
from loguru import logger

from adr_manager.config import (
    ADR_DIRECTORY,
    API_TIMEOUT,
    API_TOKEN_ENV,
    API_TOKEN_FILES,
    GITHUB_API_URL,
)
from adr_manager.core.naming import parse_adr_id
from adr_manager.models.adr import Adr, CommitFile, FileStatus, PushedFile, RepoInfo, Repository


def read_api_token() -> str:
    """Return the GitHub token from the environment or the first token file found."""
    token = os.environ.get(API_TOKEN_ENV)
    if token:
        return token.strip()
    for token_path in API_TOKEN_FILES:
        try:
            return token_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            pass
    msg = f"Cannot find GitHub token: set {API_TOKEN_ENV} or create one of {API_TOKEN_FILES!r}"
    raise RuntimeError(msg)


class GitHubApi:
    """Thin wrapper around the GitHub REST API."""

    def __init__(self, *, token: str | None = None, base_url: str = GITHUB_API_URL) -> None:
        self.base_url = base_url.rstrip("/")
        self.sess = requests.Session()
        self.sess.headers.update(
            {
                "Authorization": f"Bearer {token or read_api_token()}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            }
        )
        logger.debug("GitHub API ready: {!r}", self.base_url)

    def call(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
        allow_missing: bool = False,
    ) -> Any:
        """Invoke an API endpoint, return decoded json.

        With ``allow_missing``, a 404 returns None instead of raising.
        """
        logger.debug("Making request: {} {!r} {}", method, path, repr(params)[:32])
        r = self.sess.request(
            method,
            f"{self.base_url}/{path}",
            params=params,
            json=body,
            timeout=API_TIMEOUT,
        )
        if allow_missing and r.status_code == 404:
            return None
        r.raise_for_status()
        return r.json() if r.content else None

    def get_default_branch(self, full_name: str) -> str:
        repo: dict[str, Any] = self.call("GET", f"repos/{full_name}")
        return str(repo["default_branch"])

    def list_branches(self, full_name: str) -> list[str]:
        branches: list[str] = []
        page = 1
        while True:
            batch = self.call(
                "GET", f"repos/{full_name}/branches", params={"per_page": 100, "page": page}
            )
            branches.extend(b["name"] for b in batch)
            if len(batch) < 100:
                return branches
            page += 1

    def get_file(self, full_name: str, path: str, *, branch: str) -> dict[str, Any] | None:
        """Return the contents entry of a file (with ``sha``), None if absent."""
        return self.call(  # type: ignore[no-any-return]
            "GET",
            f"repos/{full_name}/contents/{path}",
            params={"ref": branch},
            allow_missing=True,
        )

    def read_text(self, full_name: str, path: str, *, branch: str) -> str | None:
        entry = self.get_file(full_name, path, branch=branch)
        if entry is None:
            return None
        return base64.b64decode(entry["content"]).decode("utf-8")

    def fetch_repository(self, full_name: str, *, branch: str | None = None) -> Repository:
        """Build a repository from the Markdown files under the ADR directory.

        Fetched ADRs are published by definition: baseline and working copy
        are the same.
        """
        branch = branch or self.get_default_branch(full_name)
        branches = self.list_branches(full_name)
        entries = (
            self.call(
                "GET",
                f"repos/{full_name}/contents/{ADR_DIRECTORY}",
                params={"ref": branch},
                allow_missing=True,
            )
            or []
        )
        md_entries = sorted(
            (e for e in entries if e["type"] == "file" and e["name"].endswith(".md")),
            key=lambda e: e["name"],
        )

        parsed = [(entry, parse_adr_id(entry["name"])) for entry in md_entries]
        # Files like README.md carry no number; they get ids after the numbered ones.
        next_id = max((i for _, i in parsed if i is not None), default=-1) + 1

        adrs: list[Adr] = []
        for entry, adr_id in parsed:
            if adr_id is None:
                adr_id = next_id
                next_id += 1
            md = self.read_text(full_name, entry["path"], branch=branch) or ""
            adrs.append(Adr(id=adr_id, path=entry["path"], original_md=md, edited_md=md))

        logger.info("Fetched {} ADR(s) from {} ({})", len(adrs), full_name, branch)
        return Repository(full_name=full_name, active_branch=branch, branches=branches, adrs=adrs)


class GitHubPublisher:
    """Publish commit files through the contents API, one request per file."""

    def __init__(self, api: GitHubApi) -> None:
        self.api = api

    def publish(
        self,
        repo_info: RepoInfo,
        files: list[CommitFile],
        *,
        message: str,
    ) -> list[PushedFile]:
        """Push ``files`` to the active branch.

        Failures are logged and left out of the result; the caller only
        reconciles what was actually pushed.
        """
        full_name = f"{repo_info.user_name}/{repo_info.repo_name}"
        branch = repo_info.active_branch
        pushed: list[PushedFile] = []

        for file in files:
            try:
                existing = self.api.get_file(full_name, file.path, branch=branch)
                sha = existing["sha"] if existing else None
                if file.file_status == FileStatus.DELETED:
                    if sha is None:
                        logger.debug("{!r} is already gone", file.path)
                    else:
                        self.api.call(
                            "DELETE",
                            f"repos/{full_name}/contents/{file.path}",
                            body={"message": message, "sha": sha, "branch": branch},
                        )
                else:
                    body: dict[str, Any] = {
                        "message": message,
                        "content": base64.b64encode((file.value or "").encode("utf-8")).decode(
                            "ascii"
                        ),
                        "branch": branch,
                    }
                    if sha is not None:
                        body["sha"] = sha
                    self.api.call("PUT", f"repos/{full_name}/contents/{file.path}", body=body)
            except requests.RequestException as e:
                logger.warning("Failed to push {!r} ({}): {}", file.path, file.file_status, e)
                continue
            pushed.append(PushedFile(path=file.path, type=file.file_status))

        logger.info(
            "Pushed {} of {} file(s) to {} ({})", len(pushed), len(files), full_name, branch
        )
        return pushed
