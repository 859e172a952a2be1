"""Configuration constants for adr-manager."""

import os
from pathlib import Path

# Environment variable overriding the data directory.
DATA_DIR_ENV: str = "ADR_MANAGER_DATA_DIR"

# Directory with the persisted editor state. First directory which is found is used.
DATA_DIRECTORIES: list[Path] = [
    Path("~/.local/share/adr-manager").expanduser(),
    Path("~/.adr-manager").expanduser(),
    Path("~/.config/adr-manager").expanduser(),
]

# GitHub token location. The GITHUB_TOKEN variable wins, else first file found is used.
API_TOKEN_ENV: str = "GITHUB_TOKEN"
API_TOKEN_FILES: list[Path] = [
    Path("~/.config/adr-manager-token.txt").expanduser(),
    Path("~/.config/secret/adr-manager-token.txt").expanduser(),
]

GITHUB_API_URL: str = "https://api.github.com"

# Request timeout (seconds) for the GitHub API.
API_TIMEOUT: float = 30.0

# Where decision records live inside a repository.
ADR_DIRECTORY: str = "docs/adr"

# Storage keys of the persisted state.
REPOSITORIES_KEY: str = "addedRepositories"
MODE_KEY: str = "mode"

DEFAULT_MODE: str = "basic"


def resolve_data_directory() -> Path:
    """Return the data directory to use.

    The environment override wins; otherwise the first existing candidate of
    DATA_DIRECTORIES, falling back to the first candidate.
    """
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return Path(override).expanduser()
    for candidate in DATA_DIRECTORIES:
        if candidate.is_dir():
            return candidate
    return DATA_DIRECTORIES[0]
