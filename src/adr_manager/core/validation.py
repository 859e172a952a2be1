"""Shape validation for persisted repository snapshots."""

from dataclasses import dataclass
from typing import Any

REPOSITORY_FIELDS: tuple[str, ...] = (
    "fullName",
    "activeBranch",
    "branches",
    "addedAdrs",
    "deletedAdrs",
    "adrs",
)

ADR_FIELDS: tuple[str, ...] = ("originalMd", "editedMd", "path")

# Repository fields holding lists of serialized ADRs.
LIST_FIELDS: tuple[str, ...] = ("adrs", "addedAdrs", "deletedAdrs")


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a validation: valid iff there are no problems."""

    problems: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.problems


def missing_fields(data: Any, required: tuple[str, ...]) -> list[str]:
    """Return the names in ``required`` that ``data`` does not carry."""
    if not isinstance(data, dict):
        return list(required)
    return [name for name in required if name not in data]


def validate_adr(data: Any, *, label: str = "adr") -> ValidationResult:
    missing = missing_fields(data, ADR_FIELDS)
    return ValidationResult(tuple(f"{label}: missing {name!r}" for name in missing))


def validate_repository(data: Any, *, label: str = "repository") -> ValidationResult:
    """Validate a serialized repository and every entry of its ADR lists."""
    if isinstance(data, dict) and isinstance(data.get("fullName"), str):
        label = f"{label} ({data['fullName']})"
    problems = [f"{label}: missing {name!r}" for name in missing_fields(data, REPOSITORY_FIELDS)]

    if not isinstance(data, dict):
        return ValidationResult(tuple(problems))

    for name in ("fullName", "activeBranch"):
        if not isinstance(data.get(name, ""), str):
            problems.append(f"{label}: {name!r} is not a string")
    branches = data.get("branches", [])
    if not isinstance(branches, list) or not all(isinstance(b, str) for b in branches):
        problems.append(f"{label}: 'branches' is not a list of strings")
    for name in LIST_FIELDS:
        entries = data.get(name)
        if entries is not None and not isinstance(entries, list):
            problems.append(f"{label}: {name!r} is not a list")
        elif entries:
            for i, adr in enumerate(entries):
                problems.extend(validate_adr(adr, label=f"{label}.{name}[{i}]").problems)
    return ValidationResult(tuple(problems))


def validate_repository_list(data: Any) -> ValidationResult:
    """Validate a loaded list of repositories.

    The list is only usable as a whole: callers discard it on any problem.
    """
    if not isinstance(data, list):
        return ValidationResult((f"expected a list of repositories, got {type(data).__name__}",))
    problems: list[str] = []
    seen: set[str] = set()
    for i, repo in enumerate(data):
        problems.extend(validate_repository(repo, label=f"repository[{i}]").problems)
        full_name = repo.get("fullName") if isinstance(repo, dict) else None
        if isinstance(full_name, str):
            if full_name in seen:
                problems.append(f"repository[{i}]: duplicate fullName {full_name!r}")
            seen.add(full_name)
    return ValidationResult(tuple(problems))
