"""File naming for decision records: titles, snake case, and safe filenames."""

import re

WINDOWS_RESERVED_RE = re.compile(r"^(con|prn|aux|nul|com[0-9]|lpt[0-9])(\..*)?$", re.IGNORECASE)
INVALID_CHARS_RE = re.compile(r'[/?<>\\:*|"]')
CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x80-\x9f]")
RESERVED_RE = re.compile(r"^\.+$")
TRAILING_RE = re.compile(r"[. ]+$")
WHITESPACE_RE = re.compile(r"\s+")

# Most filesystems cap a name at 255 bytes.
MAX_FILENAME_BYTES = 255


def extract_title(md: str) -> str:
    """Return the title of a Markdown document: its first line minus heading markers."""
    first_line = md.split("\n", 1)[0]
    return first_line.lstrip("#").strip()


def natural_case_to_snake_case(title: str) -> str:
    """Convert "My Decision" to "my_decision"."""
    return WHITESPACE_RE.sub("_", title.strip()).lower()


def sanitize_filename(name: str, *, replacement: str = "") -> str:
    """Make ``name`` safe to use as a file name on any common filesystem.

    Path separators, reserved punctuation and control characters are replaced,
    as are names that are only dots, Windows device names and trailing dots or
    spaces. The result is truncated to MAX_FILENAME_BYTES of UTF-8.
    """
    name = INVALID_CHARS_RE.sub(replacement, name)
    name = CONTROL_CHARS_RE.sub(replacement, name)
    name = RESERVED_RE.sub(replacement, name)
    name = WINDOWS_RESERVED_RE.sub(replacement, name)
    name = TRAILING_RE.sub(replacement, name)
    encoded = name.encode("utf-8")[:MAX_FILENAME_BYTES]
    return encoded.decode("utf-8", errors="ignore")


def adr_filename(adr_id: int, title: str) -> str:
    """Build the file name of an ADR, e.g. ``0003-my_decision.md``."""
    return sanitize_filename(f"{adr_id:04d}-{natural_case_to_snake_case(title)}.md")


def with_filename(path: str, filename: str) -> str:
    """Replace the last component of a ``/``-separated path."""
    parts = path.split("/")
    parts[-1] = filename
    return "/".join(parts)


def parse_adr_id(filename: str) -> int | None:
    """Return the number encoded in a ``NNNN-title.md`` file name, if any."""
    match = re.match(r"^(\d+)-", filename)
    return int(match.group(1)) if match else None
