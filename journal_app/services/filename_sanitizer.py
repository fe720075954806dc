from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

WINDOWS_RESERVED_NAMES = frozenset(
    {
        "CON",
        "PRN",
        "AUX",
        "NUL",
        *{f"COM{i}" for i in range(1, 10)},
        *{f"LPT{i}" for i in range(1, 10)},
    }
)
MAX_FILENAME_LENGTH = 255

_INVALID_CHARS_RE = re.compile(r"[^a-zA-Z0-9_\-.]")
_DOT_RUN_RE = re.compile(r"\.{2,}")
_UNDERSCORE_RUN_RE = re.compile(r"_{2,}")
_VALID_NAME_RE = re.compile(r"[a-zA-Z0-9_\-.]+")


@dataclass(frozen=True)
class SanitizeResult:
    filename: str
    is_valid: bool
    was_modified: bool
    error: Optional[str] = None


def sanitize_filename(filename: str) -> SanitizeResult:
    """Clean a user-supplied filename for use as a storage key.

    Characters outside ``[a-zA-Z0-9_-.]`` become ``_``, edge dots are
    stripped and runs of dots or underscores are collapsed. The result
    reports whether the cleaned name is usable; this function never raises.
    ``was_modified`` compares against the whitespace-trimmed input.
    """
    if not filename or not filename.strip():
        return SanitizeResult(
            filename="",
            is_valid=False,
            was_modified=False,
            error="Filename cannot be empty",
        )

    trimmed = filename.strip()
    sanitized = trimmed.strip(".")
    sanitized = _INVALID_CHARS_RE.sub("_", sanitized)
    # substitution must run first so ".." residue from "/../" is caught here
    sanitized = _DOT_RUN_RE.sub(".", sanitized)
    sanitized = _UNDERSCORE_RUN_RE.sub("_", sanitized)
    modified = sanitized != trimmed

    if not sanitized:
        return SanitizeResult(
            filename="",
            is_valid=False,
            was_modified=True,
            error="Filename contains only invalid characters",
        )

    base_name = sanitized.split(".", 1)[0].upper()
    if base_name in WINDOWS_RESERVED_NAMES:
        return SanitizeResult(
            filename=sanitized,
            is_valid=False,
            was_modified=modified,
            error=f'Filename "{base_name}" is reserved by Windows',
        )

    if len(sanitized) > MAX_FILENAME_LENGTH:
        return SanitizeResult(
            filename=sanitized,
            is_valid=False,
            was_modified=modified,
            error=f"Filename exceeds maximum length of {MAX_FILENAME_LENGTH} characters",
        )

    if not _VALID_NAME_RE.fullmatch(sanitized):
        return SanitizeResult(
            filename=sanitized,
            is_valid=False,
            was_modified=True,
            error="Sanitized filename still contains invalid characters",
        )

    if sanitized.startswith("."):
        return SanitizeResult(
            filename=sanitized,
            is_valid=False,
            was_modified=modified,
            error="Filename must have characters before the extension",
        )

    return SanitizeResult(filename=sanitized, is_valid=True, was_modified=modified)


def file_extension(name: str) -> str:
    last_dot = name.rfind(".")
    return name[last_dot:] if last_dot > 0 else ""


def filename_stem(name: str) -> str:
    last_dot = name.rfind(".")
    return name[:last_dot] if last_dot > 0 else name


__all__ = [
    "MAX_FILENAME_LENGTH",
    "SanitizeResult",
    "WINDOWS_RESERVED_NAMES",
    "file_extension",
    "filename_stem",
    "sanitize_filename",
]
