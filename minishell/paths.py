"""Locating executables through PATH."""

from __future__ import annotations

import os
import stat
from typing import Iterator

from .environment import Environment


def is_executable(path: str) -> bool:
    """Tell whether ``path`` is a regular file its owner may execute."""
    try:
        info = os.stat(path)
    except OSError:
        return False
    return stat.S_ISREG(info.st_mode) and bool(info.st_mode & stat.S_IXUSR)


def build_path_string(directory: str, cmd: str) -> str:
    """Join a PATH directory and a command name with a single slash."""
    return f"{directory}/{cmd}"


def path_entries(path: str) -> Iterator[str]:
    """Yield the colon-separated directories of ``path``.

    Empty entries in the middle or at the start are kept; a trailing colon
    adds nothing, and an empty ``path`` yields nothing.
    """
    rest = path
    while rest:
        head, sep, rest = rest.partition(":")
        yield head
        if not sep:
            break


def search_in_path(cmd: str, path: str) -> str | None:
    """Return the first executable ``cmd`` found in the directories of ``path``."""
    for directory in path_entries(path):
        candidate = build_path_string(directory, cmd)
        if is_executable(candidate):
            return candidate
    return None


def find_executable(cmd: str, env: Environment) -> str | None:
    """Resolve ``cmd`` to the path of an executable, or None.

    A name holding a slash is taken as a path and only checked; any other
    name is looked up in the PATH of ``env``.
    """
    if "/" in cmd:
        return cmd if is_executable(cmd) else None
    path = env.get("PATH")
    if path is None:
        return None
    return search_in_path(cmd, path)