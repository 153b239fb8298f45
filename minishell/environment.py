"""The shell's own copy of the environment and its global state."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Iterable

# Value stored for a variable that was exported without a value (``export NAME``).
UNSET_VALUE = "\x01"


def create_env_string(name: str, value: str) -> str:
    """Return the ``NAME=value`` entry for a variable."""
    return f"{name}={value}"


def is_valid_identifier(name: str | None) -> bool:
    """Tell whether ``name`` is a valid shell variable name."""
    if not name:
        return False
    first, rest = name[0], name[1:]
    if not (first == "_" or (first.isascii() and first.isalpha())):
        return False
    return all(c == "_" or (c.isascii() and c.isalnum()) for c in rest)


class Environment:
    """An ordered list of ``NAME=value`` entries owned by the shell."""

    def __init__(self, entries: Iterable[str] = ()) -> None:
        self._entries: list[str] = list(entries)

    @classmethod
    def from_os(cls) -> Environment:
        """Build an environment from a copy of the process environment."""
        return cls(create_env_string(k, v) for k, v in os.environ.items())

    def index_of(self, name: str | None) -> int | None:
        """Return the position of ``name`` in the entry list, or None."""
        if name is None:
            return None
        prefix = name + "="
        for index, entry in enumerate(self._entries):
            if entry.startswith(prefix):
                return index
        return None

    def get(self, name: str | None) -> str | None:
        """Return the value of ``name``, or None when it is not set."""
        index = self.index_of(name)
        if index is None:
            return None
        return self._entries[index][len(name) + 1:]

    def set(self, name: str, value: str, overwrite: bool = True) -> None:
        """Set ``name`` to ``value``; an existing value is kept unless ``overwrite``."""
        if name is None or value is None or "=" in name:
            raise ValueError(f"invalid variable name or value: {name!r}")
        entry = create_env_string(name, value)
        index = self.index_of(name)
        if index is None:
            self._entries.append(entry)
        elif overwrite:
            self._entries[index] = entry

    def unset(self, name: str) -> None:
        """Remove ``name``; nothing happens when it is not set."""
        if name is None or "=" in name:
            raise ValueError(f"invalid variable name: {name!r}")
        index = self.index_of(name)
        if index is not None:
            del self._entries[index]

    def entries(self) -> list[str]:
        """Return a copy of the entries in their stored order."""
        return list(self._entries)

    def to_dict(self) -> dict[str, str]:
        """Return the variables that carry a value, as a name-to-value mapping."""
        result: dict[str, str] = {}
        for entry in self._entries:
            name, sep, value = entry.partition("=")
            if sep and value != UNSET_VALUE:
                result[name] = value
        return result

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class ShellState:
    """State shared by the whole shell session."""

    signal: int = 0
    last_status: int = 0
    env: Environment = field(default_factory=Environment.from_os)