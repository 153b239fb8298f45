"""The shell's built-in commands."""

from __future__ import annotations

import os
import sys
from typing import Callable, Sequence, TextIO

from .commands import Command
from .environment import UNSET_VALUE, ShellState, is_valid_identifier

_TERMINAL_ONLY = ("COLUMNS=", "LINES=")


class ShellExit(Exception):
    """Raised by ``exit`` to end the shell with ``code``."""

    def __init__(self, code: int) -> None:
        super().__init__(code)
        self.code = code


def _error(message: str) -> None:
    print(message, file=sys.stderr)


def builtin_echo(args: Sequence[str], state: ShellState, out: TextIO) -> int:
    """Print the arguments separated by spaces; leading ``-n`` flags drop the newline."""
    words = list(args[1:])
    newline = True
    while words and words[0] == "-n":
        newline = False
        words.pop(0)
    out.write(" ".join(words))
    if newline:
        out.write("\n")
    return 0


def builtin_cd(args: Sequence[str], state: ShellState, out: TextIO) -> int:
    """Change directory to the argument, to HOME (none or ``~``) or to OLDPWD (``-``)."""
    if len(args) > 2:
        _error("cd: troppi argomenti")
        return 1
    if len(args) < 2 or args[1] == "~":
        path = state.env.get("HOME")
    elif args[1] == "-":
        path = state.env.get("OLDPWD")
    else:
        path = args[1]
    if path is None:
        _error("cd: path not set")
        return 1
    try:
        os.chdir(path)
    except OSError as err:
        _error(f"cd: {err.strerror}")
        return 1
    return 0


def builtin_pwd(args: Sequence[str], state: ShellState, out: TextIO) -> int:
    """Print the current working directory."""
    try:
        cwd = os.getcwd()
    except OSError:
        _error("pwd: error retrieving current directory")
        return 1
    out.write(cwd + "\n")
    return 0


def format_export_entry(entry: str) -> str:
    """Return the ``declare -x`` line for one environment entry."""
    name, sep, value = entry.partition("=")
    if not sep:
        body = entry
    elif value.startswith(UNSET_VALUE):
        body = name
    elif not value:
        body = f'{name}=""'
    else:
        body = f'{name}="{value}"'
    return "declare -x " + body


def _invalid_identifier(builtin: str, name: str) -> None:
    _error(f"minishell: {builtin}: `{name}': not a valid identifier")


def _export_one(arg: str, state: ShellState) -> bool:
    name, sep, value = arg.partition("=")
    if sep:
        if not is_valid_identifier(name):
            _invalid_identifier("export", name)
            return False
        state.env.set(name, value, True)
        return True
    if not is_valid_identifier(arg):
        _invalid_identifier("export", arg)
        return False
    if state.env.get(arg) is None:
        state.env.set(arg, UNSET_VALUE, True)
    return True


def builtin_export(args: Sequence[str], state: ShellState, out: TextIO) -> int:
    """Set variables, or list them all sorted when given no argument."""
    if len(args) < 2:
        for entry in sorted(state.env.entries()):
            out.write(format_export_entry(entry) + "\n")
        return 0
    results = [_export_one(arg, state) for arg in args[1:]]
    return 0 if all(results) else 1


def builtin_unset(args: Sequence[str], state: ShellState, out: TextIO) -> int:
    """Remove the named variables; invalid names are reported."""
    status = 0
    for name in args[1:]:
        if is_valid_identifier(name):
            state.env.unset(name)
        else:
            _invalid_identifier("unset", name)
            status = 1
    return status


def _is_terminal(out: TextIO) -> bool:
    try:
        return out.isatty()
    except (AttributeError, ValueError, OSError):
        return False


def builtin_env(args: Sequence[str], state: ShellState, out: TextIO) -> int:
    """Print the variables that carry a value.

    COLUMNS and LINES are left out when the output is not a terminal.
    """
    terminal = _is_terminal(out)
    for entry in state.env.entries():
        _, sep, value = entry.partition("=")
        if not sep or value.startswith(UNSET_VALUE):
            continue
        if not terminal and entry.startswith(_TERMINAL_ONLY):
            continue
        out.write(entry + "\n")
    return 0


def _is_valid_number(text: str) -> bool:
    digits = text[1:] if text[:1] in ("+", "-") else text
    return bool(digits) and all("0" <= c <= "9" for c in digits)


def builtin_exit(args: Sequence[str], state: ShellState, out: TextIO) -> int:
    """End the shell by raising ShellExit; too many arguments only fail with 1."""
    if len(args) > 2:
        _error("exit: troppi argomenti")
        return 1
    code = 0
    if len(args) == 2:
        if not _is_valid_number(args[1]):
            _error(f"exit: {args[1]}: è necessario un argomento numerico")
            raise ShellExit(2)
        code = int(args[1]) & 0xFF
    raise ShellExit(code)


Builtin = Callable[[Sequence[str], ShellState, TextIO], int]

BUILTINS: dict[str, Builtin] = {
    "echo": builtin_echo,
    "cd": builtin_cd,
    "pwd": builtin_pwd,
    "export": builtin_export,
    "unset": builtin_unset,
    "env": builtin_env,
    "exit": builtin_exit,
}


def run_builtin(cmd: Command, state: ShellState) -> int:
    """Run the built-in named by ``cmd.argv[0]`` with its redirections.

    The status is stored in ``state.last_status`` and returned; an unknown
    name gives 1. ShellExit from ``exit`` propagates.
    """
    if not cmd.argv:
        return state.last_status
    if cmd.in_fd >= 0:
        try:
            os.close(cmd.in_fd)
        except OSError:
            pass
        cmd.in_fd = -1
    own_out = cmd.out_fd >= 0
    if own_out:
        out: TextIO = os.fdopen(cmd.out_fd, "w", closefd=True)
        cmd.out_fd = -1
    else:
        out = sys.stdout
    try:
        func = BUILTINS.get(cmd.argv[0])
        status = func(cmd.argv, state, out) if func is not None else 1
    finally:
        if own_out:
            out.close()
        else:
            out.flush()
    state.last_status = status
    return status