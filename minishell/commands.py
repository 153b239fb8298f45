"""Building commands from tokens and opening their redirections."""

from __future__ import annotations

import errno
import os
import sys
from dataclasses import dataclass, field
from typing import Iterable

from .environment import ShellState
from .expansion import expand_variables, handle_quotes
from .lexer import Token, TokenType, check_syntax_errors, tokenize

BUILTIN_NAMES = ("echo", "cd", "pwd", "export", "unset", "env", "exit")

_INPUT_OPS = frozenset({TokenType.REDIR_IN, TokenType.HEREDOC})
_OUTPUT_OPS = frozenset({TokenType.REDIR_OUT, TokenType.APPEND})


@dataclass
class Command:
    """One simple command of a pipeline with its open redirections."""

    argv: list[str] = field(default_factory=list)
    path: str | None = None
    in_fd: int = -1
    out_fd: int = -1
    is_builtin: bool = False
    redir_error: bool = False

    def close(self) -> None:
        """Close the redirection descriptors still held by the command."""
        for attr in ("in_fd", "out_fd"):
            fd = getattr(self, attr)
            if fd >= 0:
                try:
                    os.close(fd)
                except OSError:
                    pass
                setattr(self, attr, -1)

    def __enter__(self) -> Command:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def is_builtin_command(name: str | None) -> bool:
    """Tell whether ``name`` is one of the shell's built-in commands."""
    return name is not None and name in BUILTIN_NAMES


def _replace_fd(cmd: Command, attr: str) -> None:
    fd = getattr(cmd, attr)
    if fd > 0:
        try:
            os.close(fd)
        except OSError as err:
            print(f"minishell: close: {err.strerror}", file=sys.stderr)
        setattr(cmd, attr, -1)


def _report_open_error(filename: str, err: OSError, state: ShellState) -> None:
    if err.errno == errno.ENOENT:
        if not os.path.exists(filename):
            print(f"minishell: {filename}: File o directory non esistente", file=sys.stderr)
            return
        print(f"minishell: {filename}: Permesso negato", file=sys.stderr)
    else:
        print(f"minishell: {err.strerror}", file=sys.stderr)
    state.last_status = 1


def apply_redirection(cmd: Command, op: TokenType, target: str, state: ShellState) -> None:
    """Open ``target`` for the redirection ``op`` and attach it to ``cmd``.

    A failure to open is reported on stderr and the OSError is raised again.
    """
    if op in _INPUT_OPS:
        attr, flags = "in_fd", os.O_RDONLY
    elif op in _OUTPUT_OPS:
        attr = "out_fd"
        flags = os.O_WRONLY | os.O_CREAT
        flags |= os.O_APPEND if op is TokenType.APPEND else os.O_TRUNC
    else:
        raise ValueError(f"not a redirection: {op!r}")
    _replace_fd(cmd, attr)
    try:
        fd = os.open(target, flags, 0o644)
    except OSError as err:
        _report_open_error(target, err, state)
        raise
    setattr(cmd, attr, fd)


def _finish(cmd: Command) -> Command | None:
    if not cmd.argv and not cmd.redir_error:
        cmd.close()
        return None
    if cmd.argv:
        cmd.is_builtin = is_builtin_command(cmd.argv[0])
    return cmd


def build_commands(tokens: Iterable[Token], state: ShellState) -> list[Command]:
    """Group tokens into commands split on pipes.

    After a failed redirection the rest of that command's words and
    redirections are ignored. Commands with no words and no failed
    redirection are dropped.
    """
    commands: list[Command] = []
    cmd = Command()
    stream = iter(tokens)
    for token in stream:
        if token.type is TokenType.PIPE:
            finished = _finish(cmd)
            if finished is not None:
                commands.append(finished)
            cmd = Command()
        elif token.type.is_redirection:
            target = next(stream, None)
            if cmd.redir_error or target is None:
                continue
            try:
                apply_redirection(cmd, token.type, target.value, state)
            except OSError:
                cmd.redir_error = True
        elif token.type is TokenType.WORD and not cmd.redir_error:
            cmd.argv.append(token.value)
    finished = _finish(cmd)
    if finished is not None:
        commands.append(finished)
    return commands


def parse_input(line: str | None, state: ShellState) -> list[Command]:
    """Tokenize, expand and check ``line``, then build its commands.

    An empty line or a syntax error gives no commands.
    """
    if not line:
        return []
    tokens = tokenize(line)
    if not tokens:
        return []
    tokens = expand_variables(tokens, state)
    tokens = handle_quotes(tokens, state)
    if check_syntax_errors(tokens):
        return []
    return build_commands(tokens, state)


def close_commands(commands: Iterable[Command]) -> None:
    """Close the descriptors of every command."""
    for cmd in commands:
        cmd.close()