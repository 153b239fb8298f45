"""Running commands and pipelines in child processes."""

from __future__ import annotations

import os
import stat
import sys
from typing import Iterable, NoReturn, Sequence

from .builtins import ShellExit, run_builtin
from .commands import Command
from .environment import ShellState
from .paths import find_executable

_Pipe = tuple[int, int]


def _error(message: str) -> None:
    print(message, file=sys.stderr)


def _flush_std_streams() -> None:
    for stream in (sys.stdout, sys.stderr):
        try:
            stream.flush()
        except (AttributeError, ValueError, OSError):
            pass


def check_file_permissions(path: str) -> int:
    """Check that ``path`` can be run; return 0, 126 or 127 after reporting a problem."""
    try:
        info = os.stat(path)
    except OSError:
        _error(f"minishell: {path}: File o directory non esistente")
        return 127
    if stat.S_ISDIR(info.st_mode):
        _error(f"minishell: {path}: È una directory")
        return 126
    if not info.st_mode & stat.S_IXUSR:
        _error(f"minishell: {path}: Permesso negato")
        return 126
    return 0


def status_from_wait(status: int) -> int | None:
    """Turn a wait status into a shell status; None for a stopped child."""
    if os.WIFEXITED(status):
        return os.WEXITSTATUS(status)
    if os.WIFSIGNALED(status):
        return 128 + os.WTERMSIG(status)
    return None


def _exec(path: str, argv: Sequence[str]) -> int:
    """Replace the process with ``path``; return 126 only when that fails."""
    _flush_std_streams()
    try:
        os.execve(path, list(argv), os.environ)
    except OSError as err:
        _error(f"execve: {err.strerror}")
    return 126


def execute_child(cmd: Command, state: ShellState) -> int:
    """Run ``cmd`` in the current process, meant to be a forked child.

    External programs replace the process; the return value is the status
    the child should exit with when that did not happen.
    """
    if cmd.redir_error:
        return 1
    if cmd.is_builtin:
        try:
            return run_builtin(cmd, state)
        except ShellExit as exc:
            return exc.code
    if not cmd.argv or not cmd.argv[0]:
        return 0
    name = cmd.argv[0]
    if "/" in name:
        status = check_file_permissions(name)
        if status:
            return status
        return _exec(name, cmd.argv)
    if cmd.path is None:
        cmd.path = find_executable(name, state.env)
    if cmd.path is not None:
        return _exec(cmd.path, cmd.argv)
    _error(f"minishell: {name}: command not found")
    return 127


def _close_pipes(pipes: Iterable[_Pipe]) -> None:
    for read_end, write_end in pipes:
        for fd in (read_end, write_end):
            try:
                os.close(fd)
            except OSError:
                pass


def _setup_child_io(cmd: Command, pipes: Sequence[_Pipe], index: int) -> None:
    if index > 0:
        os.dup2(pipes[index - 1][0], 0)
    if index < len(pipes):
        os.dup2(pipes[index][1], 1)
    _close_pipes(pipes)
    if cmd.in_fd >= 0:
        os.dup2(cmd.in_fd, 0)
        os.close(cmd.in_fd)
        cmd.in_fd = -1
    if cmd.out_fd >= 0:
        os.dup2(cmd.out_fd, 1)
        os.close(cmd.out_fd)
        cmd.out_fd = -1
    sys.stdout = open(1, "w", closefd=False)
    sys.stderr = open(2, "w", closefd=False)


def _run_in_child(cmd: Command, pipes: Sequence[_Pipe], index: int, state: ShellState) -> NoReturn:
    status = 1
    try:
        _setup_child_io(cmd, pipes, index)
        status = execute_child(cmd, state)
    except Exception as err:
        _error(f"minishell: {err}")
        status = 1
    except BaseException:
        status = 1
    finally:
        _flush_std_streams()
        os._exit(status)


def _wait(pid: int) -> int | None:
    while True:
        try:
            _, status = os.waitpid(pid, 0)
            return status
        except KeyboardInterrupt:
            continue
        except ChildProcessError:
            return None


def _run_single(cmd: Command, state: ShellState) -> int | None:
    """Handle a lone command without forking when possible."""
    if cmd.redir_error:
        return 1
    if cmd.is_builtin:
        return run_builtin(cmd, state)
    if not cmd.argv or not cmd.argv[0]:
        state.last_status = 0
        return 0
    return None


def _create_pipes(count: int) -> list[_Pipe] | None:
    pipes: list[_Pipe] = []
    try:
        for _ in range(count):
            pipes.append(os.pipe())
    except OSError as err:
        _error(f"pipe: {err.strerror}")
        _close_pipes(pipes)
        return None
    return pipes


def execute_pipeline(commands: Iterable[Command], state: ShellState) -> int:
    """Run the commands joined by pipes and return the status of the last one.

    A lone built-in runs in the shell itself, so ShellExit from ``exit``
    propagates; everything else runs in forked children.
    """
    commands = list(commands)
    if not commands:
        state.last_status = 0
        return 0
    if len(commands) == 1:
        status = _run_single(commands[0], state)
        if status is not None:
            return status
    pipes = _create_pipes(len(commands) - 1)
    if pipes is None:
        return 1
    pids: list[int] = []
    try:
        _flush_std_streams()
        for index, cmd in enumerate(commands):
            try:
                pid = os.fork()
            except OSError as err:
                _error(f"fork: {err.strerror}")
                break
            if pid == 0:
                _run_in_child(cmd, pipes, index, state)
            pids.append(pid)
    finally:
        _close_pipes(pipes)
    for pid in pids:
        raw = _wait(pid)
        if raw is None:
            continue
        status = status_from_wait(raw)
        if status is not None:
            state.last_status = status
    return state.last_status