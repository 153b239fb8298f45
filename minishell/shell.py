"""The interactive read-and-run loop of the shell."""

from __future__ import annotations

import os
import signal
import sys
from typing import Sequence, TextIO

from .builtins import ShellExit
from .commands import close_commands, parse_input
from .environment import ShellState
from .executor import execute_pipeline

try:
    import readline
except ImportError:
    readline = None

PROMPT = "minishell$ "


def setup_signals(state: ShellState) -> None:
    """Make Ctrl-C abandon the current line and ignore Ctrl-\\."""

    def handle_sigint(signo: int, frame: object) -> None:
        state.signal = signal.SIGINT
        os.write(1, b"\n")
        raise KeyboardInterrupt

    signal.signal(signal.SIGINT, handle_sigint)
    signal.signal(signal.SIGQUIT, signal.SIG_IGN)


def process_command_line(line: str, state: ShellState) -> int:
    """Parse and run one line; return the shell's last status afterwards."""
    if line and readline is not None:
        readline.add_history(line)
    state.signal = 0
    commands = parse_input(line, state)
    if not commands:
        return state.last_status
    try:
        state.last_status = execute_pipeline(commands, state)
    finally:
        close_commands(commands)
    return state.last_status


def _read_line(stream: TextIO | None, interactive: bool) -> str | None:
    if stream is None:
        try:
            return input(PROMPT)
        except EOFError:
            return None
    if interactive:
        sys.stdout.write(PROMPT)
        sys.stdout.flush()
    line = stream.readline()
    if not line:
        return None
    return line[:-1] if line.endswith("\n") else line


def _clear_history() -> None:
    if readline is None:
        return
    clear = getattr(readline, "clear_history", None)
    if clear is not None:
        clear()


def run(
    stream: TextIO | None = None,
    state: ShellState | None = None,
    interactive: bool | None = None,
) -> int:
    """Read lines from ``stream`` (the prompt when None) and run them until EOF or ``exit``."""
    if state is None:
        state = ShellState()
    if interactive is None:
        interactive = sys.stdin.isatty()
    while True:
        try:
            line = _read_line(stream, interactive)
        except KeyboardInterrupt:
            continue
        if line is None:
            if interactive:
                sys.stdout.write("exit\n")
                sys.stdout.flush()
            break
        try:
            process_command_line(line, state)
        except ShellExit as exc:
            return exc.code
        except KeyboardInterrupt:
            continue
    _clear_history()
    return state.last_status


def main(argv: Sequence[str] | None = None) -> int:
    """Start the shell on standard input and return its final status."""
    state = ShellState()
    setup_signals(state)
    return run(None, state, sys.stdin.isatty())


if __name__ == "__main__":
    sys.exit(main())