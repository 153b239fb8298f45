# minishell

A small POSIX-style command shell. It reads command lines, splits them into
words and operators, expands variables, strips quotes, and runs the resulting
pipeline of commands, either as built-ins or as external programs found on
`PATH`. It needs a POSIX system, since pipelines are run with `fork`.

## Installing

```
pip install .
```

## Running

```
minishell
```

The prompt is `minishell$ `. Commands are read line by line from standard
input, so the shell can also be fed a script:

```
printf 'echo hello | cat\nexit 3\n' | minishell
```

Ctrl-C abandons the current line and Ctrl-\ is ignored. At end of input an
interactive session prints `exit`, and the shell returns the status of the
last command. Lines typed are added to the `readline` history when that
module is available.

## What it understands

- Words separated by spaces or tabs. Single quotes keep text literally;
  double quotes allow `$` expansion and the backslash escapes `\"`, `\\`,
  `\$`, `\n` and `\t`.
- `$NAME` and `$?` (status of the last command). A word that expands to
  nothing is dropped.
- Pipes `|` and the redirections `<`, `>`, `>>` and `<<`. Note that `<<`
  opens the named file for reading, like `<`.
- Syntax errors: a leading pipe, two pipes in a row, a trailing pipe, or a
  redirection without a target word make the line be ignored.
- A redirection that cannot be opened is reported and the command fails with
  status 1.

## Built-in commands

| Command  | Behaviour |
|----------|-----------|
| `echo`   | prints its arguments; any number of leading `-n` suppresses the newline |
| `cd`     | changes directory; no argument or `~` uses `HOME`, `-` uses `OLDPWD` |
| `pwd`    | prints the current directory |
| `export` | sets variables (`NAME=value` or `NAME`); without arguments lists them as `declare -x` lines, sorted |
| `unset`  | removes variables |
| `env`    | prints variables that have a value; `COLUMNS` and `LINES` only when writing to a terminal |
| `exit`   | leaves the shell with the given status (taken modulo 256); a non-numeric argument exits with 2 |

A built-in alone on a line runs inside the shell; inside a pipeline it runs
in a child process, so `cd`, `export`, `unset` and `exit` there do not affect
the shell itself.

Exit statuses follow the usual conventions: 127 for a command that cannot be
found, 126 for one that cannot be run, 128 plus the signal number for a
program killed by a signal.

Some error messages are written in Italian (for example
`File o directory non esistente`).

## What it does not do

There are no `;`, `&&` or `||` lists, no subshells, no globbing, no job
control, no here-documents read from the terminal, and no history file kept
between sessions. `cd` does not update `PWD` or `OLDPWD`. External programs
are started with the environment of the Python process, not with the
variables set through `export`.

## Using it from Python

The pieces are available as modules:

- `minishell.lexer`: `tokenize`, `check_syntax_errors`, `Token`, `TokenType`
- `minishell.expansion`: `expand_string`, `expand_variables`,
  `process_token_quotes`, `handle_quotes`
- `minishell.commands`: `parse_input`, `build_commands`, `Command`,
  `close_commands`
- `minishell.environment`: `Environment`, `ShellState`,
  `is_valid_identifier`
- `minishell.paths`: `find_executable`, `search_in_path`
- `minishell.builtins`: `run_builtin`, `format_export_entry`, `ShellExit`
- `minishell.executor`: `execute_pipeline`
- `minishell.shell`: `run`, `process_command_line`, `main`

```python
from minishell.commands import parse_input
from minishell.environment import Environment, ShellState

state = ShellState(env=Environment(["USER=alice"]))
commands = parse_input('echo "hi $USER"', state)
print(commands[0].argv)   # ['echo', 'hi alice']
```

## Tests

```
pip install .[test]
pytest
```