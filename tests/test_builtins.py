import io
import os

import pytest

from minishell.builtins import (
    ShellExit,
    builtin_cd,
    builtin_echo,
    builtin_env,
    builtin_exit,
    builtin_export,
    builtin_pwd,
    builtin_unset,
    format_export_entry,
    run_builtin,
)
from minishell.commands import Command
from minishell.environment import UNSET_VALUE, Environment, ShellState


def make_state(*entries):
    return ShellState(env=Environment(entries))


def run(func, args, state):
    out = io.StringIO()
    status = func(args, state, out)
    return status, out.getvalue()


def test_echo_joins_with_spaces_and_newline():
    assert run(builtin_echo, ["echo", "a", "b"], make_state()) == (0, "a b\n")


def test_echo_repeated_n_flags_drop_newline():
    assert run(builtin_echo, ["echo", "-n", "-n", "x"], make_state()) == (0, "x")


def test_echo_n_flag_only_at_start():
    assert run(builtin_echo, ["echo", "x", "-n"], make_state()) == (0, "x -n\n")


def test_echo_nn_is_not_a_flag():
    assert run(builtin_echo, ["echo", "-nn"], make_state()) == (0, "-nn\n")


def test_cd_to_argument(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = tmp_path / "sub"
    target.mkdir()
    status, _ = run(builtin_cd, ["cd", str(target)], make_state())
    assert status == 0
    assert os.path.samefile(os.getcwd(), target)


def test_cd_without_argument_goes_home(tmp_path, monkeypatch):
    monkeypatch.chdir(os.path.dirname(tmp_path))
    state = make_state(f"HOME={tmp_path}")
    assert run(builtin_cd, ["cd"], state)[0] == 0
    assert os.path.samefile(os.getcwd(), tmp_path)


def test_cd_dash_goes_to_oldpwd(tmp_path, monkeypatch):
    monkeypatch.chdir(os.path.dirname(tmp_path))
    state = make_state(f"OLDPWD={tmp_path}")
    assert run(builtin_cd, ["cd", "-"], state)[0] == 0
    assert os.path.samefile(os.getcwd(), tmp_path)


def test_cd_too_many_arguments(capsys):
    assert run(builtin_cd, ["cd", "a", "b"], make_state())[0] == 1
    assert "cd: troppi argomenti" in capsys.readouterr().err


def test_cd_home_not_set(capsys):
    assert run(builtin_cd, ["cd"], make_state())[0] == 1
    assert "cd: path not set" in capsys.readouterr().err


def test_cd_missing_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert run(builtin_cd, ["cd", str(tmp_path / "nope")], make_state())[0] == 1
    assert os.path.samefile(os.getcwd(), tmp_path)


def test_pwd_prints_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    status, text = run(builtin_pwd, ["pwd"], make_state())
    assert status == 0
    assert text == os.getcwd() + "\n"


def test_format_export_entry_cases():
    assert format_export_entry("A=b") == 'declare -x A="b"'
    assert format_export_entry("A=") == 'declare -x A=""'
    assert format_export_entry("A=" + UNSET_VALUE) == "declare -x A"


def test_export_sets_values():
    state = make_state()
    assert run(builtin_export, ["export", "X=1", "Y="], state)[0] == 0
    assert state.env.get("X") == "1"
    assert state.env.get("Y") == ""


def test_export_without_value_marks_unset():
    state = make_state()
    run(builtin_export, ["export", "Z"], state)
    assert state.env.get("Z") == UNSET_VALUE


def test_export_without_value_keeps_existing():
    state = make_state("Z=keep")
    run(builtin_export, ["export", "Z"], state)
    assert state.env.get("Z") == "keep"


def test_export_invalid_identifier_reports_name(capsys):
    state = make_state()
    status, _ = run(builtin_export, ["export", "1A=x", "OK=y"], state)
    assert status == 1
    assert state.env.get("OK") == "y"
    assert state.env.get("1A") is None
    assert "minishell: export: `1A': not a valid identifier" in capsys.readouterr().err


def test_export_lists_sorted():
    state = make_state("B=2", "A=1", "C=" + UNSET_VALUE)
    status, text = run(builtin_export, ["export"], state)
    assert status == 0
    assert text.splitlines() == [
        format_export_entry("A=1"),
        format_export_entry("B=2"),
        format_export_entry("C=" + UNSET_VALUE),
    ]


def test_unset_removes_and_reports(capsys):
    state = make_state("A=1", "B=2")
    status, _ = run(builtin_unset, ["unset", "A", "9x"], state)
    assert status == 1
    assert state.env.entries() == ["B=2"]
    assert "minishell: unset: `9x': not a valid identifier" in capsys.readouterr().err


def test_env_skips_unset_and_terminal_vars():
    state = make_state("A=1", "B=" + UNSET_VALUE, "COLUMNS=80", "LINES=24", "E=")
    status, text = run(builtin_env, ["env"], state)
    assert status == 0
    assert text.splitlines() == ["A=1", "E="]


@pytest.mark.parametrize(
    "arg, code",
    [("5", 5), ("256", 0), ("-1", 255), ("+7", 7)],
)
def test_exit_codes(arg, code):
    with pytest.raises(ShellExit) as info:
        builtin_exit(["exit", arg], make_state(), io.StringIO())
    assert info.value.code == code


def test_exit_without_argument():
    with pytest.raises(ShellExit) as info:
        builtin_exit(["exit"], make_state(), io.StringIO())
    assert info.value.code == 0


@pytest.mark.parametrize("arg", ["abc", "+", "", "1x"])
def test_exit_non_numeric(arg, capsys):
    with pytest.raises(ShellExit) as info:
        builtin_exit(["exit", arg], make_state(), io.StringIO())
    assert info.value.code == 2
    assert "è necessario un argomento numerico" in capsys.readouterr().err


def test_exit_too_many_arguments():
    assert run(builtin_exit, ["exit", "1", "2"], make_state())[0] == 1


def test_run_builtin_writes_to_out_fd(tmp_path):
    target = tmp_path / "out.txt"
    fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o644)
    cmd = Command(argv=["echo", "hi"], out_fd=fd, is_builtin=True)
    state = make_state()
    state.last_status = 9
    assert run_builtin(cmd, state) == 0
    assert state.last_status == 0
    assert cmd.out_fd == -1
    assert target.read_text() == "hi\n"


def test_run_builtin_sets_failure_status():
    state = make_state()
    cmd = Command(argv=["unset", "1bad"], is_builtin=True)
    assert run_builtin(cmd, state) == 1
    assert state.last_status == 1


def test_run_builtin_unknown_name():
    state = make_state()
    assert run_builtin(Command(argv=["nosuch"]), state) == 1


def test_run_builtin_exit_propagates():
    with pytest.raises(ShellExit) as info:
        run_builtin(Command(argv=["exit", "3"], is_builtin=True), make_state())
    assert info.value.code == 3