import os

import pytest

from minishell.environment import (
    UNSET_VALUE,
    Environment,
    ShellState,
    create_env_string,
    is_valid_identifier,
)


@pytest.fixture
def env():
    return Environment(["HOME=/home/user", "PATH=/bin:/usr/bin", "EMPTY="])


def test_get_existing(env):
    assert env.get("HOME") == "/home/user"
    assert env.get("EMPTY") == ""


def test_get_missing_and_prefix(env):
    assert env.get("NOPE") is None
    assert env.get("PAT") is None
    assert env.get("PATHX") is None


def test_index_of(env):
    assert env.index_of("HOME") == 0
    assert env.index_of("PATH") == 1
    assert env.index_of("MISSING") is None


def test_set_appends_new_at_end(env):
    env.set("NEW", "value", True)
    assert env.entries()[-1] == "NEW=value"
    assert len(env) == 4


def test_set_overwrite(env):
    env.set("HOME", "/tmp", True)
    assert env.get("HOME") == "/tmp"
    assert env.index_of("HOME") == 0
    assert len(env) == 3


def test_set_without_overwrite_keeps_value(env):
    env.set("HOME", "/tmp", False)
    assert env.get("HOME") == "/home/user"


def test_set_rejects_equals_in_name(env):
    with pytest.raises(ValueError):
        env.set("A=B", "x", True)
    with pytest.raises(ValueError):
        env.set("A", None, True)


def test_unset_removes(env):
    env.unset("PATH")
    assert env.get("PATH") is None
    assert env.entries() == ["HOME=/home/user", "EMPTY="]


def test_unset_missing_is_noop(env):
    env.unset("MISSING")
    assert len(env) == 3


def test_unset_last_variable():
    env = Environment(["ONLY=1"])
    env.unset("ONLY")
    assert len(env) == 0
    assert env.entries() == []


def test_unset_rejects_equals(env):
    with pytest.raises(ValueError):
        env.unset("A=B")


def test_entries_is_a_copy(env):
    entries = env.entries()
    entries.append("X=1")
    assert len(env) == 3


def test_to_dict_skips_unset_marker(env):
    env.set("DECLARED", UNSET_VALUE, True)
    result = env.to_dict()
    assert "DECLARED" not in result
    assert result["HOME"] == "/home/user"
    assert result["EMPTY"] == ""


def test_from_os(monkeypatch):
    monkeypatch.setenv("MINISHELL_TEST_VAR", "abc")
    env = Environment.from_os()
    assert env.get("MINISHELL_TEST_VAR") == "abc"


def test_from_os_is_independent(monkeypatch):
    monkeypatch.setenv("MINISHELL_TEST_VAR", "abc")
    env = Environment.from_os()
    env.set("MINISHELL_TEST_VAR", "changed", True)
    assert env.get("MINISHELL_TEST_VAR") == "changed"
    assert os.environ["MINISHELL_TEST_VAR"] == "abc"
    assert Environment.from_os().get("MINISHELL_TEST_VAR") == "abc"


def test_create_env_string():
    assert create_env_string("NAME", "value") == "NAME=value"
    assert create_env_string("NAME", "") == "NAME="


@pytest.mark.parametrize(
    "name,expected",
    [
        ("VAR", True),
        ("_var1", True),
        ("a", True),
        ("1abc", False),
        ("", False),
        (None, False),
        ("a-b", False),
        ("a b", False),
        ("è", False),
    ],
)
def test_is_valid_identifier(name, expected):
    assert is_valid_identifier(name) is expected


def test_shell_state_defaults(monkeypatch):
    monkeypatch.setenv("MINISHELL_STATE_VAR", "yes")
    state = ShellState()
    assert state.signal == 0
    assert state.last_status == 0
    assert state.env.get("MINISHELL_STATE_VAR") == "yes"


def test_shell_state_custom_env():
    state = ShellState(env=Environment(["A=1"]))
    assert state.env.to_dict() == {"A": "1"}