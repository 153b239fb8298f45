"""Variable expansion, escapes and quote removal for word tokens."""

from __future__ import annotations

from dataclasses import replace

from .environment import ShellState
from .lexer import Token, TokenType

# Longest variable name looked up; longer names are cut to this length.
_MAX_NAME = 255

_ESCAPES = {'"': '"', "\\": "\\", "$": "$", "n": "\n", "t": "\t"}


def _is_name_start(ch: str) -> bool:
    return ch == "_" or (ch.isascii() and ch.isalpha())


def _is_name_char(ch: str) -> bool:
    return ch == "_" or (ch.isascii() and ch.isalnum())


def process_escape(text: str, pos: int) -> tuple[str, int]:
    """Decode the backslash escape at ``pos``; return its text and the position after it."""
    pos += 1
    if pos >= len(text):
        return "", pos
    ch = text[pos]
    return _ESCAPES.get(ch, "\\" + ch), pos + 1


def expand_variable(text: str, pos: int, state: ShellState) -> tuple[str, int, bool]:
    """Expand ``$?`` or ``$NAME`` at ``pos``.

    Return the produced text, the position after what was consumed, and whether
    a variable was substituted. Anything else yields its first character unchanged.
    """
    nxt = text[pos + 1:pos + 2]
    if text[pos] == "$" and nxt == "?":
        return str(state.last_status), pos + 2, True
    if text[pos] == "$" and nxt and _is_name_start(nxt):
        start = pos + 1
        end = start
        while end < len(text) and _is_name_char(text[end]):
            end += 1
        name = text[start:end][:_MAX_NAME]
        value = state.env.get(name)
        return value or "", end, True
    return text[pos], pos + 1, False


def expand_string(text: str, state: ShellState) -> str:
    """Expand variables outside single quotes, leaving the quotes in place.

    After a character that is not a variable, the next character is copied
    without being inspected.
    """
    out: list[str] = []
    quote: str | None = None
    pos = 0
    end = len(text)
    while pos < end:
        ch = text[pos]
        if ch in "'\"" and quote is None:
            quote = ch
        elif ch == quote:
            quote = None
        if quote == "'":
            out.append(ch)
            pos += 1
            continue
        piece, pos, expanded = expand_variable(text, pos, state)
        out.append(piece)
        if not expanded and pos < end:
            out.append(text[pos])
            pos += 1
    return "".join(out)


def expand_variables(tokens: list[Token], state: ShellState) -> list[Token]:
    """Expand every word token; words that expand to nothing are dropped."""
    result: list[Token] = []
    for token in tokens:
        if token.type is TokenType.WORD:
            value = expand_string(token.value, state)
            if not value:
                continue
            token = replace(token, value=value)
        result.append(token)
    return result


def _single_quoted(text: str, pos: int) -> tuple[str, int]:
    pos += 1
    close = text.find("'", pos)
    if close < 0:
        return text[pos:], len(text)
    return text[pos:close], close + 1


def _double_quoted(text: str, pos: int, state: ShellState) -> tuple[str, int]:
    out: list[str] = []
    pos += 1
    end = len(text)
    while pos < end and text[pos] != '"':
        has_next = pos + 1 < end
        if text[pos] == "\\" and has_next:
            piece, pos = process_escape(text, pos)
        elif text[pos] == "$" and has_next:
            piece, pos, _ = expand_variable(text, pos, state)
        else:
            piece, pos = text[pos], pos + 1
        out.append(piece)
    if pos < end:
        pos += 1
    return "".join(out), pos


def process_token_quotes(text: str, state: ShellState) -> str:
    """Remove quotes, decode escapes in double quotes and expand variables outside single quotes."""
    out: list[str] = []
    pos = 0
    end = len(text)
    while pos < end:
        ch = text[pos]
        if ch == "'":
            piece, pos = _single_quoted(text, pos)
        elif ch == '"':
            piece, pos = _double_quoted(text, pos, state)
        elif ch == "$" and pos + 1 < end:
            piece, pos, _ = expand_variable(text, pos, state)
        else:
            piece, pos = ch, pos + 1
        out.append(piece)
    return "".join(out)


def handle_quotes(tokens: list[Token], state: ShellState) -> list[Token]:
    """Apply quote processing to every word token."""
    return [
        replace(t, value=process_token_quotes(t.value, state))
        if t.type is TokenType.WORD
        else t
        for t in tokens
    ]