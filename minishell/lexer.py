"""Splitting a command line into word and operator tokens."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

_BLANKS = " \t"
_OPERATOR_CHARS = "|<>"
_WORD_DELIMITERS = " \t|<>"
_QUOTES = "'\""

_DOUBLE_OPERATORS = {"<<": "HEREDOC", ">>": "APPEND"}
_SINGLE_OPERATORS = {"<": "REDIR_IN", ">": "REDIR_OUT", "|": "PIPE"}


class TokenType(Enum):
    """Kinds of token produced by the lexer."""

    WORD = auto()
    PIPE = auto()
    REDIR_IN = auto()
    REDIR_OUT = auto()
    HEREDOC = auto()
    APPEND = auto()
    EOF = auto()

    @property
    def is_redirection(self) -> bool:
        """True for ``<``, ``>``, ``<<`` and ``>>``."""
        return self in _REDIRECTIONS


_REDIRECTIONS = frozenset(
    {TokenType.REDIR_IN, TokenType.REDIR_OUT, TokenType.HEREDOC, TokenType.APPEND}
)


@dataclass(frozen=True)
class Token:
    """One lexical unit of a command line."""

    value: str
    type: TokenType


def is_operator(text: str, pos: int) -> bool:
    """Tell whether the character at ``pos`` starts an operator."""
    return pos < len(text) and text[pos] in _OPERATOR_CHARS


def read_operator(text: str, pos: int) -> tuple[Token | None, int]:
    """Read the operator at ``pos``; return the token and the position after it."""
    pair = text[pos:pos + 2]
    if pair in _DOUBLE_OPERATORS:
        return Token(pair, TokenType[_DOUBLE_OPERATORS[pair]]), pos + 2
    single = text[pos:pos + 1]
    if single in _SINGLE_OPERATORS:
        return Token(single, TokenType[_SINGLE_OPERATORS[single]]), pos + 1
    return None, pos


def _skip_to_quote(text: str, pos: int, quote: str) -> int:
    """Advance from ``pos`` to the closing ``quote`` or the end of ``text``."""
    end = len(text)
    while pos < end and text[pos] != quote:
        if quote == '"' and text[pos] == "\\" and pos + 1 < end:
            pos += 2
        else:
            pos += 1
    return pos


def extract_quoted_word(text: str, pos: int, quote: str) -> tuple[str, int]:
    """Return the text inside the quotes opening at ``pos`` and the position after them."""
    start = pos + 1
    pos = _skip_to_quote(text, start, quote)
    word = text[start:pos]
    if pos < len(text) and text[pos] == quote:
        pos += 1
    return word, pos


def extract_word(text: str, pos: int) -> tuple[str, int]:
    """Return the raw word starting at ``pos``, quotes included, and the position after it."""
    start = pos
    end = len(text)
    while pos < end and text[pos] not in _WORD_DELIMITERS:
        if text[pos] in _QUOTES:
            quote = text[pos]
            pos = _skip_to_quote(text, pos + 1, quote)
            if pos < end and text[pos] == quote:
                pos += 1
        else:
            pos += 1
    return text[start:pos], pos


def tokenize(line: str) -> list[Token]:
    """Split ``line`` into tokens; quotes are kept inside word values."""
    tokens: list[Token] = []
    pos = 0
    end = len(line)
    while pos < end:
        while pos < end and line[pos] in _BLANKS:
            pos += 1
        if pos >= end:
            break
        if is_operator(line, pos):
            token, pos = read_operator(line, pos)
            if token is not None:
                tokens.append(token)
        else:
            word, pos = extract_word(line, pos)
            if word:
                tokens.append(Token(word, TokenType.WORD))
    return tokens


def check_syntax_errors(tokens: list[Token]) -> bool:
    """Tell whether the token list breaks the pipe and redirection rules."""
    if not tokens:
        return False
    if tokens[0].type is TokenType.PIPE:
        return True
    for current, following in zip(tokens, [*tokens[1:], None]):
        if current.type is TokenType.PIPE:
            if following is None or following.type is TokenType.PIPE:
                return True
        if current.type.is_redirection:
            if following is None or following.type is not TokenType.WORD:
                return True
    return False