"""Tokenizer for procedural expression text."""

import math
from dataclasses import dataclass
from enum import StrEnum, auto

OPERATOR_CHARS = frozenset("+-*/^")
_IDENT_START_EXTRA = frozenset("_|:$")
_IDENT_BODY_EXTRA = frozenset("_|:.")


class TokenKind(StrEnum):
    """The kind of a lexical token."""

    NUMBER = auto()
    IDENTIFIER = auto()
    OPERATOR = auto()
    LPAREN = auto()
    RPAREN = auto()
    COMMA = auto()


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    text: str
    number: float = 0.0


def _scan_number(s: str, start: int) -> int:
    """Return the end offset of the numeric literal starting at ``start``.

    Signs are only consumed directly after an exponent marker.
    """
    i = start + 1
    while i < len(s):
        c = s[i]
        if c.isdigit() or c in ".eE":
            i += 1
            continue
        if c in "+-" and s[i - 1] in "eE":
            i += 1
            continue
        break
    return i


def _scan_identifier(s: str, start: int) -> int:
    i = start + 1
    while i < len(s) and (s[i].isalnum() or s[i] in _IDENT_BODY_EXTRA):
        i += 1
    return i


def tokenize(text: str) -> list[Token]:
    """Split expression text into tokens.

    Identifiers accept ``_ | : .`` so hierarchical node paths such as
    ``|rig|arm_L:ctrl.tx`` stay one token, and may start with ``$`` for
    script variables. Unrecognized characters are skipped. A literal that
    does not parse (``1.2.3``) becomes ``0.0``.

    Example:
        >>> [t.text for t in tokenize("2 * |grp|ball.ty + 1.5e-3")]
        ['2', '*', '|grp|ball.ty', '+', '1.5e-3']

    """
    tokens: list[Token] = []
    i = 0
    n = len(text)
    while i < n:
        c = text[i]

        if c.isspace():
            i += 1
            continue

        if c.isdigit() or (c == "." and i + 1 < n and text[i + 1].isdigit()):
            end = _scan_number(text, i)
            literal = text[i:end]
            try:
                value = float(literal)
            except ValueError:
                value = 0.0
            if not math.isfinite(value):
                value = 0.0
            tokens.append(Token(TokenKind.NUMBER, literal, value))
            i = end
            continue

        if c.isalpha() or c in _IDENT_START_EXTRA:
            end = _scan_identifier(text, i)
            tokens.append(Token(TokenKind.IDENTIFIER, text[i:end]))
            i = end
            continue

        match c:
            case _ if c in OPERATOR_CHARS:
                tokens.append(Token(TokenKind.OPERATOR, c))
            case "(":
                tokens.append(Token(TokenKind.LPAREN, c))
            case ")":
                tokens.append(Token(TokenKind.RPAREN, c))
            case ",":
                tokens.append(Token(TokenKind.COMMA, c))
            case _:
                pass
        i += 1

    return tokens
