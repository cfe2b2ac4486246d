"""Operator-precedence (shunting-yard) conversion of tokens to postfix."""

from dataclasses import dataclass
from enum import StrEnum, auto

from ._functions import lookup_function
from ._tokens import Token, TokenKind

NEGATE = "neg"

_PRECEDENCE = {
    NEGATE: 4,
    "^": 3,
    "*": 2,
    "/": 2,
    "+": 1,
    "-": 1,
}
_RIGHT_ASSOCIATIVE = frozenset({"^", NEGATE})


class OpCode(StrEnum):
    """Postfix instruction kinds."""

    PUSH = auto()  # numeric literal
    LOAD = auto()  # variable or plug reference
    UNARY = auto()  # unary negation
    BINARY = auto()  # + - * / ^
    CALL = auto()  # built-in function


@dataclass(frozen=True, slots=True)
class Instruction:
    op: OpCode
    text: str
    number: float = 0.0


@dataclass(frozen=True, slots=True)
class _Pending:
    """An entry on the operator stack: an operator, a function marker or ``(``."""

    kind: OpCode | TokenKind
    text: str


def _is_unary_position(prev: Token | None) -> bool:
    return prev is None or prev.kind in (TokenKind.OPERATOR, TokenKind.LPAREN, TokenKind.COMMA)


def _emit(pending: _Pending) -> Instruction:
    if pending.kind == OpCode.CALL:
        return Instruction(OpCode.CALL, pending.text)
    if pending.text == NEGATE:
        return Instruction(OpCode.UNARY, NEGATE)
    return Instruction(OpCode.BINARY, pending.text)


def to_postfix(tokens: list[Token]) -> list[Instruction]:  # noqa: C901, PLR0912
    """Convert infix tokens into postfix instructions.

    Precedence is ``neg(4) > ^(3) > * /(2) > + -(1)``; ``^`` and ``neg`` are
    right-associative. A ``-`` at the start, after an operator, after ``(``
    or after ``,`` is unary. An identifier directly followed by ``(`` that
    names a built-in function becomes a call. Unbalanced parentheses are
    tolerated: stray ``)`` are ignored and unclosed ``(`` are dropped.

    Example:
        >>> [i.text for i in to_postfix(tokenize("2+3*4"))]
        ['2', '3', '4', '*', '+']

    """
    output: list[Instruction] = []
    stack: list[_Pending] = []
    prev: Token | None = None

    for i, tok in enumerate(tokens):
        match tok.kind:
            case TokenKind.NUMBER:
                output.append(Instruction(OpCode.PUSH, tok.text, tok.number))

            case TokenKind.IDENTIFIER:
                is_call = (
                    i + 1 < len(tokens)
                    and tokens[i + 1].kind == TokenKind.LPAREN
                    and lookup_function(tok.text) is not None
                )
                if is_call:
                    stack.append(_Pending(OpCode.CALL, tok.text))
                else:
                    output.append(Instruction(OpCode.LOAD, tok.text))

            case TokenKind.COMMA:
                while stack and stack[-1].kind != TokenKind.LPAREN:
                    output.append(_emit(stack.pop()))

            case TokenKind.OPERATOR:
                op = NEGATE if tok.text == "-" and _is_unary_position(prev) else tok.text
                p1 = _PRECEDENCE[op]
                right = op in _RIGHT_ASSOCIATIVE
                while stack and stack[-1].kind == TokenKind.OPERATOR:
                    p2 = _PRECEDENCE[stack[-1].text]
                    if (right and p1 < p2) or (not right and p1 <= p2):
                        output.append(_emit(stack.pop()))
                    else:
                        break
                stack.append(_Pending(TokenKind.OPERATOR, op))

            case TokenKind.LPAREN:
                stack.append(_Pending(TokenKind.LPAREN, tok.text))

            case TokenKind.RPAREN:
                while stack and stack[-1].kind != TokenKind.LPAREN:
                    output.append(_emit(stack.pop()))
                if stack:
                    stack.pop()
                if stack and stack[-1].kind == OpCode.CALL:
                    output.append(_emit(stack.pop()))

        prev = tok

    while stack:
        pending = stack.pop()
        if pending.kind != TokenKind.LPAREN:
            output.append(_emit(pending))

    return output
