"""Expression interpreter for procedural expression nodes.

Pipeline: text -> tokenize -> to_postfix -> evaluate_postfix.

Key types:
- Interpreter: evaluates text against an injected ``resolve(name, frame)`` callback
- ExpressionProgram: the assignments found in an expression node's source
"""

from ._assignments import TRANSFORM_CHANNELS, Assignment, ExpressionProgram, parse_assignments
from ._functions import FUNCTIONS, BuiltinFunction, lookup_constant, lookup_function
from ._interpreter import DeferEvaluation, Interpreter, Resolver, evaluate_postfix
from ._parser import Instruction, OpCode, to_postfix
from ._tokens import Token, TokenKind, tokenize

__all__ = [
    "FUNCTIONS",
    "TRANSFORM_CHANNELS",
    "Assignment",
    "BuiltinFunction",
    "DeferEvaluation",
    "ExpressionProgram",
    "Instruction",
    "Interpreter",
    "OpCode",
    "Resolver",
    "Token",
    "TokenKind",
    "evaluate_postfix",
    "lookup_constant",
    "lookup_function",
    "parse_assignments",
    "to_postfix",
    "tokenize",
]
