"""Tests for the expression tokenizer, parser, interpreter and assignment parsing."""

import math

import numpy as np
import pytest

from dgeval._expr import (
    DeferEvaluation,
    ExpressionProgram,
    Interpreter,
    OpCode,
    TokenKind,
    lookup_function,
    parse_assignments,
    to_postfix,
    tokenize,
)


@pytest.fixture
def interpreter() -> Interpreter:
    values = {"ctrl.tx": 4.0, "|rig|arm_L:ctrl.ry": 30.0}
    return Interpreter(lambda name, _frame: values.get(name, 0.0))


class TestTokenize:
    def test_hierarchical_identifier_is_one_token(self) -> None:
        tokens = tokenize("2 * |grp|ball.ty + 1.5e-3")
        assert [t.text for t in tokens] == ["2", "*", "|grp|ball.ty", "+", "1.5e-3"]
        assert tokens[2].kind == TokenKind.IDENTIFIER
        assert tokens[4].number == pytest.approx(0.0015)

    def test_minus_after_number_is_an_operator(self) -> None:
        assert [t.kind for t in tokenize("3-1")] == [TokenKind.NUMBER, TokenKind.OPERATOR, TokenKind.NUMBER]

    def test_malformed_number_is_zero(self) -> None:
        (token,) = tokenize("1.2.3")
        assert token.kind == TokenKind.NUMBER
        assert token.number == 0.0

    def test_leading_dot_number(self) -> None:
        assert tokenize(".5")[0].number == 0.5

    def test_unknown_characters_are_skipped(self) -> None:
        assert [t.text for t in tokenize("1 # 2 ; @")] == ["1", "2"]

    def test_script_variable_is_one_identifier(self) -> None:
        tokens = tokenize("$s * 2")
        assert [t.text for t in tokens] == ["$s", "*", "2"]
        assert tokens[0].kind == TokenKind.IDENTIFIER

    def test_punctuation(self) -> None:
        kinds = [t.kind for t in tokenize("max(1, 2)")]
        assert kinds == [
            TokenKind.IDENTIFIER,
            TokenKind.LPAREN,
            TokenKind.NUMBER,
            TokenKind.COMMA,
            TokenKind.NUMBER,
            TokenKind.RPAREN,
        ]


class TestToPostfix:
    def test_precedence(self) -> None:
        assert [i.text for i in to_postfix(tokenize("2+3*4"))] == ["2", "3", "4", "*", "+"]

    def test_unary_minus(self) -> None:
        program = to_postfix(tokenize("-x"))
        assert [(i.op, i.text) for i in program] == [(OpCode.LOAD, "x"), (OpCode.UNARY, "neg")]

    def test_function_call(self) -> None:
        program = to_postfix(tokenize("clamp(5, 0, 3)"))
        assert program[-1].op == OpCode.CALL
        assert program[-1].text == "clamp"

    def test_identifier_that_is_not_a_function_is_loaded(self) -> None:
        program = to_postfix(tokenize("ctrl.tx"))
        assert len(program) == 1
        assert program[0].op == OpCode.LOAD


class TestInterpreter:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("2+3*4", 14.0),
            ("-(2+3)", -5.0),
            ("sin(0)", 0.0),
            ("clamp(5,0,3)", 3.0),
            ("atan2(1,1)", math.pi / 4),
            ("2^3^2", 512.0),
            ("-2^2", 4.0),
            ("2^-1", 0.5),
            ("10/4", 2.5),
            ("(2+3)*4", 20.0),
            ("min(3, max(1, 2))", 2.0),
            ("abs(-3) + floor(2.7) + ceil(0.2)", 6.0),
            ("pow(2, 10)", 1024.0),
            ("SIN(0) + Max(1, 2)", 2.0),
            ("PI", math.pi),
            ("e", math.e),
        ],
    )
    def test_arithmetic(self, interpreter: Interpreter, text: str, expected: float) -> None:
        assert interpreter.evaluate(text, 0.0) == pytest.approx(expected)

    @pytest.mark.parametrize(
        "text",
        ["1/0", "1/1e-9", "sqrt(-4)", "exp(1000)", "10^400", "1e308*10", "", "   ", "1.2.3"],
    )
    def test_faults_yield_zero(self, interpreter: Interpreter, text: str) -> None:
        assert interpreter.evaluate(text, 0.0) == 0.0

    def test_guards_clamp_domain(self, interpreter: Interpreter) -> None:
        assert interpreter.evaluate("asin(2)", 0.0) == pytest.approx(math.pi / 2)
        assert interpreter.evaluate("acos(-5)", 0.0) == pytest.approx(math.pi)
        assert interpreter.evaluate("log(0)", 0.0) == pytest.approx(math.log(1e-8))

    def test_time_and_frame(self, interpreter: Interpreter) -> None:
        assert interpreter.evaluate("time * 2", 3.0) == 6.0
        assert interpreter.evaluate("FRAME + 1", 3.0) == 4.0

    def test_resolves_plugs(self, interpreter: Interpreter) -> None:
        assert interpreter.evaluate("ctrl.tx * 2", 0.0) == 8.0
        assert interpreter.evaluate("|rig|arm_L:ctrl.ry / 3", 0.0) == 10.0

    def test_unbalanced_parentheses_are_tolerated(self, interpreter: Interpreter) -> None:
        assert interpreter.evaluate("(2+3", 0.0) == 5.0
        assert interpreter.evaluate("2+3)", 0.0) == 5.0

    def test_missing_operand_is_zero(self, interpreter: Interpreter) -> None:
        assert interpreter.evaluate("2 +", 0.0) == 2.0

    def test_failing_resolver_yields_zero(self) -> None:
        def resolve(name: str, _frame: float) -> float:
            raise KeyError(name)

        assert Interpreter(resolve).evaluate("ctrl.tx + 1", 0.0) == 0.0

    def test_deferred_resolver_propagates(self) -> None:
        def resolve(name: str, _frame: float) -> float:
            raise DeferEvaluation(name)

        with pytest.raises(DeferEvaluation):
            Interpreter(resolve).evaluate("ctrl.tx + 1", 0.0)

    @pytest.mark.parametrize(("text", "expected"), [("clamp(7, 6, 3)", 3.0), ("clamp(5, 6, 3)", 6.0)])
    def test_clamp_with_inverted_bounds(self, interpreter: Interpreter, text: str, expected: float) -> None:
        assert interpreter.evaluate(text, 0.0) == expected

    def test_result_is_single_precision(self, interpreter: Interpreter) -> None:
        assert interpreter.evaluate("0.1", 0.0) == float(np.float32(0.1))
        assert interpreter.evaluate("1e39", 0.0) == 0.0

    def test_variables_shadow_the_resolver(self, interpreter: Interpreter) -> None:
        assert interpreter.evaluate("$s * ctrl.tx", 0.0, {"$s": 2.0}) == 8.0
        assert interpreter.evaluate("$t + 1", 0.0, {"$s": 2.0}) == 1.0

    def test_without_resolver_names_are_zero(self) -> None:
        assert Interpreter().evaluate("ctrl.tx + 1", 0.0) == 1.0

    def test_lookup_function_ignores_case(self) -> None:
        builtin = lookup_function("ATAN2")
        assert builtin is not None
        assert builtin.arity == 2
        assert lookup_function("noise") is None


class TestAssignments:
    def test_parse_in_source_order(self) -> None:
        statements = parse_assignments("float $x = 2; ball.ty = sin(time)")
        assert [(a.target, a.rhs) for a in statements] == [("$x", "2"), ("ball.ty", "sin(time)")]

    def test_target_plug_splits_on_last_dot(self) -> None:
        (statement,) = parse_assignments("|grp|ball.tx = 1;")
        assert statement.target_plug is not None
        assert statement.target_plug.node == "|grp|ball"
        assert statement.target_plug.attr == "tx"

    def test_plain_text_is_one_anonymous_output(self, interpreter: Interpreter) -> None:
        program = ExpressionProgram.from_text("frame * 2")
        assert len(program.assignments) == 1
        assert program.assignments[0].target == ""
        assert program.output(interpreter, 0, 3.0) == 6.0

    def test_output_out_of_range_is_zero(self, interpreter: Interpreter) -> None:
        program = ExpressionProgram.from_text("ball.tx = 1;")
        assert program.output(interpreter, 1, 0.0) == 0.0
        assert program.output(interpreter, -1, 0.0) == 0.0

    def test_empty_text(self) -> None:
        assert ExpressionProgram.from_text("").assignments == ()

    def test_run_pushes_transform_channels_only(self, interpreter: Interpreter) -> None:
        program = ExpressionProgram.from_text(
            "float $s = 2; ball.tx = ctrl.tx + 1; ball.visibility = 0; |grp|ball.RY = frame;",
        )
        assert program.run(interpreter, 5.0) == [("ball", "tx", 5.0), ("|grp|ball", "ry", 5.0)]

    def test_output_slots_skip_script_variables(self, interpreter: Interpreter) -> None:
        program = ExpressionProgram.from_text("float $s = 2; ball.tx = ctrl.tx * $s; $s = $s + 1; ball.ty = $s;")
        assert [a.target for a in program.outputs] == ["ball.tx", "ball.ty"]
        assert program.output(interpreter, 0, 0.0) == 8.0
        assert program.output(interpreter, 1, 0.0) == 3.0
        assert program.output(interpreter, 2, 0.0) == 0.0

    def test_values_run_statements_in_order(self, interpreter: Interpreter) -> None:
        program = ExpressionProgram.from_text("int $n = 3; ball.tz = $n * frame;")
        assert [(a.target, v) for a, v in program.values(interpreter, 2.0)] == [("$n", 3.0), ("ball.tz", 6.0)]
