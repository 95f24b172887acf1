"""
Expression engine tests: parenthesis predicate, main-operator locator,
recursive span evaluator and the evaluate() entry point.
"""

import pytest

from rv32mon import evaluate
from rv32mon.errors import (
    DivisionByZero, EmptySpan, ExprError, LexError, MemoryAccessError,
    NestingTooDeep, NoOperatorFound, NotANumber, TooManyTokens, UnknownRegister,
    UnsupportedOperator,
)
from rv32mon.expr import Evaluator, is_fully_parenthesized, locate_main_operator
from rv32mon.lexer import Token, TokenType, tokenize
from rv32mon.memory import Memory
from rv32mon.regs import Registers


def _span(expr: str):
    tokens = tokenize(expr)
    return tokens, 0, len(tokens) - 1


# ─── Fully parenthesized predicate ─────────────────────

class TestFullyParenthesized:
    def test_single_wrap(self):
        assert is_fully_parenthesized(*_span("(1+2)"))

    def test_double_wrap(self):
        assert is_fully_parenthesized(*_span("((1+2))"))

    def test_two_groups_are_not_one_wrap(self):
        assert not is_fully_parenthesized(*_span("(1+2)+(3+4)"))

    def test_no_parens(self):
        assert not is_fully_parenthesized(*_span("1+2"))

    def test_unmatched_inside(self):
        assert not is_fully_parenthesized(*_span("(1+2))+(3)"))

    def test_unclosed(self):
        assert not is_fully_parenthesized(*_span("((1+2)"))

    def test_sub_span(self):
        tokens = tokenize("3*(4-1)")
        assert is_fully_parenthesized(tokens, 2, 6)
        assert not is_fully_parenthesized(tokens, 0, 6)


# ─── Main-operator locator ─────────────────────

class TestLocateMainOperator:
    def test_lowest_priority_wins(self):
        # 2 + 3 * 4  -> '+' at index 1
        assert locate_main_operator(*_span("2+3*4")) == 1

    def test_rightmost_of_equal_priority(self):
        # 8 - 3 - 2  -> second '-' at index 3
        assert locate_main_operator(*_span("8-3-2")) == 3

    def test_rightmost_mul_div(self):
        assert locate_main_operator(*_span("8/4/2")) == 3

    def test_mixed_add_sub(self):
        # 1 + 2 - 3 + 4 -> last '+' at index 5
        assert locate_main_operator(*_span("1+2-3+4")) == 5

    def test_parenthesized_operators_ignored(self):
        # (1 + 2) * 3 -> '*' at index 5
        assert locate_main_operator(*_span("(1+2)*3")) == 5

    def test_lower_priority_left_of_higher(self):
        # 1 - 2 * 3 * 4 -> '-' at index 1
        assert locate_main_operator(*_span("1-2*3*4")) == 1

    def test_comparison_below_arithmetic(self):
        # 1 + 1 == 2 -> '==' at index 3
        assert locate_main_operator(*_span("1+1==2")) == 3

    def test_and_below_comparison(self):
        # 1 == 1 && 2 == 2 -> '&&' at index 3
        assert locate_main_operator(*_span("1==1&&2==2")) == 3

    def test_unary_is_not_a_candidate(self):
        assert locate_main_operator(*_span("-1")) is None
        assert locate_main_operator(*_span("-1*2")) == 2

    def test_single_atom(self):
        assert locate_main_operator(*_span("42")) is None

    def test_unclosed_paren_returns_none(self):
        assert locate_main_operator(*_span("(1+2")) is None

    def test_extra_close_paren_returns_none(self):
        assert locate_main_operator(*_span("1+2)")) is None

    def test_operands_without_operator(self):
        assert locate_main_operator(*_span("1 2")) is None


# ─── Evaluator: values ─────────────────────

class TestEvaluate:
    @pytest.mark.parametrize("expr, expected", [
        ("42", 42),
        ("1+2", 3),
        ("(1+2)*3-4", 5),
        ("8-3-2", 3),
        ("8/4/2", 1),
        ("2+3*4", 14),
        ("(2+3)*4", 20),
        ("(((7)))", 7),
        ("((1+2))", 3),
        ("(1+2)+(3+4)", 10),
        ("100/7", 14),
        ("2*3+4*5", 26),
        ("10-2*3", 4),
        ("  12 +  30 ", 42),
        ("0x10+1", 17),
        ("0xff*0x2", 510),
    ])
    def test_values(self, expr, expected):
        assert evaluate(expr) == expected

    def test_comparisons(self):
        assert evaluate("1+1==2") == 1
        assert evaluate("1+1!=2") == 0
        assert evaluate("3==4") == 0
        assert evaluate("1&&0") == 0
        assert evaluate("2&&3") == 1
        assert evaluate("1==1&&2==2") == 1

    def test_unsigned_wraparound(self):
        assert evaluate("1-2") == 0xFFFFFFFF
        assert evaluate("4294967295+1") == 0
        assert evaluate("65536*65536") == 0
        assert evaluate("0-1-1") == 0xFFFFFFFE

    def test_division_is_unsigned(self):
        # (0 - 2) / 2 works on 0xFFFFFFFE
        assert evaluate("(0-2)/2") == 0x7FFFFFFF

    def test_literal_reduced_to_word(self):
        assert evaluate("4294967296") == 0
        assert evaluate("0x100000005") == 5

    def test_long_literals_fold_to_word(self):
        assert evaluate("9" * 5000) == (10 ** 5000 - 1) & 0xFFFFFFFF
        assert evaluate("0x" + "f" * 5000) == 0xFFFFFFFF
        assert evaluate("1" + "0" * 40, word_bits=64) == 10 ** 40 & 0xFFFFFFFFFFFFFFFF
        assert evaluate("9" * 5000, strategy="tree") == evaluate("9" * 5000)

    def test_word_bits(self):
        assert evaluate("1-2", word_bits=16) == 0xFFFF
        assert evaluate("255+1", word_bits=8) == 0
        assert evaluate("1-2", word_bits=64) == 0xFFFFFFFFFFFFFFFF

    def test_unary_minus(self):
        assert evaluate("-1") == 0xFFFFFFFF
        assert evaluate("--5") == 5
        assert evaluate("2*-3+7") == 1
        assert evaluate("-(2+3)+10") == 5
        assert evaluate("10- -2") == 12

    def test_idempotent(self):
        assert evaluate("(1+2)*3") == evaluate("(1+2)*3")
        for _ in range(2):
            with pytest.raises(DivisionByZero):
                evaluate("5/0")


# ─── Evaluator: registers and memory ─────────────────────

class TestCollaborators:
    def test_register_reference(self):
        regs = Registers()
        regs.write("sp", 0x1000)
        assert evaluate("$sp+4", regs) == 0x1004
        assert evaluate("$pc", regs) == 0x80000000
        assert evaluate("$x2", regs) == 0x1000

    def test_zero_register(self):
        assert evaluate("$0+1", Registers()) == 1

    def test_unknown_register(self):
        with pytest.raises(UnknownRegister) as exc:
            evaluate("$foo+1", Registers())
        assert exc.value.name == "$foo"

    def test_register_without_collaborator(self):
        with pytest.raises(UnknownRegister):
            evaluate("$sp")

    def test_register_names_are_case_sensitive(self):
        with pytest.raises(UnknownRegister):
            evaluate("$SP", Registers())

    def test_dereference(self):
        mem = Memory()
        mem.load_builtin()
        assert evaluate("*0x80000010", memory=mem) == 0xDEADBEEF
        assert evaluate("*(0x80000000+16)", memory=mem) == 0xDEADBEEF
        assert evaluate("*0x80000000+1", memory=mem) == 0x00000298

    def test_dereference_register(self):
        mem = Memory()
        mem.load_builtin()
        regs = Registers()
        regs.write("a0", 0x8000000C)
        assert evaluate("*$a0", regs, mem) == 0x00100073

    def test_dereference_out_of_bounds(self):
        with pytest.raises(MemoryAccessError):
            evaluate("*0", memory=Memory())

    def test_dereference_without_memory(self):
        with pytest.raises(MemoryAccessError):
            evaluate("*0x80000000")


# ─── Evaluator: errors ─────────────────────

class TestEvaluateErrors:
    def test_division_by_zero(self):
        with pytest.raises(DivisionByZero):
            evaluate("5/0")

    def test_division_by_zero_subexpression(self):
        with pytest.raises(DivisionByZero):
            evaluate("1+10/(3-3)")

    def test_unclosed_paren(self):
        with pytest.raises(NoOperatorFound):
            evaluate("(1+2")

    def test_extra_close_paren(self):
        with pytest.raises(NoOperatorFound):
            evaluate("1+2)")

    def test_missing_operator(self):
        with pytest.raises(NoOperatorFound):
            evaluate("1 2")

    def test_empty_expression(self):
        with pytest.raises(EmptySpan):
            evaluate("")

    def test_empty_parens(self):
        with pytest.raises(EmptySpan):
            evaluate("()")

    def test_trailing_operator(self):
        with pytest.raises(EmptySpan):
            evaluate("1+")

    def test_leading_binary_operator(self):
        with pytest.raises(EmptySpan):
            evaluate("+1")

    def test_lone_paren_is_not_a_number(self):
        with pytest.raises(NotANumber):
            evaluate("(")

    def test_lex_error_position(self):
        with pytest.raises(LexError) as exc:
            evaluate("1+@2")
        assert exc.value.position == 2

    def test_too_many_tokens(self):
        with pytest.raises(TooManyTokens):
            evaluate("+".join(["1"] * 17))
        assert evaluate("+".join(["1"] * 17), max_tokens=64) == 17

    def test_all_errors_share_base(self):
        for expr in ("5/0", "(1+2", "", "1+@2", "$nope"):
            with pytest.raises(ExprError):
                evaluate(expr, Registers())

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            evaluate("1", strategy="magic")

    def test_moderate_nesting_evaluates(self):
        expr = "(" * 200 + "7" + ")" * 200
        assert evaluate(expr, max_tokens=512) == 7
        assert evaluate(expr, max_tokens=512, strategy="tree") == 7

    @pytest.mark.parametrize("strategy", ["span", "tree"])
    @pytest.mark.parametrize("expr", [
        "(" * 1500 + "1" + ")" * 1500,
        "-" * 1500 + "1",
    ])
    def test_deep_nesting_raises_expr_error(self, strategy, expr):
        with pytest.raises(NestingTooDeep) as exc:
            evaluate(expr, max_tokens=4000, strategy=strategy)
        assert exc.value.token_count == len(tokenize(expr, 4000))

    def test_non_operator_at_split_is_rejected(self, monkeypatch):
        """A locator returning a non-operator index must not produce a value."""
        tokens = [
            Token(TokenType.NUMBER, "1", 0),
            Token(TokenType.LPAREN, "(", 1),
            Token(TokenType.NUMBER, "2", 2),
        ]
        monkeypatch.setattr("rv32mon.expr.locate_main_operator", lambda t, p, q: 1)
        with pytest.raises(UnsupportedOperator):
            Evaluator(tokens).evaluate()
