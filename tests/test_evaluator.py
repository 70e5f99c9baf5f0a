"""Test class ExpressionEvaluator and the evaluate helpers."""

import pytest

from desk_calculator.common.errors import (
    DivisionByZeroError,
    EvaluationError,
    MalformedExpressionError,
    ParseError,
)
from desk_calculator.common.evaluator import (
    ExpressionEvaluator,
    evaluate,
    evaluate_to_display,
)


@pytest.mark.parametrize("expr,expected", [
    ("3+4", 7.0),
    ("2+3*4", 14.0),      # multiplication before addition
    ("2*3+4*5", 26.0),    # two high-precedence runs
    ("10-2-3", 5.0),      # left-associative subtraction
    ("8/4/2", 1.0),       # left-associative division
    ("2*3*4+5", 29.0),
    ("1-2*3+4", -1.0),
    ("2-3-4*2", -9.0),
    ("100/10*3", 30.0),
    ("2+3*4*5-6/2", 59.0),
    ("7 + 3 * 2 - 4 / 2", 11.0),
    ("42", 42.0),
])
def test_evaluate_valid(expr, expected):
    """Evaluate honours precedence and left associativity."""
    assert evaluate(expr) == expected


@pytest.mark.parametrize("expr,expected", [
    ("1e3+1", 1001.0),
    ("2.5E-1*4", 1.0),
    (".5+.5", 1.0),
    ("5.*2", 10.0),
    ("1e+10/1e+5", 100000.0),
])
def test_evaluate_numeral_forms(expr, expected):
    """Fractions and exponents are accepted, so a displayed result can be reused."""
    assert evaluate(expr) == expected


@pytest.mark.parametrize("expr,expected", [
    ("3*-2", -6.0),
    ("3--2", 5.0),
    ("3 - -2", 5.0),
    ("3 * +2", 6.0),
])
def test_evaluate_signed_operand_after_operator(expr, expected):
    """An operand following an operator may carry a sign."""
    assert evaluate(expr) == expected


def test_evaluate_floating_point():
    """Arithmetic is done on floats."""
    assert evaluate("0.1+0.2") == pytest.approx(0.3)
    assert evaluate("1/3") == pytest.approx(0.3333333333)
    assert isinstance(evaluate("6/3"), float)


@pytest.mark.parametrize("compact,spaced", [
    ("3+4", "3 + 4"),
    ("2+3*4", "  2 +3 *  4  "),
    ("10-2-3", "10\t-\t2 - 3"),
    ("8/4/2", "8 / 4 /2\n"),
    ("3*-2", "3 * -2"),
])
def test_whitespace_between_tokens_does_not_matter(compact, spaced):
    """Whitespace between tokens does not change the result."""
    assert evaluate(compact) == evaluate(spaced)


@pytest.mark.parametrize("expr,expected", [
    ("3+4+", 7.0),
    ("3 * ", 3.0),
    ("2+3*", 5.0),
    ("3+4 + ", 7.0),
])
def test_trailing_operator_is_dropped(expr, expected):
    """A trailing operator with no operand is silently ignored."""
    assert evaluate(expr) == expected


@pytest.mark.parametrize("expr", ["", "   ", "\n\t"])
def test_evaluate_empty_expression(expr):
    """Empty input is malformed."""
    with pytest.raises(MalformedExpressionError):
        evaluate(expr)


@pytest.mark.parametrize("expr", [
    "+5",        # Leading operator
    "-5",        # No unary minus on the first operand
    "*3",
    "abc",
    "3 4",       # Two operands in a row
    "3+x",       # Operator followed by garbage
    "3++",       # Sign with no digits
    "1.2.3",
    "(1+2)",     # No parentheses
    "2^3",       # No exponentiation
    "Error",
])
def test_evaluate_parse_errors(expr):
    """Anything else than alternating numerals and operators is a parse error."""
    with pytest.raises(ParseError):
        evaluate(expr)


@pytest.mark.parametrize("expr,position", [
    ("+5", 0),
    ("3+x", 2),
    ("3 4", 2),
    ("12 * 3 % 2", 7),
])
def test_parse_error_reports_position(expr, position):
    """ParseError carries the offset of the offending text."""
    with pytest.raises(ParseError) as exc_info:
        evaluate(expr)
    assert exc_info.value.position == position


def test_division_by_zero():
    """Division by zero raises a dedicated error."""
    with pytest.raises(DivisionByZeroError):
        evaluate("1/0")
    with pytest.raises(ZeroDivisionError):
        evaluate("2+3/0*4")
    assert evaluate("0/5") == 0.0


@pytest.mark.parametrize("expr", ["", "+5", "1/0"])
def test_errors_are_value_errors(expr):
    """Every evaluation error is an EvaluationError and a ValueError."""
    with pytest.raises(EvaluationError):
        evaluate(expr)
    with pytest.raises(ValueError):
        evaluate(expr)


def test_tokenize_basic():
    """Tokenize splits an expression into alternating tokens with their offsets."""
    tokens = ExpressionEvaluator.tokenize("3 + 4*2")
    assert [t.text for t in tokens] == ["3", "+", "4", "*", "2"]
    assert [t.kind for t in tokens] == ["number", "operator", "number", "operator", "number"]
    assert [t.position for t in tokens] == [0, 2, 4, 5, 6]
    assert [t.value for t in tokens] == [3.0, None, 4.0, None, 2.0]


def test_tokenize_keeps_trailing_operator():
    """Tokenize keeps a dangling operator, evaluate drops it."""
    tokens = ExpressionEvaluator.tokenize("3+4+")
    assert tokens[-1].is_operator
    assert tokens[-1].text == "+"


@pytest.mark.parametrize("incoming,pending,expected", [
    ("+", "+", True),
    ("+", "*", True),
    ("-", "/", True),
    ("*", "*", True),
    ("/", "*", True),
    ("*", "+", False),
    ("/", "-", False),
])
def test_should_drain(incoming, pending, expected):
    """Pending operators are applied before lower or equal precedence ones."""
    assert ExpressionEvaluator._should_drain(incoming, pending) is expected


def test_evaluate_matches_class():
    """The module-level helper delegates to the class."""
    assert evaluate("2*3+4*5") == ExpressionEvaluator.evaluate("2*3+4*5")


@pytest.mark.parametrize("expr,expected", [
    ("2+3*4", "14"),
    ("1/3", "0.33333333"),
    ("2.50", "2.5"),
    ("100000*100000", "1e+10"),
    ("123456789", "1.2345679e+08"),
    ("1/0", "Error"),
    ("", "Error"),
    ("3 4", "Error"),
])
def test_evaluate_to_display(expr, expected):
    """Display text uses eight significant digits and collapses failures to 'Error'."""
    assert evaluate_to_display(expr) == expected
