"""Evaluate arithmetic expressions typed on a calculator keypad."""
import operator
import re
from collections.abc import Callable as ABCCallable
from typing import Callable, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from desk_calculator.common.errors import (
    DivisionByZeroError,
    EvaluationError,
    MalformedExpressionError,
    ParseError,
)
from desk_calculator.common.logger import logger
from desk_calculator.common.operations import ERROR_MARKER, format_result


# Type alias for operator functions (taking two floats, returning a float)
OperatorFn: ABCCallable[[float, float], float] = Callable[[float, float], float]


def _divide(a: float, b: float) -> float:
    """Divide ``a`` by ``b``, refusing a zero divisor."""
    if b == 0:
        raise DivisionByZeroError(f"Division by zero: {a:g} / {b:g}")
    return a / b


# Mapping of operator symbols to (precedence, function)
OPERATORS: dict[str, Tuple[int, OperatorFn]] = {
    "+": (1, operator.add),
    "-": (1, operator.sub),
    "*": (2, operator.mul),
    "/": (2, _divide),
}

LOW_PRECEDENCE = frozenset("+-")
HIGH_PRECEDENCE = frozenset("*/")

_DIGITS = r"(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"
# The first operand of an expression never carries a sign
UNSIGNED_NUMERAL = re.compile(_DIGITS)
SIGNED_NUMERAL = re.compile(r"[+-]?" + _DIGITS)
WHITESPACE = re.compile(r"\s*")


class Token(BaseModel):
    """A numeral or an operator read from an expression."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["number", "operator"] = Field(..., description="Token category")
    text: str = Field(..., min_length=1, description="Source text of the token")
    position: int = Field(..., ge=0, description="Offset of the token in the expression")
    value: Optional[float] = Field(default=None, description="Numeric value of a number token")

    @property
    def is_operator(self) -> bool:
        return self.kind == "operator"


class ExpressionEvaluator:
    """
    Evaluate arithmetic expressions made of decimal numerals and ``+ - * /``.

    Design constraints:
        - No eval(), no dynamic code execution
        - No parentheses, no exponentiation, the first operand is unsigned
        - Stateless: every call owns its own stacks

    Algorithm:
        Operands and operators are read alternately, left to right. Each
        operator waits on an operator stack until an incoming operator forces
        it to be applied to the top two values of the operand stack:

        - an incoming ``+`` or ``-`` applies everything pending;
        - an incoming ``*`` or ``/`` applies a pending ``*`` or ``/`` only.

        The check is repeated after each application, which gives ``*`` and
        ``/`` precedence over ``+`` and ``-`` and keeps operators of equal
        precedence left-associative. Whatever is still pending once the input
        is exhausted is applied from the top of the stack down.

    Examples:
        - ``2 + 3 * 4`` -> 14.0
        - ``10 - 2 - 3`` -> 5.0
        - ``3 + 4 +`` -> 7.0 (a trailing operator with no operand is dropped)
    """

    @staticmethod
    def _skip_whitespace(expr: str, position: int) -> int:
        return WHITESPACE.match(expr, position).end()

    @staticmethod
    def _read_numeral(expr: str, position: int, signed: bool) -> Token:
        """
        Read the numeral starting at ``position``.

        :param str expr: Arithmetic expression
        :param int position: Offset of the first character of the numeral
        :param bool signed: Whether a leading ``+`` or ``-`` belongs to the numeral

        :return: Number token
        :rtype: Token
        :raises ParseError: If no numeral starts at ``position``
        """
        pattern = SIGNED_NUMERAL if signed else UNSIGNED_NUMERAL
        match = pattern.match(expr, position)
        if match is None:
            raise ParseError(
                f"Expected a number at position {position}: {expr[position:]!r}",
                position=position,
            )
        return Token(kind="number", text=match.group(), position=position, value=float(match.group()))

    @staticmethod
    def tokenize(expr: str) -> List[Token]:
        """
        Split an arithmetic expression into alternating number and operator tokens.

        Whitespace between tokens is skipped. A trailing operator with no
        operand after it is kept as the last token.

        :param str expr: Arithmetic expression as a string

        :return: List of tokens, starting with a number
        :rtype: List[Token]
        :raises MalformedExpressionError: If the expression is empty
        :raises ParseError: If a numeral or operator is expected but missing
        """
        position = ExpressionEvaluator._skip_whitespace(expr, 0)
        if position == len(expr):
            raise MalformedExpressionError("Empty expression")

        tokens: List[Token] = [ExpressionEvaluator._read_numeral(expr, position, signed=False)]
        position = ExpressionEvaluator._skip_whitespace(expr, position + len(tokens[-1].text))

        while position < len(expr):
            symbol = expr[position]
            if symbol not in OPERATORS:
                raise ParseError(
                    f"Expected an operator at position {position}: {symbol!r}",
                    position=position,
                )
            tokens.append(Token(kind="operator", text=symbol, position=position))

            position = ExpressionEvaluator._skip_whitespace(expr, position + 1)
            if position == len(expr):
                break

            tokens.append(ExpressionEvaluator._read_numeral(expr, position, signed=True))
            position = ExpressionEvaluator._skip_whitespace(expr, position + len(tokens[-1].text))

        return tokens

    @staticmethod
    def _should_drain(incoming: str, pending: str) -> bool:
        """
        Tell whether the pending operator must be applied before ``incoming`` is pushed.

        :param str incoming: Operator just read from the expression
        :param str pending: Operator at the top of the operator stack

        :rtype: bool
        """
        if incoming in LOW_PRECEDENCE:
            return True
        return incoming in HIGH_PRECEDENCE and pending in HIGH_PRECEDENCE

    @staticmethod
    def _apply(operands: List[float], symbol: str) -> None:
        """Replace the top two operands by the result of ``symbol`` applied to them."""
        b: float = operands.pop()
        a: float = operands.pop()
        operands.append(OPERATORS[symbol][1](a, b))

    @staticmethod
    def evaluate(expr: str) -> float:
        """
        Evaluate an arithmetic expression.

        :param str expr: Arithmetic expression string

        :return: Computed result as float
        :rtype: float
        :raises MalformedExpressionError: If the expression is empty
        :raises ParseError: If the expression holds something other than numerals and operators
        :raises DivisionByZeroError: If a division by zero occurs
        """
        tokens: List[Token] = ExpressionEvaluator.tokenize(expr)

        if tokens[-1].is_operator:
            logger.debug(f"Ignoring trailing operator {tokens[-1].text!r} in {expr!r}")
            tokens = tokens[:-1]

        operands: List[float] = [tokens[0].value]
        pending: List[str] = []

        # Tokens alternate: operator at odd indexes, its right operand right after
        for op_token, number_token in zip(tokens[1::2], tokens[2::2]):
            while pending and ExpressionEvaluator._should_drain(op_token.text, pending[-1]):
                ExpressionEvaluator._apply(operands, pending.pop())
            pending.append(op_token.text)
            operands.append(number_token.value)

        while pending:
            ExpressionEvaluator._apply(operands, pending.pop())

        return operands[0]


def evaluate(expression: str) -> float:
    """Evaluate ``expression`` and return its value, see :class:`ExpressionEvaluator`."""
    return ExpressionEvaluator.evaluate(expression)


def evaluate_to_display(expression: str) -> str:
    """
    Evaluate ``expression`` and return the text a calculator display shows.

    Every evaluation failure collapses to :data:`ERROR_MARKER`.

    :param str expression: Arithmetic expression string

    :return: Result with eight significant digits, or ``"Error"``
    :rtype: str
    """
    try:
        return format_result(evaluate(expression))
    except EvaluationError as exc:
        logger.debug(f"Could not evaluate {expression!r}: {exc}")
        return ERROR_MARKER
