"""Errors raised while evaluating arithmetic expressions."""
from typing import Optional


class EvaluationError(ValueError):
    """Base class for every failure of the expression evaluator."""


class ParseError(EvaluationError):
    """A token is neither a numeral where one is expected nor a known operator."""

    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(message)
        self.position = position


class MalformedExpressionError(EvaluationError):
    """The expression is empty or holds no operand."""


class DivisionByZeroError(EvaluationError, ZeroDivisionError):
    """The right operand of a division is zero."""
