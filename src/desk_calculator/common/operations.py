"""Pydantic models for arithmetic operation requests and results."""
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

# Text shown instead of a number whenever an evaluation fails
ERROR_MARKER = "Error"


def format_result(value: float) -> str:
    """
    Format a result the way the calculator display shows it: eight significant digits.

    :param float value: Computed result

    :return: Formatted number (e.g. ``14``, ``0.33333333``, ``1e+10``)
    :rtype: str
    """
    return f"{value:.8g}"


class OperationRequest(BaseModel):
    """Represents a single arithmetic operation request."""

    expression: str = Field(..., description="Arithmetic expression as a string")

    @field_validator("expression")
    def expression_must_not_be_empty(cls, v: str) -> str:
        """Ensure that the expression is not empty."""
        if not v.strip():
            raise ValueError("Expression cannot be empty")
        return v.strip()


class OperationResult(BaseModel):
    """Represents the outcome of an evaluated arithmetic operation: a result or an error."""

    line: int = Field(..., ge=1, description="Line number of the expression in the input")
    expression: str = Field(..., description="Original arithmetic expression")
    result: Optional[float] = Field(default=None, description="Evaluated numeric result of the expression")
    error: Optional[str] = Field(default=None, description="Reason the expression could not be evaluated")

    @model_validator(mode="after")
    def result_xor_error(self) -> "OperationResult":
        """Ensure exactly one of result and error is set."""
        if (self.result is None) == (self.error is None):
            raise ValueError("Exactly one of 'result' and 'error' must be set")
        return self

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def display(self) -> str:
        """Text a calculator display shows for this outcome."""
        if not self.succeeded:
            return ERROR_MARKER
        return format_result(self.result)

    def to_line(self) -> str:
        """
        Render the outcome as one line of a results file.

        :return: ``"<expression> = <display>"`` or ``"<expression> -> ERROR: <error>"``
        :rtype: str
        """
        if self.succeeded:
            return f"{self.expression} = {self.display}"
        return f"{self.expression} -> ERROR: {self.error}"
