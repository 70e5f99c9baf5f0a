"""Worker process evaluating one arithmetic expression."""
from multiprocessing.connection import Connection
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from desk_calculator.common.evaluator import evaluate
from desk_calculator.common.logger import logger
from desk_calculator.common.operations import OperationResult


class WorkerProcess(BaseModel):
    """
    Worker responsible for evaluating a single arithmetic expression.

    Lifecycle:
        - Spawned by the batch evaluator in its own process
        - Receives one expression only
        - Sends an :class:`OperationResult` dump through a Pipe
        - Terminates immediately after computation
    """

    # Immutable once spawned; allow multiprocessing.Connection as a field type
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    conn: Connection = Field(..., description="Connection object for sending the outcome back")
    expression: str = Field(..., description="Single arithmetic expression to evaluate")
    line_number: int = Field(..., ge=1, description="Line number in the input file")

    @field_validator("expression")
    def expression_must_not_be_empty(cls, v: str) -> str:
        """Ensure that the expression is not empty."""
        if not v.strip():
            raise ValueError("Expression cannot be empty")
        return v

    def compute(self) -> OperationResult:
        """
        Evaluate the expression without sending anything.

        :return: Result or error for this line
        :rtype: OperationResult
        """
        try:
            value = evaluate(self.expression)
        except Exception as exc:
            logger.error(
                f"👷❌ Worker failed on line {self.line_number}: {exc}\n"
                f"Invalid arithmetic expression, could not evaluate: {self.expression!r}"
            )
            return OperationResult(line=self.line_number, expression=self.expression, error=str(exc))
        return OperationResult(line=self.line_number, expression=self.expression, result=value)

    def run(self) -> None:
        """
        Evaluate the expression and send the outcome through the pipe.

        :return: None
        """
        logger.info(f"👷🏁 Worker started on line {self.line_number}: {self.expression}")

        outcome: Optional[OperationResult] = None
        try:
            outcome = self.compute()
            self.conn.send(outcome.model_dump())
        finally:
            # Always close the connection
            self.conn.close()

        if outcome.succeeded:
            logger.info(f"👷✅ Worker finished on line {self.line_number}: {outcome.display}")
