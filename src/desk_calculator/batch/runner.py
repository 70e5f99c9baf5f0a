"""Evaluate many arithmetic expressions in worker processes."""
from multiprocessing import Pipe, Process, cpu_count
from multiprocessing.connection import Connection, wait
from pathlib import Path
from typing import List, Optional, TextIO, Tuple

from pydantic import BaseModel, Field

from desk_calculator.batch.worker import WorkerProcess
from desk_calculator.common.logger import logger
from desk_calculator.common.operations import OperationRequest, OperationResult

# (process, parent end of its pipe, line number, expression)
ActiveWorker = Tuple[Process, Connection, int, str]


class BatchEvaluator(BaseModel):
    """
    Evaluate a list of expressions, one worker process per expression.

    Features:
        - Writes each outcome to disk as soon as its worker finishes.
        - Joins each worker and closes its pipe right after collecting it.
        - Reports a worker that dies without a result as an error line.
        - Runs at most ``max_workers`` workers at a time (CPU count by default).
    """

    output_file: Path = Field(..., description="Path to write computation results")
    max_workers: Optional[int] = Field(default=None, ge=1, description="Upper bound on simultaneous workers")

    def _spawn_worker(self, request: OperationRequest, line_number: int) -> ActiveWorker:
        """
        Spawn a WorkerProcess for the given request and return process and pipe.

        :param OperationRequest request: Validated arithmetic expression
        :param int line_number: Line number of expression in input

        :return: Tuple of (Process, parent end of the pipe, line number, expression)
        :rtype: Tuple[Process, Connection, int, str]
        """
        parent_conn, child_conn = Pipe(duplex=False)
        worker = WorkerProcess(conn=child_conn, expression=request.expression, line_number=line_number)
        process = Process(target=worker.run)
        process.start()
        # The child owns its end now
        child_conn.close()
        return process, parent_conn, line_number, request.expression

    @staticmethod
    def _receive_outcome(worker: ActiveWorker) -> OperationResult:
        """
        Read the outcome sent by a worker and join its process.

        A worker that exits without sending anything is reported as an error outcome.

        :param worker: Tuple (Process, Connection, line number, expression)

        :return: Outcome of the worker's expression
        :rtype: OperationResult
        """
        proc, pipe_conn, line_number, expr = worker
        try:
            payload = pipe_conn.recv()
        except EOFError:
            proc.join()
            logger.error(f"👷💥 Worker for line {line_number} exited with code {proc.exitcode} without a result")
            return OperationResult(
                line=line_number, expression=expr, error=f"Worker exited with code {proc.exitcode}"
            )
        finally:
            pipe_conn.close()

        proc.join()
        return OperationResult.model_validate(payload)

    def _collect_finished_workers(
        self, active_workers: List[ActiveWorker], f_out: TextIO
    ) -> List[OperationResult]:
        """
        Block until at least one worker pipe is ready, then collect every ready one.

        Collected workers are removed from ``active_workers``.

        :param list active_workers: List of tuples (Process, Connection, line number, expression)
        :param f_out: Open file handle for writing results

        :return: Outcomes collected during this call
        :rtype: List[OperationResult]
        """
        ready = wait([worker[1] for worker in active_workers])
        collected: List[OperationResult] = []

        # Iterate in reverse to safely remove finished workers while iterating
        for i in reversed(range(len(active_workers))):
            if active_workers[i][1] not in ready:
                continue
            outcome = self._receive_outcome(active_workers.pop(i))

            f_out.write(outcome.to_line() + "\n")
            f_out.flush()
            collected.append(outcome)

        return collected

    @staticmethod
    def _stop_workers(active_workers: List[ActiveWorker]) -> None:
        """Terminate and join workers left running after a failure."""
        for proc, pipe_conn, line_number, _ in active_workers:
            logger.warning(f"👷🛑 Stopping worker for line {line_number}")
            proc.terminate()
            proc.join()
            pipe_conn.close()
        active_workers.clear()

    def run(self, expressions: List[str]) -> List[OperationResult]:
        """
        Evaluate every expression and write one result line per expression to the output file.

        Lines are written in completion order; the returned list is ordered by line number.

        :param list expressions: Non-empty arithmetic expressions

        :return: Outcome of every expression
        :rtype: List[OperationResult]
        :raises pydantic.ValidationError: If an expression is blank
        """
        requests = [OperationRequest(expression=expr) for expr in expressions]
        outcomes: List[OperationResult] = []
        with self.output_file.open("w", encoding="utf-8") as f_out:
            if not requests:
                logger.info(f"📭 Nothing to evaluate, wrote empty {self.output_file}")
                return outcomes

            # Limit number of active workers to CPU cores or number of expressions
            max_workers: int = min(self.max_workers or cpu_count(), len(requests))
            logger.info(f"🧮 Evaluating {len(requests)} expressions with up to {max_workers} workers")
            active_workers: List[ActiveWorker] = []

            try:
                for line_number, request in enumerate(requests, start=1):
                    # Wait until a worker slot is available
                    while len(active_workers) >= max_workers:
                        outcomes.extend(self._collect_finished_workers(active_workers, f_out))

                    active_workers.append(self._spawn_worker(request, line_number))

                # Collect remaining active workers
                while active_workers:
                    outcomes.extend(self._collect_finished_workers(active_workers, f_out))
            finally:
                self._stop_workers(active_workers)

        logger.info(f"✅ Results written to {self.output_file}")
        return sorted(outcomes, key=lambda outcome: outcome.line)
