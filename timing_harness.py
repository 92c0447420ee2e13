"""
Wall-clock timing for executor runs.

time_executor() reads the clock immediately before the executor dispatches
its units and again once the executor has joined every worker.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from matrix_formats import DenseMatrix


@dataclass
class TimingReport:
    strategy: str
    num_units: int
    num_workers: int
    elapsed: float

    @property
    def seconds(self) -> int:
        return divmod(self.total_microseconds, 1_000_000)[0]

    @property
    def microseconds(self) -> int:
        """Sub-second remainder."""
        return divmod(self.total_microseconds, 1_000_000)[1]

    @property
    def total_microseconds(self) -> int:
        return int(self.elapsed * 1_000_000)

    def format_report(self) -> str:
        return (
            f"{self.strategy} method:\n"
            f"Number of threads: {self.num_workers}\n"
            f"Work units: {self.num_units}\n"
            f"Seconds taken: {self.seconds}\n"
            f"Microseconds taken: {self.microseconds}"
        )


def time_executor(executor: Callable, a: DenseMatrix, b: DenseMatrix,
                  c: Optional[DenseMatrix] = None, **kwargs) -> Tuple[DenseMatrix, TimingReport]:
    """
    Run executor(a, b, c, **kwargs) and measure it.

    Args:
        executor: parallel_multiply_rows or parallel_multiply_elements
        a, b: Operands
        c: Output matrix passed through to the executor
        **kwargs: Extra executor arguments (e.g. max_workers)

    Returns:
        (C, TimingReport)
    """
    start = time.perf_counter()
    c, stats = executor(a, b, c, **kwargs)
    elapsed = time.perf_counter() - start

    return c, TimingReport(stats.strategy, stats.num_units, stats.num_workers, elapsed)
