"""
Threaded Matrix Multiplication - Command Line Tool
Reads A and B, computes C = A × B twice (thread per row, then thread per
element), reports the time each strategy took, and writes C.

Usage:
    python matmul.py [matrixA] [matrixB] [matrixC]

    Defaults: a.txt b.txt c.out

Run sequence:
    LOADED -> ROW_COMPUTED -> ELEMENT_COMPUTED -> WRITTEN

Both strategies fill the same C buffer, one after the other. Nothing is
written if either run fails.
"""

import sys
import argparse
import logging
from enum import Enum
from typing import List, Optional

from matmul_config import (
    DEFAULT_MATRIX_A, DEFAULT_MATRIX_B, DEFAULT_MATRIX_C,
    DEFAULT_MAX_WORKERS, LOG_FORMAT,
)
from matmul_errors import MatMulError
from matrix_formats import DenseMatrix, load_operands
from parallel_cpu import parallel_multiply_rows, parallel_multiply_elements
from timing_harness import TimingReport, time_executor
from checked_arithmetic import warm_up


logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
logger = logging.getLogger(__name__)


class RunState(Enum):
    PENDING = "pending"
    LOADED = "loaded"
    ROW_COMPUTED = "row_computed"
    ELEMENT_COMPUTED = "element_computed"
    WRITTEN = "written"


class MatMulRun:
    """
    One run of the tool: load, compute by rows, compute by elements, write.

    Each step must be called in order. A step that raises leaves the state
    where it was, so a failed computation can never be written.
    """

    def __init__(self, path_a: str, path_b: str, path_c: str,
                 max_workers: Optional[int] = None):
        self.path_a = path_a
        self.path_b = path_b
        self.path_c = path_c
        self.max_workers = max_workers

        self.state = RunState.PENDING
        self.a: Optional[DenseMatrix] = None
        self.b: Optional[DenseMatrix] = None
        self.c: Optional[DenseMatrix] = None
        self.reports: List[TimingReport] = []

    def _expect(self, state: RunState):
        if self.state is not state:
            raise RuntimeError(f"Cannot run this step in state {self.state.value}, "
                               f"expected {state.value}")

    def load(self):
        self._expect(RunState.PENDING)
        self.a, self.b = load_operands(self.path_a, self.path_b)
        self.c = DenseMatrix.zeros(self.a.rows, self.b.cols)
        warm_up()
        self.state = RunState.LOADED

    def _compute(self, executor) -> TimingReport:
        self.c, report = time_executor(executor, self.a, self.b, self.c,
                                       max_workers=self.max_workers)
        self.reports.append(report)
        return report

    def compute_rows(self) -> TimingReport:
        self._expect(RunState.LOADED)
        report = self._compute(parallel_multiply_rows)
        self.state = RunState.ROW_COMPUTED
        return report

    def compute_elements(self) -> TimingReport:
        self._expect(RunState.ROW_COMPUTED)
        report = self._compute(parallel_multiply_elements)
        self.state = RunState.ELEMENT_COMPUTED
        return report

    def write(self):
        self._expect(RunState.ELEMENT_COMPUTED)
        self.c.freeze()
        self.c.to_file(self.path_c)
        self.state = RunState.WRITTEN


def show(matrix: DenseMatrix):
    """Print a matrix to stdout, space-separated."""
    for row in matrix.data:
        print(" ".join(str(int(v)) for v in row))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Multiply two integer matrices with a thread per row and a thread per element",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Use a.txt, b.txt and write c.out
  python matmul.py

  # Explicit files
  python matmul.py data/a.txt data/b.txt data/c.out

  # Cap the thread pool and check the result with scipy
  python matmul.py a.txt b.txt c.out --workers 8 --verify
        """
    )

    parser.add_argument('paths', nargs='*', metavar='PATH',
                        help=f'[matrixA] [matrixB] [matrixC] '
                             f'(default: {DEFAULT_MATRIX_A} {DEFAULT_MATRIX_B} {DEFAULT_MATRIX_C})')
    parser.add_argument('--workers', type=int, default=DEFAULT_MAX_WORKERS,
                        help=f'Max threads per strategy (default: {DEFAULT_MAX_WORKERS})')
    parser.add_argument('--verify', action='store_true', help='Check C against scipy before writing')
    parser.add_argument('--show', action='store_true', help='Print C to stdout')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], help='Logging level')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if len(args.paths) > 3:
        parser.error("Too many arguments")
    if args.workers < 1:
        parser.error("--workers must be at least 1")

    logging.getLogger().setLevel(args.log_level)

    defaults = [DEFAULT_MATRIX_A, DEFAULT_MATRIX_B, DEFAULT_MATRIX_C]
    path_a, path_b, path_c = args.paths + defaults[len(args.paths):]

    run = MatMulRun(path_a, path_b, path_c, max_workers=args.workers)

    try:
        run.load()

        for step in (run.compute_rows, run.compute_elements):
            report = step()
            print(report.format_report())

        if args.verify:
            from dense_baseline import verify_multiplication_scipy
            if not verify_multiplication_scipy(run.a, run.b, run.c):
                logger.error("Result does not match scipy; not writing output")
                return 1

        if args.show:
            show(run.c)

        run.write()
    except MatMulError as e:
        logger.error(str(e))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
