"""
Parallel Dense Matrix Multiplication (CPU Multi-threaded)
Computes C = A × B with one work unit per output row or per output element.

Parallelization Strategy:
- Row partition: a_rows units, unit i computes all of row i of C
- Element partition: a_rows × b_cols units, unit (i, j) computes C[i, j]

Every cell of C belongs to exactly one unit, so workers write C without
locks. A and B are shared read-only. Units run on a bounded thread pool;
the pool's map() is the join barrier: it returns (or raises) only after
every unit has finished.

Uses: multiprocessing.pool.ThreadPool, the thread-backed Pool, so all
workers share the same C buffer. The dot-product kernel releases the GIL.
"""

import numpy as np
import logging
from multiprocessing import cpu_count
from multiprocessing.pool import ThreadPool
from functools import partial
from dataclasses import dataclass
from typing import Tuple, List, Optional, Callable
import time
from tabulate import tabulate

from matmul_config import DEFAULT_MAX_WORKERS, LOG_FORMAT
from matmul_errors import (
    MatMulError, DimensionMismatch, WorkerSpawnFailure, WorkerJoinFailure,
)
from matrix_formats import DenseMatrix
from checked_arithmetic import checked_dot, warm_up


logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
logger = logging.getLogger(__name__)

ROW_STRATEGY = "Thread for each row"
ELEMENT_STRATEGY = "Thread for each element"


@dataclass
class ExecutorStats:
    """What an executor run used: strategy name, work units and pool threads."""
    strategy: str
    num_units: int
    num_workers: int


# ============================================================================
# Pool Management
# ============================================================================

def resolve_pool_size(num_units: int, max_workers: Optional[int] = None) -> int:
    """
    Number of threads for a run with num_units work units.

    One thread per unit, capped at max_workers (default DEFAULT_MAX_WORKERS).
    Always at least 1.
    """
    if max_workers is None:
        max_workers = DEFAULT_MAX_WORKERS
    if max_workers < 1:
        raise ValueError(f"max_workers must be at least 1, got {max_workers}")
    return max(1, min(num_units, max_workers))


def _start_pool(num_workers: int) -> ThreadPool:
    try:
        return ThreadPool(num_workers)
    except RuntimeError as e:
        raise WorkerSpawnFailure(f"Cannot start {num_workers} worker threads: {e}") from e


def _run_units(worker: Callable, units: List, num_workers: int):
    """
    Run worker over every unit on a pool of num_workers threads.

    Blocks until all units are done. The first error raised by a unit is
    re-raised here, after the join.
    """
    pool = _start_pool(num_workers)
    try:
        pool.map(worker, units, chunksize=1)
    except MatMulError:
        raise
    except Exception as e:
        raise WorkerJoinFailure(f"Worker failed: {e!r}") from e
    finally:
        pool.close()
        pool.join()


def _prepare_output(a: DenseMatrix, b: DenseMatrix, c: Optional[DenseMatrix]) -> DenseMatrix:
    if a.cols != b.rows:
        raise DimensionMismatch(a.shape, b.shape)

    if c is None:
        return DenseMatrix.zeros(a.rows, b.cols)

    if c.shape != (a.rows, b.cols):
        raise ValueError(f"Output shape {c.shape} does not match {(a.rows, b.cols)}")
    if c.frozen:
        raise ValueError("Output matrix is read-only")
    return c


# ============================================================================
# Workers
# ============================================================================

def _compute_row(i: int, a: np.ndarray, b: np.ndarray, c: np.ndarray):
    """Worker: fill row i of c."""
    for j in range(c.shape[1]):
        c[i, j] = checked_dot(a, b, i, j)


def _compute_element(cell: Tuple[int, int], a: np.ndarray, b: np.ndarray, c: np.ndarray):
    """Worker: fill the single cell c[i, j]."""
    i, j = cell
    c[i, j] = checked_dot(a, b, i, j)


# ============================================================================
# Executors
# ============================================================================

def parallel_multiply_rows(a: DenseMatrix, b: DenseMatrix,
                           c: Optional[DenseMatrix] = None,
                           max_workers: Optional[int] = None) -> Tuple[DenseMatrix, ExecutorStats]:
    """
    Parallel multiplication with one work unit per output row.

    Args:
        a: m × n matrix (read-only)
        b: n × p matrix (read-only)
        c: Writable m × p output matrix; allocated if None
        max_workers: Pool size cap (default: DEFAULT_MAX_WORKERS)

    Returns:
        (C, ExecutorStats)

    Raises:
        ArithmeticOverflow: if any cell overflows (after all units finished)
    """
    c = _prepare_output(a, b, c)

    units = list(range(a.rows))
    num_workers = resolve_pool_size(len(units), max_workers)

    logger.info(f"{ROW_STRATEGY}: {len(units)} units on {num_workers} threads")

    worker = partial(_compute_row, a=a.data, b=b.data, c=c.data)
    _run_units(worker, units, num_workers)

    return c, ExecutorStats(ROW_STRATEGY, len(units), num_workers)


def parallel_multiply_elements(a: DenseMatrix, b: DenseMatrix,
                               c: Optional[DenseMatrix] = None,
                               max_workers: Optional[int] = None) -> Tuple[DenseMatrix, ExecutorStats]:
    """
    Parallel multiplication with one work unit per output element.

    Same contract as parallel_multiply_rows; a_rows × b_cols units.
    """
    c = _prepare_output(a, b, c)

    units = [(i, j) for i in range(a.rows) for j in range(b.cols)]
    num_workers = resolve_pool_size(len(units), max_workers)

    logger.info(f"{ELEMENT_STRATEGY}: {len(units)} units on {num_workers} threads")

    worker = partial(_compute_element, a=a.data, b=b.data, c=c.data)
    _run_units(worker, units, num_workers)

    return c, ExecutorStats(ELEMENT_STRATEGY, len(units), num_workers)


EXECUTORS = {
    "row": parallel_multiply_rows,
    "element": parallel_multiply_elements,
}


# ============================================================================
# Benchmarking
# ============================================================================

def benchmark_strategies(sizes: Tuple[int, ...] = (50, 100, 200),
                         max_workers: Optional[int] = None,
                         naive_limit: int = 100,
                         seed: int = 42) -> List[List]:
    """
    Compare the threaded strategies against the serial baselines.

    Args:
        sizes: Square matrix sizes to run
        max_workers: Pool size cap for the threaded strategies
        naive_limit: Skip the pure-Python 3-loop above this size
        seed: Random seed

    Returns:
        Table rows: [size, strategy, threads, seconds]
    """
    from dense_baseline import dense_multiply_naive, dense_multiply_numpy

    warm_up()

    rng = np.random.default_rng(seed)
    table_data = []

    for size in sizes:
        logger.info("=" * 70)
        logger.info(f"Benchmark: {size}×{size}")
        logger.info("=" * 70)

        a = DenseMatrix(rng.integers(-100, 100, (size, size))).freeze()
        b = DenseMatrix(rng.integers(-100, 100, (size, size))).freeze()

        results = {}
        for name, executor in EXECUTORS.items():
            start = time.perf_counter()
            c, stats = executor(a, b, max_workers=max_workers)
            elapsed = time.perf_counter() - start
            results[name] = c
            table_data.append([size, stats.strategy, stats.num_workers, f"{elapsed:.4f}"])
            logger.info(f"  {stats.strategy}: {elapsed:.4f}s")

        if not np.array_equal(results["row"].data, results["element"].data):
            logger.error(f"Row and element results differ at size {size}")

        if size <= naive_limit:
            start = time.perf_counter()
            dense_multiply_naive(a.data, b.data)
            elapsed = time.perf_counter() - start
            table_data.append([size, "Naive 3-loop (unchecked)", 1, f"{elapsed:.4f}"])
        else:
            table_data.append([size, "Naive 3-loop (unchecked)", 1, "SKIPPED"])

        start = time.perf_counter()
        dense_multiply_numpy(a.data, b.data)
        elapsed = time.perf_counter() - start
        table_data.append([size, "NumPy (unchecked)", 1, f"{elapsed:.4f}"])

    headers = ["Size", "Strategy", "Threads", "Seconds"]
    print(tabulate(table_data, headers=headers, tablefmt="grid"))

    return table_data


# ============================================================================
# Main Function
# ============================================================================

def main():
    """Run strategy benchmarks."""
    logger.info(f"\nParallel CPU Matrix Multiplication")
    logger.info(f"Available CPU cores: {cpu_count()}")
    logger.info("=" * 70)

    benchmark_strategies()


if __name__ == "__main__":
    main()
