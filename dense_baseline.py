"""
Dense Matrix Multiplication - Unchecked Baseline
Serial reference algorithms used to check and benchmark the threaded executors.

These paths perform NO overflow checking: they accumulate in int64 (numpy)
or in Python ints (naive loop) and are only used as test oracles, by the
benchmark, and by --verify. The threaded executors never call them.

Time Complexity:
- Multiplication: O(m·n·p) - three nested loops
"""

import numpy as np
import logging

from matrix_formats import DenseMatrix


logger = logging.getLogger(__name__)


# ============================================================================
# Dense Matrix Multiplication (Naive 3-loop)
# ============================================================================

def dense_multiply_naive(A: np.ndarray, B: np.ndarray) -> np.ndarray:
    """
    Dense matrix multiplication using 3 nested loops.

    This is the textbook algorithm:
    C[i,j] = sum over k of A[i,k] * B[k,j]

    Args:
        A: m × n matrix
        B: n × p matrix

    Returns:
        C: m × p int64 matrix
    """
    m, n = A.shape
    n2, p = B.shape

    if n != n2:
        raise ValueError(f"Incompatible dimensions: {A.shape} × {B.shape}")

    C = np.zeros((m, p), dtype=np.int64)

    for i in range(m):
        for j in range(p):
            total = 0
            for k in range(n):
                total += int(A[i, k]) * int(B[k, j])
            C[i, j] = total

    return C


def dense_multiply_numpy(A: np.ndarray, B: np.ndarray) -> np.ndarray:
    """
    Dense matrix multiplication using NumPy, in int64.

    Args:
        A: m × n matrix
        B: n × p matrix

    Returns:
        C: m × p int64 matrix
    """
    return A.astype(np.int64) @ B.astype(np.int64)


# ============================================================================
# Verification
# ============================================================================

def verify_multiplication_scipy(a: DenseMatrix, b: DenseMatrix, c: DenseMatrix) -> bool:
    """
    Verify C = A × B using scipy.sparse as ground truth.

    Returns:
        True if every cell matches
    """
    expected_shape = (a.rows, b.cols)
    if c.shape != expected_shape:
        logger.error(f"✗ Shape mismatch: {c.shape} vs {expected_shape}")
        return False

    expected = (a.to_scipy_sparse() @ b.to_scipy_sparse()).toarray()
    diff = np.argwhere(expected != c.data.astype(np.int64))

    if len(diff):
        logger.error(f"✗ Verification failed: {len(diff)} differing entries")
        for i, j in diff[:5]:
            logger.error(f"  C[{i},{j}] = {c.data[i, j]}, expected {expected[i, j]}")
        return False

    logger.info("✓ Verification passed! Result matches scipy.sparse")
    return True
