"""
Overflow-Checked Integer Arithmetic
Multiply and add over signed 32-bit integers, failing instead of wrapping.

The predicates and the dot-product kernel are compiled with Numba in
nopython mode with the GIL released, so worker threads accumulate their
dot products in parallel. Intermediate values are held in int64, which
cannot overflow for a product of two int32 values or a sum of two int32
values.
"""

import numpy as np
import numba
from typing import Tuple

from matmul_config import INT32_MIN, INT32_MAX
from matmul_errors import ArithmeticOverflow


# ============================================================================
# Numba-Accelerated Predicates
# ============================================================================

@numba.jit(nopython=True, cache=True)
def mul_overflows(x, y):
    """True if x * y is outside the int32 range."""
    if x == 0:
        return False
    z = np.int64(x) * np.int64(y)
    return z > INT32_MAX or z < INT32_MIN


@numba.jit(nopython=True, cache=True)
def add_overflows(x, y):
    """
    True if x + y is outside the int32 range.

    Branches on the sign of x so the bound itself is computed without
    leaving the range: MAX - x cannot overflow for x >= 0, MIN - x cannot
    overflow for x < 0.
    """
    if x >= 0:
        return INT32_MAX - x < y
    return y < INT32_MIN - x


@numba.jit(nopython=True, nogil=True, cache=True)
def _checked_dot_kernel(a, b, i, j):
    """
    Dot product of row i of a and column j of b with overflow checks.

    Returns:
        (value, ok) - ok is False if a product or partial sum overflowed,
        in which case value is the partial sum reached so far
    """
    acc = np.int64(0)
    for k in range(a.shape[1]):
        x = np.int64(a[i, k])
        y = np.int64(b[k, j])
        if mul_overflows(x, y):
            return acc, False
        term = x * y
        if add_overflows(acc, term):
            return acc, False
        acc += term
    return acc, True


# ============================================================================
# Checked Operations
# ============================================================================

def checked_mul(x: int, y: int, pos: Tuple[int, int]) -> int:
    """
    Multiply two int32 values.

    Args:
        x, y: Operands
        pos: (row, col) of the output cell being computed

    Returns:
        x * y

    Raises:
        ArithmeticOverflow: if the product does not fit in int32
    """
    if mul_overflows(x, y):
        raise ArithmeticOverflow(*pos)
    return x * y


def checked_add(x: int, y: int, pos: Tuple[int, int]) -> int:
    """
    Add two int32 values.

    Raises:
        ArithmeticOverflow: if the sum does not fit in int32
    """
    if add_overflows(x, y):
        raise ArithmeticOverflow(*pos)
    return x + y


def checked_dot(a: np.ndarray, b: np.ndarray, i: int, j: int) -> int:
    """
    Compute C[i, j] = sum_k a[i, k] * b[k, j] with checked multiply/add.

    Args:
        a: m × n int32 array
        b: n × p int32 array
        i, j: Output cell

    Returns:
        The dot product as a Python int

    Raises:
        ArithmeticOverflow: carrying (i, j) if any term or partial sum overflows
    """
    value, ok = _checked_dot_kernel(a, b, i, j)
    if not ok:
        raise ArithmeticOverflow(i, j)
    return int(value)


def warm_up():
    """
    Compile the dot kernel before any timed run.

    Numba compiles on first call per argument type, and the executors see
    both read-only (loaded) and writable operands, so both are compiled here.
    """
    a = np.zeros((1, 1), dtype=np.int32)
    b = np.zeros((1, 1), dtype=np.int32)
    _checked_dot_kernel(a, b, 0, 0)

    a.flags.writeable = False
    b.flags.writeable = False
    _checked_dot_kernel(a, b, 0, 0)
