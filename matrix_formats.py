"""
Dense Integer Matrix Format
Reads and writes the plain-text matrix format used by the multiplication tool.

File layout:
    row=<R> col=<C>
    <C whitespace-separated integers>      (repeated R times)

Key Design:
- Matrix dimensions travel with each matrix (no shared dimension state)
- Values are stored in a numpy int32 array, so every element fits 32 bits
- Loaded inputs are frozen (read-only) before they reach the worker threads
- Every validation failure names the file, row and column it happened at
"""

import os
import re
import tempfile
import contextlib
import logging
from typing import Tuple, List, Optional

import numpy as np
from scipy import sparse as sp

from matmul_config import INT32_MIN, INT32_MAX, MAX_DIGITS
from matmul_errors import (
    MatrixFileError, MalformedHeader, MalformedRow,
    NonNumericElement, ElementTooLarge, DimensionMismatch,
)


logger = logging.getLogger(__name__)

_HEADER_RE = re.compile(r"row=([0-9]+) col=([0-9]+)")
_TOKEN_RE = re.compile(r"-?([0-9]+)")


# ============================================================================
# Token Parsing
# ============================================================================

def parse_header(line: str, filepath: Optional[str] = None) -> Tuple[int, int]:
    """
    Parse the "row=R col=C" header line.

    Returns:
        (rows, cols)
    """
    match = _HEADER_RE.fullmatch(line.strip())
    if match is None:
        raise MalformedHeader(filepath)
    return int(match.group(1)), int(match.group(2))


def parse_element(token: str, row: int, col: int, filepath: Optional[str] = None) -> int:
    """
    Validate a single element token and convert it to int.

    A token is an optional leading '-' followed by ASCII digits only,
    at most MAX_DIGITS of them, and must fit in a signed 32-bit integer.

    Args:
        token: Raw token from the data line
        row, col: 0-based position, for error messages
        filepath: Source file, for error messages

    Returns:
        Element value
    """
    match = _TOKEN_RE.fullmatch(token)
    if match is None:
        raise NonNumericElement(row, col, token, filepath)

    if len(match.group(1)) > MAX_DIGITS:
        raise ElementTooLarge(row, col, token, filepath)

    value = int(token)
    if value < INT32_MIN or value > INT32_MAX:
        raise ElementTooLarge(row, col, token, filepath)

    return value


def parse_row(line: str, row: int, num_cols: int, filepath: Optional[str] = None) -> List[int]:
    """Split one data line and validate it holds exactly num_cols elements."""
    tokens = line.split()

    # Validate tokens left to right so the first bad element is reported
    values = []
    for col, token in enumerate(tokens[:num_cols]):
        values.append(parse_element(token, row, col, filepath))

    if len(tokens) != num_cols:
        raise MalformedRow(row, filepath, found=len(tokens), expected=num_cols)

    return values


# ============================================================================
# Dense Matrix
# ============================================================================

class DenseMatrix:
    """
    Dense rectangular grid of signed 32-bit integers.

    The shape is fixed at construction. Matrices loaded from disk are frozen;
    output matrices stay writable until the caller freezes them.
    """

    def __init__(self, data, filepath: Optional[str] = None):
        """
        Args:
            data: 2-D array-like of integers in the int32 range
            filepath: File the matrix was read from (for messages)
        """
        array = np.asarray(data)

        if array.ndim != 2:
            raise ValueError(f"Matrix data must be 2-D, got {array.ndim}-D")
        if array.size and not np.issubdtype(array.dtype, np.integer):
            raise ValueError(f"Matrix elements must be integers, got {array.dtype}")
        if array.size and (array.min() < INT32_MIN or array.max() > INT32_MAX):
            raise ValueError("Matrix elements must fit in a signed 32-bit integer")

        self.data = np.ascontiguousarray(array, dtype=np.int32)
        self.filepath = filepath

    @property
    def rows(self) -> int:
        return self.data.shape[0]

    @property
    def cols(self) -> int:
        return self.data.shape[1]

    @property
    def shape(self) -> Tuple[int, int]:
        return self.rows, self.cols

    @property
    def frozen(self) -> bool:
        return not self.data.flags.writeable

    @classmethod
    def zeros(cls, rows: int, cols: int) -> 'DenseMatrix':
        """Allocate a writable rows × cols output matrix."""
        return cls(np.zeros((rows, cols), dtype=np.int32))

    @classmethod
    def from_rows(cls, rows: List[List[int]]) -> 'DenseMatrix':
        """Build a matrix from nested lists (all rows the same length)."""
        if not rows:
            return cls(np.zeros((0, 0), dtype=np.int32))
        return cls(np.array(rows, dtype=np.int64))

    @classmethod
    def from_file(cls, filepath: str, expected_rows: Optional[int] = None,
                  left_shape: Optional[Tuple[int, int]] = None) -> 'DenseMatrix':
        """
        Load a matrix from the row=R col=C text format.

        Args:
            filepath: Path to the matrix file
            expected_rows: If given, the header's row count must equal it
                (used to check B against A before reading B's data)
            left_shape: Shape of the left operand, used in the
                DimensionMismatch message

        Returns:
            Frozen DenseMatrix
        """
        filepath = str(filepath)

        try:
            f = open(filepath, 'rb')
        except OSError as e:
            raise MatrixFileError(filepath, "Cannot open one of the files") from e

        with f:
            # Lines are decoded one at a time so a bad byte is pinned to its row
            lines = iter(f)

            header = next(lines, None)
            if header is None:
                raise MalformedHeader(filepath)
            try:
                header = header.decode('utf-8')
            except UnicodeDecodeError as e:
                raise MalformedHeader(filepath) from e
            num_rows, num_cols = parse_header(header, filepath)

            if expected_rows is not None and num_rows != expected_rows:
                shape_a = left_shape or (0, expected_rows)
                raise DimensionMismatch(shape_a, (num_rows, num_cols))

            # Allocate only after every row the header promised was read
            values = []
            for i in range(num_rows):
                raw = next(lines, None)
                if raw is None:
                    raise MalformedRow(i, filepath)
                try:
                    line = raw.decode('utf-8')
                except UnicodeDecodeError as e:
                    raise MalformedRow(i, filepath) from e
                values.append(parse_row(line, i, num_cols, filepath))

            trailing = sum(1 for raw in lines if raw.strip())
            if trailing:
                logger.warning(f"{filepath}: ignoring {trailing} line(s) after row {num_rows}")

        if values:
            data = np.array(values, dtype=np.int32).reshape(num_rows, num_cols)
        else:
            data = np.zeros((0, num_cols), dtype=np.int32)

        matrix = cls(data, filepath=filepath)
        matrix.freeze()
        logger.info(f"Loaded {filepath}: {num_rows}×{num_cols}")
        return matrix

    def to_file(self, filepath: str):
        """
        Write the matrix in row=R col=C format, cells tab-separated.

        Args:
            filepath: Output file path
        """
        filepath = str(filepath)
        directory = os.path.dirname(os.path.abspath(filepath))

        # Written next to the target and renamed, so a failed write never
        # leaves a truncated file at filepath
        try:
            fd, temp_path = tempfile.mkstemp(dir=directory, prefix=".matmul-", suffix=".tmp")
        except OSError as e:
            raise MatrixFileError(filepath, "Cannot write output file") from e

        try:
            with os.fdopen(fd, 'w') as f:
                f.write(f"row={self.rows} col={self.cols}\n")
                for row in self.data:
                    f.write("\t".join(str(int(v)) for v in row) + "\n")
            os.chmod(temp_path, 0o644)
            os.replace(temp_path, filepath)
        except OSError as e:
            with contextlib.suppress(FileNotFoundError):
                os.remove(temp_path)
            raise MatrixFileError(filepath, "Cannot write output file") from e

        logger.info(f"Wrote {self.rows}×{self.cols} matrix to {filepath}")

    def freeze(self) -> 'DenseMatrix':
        """Make the underlying array read-only."""
        self.data.flags.writeable = False
        return self

    def tolist(self) -> List[List[int]]:
        return self.data.tolist()

    def to_scipy_sparse(self) -> sp.csr_matrix:
        """
        Convert to scipy.sparse.csr_matrix (int64) for verification.

        Returns:
            scipy.sparse.csr_matrix
        """
        return sp.csr_matrix(self.data.astype(np.int64))

    def __eq__(self, other) -> bool:
        if not isinstance(other, DenseMatrix):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self.data, other.data))

    def __repr__(self) -> str:
        source = f", filepath={self.filepath!r}" if self.filepath else ""
        return f"DenseMatrix(shape={self.shape}{source})"


def load_operands(path_a: str, path_b: str) -> Tuple[DenseMatrix, DenseMatrix]:
    """
    Load A then B, checking B's row count against A's column count
    before B's data is read.

    Returns:
        (A, B), both frozen
    """
    a = DenseMatrix.from_file(path_a)
    b = DenseMatrix.from_file(path_b, expected_rows=a.cols, left_shape=a.shape)
    return a, b
