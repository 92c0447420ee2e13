"""
Exceptions raised by the matrix loader, the checked arithmetic and the executors.

Every error carries enough context to point at the failure: the file name,
the row/column of a bad element, or the output cell whose computation
overflowed. Row and column attributes are 0-based; messages print them
1-based, the way a person counts lines in the input file.
"""

from typing import Optional, Tuple


class MatMulError(Exception):
    """Base class for all errors that end a run."""


class MatrixFileError(MatMulError, OSError):
    """Matrix file missing, unreadable or unwritable."""

    def __init__(self, filepath: str, reason: str = "Cannot open file"):
        self.filepath = filepath
        super().__init__(f"{reason}: {filepath}")


class MatrixFormatError(MatMulError, ValueError):
    """Input file does not follow the row=R col=C format."""

    def __init__(self, message: str, filepath: Optional[str] = None,
                 row: Optional[int] = None, col: Optional[int] = None):
        self.filepath = filepath
        self.row = row
        self.col = col
        if filepath:
            message = f"{filepath}: {message}"
        super().__init__(message)


class MalformedHeader(MatrixFormatError):
    def __init__(self, filepath: Optional[str] = None):
        super().__init__("Cannot get row or column number", filepath)


class MalformedRow(MatrixFormatError):
    def __init__(self, row: int, filepath: Optional[str] = None,
                 found: Optional[int] = None, expected: Optional[int] = None):
        if found is None:
            message = f"Cannot read matrix elements of row {row + 1}"
        else:
            message = (f"Wrong number of elements in row {row + 1}: "
                       f"expected {expected}, found {found}")
        self.found = found
        self.expected = expected
        super().__init__(message, filepath, row=row)


class NonNumericElement(MatrixFormatError):
    def __init__(self, row: int, col: int, token: str, filepath: Optional[str] = None):
        self.token = token
        super().__init__(
            f"Element at row {row + 1} column {col + 1} is not numeric only ({token!r})",
            filepath, row=row, col=col
        )


class ElementTooLarge(MatrixFormatError):
    def __init__(self, row: int, col: int, token: str, filepath: Optional[str] = None):
        self.token = token
        super().__init__(
            f"Element size is greater than int at row {row + 1} column {col + 1}",
            filepath, row=row, col=col
        )


class DimensionMismatch(MatMulError, ValueError):
    """A.cols != B.rows."""

    def __init__(self, shape_a: Tuple[int, int], shape_b: Tuple[int, int]):
        self.shape_a = shape_a
        self.shape_b = shape_b
        super().__init__(
            f"1st matrix column size doesn't match 2nd matrix row size: "
            f"{shape_a[0]}×{shape_a[1]} × {shape_b[0]}×{shape_b[1]}"
        )


class ArithmeticOverflow(MatMulError, ArithmeticError):
    """A product or partial sum left the 32-bit range."""

    def __init__(self, row: int, col: int):
        self.row = row
        self.col = col
        super().__init__(
            f"Overflow will occur while computing element at row {row + 1} column {col + 1}"
        )

    @property
    def cell(self) -> Tuple[int, int]:
        return self.row, self.col


class WorkerSpawnFailure(MatMulError, RuntimeError):
    """The thread pool could not start its workers."""


class WorkerJoinFailure(MatMulError, RuntimeError):
    """A worker ended with an error that is not a matrix error."""
