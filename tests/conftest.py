"""Shared fixtures for the matrix multiplication tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from matrix_formats import DenseMatrix


@pytest.fixture
def write_matrix(tmp_path: Path):
    """Return a helper that writes raw text to tmp_path/<name> and returns the path."""

    def _write(name: str, text: str) -> str:
        path = tmp_path / name
        path.write_text(text)
        return str(path)

    return _write


@pytest.fixture
def small_pair() -> tuple[DenseMatrix, DenseMatrix]:
    a = DenseMatrix.from_rows([[1, 2], [3, 4]]).freeze()
    b = DenseMatrix.from_rows([[5, 6], [7, 8]]).freeze()
    return a, b
