"""Tests for generate_data."""

from __future__ import annotations

from pathlib import Path

import pytest

from generate_data import DenseMatrixGenerator
from matrix_formats import load_operands


class TestDenseMatrixGenerator:
    def test_pair_is_loadable(self, tmp_path) -> None:
        gen = DenseMatrixGenerator(str(tmp_path))
        path_a, path_b = gen.generate_pair(3, 4, 5, low=-9, high=9, seed=1)
        a, b = load_operands(path_a, path_b)
        assert a.shape == (3, 4)
        assert b.shape == (4, 5)
        assert a.data.min() >= -9 and a.data.max() <= 9

    def test_seed_is_reproducible(self, tmp_path) -> None:
        gen = DenseMatrixGenerator(str(tmp_path))
        first = gen.generate_random(2, 2, "x.txt", seed=5)
        text = Path(first).read_text()
        second = gen.generate_random(2, 2, "y.txt", seed=5)
        assert Path(second).read_text() == text

    def test_safety_limit(self, tmp_path) -> None:
        gen = DenseMatrixGenerator(str(tmp_path))
        with pytest.raises(ValueError):
            gen.generate_random(10_000, 10_000, "big.txt", max_memory_mb=1)

    def test_value_range_must_fit_int32(self, tmp_path) -> None:
        gen = DenseMatrixGenerator(str(tmp_path))
        with pytest.raises(ValueError):
            gen.generate_random(1, 1, "x.txt", low=0, high=2**31)
