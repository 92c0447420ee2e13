"""End-to-end tests for the matmul command line tool."""

from __future__ import annotations

from pathlib import Path

import pytest

import matmul
from matmul import MatMulRun, RunState, main

A_TEXT = "row=2 col=2\n1 2\n3 4\n"
B_TEXT = "row=2 col=2\n5 6\n7 8\n"
C_TEXT = "row=2 col=2\n19\t22\n43\t50\n"


@pytest.fixture
def operands(write_matrix):
    return write_matrix("a.txt", A_TEXT), write_matrix("b.txt", B_TEXT)


class TestMain:
    """Tests for main()."""

    def test_concrete_scenario(self, operands, tmp_path, capsys) -> None:
        path_a, path_b = operands
        path_c = tmp_path / "c.out"

        assert main([path_a, path_b, str(path_c)]) == 0
        assert path_c.read_text() == C_TEXT

        out = capsys.readouterr().out
        assert "Thread for each row method:" in out
        assert "Thread for each element method:" in out
        assert "Number of threads: 2" in out
        assert "Number of threads: 4" in out
        assert out.count("Seconds taken:") == 2
        assert out.count("Microseconds taken:") == 2

    def test_default_paths(self, operands, tmp_path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        assert main([]) == 0
        assert (tmp_path / "c.out").read_text() == C_TEXT

    def test_partial_paths_use_defaults(self, operands, tmp_path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        assert main(["a.txt"]) == 0
        assert (tmp_path / "c.out").exists()

    def test_too_many_arguments(self) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main(["a", "b", "c", "d"])
        assert excinfo.value.code != 0

    def test_missing_input(self, tmp_path) -> None:
        path_c = tmp_path / "c.out"
        assert main([str(tmp_path / "nope.txt"), str(tmp_path / "b.txt"), str(path_c)]) == 1
        assert not path_c.exists()

    def test_dimension_mismatch(self, write_matrix, tmp_path) -> None:
        path_a = write_matrix("a.txt", "row=2 col=3\n1 2 3\n4 5 6\n")
        path_b = write_matrix("b.txt", B_TEXT)
        path_c = tmp_path / "c.out"
        assert main([path_a, path_b, str(path_c)]) == 1
        assert not path_c.exists()

    def test_overflow_writes_nothing(self, write_matrix, tmp_path, caplog) -> None:
        path_a = write_matrix("a.txt", "row=1 col=2\n2147483647 1\n")
        path_b = write_matrix("b.txt", "row=2 col=1\n1\n1\n")
        path_c = tmp_path / "c.out"
        assert main([path_a, path_b, str(path_c)]) == 1
        assert not path_c.exists()
        assert "row 1 column 1" in caplog.text

    def test_non_numeric(self, write_matrix, tmp_path, caplog) -> None:
        path_a = write_matrix("a.txt", "row=1 col=2\n1 12a\n")
        path_b = write_matrix("b.txt", B_TEXT)
        assert main([path_a, path_b, str(tmp_path / "c.out")]) == 1
        assert "row 1 column 2" in caplog.text

    def test_verify_and_show(self, operands, tmp_path, capsys) -> None:
        path_a, path_b = operands
        assert main([path_a, path_b, str(tmp_path / "c.out"), "--verify", "--show"]) == 0
        out = capsys.readouterr().out
        assert "19 22\n43 50\n" in out

    def test_worker_cap(self, operands, tmp_path, capsys) -> None:
        path_a, path_b = operands
        assert main([path_a, path_b, str(tmp_path / "c.out"), "--workers", "1"]) == 0
        out = capsys.readouterr().out
        assert "Number of threads: 1" in out
        assert "Work units: 4" in out

    def test_failed_verify_writes_nothing(self, operands, tmp_path, monkeypatch) -> None:
        import dense_baseline

        monkeypatch.setattr(dense_baseline, "verify_multiplication_scipy", lambda a, b, c: False)
        path_a, path_b = operands
        path_c = tmp_path / "c.out"
        assert main([path_a, path_b, str(path_c), "--verify"]) == 1
        assert not path_c.exists()


class TestMatMulRun:
    """The run steps must happen in order."""

    def test_full_sequence(self, operands, tmp_path) -> None:
        path_a, path_b = operands
        run = MatMulRun(path_a, path_b, str(tmp_path / "c.out"))
        run.load()
        assert run.state is RunState.LOADED
        run.compute_rows()
        assert run.state is RunState.ROW_COMPUTED
        run.compute_elements()
        assert run.state is RunState.ELEMENT_COMPUTED
        run.write()
        assert run.state is RunState.WRITTEN
        assert run.c.frozen
        assert [r.strategy for r in run.reports] == ["Thread for each row", "Thread for each element"]

    def test_out_of_order(self, operands, tmp_path) -> None:
        path_a, path_b = operands
        run = MatMulRun(path_a, path_b, str(tmp_path / "c.out"))
        with pytest.raises(RuntimeError):
            run.compute_rows()
        run.load()
        with pytest.raises(RuntimeError):
            run.compute_elements()
        with pytest.raises(RuntimeError):
            run.write()

    def test_failed_step_keeps_state(self, write_matrix, tmp_path) -> None:
        path_a = write_matrix("a.txt", "row=1 col=1\n65536\n")
        path_b = write_matrix("b.txt", "row=1 col=1\n65536\n")
        run = MatMulRun(path_a, path_b, str(tmp_path / "c.out"))
        run.load()
        with pytest.raises(matmul.MatMulError):
            run.compute_rows()
        assert run.state is RunState.LOADED
        with pytest.raises(RuntimeError):
            run.write()
        assert not Path(tmp_path / "c.out").exists()


class TestWarmUpBeforeTiming:
    """The kernel is compiled during load, outside the timed runs."""

    def test_load_warms_up(self, operands, tmp_path, monkeypatch) -> None:
        calls = []
        monkeypatch.setattr(matmul, "warm_up", lambda: calls.append(True))
        path_a, path_b = operands
        run = MatMulRun(path_a, path_b, str(tmp_path / "c.out"))
        run.load()
        assert calls == [True]

    def test_first_timing_not_skewed_by_compilation(self, operands, tmp_path) -> None:
        path_a, path_b = operands
        first = MatMulRun(path_a, path_b, str(tmp_path / "c.out"))
        first.load()
        first_report = first.compute_rows()

        second = MatMulRun(path_a, path_b, str(tmp_path / "c.out"))
        second.load()
        second_report = second.compute_rows()

        # Same order of magnitude; pool start-up dominates both
        assert first_report.elapsed < 10 * second_report.elapsed + 0.05


class TestMainBadEncoding:
    """Undecodable input is a format error, not a crash."""

    def test_invalid_utf8_input(self, tmp_path, write_matrix, caplog) -> None:
        path_a = tmp_path / "a.txt"
        path_a.write_bytes(b"row=1 col=1\n\xff\xfe\n")
        path_b = write_matrix("b.txt", "row=1 col=1\n1\n")
        path_c = tmp_path / "c.out"
        assert main([str(path_a), path_b, str(path_c)]) == 1
        assert not path_c.exists()
        assert "row 1" in caplog.text
