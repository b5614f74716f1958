"""
Tests for the command-line entry point.
"""

import io

import numpy as np
import pytest

from beacon_registration import cli
from beacon_registration.preprocessing import format_scanner_reports, generate_scanner_chain
from beacon_registration.registration import pairwise
from beacon_registration.utils.export import load_transform_matrix


@pytest.fixture
def chain_field():
    return generate_scanner_chain(3, seed=13)


@pytest.fixture
def report_file(tmp_path, chain_field):
    path = tmp_path / "scanners.txt"
    path.write_text(format_scanner_reports(chain_field.scanners), encoding="utf-8")
    return path


class TestMain:

    def test_prints_beacon_count(self, report_file, chain_field, capsys):
        assert cli.main([str(report_file), "--log-level", "WARNING"]) == cli.EXIT_OK
        assert capsys.readouterr().out == f"{len(chain_field.beacons)}\n"

    def test_reads_stdin(self, chain_field, capsys, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO(format_scanner_reports(chain_field.scanners)))
        assert cli.main(["--backend", "sequential"]) == cli.EXIT_OK
        assert capsys.readouterr().out.strip() == str(len(chain_field.beacons))

    def test_process_backend(self, report_file, chain_field, capsys):
        assert cli.main([str(report_file), "--backend", "process", "--workers", "2"]) == cli.EXIT_OK
        assert capsys.readouterr().out.strip() == str(len(chain_field.beacons))

    def test_export(self, report_file, chain_field, tmp_path, capsys):
        out_dir = tmp_path / "out"
        assert cli.main([str(report_file), "--export-dir", str(out_dir)]) == cli.EXIT_OK

        beacons = np.loadtxt(out_dir / "beacons.csv", delimiter=",", dtype=np.int64)
        assert beacons.shape == (len(chain_field.beacons), 3)
        for i in range(3):
            T = load_transform_matrix(out_dir / f"scanner_{i}_transform.txt")
            np.testing.assert_array_equal(T, chain_field.relative_transform(0, i))

    def test_disconnected_exit_code(self, tmp_path, capsys):
        path = tmp_path / "scanners.txt"
        path.write_text("--- a ---\n1,2,3\n4,5,6\n\n--- b ---\n7,8,9\n", encoding="utf-8")

        assert cli.main([str(path)]) == cli.EXIT_DISCONNECTED
        assert capsys.readouterr().out == ""

    def test_parse_error_exit_code(self, tmp_path, capsys):
        path = tmp_path / "scanners.txt"
        path.write_text("--- a ---\n1,2\n", encoding="utf-8")
        assert cli.main([str(path)]) == cli.EXIT_INPUT
        assert capsys.readouterr().out == ""

    def test_missing_input(self, tmp_path):
        assert cli.main([str(tmp_path / "missing.txt")]) == cli.EXIT_INPUT

    def test_missing_config(self, report_file, tmp_path):
        assert cli.main([str(report_file), "--config", str(tmp_path / "nope.yaml")]) == cli.EXIT_INPUT

    def test_empty_input(self, tmp_path):
        path = tmp_path / "empty.txt"
        path.write_text("", encoding="utf-8")
        assert cli.main([str(path)]) == cli.EXIT_INPUT

    def test_memory_limit_exit_code(self, report_file, tmp_path):
        config = tmp_path / "tiny.yaml"
        config.write_text("parallel:\n  memory_limit_gb: 1.0e-9\n", encoding="utf-8")
        assert cli.main([str(report_file), "--config", str(config)]) == cli.EXIT_RESOURCES

    def test_worker_out_of_memory_exit_code(self, report_file, monkeypatch):
        def exhausted(*args, **kwargs):
            raise MemoryError("no room for candidate block")

        monkeypatch.setattr(pairwise, "evaluate_candidate_block_jit", exhausted)
        argv = [str(report_file), "--backend", "process", "--workers", "1"]
        assert cli.main(argv) == cli.EXIT_RESOURCES


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
