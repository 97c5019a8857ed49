"""Tests for measurement CSV reading."""

import pytest

from src.snow.samples import read_samples_csv


def test_reads_valid_rows(samples_csv):
    batch = read_samples_csv(samples_csv)
    assert len(batch) == 3
    assert batch.lons[0] == 101.0
    assert batch.lats[1] == 60.0
    assert batch.depths[1] == pytest.approx(0.35)


def test_counts_malformed_rows(samples_csv, caplog):
    batch = read_samples_csv(samples_csv)
    assert batch.n_invalid == 2
    assert "invalid csv line" in caplog.text


def test_header_only(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("lon,lat,snod\n")
    batch = read_samples_csv(path)
    assert len(batch) == 0
    assert batch.n_invalid == 0


def test_blank_lines_skipped(tmp_path):
    path = tmp_path / "blank.csv"
    path.write_text("lon,lat,snod\n\n1.0,2.0,0.5\n\n")
    batch = read_samples_csv(path)
    assert len(batch) == 1
    assert batch.n_invalid == 0


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_samples_csv(tmp_path / "missing.csv")
