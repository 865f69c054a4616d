"""Tests for utility functions."""

import json
import re

import pytest

from numbergame.utils import ensure_dir, get_timestamp, parse_examples, save_jsonl


class TestParseExamples:
    """Tests for parsing example lists."""

    def test_commas(self):
        """Comma-separated integers."""
        assert parse_examples("16, 8, 2, 64") == [16, 8, 2, 64]

    def test_spaces(self):
        """Space-separated integers."""
        assert parse_examples("16 8  2 64") == [16, 8, 2, 64]

    def test_duplicates_kept(self):
        """Duplicates are observations and are kept."""
        assert parse_examples("4,4,4") == [4, 4, 4]

    def test_empty(self):
        """Empty input parses to an empty list."""
        assert parse_examples("") == []

    def test_not_integers(self):
        """Non-integers raise ValueError."""
        with pytest.raises(ValueError):
            parse_examples("16, eight")


class TestJsonl:
    """Tests for JSONL output."""

    def test_save_writes_one_record_per_line(self, tmp_path):
        """Each record is one JSON line, parent directories are created."""
        path = tmp_path / "nested" / "results.jsonl"
        records = [{"examples": "16,8", "p": 0.5}, {"examples": "3", "p": None}]
        save_jsonl(records, path)
        lines = path.read_text().splitlines()
        assert [json.loads(line) for line in lines] == records


class TestFilesystem:
    """Tests for file helpers."""

    def test_ensure_dir(self, tmp_path):
        """Directories are created."""
        path = ensure_dir(tmp_path / "a" / "b")
        assert path.is_dir()

    def test_timestamp_format(self):
        """Timestamps look like YYYYMMDD_HHMMSS."""
        assert re.fullmatch(r"\d{8}_\d{6}", get_timestamp())
