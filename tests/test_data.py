"""
Tests for set generation and element files.
"""

import random
import sys

import pytest

sys.path.insert(0, "..")

from psi.data import (
    generate_unique_elements,
    generate_overlapping_sets,
    write_elements,
    read_elements,
    load_or_create,
)


class TestGeneration:
    def test_unique_and_in_range(self):
        elements = generate_unique_elements(5000, random.Random(1))
        assert len(set(elements)) == 5000
        assert all(0 <= v < 1 << 22 for v in elements)

    def test_deterministic_with_seed(self):
        assert generate_unique_elements(10, random.Random(5)) == generate_unique_elements(10, random.Random(5))

    def test_too_many(self):
        with pytest.raises(ValueError):
            generate_unique_elements(17, random.Random(0), bits=4)

    def test_overlap_exact(self):
        client, server = generate_overlapping_sets(100, 400, 25, random.Random(2))
        assert len(client) == 100
        assert len(server) == 400
        assert len(set(client)) == 100
        assert len(set(server)) == 400
        assert len(set(client) & set(server)) == 25

    def test_overlap_too_large(self):
        with pytest.raises(ValueError, match="overlap"):
            generate_overlapping_sets(10, 20, 11)


class TestFiles:
    def test_write_read(self, tmp_path):
        path = tmp_path / "data" / "client_set.txt"
        write_elements(path, [3, 1, 4194303])
        assert path.read_text() == "3\n1\n4194303\n"
        assert read_elements(path) == [3, 1, 4194303]

    def test_blank_lines_skipped(self, tmp_path):
        path = tmp_path / "set.txt"
        path.write_text("1\n\n  2 \n")
        assert read_elements(path) == [1, 2]

    def test_not_an_integer(self, tmp_path):
        path = tmp_path / "set.txt"
        path.write_text("1\nabc\n")
        with pytest.raises(ValueError, match=r"set.txt:2"):
            read_elements(path)

    def test_out_of_range(self, tmp_path):
        path = tmp_path / "set.txt"
        path.write_text(f"{1 << 22}\n")
        with pytest.raises(ValueError, match="outside"):
            read_elements(path)

    def test_load_or_create(self, tmp_path):
        path = tmp_path / "server_set.txt"
        first = load_or_create(path, 50, random.Random(9))
        assert len(first) == 50
        assert path.exists()
        # Second call reuses the file and ignores count
        assert load_or_create(path, 10) == first


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
