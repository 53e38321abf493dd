"""
Tests for adaptive hash-set selection.
"""

import sys
from itertools import islice

import pytest

sys.path.insert(0, "..")

from psi.errors import SelectionError
from psi.hashing import (
    generate_fixed_hash_functions,
    get_combinations,
    build_successful_p_cuckoo_table,
    select_adaptive,
)
from psi.params import PSIParams
from tests.helpers import random_elements


class TestGetCombinations:
    def test_lexicographic(self):
        assert list(get_combinations(4, 2)) == [
            (0, 1), (0, 2), (0, 3), (1, 2), (1, 3), (2, 3),
        ]

    def test_single(self):
        assert list(get_combinations(3, 1)) == [(0,), (1,), (2,)]

    def test_lazy(self):
        # C(20, 3) is never materialized
        first = list(islice(get_combinations(20, 3), 2))
        assert first == [(0, 1, 2), (0, 1, 3)]


class TestBuildSuccessful:
    """Test the first-success search over a combination sequence."""

    @pytest.fixture
    def pool(self):
        return generate_fixed_hash_functions(8, 20)

    def test_skips_failing_combination(self, pool):
        # Under pool[0], 9 and 200 share bin 3 and keep evicting each other
        found = build_successful_p_cuckoo_table(8, 100, 2, [(0,), (1,)], pool, [5, 9, 200])
        assert found is not None
        table, indices = found
        assert indices == [1]
        assert len(table) == 3

    def test_none_when_all_fail(self, pool):
        assert build_successful_p_cuckoo_table(8, 100, 2, [(0,)], pool, [5, 9, 200]) is None

    def test_table_is_placement_of_indices(self, pool):
        table, indices = build_successful_p_cuckoo_table(8, 100, 2, [(1,)], pool, [5, 9, 200])
        assert table.hash_functions == [pool[1]]
        # H(1) = 5, H(0) = 3 under pool[1]
        assert table.table[4].x_r == 1  # 5: x_l=1, 1 ^ 5
        assert table.table[7].x_r == 1  # 9: x_l=2, 2 ^ 5
        assert table.table[1].x_r == 0  # 200: x_l=50, (50 ^ 3) mod 8


class TestSelectAdaptive:
    """Test k selection against load-factor thresholds."""

    def test_toy_scenario_picks_k1(self):
        params = PSIParams(log_bins=3, residual_bits=2, load_factor_thresholds=(1.0, 1.0, 1.0))
        pool = generate_fixed_hash_functions(params.bins, params.pool_size)

        result = select_adaptive([5, 9, 200], pool, params)

        assert result.k == 1
        assert result.chosen_indices == [1]
        assert result.chosen_hashes(pool) == [pool[1]]

    def test_skips_k_above_threshold(self):
        # Load 300/4096 ~ 0.073: k=1 allowed only up to 0.0
        params = PSIParams(load_factor_thresholds=(0.0, 0.22, 0.73))
        pool = generate_fixed_hash_functions(params.bins, params.pool_size)

        result = select_adaptive(random_elements(300, seed=1), pool, params)

        assert result.k == 2
        assert len(result.chosen_indices) == 2

    def test_default_thresholds_small_set(self):
        params = PSIParams()
        pool = generate_fixed_hash_functions(params.bins, params.pool_size)
        elements = random_elements(200, seed=2)

        result = select_adaptive(elements, pool, params)

        # k=1 at 4.9% load is unlikely to place 200 elements without collisions
        assert 1 <= result.k <= 3
        assert sorted(result.table.elements()) == sorted(elements)

    def test_chosen_indices_rebuild_same_table(self):
        params = PSIParams(load_factor_thresholds=(0.0, 0.0, 0.73))
        pool = generate_fixed_hash_functions(params.bins, params.pool_size)
        elements = random_elements(1000, seed=4)

        result = select_adaptive(elements, pool, params)
        assert result.k == 3

        found = build_successful_p_cuckoo_table(
            params.bins, params.threshold, params.r, [result.chosen_indices], pool, elements
        )
        assert found is not None
        assert found[0].table == result.table.table

    def test_overloaded_raises(self):
        params = PSIParams()
        pool = generate_fixed_hash_functions(params.bins, params.pool_size)
        # Load 0.8 is above every threshold
        with pytest.raises(SelectionError, match="No valid hash combination"):
            select_adaptive(random_elements(3277, seed=3), pool, params)

    def test_exhaustion_raises(self):
        # More elements than bins: every combination fails
        params = PSIParams(
            log_bins=3, residual_bits=2, threshold=20, pool_size=3, max_hashes=1,
            load_factor_thresholds=(10.0,),
        )
        pool = generate_fixed_hash_functions(params.bins, params.pool_size)
        with pytest.raises(SelectionError):
            select_adaptive(list(range(9)), pool, params)

    def test_max_hashes_limited_by_pool(self):
        params = PSIParams(
            log_bins=3, residual_bits=2, pool_size=3, max_hashes=3,
            load_factor_thresholds=(1.0, 1.0, 1.0),
        )
        pool = generate_fixed_hash_functions(params.bins, 2)
        result = select_adaptive([5, 9, 200], pool, params)
        assert result.k == 1
        assert result.chosen_indices == [1]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
