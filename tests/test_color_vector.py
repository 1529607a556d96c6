"""Tests for palette -> 15-d vector construction and the distinctiveness gate."""

import numpy as np
import pytest

from colorwalk.color_space import normalize_lab
from colorwalk.color_vector import GRAY_LAB, build_color_vector, select_top_swatches
from colorwalk.distinctiveness import classify_distinctiveness, is_distinctive
from colorwalk.types import Distinctiveness, swatches_from_dicts

GRAY = list(normalize_lab(GRAY_LAB))


class TestBuildColorVector:
    """Tests for the fixed-length vector builder."""

    @pytest.mark.parametrize("count", [0, 1, 2, 3, 4, 5])
    def test_always_fifteen_values_in_unit_range(self, six_swatches, count):
        vector = build_color_vector(six_swatches[:count])
        assert len(vector) == 15
        assert all(0.0 <= v <= 1.0 for v in vector)

    def test_empty_palette_is_all_gray(self):
        assert build_color_vector([]) == GRAY * 5

    def test_three_swatches_padded_with_two_grays(self, six_swatches):
        vector = build_color_vector(six_swatches[:3])
        assert vector[9:] == GRAY * 2
        assert vector[:9] != GRAY * 3

    def test_extra_swatches_ignored(self, six_swatches):
        assert build_color_vector(six_swatches) == build_color_vector(six_swatches[:5])

    def test_order_preserved(self, red_blue_swatches):
        forward = build_color_vector(red_blue_swatches)
        backward = build_color_vector(list(reversed(red_blue_swatches)))
        assert forward[:3] == backward[3:6]
        assert forward != backward

    def test_deterministic(self, six_swatches):
        assert build_color_vector(six_swatches) == build_color_vector(six_swatches)


class TestSelectTopSwatches:

    def test_sorted_by_population_and_truncated(self, six_swatches):
        top = select_top_swatches(six_swatches)
        assert [s.population for s in top] == [500, 300, 120, 60, 30]

    def test_stable_for_equal_population(self):
        swatches = swatches_from_dicts([
            {"rgb": [1, 1, 1], "population": 10},
            {"rgb": [2, 2, 2], "population": 10},
        ])
        assert select_top_swatches(swatches) == swatches


class TestDistinctiveness:
    """Tests for the ordered distinctiveness checks."""

    def test_red_and_blue_are_distinctive(self, red_blue_swatches):
        vector = build_color_vector(red_blue_swatches)
        assert np.std(vector) >= 0.08
        assert classify_distinctiveness(red_blue_swatches, vector) is Distinctiveness.DISTINCTIVE
        assert is_distinctive(red_blue_swatches, vector)

    def test_single_swatch_is_not_distinctive(self, near_gray_swatch):
        vector = build_color_vector(near_gray_swatch)
        assert classify_distinctiveness(near_gray_swatch, vector) is Distinctiveness.NOT_DISTINCTIVE

    def test_low_top_population_is_not_distinctive(self):
        swatches = swatches_from_dicts([
            {"rgb": [255, 0, 0], "population": 9},
            {"rgb": [0, 0, 255], "population": 3},
        ])
        vector = build_color_vector(swatches)
        # Colors alone would pass the spread check
        assert np.std(vector) >= 0.08
        assert classify_distinctiveness(swatches, vector) is Distinctiveness.NOT_DISTINCTIVE

    def test_near_monochrome_is_not_distinctive(self):
        swatches = swatches_from_dicts([
            {"rgb": [128, 128, 128], "population": 900},
            {"rgb": [131, 131, 131], "population": 400},
        ])
        vector = build_color_vector(swatches)
        assert np.std(vector) < 0.08
        assert classify_distinctiveness(swatches, vector) is Distinctiveness.NOT_DISTINCTIVE

    def test_threshold_overrides(self, red_blue_swatches):
        vector = build_color_vector(red_blue_swatches)
        result = classify_distinctiveness(red_blue_swatches, vector, min_stddev=0.5)
        assert result is Distinctiveness.NOT_DISTINCTIVE
        result = classify_distinctiveness(red_blue_swatches, vector, min_top_population=1000)
        assert result is Distinctiveness.NOT_DISTINCTIVE

    def test_malformed_vector_raises(self, red_blue_swatches):
        with pytest.raises(ValueError, match="15-d"):
            classify_distinctiveness(red_blue_swatches, [0.5] * 12)
