"""
Unit tests for the K-means clustering engine.

Tests the engine stages in isolation:
- K-means++ seeding
- assignment and update steps
- convergence and iteration exhaustion
"""

import tracemalloc

import numpy as np
import pytest

from colorextract.services.colors import kmeans
from colorextract.services.colors.kmeans import (
    CONVERGE_THRESHOLD_SQ, as_generator, assign_pixels, centers_converged,
    kmeans_plus_plus_init, min_squared_distances, run_kmeans, squared_distances, update_centers,
    weighted_random_pick
)
from colorextract.services.colors.types import ConvergenceState


def pixels_of(*colors):
    return np.array(colors, dtype=np.uint8)


class TestSquaredDistances:
    """Test the distance metric"""

    def test_no_square_root(self):
        """Distances are squared Euclidean distances"""
        pixels = pixels_of((0, 0, 0), (3, 4, 0))
        centers = np.array([[0, 0, 0]], dtype=np.int64)
        d = squared_distances(pixels, centers)
        assert d.shape == (2, 1)
        assert d[:, 0].tolist() == [0, 25]

    def test_no_uint8_wraparound(self):
        """Channel differences must not wrap around in uint8"""
        pixels = pixels_of((0, 0, 0))
        centers = np.array([[255, 255, 255]], dtype=np.int64)
        assert squared_distances(pixels, centers)[0, 0] == 3 * 255 * 255


class TestWeightedRandomPick:
    """Test distance-weighted selection"""

    def test_only_positive_weight_can_win(self):
        pixels = pixels_of((0, 0, 0), (10, 10, 10), (0, 0, 0))
        weights = np.array([0, 300, 0])
        rng = as_generator(7)
        for _ in range(50):
            assert weighted_random_pick(pixels, weights, rng).tolist() == [10, 10, 10]

    def test_pick_frequency_follows_weights(self):
        pixels = pixels_of((0, 0, 0), (255, 255, 255))
        weights = np.array([1, 3])
        rng = as_generator(2024)
        draws = [weighted_random_pick(pixels, weights, rng)[0] for _ in range(10000)]
        share = draws.count(255) / len(draws)
        assert 0.72 < share < 0.78

    @pytest.mark.parametrize("fraction, expected", [(0.25, 0), (0.5, 1), (0.5000001, 2)])
    def test_value_on_partial_sum_picks_that_pixel(self, fraction, expected):
        """Subtracting weights stops at the pixel that brings the value to zero"""

        class FixedDraw:
            def random(self):
                return fraction

        pixels = pixels_of((1, 1, 1), (2, 2, 2), (3, 3, 3))
        weights = np.array([2, 2, 4])
        picked = weighted_random_pick(pixels, weights, FixedDraw())
        assert picked.tolist() == [expected + 1] * 3

    def test_zero_total_weight_falls_back_to_uniform(self):
        pixels = pixels_of((5, 5, 5), (5, 5, 5))
        weights = np.array([0, 0])
        picked = weighted_random_pick(pixels, weights, as_generator(1))
        assert picked.tolist() == [5, 5, 5]


class TestKMeansPlusPlusInit:
    """Test K-means++ seeding"""

    def test_returns_k_centers_from_pixels(self):
        pixels = pixels_of((0, 0, 0), (255, 0, 0), (0, 255, 0), (0, 0, 255))
        centers = kmeans_plus_plus_init(pixels, 3, rng=42)
        assert centers.shape == (3, 3)
        pixel_set = {tuple(p) for p in pixels.tolist()}
        for center in centers.tolist():
            assert tuple(center) in pixel_set

    @pytest.mark.parametrize("seed", range(20))
    def test_two_distinct_values_always_separated(self, seed):
        """With two distinct colors and k=2 the seeds never coincide"""
        pixels = pixels_of((0, 0, 0), (0, 0, 0), (255, 255, 255), (255, 255, 255))
        centers = kmeans_plus_plus_init(pixels, 2, rng=seed)
        assert {tuple(c) for c in centers.tolist()} == {(0, 0, 0), (255, 255, 255)}

    def test_seeded_runs_are_reproducible(self):
        rng = np.random.default_rng(0)
        pixels = rng.integers(0, 256, size=(500, 3), dtype=np.uint8)
        first = kmeans_plus_plus_init(pixels, 5, rng=123)
        second = kmeans_plus_plus_init(pixels, 5, rng=123)
        np.testing.assert_array_equal(first, second)

    def test_identical_pixels_duplicate_centers(self):
        pixels = pixels_of(*[(9, 8, 7)] * 10)
        centers = kmeans_plus_plus_init(pixels, 4, rng=3)
        assert centers.tolist() == [[9, 8, 7]] * 4


class TestAssignPixels:
    """Test the assignment step"""

    def test_nearest_center_wins(self):
        pixels = pixels_of((10, 10, 10), (200, 200, 200), (0, 0, 0))
        centers = np.array([[0, 0, 0], [255, 255, 255]], dtype=np.int64)
        assignments, sizes = assign_pixels(pixels, centers)
        assert assignments.tolist() == [0, 1, 0]
        assert sizes.tolist() == [2, 1]

    def test_ties_go_to_lowest_index(self):
        pixels = pixels_of((50, 50, 50))
        centers = np.array([[40, 50, 50], [60, 50, 50], [50, 40, 50]], dtype=np.int64)
        assignments, sizes = assign_pixels(pixels, centers)
        assert assignments.tolist() == [0]
        assert sizes.tolist() == [1, 0, 0]

    def test_sizes_sum_to_pixel_count(self):
        rng = np.random.default_rng(5)
        pixels = rng.integers(0, 256, size=(1000, 3), dtype=np.uint8)
        centers = rng.integers(0, 256, size=(7, 3)).astype(np.int64)
        assignments, sizes = assign_pixels(pixels, centers)
        assert len(assignments) == 1000
        assert sizes.sum() == 1000
        assert len(sizes) == 7

    def test_chunked_assignment_matches_full_distances(self, monkeypatch):
        rng = np.random.default_rng(17)
        pixels = rng.integers(0, 256, size=(103, 3), dtype=np.uint8)
        centers = rng.integers(0, 256, size=(5, 3)).astype(np.int64)
        diff = pixels[:, np.newaxis, :].astype(np.int64) - centers[np.newaxis, :, :]
        expected = (diff * diff).sum(axis=2)

        monkeypatch.setattr(kmeans, "CHUNK_ROWS", 7)
        assignments, sizes = assign_pixels(pixels, centers)
        assert assignments.tolist() == expected.argmin(axis=1).tolist()
        assert sizes.tolist() == np.bincount(expected.argmin(axis=1), minlength=5).tolist()
        assert min_squared_distances(pixels, centers).tolist() == expected.min(axis=1).tolist()

    def test_memory_stays_bounded_for_large_inputs(self):
        rng = np.random.default_rng(3)
        pixels = rng.integers(0, 256, size=(512 * 512, 3), dtype=np.uint8)
        centers = rng.integers(0, 256, size=(32, 3)).astype(np.int64)

        tracemalloc.start()
        try:
            _, sizes = assign_pixels(pixels, centers)
            _, peak = tracemalloc.get_traced_memory()
        finally:
            tracemalloc.stop()

        assert sizes.sum() == len(pixels)
        assert peak < 32 * 1024 * 1024


class TestUpdateCenters:
    """Test the update step"""

    def test_rounded_mean(self):
        pixels = pixels_of((0, 0, 0), (1, 3, 255))
        assignments = np.array([0, 0])
        sizes = np.array([2])
        old = np.array([[100, 100, 100]], dtype=np.int64)
        new = update_centers(pixels, assignments, sizes, old)
        # 0.5 -> 1, 1.5 -> 2, 127.5 -> 128: halves round up
        assert new.tolist() == [[1, 2, 128]]

    def test_empty_cluster_keeps_previous_center(self):
        pixels = pixels_of((10, 20, 30))
        assignments = np.array([0])
        sizes = np.array([1, 0])
        old = np.array([[0, 0, 0], [77, 88, 99]], dtype=np.int64)
        new = update_centers(pixels, assignments, sizes, old)
        assert new.tolist() == [[10, 20, 30], [77, 88, 99]]

    def test_old_centers_not_mutated(self):
        pixels = pixels_of((10, 20, 30))
        old = np.array([[0, 0, 0]], dtype=np.int64)
        update_centers(pixels, np.array([0]), np.array([1]), old)
        assert old.tolist() == [[0, 0, 0]]


class TestCentersConverged:
    """Test the convergence criterion"""

    def test_threshold_is_inclusive(self):
        old = np.array([[0, 0, 0]], dtype=np.int64)
        assert centers_converged(old, np.array([[3, 4, 0]], dtype=np.int64))
        assert not centers_converged(old, np.array([[3, 4, 1]], dtype=np.int64))

    def test_every_center_must_settle(self):
        """One large move blocks convergence even if the average is small"""
        old = np.zeros((10, 3), dtype=np.int64)
        new = old.copy()
        new[3] = [6, 0, 0]
        assert CONVERGE_THRESHOLD_SQ == 25
        assert not centers_converged(old, new)


class TestRunKMeans:
    """Test the convergence controller"""

    def test_two_color_scenario(self):
        pixels = pixels_of((0, 0, 0), (0, 0, 0), (255, 255, 255), (255, 255, 255))
        result = run_kmeans(pixels, 2, max_iterations=20, rng=11)
        assert result.state == ConvergenceState.CONVERGED
        assert {tuple(c) for c in result.centers.tolist()} == {(0, 0, 0), (255, 255, 255)}
        assert result.sizes.tolist() == [2, 2]

    def test_k_clamped_to_pixel_count(self):
        pixels = pixels_of((1, 2, 3), (100, 100, 100), (250, 0, 0))
        result = run_kmeans(pixels, 10, rng=0)
        assert len(result.centers) == 3
        assert result.sizes.sum() == 3

    def test_exhausted_after_max_iterations(self):
        rng = np.random.default_rng(2)
        pixels = rng.integers(0, 256, size=(2000, 3), dtype=np.uint8)
        result = run_kmeans(pixels, 8, max_iterations=1, rng=2)
        assert result.iterations == 1
        assert result.state == ConvergenceState.EXHAUSTED
        assert result.sizes.sum() == 2000

    def test_at_least_one_pass(self):
        pixels = pixels_of((1, 1, 1), (200, 200, 200))
        result = run_kmeans(pixels, 2, max_iterations=0, rng=0)
        assert result.iterations == 1
        assert result.sizes.sum() == 2

    def test_centers_stay_in_range(self):
        rng = np.random.default_rng(9)
        pixels = rng.integers(0, 256, size=(3000, 3), dtype=np.uint8)
        result = run_kmeans(pixels, 6, rng=9)
        assert result.centers.min() >= 0
        assert result.centers.max() <= 255

    def test_empty_pixels_rejected(self):
        with pytest.raises(ValueError):
            run_kmeans(np.empty((0, 3), dtype=np.uint8), 3)
