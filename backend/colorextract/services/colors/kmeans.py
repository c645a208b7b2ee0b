"""
K-means clustering of RGB pixels.

Implements K-means++ seeding, the assignment and update steps, and the loop
that drives them until the centers settle or the iteration budget runs out.
All distances are squared Euclidean distances in RGB space.
"""

from typing import Tuple

import numpy as np
from loguru import logger

from .types import (
    CenterArray, ClusteringResult, ConvergenceState, PixelArray, RandomSource
)

# Every center must move by at most this squared distance for the loop to stop
CONVERGE_THRESHOLD_SQ = 25

# Pixels per distance block; keeps temporaries at CHUNK_ROWS × k int64
CHUNK_ROWS = 16384


def as_generator(rng: RandomSource = None) -> np.random.Generator:
    """Normalise an int seed, Generator or None into a numpy Generator."""
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


def squared_distances(pixels: PixelArray, centers: CenterArray) -> np.ndarray:
    """
    Squared distance from every pixel to every center.

    Expands |p - c|² as |p|² - 2 p·c + |c|² in int64, which is exact and only
    allocates the (N, k) result. Callers bound N with CHUNK_ROWS.

    Returns:
        (N, k) int64 array
    """
    p = pixels.astype(np.int64)
    c = centers.astype(np.int64)
    cross = p @ c.T
    cross *= -2
    cross += (p * p).sum(axis=1)[:, np.newaxis]
    cross += (c * c).sum(axis=1)[np.newaxis, :]
    return cross


def _row_chunks(n: int):
    for start in range(0, n, CHUNK_ROWS):
        yield slice(start, min(start + CHUNK_ROWS, n))


def min_squared_distances(pixels: PixelArray, centers: CenterArray) -> np.ndarray:
    """Squared distance from every pixel to its nearest center."""
    nearest = np.empty(len(pixels), dtype=np.int64)
    for rows in _row_chunks(len(pixels)):
        nearest[rows] = squared_distances(pixels[rows], centers).min(axis=1)
    return nearest


def weighted_random_pick(pixels: PixelArray, weights: np.ndarray,
                         rng: np.random.Generator) -> np.ndarray:
    """
    Pick one pixel with probability proportional to its weight.

    A value drawn from [0, total) has the weights subtracted from it in order
    and the pixel at which it reaches zero or below is chosen. When every
    weight is zero the pick is uniform.
    """
    total = int(weights.sum())
    if total == 0:
        return pixels[rng.integers(len(pixels))].astype(np.int64)

    r = rng.random() * total
    index = int(np.searchsorted(np.cumsum(weights), r, side="left"))
    # Floating point can push r past the last partial sum
    index = min(index, len(pixels) - 1)
    return pixels[index].astype(np.int64)


def kmeans_plus_plus_init(pixels: PixelArray, k: int,
                          rng: RandomSource = None) -> CenterArray:
    """
    Choose k initial centers spread apart from each other.

    The first center is a uniformly random pixel; each further center is drawn
    with probability proportional to its squared distance to the nearest
    center chosen so far.

    Args:
        pixels: (N, 3) uint8 pixels, N >= 1
        k: Number of centers, 1 <= k <= N
        rng: Seed or Generator for reproducible draws

    Returns:
        (k, 3) int64 centers
    """
    rng = as_generator(rng)
    centers = np.empty((k, 3), dtype=np.int64)
    centers[0] = pixels[rng.integers(len(pixels))]

    for c in range(1, k):
        distances = min_squared_distances(pixels, centers[:c])
        centers[c] = weighted_random_pick(pixels, distances, rng)

    return centers


def assign_pixels(pixels: PixelArray, centers: CenterArray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Map every pixel to its nearest center.

    Ties go to the lowest center index.

    Returns:
        Tuple of (assignments, cluster_sizes)
        - assignments: (N,) cluster index per pixel
        - cluster_sizes: (k,) int64 member count per cluster
    """
    k = len(centers)
    assignments = np.empty(len(pixels), dtype=np.intp)
    for rows in _row_chunks(len(pixels)):
        assignments[rows] = np.argmin(squared_distances(pixels[rows], centers), axis=1)
    cluster_sizes = np.bincount(assignments, minlength=k).astype(np.int64)
    return assignments, cluster_sizes


def update_centers(pixels: PixelArray, assignments: np.ndarray,
                   cluster_sizes: np.ndarray, old_centers: CenterArray) -> CenterArray:
    """
    Move every populated center to the rounded mean of its members.

    Means are rounded half up. Empty clusters keep their previous center.

    Returns:
        New (k, 3) int64 centers; old_centers is left untouched
    """
    k = len(old_centers)
    sums = np.stack(
        [np.bincount(assignments, weights=pixels[:, ch], minlength=k) for ch in range(3)],
        axis=1
    )

    new_centers = old_centers.copy()
    populated = cluster_sizes > 0
    means = sums[populated] / cluster_sizes[populated, np.newaxis]
    new_centers[populated] = np.floor(means + 0.5).astype(np.int64)
    return new_centers


def centers_converged(old_centers: CenterArray, new_centers: CenterArray,
                      threshold_sq: int = CONVERGE_THRESHOLD_SQ) -> bool:
    """True when every center moved by at most threshold_sq (squared)."""
    diff = old_centers - new_centers
    movement = (diff * diff).sum(axis=1)
    return bool(np.all(movement <= threshold_sq))


def run_kmeans(pixels: PixelArray, k: int, max_iterations: int = 20,
               rng: RandomSource = None) -> ClusteringResult:
    """
    Cluster pixels into k colors.

    k is clamped to the number of pixels. The loop always runs at least one
    assignment/update pass and stops once every center moves by at most
    CONVERGE_THRESHOLD_SQ, or after max_iterations passes. Running out of
    iterations is not an error; the last centers are returned.

    Args:
        pixels: (N, 3) uint8 pixels, N >= 1
        k: Requested number of clusters
        max_iterations: Upper bound on assignment/update passes
        rng: Seed or Generator for K-means++ seeding

    Returns:
        ClusteringResult with final centers, sizes, pass count and end state
    """
    if len(pixels) == 0:
        raise ValueError("Cannot cluster an empty pixel list")

    k = max(1, min(k, len(pixels)))
    centers = kmeans_plus_plus_init(pixels, k, rng)
    cluster_sizes = np.zeros(k, dtype=np.int64)
    state = ConvergenceState.RUNNING
    iterations = 0

    for iteration in range(max(1, max_iterations)):
        assignments, cluster_sizes = assign_pixels(pixels, centers)
        new_centers = update_centers(pixels, assignments, cluster_sizes, centers)
        converged = centers_converged(centers, new_centers)
        centers = new_centers
        iterations = iteration + 1

        logger.debug(f"K-means pass {iterations}: sizes={cluster_sizes.tolist()} converged={converged}")
        if converged:
            state = ConvergenceState.CONVERGED
            break
    else:
        state = ConvergenceState.EXHAUSTED

    logger.info(f"K-means {state.value} after {iterations} passes with k={k}, {len(pixels)} pixels")
    return ClusteringResult(
        centers=centers,
        sizes=cluster_sizes,
        iterations=iterations,
        state=state
    )
