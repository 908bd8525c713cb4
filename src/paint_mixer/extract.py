from __future__ import annotations

import logging
from typing import Any

import numpy as np

from .conversion import clamp_to_byte, delta_e_94, rgb_string_to_rgb, rgb_to_lab
from .models import Cluster, DominantColors, format_rgb_string

logger = logging.getLogger(__name__)

MAX_SAMPLE_PIXELS = 120_000
MIN_ALPHA = 128
KMEANS_ITERATIONS = 10
HASH_MULTIPLIER = 2654435761
DISTINCT_EPSILON = 1e-6

# rows per block when assigning pixels to centroids
_ASSIGN_CHUNK = 65_536


def extract_dominant_colors(pixels: Any, color_count: int) -> DominantColors:
    """Cluster an RGBA8 buffer into at most ``color_count`` colors.

    Colors are ordered by cluster size, largest first. Sizes are counted
    over every visible pixel of the buffer, not just the k-means sample.
    """
    clusters = extract_clusters(pixels, color_count)
    return DominantColors(
        colors=[_centroid_to_rgb_string(cluster.centroid) for cluster in clusters],
        cluster_sizes=[cluster.size for cluster in clusters],
    )


def extract_clusters(pixels: Any, color_count: int) -> list[Cluster]:
    requested = int(np.floor(color_count))
    rgba = _as_rgba(pixels)
    if rgba.shape[0] == 0 or requested <= 0:
        return []

    samples = _sample_pixels(rgba)
    if samples.shape[0] == 0:
        return []

    k = min(requested, samples.shape[0])
    centroids = _initialize_centroids(samples, k)

    for _ in range(KMEANS_ITERATIONS):
        labels = _nearest_centroids(samples, centroids)
        counts = np.bincount(labels, minlength=k)
        sums = np.stack(
            [np.bincount(labels, weights=samples[:, channel], minlength=k) for channel in range(3)],
            axis=1,
        )
        occupied = counts > 0
        # empty clusters keep their previous centroid
        centroids[occupied] = sums[occupied] / counts[occupied, None]

    sizes = _cluster_sizes(rgba, centroids)
    logger.debug(
        "clustered %d samples from %d pixels into %d clusters",
        samples.shape[0],
        rgba.shape[0],
        k,
    )

    clusters = [
        Cluster(
            centroid=(float(centroid[0]), float(centroid[1]), float(centroid[2])),
            size=int(size),
        )
        for centroid, size in zip(centroids, sizes)
    ]
    clusters.sort(
        key=lambda cluster: (
            -cluster.size,
            cluster.centroid[0],
            cluster.centroid[1],
            cluster.centroid[2],
        )
    )
    return clusters


def select_distinct_colors(
    colors: list[str],
    cluster_sizes: list[int],
    desired_count: int,
) -> DominantColors:
    """Greedy farthest-point pick of ``desired_count`` colors in CIE94 space."""
    count = max(0, int(np.floor(desired_count)))
    if not colors or count == 0:
        return DominantColors(colors=[], cluster_sizes=[])

    sizes = [
        cluster_sizes[index] if index < len(cluster_sizes) and cluster_sizes[index] is not None else 0
        for index in range(len(colors))
    ]
    candidates = [index for index in range(len(colors)) if sizes[index] > 0]
    if not candidates:
        return DominantColors(colors=[], cluster_sizes=[])

    by_size = sorted(candidates, key=lambda index: (-sizes[index], index))
    if count >= len(candidates):
        return DominantColors(
            colors=[colors[index] for index in by_size],
            cluster_sizes=[sizes[index] for index in by_size],
        )

    labs = rgb_to_lab(np.array([rgb_string_to_rgb(colors[index]) for index in range(len(colors))], dtype=np.float64))
    # distances[i, j] measures candidate i against picked color j
    distances = delta_e_94(labs[:, None, :], labs[None, :, :])

    selected = [by_size[0]]
    while len(selected) < count:
        remaining = [index for index in candidates if index not in selected]
        min_distances = {
            index: float(np.min(distances[index, selected])) for index in remaining
        }

        best = remaining[-1]
        best_distance = min_distances[best]
        for index in reversed(remaining):
            if index == best:
                continue
            distance = min_distances[index]
            if distance > best_distance + DISTINCT_EPSILON:
                best, best_distance = index, distance
                continue
            if abs(distance - best_distance) <= DISTINCT_EPSILON:
                if sizes[index] > sizes[best] or (
                    sizes[index] == sizes[best] and index < best
                ):
                    best, best_distance = index, distance

        selected.append(best)

    return DominantColors(
        colors=[colors[index] for index in selected],
        cluster_sizes=[sizes[index] for index in selected],
    )


def pick_auto_color_count(
    cluster_sizes: list[int],
    coverage_pct: float = 99.0,
    min_count: int = 5,
    max_count: int = 12,
) -> int:
    """Smallest prefix of ``cluster_sizes`` reaching ``coverage_pct``, clamped."""
    if not cluster_sizes:
        return 0

    total = float(sum(cluster_sizes))
    if total <= 0:
        return 0

    cumulative = 0.0
    count = 0
    for size in cluster_sizes:
        cumulative += size
        count += 1
        if cumulative / total * 100.0 >= coverage_pct:
            break

    clamped_max = min(max_count, len(cluster_sizes))
    clamped_min = min(min_count, clamped_max)
    return min(clamped_max, max(clamped_min, count))


def _as_rgba(pixels: Any) -> np.ndarray:
    if pixels is None:
        return np.zeros((0, 4), dtype=np.uint8)
    if isinstance(pixels, (bytes, bytearray, memoryview)):
        flat = np.frombuffer(pixels, dtype=np.uint8)
    else:
        array = np.asarray(pixels)
        if array.ndim >= 2 and array.shape[-1] == 4:
            return array.reshape(-1, 4).astype(np.uint8, copy=False)
        flat = array.reshape(-1).astype(np.uint8, copy=False)
    usable = (flat.shape[0] // 4) * 4
    return flat[:usable].reshape(-1, 4)


def _sample_pixels(rgba: np.ndarray) -> np.ndarray:
    total = rgba.shape[0]
    stride = max(1, total // MAX_SAMPLE_PIXELS)
    keep = rgba[:, 3] >= MIN_ALPHA
    if stride > 1:
        indices = np.arange(total, dtype=np.uint64)
        hashed = (indices * np.uint64(HASH_MULTIPLIER)) & np.uint64(0xFFFFFFFF)
        keep &= (hashed % np.uint64(stride)) == 0
    return rgba[keep, :3].astype(np.float64)


def _squared_distances(points: np.ndarray, reference: np.ndarray) -> np.ndarray:
    diff = points - reference
    return diff[..., 0] * diff[..., 0] + diff[..., 1] * diff[..., 1] + diff[..., 2] * diff[..., 2]


def _initialize_centroids(samples: np.ndarray, k: int) -> np.ndarray:
    # farthest-first seeding; argmax keeps the first sample on ties
    mean = samples.mean(axis=0)
    first = int(np.argmax(_squared_distances(samples, mean)))
    centroids = [samples[first].copy()]

    min_distances = _squared_distances(samples, centroids[0])
    while len(centroids) < k:
        next_index = int(np.argmax(min_distances))
        centroids.append(samples[next_index].copy())
        min_distances = np.minimum(min_distances, _squared_distances(samples, centroids[-1]))

    return np.array(centroids, dtype=np.float64)


def _nearest_centroids(points: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    labels = np.empty(points.shape[0], dtype=np.intp)
    for start in range(0, points.shape[0], _ASSIGN_CHUNK):
        block = points[start : start + _ASSIGN_CHUNK]
        distances = _squared_distances(block[:, None, :], centroids[None, :, :])
        labels[start : start + block.shape[0]] = np.argmin(distances, axis=1)
    return labels


def _cluster_sizes(rgba: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    visible = rgba[rgba[:, 3] >= MIN_ALPHA, :3].astype(np.float64)
    if visible.shape[0] == 0:
        return np.zeros(centroids.shape[0], dtype=np.int64)
    labels = _nearest_centroids(visible, centroids)
    return np.bincount(labels, minlength=centroids.shape[0])


def _centroid_to_rgb_string(centroid: tuple[float, float, float]) -> str:
    return format_rgb_string(
        (
            clamp_to_byte(centroid[0]),
            clamp_to_byte(centroid[1]),
            clamp_to_byte(centroid[2]),
        )
    )
