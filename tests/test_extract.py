from __future__ import annotations

import numpy as np

from paint_mixer.extract import (
    MAX_SAMPLE_PIXELS,
    extract_clusters,
    extract_dominant_colors,
    pick_auto_color_count,
    select_distinct_colors,
)


def _pixels(*runs):
    data = []
    for (r, g, b, a), count in runs:
        data.extend([r, g, b, a] * count)
    return np.array(data, dtype=np.uint8)


def test_empty_or_zero_count_returns_nothing():
    result = extract_dominant_colors(np.array([], dtype=np.uint8), 0)
    assert result.colors == []
    assert result.cluster_sizes == []

    result = extract_dominant_colors(_pixels(((255, 0, 0, 255), 4)), 0)
    assert result.colors == []


def test_dominant_colors_sorted_by_cluster_size():
    pixels = _pixels(((255, 0, 0, 255), 4), ((0, 0, 255, 255), 2))

    result = extract_dominant_colors(pixels, 2)

    assert result.colors == ["rgb(255, 0, 0)", "rgb(0, 0, 255)"]
    assert result.cluster_sizes == [4, 2]


def test_tied_sizes_ordered_by_red_then_green_then_blue():
    by_red = extract_dominant_colors(_pixels(((10, 20, 30, 255), 1), ((200, 20, 30, 255), 1)), 2)
    assert by_red.cluster_sizes == [1, 1]
    assert by_red.colors == ["rgb(10, 20, 30)", "rgb(200, 20, 30)"]

    by_green = extract_dominant_colors(_pixels(((10, 200, 30, 255), 1), ((10, 20, 30, 255), 1)), 2)
    assert by_green.colors == ["rgb(10, 20, 30)", "rgb(10, 200, 30)"]

    by_blue = extract_dominant_colors(_pixels(((10, 20, 200, 255), 1), ((10, 20, 30, 255), 1)), 2)
    assert by_blue.colors == ["rgb(10, 20, 30)", "rgb(10, 20, 200)"]


def test_overlapping_centroids_keep_an_empty_cluster():
    result = extract_dominant_colors(_pixels(((50, 50, 50, 255), 2)), 2)

    assert result.cluster_sizes == [2, 0]
    assert result.colors == ["rgb(50, 50, 50)", "rgb(50, 50, 50)"]


def test_transparent_pixels_are_ignored():
    pixels = _pixels(((255, 0, 0, 255), 1), ((0, 255, 0, 0), 1), ((255, 0, 0, 255), 1))

    result = extract_dominant_colors(pixels, 1)

    assert result.colors == ["rgb(255, 0, 0)"]
    assert result.cluster_sizes == [2]


def test_semi_transparent_pixels_below_threshold_do_not_count():
    pixels = _pixels(((0, 0, 0, 255), 3), ((255, 255, 255, 127), 50), ((255, 255, 255, 128), 1))

    result = extract_dominant_colors(pixels, 2)

    assert result.colors == ["rgb(0, 0, 0)", "rgb(255, 255, 255)"]
    assert result.cluster_sizes == [3, 1]


def test_no_visible_pixels_returns_nothing():
    result = extract_dominant_colors(_pixels(((0, 0, 0, 0), 2)), 3)
    assert result.colors == []
    assert result.cluster_sizes == []


def test_large_buffers_use_hashed_sampling_but_full_sizes():
    total = MAX_SAMPLE_PIXELS * 2
    pixels = np.tile(np.array([10, 20, 30, 255], dtype=np.uint8), total)

    result = extract_dominant_colors(pixels, 1)

    assert result.colors == ["rgb(10, 20, 30)"]
    assert result.cluster_sizes == [total]


def test_accepts_image_shaped_arrays_and_bytes():
    image = np.zeros((4, 5, 4), dtype=np.uint8)
    image[..., 3] = 255
    image[:, :3] = [200, 100, 50, 255]

    from_array = extract_dominant_colors(image, 2)
    from_bytes = extract_dominant_colors(image.tobytes(), 2)

    assert from_array == from_bytes
    assert from_array.colors == ["rgb(200, 100, 50)", "rgb(0, 0, 0)"]
    assert from_array.cluster_sizes == [12, 8]


def test_requesting_more_colors_than_samples_caps_k():
    clusters = extract_clusters(_pixels(((1, 2, 3, 255), 1), ((250, 250, 250, 255), 1)), 5)
    assert len(clusters) == 2
    assert sum(cluster.size for cluster in clusters) == 2


def test_cluster_sizes_sum_to_visible_pixels():
    rng = np.random.default_rng(5)
    rgba = rng.integers(0, 256, size=(2000, 4), dtype=np.uint8)
    visible = int(np.count_nonzero(rgba[:, 3] >= 128))

    first = extract_dominant_colors(rgba, 6)
    second = extract_dominant_colors(rgba, 6)

    assert sum(first.cluster_sizes) == visible
    assert first == second


def test_distinct_selection_prefers_far_colors_over_near_duplicates():
    pixels = _pixels(((0, 0, 0, 255), 6), ((20, 20, 20, 255), 5), ((255, 255, 0, 255), 1))

    extraction = extract_dominant_colors(pixels, 3)
    selection = select_distinct_colors(extraction.colors, extraction.cluster_sizes, 2)

    assert extraction.cluster_sizes == [6, 5, 1]
    assert selection.colors == ["rgb(0, 0, 0)", "rgb(255, 255, 0)"]
    assert selection.cluster_sizes == [6, 1]


def test_distinct_selection_empty_cases():
    assert select_distinct_colors(["rgb(0, 0, 0)"], [1], 0).colors == []
    empty = select_distinct_colors(["rgb(0, 0, 0)", "rgb(255, 255, 255)"], [0, 0], 2)
    assert empty.colors == []
    assert empty.cluster_sizes == []


def test_distinct_selection_treats_missing_sizes_as_zero():
    selection = select_distinct_colors(["rgb(255, 0, 0)", "rgb(0, 0, 255)"], [2], 2)

    assert selection.colors == ["rgb(255, 0, 0)"]
    assert selection.cluster_sizes == [2]


def test_distinct_selection_returns_all_by_size_when_count_is_large():
    selection = select_distinct_colors(
        ["rgb(255, 0, 0)", "rgb(0, 0, 255)", "rgb(0, 255, 0)"], [1, 3, 2], 10
    )

    assert selection.colors == ["rgb(0, 0, 255)", "rgb(0, 255, 0)", "rgb(255, 0, 0)"]
    assert selection.cluster_sizes == [3, 2, 1]


def test_distinct_selection_picks_most_distant():
    selection = select_distinct_colors(
        ["rgb(0, 0, 0)", "rgb(255, 255, 255)", "rgb(10, 10, 10)"], [10, 1, 1], 2
    )

    assert selection.colors == ["rgb(0, 0, 0)", "rgb(255, 255, 255)"]
    assert selection.cluster_sizes == [10, 1]


def test_distinct_selection_ties_prefer_size_then_lower_index():
    by_size = select_distinct_colors(
        ["rgb(255, 255, 255)", "rgb(0, 0, 0)", "rgb(0, 0, 0)"], [10, 5, 1], 2
    )
    assert by_size.colors == ["rgb(255, 255, 255)", "rgb(0, 0, 0)"]
    assert by_size.cluster_sizes == [10, 5]

    by_index = select_distinct_colors(
        ["rgb(255, 255, 255)", "rgb(0, 0, 0)", "rgb(0, 0, 0)", "rgb(0, 0, 0)"], [10, 2, 2, 2], 2
    )
    assert by_index.colors == ["rgb(255, 255, 255)", "rgb(0, 0, 0)"]
    assert by_index.cluster_sizes == [10, 2]


def test_pick_auto_color_count():
    assert pick_auto_color_count([]) == 0
    assert pick_auto_color_count([0, 0, 0]) == 0
    assert pick_auto_color_count([60, 25, 10, 5], coverage_pct=90, min_count=1, max_count=4) == 3
    assert pick_auto_color_count([40, 30, 20, 10], coverage_pct=99, min_count=1, max_count=2) == 2


def test_pick_auto_color_count_min_is_capped_by_available_clusters():
    assert pick_auto_color_count([90, 10]) == 2
    assert pick_auto_color_count([97, 1, 1, 1, 0, 0, 0], coverage_pct=50) == 5
