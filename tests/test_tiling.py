import numpy as np
import pytest

from krinkle_tiler import (REFLECTED_WEDGE_OFFSET, KrinkleWarning, direction_vector, generate_tiling,
                           rotation_matrix)
from krinkle_checks import wedge_groups


def test_no_offset_places_n_wedges(generator):
    rows = 3
    polygons = generator.generate_tiling(3, 7, 14, rows, False)
    groups = wedge_groups(polygons)
    assert sorted(groups) == list(range(14))
    assert all(len(g) == rows * (rows + 1) // 2 for g in groups.values())
    assert generator.warnings == []


def test_wedges_are_rotated_copies_of_wedge_0(generator):
    n = 14
    groups = wedge_groups(generator.generate_tiling(3, 7, n, 3, False))
    base = groups[0]
    for i, wedge in groups.items():
        R = rotation_matrix(i * 2 * np.pi / n)
        for tile, base_tile in zip(wedge, base):
            assert tile['meta']['tile_index'] == base_tile['meta']['tile_index']
            assert (tile['meta']['r'], tile['meta']['c']) == (base_tile['meta']['r'], base_tile['meta']['c'])
            np.testing.assert_allclose(np.diff(tile['path'], axis=0), np.diff(base_tile['path'], axis=0) @ R.T, atol=1e-9)


def test_first_wedges_attach_along_the_front(generator):
    # front starts as [7, 3, 6, 2, 5, 1, 4]; direction 1 sits at index 5
    groups = wedge_groups(generator.generate_tiling(3, 7, 14, 2, False))
    offset = sum(direction_vector(d, 14) for d in [7, 3, 6, 2, 5])
    np.testing.assert_allclose(groups[1][0]['path'][0], offset, atol=1e-9)
    np.testing.assert_allclose(groups[0][0]['path'][0], [0, 0])


def test_wedge_order_is_increasing(generator):
    polygons = generator.generate_tiling(3, 7, 14, 2, False)
    indices = [p['meta']['wedge_index'] for p in polygons]
    assert indices == sorted(indices)


def test_offset_doubles_and_reflects(generator):
    n = 22
    polygons = generator.generate_tiling(3, 7, n, 3, True)
    primary = [p for p in polygons if not p['meta'].get('is_copy')]
    copies = [p for p in polygons if p['meta'].get('is_copy')]
    assert len(polygons) == 2 * len(primary) == 2 * 11 * 6
    assert all(not p['meta'].get('is_copy') for p in polygons[:len(primary)])
    pivot = direction_vector(0, n) / 2
    for src, dup in zip(primary, copies):
        np.testing.assert_array_equal(dup['path'], 2 * pivot - src['path'])
        assert dup['meta']['wedge_index'] == src['meta']['wedge_index'] + REFLECTED_WEDGE_OFFSET
        assert dup['color'] == src['color'] and dup['stroke'] == src['stroke']
        assert (dup['meta']['r'], dup['meta']['c'], dup['meta']['tile_index']) == (src['meta']['r'], src['meta']['c'], src['meta']['tile_index'])


def test_unmatched_front_direction_skips_wedge(generator):
    # (2, 4) has a short period: the front is [4, 2] and odd directions never appear
    with pytest.warns(KrinkleWarning):
        polygons = generator.generate_tiling(2, 4, 8, 2, False)
    assert sorted(wedge_groups(polygons)) == [0, 2, 4, 6]
    skipped = [w for w in generator.warnings if 'not found in front' in w]
    assert len(skipped) == 4
    assert generator.error is None


def test_tiling_is_deterministic():
    config = {'color_count': 3, 'verbose': False}
    first = generate_tiling(3, 7, 22, 3, True, config=config)
    second = generate_tiling(3, 7, 22, 3, True, config=config)
    assert len(first) == len(second)
    for a, b in zip(first, second):
        np.testing.assert_array_equal(a['path'], b['path'])
        assert a['meta'] == b['meta'] and a['color'] == b['color']


def test_tiling_parameter_error(generator):
    assert generator.generate_tiling(3, 7, 6, 3, False) == []
    assert generator.error is not None


def test_zero_rows_gives_empty_tiling(generator):
    assert generator.generate_tiling(3, 7, 14, 0, False) == []
