import numpy as np
import pytest

from leafcrops.engines.leaf_crops.labeling import Component, label_components
from leafcrops.engines.leaf_crops.schemas import BoundingBox


def test_row_end_does_not_wrap_to_next_row_start():
    mask = np.zeros((2, 5), dtype=np.uint8)
    mask[0, 4] = 1  # rightmost column of row 0
    mask[1, 0] = 1  # leftmost column of row 1

    components = label_components(mask)

    assert components == [
        Component(area=1, min_x=4, min_y=0, max_x=4, max_y=0),
        Component(area=1, min_x=0, min_y=1, max_x=0, max_y=1),
    ]


def test_diagonal_pixels_are_separate_components():
    mask = np.array(
        [
            [1, 0, 0],
            [0, 1, 0],
            [0, 0, 1],
        ],
        dtype=np.uint8,
    )

    components = label_components(mask)

    assert len(components) == 3
    assert all(c.area == 1 for c in components)


def test_l_shape_is_one_component_with_tight_box():
    mask = np.zeros((6, 6), dtype=np.uint8)
    mask[1:5, 1] = 1
    mask[4, 1:5] = 1

    components = label_components(mask)

    assert len(components) == 1
    blob = components[0]
    assert blob.area == 7
    assert blob.bbox == BoundingBox(x=1, y=1, w=4, h=4)


def test_u_shape_joins_through_bottom_row():
    # Both arms are seen before the connecting row; the fill must still merge them
    mask = np.array(
        [
            [1, 0, 1],
            [1, 0, 1],
            [1, 1, 1],
        ],
        dtype=np.uint8,
    )

    components = label_components(mask)

    assert len(components) == 1
    assert components[0].area == 7


def test_components_come_out_in_row_major_discovery_order():
    mask = np.zeros((10, 10), dtype=np.uint8)
    mask[5:8, 0:3] = 1  # lower-left, larger
    mask[1:3, 7:9] = 1  # upper-right, smaller

    components = label_components(mask)

    assert [c.area for c in components] == [4, 9]
    assert components[0].min_y == 1
    assert components[1].min_x == 0


def test_areas_partition_the_foreground():
    rng = np.random.default_rng(3)
    mask = (rng.random((40, 50)) > 0.55).astype(np.uint8)

    components = label_components(mask)

    assert sum(c.area for c in components) == int(mask.sum())
    for c in components:
        assert 0 <= c.min_x <= c.max_x < 50
        assert 0 <= c.min_y <= c.max_y < 40


def test_full_frame_blob_does_not_recurse():
    mask = np.ones((320, 320), dtype=np.uint8)

    components = label_components(mask)

    assert len(components) == 1
    assert components[0].area == 320 * 320
    assert components[0].bbox == BoundingBox(x=0, y=0, w=320, h=320)


def test_single_column_mask():
    mask = np.array([[1], [1], [0], [1]], dtype=np.uint8)

    components = label_components(mask)

    assert [c.area for c in components] == [2, 1]


def test_empty_mask_has_no_components():
    assert label_components(np.zeros((8, 8), dtype=np.uint8)) == []
    assert label_components(np.zeros((0, 0), dtype=np.uint8)) == []


def test_rejects_non_2d_mask():
    with pytest.raises(ValueError):
        label_components(np.zeros((2, 2, 3), dtype=np.uint8))
