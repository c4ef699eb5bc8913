import numpy as np
import pytest

from leafcrops.engines.leaf_crops.classifier import is_likely_green, build_mask
from leafcrops.engines.leaf_crops.config import SegmentationConfig


@pytest.mark.parametrize(
    "rgb, expected",
    [
        ((0, 200, 0), True),
        ((60, 140, 70), True),
        ((10, 10, 10), False),
        ((0, 49, 0), False),        # too dark
        ((40, 60, 0), False),       # green only equals red + 20
        ((39, 60, 45), False),      # green only equals blue + 15
        ((39, 60, 44), True),       # just inside every margin
        ((0, 55, 0), False),        # green-dominant but sum below 120
        ((200, 200, 200), False),   # grey
        ((255, 255, 0), False),     # yellow
    ],
)
def test_is_likely_green(rgb, expected):
    assert is_likely_green(*rgb) is expected


def test_is_likely_green_respects_config():
    loose = SegmentationConfig(green_min=10, min_channel_sum=0)

    assert is_likely_green(0, 30, 0) is False
    assert is_likely_green(0, 30, 0, loose) is True


def test_build_mask_matches_scalar_rule():
    rng = np.random.default_rng(7)
    pixels = rng.integers(0, 256, size=(24, 31, 3), dtype=np.uint8)

    mask = build_mask(pixels)

    expected = np.array(
        [[int(is_likely_green(*map(int, px))) for px in row] for row in pixels],
        dtype=np.uint8,
    )
    assert mask.dtype == np.uint8
    assert mask.shape == (24, 31)
    np.testing.assert_array_equal(mask, expected)


def test_build_mask_does_not_overflow_uint8():
    # r + 20 and r + g + b exceed 255; uint8 arithmetic would wrap
    pixels = np.array([[[250, 255, 0], [100, 255, 100]]], dtype=np.uint8)

    mask = build_mask(pixels)

    np.testing.assert_array_equal(mask, [[0, 1]])


def test_build_mask_ignores_alpha_channel():
    pixels = np.zeros((2, 2, 4), dtype=np.uint8)
    pixels[..., 1] = 200

    assert build_mask(pixels).sum() == 4


def test_build_mask_rejects_bad_shape():
    with pytest.raises(ValueError):
        build_mask(np.zeros((4, 4), dtype=np.uint8))
