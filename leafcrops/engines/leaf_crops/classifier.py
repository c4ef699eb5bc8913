"""
Pixel classifier: is this pixel likely green leaf tissue?

A fixed colour heuristic rather than a learned model. The scalar rule and the
vectorized mask builder must agree pixel for pixel.
"""

import numpy as np

from leafcrops.engines.leaf_crops.config import SegmentationConfig, DEFAULT_CONFIG


def is_likely_green(r: int, g: int, b: int, config: SegmentationConfig = DEFAULT_CONFIG) -> bool:
    """Classify one RGB sample as foreground (leaf-like) or background.

    Rules are applied in order; the first failing rule rejects the pixel.
    Channel values are assumed to be valid 8-bit samples.
    """
    if g < config.green_min:
        return False
    if g <= r + config.green_over_red:
        return False
    if g <= b + config.green_over_blue:
        return False
    if r + g + b < config.min_channel_sum:
        return False
    return True


def build_mask(pixels: np.ndarray, config: SegmentationConfig = DEFAULT_CONFIG) -> np.ndarray:
    """Build a binary foreground mask from an (H, W, 3) RGB buffer.

    Returns:
        (H, W) uint8 array of 0/1
    """
    if pixels.ndim != 3 or pixels.shape[2] < 3:
        raise ValueError(f"Expected an (H, W, 3) pixel buffer, got shape {pixels.shape}")

    # Widen before arithmetic so r + 20 and r + g + b cannot wrap around
    rgb = pixels[..., :3].astype(np.int32)
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]

    mask = (
        (g >= config.green_min)
        & (g > r + config.green_over_red)
        & (g > b + config.green_over_blue)
        & (r + g + b >= config.min_channel_sum)
    )
    return mask.astype(np.uint8)
