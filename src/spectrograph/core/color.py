"""
HSV colour helpers for spectrogram columns.
"""

import numpy as np


def hsv_to_rgb(
    h: np.ndarray,
    s: np.ndarray,
    v: np.ndarray,
) -> np.ndarray:
    """
    Vectorized HSV to RGB conversion.

    Hue wraps, so a hue of 1.0 is the same red as 0.0.

    Args:
        h, s, v: Arrays of same shape, values in [0, 1].

    Returns:
        Array of shape ``h.shape + (3,)``, float32 in [0, 1].
    """
    h = np.asarray(h, dtype=np.float32)
    s = np.broadcast_to(np.asarray(s, dtype=np.float32), h.shape)
    v = np.broadcast_to(np.asarray(v, dtype=np.float32), h.shape)

    h6 = (h * 6.0) % 6.0
    i = h6.astype(np.int32)
    f = h6 - i

    p = v * (1.0 - s)
    q = v * (1.0 - s * f)
    t = v * (1.0 - s * (1.0 - f))

    # Per-sector channel sources: (red, green, blue)
    sectors = (
        (v, t, p),
        (q, v, p),
        (p, v, t),
        (p, q, v),
        (t, p, v),
        (v, p, q),
    )

    rgb = np.zeros(h.shape + (3,), dtype=np.float32)
    for sector, (r, g, b) in enumerate(sectors):
        mask = i == sector
        rgb[mask, 0] = r[mask]
        rgb[mask, 1] = g[mask]
        rgb[mask, 2] = b[mask]

    return rgb


def level_to_rgb(levels: np.ndarray) -> np.ndarray:
    """
    Colour law for normalised energy levels.

    hue = level, saturation = 1, value = level. Silence is black, peak
    energy wraps back round to fully bright red.

    Args:
        levels: Array of levels in [0, 1].

    Returns:
        ``levels.shape + (3,)`` uint8 RGB array.
    """
    levels = np.clip(np.asarray(levels, dtype=np.float32), 0.0, 1.0)
    rgb = hsv_to_rgb(levels, np.float32(1.0), levels)
    return np.round(rgb * 255).astype(np.uint8)
