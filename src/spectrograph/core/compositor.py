"""
Scrolling image compositor.

Owns the RGB canvas. Each new block scrolls the existing picture left and is
painted into the freed strip on the right edge, so the buffer always shows
the most recent ``width`` columns of spectral history.
"""

import threading

import numpy as np


class ImageCompositor:
    """
    RGB canvas with left-scrolling column writes.

    Writes and snapshots share a lock, so a reader on another thread only ever
    sees whole blocks.
    """

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError(f"Image size must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.canvas = np.zeros((height, width, 3), dtype=np.uint8)
        self.x_position = 0
        self._lock = threading.Lock()

    def _scroll(self, columns: int):
        """Shift content left by ``columns`` and blank the right edge. Caller holds the lock."""
        columns = min(max(columns, 0), self.width)
        if columns == 0:
            return
        self.canvas[:, :self.width - columns] = self.canvas[:, columns:]
        self.canvas[:, self.width - columns:] = 0

    def write_column(self, colors: np.ndarray, columns: int) -> int:
        """
        Scroll, then paint ``colors`` into the rightmost ``columns`` pixels.

        Args:
            colors: (height - 1, 3) uint8 colours for rows 1..height-1.
                Row 0 is never painted.
            columns: Requested width; clamped to the canvas.

        Returns:
            Columns actually written.
        """
        columns = min(max(columns, 0), self.width)
        if columns == 0:
            return 0

        with self._lock:
            self._scroll(columns)
            self.canvas[1:, self.width - columns:] = colors[:, np.newaxis, :]
            self.x_position = min(self.x_position + columns, self.width)

        return columns

    def snapshot(self) -> np.ndarray:
        """Read-only copy of the canvas."""
        with self._lock:
            image = self.canvas.copy()
        image.flags.writeable = False
        return image
