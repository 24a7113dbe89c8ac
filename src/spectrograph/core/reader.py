"""
Block reader and down-mixer.

Pulls one block per channel from a waveform source at the current cursor and
sums the channels into a single mono analysis track.
"""

import numpy as np

from spectrograph.errors import ReadFailure
from spectrograph.io.source import WaveformSource


class BlockReader:
    """
    Reads fixed-size blocks into reusable scratch buffers.

    The reader holds no cursor of its own; the session passes the start
    sample on every call so a failed read leaves nothing to roll back.
    """

    def __init__(self, source: WaveformSource, channel_count: int, block_size: int):
        self.source = source
        self.channel_count = channel_count
        self.block_size = block_size

        self.channel_buffer = np.zeros((channel_count, block_size), dtype=np.float32)
        self.mono_buffer = np.zeros(block_size, dtype=np.float32)

    def read_block(self, start: int, count: int) -> np.ndarray:
        """
        Read ``count`` samples of every channel from ``start`` and down-mix.

        Args:
            start: First sample index.
            count: Samples to read, at most ``block_size``.

        Returns:
            View of the mono buffer holding ``count`` summed samples.

        Raises:
            ReadFailure: if any channel cannot supply the full range.
        """
        if count > self.block_size:
            raise ValueError(f"count {count} exceeds block size {self.block_size}")

        for channel in range(self.channel_count):
            samples = self.source.read(channel, start, count)
            if len(samples) != count:
                raise ReadFailure(
                    f"Channel {channel} returned {len(samples)} samples, expected {count}"
                )
            self.channel_buffer[channel, :count] = samples

        return self.downmix(count)

    def downmix(self, count: int) -> np.ndarray:
        """Sum the first ``count`` samples of all channels into the mono buffer."""
        mono = self.mono_buffer[:count]
        np.sum(self.channel_buffer[:, :count], axis=0, out=mono)
        return mono
