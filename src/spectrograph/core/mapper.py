"""
Spectrum-to-pixel mapping.

Turns a block's magnitude spectrum into one coloured pixel column. Rows are
spread over the bins on a log-skewed curve so low frequencies get more
vertical resolution, and levels are normalised against the block's own peak.
"""

from dataclasses import dataclass

import librosa
import numpy as np

from spectrograph.core.color import level_to_rgb

# Exponent of the row-to-bin skew curve
SKEW_EXPONENT = 0.2

# Floor on the local maximum so silent blocks never divide by zero
LEVEL_FLOOR = 1e-5


@dataclass
class MappedColumn:
    """One block rendered to pixels."""

    colors: np.ndarray   # (height - 1, 3) uint8, rows 1..height-1
    levels: np.ndarray   # (height - 1,) float32 in [0, 1]
    local_min: float
    local_max: float
    columns: int         # horizontal pixels this block covers


def skewed_bin_indices(height: int, n_bins: int) -> np.ndarray:
    """
    Bin index drawn on each row 1..height-1.

    skew = 1 - exp(log(y / height) * 0.2), bin = round(skew * n_bins),
    clamped to [0, n_bins]. Row 1 (top) lands on high frequencies and the
    bottom rows on low ones.
    """
    if height < 2:
        return np.zeros(0, dtype=np.int64)
    y = np.arange(1, height, dtype=np.float64)
    skew = 1.0 - np.exp(np.log(y / height) * SKEW_EXPONENT)
    bins = np.floor(skew * n_bins + 0.5).astype(np.int64)
    return np.clip(bins, 0, n_bins)


class PixelMapper:
    """
    Maps magnitude spectra onto an image of fixed size.

    The row-to-bin table depends only on the image height and transform
    length, so it is built once.
    """

    def __init__(
        self,
        transform_length: int,
        image_width: int,
        image_height: int,
        total_samples: int,
    ):
        """
        Initialize the mapper.

        Args:
            transform_length: FFT size; bins 0..transform_length/2 are addressable.
            image_width: Canvas width in pixels.
            image_height: Canvas height in pixels.
            total_samples: Length of the whole waveform; sets the horizontal scale.
        """
        self.transform_length = transform_length
        self.n_bins = transform_length // 2
        self.image_width = image_width
        self.image_height = image_height
        self.total_samples = total_samples

        self.row_bins = skewed_bin_indices(image_height, self.n_bins)

    def column_edge(self, sample: int) -> int:
        """Image column where ``sample`` falls, rounded half up to a pixel edge."""
        if self.total_samples <= 0:
            return 0
        return (2 * self.image_width * sample + self.total_samples) // (2 * self.total_samples)

    def columns_for_block(self, samples_this_block: int, start_sample: int = 0) -> int:
        """
        Horizontal pixels a block covers.

        Each block spans the pixel edges of its first and one-past-last
        sample, so the widths of consecutive blocks add up to exactly the
        image width and each differs from width * n / total_samples by less
        than one pixel. A trailing partial block gets a proportionally
        narrower share.

        Args:
            samples_this_block: Samples the block actually held.
            start_sample: Cursor position of the block's first sample.
        """
        end_sample = start_sample + samples_this_block
        return self.column_edge(end_sample) - self.column_edge(start_sample)

    def levels(self, magnitudes: np.ndarray) -> tuple[np.ndarray, float, float]:
        """Per-row levels in [0, 1] plus the block's local min and max."""
        analysed = magnitudes[:self.n_bins]
        local_min = float(np.min(analysed))
        local_max = float(np.max(analysed))

        selected = magnitudes[self.row_bins]
        levels = selected / max(local_max, LEVEL_FLOOR)
        return np.clip(levels, 0.0, 1.0).astype(np.float32), local_min, local_max

    def map_block(
        self,
        magnitudes: np.ndarray,
        samples_this_block: int,
        start_sample: int = 0,
    ) -> MappedColumn:
        """
        Render one block's spectrum.

        Args:
            magnitudes: Magnitude spectrum with at least n_bins + 1 entries.
            samples_this_block: Samples the block actually held.
            start_sample: Cursor position of the block's first sample.

        Returns:
            MappedColumn with colours for rows 1..height-1.
        """
        levels, local_min, local_max = self.levels(magnitudes)
        return MappedColumn(
            colors=level_to_rgb(levels),
            levels=levels,
            local_min=local_min,
            local_max=local_max,
            columns=self.columns_for_block(samples_this_block, start_sample),
        )

    def row_for_bin(self, bin_index: int) -> int:
        """Topmost image row whose bin is nearest to ``bin_index``."""
        if len(self.row_bins) == 0:
            return 0
        distance = np.abs(self.row_bins - bin_index)
        return int(np.argmin(distance)) + 1

    def row_frequencies(self, sample_rate: int) -> np.ndarray:
        """Frequency in Hz drawn on each row 1..height-1."""
        freqs = librosa.fft_frequencies(sr=sample_rate, n_fft=self.transform_length)
        return freqs[self.row_bins]
