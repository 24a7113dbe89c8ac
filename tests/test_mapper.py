"""Tests for the PixelMapper module."""

import math

import numpy as np
import pytest

from spectrograph.core.mapper import LEVEL_FLOOR, PixelMapper, skewed_bin_indices
from spectrograph.core.transform import TRANSFORM_LENGTH, SpectralTransform

N_BINS = TRANSFORM_LENGTH // 2


def _mapper(width=100, height=256, total_samples=4096) -> PixelMapper:
    return PixelMapper(
        transform_length=TRANSFORM_LENGTH,
        image_width=width,
        image_height=height,
        total_samples=total_samples,
    )


class TestSkewedBinIndices:
    """Tests for the log-skewed row-to-bin table."""

    def test_one_entry_per_mapped_row(self):
        """Row 0 is left out."""
        assert len(skewed_bin_indices(256, N_BINS)) == 255

    def test_within_bounds(self):
        bins = skewed_bin_indices(300, N_BINS)
        assert bins.min() >= 0
        assert bins.max() <= N_BINS

    def test_high_frequencies_at_top(self):
        """Bins fall as rows go down the image."""
        bins = skewed_bin_indices(256, N_BINS)
        assert np.all(np.diff(bins) <= 0)
        assert bins[0] > bins[-1]

    def test_matches_formula(self):
        height = 200
        bins = skewed_bin_indices(height, N_BINS)
        for y in (1, 17, 100, 199):
            skew = 1.0 - math.exp(math.log(y / height) * 0.2)
            expected = min(max(int(math.floor(skew * N_BINS + 0.5)), 0), N_BINS)
            assert bins[y - 1] == expected

    def test_low_frequencies_get_more_rows(self):
        """The bottom half of the image covers fewer bins than the top half."""
        bins = skewed_bin_indices(256, N_BINS)
        top, bottom = bins[:127], bins[127:]
        assert (bottom.max() - bottom.min()) < (top.max() - top.min())

    def test_degenerate_height(self):
        assert len(skewed_bin_indices(1, N_BINS)) == 0


class TestColumnsForBlock:
    def test_full_blocks_split_width(self):
        mapper = _mapper(width=100, total_samples=7 * 1024)
        widths = [mapper.columns_for_block(1024, i * 1024) for i in range(7)]
        assert sum(widths) == 100
        assert set(widths) <= {math.floor(100 / 7), math.ceil(100 / 7)}

    def test_partial_block_is_narrower(self):
        """2.5 blocks over 100 pixels give 40, 40 and 20 columns."""
        mapper = _mapper(width=100, total_samples=2560)
        blocks = [(0, 1024), (1024, 1024), (2048, 512)]
        widths = [mapper.columns_for_block(n, start) for start, n in blocks]
        assert widths == [40, 40, 20]

    def test_block_longer_than_file_takes_full_width(self):
        assert _mapper(width=64, total_samples=300).columns_for_block(300) == 64

    def test_no_samples(self):
        assert _mapper(total_samples=0).columns_for_block(1024) == 0

    def test_blocks_cover_width(self):
        """Widths sum to the image width and stay within a pixel of the exact share."""
        cases = [(100, 7000, 1024), (640, 2600, 1024), (50, 51200, 1024), (10, 33 * 512 - 7, 512)]
        for width, total_samples, block_size in cases:
            mapper = _mapper(width=width, total_samples=total_samples)
            widths = []
            for start in range(0, total_samples, block_size):
                n = min(block_size, total_samples - start)
                widths.append(mapper.columns_for_block(n, start))
                assert abs(widths[-1] - width * n / total_samples) < 1
            assert sum(widths) == width


class TestLevels:
    def test_local_normalisation(self, white_noise):
        y, _ = white_noise
        mags = SpectralTransform().apply(y[:TRANSFORM_LENGTH])
        levels, local_min, local_max = _mapper().levels(mags)

        assert local_max == pytest.approx(float(mags[:N_BINS].max()))
        assert local_min == pytest.approx(float(mags[:N_BINS].min()))
        assert levels.min() >= 0.0
        assert levels.max() <= 1.0

    def test_peak_row_reaches_full_level(self, bin_sine):
        y, _, bin_index = bin_sine
        mapper = _mapper()
        mags = SpectralTransform().apply(y[:TRANSFORM_LENGTH])
        levels, _, _ = mapper.levels(mags)
        assert levels[mapper.row_for_bin(bin_index) - 1] == pytest.approx(1.0)

    def test_silent_block_uses_floor(self):
        """All-zero magnitudes render a uniform zero level without dividing by zero."""
        mags = np.zeros(N_BINS + 1, dtype=np.float32)
        with np.errstate(divide="raise", invalid="raise"):
            column = _mapper().map_block(mags, 1024)
        assert column.local_max == 0.0
        assert np.all(column.levels == 0.0)
        assert np.all(column.colors == 0)

    def test_tiny_block_below_floor(self):
        """Magnitudes under the floor stay below full level."""
        mags = np.full(N_BINS + 1, LEVEL_FLOOR / 10, dtype=np.float32)
        levels, _, _ = _mapper().levels(mags)
        np.testing.assert_allclose(levels, 0.1, rtol=1e-4)


class TestMapBlock:
    def test_column_shapes(self, white_noise):
        y, _ = white_noise
        mapper = _mapper(height=64)
        mags = SpectralTransform().apply(y[:TRANSFORM_LENGTH])
        column = mapper.map_block(mags, 1024)

        assert column.colors.shape == (63, 3)
        assert column.colors.dtype == np.uint8
        assert column.levels.shape == (63,)
        assert column.columns == 25

    def test_row_for_bin_inverts_table(self):
        mapper = _mapper(height=256)
        for row in (1, 50, 128, 255):
            bin_index = mapper.row_bins[row - 1]
            found = mapper.row_for_bin(int(bin_index))
            assert mapper.row_bins[found - 1] == bin_index
            assert found <= row

    def test_row_frequencies(self, sample_rate):
        mapper = _mapper(height=128)
        freqs = mapper.row_frequencies(sample_rate)
        assert len(freqs) == 127
        assert freqs.max() <= sample_rate / 2
        assert np.all(np.diff(freqs) <= 0)
