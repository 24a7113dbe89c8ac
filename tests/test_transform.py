"""Tests for the SpectralTransform module."""

import numpy as np
import pytest

from spectrograph.core.transform import FFT_ORDER, TRANSFORM_LENGTH, SpectralTransform


class TestSpectralTransform:
    """Tests for windowed magnitude spectra."""

    def test_fixed_transform_length(self):
        """Transform length is 2 ** FFT_ORDER."""
        transform = SpectralTransform()
        assert transform.transform_length == TRANSFORM_LENGTH == 1 << FFT_ORDER
        assert transform.n_bins == TRANSFORM_LENGTH // 2

    def test_window_is_periodic_hann(self):
        """Window matches the periodic Hann formula."""
        transform = SpectralTransform()
        n = np.arange(TRANSFORM_LENGTH)
        expected = 0.5 - 0.5 * np.cos(2 * np.pi * n / TRANSFORM_LENGTH)
        np.testing.assert_allclose(transform.window, expected, atol=1e-6)
        assert transform.window[0] == pytest.approx(0.0, abs=1e-7)

    def test_output_covers_dc_to_nyquist(self, white_noise):
        """Magnitudes hold N/2 + 1 non-negative bins."""
        y, _ = white_noise
        mags = SpectralTransform().apply(y[:TRANSFORM_LENGTH])
        assert mags.shape == (TRANSFORM_LENGTH // 2 + 1,)
        assert np.all(mags >= 0)

    def test_sine_peaks_at_its_bin(self, bin_sine):
        """A bin-centred sine produces its maximum at that bin."""
        y, _, bin_index = bin_sine
        mags = SpectralTransform().apply(y[:TRANSFORM_LENGTH])
        assert int(np.argmax(mags)) == bin_index

    def test_short_block_is_zero_padded(self, white_noise):
        """A partial block behaves like the same block followed by silence."""
        y, _ = white_noise
        short = y[:300]
        padded = np.zeros(TRANSFORM_LENGTH, dtype=np.float32)
        padded[:300] = short

        transform = SpectralTransform()
        a = transform.apply(short).copy()
        b = transform.apply(padded).copy()
        np.testing.assert_allclose(a, b, rtol=1e-6, atol=1e-6)

    def test_long_block_keeps_per_bin_peak(self, white_noise):
        """A block of two transform lengths yields the larger of both segment spectra."""
        y, _ = white_noise
        transform = SpectralTransform()
        whole = transform.apply(y[:2 * TRANSFORM_LENGTH]).copy()
        head = transform.apply(y[:TRANSFORM_LENGTH]).copy()
        tail = transform.apply(y[TRANSFORM_LENGTH:2 * TRANSFORM_LENGTH]).copy()
        np.testing.assert_allclose(whole, np.maximum(head, tail), rtol=1e-6, atol=1e-6)

    def test_tone_in_long_block_tail_is_seen(self, bin_sine):
        """Samples past the first transform length still reach the spectrum."""
        y, _, bin_index = bin_sine
        block = np.zeros(2000, dtype=np.float32)
        block[1100:] = y[1100:2000]

        mags = SpectralTransform().apply(block)

        assert mags.max() > 1.0
        assert abs(int(np.argmax(mags)) - bin_index) <= 1

    def test_matches_reference_fft(self, white_noise):
        """Magnitudes equal |rfft(window * x)|."""
        y, _ = white_noise
        block = y[:TRANSFORM_LENGTH]
        transform = SpectralTransform()
        expected = np.abs(np.fft.rfft(block * transform.window))
        np.testing.assert_allclose(transform.apply(block), expected, rtol=1e-4, atol=1e-4)

    def test_silence_gives_zero_spectrum(self, silence):
        mags = SpectralTransform().apply(silence[:TRANSFORM_LENGTH])
        assert np.all(mags == 0)

    def test_scratch_buffers_are_reused(self, white_noise):
        """No per-block allocation of the output buffer."""
        y, _ = white_noise
        transform = SpectralTransform()
        first = transform.apply(y[:TRANSFORM_LENGTH])
        second = transform.apply(y[TRANSFORM_LENGTH:2 * TRANSFORM_LENGTH])
        assert first is second is transform.magnitudes

    def test_bin_frequencies(self, sample_rate):
        freqs = SpectralTransform().bin_frequencies(sample_rate)
        assert len(freqs) == TRANSFORM_LENGTH // 2 + 1
        assert freqs[0] == 0.0
        assert freqs[-1] == pytest.approx(sample_rate / 2)

    def test_bin_for_frequency(self, sample_rate):
        transform = SpectralTransform()
        nyquist = sample_rate / 2
        assert transform.bin_for_frequency(0.0, sample_rate) == 0
        assert transform.bin_for_frequency(nyquist, sample_rate) == transform.n_bins
        assert transform.bin_for_frequency(nyquist * 4, sample_rate) == transform.n_bins
        f = 40 * sample_rate / TRANSFORM_LENGTH
        assert transform.bin_for_frequency(f, sample_rate) == 40
