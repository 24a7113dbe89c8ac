"""
Spectral transform.

Windows one block of mono samples and reduces it to a magnitude spectrum.
Analysis only: no phase is kept and no inverse transform exists.
"""

import librosa
import numpy as np
from scipy import fft as scipy_fft
from scipy import signal as scipy_signal

FFT_ORDER = 10
TRANSFORM_LENGTH = 1 << FFT_ORDER


class SpectralTransform:
    """
    Fixed-size Hann-windowed forward FFT.

    The window is periodic (the first N points of an N+1 point symmetric
    Hann table), which is what ``scipy.signal.get_window`` returns by default.
    Magnitudes cover bins 0..N/2 inclusive, i.e. 0 Hz through Nyquist.
    """

    def __init__(self, fft_order: int = FFT_ORDER):
        self.fft_order = fft_order
        self.transform_length = 1 << fft_order
        self.window = scipy_signal.get_window("hann", self.transform_length).astype(np.float32)

        # Reused across blocks
        self.scratch = np.zeros(self.transform_length, dtype=np.float32)
        self.magnitudes = np.zeros(self.transform_length // 2 + 1, dtype=np.float32)

    @property
    def n_bins(self) -> int:
        """Number of bins the pixel mapper normalises over (N/2)."""
        return self.transform_length // 2

    def apply(self, block: np.ndarray) -> np.ndarray:
        """
        Transform one mono block.

        A block of at most ``transform_length`` samples is zero-filled to the
        transform size, which is how the trailing partial block is handled.
        A longer block is cut into consecutive ``transform_length`` segments
        (the last one zero-filled), each is windowed and transformed, and
        the per-bin peak over all segments is kept, so every sample in the
        block contributes.

        Args:
            block: 1-D float array of mono samples.

        Returns:
            View of the reused magnitude buffer, length N/2 + 1. Valid until
            the next call.
        """
        self.magnitudes[:] = 0.0

        for offset in range(0, max(len(block), 1), self.transform_length):
            segment = block[offset:offset + self.transform_length]
            n = len(segment)
            self.scratch[:n] = segment
            self.scratch[n:] = 0.0

            self.scratch *= self.window

            spectrum = scipy_fft.rfft(self.scratch)
            np.maximum(self.magnitudes, np.abs(spectrum), out=self.magnitudes, casting="unsafe")

        return self.magnitudes

    def bin_frequencies(self, sample_rate: int) -> np.ndarray:
        """Centre frequency in Hz of every magnitude bin."""
        return librosa.fft_frequencies(sr=sample_rate, n_fft=self.transform_length)

    def bin_for_frequency(self, frequency: float, sample_rate: int) -> int:
        """Nearest bin index for a frequency in Hz."""
        nyquist = sample_rate / 2
        index = int(round(frequency / nyquist * self.n_bins))
        return int(np.clip(index, 0, self.n_bins))
