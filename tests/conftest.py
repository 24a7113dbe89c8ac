"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from spectrograph.core.transform import TRANSFORM_LENGTH

# Default sample rate for test audio
TEST_SR = 22050


@pytest.fixture
def sample_rate() -> int:
    """Default sample rate for tests."""
    return TEST_SR


@pytest.fixture
def bin_sine(sample_rate: int) -> tuple[np.ndarray, int, int]:
    """
    Generate a sine sitting exactly on FFT bin 40.

    Returns:
        Tuple of (audio_signal, sample_rate, bin_index).
    """
    bin_index = 40
    frequency = bin_index * sample_rate / TRANSFORM_LENGTH
    n_samples = 4 * TRANSFORM_LENGTH
    t = np.arange(n_samples) / sample_rate
    y = 0.5 * np.sin(2 * np.pi * frequency * t)
    return y.astype(np.float32), sample_rate, bin_index


@pytest.fixture
def silence() -> np.ndarray:
    """Four blocks worth of digital silence."""
    return np.zeros(4 * TRANSFORM_LENGTH, dtype=np.float32)


@pytest.fixture
def white_noise(sample_rate: int) -> tuple[np.ndarray, int]:
    """
    Generate white noise.

    Returns:
        Tuple of (audio_signal, sample_rate).
    """
    rng = np.random.default_rng(42)  # Reproducible
    samples = int(sample_rate * 0.5)
    y = rng.standard_normal(samples).astype(np.float32) * 0.3
    return y, sample_rate


@pytest.fixture
def stereo_signal(sample_rate: int) -> tuple[np.ndarray, int]:
    """
    Two-channel signal: 440 Hz on the left, 1760 Hz on the right.

    Returns:
        Tuple of ((2, n) audio array, sample_rate).
    """
    duration = 0.5
    t = np.linspace(0, duration, int(sample_rate * duration), endpoint=False)
    left = 0.4 * np.sin(2 * np.pi * 440.0 * t)
    right = 0.4 * np.sin(2 * np.pi * 1760.0 * t)
    return np.stack([left, right]).astype(np.float32), sample_rate


@pytest.fixture
def stereo_wav(tmp_path, stereo_signal):
    """Write the stereo signal to a float WAV file."""
    import soundfile as sf

    y, sr = stereo_signal
    audio_path = tmp_path / "stereo.wav"
    sf.write(audio_path, y.T, sr, subtype="FLOAT")
    return audio_path
