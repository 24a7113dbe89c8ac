"""
Waveform sources.

A waveform source is a seekable, multichannel PCM provider. The renderer
opens it once, then asks for one fixed-size block per channel at a time.
"""

import abc
import logging
from dataclasses import dataclass
from pathlib import Path

import librosa
import numpy as np
import soundfile as sf

from spectrograph.errors import ReadFailure, SourceUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceInfo:
    """Shape of an opened waveform."""

    channel_count: int
    total_samples: int
    sample_rate: int

    @property
    def duration(self) -> float:
        """Length of the waveform in seconds."""
        if self.sample_rate <= 0:
            return 0.0
        return self.total_samples / self.sample_rate


class WaveformSource(abc.ABC):
    """
    Abstract PCM sample provider.

    Subclasses must return exactly ``count`` samples from ``read`` or raise
    ReadFailure; short reads are never returned silently.
    """

    @abc.abstractmethod
    def open(self) -> SourceInfo:
        """Open the source and describe it. Raises SourceUnavailable."""

    @abc.abstractmethod
    def read(self, channel: int, start: int, count: int) -> np.ndarray:
        """Return ``count`` float32 samples of ``channel`` from ``start``."""

    def close(self):
        """Release any underlying resources."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class ArrayWaveformSource(WaveformSource):
    """
    Waveform held in memory as a NumPy array.

    Accepts a 1-D mono signal or a 2-D ``(channels, samples)`` array, the
    layout produced by ``librosa.load(..., mono=False)``.
    """

    def __init__(self, samples: np.ndarray, sample_rate: int = 22050):
        samples = np.asarray(samples, dtype=np.float32)
        if samples.ndim == 1:
            samples = samples[np.newaxis, :]
        self.samples = samples
        self.sample_rate = sample_rate

    def open(self) -> SourceInfo:
        if self.samples.ndim != 2 or self.samples.shape[0] == 0:
            raise SourceUnavailable(
                f"Unusable channel layout: array shape {self.samples.shape}"
            )
        return SourceInfo(
            channel_count=self.samples.shape[0],
            total_samples=self.samples.shape[1],
            sample_rate=self.sample_rate,
        )

    def read(self, channel: int, start: int, count: int) -> np.ndarray:
        n_channels, n_samples = self.samples.shape
        if not 0 <= channel < n_channels:
            raise ReadFailure(f"Channel {channel} out of range (0-{n_channels - 1})")
        if start < 0 or count < 0 or start + count > n_samples:
            raise ReadFailure(
                f"Range [{start}, {start + count}) outside waveform of {n_samples} samples"
            )
        return self.samples[channel, start:start + count].copy()


class SoundFileWaveformSource(WaveformSource):
    """
    Seekable reads straight from an audio file via libsndfile.

    Only the requested frame range is pulled from disk. The most recent range
    is cached so reading every channel of one block touches the file once.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._file: sf.SoundFile | None = None
        self._cache_key: tuple[int, int] | None = None
        self._cache: np.ndarray | None = None

    def open(self) -> SourceInfo:
        try:
            self._file = sf.SoundFile(str(self.path), mode="r")
        except (sf.SoundFileError, OSError) as err:
            raise SourceUnavailable(f"Cannot open {self.path}: {err}") from err

        if self._file.channels <= 0:
            self.close()
            raise SourceUnavailable(f"{self.path} reports no audio channels")

        logger.debug(
            "Opened %s: %d channels, %d frames at %d Hz",
            self.path, self._file.channels, self._file.frames, self._file.samplerate,
        )
        return SourceInfo(
            channel_count=self._file.channels,
            total_samples=self._file.frames,
            sample_rate=self._file.samplerate,
        )

    def _read_frames(self, start: int, count: int) -> np.ndarray:
        if self._cache_key == (start, count) and self._cache is not None:
            return self._cache

        try:
            self._file.seek(start)
            frames = self._file.read(count, dtype="float32", always_2d=True)
        except (sf.SoundFileError, RuntimeError, ValueError) as err:
            raise ReadFailure(
                f"Reading frames [{start}, {start + count}) from {self.path} failed: {err}"
            ) from err

        if frames.shape[0] != count:
            raise ReadFailure(
                f"Short read from {self.path}: wanted {count} frames at {start}, "
                f"got {frames.shape[0]}"
            )

        self._cache_key = (start, count)
        self._cache = frames
        return frames

    def read(self, channel: int, start: int, count: int) -> np.ndarray:
        if self._file is None or self._file.closed:
            raise ReadFailure(f"{self.path} is not open")
        if not 0 <= channel < self._file.channels:
            raise ReadFailure(
                f"Channel {channel} out of range (0-{self._file.channels - 1})"
            )
        if start < 0 or count < 0 or start + count > self._file.frames:
            raise ReadFailure(
                f"Range [{start}, {start + count}) outside {self._file.frames} frames"
            )
        return self._read_frames(start, count)[:, channel].copy()

    def close(self):
        if self._file is not None and not self._file.closed:
            self._file.close()
        self._cache_key = None
        self._cache = None


class DecodedWaveformSource(ArrayWaveformSource):
    """
    Fully decodes a file with librosa when opened.

    Covers formats libsndfile cannot seek in (mp3 and anything audioread
    handles) at the cost of holding the whole waveform in memory.
    """

    def __init__(self, path: str | Path, sample_rate: int | None = None):
        super().__init__(np.zeros((0, 0), dtype=np.float32), sample_rate or 0)
        self.path = Path(path)
        self.target_sample_rate = sample_rate

    def open(self) -> SourceInfo:
        try:
            y, sr = librosa.load(self.path, sr=self.target_sample_rate, mono=False)
        except Exception as err:
            raise SourceUnavailable(f"Cannot decode {self.path}: {err}") from err

        if y.ndim == 1:
            y = y[np.newaxis, :]
        self.samples = y.astype(np.float32, copy=False)
        self.sample_rate = int(sr)
        return super().open()


def open_waveform(
    path: str | Path,
    streaming: bool = True,
    sample_rate: int | None = None,
) -> WaveformSource:
    """
    Build a waveform source for an audio file.

    Args:
        path: Audio file (wav, flac, ogg; mp3 requires streaming=False).
        streaming: Read blocks on demand from disk instead of decoding up front.
        sample_rate: Resample target when decoding. Ignored when streaming.

    Returns:
        An unopened WaveformSource.
    """
    if streaming:
        return SoundFileWaveformSource(path)
    return DecodedWaveformSource(path, sample_rate=sample_rate)
