"""Incremental spectrogram rendering for cooperative schedulers."""

from spectrograph.config import PROFILES, SpectrogramConfig
from spectrograph.errors import (
    InvalidSequencing,
    ReadFailure,
    SourceUnavailable,
    SpectrographError,
)
from spectrograph.io.exporter import SpectrogramExporter
from spectrograph.io.source import ArrayWaveformSource, WaveformSource, open_waveform
from spectrograph.scheduler import TimeSliceClient, TimeSliceScheduler
from spectrograph.session import RenderProgress, RenderSession

__version__ = "0.1.0"
__all__ = [
    "PROFILES",
    "ArrayWaveformSource",
    "InvalidSequencing",
    "ReadFailure",
    "RenderProgress",
    "RenderSession",
    "SourceUnavailable",
    "SpectrogramConfig",
    "SpectrogramExporter",
    "SpectrographError",
    "TimeSliceClient",
    "TimeSliceScheduler",
    "WaveformSource",
    "open_waveform",
]
