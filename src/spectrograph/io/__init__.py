"""Waveform sources and image export."""

from spectrograph.io.exporter import SpectrogramExporter
from spectrograph.io.source import (
    ArrayWaveformSource,
    DecodedWaveformSource,
    SoundFileWaveformSource,
    SourceInfo,
    WaveformSource,
    open_waveform,
)

__all__ = [
    "ArrayWaveformSource",
    "DecodedWaveformSource",
    "SoundFileWaveformSource",
    "SourceInfo",
    "SpectrogramExporter",
    "WaveformSource",
    "open_waveform",
]
