"""
Exception types raised by the spectrogram renderer.
"""


class SpectrographError(RuntimeError):
    """Base class for all renderer failures."""


class SourceUnavailable(SpectrographError):
    """The waveform source could not be opened or has no usable channels."""


class ReadFailure(SpectrographError):
    """A requested sample range could not be supplied by the source."""


class InvalidSequencing(SpectrographError):
    """An operation was called out of its allowed order."""
