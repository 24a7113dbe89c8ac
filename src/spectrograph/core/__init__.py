"""Block pipeline stages: read, transform, map, composite."""

from spectrograph.core.compositor import ImageCompositor
from spectrograph.core.mapper import MappedColumn, PixelMapper
from spectrograph.core.reader import BlockReader
from spectrograph.core.transform import SpectralTransform

__all__ = [
    "BlockReader",
    "ImageCompositor",
    "MappedColumn",
    "PixelMapper",
    "SpectralTransform",
]
