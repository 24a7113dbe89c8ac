"""
Spectrogram image export.

Writes rendered canvases to PNG or NumPy files, with an optional JSON
sidecar describing how the image was produced.
"""

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

import numpy as np
from PIL import Image


@dataclass
class SpectrogramMetadata:
    """Sidecar describing a rendered spectrogram."""

    width: int
    height: int
    sample_rate: int
    duration: float
    channel_count: int
    total_samples: int
    total_blocks: int
    block_size: int
    transform_length: int
    complete: bool
    version: str = "1.0"


class SpectrogramExporter:
    """
    Saves spectrogram snapshots.

    Images are (height, width, 3) uint8 RGB arrays as returned by
    ``RenderSession.get_image()``.
    """

    FORMATS = ("png", "numpy")

    def __init__(self, precision: int = 4):
        """
        Initialize the exporter.

        Args:
            precision: Decimal places for floating point metadata.
        """
        self.precision = precision

    def _check_image(self, image: np.ndarray):
        if image.ndim != 3 or image.shape[2] != 3 or image.dtype != np.uint8:
            raise ValueError(
                f"Expected (H, W, 3) uint8 image, got {image.shape} {image.dtype}"
            )

    def export_png(self, image: np.ndarray, output_path: str | Path) -> Path:
        """Write an RGB PNG."""
        self._check_image(image)
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        Image.fromarray(np.ascontiguousarray(image)).save(output_path, format="PNG")
        return output_path

    def export_numpy(self, image: np.ndarray, output_path: str | Path) -> Path:
        """Write the raw pixel array with ``np.save``."""
        self._check_image(image)
        output_path = Path(output_path)
        if output_path.suffix != ".npy":
            output_path = output_path.with_suffix(".npy")
        output_path.parent.mkdir(parents=True, exist_ok=True)

        np.save(output_path, image)
        return output_path

    def export(
        self,
        image: np.ndarray,
        output_path: str | Path,
        format: str = "png",
    ) -> Path:
        """
        Write an image in the requested format.

        Args:
            image: RGB canvas snapshot.
            output_path: Destination file.
            format: "png" or "numpy".

        Returns:
            Path to the written file.
        """
        if format == "numpy":
            return self.export_numpy(image, output_path)
        if format == "png":
            return self.export_png(image, output_path)
        raise ValueError(f"Unknown format {format!r}, choose from {self.FORMATS}")

    def build_metadata(self, session: Any) -> SpectrogramMetadata:
        """Collect sidecar fields from a render session."""
        image = session.get_image()
        sample_rate = session.sample_rate
        duration = session.total_samples / sample_rate if sample_rate else 0.0

        return SpectrogramMetadata(
            width=int(image.shape[1]),
            height=int(image.shape[0]),
            sample_rate=int(sample_rate),
            duration=round(float(duration), self.precision),
            channel_count=int(session.channel_count),
            total_samples=int(session.total_samples),
            total_blocks=int(session.get_total_blocks()),
            block_size=int(session.block_size),
            transform_length=int(session.transform.transform_length),
            complete=bool(session.is_complete()),
        )

    def export_metadata(self, session: Any, output_path: str | Path) -> Path:
        """Write the JSON sidecar for a session."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(asdict(self.build_metadata(session)), f, indent=2)

        return output_path
