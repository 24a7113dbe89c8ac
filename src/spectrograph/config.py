"""
Render configuration and named profiles.
"""

from dataclasses import dataclass, replace

from spectrograph.session import DEFAULT_BLOCK_SIZE_UNIT


@dataclass
class SpectrogramConfig:
    """Settings for one spectrogram render."""

    width: int = 1024
    height: int = 256
    block_size_unit: int = DEFAULT_BLOCK_SIZE_UNIT

    # Read blocks from disk on demand instead of decoding the whole file
    streaming: bool = True

    # Resample target when decoding (streaming=False); None keeps the file rate
    sample_rate: int | None = None

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image size must be positive, got {self.width}x{self.height}")
        if self.block_size_unit <= 0:
            raise ValueError(f"block_size_unit must be positive, got {self.block_size_unit}")

    @property
    def block_size(self) -> int:
        return 2 * self.block_size_unit

    @classmethod
    def from_profile(cls, name: str, **overrides) -> "SpectrogramConfig":
        """
        Build a config from a named profile.

        Args:
            name: One of PROFILES.
            **overrides: Fields to replace; None values are ignored.
        """
        if name not in PROFILES:
            raise ValueError(f"Unknown profile {name!r}, choose from {sorted(PROFILES)}")
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(PROFILES[name], **changes)


PROFILES = {
    "low": SpectrogramConfig(width=640, height=160, block_size_unit=1024),
    "medium": SpectrogramConfig(width=1024, height=256, block_size_unit=512),
    "high": SpectrogramConfig(width=2048, height=512, block_size_unit=256),
}
