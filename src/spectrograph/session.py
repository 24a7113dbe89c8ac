"""
Incremental spectrogram render session.

Orchestrates the block pipeline one cooperative step at a time: read and
down-mix a block, transform it, map it to a pixel column, composite it.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable

import numpy as np

from spectrograph.core.compositor import ImageCompositor
from spectrograph.core.mapper import PixelMapper
from spectrograph.core.reader import BlockReader
from spectrograph.core.transform import SpectralTransform
from spectrograph.errors import InvalidSequencing, ReadFailure, SourceUnavailable
from spectrograph.io.source import SourceInfo, WaveformSource
from spectrograph.scheduler import TimeSliceClient

logger = logging.getLogger(__name__)

DEFAULT_BLOCK_SIZE_UNIT = 512

# Delay hint handed back to the scheduler: run again as soon as it is free
NEXT_STEP_DELAY_MS = 0


@dataclass(frozen=True)
class RenderProgress:
    """Point-in-time view of a session's progress."""

    cursor: int
    total_samples: int
    blocks_processed: int
    total_blocks: int
    complete: bool

    @property
    def fraction(self) -> float:
        """Completion in [0, 1]."""
        if self.complete:
            return 1.0
        if self.total_samples <= 0:
            return 0.0
        return self.cursor / self.total_samples


class RenderSession(TimeSliceClient):
    """
    Single-use spectrogram renderer bound to one waveform source.

    Each ``step()`` reads and processes exactly one block, so the cost of a
    call is proportional to the block size, not to the file length. When the
    source is exhausted the session completes and fires its listeners once.

    Typical use::

        session = RenderSession(open_waveform("song.wav"), block_size_unit=512)
        session.set_image_size(800, 256)
        while not session.is_complete():
            session.step()
        image = session.get_image()
    """

    def __init__(
        self,
        source: WaveformSource | None = None,
        block_size_unit: int = DEFAULT_BLOCK_SIZE_UNIT,
    ):
        self.source: WaveformSource | None = None
        self.info: SourceInfo | None = None
        self.block_size = 0
        self.total_blocks = 0

        self.cursor = 0
        self.blocks_processed = 0
        self.complete = False

        self.transform = SpectralTransform()
        self.reader: BlockReader | None = None
        self.mapper: PixelMapper | None = None
        self.compositor: ImageCompositor | None = None

        self._listeners: list[Callable[[], None]] = []
        self._started = False

        if source is not None:
            self.initialize(source, block_size_unit)

    # Setup

    def initialize(self, source: WaveformSource, block_size_unit: int = DEFAULT_BLOCK_SIZE_UNIT):
        """
        Open the source and size every buffer.

        Args:
            source: Waveform to render. Opened here, once.
            block_size_unit: Half the block size; blocks hold twice this.

        Raises:
            SourceUnavailable: if the source cannot be opened or has no channels.
            InvalidSequencing: if the session was already initialised.
        """
        if self.source is not None:
            raise InvalidSequencing("Session is already bound to a waveform source")
        if block_size_unit <= 0:
            raise ValueError(f"block_size_unit must be positive, got {block_size_unit}")

        info = source.open()
        if info.channel_count <= 0:
            source.close()
            raise SourceUnavailable(f"Source reports {info.channel_count} channels")

        self.source = source
        self.info = info
        self.block_size = 2 * block_size_unit
        self.total_blocks = math.ceil(info.total_samples / self.block_size)
        self.reader = BlockReader(source, info.channel_count, self.block_size)

        logger.info(
            "Render session: %d channels, %d samples, %d blocks of %d",
            info.channel_count, info.total_samples, self.total_blocks, self.block_size,
        )

    def set_image_size(self, width: int, height: int):
        """
        Create the blank canvas.

        Raises:
            InvalidSequencing: once rendering has begun.
        """
        if self._started:
            raise InvalidSequencing("Image size cannot change after rendering has started")
        self.compositor = ImageCompositor(width, height)
        self.mapper = None

    # Listeners

    def add_listener(self, callback: Callable[[], None]):
        """Register a zero-argument completion callback."""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[], None]):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify_complete(self):
        # Every listener runs even if an earlier one raises; the first error
        # is re-raised once all have been called.
        first_error = None
        for callback in list(self._listeners):
            try:
                callback()
            except Exception as e:
                logger.exception("Completion listener %r failed", callback)
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error

    def _mark_complete(self):
        self.complete = True
        logger.info(
            "Render complete: %d/%d blocks, %d samples",
            self.blocks_processed, self.total_blocks, self.cursor,
        )
        self._notify_complete()

    # Stepping

    def _prepare(self):
        if self.source is None:
            raise InvalidSequencing("step() called before initialize()")
        if self.compositor is None:
            raise InvalidSequencing("step() called before set_image_size()")
        if self.mapper is None:
            self.mapper = PixelMapper(
                transform_length=self.transform.transform_length,
                image_width=self.compositor.width,
                image_height=self.compositor.height,
                total_samples=self.info.total_samples,
            )
        self._started = True

    def step(self) -> int:
        """
        Process exactly one block.

        Returns:
            Delay hint in milliseconds before the next call (always 0).

        Raises:
            InvalidSequencing: if not initialised or the canvas is unsized.
            ReadFailure: if the block could not be read. Nothing is written
                and the cursor does not move.
        """
        if self.complete:
            return NEXT_STEP_DELAY_MS

        self._prepare()

        total_samples = self.info.total_samples
        if total_samples == 0 or self.total_blocks == 0:
            self._mark_complete()
            return NEXT_STEP_DELAY_MS

        samples_this_block = min(self.block_size, total_samples - self.cursor)

        try:
            mono = self.reader.read_block(self.cursor, samples_this_block)
        except ReadFailure:
            logger.warning(
                "Read failed for block %d at sample %d",
                self.blocks_processed, self.cursor,
            )
            raise

        magnitudes = self.transform.apply(mono)
        column = self.mapper.map_block(magnitudes, samples_this_block, self.cursor)
        self.compositor.write_column(column.colors, column.columns)

        self.cursor += samples_this_block
        self.blocks_processed += 1

        logger.debug(
            "Block %d/%d: %d samples, %d columns, peak %.4g",
            self.blocks_processed, self.total_blocks, samples_this_block,
            column.columns, column.local_max,
        )

        if self.cursor == total_samples:
            self._mark_complete()

        return NEXT_STEP_DELAY_MS

    def use_time_slice(self) -> int:
        """Scheduler entry point; one block per slice."""
        return self.step()

    def run(
        self,
        max_steps: int | None = None,
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> RenderProgress:
        """
        Step until complete or ``max_steps`` have run.

        Args:
            max_steps: Upper bound on steps for this call.
            progress_callback: Optional callback(blocks_processed, total_blocks).

        Returns:
            Progress after the last step.
        """
        steps = 0
        while not self.complete:
            if max_steps is not None and steps >= max_steps:
                break
            self.step()
            steps += 1
            if progress_callback:
                progress_callback(self.blocks_processed, self.total_blocks)
        return self.progress

    # Accessors

    def is_complete(self) -> bool:
        return self.complete

    def get_image(self) -> np.ndarray:
        """Read-only snapshot of the canvas."""
        if self.compositor is None:
            raise InvalidSequencing("No image: set_image_size() has not been called")
        return self.compositor.snapshot()

    def get_total_blocks(self) -> int:
        return self.total_blocks

    @property
    def channel_count(self) -> int:
        return self.info.channel_count if self.info else 0

    @property
    def total_samples(self) -> int:
        return self.info.total_samples if self.info else 0

    @property
    def sample_rate(self) -> int:
        return self.info.sample_rate if self.info else 0

    @property
    def progress(self) -> RenderProgress:
        return RenderProgress(
            cursor=self.cursor,
            total_samples=self.total_samples,
            blocks_processed=self.blocks_processed,
            total_blocks=self.total_blocks,
            complete=self.complete,
        )

    def close(self):
        """Release the waveform source."""
        if self.source is not None:
            self.source.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
