"""Render orchestration.

A ``RenderPipeline`` drives one call through the engine::

    IDLE -> PARSING -> SIZE_QUERYING -> SCALE_RESOLVING -> ALLOCATING
         -> COMPOSITING -> RASTERIZING -> RELEASING -> DONE

Any failure moves it to ``FAILED``. Once parsing succeeds, the document
handle is released on every path out of the pipeline.
"""

import dataclasses
import enum
import logging
from typing import Any, Optional

import numpy as np
from PIL import Image

from svgpix.engine.base_engine import BaseEngine
from svgpix.errors import ErrorKind, ValidationError
from svgpix.geometry import IntrinsicSize, ResolvedGeometry, resolve
from svgpix.lifecycle import OwnedDocument
from svgpix.options import RenderRequest, Transform
from svgpix.resource_limits import ResourceLimits

logger = logging.getLogger(__name__)


class PipelineState(enum.Enum):
    IDLE = "idle"
    PARSING = "parsing"
    SIZE_QUERYING = "size_querying"
    SCALE_RESOLVING = "scale_resolving"
    ALLOCATING = "allocating"
    COMPOSITING = "compositing"
    RASTERIZING = "rasterizing"
    RELEASING = "releasing"
    DONE = "done"
    FAILED = "failed"


@dataclasses.dataclass(frozen=True)
class RenderedImage:
    """A rendered RGBA pixel buffer.

    Attributes:
        pixels: ``(height, width, 4)`` uint8 array, straight (not
            premultiplied) RGBA.
        width: Width in pixels.
        height: Height in pixels.
    """

    pixels: np.ndarray
    width: int
    height: int

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)

    def tobytes(self) -> bytes:
        return self.pixels.tobytes()

    def to_pil(self) -> Image.Image:
        """Return a copy of the buffer as a PIL Image in RGBA mode."""
        return Image.fromarray(self.pixels.copy())


class RenderPipeline:
    """Runs a single render or size query against an engine.

    A pipeline instance is used for exactly one call. ``state`` holds the
    current state and ``transitions`` the states visited, in order.
    """

    def __init__(
        self,
        engine: BaseEngine,
        native_options: Any,
        limits: Optional[ResourceLimits] = None,
    ) -> None:
        self._engine = engine
        self._native_options = native_options
        self._limits = limits or ResourceLimits.unlimited()
        self.state = PipelineState.IDLE
        self.transitions: list[PipelineState] = [PipelineState.IDLE]

    def _enter(self, state: PipelineState) -> None:
        logger.debug(f"Pipeline {self.state.value} -> {state.value}")
        self.state = state
        self.transitions.append(state)

    def _check_document(self, data: bytes) -> None:
        limits = self._limits
        if limits.is_document_size_limited() and len(data) > limits.max_document_size:
            raise ValidationError(
                ErrorKind.DOCUMENT_TOO_LARGE,
                f"{len(data)} bytes > {limits.max_document_size} bytes",
            )

    def _check_geometry(self, geometry: ResolvedGeometry) -> None:
        limits = self._limits
        if not limits.is_output_dimension_limited():
            return
        if max(geometry.width, geometry.height) > limits.max_output_dimension:
            raise ValidationError(
                ErrorKind.OUTPUT_TOO_LARGE,
                f"{geometry.width}x{geometry.height} exceeds "
                f"{limits.max_output_dimension} pixels",
            )

    def _parse(self, data: bytes) -> OwnedDocument:
        self._enter(PipelineState.PARSING)
        self._check_document(data)
        return OwnedDocument.parse(self._engine, data, self._native_options)

    def query_size(self, data: bytes) -> IntrinsicSize:
        """Parse ``data`` and return its validated intrinsic size."""
        if self.state is not PipelineState.IDLE:
            raise RuntimeError(f"pipeline already used (state={self.state.value})")
        try:
            with self._parse(data) as document:
                self._enter(PipelineState.SIZE_QUERYING)
                size = document.query_size()
                self._enter(PipelineState.RELEASING)
            self._enter(PipelineState.DONE)
            return size
        except BaseException:
            self._enter(PipelineState.FAILED)
            raise

    def run(self, data: bytes, request: RenderRequest) -> RenderedImage:
        """Render ``data`` according to ``request``.

        Raises:
            ParseError: If the engine rejects the document.
            ValidationError: If the size, geometry or limits are invalid.
        """
        if self.state is not PipelineState.IDLE:
            raise RuntimeError(f"pipeline already used (state={self.state.value})")
        try:
            with self._parse(data) as document:
                self._enter(PipelineState.SIZE_QUERYING)
                size = document.query_size()

                self._enter(PipelineState.SCALE_RESOLVING)
                geometry = resolve(
                    size.width,
                    size.height,
                    request.width,
                    request.height,
                    request.fit_mode,
                )
                self._check_geometry(geometry)

                self._enter(PipelineState.ALLOCATING)
                pixels = np.zeros((geometry.height, geometry.width, 4), dtype=np.uint8)

                # The engine composites onto existing contents.
                self._enter(PipelineState.COMPOSITING)
                if request.background[3] != 0:
                    pixels[...] = request.background

                self._enter(PipelineState.RASTERIZING)
                transform = request.transform
                if transform is None:
                    transform = Transform.scale(geometry.scale_x, geometry.scale_y)
                document.render(geometry.width, geometry.height, transform, pixels)
                self._enter(PipelineState.RELEASING)
            self._enter(PipelineState.DONE)
        except BaseException:
            self._enter(PipelineState.FAILED)
            raise
        return RenderedImage(pixels=pixels, width=geometry.width, height=geometry.height)
