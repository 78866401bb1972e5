import logging
import threading
from typing import Any, Optional, Sequence

import numpy as np
import pytest

from svgpix.engine import BaseEngine, NativeError
from svgpix.options import (
    GenericFamily,
    ImageRendering,
    ShapeRendering,
    TextRendering,
    Transform,
)

logger = logging.getLogger(__name__)

RECT_SVG = b"""<?xml version="1.0" encoding="iso-8859-1"?>
<svg width="400" height="180" xmlns="http://www.w3.org/2000/svg" version="1.1">
  <rect x="50" y="20" width="150" height="150" style="fill:blue;stroke:pink;stroke-width:5;fill-opacity:0.1;stroke-opacity:0.9" />
</svg>"""


class FakeDocument:
    """Document handle that tracks its own release."""

    def __init__(self, data: bytes, size: tuple[float, float]) -> None:
        self.data = data
        self.size = size
        self.destroy_count = 0


class FakeEngine(BaseEngine):
    """Instrumented engine that asserts handles are released exactly once.

    Args:
        size: Intrinsic size reported for every document.
        parse_status: If set, ``parse`` raises ``NativeError`` with this code.
        fill: RGBA color ``render`` composites over the whole buffer, or None
            to leave the buffer untouched.
    """

    def __init__(
        self,
        size: tuple[float, float] = (400.0, 180.0),
        parse_status: Optional[int] = None,
        fill: Optional[tuple[int, int, int, int]] = None,
    ) -> None:
        self.size = size
        self.parse_status = parse_status
        self.fill = fill
        self.calls: list[tuple[Any, ...]] = []
        self.documents: list[FakeDocument] = []
        self.render_calls: list[tuple[int, int, Transform]] = []
        self.pixels_at_render: list[np.ndarray] = []
        self.create_options_count = 0
        self.destroyed_options: list[Any] = []
        self.fail_render = False
        self.render_status: Optional[int] = None
        self.fail_query = False
        self._lock = threading.Lock()

    def _record(self, *call: Any) -> None:
        with self._lock:
            self.calls.append(call)

    def version(self) -> str:
        return "fake"

    def create_options(self) -> dict[str, Any]:
        with self._lock:
            self.create_options_count += 1
        self._record("create_options")
        return {"id": self.create_options_count}

    def destroy_options(self, options: Any) -> None:
        assert options not in self.destroyed_options, "options destroyed twice"
        self.destroyed_options.append(options)
        self._record("destroy_options")

    def load_system_fonts(self, options: Any) -> None:
        self._record("load_system_fonts")

    def set_resources_dir(self, options: Any, path: str) -> None:
        self._record("set_resources_dir", path)

    def set_dpi(self, options: Any, dpi: float) -> None:
        self._record("set_dpi", dpi)

    def set_font_family(self, options: Any, generic: GenericFamily, family: str) -> None:
        self._record("set_font_family", generic, family)

    def set_font_size(self, options: Any, size: float) -> None:
        self._record("set_font_size", size)

    def set_languages(self, options: Any, languages: Sequence[str]) -> None:
        self._record("set_languages", tuple(languages))

    def set_shape_rendering(self, options: Any, mode: ShapeRendering) -> None:
        self._record("set_shape_rendering", mode)

    def set_text_rendering(self, options: Any, mode: TextRendering) -> None:
        self._record("set_text_rendering", mode)

    def set_image_rendering(self, options: Any, mode: ImageRendering) -> None:
        self._record("set_image_rendering", mode)

    def load_font_data(self, options: Any, data: bytes) -> None:
        self._record("load_font_data", data)

    def load_font_file(self, options: Any, path: str) -> None:
        self._record("load_font_file", path)

    def _check_alive(self, document: FakeDocument) -> None:
        assert document.destroy_count == 0, "document used after release"

    def parse(self, data: bytes, options: Any) -> FakeDocument:
        assert options is not None
        assert options not in self.destroyed_options, "parse with destroyed options"
        if self.parse_status is not None:
            raise NativeError(self.parse_status, "fake failure")
        document = FakeDocument(data, self.size)
        with self._lock:
            self.documents.append(document)
        return document

    def query_size(self, document: FakeDocument) -> tuple[float, float]:
        self._check_alive(document)
        if self.fail_query:
            raise RuntimeError("query failed")
        return document.size

    def render(
        self,
        document: FakeDocument,
        width: int,
        height: int,
        transform: Transform,
        pixels: np.ndarray,
    ) -> None:
        self._check_alive(document)
        assert pixels.shape == (height, width, 4)
        assert pixels.dtype == np.uint8
        with self._lock:
            self.render_calls.append((width, height, transform))
            self.pixels_at_render.append(pixels.copy())
        if self.fail_render:
            raise RuntimeError("render failed")
        if self.render_status is not None:
            raise NativeError(self.render_status, "fake render failure")
        if self.fill is not None:
            pixels[...] = self.fill

    def destroy(self, document: FakeDocument) -> None:
        self._check_alive(document)
        document.destroy_count += 1

    def assert_all_released(self) -> None:
        for document in self.documents:
            assert document.destroy_count == 1, "document not released exactly once"


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def rect_svg() -> bytes:
    """400x180 document with a translucent square."""
    return RECT_SVG
