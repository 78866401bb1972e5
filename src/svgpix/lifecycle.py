"""Ownership of engine handles.

Two handle lifetimes exist. ``NativeOptions`` owns the options handle of a
renderer: built lazily exactly once, shared read-only by all calls, destroyed
on close. ``OwnedDocument`` owns a parsed document handle for the duration of
one call and destroys it exactly once.
"""

import logging
import threading
from typing import Any, Callable, NoReturn, Optional, Union

import numpy as np

from svgpix.engine.base_engine import BaseEngine, NativeError
from svgpix.errors import ConfigurationError, ErrorKind, ValidationError, error_from_status
from svgpix.geometry import IntrinsicSize
from svgpix.options import (
    ImageRendering,
    RenderOptions,
    RenderOptionsBuilder,
    ShapeRendering,
    TextRendering,
    Transform,
)

logger = logging.getLogger(__name__)


def _raise_native(e: NativeError) -> NoReturn:
    error = error_from_status(e.code, e.message)
    if error is None:
        raise TypeError("engine raised NativeError with an OK status") from e
    raise error from e


def build_native_options(engine: BaseEngine, options: RenderOptions) -> Any:
    """Create an engine options handle and apply the fields that are set.

    If applying a field fails, the partially configured handle is destroyed
    before the error propagates.
    """
    handle = engine.create_options()
    try:
        if options.load_system_fonts:
            engine.load_system_fonts(handle)
        if options.resources_dir:
            engine.set_resources_dir(handle, options.resources_dir)
        if options.dpi:
            engine.set_dpi(handle, options.dpi)
        for generic, family in options.family_overrides():
            engine.set_font_family(handle, generic, family)
        if options.font_size:
            engine.set_font_size(handle, options.font_size)
        if options.languages:
            engine.set_languages(handle, options.languages)
        if options.shape_rendering is not ShapeRendering.NOT_SET:
            engine.set_shape_rendering(handle, options.shape_rendering)
        if options.text_rendering is not TextRendering.NOT_SET:
            engine.set_text_rendering(handle, options.text_rendering)
        if options.image_rendering is not ImageRendering.NOT_SET:
            engine.set_image_rendering(handle, options.image_rendering)
        for font in options.fonts:
            engine.load_font_data(handle, font)
        for font_file in options.font_files:
            if font_file:
                engine.load_font_file(handle, font_file)
    except BaseException:
        engine.destroy_options(handle)
        raise
    return handle


class NativeOptions:
    """Lazily built, exactly-once engine options for one renderer.

    The first ``get()`` freezes the configuration and builds the handle while
    holding a lock, so concurrent first callers block and then all observe the
    same handle. A failed build is remembered: every later ``get()`` raises
    ``ConfigurationError`` without retrying.
    """

    def __init__(
        self,
        engine: BaseEngine,
        options: Union[RenderOptions, RenderOptionsBuilder, None] = None,
        build: Callable[[BaseEngine, RenderOptions], Any] = build_native_options,
    ) -> None:
        self._engine = engine
        self._source = options
        self._build = build
        self._lock = threading.Lock()
        self._built = False
        self._closed = False
        self._options: Optional[RenderOptions] = None
        self._handle: Any = None
        self._error: Optional[BaseException] = None

    @property
    def options(self) -> Optional[RenderOptions]:
        """The frozen options, or None before the first build."""
        return self._options

    def _freeze(self) -> RenderOptions:
        source = self._source
        if source is None:
            return RenderOptions()
        if isinstance(source, RenderOptionsBuilder):
            return source.build()
        return source

    def _build_once(self) -> None:
        with self._lock:
            if self._built:
                return
            try:
                self._options = self._freeze()
                self._handle = self._build(self._engine, self._options)
                logger.debug(f"Built native options: {self._options}")
            except Exception as e:
                logger.debug(f"Failed to build native options: {e}")
                self._error = e
            self._built = True

    def get(self) -> Any:
        """Return the options handle, building it on first use.

        Raises:
            ConfigurationError: If the build failed or the cell is closed.
        """
        if not self._built:
            self._build_once()
        if self._closed:
            raise ConfigurationError("renderer is closed")
        if self._error is not None:
            raise ConfigurationError(str(self._error)) from self._error
        return self._handle

    def close(self) -> None:
        """Destroy the options handle. Safe to call more than once."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            # A closed cell never builds.
            self._built = True
            handle, self._handle = self._handle, None
        if handle is not None:
            self._engine.destroy_options(handle)
            logger.debug("Destroyed native options")


class OwnedDocument:
    """A parsed document handle owned by a single render call.

    ``release()`` destroys the handle exactly once and invalidates this
    object; any later use raises ``RuntimeError``. Use as a context manager
    to release on every exit path.
    """

    def __init__(self, engine: BaseEngine, handle: Any) -> None:
        self._engine = engine
        self._handle = handle
        self._released = False

    @classmethod
    def parse(cls, engine: BaseEngine, data: bytes, options: Any) -> "OwnedDocument":
        """Parse ``data`` and take ownership of the resulting handle.

        Raises:
            ParseError: If the engine rejects the document.
        """
        try:
            handle = engine.parse(data, options)
        except NativeError as e:
            _raise_native(e)
        return cls(engine, handle)

    @property
    def released(self) -> bool:
        return self._released

    @property
    def handle(self) -> Any:
        if self._released:
            raise RuntimeError("document handle used after release")
        return self._handle

    def query_size(self) -> IntrinsicSize:
        """Return the validated intrinsic size.

        Raises:
            ValidationError: ``INVALID_DOCUMENT_SIZE`` for a zero, negative or
                non-finite size.
        """
        width, height = self._engine.query_size(self.handle)
        size = IntrinsicSize(float(width), float(height))
        if not size.is_valid():
            raise ValidationError(
                ErrorKind.INVALID_DOCUMENT_SIZE, f"{size.width!r}x{size.height!r}"
            )
        return size

    def render(
        self, width: int, height: int, transform: Transform, pixels: np.ndarray
    ) -> None:
        """Rasterize onto ``pixels``.

        Raises:
            ParseError: If the engine fails while rasterizing.
        """
        try:
            self._engine.render(self.handle, width, height, transform, pixels)
        except NativeError as e:
            _raise_native(e)

    def release(self) -> None:
        if self._released:
            return
        handle, self._handle = self._handle, None
        self._released = True
        self._engine.destroy(handle)

    def __enter__(self) -> "OwnedDocument":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.release()
