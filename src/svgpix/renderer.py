import logging
import threading
import weakref
from typing import Optional, Union

from svgpix.engine import BaseEngine, create_engine
from svgpix.geometry import IntrinsicSize
from svgpix.lifecycle import NativeOptions
from svgpix.options import RenderOptions, RenderOptionsBuilder, RenderRequest
from svgpix.pipeline import RenderedImage, RenderPipeline
from svgpix.resource_limits import ResourceLimits

logger = logging.getLogger(__name__)


class Renderer:
    """Renders SVG documents to RGBA pixel buffers.

    A renderer owns one set of engine options, built on first use and shared
    by every call made through it; calls may run concurrently from several
    threads. Each call parses its own document and releases it before
    returning.

    Example:
        >>> options = RenderOptions.builder().with_dpi(96).build()
        >>> with Renderer(options) as renderer:
        ...     image = renderer.render(svg_bytes, RenderRequest(width=200))
        >>> image.to_pil().save("output.png")

    Args:
        options: Engine options, or a builder frozen on first use.
        request: Default request used when ``render`` gets none.
        engine: Engine binding. Defaults to resvg.
        limits: Resource limits. Defaults to ``ResourceLimits.default()``.
    """

    def __init__(
        self,
        options: Union[RenderOptions, RenderOptionsBuilder, None] = None,
        request: Optional[RenderRequest] = None,
        engine: Optional[BaseEngine] = None,
        limits: Optional[ResourceLimits] = None,
    ) -> None:
        self.engine = engine if engine is not None else create_engine()
        self.request = request if request is not None else RenderRequest()
        self.limits = limits if limits is not None else ResourceLimits.default()
        self._native_options = NativeOptions(self.engine, options)
        self._finalizer = weakref.finalize(self, self._native_options.close)

    @property
    def options(self) -> Optional[RenderOptions]:
        """The frozen options, or None until the first call."""
        return self._native_options.options

    def _pipeline(self) -> RenderPipeline:
        return RenderPipeline(self.engine, self._native_options.get(), self.limits)

    def render(
        self, data: bytes, request: Optional[RenderRequest] = None
    ) -> RenderedImage:
        """Render SVG data to an RGBA buffer.

        Args:
            data: SVG document bytes, optionally gzip-compressed.
            request: Output parameters. Defaults to the renderer's request.

        Raises:
            ConfigurationError: If the engine options could not be built or the
                renderer is closed.
            ParseError: If the engine rejects the document.
            ValidationError: If the requested geometry is invalid.
        """
        return self._pipeline().run(data, request if request is not None else self.request)

    def query_intrinsic_size(self, data: bytes) -> IntrinsicSize:
        """Return the document's intrinsic size without rendering it."""
        return self._pipeline().query_size(data)

    def close(self) -> None:
        """Release the engine options. Later calls raise ``ConfigurationError``."""
        self._finalizer()

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    def __enter__(self) -> "Renderer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


_default_renderer: Optional[Renderer] = None
_default_lock = threading.Lock()


def default_renderer() -> Renderer:
    """Return the shared renderer with default options."""
    global _default_renderer
    with _default_lock:
        if _default_renderer is None:
            _default_renderer = Renderer()
        return _default_renderer
