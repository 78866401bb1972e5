from logging import getLogger
from typing import IO, Optional, Union

from svgpix.engine import BaseEngine, NativeError, ResvgEngine, create_engine
from svgpix.errors import (
    ConfigurationError,
    ErrorKind,
    NativeStatus,
    ParseError,
    RenderError,
    ValidationError,
)
from svgpix.geometry import IntrinsicSize, ResolvedGeometry, resolve
from svgpix.options import (
    FitMode,
    GenericFamily,
    ImageRendering,
    RenderOptions,
    RenderOptionsBuilder,
    RenderRequest,
    ShapeRendering,
    TextRendering,
    Transform,
)
from svgpix.pipeline import PipelineState, RenderedImage
from svgpix.renderer import Renderer, default_renderer
from svgpix.resource_limits import ResourceLimits
from svgpix.version import __version__ as __version__
from svgpix import pil_plugin as pil_plugin

logger = getLogger(__name__)

__all__ = [
    "BaseEngine",
    "ConfigurationError",
    "ErrorKind",
    "FitMode",
    "GenericFamily",
    "ImageRendering",
    "IntrinsicSize",
    "NativeError",
    "NativeStatus",
    "ParseError",
    "PipelineState",
    "RenderError",
    "RenderOptions",
    "RenderOptionsBuilder",
    "RenderRequest",
    "RenderedImage",
    "Renderer",
    "ResolvedGeometry",
    "ResourceLimits",
    "ResvgEngine",
    "ShapeRendering",
    "TextRendering",
    "Transform",
    "ValidationError",
    "create_engine",
    "decode",
    "decode_config",
    "default_renderer",
    "engine_version",
    "query_intrinsic_size",
    "render",
    "resolve",
]


def render(
    data: bytes,
    options: Union[RenderOptions, RenderOptionsBuilder, None] = None,
    request: Optional[RenderRequest] = None,
) -> RenderedImage:
    """Render SVG data with a one-off renderer.

    Example:
        >>> image = render(svg_bytes, request=RenderRequest(width=200, height=700))
        >>> image.size
        (200, 700)
    """
    with Renderer(options, request) as renderer:
        return renderer.render(data)


def query_intrinsic_size(
    data: bytes, options: Union[RenderOptions, RenderOptionsBuilder, None] = None
) -> IntrinsicSize:
    """Return the intrinsic size of SVG data."""
    with Renderer(options) as renderer:
        return renderer.query_intrinsic_size(data)


def decode(fp: IO[bytes]) -> RenderedImage:
    """Read an SVG from a binary file object and render it with defaults."""
    return default_renderer().render(fp.read())


def decode_config(fp: IO[bytes]) -> IntrinsicSize:
    """Read an SVG from a binary file object and return its intrinsic size."""
    return default_renderer().query_intrinsic_size(fp.read())


def engine_version(name: str = "resvg") -> str:
    """Return the version of the named rendering engine."""
    return create_engine(name).version()
