"""Resvg-based engine module.

This module binds the resvg renderer (via resvg-py) to the ``BaseEngine``
interface. resvg-py exposes a single render-to-PNG call, so the option and
document handles here are plain Python objects that carry what that call
needs.

Parsing never rasterizes the document at its own size. The intrinsic size is
read from the root element, and the document is validated by resvg with its
root viewport replaced by a single pixel. Full rasters are only produced by
``render``, at the size the caller resolved and allocated.
"""

import base64
import gzip
import logging
import math
import os
import re
import shutil
import tempfile
import zlib
from dataclasses import dataclass, field
from importlib import metadata as importlib_metadata
from io import BytesIO
from typing import Any, Optional, Sequence

import numpy as np
import resvg_py
from PIL import Image

from svgpix.engine.base_engine import BaseEngine, NativeError
from svgpix.errors import ErrorKind, NativeStatus, ValidationError
from svgpix.geometry import round_half_away_from_zero
from svgpix.options import (
    GenericFamily,
    ImageRendering,
    ShapeRendering,
    TextRendering,
    Transform,
)
from svgpix.utils.xml import num2str, seq2str

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"

# resvg defaults used to resolve the root element's declared size.
DEFAULT_DPI = 96.0
DEFAULT_FONT_SIZE = 12.0
FALLBACK_SIZE = 100.0

_FAMILY_KWARGS: dict[GenericFamily, str] = {
    GenericFamily.DEFAULT: "font_family",
    GenericFamily.SERIF: "serif_family",
    GenericFamily.SANS_SERIF: "sans_serif_family",
    GenericFamily.CURSIVE: "cursive_family",
    GenericFamily.FANTASY: "fantasy_family",
    GenericFamily.MONOSPACE: "monospace_family",
}

# Substrings of resvg error messages, checked in order.
_ERROR_PATTERNS: list[tuple[tuple[str, ...], NativeStatus]] = [
    (("utf-8", "utf8"), NativeStatus.NOT_AN_UTF8_STR),
    (("gzip",), NativeStatus.MALFORMED_GZIP),
    (("elements limit", "maximum number of svg elements"),
     NativeStatus.ELEMENTS_LIMIT_REACHED),
    (("invalid size",), NativeStatus.INVALID_SIZE),
    (("no such file", "failed to open", "file open", "not found"),
     NativeStatus.FILE_OPEN_FAILED),
]

ROOT_ELEMENT_RE = re.compile(r"<svg(?=[\s/>])(?:[^>\"']|\"[^\"]*\"|'[^']*')*>")
ATTRIBUTE_RE = re.compile(r"([\w:.-]+)\s*=\s*(?:\"([^\"]*)\"|'([^']*)')")
SIZE_ATTRIBUTE_RE = re.compile(
    r"(?<![\w:.-])(?:width|height)\s*=\s*(?:\"[^\"]*\"|'[^']*')"
)
LENGTH_RE = re.compile(
    r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)\s*"
    r"(px|in|cm|mm|pt|pc|em|ex|%)?\s*$"
)


@dataclass
class ResvgOptions:
    """Options handle: keyword arguments for ``resvg_py.svg_to_bytes``."""

    kwargs: dict[str, Any] = field(default_factory=lambda: {"skip_system_fonts": True})
    font_files: list[str] = field(default_factory=list)
    font_dir: Optional[str] = None

    @property
    def dpi(self) -> float:
        return float(self.kwargs.get("dpi") or DEFAULT_DPI)

    @property
    def font_size(self) -> float:
        return float(self.kwargs.get("font_size") or DEFAULT_FONT_SIZE)

    def render_kwargs(self) -> dict[str, Any]:
        kwargs = dict(self.kwargs)
        if self.font_files:
            kwargs["font_files"] = list(self.font_files)
        return kwargs


@dataclass
class ResvgDocument:
    """Document handle: the decoded SVG and its declared size."""

    svg: str
    options: ResvgOptions
    size: tuple[float, float]

    @property
    def pixel_size(self) -> tuple[int, int]:
        return (
            round_half_away_from_zero(self.size[0]),
            round_half_away_from_zero(self.size[1]),
        )


def classify_error(message: str) -> NativeStatus:
    """Map a resvg error message to a native status code."""
    lowered = message.lower()
    for needles, status in _ERROR_PATTERNS:
        if any(needle in lowered for needle in needles):
            return status
    return NativeStatus.PARSING_FAILED


def decode_document(data: bytes) -> str:
    """Decompress (if gzipped) and decode SVG data to text.

    Raises:
        NativeError: ``MALFORMED_GZIP`` or ``NOT_AN_UTF8_STR``.
    """
    if data[:2] == GZIP_MAGIC:
        try:
            data = gzip.decompress(data)
        except (OSError, EOFError, zlib.error) as e:
            raise NativeError(NativeStatus.MALFORMED_GZIP, str(e)) from e
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise NativeError(NativeStatus.NOT_AN_UTF8_STR, str(e)) from e


def find_root(svg: str) -> re.Match:
    """Locate the root ``<svg>`` start tag.

    Raises:
        NativeError: ``PARSING_FAILED`` if there is none.
    """
    match = ROOT_ELEMENT_RE.search(svg)
    if match is None:
        raise NativeError(NativeStatus.PARSING_FAILED, "no <svg> root element")
    return match


def root_attributes(tag: str) -> dict[str, str]:
    """Parse the attributes of a ``<svg ...>`` start tag."""
    return {
        m.group(1): m.group(2) if m.group(2) is not None else m.group(3)
        for m in ATTRIBUTE_RE.finditer(tag[len("<svg"):])
    }


def resize_root(svg: str, root: re.Match, width: int, height: int) -> str:
    """Return ``svg`` with the root viewport set to ``width`` x ``height``."""
    rest = SIZE_ATTRIBUTE_RE.sub("", root.group(0))[len("<svg"):]
    tag = f'<svg width="{width}" height="{height}"{rest}'
    return svg[:root.start()] + tag + svg[root.end():]


def _parse_length(value: str) -> Optional[tuple[float, str]]:
    match = LENGTH_RE.match(value)
    if match is None:
        return None
    return float(match.group(1)), match.group(2) or ""


def _parse_view_box(value: Optional[str]) -> Optional[tuple[float, ...]]:
    if value is None:
        return None
    try:
        box = tuple(float(v) for v in re.split(r"[\s,]+", value.strip()))
    except ValueError:
        return None
    if len(box) != 4 or not (box[2] > 0 and box[3] > 0):
        return None
    return box


def _to_pixels(number: float, unit: str, dpi: float, font_size: float) -> float:
    factors = {
        "": 1.0,
        "px": 1.0,
        "in": dpi,
        "cm": dpi / 2.54,
        "mm": dpi / 25.4,
        "pt": dpi / 72.0,
        "pc": dpi / 6.0,
        "em": font_size,
        "ex": font_size / 2.0,
    }
    return number * factors[unit]


def declared_size(
    attributes: dict[str, str],
    dpi: float = DEFAULT_DPI,
    font_size: float = DEFAULT_FONT_SIZE,
) -> tuple[float, float]:
    """Resolve the root element's width and height to pixels.

    Missing or unparsable lengths default to ``100%``. Percentages refer to
    the ``viewBox`` size, or to a 100x100 fallback without one.

    Raises:
        NativeError: ``INVALID_SIZE`` if either side is not positive.
    """
    view_box = _parse_view_box(attributes.get("viewBox"))
    size = []
    for index, name in enumerate(("width", "height")):
        number, unit = _parse_length(attributes.get(name, "100%")) or (100.0, "%")
        if unit == "%":
            base = view_box[index + 2] if view_box else FALLBACK_SIZE
            size.append(base * number / 100.0)
        else:
            size.append(_to_pixels(number, unit, dpi, font_size))
    width, height = size
    if not all(math.isfinite(v) and v > 0 for v in size):
        raise NativeError(NativeStatus.INVALID_SIZE, f"{width!r}x{height!r}")
    return width, height


def check_raster_size(width: int, height: int) -> None:
    """Reject rasters Pillow would refuse to decode.

    Raises:
        ValidationError: ``OUTPUT_TOO_LARGE``.
    """
    limit = Image.MAX_IMAGE_PIXELS
    if limit is not None and width * height > 2 * limit:
        raise ValidationError(
            ErrorKind.OUTPUT_TOO_LARGE,
            f"{width}x{height} exceeds {2 * limit} decodable pixels",
        )


def decode_raster(raster: bytes) -> Image.Image:
    """Decode PNG bytes from resvg into an RGBA image.

    Raises:
        ValidationError: ``OUTPUT_TOO_LARGE`` if Pillow refuses the size.
        NativeError: ``PARSING_FAILED`` if the bytes are not a valid image.
    """
    try:
        with Image.open(BytesIO(raster)) as image:
            return image.convert("RGBA")
    except Image.DecompressionBombError as e:
        raise ValidationError(ErrorKind.OUTPUT_TOO_LARGE, str(e)) from e
    except OSError as e:
        raise NativeError(NativeStatus.PARSING_FAILED, f"invalid raster: {e}") from e


def wrap_document(
    document: ResvgDocument, width: int, height: int, transform: Transform
) -> str:
    """Embed a document in an SVG of the output size under ``transform``."""
    data = base64.b64encode(document.svg.encode("utf-8")).decode("ascii")
    iw, ih = document.size
    return (
        '<svg xmlns="http://www.w3.org/2000/svg" '
        'xmlns:xlink="http://www.w3.org/1999/xlink" '
        f'width="{width}" height="{height}" viewBox="0 0 {width} {height}">'
        f'<image x="0" y="0" width="{num2str(iw)}" height="{num2str(ih)}" '
        'preserveAspectRatio="none" '
        f'transform="matrix({seq2str(transform)})" '
        f'xlink:href="data:image/svg+xml;base64,{data}"/>'
        "</svg>"
    )


class ResvgEngine(BaseEngine):
    """Engine backed by resvg-py.

    Note:
        resvg-py only loads fonts from files, so embedded font blobs are
        written to a private temporary directory owned by the options handle
        and removed by ``destroy_options``.

    Example:
        >>> engine = ResvgEngine()
        >>> options = engine.create_options()
        >>> engine.load_system_fonts(options)
        >>> document = engine.parse(svg_bytes, options)
        >>> engine.query_size(document)
        (400.0, 180.0)
        >>> engine.destroy(document)
        >>> engine.destroy_options(options)
    """

    def version(self) -> str:
        try:
            return importlib_metadata.version("resvg-py")
        except importlib_metadata.PackageNotFoundError:
            return "unknown"

    def create_options(self) -> ResvgOptions:
        return ResvgOptions()

    def destroy_options(self, options: ResvgOptions) -> None:
        if options.font_dir is not None:
            shutil.rmtree(options.font_dir, ignore_errors=True)
            options.font_dir = None
        options.font_files.clear()
        options.kwargs.clear()

    def load_system_fonts(self, options: ResvgOptions) -> None:
        options.kwargs["skip_system_fonts"] = False

    def set_resources_dir(self, options: ResvgOptions, path: str) -> None:
        options.kwargs["resources_dir"] = path

    def set_dpi(self, options: ResvgOptions, dpi: float) -> None:
        # resvg-py takes an integer DPI.
        options.kwargs["dpi"] = round_half_away_from_zero(dpi)

    def set_font_family(
        self, options: ResvgOptions, generic: GenericFamily, family: str
    ) -> None:
        options.kwargs[_FAMILY_KWARGS[generic]] = family

    def set_font_size(self, options: ResvgOptions, size: float) -> None:
        options.kwargs["font_size"] = float(size)

    def set_languages(self, options: ResvgOptions, languages: Sequence[str]) -> None:
        options.kwargs["languages"] = list(languages)

    def set_shape_rendering(self, options: ResvgOptions, mode: ShapeRendering) -> None:
        options.kwargs["shape_rendering"] = mode.name.lower()

    def set_text_rendering(self, options: ResvgOptions, mode: TextRendering) -> None:
        options.kwargs["text_rendering"] = mode.name.lower()

    def set_image_rendering(self, options: ResvgOptions, mode: ImageRendering) -> None:
        options.kwargs["image_rendering"] = mode.name.lower()

    def load_font_data(self, options: ResvgOptions, data: bytes) -> None:
        if options.font_dir is None:
            options.font_dir = tempfile.mkdtemp(prefix="svgpix-fonts-")
        path = os.path.join(options.font_dir, f"font-{len(options.font_files)}.ttf")
        with open(path, "wb") as f:
            f.write(data)
        options.font_files.append(path)
        logger.debug(f"Wrote {len(data)} bytes of font data to {path}")

    def load_font_file(self, options: ResvgOptions, path: str) -> None:
        options.font_files.append(path)

    def _rasterize(self, svg: str, options: ResvgOptions) -> bytes:
        try:
            png = resvg_py.svg_to_bytes(svg_string=svg, **options.render_kwargs())
        except Exception as e:
            status = classify_error(str(e))
            raise NativeError(status, str(e)) from e
        return bytes(png)

    def parse(self, data: bytes, options: ResvgOptions) -> ResvgDocument:
        svg = decode_document(data)
        root = find_root(svg)
        size = declared_size(root_attributes(root.group(0)), options.dpi, options.font_size)
        self._rasterize(resize_root(svg, root, 1, 1), options)
        logger.debug(f"Parsed SVG document of size {size[0]}x{size[1]}")
        return ResvgDocument(svg=svg, options=options, size=size)

    def query_size(self, document: ResvgDocument) -> tuple[float, float]:
        return float(document.size[0]), float(document.size[1])

    def render(
        self,
        document: ResvgDocument,
        width: int,
        height: int,
        transform: Transform,
        pixels: np.ndarray,
    ) -> None:
        check_raster_size(width, height)
        if transform.is_identity() and (width, height) == document.pixel_size:
            svg = document.svg
        else:
            svg = wrap_document(document, width, height, transform)
        layer = decode_raster(self._rasterize(svg, document.options))

        if layer.size != (width, height):
            logger.debug(f"Fitting raster of size {layer.size} to {width}x{height}")
            canvas = Image.new("RGBA", (width, height), (0, 0, 0, 0))
            canvas.paste(layer, (0, 0))
            layer = canvas

        base = Image.fromarray(pixels)
        base.alpha_composite(layer)
        pixels[...] = np.asarray(base)

    def destroy(self, document: ResvgDocument) -> None:
        document.svg = ""
