"""Pillow image plugin for SVG.

Importing ``svgpix`` registers the ``SVG`` format with Pillow, so
``Image.open`` accepts SVG files. Opening only reads
the intrinsic size; the document is rendered with the default renderer when
the pixels are first accessed.

Example:
    >>> import svgpix
    >>> from PIL import Image
    >>> with Image.open("input.svg") as image:
    ...     image.size
    (400, 180)
"""

import logging
from typing import Any, Optional

from PIL import Image, ImageFile

from svgpix.errors import RenderError
from svgpix.geometry import resolve
from svgpix.renderer import default_renderer

logger = logging.getLogger(__name__)

SIGNATURES = (b"<?xml", b"<svg")


def _accept(prefix: bytes) -> bool:
    return prefix.startswith(SIGNATURES)


class SvgImageFile(ImageFile.ImageFile):
    """Pillow image file backed by svgpix rendering."""

    format = "SVG"
    format_description = "Scalable Vector Graphics"

    _svg_data: Optional[bytes] = None

    def _open(self) -> None:
        data = self.fp.read()
        try:
            size = default_renderer().query_intrinsic_size(data)
            geometry = resolve(size.width, size.height)
        except RenderError as e:
            # Lets Image.open try the remaining formats.
            raise SyntaxError(f"not a renderable SVG document: {e}") from e
        self._svg_data = data
        self._mode = "RGBA"
        self._size = (geometry.width, geometry.height)
        self.info["intrinsic_size"] = (size.width, size.height)
        self.tile = []

    def load(self) -> Any:
        if self._svg_data is not None:
            data, self._svg_data = self._svg_data, None
            logger.debug(f"Rendering SVG image of size {self.size}")
            self.im = default_renderer().render(data).to_pil().im
        return super().load()


Image.register_open(SvgImageFile.format, SvgImageFile, _accept)
Image.register_extensions(SvgImageFile.format, [".svg"])
Image.register_mime(SvgImageFile.format, "image/svg+xml")
