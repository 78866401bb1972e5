import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

import numpy as np

from svgpix.options import (
    GenericFamily,
    ImageRendering,
    ShapeRendering,
    TextRendering,
    Transform,
)

logger = logging.getLogger(__name__)


class NativeError(Exception):
    """Failure reported by an engine as a raw integer status code."""

    def __init__(self, code: int, message: Optional[str] = None) -> None:
        self.code = code
        self.message = message
        super().__init__(f"native status {code}" + (f": {message}" if message else ""))


class BaseEngine(ABC):
    """Base class for rasterization engine bindings.

    An engine exposes two kinds of opaque handles. The options handle is
    created by ``create_options``, configured through the setters and destroyed
    with ``destroy_options``. The document handle is returned by ``parse`` and
    must be passed to ``destroy`` exactly once; it must not be used afterwards.

    ``render`` composites onto the existing contents of ``pixels``, a
    ``(height, width, 4)`` uint8 array in straight RGBA. It does not clear it.
    """

    @abstractmethod
    def version(self) -> str:
        """Return the version string of the underlying renderer."""
        raise NotImplementedError

    @abstractmethod
    def create_options(self) -> Any:
        """Allocate a fresh options handle."""
        raise NotImplementedError

    @abstractmethod
    def destroy_options(self, options: Any) -> None:
        raise NotImplementedError

    @abstractmethod
    def load_system_fonts(self, options: Any) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_resources_dir(self, options: Any, path: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_dpi(self, options: Any, dpi: float) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_font_family(
        self, options: Any, generic: GenericFamily, family: str
    ) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_font_size(self, options: Any, size: float) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_languages(self, options: Any, languages: Sequence[str]) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_shape_rendering(self, options: Any, mode: ShapeRendering) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_text_rendering(self, options: Any, mode: TextRendering) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_image_rendering(self, options: Any, mode: ImageRendering) -> None:
        raise NotImplementedError

    @abstractmethod
    def load_font_data(self, options: Any, data: bytes) -> None:
        raise NotImplementedError

    @abstractmethod
    def load_font_file(self, options: Any, path: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def parse(self, data: bytes, options: Any) -> Any:
        """Parse a document and return its handle.

        Raises:
            NativeError: If the engine rejects the document.
        """
        raise NotImplementedError

    @abstractmethod
    def query_size(self, document: Any) -> tuple[float, float]:
        """Return the intrinsic (width, height) of a parsed document."""
        raise NotImplementedError

    @abstractmethod
    def render(
        self,
        document: Any,
        width: int,
        height: int,
        transform: Transform,
        pixels: np.ndarray,
    ) -> None:
        """Rasterize at ``width`` x ``height`` under ``transform``.

        Raises:
            NativeError: If the engine fails to rasterize the document.
            ValidationError: If the raster is too large to decode.
        """
        raise NotImplementedError

    @abstractmethod
    def destroy(self, document: Any) -> None:
        raise NotImplementedError
