"""Rendering configuration.

``RenderOptions`` holds everything the engine needs to parse a document
(fonts, DPI, quality modes, resources), and is frozen once built.
``RenderRequest`` holds the per-call output parameters (target size, fit mode,
transform and background).

Example:
    >>> options = (
    ...     RenderOptionsBuilder()
    ...     .with_dpi(150)
    ...     .with_font_family("Noto Sans", GenericFamily.SANS_SERIF)
    ...     .with_languages("en", "ja")
    ...     .build()
    ... )
    >>> request = RenderRequest(width=300, fit_mode=FitMode.BEST_FIT)
"""

import dataclasses
import enum
import logging
from typing import Any, Callable, NamedTuple, Optional, Sequence, Union

from PIL import ImageColor

logger = logging.getLogger(__name__)

RGBA = tuple[int, int, int, int]
ColorLike = Union[str, Sequence[int]]

TRANSPARENT: RGBA = (0, 0, 0, 0)


class ShapeRendering(enum.IntEnum):
    """Shape rendering mode."""

    OPTIMIZE_SPEED = 0
    CRISP_EDGES = 1
    GEOMETRIC_PRECISION = 2
    NOT_SET = 0xFF


class TextRendering(enum.IntEnum):
    """Text rendering mode."""

    OPTIMIZE_SPEED = 0
    OPTIMIZE_LEGIBILITY = 1
    GEOMETRIC_PRECISION = 2
    NOT_SET = 0xFF


class ImageRendering(enum.IntEnum):
    """Image rendering mode."""

    OPTIMIZE_QUALITY = 0
    OPTIMIZE_SPEED = 1
    NOT_SET = 0xFF


class GenericFamily(enum.Enum):
    """Generic font families that can be overridden."""

    DEFAULT = "default"
    SERIF = "serif"
    SANS_SERIF = "sans-serif"
    CURSIVE = "cursive"
    FANTASY = "fantasy"
    MONOSPACE = "monospace"


class FitMode(enum.Enum):
    """How a requested width/height turns into output dimensions."""

    NONE = "none"
    MIN_WIDTH = "min-width"
    MAX_WIDTH = "max-width"
    MIN_HEIGHT = "min-height"
    MAX_HEIGHT = "max-height"
    BEST_FIT = "best-fit"


class Transform(NamedTuple):
    """Affine transform ``[a c e; b d f; 0 0 1]``."""

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0

    @classmethod
    def identity(cls) -> "Transform":
        return cls()

    @classmethod
    def scale(cls, sx: float, sy: float) -> "Transform":
        """Scale-only transform with no rotation, skew or translation."""
        return cls(a=sx, d=sy)

    def is_identity(self) -> bool:
        return self == Transform.identity()


_FAMILY_FIELDS: dict[GenericFamily, str] = {
    GenericFamily.DEFAULT: "font_family",
    GenericFamily.SERIF: "serif_family",
    GenericFamily.SANS_SERIF: "sans_serif_family",
    GenericFamily.CURSIVE: "cursive_family",
    GenericFamily.FANTASY: "fantasy_family",
    GenericFamily.MONOSPACE: "monospace_family",
}


def parse_color(color: ColorLike) -> RGBA:
    """Normalize a color specification to an RGBA tuple.

    Accepts any string Pillow understands (``"white"``, ``"#ff000080"``,
    ``"rgb(0, 0, 255)"``) or a 3- or 4-component integer sequence.
    """
    if isinstance(color, str):
        r, g, b, a = ImageColor.getcolor(color, "RGBA")  # type: ignore[misc]
        return (r, g, b, a)
    values = tuple(int(v) for v in color)
    if len(values) == 3:
        values = values + (255,)
    if len(values) != 4 or any(v < 0 or v > 255 for v in values):
        raise ValueError(f"Invalid color: {color!r}")
    return (values[0], values[1], values[2], values[3])


@dataclasses.dataclass(frozen=True)
class RenderOptions:
    """Frozen engine options for one renderer instance."""

    load_system_fonts: bool = True
    resources_dir: Optional[str] = None
    dpi: Optional[float] = None
    font_family: Optional[str] = None
    serif_family: Optional[str] = None
    sans_serif_family: Optional[str] = None
    cursive_family: Optional[str] = None
    fantasy_family: Optional[str] = None
    monospace_family: Optional[str] = None
    font_size: Optional[float] = None
    languages: tuple[str, ...] = ()
    shape_rendering: ShapeRendering = ShapeRendering.NOT_SET
    text_rendering: TextRendering = TextRendering.NOT_SET
    image_rendering: ImageRendering = ImageRendering.NOT_SET
    fonts: tuple[bytes, ...] = ()
    font_files: tuple[str, ...] = ()

    @classmethod
    def builder(cls) -> "RenderOptionsBuilder":
        return RenderOptionsBuilder()

    def family_overrides(self) -> list[tuple[GenericFamily, str]]:
        """Return the generic families that have a non-empty override."""
        overrides = []
        for generic, field in _FAMILY_FIELDS.items():
            family = getattr(self, field)
            if family:
                overrides.append((generic, family))
        return overrides


class RenderOptionsBuilder:
    """Mutable builder for ``RenderOptions``.

    Setters may be called in any order; a later call for the same field
    replaces the earlier value.
    """

    def __init__(self) -> None:
        self._fields: dict[str, Any] = {}

    def apply(
        self, *options: Callable[["RenderOptionsBuilder"], object]
    ) -> "RenderOptionsBuilder":
        """Apply option functions in call order."""
        for option in options:
            option(self)
        return self

    def with_load_system_fonts(self, load: bool) -> "RenderOptionsBuilder":
        self._fields["load_system_fonts"] = bool(load)
        return self

    def with_resources_dir(self, path: Optional[str]) -> "RenderOptionsBuilder":
        self._fields["resources_dir"] = str(path) if path else None
        return self

    def with_dpi(self, dpi: Optional[float]) -> "RenderOptionsBuilder":
        self._fields["dpi"] = float(dpi) if dpi else None
        return self

    def with_font_family(
        self, family: Optional[str], generic: GenericFamily = GenericFamily.DEFAULT
    ) -> "RenderOptionsBuilder":
        """Override the family used for a generic family name."""
        self._fields[_FAMILY_FIELDS[generic]] = family or None
        return self

    def with_font_size(self, size: Optional[float]) -> "RenderOptionsBuilder":
        self._fields["font_size"] = float(size) if size else None
        return self

    def with_languages(self, *languages: str) -> "RenderOptionsBuilder":
        self._fields["languages"] = tuple(languages)
        return self

    def with_shape_rendering(self, mode: ShapeRendering) -> "RenderOptionsBuilder":
        self._fields["shape_rendering"] = ShapeRendering(mode)
        return self

    def with_text_rendering(self, mode: TextRendering) -> "RenderOptionsBuilder":
        self._fields["text_rendering"] = TextRendering(mode)
        return self

    def with_image_rendering(self, mode: ImageRendering) -> "RenderOptionsBuilder":
        self._fields["image_rendering"] = ImageRendering(mode)
        return self

    def with_fonts(self, *fonts: bytes) -> "RenderOptionsBuilder":
        """Set font blobs (TTF/OTF/TTC data) to load."""
        self._fields["fonts"] = tuple(bytes(font) for font in fonts)
        return self

    def with_font_files(self, *paths: str) -> "RenderOptionsBuilder":
        self._fields["font_files"] = tuple(str(path) for path in paths)
        return self

    def build(self) -> RenderOptions:
        return RenderOptions(**self._fields)


@dataclasses.dataclass(frozen=True)
class RenderRequest:
    """Per-call output parameters.

    Attributes:
        width: Target width in pixels, or None.
        height: Target height in pixels, or None.
        fit_mode: How width/height constrain the output.
        transform: Explicit transform; overrides the computed scale.
        background: Fill color, normalized to RGBA. Fully transparent by default.
    """

    width: Optional[int] = None
    height: Optional[int] = None
    fit_mode: FitMode = FitMode.NONE
    transform: Optional[Transform] = None
    background: RGBA = TRANSPARENT

    def __post_init__(self) -> None:
        for name in ("width", "height"):
            value = getattr(self, name)
            if value is not None and (
                isinstance(value, bool) or not isinstance(value, int)
            ):
                raise TypeError(f"{name} must be an int or None, got {value!r}")
        object.__setattr__(self, "fit_mode", FitMode(self.fit_mode))
        if self.transform is not None:
            if len(self.transform) != 6:
                raise ValueError(
                    f"transform must have 6 components, got {len(self.transform)}"
                )
            object.__setattr__(
                self, "transform", Transform(*(float(v) for v in self.transform))
            )
        object.__setattr__(self, "background", parse_color(self.background))
