"""Scale resolution policy.

Turns a document's intrinsic size plus the requested width, height and fit
mode into concrete output dimensions and per-axis scale factors. The policy
is a pure function; it never touches the engine.
"""

import logging
import math
from typing import NamedTuple, Optional

from svgpix.errors import ErrorKind, ValidationError
from svgpix.options import FitMode

logger = logging.getLogger(__name__)


class IntrinsicSize(NamedTuple):
    """Document-declared size in document units."""

    width: float
    height: float

    def is_valid(self) -> bool:
        return _is_positive(self.width) and _is_positive(self.height)


class ResolvedGeometry(NamedTuple):
    """Output dimensions in pixels and the scale applied on each axis."""

    width: int
    height: int
    scale_x: float
    scale_y: float


def round_half_away_from_zero(value: float) -> int:
    """Round to the nearest integer, ties away from zero.

    Unlike the builtin ``round``, 0.5 rounds to 1 and 2.5 rounds to 3.
    """
    magnitude = abs(value)
    whole = math.floor(magnitude)
    if magnitude - whole >= 0.5:
        whole += 1
    return int(math.copysign(whole, value))


def _is_positive(value: float) -> bool:
    return math.isfinite(value) and value > 0


def _dimension(value: float, kind: ErrorKind) -> int:
    if not math.isfinite(value):
        raise ValidationError(kind, f"non-finite dimension {value!r}")
    rounded = round_half_away_from_zero(value)
    if rounded < 1:
        raise ValidationError(kind, f"{value!r} rounds to {rounded}")
    return rounded


def _check_target(value: Optional[int], kind: ErrorKind) -> None:
    if value is not None and value <= 0:
        raise ValidationError(kind, f"target must be positive, got {value!r}")


def resolve(
    intrinsic_width: float,
    intrinsic_height: float,
    width: Optional[int] = None,
    height: Optional[int] = None,
    fit_mode: FitMode = FitMode.NONE,
) -> ResolvedGeometry:
    """Resolve output dimensions and scale factors.

    Args:
        intrinsic_width: Document width in document units.
        intrinsic_height: Document height in document units.
        width: Requested output width, or None.
        height: Requested output height, or None.
        fit_mode: Policy for applying ``width`` and ``height``.

    Returns:
        ResolvedGeometry with dimensions >= 1 and positive finite scales.

    Raises:
        ValidationError: ``INVALID_DOCUMENT_SIZE`` for a degenerate intrinsic
            size, ``INVALID_WIDTH``/``INVALID_HEIGHT`` for a non-positive
            target or an output dimension that rounds to zero, and
            ``INVALID_SCALE_X``/``INVALID_SCALE_Y`` for an unusable scale.
    """
    iw, ih = float(intrinsic_width), float(intrinsic_height)
    if not (_is_positive(iw) and _is_positive(ih)):
        raise ValidationError(
            ErrorKind.INVALID_DOCUMENT_SIZE, f"intrinsic size {iw!r}x{ih!r}"
        )
    _check_target(width, ErrorKind.INVALID_WIDTH)
    _check_target(height, ErrorKind.INVALID_HEIGHT)
    fit_mode = FitMode(fit_mode)

    # Each branch yields unrounded output dimensions and the scales.
    out_w: float = iw
    out_h: float = ih
    scale_x = scale_y = 1.0
    if fit_mode is FitMode.NONE:
        if width is not None:
            out_w, scale_x = width, width / iw
        if height is not None:
            out_h, scale_y = height, height / ih
    elif fit_mode is FitMode.MIN_WIDTH:
        if width is not None and iw < width:
            scale_x = scale_y = width / iw
            out_w, out_h = width, ih * scale_y
    elif fit_mode is FitMode.MAX_WIDTH:
        if width is not None and iw > width:
            scale_x = scale_y = width / iw
            out_w, out_h = width, ih * scale_y
    elif fit_mode is FitMode.MIN_HEIGHT:
        if height is not None and ih < height:
            scale_x = scale_y = height / ih
            out_w, out_h = iw * scale_x, height
    elif fit_mode is FitMode.MAX_HEIGHT:
        if height is not None and ih > height:
            scale_x = scale_y = height / ih
            out_w, out_h = iw * scale_x, height
    elif fit_mode is FitMode.BEST_FIT:
        if width is not None and height is not None:
            scale_x = scale_y = min(width / iw, height / ih)
            out_w, out_h = iw * scale_x, ih * scale_y
        elif width is not None:
            scale_x = scale_y = width / iw
            out_w, out_h = width, ih * scale_y
        elif height is not None:
            scale_x = scale_y = height / ih
            out_w, out_h = iw * scale_x, height

    geometry = ResolvedGeometry(
        width=_dimension(out_w, ErrorKind.INVALID_WIDTH),
        height=_dimension(out_h, ErrorKind.INVALID_HEIGHT),
        scale_x=scale_x,
        scale_y=scale_y,
    )
    if not _is_positive(geometry.scale_x):
        raise ValidationError(ErrorKind.INVALID_SCALE_X, repr(geometry.scale_x))
    if not _is_positive(geometry.scale_y):
        raise ValidationError(ErrorKind.INVALID_SCALE_Y, repr(geometry.scale_y))
    logger.debug(
        f"Resolved {iw:g}x{ih:g} ({fit_mode.value}, width={width}, "
        f"height={height}) -> {geometry}"
    )
    return geometry
