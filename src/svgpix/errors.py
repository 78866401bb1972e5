"""Error taxonomy for SVG rendering.

Engine status codes are translated 1:1 into caller-facing error kinds. Kinds
raised locally (configuration and geometry validation) share the same
``ErrorKind`` enumeration so callers can branch on a single attribute.
"""

import enum
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class NativeStatus(enum.IntEnum):
    """Status codes reported by the resvg parser."""

    OK = 0
    NOT_AN_UTF8_STR = 1
    FILE_OPEN_FAILED = 2
    MALFORMED_GZIP = 3
    ELEMENTS_LIMIT_REACHED = 4
    INVALID_SIZE = 5
    PARSING_FAILED = 6


class ErrorKind(enum.Enum):
    """Caller-visible error kinds."""

    OK = "ok"
    NOT_UTF8_TEXT = "not_utf8_text"
    FILE_OPEN_FAILED = "file_open_failed"
    MALFORMED_COMPRESSION = "malformed_compression"
    ELEMENT_LIMIT_REACHED = "element_limit_reached"
    INVALID_SIZE = "invalid_size"
    PARSING_FAILED = "parsing_failed"
    UNKNOWN_NATIVE_ERROR = "unknown_native_error"
    OPTIONS_NOT_INITIALIZED = "options_not_initialized"
    INVALID_DOCUMENT_SIZE = "invalid_document_size"
    INVALID_WIDTH = "invalid_width"
    INVALID_HEIGHT = "invalid_height"
    INVALID_SCALE_X = "invalid_scale_x"
    INVALID_SCALE_Y = "invalid_scale_y"
    DOCUMENT_TOO_LARGE = "document_too_large"
    OUTPUT_TOO_LARGE = "output_too_large"


NATIVE_STATUS_KINDS: dict[NativeStatus, ErrorKind] = {
    NativeStatus.OK: ErrorKind.OK,
    NativeStatus.NOT_AN_UTF8_STR: ErrorKind.NOT_UTF8_TEXT,
    NativeStatus.FILE_OPEN_FAILED: ErrorKind.FILE_OPEN_FAILED,
    NativeStatus.MALFORMED_GZIP: ErrorKind.MALFORMED_COMPRESSION,
    NativeStatus.ELEMENTS_LIMIT_REACHED: ErrorKind.ELEMENT_LIMIT_REACHED,
    NativeStatus.INVALID_SIZE: ErrorKind.INVALID_SIZE,
    NativeStatus.PARSING_FAILED: ErrorKind.PARSING_FAILED,
}

_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.OK: "OK",
    ErrorKind.NOT_UTF8_TEXT: "only UTF-8 content are supported",
    ErrorKind.FILE_OPEN_FAILED: "failed to open the provided file",
    ErrorKind.MALFORMED_COMPRESSION: "compressed SVG must use the GZip algorithm",
    ErrorKind.ELEMENT_LIMIT_REACHED: (
        "SVG with more than 1_000_000 elements is not allowed for security reasons"
    ),
    ErrorKind.INVALID_SIZE: "SVG doesn't have a valid size",
    ErrorKind.PARSING_FAILED: "failed to parse SVG data",
    ErrorKind.UNKNOWN_NATIVE_ERROR: "unknown native error",
    ErrorKind.OPTIONS_NOT_INITIALIZED: "options not initialized",
    ErrorKind.INVALID_DOCUMENT_SIZE: "invalid width or height",
    ErrorKind.INVALID_WIDTH: "invalid width",
    ErrorKind.INVALID_HEIGHT: "invalid height",
    ErrorKind.INVALID_SCALE_X: "invalid x scale",
    ErrorKind.INVALID_SCALE_Y: "invalid y scale",
    ErrorKind.DOCUMENT_TOO_LARGE: "document exceeds the maximum size",
    ErrorKind.OUTPUT_TOO_LARGE: "output exceeds the maximum dimension",
}


class RenderError(Exception):
    """Base class for all rendering failures.

    Attributes:
        kind: The ``ErrorKind`` describing the failure.
    """

    def __init__(self, kind: ErrorKind, detail: Optional[str] = None) -> None:
        self.kind = kind
        self.detail = detail
        message = _MESSAGES[kind]
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ConfigurationError(RenderError):
    """Renderer options could not be built, or the renderer is closed."""

    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__(ErrorKind.OPTIONS_NOT_INITIALIZED, detail)


class ParseError(RenderError):
    """The engine rejected the document.

    Attributes:
        code: Raw native status code, kept for diagnostics.
    """

    def __init__(self, kind: ErrorKind, code: int, detail: Optional[str] = None):
        self.code = code
        if kind is ErrorKind.UNKNOWN_NATIVE_ERROR:
            detail = f"code {code}" if detail is None else f"code {code}, {detail}"
        super().__init__(kind, detail)


class ValidationError(RenderError, ValueError):
    """Geometry or limit validation failed before any buffer was allocated."""


def error_from_status(code: int, detail: Optional[str] = None) -> Optional[ParseError]:
    """Translate a native status code into a ``ParseError``.

    Args:
        code: Integer status reported by the engine.
        detail: Optional engine message to attach.

    Returns:
        ``None`` for ``NativeStatus.OK``, otherwise the matching ``ParseError``.
        Unrecognized codes map to ``ErrorKind.UNKNOWN_NATIVE_ERROR``.

    Raises:
        TypeError: If ``code`` is not an integer status. This is a contract
            violation by the engine adapter, not a data-dependent failure.
    """
    if isinstance(code, bool) or not isinstance(code, int):
        raise TypeError(f"invalid native status type: {type(code).__name__}")
    try:
        status = NativeStatus(code)
    except ValueError:
        logger.debug(f"Unrecognized native status code {code}")
        return ParseError(ErrorKind.UNKNOWN_NATIVE_ERROR, code, detail)
    if status is NativeStatus.OK:
        return None
    return ParseError(NATIVE_STATUS_KINDS[status], int(status), detail)
