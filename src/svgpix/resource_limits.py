"""Resource limits for DoS prevention.

This module provides configurable ceilings on input size and output
dimensions so that hostile documents or requests cannot exhaust memory.
"""

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_MAX_DOCUMENT_SIZE = 268435456  # 256MB
DEFAULT_MAX_OUTPUT_DIMENSION = 32767


@dataclass
class ResourceLimits:
    """Resource limits for rendering operations.

    These limits constrain:
    - Document size in bytes (checked before parsing)
    - Output width and height in pixels (checked before buffer allocation)

    Limits can be configured via environment variables or constructor parameters.
    A value of 0 disables the corresponding limit.

    Environment variables:
        SVGPIX_MAX_DOCUMENT_SIZE: Maximum document size in bytes
            (default: 268435456 = 256MB)
        SVGPIX_MAX_OUTPUT_DIMENSION: Maximum output width or height in pixels
            (default: 32767)

    Example:
        >>> limits = ResourceLimits.default()
        >>> limits = ResourceLimits(max_output_dimension=4096)
        >>> limits = ResourceLimits(max_document_size=0)  # No size limit
    """

    max_document_size: int = DEFAULT_MAX_DOCUMENT_SIZE
    max_output_dimension: int = DEFAULT_MAX_OUTPUT_DIMENSION

    @classmethod
    def default(cls) -> "ResourceLimits":
        """Create ResourceLimits from environment variables.

        Raises:
            ValueError: If an environment variable is not a valid integer.

        Note:
            Negative values are treated as 0 (disabled limit) with a warning.
        """

        def parse_env_int(key: str, default: int) -> int:
            value_str = os.environ.get(key)
            if value_str is None:
                return default

            try:
                value = int(value_str)
            except ValueError as e:
                raise ValueError(
                    f"Environment variable {key}={value_str!r} is not a valid integer"
                ) from e

            if value < 0:
                logger.warning(
                    f"Environment variable {key}={value} is negative, "
                    f"treating as 0 (disabled limit). "
                    f"Consider using ResourceLimits.unlimited() instead."
                )
                return 0

            return value

        return cls(
            max_document_size=parse_env_int(
                "SVGPIX_MAX_DOCUMENT_SIZE", DEFAULT_MAX_DOCUMENT_SIZE
            ),
            max_output_dimension=parse_env_int(
                "SVGPIX_MAX_OUTPUT_DIMENSION", DEFAULT_MAX_OUTPUT_DIMENSION
            ),
        )

    @classmethod
    def unlimited(cls) -> "ResourceLimits":
        """Create ResourceLimits with all limits disabled.

        Warning:
            Only use this for trusted documents.
        """
        return cls(max_document_size=0, max_output_dimension=0)

    def is_document_size_limited(self) -> bool:
        """Check if the document size limit is enabled."""
        return self.max_document_size > 0

    def is_output_dimension_limited(self) -> bool:
        """Check if the output dimension limit is enabled."""
        return self.max_output_dimension > 0
