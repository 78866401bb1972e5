"""Tests for ResourceLimits configuration.

This module tests:
- Default and unlimited limits
- Environment variable configuration
- Enforcement through Renderer
"""

import logging

import pytest

from svgpix import Renderer
from svgpix.errors import ErrorKind, ValidationError
from svgpix.options import RenderRequest
from svgpix.resource_limits import (
    DEFAULT_MAX_DOCUMENT_SIZE,
    DEFAULT_MAX_OUTPUT_DIMENSION,
    ResourceLimits,
)
from tests.conftest import FakeEngine


class TestResourceLimitsDefaults:
    """Tests for ResourceLimits default configuration."""

    def test_default_limits(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test default ResourceLimits values."""
        monkeypatch.delenv("SVGPIX_MAX_DOCUMENT_SIZE", raising=False)
        monkeypatch.delenv("SVGPIX_MAX_OUTPUT_DIMENSION", raising=False)
        limits = ResourceLimits.default()
        assert limits.max_document_size == DEFAULT_MAX_DOCUMENT_SIZE
        assert limits.max_output_dimension == DEFAULT_MAX_OUTPUT_DIMENSION

    def test_unlimited_limits(self) -> None:
        """Test ResourceLimits.unlimited() disables all limits."""
        limits = ResourceLimits.unlimited()
        assert limits.max_document_size == 0
        assert limits.max_output_dimension == 0
        assert not limits.is_document_size_limited()
        assert not limits.is_output_dimension_limited()

    def test_custom_limits(self) -> None:
        limits = ResourceLimits(max_document_size=1024, max_output_dimension=8192)
        assert limits.is_document_size_limited()
        assert limits.is_output_dimension_limited()


class TestResourceLimitsEnvironment:
    """Tests for ResourceLimits.default() environment handling."""

    def test_environment_variable_configuration(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SVGPIX_MAX_DOCUMENT_SIZE", "1048576")
        monkeypatch.setenv("SVGPIX_MAX_OUTPUT_DIMENSION", "4096")
        limits = ResourceLimits.default()
        assert limits.max_document_size == 1048576
        assert limits.max_output_dimension == 4096

    def test_invalid_environment_variable(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SVGPIX_MAX_OUTPUT_DIMENSION", "large")
        with pytest.raises(ValueError, match="SVGPIX_MAX_OUTPUT_DIMENSION"):
            ResourceLimits.default()

    def test_negative_environment_variable(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        monkeypatch.setenv("SVGPIX_MAX_DOCUMENT_SIZE", "-1")
        with caplog.at_level(logging.WARNING):
            limits = ResourceLimits.default()
        assert limits.max_document_size == 0
        assert "negative" in caplog.text


class TestResourceLimitsEnforcement:
    """Tests for limits applied by Renderer."""

    def test_document_size(self, fake_engine: FakeEngine) -> None:
        renderer = Renderer(
            engine=fake_engine, limits=ResourceLimits(max_document_size=10)
        )
        with pytest.raises(ValidationError) as excinfo:
            renderer.render(b"<svg>" + b" " * 10 + b"</svg>")
        assert excinfo.value.kind is ErrorKind.DOCUMENT_TOO_LARGE
        assert renderer.render(b"<svg/>").size == (400, 180)

    def test_output_dimension(self, fake_engine: FakeEngine) -> None:
        renderer = Renderer(
            engine=fake_engine, limits=ResourceLimits(max_output_dimension=1000)
        )
        with pytest.raises(ValidationError) as excinfo:
            renderer.render(b"<svg/>", RenderRequest(width=1001))
        assert excinfo.value.kind is ErrorKind.OUTPUT_TOO_LARGE
        assert renderer.render(b"<svg/>", RenderRequest(width=1000)).size == (1000, 180)
        fake_engine.assert_all_released()
