"""Tests for rendering configuration."""

import dataclasses

import pytest

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
    parse_color,
)


class TestRenderOptionsBuilder:
    """Tests for RenderOptionsBuilder."""

    def test_defaults(self) -> None:
        options = RenderOptionsBuilder().build()
        assert options == RenderOptions()
        assert options.load_system_fonts is True
        assert options.dpi is None
        assert options.languages == ()
        assert options.shape_rendering is ShapeRendering.NOT_SET
        assert options.text_rendering is TextRendering.NOT_SET
        assert options.image_rendering is ImageRendering.NOT_SET

    def test_setters(self) -> None:
        options = (
            RenderOptions.builder()
            .with_load_system_fonts(False)
            .with_resources_dir("/tmp/resources")
            .with_dpi(300)
            .with_font_family("Noto Serif", GenericFamily.SERIF)
            .with_font_family("Noto Sans")
            .with_font_size(14)
            .with_languages("en", "ja")
            .with_shape_rendering(ShapeRendering.CRISP_EDGES)
            .with_text_rendering(TextRendering.OPTIMIZE_LEGIBILITY)
            .with_image_rendering(ImageRendering.OPTIMIZE_SPEED)
            .with_fonts(b"font-a", b"font-b")
            .with_font_files("/fonts/a.ttf")
            .build()
        )
        assert options.load_system_fonts is False
        assert options.resources_dir == "/tmp/resources"
        assert options.dpi == 300.0
        assert options.serif_family == "Noto Serif"
        assert options.font_family == "Noto Sans"
        assert options.font_size == 14.0
        assert options.languages == ("en", "ja")
        assert options.shape_rendering is ShapeRendering.CRISP_EDGES
        assert options.text_rendering is TextRendering.OPTIMIZE_LEGIBILITY
        assert options.image_rendering is ImageRendering.OPTIMIZE_SPEED
        assert options.fonts == (b"font-a", b"font-b")
        assert options.font_files == ("/fonts/a.ttf",)

    def test_later_setter_overrides_earlier(self) -> None:
        options = (
            RenderOptionsBuilder()
            .with_dpi(72)
            .with_languages("fr")
            .with_dpi(144)
            .with_languages("de", "en")
            .build()
        )
        assert options.dpi == 144.0
        assert options.languages == ("de", "en")

    def test_apply_in_call_order(self) -> None:
        calls = []

        def first(builder: RenderOptionsBuilder) -> None:
            calls.append("first")
            builder.with_font_size(10)

        def second(builder: RenderOptionsBuilder) -> None:
            calls.append("second")
            builder.with_font_size(20)

        options = RenderOptionsBuilder().apply(first, second).build()
        assert calls == ["first", "second"]
        assert options.font_size == 20.0

    def test_options_are_frozen(self) -> None:
        options = RenderOptionsBuilder().build()
        with pytest.raises(dataclasses.FrozenInstanceError):
            options.dpi = 10  # type: ignore[misc]

    def test_building_twice_gives_independent_values(self) -> None:
        builder = RenderOptionsBuilder().with_dpi(72)
        first = builder.build()
        builder.with_dpi(96)
        assert first.dpi == 72.0
        assert builder.build().dpi == 96.0

    def test_family_overrides(self) -> None:
        options = (
            RenderOptionsBuilder()
            .with_font_family("Mono", GenericFamily.MONOSPACE)
            .with_font_family("Fancy", GenericFamily.FANTASY)
            .with_font_family("", GenericFamily.CURSIVE)
            .build()
        )
        assert options.family_overrides() == [
            (GenericFamily.FANTASY, "Fancy"),
            (GenericFamily.MONOSPACE, "Mono"),
        ]


class TestRenderRequest:
    """Tests for RenderRequest normalization."""

    def test_defaults(self) -> None:
        request = RenderRequest()
        assert request.width is None
        assert request.height is None
        assert request.fit_mode is FitMode.NONE
        assert request.transform is None
        assert request.background == (0, 0, 0, 0)

    def test_background_color_names(self) -> None:
        assert RenderRequest(background="white").background == (255, 255, 255, 255)
        assert RenderRequest(background="#ff000080").background == (255, 0, 0, 128)

    def test_background_tuple(self) -> None:
        assert RenderRequest(background=(1, 2, 3)).background == (1, 2, 3, 255)  # type: ignore[arg-type]

    def test_transform_normalized(self) -> None:
        request = RenderRequest(transform=(2, 0, 0, 2, 10, 20))  # type: ignore[arg-type]
        assert request.transform == Transform(2.0, 0.0, 0.0, 2.0, 10.0, 20.0)
        assert isinstance(request.transform, Transform)

    def test_transform_needs_six_components(self) -> None:
        with pytest.raises(ValueError):
            RenderRequest(transform=(1, 0, 0, 1))  # type: ignore[arg-type]

    def test_fit_mode_from_value(self) -> None:
        assert RenderRequest(fit_mode="best-fit").fit_mode is FitMode.BEST_FIT  # type: ignore[arg-type]

    @pytest.mark.parametrize("width", [1.5, "100", True])
    def test_width_must_be_int(self, width: object) -> None:
        with pytest.raises(TypeError):
            RenderRequest(width=width)  # type: ignore[arg-type]


class TestParseColor:
    """Tests for parse_color()."""

    def test_invalid_name(self) -> None:
        with pytest.raises(ValueError):
            parse_color("not-a-color")

    @pytest.mark.parametrize("color", [(1, 2), (0, 0, 0, 256), (-1, 0, 0)])
    def test_invalid_tuple(self, color: tuple[int, ...]) -> None:
        with pytest.raises(ValueError):
            parse_color(color)


class TestTransform:
    """Tests for Transform."""

    def test_identity(self) -> None:
        assert Transform.identity() == (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)
        assert Transform.identity().is_identity()

    def test_scale(self) -> None:
        transform = Transform.scale(0.5, 2.0)
        assert transform == (0.5, 0.0, 0.0, 2.0, 0.0, 0.0)
        assert not transform.is_identity()
