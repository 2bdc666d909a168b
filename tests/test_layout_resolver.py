"""
Tests for layout settings resolution.
"""

import pytest
from pydantic import ValidationError

from carousel.models import (
    CarouselStyle,
    ContentLayout,
    FontStyle,
    GlobalSettings,
    LayoutSettings,
    Slide,
    TextAlignment,
    Theme,
)
from carousel.services.layout_resolver import coalesce, resolve_layout


def test_override_precedence():
    """Per-slide beats global beats hard default."""
    both = GlobalSettings(layout_settings=LayoutSettings(content_padding=80))
    assert resolve_layout(Slide(id="a", content_padding=40), both).content_padding == 40
    assert resolve_layout(Slide(id="a"), both).content_padding == 80
    assert resolve_layout(Slide(id="a"), GlobalSettings()).content_padding == 64


def test_zero_is_a_real_override():
    settings = GlobalSettings(layout_settings=LayoutSettings(content_padding=80, image_margin=12))
    resolved = resolve_layout(Slide(id="a", content_padding=0, image_margin=0), settings)
    assert resolved.content_padding == 0
    assert resolved.image_margin == 0


def test_precedence_for_text_settings():
    settings = GlobalSettings(
        font_scale=1.2,
        layout_settings=LayoutSettings(text_line_height=1.8, text_alignment=TextAlignment.CENTER),
    )
    resolved = resolve_layout(Slide(id="a", text_alignment=TextAlignment.RIGHT), settings)
    assert resolved.font_scale == 1.2
    assert resolved.line_height == 1.8
    assert resolved.text_alignment == TextAlignment.RIGHT


def test_defaults_without_global_settings():
    resolved = resolve_layout(Slide(id="a"))
    assert resolved.style == CarouselStyle.TWITTER
    assert resolved.theme == Theme.LIGHT
    assert resolved.line_height == 1.5
    assert resolved.paragraph_gap == 1
    assert resolved.text_alignment == TextAlignment.LEFT
    assert resolved.font_family == "Montserrat"
    assert resolved.overlay_image is True
    assert resolved.content_layout == ContentLayout.DEFAULT
    assert resolved.gradient_height == 60
    assert resolved.gradient_opacity == 1.0


def test_image_scale_default_depends_on_template():
    slide = Slide(id="a")
    assert resolve_layout(slide, GlobalSettings(style=CarouselStyle.TWITTER)).image_scale == 50
    assert resolve_layout(slide, GlobalSettings(style=CarouselStyle.STORYTELLER)).image_scale == 45
    assert resolve_layout(Slide(id="a", image_scale=70), GlobalSettings()).image_scale == 70


def test_slide_theme_and_font_override_global():
    settings = GlobalSettings(theme=Theme.DARK, font_style=FontStyle.SERIF)
    assert resolve_layout(Slide(id="a"), settings).font_family == "PlayfairDisplay"
    resolved = resolve_layout(Slide(id="a", theme=Theme.LIGHT, font_style=FontStyle.TECH), settings)
    assert resolved.theme == Theme.LIGHT
    assert resolved.font_family == "JetBrainsMono"


def test_unknown_content_layout_uses_default():
    resolved = resolve_layout(Slide(id="a", content_layout="diagonal"))
    assert resolved.content_layout == ContentLayout.DEFAULT
    resolved = resolve_layout(Slide(id="a", content_layout="image-first"))
    assert resolved.content_layout == ContentLayout.IMAGE_FIRST


def test_split_mode_only_when_overlay_is_false():
    assert resolve_layout(Slide(id="a", overlay_image=False)).overlay_image is False
    assert resolve_layout(Slide(id="a", overlay_image=True)).overlay_image is True


def test_background_needs_a_url():
    """Text color override only applies while a background image is shown."""
    no_url = resolve_layout(Slide(id="a", show_background_image=True, background_text_color="#FF0000"))
    assert no_url.show_background is False
    assert no_url.text_color_override is None

    with_url = resolve_layout(Slide(
        id="a",
        show_background_image=True,
        background_image_url="https://example.com/bg.jpg",
        background_text_color="#FF0000",
        background_overlay_opacity=30,
    ))
    assert with_url.show_background is True
    assert with_url.text_color_override == "#FF0000"
    assert with_url.background_overlay_opacity == 30
    assert with_url.background_overlay_color == "#FFFFFF"


def test_accent_hidden_when_disabled():
    assert resolve_layout(Slide(id="a"), GlobalSettings(accent_color="#FF5500")).accent_color == "#FF5500"
    settings = GlobalSettings(accent_color="#FF5500", show_accent=False)
    assert resolve_layout(Slide(id="a"), settings).accent_color is None


def test_resolve_is_idempotent():
    slide = Slide(id="a", image_scale=30, content_layout="image-after-title")
    settings = GlobalSettings(style=CarouselStyle.LESSON, theme=Theme.DARK)
    assert resolve_layout(slide, settings) == resolve_layout(slide, settings)


def test_camel_case_payload():
    slide = Slide.model_validate({"id": "a", "contentPadding": 40, "showImage": True})
    assert resolve_layout(slide).content_padding == 40


def test_coalesce():
    assert coalesce(None, 0, 5) == 0
    assert coalesce(None, None) is None
    assert coalesce(False, True) is False


@pytest.mark.parametrize(
    "field,resolved_field,global_value,slide_value,default",
    [
        ("content_padding", "content_padding", 80, 40, 64),
        ("image_canvas_offset", "image_canvas_offset", 24, -12, 0),
        ("image_margin", "image_margin", 16, 4, 0),
        ("text_line_height", "line_height", 1.8, 1.2, 1.5),
        ("paragraph_gap", "paragraph_gap", 2, 0.5, 1),
        ("text_alignment", "text_alignment", TextAlignment.CENTER, TextAlignment.RIGHT, TextAlignment.LEFT),
    ],
)
def test_layout_settings_cascade(field, resolved_field, global_value, slide_value, default):
    """Every global layout setting cascades slide -> global -> default."""
    with_global = GlobalSettings(layout_settings=LayoutSettings(**{field: global_value}))

    assert getattr(resolve_layout(Slide(id="a", **{field: slide_value}), with_global), resolved_field) == slide_value
    assert getattr(resolve_layout(Slide(id="a"), with_global), resolved_field) == global_value
    assert getattr(resolve_layout(Slide(id="a"), GlobalSettings()), resolved_field) == default


@pytest.mark.parametrize(
    "field,global_value,slide_value,default",
    [
        ("font_scale", 1.2, 0.8, 1.0),
        ("font_style", FontStyle.SERIF, FontStyle.TECH, FontStyle.MODERN),
        ("theme", Theme.DARK, Theme.LIGHT, Theme.LIGHT),
    ],
)
def test_global_settings_cascade(field, global_value, slide_value, default):
    with_global = GlobalSettings(**{field: global_value})

    assert getattr(resolve_layout(Slide(id="a", **{field: slide_value}), with_global), field) == slide_value
    assert getattr(resolve_layout(Slide(id="a"), with_global), field) == global_value
    assert getattr(resolve_layout(Slide(id="a")), field) == default


def test_image_scale_range():
    """Image scale stays within 10-90 so an image region never collapses."""
    for value in (0, 5, 95):
        with pytest.raises(ValidationError):
            Slide(id="a", image_scale=value)
    assert resolve_layout(Slide(id="a", image_scale=10)).image_scale == 10
    assert resolve_layout(Slide(id="a", image_scale=90)).image_scale == 90
