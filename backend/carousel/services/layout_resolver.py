"""
Layout settings resolution.

Every tunable value cascades: per-slide override -> global setting -> default.
The result is a frozen record recomputed on every render pass; nothing here
reads state outside its arguments.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from carousel.design_templates import get_font_family, get_template_info
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

logger = logging.getLogger(__name__)

# Hard defaults
DEFAULT_CONTENT_PADDING = 64
DEFAULT_LINE_HEIGHT = 1.5
DEFAULT_PARAGRAPH_GAP = 1  # rem, 16px each
DEFAULT_TEXT_ALIGNMENT = TextAlignment.LEFT
DEFAULT_FONT_STYLE = FontStyle.MODERN
DEFAULT_FONT_SCALE = 1.0
DEFAULT_THEME = Theme.LIGHT
DEFAULT_IMAGE_OFFSET_Y = 50  # Centered crop
DEFAULT_IMAGE_CANVAS_OFFSET = 0
DEFAULT_IMAGE_MARGIN = 0
DEFAULT_IMAGE_TEXT_SPACING = 16
DEFAULT_GRADIENT_HEIGHT = 60
DEFAULT_GRADIENT_OPACITY = 100
DEFAULT_OVERLAY_OPACITY = 50
DEFAULT_HEADER_SCALE = 1.0


@dataclass(frozen=True)
class ResolvedLayout:
    style: CarouselStyle
    theme: Theme

    # Text
    content_padding: float
    line_height: float
    paragraph_gap: float
    text_alignment: TextAlignment
    font_style: FontStyle
    font_family: str
    font_scale: float

    # Illustration
    image_scale: float
    image_offset_y: float
    image_canvas_offset: float
    image_margin: float
    image_text_spacing: float
    overlay_image: bool
    content_layout: ContentLayout

    # Gradient fade
    gradient_height: float
    gradient_opacity: float  # 0..1

    # Background image
    show_background: bool
    background_overlay_color: str
    background_overlay_opacity: float  # 0..100
    text_color_override: Optional[str]

    # Branding
    accent_color: Optional[str]
    show_slide_numbers: bool
    show_verified_badge: bool
    header_scale: float


def coalesce(*values):
    """Return the first value that is not None."""
    for value in values:
        if value is not None:
            return value
    return None


def normalize_content_layout(value) -> ContentLayout:
    """Map a free-form content layout onto a known one."""
    if value is None:
        return ContentLayout.DEFAULT
    try:
        return ContentLayout(value)
    except ValueError:
        logger.debug(f"Unknown content layout {value!r}, using default")
        return ContentLayout.DEFAULT


def resolve_layout(slide: Slide, global_settings: Optional[GlobalSettings] = None) -> ResolvedLayout:
    """Merge per-slide overrides, global settings and defaults for one slide."""
    g = global_settings or GlobalSettings()
    layout = g.layout_settings or LayoutSettings()

    theme = coalesce(slide.theme, g.theme, DEFAULT_THEME)
    font_style = coalesce(slide.font_style, g.font_style, DEFAULT_FONT_STYLE)
    template = get_template_info(g.style)

    show_background = bool(slide.show_background_image and slide.background_image_url)
    overlay_color = coalesce(
        slide.background_overlay_color,
        "#000000" if theme == Theme.DARK else "#FFFFFF",
    )

    return ResolvedLayout(
        style=g.style,
        theme=theme,
        content_padding=coalesce(slide.content_padding, layout.content_padding, DEFAULT_CONTENT_PADDING),
        line_height=coalesce(slide.text_line_height, layout.text_line_height, DEFAULT_LINE_HEIGHT),
        paragraph_gap=coalesce(slide.paragraph_gap, layout.paragraph_gap, DEFAULT_PARAGRAPH_GAP),
        text_alignment=coalesce(slide.text_alignment, layout.text_alignment, DEFAULT_TEXT_ALIGNMENT),
        font_style=font_style,
        font_family=get_font_family(font_style)["family"],
        font_scale=coalesce(slide.font_scale, g.font_scale, DEFAULT_FONT_SCALE),
        image_scale=coalesce(slide.image_scale, template["default_image_scale"]),
        image_offset_y=coalesce(slide.image_offset_y, DEFAULT_IMAGE_OFFSET_Y),
        image_canvas_offset=coalesce(
            slide.image_canvas_offset, layout.image_canvas_offset, DEFAULT_IMAGE_CANVAS_OFFSET
        ),
        image_margin=coalesce(slide.image_margin, layout.image_margin, DEFAULT_IMAGE_MARGIN),
        image_text_spacing=coalesce(slide.image_text_spacing, DEFAULT_IMAGE_TEXT_SPACING),
        overlay_image=slide.overlay_image is not False,
        content_layout=normalize_content_layout(slide.content_layout),
        gradient_height=coalesce(slide.gradient_height, DEFAULT_GRADIENT_HEIGHT),
        gradient_opacity=coalesce(slide.background_overlay_opacity, DEFAULT_GRADIENT_OPACITY) / 100,
        show_background=show_background,
        background_overlay_color=overlay_color,
        background_overlay_opacity=coalesce(slide.background_overlay_opacity, DEFAULT_OVERLAY_OPACITY),
        text_color_override=slide.background_text_color if show_background else None,
        accent_color=g.accent_color if g.show_accent else None,
        show_slide_numbers=g.show_slide_numbers,
        show_verified_badge=g.show_verified_badge,
        header_scale=coalesce(g.header_scale, DEFAULT_HEADER_SCALE),
    )
