"""
Cinematic-image template.

Two modes, picked by the slide's overlay flag:
- OVERLAY (default): illustration covers the top of the frame and fades into
  the background color; text floats from the fade boundary
- SPLIT: illustration band with a hard edge, text in the band below
"""

from typing import Sequence

from carousel.models import Profile, Slide, Theme
from carousel.services.layout_resolver import ResolvedLayout
from carousel.services.markdown import Block
from carousel.services.visual_tree import ZERO, FULL, Geometry, VisualTree, pct

from .base import (
    FOOTER_CLEARANCE,
    TextPalette,
    Typography,
    background_layers,
    build_text_blocks,
    centered_footer,
    column_geometry,
    gradient_layer,
    illustration_layer,
    text_layer,
    with_alpha,
)

TYPOGRAPHY = Typography(
    h1_size=72,
    h2_size=48,
    body_size=36,
    bullet="●",
    h1_weight="black",
    h2_weight="extrabold",
    body_weight="medium",
    strong_weight="black",
    number_weight="black",
    mark_weight="semibold",
    h1_uppercase=True,
)

# Text starts this far (in % of frame) above the bottom of an overlay image
OVERLAY_TEXT_LEAD = 12
SPLIT_TEXT_GAP = 48  # 3rem


def palette_for(theme: Theme, accent, override) -> TextPalette:
    dark = theme == Theme.DARK
    marker = accent or override or ("#CBD5E1" if dark else "#475569")
    if accent:
        mark = with_alpha(accent, "4D")
    else:
        mark = "#FFFFFF1A" if dark else "#0000001A"
    if override:
        return TextPalette(override, override, marker, marker, override, override, override, mark)
    return TextPalette(
        heading="#FFFFFF" if dark else "#000000",
        text="#F3F4F6" if dark else "#111827",
        marker=marker,
        number=marker,
        strong="#FFFFFF" if dark else "#000000",
        emphasis="#D1D5DB" if dark else "#4B5563",
        strike="#F3F4F6" if dark else "#111827",
        mark_background=mark,
    )


class CinematicTemplate:
    """Image-first slides with a centered footer."""

    def compose(
        self,
        resolved: ResolvedLayout,
        blocks: Sequence[Block],
        slide: Slide,
        profile: Profile,
        index: int,
        total: int,
    ) -> VisualTree:
        dark = resolved.theme == Theme.DARK
        frame_color = "#0A0A0A" if dark else "#FFFFFF"
        palette = palette_for(resolved.theme, resolved.accent_color, resolved.text_color_override)
        text = build_text_blocks(blocks, resolved, TYPOGRAPHY, palette)
        scale = resolved.image_scale
        pad = resolved.content_padding
        text_bottom = pct(100, -FOOTER_CLEARANCE)

        layers = background_layers(resolved, slide)
        is_overlay = slide.show_image and resolved.overlay_image
        is_split = slide.show_image and not resolved.overlay_image

        if is_overlay:
            layers.append(illustration_layer(
                Geometry(x=ZERO, y=ZERO, width=FULL, height=pct(scale)),
                slide.image_url,
                resolved.image_offset_y,
                resolved.theme,
            ))
            if slide.image_url:
                # Fade covers the lower gradient_height % of the image, ending at its bottom edge
                fade = scale * resolved.gradient_height / 100
                layers.append(gradient_layer(pct(scale - fade), pct(fade), frame_color))
            layers.append(text_layer(
                "text", text,
                column_geometry(pad, pct(max(0, scale - OVERLAY_TEXT_LEAD)), bottom=text_bottom),
                justify="center",
            ))
        elif is_split:
            layers.append(illustration_layer(
                Geometry(x=ZERO, y=ZERO, width=FULL, height=pct(scale)),
                slide.image_url,
                resolved.image_offset_y,
                resolved.theme,
            ))
            layers.append(text_layer(
                "text", text,
                column_geometry(pad, pct(scale, SPLIT_TEXT_GAP), bottom=text_bottom),
            ))
        else:
            layers.append(text_layer(
                "text", text,
                column_geometry(pad, ZERO, bottom=text_bottom),
                justify="center",
            ))

        layers.append(centered_footer(
            resolved, profile, index, total,
            text_color="#FFFFFF" if dark else "#000000",
        ))

        return VisualTree(
            background_color=frame_color,
            font_family=resolved.font_family,
            layers=tuple(layers),
        )
