"""
Lesson template.

Pure black/white surfaces picked per slide by its theme.
- COVER: background image in overlay (full frame + fade) or split mode
- CONTENT/CTA with image: title, image, then body, always in that order
- CONTENT/CTA text only: full column
All slides share the centered footer of the cinematic template.
"""

from typing import Sequence

from carousel.models import Profile, Slide, SlideType, Theme
from carousel.services.layout_resolver import ResolvedLayout
from carousel.services.markdown import Block, parse_blocks, split_title_body
from carousel.services.visual_tree import FULL, ZERO, Geometry, Length, VisualTree, pct, px

from .base import (
    FOOTER_CLEARANCE,
    Typography,
    background_layers,
    build_text_blocks,
    centered_footer,
    column_geometry,
    gradient_layer,
    illustration_layer,
    text_layer,
)
from .cinematic import palette_for

TYPOGRAPHY = Typography(
    h1_size=72,
    h2_size=48,
    body_size=36,
    bullet="●",
    h1_weight="black",
    h2_weight="extrabold",
    body_weight="medium",
    strong_weight="bold",
    number_weight="black",
    mark_weight="semibold",
)

TITLE_IMAGE_GAP = 16  # mb-4 under the title
FOOTER_PADDING = 60
COVER_TEXT_CLEARANCE = 80  # Extra room above the footer on overlay covers


class LessonTemplate:
    """Black/white lesson slides."""

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
        surface = "#000000" if dark else "#FFFFFF"
        # Lesson text keeps the theme colors; the custom text color only tints the footer
        ink = slide.background_text_color or ("#FFFFFF" if dark else "#000000")
        palette = palette_for(resolved.theme, resolved.accent_color, None)

        if slide.type == SlideType.COVER:
            layers = self._cover(resolved, blocks, slide, palette, surface)
        else:
            layers = background_layers(resolved, slide)
            if slide.show_image:
                layers.extend(self._content_with_image(resolved, slide, palette))
            else:
                text = build_text_blocks(blocks, resolved, TYPOGRAPHY, palette)
                pad = resolved.content_padding
                layers.append(text_layer(
                    "text", text,
                    column_geometry(pad, px(pad), bottom=pct(100, -FOOTER_CLEARANCE)),
                ))

        layers.append(centered_footer(resolved, profile, index, total, text_color=ink))

        return VisualTree(
            background_color=surface,
            font_family=resolved.font_family,
            layers=tuple(layers),
        )

    def _cover(self, resolved: ResolvedLayout, blocks, slide: Slide, palette, surface: str):
        pad = resolved.content_padding
        text = build_text_blocks(blocks, resolved, TYPOGRAPHY, palette)
        scale = resolved.image_scale
        wants_image = slide.show_background_image
        layers = []

        if resolved.overlay_image:
            if wants_image:
                layers.append(illustration_layer(
                    Geometry(x=ZERO, y=ZERO, width=FULL, height=FULL),
                    slide.background_image_url,
                    resolved.image_offset_y,
                    resolved.theme,
                ))
                if slide.background_image_url:
                    layers.append(gradient_layer(
                        pct(scale), pct(resolved.gradient_height), surface, resolved.gradient_opacity
                    ))
            footer_room = FOOTER_PADDING * resolved.header_scale + COVER_TEXT_CLEARANCE
            layers.append(text_layer(
                "text", text,
                column_geometry(pad, pct(resolved.image_offset_y), bottom=pct(100, -footer_room)),
                justify="end",
            ))
            return layers

        text_top = px(pad / 2)
        if wants_image:
            layers.append(illustration_layer(
                Geometry(x=ZERO, y=ZERO, width=FULL, height=pct(scale)),
                slide.background_image_url,
                resolved.image_offset_y,
                resolved.theme,
            ))
            text_top = pct(scale, pad / 2)
        layers.append(text_layer(
            "text", text,
            column_geometry(pad, text_top, bottom=pct(100, -FOOTER_CLEARANCE)),
            justify="center",
        ))
        return layers

    def _content_with_image(self, resolved: ResolvedLayout, slide: Slide, palette):
        pad = resolved.content_padding
        scale = resolved.image_scale
        parts = split_title_body(slide.content)
        layers = []
        previous = None

        if parts.title.strip():
            title = build_text_blocks(parse_blocks(parts.title), resolved, TYPOGRAPHY, palette)
            layers.append(text_layer("title", title, column_geometry(pad, px(pad))))
            previous = "title"

        # Image height is a share of the column between the top padding and the footer clearance
        column_share = Length(percent=scale, px=-scale * (pad + FOOTER_CLEARANCE) / 100)
        layers.append(illustration_layer(
            Geometry(
                x=px(pad),
                y=px(TITLE_IMAGE_GAP) if previous else px(pad),
                width=pct(100, -2 * pad - 16),
                height=column_share,
                after=previous,
            ),
            slide.image_url,
            resolved.image_offset_y,
            resolved.theme,
            radius=16,
        ))

        if parts.body.strip():
            body = build_text_blocks(parse_blocks(parts.body), resolved, TYPOGRAPHY, palette)
            layers.append(text_layer(
                "body", body,
                column_geometry(
                    pad, px(resolved.image_text_spacing),
                    after="illustration", bottom=pct(100, -FOOTER_CLEARANCE),
                ),
            ))
        return layers
