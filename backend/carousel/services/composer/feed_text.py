"""
Feed-text template: post-screenshot look.

Profile header at the top, large text, optional illustration in the content
region and a pagination pill bottom-right. The content layout decides the
order of text and image inside the content region.
"""

from typing import Sequence

from carousel.models import ContentLayout, Profile, Slide, Theme
from carousel.services.layout_resolver import ResolvedLayout
from carousel.services.markdown import Block, parse_blocks, split_title_body
from carousel.services.visual_tree import Geometry, Layer, LayerKind, Length, VisualTree, pct, px

from .base import (
    TextPalette,
    Typography,
    background_layers,
    build_text_blocks,
    column_geometry,
    illustration_layer,
    text_layer,
)

TYPOGRAPHY = Typography(
    h1_size=72,
    h2_size=60,
    body_size=48,
    bullet="•",
    bullet_size=36,
    h1_weight="extrabold",
    h2_weight="bold",
)

# Header base sizes, multiplied by header scale
AVATAR_SIZE = 130
NAME_SIZE = 48
HANDLE_SIZE = 32
VERIFIED_SIZE = 40
HEADER_GAP = 24
HEADER_MARGIN = 40

# pt-8 above the pill plus the pill itself (24px text, 32px line, py-2)
PAGINATION_HEIGHT = 32 + 48
# pt-8 above the image inside its region
IMAGE_TOP_PADDING = 32


def _palette(theme: Theme, override) -> TextPalette:
    if override:
        return TextPalette(override, override, override, override, override, override, override)
    if theme == Theme.DARK:
        return TextPalette(
            heading="#FFFFFF", text="#E5E7EB", marker="#6B7280", number="#FFFFFF",
            strong="#FFFFFF", emphasis="#D1D5DB", strike="#4B5563",
        )
    return TextPalette(
        heading="#111827", text="#1F2937", marker="#9CA3AF", number="#111827",
        strong="#111827", emphasis="#1F2937", strike="#6B7280",
    )


class FeedTextTemplate:
    """Header row, content region, pagination pill."""

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
        palette = _palette(resolved.theme, resolved.text_color_override)
        pad = resolved.content_padding
        scale = resolved.header_scale

        header_height = AVATAR_SIZE * scale
        footer_height = PAGINATION_HEIGHT if resolved.show_slide_numbers else 0
        content_top = pad + header_height + HEADER_MARGIN * scale
        # Everything that is not the content region, in px
        reserved = 2 * pad + header_height + HEADER_MARGIN * scale + footer_height

        def region(percent: float) -> Length:
            """`percent` of the content region height, as frame geometry."""
            return Length(percent=percent, px=-percent * reserved / 100)

        layers = background_layers(resolved, slide)
        layers.append(self._header(resolved, profile, pad, header_height, dark))
        layers.extend(self._content(
            resolved, blocks, slide, palette, pad, content_top, pad + footer_height, region
        ))
        if resolved.show_slide_numbers:
            layers.append(self._pagination(resolved, pad, index, total, dark))

        return VisualTree(
            background_color="#000000" if dark else "#FFFFFF",
            font_family=resolved.font_family,
            layers=tuple(layers),
        )

    def _header(self, resolved: ResolvedLayout, profile: Profile, pad: float, height: float, dark: bool) -> Layer:
        scale = resolved.header_scale
        return Layer(
            name="header",
            kind=LayerKind.HEADER,
            geometry=Geometry(x=px(pad), y=px(pad), width=pct(100, -2 * pad), height=px(height)),
            style={
                "avatar_src": profile.avatar_url or None,
                "avatar_size": AVATAR_SIZE * scale,
                "avatar_border": "#1F2937" if dark else "#F3F4F6",
                "name": profile.name,
                "name_size": NAME_SIZE * scale,
                "name_color": "#FFFFFF" if dark else "#111827",
                "handle": f"@{profile.handle}",
                "handle_size": HANDLE_SIZE * scale,
                "handle_color": "#6B7280",
                "verified": resolved.show_verified_badge,
                "badge_size": VERIFIED_SIZE * scale,
                "gap": HEADER_GAP * scale,
            },
        )

    def _image(self, resolved: ResolvedLayout, slide: Slide, y: Length, region_height: Length,
               after=None) -> Layer:
        pad = resolved.content_padding
        margin = resolved.image_margin
        geometry = Geometry(
            x=px(pad + margin),
            y=y + px(IMAGE_TOP_PADDING),
            width=pct(100, -2 * (pad + margin)),
            height=region_height + px(resolved.image_canvas_offset - IMAGE_TOP_PADDING),
            after=after,
        )
        return illustration_layer(
            geometry,
            slide.image_url,
            resolved.image_offset_y,
            resolved.theme,
            radius=24,
            border_color="#1F2937" if resolved.theme == Theme.DARK else "#F3F4F6",
        )

    def _content(self, resolved, blocks, slide, palette, pad, content_top, content_bottom, region):
        image_pct = resolved.image_scale if slide.show_image else 0
        text_pct = 100 - image_pct
        offset = resolved.image_canvas_offset
        top = px(content_top)
        layout = resolved.content_layout

        if layout == ContentLayout.IMAGE_FIRST:
            layers = []
            if slide.show_image:
                layers.append(self._image(resolved, slide, top, region(image_pct)))
            # A positive canvas offset overlaps the text instead of pushing it down
            text_y = top + region(image_pct) + px(min(offset, 0) if slide.show_image else 0)
            text = build_text_blocks(blocks, resolved, TYPOGRAPHY, palette)
            layers.append(text_layer("text", text, column_geometry(pad, text_y, height=region(text_pct))))
            return layers

        if layout == ContentLayout.IMAGE_AFTER_TITLE:
            return self._title_image_body(resolved, slide, palette, pad, top, content_bottom, region)

        layers = []
        text = build_text_blocks(blocks, resolved, TYPOGRAPHY, palette)
        layers.append(text_layer("text", text, column_geometry(pad, top, height=region(text_pct))))
        if slide.show_image:
            layers.append(self._image(resolved, slide, top + region(text_pct), region(image_pct)))
        return layers

    def _title_image_body(self, resolved, slide, palette, pad, top, content_bottom, region):
        parts = split_title_body(slide.content)
        layers = []
        previous = None

        if parts.title.strip():
            title = build_text_blocks(parse_blocks(parts.title), resolved, TYPOGRAPHY, palette)
            layers.append(text_layer("title", title, column_geometry(pad, top)))
            previous = "title"

        if slide.show_image:
            y = Length() if previous else top
            layers.append(self._image(resolved, slide, y, region(resolved.image_scale), after=previous))
            previous = "illustration"

        if parts.body.strip():
            y = px(resolved.image_text_spacing)
            if previous == "illustration":
                y = y + px(-max(resolved.image_canvas_offset, 0))
            elif previous is None:
                y = y + top
            body = build_text_blocks(parse_blocks(parts.body), resolved, TYPOGRAPHY, palette)
            layers.append(text_layer(
                "body", body,
                column_geometry(pad, y, after=previous, bottom=pct(100, -content_bottom)),
            ))
        return layers

    def _pagination(self, resolved: ResolvedLayout, pad: float, index: int, total: int, dark: bool) -> Layer:
        return Layer(
            name="footer",
            kind=LayerKind.FOOTER,
            geometry=Geometry(x=pct(100, -pad), y=pct(100, -pad), anchor="bottom-right"),
            style={
                "pagination": f"{index + 1} / {total}",
                "pagination_size": 24,
                "text_color": resolved.accent_color or ("#9CA3AF" if dark else "#6B7280"),
                "pill_color": "#111827" if dark else "#F3F4F6",
                "padding_x": 24,
                "padding_y": 8,
            },
        )
