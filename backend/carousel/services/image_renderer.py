"""
Slide Rasterizer - paints a visual tree into a PNG.

- Geometry pass in emission order (fit-content heights, "after" chains)
- Paint pass bottom to top by z-order, one transparent overlay per layer
- px geometry is scaled by output width / 1080, so every export resolution
  reproduces the same relative layout
- No capture until every referenced image has settled
"""

import logging
import re
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from PIL import Image, ImageColor, ImageDraw, ImageFont

from carousel.config import get_settings
from carousel.design_templates import FONT_WEIGHTS, REFERENCE_WIDTH
from carousel.services.image_loader import LOADED, LoadedImage
from carousel.services.markdown import BlockKind
from carousel.services.visual_tree import (
    Geometry,
    Layer,
    LayerKind,
    TextBlock,
    TextSpan,
    VisualTree,
)

logger = logging.getLogger(__name__)

# Colors
WHITE = (255, 255, 255, 255)
BLACK = (0, 0, 0, 255)
AVATAR_FALLBACK = (156, 163, 175, 255)
BADGE_BLUE = (29, 155, 240, 255)

MARKER_GAP = 16      # mr-4 between list marker and text
PILL_PADDING_X = 16  # px-4
PILL_PADDING_Y = 8   # py-2
PILL_GAP = 12        # gap-3
FOOTER_ROW_GAP = 16  # mb-4 between branding pill and pagination

_TOKEN = re.compile(r"\S+|\s+")


class CaptureError(RuntimeError):
    """Raised when a capture is attempted before its images have settled."""


@dataclass
class Box:
    x: float
    y: float
    width: float
    height: float

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def rect(self) -> Tuple[int, int, int, int]:
        return (
            round(self.x),
            round(self.y),
            round(self.x + self.width),
            round(self.y + self.height),
        )


@dataclass
class _Token:
    text: str
    span: TextSpan
    font: ImageFont.FreeTypeFont
    width: float


@dataclass
class _BlockLayout:
    block: TextBlock
    lines: List[List[_Token]] = field(default_factory=list)
    line_height: float = 0
    text_x: float = 0
    marker_font: Optional[ImageFont.FreeTypeFont] = None
    marker_width: float = 0
    base_font: Optional[ImageFont.FreeTypeFont] = None
    height: float = 0


def parse_color(color: Optional[str], opacity: float = 1.0, fallback=BLACK) -> Tuple[int, int, int, int]:
    """Hex or named color to RGBA, alpha multiplied by opacity."""
    if not color:
        rgba = fallback
    else:
        try:
            rgba = ImageColor.getrgb(color)
        except ValueError:
            logger.warning(f"Unparseable color {color!r}")
            rgba = fallback
    if len(rgba) == 3:
        rgba = (*rgba, 255)
    return rgba[0], rgba[1], rgba[2], round(rgba[3] * opacity)


def line_width(line: List[_Token]) -> float:
    tokens = list(line)
    while tokens and tokens[-1].text.isspace():
        tokens.pop()
    return sum(t.width for t in tokens)


class TextRenderer:
    """Font lookup and text measurement."""

    def __init__(self, fonts_path: str):
        self.fonts_path = Path(fonts_path)
        self._fonts = {}

    def _font_file(self, family: str, weight: str, italic: bool) -> Optional[Path]:
        suffix = FONT_WEIGHTS.get(weight, "Regular")
        names = []
        if italic:
            names.append(f"{family}-Italic.ttf" if suffix == "Regular" else f"{family}-{suffix}Italic.ttf")
        names += [f"{family}-{suffix}.ttf", f"{family}-Bold.ttf", f"{family}-Regular.ttf"]

        for name in names:
            for folder in (self.fonts_path / family, self.fonts_path):
                path = folder / name
                if path.exists():
                    return path
        return None

    def get_font(self, family: str, weight: str, size: float, italic: bool = False) -> ImageFont.FreeTypeFont:
        """Get font with specified family, weight and size."""
        size = max(1, round(size))
        key = (family, weight, size, italic)
        if key not in self._fonts:
            path = self._font_file(family, weight, italic)
            if path:
                self._fonts[key] = ImageFont.truetype(str(path), size)
            else:
                logger.debug(f"No font file for {family} {weight}, using default font")
                self._fonts[key] = ImageFont.load_default(size=size)
        return self._fonts[key]

    def wrap_spans(
        self,
        spans,
        family: str,
        size: float,
        max_width: float,
        uppercase: bool = False,
    ) -> List[List[_Token]]:
        """Greedy word wrap across styled spans. Words glued across spans never break."""
        items = []  # [tokens, width, is_space]
        for span in spans:
            text = span.text.upper() if uppercase else span.text
            font = self.get_font(family, span.weight, size, span.italic)
            for part in _TOKEN.findall(text):
                token = _Token(part, span, font, font.getlength(part))
                is_space = part.isspace()
                if not is_space and items and not items[-1][2]:
                    items[-1][0].append(token)
                    items[-1][1] += token.width
                else:
                    items.append([[token], token.width, is_space])

        lines = [[]]
        width = 0.0
        for tokens, item_width, is_space in items:
            if is_space and not lines[-1]:
                continue
            if not is_space and lines[-1] and width + item_width > max_width:
                lines.append([])
                width = 0.0
            lines[-1].extend(tokens)
            width += item_width
        return lines


class SlideRasterizer:
    """Paints visual trees. One instance can render any number of slides."""

    def __init__(self, fonts_path: Optional[str] = None):
        self.text = TextRenderer(fonts_path or get_settings().fonts_path)

    # ============================================
    # ENTRY POINTS
    # ============================================

    def rasterize(
        self,
        tree: VisualTree,
        width: int,
        height: int,
        images: Dict[str, LoadedImage],
    ) -> Image.Image:
        """Render the tree at exactly width x height pixels."""
        unsettled = [src for src in tree.image_sources() if src not in images]
        if unsettled:
            raise CaptureError(f"{len(unsettled)} image(s) not settled: {unsettled[0][:60]}")

        scale = width / REFERENCE_WIDTH
        frame = Image.new("RGBA", (width, height), parse_color(tree.background_color, fallback=WHITE))

        boxes = self._resolve_boxes(tree, width, height, scale)

        for layer in tree.sorted_layers():
            box = boxes[layer.name]
            overlay = Image.new("RGBA", frame.size, (0, 0, 0, 0))
            self._paint(overlay, layer, box, tree.font_family, scale, images)
            frame = Image.alpha_composite(frame, overlay)

        return frame

    # ============================================
    # GEOMETRY
    # ============================================

    def _resolve_boxes(self, tree: VisualTree, width: int, height: int, scale: float) -> Dict[str, Box]:
        boxes = {}
        for layer in tree.layers:
            g: Geometry = layer.geometry
            x = g.x.resolve(width, scale)
            y = g.y.resolve(height, scale)
            if g.after and g.after in boxes:
                y += boxes[g.after].bottom

            if g.width is not None:
                w = g.width.resolve(width, scale)
            else:
                w = self._measure_width(layer, tree.font_family, scale)

            if g.height is not None:
                h = g.height.resolve(height, scale)
            elif g.bottom is not None:
                h = max(0.0, g.bottom.resolve(height, scale) - y)
            else:
                h = self._measure_height(layer, tree.font_family, w, scale)

            if g.anchor == "bottom-center":
                x, y = x - w / 2, y - h
            elif g.anchor == "bottom-right":
                x, y = x - w, y - h

            boxes[layer.name] = Box(x, y, max(0.0, w), max(0.0, h))
        return boxes

    def _measure_width(self, layer: Layer, family: str, scale: float) -> float:
        if layer.kind == LayerKind.FOOTER:
            return self._footer_size(layer.style, family, scale)[0]
        return 0.0

    def _measure_height(self, layer: Layer, family: str, width: float, scale: float) -> float:
        if layer.kind == LayerKind.TEXT:
            return sum(b.height for b in self._layout_text(layer.children, family, width, scale))
        if layer.kind == LayerKind.FOOTER:
            return self._footer_size(layer.style, family, scale)[1]
        return 0.0

    # ============================================
    # TEXT LAYOUT
    # ============================================

    def _layout_text(self, blocks, family: str, max_width: float, scale: float) -> List[_BlockLayout]:
        layouts = []
        for block in blocks:
            if block.kind == BlockKind.SPACER:
                layouts.append(_BlockLayout(block, height=block.height * scale))
                continue

            size = block.font_size * scale
            layout = _BlockLayout(
                block,
                line_height=size * block.line_height,
                base_font=self.text.get_font(family, block.weight, size),
            )
            if block.marker:
                layout.marker_font = self.text.get_font(family, block.marker_weight, block.marker_size * scale)
                layout.marker_width = layout.marker_font.getlength(block.marker)
                layout.text_x = block.indent * scale + layout.marker_width + MARKER_GAP * scale

            layout.lines = self.text.wrap_spans(
                block.spans, family, size, max_width - layout.text_x, block.uppercase
            )
            layout.height = len(layout.lines) * layout.line_height + block.margin_bottom * scale
            layouts.append(layout)
        return layouts

    # ============================================
    # PAINTING
    # ============================================

    def _paint(self, overlay: Image.Image, layer: Layer, box: Box, family: str, scale: float, images):
        kind = layer.kind
        if kind in (LayerKind.BACKGROUND, LayerKind.ILLUSTRATION):
            self._paint_image(overlay, layer.style, box, family, scale, images)
        elif kind == LayerKind.OVERLAY:
            self._paint_fill(overlay, box, parse_color(layer.style["color"], layer.style.get("opacity", 1.0)))
        elif kind == LayerKind.GRADIENT:
            self._paint_gradient(overlay, layer.style, box)
        elif kind == LayerKind.TEXT:
            self._paint_text(overlay, layer, box, family, scale)
        elif kind == LayerKind.HEADER:
            self._paint_header(overlay, layer.style, box, family, scale, images)
        elif kind == LayerKind.FOOTER:
            self._paint_footer(overlay, layer.style, box, family, scale, images)

    @staticmethod
    def _paint_fill(overlay: Image.Image, box: Box, rgba):
        ImageDraw.Draw(overlay).rectangle(box.rect(), fill=rgba)

    @staticmethod
    def _fit_cover(img: Image.Image, width: int, height: int, position_y: float) -> Image.Image:
        """Crop and resize image to fill the area, keeping `position_y` % of the spare height above."""
        img_ratio = img.width / img.height
        target_ratio = width / height

        if img_ratio > target_ratio:
            new_width = max(1, round(img.height * target_ratio))
            left = (img.width - new_width) // 2
            img = img.crop((left, 0, left + new_width, img.height))
        else:
            new_height = max(1, round(img.width / target_ratio))
            top = round((img.height - new_height) * position_y / 100)
            img = img.crop((0, top, img.width, top + new_height))

        return img.resize((width, height), Image.Resampling.LANCZOS)

    @staticmethod
    def _rounded_mask(width: int, height: int, radius: float) -> Image.Image:
        mask = Image.new("L", (width, height), 0)
        ImageDraw.Draw(mask).rounded_rectangle((0, 0, width - 1, height - 1), radius=round(radius), fill=255)
        return mask

    def _paint_image(self, overlay: Image.Image, style: dict, box: Box, family: str, scale: float, images):
        x0, y0, x1, y1 = box.rect()
        width, height = x1 - x0, y1 - y0
        if width <= 0 or height <= 0:
            return

        radius = style.get("radius", 0) * scale
        loaded = images.get(style.get("src")) if style.get("src") else None

        if loaded is None or loaded.state != LOADED:
            self._paint_placeholder(overlay, style, box, family, scale, radius)
            return

        img = self._fit_cover(loaded.image, width, height, style.get("position_y", 50))
        mask = self._rounded_mask(width, height, radius) if radius else None
        overlay.paste(img, (x0, y0), mask)

        if style.get("border_color"):
            ImageDraw.Draw(overlay).rounded_rectangle(
                (x0, y0, x1 - 1, y1 - 1), radius=round(radius),
                outline=parse_color(style["border_color"]), width=max(1, round(scale)),
            )

    def _paint_placeholder(self, overlay: Image.Image, style: dict, box: Box, family: str, scale: float, radius: float):
        """Generating indicator in place of a missing or failed image."""
        draw = ImageDraw.Draw(overlay)
        x0, y0, x1, y1 = box.rect()
        draw.rounded_rectangle(
            (x0, y0, x1 - 1, y1 - 1), radius=round(radius),
            fill=parse_color(style.get("placeholder_color"), fallback=(249, 250, 251, 255)),
            outline=parse_color(style.get("placeholder_border"), fallback=(229, 231, 235, 255)),
            width=max(1, round(4 * scale)),
        )

        color = parse_color(style.get("indicator_color"), opacity=0.5, fallback=(107, 114, 128, 255))
        cx, cy = (x0 + x1) / 2, (y0 + y1) / 2
        icon = 36 * scale
        draw.rounded_rectangle(
            (cx - icon, cy - icon * 1.4, cx + icon, cy + icon * 0.2),
            radius=round(8 * scale), outline=color, width=max(1, round(3 * scale)),
        )
        draw.line(
            [(cx - icon * 0.7, cy), (cx - icon * 0.1, cy - icon * 0.7), (cx + icon * 0.3, cy - icon * 0.3),
             (cx + icon * 0.7, cy - icon * 0.8)],
            fill=color, width=max(1, round(3 * scale)),
        )
        label = style.get("indicator")
        if label:
            font = self.text.get_font(family, "medium", 27 * scale)
            draw.text((cx, cy + icon * 0.9), label, font=font, fill=color, anchor="mt")

    @staticmethod
    def _paint_gradient(overlay: Image.Image, style: dict, box: Box):
        x0, y0, x1, y1 = box.rect()
        width, height = x1 - x0, y1 - y0
        if width <= 0 or height <= 0:
            return
        start = style.get("from_opacity", 0.0)
        end = style.get("to_opacity", 1.0)
        r, g, b, a = parse_color(style["color"])

        alpha = Image.linear_gradient("L").resize((width, height), Image.Resampling.BILINEAR)
        alpha = alpha.point(lambda v: round(a * (start + (end - start) * v / 255)))
        fade = Image.new("RGBA", (width, height), (r, g, b, 255))
        fade.putalpha(alpha)
        overlay.paste(fade, (x0, y0))

    def _paint_text(self, overlay: Image.Image, layer: Layer, box: Box, family: str, scale: float):
        x0, y0, x1, y1 = box.rect()
        width, height = x1 - x0, y1 - y0
        if width <= 0 or height <= 0:
            return

        layouts = self._layout_text(layer.children, family, box.width, scale)
        content_height = sum(layout.height for layout in layouts)
        free = height - content_height
        justify = layer.style.get("justify", "start")
        top = 0.0
        if free > 0 and justify == "center":
            top = free / 2
        elif free > 0 and justify == "end":
            top = free

        # Draw into a box-sized canvas so overflowing text is clipped to the region
        canvas = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        draw = ImageDraw.Draw(canvas)
        y = top
        for layout in layouts:
            if layout.lines:
                self._draw_block(draw, layout, y, width, scale)
            y += layout.height
            if y > height:
                break
        overlay.paste(canvas, (x0, y0))

    def _draw_block(self, draw: ImageDraw.ImageDraw, layout: _BlockLayout, top: float, width: float, scale: float):
        block = layout.block
        ascent, descent = layout.base_font.getmetrics()
        widths = [line_width(line) for line in layout.lines]

        if block.marker:
            # The marker and the wrapped text move together as one item
            item_width = layout.text_x + max(widths, default=0)
            offset = self._align_offset(block.align, width - item_width)
            baseline = top + (layout.line_height - (ascent + descent)) / 2 + ascent
            draw.text(
                (offset + block.indent * scale, baseline), block.marker,
                font=layout.marker_font, fill=parse_color(block.marker_color), anchor="ls",
            )
            starts = [offset + layout.text_x] * len(layout.lines)
        else:
            starts = [self._align_offset(block.align, width - w) for w in widths]

        for i, line in enumerate(layout.lines):
            line_top = top + i * layout.line_height
            baseline = line_top + (layout.line_height - (ascent + descent)) / 2 + ascent
            x = starts[i]
            for token in line:
                self._draw_token(draw, token, x, baseline, ascent, descent, scale)
                x += token.width

    @staticmethod
    def _align_offset(align: str, free: float) -> float:
        if free <= 0:
            return 0.0
        if align == "center":
            return free / 2
        if align == "right":
            return free
        return 0.0

    @staticmethod
    def _draw_token(draw, token: _Token, x: float, baseline: float, ascent: int, descent: int, scale: float):
        span = token.span
        if span.background and not token.text.isspace():
            draw.rounded_rectangle(
                (x - 4 * scale, baseline - ascent, x + token.width + 4 * scale, baseline + descent),
                radius=round(4 * scale), fill=parse_color(span.background),
            )
        fill = parse_color(span.color)
        draw.text((x, baseline), token.text, font=token.font, fill=fill, anchor="ls")
        if span.strike:
            y = baseline - ascent * 0.3
            draw.line([(x, y), (x + token.width, y)], fill=fill, width=max(1, round(token.font.size / 14)))
        if span.underline:
            y = baseline + 4 * scale
            draw.line([(x, y), (x + token.width, y)], fill=fill, width=max(1, round(4 * scale)))

    # ============================================
    # BRANDING
    # ============================================

    def _paste_avatar(self, overlay: Image.Image, src, x: float, y: float, size: float, images, border=None):
        size_px = max(1, round(size))
        mask = Image.new("L", (size_px, size_px), 0)
        ImageDraw.Draw(mask).ellipse((0, 0, size_px - 1, size_px - 1), fill=255)

        loaded = images.get(src) if src else None
        if loaded is not None and loaded.state == LOADED:
            avatar = self._fit_cover(loaded.image, size_px, size_px, 50)
        else:
            avatar = Image.new("RGBA", (size_px, size_px), AVATAR_FALLBACK)
        overlay.paste(avatar, (round(x), round(y)), mask)

        if border:
            ImageDraw.Draw(overlay).ellipse(
                (round(x), round(y), round(x) + size_px - 1, round(y) + size_px - 1),
                outline=parse_color(border), width=2,
            )

    @staticmethod
    def _draw_badge(draw: ImageDraw.ImageDraw, x: float, y: float, size: float):
        """Verified badge: blue disc with a white check."""
        draw.ellipse((x, y, x + size, y + size), fill=BADGE_BLUE)
        draw.line(
            [(x + size * 0.28, y + size * 0.52), (x + size * 0.44, y + size * 0.68), (x + size * 0.74, y + size * 0.36)],
            fill=WHITE, width=max(1, round(size / 9)),
        )

    def _paint_header(self, overlay: Image.Image, style: dict, box: Box, family: str, scale: float, images):
        draw = ImageDraw.Draw(overlay)
        avatar = style["avatar_size"] * scale
        gap = style["gap"] * scale
        self._paste_avatar(overlay, style.get("avatar_src"), box.x, box.y, avatar, images, style.get("avatar_border"))

        name_font = self.text.get_font(family, "bold", style["name_size"] * scale)
        handle_font = self.text.get_font(family, "regular", style["handle_size"] * scale)
        name_line = style["name_size"] * scale * 1.5 + 4 * scale
        handle_line = style["handle_size"] * scale * 1.3
        handle_gap = 4 * scale * style["avatar_size"] / 130
        column = name_line + handle_gap + handle_line

        x = box.x + avatar + gap
        top = box.y + (avatar - column) / 2
        draw.text((x, top + name_line / 2), style["name"], font=name_font,
                  fill=parse_color(style["name_color"]), anchor="lm")
        if style.get("verified"):
            badge = style["badge_size"] * scale
            bx = x + name_font.getlength(style["name"]) + gap * 0.5
            self._draw_badge(draw, bx, top + name_line / 2 - badge / 2, badge)
        draw.text((x, top + name_line + handle_gap + handle_line / 2), style["handle"], font=handle_font,
                  fill=parse_color(style["handle_color"]), anchor="lm")

    def _footer_size(self, style: dict, family: str, scale: float) -> Tuple[float, float]:
        width, height = 0.0, 0.0
        if style.get("handle") is not None:
            pill_w, pill_h = self._pill_size(style, family, scale)
            width, height = pill_w, pill_h
        if style.get("pagination"):
            font = self.text.get_font(family, "bold", style["pagination_size"] * scale)
            text_w = font.getlength(style["pagination"])
            if style.get("handle") is not None:
                width = max(width, text_w)
                height += FOOTER_ROW_GAP * scale + style["pagination_size"] * 1.4 * scale
            else:
                # Standalone pagination pill
                width = text_w + 2 * style.get("padding_x", 0) * scale
                height = style["pagination_size"] * scale * 4 / 3 + 2 * style.get("padding_y", 0) * scale
        return width, height

    def _pill_size(self, style: dict, family: str, scale: float) -> Tuple[float, float]:
        handle_font = self.text.get_font(family, "bold", style["handle_size"] * scale)
        avatar = style["avatar_size"] * scale
        width = 2 * PILL_PADDING_X * scale + avatar + PILL_GAP * scale + handle_font.getlength(style["handle"])
        if style.get("verified"):
            width += 4 * scale + style["badge_size"] * scale
        height = 2 * PILL_PADDING_Y * scale + max(avatar, style["handle_size"] * scale * 1.5)
        return width, height

    def _paint_footer(self, overlay: Image.Image, style: dict, box: Box, family: str, scale: float, images):
        draw = ImageDraw.Draw(overlay)
        text_color = parse_color(style.get("text_color"))

        if style.get("handle") is None:
            # Pagination pill only
            draw.rounded_rectangle(box.rect(), radius=round(box.height / 2), fill=parse_color(style.get("pill_color")))
            font = self.text.get_font(family, "bold", style["pagination_size"] * scale)
            draw.text((box.x + box.width / 2, box.y + box.height / 2), style["pagination"],
                      font=font, fill=text_color, anchor="mm")
            return

        pill_w, pill_h = self._pill_size(style, family, scale)
        px0 = box.x + (box.width - pill_w) / 2
        draw.rounded_rectangle(
            (round(px0), round(box.y), round(px0 + pill_w), round(box.y + pill_h)),
            radius=round(pill_h / 2),
            fill=parse_color(style.get("pill_color")),
            outline=parse_color(style.get("pill_border")),
            width=1,
        )
        avatar = style["avatar_size"] * scale
        x = px0 + PILL_PADDING_X * scale
        self._paste_avatar(overlay, style.get("avatar_src"), x, box.y + (pill_h - avatar) / 2, avatar, images)

        x += avatar + PILL_GAP * scale
        handle_font = self.text.get_font(family, "bold", style["handle_size"] * scale)
        draw.text((x, box.y + pill_h / 2), style["handle"], font=handle_font, fill=text_color, anchor="lm")
        if style.get("verified"):
            badge = style["badge_size"] * scale
            x += handle_font.getlength(style["handle"]) + 4 * scale
            self._draw_badge(draw, x, box.y + (pill_h - badge) / 2, badge)

        if style.get("pagination"):
            font = self.text.get_font(family, "bold", style["pagination_size"] * scale)
            fill = parse_color(style.get("text_color"), style.get("pagination_opacity", 1.0))
            y = box.y + pill_h + FOOTER_ROW_GAP * scale + style["pagination_size"] * 0.7 * scale
            draw.text((box.x + box.width / 2, y), style["pagination"], font=font, fill=fill, anchor="mm")


def encode_png(img: Image.Image) -> bytes:
    """Flatten to RGB and encode. No metadata, so equal pixels give equal bytes."""
    if img.mode == "RGBA":
        rgb = Image.new("RGB", img.size, (0, 0, 0))
        rgb.paste(img, mask=img.split()[-1])
        img = rgb
    buffer = BytesIO()
    img.save(buffer, "PNG")
    return buffer.getvalue()


def get_rasterizer(fonts_path: Optional[str] = None) -> SlideRasterizer:
    """Get rasterizer instance."""
    return SlideRasterizer(fonts_path)
