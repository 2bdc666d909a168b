"""
Building blocks shared by the slide templates.

Typography turns parsed markdown blocks into styled text blocks; the layer
helpers build the background, illustration, text and footer layers that all
templates stack the same way.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol, Sequence

from carousel.models import Profile, Slide, TextAlignment, Theme
from carousel.services.layout_resolver import ResolvedLayout
from carousel.services.markdown import Block, BlockKind, InlineRun, RunStyle
from carousel.services.visual_tree import (
    FULL,
    LOAD_PENDING,
    LOAD_PLACEHOLDER,
    ZERO,
    Geometry,
    Layer,
    LayerKind,
    Length,
    TextBlock,
    TextSpan,
    VisualTree,
    pct,
    px,
)

# Bottom padding that keeps text clear of a centered footer (pb-32)
FOOTER_CLEARANCE = 128

PLACEHOLDER_LABEL = "Generating..."


class Template(Protocol):
    def compose(
        self,
        resolved: ResolvedLayout,
        blocks: Sequence[Block],
        slide: Slide,
        profile: Profile,
        index: int,
        total: int,
    ) -> VisualTree:
        ...


@dataclass(frozen=True)
class TextPalette:
    heading: str
    text: str
    marker: str
    number: str
    strong: str
    emphasis: str
    strike: str
    mark_background: Optional[str] = None  # None: __mark__ renders as underline


@dataclass(frozen=True)
class Typography:
    h1_size: float
    h2_size: float
    body_size: float
    bullet: str
    bullet_size: Optional[float] = None
    h1_weight: str = "extrabold"
    h2_weight: str = "bold"
    body_weight: str = "regular"
    strong_weight: str = "bold"
    number_weight: str = "bold"
    mark_weight: Optional[str] = None
    h1_uppercase: bool = False


def with_alpha(color: str, alpha_hex: str) -> str:
    """Append an alpha channel to a #RGB or #RRGGBB color."""
    if color.startswith("#") and len(color) == 4:
        color = "#" + "".join(c * 2 for c in color[1:])
    if color.startswith("#") and len(color) == 7:
        return f"{color}{alpha_hex}"
    return color


def style_runs(
    runs: Iterable[InlineRun],
    color: str,
    weight: str,
    palette: TextPalette,
    typography: Typography,
) -> tuple:
    spans = []
    for run in runs:
        if run.style == RunStyle.STRONG:
            spans.append(TextSpan(run.text, palette.strong, typography.strong_weight))
        elif run.style == RunStyle.EMPHASIS:
            spans.append(TextSpan(run.text, palette.emphasis, weight, italic=True))
        elif run.style == RunStyle.STRIKE:
            spans.append(TextSpan(run.text, palette.strike, weight, strike=True))
        elif run.style == RunStyle.MARK:
            if palette.mark_background:
                spans.append(TextSpan(
                    run.text, color, typography.mark_weight or weight,
                    background=palette.mark_background,
                ))
            else:
                spans.append(TextSpan(run.text, color, weight, underline=True))
        else:
            spans.append(TextSpan(run.text, color, weight))
    return tuple(spans)


def build_text_blocks(
    blocks: Iterable[Block],
    resolved: ResolvedLayout,
    typography: Typography,
    palette: TextPalette,
) -> tuple:
    """Size, color and space every block for the current font scale."""
    scale = resolved.font_scale
    spacing = resolved.paragraph_gap * 16
    align = resolved.text_alignment.value
    list_indent = 8 if resolved.text_alignment == TextAlignment.LEFT else 0
    body = typography.body_size * scale

    result = []
    for block in blocks:
        if block.kind == BlockKind.HEADING_1:
            result.append(TextBlock(
                kind=block.kind,
                spans=style_runs(block.runs, palette.heading, typography.h1_weight, palette, typography),
                font_size=typography.h1_size * scale,
                line_height=resolved.line_height,
                align=align,
                margin_bottom=spacing,
                weight=typography.h1_weight,
                uppercase=typography.h1_uppercase,
            ))
        elif block.kind == BlockKind.HEADING_2:
            result.append(TextBlock(
                kind=block.kind,
                spans=style_runs(block.runs, palette.heading, typography.h2_weight, palette, typography),
                font_size=typography.h2_size * scale,
                line_height=resolved.line_height,
                align=align,
                margin_bottom=spacing * 0.75,
                weight=typography.h2_weight,
            ))
        elif block.kind in (BlockKind.BULLET, BlockKind.NUMBERED):
            is_bullet = block.kind == BlockKind.BULLET
            result.append(TextBlock(
                kind=block.kind,
                spans=style_runs(block.runs, palette.text, typography.body_weight, palette, typography),
                font_size=body,
                line_height=resolved.line_height,
                align=align,
                margin_bottom=spacing * 0.5,
                weight=typography.body_weight,
                indent=list_indent,
                marker=typography.bullet if is_bullet else f"{block.number}.",
                marker_color=palette.marker if is_bullet else palette.number,
                marker_size=(typography.bullet_size or typography.body_size) * scale if is_bullet else body,
                marker_weight="regular" if is_bullet else typography.number_weight,
            ))
        elif block.kind == BlockKind.SPACER:
            result.append(TextBlock(
                kind=block.kind,
                spans=(),
                font_size=body,
                line_height=resolved.line_height,
                align=align,
                height=spacing * 0.5,
            ))
        else:
            result.append(TextBlock(
                kind=block.kind,
                spans=style_runs(block.runs, palette.text, typography.body_weight, palette, typography),
                font_size=body,
                line_height=resolved.line_height,
                align=align,
                margin_bottom=spacing,
                weight=typography.body_weight,
            ))
    return tuple(result)


# ============================================
# LAYERS
# ============================================

def background_layers(resolved: ResolvedLayout, slide: Slide) -> List[Layer]:
    """Full-bleed background image with its solid color overlay."""
    if not resolved.show_background:
        return []
    return [
        Layer(
            name="background",
            kind=LayerKind.BACKGROUND,
            geometry=Geometry(x=ZERO, y=ZERO, width=FULL, height=FULL),
            style={"src": slide.background_image_url, "fit": "cover", "position_y": 50},
            load_state=LOAD_PENDING,
        ),
        Layer(
            name="background-overlay",
            kind=LayerKind.OVERLAY,
            geometry=Geometry(x=ZERO, y=ZERO, width=FULL, height=FULL),
            style={
                "color": resolved.background_overlay_color,
                "opacity": resolved.background_overlay_opacity / 100,
            },
        ),
    ]


def illustration_layer(
    geometry: Geometry,
    src: Optional[str],
    position_y: float,
    theme: Theme,
    radius: float = 0,
    border_color: Optional[str] = None,
) -> Layer:
    """Image layer, or a generating placeholder of the same size when there is no source."""
    dark = theme == Theme.DARK
    style = {
        "src": src or None,
        "fit": "cover",
        "position_y": position_y,
        "radius": radius,
        "border_color": border_color,
    }
    if not src:
        style.update({
            "placeholder_color": "#111827" if dark else "#F9FAFB",
            "placeholder_border": "#1F2937" if dark else "#E5E7EB",
            "indicator": PLACEHOLDER_LABEL,
            "indicator_color": "#6B7280",
        })
    return Layer(
        name="illustration",
        kind=LayerKind.ILLUSTRATION,
        geometry=geometry,
        style=style,
        load_state=LOAD_PENDING if src else LOAD_PLACEHOLDER,
    )


def text_layer(name: str, blocks: tuple, geometry: Geometry, justify: str = "start") -> Layer:
    return Layer(
        name=name,
        kind=LayerKind.TEXT,
        geometry=geometry,
        style={"justify": justify},
        children=blocks,
    )


def gradient_layer(y: Length, height: Length, color: str, opacity: float = 1.0) -> Layer:
    """Vertical fade from transparent to `color` at `opacity`."""
    return Layer(
        name="gradient",
        kind=LayerKind.GRADIENT,
        geometry=Geometry(x=ZERO, y=y, width=FULL, height=height),
        style={"color": color, "from_opacity": 0.0, "to_opacity": opacity},
    )


def centered_footer(
    resolved: ResolvedLayout,
    profile: Profile,
    index: int,
    total: int,
    text_color: str,
) -> Layer:
    """Avatar + handle + badge pill, pagination underneath, anchored bottom-center."""
    scale = resolved.header_scale
    return Layer(
        name="footer",
        kind=LayerKind.FOOTER,
        geometry=Geometry(x=pct(50), y=pct(100, -60 * scale), anchor="bottom-center"),
        style={
            "avatar_src": profile.avatar_url or None,
            "avatar_size": 64 * scale,
            "handle": f"@{profile.handle}",
            "handle_size": 32 * scale,
            "verified": resolved.show_verified_badge,
            "badge_size": 28 * scale,
            "text_color": text_color,
            "pill_color": "#0000000D",
            "pill_border": "#FFFFFF1A",
            "pagination": f"{index + 1} • {total}" if resolved.show_slide_numbers else None,
            "pagination_size": 20,
            "pagination_opacity": 0.6,
        },
    )


def column_geometry(padding: float, y: Length, **kwargs) -> Geometry:
    """Full-width column inset by the content padding on both sides (plus pr-4)."""
    return Geometry(x=px(padding), y=y, width=pct(100, -2 * padding - 16), **kwargs)
