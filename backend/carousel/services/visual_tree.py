"""
Visual tree produced by the templates and consumed by the render boundary.

Geometry is frame-relative: percentages resolve against the frame's own
width (x, width) or height (y, height), px values are given at the
1080px reference width and scaled by the rasterizer.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from carousel.services.markdown import BlockKind


@dataclass(frozen=True)
class Length:
    percent: float = 0.0
    px: float = 0.0

    def resolve(self, reference: float, scale: float = 1.0) -> float:
        """Pixels for a frame dimension of `reference`, px values multiplied by `scale`."""
        return reference * self.percent / 100 + self.px * scale

    def __add__(self, other: "Length") -> "Length":
        return Length(self.percent + other.percent, self.px + other.px)


def pct(value: float, offset_px: float = 0.0) -> Length:
    return Length(percent=value, px=offset_px)


def px(value: float) -> Length:
    return Length(px=value)


FULL = pct(100)
ZERO = Length()


@dataclass(frozen=True)
class Geometry:
    x: Length
    y: Length
    width: Optional[Length] = None   # None: fit content
    height: Optional[Length] = None  # None: fit content, or fill down to `bottom`
    anchor: str = "top-left"         # top-left | bottom-center | bottom-right
    after: Optional[str] = None      # y is measured from the bottom of this layer
    bottom: Optional[Length] = None  # Lower edge of a flexible text region


class LayerKind(str, Enum):
    BACKGROUND = "background"
    OVERLAY = "overlay"
    ILLUSTRATION = "illustration"
    GRADIENT = "gradient"
    HEADER = "header"
    TEXT = "text"
    FOOTER = "footer"


Z_ORDER = {
    LayerKind.BACKGROUND: 0,
    LayerKind.OVERLAY: 1,
    LayerKind.ILLUSTRATION: 2,
    LayerKind.GRADIENT: 3,
    LayerKind.HEADER: 10,
    LayerKind.TEXT: 10,
    LayerKind.FOOTER: 20,
}

# Layer load states
LOAD_NONE = "none"                # No image referenced
LOAD_PENDING = "pending"          # Image source must settle before capture
LOAD_PLACEHOLDER = "placeholder"  # Image wanted but no source yet


@dataclass(frozen=True)
class TextSpan:
    text: str
    color: str
    weight: str = "regular"
    italic: bool = False
    strike: bool = False
    underline: bool = False
    background: Optional[str] = None


@dataclass(frozen=True)
class TextBlock:
    kind: BlockKind
    spans: Tuple[TextSpan, ...]
    font_size: float
    line_height: float
    align: str
    margin_bottom: float = 0.0
    weight: str = "regular"
    uppercase: bool = False
    indent: float = 0.0
    marker: Optional[str] = None
    marker_color: Optional[str] = None
    marker_size: Optional[float] = None
    marker_weight: str = "regular"
    height: float = 0.0  # Spacers only


@dataclass(frozen=True)
class Layer:
    name: str
    kind: LayerKind
    geometry: Geometry
    style: dict = field(default_factory=dict)
    children: Tuple[TextBlock, ...] = ()
    load_state: str = LOAD_NONE

    @property
    def z(self) -> int:
        return Z_ORDER[self.kind]


@dataclass(frozen=True)
class VisualTree:
    background_color: str
    font_family: str
    layers: Tuple[Layer, ...]

    def layer(self, name: str) -> Optional[Layer]:
        for layer in self.layers:
            if layer.name == name:
                return layer
        return None

    def sorted_layers(self) -> List[Layer]:
        """Layers bottom to top. Stable, so emission order breaks ties."""
        return sorted(self.layers, key=lambda layer: layer.z)

    def image_sources(self) -> List[str]:
        """Every image the render boundary has to settle before capture."""
        sources = []
        for layer in self.layers:
            for key in ("src", "avatar_src"):
                src = layer.style.get(key)
                if src and src not in sources:
                    sources.append(src)
        return sources

    def to_dict(self) -> dict:
        data = asdict(self)
        for layer_data, layer in zip(data["layers"], self.layers):
            layer_data["z"] = layer.z
        return data
