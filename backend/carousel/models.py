"""
Carousel data model.

Slides, profile and global presentation settings as posted by the editor.
Field names are snake_case; the editor's camelCase JSON keys are accepted too,
so an exported project file can be sent unchanged.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SlideType(str, Enum):
    COVER = "COVER"      # Hook slide
    CONTENT = "CONTENT"
    CTA = "CTA"          # Call to action


class CarouselStyle(str, Enum):
    TWITTER = "TWITTER"          # feed-text
    STORYTELLER = "STORYTELLER"  # cinematic-image
    LESSON = "LESSON"


class Theme(str, Enum):
    LIGHT = "LIGHT"
    DARK = "DARK"


class FontStyle(str, Enum):
    MODERN = "MODERN"
    SERIF = "SERIF"
    TECH = "TECH"


class ContentLayout(str, Enum):
    DEFAULT = "default"                      # Header -> text -> image
    IMAGE_AFTER_TITLE = "image-after-title"  # Header -> title -> image -> body
    IMAGE_FIRST = "image-first"              # Header -> image -> text


class TextAlignment(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class AspectRatio(str, Enum):
    SQUARE = "1/1"
    PORTRAIT = "4/5"
    STORY = "9/16"
    LANDSCAPE = "16/9"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Profile(CamelModel):
    name: str = ""
    handle: str = ""
    avatar_url: Optional[str] = None


class LayoutSettings(CamelModel):
    """Global layout settings. Any field left unset falls back to the hard default."""

    content_padding: Optional[float] = Field(None, ge=0, le=200)
    image_canvas_offset: Optional[float] = Field(None, ge=-200, le=200)
    image_margin: Optional[float] = Field(None, ge=0, le=64)
    text_line_height: Optional[float] = Field(None, gt=0)
    paragraph_gap: Optional[float] = Field(None, ge=0)
    text_alignment: Optional[TextAlignment] = None


class Slide(CamelModel):
    id: str
    type: SlideType = SlideType.CONTENT
    content: str = ""

    # Illustration image
    image_url: Optional[str] = None
    show_image: bool = False
    image_prompt: Optional[str] = None
    image_scale: Optional[float] = Field(None, ge=10, le=90)  # % of the image region
    overlay_image: Optional[bool] = None
    image_offset_y: Optional[float] = Field(None, ge=0, le=100)
    gradient_height: Optional[float] = Field(None, ge=0, le=100)

    # Typography
    font_style: Optional[FontStyle] = None
    font_scale: Optional[float] = Field(None, gt=0)

    # Free-form on purpose: unknown layouts fall back to the default ordering
    content_layout: Optional[str] = None

    # Full-bleed background image
    show_background_image: bool = False
    background_image_url: Optional[str] = None
    background_overlay_color: Optional[str] = None
    background_overlay_opacity: Optional[float] = Field(None, ge=0, le=100)
    background_text_color: Optional[str] = None

    # Per-slide layout overrides
    content_padding: Optional[float] = Field(None, ge=0, le=200)
    image_canvas_offset: Optional[float] = Field(None, ge=-200, le=200)
    image_margin: Optional[float] = Field(None, ge=0, le=64)
    text_line_height: Optional[float] = Field(None, gt=0)
    paragraph_gap: Optional[float] = Field(None, ge=0)
    image_text_spacing: Optional[float] = Field(None, ge=0)
    text_alignment: Optional[TextAlignment] = None

    theme: Optional[Theme] = None


class GlobalSettings(CamelModel):
    style: CarouselStyle = CarouselStyle.TWITTER
    aspect_ratio: AspectRatio = AspectRatio.SQUARE
    theme: Theme = Theme.LIGHT
    accent_color: Optional[str] = None
    show_accent: bool = True
    show_slide_numbers: bool = True
    show_verified_badge: bool = True
    header_scale: float = Field(1.0, gt=0)
    font_style: FontStyle = FontStyle.MODERN
    font_scale: float = Field(1.0, gt=0)
    layout_settings: Optional[LayoutSettings] = None


class CarouselProject(GlobalSettings):
    id: str = "carousel"
    name: str = "Untitled carousel"
    profile: Profile = Field(default_factory=Profile)
    slides: List[Slide] = Field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
