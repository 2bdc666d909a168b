"""Template composer: picks a template by carousel style and builds the visual tree."""

import logging
from typing import Sequence

from carousel.models import CarouselStyle, Profile, Slide
from carousel.services.layout_resolver import ResolvedLayout
from carousel.services.markdown import Block
from carousel.services.visual_tree import VisualTree

from .base import Template
from .cinematic import CinematicTemplate
from .feed_text import FeedTextTemplate
from .lesson import LessonTemplate

logger = logging.getLogger(__name__)

TEMPLATES = {
    CarouselStyle.TWITTER: FeedTextTemplate(),
    CarouselStyle.STORYTELLER: CinematicTemplate(),
    CarouselStyle.LESSON: LessonTemplate(),
}

DEFAULT_TEMPLATE = CarouselStyle.TWITTER


def get_template(template) -> Template:
    """Look up a template; unknown values fall back to feed-text."""
    try:
        return TEMPLATES[CarouselStyle(template)]
    except ValueError:
        logger.warning(f"Unknown template {template!r}, falling back to {DEFAULT_TEMPLATE.value}")
        return TEMPLATES[DEFAULT_TEMPLATE]


def compose(
    template,
    resolved: ResolvedLayout,
    blocks: Sequence[Block],
    slide: Slide,
    profile: Profile,
    index: int,
    total: int,
) -> VisualTree:
    """Build the layered visual tree for one slide."""
    return get_template(template).compose(resolved, blocks, slide, profile, index, total)


__all__ = ["TEMPLATES", "Template", "compose", "get_template"]
