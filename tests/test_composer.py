"""
Tests for the template composer.
"""

import itertools

import pytest

from carousel.models import CarouselStyle, ContentLayout, SlideType, Theme
from carousel.services.composer import compose, get_template
from carousel.services.composer.feed_text import FeedTextTemplate
from carousel.services.exporter import build_tree
from carousel.services.layout_resolver import resolve_layout
from carousel.services.markdown import BlockKind, parse_blocks
from carousel.services.visual_tree import LOAD_PENDING, LOAD_PLACEHOLDER, LayerKind, pct

IMAGE_URL = "https://example.com/illustration.jpg"
BACKGROUND_URL = "https://example.com/background.jpg"

STACK = [
    LayerKind.BACKGROUND,
    LayerKind.OVERLAY,
    LayerKind.ILLUSTRATION,
    LayerKind.TEXT,
    LayerKind.FOOTER,
]


@pytest.mark.parametrize(
    "style,slide_type,background,illustration",
    list(itertools.product(
        list(CarouselStyle),
        [SlideType.COVER, SlideType.CONTENT],
        [True, False],
        [True, False],
    )),
)
def test_z_order(make_project, style, slide_type, background, illustration):
    """Background < overlay < illustration < text < footer, in every combination."""
    project = make_project(
        {
            "type": slide_type,
            "content": "# Title\nBody line",
            "show_image": illustration,
            "image_url": IMAGE_URL if illustration else None,
            "show_background_image": background,
            "background_image_url": BACKGROUND_URL if background else None,
        },
        style=style,
    )
    tree = build_tree(project, 0)
    kinds = [layer.kind for layer in tree.sorted_layers()]

    assert LayerKind.TEXT in kinds
    assert LayerKind.FOOTER in kinds
    # Lesson covers show the background image as their illustration
    lesson_cover = style == CarouselStyle.LESSON and slide_type == SlideType.COVER
    if (background if lesson_cover else illustration):
        assert LayerKind.ILLUSTRATION in kinds

    # Every kind present sits above all kinds lower in the stack
    last_seen = {kind: i for i, kind in enumerate(kinds)}
    first_seen = {kind: i for i, kind in reversed(list(enumerate(kinds)))}
    present = [kind for kind in STACK if kind in kinds]
    for lower, upper in zip(present, present[1:]):
        assert last_seen[lower] < first_seen[upper]


def test_cinematic_overlay_scenario(make_project):
    project = make_project(
        {
            "type": SlideType.COVER,
            "content": "# Hook\nBody line",
            "show_image": True,
            "image_url": IMAGE_URL,
            "image_scale": 45,
        },
        style=CarouselStyle.STORYTELLER,
        theme=Theme.DARK,
    )
    tree = build_tree(project, 0)

    illustration = tree.layer("illustration")
    assert illustration.geometry.height == pct(45)
    assert illustration.load_state == LOAD_PENDING

    # The fade ends exactly at the bottom edge of the image
    gradient = tree.layer("gradient")
    assert gradient.geometry.y + gradient.geometry.height == pct(45)
    assert gradient.style["color"] == tree.background_color

    text = tree.layer("text")
    heading, paragraph = text.children
    assert heading.kind == BlockKind.HEADING_1
    assert [s.text for s in heading.spans] == ["Hook"]
    assert heading.uppercase is True
    assert paragraph.kind == BlockKind.PARAGRAPH
    assert [s.text for s in paragraph.spans] == ["Body line"]

    footer = tree.layer("footer")
    assert footer.geometry.anchor == "bottom-center"
    assert footer.geometry.x == pct(50)
    assert footer.style["handle"] == "@ada"
    assert "avatar_src" in footer.style
    assert footer.style["pagination"] == "1 • 1"


def test_cinematic_split_mode(make_project):
    project = make_project(
        {"show_image": True, "image_url": IMAGE_URL, "overlay_image": False, "content": "Text"},
        style=CarouselStyle.STORYTELLER,
    )
    tree = build_tree(project, 0)
    assert tree.layer("gradient") is None
    assert tree.layer("text").geometry.y == pct(45, 48)


def test_placeholder_when_image_missing(make_project):
    """An image that is wanted but has no source still takes its space."""
    for style in CarouselStyle:
        project = make_project({"show_image": True, "content": "Hello"}, style=style)
        illustration = build_tree(project, 0).layer("illustration")

        assert illustration is not None
        assert illustration.load_state == LOAD_PLACEHOLDER
        assert illustration.style["indicator"] == "Generating..."
        assert illustration.style["src"] is None
        assert illustration.geometry.height.percent > 0


def test_compose_is_idempotent(make_project):
    project = make_project(
        {"content": "# A\n- b\n1. c", "show_image": True, "image_url": IMAGE_URL},
        style=CarouselStyle.LESSON,
    )
    assert build_tree(project, 0) == build_tree(project, 0)


def test_unknown_template_falls_back_to_feed_text(make_project):
    project = make_project()
    slide = project.slides[0]
    resolved = resolve_layout(slide, project)
    tree = compose("POLAROID", resolved, parse_blocks(slide.content), slide, project.profile, 0, 1)

    assert isinstance(get_template("POLAROID"), FeedTextTemplate)
    assert tree.layer("header") is not None


def test_feed_text_header_and_pagination(make_project):
    project = make_project({"content": "One"}, {"content": "Two"}, theme=Theme.DARK)
    tree = build_tree(project, 1)

    header = tree.layer("header")
    assert header.kind == LayerKind.HEADER
    assert header.style["name"] == "Ada Lovelace"
    assert header.style["verified"] is True

    footer = tree.layer("footer")
    assert footer.geometry.anchor == "bottom-right"
    assert footer.style["pagination"] == "2 / 2"
    assert tree.background_color == "#000000"


def test_feed_text_without_slide_numbers(make_project):
    project = make_project(show_slide_numbers=False)
    assert build_tree(project, 0).layer("footer") is None


def test_feed_text_image_after_title(make_project):
    project = make_project({
        "content": "# Title\nBody text",
        "show_image": True,
        "image_url": IMAGE_URL,
        "content_layout": ContentLayout.IMAGE_AFTER_TITLE.value,
    })
    tree = build_tree(project, 0)
    names = [layer.name for layer in tree.layers]

    assert names.index("title") < names.index("illustration") < names.index("body")
    assert tree.layer("illustration").geometry.after == "title"
    assert tree.layer("body").geometry.after == "illustration"
    assert [b.kind for b in tree.layer("title").children] == [BlockKind.HEADING_1]


def test_feed_text_image_first(make_project):
    project = make_project({
        "content": "Text",
        "show_image": True,
        "image_url": IMAGE_URL,
        "content_layout": "image-first",
    })
    tree = build_tree(project, 0)
    image_y = tree.layer("illustration").geometry.y
    text_y = tree.layer("text").geometry.y
    assert image_y.percent < text_y.percent


def test_lesson_content_with_image(make_project):
    project = make_project(
        {"content": "# Step one\nDo the thing", "show_image": True, "image_url": IMAGE_URL},
        style=CarouselStyle.LESSON,
    )
    tree = build_tree(project, 0)
    names = [layer.name for layer in tree.layers]

    assert names[:3] == ["title", "illustration", "body"]
    assert tree.layer("illustration").style["radius"] == 16


def test_lesson_cover_uses_background_image(make_project):
    project = make_project(
        {
            "type": SlideType.COVER,
            "content": "# Big idea",
            "show_background_image": True,
            "background_image_url": BACKGROUND_URL,
        },
        style=CarouselStyle.LESSON,
    )
    tree = build_tree(project, 0)
    assert tree.layer("illustration").style["src"] == BACKGROUND_URL
    assert tree.layer("background") is None
    assert tree.layer("text").style["justify"] == "end"


def test_background_image_layers(make_project):
    project = make_project({
        "content": "Over a photo",
        "show_background_image": True,
        "background_image_url": BACKGROUND_URL,
        "background_overlay_opacity": 40,
        "background_text_color": "#FF0000",
    })
    tree = build_tree(project, 0)

    assert tree.layer("background").style["src"] == BACKGROUND_URL
    assert tree.layer("background-overlay").style["opacity"] == 0.4
    for block in tree.layer("text").children:
        assert all(span.color == "#FF0000" for span in block.spans)


def test_mark_uses_accent_highlight_in_cinematic(make_project):
    project = make_project(
        {"content": "a __key__ idea"},
        style=CarouselStyle.STORYTELLER,
        accent_color="#FF5500",
    )
    spans = build_tree(project, 0).layer("text").children[0].spans
    assert spans[1].text == "key"
    assert spans[1].background == "#FF55004D"


def test_mark_is_underlined_in_feed_text(make_project):
    spans = build_tree(make_project({"content": "a __key__ idea"}), 0).layer("text").children[0].spans
    assert spans[1].underline is True
    assert spans[1].background is None


def test_numbered_marker_and_font_scale(make_project):
    project = make_project({"content": "7. Seventh", "font_scale": 1.5})
    block = build_tree(project, 0).layer("text").children[0]
    assert block.marker == "7."
    assert block.font_size == 48 * 1.5


def test_image_sources_are_collected(make_project):
    project = make_project({
        "show_image": True,
        "image_url": IMAGE_URL,
        "show_background_image": True,
        "background_image_url": BACKGROUND_URL,
    })
    project.profile.avatar_url = "https://example.com/me.png"
    sources = build_tree(project, 0).image_sources()
    assert set(sources) == {IMAGE_URL, BACKGROUND_URL, "https://example.com/me.png"}


def test_to_dict_includes_z(make_project):
    data = build_tree(make_project(), 0).to_dict()
    assert all("z" in layer for layer in data["layers"])


def test_smallest_image_scale_keeps_placeholder_visible(make_project):
    for style in CarouselStyle:
        project = make_project({"show_image": True, "image_scale": 10, "content": "Hi"}, style=style)
        illustration = build_tree(project, 0).layer("illustration")
        assert illustration.load_state == LOAD_PLACEHOLDER
        assert illustration.geometry.height.percent >= 10 * 0.5


def test_lesson_text_color_only_tints_footer(make_project):
    """Lesson body text keeps the theme colors; the custom text color goes to the footer."""
    project = make_project(
        {
            "content": "# Title\nBody",
            "show_background_image": True,
            "background_image_url": BACKGROUND_URL,
            "background_text_color": "#FF0000",
        },
        style=CarouselStyle.LESSON,
    )
    tree = build_tree(project, 0)

    assert tree.layer("background") is not None
    assert tree.layer("footer").style["text_color"] == "#FF0000"
    colors = {span.color for block in tree.layer("text").children for span in block.spans}
    assert colors == {"#000000", "#111827"}


def test_lesson_footer_color_without_background(make_project):
    project = make_project({"content": "Body", "background_text_color": "#00FF00"}, style=CarouselStyle.LESSON)
    assert build_tree(project, 0).layer("footer").style["text_color"] == "#00FF00"
