"""
Shared fixtures for carousel tests.
"""

import base64
from io import BytesIO

import pytest
from PIL import Image

from carousel.models import CarouselProject, Profile, Slide


def png_data_uri(color=(255, 0, 0), size=(64, 48)) -> str:
    """Solid-color PNG as a data URI, so no test touches the network."""
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, "PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


@pytest.fixture
def red_image():
    return png_data_uri((255, 0, 0))


@pytest.fixture
def profile():
    return Profile(name="Ada Lovelace", handle="ada")


@pytest.fixture
def make_project(profile):
    """Build a project with one slide per keyword dict."""

    def factory(*slides, **settings):
        if not slides:
            slides = ({"content": "# Title\nBody text"},)
        return CarouselProject(
            profile=profile,
            slides=[Slide(id=f"s{i + 1}", **kwargs) for i, kwargs in enumerate(slides)],
            **settings,
        )

    return factory
