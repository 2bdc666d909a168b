"""
Tests for carousel export.
"""

import asyncio
import zipfile
from io import BytesIO

import pytest
from PIL import Image

from carousel.models import AspectRatio
from carousel.services import exporter


def test_build_tree_index_out_of_range(make_project):
    with pytest.raises(IndexError):
        exporter.build_tree(make_project(), 3)
    with pytest.raises(IndexError):
        exporter.build_tree(make_project(), -1)


@pytest.mark.asyncio
async def test_capture_slide_uses_aspect_ratio(make_project, red_image):
    project = make_project(
        {"content": "# Portrait", "show_image": True, "image_url": red_image},
        aspect_ratio=AspectRatio.PORTRAIT,
    )
    png = await exporter.capture_slide(project, 0, width=400)

    assert png.startswith(b"\x89PNG")
    assert Image.open(BytesIO(png)).size == (400, 500)


def test_export_size_defaults_to_configured_width(make_project):
    project = make_project(aspect_ratio=AspectRatio.STORY)
    assert exporter.export_size(project) == (1080, 1920)
    assert exporter.export_size(project, 540) == (540, 960)


@pytest.mark.asyncio
async def test_export_carousel_in_order(make_project):
    project = make_project({"content": "One"}, {"content": "Two"}, {"content": "Three"})
    pngs = await exporter.export_carousel(project, width=200)
    assert len(pngs) == 3
    assert all(Image.open(BytesIO(png)).size == (200, 200) for png in pngs)


@pytest.mark.asyncio
async def test_cancel_keeps_captured_slides(make_project, monkeypatch):
    """Cancelling stops at the next slide boundary without dropping finished slides."""
    project = make_project({"content": "One"}, {"content": "Two"}, {"content": "Three"})
    cancel = asyncio.Event()
    calls = []

    async def fake_capture(project, index, width=None, rasterizer=None):
        calls.append(index)
        if index == 1:
            cancel.set()
        return f"png-{index}".encode()

    monkeypatch.setattr(exporter, "capture_slide", fake_capture)
    pngs = await exporter.export_carousel(project, cancel_event=cancel)

    assert pngs == [b"png-0", b"png-1"]
    assert calls == [0, 1]


@pytest.mark.asyncio
async def test_cancel_before_start(make_project):
    cancel = asyncio.Event()
    cancel.set()
    assert await exporter.export_carousel(make_project(), cancel_event=cancel) == []


def test_build_zip(make_project):
    project = make_project({"content": "One"}, {"content": "Two"})
    data = exporter.build_zip(project, [b"first", b"second"])

    with zipfile.ZipFile(BytesIO(data)) as archive:
        assert archive.namelist() == ["carousel_slide_1.png", "carousel_slide_2.png"]
        assert archive.read("carousel_slide_2.png") == b"second"


def test_write_slides(make_project, tmp_path):
    project = make_project()
    paths = exporter.write_slides(project, [b"png"], str(tmp_path / "out"))

    assert paths == [str(tmp_path / "out" / "carousel_slide_1.png")]
    assert (tmp_path / "out" / "carousel_slide_1.png").read_bytes() == b"png"
