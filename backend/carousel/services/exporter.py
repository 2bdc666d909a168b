"""
Carousel export.

Preview and export share one path: resolve -> parse -> compose -> load images
-> rasterize. Slides are captured one after another; a cancel request stops
at the next slide boundary and keeps whatever was captured so far.
"""

import asyncio
import logging
import zipfile
from io import BytesIO
from pathlib import Path
from typing import List, Optional, Sequence

from carousel.config import get_settings
from carousel.design_templates import frame_size
from carousel.models import CarouselProject
from carousel.services.composer import compose
from carousel.services.image_loader import load_images
from carousel.services.image_renderer import encode_png, get_rasterizer
from carousel.services.layout_resolver import resolve_layout
from carousel.services.markdown import parse_blocks
from carousel.services.visual_tree import VisualTree

logger = logging.getLogger(__name__)


def build_tree(project: CarouselProject, index: int) -> VisualTree:
    """Visual tree for slide `index` of the project."""
    if not 0 <= index < len(project.slides):
        raise IndexError(f"Slide index {index} out of range (0-{len(project.slides) - 1})")

    slide = project.slides[index]
    resolved = resolve_layout(slide, project)
    blocks = parse_blocks(slide.content)
    return compose(
        project.style, resolved, blocks, slide, project.profile, index, len(project.slides)
    )


def export_size(project: CarouselProject, width: Optional[int] = None):
    return frame_size(project.aspect_ratio, width or get_settings().export_width)


async def capture_slide(
    project: CarouselProject,
    index: int,
    width: Optional[int] = None,
    rasterizer=None,
) -> bytes:
    """Render one slide to PNG bytes once all of its images have settled."""
    tree = build_tree(project, index)
    images = await load_images(tree.image_sources())
    out_width, out_height = export_size(project, width)

    rasterizer = rasterizer or get_rasterizer()
    frame = await asyncio.to_thread(rasterizer.rasterize, tree, out_width, out_height, images)
    return encode_png(frame)


async def export_carousel(
    project: CarouselProject,
    width: Optional[int] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> List[bytes]:
    """Capture every slide in order. Returns the PNGs captured before any cancel."""
    rasterizer = get_rasterizer()
    captured = []
    total = len(project.slides)

    for index in range(total):
        if cancel_event is not None and cancel_event.is_set():
            logger.info(f"Export of {project.id} cancelled after {len(captured)}/{total} slides")
            break
        captured.append(await capture_slide(project, index, width, rasterizer))
        logger.info(f"Captured slide {index + 1}/{total}")

    return captured


def slide_filename(project: CarouselProject, index: int) -> str:
    return f"{project.id}_slide_{index + 1}.png"


def write_slides(project: CarouselProject, pngs: Sequence[bytes], output_dir: Optional[str] = None) -> List[str]:
    """Save captured slides to the output directory and return their paths."""
    folder = Path(output_dir or get_settings().output_dir)
    folder.mkdir(parents=True, exist_ok=True)

    paths = []
    for i, png in enumerate(pngs):
        filepath = folder / slide_filename(project, i)
        filepath.write_bytes(png)
        paths.append(str(filepath))
    logger.info(f"Saved {len(paths)} slides to {folder}")
    return paths


def build_zip(project: CarouselProject, pngs: Sequence[bytes]) -> bytes:
    """Bundle captured slides into a ZIP archive, in slide order."""
    buffer = BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for i, png in enumerate(pngs):
            archive.writestr(slide_filename(project, i), png)
    return buffer.getvalue()
