"""
API routes for the carousel renderer.
"""

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, Field

from carousel.config import get_settings
from carousel.design_templates import list_aspect_ratios, list_font_families, list_templates
from carousel.models import CarouselProject
from carousel.services.exporter import build_tree, build_zip, capture_slide, export_carousel, write_slides
from carousel.services.layout_resolver import resolve_layout

router = APIRouter()
settings = get_settings()


# Request/Response Models

class SlideRequest(BaseModel):
    project: CarouselProject
    index: int = 0
    width: Optional[int] = Field(None, ge=64, le=4320)


class CarouselRequest(BaseModel):
    project: CarouselProject
    width: Optional[int] = Field(None, ge=64, le=4320)
    save: bool = False  # Also write the PNGs to the output directory


class HealthResponse(BaseModel):
    status: str
    version: str


def _check_index(project: CarouselProject, index: int):
    if not 0 <= index < len(project.slides):
        raise HTTPException(status_code=404, detail=f"Slide {index} not found")


# Endpoints

@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(status="healthy", version="1.0.0")


@router.get("/templates")
async def get_templates():
    """List the slide templates."""
    return list_templates()


@router.get("/fonts")
async def get_fonts():
    """List the font families."""
    return list_font_families()


@router.get("/aspect-ratios")
async def get_aspect_ratios():
    """List the aspect ratios with their pixel size at the reference width."""
    return list_aspect_ratios()


@router.post("/layout")
async def layout_slide(request: SlideRequest):
    """Resolved layout settings and visual tree of one slide, for previews."""
    _check_index(request.project, request.index)
    slide = request.project.slides[request.index]
    resolved = resolve_layout(slide, request.project)
    tree = build_tree(request.project, request.index)
    return {"resolved": asdict(resolved), "tree": tree.to_dict()}


@router.post("/export/slide")
async def export_slide(request: SlideRequest):
    """Render one slide to PNG."""
    _check_index(request.project, request.index)
    png = await capture_slide(request.project, request.index, request.width)
    return Response(content=png, media_type="image/png")


@router.post("/export/carousel")
async def export_all(request: CarouselRequest):
    """Render every slide and return them as a ZIP archive."""
    if not request.project.slides:
        raise HTTPException(status_code=400, detail="Carousel has no slides")

    pngs = await export_carousel(request.project, request.width)
    if request.save:
        write_slides(request.project, pngs, settings.output_dir)

    return Response(
        content=build_zip(request.project, pngs),
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{request.project.id}.zip"'},
    )
