"""
Design System for carousel slides.

Three independent lookups:
1. TEMPLATES - composition strategy per carousel style
2. FONT FAMILIES - font style -> font family files on disk
3. ASPECT RATIOS - post dimensions, always derived from the reference width
"""

from typing import Tuple

# All px values in a visual tree are expressed at this frame width
REFERENCE_WIDTH = 1080


# ============================================
# TEMPLATES
# ============================================
TEMPLATES = {
    "TWITTER": {
        "id": "TWITTER",
        "name": "Feed Text",
        "description": "Post screenshot look: profile header, large text, optional image",
        "default_image_scale": 50,
    },
    "STORYTELLER": {
        "id": "STORYTELLER",
        "name": "Cinematic Image",
        "description": "Image-first slides with gradient fade or hard split",
        "default_image_scale": 45,
    },
    "LESSON": {
        "id": "LESSON",
        "name": "Lesson",
        "description": "Black/white lesson slides, image between title and body",
        "default_image_scale": 50,
    },
}


# ============================================
# FONT FAMILIES
# ============================================
FONT_FAMILIES = {
    "MODERN": {
        "id": "MODERN",
        "name": "Modern",
        "family": "Montserrat",
    },
    "SERIF": {
        "id": "SERIF",
        "name": "Serif",
        "family": "PlayfairDisplay",
    },
    "TECH": {
        "id": "TECH",
        "name": "Tech",
        "family": "JetBrainsMono",
    },
}

# Weight name -> file suffix, e.g. Montserrat-ExtraBold.ttf
FONT_WEIGHTS = {
    "regular": "Regular",
    "medium": "Medium",
    "semibold": "SemiBold",
    "bold": "Bold",
    "extrabold": "ExtraBold",
    "black": "Black",
}


# ============================================
# ASPECT RATIOS
# ============================================
ASPECT_RATIOS = {
    "1/1": {"id": "1/1", "name": "Square", "ratio": (1, 1)},
    "4/5": {"id": "4/5", "name": "Portrait", "ratio": (4, 5)},
    "9/16": {"id": "9/16", "name": "Story", "ratio": (9, 16)},
    "16/9": {"id": "16/9", "name": "Landscape", "ratio": (16, 9)},
}


def _key(value) -> str:
    return getattr(value, "value", value)


def get_template_info(style) -> dict:
    """Get template metadata by carousel style."""
    return TEMPLATES.get(_key(style), TEMPLATES["TWITTER"])


def get_font_family(font_style) -> dict:
    """Get a font family by font style."""
    return FONT_FAMILIES.get(_key(font_style), FONT_FAMILIES["MODERN"])


def get_aspect_ratio(aspect_ratio) -> dict:
    """Get an aspect ratio by ID."""
    return ASPECT_RATIOS.get(_key(aspect_ratio), ASPECT_RATIOS["1/1"])


def frame_size(aspect_ratio, width: int = REFERENCE_WIDTH) -> Tuple[int, int]:
    """Pixel dimensions of a slide for the given aspect ratio and export width."""
    rw, rh = get_aspect_ratio(aspect_ratio)["ratio"]
    return width, round(width * rh / rw)


def list_templates():
    """List all templates."""
    return [{"id": t["id"], "name": t["name"], "description": t["description"]} for t in TEMPLATES.values()]


def list_font_families():
    """List all font families."""
    return [{"id": f["id"], "name": f["name"], "family": f["family"]} for f in FONT_FAMILIES.values()]


def list_aspect_ratios():
    """List all aspect ratios with their reference dimensions."""
    return [
        {"id": a["id"], "name": a["name"], "size": list(frame_size(a["id"]))}
        for a in ASPECT_RATIOS.values()
    ]
