#!/usr/bin/env python3
"""
Setup script to download the slide font families and prepare the assets directory.
Run this before starting the server.
"""

import os
import urllib.request
import zipfile
from pathlib import Path

from carousel.config import get_settings
from carousel.design_templates import FONT_FAMILIES, FONT_WEIGHTS

settings = get_settings()

FONTS_DIR = Path(settings.fonts_path)

# Family directory name -> Google Fonts family query
GOOGLE_FAMILIES = {
    "Montserrat": "Montserrat",
    "PlayfairDisplay": "Playfair+Display",
    "JetBrainsMono": "JetBrains+Mono",
}


def setup_directories():
    """Create required directories."""
    print("Creating directories...")
    for family in GOOGLE_FAMILIES:
        (FONTS_DIR / family).mkdir(parents=True, exist_ok=True)
    Path(settings.output_dir).mkdir(parents=True, exist_ok=True)
    print("✓ Directories created")


def download_family(family: str):
    """Download one font family from Google Fonts and keep its static TTFs."""
    family_dir = FONTS_DIR / family
    if any(family_dir.glob("*.ttf")):
        print(f"✓ {family} already exists, skipping download")
        return

    zip_path = FONTS_DIR / f"{family}.zip"
    url = f"https://fonts.google.com/download?family={GOOGLE_FAMILIES[family]}"
    print(f"Downloading {family}...")
    try:
        urllib.request.urlretrieve(url, zip_path)

        suffixes = set(FONT_WEIGHTS.values())
        with zipfile.ZipFile(zip_path, "r") as zip_ref:
            for file in zip_ref.namelist():
                if not (file.endswith(".ttf") and "static" in file):
                    continue
                font_name = os.path.basename(file)
                style = font_name[len(family) + 1:-len(".ttf")]
                # Keep the weights the renderer asks for, upright and italic
                if style.replace("Italic", "") in suffixes or style == "Italic":
                    (family_dir / font_name).write_bytes(zip_ref.read(file))
                    print(f"  Extracted: {font_name}")

        zip_path.unlink()
        print(f"✓ {family} installed")

    except Exception as e:
        print(f"✗ Failed to download {family}: {e}")
        print(f"  Please download it manually from https://fonts.google.com/specimen/{GOOGLE_FAMILIES[family]}")
        print(f"  and place the TTF files in: {family_dir}")


def check_assets() -> bool:
    """Check that every font family has at least its regular and bold cuts."""
    print("\nAsset Status:")
    ready = True
    for info in FONT_FAMILIES.values():
        family = info["family"]
        for weight in ("Regular", "Bold"):
            font = FONTS_DIR / family / f"{family}-{weight}.ttf"
            if font.exists():
                print(f"✓ {font.name} found")
            else:
                ready = False
                print(f"✗ {font.name} MISSING")
    return ready


def main():
    print("=" * 50)
    print(f"{settings.app_name} - Asset Setup")
    print("=" * 50)
    print()

    setup_directories()
    for family in GOOGLE_FAMILIES:
        download_family(family)

    all_ready = check_assets()

    print()
    print("=" * 50)
    if all_ready:
        print("✓ All fonts ready! You can start the server.")
    else:
        print("⚠ Some fonts are missing.")
        print("  Slides will still render, with Pillow's default font in their place.")
    print("=" * 50)


if __name__ == "__main__":
    main()
