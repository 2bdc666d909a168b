"""
Image loading for the render boundary.

Resolves every image reference of a visual tree to decoded pixels or an error
state. A capture only starts once every reference has settled; failures are
reported per image and never raised.

References come from request bodies, so local files are only read from inside
the configured images directory and every payload is size-capped.
"""

import asyncio
import base64
import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Dict, Iterable, Optional
from urllib.parse import unquote_to_bytes

import httpx
from PIL import Image

from carousel.config import get_settings

logger = logging.getLogger(__name__)

LOADED = "loaded"
ERROR = "error"


class ImageRejected(ValueError):
    """Image reference refused before reading (outside the images root, too large)."""


@dataclass
class LoadedImage:
    src: str
    state: str
    image: Optional[Image.Image] = None
    error: Optional[str] = None


@dataclass
class LoadPolicy:
    local_root: Optional[Path]
    max_bytes: int


def decode_data_uri(src: str) -> bytes:
    """Payload of a data: URI, e.g. "data:image/png;base64,iVBOR..."."""
    header, _, payload = src.partition(",")
    if header.endswith(";base64"):
        return base64.b64decode(payload)
    return unquote_to_bytes(payload)


def decode_image(data: bytes) -> Image.Image:
    img = Image.open(BytesIO(data))
    img.load()
    return img.convert("RGBA")


def _check_size(size: int, policy: LoadPolicy):
    if size > policy.max_bytes:
        raise ImageRejected(f"Image exceeds {policy.max_bytes} bytes")


async def _fetch(src: str, client: httpx.AsyncClient, policy: LoadPolicy) -> bytes:
    """Stream an http(s) image, stopping as soon as it passes the size cap."""
    async with client.stream("GET", src) as response:
        response.raise_for_status()
        declared = response.headers.get("content-length")
        if declared and declared.isdigit():
            _check_size(int(declared), policy)

        chunks = []
        received = 0
        async for chunk in response.aiter_bytes():
            received += len(chunk)
            _check_size(received, policy)
            chunks.append(chunk)
    return b"".join(chunks)


def resolve_local_path(src: str, root: Optional[Path]) -> Path:
    """Resolve a file reference, refusing anything outside the images root."""
    if root is None:
        raise ImageRejected("Local image files are disabled")
    raw = src[len("file://"):] if src.startswith("file://") else src
    root = root.resolve()
    path = (root / raw).resolve()
    if not path.is_relative_to(root):
        raise ImageRejected(f"{raw} is outside the images directory")
    if not path.is_file():
        raise FileNotFoundError(raw)
    return path


def _read_local(src: str, policy: LoadPolicy) -> bytes:
    path = resolve_local_path(src, policy.local_root)
    _check_size(path.stat().st_size, policy)
    return path.read_bytes()


async def _read_source(src: str, client: httpx.AsyncClient, policy: LoadPolicy) -> bytes:
    if src.startswith("data:"):
        data = decode_data_uri(src)
        _check_size(len(data), policy)
        return data

    if src.startswith(("http://", "https://")):
        return await _fetch(src, client, policy)

    return await asyncio.to_thread(_read_local, src, policy)


async def load_image(src: str, client: httpx.AsyncClient, policy: LoadPolicy) -> LoadedImage:
    """Load a single image reference. Always returns a settled result."""
    try:
        data = await _read_source(src, client, policy)
        return LoadedImage(src=src, state=LOADED, image=decode_image(data))
    except Exception as e:
        logger.warning(f"Image failed to load ({src[:60]}): {e}")
        return LoadedImage(src=src, state=ERROR, error=str(e))


async def load_images(
    sources: Iterable[str],
    timeout: Optional[float] = None,
    client: Optional[httpx.AsyncClient] = None,
    local_root: Optional[str] = None,
    max_bytes: Optional[int] = None,
) -> Dict[str, LoadedImage]:
    """Load all sources concurrently and wait until every one has settled."""
    unique = list(dict.fromkeys(src for src in sources if src))
    if not unique:
        return {}

    settings = get_settings()
    root = local_root or settings.local_images_path
    policy = LoadPolicy(
        local_root=Path(root) if root else None,
        max_bytes=max_bytes or settings.max_image_bytes,
    )

    if client is not None:
        results = await asyncio.gather(*(load_image(src, client, policy) for src in unique))
    else:
        timeout = timeout or settings.image_fetch_timeout
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as own_client:
            results = await asyncio.gather(*(load_image(src, own_client, policy) for src in unique))

    failed = sum(1 for r in results if r.state == ERROR)
    logger.info(f"Settled {len(results)} images ({failed} failed)")
    return {result.src: result for result in results}
