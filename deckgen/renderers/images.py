"""Image loading for the file-producing renderers."""

from __future__ import annotations

import logging
from typing import Callable, Optional

import httpx

LOGGER = logging.getLogger(__name__)

ImageLoader = Callable[[str], Optional[bytes]]


def load_image(url: str, *, timeout: float = 10.0) -> Optional[bytes]:
    """Fetch ``url`` and return its bytes, or ``None`` when it cannot be read.

    A missing image renders the layout's placeholder, so failures are logged
    rather than raised.
    """

    if not url:
        return None
    try:
        response = httpx.get(url, timeout=timeout, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        LOGGER.warning("Could not load image %s: %s", url, exc)
        return None
    return response.content
