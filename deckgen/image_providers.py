"""Image resolution providers and the generative-image quota guard."""

from __future__ import annotations

import logging
import random
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx
from openai import AsyncOpenAI

LOGGER = logging.getLogger(__name__)

PEXELS_SEARCH_URL = "https://api.pexels.com/v1/search"
UNSPLASH_SEARCH_URL = "https://api.unsplash.com/search/photos"

# Curated photos keyed by a category keyword, used when search APIs are silent.
FALLBACK_PHOTOS: Dict[str, List[str]] = {
    "business": [
        "https://images.unsplash.com/photo-1560472354-b33ff0c44a43?w=1600&h=900&fit=crop",
        "https://images.unsplash.com/photo-1553484771-371a605b060b?w=1600&h=900&fit=crop",
        "https://images.unsplash.com/photo-1542744173-8e7e53415bb0?w=1600&h=900&fit=crop",
    ],
    "office": [
        "https://images.unsplash.com/photo-1497366216548-37526070297c?w=1600&h=900&fit=crop",
        "https://images.unsplash.com/photo-1497366811353-6870744d04b2?w=1600&h=900&fit=crop",
    ],
    "science": [
        "https://images.unsplash.com/photo-1532094349-3ce87c238782?w=1600&h=900&fit=crop",
        "https://images.unsplash.com/photo-1507413245164-6160d8298b31?w=1600&h=900&fit=crop",
    ],
    "technology": [
        "https://images.unsplash.com/photo-1518770660439-4636190af475?w=1600&h=900&fit=crop",
        "https://images.unsplash.com/photo-1550751827-4bd374c3f58b?w=1600&h=900&fit=crop",
    ],
    "nature": [
        "https://images.unsplash.com/photo-1469474968028-56623f02e42e?w=1600&h=900&fit=crop",
        "https://images.unsplash.com/photo-1441974231531-c6227db76b6e?w=1600&h=900&fit=crop",
    ],
    "education": [
        "https://images.unsplash.com/photo-1503676260728-1c00da094a0b?w=1600&h=900&fit=crop",
        "https://images.unsplash.com/photo-1523050854058-8df90110c9f1?w=1600&h=900&fit=crop",
    ],
}


class ImageProvider(ABC):
    """Resolve keywords to an image URL."""

    name: str = "provider"

    @abstractmethod
    async def resolve(self, keywords: str) -> Optional[str]:
        """Return an image URL, or ``None`` when nothing suitable exists.

        Transport failures may raise; callers decide how to retry.
        """


class QuotaGuard(ABC):
    """Controls how many generative images the session may still request."""

    @abstractmethod
    def has_quota(self) -> bool:
        ...

    @abstractmethod
    def consume(self) -> None:
        """Record one successfully generated image."""


class InMemoryQuotaGuard(QuotaGuard):
    def __init__(self, limit: int, used: int = 0) -> None:
        if limit < 0 or used < 0:
            raise ValueError("quota limit and usage must not be negative")
        self.limit = limit
        self.used = used

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.used)

    def has_quota(self) -> bool:
        return self.remaining > 0

    def consume(self) -> None:
        self.used += 1
        LOGGER.debug("Generative image quota: %d/%d used", self.used, self.limit)


class GenerativeImageProvider(ImageProvider):
    """Create an image from keywords with the OpenAI Images API."""

    name = "generative"

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        *,
        model: str = "dall-e-3",
        size: str = "1792x1024",
        style_hint: str = "professional presentation photo, high quality, no text",
    ) -> None:
        self.client = client or AsyncOpenAI()
        self.model = model
        self.size = size
        self.style_hint = style_hint

    def build_prompt(self, keywords: str) -> str:
        return f"{keywords.strip()}, {self.style_hint}"

    async def resolve(self, keywords: str) -> Optional[str]:
        if not keywords or not keywords.strip():
            return None
        response = await self.client.images.generate(
            model=self.model,
            prompt=self.build_prompt(keywords),
            size=self.size,
            n=1,
        )
        data = getattr(response, "data", None) or []
        if not data:
            return None
        return getattr(data[0], "url", None)


class StockPhotoProvider(ImageProvider):
    """Search Pexels, then Unsplash, then optionally the curated catalog."""

    name = "stock"

    def __init__(
        self,
        *,
        pexels_api_key: Optional[str] = None,
        unsplash_access_key: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        per_page: int = 15,
        randomize: bool = False,
        use_fallback_catalog: bool = False,
        timeout: float = 10.0,
    ) -> None:
        self.pexels_api_key = pexels_api_key
        self.unsplash_access_key = unsplash_access_key
        self.http_client = http_client
        self.per_page = per_page
        self.randomize = randomize
        self.use_fallback_catalog = use_fallback_catalog
        self.timeout = timeout

    async def resolve(self, keywords: str) -> Optional[str]:
        if not keywords or not keywords.strip():
            return None
        query = keywords.strip()
        if self.http_client is not None:
            url = await self._search_all(self.http_client, query)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                url = await self._search_all(client, query)
        if url is None and self.use_fallback_catalog:
            url = self._from_catalog(query)
        return url

    async def _search_all(self, client: httpx.AsyncClient, query: str) -> Optional[str]:
        url = await self._search_pexels(client, query)
        if url:
            return url
        return await self._search_unsplash(client, query)

    async def _search_pexels(self, client: httpx.AsyncClient, query: str) -> Optional[str]:
        if not self.pexels_api_key:
            return None
        try:
            response = await client.get(
                PEXELS_SEARCH_URL,
                params={"query": query, "per_page": self.per_page, "orientation": "landscape"},
                headers={"Authorization": self.pexels_api_key},
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            LOGGER.warning("Pexels search failed for %r: %s", query, exc)
            return None
        photos = response.json().get("photos") or []
        photo = self._pick(photos)
        if photo is None:
            return None
        src = photo.get("src") or {}
        return src.get("large2x") or src.get("large")

    async def _search_unsplash(self, client: httpx.AsyncClient, query: str) -> Optional[str]:
        if not self.unsplash_access_key:
            return None
        try:
            response = await client.get(
                UNSPLASH_SEARCH_URL,
                params={"query": query, "per_page": self.per_page, "orientation": "landscape"},
                headers={"Authorization": f"Client-ID {self.unsplash_access_key}"},
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            LOGGER.warning("Unsplash search failed for %r: %s", query, exc)
            return None
        results = response.json().get("results") or []
        photo = self._pick(results)
        if photo is None:
            return None
        return (photo.get("urls") or {}).get("regular")

    def _pick(self, items: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if not items:
            return None
        if self.randomize:
            return random.choice(items)
        return items[0]

    def _from_catalog(self, query: str) -> Optional[str]:
        for word in re.split(r"[\s,]+", query.lower()):
            if not word:
                continue
            for category, photos in FALLBACK_PHOTOS.items():
                if word in category or category in word:
                    return photos[0]
        return None
