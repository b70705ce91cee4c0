"""Concurrent image resolution for assembled slides.

Every eligible slide is resolved independently: the generative provider is
tried while quota remains (one retry after ``retry_delay``), then the stock
provider with progressively shorter keyword phrases. A slide that resolves
nothing keeps ``image_url`` empty and renders a placeholder.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence

from .errors import ImageResolutionFailure
from .image_providers import ImageProvider, QuotaGuard
from .slide_models import IMAGE_LAYOUTS, ImageSource, Slide

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


@dataclass(frozen=True)
class ImageResolution:
    url: Optional[str] = None
    source: Optional[ImageSource] = None


def is_eligible(slide: Slide) -> bool:
    """Image layouts and any slide carrying image keywords get an image."""

    if slide.layout in IMAGE_LAYOUTS:
        return True
    return bool(slide.image_prompt and slide.image_prompt.strip())


def fallback_queries(slide: Slide, max_words: int = 3) -> List[str]:
    """Ordered, de-duplicated stock queries for ``slide``."""

    queries: List[str] = []
    keywords = (slide.image_prompt or "").strip()
    if keywords:
        queries.append(keywords)
        words = keywords.replace(",", " ").split()
        if len(words) > max_words:
            queries.append(" ".join(words[:max_words]))
    title = (slide.title or "").strip()
    if title:
        queries.append(title)
    seen = set()
    ordered = []
    for query in queries:
        key = query.lower()
        if key not in seen:
            seen.add(key)
            ordered.append(query)
    return ordered


class ImageEnricher:
    def __init__(
        self,
        generative: Optional[ImageProvider],
        stock: Optional[ImageProvider],
        quota: QuotaGuard,
        *,
        retry_delay: float = 1.5,
        per_slide_timeout: Optional[float] = 30.0,
        max_fallback_words: int = 3,
    ) -> None:
        self.generative = generative
        self.stock = stock
        self.quota = quota
        self.retry_delay = retry_delay
        self.per_slide_timeout = per_slide_timeout
        self.max_fallback_words = max_fallback_words

    async def enrich(
        self,
        slides: Sequence[Slide],
        include_images: bool,
        progress: Optional[ProgressCallback] = None,
    ) -> List[Slide]:
        """Return ``slides`` with images filled in, in the original order."""

        slides = list(slides)
        if not include_images:
            return slides

        targets = [idx for idx, slide in enumerate(slides) if is_eligible(slide)]
        if not targets:
            return slides

        total = len(targets)
        settled = 0

        async def _tracked(slide: Slide) -> ImageResolution:
            nonlocal settled
            try:
                return await self._resolve_with_budget(slide)
            finally:
                settled += 1
                if progress is not None:
                    progress(f"resolved {settled} of {total} images")

        results = await asyncio.gather(
            *(_tracked(slides[idx]) for idx in targets), return_exceptions=True
        )

        enriched = list(slides)
        for idx, result in zip(targets, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                LOGGER.warning("Image resolution crashed for slide %s: %s", slides[idx].id, result)
                continue
            if result.url:
                enriched[idx] = slides[idx].with_image(result.url, result.source)
        found = sum(1 for idx in targets if enriched[idx].image_url)
        LOGGER.info("Resolved %d of %d eligible slide images", found, total)
        return enriched

    async def _resolve_with_budget(self, slide: Slide) -> ImageResolution:
        try:
            return await self.resolve_slide(slide)
        except ImageResolutionFailure as exc:
            LOGGER.info("%s", exc)
            return ImageResolution()

    async def _within_budget(self, lookup: Awaitable[Optional[str]], slide: Slide, phase: str) -> Optional[str]:
        if self.per_slide_timeout is None:
            return await lookup
        try:
            return await asyncio.wait_for(lookup, timeout=self.per_slide_timeout)
        except asyncio.TimeoutError:
            LOGGER.warning(
                "%s image lookup for slide %s exceeded %.1fs", phase, slide.id, self.per_slide_timeout
            )
            return None

    async def resolve_slide(self, slide: Slide) -> ImageResolution:
        """Run the provider chain for one slide.

        The generative and stock phases each get ``per_slide_timeout``, so a
        slow generative provider still leaves stock its turn.
        Raises ``ImageResolutionFailure`` when no provider produced a URL.
        """

        keywords = (slide.image_prompt or slide.title or "").strip()

        if self.generative is not None and keywords and self.quota.has_quota():
            url = await self._within_budget(self._try_generative(slide, keywords), slide, "Generative")
            if url:
                self.quota.consume()
                LOGGER.info("Slide %s: generative image", slide.id)
                return ImageResolution(url, ImageSource.GENERATIVE)

        if self.stock is not None:
            url = await self._within_budget(self._try_stock(slide), slide, "Stock")
            if url:
                return ImageResolution(url, ImageSource.STOCK)

        raise ImageResolutionFailure(slide.id, keywords, reason="no provider returned an image")

    async def _try_generative(self, slide: Slide, keywords: str) -> Optional[str]:
        for attempt in (1, 2):
            try:
                url = await self.generative.resolve(keywords)
            except Exception as exc:
                LOGGER.warning(
                    "Generative image attempt %d failed for slide %s: %s", attempt, slide.id, exc
                )
                url = None
            if url:
                return url
            if attempt == 1:
                await asyncio.sleep(self.retry_delay)
        return None

    async def _try_stock(self, slide: Slide) -> Optional[str]:
        for query in fallback_queries(slide, self.max_fallback_words):
            try:
                url = await self.stock.resolve(query)
            except Exception as exc:
                LOGGER.warning("Stock search failed for %r: %s", query, exc)
                continue
            if url:
                LOGGER.info("Slide %s: stock image for %r", slide.id, query)
                return url
        return None
