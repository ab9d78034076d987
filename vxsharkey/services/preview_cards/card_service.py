"""Preview card service orchestrating note -> markup -> PNG with caching."""

import logging
import time
from typing import Optional, Protocol

from vxsharkey.models.misskey import Note
from vxsharkey.services.preview_cards.html_renderer import CardHTMLRenderer
from vxsharkey.services.preview_cards.model_builders import build_card_model
from vxsharkey.services.response_cache import ResponseCache

logger = logging.getLogger(__name__)


class Rasterizer(Protocol):
    async def rasterize(self, html: str) -> Optional[bytes]: ...

    async def close(self) -> None: ...


def card_cache_key(domain: str, note_id: str) -> str:
    """Cache key for a rendered card, separate from API payload keys."""
    return f"og-image:{domain}:{note_id}"


class PreviewCardService:
    """Renders note preview cards, degrading to ``None`` on any failure."""

    def __init__(
        self,
        cache: ResponseCache,
        rasterizer: Rasterizer,
        enabled: bool = True,
        renderer: Optional[CardHTMLRenderer] = None,
    ) -> None:
        """Initialize the card service.

        Args:
            cache: Shared response cache; cards live under ``og-image:`` keys
            rasterizer: Browser-backed HTML to PNG converter
            enabled: When False every render is a soft no-op
            renderer: Card markup renderer (defaults to the Jinja2 one)
        """
        self.cache = cache
        self.rasterizer = rasterizer
        self.enabled = enabled
        self.renderer = renderer or CardHTMLRenderer()

    async def render_card(self, note: Note, domain: str) -> Optional[bytes]:
        """Return PNG bytes for ``note``'s card, or None if unavailable."""
        if not self.enabled:
            return None

        cache_key = card_cache_key(domain, note.id)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Card cache hit: key={cache_key}")
            return cached

        start_time = time.perf_counter()
        try:
            html = self.renderer.render(build_card_model(note, domain))
            png_bytes = await self.rasterizer.rasterize(html)
        except Exception:
            logger.exception(f"Error generating card for {domain}/{note.id}")
            return None

        if not png_bytes:
            logger.warning(f"Card rendering unavailable for {domain}/{note.id}")
            return None

        self.cache.set(cache_key, png_bytes)
        logger.info(
            f"Card generated: key={cache_key}, size={len(png_bytes)} bytes, "
            f"total={time.perf_counter() - start_time:.3f}s"
        )
        return png_bytes

    async def close(self) -> None:
        await self.rasterizer.close()
