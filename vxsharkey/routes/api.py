"""Machine-readable endpoints: chat embeds and raw card images."""

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from vxsharkey.dependencies import get_preview_service
from vxsharkey.models.previews import EmbedPayload
from vxsharkey.routes.previews import require_safe_domain
from vxsharkey.services.preview_service import PreviewService

router = APIRouter(tags=["api"])

CARD_CACHE_CONTROL = "public, max-age=86400"


@router.get(
    "/api/discord-embed/{domain}/notes/{note_id}",
    response_model=EmbedPayload,
    response_model_exclude_none=True,
)
async def discord_embed(
    domain: str,
    note_id: str,
    service: PreviewService = Depends(get_preview_service),
) -> EmbedPayload:
    """Discord-style embed payload for a note."""
    domain = require_safe_domain(domain)
    return await service.discord_embed(domain, note_id)


@router.get("/og-image/{domain}/notes/{note_id}")
async def og_image(
    domain: str,
    note_id: str,
    service: PreviewService = Depends(get_preview_service),
) -> Response:
    """Rendered PNG preview card, cacheable for a day."""
    domain = require_safe_domain(domain)
    png_bytes = await service.card_image(domain, note_id)
    return Response(
        content=png_bytes,
        media_type="image/png",
        headers={"Cache-Control": CARD_CACHE_CONTROL},
    )
