"""Preview assembly: classified targets -> fetched content -> view models.

Combines the Misskey client, the sanitizer and the card service into the
objects the routes render. Failures fetching the primary resource propagate;
failures of secondary enrichment (card image, a profile's note list) fall
back quietly.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence

from vxsharkey.models.misskey import Note, User
from vxsharkey.models.previews import (
    DiscordEmbed,
    EmbedAuthor,
    EmbedField,
    EmbedFooter,
    EmbedImage,
    EmbedPayload,
    InstancePreview,
    NotePreview,
    OpenGraphData,
    ProfilePreview,
)
from vxsharkey.services.errors import PreviewError, RenderError
from vxsharkey.services.misskey_client import MisskeyClient
from vxsharkey.services.preview_cards.card_service import PreviewCardService
from vxsharkey.services.preview_cards.constants import FOOTER_TEXT
from vxsharkey.services.sanitizer import (
    sanitize_note_content,
    strip_html,
    truncate_text,
)

logger = logging.getLogger(__name__)

OG_DESCRIPTION_MAX = 200
EMBED_DESCRIPTION_MAX = 2000
EMBED_QUOTE_MAX = 100
EMBED_COLOR = 3447003  # Discord blurple-blue
RECENT_NOTES_LIMIT = 20

# (note, domain, base_url) -> image URL or None
ImageStrategy = Callable[[Note, str, str], Awaitable[Optional[str]]]


class PreviewService:
    """Builds note, profile and instance previews plus chat embeds."""

    def __init__(
        self,
        client: MisskeyClient,
        cards: PreviewCardService,
        site_name: str = "vxsharkey",
        image_strategies: Optional[Sequence[ImageStrategy]] = None,
    ) -> None:
        self.client = client
        self.cards = cards
        self.site_name = site_name
        # Evaluated in order; the first URL returned wins
        self.image_strategies: Sequence[ImageStrategy] = image_strategies or (
            self.single_attachment_image,
            self.rendered_card_image,
            self.first_attachment_image,
        )

    async def note_preview(self, domain: str, note_id: str, base_url: str) -> NotePreview:
        """Fetch a note and build its page view model."""
        note = await self.client.fetch_note(domain, note_id)

        og = OpenGraphData(
            title=f"{note.user.display_name} on {domain}",
            description=truncate_text(strip_html(note.text), OG_DESCRIPTION_MAX),
            url=f"https://{domain}/notes/{note.id}",
            image=await self.choose_image(note, domain, base_url),
            type="article",
            site_name=self.site_name,
        )
        quote_html = None
        if note.is_quote and note.renote is not None:
            quote_html = sanitize_note_content(note.renote.text)

        return NotePreview(
            domain=domain,
            note=note,
            og=og,
            content_html=sanitize_note_content(note.text),
            quote_html=quote_html,
        )

    async def choose_image(self, note: Note, domain: str, base_url: str) -> Optional[str]:
        """Run the image strategies in order and return the first hit."""
        for strategy in self.image_strategies:
            image = await strategy(note, domain, base_url)
            if image:
                return image
        return None

    async def single_attachment_image(
        self, note: Note, domain: str, base_url: str
    ) -> Optional[str]:
        """A lone attachment is used as-is; no card is rendered."""
        if len(note.files) == 1:
            return note.files[0].preview_url
        return None

    async def rendered_card_image(
        self, note: Note, domain: str, base_url: str
    ) -> Optional[str]:
        """Render (and cache) the card, then point at the card endpoint."""
        png_bytes = await self.cards.render_card(note, domain)
        if png_bytes is None:
            return None
        return f"{base_url.rstrip('/')}/og-image/{domain}/notes/{note.id}"

    async def first_attachment_image(
        self, note: Note, domain: str, base_url: str
    ) -> Optional[str]:
        if note.files:
            return note.files[0].preview_url
        return None

    async def profile_preview(
        self, domain: str, ref: str, by_id: bool = False
    ) -> ProfilePreview:
        """Fetch a user and, best-effort, their recent notes."""
        if by_id:
            user = await self.client.fetch_user_by_id(domain, ref)
        else:
            user = await self.client.fetch_user(domain, ref)

        try:
            notes = await self.client.fetch_user_notes(domain, user.id, RECENT_NOTES_LIMIT)
        except PreviewError as exc:
            logger.warning(f"Recent notes unavailable for {user.id}@{domain}: {exc}")
            notes = []

        return ProfilePreview(
            domain=domain,
            user=user,
            og=self._profile_og(user, domain),
            description_html=sanitize_note_content(user.description),
            notes=notes,
        )

    async def instance_preview(self, domain: str) -> InstancePreview:
        """Fetch instance metadata and the local timeline concurrently."""
        meta, notes = await asyncio.gather(
            self.client.fetch_instance_meta(domain),
            self.client.fetch_timeline(domain, RECENT_NOTES_LIMIT),
        )
        og = OpenGraphData(
            title=meta.display_name(domain),
            description=truncate_text(strip_html(meta.description), OG_DESCRIPTION_MAX),
            url=f"https://{domain}",
            image=meta.banner_url or meta.icon_url,
            type="website",
            site_name=self.site_name,
        )
        return InstancePreview(
            domain=domain,
            meta=meta,
            og=og,
            description_html=sanitize_note_content(meta.description),
            notes=notes,
        )

    async def discord_embed(self, domain: str, note_id: str) -> EmbedPayload:
        """Build a chat-platform embed for a note."""
        note = await self.client.fetch_note(domain, note_id)

        embed = DiscordEmbed(
            author=EmbedAuthor(name=note.user.display_name, icon_url=note.user.avatar_url),
            description=truncate_text(strip_html(note.text), EMBED_DESCRIPTION_MAX),
            color=EMBED_COLOR,
            timestamp=note.created_at,
            footer=EmbedFooter(text=FOOTER_TEXT),
        )

        if note.files:
            if note.files[0].is_image:
                embed.image = EmbedImage(url=note.files[0].url)
            if len(note.files) > 1:
                embed.fields.append(
                    EmbedField(name="Attachments", value=f"{len(note.files)} files attached")
                )

        if note.is_quote and note.renote is not None:
            quoted = truncate_text(strip_html(note.renote.text), EMBED_QUOTE_MAX)
            embed.fields.append(
                EmbedField(name="Quoting", value=f"@{note.renote.user.username}: {quoted}")
            )

        return EmbedPayload(embeds=[embed])

    async def card_image(self, domain: str, note_id: str) -> bytes:
        """Return the PNG card for a note, raising when it cannot be made."""
        note = await self.client.fetch_note(domain, note_id)
        png_bytes = await self.cards.render_card(note, domain)
        if png_bytes is None:
            raise RenderError()
        return png_bytes

    def _profile_og(self, user: User, domain: str) -> OpenGraphData:
        return OpenGraphData(
            title=f"{user.display_name} (@{user.username}@{domain})",
            description=truncate_text(strip_html(user.description), OG_DESCRIPTION_MAX),
            url=f"https://{domain}/@{user.username}",
            image=user.avatar_url,
            type="profile",
            site_name=self.site_name,
        )
