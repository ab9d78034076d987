"""Unit tests for preview assembly, image selection and embeds."""

from __future__ import annotations

import httpx
import pytest

from tests.conftest import FAKE_PNG, FakeRasterizer, file_payload, note_payload, user_payload
from vxsharkey.services.errors import NotFoundError, RenderError, UpstreamError
from vxsharkey.services.preview_service import PreviewService

BASE_URL = "http://test/"
CARD_URL = "http://test/og-image/example.social/notes/abc123"


class TestNotePreview:
    """Tests for note page view models and og:image choice."""

    @pytest.mark.asyncio
    async def test_open_graph_fields(self, make_api, build_service) -> None:
        service = build_service(make_api({"/api/notes/show": note_payload(text="Hello <b>world</b>")}))

        preview = await service.note_preview("example.social", "abc123", BASE_URL)

        assert preview.og.title == "Alice on example.social"
        assert preview.og.description == "Hello world"
        assert preview.og.url == "https://example.social/notes/abc123"
        assert preview.og.type == "article"
        assert preview.og.site_name == "vxsharkey"
        assert "<b>world</b>" in preview.content_html
        assert preview.quote_html is None

    @pytest.mark.asyncio
    async def test_multiple_images_use_rendered_card(self, make_api, build_service, rasterizer) -> None:
        files = [file_payload(1), file_payload(2)]
        service = build_service(make_api({"/api/notes/show": note_payload(files=files)}))

        preview = await service.note_preview("example.social", "abc123", BASE_URL)

        assert preview.og.image == CARD_URL
        assert preview.og.twitter_card == "summary_large_image"
        assert rasterizer.calls == 1

    @pytest.mark.asyncio
    async def test_text_only_note_uses_rendered_card(self, make_api, build_service) -> None:
        service = build_service(make_api({"/api/notes/show": note_payload()}))

        preview = await service.note_preview("example.social", "abc123", "http://test")

        assert preview.og.image == CARD_URL

    @pytest.mark.asyncio
    async def test_single_attachment_skips_rendering(self, make_api, build_service, rasterizer) -> None:
        service = build_service(make_api({"/api/notes/show": note_payload(files=[file_payload(1)])}))

        preview = await service.note_preview("example.social", "abc123", BASE_URL)

        assert preview.og.image == "https://cdn.example.social/thumbs/1.webp"
        assert rasterizer.calls == 0

    @pytest.mark.asyncio
    async def test_render_failure_falls_back_to_first_attachment(self, make_api, build_service) -> None:
        files = [file_payload(1, thumbnail=False), file_payload(2)]
        failing = FakeRasterizer(error=RuntimeError("no browser"))
        service = build_service(make_api({"/api/notes/show": note_payload(files=files)}), failing)

        preview = await service.note_preview("example.social", "abc123", BASE_URL)

        assert preview.og.image == "https://cdn.example.social/files/1.png"

    @pytest.mark.asyncio
    async def test_no_image_when_nothing_available(self, make_api, build_service) -> None:
        service = build_service(make_api({"/api/notes/show": note_payload()}), FakeRasterizer(result=None))

        preview = await service.note_preview("example.social", "abc123", BASE_URL)

        assert preview.og.image is None
        assert preview.og.twitter_card == "summary"

    @pytest.mark.asyncio
    async def test_disabled_cards_fall_back(self, make_api, build_service, rasterizer) -> None:
        files = [file_payload(1), file_payload(2)]
        service = build_service(make_api({"/api/notes/show": note_payload(files=files)}), enabled=False)

        preview = await service.note_preview("example.social", "abc123", BASE_URL)

        assert preview.og.image == "https://cdn.example.social/thumbs/1.webp"
        assert rasterizer.calls == 0

    @pytest.mark.asyncio
    async def test_quote_is_sanitized(self, make_api, build_service) -> None:
        quoted = note_payload("q1", text="<script>x()</script><i>quoted</i>")
        service = build_service(make_api({"/api/notes/show": note_payload(text="my take", renote=quoted)}))

        preview = await service.note_preview("example.social", "abc123", BASE_URL)

        assert preview.quote_html == "<i>quoted</i>"

    @pytest.mark.asyncio
    async def test_missing_note_propagates(self, make_api, build_service) -> None:
        service = build_service(make_api({}))

        with pytest.raises(NotFoundError):
            await service.note_preview("example.social", "abc123", BASE_URL)

    @pytest.mark.asyncio
    async def test_custom_image_strategies(self, make_api, build_service) -> None:
        async def always(note, domain, base_url):
            return "https://img.example/fixed.png"

        api = make_api({"/api/notes/show": note_payload()})
        default = build_service(api)
        service = PreviewService(default.client, default.cards, image_strategies=[always])

        preview = await service.note_preview("example.social", "abc123", BASE_URL)

        assert preview.og.image == "https://img.example/fixed.png"


class TestProfilePreview:
    """Tests for profile view models."""

    @pytest.mark.asyncio
    async def test_profile_with_notes(self, make_api, build_service) -> None:
        api = make_api(
            {
                "/api/users/show": user_payload(description="<p>Shark fan</p>", followersCount=10),
                "/api/users/notes": [note_payload("n1"), note_payload("n2")],
            }
        )
        service = build_service(api)

        preview = await service.profile_preview("example.social", "alice")

        assert preview.og.title == "Alice (@alice@example.social)"
        assert preview.og.description == "Shark fan"
        assert preview.og.url == "https://example.social/@alice"
        assert preview.og.image == "https://cdn.example.social/avatars/u1.webp"
        assert preview.og.type == "profile"
        assert preview.description_html == "<p>Shark fan</p>"
        assert [n.id for n in preview.notes] == ["n1", "n2"]
        assert api.bodies("/api/users/notes") == [{"userId": "u1", "limit": 20}]

    @pytest.mark.asyncio
    async def test_notes_failure_is_tolerated(self, make_api, build_service) -> None:
        api = make_api(
            {
                "/api/users/show": user_payload(),
                "/api/users/notes": httpx.Response(500),
            }
        )
        service = build_service(api)

        preview = await service.profile_preview("example.social", "alice")

        assert preview.notes == []

    @pytest.mark.asyncio
    async def test_lookup_by_id(self, make_api, build_service) -> None:
        api = make_api({"/api/users/show": user_payload("u7"), "/api/users/notes": []})
        service = build_service(api)

        preview = await service.profile_preview("example.social", "u7", by_id=True)

        assert preview.user.id == "u7"
        assert api.bodies("/api/users/show") == [{"userId": "u7"}]

    @pytest.mark.asyncio
    async def test_missing_user_propagates(self, make_api, build_service) -> None:
        api = make_api(
            {"/api/users/show": httpx.Response(400, json={"error": {"code": "NO_SUCH_USER"}})}
        )
        service = build_service(api)

        with pytest.raises(NotFoundError):
            await service.profile_preview("example.social", "ghost")


class TestInstancePreview:
    """Tests for instance view models."""

    @pytest.mark.asyncio
    async def test_instance_with_timeline(self, make_api, build_service) -> None:
        api = make_api(
            {
                "/api/meta": {
                    "name": "Example Social",
                    "description": "A <b>friendly</b> place",
                    "iconUrl": "https://example.social/icon.png",
                },
                "/api/notes/local-timeline": [note_payload("n1")],
            }
        )
        service = build_service(api)

        preview = await service.instance_preview("example.social")

        assert preview.og.title == "Example Social"
        assert preview.og.description == "A friendly place"
        assert preview.og.url == "https://example.social"
        assert preview.og.image == "https://example.social/icon.png"
        assert preview.og.type == "website"
        assert [n.id for n in preview.notes] == ["n1"]

    @pytest.mark.asyncio
    async def test_banner_preferred_and_domain_as_fallback_title(self, make_api, build_service) -> None:
        api = make_api(
            {
                "/api/meta": {"bannerUrl": "https://example.social/banner.png", "iconUrl": "https://x/i.png"},
                "/api/notes/local-timeline": [],
            }
        )
        service = build_service(api)

        preview = await service.instance_preview("example.social")

        assert preview.og.title == "example.social"
        assert preview.og.image == "https://example.social/banner.png"

    @pytest.mark.asyncio
    async def test_timeline_failure_propagates(self, make_api, build_service) -> None:
        api = make_api(
            {
                "/api/meta": {"name": "Example"},
                "/api/notes/local-timeline": httpx.Response(502),
            }
        )
        service = build_service(api)

        with pytest.raises(UpstreamError):
            await service.instance_preview("example.social")


class TestDiscordEmbed:
    """Tests for chat embed payloads."""

    @pytest.mark.asyncio
    async def test_plain_note(self, make_api, build_service) -> None:
        service = build_service(make_api({"/api/notes/show": note_payload()}))

        payload = await service.discord_embed("example.social", "abc123")

        embed = payload.embeds[0]
        assert embed.author.name == "Alice"
        assert embed.author.icon_url == "https://cdn.example.social/avatars/u1.webp"
        assert embed.description == "Hello world"
        assert embed.color == 3447003
        assert embed.timestamp == "2024-05-01T12:00:00.000Z"
        assert embed.footer.text == "🦈 vxsharkey"
        assert embed.image is None
        assert embed.fields == []

    @pytest.mark.asyncio
    async def test_image_and_attachment_count(self, make_api, build_service) -> None:
        files = [file_payload(1), file_payload(2), file_payload(3, mime="video/mp4")]
        service = build_service(make_api({"/api/notes/show": note_payload(files=files)}))

        embed = (await service.discord_embed("example.social", "abc123")).embeds[0]

        assert embed.image is not None
        assert embed.image.url == "https://cdn.example.social/files/1.png"
        assert [(f.name, f.value) for f in embed.fields] == [("Attachments", "3 files attached")]

    @pytest.mark.asyncio
    async def test_non_image_first_file_has_no_image(self, make_api, build_service) -> None:
        files = [file_payload(1, mime="video/mp4")]
        service = build_service(make_api({"/api/notes/show": note_payload(files=files)}))

        embed = (await service.discord_embed("example.social", "abc123")).embeds[0]

        assert embed.image is None
        assert embed.fields == []

    @pytest.mark.asyncio
    async def test_quote_field(self, make_api, build_service) -> None:
        quoted = note_payload("q1", text="z" * 150, user=user_payload("u2", "bob"))
        service = build_service(make_api({"/api/notes/show": note_payload(text="so true", renote=quoted)}))

        embed = (await service.discord_embed("example.social", "abc123")).embeds[0]

        field = embed.fields[-1]
        assert field.name == "Quoting"
        assert field.value.startswith("@bob: zzz")
        assert len(field.value) == len("@bob: ") + 100


class TestCardImage:
    """Tests for the PNG card accessor."""

    @pytest.mark.asyncio
    async def test_returns_png(self, make_api, build_service) -> None:
        service = build_service(make_api({"/api/notes/show": note_payload()}))
        assert await service.card_image("example.social", "abc123") == FAKE_PNG

    @pytest.mark.asyncio
    async def test_raises_when_render_unavailable(self, make_api, build_service) -> None:
        service = build_service(make_api({"/api/notes/show": note_payload()}), enabled=False)

        with pytest.raises(RenderError):
            await service.card_image("example.social", "abc123")
