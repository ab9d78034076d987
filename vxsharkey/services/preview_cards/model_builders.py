"""Build card render models from fetched notes."""

from typing import Optional

from vxsharkey.models.misskey import Note, UserSummary
from vxsharkey.services.preview_cards.constants import (
    BODY_MAX_CHARS,
    FOOTER_TEXT,
    GRID_CLASSES,
    MAX_GRID_IMAGES,
    QUOTE_MAX_CHARS,
)
from vxsharkey.services.preview_cards.render_models import (
    CardAuthor,
    CardModel,
    CardQuote,
)
from vxsharkey.services.sanitizer import strip_html, truncate_text


def grid_class(image_count: int) -> Optional[str]:
    """Return the grid layout class for ``image_count`` images, if any."""
    if image_count <= 0:
        return None
    return GRID_CLASSES[min(image_count, MAX_GRID_IMAGES)]


def build_card_model(note: Note, domain: str) -> CardModel:
    """Assemble the card for ``note``.

    Only image attachments are shown, at most four of them. The quote block
    is present only when the note quotes another note with its own text.
    """
    image_urls = [f.preview_url for f in note.image_files[:MAX_GRID_IMAGES]]

    quote: Optional[CardQuote] = None
    if note.is_quote and note.renote is not None:
        quote = CardQuote(
            author=_author(note.renote.user),
            text=truncate_text(strip_html(note.renote.text), QUOTE_MAX_CHARS),
        )

    return CardModel(
        author=_author(note.user),
        domain=domain,
        text=truncate_text(strip_html(note.text), BODY_MAX_CHARS),
        image_urls=image_urls,
        grid_class=grid_class(len(image_urls)),
        quote=quote,
        footer=FOOTER_TEXT,
    )


def _author(user: UserSummary) -> CardAuthor:
    return CardAuthor(name=user.display_name, avatar_url=user.avatar_url)
