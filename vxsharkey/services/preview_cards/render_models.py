"""Render model dataclasses for the note card template."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class CardAuthor:
    """Author identity shown in the card header."""

    name: str  # display name, falls back to username
    avatar_url: Optional[str] = None


@dataclass
class CardQuote:
    """Nested block for a quoted note."""

    author: CardAuthor
    text: str  # plain text, truncated


@dataclass
class CardModel:
    """Everything the note card template needs; values are plain text."""

    author: CardAuthor
    domain: str
    text: str  # plain text, truncated
    image_urls: list[str] = field(default_factory=list)
    grid_class: Optional[str] = None
    quote: Optional[CardQuote] = None
    footer: str = ""
