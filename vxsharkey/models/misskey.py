"""Pydantic models for Misskey/Sharkey API payloads.

Only the fields the preview pipeline reads are declared; everything else in
the upstream JSON is ignored. Missing optional fields become ``None``.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


_WEB_SCHEMES = ("http://", "https://")


def web_url_or_none(value: Optional[str]) -> Optional[str]:
    """Return ``value`` if it is an http(s) URL, else None."""
    if value and value.strip().lower().startswith(_WEB_SCHEMES):
        return value
    return None


class MisskeyModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class Attachment(MisskeyModel):
    """A drive file attached to a note."""

    id: Optional[str] = Field(default=None)
    url: Optional[str] = Field(default=None)
    thumbnail_url: Optional[str] = Field(default=None)
    type: str = Field(default="application/octet-stream")
    name: Optional[str] = Field(default=None)
    is_sensitive: bool = Field(default=False)

    @field_validator("url", "thumbnail_url")
    @classmethod
    def web_urls_only(cls, v: Optional[str]) -> Optional[str]:
        return web_url_or_none(v)

    @property
    def is_image(self) -> bool:
        return self.type.startswith("image")

    @property
    def preview_url(self) -> Optional[str]:
        return self.thumbnail_url or self.url


class UserSummary(MisskeyModel):
    """The author block embedded in notes."""

    id: str
    username: str
    host: Optional[str] = Field(default=None)
    name: Optional[str] = Field(default=None)
    avatar_url: Optional[str] = Field(default=None)

    @field_validator("avatar_url")
    @classmethod
    def web_avatar_only(cls, v: Optional[str]) -> Optional[str]:
        return web_url_or_none(v)

    @property
    def display_name(self) -> str:
        return self.name or self.username


class User(UserSummary):
    """Full profile returned by ``users/show``."""

    description: Optional[str] = Field(default=None)
    banner_url: Optional[str] = Field(default=None)
    followers_count: Optional[int] = Field(default=None)
    following_count: Optional[int] = Field(default=None)
    notes_count: Optional[int] = Field(default=None)

    @field_validator("banner_url")
    @classmethod
    def web_banner_only(cls, v: Optional[str]) -> Optional[str]:
        return web_url_or_none(v)


class Note(MisskeyModel):
    """A single post; ``renote`` is the quoted or boosted note."""

    id: str
    created_at: str
    text: Optional[str] = Field(default=None)
    cw: Optional[str] = Field(default=None)
    user: UserSummary
    files: list[Attachment] = Field(default_factory=list)
    renote: Optional["Note"] = Field(default=None)
    renote_count: int = Field(default=0)
    replies_count: int = Field(default=0)
    reactions: dict[str, int] = Field(default_factory=dict)

    @field_validator("files")
    @classmethod
    def drop_unlinkable_files(cls, v: list[Attachment]) -> list[Attachment]:
        return [f for f in v if f.url]

    @property
    def is_quote(self) -> bool:
        """A renote carrying its own text; a bare renote is a boost."""
        return self.renote is not None and bool(self.text)

    @property
    def image_files(self) -> list[Attachment]:
        return [f for f in self.files if f.is_image]


class InstanceMeta(MisskeyModel):
    """Instance metadata from ``api/meta``."""

    name: Optional[str] = Field(default=None)
    description: Optional[str] = Field(default=None)
    version: Optional[str] = Field(default=None)
    icon_url: Optional[str] = Field(default=None)
    banner_url: Optional[str] = Field(default=None)
    uri: Optional[str] = Field(default=None)
    maintainer_name: Optional[str] = Field(default=None)

    @field_validator("icon_url", "banner_url")
    @classmethod
    def web_urls_only(cls, v: Optional[str]) -> Optional[str]:
        return web_url_or_none(v)

    def display_name(self, domain: str) -> str:
        return self.name or domain


Note.model_rebuild()
