"""View models handed to page templates and the embed endpoint."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from vxsharkey.models.misskey import InstanceMeta, Note, User


class OpenGraphData(BaseModel):
    title: str
    description: str
    url: str
    image: Optional[str] = Field(default=None)
    type: Literal["article", "profile", "website"] = Field(default="article")
    site_name: str

    @property
    def twitter_card(self) -> str:
        return "summary_large_image" if self.image else "summary"


class NotePreview(BaseModel):
    domain: str
    note: Note
    og: OpenGraphData
    content_html: str
    quote_html: Optional[str] = Field(default=None)


class ProfilePreview(BaseModel):
    domain: str
    user: User
    og: OpenGraphData
    description_html: str
    notes: list[Note] = Field(default_factory=list)


class InstancePreview(BaseModel):
    domain: str
    meta: InstanceMeta
    og: OpenGraphData
    description_html: str
    notes: list[Note] = Field(default_factory=list)


class EmbedAuthor(BaseModel):
    name: str
    icon_url: Optional[str] = Field(default=None)


class EmbedFooter(BaseModel):
    text: str


class EmbedImage(BaseModel):
    url: str


class EmbedField(BaseModel):
    name: str
    value: str


class DiscordEmbed(BaseModel):
    """One entry of a Discord-style ``embeds`` array."""

    author: EmbedAuthor
    description: str
    color: int
    timestamp: str
    footer: EmbedFooter
    image: Optional[EmbedImage] = Field(default=None)
    fields: list[EmbedField] = Field(default_factory=list)


class EmbedPayload(BaseModel):
    embeds: list[DiscordEmbed]
