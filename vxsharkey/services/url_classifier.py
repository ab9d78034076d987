"""Classify Misskey/Sharkey URLs into notes, profiles and instances."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import urlsplit

from vxsharkey.services.errors import InvalidUrlError

_ALLOWED_SCHEMES = ("http", "https")
_LOOPBACK_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})
_PRIVATE_172_RE = re.compile(r"^172\.(1[6-9]|2[0-9]|3[0-1])\.")

_NOTE_ID_RE = re.compile(r"/notes/([a-zA-Z0-9]+)")
_USERNAME_RE = re.compile(r"/@([a-zA-Z0-9_-]+)")


class ContentKind(str, Enum):
    """What an inbound URL points at."""

    note = "note"
    profile = "profile"
    instance = "instance"


@dataclass(frozen=True)
class ResolvedTarget:
    """Classifier output: the remote resource an inbound URL refers to."""

    kind: ContentKind
    domain: str
    id: Optional[str] = None
    username: Optional[str] = None

    @property
    def profile_ref(self) -> Optional[str]:
        """Username if known, else user id (profiles only)."""
        return self.username or self.id


def is_private_host(hostname: str) -> bool:
    """Return True for loopback and private-range host literals.

    String-based only: hostnames are not resolved, so a public name that
    resolves to a private address is not caught here.
    """
    host = hostname.lower().strip("[]").rstrip(".")
    if host in _LOOPBACK_HOSTS:
        return True
    if host.startswith("10.") or host.startswith("192.168."):
        return True
    return bool(_PRIVATE_172_RE.match(host))


def is_safe_domain(domain: str) -> bool:
    """Validate a bare ``host[:port]`` taken from a route parameter."""
    if not domain or any(ch in domain for ch in "/\\@?#") or any(ch.isspace() for ch in domain):
        return False
    try:
        parts = urlsplit(f"https://{domain}")
        hostname = parts.hostname
        if parts.port is not None and not 0 < parts.port < 65536:
            return False
    except ValueError:
        return False
    if not hostname:
        return False
    return not is_private_host(hostname)


def is_safe_url(url: str) -> bool:
    """Return True if ``url`` is an absolute http(s) URL to a public host."""
    try:
        _parse(url)
    except InvalidUrlError:
        return False
    return True


def classify(url: str) -> ResolvedTarget:
    """Parse ``url`` and work out which note, profile or instance it names.

    Raises:
        InvalidUrlError: If the URL is unparseable, not http(s), or targets a
            loopback/private host.
    """
    parts, domain = _parse(url)
    path = parts.path or "/"

    if "/notes/" in path:
        note_id = _segment_after(path, "/notes/")
        if note_id:
            return ResolvedTarget(kind=ContentKind.note, domain=domain, id=note_id)

    if path.startswith("/@"):
        username = path[2:].split("/")[0]
        if username:
            return ResolvedTarget(
                kind=ContentKind.profile, domain=domain, username=username
            )

    if "/users/" in path:
        user_id = _segment_after(path, "/users/")
        if user_id:
            return ResolvedTarget(kind=ContentKind.profile, domain=domain, id=user_id)

    return ResolvedTarget(kind=ContentKind.instance, domain=domain)


def extract_note_id(url: str) -> Optional[str]:
    """Pull a note id out of any URL containing ``/notes/<id>``."""
    match = _NOTE_ID_RE.search(url)
    return match.group(1) if match else None


def extract_username(url: str) -> Optional[str]:
    """Pull a username out of any URL containing ``/@<username>``."""
    match = _USERNAME_RE.search(url)
    return match.group(1) if match else None


def _parse(url: str):
    if not url or not isinstance(url, str):
        raise InvalidUrlError("URL parameter is required")
    try:
        parts = urlsplit(url.strip())
        hostname = parts.hostname
        port = parts.port
    except ValueError as exc:
        raise InvalidUrlError() from exc

    if parts.scheme.lower() not in _ALLOWED_SCHEMES or not hostname:
        raise InvalidUrlError()
    if is_private_host(hostname):
        raise InvalidUrlError()

    host = f"[{hostname}]" if ":" in hostname else hostname
    domain = host if port is None else f"{host}:{port}"
    return parts, domain


def _segment_after(path: str, marker: str) -> str:
    return path.split(marker, 1)[1].split("/")[0]
