"""Client for the Misskey/Sharkey JSON API with response caching."""

from __future__ import annotations

import logging
from typing import Any, Optional, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from vxsharkey.models.misskey import InstanceMeta, Note, User
from vxsharkey.services.errors import NotFoundError, UpstreamError
from vxsharkey.services.response_cache import ResponseCache

logger = logging.getLogger(__name__)

_USER_AGENT = "vxsharkey/1.0 (+link previews)"
_NOT_FOUND_CODES = frozenset({"NO_SUCH_NOTE", "NO_SUCH_USER"})
_NOTE_LIST = TypeAdapter(list[Note])

DEFAULT_TIMEOUT = 10.0
DEFAULT_NOTE_LIMIT = 20

ModelT = TypeVar("ModelT", bound=BaseModel)


class MisskeyClient:
    """Fetches notes, users, instance metadata and timelines.

    Every operation is cache-then-fetch: a hit returns immediately, a miss
    issues exactly one POST to the instance and caches the validated result.
    Callers are expected to have validated ``domain`` already.
    """

    def __init__(
        self,
        cache: ResponseCache,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.cache = cache
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            headers={"User-Agent": _USER_AGENT},
            timeout=httpx.Timeout(timeout),
            follow_redirects=False,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def fetch_note(self, domain: str, note_id: str) -> Note:
        """Fetch a note via ``notes/show``."""
        return await self._fetch_model(
            f"note:{domain}:{note_id}",
            domain,
            "/api/notes/show",
            {"noteId": note_id},
            Note,
            resource="note",
        )

    async def fetch_user(self, domain: str, username: str) -> User:
        """Fetch a local user profile by username via ``users/show``."""
        return await self._fetch_model(
            f"user:{domain}:{username}",
            domain,
            "/api/users/show",
            {"username": username, "host": None},
            User,
            resource="user",
        )

    async def fetch_user_by_id(self, domain: str, user_id: str) -> User:
        """Fetch a user profile by id via ``users/show``."""
        return await self._fetch_model(
            f"user-id:{domain}:{user_id}",
            domain,
            "/api/users/show",
            {"userId": user_id},
            User,
            resource="user",
        )

    async def fetch_instance_meta(self, domain: str) -> InstanceMeta:
        """Fetch instance metadata via ``meta``."""
        return await self._fetch_model(
            f"instance:{domain}",
            domain,
            "/api/meta",
            {"detail": True},
            InstanceMeta,
            resource="instance meta",
        )

    async def fetch_timeline(
        self, domain: str, limit: int = DEFAULT_NOTE_LIMIT
    ) -> list[Note]:
        """Fetch recent public local notes via ``notes/local-timeline``."""
        return await self._fetch_notes(
            f"instance-notes:{domain}:{limit}",
            domain,
            "/api/notes/local-timeline",
            {"limit": limit},
            resource="instance notes",
        )

    async def fetch_user_notes(
        self, domain: str, user_id: str, limit: int = DEFAULT_NOTE_LIMIT
    ) -> list[Note]:
        """Fetch a user's recent notes via ``users/notes``."""
        return await self._fetch_notes(
            f"user-notes:{domain}:{user_id}:{limit}",
            domain,
            "/api/users/notes",
            {"userId": user_id, "limit": limit},
            resource="user notes",
        )

    async def _fetch_model(
        self,
        cache_key: str,
        domain: str,
        path: str,
        payload: dict[str, Any],
        model: type[ModelT],
        *,
        resource: str,
    ) -> ModelT:
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Cache hit for {cache_key}")
            return cached

        data = await self._post(domain, path, payload, resource=resource)
        if data is None:
            raise NotFoundError(f"{resource.capitalize()} not found")
        try:
            result = model.model_validate(data)
        except ValidationError as exc:
            logger.warning(f"Malformed {resource} payload from {domain}: {exc}")
            raise UpstreamError(f"Unexpected {resource} data from {domain}") from exc

        self.cache.set(cache_key, result)
        return result

    async def _fetch_notes(
        self,
        cache_key: str,
        domain: str,
        path: str,
        payload: dict[str, Any],
        *,
        resource: str,
    ) -> list[Note]:
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Cache hit for {cache_key}")
            return cached

        data = await self._post(domain, path, payload, resource=resource)
        try:
            notes = _NOTE_LIST.validate_python(data if data is not None else [])
        except ValidationError as exc:
            logger.warning(f"Malformed {resource} payload from {domain}: {exc}")
            raise UpstreamError(f"Unexpected {resource} data from {domain}") from exc

        self.cache.set(cache_key, notes)
        return notes

    async def _post(
        self,
        domain: str,
        path: str,
        payload: dict[str, Any],
        *,
        resource: str,
    ) -> Any:
        url = f"https://{domain}{path}"
        try:
            response = await self._http.post(url, json=payload)
        except httpx.HTTPError as exc:
            logger.warning(f"Error fetching {resource} from {domain}: {exc!r}")
            raise UpstreamError(f"Could not reach {domain}") from exc

        if response.status_code != 200:
            if _is_not_found(response):
                raise NotFoundError(f"{resource.capitalize()} not found")
            logger.warning(
                f"Failed to fetch {resource} from {domain}: HTTP {response.status_code}"
            )
            raise UpstreamError(
                f"{domain} answered with HTTP {response.status_code}"
            )

        try:
            return response.json()
        except ValueError as exc:
            logger.warning(f"Invalid JSON for {resource} from {domain}")
            raise UpstreamError(f"Unexpected {resource} data from {domain}") from exc


def _is_not_found(response: httpx.Response) -> bool:
    if response.status_code == 404:
        return True
    if response.status_code != 400:
        return False
    try:
        body = response.json()
    except ValueError:
        return False
    error = body.get("error") if isinstance(body, dict) else None
    return isinstance(error, dict) and error.get("code") in _NOT_FOUND_CODES
