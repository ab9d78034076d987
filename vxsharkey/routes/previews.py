"""Preview routes - resolve inbound URLs and render preview pages."""

from typing import Literal, Optional
from urllib.parse import quote, urlencode

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from vxsharkey.dependencies import get_preview_service, get_templates
from vxsharkey.services.errors import InvalidUrlError
from vxsharkey.services.preview_service import PreviewService
from vxsharkey.services.url_classifier import ContentKind, classify, is_safe_domain

router = APIRouter(tags=["previews"])


def require_safe_domain(domain: str) -> str:
    """Reject path-supplied domains that point at loopback/private hosts."""
    if not is_safe_domain(domain):
        raise InvalidUrlError("Invalid or unsafe domain")
    return domain.lower()


def _segment(value: str) -> str:
    return quote(value, safe="")


@router.get("/", response_class=HTMLResponse)
async def home(request: Request, templates: Jinja2Templates = Depends(get_templates)):
    """Render the landing page with the URL form."""
    return templates.TemplateResponse(request, "home.html", {"title": "vxsharkey"})


@router.get("/resolve")
async def resolve(url: Optional[str] = Query(default=None, max_length=2048)):
    """Classify ``url`` and redirect to the matching preview page."""
    if not url:
        raise InvalidUrlError("URL parameter is required")

    target = classify(url)
    domain = quote(target.domain, safe=":[]")

    if target.kind is ContentKind.note:
        return RedirectResponse(f"/instance/{domain}/notes/{_segment(target.id)}", status_code=302)
    if target.kind is ContentKind.profile:
        location = f"/profile/{domain}/{_segment(target.profile_ref)}"
        if target.username is None:
            location += "?by=id"
        return RedirectResponse(location, status_code=302)
    if target.kind is ContentKind.instance:
        return RedirectResponse(f"/instance/{domain}", status_code=302)
    raise InvalidUrlError("Could not detect content type")


@router.get("/raw/{url:path}")
async def raw_redirect(url: str, request: Request):
    """Accept a URL pasted straight after ``/raw/``."""
    if request.url.query:
        url = f"{url}?{request.url.query}"
    return RedirectResponse(f"/resolve?{urlencode({'url': url})}", status_code=302)


@router.get("/instance/{domain}", response_class=HTMLResponse)
async def instance_page(
    request: Request,
    domain: str,
    service: PreviewService = Depends(get_preview_service),
    templates: Jinja2Templates = Depends(get_templates),
):
    """Render instance metadata and the recent local timeline."""
    domain = require_safe_domain(domain)
    preview = await service.instance_preview(domain)
    return templates.TemplateResponse(
        request,
        "instance.html",
        {
            "title": f"{preview.meta.display_name(domain)} - {service.site_name}",
            "preview": preview,
            "og": preview.og,
        },
    )


@router.get("/instance/{domain}/notes/{note_id}", response_class=HTMLResponse)
async def note_page(
    request: Request,
    domain: str,
    note_id: str,
    service: PreviewService = Depends(get_preview_service),
    templates: Jinja2Templates = Depends(get_templates),
):
    """Render a note with OpenGraph metadata (primary feature)."""
    domain = require_safe_domain(domain)
    preview = await service.note_preview(domain, note_id, base_url=str(request.base_url))
    return templates.TemplateResponse(
        request,
        "note.html",
        {
            "title": f"{preview.note.user.display_name} - {service.site_name}",
            "preview": preview,
            "og": preview.og,
        },
    )


@router.get("/profile/{domain}/{username}", response_class=HTMLResponse)
async def profile_page(
    request: Request,
    domain: str,
    username: str,
    by: Literal["username", "id"] = Query(default="username"),
    service: PreviewService = Depends(get_preview_service),
    templates: Jinja2Templates = Depends(get_templates),
):
    """Render a user profile with their recent notes."""
    domain = require_safe_domain(domain)
    preview = await service.profile_preview(domain, username, by_id=(by == "id"))
    return templates.TemplateResponse(
        request,
        "profile.html",
        {
            "title": f"{preview.user.display_name} - {service.site_name}",
            "preview": preview,
            "og": preview.og,
        },
    )
