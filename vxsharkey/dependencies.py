"""Request-scoped accessors for state built in the application lifespan."""

from fastapi import Request
from fastapi.templating import Jinja2Templates

from vxsharkey.services.preview_service import PreviewService


def get_preview_service(request: Request) -> PreviewService:
    return request.app.state.preview_service


def get_templates(request: Request) -> Jinja2Templates:
    return request.app.state.templates
