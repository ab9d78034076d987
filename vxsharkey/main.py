"""
Main entry point for FastAPI application.
"""
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from vxsharkey.config import Settings, settings
from vxsharkey.logging_config import setup_logging
from vxsharkey.middleware import RateLimitMiddleware, SecurityHeadersMiddleware
from vxsharkey.routes import api, previews
from vxsharkey.services.errors import PreviewError
from vxsharkey.services.misskey_client import MisskeyClient
from vxsharkey.services.preview_cards.card_service import PreviewCardService
from vxsharkey.services.preview_cards.rasterizer import BrowserRasterizer
from vxsharkey.services.preview_service import PreviewService
from vxsharkey.services.response_cache import ResponseCache
from vxsharkey.services.sanitizer import (
    sanitize_note_content,
    strip_html,
    truncate_text,
)

import logging
logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).parent

setup_logging(level=settings.log_level, access_log=settings.access_log)


def build_templates() -> Jinja2Templates:
    templates = Jinja2Templates(directory=str(PACKAGE_DIR / "templates"))
    templates.env.filters["sanitize"] = sanitize_note_content
    templates.env.filters["strip_html"] = strip_html
    templates.env.filters["truncate_text"] = truncate_text
    return templates


def build_preview_service(config: Settings) -> PreviewService:
    """Wire the cache, API client and card renderer for one application."""
    cache = ResponseCache(
        max_size=config.cache_max_size,
        ttl_seconds=config.cache_ttl_seconds,
    )
    client = MisskeyClient(cache, timeout=config.request_timeout_seconds)
    cards = PreviewCardService(
        cache,
        BrowserRasterizer(
            executable_path=config.chromium_path,
            timeout_seconds=config.render_timeout_seconds,
        ),
        enabled=config.og_image_enabled,
    )
    return PreviewService(client, cards, site_name=config.site_name)


async def close_preview_service(service: PreviewService) -> None:
    """Release the browser and the HTTP client independently."""
    logger.info("Closing browser and HTTP client…")
    try:
        await service.cards.close()
    except Exception:
        logger.exception("Failed to close browser")
    try:
        await service.client.aclose()
    except Exception:
        logger.exception("Failed to close HTTP client")


@asynccontextmanager
async def lifespan(app: FastAPI):
    config: Settings = app.state.config
    service = build_preview_service(config)
    app.state.preview_service = service
    logger.info(
        f"Preview service ready (cache={config.cache_max_size} entries/"
        f"{config.cache_ttl_seconds:.0f}s, og_image_enabled={config.og_image_enabled})"
    )

    yield

    await close_preview_service(service)


async def preview_error_handler(request: Request, exc: PreviewError):
    if exc.status_code >= 500:
        logger.warning(f"{request.url.path} failed: {exc.message}")
    if request.url.path.startswith(("/api/", "/og-image/")):
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)
    return request.app.state.templates.TemplateResponse(
        request,
        "error.html",
        {
            "title": "Not Found" if exc.status_code == 404 else "Error",
            "error": {"status_code": exc.status_code, "message": exc.message},
        },
        status_code=exc.status_code,
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}")
    return request.app.state.templates.TemplateResponse(
        request,
        "error.html",
        {
            "title": "Error",
            "error": {"status_code": 500, "message": "Internal Server Error"},
        },
        status_code=500,
    )


def create_app(config: Settings = settings) -> FastAPI:
    app = FastAPI(title="vxsharkey", lifespan=lifespan)
    app.mount("/static", StaticFiles(directory=str(PACKAGE_DIR / "static")), name="static")
    app.state.config = config
    app.state.templates = build_templates()

    app.add_middleware(
        RateLimitMiddleware,
        max_requests=config.rate_limit_max_requests,
        window_seconds=config.rate_limit_window_seconds,
    )
    app.add_middleware(SecurityHeadersMiddleware)

    app.add_exception_handler(PreviewError, preview_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(previews.router)
    app.include_router(api.router)

    @app.get("/health")
    async def health_check():
        """Health Check Endpoint"""
        return {"status": "ok"}

    return app


# load in app details
app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
