"""Error taxonomy for the preview pipeline.

Each error carries the HTTP status the web layer should answer with and a
message that is safe to show to the caller.
"""


class PreviewError(Exception):
    """Base class for errors surfaced to the caller."""

    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidUrlError(PreviewError):
    """Unparseable or unsafe input URL, or undetectable content type."""

    status_code = 400
    default_message = "Invalid or unsafe URL"


class NotFoundError(PreviewError):
    """The remote instance reports no such note or user."""

    status_code = 404
    default_message = "Not found"


class UpstreamError(PreviewError):
    """Non-200 status, timeout or malformed payload from a remote instance."""

    status_code = 502
    default_message = "Failed to fetch content from the remote instance"


class RenderError(PreviewError):
    """A preview card was explicitly requested but could not be rendered."""

    status_code = 500
    default_message = "Failed to generate image"
