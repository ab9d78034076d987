"""Card markup rendering with Jinja2."""

import logging
from dataclasses import asdict
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from vxsharkey.services.preview_cards.constants import (
    COLORS,
    OUTPUT_HEIGHT,
    OUTPUT_WIDTH,
)
from vxsharkey.services.preview_cards.render_models import CardModel

logger = logging.getLogger(__name__)

# Template directory path
CARD_TEMPLATE_DIR = Path(__file__).parent.parent.parent / "templates" / "card"
CARD_TEMPLATE = "note_card.html"


class CardHTMLRenderer:
    """Renders the self-contained card document the browser screenshots."""

    def __init__(self) -> None:
        self.env = Environment(
            loader=FileSystemLoader(str(CARD_TEMPLATE_DIR)),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.globals["colors"] = COLORS
        self.env.globals["width"] = OUTPUT_WIDTH
        self.env.globals["height"] = OUTPUT_HEIGHT

    def render(self, model: CardModel) -> str:
        """Render ``model`` into a complete HTML document."""
        template = self.env.get_template(CARD_TEMPLATE)
        return template.render(**asdict(model))
