"""Self-contained HTML export of a presentation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from .. import layout_contract as contract
from ..slide_models import Presentation

LOGGER = logging.getLogger(__name__)

_TEMPLATES_DIR = Path(__file__).parent / "templates"


class HtmlDeckExporter:
    """Render a presentation into one HTML document with embedded navigation."""

    template_name = "deck.html.j2"

    def __init__(self, *, lang: str = "en", templates_dir: Optional[Path] = None) -> None:
        self.lang = lang
        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir or _TEMPLATES_DIR)),
            autoescape=select_autoescape(["html", "j2"]),
            undefined=StrictUndefined,
            trim_blocks=False,
        )
        self.env.globals.update(
            split_columns=contract.split_columns,
            quote_text=contract.quote_text,
            quote_author=contract.quote_author,
            display_stats=contract.display_stats,
            stat_grid_columns=contract.stat_grid_columns,
            thank_you_title=contract.thank_you_title,
            contact_chips=contract.CONTACT_CHIPS,
        )

    def render(self, presentation: Presentation) -> str:
        template = self.env.get_template(self.template_name)
        html = template.render(
            presentation=presentation,
            theme=presentation.theme,
            lang=self.lang,
        )
        LOGGER.info(
            "Rendered HTML export for %s (%d slides, %d bytes)",
            presentation.id,
            len(presentation.slides),
            len(html),
        )
        return html

    def write(self, presentation: Presentation, output_path: Path) -> Path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.render(presentation), encoding="utf-8")
        return output_path
