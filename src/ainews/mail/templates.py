"""On-disk HTML email templates with ``{{TOKEN}}`` placeholders."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"


class TemplateCache:
    """Read-through cache of template files.

    Templates are static for the life of the process, so a file is read on
    first use and never reloaded.
    """

    def __init__(self, directory: Path = TEMPLATES_DIR) -> None:
        self.directory = Path(directory)
        self._cache: dict[str, str] = {}

    def load(self, name: str) -> str:
        if name not in self._cache:
            path = self.directory / f"{name}.html"
            self._cache[name] = path.read_text(encoding="utf-8")
            logger.debug("Loaded email template %s", path)
        return self._cache[name]

    def render(self, name: str, **tokens: object) -> str:
        """Substitute ``{{KEY}}`` for each token; None renders as empty."""
        html = self.load(name)
        for key, value in tokens.items():
            html = html.replace("{{" + key + "}}", "" if value is None else str(value))
        return html
