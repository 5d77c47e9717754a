"""Wrap HTML fragments in the full document shell used for PDF export.

Dashboard pages hand the exporter bare fragments (a time-log sheet, an invoice
body). Before rendering, each fragment is placed inside a complete HTML
document that loads the Tailwind CDN build, applies print colour rules and a
system font stack, and exposes ``.page-break`` / ``.avoid-break`` helpers.

The wrapper never fails on account of the fragment: if the optional
pre-processing step (typically image inlining) raises, the same shell is
rendered around the untouched fragment instead.
"""

from __future__ import annotations

import collections.abc as cabc
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape
from loguru import logger
from markupsafe import Markup

from trs_export._constants import TAILWIND_CDN

Preprocessor = cabc.Callable[[str], str]


class DocumentWrapper:
    """Render fragments into the export document template."""

    def __init__(
        self,
        *,
        templates_dir: Path | None = None,
        stylesheet_cdn: str = TAILWIND_CDN,
    ) -> None:
        """Initialize the wrapper and its Jinja environment.

        Parameters
        ----------
        templates_dir : Path, optional
            Directory containing ``export_document.jinja``. Defaults to the
            package ``templates`` directory.
        stylesheet_cdn : str, optional
            Script URL injected into ``<head>`` to style the fragment.
        """
        self.templates_dir = templates_dir or Path(__file__).parent / "templates"
        self.stylesheet_cdn = stylesheet_cdn
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.template = self.env.get_template("export_document.jinja")

    def wrap(self, content: str, *, preprocess: Preprocessor | None = None) -> str:
        """Return ``content`` embedded in a complete HTML document.

        Parameters
        ----------
        content : str
            HTML fragment; inserted verbatim, not escaped.
        preprocess : callable, optional
            Transformation applied to the fragment first. Any exception it
            raises is logged and the original fragment is used.

        Returns
        -------
        str
            The full document, always non-empty.
        """
        body = content or ""
        if preprocess is not None:
            try:
                body = preprocess(body)
            except Exception as exc:  # noqa: BLE001 - wrapper must always produce a document
                logger.error("Error processing export content: {}", exc)
                body = content or ""
        return self._render(body)

    def _render(self, body: str) -> str:
        return self.template.render(
            content=Markup(body),  # noqa: S704 - fragments are trusted dashboard markup
            stylesheet_cdn=self.stylesheet_cdn,
        )


__all__ = ["DocumentWrapper", "Preprocessor"]
