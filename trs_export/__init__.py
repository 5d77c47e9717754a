"""Export dashboard HTML to PDF and reduce project status edits.

This package backs the ``trs-export`` console script: it renders HTML fragments
into paginated US Letter PDFs through a headless browser and keeps project
status, completion percentage and hold flag consistent before they are sent to
the TRS projects API.

Exports
-------
- ``app``: Cyclopts application with the ``pdf``, ``timelogs``, ``status``
  and ``login`` commands.
- ``main``: Convenience function that invokes the app with logging configured.
- ``generate_pdf`` / ``generate_pdf_as_bytes``: library entry points.

Examples
--------
>>> from trs_export import generate_pdf_as_bytes
>>> generate_pdf_as_bytes("<p>Hello</p>")[:5]  # doctest: +SKIP
b'%PDF-'
"""

from __future__ import annotations

from .cli import app, main
from .exporter import generate_pdf, generate_pdf_as_bytes

__all__ = ["app", "generate_pdf", "generate_pdf_as_bytes", "main"]
