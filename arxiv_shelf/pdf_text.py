"""pdf_text.py
First-page text extraction using *pypdfium2*.

The pipeline treats text extraction as an optional capability: any callable
matching :data:`TextExtractor` may be injected, and ``None`` disables the
fallback entirely.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

import pypdfium2 as pdfium

logger = logging.getLogger(__name__)

TextExtractor = Callable[[Path], Optional[str]]


def first_page_text(path: Path) -> str | None:
    """Return plain text of the first page of the PDF at *path*."""

    pdf: Optional[pdfium.PdfDocument] = None
    try:
        pdf = pdfium.PdfDocument(str(path))
        if len(pdf) == 0:
            return None
        page = pdf[0]
        textpage = page.get_textpage()
        try:
            return textpage.get_text_bounded()
        finally:
            textpage.close()
            page.close()
    except pdfium.PdfiumError as exc:
        logger.warning("PDF parsing error for %s: %s", path.name, exc)
        return None
    finally:
        if pdf is not None:
            pdf.close()
