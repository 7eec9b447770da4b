"""identifiers.py
Helpers for recovering arXiv identifiers from PDF file names or, as a
fallback, from the text of the first page.

Two syntaxes are recognised:

* modern identifiers such as ``2103.12345`` or ``1501.0001v2``;
* legacy identifiers such as ``hep-th/9901001`` or ``math.AG/0601001v3``.
"""

from __future__ import annotations

import logging
import re

from arxiv_shelf.entities import Document
from arxiv_shelf.pdf_text import TextExtractor

logger = logging.getLogger(__name__)

_MODERN_PATTERN = re.compile(r"(?<![\d.])(\d{4}\.\d{4,5}(?:v\d+)?)(?!\d)")

# Archives that issued identifiers before the April 2007 scheme change.
LEGACY_ARCHIVES = (
    "acc-phys", "adap-org", "alg-geom", "ao-sci", "astro-ph", "atom-ph",
    "bayes-an", "chao-dyn", "chem-ph", "cmp-lg", "comp-gas", "cond-mat", "cs",
    "dg-ga", "funct-an", "gr-qc", "hep-ex", "hep-lat", "hep-ph", "hep-th",
    "math", "math-ph", "mtrl-th", "nlin", "nucl-ex", "nucl-th", "patt-sol",
    "physics", "plasm-ph", "q-alg", "q-bio", "quant-ph", "solv-int", "supr-con",
)
_ARCHIVE = "|".join(
    re.escape(a) for a in sorted(LEGACY_ARCHIVES, key=len, reverse=True)
)


def _legacy_pattern(separator: str) -> re.Pattern[str]:
    return re.compile(
        rf"(?<![A-Za-z-])((?:{_ARCHIVE})(?:\.[A-Z]{{2}})?){separator}"
        r"(\d{7}(?:v\d+)?)(?!\d)"
    )


# "/" cannot appear in a file name, so "_" is accepted as the separator there.
_LEGACY_NAME_PATTERN = _legacy_pattern("[/_]")
_LEGACY_TEXT_PATTERN = _legacy_pattern("/")

_MARKER_PATTERN = re.compile(r"arxiv\s*:", re.IGNORECASE)
_VERSION_PATTERN = re.compile(r"v\d+$")


def _match(text: str, legacy: re.Pattern[str]) -> str | None:
    match = _MODERN_PATTERN.search(text)
    if match:
        return match.group(1)
    match = legacy.search(text)
    if match:
        return f"{match.group(1)}/{match.group(2)}"
    return None


def identifier_from_name(name: str) -> str | None:
    """Return the arXiv identifier embedded in a file *name*, if any."""
    return _match(name, _LEGACY_NAME_PATTERN)


def identifier_from_text(text: str) -> str | None:
    """Return the identifier following an ``arXiv:`` marker in *text*.

    Only lines carrying the marker are considered; the first match wins.
    """
    for line in text.splitlines():
        marker = _MARKER_PATTERN.search(line)
        if not marker:
            continue
        found = _match(line[marker.end() :], _LEGACY_TEXT_PATTERN)
        if found:
            return found
    return None


def extract_identifier(
    document: Document, text_extractor: TextExtractor | None = None
) -> str | None:
    """Derive the identifier for *document*.

    Args:
        document: The PDF to inspect.
        text_extractor: Optional first-page text capability. When ``None`` the
            text fallback is unavailable.

    Returns:
        The identifier, or ``None`` if neither the file name nor the first
        page yields one.
    """
    found = identifier_from_name(document.name)
    if found or text_extractor is None:
        return found

    text = text_extractor(document.path)
    if not text:
        return None
    found = identifier_from_text(text)
    if found:
        logger.debug("Recovered %s from first page of %s", found, document.name)
    return found


def strip_version(arxiv_id: str) -> str:
    """Drop a trailing ``vN`` version suffix."""
    return _VERSION_PATTERN.sub("", arxiv_id)
