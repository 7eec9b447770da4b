"""links.py
Derive readable file names from metadata and materialize relative symlinks
pointing back at the original PDFs.
"""

from __future__ import annotations

import enum
import logging
import os
import re
import unicodedata
from pathlib import Path

from arxiv_shelf.entities import Document, MetadataRecord
from arxiv_shelf.settings import settings

logger = logging.getLogger(__name__)

LINK_SUFFIX = ".pdf"

# Letters, digits, whitespace, "_" and "-()[].," survive; everything else goes.
_DISALLOWED_PATTERN = re.compile(r"[^\w\s\-()\[\].,]")
_WHITESPACE_PATTERN = re.compile(r"\s+")


class LinkOutcome(enum.Enum):
    CREATED = "created"
    UNCHANGED = "unchanged"
    REPLACED = "replaced"
    CONFLICT = "conflict"


def sanitize_title(title: str, max_length: int | None = None) -> str:
    """Return a file-name-safe rendition of *title*.

    The title is NFKD-normalized (so accented letters lose their combining
    marks), stripped of characters outside the allow-list, has whitespace
    runs collapsed to ``_`` and is truncated to *max_length* characters.
    Leading dots are dropped so links never become hidden files.
    """
    if max_length is None:
        max_length = settings.title_max_length
    text = unicodedata.normalize("NFKD", title)
    text = _DISALLOWED_PATTERN.sub("", text)
    text = _WHITESPACE_PATTERN.sub("_", text.strip()).lstrip("._")
    return text[:max_length].rstrip("_")


def sanitize_identifier(arxiv_id: str) -> str:
    return arxiv_id.replace("/", "_").replace(os.sep, "_")


def link_name(record: MetadataRecord, max_length: int | None = None) -> str:
    """File name of the link for *record*, e.g. ``Example_Paper_2103.12345.pdf``."""
    stem = sanitize_title(record["title"], max_length)
    safe_id = sanitize_identifier(record["arxiv_id"])
    if not stem:
        return f"{safe_id}{LINK_SUFFIX}"
    return f"{stem}_{safe_id}{LINK_SUFFIX}"


def materialize_link(document: Document, link_path: Path) -> LinkOutcome:
    """Point *link_path* at *document* with a relative symlink.

    Existing symlinks are reused when they already point at the document and
    replaced otherwise. Regular files and directories are never touched.

    Raises:
        OSError: If the link cannot be created or replaced.
    """
    target = os.path.relpath(document.path, start=link_path.parent)

    if link_path.is_symlink():
        if os.readlink(link_path) == target:
            return LinkOutcome.UNCHANGED
        link_path.unlink()
        link_path.symlink_to(target)
        return LinkOutcome.REPLACED

    if link_path.exists():
        logger.warning(
            "Not a symlink, leaving untouched: %s (wanted -> %s)", link_path, target
        )
        return LinkOutcome.CONFLICT

    link_path.parent.mkdir(parents=True, exist_ok=True)
    link_path.symlink_to(target)
    return LinkOutcome.CREATED


def prune_dangling_links(link_dir: Path) -> list[Path]:
    """Remove symlinks in *link_dir* whose targets no longer exist."""
    if not link_dir.is_dir():
        return []

    removed: list[Path] = []
    for path in sorted(link_dir.iterdir()):
        if path.is_symlink() and not path.exists():
            path.unlink()
            removed.append(path)
            logger.info("Removed dangling link %s", path.name)
    return removed
