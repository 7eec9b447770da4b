"""index_writer.py
Render the flat text index and the Org-mode outline for a finished run.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from arxiv_shelf.entities import ShelfEntry
from arxiv_shelf.identifiers import strip_version

logger = logging.getLogger(__name__)

ALPHAXIV_URL = "https://www.alphaxiv.org/abs/{arxiv_id}"
DOI_URL = "https://doi.org/{doi}"
ORG_TITLE = "arXiv library"


def _sorted(entries: Iterable[ShelfEntry]) -> list[ShelfEntry]:
    return sorted(entries, key=lambda e: e.document.name)


def review_url(arxiv_id: str) -> str:
    return ALPHAXIV_URL.format(arxiv_id=strip_version(arxiv_id))


def render_text_index(entries: Iterable[ShelfEntry]) -> str:
    blocks = []
    for entry in _sorted(entries):
        record = entry.record
        blocks.append(
            "\n".join(
                [
                    record["arxiv_id"],
                    record["title"],
                    record["authors"],
                    record["published"],
                    record["link"],
                ]
            )
        )
    return "\n\n".join(blocks) + "\n" if blocks else ""


def org_link_target(path: str) -> str:
    """Escape a path for use inside an Org ``[[...]]`` link target."""
    return path.replace("\\", "\\\\").replace("[", "\\[").replace("]", "\\]")


def render_org_index(entries: Iterable[ShelfEntry], base_dir: Path) -> str:
    """Render one heading per entry, linking to the local symlink.

    Link paths are written relative to *base_dir*, the directory the outline
    is saved in.
    """
    lines = [f"#+TITLE: {ORG_TITLE}", ""]
    for entry in _sorted(entries):
        record = entry.record
        local = os.path.relpath(entry.link_path, start=base_dir)
        title = record["title"].replace("[", "(").replace("]", ")")
        lines.append(f"* [[file:{org_link_target(local)}][{title}]]")
        lines.append(":PROPERTIES:")
        lines.append(f":AUTHORS: {record['authors']}")
        lines.append(f":PUBLISHED: {record['published']}")
        lines.append(f":ARXIV: {record['link']}")
        lines.append(f":ALPHAXIV: {review_url(record['arxiv_id'])}")
        if record.get("doi"):
            lines.append(f":DOI: {DOI_URL.format(doi=record['doi'])}")
        lines.append(":END:")
    return "\n".join(lines) + "\n"


def write_indexes(
    entries: list[ShelfEntry],
    base_dir: Path,
    text_name: str,
    org_name: str,
) -> tuple[Path, Path]:
    """Overwrite both index files under *base_dir*.

    Raises:
        OSError: If either file cannot be written; the run cannot recover.
    """
    text_path = base_dir / text_name
    org_path = base_dir / org_name
    text_path.write_text(render_text_index(entries), encoding="utf-8")
    org_path.write_text(render_org_index(entries, base_dir), encoding="utf-8")
    logger.info("Wrote %d entries to %s and %s", len(entries), text_path, org_path)
    return text_path, org_path
