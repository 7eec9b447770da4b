"""entities.py
Shared type definitions used across the shelf pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import NotRequired, TypedDict


class MetadataRecord(TypedDict):
    """Metadata persisted in the cache for one arXiv identifier."""

    arxiv_id: str
    title: str
    authors: str
    published: str
    link: str
    doi: NotRequired[str]


@dataclass(frozen=True)
class Document:
    """A PDF discovered in the source directory."""

    name: str
    path: Path

    @classmethod
    def from_path(cls, path: Path) -> Document:
        path = path.absolute()
        return cls(name=path.name, path=path)


@dataclass(frozen=True)
class ShelfEntry:
    """One row of the generated indexes."""

    document: Document
    record: MetadataRecord
    link_path: Path

    @property
    def arxiv_id(self) -> str:
        return self.record["arxiv_id"]


@dataclass
class RunReport:
    """Outcome of a single :func:`arxiv_shelf.pipeline.organize` run."""

    entries: list[ShelfEntry] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    duplicates: list[str] = field(default_factory=list)
    fetch_failed: list[str] = field(default_factory=list)
    link_failed: list[str] = field(default_factory=list)
    fetched: int = 0
    cache_hits: int = 0
    pruned: int = 0

    @property
    def failed(self) -> list[str]:
        return self.fetch_failed + self.link_failed
