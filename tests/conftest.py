"""Shared fixtures: a throw-away library layout and fake metadata sources."""

from __future__ import annotations

from pathlib import Path

import pytest

from arxiv_shelf.arxiv_client import MetadataFetchError
from arxiv_shelf.entities import MetadataRecord

SAMPLE_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom" xmlns:arxiv="http://arxiv.org/schemas/atom">
  <title type="html">ArXiv Query: id_list=2103.12345</title>
  <id>http://arxiv.org/api/query</id>
  <entry>
    <id>http://arxiv.org/abs/2103.12345v1</id>
    <updated>2021-04-01T10:00:00Z</updated>
    <published>2021-03-23T17:59:59Z</published>
    <title>Example
  Paper</title>
    <summary>Nothing to see.</summary>
    <author><name>Ada Lovelace</name></author>
    <author><name>Alan Turing</name></author>
    <arxiv:doi>10.1000/example</arxiv:doi>
    <link href="http://arxiv.org/abs/2103.12345v1" rel="alternate" type="text/html"/>
  </entry>
</feed>
"""

EMPTY_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title type="html">ArXiv Query: id_list=9999.99999</title>
  <id>http://arxiv.org/api/query</id>
</feed>
"""


def make_record(arxiv_id: str, title: str, **extra: str) -> MetadataRecord:
    record: MetadataRecord = {
        "arxiv_id": arxiv_id,
        "title": title,
        "authors": "Ada Lovelace, Alan Turing",
        "published": "2021-03-23",
        "link": f"http://arxiv.org/abs/{arxiv_id}",
    }
    record.update(extra)  # type: ignore[typeddict-item]
    return record


class FakeFetcher:
    """Metadata source backed by a dict; records every lookup."""

    def __init__(self, records: dict[str, MetadataRecord] | None = None) -> None:
        self.records = records or {}
        self.calls: list[str] = []

    def fetch(self, arxiv_id: str) -> MetadataRecord:
        self.calls.append(arxiv_id)
        try:
            return self.records[arxiv_id]
        except KeyError:
            raise MetadataFetchError(f"{arxiv_id}: no matching entry") from None


@pytest.fixture
def library(tmp_path: Path) -> Path:
    """Source directory with an empty ``pdf`` subdirectory."""
    (tmp_path / "pdf").mkdir()
    return tmp_path


def add_pdf(library: Path, name: str) -> Path:
    path = library / "pdf" / name
    path.write_bytes(b"%PDF-1.4\n%fake\n")
    return path
