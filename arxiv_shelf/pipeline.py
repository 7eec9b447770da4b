"""Scan -> identify -> fetch/cache -> link -> index pipeline.

Workflow
---------
1. List ``*.pdf`` files in ``<source>/<pdf_subdir>`` in file-name order.
2. Derive an arXiv identifier from each file name (or first page text).
3. Look the identifier up in the JSON cache; on a miss query the arXiv API
   and flush the cache immediately after storing the record.
4. Create a relative symlink named after the title in the link directory.
5. Prune dangling links and write ``index.txt`` / ``index.org``.

Per-document problems are logged and recorded in the returned
:class:`~arxiv_shelf.entities.RunReport`; only environment failures abort.
"""

from __future__ import annotations

import logging
import shutil
from contextlib import ExitStack
from pathlib import Path
from typing import Protocol

from tqdm import tqdm

from arxiv_shelf.arxiv_client import ArxivClient, MetadataFetchError
from arxiv_shelf.cache import MetadataCache
from arxiv_shelf.entities import Document, MetadataRecord, RunReport, ShelfEntry
from arxiv_shelf.identifiers import extract_identifier
from arxiv_shelf.index_writer import write_indexes
from arxiv_shelf.links import LinkOutcome, link_name, materialize_link, prune_dangling_links
from arxiv_shelf.pdf_text import TextExtractor
from arxiv_shelf.settings import settings

logger = logging.getLogger(__name__)


class ShelfEnvironmentError(RuntimeError):
    """Raised when the source directory layout is unusable."""


class MetadataFetcher(Protocol):
    def fetch(self, arxiv_id: str) -> MetadataRecord: ...


def discover_documents(pdf_dir: Path) -> list[Document]:
    """Return the PDFs directly inside *pdf_dir*, sorted by file name."""
    paths = [
        p for p in pdf_dir.iterdir() if p.suffix.lower() == ".pdf" and p.is_file()
    ]
    return [Document.from_path(p) for p in sorted(paths, key=lambda p: p.name)]


def _resolve_record(
    arxiv_id: str,
    document: Document,
    cache: MetadataCache,
    fetcher: MetadataFetcher,
    report: RunReport,
    refresh_cache: bool,
) -> MetadataRecord | None:
    record = cache.get(arxiv_id)
    if record is not None and not refresh_cache:
        report.cache_hits += 1
        return record

    logger.info("[fetch] %s (%s)", arxiv_id, document.name)
    try:
        record = fetcher.fetch(arxiv_id)
    except MetadataFetchError as exc:
        logger.error("[fail] %s: %s", document.name, exc)
        report.fetch_failed.append(document.name)
        return None

    cache.put(arxiv_id, record)
    cache.flush()
    report.fetched += 1
    return record


def organize(
    source_dir: Path,
    link_dir: Path | None = None,
    *,
    refresh: bool = False,
    refresh_cache: bool = False,
    fetcher: MetadataFetcher | None = None,
    text_extractor: TextExtractor | None = None,
    progress: bool = False,
) -> RunReport:
    """Organize the PDFs under *source_dir*.

    Args:
        source_dir: Directory containing the PDF subdirectory, the cache and
            the generated indexes.
        link_dir: Directory receiving the symlinks (defaults to
            ``<source_dir>/<link_subdir>``).
        refresh: Delete and rebuild the whole link directory first.
        refresh_cache: Re-fetch metadata even for cached identifiers.
        fetcher: Metadata source; an :class:`ArxivClient` is created if omitted.
        text_extractor: Optional first-page text capability for files whose
            name carries no identifier.
        progress: Show a *tqdm* progress bar.

    Raises:
        ShelfEnvironmentError: If the PDF subdirectory is missing.
        CacheError: If the cache file is unreadable.
        OSError: If the link directory or the indexes cannot be written.
    """
    source_dir = Path(source_dir).absolute()
    pdf_dir = source_dir / settings.pdf_subdir
    if not pdf_dir.is_dir():
        raise ShelfEnvironmentError(f"PDF directory not found: {pdf_dir}")

    link_dir = Path(link_dir).absolute() if link_dir else source_dir / settings.link_subdir
    if pdf_dir.is_relative_to(link_dir):
        raise ShelfEnvironmentError(f"Link directory {link_dir} would contain the PDFs")
    if refresh and link_dir.exists():
        logger.info("Removing %s before rebuilding", link_dir)
        shutil.rmtree(link_dir)
    link_dir.mkdir(parents=True, exist_ok=True)

    documents = discover_documents(pdf_dir)
    logger.info("Found %d PDFs in %s", len(documents), pdf_dir)

    report = RunReport()
    claimed: dict[Path, Document] = {}
    refreshed: set[str] = set()

    with ExitStack() as stack:
        cache = stack.enter_context(MetadataCache(source_dir / settings.cache_name))
        if fetcher is None:
            fetcher = stack.enter_context(ArxivClient())

        for document in tqdm(documents, desc="Shelving", unit="pdf", disable=not progress):
            arxiv_id = extract_identifier(document, text_extractor)
            if arxiv_id is None:
                logger.warning("[skip] %s: no arXiv identifier", document.name)
                report.skipped.append(document.name)
                continue

            record = _resolve_record(
                arxiv_id,
                document,
                cache,
                fetcher,
                report,
                refresh_cache and arxiv_id not in refreshed,
            )
            refreshed.add(arxiv_id)
            if record is None:
                continue

            link_path = link_dir / link_name(record)
            if link_path in claimed:
                logger.warning(
                    "[skip] %s: duplicate of %s", document.name, claimed[link_path].name
                )
                report.duplicates.append(document.name)
                continue

            try:
                outcome = materialize_link(document, link_path)
            except OSError as exc:
                logger.error("[fail] %s: cannot link %s: %s", document.name, link_path, exc)
                report.link_failed.append(document.name)
                continue

            if outcome is LinkOutcome.CONFLICT:
                logger.warning("[skip] %s: %s is not a symlink", document.name, link_path.name)
                report.skipped.append(document.name)
                continue

            claimed[link_path] = document
            logger.info("[ok] %s -> %s (%s)", document.name, link_path.name, outcome.value)
            report.entries.append(ShelfEntry(document, record, link_path))

    report.pruned = len(prune_dangling_links(link_dir))
    write_indexes(
        report.entries,
        source_dir,
        settings.text_index_name,
        settings.org_index_name,
    )
    return report
