"""shelf_cli.py
Command-line entry point for organizing a directory of arXiv PDFs.

This module only handles CLI parsing, logging setup and the end-of-run
summary; all heavy lifting happens in :pyfunc:`arxiv_shelf.pipeline.organize`.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from tqdm.contrib.logging import logging_redirect_tqdm

from arxiv_shelf.cache import CacheError
from arxiv_shelf.entities import RunReport
from arxiv_shelf.pdf_text import first_page_text
from arxiv_shelf.pipeline import ShelfEnvironmentError, organize
from arxiv_shelf.settings import settings

logger = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Link arXiv PDFs under readable titles and write an index.",
    )
    parser.add_argument(
        "source_dir",
        type=Path,
        help=f"Directory containing the '{settings.pdf_subdir}' subdirectory of PDFs",
    )
    parser.add_argument(
        "--link-dir",
        type=Path,
        default=None,
        help=f"Where to create the links (default: SOURCE_DIR/{settings.link_subdir})",
    )
    parser.add_argument(
        "--refresh",
        action="store_true",
        help="Delete and rebuild the link directory before processing",
    )
    parser.add_argument(
        "--refresh-cache",
        action="store_true",
        help="Re-fetch metadata even for identifiers already in the cache",
    )
    parser.add_argument(
        "--no-pdf-text",
        action="store_true",
        help="Do not read the first PDF page when the file name has no identifier",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log every document"
    )
    return parser.parse_args(argv)


def _print_summary(report: RunReport) -> None:
    print(
        f"Linked {len(report.entries)} documents "
        f"({report.fetched} fetched, {report.cache_hits} from cache)."
    )
    if report.pruned:
        print(f"Removed {report.pruned} dangling links.")
    for label, names in (
        ("Skipped", report.skipped),
        ("Duplicates", report.duplicates),
        ("Failed", report.failed),
    ):
        if not names:
            continue
        print(f"{label} ({len(names)}):")
        for name in names:
            print(f"   {name}")


def main(argv: Sequence[str] | None = None) -> None:
    """Parse CLI options, run the pipeline and print a summary."""

    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not args.verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)

    use_pdf_text = settings.pdf_text_fallback and not args.no_pdf_text

    try:
        with logging_redirect_tqdm():
            report = organize(
                args.source_dir,
                args.link_dir,
                refresh=args.refresh,
                refresh_cache=args.refresh_cache,
                text_extractor=first_page_text if use_pdf_text else None,
                progress=not args.verbose,
            )
    except (ShelfEnvironmentError, CacheError) as exc:
        raise SystemExit(f"error: {exc}") from exc
    except OSError as exc:
        raise SystemExit(f"error: cannot write output: {exc}") from exc

    _print_summary(report)


if __name__ == "__main__":
    main()
