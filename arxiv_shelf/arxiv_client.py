"""arxiv_client.py
Metadata lookups against the arXiv query API.

A single GET per identifier is parsed with *feedparser*; transient failures
(connection resets, timeouts, 5xx responses) are retried by *tenacity* with a
fixed delay between attempts.
"""

from __future__ import annotations

import logging
import re

import feedparser
import httpx
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from arxiv_shelf.entities import MetadataRecord
from arxiv_shelf.settings import settings

logger = logging.getLogger(__name__)

AUTHOR_SEPARATOR = ", "

_WHITESPACE_PATTERN = re.compile(r"\s+")


class MetadataFetchError(RuntimeError):
    """Raised when no metadata could be obtained for an identifier."""


class TransientFetchError(RuntimeError):
    """Server-side failure worth retrying (HTTP 5xx)."""


def parse_feed(arxiv_id: str, payload: str | bytes) -> MetadataRecord | None:
    """Convert an Atom response into a :class:`MetadataRecord`.

    Returns ``None`` when the feed carries no usable entry. The API reports
    unknown identifiers either as an empty feed or as an entry titled
    ``Error``.
    """
    feed = feedparser.parse(payload)
    if not feed.entries:
        return None

    entry = feed.entries[0]
    title = _WHITESPACE_PATTERN.sub(" ", entry.get("title", "")).strip()
    if not title or title == "Error":
        return None

    authors = AUTHOR_SEPARATOR.join(
        a.get("name", "").strip() for a in entry.get("authors", []) if a.get("name")
    )
    published = entry.get("published", "")
    record: MetadataRecord = {
        "arxiv_id": arxiv_id,
        "title": title,
        "authors": authors,
        "published": published.split("T", 1)[0],
        "link": entry.get("id") or entry.get("link", ""),
    }
    doi = entry.get("arxiv_doi")
    if doi:
        record["doi"] = doi.strip()
    return record


class ArxivClient:
    """Synchronous arXiv metadata client with retry on transient failures."""

    def __init__(
        self,
        client: httpx.Client | None = None,
        *,
        api_url: str | None = None,
        attempts: int | None = None,
        delay: float | None = None,
        timeout: float | None = None,
    ) -> None:
        """Create the client.

        Args:
            client: Optional pre-configured ``httpx.Client``; one is created
                (and owned) when omitted.
            api_url: Query URL template containing ``{arxiv_id}``.
            attempts: Total attempts per identifier, initial try included.
            delay: Seconds between attempts.
            timeout: Per-request timeout in seconds.
        """
        self.api_url = api_url or settings.api_url
        self.attempts = attempts if attempts is not None else settings.fetch_attempts
        self.delay = delay if delay is not None else settings.fetch_delay
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=timeout or settings.request_timeout,
            follow_redirects=True,
        )

    def __enter__(self) -> ArxivClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _get(self, url: str) -> bytes:
        """Perform a single GET, classifying 5xx responses as transient."""
        resp = self._client.get(url)
        if resp.status_code >= 500:
            raise TransientFetchError(f"HTTP {resp.status_code}")
        resp.raise_for_status()
        return resp.content

    def _log_retry(self, retry_state) -> None:
        logger.warning(
            "Transient failure (attempt %d/%d): %s; retrying in %.0fs",
            retry_state.attempt_number,
            self.attempts,
            retry_state.outcome.exception(),
            self.delay,
        )

    def fetch(self, arxiv_id: str) -> MetadataRecord:
        """Return metadata for *arxiv_id*.

        Raises:
            MetadataFetchError: If the identifier is unknown, the request fails
                permanently, or transient failures exhaust all attempts.
        """
        url = self.api_url.format(arxiv_id=arxiv_id)
        retrying = Retrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_fixed(self.delay),
            retry=retry_if_exception_type((httpx.TransportError, TransientFetchError)),
            before_sleep=self._log_retry,
        )
        try:
            payload = retrying(self._get, url)
        except RetryError as exc:
            last = exc.last_attempt.exception()
            raise MetadataFetchError(
                f"{arxiv_id}: giving up after {self.attempts} attempts ({last})"
            ) from last
        except httpx.HTTPError as exc:
            raise MetadataFetchError(f"{arxiv_id}: {exc}") from exc

        record = parse_feed(arxiv_id, payload)
        if record is None:
            raise MetadataFetchError(f"{arxiv_id}: no matching entry in catalog")
        return record
