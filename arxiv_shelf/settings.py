"""Runtime configuration for the shelf organizer.

All values are sourced from environment variables prefixed with
``ARXIV_SHELF_`` (or a ``.env`` file loaded at import time).
"""

from __future__ import annotations

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv(override=True)


class Settings(BaseSettings):
    """Shelf organizer configuration.

    Fields
    ------
    pdf_subdir
        Name of the subdirectory (under the source directory) holding the PDFs.
    link_subdir
        Default name of the link directory created under the source directory.
    cache_name
        File name of the JSON metadata cache, stored in the source directory.
    text_index_name
        File name of the flat text index.
    org_index_name
        File name of the Org-mode outline index.
    api_url
        arXiv query endpoint; ``{arxiv_id}`` is substituted per request.
    fetch_attempts
        Total number of attempts for one metadata request (initial try included).
    fetch_delay
        Seconds to wait between attempts after a transient failure.
    request_timeout
        Per-request HTTP timeout in seconds.
    title_max_length
        Maximum length of the title portion of a link name.
    pdf_text_fallback
        If *true*, read the first PDF page when the file name has no identifier.
    """

    model_config = SettingsConfigDict(
        env_prefix="ARXIV_SHELF_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    pdf_subdir: str = Field("pdf")
    link_subdir: str = Field("by-title")
    cache_name: str = Field("arxiv_cache.json")
    text_index_name: str = Field("index.txt")
    org_index_name: str = Field("index.org")

    api_url: str = Field("http://export.arxiv.org/api/query?id_list={arxiv_id}")
    fetch_attempts: int = Field(3, ge=1)
    fetch_delay: float = Field(5.0, ge=0)
    request_timeout: float = Field(30.0, gt=0)

    title_max_length: int = Field(100, gt=0)
    pdf_text_fallback: bool = Field(True)


settings = Settings()
