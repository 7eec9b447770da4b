import os
from pathlib import Path

from arxiv_shelf.entities import Document
from arxiv_shelf.links import (
    LinkOutcome,
    link_name,
    materialize_link,
    prune_dangling_links,
    sanitize_title,
)
from tests.conftest import add_pdf, make_record


def test_sanitize_title_collapses_whitespace():
    assert sanitize_title("Example   Paper\n about\tthings") == "Example_Paper_about_things"


def test_sanitize_title_drops_disallowed_characters():
    title = "What's $O(n)$? A [short] note: on sets, graphs & more."
    assert sanitize_title(title) == "Whats_O(n)_A_[short]_note_on_sets,_graphs_more."


def test_sanitize_title_strips_accents():
    assert sanitize_title("Schrödinger équations") == "Schrodinger_equations"


def test_sanitize_title_truncates():
    sanitized = sanitize_title("word " * 60)
    assert len(sanitized) <= 100
    assert not sanitized.endswith("_")


def test_link_name_matches_expected_format():
    record = make_record("2103.12345", "Example Paper")
    assert link_name(record) == "Example_Paper_2103.12345.pdf"


def test_link_name_replaces_path_separators_in_legacy_ids():
    record = make_record("hep-th/9901001", "Strings")
    assert link_name(record) == "Strings_hep-th_9901001.pdf"


def test_link_name_bounds_title_portion():
    record = make_record("2103.12345", "A very long title " * 20)
    name = link_name(record)
    assert name.endswith("_2103.12345.pdf")
    title_part = name[: -len("_2103.12345.pdf")]
    assert len(title_part) <= 100


def test_link_name_without_usable_title():
    assert link_name(make_record("2103.12345", "???")) == "2103.12345.pdf"


def _document(library: Path, name: str) -> Document:
    return Document.from_path(add_pdf(library, name))


def test_materialize_link_creates_relative_symlink(library):
    doc = _document(library, "2103.12345.pdf")
    link = library / "by-title" / "Example_Paper_2103.12345.pdf"

    assert materialize_link(doc, link) is LinkOutcome.CREATED
    assert link.is_symlink()
    assert os.readlink(link) == os.path.join("..", "pdf", "2103.12345.pdf")
    assert link.resolve() == doc.path.resolve()


def test_materialize_link_is_idempotent(library):
    doc = _document(library, "2103.12345.pdf")
    link = library / "by-title" / "Example_Paper_2103.12345.pdf"
    materialize_link(doc, link)
    before = link.lstat()

    assert materialize_link(doc, link) is LinkOutcome.UNCHANGED
    assert link.lstat().st_ino == before.st_ino


def test_materialize_link_replaces_stale_symlink(library):
    doc = _document(library, "2103.12345.pdf")
    link = library / "by-title" / "Example_Paper_2103.12345.pdf"
    link.parent.mkdir()
    link.symlink_to("../pdf/old.pdf")

    assert materialize_link(doc, link) is LinkOutcome.REPLACED
    assert link.resolve() == doc.path.resolve()


def test_materialize_link_never_touches_regular_files(library):
    doc = _document(library, "2103.12345.pdf")
    link = library / "by-title" / "Example_Paper_2103.12345.pdf"
    link.parent.mkdir()
    link.write_text("keep me")

    assert materialize_link(doc, link) is LinkOutcome.CONFLICT
    assert not link.is_symlink()
    assert link.read_text() == "keep me"


def test_prune_dangling_links_keeps_live_links_and_files(library):
    doc = _document(library, "2103.12345.pdf")
    link_dir = library / "by-title"
    live = link_dir / "live.pdf"
    materialize_link(doc, live)
    dead = link_dir / "dead.pdf"
    dead.symlink_to("../pdf/gone.pdf")
    regular = link_dir / "notes.txt"
    regular.write_text("mine")

    assert prune_dangling_links(link_dir) == [dead]
    assert live.is_symlink()
    assert regular.exists()
    assert not dead.is_symlink()


def test_sanitize_title_never_yields_hidden_names():
    assert sanitize_title(".") == ""
    assert sanitize_title("... and more") == "and_more"
    assert link_name(make_record("2103.12345", ".")) == "2103.12345.pdf"
