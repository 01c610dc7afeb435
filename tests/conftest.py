"""Shared fixtures: real EPUBs generated with ebooklib, and in-memory fake books."""

import pytest
from ebooklib import epub

from models import BookMetadata, SourceChapter, TocEntry
from parsers.base import ChapterContentError, ParseResult


def write_test_epub(path, chapters, title="Test Book", author="Test Author", toc_files=None):
    """
    Write a small EPUB. `chapters` is a list of (file_name, title, body_html).
    Only chapters whose file name is in `toc_files` get a TOC entry (all by default).
    """
    book = epub.EpubBook()
    book.set_identifier("test-book-123")
    if title is not None:
        book.set_title(title)
    book.set_language("en")
    if author:
        book.add_author(author)

    docs = []
    for file_name, ch_title, body in chapters:
        doc = epub.EpubHtml(title=ch_title, file_name=file_name, lang="en")
        doc.content = body
        book.add_item(doc)
        docs.append(doc)

    if toc_files is None:
        book.toc = docs
    else:
        book.toc = [doc for doc in docs if doc.file_name in toc_files]
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = docs
    epub.write_epub(str(path), book, {})
    return path


@pytest.fixture
def make_epub(tmp_path):
    def _make(chapters, name="book.epub", **kwargs):
        return write_test_epub(tmp_path / name, chapters, **kwargs)
    return _make


def fake_book(contents, toc=None, title="Fake Book", failing=()):
    """
    ParseResult over in-memory chapters. `contents` is a list of
    (id, href, embedded_title, text); ids in `failing` raise on fetch.
    """
    by_id = {cid: text for cid, _href, _title, text in contents}

    async def loader(chapter_id):
        if chapter_id in failing:
            raise ChapterContentError(f"boom: {chapter_id}")
        return by_id[chapter_id]

    return ParseResult(
        metadata=BookMetadata(title=title, author="Someone"),
        toc=toc or [],
        flow=[SourceChapter(id=cid, href=href, title=t) for cid, href, t, _text in contents],
        loader=loader,
    )


@pytest.fixture
def sized_book():
    """Three chapters of 40, 70 and 10 bytes."""
    return fake_book(
        [
            ("c1", "c1.xhtml", None, "a" * 40),
            ("c2", "c2.xhtml", None, "b" * 70),
            ("c3", "c3.xhtml", None, "c" * 10),
        ],
        toc=[TocEntry(href="c1.xhtml", title="One"), TocEntry(href="c2.xhtml", title="Two")],
    )
