"""parsers/base.py — Shared parser utilities and types."""

import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from models import BookMetadata, SourceChapter, TocEntry

DEFAULT_BOOK_TITLE = "Book Title"

# Best-effort only: not a markup parser, malformed tags can slip through.
IMG_TAG_RE = re.compile(r"<img[^>]*>")
UNSAFE_TITLE_CHARS_RE = re.compile(r"[^a-zA-Z0-9 ]")


class EpubParseError(Exception):
    """The source EPUB could not be parsed at all."""


class ChapterContentError(Exception):
    """The content of a single chapter could not be read."""


@dataclass
class ParseResult:
    """Standard return type for all parsers."""
    metadata: BookMetadata
    toc: list[TocEntry]
    flow: list[SourceChapter]
    loader: Callable[[str], Awaitable[str]]

    async def get_chapter_raw(self, chapter_id: str) -> str:
        """Fetch the raw text of one chapter. Raises ChapterContentError."""
        return await self.loader(chapter_id)


def strip_image_tags(text: str) -> str:
    """Remove inline <img> tags from chapter markup."""
    return IMG_TAG_RE.sub("", text)


def clean_book_title(title: str | None) -> str:
    """Reduce a book title to [A-Za-z0-9 ] so it is safe in file names."""
    cleaned = UNSAFE_TITLE_CHARS_RE.sub("", title or DEFAULT_BOOK_TITLE).strip()
    return cleaned or DEFAULT_BOOK_TITLE
