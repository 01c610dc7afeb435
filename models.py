"""models.py — Shared data types for epubsplit."""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class BookMetadata:
    title: str | None
    author: str | None = None
    language: str = "en"


@dataclass
class TocEntry:
    href: str | None
    title: str | None


@dataclass
class SourceChapter:
    """One entry of the book's reading-order flow (the spine)."""
    id: str | None
    href: str | None
    title: str | None = None    # Embedded title, if the document carries one


@dataclass
class Chapter:
    title: str
    content: str                # Raw XHTML, inline images already stripped
    href: str = ""

    @property
    def size(self) -> int:
        """UTF-8 byte length of the content."""
        return len(self.content.encode("utf-8"))


@dataclass
class Part:
    number: int                 # 1-based
    chapters: list[Chapter]

    @property
    def size(self) -> int:
        return sum(ch.size for ch in self.chapters)

    def title(self, book_title: str) -> str:
        return f"{book_title} - Part {self.number}"


@dataclass
class SplitSummary:
    book_title: str
    output_dir: Path
    parts: list[Part] = field(default_factory=list)
    written: list[Path] = field(default_factory=list)
    failed_parts: list[Part] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
