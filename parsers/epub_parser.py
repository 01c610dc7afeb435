"""parsers/epub_parser.py — Read a packed EPUB into metadata, TOC and reading-order flow."""

import asyncio
from pathlib import Path

import ebooklib
from bs4 import BeautifulSoup
from ebooklib import epub

from models import BookMetadata, SourceChapter, TocEntry
from parsers.base import ChapterContentError, EpubParseError, ParseResult


def _read_book(epub_path: Path) -> epub.EpubBook:
    try:
        return epub.read_epub(str(epub_path), options={"ignore_ncx": False})
    except Exception as e:
        raise EpubParseError(f"Cannot parse {epub_path.name}: {e}") from e


def _first_dc(book: epub.EpubBook, name: str) -> str | None:
    """First Dublin Core value for `name`, or None if missing/blank."""
    items = book.get_metadata("DC", name)
    if not items:
        return None
    value, _attrs = items[0]
    value = (value or "").strip()
    return value or None


def _toc_entry(node) -> TocEntry:
    if isinstance(node, epub.EpubHtml):
        return TocEntry(href=node.get_name() or None, title=node.title or None)
    return TocEntry(
        href=getattr(node, "href", None) or None,
        title=getattr(node, "title", None) or None,
    )


def _flatten_toc(nodes) -> list[TocEntry]:
    """
    Flatten ebooklib's nested TOC into document order.
    Nodes are Links, Sections, documents, or (head, children) tuples.
    """
    entries = []
    for node in nodes:
        if isinstance(node, tuple):
            head = node[0]
            children = node[1] if len(node) > 1 else []
            entries.append(_toc_entry(head))
            entries.extend(_flatten_toc(children))
        elif isinstance(node, list):
            entries.extend(_flatten_toc(node))
        else:
            entries.append(_toc_entry(node))
    return entries


def _embedded_title(item: epub.EpubItem) -> str | None:
    """Title carried by the document itself: the item title, else its <title> tag."""
    if getattr(item, "title", ""):
        return item.title
    if not item.content:
        return None
    soup = BeautifulSoup(item.content, features="lxml-xml")
    tag = soup.find("title")
    if tag is None:
        return None
    text = tag.get_text(strip=True)
    return text or None


def _build_flow(book: epub.EpubBook) -> list[SourceChapter]:
    """Spine order, minus the nav document."""
    flow = []
    for idref, _linear in book.spine:
        item = book.get_item_with_id(idref)
        if item is None:
            flow.append(SourceChapter(id=idref, href=None))
            continue
        if isinstance(item, epub.EpubNav):
            continue
        title = _embedded_title(item) if item.get_type() == ebooklib.ITEM_DOCUMENT else None
        flow.append(SourceChapter(id=idref, href=item.get_name() or None, title=title))
    return flow


def _make_loader(book: epub.EpubBook):
    def read(chapter_id: str) -> str:
        item = book.get_item_with_id(chapter_id)
        if item is None:
            raise ChapterContentError(f"No manifest item with id '{chapter_id}'")
        # Raw file contents; EpubHtml.get_content() would re-render the document.
        raw = item.content
        if isinstance(raw, str):
            return raw
        try:
            return raw.decode("utf-8")
        except (AttributeError, UnicodeDecodeError) as e:
            raise ChapterContentError(f"Cannot decode chapter '{chapter_id}': {e}") from e

    async def load(chapter_id: str) -> str:
        return await asyncio.to_thread(read, chapter_id)

    return load


async def parse_epub(epub_path: Path) -> ParseResult:
    """Main entry point. Resolves with the parsed book or raises EpubParseError."""
    epub_path = Path(epub_path)
    if not epub_path.is_file():
        raise FileNotFoundError(f"EPUB not found: {epub_path}")

    book = await asyncio.to_thread(_read_book, epub_path)

    metadata = BookMetadata(
        title=_first_dc(book, "title"),
        author=_first_dc(book, "creator"),
        language=_first_dc(book, "language") or "en",
    )
    return ParseResult(
        metadata=metadata,
        toc=_flatten_toc(book.toc),
        flow=_build_flow(book),
        loader=_make_loader(book),
    )
