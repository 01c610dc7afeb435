"""epub_builder.py — Write a group of chapters out as a standalone EPUB."""

import asyncio
import html
import shutil
import uuid
from pathlib import Path

from ebooklib import epub

from models import Chapter


def part_file_name(book_title: str, part_number: int) -> str:
    return f"{book_title} - Part {part_number}.epub"


def default_output_dir(epub_path: Path) -> Path:
    """'<stem> - Split', next to the input file."""
    epub_path = Path(epub_path)
    return epub_path.parent / f"{epub_path.stem} - Split"


def check_output_dir(output_dir: Path, epub_path: Path) -> None:
    """Refuse an output directory that contains the input book."""
    if Path(epub_path).resolve().is_relative_to(Path(output_dir).resolve()):
        raise ValueError(
            f"Output directory {output_dir} contains the input file; "
            f"it would be deleted. Choose another --output-dir."
        )


def prepare_output_dir(output_dir: Path) -> Path:
    """Start from an empty directory, removing any previous run's output."""
    if output_dir.is_dir() and not output_dir.is_symlink():
        shutil.rmtree(output_dir)
    elif output_dir.exists() or output_dir.is_symlink():
        output_dir.unlink()
    output_dir.mkdir(parents=True)
    return output_dir


def _chapter_document(index: int, chapter: Chapter, language: str) -> epub.EpubHtml:
    doc = epub.EpubHtml(
        title=chapter.title,
        file_name=f"chapter_{index:04d}.xhtml",
        lang=language,
    )
    content = chapter.content
    if not content.strip():
        # ebooklib refuses to render an empty document
        content = f"<h1>{html.escape(chapter.title)}</h1>"
    # Bytes, so lxml accepts sources that carry an <?xml encoding=...?> declaration
    doc.content = content.encode("utf-8")
    return doc


def build_book(
    title: str,
    chapters: list[Chapter],
    author: str | None = None,
    language: str = "en",
) -> epub.EpubBook:
    """Assemble an in-memory EpubBook with one document and one TOC entry per chapter."""
    book = epub.EpubBook()
    book.set_identifier(str(uuid.uuid4()))
    book.set_title(title)
    book.set_language(language)
    if author:
        book.add_author(author)

    docs = [_chapter_document(i, ch, language) for i, ch in enumerate(chapters, start=1)]
    for doc in docs:
        book.add_item(doc)

    book.toc = docs
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = ["nav", *docs]
    return book


async def write_part(
    title: str,
    chapters: list[Chapter],
    output_path: Path,
    author: str | None = None,
    language: str = "en",
) -> Path:
    """Build and write one part. Blocking ebooklib work runs on a worker thread."""
    if not chapters:
        raise ValueError("Refusing to write a part with no chapters")

    book = build_book(title, chapters, author=author, language=language)
    await asyncio.to_thread(epub.write_epub, str(output_path), book, {})
    return output_path
