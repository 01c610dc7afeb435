"""partitioner.py — Group chapters into size-bounded parts, in reading order."""

from collections.abc import Awaitable, Callable
from urllib.parse import unquote

from tqdm import tqdm

from models import Chapter, Part, SourceChapter, TocEntry
from parsers.base import ParseResult, strip_image_tags

FILE_SIZE_LIMIT = 1024 * 1024   # bytes of chapter text per part, not archive size
IMAGE_EXTENSIONS = (".jpg", ".png", ".gif")
UNTITLED = "Untitled"


def build_title_index(toc: list[TocEntry]) -> dict[str, str]:
    """
    Map decoded href -> title. Entries missing either field are ignored and
    the last entry wins on collision. Hrefs with a #fragment also register
    their bare document path, unless that path already has a title.
    """
    index = {}
    fragment_titles = {}
    for entry in toc:
        if not entry.href or not entry.title:
            continue
        href = unquote(entry.href)
        index[href] = entry.title
        path, sep, _fragment = href.partition("#")
        if sep and path:
            fragment_titles.setdefault(path, entry.title)
    for path, title in fragment_titles.items():
        index.setdefault(path, title)
    return index


def is_image_href(href: str) -> bool:
    return href.lower().endswith(IMAGE_EXTENSIONS)


def skip_reason(source: SourceChapter) -> str | None:
    """Why a flow entry carries no chapter text, or None if it should be read."""
    if not source.id or not source.href:
        return "missing id or href"
    if is_image_href(source.href):
        return "image"
    return None


def resolve_title(source: SourceChapter, title_index: dict[str, str]) -> str:
    """TOC title, then the embedded title, then 'Untitled'."""
    return title_index.get(unquote(source.href or "")) or source.title or UNTITLED


async def resolve_chapter(
    source: SourceChapter,
    title_index: dict[str, str],
    book: ParseResult,
) -> Chapter:
    """Fetch, clean and title one flow entry. Raises ChapterContentError."""
    raw = await book.get_chapter_raw(source.id)
    return Chapter(
        title=resolve_title(source, title_index),
        content=strip_image_tags(raw),
        href=source.href,
    )


class Partitioner:
    """
    Greedy, single-pass grouping of chapters into parts.

    A part is flushed to `write_part` as soon as the next chapter would push it
    past `max_bytes`. A chapter that is larger than `max_bytes` on its own
    still gets a part of its own; chapters are never split.
    """

    def __init__(
        self,
        write_part: Callable[[Part], Awaitable[object]],
        max_bytes: int = FILE_SIZE_LIMIT,
    ):
        if max_bytes <= 0:
            raise ValueError(f"max_bytes must be positive, got {max_bytes}")
        self.write_part = write_part
        self.max_bytes = max_bytes
        self.batch: list[Chapter] = []
        self.batch_size = 0
        self.part_number = 1
        self.parts: list[Part] = []
        self.failed_parts: list[Part] = []

    async def add(self, chapter: Chapter) -> None:
        size = chapter.size
        if self.batch and self.batch_size + size > self.max_bytes:
            await self.flush()
        self.batch.append(chapter)
        self.batch_size += size

    async def flush(self) -> Part | None:
        """Emit the running batch as the next part. No-op when empty."""
        if not self.batch:
            return None

        part = Part(number=self.part_number, chapters=self.batch)
        self.batch = []
        self.batch_size = 0
        self.part_number += 1
        self.parts.append(part)

        try:
            await self.write_part(part)
        except Exception as e:
            tqdm.write(f"  ERROR: Failed to write part {part.number}: {e}")
            self.failed_parts.append(part)
        return part

    async def finish(self) -> list[Part]:
        await self.flush()
        return self.parts
