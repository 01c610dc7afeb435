#!/usr/bin/env python3
"""
epubsplit — Split a large EPUB into smaller EPUBs under a size limit.

Chapters are kept whole and in reading order; each output part holds as many
consecutive chapters as fit under the limit (1 MiB of chapter text by default).
Chapter titles come from the table of contents where possible.

Quick start:
  python epubsplit.py "Worth The Candle.epub" --dry-run
  python epubsplit.py "Worth The Candle.epub"

Output goes to "<book> - Split/" next to the input file, one
"<Title> - Part N.epub" per part.
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from tqdm import tqdm

from models import Part, SplitSummary

MAX_BYTES_ENV = "EPUBSPLIT_MAX_BYTES"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Split an EPUB into several smaller EPUBs, keeping chapters whole",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  # Show how the book would be split, write nothing:
  python epubsplit.py book.epub --dry-run

  # Split with the default 1 MiB limit:
  python epubsplit.py book.epub

  # Smaller parts, written somewhere else:
  python epubsplit.py book.epub --max-bytes 500000 --output-dir ~/Desktop/parts

The limit can also be set with {MAX_BYTES_ENV} in the environment or .env.
        """,
    )
    parser.add_argument("input_path", type=Path, help="Path to the EPUB file to split")
    parser.add_argument(
        "--max-bytes", type=int, default=None, metavar="N",
        help="Maximum chapter text per part, in UTF-8 bytes (default: 1048576)",
    )
    parser.add_argument(
        "--output-dir", type=Path, default=None, metavar="DIR",
        help="Where to write the parts (default: '<book> - Split' next to the input). "
             "Recreated on every run.",
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Parse and plan the parts without writing any files",
    )
    return parser.parse_args(argv)


def resolve_max_bytes(cli_value: int | None) -> int:
    """--max-bytes, else EPUBSPLIT_MAX_BYTES, else the 1 MiB default."""
    from partitioner import FILE_SIZE_LIMIT

    if cli_value is not None:
        value = cli_value
    else:
        raw = os.getenv(MAX_BYTES_ENV, "").strip()
        if not raw:
            return FILE_SIZE_LIMIT
        try:
            value = int(raw)
        except ValueError:
            raise ValueError(f"{MAX_BYTES_ENV} must be an integer, got '{raw}'") from None
    if value <= 0:
        raise ValueError(f"Size limit must be positive, got {value}")
    return value


def validate_input(input_path: Path) -> None:
    if not input_path.exists():
        raise FileNotFoundError(f"Input file not found: {input_path}")
    if not input_path.is_file() or input_path.suffix.lower() != ".epub":
        raise ValueError(f"Input must be an .epub file: {input_path}")


def print_part_list(parts: list[Part], book_title: str, max_bytes: int) -> None:
    print(f"\n{len(parts)} part(s), limit {max_bytes:,} bytes:")
    print("-" * 70)
    for part in parts:
        flag = "  (single oversized chapter)" if part.size > max_bytes else ""
        print(f"  {part.title(book_title):<45} {len(part.chapters):>4} ch  {part.size:>10,} bytes{flag}")
    print("-" * 70)


async def split_book(
    epub_path: Path,
    output_dir: Path | None = None,
    max_bytes: int | None = None,
    dry_run: bool = False,
) -> SplitSummary:
    """
    Parse `epub_path` and write its chapters out as size-bounded parts.
    Raises EpubParseError if the book cannot be read at all; unreadable
    chapters and failed part writes are reported and skipped.
    """
    from epub_builder import (
        check_output_dir,
        default_output_dir,
        part_file_name,
        prepare_output_dir,
        write_part,
    )
    from parsers import parse_file
    from parsers.base import clean_book_title
    from partitioner import FILE_SIZE_LIMIT, Partitioner, build_title_index, resolve_chapter, skip_reason

    epub_path = Path(epub_path)
    max_bytes = FILE_SIZE_LIMIT if max_bytes is None else max_bytes
    output_dir = Path(output_dir) if output_dir else default_output_dir(epub_path)
    check_output_dir(output_dir, epub_path)

    print(f"Parsing: {epub_path}")
    book = await parse_file(epub_path)
    metadata = book.metadata
    book_title = clean_book_title(metadata.title)
    print(f"Title:  {book_title}")
    if metadata.author:
        print(f"Author: {metadata.author}")

    summary = SplitSummary(book_title=book_title, output_dir=output_dir)

    async def materialize(part: Part) -> None:
        if dry_run:
            return
        file_name = part_file_name(book_title, part.number)
        tqdm.write(f"  Saving: {file_name}")
        path = await write_part(
            part.title(book_title),
            part.chapters,
            output_dir / file_name,
            author=metadata.author,
            language=metadata.language,
        )
        summary.written.append(path)

    if not dry_run:
        prepare_output_dir(output_dir)

    title_index = build_title_index(book.toc)
    partitioner = Partitioner(materialize, max_bytes=max_bytes)

    for source in tqdm(book.flow, desc="  Chapters", unit="ch"):
        reason = skip_reason(source)
        if reason:
            tqdm.write(f"  Skipping {reason}: {source.href or source.id}")
            summary.skipped.append(source.href or source.id or "")
            continue
        try:
            chapter = await resolve_chapter(source, title_index, book)
        except Exception as e:
            tqdm.write(f"  Failed to process chapter {source.href}: {e}")
            summary.skipped.append(source.href)
            continue
        await partitioner.add(chapter)

    summary.parts = await partitioner.finish()
    summary.failed_parts = partitioner.failed_parts
    print_part_list(summary.parts, book_title, max_bytes)
    return summary


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    load_dotenv()

    from parsers.base import EpubParseError

    try:
        validate_input(args.input_path)
        max_bytes = resolve_max_bytes(args.max_bytes)
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    try:
        summary = asyncio.run(split_book(
            args.input_path,
            output_dir=args.output_dir,
            max_bytes=max_bytes,
            dry_run=args.dry_run,
        ))
    except (EpubParseError, OSError, ValueError) as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    if args.dry_run:
        print("Dry run complete. No files written.")
        return

    if not summary.parts:
        print("No readable chapters found; nothing written.")
        return

    print(f"\nDone! {len(summary.written)} part(s) saved to: {summary.output_dir}")
    if summary.failed_parts:
        numbers = ", ".join(str(p.number) for p in summary.failed_parts)
        print(f"ERROR: {len(summary.failed_parts)} part(s) failed to write: {numbers}")
        sys.exit(1)


if __name__ == "__main__":
    main()
