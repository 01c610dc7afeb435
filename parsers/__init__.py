"""parsers/ — EPUB reader package."""

from pathlib import Path

from parsers.base import ParseResult

SUPPORTED_EXTENSIONS = {".epub"}


async def parse_file(file_path: Path) -> ParseResult:
    """Dispatch to the appropriate parser based on file extension."""
    file_path = Path(file_path)
    suffix = file_path.suffix.lower()

    if suffix == ".epub":
        from parsers.epub_parser import parse_epub
        return await parse_epub(file_path)
    else:
        raise ValueError(
            f"Unsupported file format: '{suffix}'. "
            f"Supported: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
        )
