"""Load documents and split them into overlapping character chunks."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from digest_cli.summarizer.models import Chunk, EmptyInputError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_SEPARATORS = ("\n\n", "\n", " ", "")


def load_document(path: Path) -> str:
    """Read a UTF-8 text document."""
    return path.read_text(encoding="utf-8")


def split_text(
    text: str,
    chunk_size: int = 1000,
    chunk_overlap: int = 200,
    separators: tuple[str, ...] = DEFAULT_SEPARATORS,
) -> list[str]:
    """Split text into chunks of at most ``chunk_size`` characters.

    Tries paragraph breaks first, then line breaks, then spaces, and only
    splits mid-word when nothing else works. Neighbouring chunks share up to
    ``chunk_overlap`` characters for context continuity.
    """
    if chunk_overlap >= chunk_size:
        msg = "chunk_overlap must be smaller than chunk_size"
        raise ValueError(msg)
    if not text.strip():
        return []
    return _split_recursive(text, list(separators), chunk_size, chunk_overlap)


def _split_recursive(
    text: str,
    separators: list[str],
    chunk_size: int,
    chunk_overlap: int,
) -> list[str]:
    # Use the first separator that actually occurs in the text
    separator = separators[-1]
    remaining: list[str] = []
    for i, sep in enumerate(separators):
        if sep == "" or sep in text:
            separator = sep
            remaining = separators[i + 1 :]
            break

    splits = text.split(separator) if separator else list(text)
    splits = [s for s in splits if s]

    chunks: list[str] = []
    fitting: list[str] = []
    for piece in splits:
        if len(piece) <= chunk_size:
            fitting.append(piece)
            continue
        if fitting:
            chunks.extend(_merge_splits(fitting, separator, chunk_size, chunk_overlap))
            fitting = []
        if remaining:
            chunks.extend(_split_recursive(piece, remaining, chunk_size, chunk_overlap))
        else:
            chunks.append(piece)

    if fitting:
        chunks.extend(_merge_splits(fitting, separator, chunk_size, chunk_overlap))
    return chunks


def _merge_splits(
    splits: list[str],
    separator: str,
    chunk_size: int,
    chunk_overlap: int,
) -> list[str]:
    """Merge small pieces into chunks, carrying overlap into the next chunk."""
    sep_len = len(separator)
    chunks: list[str] = []
    current: list[str] = []
    total = 0

    for piece in splits:
        piece_len = len(piece)
        if current and total + piece_len + sep_len > chunk_size:
            chunk = separator.join(current).strip()
            if chunk:
                chunks.append(chunk)
            # Drop from the front until only the overlap is left and the next piece fits
            while current and (
                total > chunk_overlap or total + piece_len + sep_len > chunk_size
            ):
                total -= len(current[0]) + (sep_len if len(current) > 1 else 0)
                current.pop(0)
        current.append(piece)
        total += piece_len + (sep_len if len(current) > 1 else 0)

    chunk = separator.join(current).strip()
    if chunk:
        chunks.append(chunk)
    return chunks


def to_chunks(texts: list[str]) -> list[Chunk]:
    """Wrap split texts as ordered chunks."""
    return [Chunk(index=i, text=t) for i, t in enumerate(texts)]


def chunk_document(
    text: str,
    chunk_size: int = 1000,
    chunk_overlap: int = 200,
    *,
    source: str = "<stdin>",
) -> list[Chunk]:
    """Split document text into chunks, refusing empty documents.

    Raises:
        EmptyInputError: If the document has no content to summarize.

    """
    chunks = to_chunks(split_text(text, chunk_size, chunk_overlap))
    if not chunks:
        msg = f"Document {source} is empty"
        raise EmptyInputError(msg)
    logger.info("Split %s into %d chunks", source, len(chunks))
    return chunks


def load_chunks(
    path: Path,
    chunk_size: int = 1000,
    chunk_overlap: int = 200,
) -> list[Chunk]:
    """Load a document from disk and split it into chunks."""
    return chunk_document(load_document(path), chunk_size, chunk_overlap, source=str(path))
