"""Unit tests for document loading and splitting."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from digest_cli.summarizer.models import Chunk, EmptyInputError
from digest_cli.summarizer.splitter import (
    chunk_document,
    load_chunks,
    split_text,
    to_chunks,
)

if TYPE_CHECKING:
    from pathlib import Path


class TestSplitText:
    """Tests for split_text."""

    def test_empty_text(self) -> None:
        """Test that empty text gives no chunks."""
        assert split_text("") == []
        assert split_text(" \n\n\t ") == []

    def test_short_text_single_chunk(self) -> None:
        """Test that short text stays as a single chunk."""
        text = "This is a short paragraph."
        assert split_text(text, chunk_size=1000, chunk_overlap=0) == [text]

    def test_paragraphs_are_preferred_boundaries(self) -> None:
        """Test that paragraphs that fit separately are not cut."""
        paragraphs = ["A" * 60, "B" * 60, "C" * 60]
        chunks = split_text("\n\n".join(paragraphs), chunk_size=100, chunk_overlap=0)
        assert chunks == paragraphs

    def test_small_paragraphs_are_merged(self) -> None:
        """Test that small paragraphs share a chunk."""
        chunks = split_text("one\n\ntwo\n\nthree", chunk_size=100, chunk_overlap=0)
        assert chunks == ["one\n\ntwo\n\nthree"]

    def test_chunks_respect_size(self) -> None:
        """Test that no chunk exceeds the chunk size."""
        text = " ".join(f"word{i}" for i in range(500))
        chunks = split_text(text, chunk_size=100, chunk_overlap=20)
        assert len(chunks) > 1
        assert all(len(c) <= 100 for c in chunks)

    def test_overlap_shared_between_neighbours(self) -> None:
        """Test that adjacent chunks share words when overlap is set."""
        text = " ".join(f"w{i:03d}" for i in range(100))
        chunks = split_text(text, chunk_size=50, chunk_overlap=15)
        for previous, current in zip(chunks, chunks[1:], strict=False):
            assert previous.split()[-1] in current.split()

    def test_no_overlap(self) -> None:
        """Test that zero overlap keeps every word exactly once."""
        words = [f"w{i:03d}" for i in range(100)]
        chunks = split_text(" ".join(words), chunk_size=50, chunk_overlap=0)
        assert [w for c in chunks for w in c.split()] == words

    def test_long_word_is_split_by_characters(self) -> None:
        """Test that a word longer than the chunk size is cut."""
        chunks = split_text("x" * 250, chunk_size=100, chunk_overlap=0)
        assert chunks == ["x" * 100, "x" * 100, "x" * 50]

    def test_invalid_overlap(self) -> None:
        """Test that overlap must be smaller than the chunk size."""
        with pytest.raises(ValueError, match="chunk_overlap"):
            split_text("text", chunk_size=10, chunk_overlap=10)


class TestChunks:
    """Tests for chunk construction and loading."""

    def test_to_chunks_numbers_in_order(self) -> None:
        """Test that chunks are numbered by position."""
        assert to_chunks(["a", "b"]) == [Chunk(index=0, text="a"), Chunk(index=1, text="b")]

    def test_chunk_document_rejects_empty(self) -> None:
        """Test that an empty document raises EmptyInputError."""
        with pytest.raises(EmptyInputError, match="<stdin> is empty"):
            chunk_document("   ")

    def test_load_chunks(self, tmp_path: Path) -> None:
        """Test loading a file from disk."""
        path = tmp_path / "article.md"
        path.write_text("First paragraph.\n\nSecond paragraph.", encoding="utf-8")
        chunks = load_chunks(path, chunk_size=20, chunk_overlap=0)
        assert [c.text for c in chunks] == ["First paragraph.", "Second paragraph."]

    def test_load_empty_file(self, tmp_path: Path) -> None:
        """Test that an empty file raises EmptyInputError naming the file."""
        path = tmp_path / "empty.txt"
        path.write_text("", encoding="utf-8")
        with pytest.raises(EmptyInputError, match="empty.txt"):
            load_chunks(path)
