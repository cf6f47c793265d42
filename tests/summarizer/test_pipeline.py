"""Tests for the pipeline entry points."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Any

import pytest

from digest_cli.summarizer import (
    Chunk,
    ProgressEvent,
    StepKind,
    SummaryResult,
    UpstreamError,
    stuff_summarize,
    summarize_chunks,
    summarize_document,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from digest_cli.summarizer import SummarizerConfig

    MakeClient = Callable[..., Any]
    Sized = Callable[..., Callable[[str], str]]


def _chunks(n: int) -> list[Chunk]:
    return [Chunk(index=i, text=f"<{i}> paragraph") for i in range(n)]


class TestSummarizeChunks:
    """Tests for summarize_chunks."""

    @pytest.mark.asyncio
    async def test_result_metadata(
        self,
        make_client: MakeClient,
        sized_responder: Sized,
        config: SummarizerConfig,
    ) -> None:
        """Test the metadata of a run with one collapse."""
        client = make_client(sized_responder(600, 300))
        result = await summarize_chunks(_chunks(3), client, replace(config, token_max=1000))

        assert isinstance(result.summary, str)
        assert result.summary.startswith("<0|1|2>")
        assert result.chunk_count == 3
        assert result.input_cost == 1800
        assert result.output_cost == 300
        assert result.collapse_depth == 1
        # 3 chunk calls, 3 singleton merges, 1 final merge
        assert result.llm_calls == 7
        assert len(result.intermediate_summaries) == 2

    @pytest.mark.asyncio
    async def test_empty_input_returns_empty_summary(
        self,
        make_client: MakeClient,
        sized_responder: Sized,
        config: SummarizerConfig,
    ) -> None:
        """Test that zero chunks return an empty summary without LLM calls."""
        client = make_client(sized_responder(10))
        result = await summarize_chunks([], client, config)

        assert result.summary == ""
        assert result.chunk_count == 0
        assert result.llm_calls == 0
        assert client.prompts == []

    @pytest.mark.asyncio
    async def test_failure_names_stage(
        self,
        make_client: MakeClient,
        sized_responder: Sized,
        config: SummarizerConfig,
    ) -> None:
        """Test that one failing chunk out of three fails the run."""
        client = make_client(sized_responder(100), fail_when=lambda p: "<2>" in p)

        with pytest.raises(UpstreamError) as exc_info:
            await summarize_chunks(_chunks(3), client, config)

        assert exc_info.value.stage == StepKind.SUMMARIZE
        assert "connection reset" in str(exc_info.value)
        assert client.reduce_prompts == []

    @pytest.mark.asyncio
    async def test_progress_callback_receives_events(
        self,
        make_client: MakeClient,
        sized_responder: Sized,
        config: SummarizerConfig,
    ) -> None:
        """Test that every step is reported to the callback."""
        events: list[ProgressEvent] = []
        client = make_client(sized_responder(100))

        await summarize_chunks(_chunks(3), client, config, on_progress=events.append)

        assert [e.kind for e in events] == [
            StepKind.SUMMARIZE,
            StepKind.SUMMARIZE,
            StepKind.SUMMARIZE,
            StepKind.COLLECT,
            StepKind.FINALIZE,
        ]
        assert [e.index for e in events[:3]] == [1, 2, 3]
        assert all(e.label for e in events)

    @pytest.mark.asyncio
    async def test_failing_progress_callback_is_ignored(
        self,
        make_client: MakeClient,
        sized_responder: Sized,
        config: SummarizerConfig,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test that a broken progress callback does not change the outcome."""

        def broken(_event: ProgressEvent) -> None:
            msg = "display went away"
            raise RuntimeError(msg)

        client = make_client(sized_responder(100))
        result = await summarize_chunks(_chunks(2), client, config, on_progress=broken)

        assert result.summary.startswith("<0|1>")
        assert "Progress callback failed" in caplog.text


class TestSummarizeDocument:
    """Tests for summarize_document."""

    @pytest.mark.asyncio
    async def test_splits_and_summarizes(
        self,
        make_client: MakeClient,
        sized_responder: Sized,
        config: SummarizerConfig,
    ) -> None:
        """Test that a document is split with the configured chunk size."""
        text = "\n\n".join(f"<{i}> " + "word " * 30 for i in range(6))
        client = make_client(sized_responder(50))
        cfg = replace(config, chunk_size=200, chunk_overlap=0)

        result = await summarize_document(text, client, cfg)

        assert result.chunk_count == 6
        assert result.summary.startswith("<0|1|2|3|4|5>")

    @pytest.mark.asyncio
    async def test_blank_document(
        self,
        make_client: MakeClient,
        sized_responder: Sized,
        config: SummarizerConfig,
    ) -> None:
        """Test that a blank document gives an empty summary."""
        client = make_client(sized_responder(50))
        result = await summarize_document("  \n\n ", client, config)
        assert result == SummaryResult(created_at=result.created_at)
        assert client.prompts == []


class TestStuffSummarize:
    """Tests for the single-call strategy."""

    @pytest.mark.asyncio
    async def test_single_call(
        self,
        make_client: MakeClient,
        config: SummarizerConfig,
    ) -> None:
        """Test that the whole document goes into one prompt."""
        client = make_client(lambda _prompt: "A short summary.")
        result = await stuff_summarize("Long article text.", client, config, max_words=50)

        assert result.summary == "A short summary."
        assert result.llm_calls == 1
        assert len(client.prompts) == 1
        assert "<article>\nLong article text.\n</article>" in client.prompts[0]
        assert "50 words" in client.prompts[0]

    @pytest.mark.asyncio
    async def test_empty_text(self, make_client: MakeClient, config: SummarizerConfig) -> None:
        """Test that empty text skips the LLM."""
        client = make_client(lambda _prompt: "unused")
        result = await stuff_summarize("", client, config)
        assert result.summary == ""
        assert client.prompts == []

    @pytest.mark.asyncio
    async def test_failure_is_finalize_stage(
        self,
        make_client: MakeClient,
        config: SummarizerConfig,
    ) -> None:
        """Test that a failing call is reported as the finalize stage."""
        client = make_client(lambda _prompt: "unused", fail_when=lambda _prompt: True)
        with pytest.raises(UpstreamError) as exc_info:
            await stuff_summarize("text", client, config)
        assert exc_info.value.stage == StepKind.FINALIZE
