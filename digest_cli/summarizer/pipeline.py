"""Entry points that wire splitting, scheduling and progress reporting together."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from digest_cli.summarizer._cost import get_cost_function
from digest_cli.summarizer._prompts import STUFF_SUMMARY_PROMPT
from digest_cli.summarizer.map_reduce import CollapseScheduler
from digest_cli.summarizer.models import (
    StepKind,
    SummaryResult,
    UpstreamError,
)
from digest_cli.summarizer.splitter import split_text, to_chunks

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from digest_cli.summarizer._llm import LLMClient
    from digest_cli.summarizer.models import Chunk, ProgressEvent, SummarizerConfig

logger = logging.getLogger(__name__)


async def summarize_chunks(
    chunks: Sequence[Chunk],
    client: LLMClient,
    config: SummarizerConfig,
    *,
    on_progress: Callable[[ProgressEvent], None] | None = None,
) -> SummaryResult:
    """Summarize pre-split chunks with map-reduce and budgeted collapse.

    Args:
        chunks: Document chunks in order.
        client: LLM client used for every summarize and reduce call.
        config: Summarizer configuration (budget, iteration cap, concurrency).
        on_progress: Optional callback receiving a ProgressEvent per step.

    Returns:
        SummaryResult whose ``summary`` is the final summary. An empty
        chunk list gives an empty summary without calling the LLM.

    Raises:
        UpstreamError: If an LLM call fails; ``stage`` names the failing step.
        CollapseLimitExceeded: If the summaries never fit ``config.token_max``.

    """
    scheduler = CollapseScheduler(client, config, emit=on_progress)
    summary = await scheduler.run(chunks)

    cost_fn = get_cost_function(config.cost_function, config.model)
    return SummaryResult(
        summary=summary,
        chunk_count=len(chunks),
        input_cost=sum(cost_fn(s) for s in scheduler.pipeline.summaries),
        output_cost=cost_fn(summary),
        collapse_depth=scheduler.iterations,
        llm_calls=scheduler.llm_calls,
        intermediate_summaries=scheduler.levels,
    )


async def summarize_document(
    text: str,
    client: LLMClient,
    config: SummarizerConfig,
    *,
    on_progress: Callable[[ProgressEvent], None] | None = None,
) -> SummaryResult:
    """Split a document into chunks and summarize them."""
    chunks = to_chunks(split_text(text, config.chunk_size, config.chunk_overlap))
    logger.info("Summarizing document of %d chars in %d chunks", len(text), len(chunks))
    return await summarize_chunks(chunks, client, config, on_progress=on_progress)


async def stuff_summarize(
    text: str,
    client: LLMClient,
    config: SummarizerConfig,
    *,
    max_words: int = 200,
) -> SummaryResult:
    """Summarize a whole document with a single LLM call.

    Only suitable for documents that fit the model's context window.
    """
    if not text.strip():
        return SummaryResult()

    prompt = STUFF_SUMMARY_PROMPT.format(content=text, max_words=max_words)
    try:
        summary = await client.complete(prompt)
    except UpstreamError as e:
        if e.stage is None:
            e.stage = StepKind.FINALIZE
        raise

    cost_fn = get_cost_function(config.cost_function, config.model)
    return SummaryResult(
        summary=summary,
        chunk_count=1,
        input_cost=cost_fn(text),
        output_cost=cost_fn(summary),
        llm_calls=1,
    )
