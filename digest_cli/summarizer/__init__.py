"""Map-reduce document summarization with budgeted collapse.

This module summarizes long documents the way LangChain's map-reduce chain does:
1. Split the document into chunks and summarize each in parallel (map phase)
2. While the summaries together exceed the budget, merge budget-sized groups
   of them (collapse phase, bounded by an iteration cap)
3. Merge what is left into one final summary

Example:
    from digest_cli.summarizer import OpenAICompatibleClient, SummarizerConfig, summarize_document

    config = SummarizerConfig(
        openai_base_url="http://localhost:11434/v1",
        model="qwen3:4b",
        token_max=1500,
    )
    client = OpenAICompatibleClient(config)
    result = await summarize_document(long_document, client, config)
    print(result.summary)

"""

from digest_cli.summarizer._llm import LLMClient, OpenAICompatibleClient
from digest_cli.summarizer.models import (
    Chunk,
    CollapseLimitExceeded,
    EmptyInputError,
    ProgressEvent,
    StepKind,
    SummarizationError,
    SummarizerConfig,
    SummaryResult,
    SummaryUnit,
    UpstreamError,
)
from digest_cli.summarizer.pipeline import stuff_summarize, summarize_chunks, summarize_document

__all__ = [
    "Chunk",
    "CollapseLimitExceeded",
    "EmptyInputError",
    "LLMClient",
    "OpenAICompatibleClient",
    "ProgressEvent",
    "StepKind",
    "SummarizationError",
    "SummarizerConfig",
    "SummaryResult",
    "SummaryUnit",
    "UpstreamError",
    "stuff_summarize",
    "summarize_chunks",
    "summarize_document",
]
