"""Data models for map-reduce summarization."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class StepKind(str, Enum):
    """Kind of pipeline step reported in progress events and errors."""

    SUMMARIZE = "summarize"
    COLLECT = "collect"
    COLLAPSE = "collapse"
    FINALIZE = "finalize"


class SummarizationError(Exception):
    """Base class for all summarization pipeline failures."""


class UpstreamError(SummarizationError):
    """Raised when an LLM call fails or returns unusable content.

    ``stage`` is filled in by the scheduler once the failing step is known.
    """

    def __init__(self, message: str, *, stage: StepKind | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage

    def __str__(self) -> str:
        if self.stage is None:
            return self.message
        return f"[{self.stage.value}] {self.message}"


class CollapseLimitExceeded(SummarizationError):  # noqa: N818
    """Raised when summaries still exceed the budget after the iteration cap."""

    def __init__(self, iterations: int, total_cost: int, budget: int) -> None:
        msg = (
            f"[{StepKind.COLLAPSE.value}] Summaries still cost {total_cost} "
            f"after {iterations} collapse iterations (budget {budget})"
        )
        super().__init__(msg)
        self.iterations = iterations
        self.total_cost = total_cost
        self.budget = budget
        self.stage = StepKind.COLLAPSE


class EmptyInputError(SummarizationError):
    """Raised when a document yields no chunks to summarize."""


@dataclass(frozen=True)
class Chunk:
    """A contiguous slice of the source document."""

    index: int
    text: str


@dataclass(frozen=True)
class SummaryUnit:
    """A summary of one chunk or of a group of earlier summaries."""

    text: str


@dataclass
class PipelineState:
    """State accumulated while a document moves through the pipeline.

    ``summaries`` only ever grows, ``collapsed_summaries`` is replaced as a
    whole after each collapse, and ``final_summary`` is written once.
    """

    contents: list[str] = field(default_factory=list)
    summaries: list[str] = field(default_factory=list)
    collapsed_summaries: list[SummaryUnit] = field(default_factory=list)
    final_summary: str | None = None

    def add_summaries(self, update: list[str]) -> None:
        """Concatenate new chunk summaries onto the accumulated list."""
        self.summaries = self.summaries + update

    def set_final_summary(self, summary: str) -> None:
        """Record the final summary; it can only be set once."""
        if self.final_summary is not None:
            msg = "Final summary has already been set"
            raise RuntimeError(msg)
        self.final_summary = summary


class ProgressEvent(BaseModel):
    """A single progress update emitted by the pipeline."""

    kind: StepKind
    index: int = Field(..., ge=0)
    total: int = Field(..., ge=0)
    label: str = ""


@dataclass
class SummarizerConfig:
    """Configuration for summarization operations.

    Example:
        config = SummarizerConfig(
            openai_base_url="http://localhost:11434/v1",
            model="qwen3:4b",
            token_max=1500,
        )
        result = await summarize_document(text, client, config)

    """

    openai_base_url: str
    model: str
    api_key: str | None = None
    token_max: int = 1500  # Budget for a single reduce call
    chunk_size: int = 1000  # characters per chunk
    chunk_overlap: int = 200
    max_collapse_iterations: int = 10
    max_concurrency: int = 5
    cost_function: Literal["chars", "tokens"] = "chars"
    temperature: float = 0.0

    def __post_init__(self) -> None:
        """Normalize the base URL and validate limits."""
        self.openai_base_url = self.openai_base_url.rstrip("/")
        if self.api_key is None:
            self.api_key = "not-needed"
        if self.token_max < 1:
            msg = f"token_max must be at least 1, got {self.token_max}"
            raise ValueError(msg)
        if self.max_collapse_iterations < 0:
            msg = f"max_collapse_iterations must be >= 0, got {self.max_collapse_iterations}"
            raise ValueError(msg)
        if self.max_concurrency < 1:
            msg = f"max_concurrency must be at least 1, got {self.max_concurrency}"
            raise ValueError(msg)
        if self.chunk_overlap >= self.chunk_size:
            msg = "chunk_overlap must be smaller than chunk_size"
            raise ValueError(msg)


class SummaryResult(BaseModel):
    """Result of summarization.

    Contains the final summary and metadata about how it was reduced.
    """

    summary: str = Field(
        default="",
        description="The final summary (empty when the document had no chunks)",
    )
    chunk_count: int = Field(default=0, ge=0, description="Number of input chunks")
    input_cost: int = Field(default=0, ge=0, description="Cost of the chunk summaries")
    output_cost: int = Field(default=0, ge=0, description="Cost of the final summary")
    collapse_depth: int = Field(
        default=0,
        ge=0,
        description="Number of collapse iterations (0 = no collapse needed)",
    )
    llm_calls: int = Field(default=0, ge=0, description="Number of LLM calls made")
    intermediate_summaries: list[list[str]] = Field(
        default_factory=list,
        description="Each level of summaries, starting with the chunk summaries",
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Timestamp when summary was created",
    )
