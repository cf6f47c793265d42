"""Map-reduce summarization with budget-driven collapse.

Algorithm:
1. Map: summarize every chunk concurrently
2. Collect: the chunk summaries become the working set
3. Collapse: while the working set costs more than ``token_max``, split it
   into budget-sized batches and merge each batch into one summary
4. Finalize: merge the remaining working set into the final summary

The number of collapse iterations is capped by ``max_collapse_iterations``;
if the working set still does not fit afterwards the run fails with
``CollapseLimitExceeded`` instead of looping forever.

References:
- LangChain ReduceDocumentsChain / split_list_of_docs: token_max, recursive collapse

"""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from enum import Enum
from typing import TYPE_CHECKING, TypeVar

from digest_cli.summarizer._cost import get_cost_function, total_cost
from digest_cli.summarizer._prompts import (
    CHUNK_SUMMARY_PROMPT,
    REDUCE_SUMMARY_PROMPT,
    format_summaries_for_reduce,
)
from digest_cli.summarizer.models import (
    CollapseLimitExceeded,
    PipelineState,
    ProgressEvent,
    StepKind,
    SummarizationError,
    SummaryUnit,
    UpstreamError,
)
from digest_cli.summarizer.partition import split_units

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterator, Sequence

    from digest_cli.summarizer._llm import LLMClient
    from digest_cli.summarizer.models import Chunk, SummarizerConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SchedulerState(str, Enum):
    """States of the collapse scheduler."""

    SUMMARIZING = "summarizing"
    COLLECTING = "collecting"
    COLLAPSING = "collapsing"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


async def summarize_chunk(chunk: Chunk, client: LLMClient) -> SummaryUnit:
    """Summarize a single chunk."""
    prompt = CHUNK_SUMMARY_PROMPT.format(content=chunk.text)
    return SummaryUnit(text=await client.complete(prompt))


async def reduce_units(units: Sequence[SummaryUnit], client: LLMClient) -> SummaryUnit:
    """Merge a batch of summaries into one new summary."""
    prompt = REDUCE_SUMMARY_PROMPT.format(
        summaries=format_summaries_for_reduce([u.text for u in units]),
    )
    return SummaryUnit(text=await client.complete(prompt))


async def gather_ordered(
    factories: Sequence[Callable[[], Awaitable[T]]],
    max_concurrency: int,
) -> list[T]:
    """Run the factories concurrently and return results in input order.

    The first failure cancels every sibling that is still running.
    """
    semaphore = asyncio.Semaphore(max_concurrency)

    async def run(factory: Callable[[], Awaitable[T]]) -> T:
        async with semaphore:
            return await factory()

    tasks = [asyncio.ensure_future(run(f)) for f in factories]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


def _safe_emitter(
    on_progress: Callable[[ProgressEvent], None] | None,
) -> Callable[[ProgressEvent], None]:
    """Wrap a progress callback so it can never affect the pipeline outcome."""

    def emit(event: ProgressEvent) -> None:
        if on_progress is None:
            return
        try:
            on_progress(event)
        except Exception:
            logger.exception("Progress callback failed for %s event", event.kind.value)

    return emit


@contextmanager
def _stage(kind: StepKind) -> Iterator[None]:
    """Attribute upstream failures inside the block to ``kind``."""
    try:
        yield
    except UpstreamError as e:
        if e.stage is None:
            e.stage = kind
        raise


class CollapseScheduler:
    """Drive a list of chunks through map, collapse and final reduce.

    One scheduler handles one run. The working set is replaced as a whole
    after each collapse iteration and never edited in place.
    """

    def __init__(
        self,
        client: LLMClient,
        config: SummarizerConfig,
        *,
        emit: Callable[[ProgressEvent], None] | None = None,
    ) -> None:
        """Initialize the scheduler for a single run."""
        self.client = client
        self.config = config
        self.cost_fn = get_cost_function(config.cost_function, config.model)
        self.emit = _safe_emitter(emit)
        self.state = SchedulerState.SUMMARIZING
        self.history: list[SchedulerState] = [self.state]
        self.pipeline = PipelineState()
        self.iterations = 0
        self.llm_calls = 0
        self.levels: list[list[str]] = []
        self.error: SummarizationError | None = None

    @property
    def working_set(self) -> list[SummaryUnit]:
        """The current ordered set of summaries being collapsed."""
        return self.pipeline.collapsed_summaries

    def _transition(self, state: SchedulerState) -> None:
        logger.debug("Scheduler: %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    async def run(self, chunks: Sequence[Chunk]) -> str:
        """Run the whole schedule and return the final summary.

        Raises:
            UpstreamError: If any LLM call fails; ``stage`` names the step.
            CollapseLimitExceeded: If the summaries never fit ``token_max``.

        """
        self.pipeline.contents = [c.text for c in chunks]
        if not chunks:
            logger.info("No chunks to summarize")
            self.pipeline.set_final_summary("")
            self._transition(SchedulerState.DONE)
            return ""

        try:
            await self._summarize(chunks)
            self._collect()
            while self._should_collapse():
                await self._collapse()
            final_summary = await self._finalize()
        except SummarizationError as e:
            self.error = e
            self._transition(SchedulerState.FAILED)
            raise
        except asyncio.CancelledError:
            self._transition(SchedulerState.FAILED)
            raise

        self._transition(SchedulerState.DONE)
        return final_summary

    async def _summarize(self, chunks: Sequence[Chunk]) -> None:
        """Map phase: summarize every chunk concurrently."""
        total = len(chunks)
        done = 0
        logger.info("Map phase: processing %d chunks", total)

        async def summarize_one(chunk: Chunk) -> str:
            nonlocal done
            self.llm_calls += 1
            unit = await summarize_chunk(chunk, self.client)
            done += 1
            self.emit(
                ProgressEvent(
                    kind=StepKind.SUMMARIZE,
                    index=done,
                    total=total,
                    label=f"Summarized chunk {chunk.index + 1} of {total}",
                ),
            )
            return unit.text

        with _stage(StepKind.SUMMARIZE):
            summaries = await gather_ordered(
                [lambda c=c: summarize_one(c) for c in chunks],
                self.config.max_concurrency,
            )
        self.pipeline.add_summaries(summaries)
        self._transition(SchedulerState.COLLECTING)

    def _collect(self) -> None:
        """Turn the chunk summaries into the initial working set."""
        self.pipeline.collapsed_summaries = [SummaryUnit(text=s) for s in self.pipeline.summaries]
        self.levels.append(list(self.pipeline.summaries))
        self.emit(
            ProgressEvent(
                kind=StepKind.COLLECT,
                index=1,
                total=1,
                label=f"Collected {len(self.pipeline.summaries)} summaries",
            ),
        )

    def _should_collapse(self) -> bool:
        """Decide between another collapse iteration and the final summary."""
        cost = total_cost(self.working_set, self.cost_fn)
        if cost <= self.config.token_max:
            self._transition(SchedulerState.FINALIZING)
            return False
        if self.iterations >= self.config.max_collapse_iterations:
            logger.warning(
                "Hit max collapse iterations %d with cost %d (budget %d)",
                self.config.max_collapse_iterations,
                cost,
                self.config.token_max,
            )
            raise CollapseLimitExceeded(self.iterations, cost, self.config.token_max)
        self._transition(SchedulerState.COLLAPSING)
        return True

    async def _collapse(self) -> None:
        """Reduce each budget-sized batch of the working set to one summary."""
        self.iterations += 1
        groups = split_units(self.working_set, self.config.token_max, self.cost_fn)
        logger.info(
            "Reduce phase (depth %d): collapsing %d summaries (cost %d) into %d groups",
            self.iterations,
            len(self.working_set),
            total_cost(self.working_set, self.cost_fn),
            len(groups),
        )

        async def reduce_one(group: list[SummaryUnit]) -> SummaryUnit:
            self.llm_calls += 1
            return await reduce_units(group, self.client)

        with _stage(StepKind.COLLAPSE):
            collapsed = await gather_ordered(
                [lambda g=g: reduce_one(g) for g in groups],
                self.config.max_concurrency,
            )
        self.pipeline.collapsed_summaries = collapsed
        self.levels.append([u.text for u in collapsed])
        self.emit(
            ProgressEvent(
                kind=StepKind.COLLAPSE,
                index=self.iterations,
                total=self.config.max_collapse_iterations,
                label=f"Collapsed into {len(collapsed)} summaries",
            ),
        )

    async def _finalize(self) -> str:
        """Merge the whole working set into the final summary."""
        logger.info("Generating final summary from %d summaries", len(self.working_set))
        self.llm_calls += 1
        with _stage(StepKind.FINALIZE):
            final = await reduce_units(self.working_set, self.client)
        self.pipeline.set_final_summary(final.text)
        self.emit(
            ProgressEvent(
                kind=StepKind.FINALIZE,
                index=1,
                total=1,
                label="Generated final summary",
            ),
        )
        return final.text
