"""Summarize text files or stdin using map-reduce with budgeted collapse."""

from __future__ import annotations

import asyncio
import contextlib
import json
import sys
import time
from enum import Enum
from pathlib import Path  # noqa: TC003
from typing import TYPE_CHECKING

import typer

from digest_cli import config, opts
from digest_cli.cli import app
from digest_cli.core.utils import (
    console,
    create_progress,
    create_status,
    print_command_line_args,
    print_error_message,
    print_input_panel,
    print_output_panel,
    print_with_style,
    setup_logging,
)
from digest_cli.summarizer import (
    EmptyInputError,
    OpenAICompatibleClient,
    ProgressEvent,
    StepKind,
    SummarizationError,
    SummarizerConfig,
    stuff_summarize,
    summarize_chunks,
)
from digest_cli.summarizer.splitter import chunk_document, load_document

if TYPE_CHECKING:
    from collections.abc import Callable

    from rich.progress import Progress, TaskID

    from digest_cli.summarizer import Chunk, SummaryResult

STEP_LABELS = {
    StepKind.SUMMARIZE: "⚡ Analyzing document chunks",
    StepKind.COLLECT: "📋 Collecting summaries",
    StepKind.COLLAPSE: "🔄 Merging summaries",
    StepKind.FINALIZE: "✨ Generating final summary",
}


class Strategy(str, Enum):
    """How the document is summarized."""

    map_reduce = "map-reduce"
    stuff = "stuff"


class CostFunction(str, Enum):
    """How the size of a summary is measured against the budget."""

    chars = "chars"
    tokens = "tokens"


class OutputFormat(str, Enum):
    """Output format for the summarization result."""

    text = "text"
    json = "json"
    full = "full"


def _read_input(file_path: Path | None) -> tuple[str, str] | None:
    """Read input from file or stdin, returning the text and its source name."""
    if file_path:
        if not file_path.exists():
            print_error_message(
                f"File not found: {file_path}",
                "Please check the file path and try again.",
            )
            return None
        return load_document(file_path), str(file_path)

    # Read from stdin
    if sys.stdin.isatty():
        print_error_message(
            "No input provided",
            "Provide a file path or pipe content via stdin.",
        )
        return None

    return sys.stdin.read(), "<stdin>"


def _display_input_preview(
    content: str,
    chunk_count: int,
    *,
    quiet: bool,
    max_preview_chars: int = 500,
) -> None:
    """Display a preview of the input content."""
    if quiet:
        return

    preview = content[:max_preview_chars]
    if len(content) > max_preview_chars:
        preview += f"\n... [{len(content) - max_preview_chars} more characters]"

    print_input_panel(
        preview,
        title=f"Input ({len(content):,} characters, {chunk_count} chunks)",
    )


def _display_result(
    result: SummaryResult,
    elapsed: float,
    output_format: OutputFormat,
    *,
    quiet: bool,
) -> None:
    """Display the summarization result."""
    if output_format == OutputFormat.json:
        print(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False))
        return

    if output_format == OutputFormat.full:
        _display_full_result(result, elapsed, quiet=quiet)
        return

    # Text output - just the summary
    if quiet:
        if result.summary:
            print(result.summary)
    elif result.summary:
        print_output_panel(
            result.summary,
            title="Summary",
            subtitle=(
                f"[dim]{result.chunk_count} chunks | {result.collapse_depth} collapses | "
                f"{result.llm_calls} LLM calls | {elapsed:.2f}s[/dim]"
            ),
        )
    else:
        print_with_style("No summary generated (empty input)", style="yellow")


def _display_full_result(
    result: SummaryResult,
    elapsed: float,
    *,
    quiet: bool,
) -> None:
    """Display every collapse level followed by the final summary."""
    if quiet:
        if result.summary:
            print(result.summary)
        return

    console.print()
    console.print("[bold cyan]Summarization Result[/bold cyan]")
    console.print(f"  Chunks: [bold]{result.chunk_count}[/bold]")
    console.print(f"  Collapse iterations: [bold]{result.collapse_depth}[/bold]")
    console.print(f"  LLM calls: [bold]{result.llm_calls}[/bold]")
    console.print(f"  Input cost: [bold]{result.input_cost:,}[/bold]")
    console.print(f"  Output cost: [bold]{result.output_cost:,}[/bold]")
    console.print(f"  Time: [bold]{elapsed:.2f}s[/bold]")

    for level, summaries in enumerate(result.intermediate_summaries):
        title = "Chunk Summaries" if level == 0 else f"Collapse {level}"
        console.print(f"\n[bold yellow]{title} ({len(summaries)} summaries)[/bold yellow]")
        for idx, summary in enumerate(summaries):
            console.print(f"\n[dim]--- {idx + 1} ---[/dim]")
            console.print(summary)

    console.print()
    print_output_panel(result.summary, title="Final Summary")


def _get_llm_config(
    provider_cfg: config.ProviderSelection,
    ollama_cfg: config.Ollama,
    openai_llm_cfg: config.OpenAILLM,
) -> tuple[str, str, str | None]:
    """Get openai_base_url, model, and api_key from provider config."""
    if provider_cfg.llm_provider == "ollama":
        return ollama_cfg.openai_base_url, ollama_cfg.llm_ollama_model, None
    base_url = openai_llm_cfg.openai_base_url or config.DEFAULT_OPENAI_BASE_URL
    return base_url, openai_llm_cfg.llm_openai_model, openai_llm_cfg.openai_api_key


def _progress_handler(
    progress: Progress,
    task_id: TaskID,
    total: int,
) -> Callable[[ProgressEvent], None]:
    """Advance the progress bar for every pipeline event."""

    def on_progress(event: ProgressEvent) -> None:
        nonlocal total
        if event.kind == StepKind.COLLAPSE:
            # The number of collapses is only known as they happen
            total += 1
            progress.update(task_id, total=total)
        progress.update(task_id, advance=1, description=STEP_LABELS[event.kind])

    return on_progress


async def _run_map_reduce(
    chunks: list[Chunk],
    summarizer_config: SummarizerConfig,
    *,
    quiet: bool,
) -> SummaryResult:
    client = OpenAICompatibleClient(summarizer_config)
    if quiet:
        return await summarize_chunks(chunks, client, summarizer_config)

    with create_progress() as progress:
        # Chunk summaries, collect and final summary; collapses are added as they run
        total = len(chunks) + 2
        task_id = progress.add_task(STEP_LABELS[StepKind.SUMMARIZE], total=total)
        return await summarize_chunks(
            chunks,
            client,
            summarizer_config,
            on_progress=_progress_handler(progress, task_id, total),
        )


async def _async_summarize(
    content: str,
    source: str,
    *,
    strategy: Strategy,
    provider_cfg: config.ProviderSelection,
    ollama_cfg: config.Ollama,
    openai_llm_cfg: config.OpenAILLM,
    summarization_cfg: config.Summarization,
    general_cfg: config.General,
    output_format: OutputFormat,
) -> None:
    """Asynchronous summarization entry point."""
    setup_logging(general_cfg.log_level, general_cfg.log_file, quiet=general_cfg.quiet)

    openai_base_url, model, api_key = _get_llm_config(provider_cfg, ollama_cfg, openai_llm_cfg)

    try:
        summarizer_config = SummarizerConfig(
            openai_base_url=openai_base_url,
            model=model,
            api_key=api_key,
            **summarization_cfg.model_dump(),
        )
        chunks = chunk_document(
            content,
            summarizer_config.chunk_size,
            summarizer_config.chunk_overlap,
            source=source,
        )
        _display_input_preview(content, len(chunks), quiet=general_cfg.quiet)

        start_time = time.monotonic()
        if strategy == Strategy.stuff:
            status = (
                create_status(f"Summarizing with {model}...")
                if not general_cfg.quiet
                else contextlib.nullcontext()
            )
            with status:
                result = await stuff_summarize(
                    content,
                    OpenAICompatibleClient(summarizer_config),
                    summarizer_config,
                )
        else:
            result = await _run_map_reduce(chunks, summarizer_config, quiet=general_cfg.quiet)
        elapsed = time.monotonic() - start_time

    except EmptyInputError as e:
        print_error_message(str(e), "The input file or stdin is empty.")
        sys.exit(1)
    except SummarizationError as e:
        print_error_message(
            str(e),
            f"Check that your LLM server is running at {openai_base_url}",
        )
        sys.exit(1)
    except ValueError as e:
        print_error_message(str(e), "Check the summarization options.")
        sys.exit(1)

    _display_result(result, elapsed, output_format, quiet=general_cfg.quiet)
    if general_cfg.save_file:
        general_cfg.save_file.write_text(result.summary, encoding="utf-8")
        if not general_cfg.quiet:
            print_with_style(f"💾 Summary saved to {general_cfg.save_file}", style="dim")


@app.command("summarize")
def summarize_command(
    *,
    file_path: Path | None = typer.Argument(  # noqa: B008
        None,
        help="Path to file to summarize. If not provided, reads from stdin.",
    ),
    strategy: Strategy = typer.Option(  # noqa: B008
        Strategy.map_reduce,
        "--strategy",
        "-s",
        help="'map-reduce' (chunk, collapse, merge) or 'stuff' (single LLM call).",
        rich_help_panel="Summarization Options",
    ),
    cost_function: CostFunction = typer.Option(  # noqa: B008
        CostFunction.chars,
        "--cost",
        help="Measure summaries against the budget in characters or tiktoken tokens.",
        rich_help_panel="Summarization Options",
    ),
    token_max: int = opts.TOKEN_MAX,
    chunk_size: int = opts.CHUNK_SIZE,
    chunk_overlap: int = opts.CHUNK_OVERLAP,
    max_collapse_iterations: int = opts.MAX_COLLAPSE_ITERATIONS,
    max_concurrent: int = opts.MAX_CONCURRENT,
    # --- Output Options ---
    output_format: OutputFormat = typer.Option(  # noqa: B008
        OutputFormat.text,
        "--output",
        "-o",
        help="Output format: 'text' (summary only), 'json' (full result), 'full' (all levels).",
        rich_help_panel="Output Options",
    ),
    # --- Provider Selection ---
    llm_provider: str = opts.LLM_PROVIDER,
    # --- LLM Configuration ---
    # Ollama (local service)
    llm_ollama_model: str = opts.LLM_OLLAMA_MODEL,
    llm_ollama_host: str = opts.LLM_OLLAMA_HOST,
    # OpenAI
    llm_openai_model: str = opts.LLM_OPENAI_MODEL,
    openai_api_key: str | None = opts.OPENAI_API_KEY,
    openai_base_url: str | None = opts.OPENAI_BASE_URL,
    # --- General Options ---
    log_level: str = opts.LOG_LEVEL,
    log_file: str | None = opts.LOG_FILE,
    quiet: bool = opts.QUIET,
    save_file: Path | None = opts.SAVE_FILE,
    config_file: str | None = opts.CONFIG_FILE,
    print_args: bool = opts.PRINT_ARGS,
) -> None:
    """Summarize a long document with map-reduce and budgeted collapse.

    The document is split into chunks, every chunk is summarized in parallel,
    and the summaries are merged in budget-sized groups until they fit
    `--token-max`. The remaining summaries are then merged into the final
    summary.

    Examples:
        # Summarize a file
        digest-cli summarize article.md

        # Pipe content from stdin
        cat book.txt | digest-cli summarize

        # Show every collapse level
        digest-cli summarize report.txt --output full

        # Use OpenAI instead of Ollama
        digest-cli summarize notes.md --llm-provider openai

    """
    if print_args:
        print_command_line_args(locals())

    try:
        provider_cfg = config.ProviderSelection(llm_provider=llm_provider)
        summarization_cfg = config.Summarization(
            token_max=token_max,
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            max_collapse_iterations=max_collapse_iterations,
            max_concurrency=max_concurrent,
            cost_function=cost_function.value,
        )
    except ValueError as e:
        print_error_message(str(e), "Check the command line options.")
        raise typer.Exit(1) from e
    ollama_cfg = config.Ollama(
        llm_ollama_model=llm_ollama_model,
        llm_ollama_host=llm_ollama_host,
    )
    openai_llm_cfg = config.OpenAILLM(
        llm_openai_model=llm_openai_model,
        openai_api_key=openai_api_key,
        openai_base_url=openai_base_url,
    )
    general_cfg = config.General(
        log_level=log_level,
        log_file=log_file,
        quiet=quiet,
        save_file=save_file,
    )

    read = _read_input(file_path)
    if read is None:
        raise typer.Exit(1)
    content, source = read

    asyncio.run(
        _async_summarize(
            content,
            source,
            strategy=strategy,
            provider_cfg=provider_cfg,
            ollama_cfg=ollama_cfg,
            openai_llm_cfg=openai_llm_cfg,
            summarization_cfg=summarization_cfg,
            general_cfg=general_cfg,
            output_format=output_format,
        ),
    )
