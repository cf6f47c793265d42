"""Shared CLI options for digest-cli commands."""

from __future__ import annotations

import os

import typer

from digest_cli import config


def _conf_callback(ctx: typer.Context, value: str | None) -> str | None:
    """Load the config file before other options are parsed."""
    from digest_cli.cli import set_config_defaults  # noqa: PLC0415

    set_config_defaults(ctx, value)
    return value


# --- LLM Options ---
LLM_PROVIDER = typer.Option(
    "ollama",
    "--llm-provider",
    help='LLM provider to use ("ollama" or "openai").',
    rich_help_panel="Provider Selection",
)
LLM_OLLAMA_MODEL = typer.Option(
    config.DEFAULT_OLLAMA_MODEL,
    "--llm-ollama-model",
    help="The Ollama model to use.",
    rich_help_panel="LLM: Ollama",
)
LLM_OLLAMA_HOST = typer.Option(
    config.DEFAULT_OLLAMA_HOST,
    "--llm-ollama-host",
    help="The Ollama server host.",
    rich_help_panel="LLM: Ollama",
)
LLM_OPENAI_MODEL = typer.Option(
    config.DEFAULT_OPENAI_MODEL,
    "--llm-openai-model",
    help="The OpenAI model to use.",
    rich_help_panel="LLM: OpenAI-compatible",
)
OPENAI_API_KEY = typer.Option(
    os.getenv("OPENAI_API_KEY"),
    "--openai-api-key",
    help="OpenAI API key. Can also be set with the OPENAI_API_KEY environment variable.",
    rich_help_panel="LLM: OpenAI-compatible",
)
OPENAI_BASE_URL = typer.Option(
    None,
    "--openai-base-url",
    help="Custom base URL for an OpenAI-compatible API (e.g. llama-server).",
    rich_help_panel="LLM: OpenAI-compatible",
)

# --- Summarization Options ---
TOKEN_MAX = typer.Option(
    1500,
    "--token-max",
    help="Budget: maximum total cost of the summaries merged in one LLM call.",
    rich_help_panel="Summarization Options",
)
CHUNK_SIZE = typer.Option(
    1000,
    "--chunk-size",
    help="Maximum number of characters per document chunk.",
    rich_help_panel="Summarization Options",
)
CHUNK_OVERLAP = typer.Option(
    200,
    "--chunk-overlap",
    help="Characters shared between neighbouring chunks.",
    rich_help_panel="Summarization Options",
)
MAX_COLLAPSE_ITERATIONS = typer.Option(
    10,
    "--max-collapse-iterations",
    help="Give up if summaries still exceed the budget after this many collapses.",
    rich_help_panel="Summarization Options",
)
MAX_CONCURRENT = typer.Option(
    5,
    "--max-concurrent",
    help="Maximum number of LLM calls in flight at once.",
    rich_help_panel="Summarization Options",
)

# --- General Options ---
LOG_LEVEL = typer.Option(
    "WARNING",
    "--log-level",
    help="Set the log level (e.g., DEBUG, INFO, WARNING).",
    rich_help_panel="General Options",
)
LOG_FILE = typer.Option(
    None,
    "--log-file",
    help="Path to a file to write logs to.",
    rich_help_panel="General Options",
)
QUIET = typer.Option(
    False,  # noqa: FBT003
    "--quiet",
    "-q",
    help="Suppress all output except for the final result.",
    rich_help_panel="General Options",
)
SAVE_FILE = typer.Option(
    None,
    "--save-file",
    help="Also write the final summary to this file.",
    rich_help_panel="General Options",
)
CONFIG_FILE = typer.Option(
    None,
    "--config",
    help="Path to a TOML configuration file.",
    is_eager=True,
    callback=_conf_callback,
    rich_help_panel="General Options",
)
PRINT_ARGS = typer.Option(
    False,  # noqa: FBT003
    "--print-args",
    help="Print the command line arguments, including variables taken from the configuration file.",
    is_flag=True,
    rich_help_panel="General Options",
)
