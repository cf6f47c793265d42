"""Shared test fixtures and configuration."""

from __future__ import annotations

import asyncio
import contextlib
import re
from collections.abc import Callable

import pytest

from digest_cli.summarizer import LLMClient, SummarizerConfig, UpstreamError
from digest_cli.summarizer._prompts import REDUCE_SUMMARY_PROMPT

REDUCE_PREFIX = REDUCE_SUMMARY_PROMPT.split("\n", 1)[0]
ID_PATTERN = re.compile(r"<([\d|]+)>")


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Set default timeout for all tests."""
    for item in items:
        with contextlib.suppress(AttributeError):
            item.add_marker(pytest.mark.timeout(3))


def is_reduce_prompt(prompt: str) -> bool:
    """Whether a prompt merges summaries rather than summarizing a chunk."""
    return prompt.startswith(REDUCE_PREFIX)


def merge_ids(prompt: str) -> str:
    """Collect every ``<i|j|...>`` marker in a prompt into one marker."""
    ids = "|".join(ID_PATTERN.findall(prompt))
    return f"<{ids}>"


class FakeLLMClient(LLMClient):
    """Scripted LLM client that records every prompt it receives."""

    def __init__(
        self,
        responder: Callable[[str], str],
        *,
        delay: Callable[[str], float] | None = None,
        fail_when: Callable[[str], bool] | None = None,
    ) -> None:
        self.responder = responder
        self.delay = delay
        self.fail_when = fail_when
        self.prompts: list[str] = []
        self.cancelled = 0

    @property
    def reduce_prompts(self) -> list[str]:
        return [p for p in self.prompts if is_reduce_prompt(p)]

    @property
    def chunk_prompts(self) -> list[str]:
        return [p for p in self.prompts if not is_reduce_prompt(p)]

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        try:
            if self.delay is not None:
                await asyncio.sleep(self.delay(prompt))
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        if self.fail_when is not None and self.fail_when(prompt):
            msg = "connection reset by peer"
            raise UpstreamError(msg)
        return self.responder(prompt)


def sized(length: int, reduce_length: int | None = None) -> Callable[[str], str]:
    """Responder that keeps the prompt's id markers and pads to ``length``.

    Merges are padded to ``reduce_length`` instead when it is given.
    """

    def respond(prompt: str) -> str:
        target = length
        if reduce_length is not None and is_reduce_prompt(prompt):
            target = reduce_length
        return merge_ids(prompt).ljust(target, ".")

    return respond


@pytest.fixture
def make_client() -> type[FakeLLMClient]:
    """Provide the fake LLM client class."""
    return FakeLLMClient


@pytest.fixture
def config() -> SummarizerConfig:
    """Summarizer config with the default budget of 1500."""
    return SummarizerConfig(
        openai_base_url="http://localhost:11434/v1",
        model="qwen3:4b",
    )


@pytest.fixture
def sized_responder() -> Callable[..., Callable[[str], str]]:
    """Provide a factory for fixed-length responders."""
    return sized


@pytest.fixture
def reduce_check() -> Callable[[str], bool]:
    """Provide the predicate that recognises merge prompts."""
    return is_reduce_prompt
