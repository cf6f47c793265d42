"""LLM clients used by the summarizer."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from digest_cli.summarizer.models import UpstreamError

if TYPE_CHECKING:
    from pydantic_ai import Agent

    from digest_cli.summarizer.models import SummarizerConfig

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a concise summarizer. Output only the summary, no preamble."


class LLMClient(ABC):
    """Abstract text-completion client."""

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """Return the completion for ``prompt``.

        Raises:
            UpstreamError: If the call fails or the completion is empty.

        """
        ...


class OpenAICompatibleClient(LLMClient):
    """Completion client for any OpenAI-compatible endpoint, via PydanticAI."""

    def __init__(self, config: SummarizerConfig, *, max_tokens: int | None = None) -> None:
        """Initialize the client from summarizer settings."""
        self.config = config
        self.max_tokens = max_tokens
        self._agent: Agent[None, str] | None = None

    def _build_agent(self) -> Agent[None, str]:
        from pydantic_ai import Agent  # noqa: PLC0415
        from pydantic_ai.models.openai import OpenAIChatModel  # noqa: PLC0415
        from pydantic_ai.providers.openai import OpenAIProvider  # noqa: PLC0415
        from pydantic_ai.settings import ModelSettings  # noqa: PLC0415

        provider = OpenAIProvider(
            api_key=self.config.api_key,
            base_url=self.config.openai_base_url,
        )
        settings = ModelSettings(temperature=self.config.temperature)
        if self.max_tokens is not None:
            settings["max_tokens"] = self.max_tokens
        model = OpenAIChatModel(
            model_name=self.config.model,
            provider=provider,
            settings=settings,
        )
        return Agent(model=model, system_prompt=SYSTEM_PROMPT, output_type=str)

    @property
    def agent(self) -> Agent[None, str]:
        """Lazily constructed PydanticAI agent."""
        if self._agent is None:
            self._agent = self._build_agent()
        return self._agent

    async def complete(self, prompt: str) -> str:
        """Run the prompt through the agent and return the stripped text."""
        try:
            result = await self.agent.run(prompt)
        except Exception as e:
            msg = f"LLM call to {self.config.model} failed: {e}"
            raise UpstreamError(msg) from e

        text = str(result.output).strip()
        if not text:
            msg = f"LLM {self.config.model} returned an empty completion"
            raise UpstreamError(msg)
        logger.debug("Completion of %d chars for prompt of %d chars", len(text), len(prompt))
        return text
