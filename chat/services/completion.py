import asyncio
import logging
from typing import AsyncIterator

from django.conf import settings
from kani import ChatMessage, Kani
from kani.engines.anthropic import AnthropicEngine
from kani.engines.openai import OpenAIEngine

from .exceptions import LLMConfigurationError

logger = logging.getLogger(__name__)

CHAT_MAX_TOKENS = 4096
CHAT_TEMPERATURE = 0.7


def ensure_llm_configured():
    if not settings.LLM_API_KEY:
        raise LLMConfigurationError("AI API key not configured")


def build_engine(model: str, max_tokens: int, temperature: float):
    ensure_llm_configured()
    if settings.LLM_PROVIDER == "anthropic":
        return AnthropicEngine(
            api_key=settings.LLM_API_KEY, model=model, max_tokens=max_tokens, temperature=temperature
        )
    if settings.LLM_PROVIDER == "openai":
        return OpenAIEngine(settings.LLM_API_KEY, model=model, max_tokens=max_tokens, temperature=temperature)
    raise LLMConfigurationError(f"Unknown LLM provider {settings.LLM_PROVIDER}")


def to_chat_history(history_json: list[dict]) -> list[ChatMessage]:
    """Validate stored turns, merging consecutive turns from the same role.

    A user turn whose reply was never stored would otherwise sit next to the
    following user turn, which providers reject.
    """
    merged: list[dict] = []
    for turn in history_json:
        if merged and merged[-1]["role"] == turn["role"]:
            merged[-1]["content"] = f"{merged[-1]['content']}\n\n{turn['content']}"
        else:
            merged.append({"role": turn["role"], "content": turn["content"]})
    return [ChatMessage.model_validate(turn) for turn in merged]


class CompletionStream:
    """Synchronous iterator over the text deltas of one streamed chat round.

    The async kani stream is driven on a private event loop so the caller can
    relay tokens from ordinary (WSGI) request code. Token usage is available on
    the instance once iteration has finished.
    """

    def __init__(
        self,
        history_json: list[dict],
        system_prompt: str,
        message: str,
        model: str | None = None,
        max_tokens: int = CHAT_MAX_TOKENS,
        temperature: float = CHAT_TEMPERATURE,
    ):
        self.model = model or settings.LLM_MODEL
        self.prompt_tokens: int | None = None
        self.completion_tokens: int | None = None
        self._loop = asyncio.new_event_loop()
        self._tokens = self._stream(to_chat_history(history_json), system_prompt, message, max_tokens, temperature)

    async def _stream(
        self, chat_history: list[ChatMessage], system_prompt: str, message: str, max_tokens: int, temperature: float
    ) -> AsyncIterator[str]:
        engine = build_engine(self.model, max_tokens, temperature)
        try:
            assistant = Kani(engine, system_prompt=system_prompt, chat_history=chat_history)
            stream = assistant.chat_round_stream(message)
            async for token in stream:
                if token:
                    yield token
            completion = await stream.completion()
            self.prompt_tokens = completion.prompt_tokens or 0
            self.completion_tokens = completion.completion_tokens or 0
        finally:
            await engine.close()

    def _run(self, coro):
        asyncio.set_event_loop(self._loop)
        return self._loop.run_until_complete(coro)

    def __iter__(self):
        return self

    def __next__(self) -> str:
        if self._loop.is_closed():
            raise StopIteration
        try:
            return self._run(self._tokens.__anext__())
        except StopAsyncIteration:
            self.close()
            raise StopIteration
        except BaseException:
            self.close()
            raise

    def close(self):
        if self._loop.is_closed():
            return
        try:
            self._run(self._tokens.aclose())
        finally:
            self._loop.close()
            asyncio.set_event_loop(None)


async def _chat_completion_async(prompt: str, model: str, max_tokens: int, temperature: float) -> str:
    engine = build_engine(model, max_tokens, temperature)
    try:
        assistant = Kani(engine)
        return await assistant.chat_round_str(prompt)
    finally:
        await engine.close()


def chat_completion(prompt: str, model: str | None = None, max_tokens: int = 2048, temperature: float = 0) -> str:
    """Single non-streamed completion for a one-off prompt."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(
            _chat_completion_async(prompt, model or settings.LLM_MODEL, max_tokens, temperature)
        )
    finally:
        loop.close()
        asyncio.set_event_loop(None)
