"""Content rewriter collaborator: text in, text out, backed by the Anthropic Messages API"""

from __future__ import annotations

import logging
from typing import Protocol

from anthropic import Anthropic, AnthropicError

from contentpipe.core.errors import ExternalServiceError


logger = logging.getLogger(__name__)


class ContentRewriter(Protocol):
    """Opaque text transformer; may truncate output when the input is over its budget."""

    def rewrite(self, text: str, system: str) -> str:
        ...


class AnthropicRewriter:
    """ContentRewriter over a streamed Messages call with a single user turn."""

    def __init__(self, api_key: str | None, model: str, max_tokens: int, client: Anthropic | None = None):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self._client = client

    @property
    def client(self) -> Anthropic:
        """SDK client, built on first use so a missing key only fails the calls that need it."""
        if self._client is None:
            try:
                self._client = Anthropic(api_key=self.api_key)
            except AnthropicError as e:
                raise ExternalServiceError(f"Anthropic client unavailable: {e}") from e
        return self._client

    def rewrite(self, text: str, system: str) -> str:
        kwargs = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": system,
            "messages": [{"role": "user", "content": text}],
        }
        try:
            with self.client.messages.stream(**kwargs) as stream:
                response = stream.get_final_message()
        except AnthropicError as e:
            raise ExternalServiceError(f"Rewrite request failed: {e}") from e

        if getattr(response, "stop_reason", None) == "max_tokens":
            logger.warning("Rewriter response truncated at max_tokens=%d", self.max_tokens)

        parts = [block.text for block in response.content if getattr(block, "type", None) == "text"]
        if not parts:
            raise ExternalServiceError("Rewriter response contained no text content")
        return "".join(parts)
