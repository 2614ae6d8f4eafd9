"""Reasoning Client — single-shot wrapper around the Anthropic Messages API.

Invariants:
    - Exactly one API call per complete(); SDK retries disabled (max_retries=0)
    - No timeout override: the SDK transport default applies
    - Missing API key -> ConfigurationError, before any network activity
    - Non-success status -> UpstreamError(status_code, body excerpt)
    - Connection / timeout failures -> UpstreamError(status_code=None)
    - No text in the response -> "" (a trivial but valid result)

Design Decisions:
    - SDK client built lazily: an unconfigured process can still start and
      report ConfigurationError per task
    - Client injectable for tests (anything exposing messages.create)
"""

import logging

import anthropic
from anthropic import APIConnectionError, APIStatusError

from axle.core.errors import ConfigurationError, ErrorContext, UpstreamError

logger = logging.getLogger(__name__)


class AnthropicReasoningClient:
    """complete(system, user) -> text. No retry, no streaming."""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-6",
        max_tokens: int = 1024,
        client: object | None = None,
    ):
        self.api_key = (api_key or "").strip()
        self.model = model
        self.max_tokens = max_tokens
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(
                api_key=self.api_key, max_retries=0,
            )
        return self._client

    async def complete(
        self,
        system_prompt: str,
        user_message: str,
        context: ErrorContext | None = None,
    ) -> str:
        if not self.api_key:
            raise ConfigurationError("No ANTHROPIC_API_KEY configured", context)
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system_prompt,
                messages=[{"role": "user", "content": user_message}],
            )
        except APIStatusError as e:
            raise UpstreamError(e.status_code, _response_body(e), context)
        except APIConnectionError as e:
            raise UpstreamError(None, str(e), context)

        self._log_success(response)
        return _extract_text(response)

    def _log_success(self, response) -> None:
        usage = getattr(response, "usage", None)
        if usage is None:
            return
        logger.info(
            "Reasoning call succeeded",
            extra={
                "input_tokens": getattr(usage, "input_tokens", None),
                "output_tokens": getattr(usage, "output_tokens", None),
            },
        )


def _response_body(error: APIStatusError) -> str:
    if getattr(error, "response", None) is not None:
        return error.response.text
    return str(error.message)


def _extract_text(response) -> str:
    parts = [
        block.text for block in (getattr(response, "content", None) or [])
        if getattr(block, "type", None) == "text" and getattr(block, "text", None)
    ]
    return "\n".join(parts).strip()
