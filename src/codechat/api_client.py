# Purpose: Wrap the OpenAI chat completions client for coding assistant turns.
# Why: Encapsulation keeps SDK types and error translation out of the CLI.
"""API client helpers for talking to an OpenAI-compatible chat completions endpoint."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from openai import APIStatusError, OpenAI, OpenAIError

from .config import Settings
from .errors import CompletionError
from .history import Transcript

logger = logging.getLogger(__name__)


class CompletionClient:
    """Thin wrapper that sends the full transcript and returns the reply text."""

    def __init__(
        self,
        settings: Settings,
        *,
        api_key: str,
        client: Optional[Any] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        """Configure the OpenAI client; the SDK's own retries are disabled."""
        self._client = client or OpenAI(
            api_key=api_key,
            base_url=settings.base_url,
            max_retries=0,
            http_client=http_client,
        )
        self._model = settings.model
        self._temperature = settings.temperature
        self._max_tokens = settings.max_tokens

    @property
    def model(self) -> str:
        """Return the model identifier requests are sent to."""
        return self._model

    def send(self, transcript: Transcript) -> str:
        """Send one completion request carrying every transcript message."""
        messages = transcript.build_context()
        logger.debug("Requesting completion from %s with %d messages", self._model, len(messages))
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except APIStatusError as exc:
            logger.debug("Completion failed with status %s", exc.status_code)
            raise CompletionError(_describe(exc), status_code=exc.status_code) from exc
        except OpenAIError as exc:
            logger.debug("Completion failed without a status: %r", exc)
            raise CompletionError(_describe(exc)) from exc
        return self._extract_text(response)

    @staticmethod
    def _extract_text(response: Any) -> str:
        """Extract the first choice's message text from a response payload."""
        choices = getattr(response, "choices", None) or []
        if not choices:
            raise CompletionError("No choices returned in response payload.")
        return choices[0].message.content or ""


def _describe(exc: Exception) -> str:
    """Return a human-readable error string including root cause information."""
    message = str(exc) or exc.__class__.__name__
    cause = getattr(exc, "__cause__", None)
    if cause:
        return f"{message} (cause: {cause})"
    return message
