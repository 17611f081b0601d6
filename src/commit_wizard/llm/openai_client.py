"""
Client for the OpenAI chat completions API.

This client wraps HTTP requests to the ``/chat/completions`` endpoint.
Every failure (missing API key, connection problems, timeouts, non-2xx
responses, unparsable bodies or empty completions) is raised as a
:class:`LLMError` so that callers only need to handle a single
exception type.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests


logger = logging.getLogger(__name__)
# Attach a null handler so nothing is printed until the CLI configures
# the root logger.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


DEFAULT_BASE_URL = "https://api.openai.com/v1"


class LLMError(Exception):
    """Raised when communication with the language model fails."""

    pass


@dataclass
class OpenAIClient:
    """Client for the OpenAI chat completions endpoint.

    Parameters
    ----------
    api_key : str, optional
        Bearer token. A missing key makes every call fail with
        :class:`LLMError` before any request is sent.
    model : str
        Model name, e.g. ``"gpt-4o"``.
    request_timeout : float, optional
        Timeout in seconds for each HTTP request. Defaults to 30 seconds.
    base_url : str, optional
        API root, without the trailing ``/chat/completions``.
    """

    api_key: Optional[str]
    model: str
    request_timeout: float = 30.0
    base_url: str = DEFAULT_BASE_URL

    @classmethod
    def from_config(cls, config) -> "OpenAIClient":
        return cls(
            api_key=config.openai.api_key,
            model=config.openai.model,
            request_timeout=config.openai.timeout_seconds,
            base_url=config.openai.base_url,
        )

    def _endpoint(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"

    @staticmethod
    def _error_detail(response: Any) -> str:
        try:
            data = response.json()
        except ValueError:
            return "unknown error"
        if isinstance(data, dict) and isinstance(data.get("error"), dict):
            return str(data["error"].get("message") or "unknown error")
        return "unknown error"

    def complete(self, prompt: str, max_tokens: int, temperature: float) -> str:
        """Send ``prompt`` as a single user message and return the reply.

        Parameters
        ----------
        prompt : str
            The user message.
        max_tokens : int
            Completion token budget.
        temperature : float
            Sampling temperature.

        Returns
        -------
        str
            The stripped content of the first choice.

        Raises
        ------
        LLMError
            If the request cannot be made or the response is unusable.
        """
        if not self.api_key:
            raise LLMError("OpenAI API key not found. Set OPENAI_API_KEY in the environment.")

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        url = self._endpoint()
        logger.debug(
            "Sending request to %s (model=%s, prompt=%d chars, max_tokens=%s)",
            url,
            self.model,
            len(prompt),
            max_tokens,
        )
        try:
            response = requests.post(url, json=payload, headers=headers, timeout=self.request_timeout)
        except requests.Timeout as exc:
            logger.error("Request to OpenAI timed out after %ss", self.request_timeout)
            raise LLMError(f"Request timed out after {self.request_timeout:g}s") from exc
        except requests.RequestException as exc:
            logger.error("Failed to connect to OpenAI: %s", exc)
            raise LLMError(f"Failed to connect to OpenAI: {exc}") from exc

        if not 200 <= response.status_code < 300:
            detail = self._error_detail(response)
            logger.error("OpenAI returned status %s: %s", response.status_code, detail)
            raise LLMError(f"OpenAI error ({response.status_code}): {detail}")

        try:
            data = response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            logger.error("Failed to parse OpenAI response: %s", exc)
            raise LLMError("Failed to parse OpenAI response") from exc

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        if not isinstance(content, str) or not content.strip():
            raise LLMError("OpenAI returned an empty response")
        return content.strip()
