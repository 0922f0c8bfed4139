"""
Language-model completion client.

The extraction pipeline only needs one call: a system instruction plus the
resume text in, a text blob that should contain a JSON object out. Any
provider can be plugged in by subclassing CompletionClient; tests use small
fakes.
"""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from openai import OpenAI, OpenAIError

from resume_ingest.core.config import Settings, settings
from resume_ingest.core.errors import CompletionError

logger = logging.getLogger(__name__)

_JSON_FINDER = re.compile(r"\{.*\}", re.S)


class CompletionClient(ABC):
    """Abstract base class for completion providers."""

    @abstractmethod
    def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Return the raw completion text. Raise CompletionError on failure."""


class OpenAICompletionClient(CompletionClient):
    """OpenAI chat completions in JSON mode. One request, no retries."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        timeout_s: float = 30.0,
    ):
        if not api_key:
            raise CompletionError("OPENAI_API_KEY is missing")
        self._model = model
        self._client = OpenAI(
            api_key=api_key,
            base_url=base_url or None,
            timeout=timeout_s,
            max_retries=0,
        )

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=0,
                response_format={"type": "json_object"},
            )
        except OpenAIError as e:
            raise CompletionError(f"OpenAI request failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise CompletionError("OpenAI returned an empty completion")
        return content


def build_completion_client(config: Settings) -> Optional[CompletionClient]:
    """Client described by 'config', or None when AI extraction is off."""
    if not config.ai_extraction_enabled:
        logger.info("AI extraction disabled by configuration")
        return None
    if not config.openai_api_key:
        logger.info("No OPENAI_API_KEY configured; AI extraction unavailable")
        return None
    return OpenAICompletionClient(
        api_key=config.openai_api_key,
        model=config.openai_model,
        base_url=config.openai_base_url,
        timeout_s=config.openai_timeout_s,
    )


def get_completion_client() -> Optional[CompletionClient]:
    """
    Client for the process-wide settings.

    Used as the FastAPI dependency, so tests override it with a fake.
    """
    return build_completion_client(settings)


def extract_json(raw: str) -> Dict[str, Any]:
    """
    Parse a completion as a JSON object.

    Falls back to the outermost {...} span so that markdown fences or a
    sentence of prose around the object do not break parsing. Raises
    json.JSONDecodeError when no object can be recovered, ValueError when the
    JSON is not an object or nests deeper than the decoder can follow.
    """
    try:
        try:
            data = json.loads(raw or "")
        except json.JSONDecodeError:
            if m := _JSON_FINDER.search(raw or ""):
                data = json.loads(m.group())
            else:
                raise
    except RecursionError as e:
        raise ValueError("JSON nesting too deep") from e
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data
