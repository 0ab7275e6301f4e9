"""AI text collaborator: chat completions over an OpenAI-compatible endpoint."""

import json
import logging
from typing import Any, List, Optional

from openai import OpenAI, OpenAIError

from place_curator.core.errors import AITextError

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You are a Taiwan travel content specialist. "
    "Always answer with a single valid JSON array and no prose or markdown."
)


def extract_json_array(text: str) -> List[Any]:
    """Return the first JSON array embedded in free text.

    Models often wrap the array in prose or code fences, so every ``[`` is tried
    as a starting point until one decodes.
    """
    decoder = json.JSONDecoder()
    position = text.find("[")
    while position != -1:
        try:
            value, _ = decoder.raw_decode(text, position)
        except json.JSONDecodeError:
            position = text.find("[", position + 1)
            continue
        if isinstance(value, list):
            return value
        position = text.find("[", position + 1)
    raise ValueError(f"No JSON array found in AI response: {text[:200]!r}")


class AITextClient:
    """Two call shapes over the same chat completion: keyword expansion and batched classification."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[OpenAI] = None,
    ) -> None:
        self.model = model
        self._client = client or OpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=2)

    def expand(self, prompt: str) -> str:
        return self._complete(prompt, temperature=0.7, max_tokens=1024)

    def classify(self, prompt: str) -> str:
        return self._complete(prompt, temperature=0.5, max_tokens=4096)

    def _complete(self, prompt: str, *, temperature: float, max_tokens: int) -> str:
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                temperature=temperature,
                max_tokens=max_tokens,
                messages=[
                    {"role": "system", "content": _SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
        except OpenAIError as exc:
            raise AITextError(f"AI request failed: {exc}") from exc

        if not response.choices:
            raise AITextError("AI returned no choices")
        content = response.choices[0].message.content or ""
        if not content.strip():
            raise AITextError("AI returned an empty message")
        usage = getattr(response, "usage", None)
        logger.debug(
            "AI completion model=%s prompt_tokens=%s completion_tokens=%s",
            self.model,
            getattr(usage, "prompt_tokens", None),
            getattr(usage, "completion_tokens", None),
        )
        return content
