"""ClaudeClassifier: bulk listing classification over the Anthropic Messages API.

One ``classify`` call per batch. The SDK retries rate limits, timeouts and
5xx answers itself; anything still failing surfaces as ClassifierError so
the parse run can record it against the batch.
"""
from __future__ import annotations

import json
import logging
import os
import re
from typing import Any, Dict, List, Optional

import anthropic

from gigradar import config
from gigradar.core.pipeline import ClassifierError

from .prompts import build_system_prompt

LOGGER = logging.getLogger(__name__)

MAX_RETRIES = 2

FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
JSON_BLOCK = re.compile(r"[\[{][\s\S]*[\]}]")


def extract_json(text: str) -> str:
    """Best-effort JSON payload from a model answer (fences or preamble allowed)."""
    m = FENCE.search(text or "")
    if m:
        return m.group(1).strip()
    m = JSON_BLOCK.search(text or "")
    if m:
        return m.group(0)
    return (text or "").strip()


def parse_jobs(text: str) -> List[Dict[str, Any]]:
    try:
        payload = json.loads(extract_json(text))
    except json.JSONDecodeError as exc:
        raise ClassifierError(f"response is not JSON: {exc}") from exc
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("jobs"), list):
        return payload["jobs"]
    raise ClassifierError("response has no 'jobs' list")


class ClaudeClassifier:
    def __init__(
        self,
        api_key: str,
        *,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
        system_prompt: Optional[str] = None,
        client: Optional[anthropic.Anthropic] = None,
    ):
        if not api_key:
            raise ValueError("ClaudeClassifier requires an API key (ANTHROPIC_API_KEY)")
        self.model = model or config.classifier_model()
        self.max_tokens = max_tokens or config.classifier_max_tokens()
        self.system_prompt = system_prompt or build_system_prompt(config.load_profile() or None)
        self.client = client or anthropic.Anthropic(
            api_key=api_key,
            max_retries=MAX_RETRIES,
            timeout=timeout or config.classifier_timeout(),
        )

    @classmethod
    def from_env(cls) -> "ClaudeClassifier":
        return cls(os.getenv("ANTHROPIC_API_KEY", ""))

    def complete(self, user_text: str) -> str:
        """Send one message and return the concatenated text blocks."""
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=self.system_prompt,
                messages=[{"role": "user", "content": user_text}],
            )
        except anthropic.APIStatusError as exc:
            raise ClassifierError(f"classifier HTTP {exc.status_code}: {exc.message}") from exc
        except anthropic.APIError as exc:
            raise ClassifierError(f"classifier request failed: {exc}") from exc

        text = "".join(getattr(b, "text", "") for b in response.content or [] if getattr(b, "type", None) == "text")
        if not text.strip():
            raise ClassifierError("classifier returned no text")
        if getattr(response, "stop_reason", None) == "max_tokens":
            LOGGER.warning("classifier answer hit max_tokens=%s; JSON may be cut off", self.max_tokens)
        return text

    def classify(self, batch_text: str) -> List[Dict[str, Any]]:
        return parse_jobs(self.complete(batch_text))

