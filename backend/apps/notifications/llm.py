"""
LLM client for the daily briefing and chat order extraction.

Uses the OpenAI SDK against any OpenAI-compatible endpoint
(``LLM_API_BASE_URL``), so the provider can be swapped by configuration.
"""

import json
import re
from functools import lru_cache

from django.conf import settings
from openai import OpenAI, OpenAIError

from apps.core.exceptions import ExternalServiceError
from apps.core.logging import get_logger

logger = get_logger(__name__)

BRIEFING_TEMPERATURE = 0.3
BRIEFING_MAX_TOKENS = 800

BRIEFING_SYSTEM_PROMPT = (
    "You are a business intelligence assistant for WhatThePack. "
    "Generate a concise daily briefing for a business owner. "
    "Format: 1. Greeting 2. Today's overview 3. Recent trends (last 7 days comparison) "
    "4. Alerts 5. Recommendations. "
    "Keep it brief, professional, actionable, bullet points. "
    "Output strictly as plain text. "
    "Do not use Markdown, asterisks for bold, or headings (#)."
)

_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_HEADING_RE = re.compile(r"^\s{0,3}#{1,6}\s+", re.MULTILINE)
_RULE_RE = re.compile(r"^\s*([-*_]){3,}\s*$", re.MULTILINE)
_BOLD_RE = re.compile(r"(\*\*|__)(.*?)\1", re.DOTALL)
_ITALIC_RE = re.compile(r"(\*|_)(\S(?:.*?\S)?)\1")


def is_llm_configured() -> bool:
    return bool(getattr(settings, "LLM_API_KEY", ""))


@lru_cache(maxsize=1)
def get_llm_client() -> OpenAI:
    """Get a configured OpenAI-compatible client (cached singleton)."""
    return OpenAI(
        api_key=settings.LLM_API_KEY,
        base_url=settings.LLM_API_BASE_URL or None,
        timeout=settings.LLM_TIMEOUT_SECONDS,
    )


def to_plain_text(text: str) -> str:
    """Strip the Markdown constructs models tend to emit despite instructions."""
    text = _IMAGE_RE.sub(r"\1", text)
    text = _LINK_RE.sub(r"\1", text)
    text = _HEADING_RE.sub("", text)
    text = _RULE_RE.sub("", text)
    text = _BOLD_RE.sub(r"\2", text)
    text = _ITALIC_RE.sub(r"\2", text)
    text = text.replace("`", "")
    return text.strip()


def chat_completion(
    system_prompt: str,
    user_content: str,
    *,
    temperature: float,
    max_tokens: int,
    client: OpenAI | None = None,
) -> str:
    """
    Run one system+user exchange and return the reply text.

    Raises:
        ExternalServiceError: If the model call fails or returns nothing
    """
    client = client or get_llm_client()
    try:
        response = client.chat.completions.create(
            model=settings.LLM_MODEL,
            temperature=temperature,
            max_tokens=max_tokens,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
        )
    except OpenAIError as e:
        logger.warning("llm_completion_failed", error=str(e))
        raise ExternalServiceError("Model request failed") from e

    content = response.choices[0].message.content if response.choices else None
    if not content:
        raise ExternalServiceError("Model returned no content")
    return content


def generate_briefing_text(data: dict, client: OpenAI | None = None) -> str:
    """
    Ask the model for a briefing over ``data``.

    Raises:
        ExternalServiceError: If the model call fails or returns nothing
    """
    content = chat_completion(
        BRIEFING_SYSTEM_PROMPT,
        "Generate a daily briefing based on this data:\n\n" + json.dumps(data, indent=2, default=str),
        temperature=BRIEFING_TEMPERATURE,
        max_tokens=BRIEFING_MAX_TOKENS,
        client=client,
    )
    return to_plain_text(content)
