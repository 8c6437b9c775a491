"""
Anthropic completion client for comment replies.

Sends the rendered comment context, plus the frame screenshot when one is
available, to the Messages API and returns the reply text.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import anthropic

from .schemas import ProcessingContext, FALLBACK_REPLY, get_system_prompt, render_user_prompt

logger = logging.getLogger("responder.common.llm_client")


class LLMClient:
    """Vision-capable text generation client backed by Anthropic."""

    def __init__(
        self,
        anthropic_api_key: Optional[str] = None,
        model: str = "",
        max_tokens: int = 1024,
        timeout: float = 60.0,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._client = None

        if not anthropic_api_key:
            logger.info("anthropic API key not provided, LLM client unavailable")
            return
        try:
            self._client = anthropic.AsyncAnthropic(api_key=anthropic_api_key)
        except Exception as e:
            logger.warning("Failed to initialize Anthropic client: %s", e)

    @property
    def is_available(self) -> bool:
        return self._client is not None

    @staticmethod
    def build_content(context: ProcessingContext) -> List[Dict[str, Any]]:
        """User message content: the screenshot first (if any), then the prompt text."""
        content: List[Dict[str, Any]] = []
        if context.image_base64:
            content.append({
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": "image/png",
                    "data": context.image_base64,
                },
            })
        content.append({"type": "text", "text": render_user_prompt(context)})
        return content

    async def generate(
        self,
        context: ProcessingContext,
        system_prompt: Optional[str] = None,
    ) -> str:
        if not self.is_available:
            raise RuntimeError("LLM client is not available")

        response = await self._client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=get_system_prompt(system_prompt),
            messages=[{"role": "user", "content": self.build_content(context)}],
            timeout=self.timeout,
        )

        for block in response.content:
            if getattr(block, "type", None) == "text":
                return block.text
        return FALLBACK_REPLY

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()


async def verify_api_key(api_key: str, model: str = "claude-sonnet-4-20250514") -> bool:
    """Check an Anthropic key with a minimal request."""
    try:
        client = anthropic.AsyncAnthropic(api_key=api_key)
        try:
            await client.messages.create(
                model=model,
                max_tokens=10,
                messages=[{"role": "user", "content": "Hi"}],
            )
        finally:
            await client.close()
        return True
    except Exception as e:
        logger.info("Anthropic key verification failed: %s", e)
        return False
