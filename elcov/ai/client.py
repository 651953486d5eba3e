"""Claude API client wrapper used for natural-language coverage summaries."""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Optional

import anthropic

from elcov.ai.prompts.summary import SUMMARY_SYSTEM_PROMPT, build_summary_prompt

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-opus-4-6"
REQUEST_TIMEOUT = 120.0


def _format_exchange(call_number: int, system_prompt: str, user_message: str,
                     response_text: str, error: str | None) -> str:
    sections = [
        f"=== AI CALL #{call_number} at {time.strftime('%Y-%m-%d %H:%M:%S')} ===",
        f"=== SYSTEM PROMPT ({len(system_prompt)} chars) ===\n{system_prompt}",
        f"=== USER MESSAGE ({len(user_message)} chars) ===\n{user_message}",
        f"=== RESPONSE ({len(response_text)} chars) ===\n{response_text or '(empty)'}",
    ]
    if error:
        sections.append(f"=== ERROR ===\n{error}")
    return "\n\n".join(sections) + "\n"


class AIClient:
    """Sends coverage reports to Claude and returns plain-text summaries.

    Construction fails with ``EnvironmentError`` when ``ANTHROPIC_API_KEY``
    is unset; callers fall back to the basic summary in that case. When
    ``debug_dir`` is given every exchange is written there, one file per call.
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 1024,
        debug_dir: Path | None = None,
    ):
        api_key = os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise EnvironmentError(
                "ANTHROPIC_API_KEY is not set; coverage summaries will use the basic text summary."
            )
        self.client = anthropic.Anthropic(api_key=api_key, timeout=REQUEST_TIMEOUT)
        self.model = model
        self.max_tokens = max_tokens
        self.debug_dir = debug_dir
        self._call_count = 0

    @property
    def call_count(self) -> int:
        return self._call_count

    def summarize(self, report_json: str, summary_text: str) -> str:
        """Ask for an actionable summary of a serialized coverage report."""
        return self.complete(
            system_prompt=SUMMARY_SYSTEM_PROMPT,
            user_message=build_summary_prompt(report_json, summary_text),
        ).strip()

    def complete(
        self,
        system_prompt: str,
        user_message: str,
        max_tokens: Optional[int] = None,
        temperature: float = 0.3,
    ) -> str:
        self._call_count += 1
        limit = max_tokens or self.max_tokens
        logger.debug(
            "Summary request #%d to %s (max_tokens=%d, prompt %d chars)",
            self._call_count, self.model, limit, len(system_prompt) + len(user_message),
        )

        started = time.time()
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=limit,
                temperature=temperature,
                system=system_prompt,
                messages=[{"role": "user", "content": user_message}],
            )
        except anthropic.APIError as e:
            logger.error("Claude API error on summary request #%d: %s", self._call_count, e)
            self._write_exchange(system_prompt, user_message, "", error=str(e))
            raise

        text = response.content[0].text
        logger.info("Coverage summary received in %.1fs", time.time() - started)
        if response.stop_reason == "max_tokens":
            logger.warning("Coverage summary truncated at %d tokens", limit)
        self._write_exchange(system_prompt, user_message, text)
        return text

    def _write_exchange(self, system_prompt: str, user_message: str,
                        response_text: str, error: str | None = None) -> None:
        if self.debug_dir is None:
            return
        log_file = self.debug_dir / f"ai_call_{time.strftime('%Y%m%d_%H%M%S')}_{self._call_count:03d}.log"
        try:
            self.debug_dir.mkdir(parents=True, exist_ok=True)
            log_file.write_text(
                _format_exchange(self._call_count, system_prompt, user_message, response_text, error),
                encoding="utf-8",
            )
        except OSError as e:
            logger.debug("Could not write %s: %s", log_file, e)
