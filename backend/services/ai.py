"""
services/ai.py
──────────────
Recommendation synthesis through the DashScope chat-completions endpoint.

Fallback policy as an explicit state machine:

    IDLE → PRIMARY_ATTEMPT → SUCCEEDED
                           ↘ FALLBACK_ATTEMPT → SUCCEEDED
                                              ↘ FAILED

Any failure of the primary attempt (transport, HTTP status, response shape,
empty answer) moves to exactly one fallback attempt with ``FALLBACK_MODEL``
and otherwise identical parameters. There is no backoff and no third call.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

import httpx
from pydantic import ValidationError

from models.chat import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    UpstreamErrorEnvelope,
)
from models.pipeline import ModelAttempt, ModelRole, PipelineConfig
from services.errors import (
    SYNTHESIS,
    EmptyResult,
    ModelFailure,
    ParseError,
    PipelineError,
    TransportError,
    UpstreamStatusError,
)
from services.prompt import SYSTEM_PROMPT

logger = logging.getLogger("nearbite.ai")

FALLBACK_MODEL = "qwen-turbo"
TEMPERATURE = 0.7

_BODY_SNIPPET = 300


# ═══════════════════════════════════════════════════════════════════════════
# Single completion call
# ═══════════════════════════════════════════════════════════════════════════

def upstream_error_message(body: str) -> Optional[str]:
    """Pull ``error.message`` out of a provider error envelope, if there is one."""
    try:
        return UpstreamErrorEnvelope.model_validate_json(body).error.message
    except ValidationError:
        return None


def build_request(model: str, prompt: str) -> ChatCompletionRequest:
    return ChatCompletionRequest(
        model=model,
        messages=[
            ChatMessage(role="system", content=SYSTEM_PROMPT),
            ChatMessage(role="user", content=prompt),
        ],
        temperature=TEMPERATURE,
        enable_thinking=False,
    )


async def request_completion(
    client: httpx.AsyncClient,
    config: PipelineConfig,
    model: str,
    prompt: str,
) -> str:
    """POST one non-streaming completion and return the first choice's text."""
    body = build_request(model, prompt).model_dump(exclude_none=True)
    headers = {"Authorization": f"Bearer {config.qwen_api_key}"}

    try:
        resp = await client.post(config.chat_url, json=body, headers=headers)
    except httpx.TimeoutException as exc:
        raise TransportError(f"model call timed out: {exc!r}", stage=SYNTHESIS) from exc
    except httpx.RequestError as exc:
        raise TransportError(f"model call failed before a usable response: {exc!r}", stage=SYNTHESIS) from exc

    raw = resp.text
    if not resp.is_success:
        reason = upstream_error_message(raw) or raw[:_BODY_SNIPPET]
        raise UpstreamStatusError(
            resp.status_code,
            f"model call failed (HTTP {resp.status_code}): {reason}",
            stage=SYNTHESIS,
        )

    try:
        completion = ChatCompletionResponse.model_validate_json(raw)
    except ValidationError as exc:
        reported = upstream_error_message(raw)
        if reported:
            raise ParseError(f"model reported an error: {reported}", stage=SYNTHESIS) from exc
        raise ParseError(
            f"could not parse completion: {exc.errors()[0]['msg']} | body: {raw[:_BODY_SNIPPET]}",
            stage=SYNTHESIS,
        ) from exc

    if not completion.choices:
        raise EmptyResult("model returned no choices", stage=SYNTHESIS)

    content = completion.choices[0].message.content
    if not content or not content.strip():
        raise EmptyResult("model returned an empty message", stage=SYNTHESIS)
    return content


# ═══════════════════════════════════════════════════════════════════════════
# Fallback state machine
# ═══════════════════════════════════════════════════════════════════════════

class SynthesisState(str, Enum):
    IDLE = "idle"
    PRIMARY_ATTEMPT = "primary_attempt"
    FALLBACK_ATTEMPT = "fallback_attempt"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


TRANSITIONS: Dict[SynthesisState, FrozenSet[SynthesisState]] = {
    SynthesisState.IDLE: frozenset({SynthesisState.PRIMARY_ATTEMPT}),
    SynthesisState.PRIMARY_ATTEMPT: frozenset(
        {SynthesisState.SUCCEEDED, SynthesisState.FALLBACK_ATTEMPT}
    ),
    SynthesisState.FALLBACK_ATTEMPT: frozenset(
        {SynthesisState.SUCCEEDED, SynthesisState.FAILED}
    ),
    SynthesisState.SUCCEEDED: frozenset(),
    SynthesisState.FAILED: frozenset(),
}


class AiSynthesizer:
    """
    One-shot synthesizer for a single pipeline run.

    After :meth:`synthesize` returns or raises, ``state``, ``attempts`` and
    ``model`` describe what happened. Create a new instance per run.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        config: PipelineConfig,
        fallback_model: str = FALLBACK_MODEL,
    ):
        self._client = client
        self._config = config
        self._fallback_model = fallback_model
        self.state = SynthesisState.IDLE
        self.attempts: List[ModelAttempt] = []
        self.model: Optional[str] = None
        self.last_error: Optional[PipelineError] = None

    def _transition(self, target: SynthesisState) -> None:
        if target not in TRANSITIONS[self.state]:
            raise RuntimeError(f"illegal synthesis transition {self.state.value} → {target.value}")
        logger.debug("synthesis %s → %s", self.state.value, target.value)
        self.state = target

    async def _attempt(self, prompt: str, model: str, role: ModelRole) -> Optional[str]:
        logger.info("Calling %s model %s …", role.value, model)
        try:
            text = await request_completion(self._client, self._config, model, prompt)
        except PipelineError as exc:
            logger.warning("%s model %s failed: %s", role.value, model, exc)
            self.attempts.append(ModelAttempt(model=model, role=role, error=str(exc)))
            self.last_error = exc
            return None

        self.attempts.append(ModelAttempt(model=model, role=role))
        self.model = model
        return text

    async def synthesize(self, prompt: str) -> str:
        """Return recommendation text or raise ``ModelFailure``."""
        self._transition(SynthesisState.PRIMARY_ATTEMPT)
        text = await self._attempt(prompt, self._config.qwen_model, ModelRole.PRIMARY)
        if text is not None:
            self._transition(SynthesisState.SUCCEEDED)
            return text

        self._transition(SynthesisState.FALLBACK_ATTEMPT)
        text = await self._attempt(prompt, self._fallback_model, ModelRole.FALLBACK)
        if text is not None:
            self._transition(SynthesisState.SUCCEEDED)
            return text

        self._transition(SynthesisState.FAILED)
        last = self.last_error.message if self.last_error else "unknown error"
        raise ModelFailure(
            f"Failed to get AI response from both primary and backup models: {last}",
            attempts=self.attempts,
            last_error=self.last_error,
        )
