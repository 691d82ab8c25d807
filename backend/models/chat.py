"""
models/chat.py
──────────────
Request / response shapes for the DashScope OpenAI-compatible
chat-completions endpoint.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    role: str
    content: Optional[str] = None


class ChatCompletionRequest(BaseModel):
    """Body of a synchronous (non-streaming) completion call."""

    model: str
    messages: List[ChatMessage]
    temperature: Optional[float] = None
    # Qwen3 rejects non-streaming calls unless thinking is switched off.
    enable_thinking: bool = False


class ChatChoice(BaseModel):
    index: int = 0
    message: ChatMessage
    finish_reason: Optional[str] = None


class ChatCompletionResponse(BaseModel):
    id: Optional[str] = None
    model: Optional[str] = None
    choices: List[ChatChoice]


class UpstreamErrorDetail(BaseModel):
    message: str


class UpstreamErrorEnvelope(BaseModel):
    """``{"error": {"message": ...}}`` returned by the provider on failure."""

    error: UpstreamErrorDetail = Field(...)
