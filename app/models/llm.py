"""
LLM request and response models.

Sandi Metz Principles:
- Small classes focused on LLM interaction
- Clear separation of request and response
- Immutable data structures
"""

from typing import Literal

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """Previous conversation turn."""

    role: Literal["user", "assistant"] = Field(..., description="Message author")
    content: str = Field(..., description="Message text")


class LLMResponse(BaseModel):
    """LLM response model."""

    content: str = Field(..., description="Response content")
    prompt_tokens: int = Field(..., description="Prompt tokens", ge=0)
    completion_tokens: int = Field(..., description="Completion tokens", ge=0)
    model: str = Field(..., description="Model used")

    @property
    def total_tokens(self) -> int:
        """Calculate total tokens."""
        return self.prompt_tokens + self.completion_tokens
