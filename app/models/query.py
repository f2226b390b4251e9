"""
Query request and validation models.

Sandi Metz Principles:
- Small classes focused on data validation
- Clear property names
- Single responsibility per model
"""

from typing import List

from pydantic import BaseModel, Field, field_validator

from app.models.llm import ChatMessage


class QueryRequest(BaseModel):
    """Incoming question with validation."""

    query: str = Field(
        ...,
        min_length=1,
        max_length=10000,
        description="Question about the dataset",
        examples=["How many orders were placed in 2023?"],
    )

    use_cache: bool = Field(default=True, description="Enable cache lookup")

    history: List[ChatMessage] = Field(
        default_factory=list, description="Previous conversation turns"
    )

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        """Validate and normalize query."""
        v = v.strip()
        if not v:
            raise ValueError("Query cannot be empty")
        return v
