"""Pydantic schemas for page generation."""

from pydantic import BaseModel, Field


class GenerateRequest(BaseModel):
    """Free-text instruction describing the page to build."""

    instruction: str = Field(..., min_length=1, max_length=4000)
