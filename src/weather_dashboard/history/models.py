"""Data models for the search history."""

from pydantic import BaseModel, Field


class City(BaseModel):
    """A previously searched city."""
    id: str = Field(..., min_length=1, description="Unique identifier")
    name: str = Field(..., description="City name as it was searched")


class MessageResponse(BaseModel):
    """Plain confirmation message."""
    message: str
