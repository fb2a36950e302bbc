"""Channel data model for cadenceplan."""

from typing import Optional
from pydantic import BaseModel, Field


class Channel(BaseModel):
    """A content stream. Tasks point at channels; channels do not own tasks."""

    id: str = Field(..., description="Unique channel identifier")
    name: str = Field(..., description="Display name")
    is_active: bool = Field(True, description="Whether the channel is currently active")
    content_type: Optional[str] = Field(None, description="gaming, educational, lifestyle, ...")
