"""
Pydantic models for knowledge-base documents
Defines the read projections returned by the diagnostic API
"""

from datetime import datetime
from typing import List, Optional, Union
from uuid import UUID
from pydantic import BaseModel, Field, ConfigDict, field_validator


class DocumentResponse(BaseModel):
    """Read-only projection of a knowledge-base document"""
    model_config = ConfigDict(from_attributes=True)

    id: Union[UUID, str] = Field(..., description="Document identifier")
    title: str = Field(..., description="Short document title")
    content: str = Field(..., description="Full document body")
    tags: List[str] = Field(default_factory=list, description="Document tags")
    organization_id: Optional[Union[UUID, str]] = Field(None, description="Owning organization, if any")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")

    @field_validator('tags', mode='before')
    @classmethod
    def tags_default(cls, v):
        return [tag for tag in v if tag] if v else []
