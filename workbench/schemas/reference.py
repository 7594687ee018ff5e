"""Reference schemas."""

from typing import List, Optional

from pydantic import BaseModel, Field

from .attack_object import Pagination


class ReferenceBase(BaseModel):
    """Base reference schema."""
    description: Optional[str] = None
    url: Optional[str] = None


class ReferenceCreate(ReferenceBase):
    """Schema for creating a reference."""
    source_name: str = Field(..., min_length=1)


class ReferenceUpdate(ReferenceBase):
    """Schema for updating a reference. source_name is the key and cannot change."""
    source_name: Optional[str] = None


class ReferenceResponse(ReferenceBase):
    """Schema for reference response."""
    source_name: str

    class Config:
        from_attributes = True


class ReferenceQueryOptions(BaseModel):
    source_name: Optional[str] = None
    search: Optional[str] = None
    offset: int = Field(0, ge=0)
    limit: int = Field(0, ge=0)  # 0 = no limit
    include_pagination: bool = False


class PaginatedReferences(BaseModel):
    pagination: Pagination
    data: List[ReferenceResponse]
