from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Optional

from inventory_api.models.lifecycle import RecordStatus


class CategoryBase(BaseModel):
    """Base schema for Category with common attributes."""
    name: str = Field(..., min_length=1, max_length=100, description="Category name")
    description: Optional[str] = Field(None, description="Optional description")


class CategoryCreate(CategoryBase):
    """Schema for creating a new category."""
    pass


class CategoryUpdate(BaseModel):
    """Schema for updating a category. All fields are optional."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None


class CategoryResponse(CategoryBase):
    """Schema for category response including all fields."""
    id: int
    status: RecordStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
