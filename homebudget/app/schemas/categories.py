from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"

class CategoryCreate(BaseModel):
    household_id: str
    name: str = Field(..., min_length=1, max_length=100)
    icon: Optional[str] = Field(None, max_length=10)
    color: Optional[str] = Field(None, pattern=HEX_COLOR)
    parent_id: Optional[str] = None

class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    icon: Optional[str] = Field(None, max_length=10)
    color: Optional[str] = Field(None, pattern=HEX_COLOR)
    parent_id: Optional[str] = None

class CategorySeed(BaseModel):
    household_id: str

class DefaultCategory(BaseModel):
    name: str
    icon: Optional[str] = None
    color: Optional[str] = None

class CategoryResponse(BaseModel):
    id: str
    household_id: str
    name: str
    icon: Optional[str] = None
    color: Optional[str] = None
    parent_id: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class CategorySummary(BaseModel):
    id: str
    name: str
    icon: Optional[str] = None
    color: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
