# assettrack/schemas/asset.py
"""
Pydantic schemas for the asset CRUD API.
AssetRecord is also the shape every AssetStore hands back.
"""
from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import datetime
from enum import Enum


# ────────────────────────────────────────────
# Enums
# ────────────────────────────────────────────

class AssetStatus(str, Enum):
    """Lifecycle status of an asset"""
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"
    LOST = "lost"


# ────────────────────────────────────────────
# Create/Update Schemas
# ────────────────────────────────────────────

class AssetCreate(BaseModel):
    """Create asset"""
    asset_id: str = Field(..., min_length=1, max_length=100, description="Unique business identifier, e.g. AST-001")
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: str = Field(default="other", min_length=1, max_length=100)
    status: AssetStatus = AssetStatus.ACTIVE
    location: Optional[str] = Field(default=None, max_length=255)
    value: Optional[float] = Field(default=None, ge=0)
    assignee_id: Optional[str] = None

    @validator('asset_id', 'name', 'category', pre=True)
    def strip_required(cls, v):
        if isinstance(v, str):
            v = v.strip()
        if not v:
            raise ValueError('must not be empty')
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "asset_id": "AST-001",
                "name": "MacBook Pro",
                "category": "it-equipment",
                "status": "active",
                "location": "HQ - Floor 2",
                "value": 2499.0
            }
        }


class AssetUpdate(BaseModel):
    """Update asset; asset_id is immutable"""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    status: Optional[AssetStatus] = None
    location: Optional[str] = Field(default=None, max_length=255)
    value: Optional[float] = Field(default=None, ge=0)
    assignee_id: Optional[str] = None

    @validator('name', 'category', pre=True)
    def strip_optional(cls, v):
        if v is None:
            raise ValueError('may be omitted but not null')
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError('must not be empty')
        return v


# ────────────────────────────────────────────
# Response Schemas
# ────────────────────────────────────────────

class AssetRecord(BaseModel):
    """Current state of an asset, joined with assignee/creator display names"""
    id: int
    asset_id: str
    name: str
    description: Optional[str] = None
    category: str
    status: str
    location: Optional[str] = None
    value: Optional[float] = None
    qr_code: Optional[str] = None
    assignee_id: Optional[str] = None
    assignee_name: Optional[str] = None
    created_by: Optional[str] = None
    created_by_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AssetListResponse(BaseModel):
    """Paginated asset list"""
    total: int
    items: List[AssetRecord]
    page: int = 1
    page_size: int = 50
