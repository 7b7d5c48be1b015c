# backend/schemas/product.py
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


# Full product representation as returned to clients.
# Storage columns image_url / qr_code_url / created_at are exposed as
# image / qrCode / createdAt.
class ProductOut(ORMBase):
    id: str
    name: str
    description: str
    image: str
    qr_code: Optional[str] = Field(default=None, alias="qrCode")
    created_at: datetime = Field(alias="createdAt")


# Schema for partial product updates
class ProductEditRequest(ORMBase):
    """Schema for PATCH requests - all fields optional."""
    name: Optional[str] = Field(None, min_length=1, description="Product name")
    description: Optional[str] = Field(None, min_length=1)
    image: Optional[str] = Field(None, min_length=1, description="Public image URL")
    qr_code: Optional[str] = Field(None, min_length=1, alias="qrCode")

    # Omitting a field leaves it unchanged; these columns cannot be cleared
    @field_validator("name", "description", "image")
    @classmethod
    def _reject_null(cls, value):
        if value is None:
            raise ValueError("must not be null")
        return value


class HealthResponse(BaseModel):
    status: str
    database: str
    storage_backend: str
    detail: Optional[str] = None
