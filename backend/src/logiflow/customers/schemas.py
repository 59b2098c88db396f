"""Pydantic schemas for customer management"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class CustomerCreate(BaseModel):
    """Schema for creating a new customer"""
    model_config = ConfigDict(extra="forbid")

    company_name: str = Field(..., min_length=1, max_length=500)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    is_active: bool = True


class CustomerUpdate(BaseModel):
    """Schema for updating a customer; only provided fields change"""
    model_config = ConfigDict(extra="forbid")

    company_name: Optional[str] = Field(None, min_length=1, max_length=500)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    is_active: Optional[bool] = None


class CustomerResponse(BaseModel):
    """Schema for customer response"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    company_name: str
    email: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CustomerListResponse(BaseModel):
    """Schema for paginated customer list"""
    items: list[CustomerResponse]
    total: int
    page: int
    per_page: int
    total_pages: int
