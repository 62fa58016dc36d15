"""Task domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class TaskCreate(BaseModel):
    """Schema for a requester booking a provider's service"""

    worker_id: int
    service_id: int
    description: str = Field(default="", max_length=500)
    est_time: int = Field(default=0, ge=0)
    total_amount: int = Field(ge=0)
    offer_expiration_date: Optional[datetime] = None
    arrival_time: Optional[datetime] = None
    audio_name: str = Field(default="", max_length=500)
    cnic: str = Field(default="", max_length=50)

    @field_validator("cnic")
    @classmethod
    def validate_cnic(cls, v):
        # 13 digit national identity number, dashes optional
        digits = v.replace("-", "")
        if v and (not digits.isdigit() or len(digits) != 13):
            raise ValueError("CNIC must contain 13 digits")
        return v


class TaskStatusUpdate(BaseModel):
    status_id: int


class ServiceSummary(BaseModel):
    id: int
    title: str
    description: str
    charges: int


class PartySummary(BaseModel):
    id: int
    fullName: str
    phoneNumber: str
    profileImage: Optional[str] = None
