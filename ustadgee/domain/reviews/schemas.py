from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ReviewCreate(BaseModel):
    worker_id: int
    rating: int = Field(ge=1, le=5)
    description: str = Field(default="", max_length=255)


class ReviewerSummary(BaseModel):
    id: int
    fullName: str
    profileImage: Optional[str] = None


class ReviewResponse(BaseModel):
    id: int
    rating: int
    description: str
    createdAt: Optional[datetime] = None
    reviewer: Optional[ReviewerSummary] = None
