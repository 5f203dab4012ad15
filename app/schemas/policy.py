# app/schemas/policy.py
from typing import Optional, Literal
from pydantic import BaseModel, Field, model_validator
from datetime import datetime

PolicyStatus = Literal["draft", "published", "archived"]


class PolicyCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    content: Optional[str] = None
    category: str = Field(..., min_length=1, max_length=100)
    version: str = Field("1.0", max_length=20)
    status: PolicyStatus = "draft"
    effective_date: datetime
    expiration_date: Optional[datetime] = None
    document_url: Optional[str] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.expiration_date and self.expiration_date < self.effective_date:
            raise ValueError("expiration_date must not be before effective_date")
        return self


class PolicyUpdate(BaseModel):
    """Partial update; only the fields that are sent are changed."""
    id: str
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    version: Optional[str] = Field(None, max_length=20)
    status: Optional[PolicyStatus] = None
    effective_date: Optional[datetime] = None
    expiration_date: Optional[datetime] = None
    document_url: Optional[str] = None
