# app/schemas/document.py
from typing import Optional, Literal
from pydantic import BaseModel, Field, field_validator
from datetime import datetime

DocumentStatus = Literal["pending", "verified", "rejected"]


class DocumentCreate(BaseModel):
    """JSON document record; ``file_url`` points at content that is already stored."""
    name: str = Field(..., min_length=1, max_length=255)
    type: str = Field(..., min_length=1)
    file_url: str = Field(..., min_length=1, max_length=500)
    title: Optional[str] = Field(None, max_length=255)
    description: str = ""
    user_id: Optional[str] = Field(None, description="Owner; only honoured for admin, director and staff")
    file_name: Optional[str] = None
    file_size: int = Field(0, ge=0)
    mime_type: str = "application/octet-stream"
    expiration_date: Optional[datetime] = None

    @field_validator("name", "type", "file_url")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class DocumentStatusUpdate(BaseModel):
    id: str
    status: DocumentStatus
    comments: Optional[str] = None
