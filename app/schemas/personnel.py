# app/schemas/personnel.py
from typing import Optional, Literal
from pydantic import BaseModel, EmailStr, Field
from datetime import date

PersonnelStatus = Literal["Ready", "Not Ready", "Medical Hold", "Training"]


class PersonnelUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    rank: Optional[str] = None
    service_number: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    company_id: Optional[str] = None
    company_name: Optional[str] = None
    status: Optional[PersonnelStatus] = None
    date_joined: Optional[date] = None
    last_promotion_date: Optional[date] = None


class PersonnelStatusUpdate(BaseModel):
    status: PersonnelStatus


class ForceCleanupRequest(BaseModel):
    service_id: str = Field(..., min_length=1)
