# app/schemas/rids.py
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class RIDSData(BaseModel):
    """Sections of a data sheet as sent by the client. Unknown keys are kept."""
    model_config = ConfigDict(extra="allow")

    personal_information: Optional[Dict[str, Any]] = None
    contact_information: Optional[Dict[str, Any]] = None
    identification_info: Optional[Dict[str, Any]] = None
    educational_background: Optional[Dict[str, Any]] = None
    occupation_info: Optional[Dict[str, Any]] = None
    military_training: Optional[List[Dict[str, Any]]] = None
    special_skills: Optional[List[Any]] = None
    awards: Optional[List[Dict[str, Any]]] = None
    assignments: Optional[List[Dict[str, Any]]] = None
    photo_url: Optional[str] = None
    signature_url: Optional[str] = None
    attesting_personnel: Optional[Dict[str, Any]] = None
    is_submitted: Optional[bool] = None
    is_verified: Optional[bool] = None
    rejection_reason: Optional[str] = None


class RIDSUpsert(BaseModel):
    user_id: str = Field(..., min_length=1)
    rids_data: RIDSData


class RIDSVerify(BaseModel):
    reservist_id: str = Field(..., min_length=1)
    is_approved: bool
    reason: Optional[str] = None
