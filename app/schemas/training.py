# app/schemas/training.py
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator
from datetime import datetime


class TrainingCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    type: Optional[str] = None
    location: Optional[str] = None
    instructor: Optional[str] = None
    start_date: datetime
    end_date: datetime
    capacity: int = Field(0, ge=0, description="0 means unlimited")
    eligible_ranks: List[str] = []
    eligible_companies: List[str] = []
    status: str = "upcoming"

    @model_validator(mode="after")
    def check_schedule(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class TrainingComplete(BaseModel):
    training_id: str
    user_id: Optional[str] = None
    completion_date: Optional[datetime] = None
    performance_score: Optional[float] = Field(None, ge=0, le=100)
