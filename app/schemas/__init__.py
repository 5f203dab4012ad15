# app/schemas/__init__.py
from .auth import LoginRequest, RefreshRequest, Token, UserProfile
from .document import DocumentCreate, DocumentStatusUpdate
from .policy import PolicyCreate, PolicyUpdate
from .rids import RIDSData, RIDSUpsert, RIDSVerify
from .training import TrainingCreate, TrainingComplete
from .personnel import PersonnelUpdate, PersonnelStatusUpdate, ForceCleanupRequest

__all__ = [
    "LoginRequest",
    "RefreshRequest",
    "Token",
    "UserProfile",
    "DocumentCreate",
    "DocumentStatusUpdate",
    "PolicyCreate",
    "PolicyUpdate",
    "RIDSData",
    "RIDSUpsert",
    "RIDSVerify",
    "TrainingCreate",
    "TrainingComplete",
    "PersonnelUpdate",
    "PersonnelStatusUpdate",
    "ForceCleanupRequest",
]
