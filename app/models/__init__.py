# app/models/__init__.py

from .user import User
from .company import Company
from .personnel import Personnel
from .document import Document
from .blob import BlobFile, BlobChunk
from .training import Training, TrainingAttendee, TrainingRegistration
from .policy import Policy
from .rids import RIDS

__all__ = [
    "User",
    "Company",
    "Personnel",
    "Document",
    "BlobFile",
    "BlobChunk",
    "Training",
    "TrainingAttendee",
    "TrainingRegistration",
    "Policy",
    "RIDS",
]
