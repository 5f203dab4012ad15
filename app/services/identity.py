# app/services/identity.py
"""
Resolve a loose identifier (record id, service number, email...) to a person.

Users and Personnel records were imported from different sources and store the
same service identifier under different column names. Lookups go through one
ordered list of candidate keys and return ``UNRESOLVED`` when nothing matches.
"""
from dataclasses import dataclass, asdict
from typing import Optional, Union
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.personnel import Personnel
from app.models.user import User

logger = logging.getLogger(__name__)

CANDIDATE_KEYS = (
    "service_id",
    "military_id",
    "service_number",
    "serial_number",
    "afp_serial_number",
)

# User is always tried before Personnel
_MODELS = (("user", User), ("personnel", Personnel))


@dataclass(frozen=True)
class ResolvedIdentity:
    kind: str
    record_id: str
    display_name: str
    service_id: Optional[str]
    matched_key: str
    email: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


class _Unresolved:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "UNRESOLVED"


UNRESOLVED = _Unresolved()

Resolution = Union[ResolvedIdentity, _Unresolved]


def _service_id_of(record) -> Optional[str]:
    for key in CANDIDATE_KEYS:
        value = getattr(record, key, None)
        if value:
            return value
    return None


def _identity(kind: str, record, matched_key: str) -> ResolvedIdentity:
    if kind == "user":
        display_name = record.full_name
    else:
        display_name = record.name
    return ResolvedIdentity(
        kind=kind,
        record_id=record.id,
        display_name=display_name,
        service_id=_service_id_of(record),
        matched_key=matched_key,
        email=record.email,
    )


def resolve_identity(db: Session, identifier) -> Resolution:
    if identifier is None:
        return UNRESOLVED
    identifier = str(identifier).strip()
    if not identifier:
        return UNRESOLVED

    for kind, model in _MODELS:
        record = db.query(model).filter(model.id == identifier).first()
        if record:
            return _identity(kind, record, "id")

    for key in CANDIDATE_KEYS:
        for kind, model in _MODELS:
            column = getattr(model, key, None)
            if column is None:
                continue
            record = db.query(model).filter(column == identifier).first()
            if record:
                return _identity(kind, record, key)

    if "@" in identifier:
        lowered = identifier.lower()
        for kind, model in _MODELS:
            record = db.query(model).filter(func.lower(model.email) == lowered).first()
            if record:
                return _identity(kind, record, "email")

    logger.info(f"Identity unresolved for {identifier!r}")
    return UNRESOLVED


def identity_or_none(db: Session, identifier) -> Optional[dict]:
    resolved = resolve_identity(db, identifier)
    return resolved.to_dict() if resolved else None
