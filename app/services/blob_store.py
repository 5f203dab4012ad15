# app/services/blob_store.py
"""
Chunked binary object store on top of the ``fs_files`` / ``fs_chunks`` tables.

Every uploaded PDF or image lives here rather than on the local disk. A file
row carries the metadata; its content is split into fixed-size chunks numbered
from 0. Buckets (``fs`` for personnel documents, ``policyFiles`` for policy
documents) share the two tables through the ``bucket`` column.

``retrieve_object`` is the one lookup routine used by every endpoint that
serves bytes back to the client.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Sequence
import logging
import mimetypes
import re
import uuid

from sqlalchemy.orm import Session

from app.config import settings
from app.models.blob import BlobFile, BlobChunk
from app.utils.exceptions import InvalidIdentifierError, NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = "fs"
POLICY_BUCKET = "policyFiles"

# Stored content types are not trusted for these extensions
CONTENT_TYPE_OVERRIDES = {
    ".pdf": "application/pdf",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
}

GRIDFS_SCHEME = "gridfs://"
BLOB_URL_PREFIXES = ("/api/files/", "/api/policies/file/")
POLICY_UPLOAD_PREFIX = "/uploads/policies/"

_LEGACY_OBJECT_ID = re.compile(r"^[0-9a-fA-F]{24}$")


@dataclass
class StoredObject:
    file_id: str
    filename: str
    content_type: str
    data: bytes
    bucket: Optional[str] = None
    metadata: dict = field(default_factory=dict)

    @property
    def length(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class FilePointer:
    """Where a stored ``file_url`` points: ``blob`` (an id), ``path`` or ``url``."""
    kind: str
    value: str

    @property
    def is_blob(self) -> bool:
        return self.kind == "blob"


def is_valid_object_id(identifier) -> bool:
    if not identifier or not isinstance(identifier, str):
        return False
    if _LEGACY_OBJECT_ID.match(identifier):
        return True
    try:
        uuid.UUID(identifier)
        return True
    except ValueError:
        return False


def parse_object_id(identifier) -> str:
    """Return the identifier unchanged if well-formed, else raise a 400."""
    if not is_valid_object_id(identifier):
        raise InvalidIdentifierError(f"Invalid file identifier: {identifier!r}")
    return identifier


def resolve_content_type(filename: Optional[str], stored: Optional[str] = None) -> str:
    suffix = Path(filename or "").suffix.lower()
    if suffix in CONTENT_TYPE_OVERRIDES:
        return CONTENT_TYPE_OVERRIDES[suffix]
    if stored:
        return stored
    guessed, _ = mimetypes.guess_type(filename or "")
    return guessed or "application/octet-stream"


def resolve_file_pointer(value: Optional[str]) -> Optional[FilePointer]:
    if not value:
        return None
    value = value.strip()

    if value.startswith(GRIDFS_SCHEME):
        return FilePointer("blob", value[len(GRIDFS_SCHEME):])

    for prefix in BLOB_URL_PREFIXES:
        if value.startswith(prefix):
            file_id = value[len(prefix):].split("?", 1)[0].strip("/")
            return FilePointer("blob", file_id)

    if value.startswith("http://") or value.startswith("https://"):
        return FilePointer("url", value)

    return FilePointer("path", value)


def public_file_url(value: Optional[str]) -> Optional[str]:
    """Rewrite ``gridfs://<id>`` pointers to the API path that serves them."""
    if value and value.startswith(GRIDFS_SCHEME):
        return f"/api/files/{value[len(GRIDFS_SCHEME):]}"
    return value


class BlobStore:
    """One bucket of the chunked store, bound to a session."""

    def __init__(self, db: Session, bucket: str = DEFAULT_BUCKET, chunk_size: Optional[int] = None):
        self.db = db
        self.bucket = bucket
        self.chunk_size = chunk_size or settings.BLOB_CHUNK_SIZE
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")

    def put(
        self,
        data: bytes,
        filename: str,
        content_type: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> BlobFile:
        blob = BlobFile(
            bucket=self.bucket,
            filename=filename,
            content_type=resolve_content_type(filename, content_type),
            length=len(data),
            chunk_size=self.chunk_size,
            file_metadata=metadata or {},
        )
        self.db.add(blob)
        self.db.flush()

        for n, offset in enumerate(range(0, len(data), self.chunk_size)):
            self.db.add(BlobChunk(file_id=blob.id, n=n, data=data[offset:offset + self.chunk_size]))

        self.db.commit()
        self.db.refresh(blob)
        logger.info(f"📦 Stored {filename} ({len(data)} bytes) in bucket '{self.bucket}' as {blob.id}")
        return blob

    def find(self, file_id: str) -> Optional[BlobFile]:
        return (
            self.db.query(BlobFile)
            .filter(BlobFile.id == file_id, BlobFile.bucket == self.bucket)
            .first()
        )

    def find_by_filename(self, filename: str) -> Optional[BlobFile]:
        # newest upload wins when a filename was stored more than once
        return (
            self.db.query(BlobFile)
            .filter(BlobFile.filename == filename, BlobFile.bucket == self.bucket)
            .order_by(BlobFile.upload_date.desc())
            .first()
        )

    def read(self, blob: BlobFile) -> Optional[bytes]:
        chunks = (
            self.db.query(BlobChunk)
            .filter(BlobChunk.file_id == blob.id)
            .order_by(BlobChunk.n.asc())
            .all()
        )
        if not chunks:
            return None

        data = b"".join(chunk.data for chunk in chunks)
        if len(data) != blob.length:
            logger.warning(f"Blob {blob.id} length mismatch: stored {blob.length}, chunks {len(data)}")
        return data

    def delete(self, file_id: str) -> bool:
        blob = self.find(file_id)
        if not blob:
            return False
        self.db.query(BlobChunk).filter(BlobChunk.file_id == blob.id).delete(synchronize_session=False)
        self.db.delete(blob)
        self.db.commit()
        logger.info(f"🗑️ Deleted blob {file_id} from bucket '{self.bucket}'")
        return True


def delete_blob(db: Session, file_id: Optional[str], buckets: Iterable[str] = (DEFAULT_BUCKET, POLICY_BUCKET)) -> bool:
    if not is_valid_object_id(file_id):
        return False
    return any(BlobStore(db, bucket).delete(file_id) for bucket in buckets)


def retrieve_object(
    db: Session,
    identifier: str,
    buckets: Sequence[str] = (DEFAULT_BUCKET,),
    allow_filename: bool = False,
) -> StoredObject:
    """
    Look up ``identifier`` in each bucket in turn and return its bytes.

    A well-formed id is tried first; when ``allow_filename`` is set the same
    value is then tried as a filename. A file with no chunks counts as missing.

    Raises ``InvalidIdentifierError`` (400) for a malformed id that cannot be
    tried as a filename, and ``NotFoundError`` (404) otherwise.
    """
    valid_id = is_valid_object_id(identifier)
    if not valid_id and not allow_filename:
        raise InvalidIdentifierError(f"Invalid file identifier: {identifier!r}")

    stores = [BlobStore(db, bucket) for bucket in buckets]
    candidates = []
    if valid_id:
        candidates.extend((store, store.find(identifier)) for store in stores)
    if allow_filename and identifier:
        candidates.extend((store, store.find_by_filename(identifier)) for store in stores)

    for store, blob in candidates:
        if blob is None:
            continue
        data = store.read(blob)
        if data is None:
            logger.warning(f"Blob {blob.id} in '{store.bucket}' has no chunks")
            continue
        return StoredObject(
            file_id=blob.id,
            filename=blob.filename,
            content_type=resolve_content_type(blob.filename, blob.content_type),
            data=data,
            bucket=store.bucket,
            metadata=blob.file_metadata or {},
        )

    logger.info(f"File {identifier} not found in buckets {list(buckets)}")
    raise NotFoundError("File not found")


def read_policy_upload(document_url: str, upload_dir: Optional[str] = None) -> StoredObject:
    """Serve ``/uploads/policies/<name>`` from the policy upload directory."""
    name = document_url[len(POLICY_UPLOAD_PREFIX):] if document_url.startswith(POLICY_UPLOAD_PREFIX) else document_url
    base = Path(upload_dir or settings.POLICY_UPLOAD_DIR).resolve()
    target = (base / name).resolve()

    if not name or "/" in name or "\\" in name or target.parent != base:
        logger.warning(f"🚫 Rejected policy file path: {document_url}")
        raise InvalidIdentifierError("Invalid file path")
    if not target.is_file():
        raise NotFoundError("File not found")

    return StoredObject(
        file_id=name,
        filename=name,
        content_type=resolve_content_type(name),
        data=target.read_bytes(),
    )
