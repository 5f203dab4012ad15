# app/utils/responses.py
from typing import Any, Optional
from urllib.parse import quote

from fastapi import Response

from app.services.blob_store import StoredObject

FILE_CACHE_CONTROL = "public, max-age=3600"


def ok(data: Any = None, message: Optional[str] = None) -> dict:
    body = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return body


def content_disposition(filename: str, download: bool = False) -> str:
    disposition = "attachment" if download else "inline"
    filename = filename or "file"
    ascii_name = filename.encode("ascii", "ignore").decode().replace('"', "").replace("\\", "") or "file"
    header = f'{disposition}; filename="{ascii_name}"'
    if ascii_name != filename:
        header += f"; filename*=UTF-8''{quote(filename)}"
    return header


def file_response(stored: StoredObject, filename: Optional[str] = None, download: bool = False) -> Response:
    return Response(
        content=stored.data,
        media_type=stored.content_type,
        headers={
            "Content-Disposition": content_disposition(filename or stored.filename, download),
            "Content-Length": str(stored.length),
            "Cache-Control": FILE_CACHE_CONTROL,
        },
    )
