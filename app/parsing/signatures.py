from __future__ import annotations

from io import BytesIO
from zipfile import BadZipFile, ZipFile

PDF_MAGIC = b"%PDF-"
ZIP_MAGICS = (b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08")

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

_SOURCE_TYPE_HINTS = {
    PDF_MIME: "pdf",
    "application/x-pdf": "pdf",
    "pdf": "pdf",
    ".pdf": "pdf",
    DOCX_MIME: "docx",
    "docx": "docx",
    ".docx": "docx",
}


def source_type_for(file_type: str | None) -> str | None:
    """Map a MIME type or short extension token to ``pdf``/``docx``."""
    key = (file_type or "").split(";")[0].strip().lower()
    return _SOURCE_TYPE_HINTS.get(key)


def _is_zip_payload(content: bytes) -> bool:
    return any(content.startswith(prefix) for prefix in ZIP_MAGICS)


def _zip_has_paths(content: bytes, prefixes: tuple[str, ...]) -> bool:
    try:
        with ZipFile(BytesIO(content)) as archive:
            names = archive.namelist()
    except BadZipFile:
        return False
    return any(any(name.startswith(prefix) for prefix in prefixes) for name in names)


def validate_signature(*, source_type: str, content: bytes) -> None:
    if source_type == "pdf":
        if not content.startswith(PDF_MAGIC):
            raise ValueError("File signature does not match .pdf content.")
        return

    if source_type == "docx":
        if not _is_zip_payload(content) or not _zip_has_paths(content, ("word/",)):
            raise ValueError("File signature does not match .docx content.")
        return

    raise ValueError(f"Unsupported source type '{source_type}'.")
