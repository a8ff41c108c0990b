from __future__ import annotations

import hashlib
from io import BytesIO

from docx import Document
from pypdf import PdfReader

from app.core.errors import ExtractionFailed, UnsupportedFileType

from .models import ParsedBlock, ParsedDoc
from .signatures import source_type_for, validate_signature


def _compute_doc_id(text: str, content: bytes) -> str:
    seed = text.encode("utf-8", errors="ignore") if text.strip() else content
    return hashlib.sha256(seed).hexdigest()[:16]


def _parse_pdf(content: bytes) -> tuple[str, list[ParsedBlock], list[str]]:
    warnings: list[str] = []
    blocks: list[ParsedBlock] = []

    reader = PdfReader(BytesIO(content))
    text_parts: list[str] = []
    for index, page in enumerate(reader.pages, start=1):
        page_text = (page.extract_text() or "").strip()
        if page_text:
            text_parts.append(page_text)
            blocks.append(ParsedBlock(page=index, text=page_text))
    if not text_parts:
        warnings.append("No extractable text found in PDF; it may be an image-based PDF.")
    return "\n".join(text_parts), blocks, warnings


def _parse_docx(content: bytes) -> tuple[str, list[ParsedBlock], list[str]]:
    warnings: list[str] = []
    document = Document(BytesIO(content))
    paragraphs = [p.text.strip() for p in document.paragraphs if p.text and p.text.strip()]
    blocks = [ParsedBlock(page=None, text=paragraph_text) for paragraph_text in paragraphs]
    if not paragraphs:
        warnings.append("No extractable text found in DOCX.")
    return "\n".join(paragraphs), blocks, warnings


def parse_document(content: bytes, file_type: str | None) -> ParsedDoc:
    source_type = source_type_for(file_type)
    if source_type is None:
        raise UnsupportedFileType(
            details=f"Unsupported file type '{file_type}'. Supported types: PDF, DOCX",
        )

    try:
        validate_signature(source_type=source_type, content=content)
    except ValueError as exc:
        raise ExtractionFailed(details=str(exc)) from exc

    try:
        if source_type == "pdf":
            text, blocks, warnings = _parse_pdf(content)
        else:
            text, blocks, warnings = _parse_docx(content)
    except Exception as exc:
        raise ExtractionFailed(details=f"{source_type.upper()} parsing failed: {exc}") from exc

    return ParsedDoc(
        doc_id=_compute_doc_id(text=text, content=content),
        source_type=source_type,
        text=text,
        blocks=blocks,
        parsing_warnings=warnings,
    )


def extract_text(content: bytes, file_type: str | None) -> str:
    return parse_document(content, file_type).text
