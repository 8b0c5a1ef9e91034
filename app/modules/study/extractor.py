"""Turn an uploaded base64 payload into plain text for prompting.

Dispatch is by MIME type family, matched by substring so parameters such as
``; charset=utf-8`` are ignored:

- ``pdf``: decoded and parsed with pypdf, page texts joined by newlines.
- ``image``: rejected, OCR is not implemented.
- anything else: base64 decoded as UTF-8, falling back to the raw payload.

All results are capped at ``MAX_CONTENT_CHARS`` characters.
"""

from __future__ import annotations

import base64
import binascii
import io
from dataclasses import dataclass

from pypdf import PdfReader

from app.core.exceptions import PdfParseError, UnsupportedContentError
from app.core.logging import get_logger

logger = get_logger(__name__)

MAX_CONTENT_CHARS = 50_000
TRUNCATION_SUFFIX = "\n\n[Content truncated due to length...]"


@dataclass(frozen=True)
class PdfText:
    text: str
    pages: int


def _parse_pdf(data: bytes) -> PdfText:
    reader = PdfReader(io.BytesIO(data))
    texts = [(page.extract_text() or "") for page in reader.pages]
    return PdfText(text="\n".join(texts), pages=len(texts))


def truncate_content(text: str, limit: int = MAX_CONTENT_CHARS) -> str:
    if len(text) <= limit:
        return text
    logger.info("Text too long (%d chars), truncating to %d", len(text), limit)
    return text[:limit] + TRUNCATION_SUFFIX


def _extract_pdf(payload: str) -> str:
    try:
        raw = base64.b64decode(payload)
        logger.info("Parsing PDF, %d bytes", len(raw))
        parsed = _parse_pdf(raw)
    except Exception as e:  # noqa: BLE001
        logger.warning("PDF parsing failed: %s", e)
        raise PdfParseError(e) from e

    logger.info("PDF parsed: %d pages, %d chars", parsed.pages, len(parsed.text))
    return parsed.text


def _decode_text(payload: str) -> str:
    try:
        return base64.b64decode(payload).decode("utf-8")
    except (binascii.Error, ValueError):
        logger.info("Failed to decode base64 text payload, using raw data")
        return payload


def extract_text(payload: str, mime_type: str) -> str:
    """Extract prompt-ready text from a base64 payload of the given MIME type."""
    family = (mime_type or "").lower()
    logger.info("Extracting text: mime=%s, base64 length=%d", mime_type, len(payload))

    if "pdf" in family:
        text = _extract_pdf(payload)
    elif "image" in family:
        raise UnsupportedContentError(mime_type)
    else:
        text = _decode_text(payload)

    return truncate_content(text)


__all__ = [
    "MAX_CONTENT_CHARS",
    "TRUNCATION_SUFFIX",
    "PdfText",
    "extract_text",
    "truncate_content",
]
