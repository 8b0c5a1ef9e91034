from unittest.mock import patch

import pytest

from app.core.exceptions import PdfParseError, UnsupportedContentError
from app.modules.study import extractor
from app.modules.study.extractor import (
    MAX_CONTENT_CHARS,
    TRUNCATION_SUFFIX,
    PdfText,
    extract_text,
)

from tests.conftest import b64


@pytest.mark.parametrize("mime_type", ["text/plain", "text/html", "text/plain; charset=utf-8"])
def test_text_payload_is_decoded(mime_type):
    text = "Héllo, wörld! <b>ünïcode</b> ✓"
    assert extract_text(b64(text), mime_type) == text


def test_undecodable_base64_falls_back_to_raw_payload():
    payload = "!!!notbase64"
    assert extract_text(payload, "text/plain") == payload


def test_invalid_utf8_falls_back_to_raw_payload():
    payload = b64(b"\xff\xfe\xfa\x80")
    assert extract_text(payload, "text/plain") == payload


@pytest.mark.parametrize("mime_type", ["image/png", "image/jpeg"])
def test_images_are_rejected(mime_type):
    with pytest.raises(UnsupportedContentError) as exc_info:
        extract_text(b64(b"\x89PNG fake"), mime_type)
    assert "OCR" in str(exc_info.value)


def test_pdf_text_comes_from_parser():
    with patch.object(
        extractor, "_parse_pdf", return_value=PdfText(text="sample text", pages=3)
    ) as parse:
        result = extract_text(b64(b"%PDF-1.4 dummy pdf"), "application/pdf")

    assert result == "sample text"
    parse.assert_called_once_with(b"%PDF-1.4 dummy pdf")


def test_pdf_mime_parameters_are_ignored():
    with patch.object(extractor, "_parse_pdf", return_value=PdfText("ok", 1)):
        assert extract_text(b64(b"%PDF"), "application/pdf; charset=utf-8") == "ok"


def test_pdf_parser_failure_is_wrapped():
    cause = Exception("Invalid PDF structure")
    with patch.object(extractor, "_parse_pdf", side_effect=cause):
        with pytest.raises(PdfParseError) as exc_info:
            extract_text(b64(b"%PDF-broken"), "application/pdf")

    assert "Failed to parse PDF" in str(exc_info.value)
    assert "Invalid PDF structure" in str(exc_info.value)
    assert exc_info.value.__cause__ is cause


def test_empty_pdf_raises_parse_error_from_pypdf():
    with pytest.raises(PdfParseError):
        extract_text("", "application/pdf")


def test_long_pdf_text_is_truncated():
    long_text = "a" * (MAX_CONTENT_CHARS + 1234)
    with patch.object(extractor, "_parse_pdf", return_value=PdfText(long_text, 40)):
        result = extract_text(b64(b"%PDF"), "application/pdf")

    assert len(result) == MAX_CONTENT_CHARS + len(TRUNCATION_SUFFIX)
    assert result.endswith("\n\n[Content truncated due to length...]")
    assert result.startswith("a" * MAX_CONTENT_CHARS)


def test_text_at_the_limit_is_unchanged():
    exact = "b" * MAX_CONTENT_CHARS
    with patch.object(extractor, "_parse_pdf", return_value=PdfText(exact, 10)):
        assert extract_text(b64(b"%PDF"), "application/pdf") == exact


def test_plain_text_is_truncated_too():
    result = extract_text(b64("x" * 60_000), "text/plain")
    assert len(result) == MAX_CONTENT_CHARS + len(TRUNCATION_SUFFIX)
