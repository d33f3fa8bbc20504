"""
文本提取器单元测试
"""
import io
from unittest.mock import Mock, patch

import pytest
from pypdf import PdfWriter

from soulscribe.document.extractor import (
    DocumentKind,
    PdfPageSource,
    SourceDocument,
    TextExtractor,
    detect_kind,
)
from soulscribe.document.sampler import GAP_MARKER
from soulscribe.exceptions import (
    DocumentUnreadableError,
    SampleTooShortError,
    UnsupportedFormatError,
)


LONG_TEXT = "The rain fell sideways, as it always did on Tuesdays, and nobody cared. " * 3


def blank_pdf(pages: int) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=72, height=72)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def fake_reader(page_texts, encrypted=False):
    reader = Mock()
    reader.is_encrypted = encrypted
    reader.pages = [Mock(extract_text=Mock(return_value=text)) for text in page_texts]
    return reader


class TestDetectKind:
    """测试文档类型判断"""

    def test_content_type_wins(self):
        assert detect_kind("notes.bin", "application/pdf") == DocumentKind.PDF
        assert detect_kind(None, "text/plain; charset=utf-8") == DocumentKind.TEXT

    @pytest.mark.parametrize("filename,kind", [
        ("essay.PDF", DocumentKind.PDF),
        ("notes.txt", DocumentKind.TEXT),
        ("draft.md", DocumentKind.TEXT),
    ])
    def test_extension_fallback(self, filename, kind):
        assert detect_kind(filename, "application/octet-stream") == kind

    def test_unsupported(self):
        with pytest.raises(UnsupportedFormatError):
            detect_kind("photo.png", "image/png")


class TestPdfPageSource:
    """测试 pypdf 页面访问器"""

    def test_real_pdf_page_count(self):
        source = PdfPageSource(blank_pdf(3), "blank.pdf")
        assert source.page_count == 3
        assert source.page_text(1) == ""

    def test_corrupt_pdf(self):
        with pytest.raises(DocumentUnreadableError):
            PdfPageSource(b"this is not a pdf", "broken.pdf")

    @patch("soulscribe.document.extractor.PdfReader")
    def test_encrypted_pdf(self, mock_reader):
        mock_reader.return_value = fake_reader([], encrypted=True)
        with pytest.raises(DocumentUnreadableError) as exc_info:
            PdfPageSource(b"%PDF", "locked.pdf")
        assert "password" in exc_info.value.reason

    @patch("soulscribe.document.extractor.PdfReader")
    def test_whitespace_collapsed(self, mock_reader):
        mock_reader.return_value = fake_reader(["  Hello\t\tworld \n\n  second   line  "])
        source = PdfPageSource(b"%PDF")
        assert source.page_text(1) == "Hello world second line"


class TestTextExtractor:
    """测试文本提取与长度校验"""

    def test_pasted_text_passthrough(self):
        assert TextExtractor().extract_text(LONG_TEXT) == LONG_TEXT

    def test_forty_chars_rejected(self):
        with pytest.raises(SampleTooShortError) as exc_info:
            TextExtractor().extract_text("x" * 40)
        assert exc_info.value.length == 40
        assert exc_info.value.minimum == 50

    def test_whitespace_does_not_count(self):
        with pytest.raises(SampleTooShortError):
            TextExtractor().extract_text("   " + "y" * 45 + "\n\n\n\n")

    def test_text_file_decoded(self):
        document = SourceDocument(
            content=("\ufeff" + LONG_TEXT).encode("utf-8"),
            kind=DocumentKind.TEXT,
            filename="notes.txt",
        )
        assert TextExtractor().extract(document) == LONG_TEXT

    def test_invalid_utf8(self):
        document = SourceDocument(content=b"\xff\xfe\xfa" * 40, kind=DocumentKind.TEXT, filename="x.txt")
        with pytest.raises(DocumentUnreadableError):
            TextExtractor().extract(document)

    def test_blank_pdf_too_short(self):
        document = SourceDocument(content=blank_pdf(2), kind=DocumentKind.PDF, filename="blank.pdf")
        with pytest.raises(SampleTooShortError):
            TextExtractor().extract(document)

    @patch("soulscribe.document.extractor.PdfReader")
    def test_long_pdf_sampled(self, mock_reader):
        mock_reader.return_value = fake_reader([f"Page {n} of a long manuscript." for n in range(1, 31)])
        document = SourceDocument(content=b"%PDF", kind=DocumentKind.PDF, filename="book.pdf")

        text = TextExtractor().extract(document)

        assert "Page 1 of" in text
        assert "Page 15 of" in text
        assert "Page 30 of" in text
        assert "Page 8 of" not in text
        assert text.count(GAP_MARKER) == 2

    @patch("soulscribe.document.extractor.PdfReader")
    def test_page_failure_is_document_error(self, mock_reader):
        reader = fake_reader(["fine text " * 10] * 20)
        reader.pages[3].extract_text.side_effect = KeyError("/Contents")
        mock_reader.return_value = reader
        document = SourceDocument(content=b"%PDF", kind=DocumentKind.PDF, filename="bad.pdf")

        with pytest.raises(DocumentUnreadableError):
            TextExtractor().extract(document)

    def test_from_path(self, tmp_path):
        path = tmp_path / "sample.txt"
        path.write_text(LONG_TEXT, encoding="utf-8")
        document = SourceDocument.from_path(path)
        assert document.kind == DocumentKind.TEXT
        assert document.filename == "sample.txt"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
