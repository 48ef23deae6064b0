import pytest

from applytrack import extract
from applytrack.errors import ExtractionError, UnsupportedFormatError, ValidationError
from applytrack.extract import DOC, DOCX, MAX_UPLOAD_BYTES, PDF, extract_text, validate_upload


def test_docx_paragraphs_become_lines(make_docx):
    data = make_docx("Jane Doe", "jane.doe@x.com", "React and Python")
    assert extract_text(data, DOCX) == "Jane Doe\njane.doe@x.com\nReact and Python"


def test_legacy_mime_with_docx_container_is_read(make_docx):
    assert extract_text(make_docx("Old label"), DOC) == "Old label"


def test_legacy_doc_without_antiword_fails_explicitly(monkeypatch):
    monkeypatch.setattr(extract.shutil, "which", lambda name: None)
    with pytest.raises(ExtractionError):
        extract_text(b"\xd0\xcf\x11\xe0 legacy word bytes", DOC)


def test_corrupt_docx_raises_extraction_error():
    with pytest.raises(ExtractionError):
        extract_text(b"definitely not a zip", DOCX)


def test_corrupt_pdf_raises_extraction_error(monkeypatch):
    monkeypatch.setattr(extract.shutil, "which", lambda name: None)
    with pytest.raises(ExtractionError):
        extract_text(b"not a pdf at all", PDF)


@pytest.mark.parametrize("mime", ["text/plain", "image/png", "", "application/PDF"])
def test_unsupported_mime_never_attempts_extraction(monkeypatch, mime):
    def boom(data):
        raise AssertionError("extractor must not run")

    for allowed in (PDF, DOCX, DOC):
        monkeypatch.setitem(extract._EXTRACTORS, allowed, boom)

    with pytest.raises(UnsupportedFormatError):
        extract_text(b"%PDF-1.4", mime)


def test_validate_upload_cap_and_allow_list():
    validate_upload(b"x" * 10, PDF)
    validate_upload(b"x" * MAX_UPLOAD_BYTES, DOCX)

    with pytest.raises(ValidationError):
        validate_upload(b"x" * (MAX_UPLOAD_BYTES + 1), PDF)
    with pytest.raises(ValidationError):
        validate_upload(b"", PDF)
    with pytest.raises(UnsupportedFormatError):
        validate_upload(b"x", "text/plain")


def test_fix_spacing_splits_merged_words():
    merged = "SeniorEngineerBuiltSystems.LedTeams" * 3
    assert "Senior Engineer" in extract._fix_spacing(merged)


def test_unexpected_pdf_library_error_becomes_extraction_error(monkeypatch):
    class Page:
        def extract_text(self):
            raise KeyError("/Contents")

    monkeypatch.setattr(extract.shutil, "which", lambda name: None)
    monkeypatch.setattr(extract, "PdfReader", lambda stream: type("Reader", (), {"pages": [Page()]})())
    with pytest.raises(ExtractionError, match="Could not read PDF"):
        extract_text(b"%PDF-1.4", PDF)
