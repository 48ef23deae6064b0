"""Extract plain text from uploaded resume bytes.

Dispatch is strictly on the declared MIME type: PDF (via pdftotext or
pypdf), DOCX (via stdlib zipfile) and legacy DOC (via antiword). Anything
else is rejected before any extraction is attempted.
"""
from __future__ import annotations

import io
import re
import shutil
import subprocess
import tempfile
import zipfile
from pathlib import Path
from typing import Callable
from xml.etree import ElementTree

from pypdf import PdfReader

from applytrack.errors import ExtractionError, UnsupportedFormatError, ValidationError
from applytrack.log import get_logger

log = get_logger(__name__)

PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
DOC = "application/msword"

ALLOWED_MIME_TYPES: tuple[str, ...] = (PDF, DOCX, DOC)
MAX_UPLOAD_BYTES = 10 * 1024 * 1024

_TOOL_TIMEOUT = 30
_W_NS = "{http://schemas.openxmlformats.org/wordprocessingml/2006/main}"


def validate_upload(data: bytes, mime_type: str) -> None:
    """Upload boundary checks: allow-listed MIME type and the 10 MB cap."""
    if mime_type not in ALLOWED_MIME_TYPES:
        raise UnsupportedFormatError("Only PDF and DOCX files are allowed")
    if not data:
        raise ValidationError("No file uploaded")
    if len(data) > MAX_UPLOAD_BYTES:
        raise ValidationError(f"File exceeds the {MAX_UPLOAD_BYTES // (1024 * 1024)} MB limit")


def _run_tool(argv: Callable[[str], list[str]], data: bytes, suffix: str) -> str | None:
    """Run a converter that wants a file path; None when it fails or prints nothing."""
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / f"upload{suffix}"
        path.write_bytes(data)
        cmd = argv(str(path))
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=_TOOL_TIMEOUT)
        except (OSError, subprocess.TimeoutExpired) as exc:
            log.warning("%s failed: %s", cmd[0], exc)
            return None
    if result.returncode == 0 and result.stdout.strip():
        return result.stdout
    log.debug("%s exited %d with no text", cmd[0], result.returncode)
    return None


# ── PDF ──────────────────────────────────────────────────────────────────


def _fix_spacing(text: str) -> str:
    """Re-insert spaces when PDF extraction merges words together.

    Detects the problem by checking if the space-to-character ratio is
    abnormally low, then applies heuristic space insertion.
    """
    if not text or len(text) < 50:
        return text
    space_ratio = text.count(" ") / len(text)
    if space_ratio > 0.08:
        return text

    log.debug("Low space ratio (%.2f%%) — applying spacing fix", space_ratio * 100)
    fixed = re.sub(r"([a-z])([A-Z])", r"\1 \2", text)
    fixed = re.sub(r"([.!?,;:])([A-Za-z])", r"\1 \2", fixed)
    return fixed


def _extract_pdf(data: bytes) -> str:
    # Prefer pdftotext (better spacing) over pypdf
    if shutil.which("pdftotext"):
        text = _run_tool(lambda p: ["pdftotext", "-layout", p, "-"], data, ".pdf")
        if text:
            return text

    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [_fix_spacing(page.extract_text() or "") for page in reader.pages]
    except Exception as exc:
        raise ExtractionError(f"Could not read PDF: {exc}") from exc
    return "\n".join(pages)


# ── Word ─────────────────────────────────────────────────────────────────


def _extract_docx(data: bytes) -> str:
    """Parse DOCX using only stdlib (zipfile + xml)."""
    texts: list[str] = []
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            with zf.open("word/document.xml") as f:
                tree = ElementTree.parse(f)
    except (zipfile.BadZipFile, KeyError, ElementTree.ParseError) as exc:
        raise ExtractionError(f"Could not read Word document: {exc}") from exc

    for para in tree.iter(f"{_W_NS}p"):
        parts = [node.text for node in para.iter(f"{_W_NS}t") if node.text]
        if parts:
            texts.append("".join(parts))
    return "\n".join(texts)


def _extract_doc(data: bytes) -> str:
    # Uploads labelled application/msword are often DOCX containers.
    if zipfile.is_zipfile(io.BytesIO(data)):
        return _extract_docx(data)

    if shutil.which("antiword"):
        text = _run_tool(lambda p: ["antiword", p], data, ".doc")
        if text:
            return text
        raise ExtractionError("antiword could not read the .doc file")

    raise ExtractionError(
        "Cannot read legacy .doc — install antiword or upload a DOCX/PDF instead."
    )


_EXTRACTORS: dict[str, Callable[[bytes], str]] = {
    PDF: _extract_pdf,
    DOCX: _extract_docx,
    DOC: _extract_doc,
}


def extract_text(data: bytes, mime_type: str) -> str:
    """Return plain text for a PDF or Word upload; raises for anything else."""
    extractor = _EXTRACTORS.get(mime_type)
    if extractor is None:
        raise UnsupportedFormatError(f"Unsupported file type: {mime_type or 'unknown'}")
    log.debug("Extracting text from %s (%d bytes)", mime_type, len(data))
    return extractor(data)
