from __future__ import annotations

import io
import os
import zipfile
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

# Keep test runs from writing daily log files.
os.environ.setdefault("APPLYTRACK_LOG_FILE", "0")

from applytrack.store import InMemoryApplicationStore  # noqa: E402
from applytrack.tracker import ApplicationTracker  # noqa: E402


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeChatClient:
    """OpenAI-shaped client returning canned message contents in order."""

    def __init__(self, *contents, error: Exception | None = None) -> None:
        self.contents = list(contents)
        self.error = error
        self.calls: list[dict] = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        content = self.contents.pop(0)
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


_W = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"


def docx_bytes(*paragraphs: str) -> bytes:
    body = "".join(f"<w:p><w:r><w:t>{p}</w:t></w:r></w:p>" for p in paragraphs)
    xml = f'<?xml version="1.0" encoding="UTF-8"?><w:document xmlns:w="{_W}"><w:body>{body}</w:body></w:document>'
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("word/document.xml", xml)
    return buf.getvalue()


@pytest.fixture
def make_docx():
    return docx_bytes


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def tracker(clock: FakeClock) -> ApplicationTracker:
    return ApplicationTracker(InMemoryApplicationStore(), clock=clock)


@pytest.fixture
def fake_chat():
    return FakeChatClient
